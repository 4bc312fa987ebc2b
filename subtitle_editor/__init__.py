"""Subtitle Editor — word-level transcripts to editable subtitle cues.

WHY: Speech-to-text providers return a flat list of timestamped words.
Viewers need readable subtitle cues, and editors need to nudge those cues
in time and on screen before exporting them. This package turns the word
stream into cues and provides the interactive editing machinery that
retimes, repositions and resizes them.

HOW: Three layers — ingest (word parsing and sanitisation), assemble
(the greedy cue assembler feeding an in-memory cue store), and edit/output
(drag controllers, active-cue resolution, pluggable formatters). Hosts
(CLI, HTTP API, Tkinter editor) wire the layers together.

RULES:
- The Cue dataclass is the contract shared by every layer
- Cue ids are the only cross-reference key (never list positions)
- Hosts own the event loop; the core never blocks or spawns threads
"""

__version__ = "0.1.0"
