"""Core data model, assembly, storage, and playback modules.

WHY: The core package holds the stable heart of the editor — the cue
dataclasses, the word-to-cue assembler, the authoritative cue store and
the active-cue resolver. Every host (CLI, API, GUI) and every editor
controller builds on these.

HOW: ir.py defines the data structures, words.py guards the provider
boundary, assembler.py builds cues, store.py owns the live list,
layout.py holds geometry defaults and clamps, playback.py resolves the
active cue and drives the frame tick.

RULES:
- IR dataclasses are the contract — change with care
- Core modules never touch a UI toolkit or the network
- Assembly is pure; only the store mutates shared state
"""
