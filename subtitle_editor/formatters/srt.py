"""SubRip (SRT) formatter.

WHY: SRT is the lowest-common-denominator subtitle format accepted by
every player and editing tool.

HOW: One numbered block per cue: sequence number, a
``HH:MM:SS,mmm --> HH:MM:SS,mmm`` timing line, the cue text, and a blank
line. Layout fields are dropped — SRT has no positioning.

RULES:
- Numbering starts at 1 and follows list order
- Suffix ".srt", media type "application/x-subrip"
- An empty cue list produces an empty string
"""

from __future__ import annotations

from typing import List, Sequence

from subtitle_editor.core.ir import Cue
from subtitle_editor.formatters.base import BaseFormatter, FormatterOutput, format_timestamp


class SRTFormatter(BaseFormatter):

    @property
    def name(self) -> str:
        return "SubRip (SRT)"

    def format(self, cues: Sequence[Cue]) -> List[FormatterOutput]:
        blocks = []
        for index, cue in enumerate(cues, start=1):
            blocks.append("{}\n{} --> {}\n{}\n\n".format(
                index,
                format_timestamp(cue.start, ","),
                format_timestamp(cue.end, ","),
                cue.text,
            ))
        return [
            FormatterOutput(
                suffix=".srt",
                content="".join(blocks),
                media_type="application/x-subrip",
            )
        ]
