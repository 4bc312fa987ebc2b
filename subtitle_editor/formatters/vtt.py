"""WebVTT formatter with cue positioning settings.

WHY: WebVTT is the browser-native subtitle format and, unlike SRT, can
carry the layout the user set in the preview: the vertical line and the
box width.

HOW: Writes the ``WEBVTT`` header, then one numbered block per cue. The
timing line gets ``line:N%`` when the cue has an explicit line, and
``size:N% position:50% align:middle`` when it has an explicit width
(cues are always horizontally centred).

RULES:
- Percentages are rounded to whole numbers
- Cues without explicit geometry get no settings (player defaults)
- Font size has no WebVTT cue setting and is not written
- Suffix ".vtt", media type "text/vtt"
"""

from __future__ import annotations

from typing import List, Sequence

from subtitle_editor.core.ir import Cue
from subtitle_editor.formatters.base import BaseFormatter, FormatterOutput, format_timestamp


def _cue_settings(cue: Cue) -> str:
    settings = ""
    if cue.line is not None:
        settings += " line:{}%".format(int(round(cue.line)))
    if cue.width is not None:
        settings += " size:{}% position:50% align:middle".format(int(round(cue.width)))
    return settings


class VTTFormatter(BaseFormatter):
    """Formatter producing a single WebVTT file."""

    @property
    def name(self) -> str:
        return "WebVTT"

    def format(self, cues: Sequence[Cue]) -> List[FormatterOutput]:
        parts = ["WEBVTT\n\n"]
        for index, cue in enumerate(cues, start=1):
            parts.append("{}\n{} --> {}{}\n{}\n\n".format(
                index,
                format_timestamp(cue.start),
                format_timestamp(cue.end),
                _cue_settings(cue),
                cue.text,
            ))
        return [
            FormatterOutput(
                suffix=".vtt",
                content="".join(parts),
                media_type="text/vtt",
            )
        ]
