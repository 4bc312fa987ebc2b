"""Abstract base formatter, output container, and timestamp rendering.

WHY: Every subtitle format consumes the same ordered cue list but produces
different file content. This base class gives the CLI, GUI, and API one
interface so they can work with any formatter generically.

HOW: BaseFormatter is an ABC with two requirements — a ``name`` property
and a ``format()`` method. FormatterOutput bundles a file suffix with its
content and MIME type. format_timestamp() renders seconds as
HH:MM:SS<sep>mmm for both SRT (",") and WebVTT ("."), and
parse_timestamp() reads a typed value back for the selected-cue form.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list (one item for the built-in formats)
- ``suffix`` includes the dot, e.g. ``".srt"``; the caller prepends the stem
- Milliseconds are rounded on the whole timestamp, so "1000" never appears
- Formatters never modify the cues they are given
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

from subtitle_editor.core.ir import Cue

_TIMESTAMP_RE = re.compile(r"^(?P<clock>\d+(?::\d{1,2}){0,2})(?:\.(?P<fraction>\d{1,3}))?$")


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem, e.g. ``".srt"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"text/vtt"``.
    """

    suffix: str
    content: str
    media_type: str


def format_timestamp(seconds: float, separator: str = ".") -> str:
    """Render seconds as HH:MM:SS.mmm (or with a custom ms separator)."""
    total_ms = int(round(max(0.0, seconds) * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d}{}{:03d}".format(hours, minutes, secs, separator, millis)


def parse_timestamp(text: str) -> float:
    """Parse a typed timestamp back into seconds.

    Accepts ``HH:MM:SS.mmm``, ``MM:SS.mmm`` or ``SS.mmm``; the fraction is
    optional and may use "," as in SRT. Minutes and seconds below the
    leading field must be under 60.

    Raises:
        ValueError: If the text is not a timestamp.
    """
    value = text.strip().replace(",", ".")
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise ValueError("Invalid timestamp '{}' (expected HH:MM:SS.mmm)".format(text))

    fields = [int(part) for part in match.group("clock").split(":")]
    for part in fields[1:]:
        if part >= 60:
            raise ValueError("Invalid timestamp '{}': field out of range".format(text))

    seconds = 0
    for part in fields:
        seconds = seconds * 60 + part
    fraction = match.group("fraction")
    return seconds + (float("0." + fraction) if fraction else 0.0)


class BaseFormatter(ABC):
    """Abstract base for all subtitle formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SubRip (SRT)'."""

    @abstractmethod
    def format(self, cues: Sequence[Cue]) -> List[FormatterOutput]:
        """Convert the ordered cue list into one or more output files.

        Args:
            cues: Final cues in display order (start ascending).

        Returns:
            List of FormatterOutput objects.
        """
