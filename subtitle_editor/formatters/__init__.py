"""Output formatter registry — pluggable subtitle format hub.

WHY: The CLI, GUI, and API layers need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt"]()``.

RULES:
- Keys are short lowercase identifiers (used in CLI flags and URLs)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from subtitle_editor.formatters.srt import SRTFormatter
from subtitle_editor.formatters.vtt import VTTFormatter

if TYPE_CHECKING:
    from subtitle_editor.formatters.base import BaseFormatter

FORMATTERS: Dict[str, Type[BaseFormatter]] = {
    "srt": SRTFormatter,
    "vtt": VTTFormatter,
}
