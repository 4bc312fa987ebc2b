"""Word-list parsing, validation, and sanitisation at the provider boundary.

WHY: The transcription provider is a black box that returns JSON. It may
return something that is not a list at all, entries with missing or
mistyped fields, Markdown-fenced JSON, or zero-length words. The assembler
assumes clean input, so every defect must be caught here — malformed input
fails fast, degenerate timing is filtered quietly.

HOW: loads_words() strips an optional ```json fence and decodes the text.
parse_words() validates the decoded data against WORD_LIST_SCHEMA with
jsonschema and builds frozen Word objects. sanitize_words() applies the
latency-compensation offset and drops words whose end <= start.

RULES:
- Malformed input raises WordListError naming the offending index/field
- start and end must be finite (json accepts Infinity and NaN)
- No partial list is ever returned from a failed parse
- Text may come as "word" (provider key) or "text"
- Degenerate words are dropped and counted at DEBUG, never raised
- Offset shifts both edges earlier, clamped at 0
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Iterable, List, Optional

import jsonschema

from subtitle_editor.core.ir import Word

logger = logging.getLogger(__name__)

WORD_LIST_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Transcribed word list",
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "word": {"type": "string"},
            "text": {"type": "string"},
            "start": {"type": "number"},
            "end": {"type": "number"},
        },
        "required": ["start", "end"],
        "anyOf": [
            {"required": ["word"]},
            {"required": ["text"]},
        ],
    },
}

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


class WordListError(ValueError):
    """Raised when a provider word list is malformed."""


def _describe(error: jsonschema.ValidationError) -> str:
    path = list(error.absolute_path)
    if not path:
        return "word list must be a JSON array of word objects ({})".format(error.message)
    location = "word {}".format(path[0])
    if len(path) > 1:
        location += " field '{}'".format(path[1])
    if error.validator == "anyOf":
        return "{}: missing text (expected 'word' or 'text')".format(location)
    return "{}: {}".format(location, error.message)


def parse_words(data: Any) -> List[Word]:
    """Validate decoded provider JSON and convert it to Word objects.

    Args:
        data: Decoded JSON — expected to be a list of word objects.

    Returns:
        Words in provider order, unsanitised.

    Raises:
        WordListError: If the data does not match WORD_LIST_SCHEMA.
    """
    validator = jsonschema.Draft7Validator(WORD_LIST_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        raise WordListError(_describe(errors[0]))

    words: List[Word] = []
    for index, item in enumerate(data):
        for field in ("start", "end"):
            if not math.isfinite(item[field]):
                raise WordListError(
                    "word {} field '{}': {!r} is not a finite number".format(index, field, item[field])
                )
        text = item.get("word", item.get("text"))
        words.append(Word(text=text.strip(), start=float(item["start"]), end=float(item["end"])))
    return words


def strip_code_fence(raw: str) -> str:
    """Remove a Markdown code fence wrapped around JSON text, if present."""
    text = raw.strip()
    text = _FENCE_OPEN_RE.sub("", text)
    text = _FENCE_CLOSE_RE.sub("", text)
    return text


def loads_words(raw: str) -> List[Word]:
    """Decode raw provider text (optionally fenced) into validated words.

    Raises:
        WordListError: If the text is not JSON or fails validation.
    """
    try:
        data = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        raise WordListError("word list is not valid JSON: {}".format(exc))
    return parse_words(data)


def sanitize_words(words: Iterable[Word], offset_s: Optional[float] = None) -> List[Word]:
    """Shift words earlier by the latency offset and drop degenerate ones.

    WHY: Provider timestamps tend to lag the audio slightly, and some
    entries come back with zero or negative duration. The assembler does
    not defend against either.

    HOW: Subtracts offset_s from both edges (clamped at 0), then keeps
    only words with end > start.

    Args:
        words: Parsed words in provider order.
        offset_s: Seconds to shift earlier. Defaults to config.TIMING_OFFSET_S.

    Returns:
        A new list of clean words, order preserved.
    """
    if offset_s is None:
        from subtitle_editor.config import TIMING_OFFSET_S
        offset_s = TIMING_OFFSET_S

    kept: List[Word] = []
    dropped = 0
    for word in words:
        start = max(0.0, word.start - offset_s)
        end = max(0.0, word.end - offset_s)
        if end <= start:
            dropped += 1
            continue
        kept.append(Word(text=word.text, start=start, end=end))

    if dropped:
        logger.debug("Dropped %d degenerate word(s) during sanitisation", dropped)
    return kept
