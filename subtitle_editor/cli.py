"""Command-line interface for the Subtitle Editor.

WHY: Users with a provider word list on disk need subtitle files without
opening the editor. The CLI wires together the non-interactive pipeline
(word-list loading, latency compensation, preset-driven cue assembly and
formatter output) behind a single command.

HOW: Uses argparse to accept the word-list JSON path, the aspect ratio,
optional per-field policy overrides, the timing offset, output format
selection, and the output directory. Status messages go to stderr; output
files are saved next to the source (or to --output-dir).

RULES:
- Positional argument: word-list JSON file (provider format)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (talk-2.srt)
- Malformed input → one "Error: ..." line on stderr and exit code 1
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from subtitle_editor.config import DEFAULT_ASPECT, LOG_LEVEL, TIMING_OFFSET_S, policy_for
from subtitle_editor.core.assembler import assemble_cues
from subtitle_editor.core.ir import AspectRatio
from subtitle_editor.core.words import WordListError, loads_words, sanitize_words
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr (keeps stdout pipeable)."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    WHY: Users may run the CLI several times on the same word list.
    Overwriting previous output (possibly hand-edited) would lose work.

    HOW: Check if {stem}{suffix} exists. If so, insert a counter before
    the file extension until a free name is found.

    RULES:
    - First attempt: {stem}{suffix} (e.g. talk.srt)
    - Conflict: talk-2.srt, talk-3.srt, ...

    Args:
        stem: Source filename stem (without extension).
        suffix: Formatter's suffix (e.g. ".srt").
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Write one formatter output as UTF-8 and return where it went."""
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _run_pipeline(args: argparse.Namespace) -> List[Path]:
    """Load, sanitise, assemble, format, and save.

    RULES:
    - Validate paths and format keys before reading the word list
    - A failed parse publishes nothing (no partial files)
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",") if f.strip()]
        for key in format_keys:
            if key not in FORMATTERS:
                _fail("Unknown format '{}'. Available formats: {}".format(
                    key, ", ".join(sorted(FORMATTERS.keys()))
                ))
    else:
        format_keys = list(FORMATTERS.keys())

    try:
        policy = policy_for(
            args.aspect,
            max_words_per_cue=args.max_words,
            max_cue_duration=args.max_duration,
            pause_threshold=args.pause_threshold,
        )
    except ValueError as exc:
        _fail(str(exc))

    _status("Loading words from {}...".format(input_path.name))
    try:
        raw = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _fail("Cannot read {}: {}".format(input_path.name, exc))

    try:
        words = loads_words(raw)
    except WordListError as exc:
        _fail("Malformed word list: {}".format(exc))

    offset_s = args.timing_offset_ms / 1000.0 if args.timing_offset_ms is not None else None
    clean = sanitize_words(words, offset_s)
    _status("  {} words ({} dropped as degenerate)".format(len(clean), len(words) - len(clean)))

    cues = assemble_cues(clean, policy)
    _status("  Assembled {} cues ({} preset)".format(len(cues), AspectRatio.parse(args.aspect).value))

    saved: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(cues):
            path = _save_output(output, input_path.stem, output_dir)
            saved.append(path)
            _status("  Saved: {}".format(path.name))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved), output_dir))
    return saved


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser (separate from main() for testing)."""
    parser = argparse.ArgumentParser(
        prog="subtitle_editor",
        description="Assemble subtitle cues from a timestamped word list "
                    "and write SRT / WebVTT files.",
    )

    parser.add_argument(
        "input_file",
        help="Path to a JSON word list ([{\"word\", \"start\", \"end\"}, ...]).",
    )

    parser.add_argument(
        "--aspect",
        choices=[a.value for a in AspectRatio],
        default=DEFAULT_ASPECT.value,
        help="Preview aspect ratio selecting the assembly preset (default: %(default)s).",
    )

    parser.add_argument(
        "--max-words",
        type=int,
        default=None,
        help="Override the preset's maximum words per cue.",
    )

    parser.add_argument(
        "--max-duration",
        type=float,
        default=None,
        help="Override the preset's maximum cue duration in seconds.",
    )

    parser.add_argument(
        "--pause-threshold",
        type=float,
        default=None,
        help="Override the preset's pause (seconds) that forces a cue break.",
    )

    parser.add_argument(
        "--timing-offset-ms",
        type=float,
        default=None,
        help="Show words this many milliseconds earlier "
             "(default: {:.0f}).".format(TIMING_OFFSET_S * 1000),
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m subtitle_editor`` and ``subtitle-editor``."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    _run_pipeline(args)


if __name__ == "__main__":
    main()
