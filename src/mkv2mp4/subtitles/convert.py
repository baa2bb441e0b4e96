"""ASS/SSA -> SRT conversion.

One pass over the script, top to bottom:

    lines -> SectionScanner -> FormatResolver / Dialogue parsing
          -> timecode formatting + text cleanup -> Aggregator -> SRT entries

Nothing is written until the whole script has been parsed, so a malformed
script never leaves a partial ``.srt`` behind.  Non-UTF-8 scripts are
decoded with charset-normalizer, the same fallback used for any subtitle
file whose encoding is unknown.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from charset_normalizer import from_bytes

from mkv2mp4.config import ConversionOptions
from mkv2mp4.errors import (
    ConversionError,
    InvalidTimecodeError,
    MissingEventsSectionError,
    SubtitleReadError,
)
from mkv2mp4.models import ConversionResult, SRTEntry, SubtitleEvent
from mkv2mp4.subtitles.aggregate import Aggregator
from mkv2mp4.subtitles.dialogue import match_dialogue, split_dialogue
from mkv2mp4.subtitles.emitter import build_entries, render_srt, write_srt
from mkv2mp4.subtitles.schema import FormatResolver
from mkv2mp4.subtitles.sections import SectionScanner
from mkv2mp4.subtitles.text import clean_text
from mkv2mp4.subtitles.timecode import format_timecode

logger = logging.getLogger(__name__)

# Only real line endings; str.splitlines() would also break on U+2028, NEL etc.
_LINE_END_RE = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> list[str]:
    return _LINE_END_RE.split(text)


@dataclass
class ParsedScript:
    entries: list[SRTEntry]
    result: ConversionResult


def parse_ass_lines(
    lines: Iterable[str],
    options: Optional[ConversionOptions] = None,
    source: str = "<string>",
) -> ParsedScript:
    """Parse ASS script *lines* into numbered SRT entries.

    Raises
    ------
    MissingEventsSectionError
        If the script has no [Events] section.
    MissingFormatError, MissingFieldError, FieldCountMismatchError, InvalidTimecodeError
        On a malformed [Events] section.
    """
    options = options or ConversionOptions()
    scanner = SectionScanner()
    resolver = FormatResolver(source)
    aggregator = Aggregator(options.dedup)
    result = ConversionResult(source=source)

    for line_no, line in scanner.scan(lines):
        if resolver.feed(line):
            continue
        rest = match_dialogue(line)
        if rest is None:
            continue
        raw = split_dialogue(rest, resolver.spec, line_no, source)

        start = format_timecode(raw.start)
        if start is None:
            raise InvalidTimecodeError(source, line_no, raw.start)
        end = format_timecode(raw.end)
        if end is None:
            raise InvalidTimecodeError(source, line_no, raw.end)

        text = clean_text(raw.text)
        if not text:
            result.skipped_count += 1
            logger.debug("%s:%d: skipped, no text after cleanup", source, line_no)
            continue

        result.event_count += 1
        aggregator.add(SubtitleEvent(start=start, end=end, text=text))

    if not scanner.saw_events:
        raise MissingEventsSectionError(source)

    entries = build_entries(aggregator.block)
    result.entry_count = len(entries)
    result.merged_count = aggregator.merged_count
    result.duplicate_count = aggregator.duplicate_count
    return ParsedScript(entries=entries, result=result)


def convert_text(
    text: str,
    options: Optional[ConversionOptions] = None,
    source: str = "<string>",
) -> tuple[str, ConversionResult]:
    """Convert ASS script *text* and return ``(srt_text, result)``."""
    parsed = parse_ass_lines(split_lines(text), options, source)
    return render_srt(parsed.entries), parsed.result


def read_script(path: Path, encoding: Optional[str] = None) -> str:
    """Decode *path*: the given encoding, else UTF-8 (BOM tolerated), else detected.

    Raises
    ------
    SubtitleReadError
        If the file cannot be read or decoded.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise SubtitleReadError(path, str(exc)) from exc

    if encoding is not None:
        try:
            return data.decode(encoding)
        except (LookupError, UnicodeDecodeError) as exc:
            raise SubtitleReadError(path, f"Cannot decode as {encoding}: {exc}") from exc

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    # UTF-8 failed, fall back to charset-normalizer
    best = from_bytes(data).best()
    if best is None:
        raise SubtitleReadError(path, "Could not determine file encoding. Re-save as UTF-8.")
    logger.debug("%s: decoding as %s", path.name, best.encoding)
    return str(best)


def convert(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    options: Optional[ConversionOptions] = None,
) -> ConversionResult:
    """Convert the ASS/SSA script at *input_path* into an SRT file at *output_path*.

    Parameters
    ----------
    input_path:
        ``.ass`` / ``.ssa`` script.
    output_path:
        Destination ``.srt``; only created when conversion succeeds.
    options:
        Duplicate-text policy and input encoding.

    Returns
    -------
    ConversionResult
        ``entry_count`` is the number of numbered SRT blocks written.

    Raises
    ------
    ConversionError
        Any parse error, or ``SubtitleReadError`` / ``SubtitleWriteError``.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    options = options or ConversionOptions()

    text = read_script(input_path, options.encoding)
    parsed = parse_ass_lines(split_lines(text), options, input_path.name)
    write_srt(parsed.entries, output_path)

    result = parsed.result
    result.output = output_path
    logger.info(
        "Converted %s -> %s (%d entries, %d skipped, %d merged)",
        input_path.name, output_path.name,
        result.entry_count, result.skipped_count, result.merged_count,
    )
    return result


def convert_many(
    jobs: list[tuple[Path, Path]],
    options: Optional[ConversionOptions] = None,
    workers: int = 1,
) -> list[Union[ConversionResult, ConversionError]]:
    """Convert independent ``(input, output)`` pairs, one worker per file.

    A failing file does not stop the others.  Each slot of the returned list,
    in input order, holds either the result or the error for that pair.
    """
    def _run(job: tuple[Path, Path]) -> Union[ConversionResult, ConversionError]:
        try:
            return convert(job[0], job[1], options)
        except ConversionError as exc:
            logger.error("Failed %s: %s", job[0].name, exc)
            return exc

    if workers <= 1 or len(jobs) <= 1:
        return [_run(job) for job in jobs]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(_run, jobs))
