from pathlib import Path


class Mkv2Mp4Error(Exception):
    """Base class for all mkv2mp4 errors."""


# ---------------------------------------------------------------------------
# ASS -> SRT conversion
# ---------------------------------------------------------------------------

class ConversionError(Mkv2Mp4Error):
    """A subtitle document could not be converted. Nothing was written."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source


class MissingEventsSectionError(ConversionError):
    def __init__(self, source: str) -> None:
        super().__init__(
            source,
            f"Cannot convert '{source}': no [Events] section.\n"
            f"  Cause: the script contains no dialogue section to convert.\n"
            f"  Check: Is this really an ASS/SSA v4.00+ script?",
        )


class MissingFormatError(ConversionError):
    def __init__(self, source: str, line_no: int) -> None:
        super().__init__(
            source,
            f"Cannot convert '{source}': Dialogue on line {line_no} appears before any Format line.\n"
            f"  Cause: the [Events] section does not declare its field layout first.\n"
            f"  Tip: Add 'Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text'.",
        )
        self.line_no = line_no


class MissingFieldError(ConversionError):
    def __init__(self, source: str, missing: list[str], declared: list[str]) -> None:
        super().__init__(
            source,
            f"Cannot convert '{source}': the Events Format line lacks {', '.join(missing)}.\n"
            f"  Declared fields: {', '.join(declared) or '(none)'}",
        )
        self.missing = missing
        self.declared = declared


class FieldCountMismatchError(ConversionError):
    def __init__(self, source: str, line_no: int, expected: int, found: int) -> None:
        super().__init__(
            source,
            f"Cannot convert '{source}': Dialogue on line {line_no} has {found} fields, "
            f"the Format line declares {expected}.",
        )
        self.line_no = line_no
        self.expected = expected
        self.found = found


class InvalidTimecodeError(ConversionError):
    def __init__(self, source: str, line_no: int, value: str) -> None:
        super().__init__(
            source,
            f"Cannot convert '{source}': invalid timecode '{value}' on line {line_no}.\n"
            f"  Check: ASS timecodes look like H:MM:SS.cc (e.g. 0:01:02.50).",
        )
        self.line_no = line_no
        self.value = value


class SubtitleReadError(ConversionError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            str(path),
            f"Cannot read subtitle file '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Tip: Try re-saving the file as UTF-8 in a text editor.",
        )
        self.path = path
        self.detail = detail


class SubtitleWriteError(ConversionError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            str(path),
            f"Cannot write SRT file '{path}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Does the output directory exist and is it writable?",
        )
        self.path = path
        self.detail = detail


# ---------------------------------------------------------------------------
# External tools
# ---------------------------------------------------------------------------

class ToolError(Mkv2Mp4Error):
    """An external program (mkvmerge, mkvextract, ffmpeg) failed."""

    def __init__(self, path: Path, message: str, detail: str) -> None:
        super().__init__(message)
        self.path = path
        self.detail = detail


class TrackIdentificationError(ToolError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            path,
            f"Failed to identify tracks in '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is MKVToolNix installed and in PATH? Is '{path.name}' a valid Matroska file?\n"
            f"  Tip: Run `mkvmerge -J '{path}'` to verify the file is readable.",
            detail,
        )


class TrackExtractionError(ToolError):
    def __init__(self, path: Path, track_id: int, detail: str) -> None:
        super().__init__(
            path,
            f"Failed to extract track {track_id} from '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is mkvextract installed and in PATH?",
            detail,
        )
        self.track_id = track_id


class TranscodeError(ToolError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            path,
            f"Failed to transcode '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is FFmpeg installed and in PATH? Is the source file complete?",
            detail,
        )


class MuxError(ToolError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            path,
            f"Failed to mux subtitles into '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Tip: Run the FFmpeg command manually with the same arguments to see full output.",
            detail,
        )
