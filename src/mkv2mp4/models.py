from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

# Field names every Events Format line must declare.
CANONICAL_FIELDS: tuple[str, ...] = ("Start", "End", "Text")


@dataclass(frozen=True)
class FormatSpec:
    """Field layout declared by the [Events] Format line."""

    fields: tuple[str, ...]         # Declared order, e.g. ("Layer", "Start", ...)
    index: Mapping[str, int]        # Read-only view: canonical name -> column

    def __len__(self) -> int:
        return len(self.fields)

    @classmethod
    def build(cls, fields: tuple[str, ...]) -> "FormatSpec":
        """Build a spec; the caller has already checked CANONICAL_FIELDS are present."""
        index = {name: fields.index(name) for name in CANONICAL_FIELDS}
        return cls(fields=fields, index=MappingProxyType(index))


@dataclass(frozen=True)
class RawDialogueLine:
    """A ``Dialogue:`` line split according to a :class:`FormatSpec`."""

    values: tuple[str, ...]
    line_no: int
    spec: FormatSpec

    def __getitem__(self, name: str) -> str:
        return self.values[self.spec.index[name]]

    @property
    def start(self) -> str:
        return self["Start"]

    @property
    def end(self) -> str:
        return self["End"]

    @property
    def text(self) -> str:
        return self["Text"]


@dataclass(frozen=True)
class SubtitleEvent:
    """A dialogue event with SRT timecodes and cleaned text."""

    start: str      # HH:MM:SS.mmm
    end: str
    text: str       # Normalized; may contain newlines and <b>/<i>/<u> markers

    @property
    def key(self) -> str:
        """Timecode line, also used as the merge key."""
        return f"{self.start} --> {self.end}"


@dataclass(frozen=True)
class SRTEntry:
    """A single numbered SRT block."""

    index: int
    key: str
    lines: tuple[str, ...]

    def to_srt(self) -> str:
        body = "".join(f"{line}\n" for line in self.lines)
        return f"{self.index}\n{self.key}\n{body}\n"


@dataclass
class ConversionResult:
    """Counters for one ASS -> SRT conversion."""

    source: str
    output: Optional[Path] = None
    entry_count: int = 0        # Numbered SRT blocks written
    event_count: int = 0        # Dialogue lines with non-empty text
    skipped_count: int = 0      # Dialogue lines whose text cleaned to ""
    merged_count: int = 0       # Events appended to an existing block
    duplicate_count: int = 0    # Events suppressed by the duplicate policy


@dataclass(frozen=True)
class Track:
    """A track reported by ``mkvmerge -J``."""

    id: int
    type: str                   # "video" | "audio" | "subtitles"
    codec_id: str = ""          # e.g. "S_TEXT/ASS"
    codec: str = ""             # e.g. "SubStationAlpha"
    language: str = ""
    name: str = ""

    @property
    def is_srt(self) -> bool:
        return self.type == "subtitles" and self.codec_id == "S_TEXT/UTF8"

    @property
    def is_ass(self) -> bool:
        return self.type == "subtitles" and (
            self.codec_id in ("S_TEXT/ASS", "S_TEXT/SSA") or self.codec == "SubStationAlpha"
        )


@dataclass
class VideoResult:
    """Outcome of the MKV -> M4V workflow for one file."""

    source: Path
    output: Optional[Path] = None
    transcoded: bool = False
    subtitle_track: Optional[Track] = None
    conversion: Optional[ConversionResult] = None
    skipped_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
