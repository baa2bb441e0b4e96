"""File naming rules for extracted and converted subtitles."""

import re
from pathlib import Path

# Optional leading "[Group]" tag, then everything up to the first "[" or "(".
_TITLE_RE = re.compile(r"^(?:\[.*?\])?([^\[(]+)")


def derive_subtitle_name(path: Path) -> str:
    """Derive a clean title from a release-style file name.

    ``[Group]_Show_Name_-_01_(1080p)[ABCD1234].mkv`` -> ``Show Name - 01``
    """
    match = _TITLE_RE.match(path.stem)
    name = match.group(1) if match else path.stem
    name = name.strip(" _").replace("_", " ")
    return name or path.stem


def m4v_path(mkv: Path, suffix: str = ".m4v") -> Path:
    return mkv.with_suffix(suffix)


def srt_path(ass: Path) -> Path:
    return ass.with_suffix(".srt")
