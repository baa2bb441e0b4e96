"""SRT rendering and atomic output."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from mkv2mp4.errors import SubtitleWriteError
from mkv2mp4.models import SRTEntry
from mkv2mp4.subtitles.aggregate import AggregatedBlock

# os.umask() can only be read by setting it, so do it once at import.
_UMASK = os.umask(0)
os.umask(_UMASK)


def build_entries(block: AggregatedBlock) -> list[SRTEntry]:
    """Number the blocks in timecode order, starting at 1.

    Keys are fixed-width and zero-padded, so sorting the strings sorts
    chronologically.
    """
    return [
        SRTEntry(index=index, key=key, lines=block.lines(key))
        for index, key in enumerate(sorted(block), start=1)
    ]


def _output_mode(path: Path) -> int:
    """Keep the mode of an existing *path*, else use the umask default for new files."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except OSError:
        return 0o666 & ~_UMASK


def render_srt(entries: list[SRTEntry]) -> str:
    return "".join(entry.to_srt() for entry in entries)


def write_srt(entries: list[SRTEntry], path: Path) -> None:
    """Atomically write *entries* to *path* as UTF-8.

    The temp file is created next to *path* so ``os.replace`` stays on one
    filesystem; *path* is either untouched or fully written.  mkstemp creates
    the file as 0600, so its mode is reset before the rename.

    Raises
    ------
    SubtitleWriteError
        If the destination cannot be created or written.
    """
    data = render_srt(entries).encode("utf-8")
    try:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".srt.tmp")
    except OSError as exc:
        raise SubtitleWriteError(path, str(exc)) from exc
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, _output_mode(path))
        os.replace(tmp_path, path)
    except OSError as exc:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise SubtitleWriteError(path, str(exc)) from exc
