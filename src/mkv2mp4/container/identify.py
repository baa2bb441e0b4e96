"""Matroska track identification via ``mkvmerge -J``.

All subprocess errors and malformed output are translated into
``TrackIdentificationError``; raw stderr never escapes to callers.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Optional

from mkv2mp4.config import ToolSettings
from mkv2mp4.errors import TrackIdentificationError
from mkv2mp4.models import Track

logger = logging.getLogger(__name__)


def identify_tracks(source: Path, settings: Optional[ToolSettings] = None) -> list[Track]:
    """Return every track mkvmerge reports for *source*.

    Raises
    ------
    TrackIdentificationError
        If mkvmerge is missing, fails, or prints something that is not its
        JSON identification format.
    """
    settings = settings or ToolSettings()
    cmd = [settings.mkvmerge, "-J", str(source)]
    logger.debug("identify: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or exc.stdout or "").strip()
        raise TrackIdentificationError(source, f"mkvmerge failed: {detail[-500:]}") from exc
    except FileNotFoundError as exc:
        raise TrackIdentificationError(source, "mkvmerge not found. Is MKVToolNix installed and in PATH?") from exc

    try:
        data = json.loads(result.stdout)
        tracks = [
            Track(
                id=int(entry["id"]),
                type=entry["type"],
                codec_id=entry.get("properties", {}).get("codec_id", ""),
                codec=entry.get("codec", ""),
                language=entry.get("properties", {}).get("language", ""),
                name=entry.get("properties", {}).get("track_name", ""),
            )
            for entry in data.get("tracks", [])
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise TrackIdentificationError(source, f"Could not parse mkvmerge output: {exc}") from exc
    return tracks


def find_subtitle_track(tracks: list[Track]) -> Optional[Track]:
    """Pick the subtitle track to carry over: the first SRT track, else the first ASS track."""
    for track in tracks:
        if track.is_srt:
            return track
    for track in tracks:
        if track.is_ass:
            return track
    return None


def find_ass_track(tracks: list[Track]) -> Optional[Track]:
    return next((track for track in tracks if track.is_ass), None)
