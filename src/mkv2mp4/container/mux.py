"""SRT muxing into an MP4/M4V container.

FFmpeg remuxes the video with every stream copied, drops any existing
subtitle stream and adds the SRT as ``mov_text`` (the only text subtitle
codec MP4 players accept).  The result replaces the video atomically.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from mkv2mp4.config import ToolSettings
from mkv2mp4.errors import MuxError

logger = logging.getLogger(__name__)


def build_mux_command(video: Path, srt: Path, dest: Path, settings: Optional[ToolSettings] = None) -> list[str]:
    settings = settings or ToolSettings()
    return [
        settings.ffmpeg, "-y",
        "-i", str(video),
        "-i", str(srt),
        "-map", "0",
        "-map", "-0:s",
        "-map", "1:0",
        "-c", "copy",
        "-c:s", "mov_text",
        "-metadata:s:s:0", f"language={settings.subtitle_language}",
        "-f", "mp4",
        str(dest),
    ]


def mux_subtitles(video: Path, srt: Path, settings: Optional[ToolSettings] = None) -> Path:
    """Replace the subtitle stream of *video* with *srt*, in place.

    Raises
    ------
    MuxError
        If FFmpeg is missing or fails; *video* is left untouched.
    """
    tmp_path = video.with_name(f".{video.stem}.mux{video.suffix}")
    cmd = build_mux_command(video, srt, tmp_path, settings)
    logger.debug("mux: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise MuxError(video, "ffmpeg not found. Is FFmpeg installed and in PATH?") from exc

    if result.returncode != 0:
        _remove_quietly(tmp_path)
        raise MuxError(video, result.stderr[-500:])
    try:
        os.replace(tmp_path, video)
    except OSError as exc:
        _remove_quietly(tmp_path)
        raise MuxError(video, str(exc)) from exc

    logger.info("Muxed subtitles into %s", video.name)
    return video


def _remove_quietly(path: Path) -> None:
    """Delete *path* if it exists, ignoring OS errors."""
    try:
        path.unlink()
    except OSError:
        pass
