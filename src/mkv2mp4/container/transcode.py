"""MKV -> MP4/M4V transcoding with FFmpeg.

The video stream is copied when it is already 8-bit H.264 (playable by
hardware decoders as-is) and re-encoded with libx264 otherwise, e.g. for
10-bit or HEVC sources.  Audio is always re-encoded to AAC.  Subtitles are
left out here and muxed separately as SRT.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Optional

from better_ffmpeg_progress import FfmpegProcess
from better_ffmpeg_progress.exceptions import FfmpegProcessError

from mkv2mp4.config import ToolSettings, format_tool_number
from mkv2mp4.errors import TranscodeError

logger = logging.getLogger(__name__)

# Pixel formats a copied H.264 stream may use.
_COPYABLE_PIX_FMTS = {"yuv420p", "yuvj420p"}


def probe_video_stream(source: Path, settings: Optional[ToolSettings] = None) -> dict:
    """Return ``{"codec_name": str, "pix_fmt": str}`` for the first video stream.

    Raises
    ------
    TranscodeError
        If ffprobe is missing, fails, or finds no video stream.
    """
    settings = settings or ToolSettings()
    cmd = [
        settings.ffprobe,
        "-v", "quiet",
        "-print_format", "json",
        "-show_streams",
        "-select_streams", "v:0",
        str(source),
    ]
    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as exc:
        raise TranscodeError(source, f"ffprobe failed: {(exc.stderr or '').strip()[-500:]}") from exc
    except FileNotFoundError as exc:
        raise TranscodeError(source, "ffprobe not found. Is FFmpeg installed and in PATH?") from exc

    try:
        stream = json.loads(result.stdout)["streams"][0]
        return {
            "codec_name": stream.get("codec_name", ""),
            "pix_fmt": stream.get("pix_fmt", ""),
        }
    except (KeyError, IndexError, ValueError) as exc:
        raise TranscodeError(source, f"No video stream found: {exc}") from exc


def can_copy_video(stream: dict) -> bool:
    return stream.get("codec_name") == "h264" and stream.get("pix_fmt") in _COPYABLE_PIX_FMTS


def build_transcode_command(
    source: Path,
    dest: Path,
    copy_video: bool,
    settings: Optional[ToolSettings] = None,
) -> list[str]:
    settings = settings or ToolSettings()
    cmd = [settings.ffmpeg, "-y", "-i", str(source), "-map", "0:v:0", "-map", "0:a?"]
    if copy_video:
        cmd += ["-c:v", "copy"]
    else:
        cmd += [
            "-c:v", "libx264",
            "-crf", format_tool_number(settings.crf, settings),
            "-preset", settings.preset,
            "-pix_fmt", "yuv420p",
        ]
    cmd += [
        "-c:a", "aac",
        "-b:a", f"{settings.audio_bitrate_k}k",
        "-movflags", "+faststart",
        "-f", "mp4",
        str(dest),
    ]
    return cmd


def transcode(source: Path, dest: Path, settings: Optional[ToolSettings] = None) -> Path:
    """Convert *source* into an MP4 container at *dest*.

    Returns
    -------
    Path
        *dest* on success.

    Raises
    ------
    TranscodeError
        If probing or encoding fails, or FFmpeg exits without output.
    """
    settings = settings or ToolSettings()
    stream = probe_video_stream(source, settings)
    copy_video = can_copy_video(stream)
    logger.info(
        "Transcoding %s (%s %s, video %s)",
        source.name, stream["codec_name"], stream["pix_fmt"], "copied" if copy_video else "re-encoded",
    )

    # Encode next to *dest* and rename, so an interrupted run leaves no *dest*.
    partial = dest.with_name(f".{dest.stem}.part{dest.suffix}")
    cmd = build_transcode_command(source, partial, copy_video, settings)
    logger.debug("transcode: %s", " ".join(cmd))
    try:
        process = FfmpegProcess(cmd)
        return_code = process.run()
    except FfmpegProcessError as exc:
        _remove_quietly(partial)
        raise TranscodeError(source, str(exc)) from exc
    if return_code:
        _remove_quietly(partial)
        raise TranscodeError(source, f"FFmpeg exited with status {return_code}.")

    if not partial.exists() or partial.stat().st_size == 0:
        _remove_quietly(partial)
        raise TranscodeError(source, f"FFmpeg produced no output at '{dest.name}'.")
    os.replace(partial, dest)
    return dest


def _remove_quietly(path: Path) -> None:
    """Delete *path* if it exists, ignoring OS errors."""
    try:
        path.unlink()
    except OSError:
        pass
