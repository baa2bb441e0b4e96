"""Per-file MKV -> M4V workflow and subtitle ripping.

For each Matroska file:

1. transcode to ``<stem>.m4v`` next to the source (skipped if it exists),
2. find a subtitle track (SRT preferred, ASS/SSA otherwise),
3. extract it to a temporary directory, converting ASS to SRT,
4. mux the SRT into the M4V.

Temporary files never outlive the call.  Each file is independent: a
failure is recorded on its :class:`VideoResult` and the batch moves on.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable, Optional

from mkv2mp4.config import ToolSettings
from mkv2mp4.container.extract import extract_command, extract_track
from mkv2mp4.container.identify import find_ass_track, find_subtitle_track, identify_tracks
from mkv2mp4.container.mux import mux_subtitles
from mkv2mp4.container.transcode import transcode
from mkv2mp4.errors import Mkv2Mp4Error, TrackIdentificationError
from mkv2mp4.models import VideoResult
from mkv2mp4.naming import derive_subtitle_name, m4v_path
from mkv2mp4.subtitles import convert

logger = logging.getLogger(__name__)


def process_video(source: Path, settings: Optional[ToolSettings] = None) -> VideoResult:
    """Run the full workflow for one file.

    Raises
    ------
    Mkv2Mp4Error
        From any stage; nothing is muxed if subtitle handling fails.
    """
    settings = settings or ToolSettings()
    result = VideoResult(source=source)

    if not source.exists():
        result.skipped_reason = "file not found"
        return result
    if source.suffix.lower() != ".mkv":
        result.skipped_reason = "not a Matroska (.mkv) file"
        return result

    output = m4v_path(source, settings.output_suffix)
    if output.exists():
        logger.info("%s already exists, skipping transcode", output.name)
    else:
        transcode(source, output, settings)
        result.transcoded = True
    result.output = output

    track = find_subtitle_track(identify_tracks(source, settings))
    if track is None:
        logger.info("%s has no SRT or ASS subtitle track", source.name)
        return result
    result.subtitle_track = track

    with tempfile.TemporaryDirectory(prefix="mkv2mp4-") as tmp:
        tmp_dir = Path(tmp)
        if track.is_srt:
            logger.info("Extracting SRT subtitles from %s", source.name)
            srt = extract_track(source, track.id, tmp_dir / "subtitles.srt", settings)
        else:
            logger.info("Extracting SSA/ASS subtitles from %s", source.name)
            ass = extract_track(source, track.id, tmp_dir / "subtitles.ass", settings)
            srt = tmp_dir / "subtitles.srt"
            result.conversion = convert(ass, srt, settings.conversion)
        mux_subtitles(output, srt, settings)
    return result


def process_many(
    sources: list[Path],
    settings: Optional[ToolSettings] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
) -> list[VideoResult]:
    """Process *sources* sequentially, continuing past failures.

    Args:
        sources: Files to process; non-MKV and missing files are skipped.
        settings: Shared tool settings.
        progress_callback: Called with (current_idx, total, filename).
    """
    settings = settings or ToolSettings()
    results: list[VideoResult] = []
    total = len(sources)
    for idx, source in enumerate(sources):
        logger.info("Processing [%d/%d]: %s", idx + 1, total, source.name)
        if progress_callback:
            progress_callback(idx, total, source.name)
        try:
            result = process_video(source, settings)
        except Mkv2Mp4Error as exc:
            result = VideoResult(source=source, error=str(exc))
            logger.error("Failed %s: %s", source.name, exc)
        results.append(result)
    if progress_callback:
        progress_callback(total, total, "Complete")
    return results


def rip_subtitles(
    source: Path,
    dest_dir: Optional[Path] = None,
    settings: Optional[ToolSettings] = None,
    dry_run: bool = False,
) -> tuple[Path, list[str]]:
    """Extract the ASS track of *source* to ``<dest_dir>/<derived name>.ass``.

    Returns
    -------
    tuple[Path, list[str]]
        The target path and the mkvextract command; with *dry_run* the
        command is only built, not run.

    Raises
    ------
    TrackIdentificationError
        If *source* has no ASS/SSA track.
    """
    settings = settings or ToolSettings()
    dest_dir = dest_dir or source.parent
    track = find_ass_track(identify_tracks(source, settings))
    if track is None:
        raise TrackIdentificationError(source, "No SSA/ASS subtitle track found.")

    dest = dest_dir / f"{derive_subtitle_name(source)}.ass"
    cmd = extract_command(source, track.id, dest, settings)
    if not dry_run:
        dest_dir.mkdir(parents=True, exist_ok=True)
        extract_track(source, track.id, dest, settings)
    return dest, cmd
