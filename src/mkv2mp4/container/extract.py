"""Raw track extraction via ``mkvextract``."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from mkv2mp4.config import ToolSettings
from mkv2mp4.errors import TrackExtractionError

logger = logging.getLogger(__name__)


def extract_command(source: Path, track_id: int, dest: Path, settings: Optional[ToolSettings] = None) -> list[str]:
    settings = settings or ToolSettings()
    return [settings.mkvextract, str(source), "tracks", f"{track_id}:{dest}"]


def extract_track(source: Path, track_id: int, dest: Path, settings: Optional[ToolSettings] = None) -> Path:
    """Write track *track_id* of *source* to *dest* and return *dest*.

    Raises
    ------
    TrackExtractionError
        If mkvextract is missing, fails, or produces no file.
    """
    cmd = extract_command(source, track_id, dest, settings)
    logger.debug("extract: %s", " ".join(cmd))
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or exc.stdout or "").strip()
        raise TrackExtractionError(source, track_id, f"mkvextract failed: {detail[-500:]}") from exc
    except FileNotFoundError as exc:
        raise TrackExtractionError(source, track_id, "mkvextract not found. Is MKVToolNix installed and in PATH?") from exc

    if not dest.exists():
        raise TrackExtractionError(source, track_id, f"mkvextract exited 0 but '{dest.name}' was not created.")
    logger.info("Extracted track %d from %s -> %s", track_id, source.name, dest.name)
    return dest
