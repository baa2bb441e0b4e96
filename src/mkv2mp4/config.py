"""Conversion options and external tool settings.

Both models are pydantic v2 ``BaseModel`` subclasses so values coming from
the CLI are validated in one place.  Tool executables default to the bare
program names (resolved through ``PATH``) and can be overridden with the
``MKV2MP4_*`` environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

_TOOL_ENV_VARS: dict[str, str] = {
    "mkvmerge": "MKV2MP4_MKVMERGE",
    "mkvextract": "MKV2MP4_MKVEXTRACT",
    "ffmpeg": "MKV2MP4_FFMPEG",
    "ffprobe": "MKV2MP4_FFPROBE",
}


class DedupPolicy(str, Enum):
    """How repeated text under one timecode is handled.

    str, Enum so the CLI and pydantic accept the plain value ("exact").
    """
    EXACT = "exact"
    SUBSTRING = "substring"
    NONE = "none"


class ConversionOptions(BaseModel):
    dedup: DedupPolicy = DedupPolicy.EXACT
    # Input encoding; None means UTF-8 with charset-normalizer fallback.
    encoding: Optional[str] = None


def get_tool_path(name: str) -> str:
    """Return the executable for *name*, honoring its ``MKV2MP4_*`` override."""
    env_var = _TOOL_ENV_VARS.get(name)
    if env_var is not None:
        env_val = os.environ.get(env_var)
        if env_val:
            return env_val
    return name


class ToolSettings(BaseModel):
    """Settings for the mkvmerge/mkvextract/ffmpeg glue."""

    mkvmerge: str = Field(default_factory=lambda: get_tool_path("mkvmerge"))
    mkvextract: str = Field(default_factory=lambda: get_tool_path("mkvextract"))
    ffmpeg: str = Field(default_factory=lambda: get_tool_path("ffmpeg"))
    ffprobe: str = Field(default_factory=lambda: get_tool_path("ffprobe"))

    output_suffix: str = ".m4v"
    crf: float = Field(default=20.0, ge=0.0, le=51.0)
    preset: str = "medium"
    audio_bitrate_k: int = Field(default=160, gt=0)
    subtitle_language: str = "eng"
    # Only applied to numbers handed to external tools.
    decimal_separator: Literal[".", ","] = "."
    conversion: ConversionOptions = Field(default_factory=ConversionOptions)


def format_tool_number(value: float, settings: ToolSettings) -> str:
    """Render *value* for an external tool's command line.

    Formatting is done with ``.`` and only then swapped for the configured
    separator, so the process locale never leaks in.
    """
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if settings.decimal_separator != ".":
        text = text.replace(".", settings.decimal_separator)
    return text
