"""ASS -> SRT timecode formatting.

``H:MM:SS.cc`` becomes ``HH:MM:SS.mmm``.  Everything is integer arithmetic
on the digits, so the output never depends on ``locale`` settings that the
transcoding glue may use for its own command lines.
"""

from __future__ import annotations

import re
from typing import Optional

_ASS_TIMECODE_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})(?:\.(\d+))?$")


def _milliseconds(fraction: str) -> int:
    """Scale a decimal fraction of a second to whole milliseconds (half-up)."""
    if not fraction:
        return 0
    if len(fraction) <= 3:
        return int(fraction.ljust(3, "0"))
    # e.g. "12345" -> 123 with carry from the 4th digit
    return int(fraction[:3]) + (1 if fraction[3] >= "5" else 0)


def format_timecode(value: str) -> Optional[str]:
    """Return the SRT form of an ASS timecode, or None if *value* is malformed."""
    match = _ASS_TIMECODE_RE.match(value.strip())
    if match is None:
        return None
    hours, minutes, seconds, fraction = match.groups()
    ms = _milliseconds(fraction or "")
    total_ms = ((int(hours) * 60 + int(minutes)) * 60 + int(seconds)) * 1000 + ms
    total_s, ms = divmod(total_ms, 1000)
    total_m, s = divmod(total_s, 60)
    h, m = divmod(total_m, 60)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"
