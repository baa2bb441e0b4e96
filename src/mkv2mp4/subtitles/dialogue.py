"""``Dialogue:`` line splitting."""

from __future__ import annotations

import re
from typing import Optional

from mkv2mp4.errors import FieldCountMismatchError, MissingFormatError
from mkv2mp4.models import FormatSpec, RawDialogueLine

_DIALOGUE_RE = re.compile(r"^Dialogue:\s*(.*)$")


def match_dialogue(line: str) -> Optional[str]:
    """Return everything after ``Dialogue:``, or None for other lines."""
    match = _DIALOGUE_RE.match(line)
    return match.group(1) if match else None


def split_dialogue(
    rest: str,
    spec: Optional[FormatSpec],
    line_no: int,
    source: str = "<string>",
) -> RawDialogueLine:
    """Split *rest* into exactly ``len(spec)`` fields.

    The last field keeps any further commas; subtitle text is normally the
    last column and routinely contains them.

    Raises
    ------
    MissingFormatError
        If no Format line has been resolved yet.
    FieldCountMismatchError
        If *rest* has fewer fields than the Format line declares.
    """
    if spec is None:
        raise MissingFormatError(source, line_no)
    values = rest.split(",", len(spec) - 1)
    if len(values) < len(spec):
        raise FieldCountMismatchError(source, line_no, len(spec), len(values))
    return RawDialogueLine(values=tuple(values), line_no=line_no, spec=spec)
