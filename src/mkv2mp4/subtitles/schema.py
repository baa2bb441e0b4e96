"""Events ``Format:`` line resolution."""

from __future__ import annotations

import re
from typing import Optional

from mkv2mp4.errors import MissingFieldError
from mkv2mp4.models import CANONICAL_FIELDS, FormatSpec

_FORMAT_RE = re.compile(r"^Format:\s*(.*)$")


def match_format(line: str) -> Optional[str]:
    """Return the field list of a ``Format:`` line, or None."""
    match = _FORMAT_RE.match(line)
    return match.group(1) if match else None


def resolve_format(declared: str, source: str = "<string>") -> FormatSpec:
    """Build a :class:`FormatSpec` from the text after ``Format:``.

    Names are separated by ", " in well-formed scripts; surrounding
    whitespace is stripped so "Start,End" is accepted too.

    Raises
    ------
    MissingFieldError
        If Start, End or Text is not declared.
    """
    fields = tuple(name.strip() for name in declared.split(","))
    missing = [name for name in CANONICAL_FIELDS if name not in fields]
    if missing:
        raise MissingFieldError(source, missing, [f for f in fields if f])
    return FormatSpec.build(fields)


class FormatResolver:
    """Holds the first Format line seen in [Events]; later ones are ignored."""

    def __init__(self, source: str = "<string>") -> None:
        self.source = source
        self.spec: Optional[FormatSpec] = None

    @property
    def resolved(self) -> bool:
        return self.spec is not None

    def feed(self, line: str) -> bool:
        """Consume *line* if it is the first Format line. Return True if consumed."""
        if self.spec is not None:
            return False
        declared = match_format(line)
        if declared is None:
            return False
        self.spec = resolve_format(declared, self.source)
        return True
