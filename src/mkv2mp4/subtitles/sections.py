"""Section tracking for INI-like ASS/SSA scripts."""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Iterator, Optional

_HEADER_RE = re.compile(r"^\[([^\]]+)\]$")

EVENTS_SECTION = "Events"


class SectionState(str, Enum):
    IDLE = "idle"
    IN_EVENTS = "in_events"


# (current state, header is [Events]) -> next state
_TRANSITIONS: dict[tuple[SectionState, bool], SectionState] = {
    (SectionState.IDLE, True): SectionState.IN_EVENTS,
    (SectionState.IDLE, False): SectionState.IDLE,
    (SectionState.IN_EVENTS, True): SectionState.IN_EVENTS,
    (SectionState.IN_EVENTS, False): SectionState.IDLE,
}


def section_header(line: str) -> Optional[str]:
    """Return the section name if *line* is a ``[Name]`` header, else None."""
    match = _HEADER_RE.match(line.strip())
    return match.group(1) if match else None


class SectionScanner:
    """Yields only the lines that belong to an [Events] section.

    Header lines drive the state machine and are never yielded.  Line numbers
    are 1-based positions in the whole document.
    """

    def __init__(self) -> None:
        self.state = SectionState.IDLE
        self.saw_events = False

    def feed(self, line: str) -> bool:
        """Advance on *line*; return True if it should be passed downstream."""
        name = section_header(line)
        if name is not None:
            is_events = name == EVENTS_SECTION
            self.state = _TRANSITIONS[(self.state, is_events)]
            self.saw_events = self.saw_events or is_events
            return False
        return self.state is SectionState.IN_EVENTS

    def scan(self, lines: Iterable[str]) -> Iterator[tuple[int, str]]:
        for line_no, line in enumerate(lines, start=1):
            line = line.rstrip("\r\n")
            if self.feed(line):
                yield line_no, line
