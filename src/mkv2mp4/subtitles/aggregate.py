"""Merging of dialogue events that share a timecode."""

from __future__ import annotations

import logging
from typing import Iterator

from mkv2mp4.config import DedupPolicy
from mkv2mp4.models import SubtitleEvent

logger = logging.getLogger(__name__)


class AggregatedBlock:
    """Timecode key -> text lines, remembering first-seen key order."""

    def __init__(self) -> None:
        self._keys: list[str] = []
        self._lines: dict[str, list[str]] = {}

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: str) -> bool:
        return key in self._lines

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def lines(self, key: str) -> tuple[str, ...]:
        return tuple(self._lines[key])

    def add(self, key: str, text: str) -> None:
        if key not in self._lines:
            self._keys.append(key)
            self._lines[key] = []
        self._lines[key].append(text)


def is_duplicate(existing: list[str] | tuple[str, ...], text: str, policy: DedupPolicy) -> bool:
    """Return True if *text* should not be appended under *policy*."""
    if policy is DedupPolicy.EXACT:
        return text in existing
    if policy is DedupPolicy.SUBSTRING:
        return text in "\n".join(existing)
    return False


class Aggregator:
    """Feeds :class:`SubtitleEvent` objects into one :class:`AggregatedBlock`."""

    def __init__(self, policy: DedupPolicy = DedupPolicy.EXACT) -> None:
        self.policy = policy
        self.block = AggregatedBlock()
        self.merged_count = 0
        self.duplicate_count = 0

    def add(self, event: SubtitleEvent) -> None:
        key = event.key
        if key in self.block:
            if is_duplicate(self.block.lines(key), event.text, self.policy):
                self.duplicate_count += 1
                logger.debug("Dropping duplicate text at %s: %r", key, event.text)
                return
            self.merged_count += 1
            logger.debug("Merging text into existing block %s", key)
        self.block.add(key, event.text)
