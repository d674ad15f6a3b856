"""Edit log — ordered, deduplicated edit records, one log per session key."""

import logging
from bisect import bisect_left
from collections import Counter
from typing import Iterator

from chatwatch.models import EditRecord, SessionKey

logger = logging.getLogger(__name__)


class EditLog:
    """Edit records kept in ascending (timestamp, creation, x, y, z) order.

    Records with an identical key are indistinguishable and only the first is
    kept. Timestamps have one-second resolution, so this occasionally collapses
    two genuine edits; that loss is accepted.
    """

    def __init__(self):
        self._keys: list[tuple] = []
        self._records: list[EditRecord] = []

    def add(self, record: EditRecord) -> bool:
        """Insert in key order. Returns False if an equal key was already present."""
        key = record.key
        i = bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            return False
        self._keys.insert(i, key)
        self._records.insert(i, record)
        return True

    def find_first(self, x: int, y: int, z: int, actor: str | None = None) -> EditRecord | None:
        """Return the oldest edit at (x, y, z), optionally by actor.

        Linear scan from oldest to newest.
        """
        wanted = actor.lower() if actor is not None else None
        for record in self._records:
            if record.x == x and record.y == y and record.z == z:
                if wanted is None or record.actor.lower() == wanted:
                    return record
        return None

    def clear(self):
        self._keys.clear()
        self._records.clear()

    def count_by_actor(self) -> dict[str, int]:
        return dict(Counter(record.actor for record in self._records))

    def remove_actor(self, actor: str) -> int:
        """Remove all edits by actor (case-insensitive). Returns the number removed."""
        wanted = actor.lower()
        kept = [(k, r) for k, r in zip(self._keys, self._records) if r.actor.lower() != wanted]
        removed = len(self._records) - len(kept)
        self._keys = [k for k, _ in kept]
        self._records = [r for _, r in kept]
        return removed

    def __iter__(self) -> Iterator[EditRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)


class EditLogRegistry:
    """Lazily creates and keeps one EditLog per SessionKey."""

    def __init__(self):
        self._logs: dict[SessionKey, EditLog] = {}

    def get(self, key: SessionKey) -> EditLog:
        log = self._logs.get(key)
        if log is None:
            log = EditLog()
            self._logs[key] = log
            logger.info("Created edit log for session %s", key)
        return log

    def __contains__(self, key: SessionKey) -> bool:
        return key in self._logs

    def keys(self) -> list[SessionKey]:
        return list(self._logs)

    def __len__(self) -> int:
        return len(self._logs)
