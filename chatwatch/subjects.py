"""Subject type registry: resolves names and numeric ids to subject types.

Lookups never fail: anything unrecognised resolves to UNKNOWN_SUBJECT so that
extraction always completes.
"""

import logging
import re
from dataclasses import dataclass

from chatwatch.config import load_yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectType:
    id: int
    data: int = 0
    names: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.names[0] if self.names else f"{self.id}:{self.data}"


UNKNOWN_SUBJECT = SubjectType(id=-1, data=0, names=("unknown",))

_FORMATTED_ID_RE = re.compile(r"^#?(\d+)(?::(\d+))?$")


def _normalise(name: str) -> str:
    return re.sub(r"[\s_]+", " ", name.strip().lower())


class SubjectRegistry:
    def __init__(self, subjects: list[SubjectType] | None = None):
        self._by_name: dict[str, SubjectType] = {}
        self._by_id: dict[tuple[int, int], SubjectType] = {}
        for subject in subjects or []:
            self.add(subject)

    def add(self, subject: SubjectType) -> bool:
        key = (subject.id, subject.data)
        if key in self._by_id:
            logger.warning("Subject type %d:%d has a duplicate definition; only the first counts",
                           subject.id, subject.data)
            return False
        self._by_id[key] = subject
        for name in subject.names:
            self._by_name.setdefault(_normalise(name), subject)
        return True

    def lookup(self, name: str) -> SubjectType:
        return self._by_name.get(_normalise(name), UNKNOWN_SUBJECT)

    def lookup_id(self, subject_id: int, data: int = 0) -> SubjectType:
        found = self._by_id.get((subject_id, data))
        if found is None:
            found = self._by_id.get((subject_id, 0), UNKNOWN_SUBJECT)
        return found

    def lookup_formatted(self, text: str) -> SubjectType:
        """Resolve "#id", "#id:data", "id:data" or a plain name."""
        m = _FORMATTED_ID_RE.match(text.strip())
        if m:
            return self.lookup_id(int(m.group(1)), int(m.group(2) or 0))
        return self.lookup(text)

    def __len__(self) -> int:
        return len(self._by_id)


def load_subject_registry(path: str) -> SubjectRegistry:
    registry = SubjectRegistry()
    data = load_yaml(path)
    for entry in data.get("subjects") or []:
        try:
            names = entry["names"]
            if isinstance(names, str):
                names = [names]
            registry.add(SubjectType(id=int(entry["id"]), data=int(entry.get("data", 0)),
                                     names=tuple(str(n) for n in names)))
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Subject type entry %r could not be loaded: %s", entry, e)
    logger.info("Loaded %d subject types from %s", len(registry), path)
    return registry
