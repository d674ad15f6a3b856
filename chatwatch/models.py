"""Core data types shared by the classifier, the extractors and the edit log."""

import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Category:
    id: str
    tag: str
    initial_pattern: re.Pattern
    full_pattern: re.Pattern
    extensible: bool = False

    def matches_fully(self, text: str) -> bool:
        return self.full_pattern.fullmatch(text) is not None

    def matches_start(self, text: str) -> bool:
        """True if the initial pattern matches a leading portion of text."""
        return self.initial_pattern.match(text) is not None

    def __str__(self) -> str:
        return (f"{{{self.id}, {self.tag}, {self.initial_pattern.pattern}, "
                f"{self.full_pattern.pattern}, {self.extensible}}}")


@dataclass(frozen=True)
class ClassifiedLine:
    raw: str            # as delivered, formatting markers included
    canonical: str      # markers stripped, used for matching
    category: Category | None
    sequence: int
    pending: bool = False

    @property
    def tag(self) -> str | None:
        return self.category.tag if self.category is not None else None

    def __str__(self) -> str:
        return f"{self.tag or '?'}: {self.raw}"


@dataclass(frozen=True)
class EditRecord:
    timestamp: int      # epoch millis, whole seconds
    actor: str
    creation: bool
    x: int
    y: int
    z: int
    subject: Any = None

    @property
    def key(self) -> tuple[int, bool, int, int, int]:
        """Total order key; destructions sort before creations at equal times."""
        return (self.timestamp, self.creation, self.x, self.y, self.z)


@dataclass(frozen=True)
class SessionKey:
    server: str = ""    # empty for local-only sessions
    dimension: int = 0

    def __str__(self) -> str:
        return f"{self.server}/{self.dimension}"


@dataclass
class LastContext:
    """The most recently learned position, time, actor and subject."""

    x: int | None = None
    y: int | None = None
    z: int | None = None
    timestamp: int | None = None
    actor: str | None = None
    subject: Any = None

    def update_position(self, x: int, y: int, z: int):
        self.x, self.y, self.z = x, y, z

    def update_from(self, record: EditRecord):
        self.update_position(record.x, record.y, record.z)
        self.timestamp = record.timestamp
        self.actor = record.actor
        self.subject = record.subject
