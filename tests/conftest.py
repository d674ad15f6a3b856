import os

import pytest

from chatwatch.categories import CategoryTable, load_category_table
from chatwatch.pipeline import PipelineContext
from chatwatch.subjects import SubjectRegistry, SubjectType

EDIT_CREATED = r"(?P<actor>\w+) placed (?P<block>\w+) at \((?P<x>-?\d+),(?P<y>-?\d+),(?P<z>-?\d+)\)"
EDIT_DESTROYED = r"(?P<actor>\w+) broke (?P<block>\w+) at \((?P<x>-?\d+),(?P<y>-?\d+),(?P<z>-?\d+)\)"
PROJECT_ROOT = os.path.join(os.path.dirname(__file__), "..")


class FakeClock:
    """Settable clock in seconds, for code that reads time through a callable."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingHandler:
    def __init__(self):
        self.events = []

    def classify(self, line):
        self.events.append(("classify", line))

    def revise(self, old, new):
        self.events.append(("revise", old, new))


@pytest.fixture
def category_records():
    return [
        {"id": "edit.created", "full": EDIT_CREATED},
        {"id": "edit.destroyed", "full": EDIT_DESTROYED},
        {"id": "region.members", "tag": "region",
         "initial": r"Members: [\w, ]*",
         "full": r"Members: \w+(?:, ?\w+)*\.",
         "extensible": True},
        {"id": "chat.player", "tag": "chat", "full": r"<(?P<actor>\w+)> (?P<message>.*)"},
    ]


@pytest.fixture
def table(category_records):
    return CategoryTable(category_records)


@pytest.fixture
def full_table():
    """The category table shipped with the project."""
    return load_category_table(os.path.join(PROJECT_ROOT, "categories.yml"))


@pytest.fixture
def subjects():
    return SubjectRegistry([
        SubjectType(1, 0, ("stone",)),
        SubjectType(4, 0, ("cobblestone", "cobble")),
        SubjectType(17, 0, ("log",)),
        SubjectType(17, 2, ("birch log", "birchlog")),
        SubjectType(56, 0, ("diamond ore", "diamondore")),
    ])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def displayed():
    return []


@pytest.fixture
def context(table, subjects, clock, displayed):
    return PipelineContext(table, subjects=subjects, display=displayed.append, clock=clock)


@pytest.fixture
def full_context(full_table, subjects, clock, displayed):
    return PipelineContext(full_table, subjects=subjects, display=displayed.append, clock=clock)
