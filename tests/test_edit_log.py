"""Tests for the ordered edit log and the per-session registry."""

from chatwatch.edit_log import EditLog, EditLogRegistry
from chatwatch.models import EditRecord, SessionKey


def edit(timestamp, actor="Steve", creation=True, x=0, y=64, z=0):
    return EditRecord(timestamp=timestamp, actor=actor, creation=creation, x=x, y=y, z=z)


class TestEditLog:
    def test_iterates_in_timestamp_order(self):
        log = EditLog()
        for t in (3000, 1000, 2000):
            log.add(edit(t))
        assert [r.timestamp for r in log] == [1000, 2000, 3000]

    def test_destruction_before_creation_at_same_time(self):
        log = EditLog()
        log.add(edit(1000, creation=True))
        log.add(edit(1000, creation=False))
        assert [r.creation for r in log] == [False, True]

    def test_coordinates_break_ties(self):
        log = EditLog()
        log.add(edit(1000, x=5))
        log.add(edit(1000, x=-5))
        assert [r.x for r in log] == [-5, 5]

    def test_identical_keys_collapse(self):
        log = EditLog()
        assert log.add(edit(1000, actor="Steve"))
        # Same time, action and position: only the first is kept.
        assert not log.add(edit(1000, actor="Alex"))
        assert len(log) == 1
        assert next(iter(log)).actor == "Steve"

    def test_find_first_returns_oldest(self):
        log = EditLog()
        log.add(edit(20, actor="A", x=1, y=2, z=3))
        log.add(edit(10, actor="B", x=1, y=2, z=3))
        assert log.find_first(1, 2, 3).actor == "B"

    def test_find_first_by_actor(self):
        log = EditLog()
        log.add(edit(20, actor="A", x=1, y=2, z=3))
        log.add(edit(10, actor="B", x=1, y=2, z=3))
        assert log.find_first(1, 2, 3, "A").timestamp == 20
        assert log.find_first(1, 2, 3, "a").timestamp == 20

    def test_find_first_misses(self):
        log = EditLog()
        log.add(edit(10, x=1, y=2, z=3))
        assert log.find_first(9, 9, 9) is None
        assert log.find_first(1, 2, 3, "Nobody") is None

    def test_clear(self):
        log = EditLog()
        log.add(edit(10))
        log.clear()
        assert len(log) == 0
        assert list(log) == []

    def test_count_and_remove_actor(self):
        log = EditLog()
        log.add(edit(10, actor="Steve"))
        log.add(edit(20, actor="steve"))
        log.add(edit(30, actor="Alex"))
        assert log.count_by_actor() == {"Steve": 1, "steve": 1, "Alex": 1}
        assert log.remove_actor("STEVE") == 2
        assert [r.actor for r in log] == ["Alex"]
        assert log.add(edit(10, actor="Steve"))

    def test_iteration_is_a_snapshot(self):
        log = EditLog()
        log.add(edit(10))
        for record in log:
            log.add(edit(record.timestamp + 1))
        assert len(log) == 2


class TestEditLogRegistry:
    def test_created_lazily(self):
        registry = EditLogRegistry()
        key = SessionKey("play.example.net", 0)
        assert key not in registry
        log = registry.get(key)
        assert key in registry
        assert registry.get(key) is log

    def test_sessions_independent(self):
        registry = EditLogRegistry()
        overworld = registry.get(SessionKey("play.example.net", 0))
        nether = registry.get(SessionKey("play.example.net", -1))
        overworld.add(edit(10))
        assert len(nether) == 0
        assert len(registry) == 2
