"""Tests for edit log persistence."""

from chatwatch.edit_log import EditLog
from chatwatch.edit_store import format_edit, load_edits, save_edits
from chatwatch.models import EditRecord
from chatwatch.subjects import UNKNOWN_SUBJECT
from chatwatch.timestamps import to_millis


class TestEditStore:
    def test_format(self, subjects):
        record = EditRecord(to_millis(3, 25, 18, 37, 34, year=2013), "totemo", True,
                            -5, 64, 246, subjects.lookup_id(17, 2))
        assert format_edit(record) == "2013-03-25|18:37:34|totemo|c|17|2|-5|64|246"

    def test_format_without_subject(self):
        record = EditRecord(to_millis(1, 2, 3, 4, 5, year=2020), "Steve", False, 1, 2, 3)
        assert format_edit(record) == "2020-01-02|03:04:05|Steve|d|-1|0|1|2|3"

    def test_save_then_load(self, tmp_path, subjects):
        log = EditLog()
        log.add(EditRecord(to_millis(3, 25, 18, 37, 34, year=2013), "totemo", True,
                           -5, 64, 246, subjects.lookup("birch log")))
        log.add(EditRecord(to_millis(3, 25, 18, 0, 0, year=2013), "Steve", False,
                           1, 2, 3, subjects.lookup("stone")))
        path = str(tmp_path / "edits.txt")

        assert save_edits(log, path) == 2

        loaded = EditLog()
        assert load_edits(loaded, path, subjects) == 2
        assert list(loaded) == list(log)

    def test_saved_oldest_first(self, tmp_path):
        log = EditLog()
        log.add(EditRecord(to_millis(1, 1, 12, 0, 0, year=2020), "B", True, 0, 0, 0))
        log.add(EditRecord(to_millis(1, 1, 11, 0, 0, year=2020), "A", True, 0, 0, 0))
        path = tmp_path / "edits.txt"
        save_edits(log, str(path))
        actors = [line.split("|")[2] for line in path.read_text().splitlines()]
        assert actors == ["A", "B"]

    def test_malformed_lines_skipped(self, tmp_path, subjects):
        path = tmp_path / "edits.txt"
        path.write_text(
            "# comment\n"
            "2013-03-25|18:37:34|totemo|c|1|0|5|64|-7\n"
            "garbage\n"
            "2013-03-25|18:37:34|totemo|x|1|0|5|64|-7\n"
        )
        log = EditLog()
        assert load_edits(log, str(path), subjects) == 1
        [record] = list(log)
        assert record.subject == subjects.lookup("stone")
        assert (record.x, record.y, record.z) == (5, 64, -7)

    def test_unknown_subject_id(self, tmp_path, subjects):
        path = tmp_path / "edits.txt"
        path.write_text("2013-03-25|18:37:34|totemo|d|999|0|5|64|-7\n")
        log = EditLog()
        load_edits(log, str(path), subjects)
        assert next(iter(log)).subject is UNKNOWN_SUBJECT

    def test_environmental_actor_round_trip(self, tmp_path, subjects):
        log = EditLog()
        log.add(EditRecord(to_millis(11, 14, 22, 13, 20, year=2023), "#tnt", False,
                           1, 2, 3, subjects.lookup("stone")))
        log.add(EditRecord(to_millis(11, 14, 22, 13, 21, year=2023), "Steve", True,
                           4, 5, 6, subjects.lookup("stone")))
        path = str(tmp_path / "edits.txt")
        save_edits(log, path)

        loaded = EditLog()
        assert load_edits(loaded, path, subjects) == 2
        assert [r.actor for r in loaded] == ["#tnt", "Steve"]

    def test_impossible_date_skipped(self, tmp_path, subjects, caplog):
        path = tmp_path / "edits.txt"
        path.write_text(
            "2024-02-30|10:00:00|Steve|c|1|0|5|64|-7\n"
            "2024-02-28|10:00:00|Steve|c|1|0|6|64|-7\n"
        )
        log = EditLog()
        assert load_edits(log, str(path), subjects) == 1
        assert next(iter(log)).x == 6
        assert "bad timestamp" in caplog.text
