"""Tests for timestamp helpers."""

from datetime import datetime

import pytest
from chatwatch.timestamps import (
    MS_PER_HOUR, format_date_time, format_month_day_time, from_ymd, parse_ymd,
    reference_at, to_millis, truncate_to_second,
)


def millis(*args):
    return int(datetime(*args).timestamp()) * 1000


class TestToMillis:
    def test_explicit_year(self):
        assert to_millis(3, 25, 18, 37, 34, year=2013) == millis(2013, 3, 25, 18, 37, 34)

    def test_year_inferred_from_reference(self):
        reference = datetime(2024, 6, 1)
        assert to_millis(3, 25, 8, 0, 0, reference=reference) == millis(2024, 3, 25, 8, 0, 0)

    def test_future_date_means_last_year(self):
        reference = datetime(2024, 1, 10)
        assert to_millis(12, 30, 8, 0, 0, reference=reference) == millis(2023, 12, 30, 8, 0, 0)

    def test_reference_at_is_a_week_ahead(self):
        now = millis(2024, 6, 1, 12, 0, 0)
        assert reference_at(now) == datetime(2024, 6, 8, 12, 0, 0)

    def test_whole_seconds(self):
        assert to_millis(1, 2, 3, 4, 5, year=2020) % 1000 == 0


class TestYmd:
    @pytest.mark.parametrize("text,expected", [
        ("03-25", (0, 3, 25)),
        ("13-03-25", (2013, 3, 25)),
        ("2013-03-25", (2013, 3, 25)),
    ])
    def test_parse(self, text, expected):
        assert parse_ymd(text) == expected

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_ymd("25")

    def test_from_ymd_with_year(self):
        assert from_ymd((2013, 3, 25), 6, 37, 0) == millis(2013, 3, 25, 6, 37, 0)

    def test_from_ymd_without_year(self):
        reference = datetime(2024, 6, 1)
        assert from_ymd((0, 3, 25), 6, 37, 0, reference=reference) == millis(2024, 3, 25, 6, 37, 0)


class TestFormatting:
    def test_truncate(self):
        assert truncate_to_second(1_234_567) == 1_234_000

    def test_format_date_time(self):
        assert format_date_time(millis(2013, 3, 25, 18, 37, 34)) == ("2013-03-25", "18:37:34")

    def test_format_month_day_time(self):
        assert format_month_day_time(millis(2013, 3, 25, 8, 7, 6)) == "03-25 08:07:06"

    def test_hour_constant(self):
        assert MS_PER_HOUR == 3_600_000
