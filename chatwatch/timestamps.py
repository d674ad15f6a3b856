"""Timestamp helpers. Chat output carries local times with one-second resolution."""

from datetime import datetime, timedelta

MS_PER_SECOND = 1000
MS_PER_HOUR = 60 * 60 * MS_PER_SECOND


def reference_at(now_millis: int) -> datetime:
    """Latest time a year-less date may denote, given the current time."""
    # Times up to a week ahead of the local clock are still this year.
    return datetime.fromtimestamp(now_millis / MS_PER_SECOND) + timedelta(weeks=1)


def _reference() -> datetime:
    return datetime.now() + timedelta(weeks=1)


def to_millis(month: int, day: int, hour: int, minute: int, second: int,
              year: int | None = None, reference: datetime | None = None) -> int:
    """Convert a local date/time to epoch milliseconds.

    Without a year, assume the reference year, stepping back one year if that
    would put the time after the reference.
    """
    if year is None:
        reference = reference or _reference()
        dt = datetime(reference.year, month, day, hour, minute, second)
        if dt > reference:
            dt = dt.replace(year=reference.year - 1)
    else:
        dt = datetime(year, month, day, hour, minute, second)
    return int(dt.timestamp()) * MS_PER_SECOND


def from_ymd(ymd: tuple[int, int, int], hour: int, minute: int, second: int,
             reference: datetime | None = None) -> int:
    year, month, day = ymd
    return to_millis(month, day, hour, minute, second, year=year or None, reference=reference)


def parse_ymd(text: str) -> tuple[int, int, int]:
    """Split 'MM-DD', 'YY-MM-DD' or 'YYYY-MM-DD' -> (year or 0, month, day)."""
    parts = [int(p) for p in text.split("-")]
    if len(parts) == 2:
        return 0, parts[0], parts[1]
    if len(parts) == 3:
        year = parts[0]
        if 0 < year < 100:
            year += 2000
        return year, parts[1], parts[2]
    raise ValueError(f"not a date: {text!r}")


def truncate_to_second(millis: int) -> int:
    return millis - millis % MS_PER_SECOND


def format_month_day_time(millis: int) -> str:
    return datetime.fromtimestamp(millis / MS_PER_SECOND).strftime("%m-%d %H:%M:%S")


def format_date_time(millis: int) -> tuple[str, str]:
    """Return ('YYYY-MM-DD', 'hh:mm:ss') for millis in local time."""
    dt = datetime.fromtimestamp(millis / MS_PER_SECOND)
    return dt.strftime("%Y-%m-%d"), dt.strftime("%H:%M:%S")
