"""Plain-text persistence of an edit log, one pipe-separated record per line.

    2024-03-25|18:37:34|totemo|c|17|2|-5|64|246
"""

import logging
import os
import re
import tempfile

from chatwatch.edit_log import EditLog
from chatwatch.models import EditRecord
from chatwatch.subjects import UNKNOWN_SUBJECT, SubjectRegistry
from chatwatch.timestamps import format_date_time, to_millis

logger = logging.getLogger(__name__)

EDIT_LINE_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})\|(\d{2}):(\d{2}):(\d{2})\|([^|]+)\|([cd])\|"
    r"(-?\d+)\|(\d+)\|(-?\d+)\|(-?\d+)\|(-?\d+)$"
)


def format_edit(record: EditRecord) -> str:
    date, time_of_day = format_date_time(record.timestamp)
    subject = record.subject or UNKNOWN_SUBJECT
    return "|".join([
        date, time_of_day, record.actor, "c" if record.creation else "d",
        str(subject.id), str(subject.data),
        str(record.x), str(record.y), str(record.z),
    ])


def save_edits(log: EditLog, path: str) -> int:
    """Atomic write of every record, oldest first. Returns the number written."""
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    count = 0
    fd, tmp = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for record in log:
                f.write(format_edit(record) + "\n")
                count += 1
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    logger.info("Saved %d edits to %s", count, path)
    return count


def load_edits(log: EditLog, path: str, registry: SubjectRegistry) -> int:
    """Add the records in path to log. Returns the number of records read."""
    count = 0
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            m = EDIT_LINE_RE.match(line.strip())
            if not m:
                logger.debug("%s:%d: not an edit record, skipped", path, line_number)
                continue
            year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
            try:
                timestamp = to_millis(month, day, hour, minute, second, year=year)
            except ValueError as e:
                logger.warning("%s:%d: bad timestamp, skipped: %s", path, line_number, e)
                continue
            log.add(EditRecord(
                timestamp=timestamp,
                actor=m.group(7),
                creation=m.group(8) == "c",
                x=int(m.group(11)),
                y=int(m.group(12)),
                z=int(m.group(13)),
                subject=registry.lookup_id(int(m.group(9)), int(m.group(10))),
            ))
            count += 1
    logger.info("Loaded %d edits from %s", count, path)
    return count
