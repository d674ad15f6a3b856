"""Operational counters for the processing loop, persisted as JSON."""

import json
import os
import tempfile
import time
from datetime import datetime, timezone

COUNTERS = (
    "lines_ingested",
    "lines_classified",
    "lines_unclassified",
    "lines_pending",
    "lines_revised",
    "edits_recorded",
    "line_failures",
    "lines_dropped",
)


class Metrics:
    def __init__(self, path: str | None = None):
        self._counters: dict[str, int] = {name: 0 for name in COUNTERS}
        self._path = path
        self._start_time = time.time()

    def increment(self, name: str, amount: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + amount

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_all(self) -> dict:
        return {
            "counters": dict(self._counters),
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }

    def save(self) -> None:
        if not self._path:
            return
        directory = os.path.dirname(self._path) or "."
        os.makedirs(directory, exist_ok=True)
        data = self.get_all()
        fd, tmp = tempfile.mkstemp(dir=directory)
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self._path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
