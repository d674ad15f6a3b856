"""TranscriptTailer: watchdog event handler that reads new chat lines from a transcript file."""

import logging
import os

from watchdog.events import FileSystemEventHandler

from chatwatch.errors import QueueOverflowError
from chatwatch.pipeline import IngestQueue

logger = logging.getLogger(__name__)


class TranscriptTailer(FileSystemEventHandler):
    def __init__(self, path: str, ingest: IngestQueue):
        super().__init__()
        self.path = os.path.abspath(path)
        self._queue = ingest
        self._fh = None
        self._offset = 0
        self._partial = b""

    def _open(self):
        """Open the transcript at the last offset, restarting from 0 if it shrank."""
        if self._fh is not None:
            self._fh.close()
            self._fh = None

        try:
            size = os.stat(self.path).st_size
        except FileNotFoundError:
            logger.debug("Transcript not found: %s", self.path)
            return

        if size < self._offset:
            logger.info("Transcript truncated: %s", self.path)
            self._offset = 0
            self._partial = b""

        self._fh = open(self.path, "rb")
        self._fh.seek(self._offset)
        logger.debug("Opened %s at offset %d", self.path, self._offset)

    def read_new_lines(self) -> int:
        """Enqueue every complete line appended since the last read. Returns the count."""
        try:
            if self._fh is None or os.stat(self.path).st_size < self._offset:
                self._open()
        except FileNotFoundError:
            return 0
        if self._fh is None:
            return 0

        data = self._fh.read()
        self._offset = self._fh.tell()
        if not data:
            return 0

        data = self._partial + data
        lines = data.split(b"\n")
        # Anything after the last newline, possibly a cut multi-byte character,
        # is held until the line is complete.
        self._partial = lines.pop()

        count = 0
        for raw in lines:
            line = raw.decode("utf-8", errors="replace").rstrip("\r")
            if not line:
                continue
            try:
                self._queue.put(line)
            except QueueOverflowError as e:
                logger.error("Transcript line lost: %s", e)
                continue
            count += 1
        return count

    def on_modified(self, event):
        if event.is_directory:
            return
        if os.path.abspath(event.src_path) == self.path:
            self.read_new_lines()

    def on_created(self, event):
        if event.is_directory:
            return
        if os.path.abspath(event.src_path) == self.path:
            logger.info("Transcript created: %s", self.path)
            self._offset = 0
            self._partial = b""
            self._open()
            self.read_new_lines()

    def startup_read(self):
        """Read any existing content of the transcript at startup."""
        if os.path.exists(self.path):
            logger.info("Startup read: %s", self.path)
            self.read_new_lines()

    def close(self):
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    @property
    def watched_dir(self) -> str:
        return os.path.dirname(self.path)
