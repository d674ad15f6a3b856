"""Pipeline context, ingest queue and the processing cycle.

Ingestion threads only ever call IngestQueue.put(). Everything else (the
classifier, dispatch, extractors, LastContext and the edit logs) is touched
exclusively by the thread that calls Processor.run_cycle(), so none of it
needs locking.
"""

import logging
import queue
import threading
import time
from typing import Callable, Iterable

from chatwatch.categories import CategoryTable
from chatwatch.classifier import DEFAULT_MAX_CONTINUATIONS, LineClassifier
from chatwatch.config import OVERFLOW_POLICIES
from chatwatch.dispatch import TagDispatcher
from chatwatch.edit_log import EditLog, EditLogRegistry
from chatwatch.errors import QueueOverflowError
from chatwatch.exclusion import ExclusionFilter
from chatwatch.metrics import Metrics
from chatwatch.models import ClassifiedLine, EditRecord, LastContext, SessionKey
from chatwatch.subjects import SubjectRegistry

logger = logging.getLogger(__name__)


class ActorFilter:
    """Accepted actors, case-insensitive. An empty filter accepts everyone."""

    def __init__(self, actors: Iterable[str] = ()):
        self._actors: set[str] = {a.lower() for a in actors}

    def add(self, actor: str):
        self._actors.add(actor.lower())

    def remove(self, actor: str) -> bool:
        actor = actor.lower()
        if actor in self._actors:
            self._actors.remove(actor)
            return True
        return False

    def clear(self):
        self._actors.clear()

    def accepts(self, actor: str) -> bool:
        return not self._actors or actor.lower() in self._actors

    @property
    def actors(self) -> list[str]:
        return sorted(self._actors)


class PipelineContext:
    """Owns the category table, classifier, dispatcher, LastContext and edit logs."""

    def __init__(self, table: CategoryTable, subjects: SubjectRegistry | None = None,
                 display: Callable[[str], None] | None = None, excluded: Iterable[str] = (),
                 max_continuations: int = DEFAULT_MAX_CONTINUATIONS,
                 clock: Callable[[], float] = time.time,
                 session: SessionKey | None = None):
        self.table = table
        self.subjects = subjects or SubjectRegistry()
        self.clock = clock
        self.last = LastContext()
        self.actors = ActorFilter()
        self.edit_logs = EditLogRegistry()
        self.session = session or SessionKey()
        self.edits_recorded = 0

        self.dispatcher = TagDispatcher()
        self.exclusion = ExclusionFilter(display, excluded)
        self.classifier = LineClassifier(table, max_continuations)
        self.classifier.add_handler(self.dispatcher)
        self.classifier.add_handler(self.exclusion)
        self.extractors: list = []

    def install(self, *extractors):
        for extractor in extractors:
            extractor.attach(self)
            self.extractors.append(extractor)
            logger.info("Installed extractor %s", type(extractor).__name__)

    def set_session(self, server: str | None, dimension: int):
        self.session = SessionKey(server or "", dimension)

    def edit_log(self) -> EditLog:
        return self.edit_logs.get(self.session)

    def now_millis(self) -> int:
        return int(self.clock() * 1000)

    def record_edit(self, record: EditRecord, update_context: bool = True) -> bool:
        """Store record in the current session's log if its actor is accepted.

        Returns True if the record passed the actor filter.
        """
        if not self.actors.accepts(record.actor):
            return False
        if update_context:
            self.last.update_from(record)
        if self.edit_log().add(record):
            self.edits_recorded += 1
        return True

    def local_output(self, text: str):
        """Show text generated by an extractor, bypassing tag exclusion."""
        if self.exclusion.display is not None:
            self.exclusion.display(text)

    def process_line(self, raw: str) -> ClassifiedLine:
        return self.classifier.classify(raw)


class IngestQueue:
    """Multi-producer, single-consumer FIFO of raw lines.

    With max_size 0 the queue is unbounded. Otherwise a full queue applies the
    overflow policy: drop-oldest evicts the oldest queued line, drop-newest
    discards the incoming one, block waits up to block_timeout seconds and then
    raises QueueOverflowError.
    """

    def __init__(self, max_size: int = 0, overflow_policy: str = "drop-oldest",
                 block_timeout: float = 1.0):
        if overflow_policy not in OVERFLOW_POLICIES:
            raise ValueError(f"unknown overflow policy: {overflow_policy}")
        self._queue: queue.Queue = queue.Queue(maxsize=max_size)
        self._policy = overflow_policy
        self._block_timeout = block_timeout
        self._lock = threading.Lock()
        self._dropped = 0

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def put(self, raw: str):
        if self._policy == "block":
            try:
                self._queue.put(raw, timeout=self._block_timeout)
            except queue.Full as e:
                raise QueueOverflowError(
                    f"ingest queue full for {self._block_timeout}s") from e
            return

        try:
            self._queue.put_nowait(raw)
            return
        except queue.Full:
            pass

        with self._lock:
            self._dropped += 1
            if self._policy == "drop-newest":
                logger.warning("Ingest queue full, dropping incoming line: %s", raw)
                return
            while True:
                try:
                    oldest = self._queue.get_nowait()
                    logger.warning("Ingest queue full, dropping oldest line: %s", oldest)
                except queue.Empty:
                    pass
                try:
                    self._queue.put_nowait(raw)
                    return
                except queue.Full:
                    continue

    def drain(self) -> list[str]:
        """Remove and return every queued line in arrival order."""
        lines = []
        while True:
            try:
                lines.append(self._queue.get_nowait())
            except queue.Empty:
                return lines

    def __len__(self) -> int:
        return self._queue.qsize()


class Processor:
    """Runs the processing cycle: drain the queue, classify, dispatch, extract."""

    def __init__(self, context: PipelineContext, ingest: IngestQueue, metrics: Metrics | None = None):
        self._context = context
        self._queue = ingest
        self._metrics = metrics or Metrics()
        self._dropped_seen = 0

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    def run_cycle(self) -> int:
        """Process every queued line. Returns the number of lines taken off the queue."""
        lines = self._queue.drain()
        classifier = self._context.classifier
        revisions_before = classifier.revisions
        partials_before = classifier.partials_resolved
        edits_before = self._context.edits_recorded

        for raw in lines:
            try:
                line = self._context.process_line(raw)
            except Exception:
                logger.exception("Failed to process line: %s", raw)
                self._metrics.increment("line_failures")
                continue
            if line.pending:
                self._metrics.increment("lines_pending")
            elif line.category is None:
                self._metrics.increment("lines_unclassified")
            else:
                self._metrics.increment("lines_classified")

        self._metrics.increment("lines_ingested", len(lines))
        self._metrics.increment("lines_revised",
                                classifier.revisions - revisions_before)
        # Partial lines that gave up on continuation are classified on their own.
        self._metrics.increment("lines_classified",
                                classifier.partials_resolved - partials_before)
        self._metrics.increment("edits_recorded", self._context.edits_recorded - edits_before)
        dropped = self._queue.dropped
        self._metrics.increment("lines_dropped", dropped - self._dropped_seen)
        self._dropped_seen = dropped
        return len(lines)

    def finish(self):
        """Resolve any pending continuation at shutdown."""
        classifier = self._context.classifier
        partials_before = classifier.partials_resolved
        classifier.flush()
        self._metrics.increment("lines_classified",
                                classifier.partials_resolved - partials_before)
