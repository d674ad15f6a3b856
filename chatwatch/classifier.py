"""Line classifier — assigns categories to incoming lines and rejoins split lines.

A remote peer may split one logical line across several deliveries. When a
line matches no category fully, but matches the initial pattern of an
extensible category, it is held back as a pending continuation:

  IDLE --(initial match, extensible)--> AWAITING_CONTINUATION
  AWAITING_CONTINUATION --(joined text matches full pattern)--> IDLE   revise(partial, full)
  AWAITING_CONTINUATION --(joined text still only an initial part)--> AWAITING_CONTINUATION
  AWAITING_CONTINUATION --(anything else / attempt bound reached)--> IDLE   classify(partial)

Pending lines are not surfaced to handlers until they resolve, so a partial
line is either replaced by a single revise event or classified once on its own.
"""

import logging
from dataclasses import replace

from chatwatch.categories import CategoryTable
from chatwatch.dispatch import ChatHandler, invoke_safely
from chatwatch.formatting import strip_formatting
from chatwatch.models import ClassifiedLine

logger = logging.getLogger(__name__)

IDLE = "IDLE"
AWAITING_CONTINUATION = "AWAITING_CONTINUATION"

DEFAULT_MAX_CONTINUATIONS = 4


class LineClassifier:
    def __init__(self, table: CategoryTable, max_continuations: int = DEFAULT_MAX_CONTINUATIONS):
        self._table = table
        self._max_continuations = max_continuations
        self._handlers: list[ChatHandler] = []
        self._sequence = 0
        self._pending: ClassifiedLine | None = None
        self._attempts = 0
        self.revisions = 0
        self.partials_resolved = 0

    def add_handler(self, handler: ChatHandler):
        self._handlers.append(handler)

    @property
    def state(self) -> str:
        return AWAITING_CONTINUATION if self._pending is not None else IDLE

    @property
    def pending(self) -> ClassifiedLine | None:
        return self._pending

    def classify(self, raw: str) -> ClassifiedLine:
        """Classify the next delivered line, emitting classify/revise events.

        Returns the ClassifiedLine for this delivery: the complete line, the
        reassembled line after a successful continuation, or an unclassified
        line flagged pending while a continuation is awaited.
        """
        logger.debug("%s", raw)
        self._sequence += 1
        canonical = strip_formatting(raw)

        if self._pending is not None:
            result = self._continue(raw, canonical)
            if result is not None:
                return result
        return self._classify_alone(raw, canonical)

    def flush(self):
        """Resolve a pending continuation by classifying it on its own."""
        if self._pending is not None:
            self._resolve_alone(self._pending)

    def _classify_alone(self, raw: str, canonical: str) -> ClassifiedLine:
        for category in self._table:
            if category.matches_fully(canonical):
                line = ClassifiedLine(raw, canonical, category, self._sequence)
                self._notify(line)
                return line

        for category in self._table:
            if category.extensible and category.matches_start(canonical):
                self._pending = ClassifiedLine(raw, canonical, category, self._sequence,
                                               pending=True)
                self._attempts = 0
                return ClassifiedLine(raw, canonical, None, self._sequence, pending=True)

        line = ClassifiedLine(raw, canonical, None, self._sequence)
        self._notify(line)
        return line

    def _continue(self, raw: str, canonical: str) -> ClassifiedLine | None:
        """Try to extend the pending line. Returns None if this line must be
        classified on its own."""
        pending = self._pending
        category = pending.category
        joined_raw = pending.raw + raw
        joined = strip_formatting(joined_raw)
        self._attempts += 1

        if category.matches_fully(joined):
            full = ClassifiedLine(joined_raw, joined, category, self._sequence)
            self._clear()
            self._revise(pending, full)
            return full

        # Still only the start of a longer line: keep accumulating, within bounds.
        still_initial = category.initial_pattern.fullmatch(joined) is not None
        if self._attempts < self._max_continuations and still_initial:
            self._pending = ClassifiedLine(joined_raw, joined, category, pending.sequence,
                                           pending=True)
            return ClassifiedLine(raw, canonical, None, self._sequence, pending=True)

        if still_initial:
            logger.warning("Giving up on continuation after %d attempts: <%s> %s",
                           self._attempts, category.tag, pending.raw)
        self._resolve_alone(pending)
        return None

    def _resolve_alone(self, pending: ClassifiedLine):
        self._clear()
        self.partials_resolved += 1
        self._notify(replace(pending, pending=False))

    def _clear(self):
        self._pending = None
        self._attempts = 0

    def _notify(self, line: ClassifiedLine):
        for handler in self._handlers:
            invoke_safely(handler.classify, line)

    def _revise(self, old: ClassifiedLine, new: ClassifiedLine):
        self.revisions += 1
        for handler in self._handlers:
            invoke_safely(handler.revise, old, new)
