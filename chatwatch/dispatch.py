"""Tag dispatch: routes classify/revise events to the handlers bound to a line's tag."""

import logging
from typing import Callable, Protocol

from chatwatch.models import ClassifiedLine

logger = logging.getLogger(__name__)


class ChatHandler(Protocol):
    def classify(self, line: ClassifiedLine) -> None: ...

    def revise(self, old: ClassifiedLine, new: ClassifiedLine) -> None: ...


def invoke_safely(fn: Callable, *args) -> bool:
    """Call fn, logging instead of propagating any exception. Returns success."""
    try:
        fn(*args)
        return True
    except Exception:
        logger.exception("Handler %r failed", fn)
        return False


class LineHandler:
    """Adapts plain functions to the handler interface.

    Without a revise callback, a revision is delivered to on_classify as the
    new, complete line.
    """

    def __init__(self, on_classify: Callable[[ClassifiedLine], None],
                 on_revise: Callable[[ClassifiedLine, ClassifiedLine], None] | None = None):
        self._on_classify = on_classify
        self._on_revise = on_revise

    def classify(self, line: ClassifiedLine):
        self._on_classify(line)

    def revise(self, old: ClassifiedLine, new: ClassifiedLine):
        if self._on_revise is not None:
            self._on_revise(old, new)
        else:
            self._on_classify(new)

    def __repr__(self) -> str:
        return f"LineHandler({getattr(self._on_classify, '__qualname__', self._on_classify)})"


class TagDispatcher:
    """Maps a tag to its handlers.

    register() binds exactly one handler and replaces any existing binding
    (last registration wins). add() appends a further handler instead; bound
    handlers are invoked in registration order.
    """

    def __init__(self, default_handler: ChatHandler | None = None):
        self._handlers: dict[str, list[ChatHandler]] = {}
        self.default_handler = default_handler
        self.failures = 0

    def register(self, tag: str, handler: ChatHandler):
        if tag in self._handlers:
            logger.debug("Replacing handler(s) for tag %s with %r", tag, handler)
        self._handlers[tag] = [handler]

    def add(self, tag: str, handler: ChatHandler):
        self._handlers.setdefault(tag, []).append(handler)

    def unregister(self, tag: str):
        self._handlers.pop(tag, None)

    def handlers_for(self, tag: str | None) -> list[ChatHandler]:
        if tag is not None and tag in self._handlers:
            return list(self._handlers[tag])
        return [self.default_handler] if self.default_handler is not None else []

    @property
    def tags(self) -> list[str]:
        return sorted(self._handlers)

    def classify(self, line: ClassifiedLine):
        for handler in self.handlers_for(line.tag):
            if not invoke_safely(handler.classify, line):
                self.failures += 1

    def revise(self, old: ClassifiedLine, new: ClassifiedLine):
        # Route by the revised line's tag.
        for handler in self.handlers_for(new.tag):
            if not invoke_safely(handler.revise, old, new):
                self.failures += 1
