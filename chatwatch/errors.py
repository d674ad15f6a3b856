"""Exception types raised by the classification and extraction pipeline."""

import re


class ChatwatchError(Exception):
    """Base class for all chatwatch errors."""


class PatternCompileError(ChatwatchError):
    def __init__(self, category_id: str, pattern: str, cause: re.error):
        super().__init__(f"category {category_id!r}: cannot compile {pattern!r}: {cause}")
        self.category_id = category_id
        self.pattern = pattern
        self.cause = cause


class ExtractionError(ChatwatchError):
    def __init__(self, field: str, value: str | None, reason: str = "invalid value"):
        super().__init__(f"field {field!r}: {reason} ({value!r})")
        self.field = field
        self.value = value


class QueueOverflowError(ChatwatchError):
    """Raised by the blocking overflow policy when the ingest queue stays full."""
