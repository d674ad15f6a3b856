"""Base class for extraction modules.

An extractor declares the tags it is interested in; each extractor function
receives a ClassifiedLine, re-matches the category's full pattern to capture
fields, and records what it learns in the pipeline context. A line that fails
conversion is dropped from extraction only: display and other handlers have
already received it.
"""

import functools
import logging
import re
from typing import Any, Callable

from chatwatch.dispatch import LineHandler
from chatwatch.errors import ExtractionError
from chatwatch.fields import FIELD_SPECS, extract_fields
from chatwatch.models import ClassifiedLine

logger = logging.getLogger(__name__)

ExtractorFn = Callable[[ClassifiedLine], None]

# Conversion failures that drop a line from extraction.
EXTRACTION_FAILURES = (ExtractionError, ValueError, KeyError, IndexError, TypeError)


class Extractor:
    def __init__(self):
        self.context = None
        self.failures = 0

    def register_interest(self) -> list[tuple[str, ExtractorFn]]:
        raise NotImplementedError

    def attach(self, context):
        """Bind to a pipeline context and add this extractor's handlers to its dispatcher."""
        self.context = context
        for tag, fn in self.register_interest():
            context.dispatcher.add(tag, LineHandler(self.guarded(fn)))

    def guarded(self, fn: ExtractorFn) -> ExtractorFn:
        @functools.wraps(fn)
        def wrapper(line: ClassifiedLine):
            try:
                fn(line)
            except EXTRACTION_FAILURES as e:
                self.failures += 1
                logger.debug("%s dropped line from extraction: %s (%s)",
                             type(self).__name__, line.canonical, e)
        return wrapper

    def match(self, line: ClassifiedLine) -> re.Match | None:
        if line.category is None:
            return None
        return line.category.full_pattern.fullmatch(line.canonical)

    def fields(self, line: ClassifiedLine) -> dict[str, Any] | None:
        """Typed fields of line, or None if its full pattern does not match.

        Raises ExtractionError if a capture cannot be converted.
        """
        m = self.match(line)
        if m is None:
            return None
        specs = FIELD_SPECS.get(line.category.id)
        if specs is None:
            raise ExtractionError("category", line.category.id, "no field specs")
        return extract_fields(m, specs)

    def tags_for(self, category_ids) -> list[str]:
        """Tags of the given category ids present in the context's table, in table order."""
        ids = set(category_ids)
        tags: list[str] = []
        for category in self.context.table:
            if category.id in ids and category.tag not in tags:
                tags.append(category.tag)
        return tags
