"""Category table: ordered pattern rules, compiled once and evaluated in priority order."""

import logging
import re
from typing import Iterator

from chatwatch.config import load_yaml
from chatwatch.errors import PatternCompileError
from chatwatch.models import Category

logger = logging.getLogger(__name__)


def _compile(category_id: str, pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternCompileError(category_id, pattern, e) from e


def compile_category(record: dict) -> Category:
    """Build a Category from {id, tag, initial?, full, extensible?}.

    The initial pattern defaults to the full pattern.
    """
    category_id = str(record["id"])
    full = record["full"]
    initial = record.get("initial") or full
    return Category(
        id=category_id,
        tag=str(record.get("tag", category_id)),
        initial_pattern=_compile(category_id, initial),
        full_pattern=_compile(category_id, full),
        extensible=bool(record.get("extensible", False)),
    )


class CategoryTable:
    """Immutable, ordered sequence of categories.

    Entries whose patterns do not compile are reported and skipped; the rest
    of the table stays usable.
    """

    def __init__(self, records: list[dict] | None = None):
        self._categories: list[Category] = []
        self._by_id: dict[str, Category] = {}
        self.errors: list[PatternCompileError] = []

        for record in records or []:
            try:
                category = compile_category(record)
            except PatternCompileError as e:
                logger.warning("Skipping category: %s", e)
                self.errors.append(e)
                continue
            except KeyError as e:
                logger.warning("Skipping category without %s: %r", e, record)
                continue
            self._add(category)

    def _add(self, category: Category):
        logger.debug("chat category: %s", category)
        self._categories.append(category)
        if category.id in self._by_id:
            logger.warning("Category id %s is defined more than once; first definition wins",
                           category.id)
        else:
            self._by_id[category.id] = category

    def by_id(self, category_id: str) -> Category | None:
        return self._by_id.get(category_id)

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)


def load_category_table(path: str) -> CategoryTable:
    data = load_yaml(path)
    records = data.get("categories") or []
    table = CategoryTable(records)
    logger.info("Loaded %d categories (%d skipped) from %s", len(table), len(table.errors), path)
    return table
