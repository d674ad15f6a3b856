"""LogBlock extractors: tool-block lookups and result paging."""

import logging

from chatwatch.edits import record_time
from chatwatch.extractor import Extractor
from chatwatch.models import ClassifiedLine, EditRecord

logger = logging.getLogger(__name__)

POSITION_TIMEOUT_MILLIS = 250
DEFAULT_MAX_AUTO_PAGES = 10


class ToolBlockExtractor(Extractor):
    """Edits reported by the LogBlock tool block.

    A "Block changes at x:y:z" line gives the position; the edit lines that
    follow it carry no coordinates of their own and are only accepted within
    POSITION_TIMEOUT_MILLIS of that line. The first accepted edit after a
    position updates the last context.
    """

    def __init__(self, timeout_millis: int = POSITION_TIMEOUT_MILLIS):
        super().__init__()
        self._timeout_millis = timeout_millis
        self._position: tuple[int, int, int] | None = None
        self._position_time = 0
        self._expecting_first_edit = False

    def register_interest(self):
        return ([(tag, self.position) for tag in self.tags_for(["lb.position"])]
                + [(tag, self.edit) for tag in self.tags_for(["lb.edit", "lb.editreplaced"])])

    def position(self, line: ClassifiedLine):
        fields = self.fields(line)
        if fields is None:
            return
        self._position = (fields["x"], fields["y"], fields["z"])
        self._position_time = self.context.now_millis()
        self._expecting_first_edit = True
        self.context.last.update_position(*self._position)

    def edit(self, line: ClassifiedLine):
        if self._position is None:
            return
        if self.context.now_millis() - self._position_time >= self._timeout_millis:
            logger.debug("Ignoring tool block edit outside the position window: %s",
                         line.canonical)
            return
        fields = self.fields(line)
        if fields is None:
            return
        x, y, z = self._position
        record = EditRecord(
            timestamp=record_time(fields, self.context.now_millis()),
            actor=fields["actor"],
            creation=fields["creation"],
            x=x, y=y, z=z,
            subject=self.context.subjects.lookup(fields["subject"]),
        )
        if self.context.record_edit(record, update_context=self._expecting_first_edit):
            self._expecting_first_edit = False


class LogBlockPaging(Extractor):
    """Tracks "Page n/m" of coordinate query results.

    next_page() tells a query command which page to request next. Any result
    header resets paging.
    """

    def __init__(self, max_auto_pages: int = DEFAULT_MAX_AUTO_PAGES):
        super().__init__()
        self.max_auto_pages = max_auto_pages
        self.current_page = 0
        self.page_count = 0

    def register_interest(self):
        return ([(tag, self.page) for tag in self.tags_for(["lb.page"])]
                + [(tag, self.header) for tag in self.tags_for(self._header_ids())])

    def _header_ids(self) -> list[str]:
        return [c.id for c in self.context.table if c.id.startswith("lb.header")]

    def page(self, line: ClassifiedLine):
        fields = self.fields(line)
        if fields is None:
            return
        if fields["total"] <= self.max_auto_pages:
            self.current_page = fields["current"]
            self.page_count = fields["total"]
        else:
            self.current_page = self.page_count = 0

    def header(self, line: ClassifiedLine):
        self.current_page = self.page_count = 0

    def next_page(self) -> int | None:
        """Page number to request next, or None. Each page is offered once."""
        if 0 < self.current_page < self.page_count <= self.max_auto_pages:
            page = self.current_page + 1
            self.current_page = self.page_count = 0
            return page
        return None
