"""Prism lookup (/prism l) and inspector (/prism i) results.

Each edit takes two lines:

     + totemo placed birchlog x3 4m ago (a:place)
     -- 2192 - 3/25/13 6:37:34pm - world @ -5.0 64.0 246.0

The first gives actor, subject and action; the second date, time and
position. Lines for other actions (item drops, grass spread) do not match the
first pattern, so a date line is only used right after a place/break line.
"""

import logging
import re

from chatwatch.extractor import Extractor
from chatwatch.models import ClassifiedLine, EditRecord
from chatwatch.timestamps import to_millis

logger = logging.getLogger(__name__)

# Grouped edits carry a count after the subject name, e.g. "emerald ore x10".
COUNT_SUFFIX = re.compile(r" x\d+$")


def to_24_hour(hour: int, ampm: str) -> int:
    return hour % 12 + (12 if ampm == "pm" else 0)


class PrismExtractor(Extractor):
    def __init__(self):
        super().__init__()
        self._actor: str | None = None
        self._subject = None
        self._creation = False
        self._expecting_coords = False
        self._inspector = False
        self._awaiting_first_result = False

    def register_interest(self):
        handlers = {
            "prism.placebreak": self.place_break,
            "prism.datetimecoords": self.date_time_coords,
            "prism.inspectorheader": self.inspector_header,
            "prism.lookupdefaults": self.lookup_defaults,
        }
        return [(tag, fn) for category_id, fn in handlers.items()
                for tag in self.tags_for([category_id])]

    def place_break(self, line: ClassifiedLine):
        fields = self.fields(line)
        if fields is None:
            return
        subject_id = fields["id"]
        if subject_id:
            subject = self.context.subjects.lookup_id(subject_id, fields["data"] or 0)
        else:
            # Id 0 is used for paintings and the like; fall back on the name.
            subject = self.context.subjects.lookup(COUNT_SUFFIX.sub("", fields["subject"]))
        self._actor = fields["actor"]
        self._subject = subject
        self._creation = fields["creation"]
        self._expecting_coords = True

    def date_time_coords(self, line: ClassifiedLine):
        if not self._expecting_coords:
            return
        self._expecting_coords = False
        fields = self.fields(line)
        if fields is None:
            return
        timestamp = to_millis(fields["month"], fields["day"],
                              to_24_hour(fields["hour"], fields["ampm"]),
                              fields["minute"], fields["second"],
                              year=2000 + fields["year"])
        x, y, z = fields["x"], fields["y"], fields["z"]
        self.context.last.update_position(x, y, z)

        # Only the most recent inspector result updates the last context;
        # every lookup result does.
        update_context = not self._inspector or self._awaiting_first_result
        record = EditRecord(timestamp=timestamp, actor=self._actor, creation=self._creation,
                            x=x, y=y, z=z, subject=self._subject)
        if self.context.record_edit(record, update_context=update_context):
            self._awaiting_first_result = False

    def inspector_header(self, line: ClassifiedLine):
        self._inspector = True
        self._awaiting_first_result = True
        fields = self.fields(line)
        if fields is not None:
            self.context.last.update_position(fields["x"], fields["y"], fields["z"])

    def lookup_defaults(self, line: ClassifiedLine):
        self._inspector = False
