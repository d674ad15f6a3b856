"""Generic edit extractor driven by the shared field specs."""

from typing import Any, Iterable

from chatwatch.extractor import Extractor
from chatwatch.fields import FIELD_SPECS
from chatwatch.models import ClassifiedLine, EditRecord
from chatwatch.timestamps import from_ymd, reference_at, truncate_to_second

EDIT_CATEGORY_IDS = ("edit.created", "edit.destroyed", "lb.coord", "lb.coordreplaced")


def record_time(fields: dict[str, Any], now_millis: int) -> int:
    if fields.get("timestamp") is not None:
        return truncate_to_second(fields["timestamp"])
    if fields.get("date") is not None:
        return from_ymd(fields["date"], fields["hour"], fields["minute"], fields["second"],
                        reference=reference_at(now_millis))
    return truncate_to_second(now_millis)


class EditExtractor(Extractor):
    """Turns any category with actor/creation/subject/x/y/z fields into edit records."""

    def __init__(self, category_ids: Iterable[str] = EDIT_CATEGORY_IDS):
        super().__init__()
        self._ids = frozenset(i for i in category_ids if i in FIELD_SPECS)

    def register_interest(self):
        return [(tag, self.extract) for tag in self.tags_for(self._ids)]

    def extract(self, line: ClassifiedLine):
        if line.category is None or line.category.id not in self._ids:
            return
        fields = self.fields(line)
        if fields is None:
            return
        record = EditRecord(
            timestamp=record_time(fields, self.context.now_millis()),
            actor=fields["actor"],
            creation=fields["creation"],
            x=fields["x"],
            y=fields["y"],
            z=fields["z"],
            subject=self.context.subjects.lookup(fields["subject"]),
        )
        self.context.record_edit(record)
