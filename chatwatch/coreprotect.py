"""CoreProtect inspector and lookup results.

Inspector output names the block position first, then one details line per
edit:

    ----- CoreProtect ----- (x2/y63/z-6)
    0.00/h ago - totemo placed #4 (Cobblestone).

Lookup output puts the position on the line after each details line:

    ----- CoreProtect Lookup Results -----
    0.01/h ago - totemo removed #4 (Cobblestone).
                    ^ (x3/y63/z-7/world)
"""

import logging
import re

from chatwatch.extractor import Extractor
from chatwatch.models import ClassifiedLine, EditRecord
from chatwatch.timestamps import MS_PER_HOUR, reference_at, to_millis

logger = logging.getLogger(__name__)

ABSOLUTE_TIME = re.compile(r"(\d{1,2})-(\d{1,2}) (\d{1,2}):(\d{2}):(\d{2})")
HOURS_AGO_TIME = re.compile(r"(\d+\.\d+)/h ago")

EDIT_ACTIONS = {"placed": True, "removed": False}


def parse_time_expression(text: str, now_millis: int) -> int:
    """Absolute "M-D h:mm:ss" or relative "N.NN/h ago" -> epoch millis.

    Relative times are only accurate to 1/100 hour, so they are truncated to
    that precision so that repeated reports of one edit merge.
    """
    m = ABSOLUTE_TIME.fullmatch(text)
    if m:
        month, day, hour, minute, second = (int(g) for g in m.groups())
        return to_millis(month, day, hour, minute, second, reference=reference_at(now_millis))
    m = HOURS_AGO_TIME.fullmatch(text)
    if m:
        millis = now_millis - int(float(m.group(1)) * MS_PER_HOUR)
        return millis - millis % (MS_PER_HOUR // 100)
    raise ValueError(f"unrecognised time expression: {text!r}")


class CoreProtectExtractor(Extractor):
    def __init__(self):
        super().__init__()
        self._is_lookup = False
        self._first_inspector_result = False
        self._position: tuple[int, int, int] | None = None
        self._stashed: dict | None = None

    def register_interest(self):
        handlers = {
            "coreprotect.inspectorcoords": self.inspector_coords,
            "coreprotect.details": self.details,
            "coreprotect.lookupheader": self.lookup_header,
            "coreprotect.lookupcoords": self.lookup_coords,
        }
        return [(tag, fn) for category_id, fn in handlers.items()
                for tag in self.tags_for([category_id])]

    def inspector_coords(self, line: ClassifiedLine):
        self._is_lookup = False
        fields = self.fields(line)
        if fields is None:
            return
        self._position = (fields["x"], fields["y"], fields["z"])
        self._first_inspector_result = True

    def details(self, line: ClassifiedLine):
        fields = self.fields(line)
        if fields is None:
            return
        self._stashed = None
        creation = EDIT_ACTIONS.get(fields["action"])
        if creation is None:
            # Kills, container access and the like are not block edits.
            return
        edit = {
            "timestamp": parse_time_expression(fields["time"], self.context.now_millis()),
            "actor": fields["actor"],
            "creation": creation,
            "subject": self.context.subjects.lookup_formatted(fields["subject"]),
        }
        if self._is_lookup:
            self._stashed = edit
            return
        if self._position is None:
            logger.debug("CoreProtect details without inspector coordinates: %s", line.canonical)
            return
        x, y, z = self._position
        if self.context.record_edit(EditRecord(x=x, y=y, z=z, **edit),
                                    update_context=self._first_inspector_result):
            self._first_inspector_result = False

    def lookup_header(self, line: ClassifiedLine):
        self._is_lookup = True

    def lookup_coords(self, line: ClassifiedLine):
        fields = self.fields(line)
        if fields is None:
            return
        self._is_lookup = True
        if self._stashed is not None:
            edit, self._stashed = self._stashed, None
            self.context.record_edit(EditRecord(x=fields["x"], y=fields["y"], z=fields["z"],
                                                **edit))
