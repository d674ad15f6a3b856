"""LogBlock teleports: look up the edit at the destination to refresh the last context."""

import logging

from chatwatch.extractor import Extractor
from chatwatch.models import ClassifiedLine

logger = logging.getLogger(__name__)


class TeleportExtractor(Extractor):
    def register_interest(self):
        return [(tag, self.teleported) for tag in self.tags_for(["lb.tp"])]

    def teleported(self, line: ClassifiedLine):
        fields = self.fields(line)
        if fields is None:
            return
        x, y, z = fields["x"], fields["y"], fields["z"]
        # Several actors may have edited the block; prefer the one last queried.
        record = self.context.edit_log().find_first(x, y, z, self.context.last.actor)
        if record is None:
            logger.debug("No recorded edit at %d,%d,%d", x, y, z)
            self.context.last.update_position(x, y, z)
            return
        self.context.last.update_from(record)
