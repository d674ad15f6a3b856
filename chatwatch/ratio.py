"""Stone:diamond ratio of a LogBlock "summed up by blocks" destruction query."""

import logging
from dataclasses import dataclass

from chatwatch.extractor import Extractor
from chatwatch.models import ClassifiedLine
from chatwatch.timestamps import format_month_day_time

logger = logging.getLogger(__name__)

STONE_DIAMOND_TIMEOUT_MILLIS = 250
RATIO_HEADER_IDS = ("lb.header.ratio", "lb.header.ratiocurrent")
# Column headings printed between a ratio header and its sums.
COLUMN_HEADER_IDS = ("lb.header.sumblocks",)
MS_PER_MINUTE = 60 * 1000


@dataclass(frozen=True)
class RatioResult:
    player: str
    since_minutes: int
    before_minutes: int
    stone: int
    diamonds: int

    @property
    def ratio(self) -> float | None:
        if self.stone <= 0 or self.diamonds <= 0:
            return None
        return self.stone / self.diamonds

    def message(self) -> str:
        if self.stone <= 0:
            return "Was the player spelunking?"
        if self.diamonds < 0:
            return "Player placed more diamonds than were destroyed."
        if self.diamonds == 0:
            return "Did the player place and destroy previously silk touched diamonds?"
        return f"stone:diamond = {self.stone} / {self.diamonds} = {self.ratio:.3g}"


class RatioExtractor(Extractor):
    """Computes stone destroyed per diamond ore mined.

    A ratio header starts parsing; any other LogBlock header except the
    column headings stops it. Stone and diamond ore sums are only paired when
    they arrive within STONE_DIAMOND_TIMEOUT_MILLIS of each other. The result
    is kept in last_result and shown on the display.
    """

    def __init__(self, timeout_millis: int = STONE_DIAMOND_TIMEOUT_MILLIS):
        super().__init__()
        self._timeout_millis = timeout_millis
        self.last_result: RatioResult | None = None
        self._reset()

    def _reset(self):
        self._parsing = False
        self._player = ""
        self._since = self._before = 0
        self._stone: int | None = None
        self._diamonds: int | None = None
        self._stone_time = self._diamond_time = 0

    def register_interest(self):
        header_ids = [c.id for c in self.context.table if c.id.startswith("lb.header")]
        return ([(tag, self.header) for tag in self.tags_for(header_ids)]
                + [(tag, self.block_sum) for tag in self.tags_for(["lb.sum"])])

    def header(self, line: ClassifiedLine):
        if line.category.id in COLUMN_HEADER_IDS:
            return
        self._reset()
        if line.category.id not in RATIO_HEADER_IDS:
            return
        fields = self.fields(line)
        if fields is None:
            return
        self._parsing = True
        self._player = fields["player"]
        self._since = fields["since"]
        self._before = fields["before"]

    def block_sum(self, line: ClassifiedLine):
        if not self._parsing:
            return
        fields = self.fields(line)
        if fields is None:
            return
        block = fields["subject"].strip().lower()
        now = self.context.now_millis()
        if block == "stone":
            self._stone = fields["destroyed"]
            self._stone_time = now
        elif block == "diamond ore":
            self._diamonds = fields["destroyed"] - fields["created"]
            self._diamond_time = now
        else:
            return

        if self._stone is None or self._diamonds is None:
            return
        if abs(self._stone_time - self._diamond_time) > self._timeout_millis:
            logger.debug("Stone and diamond ore sums too far apart, ignored")
            return

        result = RatioResult(self._player, self._since, self._before,
                             self._stone, self._diamonds)
        self.last_result = result
        self._report(result, now)
        self._reset()

    def _report(self, result: RatioResult, now: int):
        minute = now - now % MS_PER_MINUTE
        since = format_month_day_time(minute - result.since_minutes * MS_PER_MINUTE)
        before = format_month_day_time(minute - result.before_minutes * MS_PER_MINUTE)
        logger.info("Ratio for %s: %s", result.player, result.message())
        self.context.local_output(f"Between {since} and {before}:")
        self.context.local_output(result.message())
