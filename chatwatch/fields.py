"""Declarative field extraction: regex groups -> named, typed fields.

Each category id that maps straight onto an edit record carries a tuple of
FieldSpec entries. Extractors share this table instead of reading group
indices by hand.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable

from chatwatch.errors import ExtractionError
from chatwatch.timestamps import parse_ymd

CREATION_ACTIONS = frozenset({"created", "placed", "poured", "hung", "place", "bucket", "hang"})
DESTRUCTION_ACTIONS = frozenset({"destroyed", "broke", "removed", "break"})


@dataclass(frozen=True)
class FieldSpec:
    name: str
    group: int | str | None = None      # None: constant field, value is `default`
    convert: Callable[[str], Any] = str
    required: bool = True
    default: Any = None


def to_int(value: str) -> int:
    return int(value)


def to_action(value: str) -> bool:
    """True for creation verbs, False for destruction verbs."""
    action = value.strip().lower()
    if action in CREATION_ACTIONS:
        return True
    if action in DESTRUCTION_ACTIONS:
        return False
    raise ValueError(f"unknown action: {value}")


def to_ymd(value: str) -> tuple[int, int, int]:
    return parse_ymd(value)


def extract_fields(match: re.Match, specs: tuple[FieldSpec, ...]) -> dict[str, Any]:
    """Convert the groups of a full-pattern match into a field dict.

    Raises ExtractionError for a missing required group or a failed conversion.
    """
    fields: dict[str, Any] = {}
    for spec in specs:
        if spec.group is None:
            fields[spec.name] = spec.default
            continue
        try:
            value = match.group(spec.group)
        except IndexError as e:
            raise ExtractionError(spec.name, None, f"no group {spec.group!r}") from e
        if value is None:
            if spec.required:
                raise ExtractionError(spec.name, None, "missing required group")
            fields[spec.name] = spec.default
            continue
        try:
            fields[spec.name] = spec.convert(value)
        except (ValueError, TypeError) as e:
            raise ExtractionError(spec.name, value, str(e)) from e
    return fields


_TIME_FIELDS = (
    FieldSpec("date", "date", to_ymd),
    FieldSpec("hour", "hour", to_int),
    FieldSpec("minute", "minute", to_int),
    FieldSpec("second", "second", to_int),
)

_COORDS = (
    FieldSpec("x", "x", to_int),
    FieldSpec("y", "y", to_int),
    FieldSpec("z", "z", to_int),
)

FIELD_SPECS: dict[str, tuple[FieldSpec, ...]] = {
    "edit.created": (
        FieldSpec("actor", "actor"),
        FieldSpec("creation", default=True),
        FieldSpec("subject", "block"),
    ) + _COORDS,
    "edit.destroyed": (
        FieldSpec("actor", "actor"),
        FieldSpec("creation", default=False),
        FieldSpec("subject", "block"),
    ) + _COORDS,
    "lb.coord": _TIME_FIELDS + (
        FieldSpec("actor", "actor"),
        FieldSpec("creation", "action", to_action),
        FieldSpec("subject", "block"),
    ) + _COORDS,
    # Only the destruction of the old block is kept for replacements.
    "lb.coordreplaced": _TIME_FIELDS + (
        FieldSpec("actor", "actor"),
        FieldSpec("creation", default=False),
        FieldSpec("subject", "oldblock"),
    ) + _COORDS,
}

# Stateful extractors: fields that feed edits assembled across several lines.
FIELD_SPECS.update({
    "lb.position": _COORDS,
    "lb.edit": _TIME_FIELDS + (
        FieldSpec("actor", "actor"),
        FieldSpec("creation", "action", to_action),
        FieldSpec("subject", "block"),
    ),
    "lb.editreplaced": _TIME_FIELDS + (
        FieldSpec("actor", "actor"),
        FieldSpec("creation", default=False),
        FieldSpec("subject", "oldblock"),
    ),
    "lb.page": (
        FieldSpec("current", "current", to_int),
        FieldSpec("total", "total", to_int),
    ),
    "lb.tp": _COORDS,
    "lb.header.ratio": (
        FieldSpec("player", "player"),
        FieldSpec("since", "since", to_int),
        FieldSpec("before", "before", to_int),
    ),
    "lb.header.ratiocurrent": (
        FieldSpec("player", "player"),
        FieldSpec("since", "since", to_int),
        FieldSpec("before", default=0),
    ),
    "lb.sum": (
        FieldSpec("created", "created", to_int),
        FieldSpec("destroyed", "destroyed", to_int),
        FieldSpec("subject", "block"),
    ),
    "coreprotect.inspectorcoords": _COORDS,
    "coreprotect.details": (
        FieldSpec("time", "time"),
        FieldSpec("actor", "actor"),
        FieldSpec("action", "action"),
        FieldSpec("subject", "block"),
    ),
    "coreprotect.lookupcoords": _COORDS,
    "prism.placebreak": (
        FieldSpec("actor", "actor"),
        FieldSpec("subject", "block"),
        FieldSpec("id", "id", to_int, required=False),
        FieldSpec("data", "data", to_int, required=False),
        FieldSpec("creation", "action", to_action),
    ),
    "prism.datetimecoords": (
        FieldSpec("month", "month", to_int),
        FieldSpec("day", "day", to_int),
        FieldSpec("year", "year", to_int),
        FieldSpec("hour", "hour", to_int),
        FieldSpec("minute", "minute", to_int),
        FieldSpec("second", "second", to_int),
        FieldSpec("ampm", "ampm", str.lower),
    ) + _COORDS,
    "prism.inspectorheader": _COORDS,
})
