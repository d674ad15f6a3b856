"""Exclusion filter for the display path, plus YAML persistence of the excluded tags."""

import logging
import os
import sys
import tempfile
from typing import Callable, Iterable, TextIO

import yaml

from chatwatch.config import load_yaml
from chatwatch.formatting import render_ansi, strip_formatting
from chatwatch.models import ClassifiedLine

logger = logging.getLogger(__name__)


class ExclusionFilter:
    """Forwards lines to the display unless their tag is excluded.

    Only the user-visible echo is affected; extractors bound through the
    dispatcher see every line regardless of exclusion.
    """

    def __init__(self, display: Callable[[str], None] | None, excluded: Iterable[str] = ()):
        self.display = display
        self._excluded: set[str] = set(excluded)

    def is_excluded(self, tag: str | None) -> bool:
        return tag is not None and tag in self._excluded

    def set_excluded(self, tag: str, excluded: bool):
        if excluded:
            self._excluded.add(tag)
        else:
            self._excluded.discard(tag)

    @property
    def excluded_tags(self) -> frozenset[str]:
        return frozenset(self._excluded)

    def classify(self, line: ClassifiedLine):
        if self.display is not None and not self.is_excluded(line.tag):
            self.display(line.raw)

    def revise(self, old: ClassifiedLine, new: ClassifiedLine):
        # The partial line was held back, so the complete line is shown once.
        self.classify(new)


def load_excluded_tags(path: str) -> set[str]:
    data = load_yaml(path)
    tags = set()
    for tag in data.get("exclusions") or []:
        if isinstance(tag, str):
            tags.add(tag)
        else:
            logger.warning("Unexpected data in exclusions file %s: %r", path, tag)
    return tags


def save_excluded_tags(path: str, tags: Iterable[str]):
    """Atomic write: write to tmp file then replace."""
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump({"exclusions": sorted(tags)}, f, default_flow_style=False)
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class ConsoleDisplay:
    """Display collaborator that echoes lines to a text stream."""

    def __init__(self, stream: TextIO | None = None, colour: bool = True):
        self._stream = stream or sys.stdout
        self._colour = colour

    def __call__(self, text: str):
        rendered = render_ansi(text) if self._colour else strip_formatting(text)
        self._stream.write(rendered + "\n")
        self._stream.flush()
