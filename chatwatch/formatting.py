"""Inline formatting markers: a marker character followed by one code character."""

import re

MARKER = "§"
DEFAULT_COLOUR = "f"

_MARKER_RE = re.compile(MARKER + "(?:.|$)", re.DOTALL)

# Colour code -> ANSI SGR parameters
_ANSI_COLOURS = {
    "0": "30", "1": "34", "2": "32", "3": "36",
    "4": "31", "5": "35", "6": "33", "7": "37",
    "8": "90", "9": "94", "a": "92", "b": "96",
    "c": "91", "d": "95", "e": "93", "f": "97",
    "l": "1", "m": "9", "n": "4", "o": "3", "r": "0",
}


def strip_formatting(text: str) -> str:
    """Remove every marker+code pair, including a marker dangling at the end."""
    return _MARKER_RE.sub("", text)


def last_colour(text: str) -> str:
    """Return the code of the last marker in text, or the default colour."""
    index = text.rfind(MARKER)
    if index < 0 or index + 1 >= len(text):
        return DEFAULT_COLOUR
    return text[index + 1]


def start_colour(text: str) -> str:
    if len(text) >= 2 and text[0] == MARKER:
        return text[1]
    return DEFAULT_COLOUR


def render_ansi(text: str) -> str:
    """Convert formatting markers to ANSI escapes; unknown codes are dropped."""
    def _replace(m: re.Match) -> str:
        code = m.group(0)[1:].lower()
        sgr = _ANSI_COLOURS.get(code)
        return f"\033[{sgr}m" if sgr else ""

    rendered = _MARKER_RE.sub(_replace, text)
    if rendered != text:
        rendered += "\033[0m"
    return rendered
