"""Text utilities — placeholder templating, option list splitting, money.

Dialogue and yell pools arrive from configuration as delimited strings;
scripts are separated by ``|`` and lines by ``;``.
"""

from __future__ import annotations

import re

PLACEHOLDER = re.compile(r"\{([A-Z_]+)\}")

COLOR_RED = "|cffff0000"
COLOR_GREEN = "|cff00ff00"
COLOR_YELLOW = "|cffFFFF00"
COLOR_ORANGE = "|cffFF8800"
COLOR_GOLD = "|cffFFD700"
COLOR_END = "|r"

SIEGE_TAG = f"{COLOR_RED}[City Siege]{COLOR_END}"
SIEGE_TAG_GOOD = f"{COLOR_GREEN}[City Siege]{COLOR_END}"


def render_template(text: str, values: dict[str, str],
                    fallbacks: dict[str, str] | None = None) -> str:
    """Replace ``{NAME}`` placeholders.

    Unknown names resolve through *fallbacks*; anything still
    unresolved is left in place as a literal.
    """
    fallbacks = fallbacks or {}

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1)
        value = values.get(name)
        if not value:
            value = fallbacks.get(name)
        return value if value else match.group(0)

    return PLACEHOLDER.sub(_sub, text)


def split_lines(text: str, sep: str = ";") -> list[str]:
    """Split a delimited option string, dropping blanks."""
    return [part.strip() for part in text.split(sep) if part.strip()]


def split_scripts(text: str) -> list[list[str]]:
    """Split ``|``-separated scripts into their ``;``-separated lines."""
    scripts = [split_lines(chunk) for chunk in text.split("|")]
    return [s for s in scripts if s]


def format_money(copper: int) -> str:
    """Format copper as ``Ng Ns Nc``, dropping leading zero units."""
    gold, rest = divmod(max(0, int(copper)), 10000)
    silver, copper = divmod(rest, 100)
    if gold:
        return f"{gold}g {silver}s {copper}c"
    if silver:
        return f"{silver}s {copper}c"
    return f"{copper}c"


def health_color(percent: float) -> str:
    """Colour code for an objective health percentage."""
    if percent > 75:
        return COLOR_GREEN
    if percent > 50:
        return COLOR_YELLOW
    if percent > 25:
        return COLOR_ORANGE
    return COLOR_RED
