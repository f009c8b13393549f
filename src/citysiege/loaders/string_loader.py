"""Locale override loader — one YAML mapping of text id to template per locale.

Example ``config/locale/deDE.yaml``::

    SIEGE_END: "|cff00ff00[Stadtbelagerung]|r Die Belagerung von {city} ist vorbei!"
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

log = logging.getLogger(__name__)


def load_strings(path: str | Path) -> dict[str, str]:
    """Load a text-id → template dictionary from a YAML file.

    Keys are upper-cased; entries with empty values are dropped so the
    built-in text keeps applying.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        log.warning("Ignoring %s: expected a mapping, got %s", path, type(data).__name__)
        return {}
    return {str(k).upper(): str(v) for k, v in data.items() if v not in (None, "")}
