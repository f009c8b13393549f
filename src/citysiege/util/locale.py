"""Localized announcement texts.

Built-in tables cover ``enUS`` and ``frFR``; any other locale falls back
to ``enUS``.  Texts use ``str.format`` fields: ``{city}``, ``{seconds}``
and ``{faction}``.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from citysiege.loaders.string_loader import load_strings

log = logging.getLogger(__name__)

DEFAULT_LOCALE = "enUS"


class TextId(Enum):
    PRE_WARNING = "PRE_WARNING"
    SIEGE_START = "SIEGE_START"
    SIEGE_END = "SIEGE_END"
    WIN_DEFENDERS = "WIN_DEFENDERS"
    WIN_ATTACKERS = "WIN_ATTACKERS"
    REWARD_GENERIC = "REWARD_GENERIC"


_BUILTIN: dict[str, dict[str, str]] = {
    "enUS": {
        "PRE_WARNING": "|cffff0000[City Siege]|r |cffFFFF00WARNING!|r A siege force is "
                       "preparing to attack {city}! The battle will begin in {seconds} "
                       "seconds. Defenders, prepare yourselves!",
        "SIEGE_START": "|cffff0000[City Siege]|r The city of {city} is under attack! "
                       "Defenders are needed!",
        "SIEGE_END": "|cff00ff00[City Siege]|r The siege of {city} has ended!",
        "WIN_DEFENDERS": "|cff00ff00[City Siege]|r The {faction} have successfully "
                         "defended {city}!",
        "WIN_ATTACKERS": "|cffff0000[City Siege]|r The {faction} have conquered {city}!",
        "REWARD_GENERIC": "|cff00ff00[City Siege]|r You have been rewarded for "
                          "defending {city}!",
    },
    "frFR": {
        "PRE_WARNING": "|cffff0000[Siège de Cité]|r |cffFFFF00ALERTE !|r Une armée se "
                       "prépare à attaquer {city} ! La bataille commencera dans "
                       "{seconds} secondes. Défenseurs, préparez-vous !",
        "SIEGE_START": "|cffff0000[Siège de Cité]|r La cité de {city} est attaquée ! "
                       "Des défenseurs sont nécessaires !",
        "SIEGE_END": "|cff00ff00[Siège de Cité]|r Le siège de {city} est terminé !",
        "WIN_DEFENDERS": "|cff00ff00[Siège de Cité]|r Les {faction} ont réussi à "
                         "défendre {city} !",
        "WIN_ATTACKERS": "|cffff0000[Siège de Cité]|r Les {faction} ont conquis {city} !",
        "REWARD_GENERIC": "|cff00ff00[Siège de Cité]|r Vous avez été récompensé(e) "
                          "pour avoir défendu {city} !",
    },
}


class Localizer:
    """Resolves a text id for a session locale."""

    def __init__(self, tables: dict[str, dict[str, str]] | None = None) -> None:
        self._tables: dict[str, dict[str, str]] = {
            locale: dict(table) for locale, table in _BUILTIN.items()
        }
        for locale, table in (tables or {}).items():
            self._tables.setdefault(locale, {}).update(table)

    @classmethod
    def from_directory(cls, path: str | Path) -> Localizer:
        """Merge ``<locale>.yaml`` override files found in *path*."""
        directory = Path(path)
        tables: dict[str, dict[str, str]] = {}
        if directory.is_dir():
            for file in sorted(directory.glob("*.yaml")):
                tables[file.stem] = load_strings(file)
                log.info("Loaded %d %s strings from %s", len(tables[file.stem]), file.stem, file)
        return cls(tables)

    @property
    def locales(self) -> list[str]:
        return sorted(self._tables)

    def override(self, locale: str, text_id: TextId, text: str) -> None:
        self._tables.setdefault(locale, {})[text_id.value] = text

    def text(self, locale: str | None, text_id: TextId, **fields: object) -> str:
        """Return the formatted text, falling back to ``enUS``."""
        table = self._tables.get(locale or DEFAULT_LOCALE, {})
        template = table.get(text_id.value) or self._tables[DEFAULT_LOCALE][text_id.value]
        try:
            return template.format(**fields)
        except (KeyError, IndexError):
            log.warning("Text %s for %s has unknown fields", text_id.value, locale)
            return template
