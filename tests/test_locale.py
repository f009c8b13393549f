"""Tests for localized announcement texts."""

from __future__ import annotations

from citysiege.engine.announcer import Announcer
from citysiege.loaders.config_loader import SiegeConfig
from citysiege.loaders.string_loader import load_strings
from citysiege.util.locale import Localizer, TextId
from citysiege.world.memory import MemoryAudience


class TestLocalizer:
    def test_builtin_locales(self):
        loc = Localizer()
        assert loc.locales == ["enUS", "frFR"]
        assert loc.text("enUS", TextId.WIN_ATTACKERS, faction="Horde", city="Stormwind") == \
            "|cffff0000[City Siege]|r The Horde have conquered Stormwind!"
        assert "Le siège de Exodar est terminé" in loc.text("frFR", TextId.SIEGE_END, city="Exodar")

    def test_unknown_locale_falls_back(self):
        loc = Localizer()
        assert loc.text("koKR", TextId.SIEGE_END, city="Exodar") == \
            loc.text("enUS", TextId.SIEGE_END, city="Exodar")
        assert loc.text(None, TextId.SIEGE_END, city="Exodar") == \
            loc.text("enUS", TextId.SIEGE_END, city="Exodar")

    def test_missing_field_returns_template(self):
        assert "{city}" in Localizer().text("enUS", TextId.SIEGE_END)

    def test_partial_table_falls_back_per_text(self):
        loc = Localizer({"deDE": {"SIEGE_END": "Vorbei: {city}"}})
        assert loc.text("deDE", TextId.SIEGE_END, city="Exodar") == "Vorbei: Exodar"
        assert loc.text("deDE", TextId.SIEGE_START, city="Exodar") == \
            loc.text("enUS", TextId.SIEGE_START, city="Exodar")

    def test_override(self):
        loc = Localizer()
        loc.override("enUS", TextId.SIEGE_END, "Done with {city}")
        assert loc.text("enUS", TextId.SIEGE_END, city="Exodar") == "Done with Exodar"


class TestFromDirectory:
    def test_loads_yaml_tables(self, tmp_path):
        (tmp_path / "esES.yaml").write_text(
            "siege_end: 'Fin de {city}'\nsiege_start: ''\n", encoding="utf-8",
        )
        loc = Localizer.from_directory(tmp_path)
        assert "esES" in loc.locales
        assert loc.text("esES", TextId.SIEGE_END, city="Exodar") == "Fin de Exodar"
        assert loc.text("esES", TextId.SIEGE_START, city="Exodar").startswith(
            "|cffff0000[City Siege]|r")

    def test_missing_directory(self, tmp_path):
        assert Localizer.from_directory(tmp_path / "missing").locales == ["enUS", "frFR"]

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- one\n", encoding="utf-8")
        assert load_strings(path) == {}


class TestMessageOverrides:
    def test_cityname_placeholder_maps_to_city_field(self):
        config = SiegeConfig(message_siege_start="{CITYNAME} burns!")
        announcer = Announcer(config, MemoryAudience())
        assert announcer.localizer.text("enUS", TextId.SIEGE_START, city="Exodar") == "Exodar burns!"
        assert "Exodar" in announcer.localizer.text("frFR", TextId.SIEGE_START, city="Exodar")
