"""Tests for the rules configuration system."""
import logging
from types import SimpleNamespace

import pytest

from kitchen_defense.config import configure_logging
from kitchen_defense.core import rules_config
from kitchen_defense.core.game_engine import GameEngine
from kitchen_defense.core.rules_config import (
    GameRules,
    PRESET_CONFIGS,
    RulesContext,
    apply_preset,
    get_rules_config,
    reset_rules_config,
    set_rules_config,
)


class TestGameRules:
    """Test the GameRules dataclass."""

    def test_default_config(self):
        """Defaults reproduce the first level."""
        rules = GameRules()
        assert (rules.grid_width, rules.grid_height) == (12, 12)
        assert rules.starting_heat == 30
        assert rules.max_heat == 100
        assert rules.heat_per_unit_hit == 5
        assert rules.heat_per_base_hit == 10
        assert rules.heat_per_kill == 15
        assert rules.death_cooldown == 2
        assert rules.bench_heal_fraction == 0.25
        assert rules.max_field_units == 5
        assert rules.victory_turn == 8
        assert rules.terminal_lock is True

    def test_to_dict(self):
        data = GameRules().to_dict()
        assert data["starting_heat"] == 30
        assert data["armor_shred_cap"] == 30

    def test_from_dict(self):
        rules = GameRules.from_dict({"starting_heat": 50, "max_field_units": 6})
        assert rules.starting_heat == 50
        assert rules.max_field_units == 6
        assert rules.max_heat == 100

    def test_from_dict_ignores_unknown_keys(self):
        rules = GameRules.from_dict({"starting_heat": 40, "flanking": True})
        assert rules.starting_heat == 40
        assert not hasattr(rules, "flanking")


class TestGlobalConfig:
    """Global config management."""

    def test_set_and_get(self):
        custom = GameRules(starting_heat=80)
        set_rules_config(custom)
        assert get_rules_config() is custom

    def test_reset(self):
        set_rules_config(GameRules(starting_heat=80))
        reset_rules_config()
        assert get_rules_config().starting_heat == 30

    def test_unknown_env_preset_falls_back(self, monkeypatch, caplog):
        monkeypatch.setattr(rules_config, "_current_config", None)
        monkeypatch.setattr(
            rules_config, "get_settings", lambda: SimpleNamespace(RULES_PRESET="nightmare"),
        )

        with caplog.at_level(logging.WARNING, logger="kitchen_defense.rules"):
            rules = get_rules_config()

        assert rules == PRESET_CONFIGS["standard"]
        assert "nightmare" in caplog.text

    def test_env_preset(self, monkeypatch):
        monkeypatch.setattr(rules_config, "_current_config", None)
        monkeypatch.setattr(
            rules_config, "get_settings", lambda: SimpleNamespace(RULES_PRESET="sandbox"),
        )
        assert get_rules_config().starting_heat == 100


class TestPresets:

    @pytest.mark.parametrize("name", ["standard", "sandbox"])
    def test_apply_preset(self, name):
        assert apply_preset(name) is True
        assert get_rules_config() == PRESET_CONFIGS[name]

    def test_apply_invalid_preset(self):
        assert apply_preset("hardcore") is False
        assert get_rules_config().starting_heat == 30

    def test_sandbox_values(self):
        sandbox = PRESET_CONFIGS["sandbox"]
        assert sandbox.starting_heat == 100
        assert sandbox.death_cooldown == 1
        assert sandbox.max_field_units == 8


class TestRulesContext:

    def test_overrides_and_restores(self):
        original = get_rules_config()
        with RulesContext(starting_heat=90, death_cooldown=3) as rules:
            assert rules.starting_heat == 90
            assert get_rules_config().death_cooldown == 3
        assert get_rules_config() is original

    def test_restores_on_error(self):
        original = get_rules_config()
        with pytest.raises(RuntimeError):
            with RulesContext(starting_heat=90):
                raise RuntimeError("boom")
        assert get_rules_config() is original

    def test_engine_reads_active_rules(self):
        """An engine built without explicit rules uses the active config."""
        with RulesContext(starting_heat=70, death_cooldown=1):
            engine = GameEngine(wave_schedule={})
        assert engine.heat == 70
        assert engine.entities["h1"].death_cooldown == 1


class TestLoggingSetup:

    def test_configure_logging_level(self):
        package_logger = logging.getLogger("kitchen_defense")
        previous = package_logger.level
        try:
            configure_logging("debug")
            assert package_logger.level == logging.DEBUG
            configure_logging("warning")
            assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(previous)
