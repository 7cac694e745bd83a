"""
Rules Configuration System.

Holds the tunable numbers of the simulation: heat economy, cooldowns,
deployment limits and the victory turn. The engine reads the active
configuration once at construction, so a running game is never affected by
later changes.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
import logging

from kitchen_defense.config import get_settings

logger = logging.getLogger("kitchen_defense.rules")


@dataclass
class GameRules:
    """
    Configuration for a single level.

    Default values reproduce the first prototype level.
    """
    # Board
    grid_width: int = 12
    grid_height: int = 12

    # Heat economy
    starting_heat: int = 30
    max_heat: int = 100
    heat_per_unit_hit: int = 5
    heat_per_base_hit: int = 10
    heat_per_kill: int = 15

    # Lifecycle
    death_cooldown: int = 2
    bench_heal_fraction: float = 0.25
    residual_heat_turns: int = 1

    # Deployment
    deployment_unit_count: int = 4
    max_field_units: int = 5

    # Level flow
    victory_turn: int = 8
    greedy_lookahead: int = 20

    # Status effects
    armor_shred_cap: int = 30

    # Reject every mutating command once the game has been won or lost
    terminal_lock: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameRules":
        """Create config from dictionary, ignoring unknown keys."""
        defaults = cls()
        values = {
            key: data.get(key, getattr(defaults, key))
            for key in defaults.to_dict()
        }
        return cls(**values)


# Preset configurations for quick setup
PRESET_CONFIGS = {
    "standard": GameRules(),
    # Generous economy for exercising recipes by hand
    "sandbox": GameRules(
        starting_heat=100,
        heat_per_unit_hit=20,
        heat_per_kill=30,
        death_cooldown=1,
        max_field_units=8,
    ),
}


# Global rules configuration instance
_current_config: Optional[GameRules] = None


def get_rules_config() -> GameRules:
    """Get the current rules configuration."""
    global _current_config
    if _current_config is None:
        preset = get_settings().RULES_PRESET
        if preset not in PRESET_CONFIGS:
            logger.warning(f"Unknown rules preset '{preset}', using 'standard'")
            preset = "standard"
        _current_config = PRESET_CONFIGS[preset]
    return _current_config


def set_rules_config(config: GameRules) -> None:
    """Set the current rules configuration."""
    global _current_config
    _current_config = config


def reset_rules_config() -> None:
    """Reset to default rules configuration."""
    global _current_config
    _current_config = GameRules()


def apply_preset(preset_name: str) -> bool:
    """
    Apply a preset configuration.

    Args:
        preset_name: One of "standard" or "sandbox"

    Returns:
        True if preset was applied, False if preset name is invalid
    """
    if preset_name not in PRESET_CONFIGS:
        return False

    set_rules_config(PRESET_CONFIGS[preset_name])
    return True


class RulesContext:
    """
    Context manager for temporarily changing rules configuration.

    Example:
        with RulesContext(starting_heat=100):
            engine = GameEngine()
        # Original config is restored
    """

    def __init__(self, **kwargs):
        self.overrides = kwargs
        self.original_config = None

    def __enter__(self):
        self.original_config = get_rules_config()

        new_config_dict = self.original_config.to_dict()
        new_config_dict.update(self.overrides)

        set_rules_config(GameRules.from_dict(new_config_dict))
        return get_rules_config()

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_rules_config(self.original_config)
        return False
