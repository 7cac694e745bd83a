"""
Status Effects.

Timed effects inflicted by attacks and recipes:
- BURN: damage over time, ticked during the environment phase
- ARMOR_SHRED: reduces armor, stacks up to a magnitude cap
- SLOW: reduces move range
- STUN: move range becomes zero

Effects never mutate stats directly. Effective stats are derived on demand
from the base stats plus the active effects (see apply_status_modifiers).
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Any, Iterable, Optional

# Default burn damage when a BURN effect carries no magnitude
DEFAULT_BURN_DAMAGE = 15

# Armor shred magnitudes merge up to this value
ARMOR_SHRED_CAP = 30


class StatusEffectType(str, Enum):
    """Kinds of status effect."""
    BURN = "burn"
    ARMOR_SHRED = "armor_shred"
    SLOW = "slow"
    STUN = "stun"


@dataclass
class StatusEffect:
    """A single active effect on a combatant."""
    effect_type: StatusEffectType
    duration: int  # Turns remaining
    magnitude: Optional[int] = None  # Armor reduction, move reduction or burn damage

    @property
    def value(self) -> int:
        return self.magnitude or 0

    def copy(self) -> "StatusEffect":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.effect_type.value,
            "duration": self.duration,
            "magnitude": self.magnitude,
        }


def merge_status_effect(
    existing: StatusEffect,
    incoming: StatusEffect,
    shred_cap: int = ARMOR_SHRED_CAP,
) -> None:
    """
    Merge an incoming effect into an existing one of the same kind.

    The longer duration wins. Armor shred magnitudes add up to the cap;
    every other kind takes the incoming magnitude.
    """
    existing.duration = max(existing.duration, incoming.duration)
    if existing.effect_type == StatusEffectType.ARMOR_SHRED:
        existing.magnitude = min(shred_cap, existing.value + incoming.value)
    else:
        existing.magnitude = incoming.magnitude


def apply_status_modifiers(stats, effects: Iterable[StatusEffect]):
    """
    Derive effective stats from base stats and active effects.

    Args:
        stats: CombatStats to derive from (left untouched)
        effects: Active status effects

    Returns:
        A new CombatStats with the modifiers applied
    """
    effective = stats.copy()
    for effect in effects:
        if effect.effect_type == StatusEffectType.ARMOR_SHRED:
            effective.armor = max(0, effective.armor - effect.value)
        elif effect.effect_type == StatusEffectType.SLOW:
            effective.move_range = max(0, effective.move_range - effect.value)
        elif effect.effect_type == StatusEffectType.STUN:
            effective.move_range = 0
    return effective


def get_burn_damage(effects: Iterable[StatusEffect]) -> int:
    """Damage dealt by the BURN effect this tick, 0 when not burning."""
    for effect in effects:
        if effect.effect_type == StatusEffectType.BURN:
            return effect.magnitude or DEFAULT_BURN_DAMAGE
    return 0
