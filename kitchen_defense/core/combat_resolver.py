"""
Combat Resolver.

Damage formulas and one-directional hit resolution (there is no counter
attack). Heat gain and the death handler belong to the game engine and are
passed in as callables.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging
import math

from kitchen_defense.core.combatant import ActorState, Combatant, Faction
from kitchen_defense.core.rules_config import GameRules, get_rules_config
from kitchen_defense.models.catalog import DamageType

logger = logging.getLogger("kitchen_defense.combat")


def calculate_damage(
    attacker,
    defender,
    damage_type: DamageType,
    coefficient: float = 1.0,
    armor_penetration: float = 0.0,
) -> int:
    """
    Calculate the damage of a single hit.

    Uses effective stats on both sides. The attacker may be any object with
    an `effective_stats` attribute (recipes pool several units into one).

    Args:
        attacker: Source of the hit
        defender: Receiver of the hit
        damage_type: PHYSICAL, MAGIC or TRUE_DAMAGE
        coefficient: Multiplier on the attacking stat
        armor_penetration: Fraction of armor ignored (physical only)

    Returns:
        Damage, never below 1
    """
    atk = attacker.effective_stats
    dfn = defender.effective_stats

    if damage_type == DamageType.TRUE_DAMAGE:
        raw = (atk.phys_atk + atk.mag_atk) * coefficient
    elif damage_type == DamageType.PHYSICAL:
        raw = atk.phys_atk * coefficient - dfn.armor * (1 - armor_penetration)
    else:
        raw = atk.mag_atk * coefficient - dfn.resist

    return max(1, math.floor(raw))


def select_damage_type(attacker: Combatant) -> DamageType:
    """Basic attacks use the stronger stat; ties are physical."""
    stats = attacker.effective_stats
    return DamageType.PHYSICAL if stats.phys_atk >= stats.mag_atk else DamageType.MAGIC


@dataclass
class AttackOutcome:
    """What a single basic attack did."""
    attacker_id: str
    defender_id: str
    damage: int
    damage_type: DamageType
    killed: bool = False
    status_applied: Optional[str] = None
    heat_gained: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attacker_id": self.attacker_id,
            "defender_id": self.defender_id,
            "damage": self.damage,
            "damage_type": self.damage_type.value,
            "killed": self.killed,
            "status_applied": self.status_applied,
            "heat_gained": self.heat_gained,
        }


class CombatResolver:
    """
    Resolves basic attacks.

    Args:
        add_heat: Grants heat to the player
        kill: Death handler run on the hit that drops a combatant to 0 hp
        rules: Heat values per hit
    """

    def __init__(
        self,
        add_heat: Callable[[int], None],
        kill: Callable[[Combatant], None],
        rules: Optional[GameRules] = None,
    ):
        self.add_heat = add_heat
        self.kill = kill
        self.rules = rules or get_rules_config()

    def heat_for_hit(self, attacker: Combatant) -> int:
        if attacker.is_base:
            return self.rules.heat_per_base_hit
        if attacker.faction == Faction.PLAYER:
            return self.rules.heat_per_unit_hit
        return 0

    def process_attack_resolution(self, attacker: Combatant, defender: Combatant) -> AttackOutcome:
        """
        Resolve one hit from attacker to defender.

        Damage is computed against the defender as it stands; the on-hit
        status is applied afterwards. The attacker ends ACTIONED.
        """
        caps = attacker.capabilities
        damage_type = select_damage_type(attacker)

        damage = calculate_damage(
            attacker, defender, damage_type,
            armor_penetration=caps.armor_penetration if damage_type == DamageType.PHYSICAL else 0.0,
        )
        if defender.is_base:
            damage = math.floor(damage * caps.base_damage_multiplier)

        # Lands after the damage is fixed, so it only affects later hits
        status_applied = None
        if caps.on_hit_status:
            defender.add_status_effect(caps.on_hit_status)
            status_applied = caps.on_hit_status.effect_type.value

        killed = defender.take_damage(damage)

        heat = self.heat_for_hit(attacker)
        if heat:
            self.add_heat(heat)

        logger.debug(
            f"{attacker.name} ({attacker.id}) hits {defender.name} ({defender.id}) "
            f"for {damage} {damage_type.value}"
        )

        if killed:
            self.kill(defender)

        attacker.state = ActorState.ACTIONED

        return AttackOutcome(
            attacker_id=attacker.id,
            defender_id=defender.id,
            damage=damage,
            damage_type=damage_type,
            killed=killed,
            status_applied=status_applied,
            heat_gained=heat,
        )
