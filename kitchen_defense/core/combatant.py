"""
Combatant Model.

Player units, enemies and the base share one dataclass. Base stats are the
only stored numbers; effective stats are recomputed from the active status
effects every time they are read.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Dict, Any
import logging

from kitchen_defense.core.grid import Point
from kitchen_defense.core.status_effects import (
    ARMOR_SHRED_CAP,
    StatusEffect,
    StatusEffectType,
    apply_status_modifiers,
    merge_status_effect,
)

logger = logging.getLogger("kitchen_defense.combatant")

BASE_ID = "base_01"


class Faction(str, Enum):
    """Side a combatant fights for."""
    PLAYER = "player"
    ENEMY = "enemy"


class ActorState(str, Enum):
    """Lifecycle state of a combatant."""
    IDLE = "idle"
    MOVED = "moved"
    ACTIONED = "actioned"
    BENCHED = "benched"
    DEAD = "dead"


class AITrait(str, Enum):
    """Enemy targeting behaviour."""
    DEFAULT = "default"
    SIEGE = "siege"
    BLOODHOUND = "bloodhound"  # Hunts the weakest player unit


# States in which a combatant stands on the board
DEPLOYED_STATES = (ActorState.IDLE, ActorState.MOVED, ActorState.ACTIONED)


@dataclass
class CombatStats:
    """Numeric stat block."""
    max_hp: int
    hp: int
    phys_atk: int = 0
    mag_atk: int = 0
    armor: int = 0
    resist: int = 0
    move_range: int = 0
    attack_range: int = 1

    def copy(self) -> "CombatStats":
        return replace(self)

    def to_dict(self) -> Dict[str, int]:
        return {
            "max_hp": self.max_hp,
            "hp": self.hp,
            "phys_atk": self.phys_atk,
            "mag_atk": self.mag_atk,
            "armor": self.armor,
            "resist": self.resist,
            "move_range": self.move_range,
            "attack_range": self.attack_range,
        }


@dataclass
class Passive:
    """Flavour description of an archetype's passive."""
    name: str
    description: str


@dataclass
class Capabilities:
    """
    Archetype-specific combat modifiers.

    Attributes:
        armor_penetration: Fraction of the defender's armor ignored on basic attacks
        base_damage_multiplier: Damage multiplier when hitting the base
        on_hit_status: Effect inflicted on every basic-attack hit
    """
    armor_penetration: float = 0.0
    base_damage_multiplier: float = 1.0
    on_hit_status: Optional[StatusEffect] = None


@dataclass
class Combatant:
    """
    A unit on (or off) the board.

    Attributes:
        id: Unique identifier
        name: Archetype name
        faction: PLAYER or ENEMY
        stats: Base stats (hp is the only field that changes during play)
        state: Lifecycle state
        position: Board point, None while benched or dead
        cooldown: Turns until a dead unit returns to the bench
        status_effects: Active effects, at most one per kind
    """
    id: str
    name: str
    faction: Faction
    stats: CombatStats
    state: ActorState = ActorState.BENCHED
    position: Optional[Point] = None
    cooldown: int = 0
    status_effects: List[StatusEffect] = field(default_factory=list)
    passive: Optional[Passive] = None
    ai_trait: AITrait = AITrait.DEFAULT
    capabilities: Capabilities = field(default_factory=Capabilities)
    is_base: bool = False
    death_cooldown: int = 2
    armor_shred_cap: int = ARMOR_SHRED_CAP

    # =========================================================================
    # DERIVED STATE
    # =========================================================================

    @property
    def effective_stats(self) -> CombatStats:
        """Base stats with every active status effect applied."""
        return apply_status_modifiers(self.stats, self.status_effects)

    @property
    def is_alive(self) -> bool:
        return self.stats.hp > 0

    @property
    def is_deployed(self) -> bool:
        return self.position is not None and self.state in DEPLOYED_STATES

    def get_status_effect(self, effect_type: StatusEffectType) -> Optional[StatusEffect]:
        for effect in self.status_effects:
            if effect.effect_type == effect_type:
                return effect
        return None

    # =========================================================================
    # MUTATION
    # =========================================================================

    def add_status_effect(self, effect: StatusEffect) -> None:
        """Add an effect, merging with an existing one of the same kind."""
        existing = self.get_status_effect(effect.effect_type)
        if existing:
            merge_status_effect(existing, effect, self.armor_shred_cap)
        else:
            self.status_effects.append(effect.copy())

    def tick_status_effects(self) -> None:
        """Count every effect down by one turn and drop the expired ones."""
        for effect in self.status_effects:
            effect.duration -= 1
        self.status_effects = [e for e in self.status_effects if e.duration > 0]

    def take_damage(self, amount: float) -> bool:
        """
        Apply damage, clamping hp at 0.

        Returns:
            True only when this call took the combatant from alive to 0 hp
        """
        if self.stats.hp <= 0:
            return False
        self.stats.hp = max(0, self.stats.hp - amount)
        if self.stats.hp == 0:
            self.handle_death()
            return True
        return False

    def heal(self, amount: int) -> None:
        """Heal up to max hp. Dead combatants cannot be healed this way."""
        if self.state != ActorState.DEAD:
            self.restore_hp(amount)

    def restore_hp(self, amount: int) -> None:
        """Heal up to max hp regardless of lifecycle state."""
        self.stats.hp = min(self.stats.max_hp, self.stats.hp + amount)

    def handle_death(self) -> None:
        self.state = ActorState.DEAD
        self.cooldown = self.death_cooldown
        # The base never leaves its footprint
        if not self.is_base:
            self.position = None
        logger.debug(f"{self.name} ({self.id}) died")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the presentation layer."""
        return {
            "id": self.id,
            "name": self.name,
            "faction": self.faction.value,
            "state": self.state.value,
            "position": list(self.position) if self.position else None,
            "cooldown": self.cooldown,
            "stats": self.stats.to_dict(),
            "effective_stats": self.effective_stats.to_dict(),
            "status_effects": [e.to_dict() for e in self.status_effects],
            "passive": (
                {"name": self.passive.name, "description": self.passive.description}
                if self.passive else None
            ),
            "ai_trait": self.ai_trait.value if self.faction == Faction.ENEMY else None,
        }
