"""
Archetype Catalog and Combatant Factories.

Loads archetypes.json once and builds Combatant instances from it. Every
archetype-specific rule (armor penetration, siege multiplier, on-hit
statuses, AI trait) travels as capability data on the combatant, so the
combat code never branches on archetype names.
"""
from typing import Dict, List, Optional
import logging

from kitchen_defense.core.combatant import (
    ActorState,
    Capabilities,
    CombatStats,
    Combatant,
    Passive,
)
from kitchen_defense.core.errors import UnknownArchetypeError
from kitchen_defense.core.grid import BASE_POINTS
from kitchen_defense.core.rules_config import GameRules, get_rules_config
from kitchen_defense.core.status_effects import StatusEffect
from kitchen_defense.models.catalog import (
    ArchetypeCatalog,
    ArchetypeDefinition,
    StatusEffectSpec,
    read_catalog,
)

logger = logging.getLogger("kitchen_defense.archetypes")

# Cache for the loaded catalog
_archetype_cache: Dict[str, ArchetypeCatalog] = {}


def load_archetype_catalog() -> ArchetypeCatalog:
    """Load archetypes.json (cached after the first call)."""
    if "catalog" not in _archetype_cache:
        _archetype_cache["catalog"] = read_catalog("archetypes.json", ArchetypeCatalog)
    return _archetype_cache["catalog"]


def clear_archetype_cache() -> None:
    """Drop the cached catalog so the next call re-reads the file."""
    _archetype_cache.clear()


def get_archetype(name: str) -> ArchetypeDefinition:
    """
    Look up an archetype by name.

    Raises:
        UnknownArchetypeError: If the catalog has no such archetype
    """
    for definition in load_archetype_catalog().archetypes:
        if definition.name == name:
            return definition
    raise UnknownArchetypeError(name)


def to_status_effect(spec: Optional[StatusEffectSpec]) -> Optional[StatusEffect]:
    """Convert a catalog status entry into a runtime StatusEffect."""
    if spec is None:
        return None
    return StatusEffect(effect_type=spec.type, duration=spec.duration, magnitude=spec.magnitude)


def create_combatant(
    archetype: str,
    combatant_id: str,
    rules: Optional[GameRules] = None,
) -> Combatant:
    """
    Build a fresh combatant from an archetype.

    The combatant starts BENCHED with no position; callers place it.

    Args:
        archetype: Archetype name as listed in archetypes.json
        combatant_id: Unique id for the new combatant
        rules: Rules supplying the death cooldown and shred cap

    Returns:
        New Combatant at full hp
    """
    rules = rules or get_rules_config()
    definition = get_archetype(archetype)
    block = definition.stats

    return Combatant(
        id=combatant_id,
        name=definition.name,
        faction=definition.faction,
        stats=CombatStats(
            max_hp=block.max_hp,
            hp=block.max_hp,
            phys_atk=block.phys_atk,
            mag_atk=block.mag_atk,
            armor=block.armor,
            resist=block.resist,
            move_range=block.move_range,
            attack_range=block.attack_range,
        ),
        passive=(
            Passive(name=definition.passive.name, description=definition.passive.description)
            if definition.passive else None
        ),
        ai_trait=definition.ai_trait,
        capabilities=Capabilities(
            armor_penetration=definition.armor_penetration,
            base_damage_multiplier=definition.base_damage_multiplier,
            on_hit_status=to_status_effect(definition.on_hit_status),
        ),
        is_base=definition.is_base,
        death_cooldown=rules.death_cooldown,
        armor_shred_cap=rules.armor_shred_cap,
    )


def create_base(rules: Optional[GameRules] = None) -> Combatant:
    """Build the base, standing IDLE on its anchor cell."""
    catalog = load_archetype_catalog()
    base_def = next((a for a in catalog.archetypes if a.is_base), None)
    if base_def is None:
        raise UnknownArchetypeError("<base>")

    base = create_combatant(base_def.name, catalog.base_id, rules)
    base.state = ActorState.IDLE
    base.position = BASE_POINTS[0]
    return base


def create_roster(rules: Optional[GameRules] = None) -> List[Combatant]:
    """Build the benched player roster in catalog order."""
    roster = [
        create_combatant(entry.archetype, entry.id, rules)
        for entry in load_archetype_catalog().roster
    ]
    logger.debug(f"Created roster of {len(roster)} units")
    return roster
