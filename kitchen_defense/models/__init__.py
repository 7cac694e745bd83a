# Static Catalog Models

from .catalog import (
    AreaDamageEffect,
    AreaShape,
    ArchetypeCatalog,
    ArchetypeDefinition,
    DamageType,
    DoubleHitEffect,
    PassiveSpec,
    RecipeCatalog,
    RecipeDefinition,
    RosterEntry,
    SpawnOrder,
    StatBlock,
    StatusEffectSpec,
    TargetMode,
    WaveDefinition,
    WaveSchedule,
    read_catalog,
)

__all__ = [
    # Archetypes
    "ArchetypeCatalog",
    "ArchetypeDefinition",
    "PassiveSpec",
    "RosterEntry",
    "StatBlock",
    "StatusEffectSpec",
    # Recipes
    "AreaDamageEffect",
    "AreaShape",
    "DamageType",
    "DoubleHitEffect",
    "RecipeCatalog",
    "RecipeDefinition",
    "TargetMode",
    # Waves
    "SpawnOrder",
    "WaveDefinition",
    "WaveSchedule",
    # Loading
    "read_catalog",
]
