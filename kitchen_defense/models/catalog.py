"""
Static Catalog - Data Models.

Pydantic models for the read-only game data shipped in kitchen_defense/data:
archetypes (unit templates and the starting roster), recipes and the wave
schedule. Recipe effects are tagged variants interpreted by the recipe
engine, so adding a recipe is a data change.
"""
from enum import Enum
from pathlib import Path
from typing import Annotated, List, Optional, Literal, Union, Type, TypeVar
import json
import logging

from pydantic import BaseModel, Field, ValidationError

from kitchen_defense.config import get_settings
from kitchen_defense.core.combatant import AITrait, Faction
from kitchen_defense.core.errors import DataLoadError
from kitchen_defense.core.status_effects import StatusEffectType

logger = logging.getLogger("kitchen_defense.catalog")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

ModelT = TypeVar("ModelT", bound=BaseModel)


class DamageType(str, Enum):
    """Damage formulas."""
    PHYSICAL = "physical"
    MAGIC = "magic"
    TRUE_DAMAGE = "true_damage"


class TargetMode(str, Enum):
    """How a recipe picks where it lands."""
    ANCHOR_AOE = "anchor_aoe"          # Fixed footprint around a point
    SINGLE_TARGET = "single_target"    # One enemy at a point
    GLOBAL_AOE = "global_aoe"          # Whole board, no target point


class AreaShape(str, Enum):
    """Footprint shapes."""
    SQUARE = "square"    # Chebyshev distance <= radius
    DIAMOND = "diamond"  # Manhattan distance <= radius
    GLOBAL = "global"    # Every cell


# =============================================================================
# ARCHETYPES
# =============================================================================

class StatBlock(BaseModel):
    """Base stats of an archetype."""
    max_hp: int = Field(gt=0)
    phys_atk: int = Field(default=0, ge=0)
    mag_atk: int = Field(default=0, ge=0)
    armor: int = Field(default=0, ge=0)
    resist: int = Field(default=0, ge=0)
    move_range: int = Field(default=0, ge=0)
    attack_range: int = Field(default=1, ge=0)


class StatusEffectSpec(BaseModel):
    """A status effect to inflict."""
    type: StatusEffectType
    duration: int = Field(ge=1)
    magnitude: Optional[int] = None


class PassiveSpec(BaseModel):
    name: str
    description: str = ""


class ArchetypeDefinition(BaseModel):
    """A named unit template."""
    name: str
    faction: Faction
    stats: StatBlock
    ai_trait: AITrait = AITrait.DEFAULT
    armor_penetration: float = Field(default=0.0, ge=0.0, le=1.0)
    base_damage_multiplier: float = Field(default=1.0, ge=0.0)
    on_hit_status: Optional[StatusEffectSpec] = None
    passive: Optional[PassiveSpec] = None
    is_base: bool = False


class RosterEntry(BaseModel):
    id: str
    archetype: str


class ArchetypeCatalog(BaseModel):
    """Contents of archetypes.json."""
    base_id: str = "base_01"
    archetypes: List[ArchetypeDefinition]
    roster: List[RosterEntry] = []


# =============================================================================
# RECIPES
# =============================================================================

class AreaDamageEffect(BaseModel):
    """Pooled-stat damage over the recipe footprint."""
    kind: Literal["area_damage"]
    pooled_stat: Literal["phys_atk", "mag_atk"]
    damage_type: DamageType
    coefficient: float = Field(gt=0)
    survivor_status: Optional[StatusEffectSpec] = None


class DoubleHitEffect(BaseModel):
    """Independent physical and magic hits on a single enemy, summed."""
    kind: Literal["double_hit"]
    physical_source: str  # Archetype whose phys_atk drives the physical hit
    magic_source: str     # Archetype whose mag_atk drives the magic hit
    coefficient: float = Field(default=2.0, gt=0)
    survivor_status: Optional[StatusEffectSpec] = None


EffectScript = Annotated[Union[AreaDamageEffect, DoubleHitEffect], Field(discriminator="kind")]


class RecipeDefinition(BaseModel):
    """A combo requiring a connected group of archetypes plus heat."""
    id: str
    name: str
    description: str = ""
    ingredients: List[str] = Field(min_length=1)
    heat_cost: int = Field(ge=0)
    target_mode: TargetMode
    cast_range: int = Field(default=0, ge=0)
    aoe_radius: int = Field(default=0, ge=0)
    aoe_shape: AreaShape = AreaShape.DIAMOND
    effect: EffectScript

    @property
    def needs_target(self) -> bool:
        return self.target_mode != TargetMode.GLOBAL_AOE


class RecipeCatalog(BaseModel):
    """Contents of recipes.json."""
    recipes: List[RecipeDefinition]


# =============================================================================
# WAVES
# =============================================================================

class SpawnOrder(BaseModel):
    archetype: str
    x: int = Field(ge=0)
    y: int = Field(ge=0)


class WaveDefinition(BaseModel):
    """Enemies appearing at the end of a given turn."""
    turn: int = Field(ge=0)
    label: str = ""
    spawns: List[SpawnOrder] = []


class WaveSchedule(BaseModel):
    """Contents of waves.json."""
    waves: List[WaveDefinition]


# =============================================================================
# LOADING
# =============================================================================

def get_data_dir() -> Path:
    """Catalog directory, honouring the KD_DATA_DIR override."""
    override = get_settings().DATA_DIR
    return Path(override) if override else DEFAULT_DATA_DIR


def read_catalog(filename: str, model: Type[ModelT]) -> ModelT:
    """
    Read and validate one catalog file.

    Args:
        filename: File name inside the data directory
        model: Pydantic model describing the file

    Returns:
        The validated model instance

    Raises:
        DataLoadError: When the file is missing, not JSON, or fails validation
    """
    path = get_data_dir() / filename
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataLoadError(str(path), str(e)) from e

    try:
        catalog = model.model_validate(data)
    except ValidationError as e:
        raise DataLoadError(str(path), f"{e.error_count()} validation error(s)") from e

    logger.debug(f"Loaded catalog {path}")
    return catalog
