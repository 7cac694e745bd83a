"""
Recipe (Combo) Engine.

A recipe fires when a connected group of player units covering its
ingredient archetypes exists on the board and the player has enough heat.
Every participant is sacrificed afterwards: it leaves the board, goes on
cooldown and leaves a residual heat marker on the cell it vacated.

Recipe effects are tagged scripts from recipes.json:
- area_damage: pooled stat damage over a footprint around the target point
- double_hit: a physical and a magic hit on one enemy, summed
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Set
import logging

from kitchen_defense.core.archetypes import to_status_effect
from kitchen_defense.core.combat_resolver import calculate_damage
from kitchen_defense.core.combatant import ActorState, CombatStats, Combatant, Faction
from kitchen_defense.core.errors import UnknownRecipeError
from kitchen_defense.core.grid import (
    DIRECTIONS,
    Board,
    Point,
    chebyshev_distance,
    manhattan_distance,
)
from kitchen_defense.core.rules_config import GameRules, get_rules_config
from kitchen_defense.models.catalog import (
    AreaDamageEffect,
    AreaShape,
    DamageType,
    DoubleHitEffect,
    RecipeCatalog,
    RecipeDefinition,
    StatusEffectSpec,
    TargetMode,
    read_catalog,
)

logger = logging.getLogger("kitchen_defense.recipes")

# Cache for the loaded catalog
_recipe_cache: Dict[str, RecipeCatalog] = {}


def load_recipes() -> List[RecipeDefinition]:
    """Load recipes.json (cached after the first call)."""
    if "catalog" not in _recipe_cache:
        _recipe_cache["catalog"] = read_catalog("recipes.json", RecipeCatalog)
    return _recipe_cache["catalog"].recipes


def clear_recipe_cache() -> None:
    _recipe_cache.clear()


def get_recipe(recipe_id: str, recipes: Optional[List[RecipeDefinition]] = None) -> RecipeDefinition:
    """
    Look up a recipe by id.

    Args:
        recipe_id: Recipe to find
        recipes: Catalog to search (defaults to recipes.json)

    Raises:
        UnknownRecipeError: If no recipe has this id
    """
    for recipe in (recipes if recipes is not None else load_recipes()):
        if recipe.id == recipe_id:
            return recipe
    raise UnknownRecipeError(recipe_id)


# =============================================================================
# MATCHING
# =============================================================================

@dataclass
class RecipeMatch:
    """
    A recipe evaluated for one initiator.

    Attributes:
        recipe: The recipe definition
        participants: Chosen units, initiator first (may be partial)
        is_available: True when nothing is missing
        missing: Human-readable reasons the recipe cannot fire
    """
    recipe: RecipeDefinition
    participants: List[Combatant]
    is_available: bool
    missing: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipe_id": self.recipe.id,
            "name": self.recipe.name,
            "heat_cost": self.recipe.heat_cost,
            "target_mode": self.recipe.target_mode.value,
            "participants": [p.id for p in self.participants],
            "is_available": self.is_available,
            "missing": list(self.missing),
        }


@dataclass
class RecipeOutcome:
    """What executing a recipe did."""
    recipe_id: str
    executed: bool
    damage_by_target: Dict[str, int] = field(default_factory=dict)
    killed: List[str] = field(default_factory=list)
    sacrificed: List[str] = field(default_factory=list)

    @property
    def total_damage(self) -> int:
        return sum(self.damage_by_target.values())


class PooledAttacker:
    """Stand-in attacker whose stats are the sum of several units."""

    def __init__(self, phys_atk: int = 0, mag_atk: int = 0):
        self.effective_stats = CombatStats(
            max_hp=1, hp=1, phys_atk=phys_atk, mag_atk=mag_atk,
        )


def is_participant_group_connected(participants: List[Combatant]) -> bool:
    """
    Check that participants form one orthogonally connected group.

    Only the participants' own cells are walked, so a bystander between two
    participants does not connect them.
    """
    if len(participants) <= 1:
        return True
    if any(p.position is None for p in participants):
        return False

    positions: Set[Point] = {p.position for p in participants}
    start = participants[0].position
    visited: Set[Point] = {start}
    queue: Deque[Point] = deque([start])

    while queue:
        x, y = queue.popleft()
        for dx, dy in DIRECTIONS:
            neighbor = (x + dx, y + dy)
            if neighbor in positions and neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)

    return len(visited) == len(positions)


class RecipeEngine:
    """
    Finds and executes recipes.

    The engine owns nothing: board, combatants and heat are reached through
    the callables handed in by the game engine.

    Args:
        board: Shared board
        get_combatant: Lookup by id
        iter_combatants: Snapshot of every combatant in the entity table
        get_heat: Current heat
        consume_heat: Spend heat, returns False when short
        kill: Death handler
        rules: Residual marker and cooldown values
        recipes: Catalog override (defaults to recipes.json)
    """

    def __init__(
        self,
        board: Board,
        get_combatant: Callable[[str], Optional[Combatant]],
        iter_combatants: Callable[[], Iterable[Combatant]],
        get_heat: Callable[[], int],
        consume_heat: Callable[[int], bool],
        kill: Callable[[Combatant], None],
        rules: Optional[GameRules] = None,
        recipes: Optional[List[RecipeDefinition]] = None,
    ):
        self.board = board
        self.get_combatant = get_combatant
        self.iter_combatants = iter_combatants
        self.get_heat = get_heat
        self.consume_heat = consume_heat
        self.kill = kill
        self.rules = rules or get_rules_config()
        self.recipes = recipes if recipes is not None else load_recipes()

    def _is_recipe_member(self, combatant: Optional[Combatant]) -> bool:
        return (
            combatant is not None
            and combatant.faction == Faction.PLAYER
            and not combatant.is_base
        )

    def find_connected_allies(self, start: Point) -> List[Combatant]:
        """
        Flood-fill the player units connected to a start cell.

        Only cells holding a non-base player unit are expanded. Enemy and
        base cells end the fill, so a unit behind an enemy is not found.

        Returns:
            Connected units in discovery order, the start occupant first
        """
        group: List[Combatant] = []
        visited: Set[Point] = {start}
        queue: Deque[Point] = deque([start])

        while queue:
            current = queue.popleft()
            occupant_id = self.board.get_occupant(current)
            actor = self.get_combatant(occupant_id) if occupant_id else None
            if not self._is_recipe_member(actor):
                continue

            group.append(actor)
            for neighbor in self.board.get_adjacent_points(current):
                if neighbor not in visited and self.board.get_occupant(neighbor):
                    visited.add(neighbor)
                    queue.append(neighbor)

        return group

    def _match_in_group(
        self,
        initiator: Combatant,
        group: List[Combatant],
        ingredients: List[str],
    ):
        remaining = list(ingredients)
        participants = [initiator]
        used_ids = {initiator.id}
        missing: List[str] = []

        if initiator.name in remaining:
            remaining.remove(initiator.name)

        for requirement in remaining:
            found = next(
                (a for a in group if a.name == requirement and a.id not in used_ids),
                None,
            )
            if found:
                participants.append(found)
                used_ids.add(found.id)
            else:
                missing.append(f"Missing adjacent: {requirement}")

        if not missing and not is_participant_group_connected(participants):
            missing.append("Participants are not orthogonally connected")

        return participants, missing

    def get_available_recipes(self, initiator: Combatant) -> List[RecipeMatch]:
        """
        Evaluate every recipe the initiator can take part in.

        Pure with respect to the game state: calling it twice without a
        mutation in between yields equal results.

        Args:
            initiator: The unit asking

        Returns:
            One RecipeMatch per recipe listing the initiator's archetype,
            empty when the initiator is not a deployed player unit
        """
        if not self._is_recipe_member(initiator) or not initiator.is_deployed:
            return []

        group = self.find_connected_allies(initiator.position)
        heat = self.get_heat()
        matches = []

        for recipe in self.recipes:
            if initiator.name not in recipe.ingredients:
                continue

            participants, missing = self._match_in_group(initiator, group, recipe.ingredients)
            if heat < recipe.heat_cost:
                missing.append(f"Not enough heat (requires {recipe.heat_cost})")

            matches.append(RecipeMatch(
                recipe=recipe,
                participants=participants,
                is_available=not missing,
                missing=missing,
            ))

        return matches

    # =========================================================================
    # TARGETING PREVIEW
    # =========================================================================

    def get_valid_target_points(
        self,
        recipe: RecipeDefinition,
        participants: List[Combatant],
    ) -> List[Point]:
        """Cells within cast range of at least one participant (row-major)."""
        if not recipe.needs_target:
            return []
        origins = [p.position for p in participants if p.position]
        return [
            cell.position for cell in self.board.iter_cells()
            if any(manhattan_distance(o, cell.position) <= recipe.cast_range for o in origins)
        ]

    def get_area_points(self, recipe: RecipeDefinition, target: Optional[Point]) -> List[Point]:
        """Cells a recipe would hit when aimed at target."""
        if recipe.target_mode == TargetMode.GLOBAL_AOE or recipe.aoe_shape == AreaShape.GLOBAL:
            return [cell.position for cell in self.board.iter_cells()]
        if target is None:
            return []
        if recipe.target_mode == TargetMode.SINGLE_TARGET:
            return [target] if self.board.get_cell(target) else []

        if recipe.aoe_shape == AreaShape.SQUARE:
            distance = chebyshev_distance
        else:
            distance = manhattan_distance
        return [
            cell.position for cell in self.board.iter_cells()
            if distance(target, cell.position) <= recipe.aoe_radius
        ]

    # =========================================================================
    # EXECUTION
    # =========================================================================

    def execute_recipe(
        self,
        recipe: RecipeDefinition,
        participants: List[Combatant],
        target: Optional[Point] = None,
    ) -> RecipeOutcome:
        """
        Spend heat, resolve the effect and sacrifice the participants.

        A point-targeted recipe aimed outside cast range does nothing, but
        the heat is still spent and the participants are still sacrificed.

        Returns:
            RecipeOutcome; executed is False when heat was insufficient
        """
        outcome = RecipeOutcome(recipe_id=recipe.id, executed=False)
        if not self.consume_heat(recipe.heat_cost):
            logger.debug(f"{recipe.id} aborted: not enough heat")
            return outcome

        outcome.executed = True
        self._resolve_effect(recipe, participants, target, outcome)
        self._sacrifice(participants, outcome)

        logger.info(
            f"{recipe.name} fired by {[p.id for p in participants]}: "
            f"{outcome.total_damage} damage, {len(outcome.killed)} killed"
        )
        return outcome

    def _in_cast_range(self, recipe: RecipeDefinition, participants: List[Combatant], target: Point) -> bool:
        return any(
            p.position and manhattan_distance(p.position, target) <= recipe.cast_range
            for p in participants
        )

    def _resolve_effect(
        self,
        recipe: RecipeDefinition,
        participants: List[Combatant],
        target: Optional[Point],
        outcome: RecipeOutcome,
    ) -> None:
        if recipe.needs_target:
            if target is None or not self._in_cast_range(recipe, participants, target):
                logger.debug(f"{recipe.id} target {target} out of range, no effect")
                return

        effect = recipe.effect
        if isinstance(effect, AreaDamageEffect):
            self._resolve_area_damage(recipe, effect, participants, target, outcome)
        elif isinstance(effect, DoubleHitEffect):
            self._resolve_double_hit(effect, participants, target, outcome)

    def _resolve_area_damage(
        self,
        recipe: RecipeDefinition,
        effect: AreaDamageEffect,
        participants: List[Combatant],
        target: Optional[Point],
        outcome: RecipeOutcome,
    ) -> None:
        pooled = sum(getattr(p.effective_stats, effect.pooled_stat) for p in participants)
        attacker = PooledAttacker(**{effect.pooled_stat: pooled})
        area = set(self.get_area_points(recipe, target))

        victims = [
            c for c in self.iter_combatants()
            if c.faction == Faction.ENEMY and c.is_alive and c.position in area
        ]
        for enemy in victims:
            damage = calculate_damage(attacker, enemy, effect.damage_type, effect.coefficient)
            self._apply_hit(enemy, damage, effect.survivor_status, outcome)

    def _resolve_double_hit(
        self,
        effect: DoubleHitEffect,
        participants: List[Combatant],
        target: Optional[Point],
        outcome: RecipeOutcome,
    ) -> None:
        occupant_id = self.board.get_occupant(target)
        enemy = self.get_combatant(occupant_id) if occupant_id else None
        if enemy is None or enemy.faction != Faction.ENEMY or not enemy.is_alive:
            return

        physical = next((p for p in participants if p.name == effect.physical_source), participants[0])
        magic = next((p for p in participants if p.name == effect.magic_source), participants[0])

        damage = (
            calculate_damage(physical, enemy, DamageType.PHYSICAL, effect.coefficient)
            + calculate_damage(magic, enemy, DamageType.MAGIC, effect.coefficient)
        )
        self._apply_hit(enemy, damage, effect.survivor_status, outcome)

    def _apply_hit(
        self,
        enemy: Combatant,
        damage: int,
        survivor_status: Optional[StatusEffectSpec],
        outcome: RecipeOutcome,
    ) -> None:
        outcome.damage_by_target[enemy.id] = damage
        if enemy.take_damage(damage):
            outcome.killed.append(enemy.id)
            self.kill(enemy)
        elif survivor_status:
            enemy.add_status_effect(to_status_effect(survivor_status))

    def _sacrifice(self, participants: List[Combatant], outcome: RecipeOutcome) -> None:
        for unit in participants:
            for point in self.board.find_occupant(unit.id):
                self.board.set_occupant(point, None)
                self.board.mark_residual_heat(point, self.rules.residual_heat_turns)
            unit.position = None
            unit.state = ActorState.DEAD
            unit.cooldown = self.rules.death_cooldown
            outcome.sacrificed.append(unit.id)
