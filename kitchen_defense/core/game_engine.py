"""
Game Engine.

Owns the board, the entity table and the heat economy, and drives the
turn-phase state machine:

    DEPLOYMENT -> PLAYER_MAIN -> ENEMY_RESOLVE -> ENVIRONMENT -> PLAYER_MAIN ...

Player commands never raise. An illegal command returns an ActionResult with
success=False and an ErrorCode, and leaves the state untouched. Once the
level is won or lost every mutating command is rejected with GAME_OVER.

A presentation layer can pass on_state_change to be told about every atomic
mutation (placements, enemy steps, attacks, recipes, phase changes).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging
import math

from kitchen_defense.core.ai import EnemyAI
from kitchen_defense.core.archetypes import create_base, create_roster
from kitchen_defense.core.combat_resolver import CombatResolver
from kitchen_defense.core.combatant import ActorState, Combatant, Faction
from kitchen_defense.core.errors import ErrorCode, UnknownRecipeError
from kitchen_defense.core.grid import Board, Point
from kitchen_defense.core.pathfinding import Pathfinder
from kitchen_defense.core.recipes import RecipeEngine, RecipeMatch, get_recipe
from kitchen_defense.core.rules_config import GameRules, get_rules_config
from kitchen_defense.core.status_effects import get_burn_damage
from kitchen_defense.core.wave_spawner import WaveSpawner
from kitchen_defense.models.catalog import RecipeDefinition, WaveDefinition

logger = logging.getLogger("kitchen_defense.engine")

# Deployment and free-summon square (inclusive on both axes)
DEPLOYMENT_ZONE_MIN = 4
DEPLOYMENT_ZONE_MAX = 7


class TurnPhase(str, Enum):
    """Phases of a game turn."""
    DEPLOYMENT = "deployment"
    PLAYER_MAIN = "player_main"
    ENEMY_RESOLVE = "enemy_resolve"
    ENVIRONMENT = "environment"
    UI_LOCKDOWN = "ui_lockdown"  # Reserved for the presentation layer


@dataclass
class GameEvent:
    """An entry in the game log."""
    event_type: str
    turn: int
    description: str
    combatant_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "turn": self.turn,
            "description": self.description,
            "combatant_id": self.combatant_id,
            "data": self.data,
        }


@dataclass
class ActionResult:
    """Result of a player command."""
    success: bool
    action_type: str
    description: str
    error_code: Optional[ErrorCode] = None
    damage_dealt: int = 0
    target_id: Optional[str] = None
    effects_applied: List[str] = field(default_factory=list)
    extra_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "action_type": self.action_type,
            "description": self.description,
            "error_code": self.error_code.value if self.error_code else None,
            "damage_dealt": self.damage_dealt,
            "target_id": self.target_id,
            "effects_applied": list(self.effects_applied),
            "extra_data": self.extra_data,
        }


class GameEngine:
    """
    The level orchestrator.

    Construction places the base, benches the roster, applies the turn-0
    spawns and sets heat to its starting value.

    Args:
        rules: Game rules (defaults to the active rules config)
        on_state_change: Called with each GameEvent as it happens
        recipes: Override for the recipe catalog
        wave_schedule: Override for the wave schedule, keyed by turn
    """

    def __init__(
        self,
        rules: Optional[GameRules] = None,
        on_state_change: Optional[Callable[[GameEvent], None]] = None,
        recipes: Optional[List[RecipeDefinition]] = None,
        wave_schedule: Optional[Dict[int, WaveDefinition]] = None,
    ):
        self.rules = rules or get_rules_config()
        self.on_state_change = on_state_change

        self.board = Board(width=self.rules.grid_width, height=self.rules.grid_height)
        self.entities: Dict[str, Combatant] = {}
        self.event_log: List[GameEvent] = []

        self.turn_counter = 0
        self.phase = TurnPhase.DEPLOYMENT
        self.heat = self.rules.starting_heat
        self.max_heat = self.rules.max_heat
        self.has_won = False
        self.is_game_over = False

        # Where each MOVED unit started its move this turn
        self._move_origins: Dict[str, Point] = {}

        self.base = create_base(self.rules)
        self.entities[self.base.id] = self.base
        for point in self.board.base_points:
            self.board.set_occupant(point, self.base.id)

        for unit in create_roster(self.rules):
            self.entities[unit.id] = unit

        self.pathfinder = Pathfinder(self.board, self.get_combatant)
        self.resolver = CombatResolver(self.add_heat, self.kill_combatant, self.rules)
        self.recipe_engine = RecipeEngine(
            self.board,
            self.get_combatant,
            self.iter_combatants,
            lambda: self.heat,
            self.consume_heat,
            self.kill_combatant,
            self.rules,
            recipes,
        )
        self.spawner = WaveSpawner(self.board, self._register_spawn, self.rules, wave_schedule)
        self.ai = EnemyAI(
            self.board,
            self.get_combatant,
            self.iter_combatants,
            lambda: self.base,
            self.pathfinder,
            self.resolver,
            notify=self._on_enemy_update,
            rules=self.rules,
        )

        self.spawner.spawn_wave_for_turn(0)
        logger.info(f"Level ready: {len(self.player_units)} units benched, heat {self.heat}")

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_combatant(self, combatant_id: str) -> Optional[Combatant]:
        return self.entities.get(combatant_id)

    def iter_combatants(self) -> List[Combatant]:
        """Snapshot of the entity table in insertion order."""
        return list(self.entities.values())

    @property
    def player_units(self) -> List[Combatant]:
        """Roster units (the base excluded)."""
        return [
            c for c in self.entities.values()
            if c.faction == Faction.PLAYER and not c.is_base
        ]

    @property
    def enemies(self) -> List[Combatant]:
        return [c for c in self.entities.values() if c.faction == Faction.ENEMY]

    @property
    def is_terminal(self) -> bool:
        return self.has_won or self.is_game_over

    def field_population(self) -> int:
        """Player units standing on the board (the base excluded)."""
        return sum(1 for unit in self.player_units if unit.position is not None)

    def is_field_population_full(self) -> bool:
        return self.field_population() >= self.rules.max_field_units

    # =========================================================================
    # EVENTS
    # =========================================================================

    def _emit(
        self,
        event_type: str,
        description: str,
        combatant_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> GameEvent:
        """Log an event and notify the presentation layer."""
        event = GameEvent(
            event_type=event_type,
            turn=self.turn_counter,
            description=description,
            combatant_id=combatant_id,
            data=data or {},
        )
        self.event_log.append(event)
        if self.on_state_change:
            self.on_state_change(event)
        return event

    def _change_phase(self, new_phase: TurnPhase) -> None:
        old_phase = self.phase
        self.phase = new_phase
        logger.info(f"Turn {self.turn_counter}: {old_phase.value} -> {new_phase.value}")
        self._emit(
            "phase_change",
            f"Phase changed to {new_phase.value}",
            data={"from": old_phase.value, "to": new_phase.value},
        )

    def _on_enemy_update(self, event_type: str, enemy: Combatant) -> None:
        self._emit(
            event_type,
            f"{enemy.name} acts",
            combatant_id=enemy.id,
            data={"position": list(enemy.position) if enemy.position else None},
        )

    def _register_spawn(self, mob: Combatant) -> None:
        self.entities[mob.id] = mob
        self._emit(
            "enemy_spawned",
            f"{mob.name} appears at {mob.position}",
            combatant_id=mob.id,
            data={"position": list(mob.position)},
        )

    # =========================================================================
    # HEAT & DEATH
    # =========================================================================

    def add_heat(self, amount: int) -> None:
        """Change heat by amount, clamped to [0, max_heat]."""
        self.heat = max(0, min(self.max_heat, self.heat + amount))

    def consume_heat(self, amount: int) -> bool:
        """Spend heat. Returns False (spending nothing) when short."""
        if self.heat >= amount:
            self.heat -= amount
            return True
        return False

    def kill_combatant(self, combatant: Combatant) -> None:
        """
        Central death handler.

        Clears the board cells the combatant held (the base keeps its
        footprint), removes dead enemies from the entity table with a heat
        bonus, and puts dead player units on cooldown.
        """
        if combatant.faction == Faction.ENEMY and combatant.id not in self.entities:
            return

        if not combatant.is_base:
            for point in self.board.find_occupant(combatant.id):
                self.board.set_occupant(point, None)
            combatant.position = None

        self._move_origins.pop(combatant.id, None)

        if combatant.faction == Faction.ENEMY:
            del self.entities[combatant.id]
            self.add_heat(self.rules.heat_per_kill)
        elif not combatant.is_base:
            combatant.state = ActorState.DEAD
            combatant.cooldown = self.rules.death_cooldown

        logger.info(f"{combatant.name} ({combatant.id}) was killed")
        self._emit("death", f"{combatant.name} was killed", combatant_id=combatant.id)

    # =========================================================================
    # COMMAND HELPERS
    # =========================================================================

    def _reject(self, action_type: str, code: ErrorCode, message: str, **details) -> ActionResult:
        logger.debug(f"Rejected {action_type}: {message}")
        return ActionResult(
            success=False,
            action_type=action_type,
            description=message,
            error_code=code,
            extra_data=details,
        )

    def _check_command(self, action_type: str, *phases: TurnPhase) -> Optional[ActionResult]:
        """Terminal lock and phase gate shared by every mutating command."""
        if self.rules.terminal_lock and self.is_terminal:
            return self._reject(action_type, ErrorCode.GAME_OVER, "The level is over")
        if phases and self.phase not in phases:
            return self._reject(
                action_type, ErrorCode.WRONG_PHASE,
                f"Not allowed during {self.phase.value}",
            )
        return None

    def _get_roster_unit(self, unit_id: str) -> Optional[Combatant]:
        unit = self.entities.get(unit_id)
        if unit is None or unit.faction != Faction.PLAYER or unit.is_base:
            return None
        return unit

    def _get_commandable(self, unit_id: str) -> Optional[Combatant]:
        """A deployed player combatant, the base included."""
        unit = self.entities.get(unit_id)
        if unit is None or unit.faction != Faction.PLAYER or not unit.is_deployed:
            return None
        return unit

    # =========================================================================
    # PLACEMENT
    # =========================================================================

    @staticmethod
    def _in_deployment_zone(point: Point) -> bool:
        x, y = point
        return (
            DEPLOYMENT_ZONE_MIN <= x <= DEPLOYMENT_ZONE_MAX
            and DEPLOYMENT_ZONE_MIN <= y <= DEPLOYMENT_ZONE_MAX
        )

    def _is_next_to_deployed_unit(self, point: Point) -> bool:
        for neighbor in self.board.get_adjacent_points(point):
            occupant_id = self.board.get_occupant(neighbor)
            occupant = self.entities.get(occupant_id) if occupant_id else None
            if occupant and occupant.faction == Faction.PLAYER and occupant.is_deployed:
                return True
        return False

    def _is_placement_point(self, point: Point) -> bool:
        cell = self.board.get_cell(point)
        if cell is None or cell.is_base or not cell.is_empty:
            return False

        if self.phase == TurnPhase.DEPLOYMENT:
            return self._in_deployment_zone(point)

        if self.phase == TurnPhase.PLAYER_MAIN:
            return (
                self._in_deployment_zone(point)
                or cell.residual_heat_turns > 0
                or self._is_next_to_deployed_unit(point)
            )

        return False

    def get_placement_points(self, unit_id: str) -> List[Point]:
        """
        Cells where a benched unit could be placed right now.

        Returns:
            Points in row-major order, empty when the unit cannot be placed
        """
        unit = self._get_roster_unit(unit_id)
        if unit is None or unit.state != ActorState.BENCHED or unit.cooldown > 0:
            return []
        if self.is_terminal and self.rules.terminal_lock:
            return []
        if self.phase == TurnPhase.PLAYER_MAIN and self.is_field_population_full():
            return []
        return [
            cell.position for cell in self.board.iter_cells()
            if self._is_placement_point(cell.position)
        ]

    def place_unit(self, unit_id: str, point: Point) -> ActionResult:
        """
        Place a benched unit on the board.

        During DEPLOYMENT the unit goes anywhere free in the central square.
        During PLAYER_MAIN (a summon) the field must have room and the cell
        must be in the central square, next to a deployed player unit, or
        on residual heat. Summoning onto residual heat consumes the marker
        and lets the unit act this turn.

        Args:
            unit_id: Benched roster unit
            point: Target cell
        """
        action = "place_unit"
        rejected = self._check_command(action, TurnPhase.DEPLOYMENT, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_roster_unit(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No roster unit {unit_id}")
        if unit.state != ActorState.BENCHED or unit.cooldown > 0:
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} is not ready to deploy")

        point = tuple(point)
        if self.phase == TurnPhase.PLAYER_MAIN and self.is_field_population_full():
            return self._reject(action, ErrorCode.FIELD_FULL, "The field is full")
        if not self._is_placement_point(point):
            return self._reject(action, ErrorCode.INVALID_POSITION, f"Cannot place at {point}")

        cell = self.board.get_cell(point)
        self.board.set_occupant(point, unit.id)
        unit.position = point

        if self.phase == TurnPhase.DEPLOYMENT:
            unit.state = ActorState.IDLE
        elif cell.residual_heat_turns > 0:
            cell.residual_heat_turns = 0
            unit.state = ActorState.IDLE
        else:
            unit.state = ActorState.ACTIONED

        logger.debug(f"{unit.name} ({unit.id}) placed at {point} as {unit.state.value}")
        self._emit("unit_placed", f"{unit.name} placed at {point}", unit.id, {"position": list(point)})

        if (
            self.phase == TurnPhase.DEPLOYMENT
            and self.field_population() >= self.rules.deployment_unit_count
        ):
            self.turn_counter = 1
            # The opening wave was spawned at construction; the next spawn is turn 2
            self._change_phase(TurnPhase.PLAYER_MAIN)

        return ActionResult(
            success=True,
            action_type=action,
            description=f"{unit.name} placed at {point}",
            target_id=unit.id,
            extra_data={"state": unit.state.value},
        )

    # =========================================================================
    # UNIT COMMANDS
    # =========================================================================

    def select_unit(self, unit_id: str) -> ActionResult:
        """List the cells an IDLE unit can move to."""
        action = "select_unit"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_commandable(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state != ActorState.IDLE:
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has already moved")

        points = self.pathfinder.get_valid_move_points(
            unit.position, unit.effective_stats.move_range, unit.faction,
        )
        return ActionResult(
            success=True,
            action_type=action,
            description=f"{unit.name} can reach {len(points)} cells",
            target_id=unit.id,
            extra_data={"move_points": points},
        )

    def move_unit(self, unit_id: str, point: Point) -> ActionResult:
        """Move an IDLE unit to a reachable cell. The unit becomes MOVED."""
        action = "move_unit"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_commandable(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state != ActorState.IDLE:
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has already moved")

        point = tuple(point)
        valid = self.pathfinder.get_valid_move_points(
            unit.position, unit.effective_stats.move_range, unit.faction,
        )
        if point not in valid:
            return self._reject(action, ErrorCode.INVALID_POSITION, f"{point} is out of reach")

        origin = unit.position
        self.board.move_occupant(origin, point)
        unit.position = point
        unit.state = ActorState.MOVED
        self._move_origins[unit.id] = origin

        logger.debug(f"{unit.name} ({unit.id}) moved {origin} -> {point}")
        self._emit("unit_moved", f"{unit.name} moved to {point}", unit.id,
                   {"from": list(origin), "to": list(point)})
        return ActionResult(success=True, action_type=action,
                            description=f"{unit.name} moved to {point}", target_id=unit.id)

    def hold_position(self, unit_id: str) -> ActionResult:
        """Count an IDLE unit as having moved without leaving its cell."""
        action = "hold_position"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_commandable(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state != ActorState.IDLE:
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has already moved")

        unit.state = ActorState.MOVED
        self._move_origins[unit.id] = unit.position
        self._emit("unit_moved", f"{unit.name} holds position", unit.id,
                   {"from": list(unit.position), "to": list(unit.position)})
        return ActionResult(success=True, action_type=action,
                            description=f"{unit.name} holds position", target_id=unit.id)

    def cancel_move(self, unit_id: str) -> ActionResult:
        """Undo a move: a MOVED unit returns to its origin and is IDLE again."""
        action = "cancel_move"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_commandable(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state != ActorState.MOVED or unit.id not in self._move_origins:
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has no move to cancel")

        origin = self._move_origins[unit.id]
        if origin != unit.position:
            if self.board.get_occupant(origin) is not None:
                return self._reject(action, ErrorCode.INVALID_POSITION, f"{origin} is no longer free")
            self.board.move_occupant(unit.position, origin)
            unit.position = origin

        del self._move_origins[unit.id]
        unit.state = ActorState.IDLE
        self._emit("move_cancelled", f"{unit.name} returned to {origin}", unit.id,
                   {"position": list(origin)})
        return ActionResult(success=True, action_type=action,
                            description=f"{unit.name} returned to {origin}", target_id=unit.id)

    def standby(self, unit_id: str) -> ActionResult:
        """End a unit's turn without attacking."""
        action = "standby"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_commandable(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state not in (ActorState.IDLE, ActorState.MOVED):
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has already acted")

        unit.state = ActorState.ACTIONED
        self._move_origins.pop(unit.id, None)
        self._emit("standby", f"{unit.name} stands by", unit.id)
        return ActionResult(success=True, action_type=action,
                            description=f"{unit.name} stands by", target_id=unit.id)

    def attack(self, unit_id: str, target_id: str) -> ActionResult:
        """
        Basic attack from an IDLE or MOVED unit (the base included).

        Args:
            unit_id: Attacking player combatant
            target_id: Enemy within attack range
        """
        action = "attack"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_commandable(unit_id)
        if unit is None:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state not in (ActorState.IDLE, ActorState.MOVED):
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has already acted")

        targets = self.pathfinder.get_valid_attack_targets(unit)
        target = next((t for t in targets if t.id == target_id), None)
        if target is None:
            return self._reject(action, ErrorCode.TARGET_INVALID, f"{target_id} is not a valid target")

        outcome = self.resolver.process_attack_resolution(unit, target)
        self._move_origins.pop(unit.id, None)

        self._emit("attack", f"{unit.name} hits {target.name} for {outcome.damage}", unit.id,
                   outcome.to_dict())
        return ActionResult(
            success=True,
            action_type=action,
            description=f"{unit.name} hits {target.name} for {outcome.damage}",
            damage_dealt=outcome.damage,
            target_id=target.id,
            effects_applied=[outcome.status_applied] if outcome.status_applied else [],
            extra_data=outcome.to_dict(),
        )

    # =========================================================================
    # RECIPES
    # =========================================================================

    def get_recipes(self, unit_id: str) -> List[RecipeMatch]:
        """Recipes the unit can initiate, with availability and missing reasons."""
        unit = self._get_roster_unit(unit_id)
        if unit is None:
            return []
        return self.recipe_engine.get_available_recipes(unit)

    def trigger_recipe(
        self,
        unit_id: str,
        recipe_id: str,
        target: Optional[Point] = None,
    ) -> ActionResult:
        """
        Fire an available recipe initiated by an IDLE or MOVED unit.

        Args:
            unit_id: Initiating unit
            recipe_id: Recipe to fire
            target: Aim point, required unless the recipe is global
        """
        action = "trigger_recipe"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        unit = self._get_roster_unit(unit_id)
        if unit is None or not unit.is_deployed:
            return self._reject(action, ErrorCode.UNIT_NOT_FOUND, f"No deployed unit {unit_id}")
        if unit.state not in (ActorState.IDLE, ActorState.MOVED):
            return self._reject(action, ErrorCode.UNIT_NOT_READY, f"{unit.name} has already acted")

        try:
            get_recipe(recipe_id, self.recipe_engine.recipes)
        except UnknownRecipeError as e:
            return self._reject(action, e.code, e.message, **e.details)

        matches = self.recipe_engine.get_available_recipes(unit)
        match = next((m for m in matches if m.recipe.id == recipe_id), None)
        if match is None:
            return self._reject(action, ErrorCode.RECIPE_UNAVAILABLE,
                                f"{unit.name} cannot start {recipe_id}")
        if not match.is_available:
            return self._reject(action, ErrorCode.RECIPE_UNAVAILABLE,
                                f"{match.recipe.name} is unavailable", missing=list(match.missing))

        recipe = match.recipe
        if recipe.needs_target:
            if target is None:
                return self._reject(action, ErrorCode.TARGET_REQUIRED,
                                    f"{recipe.name} needs a target point")
            target = tuple(target)
            if not self.board.is_valid_position(*target):
                return self._reject(action, ErrorCode.INVALID_POSITION, f"{target} is off the board")

        outcome = self.recipe_engine.execute_recipe(recipe, match.participants, target)
        for participant in match.participants:
            self._move_origins.pop(participant.id, None)

        self._emit(
            "recipe",
            f"{recipe.name} dealt {outcome.total_damage} damage",
            unit.id,
            {
                "recipe_id": recipe.id,
                "participants": outcome.sacrificed,
                "damage_by_target": dict(outcome.damage_by_target),
                "killed": list(outcome.killed),
            },
        )
        return ActionResult(
            success=True,
            action_type=action,
            description=f"{recipe.name} dealt {outcome.total_damage} damage",
            damage_dealt=outcome.total_damage,
            extra_data={
                "recipe_id": recipe.id,
                "participants": outcome.sacrificed,
                "damage_by_target": dict(outcome.damage_by_target),
                "killed": list(outcome.killed),
                "heat": self.heat,
            },
        )

    # =========================================================================
    # TURN FLOW
    # =========================================================================

    def end_player_turn(self) -> ActionResult:
        """
        Resolve the enemy phase and the environment phase.

        Runs synchronously; on_state_change sees every step along the way.
        """
        action = "end_player_turn"
        rejected = self._check_command(action, TurnPhase.PLAYER_MAIN)
        if rejected:
            return rejected

        self._change_phase(TurnPhase.ENEMY_RESOLVE)
        enemy_actions = self._resolve_enemy_turn()

        self._change_phase(TurnPhase.ENVIRONMENT)
        self._resolve_environment()

        return ActionResult(
            success=True,
            action_type=action,
            description=f"Turn advanced to {self.turn_counter}",
            extra_data={
                "turn": self.turn_counter,
                "enemy_actions": [a.to_dict() for a in enemy_actions],
                "has_won": self.has_won,
                "is_game_over": self.is_game_over,
            },
        )

    def _resolve_enemy_turn(self):
        """Each living enemy acts once, in entity-table order."""
        snapshot = [e for e in self.enemies if e.is_alive and e.position is not None]
        actions = []
        for enemy in snapshot:
            # Killed earlier in this phase
            if enemy.id not in self.entities or not enemy.is_alive or enemy.position is None:
                continue
            actions.append(self.ai.act(enemy))
        return actions

    def _resolve_environment(self) -> None:
        # Burn, then status countdown. A unit killed by burn skips the countdown.
        for actor in self.iter_combatants():
            if not actor.is_alive:
                continue
            burn = get_burn_damage(actor.status_effects)
            if burn and actor.take_damage(burn):
                self.kill_combatant(actor)
                continue
            actor.tick_status_effects()

        heal_fraction = self.rules.bench_heal_fraction
        for unit in self.iter_combatants():
            if unit.faction != Faction.PLAYER:
                continue
            if unit.position and unit.state in (ActorState.ACTIONED, ActorState.MOVED):
                unit.state = ActorState.IDLE
            if unit.is_base or unit.state not in (ActorState.BENCHED, ActorState.DEAD):
                continue

            if unit.cooldown > 0:
                unit.cooldown -= 1
            if unit.cooldown == 0 and unit.state == ActorState.DEAD:
                unit.state = ActorState.BENCHED
            # Bench recovery applies even at 0 hp
            if unit.stats.hp < unit.stats.max_hp:
                unit.restore_hp(math.floor(unit.stats.max_hp * heal_fraction))

        self._move_origins.clear()
        self.board.decay_residual_heat()

        self.turn_counter += 1
        self.spawner.spawn_wave_for_turn(self.turn_counter)

        if (
            self.turn_counter > self.rules.victory_turn
            and not any(e.is_alive for e in self.enemies)
            and self.base.is_alive
        ):
            self.has_won = True
            logger.info(f"Level cleared on turn {self.turn_counter}")
            self._emit("victory", "The kitchen held")
        elif not self.base.is_alive:
            self.is_game_over = True
            logger.info(f"Base destroyed, game over on turn {self.turn_counter}")
            self._emit("defeat", "The base has fallen")
        else:
            self._change_phase(TurnPhase.PLAYER_MAIN)

    # =========================================================================
    # SNAPSHOT
    # =========================================================================

    def get_game_state(self) -> Dict[str, Any]:
        """Snapshot of the whole game for the presentation layer."""
        return {
            "turn": self.turn_counter,
            "phase": self.phase.value,
            "heat": self.heat,
            "max_heat": self.max_heat,
            "has_won": self.has_won,
            "is_game_over": self.is_game_over,
            "field_population": self.field_population(),
            "board": self.board.to_dict(),
            "combatants": [c.to_dict() for c in self.entities.values()],
            "event_log": [e.to_dict() for e in self.event_log],
        }
