"""
Wave Spawner.

Fixed per-turn spawn schedule loaded from waves.json. When a scheduled cell
is taken, the enemy is displaced to the nearest free cell found by a
breadth-first search; a completely full board drops the spawn.
"""
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Set
import logging

from kitchen_defense.core.archetypes import create_combatant
from kitchen_defense.core.combatant import ActorState, Combatant
from kitchen_defense.core.grid import Board, Point
from kitchen_defense.core.rules_config import GameRules, get_rules_config
from kitchen_defense.models.catalog import WaveDefinition, WaveSchedule, read_catalog

logger = logging.getLogger("kitchen_defense.waves")

# Cache for the loaded schedule
_wave_cache: Dict[str, WaveSchedule] = {}


def load_wave_schedule() -> Dict[int, WaveDefinition]:
    """Load waves.json keyed by turn (cached after the first call)."""
    if "schedule" not in _wave_cache:
        _wave_cache["schedule"] = read_catalog("waves.json", WaveSchedule)
    return {wave.turn: wave for wave in _wave_cache["schedule"].waves}


def clear_wave_cache() -> None:
    _wave_cache.clear()


class WaveSpawner:
    """
    Spawns the enemies scheduled for a turn.

    Args:
        board: Shared board
        register: Adds a new combatant to the entity table
        rules: Passed on to the combatant factory
        schedule: Override for the schedule in waves.json
    """

    def __init__(
        self,
        board: Board,
        register: Callable[[Combatant], None],
        rules: Optional[GameRules] = None,
        schedule: Optional[Dict[int, WaveDefinition]] = None,
    ):
        self.board = board
        self.register = register
        self.rules = rules or get_rules_config()
        self.schedule = schedule if schedule is not None else load_wave_schedule()
        self.id_counter = 0

    def find_nearest_free_point(self, origin: Point) -> Optional[Point]:
        """Breadth-first search from origin (inclusive) for an unoccupied cell."""
        visited: Set[Point] = {origin}
        queue: Deque[Point] = deque([origin])

        while queue:
            current = queue.popleft()
            if self.board.get_occupant(current) is None:
                return current
            for neighbor in self.board.get_adjacent_points(current):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        return None

    def spawn(self, archetype: str, point: Point) -> Optional[Combatant]:
        """
        Spawn one enemy at point, or at the nearest free cell.

        Returns:
            The new enemy, or None when the board had no room
        """
        if not self.board.is_valid_position(*point):
            logger.warning(f"Spawn point {point} for {archetype} is off the board, skipped")
            return None

        target = self.find_nearest_free_point(point)
        if target is None:
            logger.warning(f"No free cell for {archetype} near {point}, spawn dropped")
            return None

        self.id_counter += 1
        mob = create_combatant(archetype, f"mob_{self.id_counter}", self.rules)
        mob.position = target
        mob.state = ActorState.IDLE

        self.register(mob)
        self.board.set_occupant(target, mob.id)

        if target != point:
            logger.debug(f"{mob.id} displaced from {point} to {target}")
        return mob

    def spawn_wave_for_turn(self, turn: int) -> List[Combatant]:
        """Spawn every enemy scheduled for the given turn, in table order."""
        wave = self.schedule.get(turn)
        if wave is None:
            return []

        spawned = []
        for order in wave.spawns:
            mob = self.spawn(order.archetype, (order.x, order.y))
            if mob:
                spawned.append(mob)

        logger.info(f"Turn {turn} wave '{wave.label}': {len(spawned)} enemies spawned")
        return spawned
