"""
Pathfinding and Targeting Queries.

Read-only questions about the board: where can a unit move, who can it hit,
how far away is a target. Nothing here mutates the board or a combatant.
"""
from collections import deque
from typing import Callable, Deque, List, Optional, Set, Tuple

from kitchen_defense.core.combatant import Combatant, Faction
from kitchen_defense.core.grid import Board, Point, manhattan_distance

CombatantLookup = Callable[[str], Optional[Combatant]]


class Pathfinder:
    """
    Reachability and target queries over a board.

    Args:
        board: The board to search
        get_combatant: Lookup from combatant id to combatant
    """

    def __init__(self, board: Board, get_combatant: CombatantLookup):
        self.board = board
        self.get_combatant = get_combatant

    def _can_pass(self, point: Point, faction: Faction, avoid_base: bool) -> bool:
        """Whether a mover of the given faction may step through a cell."""
        cell = self.board.get_cell(point)
        if cell is None:
            return False
        if cell.is_base and avoid_base:
            return False
        if cell.occupied_by is None:
            return True
        occupant = self.get_combatant(cell.occupied_by)
        # Friendly units can be passed through, hostile ones block
        return occupant is not None and occupant.faction == faction

    def get_valid_move_points(
        self,
        start: Point,
        move_range: int,
        faction: Faction,
        avoid_base: bool = True,
    ) -> List[Point]:
        """
        Get every cell a unit can end its move on.

        Breadth-first over orthogonal steps. Allies may be passed through but
        not ended on; hostile units and (with avoid_base) the base block.

        Args:
            start: Current position (never part of the result)
            move_range: Maximum number of steps
            faction: Mover's faction
            avoid_base: Treat base cells as walls

        Returns:
            Unoccupied reachable points in discovery order
        """
        results: List[Point] = []
        visited: Set[Point] = {start}
        queue: Deque[Tuple[Point, int]] = deque([(start, 0)])

        while queue:
            current, steps = queue.popleft()

            if current != start and self.board.get_occupant(current) is None:
                results.append(current)

            if steps >= move_range:
                continue

            for neighbor in self.board.get_adjacent_points(current):
                if neighbor in visited:
                    continue
                if self._can_pass(neighbor, faction, avoid_base):
                    visited.add(neighbor)
                    queue.append((neighbor, steps + 1))

        return results

    def distance_to_target(self, origin: Point, target: Combatant) -> int:
        """
        Manhattan distance from a point to a combatant.

        The base is measured to its nearest footprint cell.
        """
        if target.is_base:
            return min(manhattan_distance(origin, p) for p in self.board.base_points)
        if target.position is None:
            raise ValueError(f"{target.id} is not on the board")
        return manhattan_distance(origin, target.position)

    def get_valid_attack_targets(self, attacker: Combatant) -> List[Combatant]:
        """
        Get hostile combatants within the attacker's range.

        Range is measured from the attacker's position, which for the base
        is its anchor cell. Board cells are scanned row by row. For enemy
        attackers the base is appended when any of its cells is within range
        and it still has hp.

        Args:
            attacker: The attacking combatant

        Returns:
            Attackable combatants, each listed once
        """
        origin = attacker.position
        if origin is None:
            return []

        attack_range = attacker.effective_stats.attack_range
        targets: List[Combatant] = []
        seen: Set[str] = set()

        for cell in self.board.iter_cells():
            occupant_id = cell.occupied_by
            if not occupant_id or occupant_id == attacker.id or occupant_id in seen:
                continue
            target = self.get_combatant(occupant_id)
            if (
                target is None
                or target.is_base
                or target.faction == attacker.faction
                or not target.is_alive
                or not target.is_deployed
            ):
                continue
            if manhattan_distance(origin, target.position) <= attack_range:
                targets.append(target)
                seen.add(occupant_id)

        if attacker.faction == Faction.ENEMY:
            base_in_range = any(
                manhattan_distance(origin, p) <= attack_range
                for p in self.board.base_points
            )
            if base_in_range:
                base = self._find_base()
                if base is not None and base.is_alive:
                    targets.append(base)

        return targets

    def _find_base(self) -> Optional[Combatant]:
        occupant_id = self.board.get_occupant(self.board.base_points[0])
        return self.get_combatant(occupant_id) if occupant_id else None
