"""
Enemy Decision Engine.

Each enemy acts once per enemy phase: pick a target, walk greedily towards
it, then attack. The walk is a heuristic, not a shortest path; an enemy can
get stuck behind other enemies and that is accepted.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from kitchen_defense.core.ai.targeting import select_target
from kitchen_defense.core.combat_resolver import AttackOutcome, CombatResolver
from kitchen_defense.core.combatant import ActorState, Combatant, Faction
from kitchen_defense.core.grid import DIRECTIONS, Board, Point, manhattan_distance
from kitchen_defense.core.pathfinding import Pathfinder
from kitchen_defense.core.rules_config import GameRules, get_rules_config

logger = logging.getLogger("kitchen_defense.ai")


@dataclass
class EnemyAction:
    """Record of one enemy's turn."""
    enemy_id: str
    path: List[Point] = field(default_factory=list)
    target_id: Optional[str] = None
    attack: Optional[AttackOutcome] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enemy_id": self.enemy_id,
            "path": [list(p) for p in self.path],
            "target_id": self.target_id,
            "attack": self.attack.to_dict() if self.attack else None,
        }


class EnemyAI:
    """
    Runs enemy turns against the shared board.

    Args:
        board: Shared board
        get_combatant: Lookup by id
        iter_combatants: Snapshot of the entity table
        get_base: Returns the base combatant
        pathfinder: Distance queries
        resolver: Resolves the attack at the end of the turn
        notify: Called with an event type after every step and attack
        rules: Supplies the greedy lookahead cap
    """

    def __init__(
        self,
        board: Board,
        get_combatant: Callable[[str], Optional[Combatant]],
        iter_combatants: Callable[[], Iterable[Combatant]],
        get_base: Callable[[], Optional[Combatant]],
        pathfinder: Pathfinder,
        resolver: CombatResolver,
        notify: Optional[Callable[[str, Combatant], None]] = None,
        rules: Optional[GameRules] = None,
    ):
        self.board = board
        self.get_combatant = get_combatant
        self.iter_combatants = iter_combatants
        self.get_base = get_base
        self.pathfinder = pathfinder
        self.resolver = resolver
        self.notify = notify
        self.rules = rules or get_rules_config()

    def _notify(self, event_type: str, enemy: Combatant) -> None:
        if self.notify:
            self.notify(event_type, enemy)

    def _next_step(self, current: Point, target: Point) -> Optional[Point]:
        """First in-bounds neighbour that gets closer and is not held by an enemy."""
        current_dist = manhattan_distance(current, target)
        x, y = current
        for dx, dy in DIRECTIONS:
            candidate = (x + dx, y + dy)
            if not self.board.is_valid_position(*candidate):
                continue
            if manhattan_distance(candidate, target) >= current_dist:
                continue
            occupant_id = self.board.get_occupant(candidate)
            if occupant_id:
                occupant = self.get_combatant(occupant_id)
                if occupant is None or occupant.faction == Faction.ENEMY:
                    continue
            return candidate
        return None

    def _can_hit(self, enemy: Combatant, target: Optional[Combatant]) -> bool:
        if target is None or not target.is_alive:
            return False
        if not target.is_base and not target.is_deployed:
            return False
        reach = enemy.effective_stats.attack_range
        return self.pathfinder.distance_to_target(enemy.position, target) <= reach

    def _find_opportunistic_target(self, enemy: Combatant) -> Optional[Combatant]:
        """First living player occupant in range, scanning the board row by row."""
        reach = enemy.effective_stats.attack_range
        for cell in self.board.iter_cells():
            if not cell.occupied_by:
                continue
            if manhattan_distance(enemy.position, cell.position) > reach:
                continue
            occupant = self.get_combatant(cell.occupied_by)
            if occupant and occupant.faction == Faction.PLAYER and occupant.is_alive:
                return occupant
        return None

    def act(self, enemy: Combatant) -> EnemyAction:
        """
        Run one enemy's full turn.

        Movement stops when the next step is held by a player unit (which
        becomes the attack target), when no neighbour gets closer, or when
        the move budget runs out.

        Args:
            enemy: A living enemy on the board

        Returns:
            EnemyAction describing the path walked and the attack made
        """
        action = EnemyAction(enemy_id=enemy.id)
        if enemy.position is None or not enemy.is_alive:
            return action

        choice = select_target(enemy, self.board, self.iter_combatants(), self.get_base())
        target = choice.combatant

        steps = min(self.rules.greedy_lookahead, enemy.effective_stats.move_range)
        for _ in range(steps):
            if enemy.position == choice.point:
                break
            step = self._next_step(enemy.position, choice.point)
            if step is None:
                break

            blocker_id = self.board.get_occupant(step)
            if blocker_id:
                target = self.get_combatant(blocker_id)
                break

            self.board.move_occupant(enemy.position, step)
            enemy.position = step
            action.path.append(step)
            logger.debug(f"{enemy.name} ({enemy.id}) steps to {step}")
            self._notify("enemy_moved", enemy)

        if not self._can_hit(enemy, target):
            target = self._find_opportunistic_target(enemy)

        if target is not None:
            action.target_id = target.id
            action.attack = self.resolver.process_attack_resolution(enemy, target)
            self._notify("enemy_attacked", enemy)

        enemy.state = ActorState.ACTIONED
        return action
