"""
Enemy Target Selection.

Picks what an enemy walks towards this turn. Bloodhounds hunt the weakest
deployed player unit; everything else (and a bloodhound with nothing to
hunt) heads for the nearest cell of the base.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from kitchen_defense.core.combatant import AITrait, Combatant, Faction
from kitchen_defense.core.grid import Board, Point, manhattan_distance


@dataclass
class TargetChoice:
    """Where an enemy is heading and who it means to hit."""
    point: Point
    combatant: Optional[Combatant]


def find_weakest_player_unit(combatants: Iterable[Combatant]) -> Optional[Combatant]:
    """Lowest-hp deployed living player unit (not the base). First found wins ties."""
    weakest = None
    for actor in combatants:
        if actor.faction != Faction.PLAYER or actor.is_base:
            continue
        if not actor.is_deployed or not actor.is_alive:
            continue
        if weakest is None or actor.stats.hp < weakest.stats.hp:
            weakest = actor
    return weakest


def nearest_base_point(board: Board, origin: Point) -> Point:
    """Base cell closest to origin. Earlier base points win ties."""
    best = board.base_points[0]
    best_dist = manhattan_distance(origin, best)
    for point in board.base_points[1:]:
        dist = manhattan_distance(origin, point)
        if dist < best_dist:
            best, best_dist = point, dist
    return best


def select_target(
    enemy: Combatant,
    board: Board,
    combatants: Iterable[Combatant],
    base: Optional[Combatant],
) -> TargetChoice:
    """
    Choose the enemy's target for this turn.

    Args:
        enemy: The acting enemy (must be on the board)
        board: Shared board
        combatants: Entity table in insertion order
        base: The base combatant

    Returns:
        TargetChoice with the point to walk towards
    """
    if enemy.ai_trait == AITrait.BLOODHOUND:
        prey = find_weakest_player_unit(combatants)
        if prey is not None:
            return TargetChoice(point=prey.position, combatant=prey)

    return TargetChoice(point=nearest_base_point(board, enemy.position), combatant=base)
