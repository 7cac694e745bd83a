"""
Enemy AI.

Modules:
- targeting: Target selection per AI trait
- enemy_ai: Greedy movement and attack for a single enemy turn
"""
from .targeting import (
    TargetChoice,
    find_weakest_player_unit,
    nearest_base_point,
    select_target,
)
from .enemy_ai import EnemyAI, EnemyAction

__all__ = [
    # Targeting
    "TargetChoice",
    "find_weakest_player_unit",
    "nearest_base_point",
    "select_target",
    # Turn execution
    "EnemyAI",
    "EnemyAction",
]
