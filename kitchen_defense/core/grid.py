"""
Board.

Fixed-size grid of cells tracking occupancy, the 2x2 base footprint and the
per-cell residual heat markers left behind by recipe sacrifices.

Out-of-range reads return None and out-of-range writes are ignored; callers
bounds-check before mutating.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

Point = Tuple[int, int]

# The base always occupies these four cells
BASE_POINTS: Tuple[Point, ...] = ((5, 5), (5, 6), (6, 5), (6, 6))

# Fixed neighbour order shared by every 4-connected search
DIRECTIONS: Tuple[Point, ...] = ((0, 1), (1, 0), (0, -1), (-1, 0))


def manhattan_distance(p1: Point, p2: Point) -> int:
    """Manhattan distance |x1-x2| + |y1-y2|."""
    return abs(p1[0] - p2[0]) + abs(p1[1] - p2[1])


def chebyshev_distance(p1: Point, p2: Point) -> int:
    """Chebyshev distance max(|x1-x2|, |y1-y2|)."""
    return max(abs(p1[0] - p2[0]), abs(p1[1] - p2[1]))


@dataclass
class GridCell:
    """A single cell on the board."""
    x: int
    y: int
    occupied_by: Optional[str] = None  # Combatant ID
    is_base: bool = False
    residual_heat_turns: int = 0  # > 0 allows immediate re-occupation

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    @property
    def is_empty(self) -> bool:
        return self.occupied_by is None


@dataclass
class Board:
    """
    The 12x12 battle grid.

    Cells are created once here and never destroyed; only their occupant and
    residual marker change during play.
    """
    width: int = 12
    height: int = 12
    cells: Dict[Point, GridCell] = field(default_factory=dict)

    def __post_init__(self):
        """Initialize all cells if not already done."""
        if not self.cells:
            for y in range(self.height):
                for x in range(self.width):
                    self.cells[(x, y)] = GridCell(x=x, y=y, is_base=(x, y) in BASE_POINTS)

    @property
    def base_points(self) -> Tuple[Point, ...]:
        return BASE_POINTS

    def is_valid_position(self, x: int, y: int) -> bool:
        """Check if coordinates are within the grid."""
        return 0 <= x < self.width and 0 <= y < self.height

    def get_cell(self, point: Point) -> Optional[GridCell]:
        """Get a cell by point, or None when out of range."""
        return self.cells.get(point)

    def get_occupant(self, point: Point) -> Optional[str]:
        cell = self.cells.get(point)
        return cell.occupied_by if cell else None

    def set_occupant(self, point: Point, combatant_id: Optional[str]) -> bool:
        """Set or clear the occupant of a cell. Returns False when out of range."""
        cell = self.cells.get(point)
        if not cell:
            return False
        cell.occupied_by = combatant_id
        return True

    def move_occupant(self, origin: Point, destination: Point) -> None:
        """Move whatever occupies origin onto destination."""
        combatant_id = self.get_occupant(origin)
        self.set_occupant(origin, None)
        self.set_occupant(destination, combatant_id)

    def find_occupant(self, combatant_id: str) -> List[Point]:
        """All cells held by a combatant (four for the base, at most one otherwise)."""
        return [
            pos for pos, cell in self.cells.items()
            if cell.occupied_by == combatant_id
        ]

    def iter_cells(self) -> Iterator[GridCell]:
        """Iterate every cell row by row (y outer, x inner)."""
        for y in range(self.height):
            for x in range(self.width):
                yield self.cells[(x, y)]

    def get_adjacent_points(self, point: Point) -> List[Point]:
        """In-bounds orthogonal neighbours in the fixed direction order."""
        x, y = point
        return [
            (x + dx, y + dy) for dx, dy in DIRECTIONS
            if self.is_valid_position(x + dx, y + dy)
        ]

    def mark_residual_heat(self, point: Point, turns: int = 1) -> None:
        cell = self.cells.get(point)
        if cell:
            cell.residual_heat_turns = turns

    def decay_residual_heat(self) -> None:
        """Count every residual marker down by one turn."""
        for cell in self.cells.values():
            if cell.residual_heat_turns > 0:
                cell.residual_heat_turns -= 1

    def to_dict(self) -> Dict:
        """Snapshot of the non-trivial cells for the presentation layer."""
        return {
            "width": self.width,
            "height": self.height,
            "base_points": [list(p) for p in BASE_POINTS],
            "cells": [
                {
                    "x": cell.x,
                    "y": cell.y,
                    "occupied_by": cell.occupied_by,
                    "is_base": cell.is_base,
                    "residual_heat_turns": cell.residual_heat_turns,
                }
                for cell in self.iter_cells()
                if cell.occupied_by or cell.is_base or cell.residual_heat_turns
            ],
        }
