# types_city.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, TypedDict

Grid = list[list[int]]
"""An HxW city as rows of building heights (0 = empty)."""

Marks = list[list[set[int]]]
"""Per-cell sets of annotation marks, parallel to a Grid."""

BorderHints = list[list[int]]
"""Four hint lists in clockwise order: top, right, bottom (right to left), left (bottom to top)."""

Candidates = list[list[set[int]]]
"""Per-cell sets of heights that can still be placed (empty for filled cells)."""

COST_NAKED_SINGLE = 1
COST_HIDDEN_SINGLE = 2
COST_GUESS = 4


class Move(NamedTuple):
    """A single placement produced by the solver."""

    row: int
    column: int
    height: int
    cost: int  # 1 = naked single, 2 = hidden single, 4 = guess


class GameError(TypedDict):
    """A rule violation reported by the error detector."""

    kind: str  # 'duplicate' or 'border'
    message: str  # human-friendly explanation
    index: int  # cell index (W*row + column) or perimeter index of the hint


class VisibleRanges(NamedTuple):
    """Inclusive (min, max) visible counts from both ends of a sequence."""

    start: tuple[int, int]
    end: tuple[int, int]


@dataclass
class City:
    """A puzzle definition: dimensions plus the four border hint lists."""

    width: int
    height: int
    border_hints: BorderHints

    @property
    def max_value(self) -> int:
        return max(self.width, self.height)


@dataclass
class CityState:
    """Placed buildings and annotation marks for a city."""

    buildings: Grid
    marks: Marks = field(default_factory=list)
