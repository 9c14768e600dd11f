"""Solving helpers: propagation + backtracking move generator, difficulty rating, and a request
dispatcher mirroring the solver worker contract. Also provides tool-friendly (JSON) wrappers for the API and CLI."""

# city_tools.py
from __future__ import annotations

import logging
import time
from copy import deepcopy
from enum import Enum
from itertools import islice
from typing import Any, Callable, Dict, Iterator, List, Optional

from types_city import (
    COST_GUESS,
    COST_HIDDEN_SINGLE,
    COST_NAKED_SINGLE,
    BorderHints,
    Candidates,
    GameError,
    Grid,
    Move,
)

from .solver_core import (
    RIGHT,
    TOP,
    allowed_cell_heights,
    allowed_heights,
    border_errors,
    city_size,
    clone_grid,
    empty_grid,
    field_errors,
    validate_city_grid,
)

logger = logging.getLogger(__name__)


class CitySolver:
    """One solving session: owns its grid and candidate matrix.

    Backtracking branches are new sessions built from deep copies, so siblings never
    see each other's placements.
    """

    def __init__(
        self,
        border_hints: BorderHints,
        buildings: Grid | None = None,
        candidates: Candidates | None = None,
        should_stop: Callable[[], bool] | None = None,
    ):
        self.border_hints = border_hints
        if buildings is None:
            buildings = empty_grid(len(border_hints[TOP]), len(border_hints[RIGHT]))
        self.grid = clone_grid(buildings)
        self.width, self.height = city_size(self.grid)
        self.max_size = max(self.width, self.height)
        self.candidates = deepcopy(candidates) if candidates is not None else allowed_heights(self.grid, border_hints)
        self.should_stop = should_stop
        self._progress = False
        self.dead = False
        self.stopped = False

    def place(self, r: int, c: int, height: int, cost: int = COST_NAKED_SINGLE) -> Move:
        """Place a height and refresh the candidates of its row and column."""
        self._progress = True
        self.grid[r][c] = height
        for rr in range(self.height):
            if self.grid[rr][c] == 0:
                self.candidates[rr][c] = allowed_cell_heights(self.grid, self.border_hints, rr, c)
        for cc in range(self.width):
            if self.grid[r][cc] == 0:
                self.candidates[r][cc] = allowed_cell_heights(self.grid, self.border_hints, r, cc)
        self.candidates[r][c] = set()
        return Move(r, c, height, cost)

    def branch(self, r: int, c: int, height: int) -> "CitySolver":
        """Independent copy of this session with a guessed height placed."""
        sub = CitySolver(self.border_hints, self.grid, self.candidates, should_stop=self.should_stop)
        sub.place(r, c, height, COST_GUESS)
        return sub

    def is_full(self) -> bool:
        return all(all(row) for row in self.grid)

    def _next_naked_single(self) -> tuple[int, int] | None:
        for r in range(self.height):
            for c in range(self.width):
                if len(self.candidates[r][c]) == 1:
                    return r, c
        return None

    def _has_dead_cell(self, r: int) -> bool:
        return any(self.grid[r][c] == 0 and not self.candidates[r][c] for c in range(self.width))

    def _guess_cell(self) -> tuple[int, int] | None:
        """Empty cell with the fewest (but more than one) candidates, first in row-major order."""
        best = None
        best_size = 0
        for r in range(self.height):
            for c in range(self.width):
                size = len(self.candidates[r][c])
                if size > 1 and (best is None or size < best_size):
                    best = (r, c)
                    best_size = size
        return best

    def _propagate(self) -> Iterator[Move]:
        first_pass = True
        while True:
            if not first_pass:
                self.candidates = allowed_heights(self.grid, self.border_hints)
            first_pass = False
            self._progress = False

            # naked singles
            while True:
                cell = self._next_naked_single()
                if cell is None:
                    break
                r, c = cell
                (height,) = self.candidates[r][c]
                yield self.place(r, c, height, COST_NAKED_SINGLE)

            # hidden singles, tallest first
            for height in range(self.max_size, 0, -1):
                for r in range(self.height):
                    if self._has_dead_cell(r):
                        logger.debug("Contradiction in row %d, dropping branch", r)
                        self.dead = True
                        return
                    cells = [c for c in range(self.width) if height in self.candidates[r][c]]
                    if len(cells) == 1:
                        yield self.place(r, cells[0], height, COST_HIDDEN_SINGLE)
                for c in range(self.width):
                    cells = [r for r in range(self.height) if height in self.candidates[r][c]]
                    if len(cells) == 1:
                        yield self.place(cells[0], c, height, COST_HIDDEN_SINGLE)

            if not self._progress:
                return

    def moves(self) -> Iterator[Move]:
        """Lazily yield the moves that solve (or get as far as possible into) the city."""
        self.dead = False
        self.stopped = False
        yield from self._propagate()
        if self.dead or self.is_full():
            return

        cell = self._guess_cell()
        if cell is None:
            logger.debug("No cell left to guess on, giving up")
            return
        r, c = cell
        alternatives = sorted(self.candidates[r][c])

        move_lists: List[List[Move]] = []
        for height in alternatives:
            if self.should_stop is not None and self.should_stop():
                logger.info("Search stopped before trying %d at r%dc%d", height, r, c)
                self.stopped = True
                return
            sub = self.branch(r, c, height)
            move_lists.append(list(sub.moves()))
            if sub.stopped:
                self.stopped = True
                return

        longest = max(len(moves) for moves in move_lists)
        chosen = next(i for i, moves in enumerate(move_lists) if len(moves) == longest)
        logger.debug(
            "Guessing %d at r%dc%d among %s (%d follow-up moves)",
            alternatives[chosen], r, c, alternatives, longest,
        )
        yield Move(r, c, alternatives[chosen], COST_GUESS)
        yield from move_lists[chosen]


def solve(
    border_hints: BorderHints,
    buildings: Grid | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> Iterator[Move]:
    """Moves solving a city, starting from the given buildings (an empty city by default)."""
    return CitySolver(border_hints, buildings, should_stop=should_stop).moves()


def time_limit(seconds: float | None, clock: Callable[[], float] = time.monotonic) -> Callable[[], bool] | None:
    """should_stop callable that fires once `seconds` have passed; None when there is no limit."""
    if not seconds:
        return None
    deadline = clock() + seconds
    return lambda: clock() >= deadline


def compute_city_difficulty(border_hints: BorderHints, should_stop: Callable[[], bool] | None = None) -> float:
    """Total solving cost of an empty city per border cell, minus 2. Typically 0..5.

    The search drains every branch, so sparse cities (an empty 5x5 one, say) can take very
    long; pass `should_stop` to bound it. Raises TimeoutError if the search was stopped.
    """
    width, height = len(border_hints[TOP]), len(border_hints[RIGHT])
    solver = CitySolver(border_hints, should_stop=should_stop)
    total = sum(move.cost for move in solver.moves())
    if solver.stopped:
        raise TimeoutError("Difficulty search was stopped before the city was fully explored")
    return total / (width + height) - 2


def apply_move(current: Grid, move: Move) -> Grid:
    """Placement only; returns a new grid with the height placed."""
    g2 = clone_grid(current)
    g2[move.row][move.column] = move.height
    return g2


def is_solved(current: Grid, border_hints: BorderHints) -> bool:
    return all(all(row) for row in current) and not field_errors(current) and not border_errors(current, border_hints)


def check_city(border_hints: BorderHints, current: Grid, original: Grid | None = None) -> Dict:
    """Errors in the current grid, plus given heights that were overwritten (when `original` is known)."""
    issues: List[Dict[str, Any]] = []
    if original is not None:
        for r, row in enumerate(original):
            for c, given in enumerate(row):
                if given and current[r][c] not in (0, given):
                    issues.append({"kind": "given_overwritten", "cell": f"r{r}c{c}", "given": given, "found": current[r][c]})
    issues.extend(field_errors(current))
    issues.extend(border_errors(current, border_hints))
    return {"ok": len(issues) == 0, "solved": is_solved(current, border_hints), "issues": issues}


def candidates_to_lists(candidates: Candidates) -> list[list[list[int]]]:
    return [[sorted(cell) for cell in row] for row in candidates]


def allowed_heights_tool(current: Grid, border_hints: BorderHints) -> Dict:
    """Allowed heights for each cell as sorted lists, e.g. {'allowed_heights': [[[1, 2], []], ...]}."""
    return {"allowed_heights": candidates_to_lists(allowed_heights(current, border_hints))}


def next_moves(border_hints: BorderHints, current: Grid | None = None, max_moves: int | None = 5) -> Dict:
    """Returns up to max_moves solver moves together with the grid they lead to."""
    if current is None:
        current = empty_grid(len(border_hints[TOP]), len(border_hints[RIGHT]))
    moves = list(islice(solve(border_hints, current), max_moves))
    snapshot = clone_grid(current)
    for move in moves:
        snapshot = apply_move(snapshot, move)
    return {"moves": [move._asdict() for move in moves], "snapshot": {"current": snapshot}}


def solve_tool(border_hints: BorderHints, current: Grid | None = None) -> Dict:
    """Full solve: every move, the final grid and whether it is a complete solution."""
    result = next_moves(border_hints, current, max_moves=None)
    final = result["snapshot"]["current"]
    result["solved"] = is_solved(final, border_hints)
    result["cost"] = sum(move["cost"] for move in result["moves"])
    return result


# ---------------------------------------------------------------------------
# Request dispatch
# ---------------------------------------------------------------------------


class RequestKind(str, Enum):
    HINT = "hint"
    DIFFICULTY = "difficulty"
    COMPUTE_CITY_DIFFICULTY = "computeCityDifficulty"
    GET_ALLOWED_HEIGHTS = "getAllowedHeights"
    GET_FIELD_ERRORS = "getFieldErrors"
    GET_BORDER_ERRORS = "getBorderErrors"


def _require(value, name: str, kind: RequestKind):
    if value is None:
        raise ValueError(f"Request '{kind.value}' needs {name}")
    return value


def _hint(border_hints: BorderHints, buildings: Optional[Grid], should_stop=None) -> Optional[Move]:
    return next(solve(border_hints, buildings, should_stop), None)


def _difficulty(border_hints: BorderHints, buildings: Optional[Grid], should_stop=None) -> float:
    return compute_city_difficulty(border_hints, should_stop)


def _allowed(border_hints: BorderHints, buildings: Optional[Grid], should_stop=None) -> Candidates:
    return allowed_heights(buildings, border_hints)


def _field_errors(border_hints: Optional[BorderHints], buildings: Optional[Grid], should_stop=None) -> List[GameError]:
    return field_errors(buildings)


def _border_errors(border_hints: BorderHints, buildings: Optional[Grid], should_stop=None) -> List[GameError]:
    return border_errors(buildings, border_hints)


# (handler, needs hints, needs buildings)
_HANDLERS = {
    RequestKind.HINT: (_hint, True, False),
    RequestKind.DIFFICULTY: (_difficulty, True, False),
    RequestKind.COMPUTE_CITY_DIFFICULTY: (_difficulty, True, False),
    RequestKind.GET_ALLOWED_HEIGHTS: (_allowed, True, True),
    RequestKind.GET_FIELD_ERRORS: (_field_errors, False, True),
    RequestKind.GET_BORDER_ERRORS: (_border_errors, True, True),
}


def handle_request(
    kind: RequestKind | str,
    border_hints: BorderHints | None = None,
    buildings: Grid | None = None,
    should_stop: Callable[[], bool] | None = None,
):
    """Run one solver request. Unknown kinds raise ValueError.

    `should_stop` bounds the search of `hint` and difficulty requests; a stopped difficulty
    search raises TimeoutError.
    """
    kind = RequestKind(kind)
    handler, needs_hints, needs_buildings = _HANDLERS[kind]
    if needs_hints:
        _require(border_hints, "border hints", kind)
    if needs_buildings:
        _require(buildings, "buildings", kind)
    if border_hints is not None and len(border_hints) != 4:
        raise ValueError(f"Expected 4 border hint lists, got {len(border_hints)}")

    if buildings is not None:
        validate_city_grid(buildings, border_hints)
    elif border_hints is not None:
        validate_city_grid(empty_grid(len(border_hints[TOP]), len(border_hints[RIGHT])), border_hints)

    logger.debug("Handling '%s' request", kind.value)
    return handler(border_hints, buildings, should_stop)
