"""Core city utilities used by the solver: line access, visible-count ranges, error detection and candidate computation."""

# solver_core.py
# Skyscraper rules for a rectangular city:
# - visible counts ("stairs") and their achievable ranges for partial lines
# - duplicate and border-hint errors
# - allowed heights (candidates) per empty cell
# Grid is H rows x W columns of ints (0..max(W, H)). 0 = empty. Indexes are 0-based.

from __future__ import annotations

import math

from types_city import BorderHints, Candidates, GameError, Grid, VisibleRanges

MIN_SIZE = 2
MAX_SIZE = 9

TOP, RIGHT, BOTTOM, LEFT = range(4)


def city_size(grid: Grid) -> tuple[int, int]:
    """Return (width, height) of a grid."""
    return len(grid[0]), len(grid)


def empty_grid(width: int, height: int) -> Grid:
    return [[0] * width for _ in range(height)]


def clone_grid(grid: Grid) -> Grid:
    return [row[:] for row in grid]


def get_column(grid: Grid, column: int) -> list[int]:
    return [row[column] for row in grid]


def row_hints(border_hints: BorderHints, row: int) -> tuple[int, int]:
    """(start, end) hints for a row: left side, then right side."""
    height = len(border_hints[RIGHT])
    return border_hints[LEFT][height - row - 1], border_hints[RIGHT][row]


def column_hints(border_hints: BorderHints, column: int) -> tuple[int, int]:
    """(start, end) hints for a column: top side, then bottom side."""
    width = len(border_hints[TOP])
    return border_hints[TOP][column], border_hints[BOTTOM][width - column - 1]


def validate_city_grid(grid: Grid, border_hints: BorderHints | None = None) -> None:
    """Raise ValueError unless the grid (and hints, when given) are structurally valid."""
    if not grid or not grid[0]:
        raise ValueError("City grid must have at least one row and one column")
    width, height = city_size(grid)
    if not (MIN_SIZE <= width <= MAX_SIZE and MIN_SIZE <= height <= MAX_SIZE):
        raise ValueError(f"City size {width}x{height} is outside {MIN_SIZE}..{MAX_SIZE}")
    max_value = max(width, height)
    for r, row in enumerate(grid):
        if len(row) != width:
            raise ValueError(f"Row {r} has {len(row)} cells, expected {width}")
        for c, value in enumerate(row):
            if not 0 <= value <= max_value:
                raise ValueError(f"Height {value} at r{r}c{c} is outside 0..{max_value}")
    if border_hints is None:
        return
    if len(border_hints) != 4:
        raise ValueError(f"Expected 4 border hint lists, got {len(border_hints)}")
    for side, expected in zip(range(4), (width, height, width, height)):
        hints = border_hints[side]
        if len(hints) != expected:
            raise ValueError(f"Border hint list {side} has {len(hints)} entries, expected {expected}")
        if any(not 0 <= hint <= max_value for hint in hints):
            raise ValueError(f"Border hint list {side} has values outside 0..{max_value}")


# ---------------------------------------------------------------------------
# Visible counts
# ---------------------------------------------------------------------------


def missing_values(sequence: list[int]) -> list[int]:
    """Heights 1..len(sequence) not present in the sequence, ascending."""
    present = set(sequence)
    return [value for value in range(1, len(sequence) + 1) if value not in present]


def visible_count(sequence: list[int]) -> int:
    """Number of buildings visible from the start of a line (strict running maxima)."""
    count = 0
    previous = 0
    for height in sequence:
        if height > previous:
            previous = height
            count += 1
    return count


def best_rising_sequence(sequence: list[int], remaining: list[int]) -> list[int]:
    """Fill the gaps of a sequence so that as many buildings as possible are visible."""
    remaining = list(remaining)
    low = 0
    high = math.inf
    filled = []
    for index, value in enumerate(sequence):
        if value:
            low = max(low, value)
            high = next((cell for cell in sequence[index + 1 :] if cell > value), math.inf)
            filled.append(value)
            continue
        fit = next((i for i, height in enumerate(remaining) if low < height < high), None)
        if fit is not None:
            low = remaining.pop(fit)
            filled.append(low)
        else:
            filled.append(remaining.pop(0))
    return filled


def worst_rising_sequence(sequence: list[int], remaining: list[int]) -> list[int]:
    """Fill the gaps of a sequence so that as few buildings as possible are visible."""
    remaining = list(remaining)
    filled = []
    for index, value in enumerate(sequence):
        if value:
            filled.append(value)
            continue
        shortest, tallest = remaining[0], remaining[-1]
        prev_tallest = max(sequence[:index], default=0)
        next_taller = next((height for height in sequence[index + 1 :] if height > prev_tallest), 0)
        if tallest > next_taller or shortest > prev_tallest:
            filled.append(remaining.pop())
        else:
            filled.append(remaining.pop(0))
    return filled


def visible_ranges(sequence: list[int]) -> VisibleRanges:
    """Achievable (min, max) visible counts from the start and from the end of a line."""
    available = missing_values(sequence)
    reverse = sequence[::-1]
    if available:
        return VisibleRanges(
            start=(
                visible_count(worst_rising_sequence(sequence, available)),
                visible_count(best_rising_sequence(sequence, available)),
            ),
            end=(
                visible_count(worst_rising_sequence(reverse, available)),
                visible_count(best_rising_sequence(reverse, available)),
            ),
        )
    start = visible_count(sequence)
    end = visible_count(reverse)
    return VisibleRanges(start=(start, start), end=(end, end))


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def border_index(side: int, position: int, width: int, height: int) -> int:
    """Perimeter index of a hint, walking clockwise from the top-left corner."""
    offsets = (0, width, width + height, 2 * width + height)
    lengths = (width, height, width, height)
    if not 0 <= position < lengths[side]:
        raise ValueError(f"Position {position} is outside side {side}")
    return offsets[side] + position


def border_position(index: int, width: int, height: int) -> tuple[int, int]:
    """Inverse of border_index: (side, position) of a perimeter index."""
    if not 0 <= index < 2 * (width + height):
        raise ValueError(f"Perimeter index {index} is outside 0..{2 * (width + height) - 1}")
    for side, length in enumerate((width, height, width, height)):
        if index < length:
            return side, index
        index -= length
    raise AssertionError("unreachable")


def duplicate_indexes(sequence: list[int]) -> list[int]:
    """Indexes of non-empty values that appear more than once in the sequence."""
    return [
        index
        for index, value in enumerate(sequence)
        if value and sequence.count(value) > 1
    ]


def field_errors(grid: Grid) -> list[GameError]:
    """Duplicate heights in rows, then in columns."""
    width, height = city_size(grid)
    errors: list[GameError] = []
    for r in range(height):
        for c in duplicate_indexes(grid[r]):
            errors.append(
                {
                    "kind": "duplicate",
                    "message": f'There is another "{grid[r][c]}" in this row',
                    "index": width * r + c,
                }
            )
    for c in range(width):
        for r in duplicate_indexes(get_column(grid, c)):
            errors.append(
                {
                    "kind": "duplicate",
                    "message": f'There is another "{grid[r][c]}" in this column',
                    "index": width * r + c,
                }
            )
    return errors


def constraint_errors(sequence: list[int], start_hint: int, end_hint: int) -> tuple[bool, bool]:
    """Whether the start/end hints fall outside what the line can still achieve."""
    ranges = visible_ranges(sequence)
    return (
        bool(start_hint) and not ranges.start[0] <= start_hint <= ranges.start[1],
        bool(end_hint) and not ranges.end[0] <= end_hint <= ranges.end[1],
    )


def _border_error(hint: int, index: int) -> GameError:
    return {
        "kind": "border",
        "message": f'The constraint "{hint}" cannot be satisfied',
        "index": index,
    }


def border_errors(grid: Grid, border_hints: BorderHints) -> list[GameError]:
    """Hints that can no longer be satisfied: rows (left, right), then columns (top, bottom)."""
    width, height = city_size(grid)
    errors: list[GameError] = []
    for r in range(height):
        start_hint, end_hint = row_hints(border_hints, r)
        if not start_hint and not end_hint:
            continue
        start_error, end_error = constraint_errors(grid[r], start_hint, end_hint)
        if start_error:
            errors.append(_border_error(start_hint, border_index(LEFT, height - r - 1, width, height)))
        if end_error:
            errors.append(_border_error(end_hint, border_index(RIGHT, r, width, height)))
    for c in range(width):
        start_hint, end_hint = column_hints(border_hints, c)
        if not start_hint and not end_hint:
            continue
        start_error, end_error = constraint_errors(get_column(grid, c), start_hint, end_hint)
        if start_error:
            errors.append(_border_error(start_hint, border_index(TOP, c, width, height)))
        if end_error:
            errors.append(_border_error(end_hint, border_index(BOTTOM, width - c - 1, width, height)))
    return errors


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


def allowed_cell_heights(grid: Grid, border_hints: BorderHints, r: int, c: int) -> set[int]:
    """Heights that wouldn't cause an error if placed at r,c right now."""
    width, height = city_size(grid)
    row = grid[r][:]
    column = get_column(grid, c)
    hints_r = row_hints(border_hints, r)
    hints_c = column_hints(border_hints, c)

    allowed = set()
    for value in range(1, max(width, height) + 1):
        if value in row or value in column:
            continue
        row[c] = value
        if any(constraint_errors(row, *hints_r)):
            continue
        column[r] = value
        if not any(constraint_errors(column, *hints_c)):
            allowed.add(value)
    return allowed


def allowed_heights(grid: Grid, border_hints: BorderHints) -> Candidates:
    """Candidate sets for every cell; filled cells get an empty set."""
    return [
        [
            allowed_cell_heights(grid, border_hints, r, c) if value == 0 else set()
            for c, value in enumerate(row)
        ]
        for r, row in enumerate(grid)
    ]
