"""Compact city/state codec: mixed-radix big integers written as URL-safe base-64 strings.

City ids pack the dimensions into the first character and every pair of opposite border
hints into a single digit. Saved states pack each cell's height and marks into one digit.
Strings have a fixed length for given dimensions, least significant digit first.
"""

# serialize.py
from __future__ import annotations

import string
from urllib.parse import urlsplit

from types_city import City, CityState, Grid, Marks

from .solver_core import MAX_SIZE, MIN_SIZE

B64_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"
_B64_INDEX = {char: index for index, char in enumerate(B64_ALPHABET)}
SIZE_RADIX = 64


class CodecError(ValueError):
    """Raised for strings (or cities) that cannot be encoded/decoded."""


def triangle(n: int) -> int:
    return n * (n + 1) // 2


def pair_radix(maximum: int) -> int:
    """Number of pairs (a, b) with a, b in 0..maximum and a + b <= maximum + 1."""
    return maximum * (maximum + 5) // 2 + 1


def pair_index(first: int, second: int, maximum: int) -> int:
    """Index of the hint pair (first, second), such that first + second <= maximum + 1."""
    if not (0 <= first <= maximum and 0 <= second <= maximum) or first + second > maximum + 1:
        raise CodecError(f"Hint pair ({first}, {second}) can't be encoded with maximum {maximum}")
    if first == 0:
        return second
    return triangle(maximum + 1) - triangle(maximum + 2 - first) + second + maximum + 1


def pair_from_index(index: int, maximum: int) -> tuple[int, int]:
    """Inverse of pair_index."""
    if 0 <= index <= maximum:
        return 0, index
    first = 1
    second = index - maximum - 1
    adder = maximum + 1
    while first <= maximum and second >= 0:
        if second < adder:
            return first, second
        first += 1
        second -= adder
        adder -= 1
    raise CodecError(f"Pair index {index} is out of range for maximum {maximum}")


def digit_count(limit: int) -> int:
    """Base-64 digits needed to write every number below `limit`."""
    digits = 1
    while SIZE_RADIX**digits < limit:
        digits += 1
    return digits


def int_to_base64(number: int, digits: int) -> str:
    if number < 0 or number >= SIZE_RADIX**digits:
        raise CodecError(f"{number} doesn't fit in {digits} base-64 digits")
    chars = []
    for _ in range(digits):
        number, digit = divmod(number, SIZE_RADIX)
        chars.append(B64_ALPHABET[digit])
    return "".join(chars)


def base64_to_int(encoded: str) -> int:
    number = 0
    for char in reversed(encoded):
        digit = _B64_INDEX.get(char)
        if digit is None:
            raise CodecError(f"Invalid character {char!r}")
        number = number * SIZE_RADIX + digit
    return number


def _check_size(width: int, height: int) -> None:
    if not (MIN_SIZE <= width <= MAX_SIZE and MIN_SIZE <= height <= MAX_SIZE):
        raise CodecError(f"City size {width}x{height} is outside {MIN_SIZE}..{MAX_SIZE}")


def city_digit_count(width: int, height: int) -> int:
    return 1 + digit_count(pair_radix(max(width, height)) ** (width + height))


def state_digit_count(width: int, height: int) -> int:
    maximum = max(width, height)
    return digit_count((2**maximum * (maximum + 1)) ** (width * height))


# ---------------------------------------------------------------------------
# Cities
# ---------------------------------------------------------------------------


def serialize_city(city: City) -> str:
    """Encode a city's size and border hints into its id."""
    width, height, hints = city.width, city.height, city.border_hints
    _check_size(width, height)
    if [len(side) for side in hints] != [width, height, width, height]:
        raise CodecError(f"Border hints don't match a {width}x{height} city")
    maximum = max(width, height)
    radix = pair_radix(maximum)

    number = 0
    for index, top in enumerate(hints[0]):
        number = number * radix + pair_index(top, hints[2][width - index - 1], maximum)
    for index, right in enumerate(hints[1]):
        number = number * radix + pair_index(right, hints[3][height - index - 1], maximum)
    # The first character holds the city size.
    number = number * SIZE_RADIX + (height - 2) * 8 + (width - 2)
    return int_to_base64(number, city_digit_count(width, height))


def deserialize_city(encoded: str) -> City:
    """Decode a city id produced by serialize_city."""
    if not encoded:
        raise CodecError("Empty city id")
    sizes = _B64_INDEX.get(encoded[0])
    if sizes is None:
        raise CodecError(f"Invalid character {encoded[0]!r}")
    width = (sizes & 7) + 2
    height = (sizes >> 3) + 2
    expected = city_digit_count(width, height)
    if len(encoded) != expected:
        raise CodecError(f"A {width}x{height} city id has {expected} characters, got {len(encoded)}")

    maximum = max(width, height)
    radix = pair_radix(maximum)
    number = base64_to_int(encoded[1:])
    if number >= radix ** (width + height):
        raise CodecError("City id is out of range")

    hints = [[0] * width, [0] * height, [0] * width, [0] * height]
    for index in reversed(range(height)):
        number, pair = divmod(number, radix)
        hints[1][index], hints[3][height - index - 1] = pair_from_index(pair, maximum)
    for index in reversed(range(width)):
        number, pair = divmod(number, radix)
        hints[0][index], hints[2][width - index - 1] = pair_from_index(pair, maximum)
    return City(width, height, hints)


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


def serialize_state(city: City, buildings: Grid, marks: Marks | None = None) -> str:
    """Encode placed heights and marks, row by row."""
    width, height = city.width, city.height
    _check_size(width, height)
    if len(buildings) != height or any(len(row) != width for row in buildings):
        raise CodecError(f"Buildings don't match a {width}x{height} city")
    if marks and (len(marks) != height or any(len(row) != width for row in marks)):
        raise CodecError(f"Marks don't match a {width}x{height} city")
    maximum = max(width, height)
    base = maximum + 1
    modulo = 2**maximum * base

    number = 0
    for r in range(height):
        for c in range(width):
            building = buildings[r][c]
            if not 0 <= building <= maximum:
                raise CodecError(f"Height {building} at r{r}c{c} is outside 0..{maximum}")
            mask = 0
            for mark in (marks[r][c] if marks else ()):
                if not 1 <= mark <= maximum:
                    raise CodecError(f"Mark {mark} at r{r}c{c} is outside 1..{maximum}")
                mask |= 1 << (mark - 1)
            number = number * modulo + mask * base + building
    return int_to_base64(number, state_digit_count(width, height))


def deserialize_state(encoded: str, width: int, height: int) -> CityState:
    """Decode a state produced by serialize_state for a city of the given size."""
    _check_size(width, height)
    expected = state_digit_count(width, height)
    if len(encoded) != expected:
        raise CodecError(f"A {width}x{height} state has {expected} characters, got {len(encoded)}")
    maximum = max(width, height)
    base = maximum + 1
    modulo = 2**maximum * base
    number = base64_to_int(encoded)
    if number >= modulo ** (width * height):
        raise CodecError("State is out of range")

    buildings = [[0] * width for _ in range(height)]
    marks: Marks = [[set() for _ in range(width)] for _ in range(height)]
    for index in reversed(range(width * height)):
        number, cell = divmod(number, modulo)
        r, c = divmod(index, width)
        mask, buildings[r][c] = divmod(cell, base)
        marks[r][c] = {value for value in range(1, maximum + 1) if mask & (1 << (value - 1))}
    return CityState(buildings, marks)


# ---------------------------------------------------------------------------
# Share links
# ---------------------------------------------------------------------------


def city_uri(city_id: str, base_url: str) -> str:
    return f"{base_url}#{city_id}"


def city_id_from_uri(uri: str) -> str | None:
    """City id found in the fragment of a shared link, if it is a valid one."""
    fragment = urlsplit(uri).fragment
    if not fragment:
        return None
    try:
        deserialize_city(fragment)
    except CodecError:
        return None
    return fragment
