# tests/conftest.py
import sys
from pathlib import Path

import pytest

# Add project root to sys.path so "city_solver", "city_apps" and "types_city" can be imported in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def hints_2x2():
    # column 1 seen from the top shows 2 buildings -> [[2, 1], [1, 2]]
    return [[0, 2], [0, 0], [0, 0], [0, 0]]


@pytest.fixture
def hints_4x4():
    # every hint of
    #   1 2 3 4
    #   2 3 4 1
    #   3 4 1 2
    #   4 1 2 3
    return [[4, 3, 2, 1], [1, 2, 2, 2], [2, 2, 2, 1], [1, 2, 3, 4]]


@pytest.fixture
def solution_4x4():
    return [[1, 2, 3, 4], [2, 3, 4, 1], [3, 4, 1, 2], [4, 1, 2, 3]]
