# tests/test_game.py
import pytest

from city_solver.game import CityGame
from types_city import City, Move


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def game(hints_2x2):
    return CityGame(City(2, 2, hints_2x2), clock=FakeClock())


def test_new_game_starts_empty(game):
    assert game.buildings == [[0, 0], [0, 0]]
    assert len(game.history) == 1
    assert not game.can_undo
    assert not game.can_redo


def test_set_value_undo_redo(game):
    assert game.set_value(0, 1, 1)
    assert game.buildings == [[0, 1], [0, 0]]
    assert game.can_undo

    assert game.undo()
    assert game.buildings == [[0, 0], [0, 0]]
    assert game.can_redo
    assert not game.undo()

    assert game.redo()
    assert game.buildings == [[0, 1], [0, 0]]
    assert not game.redo()


def test_new_edit_drops_redo(game):
    game.set_value(0, 1, 1)
    game.undo()
    game.set_value(1, 1, 2)
    assert not game.can_redo
    assert len(game.history) == 2
    assert game.buildings == [[0, 0], [0, 2]]


def test_same_state_is_not_recorded(game):
    game.set_value(0, 1, 1)
    game.set_value(0, 1, 1)
    assert len(game.history) == 2


def test_marks_toggle(game):
    assert game.toggle_mode()
    game.set_value(0, 0, 2)
    assert game.marks[0][0] == {2}
    game.set_value(0, 0, 2)
    assert game.marks[0][0] == set()
    assert len(game.history) == 3
    assert not game.set_value(0, 0, 0)


def test_out_of_range_edits(game):
    with pytest.raises(ValueError):
        game.set_value(2, 0, 1)
    with pytest.raises(ValueError):
        game.set_value(0, 0, 3)


def test_errors_and_hint(game):
    assert game.hint() == Move(0, 1, 1, 1)
    assert game.allowed_heights() == [[{1, 2}, {1}], [{1, 2}, {2}]]
    game.set_value(0, 0, 1)
    game.set_value(0, 1, 1)
    assert [e["kind"] for e in game.errors()] == ["duplicate", "duplicate"]


def test_completion_ends_the_attempt(game):
    game._clock.now = 2.5
    for move in (Move(0, 1, 1, 1), Move(0, 0, 2, 1), Move(1, 0, 1, 1), Move(1, 1, 2, 1)):
        assert game.apply_move(move)
    assert game.is_complete()
    assert game.current_attempt.endswith(" PT2.5S*")
    assert game.attempts == [game.current_attempt]
    # a solved attempt can't be edited any more
    assert not game.set_value(0, 0, 1)
    assert game.buildings == [[2, 1], [1, 2]]


def test_restart_starts_new_attempt(game):
    game.set_value(0, 1, 1)
    game.restart()
    assert game.buildings == [[0, 0], [0, 0]]
    assert game.can_undo


def test_restore_from_record(game, hints_2x2):
    game.set_value(0, 1, 1)
    record = game.to_record()
    assert record["id"] == "AAG"

    restored = CityGame(City(2, 2, hints_2x2), history=record["history"], attempts=record["attempts"])
    assert restored.buildings == [[0, 1], [0, 0]]
    assert restored.can_undo


def test_history_is_capped(hints_2x2):
    game = CityGame(City(2, 2, hints_2x2), max_history=3, clock=FakeClock())
    for value in (1, 2, 1, 2):
        game.set_value(1, 0, value)
    assert len(game.history) == 3


def test_from_history_resumes_attempt(hints_2x2):
    first = CityGame(City(2, 2, hints_2x2), clock=FakeClock())
    first.set_value(0, 1, 1)
    attempt = "2024-01-01T00:00:00.000Z PT1M"
    game = CityGame.from_history(City(2, 2, hints_2x2), first.history, attempt, clock=FakeClock())
    assert game.buildings == [[0, 1], [0, 0]]
    assert game.elapsed() == 60_000


def test_from_record_uses_config(game):
    from city_solver.config import load_config

    game.set_value(0, 1, 1)
    restored = CityGame.from_record(game.to_record(), load_config(max_history=7))
    assert restored.city == game.city
    assert restored.max_history == 7
    assert restored.buildings == [[0, 1], [0, 0]]
