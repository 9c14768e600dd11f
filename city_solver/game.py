"""A game in progress: current buildings and marks, undo/redo history of encoded states, and the timed attempt."""

# game.py
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from types_city import City, GameError, Move

from .attempts import (
    attempt_elapsed,
    attempt_timestamp,
    is_attempt_successful,
    new_attempt,
    update_attempt,
)
from .city_tools import RequestKind, handle_request
from .config import load_config
from .serialize import deserialize_city, deserialize_state, serialize_city, serialize_state
from .solver_core import border_errors, empty_grid, field_errors

logger = logging.getLogger(__name__)


class CityGame:
    def __init__(
        self,
        city: City,
        history: Optional[List[str]] = None,
        attempts: Optional[List[str]] = None,
        attempt: Optional[str] = None,
        max_history: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.city = city
        self.city_id = serialize_city(city)
        self.history: List[str] = list(history or [])
        self.attempts: List[str] = list(attempts or [])
        self.max_history = max_history
        self.history_pointer = 0  # how many moves we're behind the end of the history
        self.mark_mode = False
        self._clock = clock
        self._start_attempt(attempt)

        if self.history:
            self._restore(self.history[-1])
        else:
            self.buildings = empty_grid(city.width, city.height)
            self.marks = [[set() for _ in range(city.width)] for _ in range(city.height)]
            self.history.append(serialize_state(city, self.buildings, self.marks))

    @classmethod
    def from_history(cls, city: City, history: List[str], attempt: Optional[str] = None, **kwargs) -> "CityGame":
        """Resume a game at the last entry of its history."""
        return cls(city, history=history, attempt=attempt, **kwargs)

    @classmethod
    def from_record(cls, record: dict, cfg=None) -> "CityGame":
        """Inverse of to_record; the history cap comes from the config."""
        cfg = cfg or load_config()
        return cls(
            deserialize_city(record["id"]),
            history=record.get("history"),
            attempts=record.get("attempts"),
            max_history=cfg.max_history,
        )

    def _start_attempt(self, attempt: Optional[str]) -> None:
        self.current_attempt = attempt or new_attempt()
        self._elapsed_before = attempt_elapsed(self.current_attempt) if attempt else 0
        self._attempt_start = self._clock()

    def _restore(self, state: str) -> None:
        restored = deserialize_state(state, self.city.width, self.city.height)
        self.buildings, self.marks = restored.buildings, restored.marks

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def toggle_mode(self, force_mark_mode: Optional[bool] = None) -> bool:
        self.mark_mode = not self.mark_mode if force_mark_mode is None else bool(force_mark_mode)
        return self.mark_mode

    def set_value(self, row: int, column: int, value: int) -> bool:
        """Enter a height (or toggle a mark in mark mode). Returns False if the edit was ignored."""
        if is_attempt_successful(self.current_attempt):
            # A successful attempt can't be updated - only navigated or restarted
            return False
        if not (0 <= row < self.city.height and 0 <= column < self.city.width):
            raise ValueError(f"Cell r{row}c{column} is outside the city")
        if not 0 <= value <= self.city.max_value:
            raise ValueError(f"Height {value} is outside 0..{self.city.max_value}")

        if self.mark_mode:
            if not value:
                return False
            self.marks[row][column] ^= {value}
        else:
            self.buildings[row][column] = value
        self._update_history()
        return True

    def apply_move(self, move: Move) -> bool:
        self.toggle_mode(False)
        return self.set_value(move.row, move.column, move.height)

    def restart(self) -> None:
        """Start a fresh attempt on an empty city."""
        self._start_attempt(None)
        self.buildings = empty_grid(self.city.width, self.city.height)
        self.marks = [[set() for _ in range(self.city.width)] for _ in range(self.city.height)]
        self._update_history()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @property
    def can_undo(self) -> bool:
        return self.history_pointer < len(self.history) - 1

    @property
    def can_redo(self) -> bool:
        return self.history_pointer > 0

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self.history_pointer += 1
        self._restore(self.history[len(self.history) - self.history_pointer - 1])
        logger.debug("Undo: %d step(s) behind", self.history_pointer)
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self.history_pointer -= 1
        self._restore(self.history[len(self.history) - self.history_pointer - 1])
        logger.debug("Redo: %d step(s) behind", self.history_pointer)
        return True

    def _update_history(self) -> None:
        state = serialize_state(self.city, self.buildings, self.marks)
        last_state = self.history[len(self.history) - self.history_pointer - 1] if self.history else None
        if state == last_state:
            return
        self.history = self.history[: len(self.history) - self.history_pointer] + [state]
        if len(self.history) > self.max_history:
            self.history = self.history[-self.max_history :]
        self.history_pointer = 0
        self._update_attempts()
        if is_attempt_successful(self.current_attempt):
            logger.info("City %s completed: %s", self.city_id, self.current_attempt)

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    def elapsed(self) -> float:
        """Milliseconds spent on the current attempt."""
        return self._elapsed_before + (self._clock() - self._attempt_start) * 1000

    def _update_attempts(self) -> None:
        self.current_attempt = update_attempt(self.current_attempt, self.elapsed(), self.is_complete())
        timestamp = attempt_timestamp(self.current_attempt)
        for index, attempt in enumerate(self.attempts):
            if attempt_timestamp(attempt) == timestamp:
                self.attempts[index] = self.current_attempt
                return
        self.attempts.append(self.current_attempt)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def errors(self) -> List[GameError]:
        return field_errors(self.buildings) + border_errors(self.buildings, self.city.border_hints)

    def is_complete(self) -> bool:
        has_gaps = any(0 in row for row in self.buildings)
        return not has_gaps and not self.errors()

    def hint(self) -> Optional[Move]:
        return handle_request(RequestKind.HINT, self.city.border_hints, self.buildings)

    def allowed_heights(self):
        return handle_request(RequestKind.GET_ALLOWED_HEIGHTS, self.city.border_hints, self.buildings)

    def to_record(self) -> dict:
        return {"id": self.city_id, "history": list(self.history), "attempts": list(self.attempts)}
