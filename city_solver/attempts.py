"""Attempt records: '<ISO timestamp> <ISO-8601 duration>[*]', where '*' marks a solved city."""

# attempts.py
from __future__ import annotations

import logging
import math
import re
from datetime import datetime, timezone
from typing import Iterable

logger = logging.getLogger(__name__)

HOUR_MS = 3_600_000
MINUTE_MS = 60_000

DURATION_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S?)?$")
ATTEMPT_TIME_RE = re.compile(r" (PT[\d.HMS]*)\*?$")


def to_iso_duration(millis: float) -> str:
    """Milliseconds as an ISO-8601 duration, e.g. 'PT1H2M3.5S'."""
    hours = f"{int(millis // HOUR_MS)}H" if millis >= HOUR_MS else ""
    minutes = f"{int(millis % HOUR_MS // MINUTE_MS)}M" if millis % HOUR_MS >= MINUTE_MS else ""
    seconds = millis % MINUTE_MS / 1000
    if seconds or not (hours or minutes):
        return f"PT{hours}{minutes}{seconds:g}S"
    return f"PT{hours}{minutes}"


def from_iso_duration(duration: str) -> float:
    """Milliseconds of an ISO-8601 duration; NaN if it can't be parsed."""
    match = DURATION_RE.match(duration)
    if not match:
        return math.nan
    hours, minutes, seconds = match.groups()
    return int(hours or 0) * HOUR_MS + int(minutes or 0) * MINUTE_MS + float(seconds or 0) * 1000


def new_attempt(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    timestamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"{timestamp} {to_iso_duration(0)}"


def attempt_timestamp(attempt: str) -> str:
    return attempt.split(" ", 1)[0]


def attempt_elapsed(attempt: str) -> float:
    match = ATTEMPT_TIME_RE.search(attempt)
    if not match:
        logger.error('Malformed attempt string: "%s"', attempt)
        return 0
    elapsed = from_iso_duration(match.group(1))
    return 0 if math.isnan(elapsed) else elapsed


def is_attempt_successful(attempt: str | None) -> bool:
    return bool(attempt) and attempt.endswith("*")


def is_valid_attempt(attempt) -> bool:
    if not isinstance(attempt, str) or " " not in attempt:
        return False
    try:
        datetime.fromisoformat(attempt_timestamp(attempt).replace("Z", "+00:00"))
    except ValueError:
        return False
    match = ATTEMPT_TIME_RE.search(attempt)
    return bool(match) and not math.isnan(from_iso_duration(match.group(1)))


def update_attempt(attempt: str, elapsed: float, successful: bool = False) -> str:
    return f"{attempt_timestamp(attempt)} {to_iso_duration(elapsed)}{'*' if successful else ''}"


def format_elapsed(millis: float) -> str:
    """mm:ss"""
    return f"{int(millis // MINUTE_MS):02d}:{int(millis % MINUTE_MS // 1000):02d}"


def merge_attempts(*attempt_lists: Iterable[str]) -> list[str]:
    """One attempt per timestamp: a successful one wins over an unsuccessful one, then the fastest."""
    best: dict[str, tuple[float, bool]] = {}
    for attempt in sorted(a for attempts in attempt_lists for a in attempts):
        timestamp = attempt_timestamp(attempt)
        successful = is_attempt_successful(attempt)
        elapsed = attempt_elapsed(attempt)
        if timestamp not in best:
            best[timestamp] = (elapsed, successful)
            continue
        known_elapsed, known_successful = best[timestamp]
        if (successful and not known_successful) or (successful == known_successful and elapsed < known_elapsed):
            best[timestamp] = (elapsed, successful)
    return [
        f"{timestamp} {to_iso_duration(elapsed)}{'*' if successful else ''}"
        for timestamp, (elapsed, successful) in best.items()
    ]
