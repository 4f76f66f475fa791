"""Day progress model.

Converts wall-clock time and the configured wake/bed boundaries into a
normalized progress fraction plus marker positions. Everything here is a
pure function of its inputs so it can be tested without a live clock.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta

MINUTES_PER_DAY = 24 * 60
NOON = time(12, 0)

_HHMM_RE = re.compile(r"^(\d{2}):(\d{2})$")


class InvalidTimeFormat(ValueError):
    """Raised when a string is not a valid 24-hour HH:MM time."""


def parse_hhmm(text: str) -> time:
    """Parse a strict 24-hour "HH:MM" string."""
    match = _HHMM_RE.match(text.strip())
    if not match:
        raise InvalidTimeFormat(f"Expected HH:MM, got {text!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidTimeFormat(f"Time out of range: {text!r}")
    return time(hour, minute)


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def format_duration(delta: timedelta) -> str:
    """Format a duration as HH:MM, truncating seconds."""
    total_minutes = int(delta.total_seconds()) // 60
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def _minutes(value: time | datetime) -> float:
    return value.hour * 60 + value.minute + value.second / 60 + value.microsecond / 60_000_000


@dataclass(frozen=True)
class DayBoundaries:
    wake_up_time: time
    bed_time: time

    @property
    def wraps(self) -> bool:
        """True when bed time falls on the next calendar day."""
        return _minutes(self.bed_time) <= _minutes(self.wake_up_time)

    @property
    def span_minutes(self) -> float:
        wake = _minutes(self.wake_up_time)
        bed = _minutes(self.bed_time)
        if bed <= wake:
            bed += MINUTES_PER_DAY
        return bed - wake


@dataclass(frozen=True)
class ProgressState:
    """Derived progress through the day span, recomputed every tick.

    Marker values are fractions in [0, 1], or None when the marker falls
    outside the day span and should be omitted.
    """

    fraction: float
    elapsed: timedelta
    remaining: timedelta
    outside_window: bool
    markers: dict[str, float | None] = field(default_factory=dict)


def _position(minute_of_day: float, wake: float, bed: float, wraps: bool) -> float:
    """Place a minute-of-day on the (possibly wrapped) wake..bed axis."""
    if wraps and minute_of_day < wake:
        return minute_of_day + MINUTES_PER_DAY
    return minute_of_day


def marker_fraction(at: time, boundaries: DayBoundaries) -> float | None:
    """Fraction of the day span at which a time-of-day falls, if inside it."""
    wake = _minutes(boundaries.wake_up_time)
    span = boundaries.span_minutes
    pos = _position(_minutes(at), wake, wake + span, boundaries.wraps)
    if pos < wake or pos > wake + span:
        return None
    return (pos - wake) / span


def compute(now: datetime | time, boundaries: DayBoundaries) -> ProgressState:
    """Compute day progress for a wall-clock instant."""
    wake = _minutes(boundaries.wake_up_time)
    span = boundaries.span_minutes
    bed = wake + span
    current = _position(_minutes(now), wake, bed, boundaries.wraps)

    if current <= wake:
        fraction, outside = 0.0, True
    elif current >= bed:
        fraction, outside = 1.0, True
    else:
        fraction, outside = (current - wake) / span, False

    elapsed = timedelta(minutes=span * fraction)
    remaining = timedelta(minutes=span) - elapsed

    markers = {
        "sunrise": 0.0,
        "noon": marker_fraction(NOON, boundaries),
        "sunset": 1.0,
    }
    return ProgressState(
        fraction=fraction,
        elapsed=elapsed,
        remaining=remaining,
        outside_window=outside,
        markers=markers,
    )
