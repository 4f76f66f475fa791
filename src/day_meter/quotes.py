"""Reflective quotes shown once per hour, and the hourly trigger that fetches them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quote:
    text: str
    author: str


class QuoteProvider(Protocol):
    def next_quote(self) -> Quote: ...


# One per hour of the day
QUOTES: tuple[Quote, ...] = (
    Quote("Forever is composed of nows.", "Emily Dickinson"),
    Quote("Lost time is never found again.", "Benjamin Franklin"),
    Quote("How we spend our days is, of course, how we spend our lives.", "Annie Dillard"),
    Quote("Time is what we want most, but what we use worst.", "William Penn"),
    Quote("It is not that we have a short time to live, but that we waste a lot of it.", "Seneca"),
    Quote("Nature does not hurry, yet everything is accomplished.", "Lao Tzu"),
    Quote("Each morning we are born again. What we do today is what matters most.", "Buddha"),
    Quote("Begin at once to live, and count each separate day as a separate life.", "Seneca"),
    Quote("Yesterday is gone. Tomorrow has not yet come. We have only today. Let us begin.", "Mother Teresa"),
    Quote("The key is in not spending time, but in investing it.", "Stephen R. Covey"),
    Quote("You may delay, but time will not.", "Benjamin Franklin"),
    Quote("Wherever you are, be all there.", "Jim Elliot"),
    Quote("The trouble is, you think you have time.", "Jack Kornfield"),
    Quote("Time you enjoy wasting is not wasted time.", "Marthe Troly-Curtin"),
    Quote("The bad news is time flies. The good news is you're the pilot.", "Michael Altshuler"),
    Quote("Life is really simple, but we insist on making it complicated.", "Confucius"),
    Quote("Time is the wisest counselor of all.", "Pericles"),
    Quote("Look deep into nature, and then you will understand everything better.", "Albert Einstein"),
    Quote(
        "Dost thou love life? Then do not squander time, for that's the stuff life is made of.",
        "Benjamin Franklin",
    ),
    Quote("Slow down and everything you are chasing will come around and catch you.", "John De Paola"),
    Quote(
        "An inch of time is an inch of gold, but you can't buy that inch of time with an inch of gold.",
        "Chinese proverb",
    ),
    Quote(
        "The present moment is filled with joy and happiness. If you are attentive, you will see it.",
        "Thich Nhat Hanh",
    ),
    Quote(
        "Do not dwell in the past, do not dream of the future, concentrate the mind on the present moment.",
        "Buddha",
    ),
    Quote("Rest is not idleness.", "John Lubbock"),
)


class CyclicQuotes:
    """Cycles through a fixed quote list, starting at a given offset."""

    def __init__(self, quotes: Sequence[Quote] = QUOTES, start: int = 0) -> None:
        if not quotes:
            raise ValueError("Quote list is empty")
        self._quotes = tuple(quotes)
        self._index = start % len(self._quotes)

    def next_quote(self) -> Quote:
        quote = self._quotes[self._index]
        self._index = (self._index + 1) % len(self._quotes)
        return quote


class HourlyTrigger:
    """Fires once each time the wall clock enters a new hour.

    Keyed on (date, hour) rather than minute == 0 so a tick that skips the
    exact boundary, or a clock jump, still fires exactly once.
    """

    def __init__(self) -> None:
        self._last: tuple[object, int] | None = None

    def crossed(self, now: datetime) -> bool:
        key = (now.date(), now.hour)
        if key == self._last:
            return False
        first = self._last is None
        self._last = key
        if not first:
            logger.debug("Hour boundary crossed at %s", now.strftime("%H:%M:%S"))
        return True
