"""Input state machine for normal and time-editing modes.

Wraps AppState; every transition goes through StateMachine methods and
completes within a single call, so a rejected edit never leaves the
config half-updated. The event loop is single-threaded, so no locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from pydantic import ValidationError

from day_meter.config import AppConfig
from day_meter.state import AppState, UiMode
from day_meter.timemodel import InvalidTimeFormat, format_hhmm, parse_hhmm

logger = logging.getLogger(__name__)

# Slot shape of a 24-hour time: d = digit
TIME_SHAPE = "dd:dd"

_CONFIG_FIELD = {"wake": "wake_up_time", "bed": "bed_time"}


def is_valid_prefix(text: str) -> bool:
    """True if text could still be completed into an HH:MM string."""
    if len(text) > len(TIME_SHAPE):
        return False
    for ch, slot in zip(text, TIME_SHAPE):
        if slot == "d" and not ch.isdigit():
            return False
        if slot == ":" and ch != ":":
            return False
    return True


@dataclass
class Transition:
    """What the event loop should do after a key was handled."""

    action: str  # "none", "quit", "edit_started", "committed", "rejected", "cancelled", ...
    mode: UiMode = "normal"


class StateMachine:
    def __init__(self, state: AppState) -> None:
        self._state = state

    @property
    def mode(self) -> UiMode:
        return self._state.mode

    @property
    def state(self) -> AppState:
        return self._state

    def handle(self, action: str, now: datetime) -> Transition:
        """Apply a routed action string to the session state."""
        s = self._state

        if action == "quit":
            if s.editing:
                logger.info("Quit while editing, discarding %r", s.edit_buffer.raw_text)
            s.request_stop()
            return Transition(action="quit", mode=s.mode)

        if s.editing:
            return self._handle_edit(action, now)

        if action == "edit_wake":
            s.enter_edit("wake")
            return Transition(action="edit_started", mode=s.mode)
        if action == "edit_bed":
            s.enter_edit("bed")
            return Transition(action="edit_started", mode=s.mode)
        if action == "toggle_help":
            s.help_visible = not s.help_visible
            return Transition(action="help_toggled", mode=s.mode)
        if action == "dismiss" and s.help_visible:
            s.help_visible = False
            return Transition(action="help_toggled", mode=s.mode)

        return Transition(action="none", mode=s.mode)

    def advance_tick(self, now: datetime) -> Transition:
        """Expire transient notices. Called once per tick before input dispatch."""
        had_notice = self._state.notice is not None
        self._state.expire_notice(now)
        if had_notice and self._state.notice is None:
            return Transition(action="notice_expired", mode=self._state.mode)
        return Transition(action="none", mode=self._state.mode)

    # --- Editing ---

    def _handle_edit(self, action: str, now: datetime) -> Transition:
        s = self._state
        buf = s.edit_buffer

        if action.startswith("input:"):
            candidate = buf.raw_text + action.split(":", 1)[1]
            if is_valid_prefix(candidate):
                buf.raw_text = candidate
            return Transition(action="none", mode=s.mode)

        if action == "backspace":
            buf.raw_text = buf.raw_text[:-1]
            return Transition(action="none", mode=s.mode)

        if action == "cancel":
            s.exit_edit()
            return Transition(action="cancelled", mode=s.mode)

        if action == "commit":
            return self._commit(now)

        return Transition(action="none", mode=s.mode)

    def _commit(self, now: datetime) -> Transition:
        s = self._state
        buf = s.edit_buffer
        field_name = _CONFIG_FIELD[buf.target_field]

        try:
            value = format_hhmm(parse_hhmm(buf.raw_text))
        except InvalidTimeFormat as e:
            logger.info("Rejected edit of %s: %s", field_name, e)
            s.exit_edit()
            s.show_notice("Invalid format, use HH:MM (00:00-23:59)", now)
            return Transition(action="rejected", mode=s.mode)

        try:
            updated = AppConfig(**{**s.config.model_dump(), field_name: value})
        except ValidationError as e:
            logger.info("Rejected edit of %s: %s", field_name, e)
            s.exit_edit()
            s.show_notice("Wake-up and bed time must differ", now)
            return Transition(action="rejected", mode=s.mode)

        s.config = updated
        s.dirty = True
        s.exit_edit()
        logger.info("%s set to %s", field_name, value)
        label = "Wake-up" if buf.target_field == "wake" else "Bed"
        s.show_notice(f"{label} time set to {value}", now, level="info")
        return Transition(action="committed", mode=s.mode)
