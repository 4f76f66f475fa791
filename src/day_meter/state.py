"""Session state for the day meter.

Tracks the input mode, the edit buffer, transient overlays and the
in-memory config copy. One instance is owned by the event loop and passed
explicitly to everything that reads or mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal

from day_meter.config import AppConfig
from day_meter.quotes import Quote

UiMode = Literal["normal", "editing_wake", "editing_bed"]
EditField = Literal["wake", "bed"]
NoticeLevel = Literal["info", "warning", "error"]

NOTICE_SECONDS = 3.0


@dataclass
class EditBuffer:
    target_field: EditField
    raw_text: str = ""


@dataclass
class Notice:
    text: str
    expires: datetime
    level: NoticeLevel = "warning"


@dataclass
class AppState:
    config: AppConfig = field(default_factory=AppConfig)
    mode: UiMode = "normal"
    help_visible: bool = False
    edit_buffer: EditBuffer | None = None

    # Transient overlays
    notice: Notice | None = None
    quote: Quote | None = None

    # Config copy differs from what was last persisted
    dirty: bool = False
    running: bool = True

    @property
    def editing(self) -> bool:
        return self.mode != "normal"

    def enter_edit(self, target: EditField) -> None:
        """Transition to editing mode with an empty buffer."""
        self.mode = "editing_wake" if target == "wake" else "editing_bed"
        self.edit_buffer = EditBuffer(target_field=target)

    def exit_edit(self) -> None:
        """Drop the edit buffer and return to normal mode."""
        self.mode = "normal"
        self.edit_buffer = None

    def show_notice(
        self,
        text: str,
        now: datetime,
        level: NoticeLevel = "warning",
        seconds: float = NOTICE_SECONDS,
    ) -> None:
        self.notice = Notice(text=text, level=level, expires=now + timedelta(seconds=seconds))

    def expire_notice(self, now: datetime) -> None:
        if self.notice is not None and now >= self.notice.expires:
            self.notice = None

    def request_stop(self) -> None:
        self.exit_edit()
        self.running = False
