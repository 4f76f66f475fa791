"""Rendering surfaces: the real terminal and a scripted stub.

TerminalSurface owns the terminal for the lifetime of the app: it puts
stdin into cbreak mode, draws frames through a full-screen rich Live
display, and turns raw stdin bytes into key names. Nothing else in the
package touches the terminal.
"""

from __future__ import annotations

import logging
import os
import select
import sys
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from rich.console import Console
from rich.live import Live

from day_meter.ui.framework.primitives import FrameDescription
from day_meter.ui.framework.screen import FrameRenderer

logger = logging.getLogger(__name__)

EventKind = Literal["key", "resize", "interrupt"]

_CSI_NAMES = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

_CONTROL_NAMES = {
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\t": "tab",
}


class RenderingSurfaceError(Exception):
    """The terminal cannot be used for drawing or input."""


@dataclass(frozen=True)
class InputEvent:
    kind: EventKind
    key: str = ""


def decode_keys(data: str) -> list[str]:
    """Split raw terminal input into key names.

    Printable characters map to themselves; control bytes and escape
    sequences map to names like "enter", "esc" or "up".
    """
    keys: list[str] = []
    i = 0
    while i < len(data):
        ch = data[i]
        if ch == "\x1b":
            if i + 1 < len(data) and data[i + 1] in "[O":
                j = i + 2
                while j < len(data) and not (data[j].isalpha() or data[j] == "~"):
                    j += 1
                final = data[j] if j < len(data) else ""
                keys.append(_CSI_NAMES.get(final, "unknown"))
                i = j + 1
                continue
            keys.append("esc")
        elif ch == "\x03":
            keys.append("interrupt")
        elif ch in _CONTROL_NAMES:
            keys.append(_CONTROL_NAMES[ch])
        elif ch.isprintable():
            keys.append(ch)
        i += 1
    return keys


class TerminalSurface:
    """Full-screen rich display plus non-blocking keyboard input (POSIX)."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self._renderer = FrameRenderer()
        self._live: Live | None = None
        self._fd: int | None = None
        self._saved_attrs: list | None = None
        self._pending: deque[str] = deque()
        self._size = None

    @property
    def width(self) -> int:
        return self.console.size.width

    def open(self) -> None:
        if not sys.stdin.isatty() or not self.console.is_terminal:
            raise RenderingSurfaceError("day-meter needs an interactive terminal")
        try:
            import termios
            import tty
        except ImportError as e:
            raise RenderingSurfaceError("day-meter needs a POSIX terminal") from e

        self._fd = sys.stdin.fileno()
        try:
            self._saved_attrs = termios.tcgetattr(self._fd)
            tty.setcbreak(self._fd)
        except (termios.error, OSError) as e:
            raise RenderingSurfaceError(f"Cannot configure terminal: {e}") from e

        self._live = Live(console=self.console, screen=True, auto_refresh=False)
        try:
            self._live.start()
        except Exception:
            self._live = None
            self._restore_terminal()
            raise
        self._size = self.console.size
        self.console.show_cursor(False)
        logger.info("Terminal surface opened (%dx%d)", self._size.width, self._size.height)

    def close(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None
            self.console.show_cursor(True)
        self._restore_terminal()
        logger.info("Terminal surface closed")

    def _restore_terminal(self) -> None:
        if self._fd is not None and self._saved_attrs is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def poll_event(self, timeout: float) -> InputEvent | None:
        """Wait up to timeout seconds for one input event."""
        size = self.console.size
        if size != self._size:
            self._size = size
            return InputEvent(kind="resize")

        if not self._pending:
            readable, _, _ = select.select([self._fd], [], [], timeout)
            if not readable:
                return None
            data = os.read(self._fd, 64).decode("utf-8", errors="ignore")
            self._pending.extend(decode_keys(data))
            if not self._pending:
                return None

        key = self._pending.popleft()
        if key == "interrupt":
            return InputEvent(kind="interrupt")
        return InputEvent(kind="key", key=key)

    def draw(self, frame: FrameDescription) -> None:
        if self._live is None:
            raise RenderingSurfaceError("Surface is not open")
        self._live.update(self._renderer.render(frame), refresh=True)


class StubSurface:
    """Stub surface for testing without a terminal.

    Replays a script of events (None means "no input this tick") and
    records every frame drawn. Once the script runs out it reports an
    interrupt so a loop under test always terminates.
    """

    def __init__(self, events: Iterable[InputEvent | None] = (), width: int = 80) -> None:
        self._events = deque(events)
        self.width = width
        self.frames: list[FrameDescription] = []
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True
        logger.info("Stub surface opened")

    def close(self) -> None:
        self.closed = True
        logger.info("Stub surface closed")

    def poll_event(self, timeout: float) -> InputEvent | None:
        if not self._events:
            return InputEvent(kind="interrupt")
        return self._events.popleft()

    def draw(self, frame: FrameDescription) -> None:
        self.frames.append(frame)