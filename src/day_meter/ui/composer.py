"""Frame composer: turns progress, theme and overlay into a FrameDescription.

The composer is deterministic given its inputs. It never reads the clock
or the config provider; the event loop hands it everything it needs.

Layout, top to bottom:
  title
  floating time label + pointer       \
  bar (BAR_HEIGHT rows)                } replaced by the help overlay
  marker ticks, times, labels         /
  banner (edit prompt, notice or quote)
  legend
  key hints
"""

from __future__ import annotations

import math
import textwrap
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Literal

from day_meter.config import BarStyle
from day_meter.quotes import Quote
from day_meter.state import AppState, UiMode
from day_meter.timemodel import DayBoundaries, ProgressState, format_duration, format_hhmm

from .framework.primitives import (
    ANALOG_SPACING,
    ANALOG_TICK,
    BAR_HEIGHT,
    EMPTY_GRAIN,
    FILLED,
    GRAIN,
    MIN_WIDTH,
    POINTER,
    SEGMENT,
    TITLE,
    Color,
    FrameDescription,
    Run,
    blend,
    center,
    centered_start,
    darken,
    place_text,
)
from .themes import Palette

OverlayKind = Literal["prompt", "notice", "help", "quote"]

BANNER_ROWS = 3
# Floating time (2) + bar + markers (3)
BAR_BLOCK_ROWS = 2 + BAR_HEIGHT + 3

HELP_LINES = (
    "KEYS",
    "",
    "t  cycle theme        d  light / dark",
    "s  cycle bar style    h  toggle help",
    "w  set wake-up time   b  set bed time",
    "q  quit",
    "",
    "While editing: type HH:MM, Enter saves, Esc cancels",
)

_PROMPT_LABELS = {"wake": "Wake-up time", "bed": "Bed time"}


@dataclass
class Overlay:
    kind: OverlayKind
    lines: list[str] = field(default_factory=list)
    author: str = ""
    level: str = "info"


def select_overlay(state: AppState) -> Overlay | None:
    """Pick the single visible overlay.

    Precedence: edit prompt > transient notice > help > quote banner.
    """
    if state.edit_buffer is not None:
        buf = state.edit_buffer
        label = _PROMPT_LABELS[buf.target_field]
        return Overlay(kind="prompt", lines=[f"{label}: {format_slots(buf.raw_text)}"])
    if state.notice is not None:
        return Overlay(kind="notice", lines=[state.notice.text], level=state.notice.level)
    if state.help_visible:
        return Overlay(kind="help", lines=list(HELP_LINES))
    if state.quote is not None:
        return quote_overlay(state.quote)
    return None


def quote_overlay(quote: Quote) -> Overlay:
    return Overlay(kind="quote", lines=[quote.text], author=quote.author)


def format_slots(raw: str) -> str:
    """Show a partial HH:MM entry with underscores for missing digits."""
    slots = list("__:__")
    for idx, ch in enumerate(raw[:5]):
        slots[idx] = ch
    return "".join(slots)


def _merge(runs: list[Run]) -> list[Run]:
    """Join adjacent runs that share a style."""
    merged: list[Run] = []
    for run in runs:
        if merged:
            last = merged[-1]
            if (last.fg, last.bg, last.bold, last.italic) == (run.fg, run.bg, run.bold, run.italic):
                merged[-1] = Run(last.text + run.text, last.fg, last.bg, last.bold, last.italic)
                continue
        merged.append(run)
    return merged


def _position(fraction: float, width: int) -> int:
    return round(fraction * (width - 1))


class FrameComposer:
    """Builds FrameDescriptions at a given terminal width."""

    def __init__(self, width: int = 80) -> None:
        self.width = max(width, MIN_WIDTH)

    def resize(self, width: int) -> None:
        self.width = max(width, MIN_WIDTH)

    def compose(
        self,
        progress: ProgressState,
        palette: Palette,
        style: BarStyle,
        mode: UiMode,
        overlay: Overlay | None,
        now: datetime,
        boundaries: DayBoundaries,
    ) -> FrameDescription:
        rows: list[list[Run]] = []
        rows.append(self._title_row(progress, palette))
        rows.append(self._blank())

        if overlay is not None and overlay.kind == "help":
            rows.extend(self._help_rows(overlay, palette))
        else:
            rows.extend(self._time_label_rows(progress, palette, now))
            rows.extend(self.bar_rows(progress.fraction, palette, style))
            rows.extend(self._marker_rows(progress, palette, boundaries))

        rows.append(self._blank())
        banner = overlay if overlay is not None and overlay.kind != "help" else None
        rows.extend(self._banner_rows(banner, palette))
        rows.append(self._blank())
        rows.append(self._legend_row(progress, palette))
        rows.append(self._hint_row(mode, palette))

        return FrameDescription(width=self.width, rows=[_merge(r) for r in rows], background=palette.background)

    # --- Bar ---

    def bar_rows(self, fraction: float, palette: Palette, style: BarStyle) -> list[list[Run]]:
        width = self.width
        pointer = _position(fraction, width)

        rows = []
        for row in range(BAR_HEIGHT):
            if style is BarStyle.GRADIENT:
                cells = self._gradient_cells(fraction, palette)
            elif style is BarStyle.GRAINY:
                cells = self._grainy_cells(fraction, palette, row)
            elif style is BarStyle.ANALOG:
                cells = self._analog_cells(fraction, palette)
            else:
                raise ValueError(f"Unknown bar style: {style}")
            cells[pointer] = Run(POINTER, palette.progress_indicator, bold=True)
            rows.append(cells)
        return rows

    def _fill_color(self, palette: Palette, col: int) -> Color:
        return blend(palette.progress_start, palette.progress_end, col / max(self.width - 1, 1))

    def _gradient_cells(self, fraction: float, palette: Palette) -> list[Run]:
        filled = round(fraction * self.width)
        return [
            Run(FILLED, self._fill_color(palette, col)) if col < filled
            else Run(SEGMENT, palette.progress_empty)
            for col in range(self.width)
        ]

    def _grainy_cells(self, fraction: float, palette: Palette, row: int) -> list[Run]:
        filled = round(fraction * self.width)
        cells = []
        for col in range(self.width):
            if col < filled:
                grain = (col * 7 + row * 3) % len(GRAIN)
                color = self._fill_color(palette, col)
                if grain % 2:
                    color = darken(color, 0.8)
                cells.append(Run(GRAIN[grain], color))
            else:
                cells.append(Run(EMPTY_GRAIN, palette.progress_empty))
        return cells

    def _analog_cells(self, fraction: float, palette: Palette) -> list[Run]:
        tick_cols = range(0, self.width, ANALOG_SPACING)
        lit = math.floor(fraction * len(tick_cols))
        cells = [Run(" ") for _ in range(self.width)]
        for idx, col in enumerate(tick_cols):
            color = palette.progress_start if idx < lit else palette.progress_empty
            cells[col] = Run(ANALOG_TICK, color)
        return cells

    # --- Rows ---

    def _blank(self) -> list[Run]:
        return [Run(" " * self.width)]

    def _title_row(self, progress: ProgressState, palette: Palette) -> list[Run]:
        text = TITLE
        suffix = "  · resting" if progress.outside_window else ""
        pad = max(self.width - len(text) - len(suffix), 0)
        return [
            Run(text, palette.title, bold=True),
            Run(suffix, palette.marker_label, italic=True),
            Run(" " * pad),
        ]

    def _time_label_rows(self, progress: ProgressState, palette: Palette, now: datetime) -> list[list[Run]]:
        label = now.strftime("%H:%M")
        pos = _position(progress.fraction, self.width)
        label_line = [" "] * self.width
        place_text(label_line, centered_start(pos, len(label), self.width), label)
        pointer_line = [" "] * self.width
        place_text(pointer_line, pos, POINTER)
        return [
            [Run("".join(label_line), palette.foreground, bold=True)],
            [Run("".join(pointer_line), palette.foreground)],
        ]

    def _marker_rows(
        self, progress: ProgressState, palette: Palette, boundaries: DayBoundaries
    ) -> list[list[Run]]:
        ticks = [" "] * self.width
        times = [" "] * self.width
        labels = [" "] * self.width
        markers = (
            ("sunrise", "Wake Up", boundaries.wake_up_time),
            ("noon", "Noon", time(12, 0)),
            ("sunset", "Bed", boundaries.bed_time),
        )
        for key, label, at in markers:
            fraction = progress.markers.get(key)
            if fraction is None:
                continue
            pos = _position(fraction, self.width)
            stamp = format_hhmm(at)
            place_text(ticks, pos, POINTER)
            place_text(times, centered_start(pos, len(stamp), self.width), stamp)
            place_text(labels, centered_start(pos, len(label), self.width), label)
        return [
            [Run("".join(ticks), palette.marker)],
            [Run("".join(times), palette.marker)],
            [Run("".join(labels), palette.marker_label)],
        ]

    def _help_rows(self, overlay: Overlay, palette: Palette) -> list[list[Run]]:
        lines = list(overlay.lines)[:BAR_BLOCK_ROWS]
        top = (BAR_BLOCK_ROWS - len(lines)) // 2
        rows = [self._blank() for _ in range(top)]
        for idx, line in enumerate(lines):
            rows.append([Run(center(line, self.width), palette.title if idx == 0 else palette.foreground, bold=idx == 0)])
        while len(rows) < BAR_BLOCK_ROWS:
            rows.append(self._blank())
        return rows

    def _banner_rows(self, overlay: Overlay | None, palette: Palette) -> list[list[Run]]:
        rows: list[list[Run]] = []
        if overlay is None:
            pass
        elif overlay.kind == "prompt":
            rows.append([Run(center(overlay.lines[0], self.width), palette.progress_indicator, bold=True)])
            rows.append([Run(center("Enter to save, Esc to cancel", self.width), palette.marker_label)])
        elif overlay.kind == "notice":
            color = palette.notice if overlay.level != "info" else palette.foreground
            rows.append([Run(center(overlay.lines[0], self.width), color, bold=True)])
        elif overlay.kind == "quote":
            wrapped = textwrap.wrap(f"“{overlay.lines[0]}”", max(self.width - 4, 10))
            for line in wrapped[: BANNER_ROWS - 1]:
                rows.append([Run(center(line, self.width), palette.quote, italic=True)])
            rows.append([Run(center(f"~ {overlay.author}", self.width), palette.quote, italic=True)])
        while len(rows) < BANNER_ROWS:
            rows.append(self._blank())
        return rows

    def _legend_row(self, progress: ProgressState, palette: Palette) -> list[Run]:
        elapsed = format_duration(progress.elapsed)
        remaining = format_duration(progress.remaining)
        parts = [
            Run(f"{FILLED} Elapsed: ", palette.legend_elapsed),
            Run(f"{elapsed}   ", palette.foreground),
            Run(f"{SEGMENT} Remaining: ", palette.legend_remaining),
            Run(remaining, palette.foreground),
        ]
        length = sum(len(p.text) for p in parts)
        left = max((self.width - length) // 2, 0)
        right = max(self.width - length - left, 0)
        return [Run(" " * left), *parts, Run(" " * right)]

    def _hint_row(self, mode: UiMode, palette: Palette) -> list[Run]:
        if mode == "normal":
            hint = "h help  ·  q quit"
        else:
            hint = "Enter save  ·  Esc cancel  ·  q quit"
        return [Run(center(hint, self.width), palette.marker_label)]
