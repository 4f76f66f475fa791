"""Shared frame types, layout constants, and color utilities.

A frame is a list of rows; each row is a list of styled runs. Runs carry
RGB tuples, never escape sequences; the surface decides how to draw them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

Color = tuple[int, int, int]

BAR_HEIGHT = 4
MIN_WIDTH = 20
TITLE = "time is fleeting"

# Glyphs
FILLED = "█"  # full block
SEGMENT = "▊"  # left three-quarter block, leaves a gap between cells
POINTER = "|"
GRAIN = ("▓", "█", "▒", "▓", "█", "░")
EMPTY_GRAIN = "░"  # light shade
ANALOG_TICK = "▌"  # left half block
ANALOG_SPACING = 2


@dataclass(frozen=True)
class Run:
    """A horizontal span of identically styled text."""

    text: str
    fg: Color | None = None
    bg: Color | None = None
    bold: bool = False
    italic: bool = False


@dataclass
class FrameDescription:
    """Everything the surface needs to draw one frame."""

    width: int
    rows: list[list[Run]] = field(default_factory=list)
    background: Color | None = None

    def plain_rows(self) -> list[str]:
        return ["".join(run.text for run in row) for row in self.rows]


def darken(color: Color, factor: float) -> Color:
    """Darken an RGB color by a multiplicative factor (0.0 = black, 1.0 = unchanged)."""
    return (int(color[0] * factor), int(color[1] * factor), int(color[2] * factor))


def blend(start: Color, end: Color, t: float) -> Color:
    """Linear interpolation between two colors, t clamped to [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    return (
        round(start[0] + (end[0] - start[0]) * t),
        round(start[1] + (end[1] - start[1]) * t),
        round(start[2] + (end[2] - start[2]) * t),
    )


def centered_start(pos: int, length: int, width: int) -> int:
    """Left edge that centers `length` chars on `pos`, kept inside [0, width)."""
    start = max(pos - length // 2, 0)
    return min(start, max(width - length, 0))


def place_text(line: list[str], start: int, text: str) -> None:
    """Overwrite characters of a mutable line, clipped to its width."""
    for offset, ch in enumerate(text):
        idx = start + offset
        if 0 <= idx < len(line):
            line[idx] = ch


def center(text: str, width: int) -> str:
    if len(text) >= width:
        return text[:width]
    pad = width - len(text)
    left = pad // 2
    return " " * left + text + " " * (pad - left)
