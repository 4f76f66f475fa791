"""Frame renderer.

A FrameDescription describes a frame as rows of styled runs. The
FrameRenderer turns it into a rich Text that a Live display can draw.
"""

from __future__ import annotations

from rich.color import Color as RichColor
from rich.style import Style
from rich.text import Text

from .primitives import Color, FrameDescription, Run


def _color(rgb: Color | None) -> RichColor | None:
    if rgb is None:
        return None
    return RichColor.from_rgb(*rgb)


def run_style(run: Run, background: Color | None = None) -> Style:
    return Style(
        color=_color(run.fg),
        bgcolor=_color(run.bg if run.bg is not None else background),
        bold=run.bold,
        italic=run.italic,
    )


class FrameRenderer:
    """Renders a FrameDescription to a rich Text, one line per row."""

    def render(self, frame: FrameDescription) -> Text:
        text = Text(no_wrap=True, overflow="crop", end="")
        for idx, row in enumerate(frame.rows):
            if idx:
                text.append("\n", style=run_style(Run(""), frame.background))
            for run in row:
                text.append(run.text, style=run_style(run, frame.background))
        return text
