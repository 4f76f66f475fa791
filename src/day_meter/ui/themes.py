"""Built-in color themes and the cyclic theme/style catalog.

Palettes are declared as color strings and resolved to RGB tuples once,
at import time, through Pillow's color parser.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from PIL import ImageColor

from day_meter.config import BarStyle

from .framework.primitives import Color

logger = logging.getLogger(__name__)

ThemeMode = Literal["light", "dark"]


def _rgb(spec: str) -> Color:
    r, g, b = ImageColor.getrgb(spec)[:3]
    return (r, g, b)


@dataclass(frozen=True)
class Palette:
    """Semantic role to color."""

    foreground: Color
    title: Color
    progress_start: Color
    progress_end: Color
    progress_empty: Color
    progress_indicator: Color
    marker: Color
    marker_label: Color
    quote: Color
    legend_elapsed: Color
    legend_remaining: Color
    notice: Color
    background: Color | None = None

    @classmethod
    def of(cls, background: str | None = None, **roles: str) -> Palette:
        return cls(background=_rgb(background) if background else None,
                   **{k: _rgb(v) for k, v in roles.items()})


@dataclass(frozen=True)
class Theme:
    name: str
    light: Palette
    dark: Palette

    def palette(self, mode: ThemeMode) -> Palette:
        return self.dark if mode == "dark" else self.light


THEMES: tuple[Theme, ...] = (
    Theme(
        name="default",
        light=Palette.of(
            foreground="white", title="white",
            progress_start="white", progress_end="white", progress_empty="#808080",
            progress_indicator="yellow", marker="white", marker_label="white",
            quote="#c0c0c0", legend_elapsed="white", legend_remaining="#808080",
            notice="#ff8c00",
        ),
        dark=Palette.of(
            foreground="white", title="cyan",
            progress_start="cyan", progress_end="blue", progress_empty="#282828",
            progress_indicator="yellow", marker="#c0c0c0", marker_label="#808080",
            quote="#646464", legend_elapsed="cyan", legend_remaining="#3c3c3c",
            notice="#ff8c00",
        ),
    ),
    Theme(
        name="ocean",
        light=Palette.of(
            foreground="#006699", title="#006699",
            progress_start="#0099cc", progress_end="#00ccff", progress_empty="#cce5ff",
            progress_indicator="#ff9900", marker="#006699", marker_label="#004d80",
            quote="#6699b3", legend_elapsed="#0099cc", legend_remaining="#99cce5",
            notice="#ff9900",
        ),
        dark=Palette.of(
            foreground="#66ccff", title="#66ccff",
            progress_start="#3399ff", progress_end="#00ffff", progress_empty="#003366",
            progress_indicator="#ffcc00", marker="#99ccff", marker_label="#6699cc",
            quote="#4d8099", legend_elapsed="#3399ff", legend_remaining="#336699",
            notice="#ffcc00",
        ),
    ),
    Theme(
        name="forest",
        light=Palette.of(
            foreground="#228b22", title="#228b22",
            progress_start="#32cd32", progress_end="#9acd32", progress_empty="#c1e1c1",
            progress_indicator="#ffd700", marker="#228b22", marker_label="#006400",
            quote="#6b8e23", legend_elapsed="#32cd32", legend_remaining="#90ee90",
            notice="#b8860b",
        ),
        dark=Palette.of(
            foreground="#90ee90", title="#90ee90",
            progress_start="#228b22", progress_end="#00ff7f", progress_empty="#193319",
            progress_indicator="#ffff66", marker="#6b8e23", marker_label="#556b2f",
            quote="#556b2f", legend_elapsed="#228b22", legend_remaining="#3c5a3c",
            notice="#ffff66",
        ),
    ),
    Theme(
        name="sunset",
        light=Palette.of(
            foreground="#ff6347", title="#ff6347",
            progress_start="#ff8c00", progress_end="#ff4500", progress_empty="#ffe4c4",
            progress_indicator="#ffd700", marker="#ff6347", marker_label="#cd5c5c",
            quote="#bc8f8f", legend_elapsed="#ff8c00", legend_remaining="#ffb6c1",
            notice="#cd5c5c",
        ),
        dark=Palette.of(
            foreground="#ffb6c1", title="#ffb6c1",
            progress_start="#ff6347", progress_end="#ff1493", progress_empty="#663333",
            progress_indicator="#ffff66", marker="#ff8c00", marker_label="#cd5c5c",
            quote="#8b4513", legend_elapsed="#ff6347", legend_remaining="#804040",
            notice="#ffff66",
        ),
    ),
    Theme(
        name="monochrome",
        light=Palette.of(
            foreground="black", title="black",
            progress_start="#141414", progress_end="#646464", progress_empty="#dcdcdc",
            progress_indicator="black", marker="#282828", marker_label="#141414",
            quote="#505050", legend_elapsed="#282828", legend_remaining="#a0a0a0",
            notice="black",
        ),
        dark=Palette.of(
            foreground="white", title="white",
            progress_start="#dcdcdc", progress_end="#a0a0a0", progress_empty="#323232",
            progress_indicator="white", marker="#dcdcdc", marker_label="#f0f0f0",
            quote="#b4b4b4", legend_elapsed="#dcdcdc", legend_remaining="#646464",
            notice="white",
        ),
    ),
    Theme(
        name="contrast",
        light=Palette.of(
            background="white",
            foreground="black", title="black",
            progress_start="blue", progress_end="blue", progress_empty="#808080",
            progress_indicator="red", marker="black", marker_label="black",
            quote="black", legend_elapsed="blue", legend_remaining="#808080",
            notice="red",
        ),
        dark=Palette.of(
            background="black",
            foreground="white", title="white",
            progress_start="cyan", progress_end="cyan", progress_empty="#404040",
            progress_indicator="yellow", marker="white", marker_label="white",
            quote="white", legend_elapsed="cyan", legend_remaining="#404040",
            notice="yellow",
        ),
    ),
)


def theme_names(themes: tuple[Theme, ...] = THEMES) -> list[str]:
    return [t.name for t in themes]


class ThemeCatalog:
    """Cyclic selection over a fixed theme list, light/dark mode and bar style.

    Every mutation calls on_change so the owner can mark its config dirty.
    """

    def __init__(
        self,
        themes: tuple[Theme, ...] = THEMES,
        theme_name: str | None = None,
        mode: ThemeMode = "light",
        style: BarStyle = BarStyle.GRADIENT,
        on_change: Callable[[ThemeCatalog], None] | None = None,
    ) -> None:
        assert themes, "theme catalog must not be empty"
        self._themes = themes
        self._index = 0
        if theme_name is not None:
            names = theme_names(themes)
            if theme_name in names:
                self._index = names.index(theme_name)
            else:
                logger.warning("Theme '%s' not found, using '%s'", theme_name, names[0])
        self.mode: ThemeMode = mode
        self.style = style
        self._on_change = on_change

    def __len__(self) -> int:
        return len(self._themes)

    @property
    def theme(self) -> Theme:
        return self._themes[self._index]

    def current(self) -> tuple[Theme, ThemeMode]:
        return self.theme, self.mode

    def palette(self) -> Palette:
        return self.theme.palette(self.mode)

    def cycle_theme(self) -> Theme:
        self._index = (self._index + 1) % len(self._themes)
        logger.info("Theme -> %s", self.theme.name)
        self._changed()
        return self.theme

    def toggle_mode(self) -> ThemeMode:
        self.mode = "light" if self.mode == "dark" else "dark"
        logger.info("Theme mode -> %s", self.mode)
        self._changed()
        return self.mode

    def cycle_style(self) -> BarStyle:
        self.style = self.style.cycle()
        logger.info("Bar style -> %s", self.style.value)
        self._changed()
        return self.style

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
