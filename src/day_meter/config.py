"""YAML config provider with Pydantic validation.

The session keeps an in-memory AppConfig; this module only knows how to
find, load, generate and save the document on disk.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from day_meter.timemodel import DayBoundaries, InvalidTimeFormat, parse_hhmm

logger = logging.getLogger(__name__)

APP_NAME = "day-meter"
LOCAL_CONFIG = Path(f"./{APP_NAME}.yaml")


class ConfigLoadError(Exception):
    """Config file missing, unreadable or invalid."""


class ConfigNotFoundError(ConfigLoadError):
    """No config file exists at any known location."""


class PersistError(Exception):
    """Config could not be written to disk."""


class BarStyle(str, Enum):
    GRADIENT = "Gradient"
    GRAINY = "Grainy"
    ANALOG = "Analog"

    def cycle(self) -> BarStyle:
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]


class AppConfig(BaseModel):
    theme_name: str = "default"
    theme_mode: Literal["light", "dark"] = "light"
    progress_bar_style: BarStyle = BarStyle.GRADIENT
    wake_up_time: str = "07:00"
    bed_time: str = "23:00"

    @field_validator("theme_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("progress_bar_style", mode="before")
    @classmethod
    def normalize_style(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().capitalize()
        return v

    @field_validator("wake_up_time", "bed_time", mode="before")
    @classmethod
    def unsexagesimal(cls, v: Any) -> Any:
        # YAML 1.1 reads an unquoted 23:00 as the base-60 integer 1380
        if isinstance(v, int) and not isinstance(v, bool):
            return f"{v // 60:02d}:{v % 60:02d}"
        return v

    @field_validator("wake_up_time", "bed_time")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        try:
            parse_hhmm(v)
        except InvalidTimeFormat as e:
            raise ValueError(str(e)) from e
        return v.strip()

    @model_validator(mode="after")
    def check_span(self) -> AppConfig:
        if parse_hhmm(self.wake_up_time) == parse_hhmm(self.bed_time):
            raise ValueError("wake_up_time and bed_time must differ")
        return self

    def boundaries(self) -> DayBoundaries:
        return DayBoundaries(parse_hhmm(self.wake_up_time), parse_hhmm(self.bed_time))


_TEMPLATE = """\
# day-meter configuration
# Edit the values below, or change them live while day-meter is running.

# Keyboard shortcuts:
#   q / Ctrl+C  quit
#   t           cycle themes
#   d           toggle light/dark mode
#   s           cycle progress bar styles
#   w / b       edit wake-up / bed time (type HH:MM, Enter to save, Esc to cancel)
#   h           show or hide help

# Theme: default, ocean, forest, sunset, monochrome, contrast
theme_name: {theme_name}

# Theme mode: light or dark
theme_mode: {theme_mode}

# Progress bar style:
#   Gradient  smooth color transition across the filled part
#   Grainy    textured, dithered fill
#   Analog    discrete ticks like a meter
progress_bar_style: {progress_bar_style}

# Waking day boundaries (24-hour HH:MM). Bed time may be past midnight.
wake_up_time: "{wake_up_time}"
bed_time: "{bed_time}"
"""


def default_config_dir() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / APP_NAME


class ConfigProvider:
    """Finds, loads, generates and saves the user's config document.

    Resolution order:
    1. Explicit path argument
    2. DAY_METER_CONFIG env var
    3. $XDG_CONFIG_HOME/day-meter/config.yaml (~/.config/day-meter/config.yaml)
    4. ./day-meter.yaml (local runs)

    Saving always targets 1, 2 or 3.
    """

    def __init__(self, config_path: str | Path | None = None) -> None:
        if config_path is None:
            env_path = os.environ.get("DAY_METER_CONFIG")
            if env_path:
                config_path = env_path
        self._explicit = Path(config_path) if config_path is not None else None

    @property
    def path(self) -> Path:
        """Primary location, used for generation and saving."""
        if self._explicit is not None:
            return self._explicit
        return default_config_dir() / "config.yaml"

    def candidate_paths(self) -> list[Path]:
        if self._explicit is not None:
            return [self._explicit]
        return [self.path, LOCAL_CONFIG]

    def load(self) -> AppConfig:
        for path in self.candidate_paths():
            if path.exists():
                return self._load_file(path)
        raise ConfigNotFoundError(f"Config file not found: {self.path}")

    def _load_file(self, path: Path) -> AppConfig:
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"Failed to read {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigLoadError(f"Expected a mapping in {path}")
        try:
            config = AppConfig(**raw)
        except ValidationError as e:
            raise ConfigLoadError(f"Invalid config in {path}: {e}") from e
        logger.info("Loaded config from %s", path)
        return config

    def generate_default(self) -> AppConfig:
        """Write the documented default template, never overwriting a file."""
        config = AppConfig()
        path = self.path
        if path.exists():
            return config
        text = _TEMPLATE.format(
            theme_name=config.theme_name,
            theme_mode=config.theme_mode,
            progress_bar_style=config.progress_bar_style.value,
            wake_up_time=config.wake_up_time,
            bed_time=config.bed_time,
        )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        except OSError as e:
            raise PersistError(f"Failed to write {path}: {e}") from e
        logger.info("Generated default config at %s", path)
        return config

    def save(self, config: AppConfig) -> None:
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise PersistError(f"Failed to write {path}: {e}") from e
        logger.info("Saved config to %s", path)
