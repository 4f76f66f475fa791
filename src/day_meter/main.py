"""Main entry point for the day meter."""

from __future__ import annotations

import logging
import os
import signal
import sys
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from day_meter.config import (
    AppConfig,
    ConfigLoadError,
    ConfigNotFoundError,
    ConfigProvider,
    PersistError,
)
from day_meter.quotes import CyclicQuotes, HourlyTrigger, QuoteProvider
from day_meter.state import AppState
from day_meter.surface import InputEvent, RenderingSurfaceError, TerminalSurface
from day_meter.timemodel import compute
from day_meter.ui.composer import FrameComposer, select_overlay
from day_meter.ui.key_router import KeyRouter
from day_meter.ui.state_machine import StateMachine
from day_meter.ui.themes import ThemeCatalog

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.25
LOG_FILE = "day-meter.log"

# Actions handled by the theme catalog rather than the input state machine
_CATALOG_ACTIONS = ("cycle_theme", "toggle_mode", "cycle_style")


def load_session_config(provider: ConfigProvider) -> tuple[AppConfig, str | None]:
    """Load the config, generating or falling back to defaults.

    Returns the config plus a one-time warning for the user, if any.
    """
    try:
        return provider.load(), None
    except ConfigNotFoundError:
        logger.info("No config found, generating default at %s", provider.path)
        try:
            return provider.generate_default(), None
        except PersistError as e:
            logger.warning("Could not generate default config: %s", e)
            return AppConfig(), "Could not create config file, using defaults"
    except ConfigLoadError as e:
        logger.warning("%s; using default configuration", e)
        return AppConfig(), "Config file invalid, using defaults"


class DayMeterApp:
    """Owns the session state and drives the single-threaded render loop.

    Each tick: poll one input event (bounded by the tick interval),
    re-sample the clock, advance timers, dispatch the event, flush any
    pending save, then draw one frame.
    """

    def __init__(
        self,
        config: AppConfig,
        provider: ConfigProvider,
        surface: Any,
        quotes: QuoteProvider,
        clock: Callable[[], datetime] = datetime.now,
        tick_seconds: float = TICK_SECONDS,
    ) -> None:
        self.state = AppState(config=config)
        self.provider = provider
        self.surface = surface
        self.quotes = quotes
        self.tick_seconds = tick_seconds
        self._clock = clock
        self._now = clock()

        self.machine = StateMachine(self.state)
        self.router = KeyRouter()
        self.catalog = ThemeCatalog(
            theme_name=config.theme_name,
            mode=config.theme_mode,
            style=config.progress_bar_style,
            on_change=self._on_catalog_change,
        )
        self.composer = FrameComposer(surface.width)
        self._hourly = HourlyTrigger()
        self._pending_warning: str | None = None

    def warn(self, text: str) -> None:
        """Queue a warning to show once the loop starts."""
        self._pending_warning = text

    def stop(self) -> None:
        """Ask the loop to exit at the top of its next iteration."""
        self.state.running = False

    def run(self) -> None:
        self.surface.open()
        try:
            self._advance(self._clock())
            if self._pending_warning:
                self.state.show_notice(self._pending_warning, self._now)
                self._pending_warning = None
            self._render()

            while self.state.running:
                event = self.surface.poll_event(self.tick_seconds)
                self._advance(self._clock())
                if event is not None:
                    self._dispatch(event)
                self._flush()
                if self.state.running:
                    self._render()
        finally:
            self._flush()
            self.surface.close()
            logger.info("Day meter stopped")

    def _advance(self, now: datetime) -> None:
        """Time update: expire notices and refresh the quote on a new hour."""
        self._now = now
        self.machine.advance_tick(now)
        if self._hourly.crossed(now):
            self.state.quote = self.quotes.next_quote()
            logger.info("Quote refreshed: %s", self.state.quote.author)

    def _dispatch(self, event: InputEvent) -> None:
        if event.kind == "resize":
            self.composer.resize(self.surface.width)
            return

        key = "interrupt" if event.kind == "interrupt" else event.key
        action = self.router.route(key, self.state.mode)
        if action is None:
            return
        logger.debug("Key %r -> %s", key, action)

        if action in _CATALOG_ACTIONS:
            getattr(self.catalog, action)()
            return
        self.machine.handle(action, self._now)

    def _on_catalog_change(self, catalog: ThemeCatalog) -> None:
        self.state.config = self.state.config.model_copy(
            update={
                "theme_name": catalog.theme.name,
                "theme_mode": catalog.mode,
                "progress_bar_style": catalog.style,
            }
        )
        self.state.dirty = True

    def _flush(self) -> None:
        """Persist the config copy if it changed. Failures only warn."""
        if not self.state.dirty:
            return
        self.state.dirty = False
        try:
            self.provider.save(self.state.config)
        except PersistError as e:
            logger.warning("Failed to save config: %s", e)
            self.state.show_notice("Could not save config, changes kept for this session", self._now)

    def _render(self) -> None:
        boundaries = self.state.config.boundaries()
        progress = compute(self._now, boundaries)
        frame = self.composer.compose(
            progress,
            self.catalog.palette(),
            self.catalog.style,
            self.state.mode,
            select_overlay(self.state),
            self._now,
            boundaries,
        )
        self.surface.draw(frame)


def _configure_logging(log_dir: Path) -> None:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_dir / LOG_FILE)
    except OSError:
        # Config directory unusable; stderr belongs to the display
        handler = logging.NullHandler()
    logging.basicConfig(
        handlers=[handler],
        level=os.environ.get("DAY_METER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main() -> None:
    """Entry point."""
    provider = ConfigProvider()
    _configure_logging(provider.path.parent)
    logger.info("Day meter v0.1.0")

    config, warning = load_session_config(provider)

    app = DayMeterApp(
        config,
        provider,
        TerminalSurface(),
        CyclicQuotes(start=datetime.now().hour),
    )
    if warning:
        app.warn(warning)

    # Handle signals for clean shutdown
    def _signal_handler(sig: int, frame: Any) -> None:
        logger.info("Received signal %d, shutting down", sig)
        app.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        app.run()
    except RenderingSurfaceError as e:
        logger.error("Rendering surface unavailable: %s", e)
        sys.exit(f"day-meter: {e}")


if __name__ == "__main__":
    main()
