"""Tests for the DayMeterApp event loop using a stub surface and a fake clock."""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from day_meter.config import (
    AppConfig,
    BarStyle,
    ConfigLoadError,
    ConfigNotFoundError,
    ConfigProvider,
    PersistError,
)
from day_meter.quotes import CyclicQuotes, Quote
from day_meter.surface import InputEvent, RenderingSurfaceError, StubSurface
from day_meter.main import DayMeterApp, load_session_config, main

START = datetime(2026, 3, 14, 15, 0)


class FakeClock:
    """Returns scripted times, then keeps repeating the last one."""

    def __init__(self, *times: datetime) -> None:
        self._times = list(times) or [START]
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        if len(self._times) > 1:
            return self._times.pop(0)
        return self._times[0]


def keys(text: str) -> list[InputEvent]:
    return [InputEvent(kind="key", key=ch) for ch in text]


def key(name: str) -> InputEvent:
    return InputEvent(kind="key", key=name)


@pytest.fixture
def provider():
    return MagicMock(spec=ConfigProvider)


def _app(provider, events, config=None, clock=None, quotes=None, width=80):
    surface = StubSurface(events, width=width)
    app = DayMeterApp(
        config or AppConfig(),
        provider,
        surface,
        quotes or CyclicQuotes(),
        clock=clock or FakeClock(),
    )
    return app, surface


def _screen_text(surface: StubSurface) -> str:
    return "\n".join(row for frame in surface.frames for row in frame.plain_rows())


def test_run_opens_and_closes_surface(provider):
    app, surface = _app(provider, [])
    app.run()
    assert surface.opened is True
    assert surface.closed is True
    assert app.state.running is False


def test_interrupt_quits_without_saving(provider):
    app, surface = _app(provider, [InputEvent(kind="interrupt")])
    app.run()
    assert len(surface.frames) == 1
    provider.save.assert_not_called()


def test_q_quits(provider):
    app, surface = _app(provider, [key("q"), key("t")])
    app.run()
    assert app.catalog.theme.name == "default"
    provider.save.assert_not_called()


def test_stop_before_run_draws_one_frame(provider):
    app, surface = _app(provider, [None, None])
    app.stop()
    app.run()
    assert len(surface.frames) == 1


def test_renders_every_tick(provider):
    app, surface = _app(provider, [None, None, None])
    app.run()
    # initial frame + one per tick, nothing after quit
    assert len(surface.frames) == 4


def test_edit_wake_time_saves_once(provider):
    app, surface = _app(provider, [key("w"), *keys("07:30"), key("enter"), None, None])
    app.run()
    assert provider.save.call_count == 1
    saved = provider.save.call_args[0][0]
    assert saved.wake_up_time == "07:30"
    assert saved.bed_time == "23:00"
    assert app.state.config.wake_up_time == "07:30"


def test_edit_prompt_rendered(provider):
    app, surface = _app(provider, [key("b"), *keys("23")])
    app.run()
    assert "Bed time: 23:__" in _screen_text(surface)


def test_invalid_edit_shows_notice_and_keeps_config(provider):
    app, surface = _app(provider, [key("w"), *keys("25:99"), key("enter")])
    app.run()
    provider.save.assert_not_called()
    assert app.state.config == AppConfig()
    assert "Invalid format, use HH:MM" in _screen_text(surface)


def test_quit_while_editing_discards(provider):
    app, surface = _app(provider, [key("w"), *keys("05:00"), key("q")])
    app.run()
    provider.save.assert_not_called()
    assert app.state.config.wake_up_time == "07:00"
    assert app.state.edit_buffer is None


def test_escape_cancels_edit(provider):
    app, surface = _app(provider, [key("w"), *keys("05:00"), key("esc"), key("t")])
    app.run()
    assert app.state.config.wake_up_time == "07:00"
    assert app.state.config.theme_name == "ocean"


def test_theme_cycle_persists(provider):
    app, surface = _app(provider, [key("t")])
    app.run()
    provider.save.assert_called_once()
    assert provider.save.call_args[0][0].theme_name == "ocean"


def test_mode_and_style_persist(provider):
    app, surface = _app(provider, [key("d"), key("s")])
    app.run()
    assert provider.save.call_count == 2
    saved = provider.save.call_args[0][0]
    assert saved.theme_mode == "dark"
    assert saved.progress_bar_style is BarStyle.GRAINY


def test_catalog_starts_from_config(provider):
    config = AppConfig(theme_name="forest", theme_mode="dark", progress_bar_style="Analog")
    app, surface = _app(provider, [], config=config)
    assert app.catalog.current()[0].name == "forest"
    assert app.catalog.mode == "dark"
    assert app.catalog.style is BarStyle.ANALOG


def test_save_failure_shows_notice_and_keeps_change(provider):
    provider.save.side_effect = PersistError("disk full")
    app, surface = _app(provider, [key("t"), None])
    app.run()
    assert app.catalog.theme.name == "ocean"
    assert app.state.config.theme_name == "ocean"
    assert "Could not save config, changes kept for this session" in _screen_text(surface)
    assert provider.save.call_count == 1


def test_help_toggle(provider):
    app, surface = _app(provider, [key("h")])
    app.run()
    assert "KEYS" in "\n".join(surface.frames[-1].plain_rows())


def test_quit_while_help_visible(provider):
    app, surface = _app(provider, [key("h"), key("q"), key("t")])
    app.run()
    assert app.state.running is False
    assert app.catalog.theme.name == "default"
    provider.save.assert_not_called()
    assert len(surface.frames) == 2
    assert "KEYS" in "\n".join(surface.frames[-1].plain_rows())


def test_pending_warning_shown_first(provider):
    app, surface = _app(provider, [])
    app.warn("Config file invalid, using defaults")
    app.run()
    assert "Config file invalid, using defaults" in "\n".join(surface.frames[0].plain_rows())


def test_warning_expires(provider):
    clock = FakeClock(START, START, START + timedelta(seconds=5))
    app, surface = _app(provider, [None], clock=clock)
    app.warn("Config file invalid, using defaults")
    app.run()
    assert "Config file invalid" not in "\n".join(surface.frames[-1].plain_rows())


def test_quote_refreshed_once_per_hour(provider):
    quotes = MagicMock()
    quotes.next_quote.return_value = Quote("Rest is not idleness.", "John Lubbock")
    clock = FakeClock(
        datetime(2026, 3, 14, 9, 59, 58),
        datetime(2026, 3, 14, 9, 59, 59),
        datetime(2026, 3, 14, 9, 59, 59, 500000),
        datetime(2026, 3, 14, 10, 0, 0, 200000),
        datetime(2026, 3, 14, 10, 0, 0, 400000),
    )
    app, surface = _app(provider, [None, None, None, None], clock=clock, quotes=quotes)
    app.run()
    assert quotes.next_quote.call_count == 2
    assert "~ John Lubbock" in "\n".join(surface.frames[-1].plain_rows())


def test_clock_resampled_every_tick(provider):
    clock = FakeClock(START, START, START + timedelta(minutes=1), START + timedelta(minutes=2))
    app, surface = _app(provider, [None, None], clock=clock)
    app.run()
    assert "15:02" in surface.frames[-1].plain_rows()[2]


def test_resize_updates_width(provider):
    app, surface = _app(provider, [InputEvent(kind="resize"), None])
    surface.width = 100
    app.run()
    assert surface.frames[0].width == 80
    assert surface.frames[-1].width == 100


def test_surface_closed_on_error(provider):
    app, surface = _app(provider, [None])
    surface.draw = MagicMock(side_effect=RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        app.run()
    assert surface.closed is True


class TestLoadSessionConfig:
    def test_loads_existing(self, provider):
        provider.load.return_value = AppConfig(theme_name="ocean")
        config, warning = load_session_config(provider)
        assert config.theme_name == "ocean"
        assert warning is None

    def test_generates_when_missing(self, provider):
        provider.load.side_effect = ConfigNotFoundError("missing")
        provider.generate_default.return_value = AppConfig()
        config, warning = load_session_config(provider)
        provider.generate_default.assert_called_once()
        assert config == AppConfig()
        assert warning is None

    def test_generate_failure_warns(self, provider):
        provider.load.side_effect = ConfigNotFoundError("missing")
        provider.generate_default.side_effect = PersistError("read-only")
        config, warning = load_session_config(provider)
        assert config == AppConfig()
        assert warning == "Could not create config file, using defaults"

    def test_invalid_falls_back_to_defaults(self, provider):
        provider.load.side_effect = ConfigLoadError("bad yaml")
        config, warning = load_session_config(provider)
        assert config == AppConfig()
        assert warning == "Config file invalid, using defaults"
        provider.generate_default.assert_not_called()

    def test_corrupt_file_left_untouched(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("theme_mode: sepia\n")
        config, warning = load_session_config(ConfigProvider(path))
        assert config == AppConfig()
        assert warning is not None
        assert path.read_text() == "theme_mode: sepia\n"

    def test_first_run_writes_template(self, tmp_path: Path):
        path = tmp_path / "day-meter" / "config.yaml"
        config, warning = load_session_config(ConfigProvider(path))
        assert warning is None
        assert path.exists()


def test_main_exits_without_terminal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.delenv("DAY_METER_CONFIG", raising=False)
    with patch("day_meter.main.TerminalSurface") as surface_cls, \
            patch("day_meter.main.logging.basicConfig"), \
            patch("day_meter.main.signal.signal"):
        surface_cls.return_value.width = 80
        surface_cls.return_value.open.side_effect = RenderingSurfaceError("not a tty")
        with pytest.raises(SystemExit) as exc:
            main()
    assert "not a tty" in str(exc.value.code)
    assert (tmp_path / "day-meter" / "config.yaml").exists()


def _log_handler(basic_config: MagicMock) -> logging.Handler:
    handler = basic_config.call_args.kwargs["handlers"][0]
    handler.close()
    return handler


def test_main_logs_beside_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    config_path = tmp_path / "custom" / "config.yaml"
    monkeypatch.setenv("DAY_METER_CONFIG", str(config_path))
    with patch("day_meter.main.TerminalSurface", return_value=StubSurface([])), \
            patch("day_meter.main.logging.basicConfig") as basic, \
            patch("day_meter.main.signal.signal"):
        main()
    handler = _log_handler(basic)
    assert isinstance(handler, logging.FileHandler)
    assert Path(handler.baseFilename) == tmp_path / "custom" / "day-meter.log"


def test_main_survives_unusable_config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    not_a_dir = tmp_path / "not-a-dir"
    not_a_dir.write_text("")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(not_a_dir))
    monkeypatch.delenv("DAY_METER_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    surface = StubSurface([])
    with patch("day_meter.main.TerminalSurface", return_value=surface), \
            patch("day_meter.main.logging.basicConfig") as basic, \
            patch("day_meter.main.signal.signal"):
        main()
    assert isinstance(_log_handler(basic), logging.NullHandler)
    assert surface.closed is True
    first = "\n".join(surface.frames[0].plain_rows())
    assert "Could not create config file, using defaults" in first
