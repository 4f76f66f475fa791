"""Tests for the input state machine and edit buffer handling."""

from datetime import datetime, timedelta

import pytest

from day_meter.config import AppConfig
from day_meter.state import AppState
from day_meter.ui.state_machine import StateMachine, is_valid_prefix

NOW = datetime(2026, 3, 14, 12, 0)


@pytest.fixture
def sm():
    return StateMachine(AppState())


def _type(sm: StateMachine, text: str) -> None:
    for ch in text:
        sm.handle(f"input:{ch}", NOW)


class TestPrefix:
    @pytest.mark.parametrize("text", ["", "0", "07", "07:", "07:3", "07:30", "25:99"])
    def test_valid(self, text):
        assert is_valid_prefix(text) is True

    @pytest.mark.parametrize("text", [":", "0:", "073", "07:300", "ab", "07::"])
    def test_invalid(self, text):
        assert is_valid_prefix(text) is False


class TestNormalMode:
    def test_initial(self, sm):
        assert sm.mode == "normal"
        assert sm.state.edit_buffer is None

    def test_enter_wake_edit(self, sm):
        t = sm.handle("edit_wake", NOW)
        assert t.action == "edit_started"
        assert sm.mode == "editing_wake"
        assert sm.state.edit_buffer.target_field == "wake"
        assert sm.state.edit_buffer.raw_text == ""

    def test_enter_bed_edit(self, sm):
        sm.handle("edit_bed", NOW)
        assert sm.mode == "editing_bed"
        assert sm.state.edit_buffer.target_field == "bed"

    def test_toggle_help(self, sm):
        sm.handle("toggle_help", NOW)
        assert sm.state.help_visible is True
        sm.handle("toggle_help", NOW)
        assert sm.state.help_visible is False

    def test_dismiss_hides_help(self, sm):
        sm.handle("toggle_help", NOW)
        assert sm.handle("dismiss", NOW).action == "help_toggled"
        assert sm.state.help_visible is False

    def test_dismiss_without_help_is_noop(self, sm):
        assert sm.handle("dismiss", NOW).action == "none"

    def test_unknown_action(self, sm):
        assert sm.handle("bogus", NOW).action == "none"


class TestEditing:
    def test_commit_wake_time(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "07:30")
        t = sm.handle("commit", NOW)
        assert t.action == "committed"
        assert sm.mode == "normal"
        assert sm.state.config.wake_up_time == "07:30"
        assert sm.state.dirty is True
        assert sm.state.edit_buffer is None
        assert sm.state.notice.text == "Wake-up time set to 07:30"
        assert sm.state.notice.level == "info"

    def test_commit_bed_time_past_midnight(self, sm):
        sm.handle("edit_bed", NOW)
        _type(sm, "01:15")
        sm.handle("commit", NOW)
        assert sm.state.config.bed_time == "01:15"
        assert sm.state.config.wake_up_time == "07:00"

    def test_invalid_characters_rejected(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "0a7")
        assert sm.state.edit_buffer.raw_text == "07"

    def test_buffer_stops_at_five_chars(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "07:309")
        assert sm.state.edit_buffer.raw_text == "07:30"

    def test_out_of_range_rejected_on_commit(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "25:99")
        assert sm.state.edit_buffer.raw_text == "25:99"
        t = sm.handle("commit", NOW)
        assert t.action == "rejected"
        assert sm.mode == "normal"
        assert sm.state.config.wake_up_time == "07:00"
        assert sm.state.dirty is False
        assert "HH:MM" in sm.state.notice.text

    def test_incomplete_rejected_on_commit(self, sm):
        sm.handle("edit_bed", NOW)
        _type(sm, "07:3")
        assert sm.handle("commit", NOW).action == "rejected"
        assert sm.state.config.bed_time == "23:00"

    def test_wake_equal_to_bed_rejected(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "23:00")
        assert sm.handle("commit", NOW).action == "rejected"
        assert sm.state.config == AppConfig()
        assert sm.state.notice.text == "Wake-up and bed time must differ"

    def test_backspace(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "07:")
        sm.handle("backspace", NOW)
        assert sm.state.edit_buffer.raw_text == "07"

    def test_backspace_on_empty_buffer(self, sm):
        sm.handle("edit_wake", NOW)
        sm.handle("backspace", NOW)
        assert sm.state.edit_buffer.raw_text == ""

    def test_cancel_discards(self, sm):
        sm.handle("edit_wake", NOW)
        _type(sm, "06:00")
        t = sm.handle("cancel", NOW)
        assert t.action == "cancelled"
        assert sm.mode == "normal"
        assert sm.state.config.wake_up_time == "07:00"
        assert sm.state.dirty is False

    def test_commands_ignored_while_editing(self, sm):
        sm.handle("edit_wake", NOW)
        sm.handle("toggle_help", NOW)
        sm.handle("edit_bed", NOW)
        assert sm.state.help_visible is False
        assert sm.mode == "editing_wake"


class TestQuit:
    def test_quit_from_normal(self, sm):
        t = sm.handle("quit", NOW)
        assert t.action == "quit"
        assert sm.state.running is False

    @pytest.mark.parametrize("action", ["edit_wake", "edit_bed"])
    def test_quit_from_editing_discards_buffer(self, sm, action):
        sm.handle(action, NOW)
        _type(sm, "05:00")
        sm.handle("quit", NOW)
        assert sm.state.running is False
        assert sm.mode == "normal"
        assert sm.state.edit_buffer is None
        assert sm.state.config == AppConfig()
        assert sm.state.dirty is False

    def test_quit_while_help_visible(self, sm):
        sm.handle("toggle_help", NOW)
        t = sm.handle("quit", NOW)
        assert t.action == "quit"
        assert sm.state.running is False
        assert sm.state.dirty is False


class TestNotices:
    def test_notice_expires(self, sm):
        sm.state.show_notice("Config file invalid, using defaults", NOW)
        assert sm.advance_tick(NOW + timedelta(seconds=1)).action == "none"
        assert sm.state.notice is not None
        assert sm.advance_tick(NOW + timedelta(seconds=3)).action == "notice_expired"
        assert sm.state.notice is None

    def test_no_notice(self, sm):
        assert sm.advance_tick(NOW).action == "none"

    def test_new_notice_replaces_old(self, sm):
        sm.state.show_notice("first", NOW)
        sm.state.show_notice("second", NOW)
        assert sm.state.notice.text == "second"
