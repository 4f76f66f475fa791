"""Key-to-action routing based on the active input mode.

Quit keys bypass the mode and always terminate. In normal mode keys map
to commands; while editing, only buffer keys are meaningful.
"""

from __future__ import annotations

from day_meter.state import UiMode

GLOBAL_KEYS: dict[str, str] = {
    "q": "quit",
    "interrupt": "quit",
}

NORMAL_KEYS: dict[str, str] = {
    "w": "edit_wake",
    "b": "edit_bed",
    "h": "toggle_help",
    "t": "cycle_theme",
    "d": "toggle_mode",
    "s": "cycle_style",
    "esc": "dismiss",
}

EDIT_KEYS: dict[str, str] = {
    "enter": "commit",
    "esc": "cancel",
    "backspace": "backspace",
}

BUFFER_CHARS = frozenset("0123456789:")


class KeyRouter:
    """Routes key names to action strings for the current mode."""

    def route(self, key: str, mode: UiMode) -> str | None:
        """Resolve a key press to an action string.

        1. Global quit keys win in every mode.
        2. While editing, buffer characters become "input:<ch>".
        3. Otherwise look up the mode's key map.
        """
        if key in GLOBAL_KEYS:
            return GLOBAL_KEYS[key]

        if mode == "normal":
            return NORMAL_KEYS.get(key)

        if key in BUFFER_CHARS:
            return f"input:{key}"
        return EDIT_KEYS.get(key)
