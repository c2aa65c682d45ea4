"""Dracula theme for the TUI.

Uses the Dracula color palette: https://draculatheme.com/
"""

from __future__ import annotations

from enum import Enum

from rich.text import Text
from textual.theme import Theme

from netloom.matcher.peers import Verdict
from netloom.simulator.connectivity import Connectivity


class Colors(str, Enum):
    """netloom color palette for the Dracula theme."""

    BACKGROUND = "#000000"
    FOREGROUND = "#f8f8f2"
    SURFACE = "#44475a"
    MUTED = "#6272a4"

    PRIMARY = "#bd93f9"
    SECONDARY = "#ff79c6"
    ACCENT = "#8be9fd"

    SUCCESS = "#50fa7b"
    WARNING = "#ffb86c"
    ERROR = "#ff5555"
    INFO = "#f1fa8c"


_VERDICT_COLORS = {
    Verdict.ALLOW: Colors.SUCCESS,
    Verdict.DENY: Colors.ERROR,
    Verdict.PASS: Colors.INFO,
}

_CONNECTIVITY_COLORS = {
    Connectivity.ALLOWED: Colors.SUCCESS,
    Connectivity.BLOCKED: Colors.ERROR,
    Connectivity.UNDEFINED: Colors.MUTED,
    Connectivity.INVALID_NAMED_PORT: Colors.WARNING,
    Connectivity.INVALID_PORT_PROTOCOL: Colors.WARNING,
    Connectivity.CHECK_FAILED: Colors.SECONDARY,
}


class Labels:
    """Styled labels for table cells."""

    @staticmethod
    def verdict(verdict: Verdict) -> Text:
        color = _VERDICT_COLORS.get(verdict, Colors.MUTED)
        return Text(verdict.value, style=f"bold {color.value}")

    @staticmethod
    def connectivity(cell: str) -> Text:
        """Color a probe cell by the symbol it shows; mixed cells stay plain."""
        for connectivity, color in _CONNECTIVITY_COLORS.items():
            if cell == connectivity.short_string:
                return Text(cell, style=color.value)
        return Text(cell)


THEME = Theme(
    name="dracula",
    dark=True,
    primary=Colors.PRIMARY.value,
    secondary=Colors.SECONDARY.value,
    accent=Colors.ACCENT.value,
    foreground=Colors.FOREGROUND.value,
    background=Colors.BACKGROUND.value,
    surface=Colors.SURFACE.value,
    panel=Colors.SURFACE.value,
    success=Colors.SUCCESS.value,
    warning=Colors.WARNING.value,
    error=Colors.ERROR.value,
    variables={
        "muted": Colors.MUTED.value,
        "info": Colors.INFO.value,
    },
)
