"""Theme package for the netloom TUI."""

from netloom.tui.theme.dracula import THEME, Colors, Labels

__all__ = [
    "THEME",
    "Colors",
    "Labels",
]
