"""Custom widgets for the netloom TUI."""

from netloom.tui.widgets.status_bar import StatusBar

__all__ = ["StatusBar"]
