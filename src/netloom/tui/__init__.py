"""Terminal user interface for netloom."""

from netloom.tui.app import NetloomApp, run

__all__ = ["NetloomApp", "run"]
