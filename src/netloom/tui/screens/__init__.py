"""Screens for the netloom TUI."""

from netloom.tui.screens.main import MainScreen

__all__ = ["MainScreen"]
