"""Tab components for the netloom TUI."""

from netloom.tui.tabs.connectivity import ConnectivityTab
from netloom.tui.tabs.summary import SummaryTab
from netloom.tui.tabs.walkthrough import WalkthroughTab

__all__ = ["ConnectivityTab", "SummaryTab", "WalkthroughTab"]
