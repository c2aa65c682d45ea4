"""Main TUI application."""

from textual.app import App

from netloom.cli.commands import AnalyzeArgs
from netloom.tui.screens import MainScreen
from netloom.tui.theme import THEME


class NetloomApp(App[None]):
    """netloom TUI application."""

    CSS = """
    /* Hide scrollbars globally */
    * {
        scrollbar-size: 0 0;
    }

    #main-container {
        height: 100%;
        width: 100%;
    }

    #app-title {
        height: 1;
        background: $primary;
        color: $text-primary;
        text-align: center;
        content-align: center middle;
        text-style: bold;
    }

    #summary-content {
        padding: 1;
        background: $surface;
        color: $text;
        height: 1fr;
        width: 100%;
    }

    #explain-content {
        background: $surface;
        color: $text;
        width: auto;
    }

    #main-tabs {
        height: 1fr;
    }

    TabbedContent > TabPane {
        padding: 1;
    }

    .result-table {
        height: 1fr;
        background: $surface;
        color: $text;
        border: solid $primary;
    }

    .result-table > .datatable--header {
        background: $primary;
        color: $text-primary;
        text-style: bold;
    }

    .result-table > .datatable--cursor {
        background: $accent;
        color: $text-accent;
    }

    .result-table .datatable--odd-row {
        background: $panel;
        color: $text;
    }

    Tab {
        background: $surface;
        color: $text-muted;
        border: none;
        margin: 0 1;
        padding: 0 2;
    }

    Tab.-active {
        background: $accent;
        color: $background;
        text-style: bold;
    }

    #status-bar {
        height: 1;
        background: $surface;
        border-top: solid $primary;
        dock: bottom;
    }

    .key-binding {
        margin: 0 1;
        color: $text-muted;
    }

    .key-binding:first-child {
        margin-left: 2;
    }
    """

    def __init__(self, args: AnalyzeArgs):
        super().__init__()
        self.args = args

    def on_mount(self) -> None:
        """Set up the application."""
        self.title = "netloom"
        self.register_theme(THEME)
        self.theme = THEME.name
        self.push_screen(MainScreen(self.args))


def run(args: AnalyzeArgs) -> None:
    """Run the TUI application."""
    app = NetloomApp(args)
    # Disable mouse support to allow terminal text selection
    app.run(mouse=False)
