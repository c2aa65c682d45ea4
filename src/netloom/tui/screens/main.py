"""Main screen for the netloom TUI."""

import logging
from typing import Any

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, VerticalScroll
from textual.screen import Screen
from textual.widgets import DataTable, Static, TabbedContent, TabPane

from netloom.cli.commands import AnalysisResult, AnalyzeArgs, run_analysis
from netloom.core.models.errors import NetloomError, PolicyFileError
from netloom.simulator import View
from netloom.tui.tabs import ConnectivityTab, SummaryTab, WalkthroughTab
from netloom.tui.widgets import StatusBar

logger = logging.getLogger(__name__)

TAB_IDS = ["summary", "explain", "ingress", "egress", "combined", "walkthrough"]
VIEWS = {"ingress": View.INGRESS, "egress": View.EGRESS, "combined": View.COMBINED}


class MainScreen(Screen[None]):
    """Policy explanation, probe grids and traffic walkthroughs."""

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "reload", "Reload"),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        *[Binding(str(i + 1), f"tab('{tab_id}')", tab_id.title(), show=False) for i, tab_id in enumerate(TAB_IDS)],
    ]

    def __init__(self, args: AnalyzeArgs):
        super().__init__()
        self.args = args
        self.result: AnalysisResult | None = None

    def compose(self) -> ComposeResult:
        with Container(id="main-container"):
            yield Static("netloom", id="app-title")

            with TabbedContent(initial="summary", id="main-tabs"):
                with TabPane("Summary", id="summary"):
                    yield Static("Loading policies...", id="summary-content")
                with TabPane("Explain", id="explain"):
                    with VerticalScroll():
                        yield Static("", id="explain-content")
                for tab_id in VIEWS:
                    with TabPane(tab_id.title(), id=tab_id):
                        yield DataTable(id=f"{tab_id}-table", classes="result-table", zebra_stripes=True)
                with TabPane("Walkthrough", id="walkthrough"):
                    yield DataTable(id="walkthrough-table", classes="result-table", zebra_stripes=True)

            yield StatusBar()

    def on_mount(self) -> None:
        self.load_analysis()

    @work(exclusive=True)
    async def load_analysis(self) -> None:
        """Run the analysis and fill every tab."""
        summary = self.query_one("#summary-content", Static)
        summary.update("Loading policies...")
        try:
            self.result = await run_analysis(self.args)
        except (NetloomError, PolicyFileError, ConnectionError) as e:
            logger.error(f"analysis failed: {e}")
            summary.update(SummaryTab.render_error(str(e)))
            return

        summary.update(SummaryTab.render(self.args, self.result))
        self.query_one("#explain-content", Static).update(Text(self.result.policy.explain_table()))

        for tab_id, view in VIEWS.items():
            table = self.query_one(f"#{tab_id}-table", DataTable)
            if self.result.table is not None:
                ConnectivityTab.update_table(table, self.result.table, view)

        walkthrough = self.query_one("#walkthrough-table", DataTable)
        WalkthroughTab.update_table(walkthrough, self.result.traffic_results)

    def _active_table(self) -> DataTable[Any] | None:
        tabs = self.query_one("#main-tabs", TabbedContent)
        if tabs.active in VIEWS or tabs.active == "walkthrough":
            return self.query_one(f"#{tabs.active}-table", DataTable)
        return None

    def action_cursor_up(self) -> None:
        table = self._active_table()
        if table is not None:
            table.action_cursor_up()

    def action_cursor_down(self) -> None:
        table = self._active_table()
        if table is not None:
            table.action_cursor_down()

    def action_tab(self, tab_id: str) -> None:
        """Switch tabs and focus the tab's table when it has one."""
        self.query_one("#main-tabs", TabbedContent).active = tab_id
        table = self._active_table()
        if table is not None:
            table.focus()

    def action_reload(self) -> None:
        self.load_analysis()

    def action_quit(self) -> None:
        self.app.exit()
