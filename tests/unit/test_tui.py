"""Unit tests for the TUI."""

import asyncio

from textual.widgets import DataTable, TabbedContent

from netloom.cli.commands import MODE_EXPLAIN, MODE_PROBE, AnalyzeArgs
from netloom.tui import NetloomApp


async def _loaded(app, pilot):
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


class TestNetloomApp:
    """Headless runs of the application."""

    def test_probe_tables(self):
        args = AnalyzeArgs(modes=[MODE_EXPLAIN, MODE_PROBE], use_example_policies=True)

        async def scenario():
            app = NetloomApp(args)
            async with app.run_test() as pilot:
                await _loaded(app, pilot)
                combined = app.screen.query_one("#combined-table", DataTable)
                walkthrough = app.screen.query_one("#walkthrough-table", DataTable)
                return combined.row_count, len(combined.columns), walkthrough.row_count

        rows, columns, walkthrough_rows = asyncio.run(scenario())

        assert rows == 9
        assert columns == 10
        assert walkthrough_rows == 0

    def test_tab_switching(self):
        args = AnalyzeArgs(modes=[MODE_EXPLAIN], use_example_policies=True)

        async def scenario():
            app = NetloomApp(args)
            async with app.run_test() as pilot:
                await _loaded(app, pilot)
                await pilot.press("2")
                first = app.screen.query_one("#main-tabs", TabbedContent).active
                await pilot.press("6")
                second = app.screen.query_one("#main-tabs", TabbedContent).active
                return first, second

        assert asyncio.run(scenario()) == ("explain", "walkthrough")
