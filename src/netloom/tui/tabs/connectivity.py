"""Connectivity tab component."""

from typing import Any

from textual.widgets import DataTable

from netloom.simulator import Table, View
from netloom.tui.theme import Labels


class ConnectivityTab:
    """Probe grid for one view."""

    @staticmethod
    def update_table(table: DataTable[Any], grid: Table, view: View) -> None:
        """Fill the table with one row per source pod."""
        table.clear(columns=True)

        table.add_column("-", key="from")
        for to in grid.tos:
            table.add_column(to, key=to)

        for fr in grid.froms:
            cells = [grid.cell(view, fr, to) for to in grid.tos]
            height = max((cell.count("\n") + 1 for cell in cells), default=1)
            table.add_row(fr, *[Labels.connectivity(cell) for cell in cells], height=height, key=fr)
