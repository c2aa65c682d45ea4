"""Walkthrough tab component."""

from typing import Any

from rich.text import Text
from textual.widgets import DataTable

from netloom.matcher.results import TrafficResult
from netloom.tui.theme import Labels


class WalkthroughTab:
    """Walkthrough tab logic."""

    @staticmethod
    def update_table(table: DataTable[Any], results: list[TrafficResult]) -> None:
        """Update the walkthrough table."""
        table.clear(columns=True)

        table.add_column("Traffic")
        table.add_column("Verdict")
        table.add_column("Ingress Walkthrough")
        table.add_column("Egress Walkthrough")

        for result in results:
            ingress = result.ingress_walkthrough
            egress = result.egress_walkthrough
            height = max(ingress.count("\n"), egress.count("\n")) + 1
            table.add_row(
                Text(result.traffic.pretty()),
                Labels.verdict(result.verdict),
                Text(ingress),
                Text(egress),
                height=height,
            )
