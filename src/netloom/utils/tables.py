"""Plain-text table rendering with rich."""

import io
from typing import Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

RENDER_WIDTH = 1000


def merge_cells(rows: Sequence[Sequence[str]], merge_columns: int) -> list[list[str]]:
    """Blank out leading cells that repeat the row above.

    A cell is merged only when every cell to its left was merged too, so
    the merge follows the column hierarchy. An empty row resets merging.
    """
    merged: list[list[str]] = []
    previous: Sequence[str] | None = None
    for row in rows:
        current = list(row)
        if previous is not None and any(previous):
            for i in range(min(merge_columns, len(current))):
                if current[i] != previous[i]:
                    break
                current[i] = ""
        merged.append(current)
        previous = row
    return merged


def render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    merge_columns: int = 0,
    title: str | None = None,
) -> str:
    """Render rows as an ASCII table and return it as a string."""
    table = Table(title=title, box=box.ASCII, show_lines=True, highlight=False)
    for header in headers:
        table.add_column(header, overflow="fold")
    for row in merge_cells(rows, merge_columns) if merge_columns else rows:
        table.add_row(*[Text(str(cell)) for cell in row])

    console = Console(file=io.StringIO(), width=RENDER_WIDTH, color_system=None, highlight=False, emoji=False)
    with console.capture() as capture:
        console.print(table)
    return capture.get()
