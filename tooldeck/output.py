"""Terminal rendering for the CLI."""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .session.state import SessionResult
from .tools.catalog import Catalog

console = Console()

ACCENT = "#00d4e5"
DIM = "#4a4a60"
ERROR = "#e55a6e"


def render_catalog(catalog: Catalog) -> None:
    """Table of functions with their token costs."""
    table = Table(show_header=True, header_style=f"bold {ACCENT}", box=None)
    table.add_column("Function")
    table.add_column("Kind", style=DIM)
    table.add_column("Args", justify="right")
    table.add_column("Tokens", justify="right")

    for descriptor in catalog:
        row = [
            descriptor.name,
            descriptor.kind.value,
            str(len(descriptor.parameters)),
            str(descriptor.token_cost),
        ]
        table.add_row(*row)

    console.print(table)


def render_log(message: str) -> None:
    line = Text()
    line.append("log ", style=f"dim {ACCENT}")
    line.append("| ", style=f"dim {DIM}")
    line.append(message)
    console.print(line)


def render_result(result: SessionResult) -> None:
    if result.text is None:
        console.print("No result.", style=DIM)
    else:
        console.print(result.text)
    for error in result.errors:
        render_error(str(error))
    if result.steps_skipped:
        console.print(f"{result.steps_skipped} step(s) skipped", style=DIM)


def render_error(text: str) -> None:
    """Render an error message."""
    err = Text()
    err.append("err ", style=f"bold {ERROR}")
    err.append("| ", style=f"dim {DIM}")
    err.append(text, style=ERROR)
    console.print(err)
