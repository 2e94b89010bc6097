# ABOUTME: Console and logging setup shared by CLI commands
# ABOUTME: Routes module loggers through rich and renders output parameter tables

"""Console helpers."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table


def configure_logging(console: Console, verbose: bool = False) -> None:
    """Send log records to the console, at DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )
    # boto's own debug output drowns the deployment narrative
    for name in ("boto3", "botocore", "urllib3", "s3transfer"):
        logging.getLogger(name).setLevel(logging.WARNING)


def outputs_table(title: str, outputs: dict[str, str]) -> Table:
    """Render an output parameter set."""
    table = Table(title=title, show_header=True)
    table.add_column("Parameter", style="cyan")
    table.add_column("Value")
    for name in sorted(outputs):
        table.add_row(name, outputs[name])
    return table
