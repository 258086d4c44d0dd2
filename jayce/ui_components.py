"""
Jayce - UI Components
Standardized headers and result tables
"""

from typing import Iterable

from rich.console import Console
from rich.table import Table

from jayce.models.results import DeploymentResult, DeploymentStatus

LOGO = "jayce"

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

STATUS_STYLES = {
    DeploymentStatus.SUCCEEDED: SUCCESS_COLOR,
    DeploymentStatus.FAILED: ERROR_COLOR,
    DeploymentStatus.SKIPPED: WARNING_COLOR,
}


def show_header(
    title: str,
    subtitle: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized jayce command header.

    Args:
        title: Main title (e.g., "Deploy")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Deploy",
            details={"Network": "devnet", "Modules": 3}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"
    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [{BRAND_COLOR}]{value}[/{BRAND_COLOR}]")

    console.print()


def results_table(results: Iterable[DeploymentResult], title: str = "Deployment") -> Table:
    """Build the per-module summary table."""
    table = Table(title=title, title_justify="left", padding=(0, 1))
    table.add_column("Address name", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Address", style="dim")
    table.add_column("Transaction", style="dim")
    table.add_column("Attempts", justify="right")
    table.add_column("Error", style="dim")

    for result in results:
        style = STATUS_STYLES[result.status]
        table.add_row(
            result.address_name,
            f"[{style}]●[/{style}] {result.status.value}",
            result.address or "-",
            _short(result.transaction_hash),
            str(result.attempts),
            result.error or "",
        )
    return table


def _short(value: str) -> str:
    if not value:
        return "-"
    return value if len(value) <= 18 else f"{value[:10]}…{value[-6:]}"
