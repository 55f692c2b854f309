from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from sqlloadgen.generator import GenerationResult
from sqlloadgen.workload import ClientStats


def _row(label: str, stats: ClientStats) -> list:
    return [
        label,
        f"{stats.transactions:,}",
        f"{stats.commits:,}/{stats.rollbacks:,}",
        f"{stats.statements.get('select', 0):,}",
        f"{stats.statements.get('update', 0):,}",
        f"{stats.statements.get('insert', 0):,}",
        f"{stats.statements.get('delete', 0):,}",
        f"{stats.skipped:,}",
        " ".join(str(n) for n in stats.transaction_sizes),
    ]


def print_summary(result: GenerationResult, console: Optional[Console] = None) -> None:
    """
    Render per-client workload statistics as a rich table, with a total row.
    """
    console = console or Console(stderr=True)

    if not result.clients:
        console.print("[yellow]No clients generated.[/yellow]")
        return

    seeded = sum(result.seed_rows.values())
    table = Table(
        title=f"Workload '{result.profile}'\n[dim]{len(result.tables)} tables │ {seeded:,} seed rows[/dim]",
        box=box.ROUNDED,
        caption=f"Output: {result.output_dir}",
    )

    table.add_column("Client", style="cyan", no_wrap=True)
    table.add_column("TX", justify="right", style="magenta")
    table.add_column("Commit/Rollback", justify="right", style="blue")
    table.add_column("SELECT", justify="right", style="green")
    table.add_column("UPDATE", justify="right", style="yellow")
    table.add_column("INSERT", justify="right", style="bold green")
    table.add_column("DELETE", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("TX sizes\n[dim](1..mspt)[/dim]", justify="left")

    for stats in result.clients:
        table.add_row(*_row(str(stats.client_id), stats))
    table.add_section()
    table.add_row(*_row("Total", result.totals), style="bold")

    console.print(table)
