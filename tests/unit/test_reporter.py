from __future__ import annotations

from pathlib import Path

from rich.console import Console

from sqlloadgen.generator import GenerationResult
from sqlloadgen.reporter import print_summary
from sqlloadgen.workload import ClientStats


def _result(clients) -> GenerationResult:
    return GenerationResult(
        profile="shop",
        output_dir=Path("out/shop"),
        tables=["customers", "orders"],
        seed_rows={"customers": 20, "orders": 20},
        clients=clients,
    )


def test_summary_lists_clients_and_total():
    one = ClientStats(client_id=1, transactions=3, commits=2, rollbacks=1, transaction_sizes=[1, 2])
    one.statements["select"] = 4
    two = ClientStats(client_id=2, transactions=1, commits=1, transaction_sizes=[0, 1])
    two.statements["delete"] = 2
    console = Console(record=True, width=160)

    print_summary(_result([one, two]), console=console)

    text = console.export_text()
    assert "Workload 'shop'" in text
    assert "40 seed rows" in text
    assert "Total" in text
    assert "1 3" in text


def test_summary_without_clients():
    console = Console(record=True, width=80)
    print_summary(_result([]), console=console)
    assert "No clients generated." in console.export_text()
