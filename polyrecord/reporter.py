from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from polyrecord.domain.envelope import EnvelopeResult


def summarize(results: Sequence[EnvelopeResult]) -> Dict[str, Any]:
    """
    Count valid/invalid records, valid records per variant and errors per code.
    """
    by_variant: Counter[str] = Counter()
    by_code: Counter[str] = Counter()
    for result in results:
        if result.record is not None:
            by_variant[result.record.type.value] += 1
        for error in result.errors:
            by_code[error.code.value] += 1

    valid = sum(1 for result in results if result.ok)
    return {
        "total": len(results),
        "valid": valid,
        "invalid": len(results) - valid,
        "variants": dict(sorted(by_variant.items())),
        "error_codes": dict(sorted(by_code.items())),
    }


def render_validation_report(
    results: Sequence[EnvelopeResult],
    console: Optional[Console] = None,
    title: str = "Activity Validation Report",
) -> None:
    """
    Render one row per input record as a rich table, followed by a summary line.

    Invalid records list every failing field with its error code.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No records to display.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, caption="Records in input order")
    table.add_column("#", justify="right", style="dim", no_wrap=True)
    table.add_column("State", no_wrap=True)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Amount", justify="right", style="magenta")
    table.add_column("Details")

    for index, result in enumerate(results, start=1):
        if result.record is not None:
            record = result.record
            table.add_row(
                str(index),
                "[green]valid[/green]",
                record.type.value,
                f"{record.amount:,.2f}",
                f"[dim]{record.id}[/dim]",
            )
        else:
            details: List[str] = [
                f"{error.field} [red]{error.code.value}[/red]: {error.message}" for error in result.errors
            ]
            table.add_row(str(index), "[red]invalid[/red]", "-", "-", "\n".join(details))

    console.print(table)

    summary = summarize(results)
    console.print(
        f"[bold]{summary['valid']}[/bold] valid, [bold]{summary['invalid']}[/bold] invalid "
        f"of {summary['total']} record(s)."
    )


__all__ = ["render_validation_report", "summarize"]
