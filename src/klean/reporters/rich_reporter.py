from __future__ import annotations

import json
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from klean.engine.executor import ExecutionResult

console = Console()


def report_success(msg: str, out: Optional[Console] = None):
    (out or console).print(f"[bold green]✅ {msg}[/bold green]")


def report_failure(msg: str, out: Optional[Console] = None):
    (out or console).print(f"[bold red]❌ {msg}[/bold red]")


def summary_table(results: List[ExecutionResult], repaired: bool = True) -> Table:
    table = Table(title="Klean run", show_lines=False)
    table.add_column("Rule", style="bold")
    table.add_column("Tables")
    table.add_column("Rows", justify="right")
    table.add_column("Groups", justify="right")
    table.add_column("Pairs", justify="right")
    table.add_column("Violations", justify="right")
    if repaired:
        table.add_column("Fixes", justify="right")
    table.add_column("ms", justify="right", style="dim")

    for r in results:
        d = r.detect
        row = [
            r.rule_id,
            ", ".join(d.tables),
            f"{d.row_count:,}",
            f"{d.group_count:,}",
            f"{d.pair_count:,}",
            f"[red]{d.violation_count:,}[/red]" if d.violation_count else "0",
        ]
        if repaired:
            row.append(f"{r.repair.fix_count:,}")
        row.append(str(r.timers.total_ms))
        table.add_row(*row)
    return table


def report_results(
    results: List[ExecutionResult], repaired: bool = True, out: Optional[Console] = None
) -> None:
    """Print the per-rule table followed by a pass/fail banner."""
    out = out or console
    out.print(summary_table(results, repaired=repaired))
    total = sum(r.detect.violation_count for r in results)
    if total:
        report_failure(f"{total:,} violations across {len(results)} rule(s)", out)
    else:
        report_success(f"No violations across {len(results)} rule(s)", out)


def render_json(results: List[ExecutionResult]) -> str:
    return json.dumps([r.to_dict() for r in results], indent=2, sort_keys=True)
