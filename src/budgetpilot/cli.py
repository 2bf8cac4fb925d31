"""
BudgetPilot CLI — command-line interface.

Usage:
    budgetpilot validate budget.yaml
    budgetpilot allocate budget.yaml
    budgetpilot fix budget.yaml --output fixed.yaml
    budgetpilot reconcile budget.yaml --period pp-2024-01
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from budgetpilot import __version__
from budgetpilot.exceptions import BudgetPilotError

app = typer.Typer(
    name="budgetpilot",
    help="BudgetPilot — paycheck budgeting engine",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

CONFIG_OPTION = typer.Option(
    "budgetpilot.yaml",
    "--config",
    "-c",
    help="Path to config file (ignored if missing)",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]BudgetPilot[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """BudgetPilot — Allocate. Validate. Reconcile."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(snapshot: Path, config: str):  # noqa: ANN202
    """Load the pilot and snapshot, exiting with status 1 on bad input."""
    from budgetpilot.pilot import BudgetPilot
    from budgetpilot.snapshot import BudgetSnapshot

    try:
        config_path = config if Path(config).exists() else None
        pilot = BudgetPilot.from_config(config_path)
        if logging.getLogger().level != logging.DEBUG:
            logging.getLogger("budgetpilot").setLevel(pilot.config.log_level)
        data = BudgetSnapshot.load(snapshot)
    except BudgetPilotError as e:
        console.print(f"[red]Error ({e.code}): {escape(e.message)}[/red]")
        raise typer.Exit(1) from e
    return pilot, data


def _money(amount, currency: str) -> str:  # noqa: ANN001
    symbol = "$" if currency == "USD" else f"{currency} "
    return f"{symbol}{amount:,.2f}"


@app.command()
def validate(
    snapshot: Path = typer.Argument(..., help="Budget snapshot (.yaml or .json)"),
    config: str = CONFIG_OPTION,
    output_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Validate a budget and list every issue found."""
    from budgetpilot.models.validation import IssueType

    pilot, data = _load(snapshot, config)
    result = pilot.validate(data.budget_items, data.income_sources)

    if output_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        raise typer.Exit(0 if result.is_valid else 1)

    console.print(Panel.fit(
        "[bold blue]BudgetPilot[/bold blue] — Budget Validation",
        subtitle=f"v{__version__}",
    ))

    if result.issues:
        colors = {IssueType.ERROR: "red", IssueType.WARNING: "yellow", IssueType.INFO: "blue"}
        table = Table(title="Issues", show_lines=True)
        table.add_column("Type", style="bold")
        table.add_column("Category")
        table.add_column("Issue")
        table.add_column("Suggested Fix")
        table.add_column("Auto", justify="center")
        for issue in result.issues:
            color = colors[issue.type]
            table.add_row(
                f"[{color}]{issue.type.value.upper()}[/{color}]",
                issue.category.value,
                f"[bold]{issue.title}[/bold]\n{issue.message}",
                issue.suggested_fix or "",
                "✓" if issue.auto_fixable else "",
            )
        console.print(table)

    summary = result.summary
    currency = pilot.config.currency
    console.print(
        f"{summary.error_count} error(s), {summary.warning_count} warning(s), "
        f"{summary.info_count} info — allocated {_money(summary.total_allocation, currency)} "
        f"({summary.allocation_percentage}% of net income)"
    )
    if result.is_valid:
        console.print("[green]✓[/green] Budget is valid")
    else:
        console.print("[red]✗[/red] Budget has errors")
        raise typer.Exit(1)


@app.command()
def allocate(
    snapshot: Path = typer.Argument(..., help="Budget snapshot (.yaml or .json)"),
    config: str = CONFIG_OPTION,
) -> None:
    """Calculate expected amounts per budget item for the primary income."""
    pilot, data = _load(snapshot, config)
    plan = pilot.plan_primary(data.budget_items, data.income_sources)
    if plan is None:
        console.print("[red]Error: the snapshot has no active income source[/red]")
        raise typer.Exit(1)

    currency = pilot.config.currency
    names = {item.id: item.name for item in data.budget_items}

    table = Table(title=f"Allocations — {plan.income_source.name or plan.income_source.id}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Item", style="bold cyan")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    for i, result in enumerate(plan.results, 1):
        table.add_row(
            str(i),
            names.get(result.budget_item_id, result.budget_item_id),
            result.calculation_details.calc_type.value,
            _money(result.expected_amount, currency),
        )
    console.print(table)

    summary = plan.summary
    totals = Table(title="Summary", show_lines=True)
    totals.add_column("Metric", style="bold")
    totals.add_column("Value", justify="right")
    totals.add_row("Net Income", _money(summary.net_income, currency))
    totals.add_row("Total Allocated", _money(summary.total_allocated, currency))
    totals.add_row("Remaining", _money(summary.remaining, currency))
    totals.add_row("Allocated", f"{summary.percent_allocated}%")
    totals.add_row("Health Score", f"{summary.health_score:g}/100 ({summary.status.value})")
    console.print(totals)


@app.command()
def fix(
    snapshot: Path = typer.Argument(..., help="Budget snapshot (.yaml or .json)"),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the fixed snapshot"),
    config: str = CONFIG_OPTION,
) -> None:
    """Apply every automatic fix and write the repaired snapshot."""
    pilot, data = _load(snapshot, config)
    resolutions = pilot.resolutions(data.budget_items, data.income_sources)

    if not resolutions:
        console.print("[dim]No automatic fixes available[/dim]")
    for resolution in resolutions:
        console.print(f"  [green]•[/green] {resolution.description} ({len(resolution.changes)} change(s))")

    fixed = data.model_copy(update={"budget_items": pilot.auto_fix(data.budget_items, data.income_sources)})
    path = fixed.save(output)
    console.print(f"[green]✓[/green] Snapshot saved to [bold]{path}[/bold]")


@app.command()
def reconcile(
    snapshot: Path = typer.Argument(..., help="Budget snapshot (.yaml or .json)"),
    period: str = typer.Option(None, "--period", "-p", help="Pay period id (default: all periods)"),
    config: str = CONFIG_OPTION,
) -> None:
    """Compare expected and actual amounts for pay periods."""
    pilot, data = _load(snapshot, config)
    currency = pilot.config.currency

    if period is None:
        summary = pilot.reconciliation_summary(data.pay_periods, data.allocations)
        table = Table(title="Reconciliation Summary", show_lines=True)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        table.add_row("Pay Periods", str(summary.total_periods))
        table.add_row("Completed", str(summary.completed_periods))
        table.add_row("Perfect", str(summary.perfect_reconciliations))
        table.add_row("Minor Variance", str(summary.minor_variance_count))
        table.add_row("Major Variance", str(summary.major_variance_count))
        table.add_row("Avg Net Variance", _money(summary.average_net_variance, currency))
        table.add_row("Avg Allocation Variance", _money(summary.average_allocation_variance, currency))
        table.add_row("Total Unallocated", _money(summary.total_unallocated, currency))
        console.print(table)
        return

    pay_period = data.pay_period(period)
    if pay_period is None:
        console.print(f"[red]Error: pay period '{period}' not found[/red]")
        raise typer.Exit(1)

    result = pilot.reconcile(pay_period, data.allocations_for(period))
    console.print(
        f"[bold]{period}[/bold]: {result.reconciliation_status.value} "
        f"(net variance {_money(result.net_variance, currency)}, {result.net_variance_percentage}%)"
    )

    table = Table(title="Allocations")
    table.add_column("Item", style="bold cyan")
    table.add_column("Expected", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Variance", justify="right")
    table.add_column("Status")
    for line in result.allocations:
        actual = _money(line.actual_amount, currency) if line.actual_amount is not None else "—"
        status = line.variance_status.value
        if line.is_flagged:
            status = f"[red]{status} ⚑[/red]"
        table.add_row(
            line.budget_item_name,
            _money(line.expected_amount, currency),
            actual,
            f"{_money(line.variance, currency)} ({line.variance_percentage}%)",
            status,
        )
    console.print(table)
    console.print(f"Unallocated: {_money(result.unallocated_amount, currency)}")


if __name__ == "__main__":
    app()
