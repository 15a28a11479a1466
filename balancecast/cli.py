"""
Command-Line Interface for BalanceCast.

Purpose
-------
Runs projections, monthly views, loan and tax reports and the house-sale
calculator against a snapshot file, without writing Python code.

Commands
--------
- project: Month-by-month balance projection up to a horizon
- month: Net result of a single month
- loans: Current balance and remaining cost of every loan
- taxes: Annual IRPF settlement (Renta) and quarterly payments
- house-sale: Net proceeds of the house-sale scenario
- data: Validate, show, create, export and import snapshot files
- info: Version and dependency information

Example Usage
-------------
    # Project the next 24 months
    $ balancecast project --months 24

    # Project to a date and save the rows
    $ balancecast --data my-data.json project --horizon 2030-12-31 -o rows.csv

    # Renta for 2025
    $ balancecast taxes --year 2025

    # Export a dated backup
    $ balancecast data export --dir backups/
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import load_settings
from .constants import QUARTERLY_PAYMENT_MONTHS
from .exceptions import BalanceCastError
from .snapshot import FinancialSnapshot
from .utils import add_months, format_currency, format_percent, month_end, month_start

logger = logging.getLogger(__name__)

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _configure_logging(level: str) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load(ctx: click.Context) -> FinancialSnapshot:
    from .serialization import load_snapshot

    try:
        return load_snapshot(ctx.obj["data_path"])
    except BalanceCastError as e:
        _fail(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="balancecast")
@click.option("--quiet", "-q", is_flag=True, help="Plain output without tables")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--data", "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Snapshot file (default: BALANCECAST_DATA_FILE)"
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, verbose: bool, data: Optional[Path]) -> None:
    """
    BalanceCast - Personal cash-flow and tax projection.

    Projects a bank balance month by month from recurring and one-off
    income and expenses, loan payments and Spanish freelance taxes
    (IVA, IRPF advances and the annual Renta).

    Use 'balancecast COMMAND --help' for command-specific help.
    """
    try:
        settings = load_settings()
    except BalanceCastError as e:
        _fail(str(e))

    _configure_logging("DEBUG" if verbose else settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["console"] = Console()
    ctx.obj["settings"] = settings
    ctx.obj["data_path"] = data or settings.data_file


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------

@main.command()
@click.option("--horizon", "-H", type=DATE, default=None, help="Last date to project (YYYY-MM-DD)")
@click.option("--months", "-m", type=click.IntRange(1, 600), default=None, help="Number of months to project")
@click.option("--today", type=DATE, default=None, help="Override the current date (YYYY-MM-DD)")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the rows to a .csv or .json file"
)
@click.pass_context
def project(
    ctx: click.Context,
    horizon: Optional[datetime],
    months: Optional[int],
    today: Optional[datetime],
    output: Optional[Path],
) -> None:
    """
    Project the bank balance month by month.

    The horizon is, in order: --horizon, --months, the saved
    progress-tracking date, or the default number of months.

    Example:
        balancecast project --months 36 -o projection.csv
    """
    from .projection import project as run_projection, projections_to_frame, summarize_projections

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]
    settings = ctx.obj["settings"]

    if horizon is not None and months is not None:
        raise click.UsageError("Use either --horizon or --months, not both")
    if output is not None and output.suffix.lower() not in (".csv", ".json"):
        raise click.BadParameter("output must end in .csv or .json", param_hint="--output")

    snapshot = _load(ctx)
    current = _as_date(today) or date.today()

    if horizon is not None:
        end = horizon.date()
    elif months is not None:
        end = month_end(add_months(month_start(current), months - 1))
    elif snapshot.settings.progress_tracking_date is not None:
        end = snapshot.settings.progress_tracking_date
    else:
        end = month_end(add_months(month_start(current), settings.default_horizon_months - 1))

    rows = run_projection(snapshot, end, today=current)
    summary = summarize_projections(rows, snapshot.settings.starting_balance)

    if console and not quiet:
        table = Table(title=f"Projection {rows[0].month} to {rows[-1].month}" if rows else "Projection")
        table.add_column("Month", style="cyan")
        for heading in ("Start", "Income", "Expenses", "Loans", "One-off +", "One-off -", "Taxes", "End"):
            table.add_column(heading, justify="right")

        for row in rows:
            end_style = "red" if row.ending_balance < 0 else "green"
            table.add_row(
                row.month,
                format_currency(row.starting_balance),
                format_currency(row.total_income),
                format_currency(row.total_expenses),
                format_currency(row.loan_payments),
                format_currency(row.one_off_income),
                format_currency(row.one_off_expenses),
                format_currency(row.taxes),
                f"[{end_style}]{format_currency(row.ending_balance)}[/{end_style}]",
            )
        console.print(table)

        lines = [
            f"Months: {summary.months}",
            f"Final balance: {format_currency(summary.final_balance)}",
            f"Total change: {format_currency(summary.total_change)}",
            f"IRPF paid: {format_currency(summary.total_irpf)}",
            f"IVA paid: {format_currency(summary.total_iva)}",
        ]
        if summary.lowest_balance_month is not None:
            lines.append(
                f"Lowest balance: {format_currency(summary.lowest_balance)} ({summary.lowest_balance_month})"
            )
        console.print(Panel("\n".join(lines), title="Summary"))
    else:
        for row in rows:
            click.echo(f"{row.month} {row.ending_balance:.2f}")
        click.echo(f"Final balance: {summary.final_balance:.2f}")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.suffix.lower() == ".csv":
            projections_to_frame(rows).to_csv(output)
        else:
            with open(output, "w", encoding="utf-8") as f:
                json.dump([row.to_dict() for row in rows], f, indent=2)
        if not quiet:
            click.echo(f"Projection saved to {output}")


@main.command()
@click.option("--date", "on", type=DATE, default=None, help="Any day of the month (default: saved dashboard date or today)")
@click.pass_context
def month(ctx: click.Context, on: Optional[datetime]) -> None:
    """
    Show the net result of one month.

    Recurring income minus recurring expenses (with deviation) minus the
    fixed payment of every loan. Loans repaid by the house sale stop from
    the selling date. Tax payments are not included.
    """
    from .projection import monthly_breakdown

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    snapshot = _load(ctx)
    day = _as_date(on) or snapshot.settings.dashboard_date or date.today()

    breakdown = monthly_breakdown(snapshot, today=day, house_sale=True)
    result = breakdown.result

    if console and not quiet:
        table = Table(title=f"Month {day:%Y-%m}", show_header=True)
        table.add_column("Concept", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_row("Net income", format_currency(breakdown.income))
        table.add_row("Expenses", format_currency(-breakdown.expenses))
        table.add_row("Loan payments", format_currency(-breakdown.loan_payments))
        style = "red" if result < 0 else "green"
        table.add_row("[bold]Result[/bold]", f"[{style}]{format_currency(result)}[/{style}]")
        console.print(table)
    else:
        click.echo(f"{day:%Y-%m} {result:.2f}")


@main.command()
@click.option("--date", "on", type=DATE, default=None, help="Valuation date (default: today)")
@click.pass_context
def loans(ctx: click.Context, on: Optional[datetime]) -> None:
    """
    List loans with their balance on a date, largest first.
    """
    from .loans import loan_details

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    snapshot = _load(ctx)
    day = _as_date(on) or date.today()

    rows = sorted(
        ((loan, loan_details(loan, day)) for loan in snapshot.loans),
        key=lambda pair: pair[1].current_balance,
        reverse=True,
    )

    if console and not quiet:
        table = Table(title=f"Loans on {day.isoformat()}")
        table.add_column("Loan", style="cyan")
        table.add_column("Rate", justify="right")
        table.add_column("Balance", justify="right")
        table.add_column("Payment", justify="right")
        table.add_column("Months left", justify="right")
        table.add_column("Total remaining", justify="right")
        for loan, details in rows:
            table.add_row(
                loan.title,
                format_percent(loan.interest_rate_percent / 100, 2),
                format_currency(details.current_balance),
                format_currency(details.monthly_payment),
                str(details.months_remaining),
                format_currency(details.total_remaining),
            )
        console.print(table)
    else:
        for loan, details in rows:
            click.echo(f"{loan.title}: {details.current_balance:.2f}")


@main.command()
@click.option("--year", "-y", type=int, default=None, help="Tax year (default: last year)")
@click.pass_context
def taxes(ctx: click.Context, year: Optional[int]) -> None:
    """
    Show the annual IRPF settlement and the quarterly payments of a year.

    The Renta shown here is paid in July of the following year.
    """
    from .taxes import TaxCalendar, bracket_breakdown, effective_rate

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    snapshot = _load(ctx)
    year = year if year is not None else date.today().year - 1

    calendar = TaxCalendar(snapshot)
    settlement = calendar.settlement(year)
    brackets = snapshot.settings.irpf_brackets

    if not quiet and not snapshot.settings.is_freelance_mode:
        click.echo("Freelance mode is off: no IRPF or IVA payments are computed.")

    if console and not quiet:
        table = Table(title=f"Renta {year}")
        table.add_column("Concept", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_row("Gross income", format_currency(settlement.income))
        table.add_row("Professional expenses", format_currency(settlement.professional_expenses))
        table.add_row("Net taxable income", format_currency(settlement.net_taxable_income))
        table.add_row("IRPF due", format_currency(settlement.total_irpf_due))
        table.add_row("Quarterly advances", format_currency(settlement.advance_payments))
        table.add_row("IRPF withheld", format_currency(settlement.irpf_withheld))
        table.add_row("[bold]Renta to pay[/bold]", f"[bold]{format_currency(settlement.renta)}[/bold]")
        table.add_row(
            "Effective rate",
            format_percent(effective_rate(settlement.net_taxable_income, brackets)),
        )
        console.print(table)

        shares = [s for s in bracket_breakdown(settlement.net_taxable_income, brackets) if s.taxable > 0]
        if shares:
            bracket_table = Table(title="IRPF brackets")
            bracket_table.add_column("From", justify="right")
            bracket_table.add_column("To", justify="right")
            bracket_table.add_column("Rate", justify="right")
            bracket_table.add_column("Taxable", justify="right")
            bracket_table.add_column("Tax", justify="right")
            for share in shares:
                b = share.bracket
                bracket_table.add_row(
                    format_currency(b.from_amount),
                    format_currency(b.to_amount) if b.to_amount is not None else "-",
                    format_percent(b.rate_percent / 100),
                    format_currency(share.taxable),
                    format_currency(share.tax),
                )
            console.print(bracket_table)

        payments = Table(title=f"Quarterly payments in {year}")
        payments.add_column("Month", style="cyan")
        payments.add_column("Quarter", justify="right")
        payments.add_column("IRPF advance", justify="right")
        payments.add_column("IVA", justify="right")
        for m in QUARTERLY_PAYMENT_MONTHS:
            payment = calendar.quarterly_payment(date(year, m, 1))
            quarter = f"Q{payment.quarter} {payment.tax_year}" if payment.quarter else "-"
            payments.add_row(
                f"{year}-{m:02d}",
                quarter,
                format_currency(payment.irpf_advance),
                format_currency(payment.iva_return),
            )
        console.print(payments)
    else:
        click.echo(f"Net taxable income: {settlement.net_taxable_income:.2f}")
        click.echo(f"IRPF due: {settlement.total_irpf_due:.2f}")
        click.echo(f"Renta: {settlement.renta:.2f}")


@main.command("house-sale")
@click.option("--date", "on", type=DATE, default=None, help="Date the loan balances are taken at (default: today)")
@click.option("--save", is_flag=True, help="Store the proceeds as a one-off income in the data file")
@click.pass_context
def house_sale(ctx: click.Context, on: Optional[datetime], save: bool) -> None:
    """
    Compute the net proceeds of the house-sale scenario.

    Agency commission (3.5% plus 21% VAT) and the selected loans are
    deducted, then a 10% safety margin is kept aside.
    """
    from .scenario import apply_house_sale, sale_proceeds
    from .serialization import save_snapshot

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    snapshot = _load(ctx)
    day = _as_date(on) or date.today()

    if snapshot.selling_house is None:
        _fail("No house-sale scenario in the data file")

    proceeds = sale_proceeds(snapshot, day)

    if console and not quiet:
        table = Table(title="House sale")
        table.add_column("Concept", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_row("Sale amount", format_currency(proceeds.sale_amount))
        table.add_row("Agency commission", format_currency(-proceeds.agency_commission))
        table.add_row("Agency VAT", format_currency(-proceeds.agency_vat))
        table.add_row("After agency", format_currency(proceeds.amount_after_agency))
        table.add_row("Loans to repay", format_currency(-proceeds.loans_to_pay))
        table.add_row("Before margin", format_currency(proceeds.amount_before_margin))
        table.add_row("Safety margin", format_currency(-proceeds.safety_margin))
        table.add_row("[bold]Final amount[/bold]", f"[bold]{format_currency(proceeds.final_amount)}[/bold]")
        console.print(table)
    else:
        click.echo(f"Final amount: {proceeds.final_amount:.2f}")

    if save:
        try:
            save_snapshot(apply_house_sale(snapshot, day), ctx.obj["data_path"])
        except OSError as e:
            _fail(f"Error writing file: {e}")
        if not quiet:
            click.echo(f"Saved proceeds to {ctx.obj['data_path']}")


# ---------------------------------------------------------------------------
# Data files
# ---------------------------------------------------------------------------

@main.group()
def data() -> None:
    """
    Snapshot file management commands.

    Validate, inspect, create, export and import snapshot files.
    """
    pass


@data.command("validate")
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def data_validate(ctx: click.Context, snapshot_file: Path) -> None:
    """
    Validate a snapshot file.

    Checks that the file is JSON and matches the snapshot schema.

    Example:
        balancecast data validate financial-data.json
    """
    from .serialization import import_snapshot

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    try:
        snapshot = import_snapshot(snapshot_file)
    except BalanceCastError as e:
        _fail(str(e))

    if console and not quiet:
        console.print(f"[green]✓ {snapshot_file} is valid[/green]")
        console.print(
            f"  {len(snapshot.recurring_income)} income, "
            f"{len(snapshot.recurring_expenses)} expenses, "
            f"{len(snapshot.loans)} loans"
        )
    else:
        click.echo("valid")


@data.command("show")
@click.argument("snapshot_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=False)
@click.option("--format", "-f", "fmt", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def data_show(ctx: click.Context, snapshot_file: Optional[Path], fmt: str) -> None:
    """
    Display a snapshot (default: the data file).
    """
    from .serialization import import_snapshot, snapshot_to_dict

    console = ctx.obj["console"]
    quiet = ctx.obj["quiet"]

    try:
        snapshot = import_snapshot(snapshot_file) if snapshot_file else _load(ctx)
    except BalanceCastError as e:
        _fail(str(e))

    if fmt == "json" or quiet:
        click.echo(json.dumps(snapshot_to_dict(snapshot), indent=2, ensure_ascii=False))
        return

    settings = snapshot.settings
    console.print(Panel(
        f"Starting balance: {format_currency(settings.starting_balance)}\n"
        f"Expense deviation: {format_percent(settings.monthly_expenses_deviation_percent / 100)}\n"
        f"Freelance mode: {'on' if settings.is_freelance_mode else 'off'}\n"
        f"IRPF brackets: {len(settings.irpf_brackets)}",
        title="Settings",
    ))

    income_table = Table(title="Recurring income")
    income_table.add_column("Title", style="cyan")
    income_table.add_column("Amount", justify="right")
    income_table.add_column("IVA", justify="right")
    income_table.add_column("IRPF", justify="right")
    income_table.add_column("From")
    income_table.add_column("To")
    for item in snapshot.recurring_income:
        income_table.add_row(
            item.title,
            format_currency(item.amount),
            format_percent((item.iva_percent or 0) / 100),
            format_percent((item.irpf_percent or 0) / 100),
            item.start_date.isoformat() if item.start_date else "-",
            item.end_date.isoformat() if item.end_date else "-",
        )
    console.print(income_table)

    expense_table = Table(title="Recurring expenses")
    expense_table.add_column("Title", style="cyan")
    expense_table.add_column("Amount", justify="right")
    expense_table.add_column("Professional")
    expense_table.add_column("From")
    expense_table.add_column("To")
    for item in snapshot.recurring_expenses:
        expense_table.add_row(
            item.title,
            format_currency(item.amount),
            "yes" if item.is_professional else "",
            item.start_date.isoformat() if item.start_date else "-",
            item.end_date.isoformat() if item.end_date else "-",
        )
    console.print(expense_table)

    one_off = Table(title="One-off items")
    one_off.add_column("Date")
    one_off.add_column("Title", style="cyan")
    one_off.add_column("Amount", justify="right")
    entries = [(i.date, i.title, i.amount) for i in snapshot.one_off_income]
    entries += [(e.date, e.title, -e.amount) for e in snapshot.one_off_expenses]
    for when, title, amount in sorted(entries, key=lambda entry: entry[0]):
        one_off.add_row(when.isoformat(), title, format_currency(amount))
    console.print(one_off)


_TEMPLATE = {
    "recurringIncome": [
        {"id": "income-1", "title": "Main client", "amount": 3000, "iva": 21, "irpf": 15},
    ],
    "recurringExpenses": [
        {"id": "expense-1", "title": "Rent", "amount": 900},
        {"id": "expense-2", "title": "Coworking", "amount": 150, "isProfessional": True},
    ],
    "loans": [],
    "oneOffExpenses": [],
    "oneOffIncome": [],
    "settings": {
        "startingBalance": 5000,
        "monthlyExpensesDeviation": 5,
        "isFreelanceMode": True,
        "irpfBrackets": [
            {"id": "b1", "fromAmount": 0, "toAmount": 12450, "rate": 19},
            {"id": "b2", "fromAmount": 12450, "toAmount": 20200, "rate": 24},
            {"id": "b3", "fromAmount": 20200, "toAmount": 35200, "rate": 30},
            {"id": "b4", "fromAmount": 35200, "toAmount": 60000, "rate": 37},
            {"id": "b5", "fromAmount": 60000, "toAmount": 300000, "rate": 45},
            {"id": "b6", "fromAmount": 300000, "toAmount": None, "rate": 47},
        ],
    },
}


@data.command("create")
@click.argument("output_file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def data_create(ctx: click.Context, output_file: Path) -> None:
    """
    Create a starter snapshot file.

    Example:
        balancecast data create financial-data.json
    """
    from .serialization import save_snapshot, snapshot_from_dict

    if output_file.exists():
        _fail(f"{output_file} already exists")

    save_snapshot(snapshot_from_dict(_TEMPLATE), output_file)

    if not ctx.obj["quiet"]:
        click.echo(f"Created snapshot file: {output_file}")


@data.command("export")
@click.option("--dir", "directory", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Target directory (default: BALANCECAST_EXPORT_DIR)")
@click.pass_context
def data_export(ctx: click.Context, directory: Optional[Path]) -> None:
    """
    Export the data file to financial-data-YYYY-MM-DD.json.
    """
    from .serialization import export_snapshot

    snapshot = _load(ctx)
    path = export_snapshot(snapshot, directory or ctx.obj["settings"].export_dir)
    click.echo(str(path))


@data.command("import")
@click.argument("snapshot_file", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def data_import(ctx: click.Context, snapshot_file: Path) -> None:
    """
    Replace the data file with an imported snapshot.

    The file is validated first; the data file is left untouched on error.
    """
    from .serialization import import_snapshot, save_snapshot

    try:
        snapshot = import_snapshot(snapshot_file)
    except BalanceCastError as e:
        _fail(str(e))

    try:
        save_snapshot(snapshot, ctx.obj["data_path"])
    except OSError as e:
        _fail(f"Error writing file: {e}")
    if not ctx.obj["quiet"]:
        click.echo(f"Imported {snapshot_file} into {ctx.obj['data_path']}")


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display version, dependency and settings information.
    """
    console = ctx.obj["console"]
    settings = ctx.obj["settings"]

    info_lines = [
        f"BalanceCast Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
        f"Data file: {ctx.obj['data_path']}",
        f"Export dir: {settings.export_dir}",
    ]

    for name in ("numpy", "pandas", "pydantic", "click", "rich"):
        mod = __import__(name)
        info_lines.append(f"{name}: {getattr(mod, '__version__', 'installed')}")

    if console and not ctx.obj["quiet"]:
        console.print(Panel("\n".join(info_lines), title="System Information"))
    else:
        for line in info_lines:
            click.echo(line)


if __name__ == "__main__":
    main()
