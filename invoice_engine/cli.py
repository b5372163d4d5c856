"""Command-line entrypoints for invoice totals, payment reconciliation, and GST returns."""
from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.logging import RichHandler
from rich.markup import escape

from .calculator import totals_for
from .config import get_settings
from .errors import InvalidRecordError
from .gst import aggregate_quarter
from .reconciliation import invoice_status_for, reconcile_invoice
from .schemas import Expense, GSTAdjustments, Invoice, Payment
from .utils import parse_date
from .validator import RecordValidator

app = typer.Typer(add_completion=False, help="Invoice engine CLI")
logger = logging.getLogger(__name__)


@app.callback()
def main_options(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output")) -> None:
    level = logging.DEBUG if verbose else get_settings().log_level
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(show_path=False)], force=True)


def _read_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


def _load_invoice(path: Path) -> Invoice:
    data = _read_json(path)
    data.setdefault("currency", get_settings().default_currency)
    return Invoice.model_validate(data)


def _validator() -> RecordValidator:
    return RecordValidator(allowed_currencies=get_settings().allowed_currencies)


def _fail(exc: InvalidRecordError) -> None:
    logger.warning("Rejected input with %d issue(s)", len(exc.issues))
    print("[bold red]Invalid input[/bold red]")
    for issue in exc.issues:
        print(f"- {escape(str(issue))}")
    raise typer.Exit(code=2)


def _money(value, currency: Optional[str] = None) -> str:
    suffix = f" {currency}" if currency else ""
    return f"{value:,.2f}{suffix}"


@app.command()
def totals(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with one invoice")) -> None:
    """Compute subtotal, tax, additional charges, and total for an invoice."""
    invoice = _load_invoice(input)
    try:
        result = totals_for(invoice, validator=_validator())
    except InvalidRecordError as exc:
        _fail(exc)
    logger.debug("Computed totals for invoice %s", invoice.id)

    print(f"[bold]Invoice {invoice.invoice_number or invoice.id}[/bold]")
    print(f"Subtotal:           {_money(result.subtotal, result.currency)}")
    print(f"Discount:           {_money(result.discount, result.currency)}")
    print(f"Tax:                {_money(result.tax_amount, result.currency)}")
    print(f"Additional charges: {_money(result.additional_charges_total, result.currency)}")
    for charge in result.charges:
        marker = "" if charge.is_active else " [dim](inactive)[/dim]"
        print(f"  - {charge.label}: {_money(charge.amount)}{marker}")
    print(f"[bold]Total:              {_money(result.total, result.currency)}[/bold]")


@app.command()
def reconcile(
    input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with one invoice"),
    payments: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with the invoice's payments"),
    today: Optional[str] = typer.Option(None, help="Reconciliation date (YYYY-MM-DD), defaults to today"),
) -> None:
    """Derive balance due and payment status from the full payment history."""
    invoice = _load_invoice(input)
    history = [Payment.model_validate(item) for item in _read_json(payments)]
    as_of = parse_date(today) if today else date.today()
    if as_of is None:
        print(f"[bold red]Unparseable date:[/bold red] {today}")
        raise typer.Exit(code=2)
    try:
        result = reconcile_invoice(invoice, history, as_of, validator=_validator())
    except InvalidRecordError as exc:
        _fail(exc)

    currency = invoice.currency
    print(f"[bold]Status:[/bold] {result.status_label} ({result.payment_status.value})")
    print(f"Total:       {_money(result.invoice_total, currency)}")
    print(f"Paid:        {_money(result.total_paid, currency)}")
    print(f"Balance due: {_money(result.balance_due, currency)}")
    if result.exceeds_balance:
        print(f"[yellow]Overpaid by {_money(result.overpaid_amount, currency)}[/yellow]")
    if result.pending_count:
        print(f"[yellow]{result.pending_count} payment(s) pending confirmation[/yellow]")
    if result.failed_count:
        print(f"[red]{result.failed_count} failed payment(s) ignored[/red]")
    print(f"Invoice status: {invoice_status_for(result.payment_status, invoice.status).value}")


@app.command("gst-return")
def gst_return(
    quarter: str = typer.Option(..., help="Filing quarter, Q1 to Q4"),
    year: int = typer.Option(..., help="Filing year"),
    invoices: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with invoices"),
    expenses: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with expenses"),
    adjustments: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Optional JSON file with adjustments"),
    report: Optional[Path] = typer.Option(None, help="Optional path to write the return as JSON"),
) -> None:
    """Aggregate a quarter's invoices and expenses into GST return figures."""
    sales = [Invoice.model_validate(item) for item in _read_json(invoices)]
    purchases = [Expense.model_validate(item) for item in _read_json(expenses)]
    extra = GSTAdjustments.model_validate(_read_json(adjustments)) if adjustments else None
    try:
        result = aggregate_quarter(quarter, year, sales, purchases, adjustments=extra, validator=_validator())
    except InvalidRecordError as exc:
        _fail(exc)

    if report:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        print(f"Report written to {report}")

    period = result.period
    print(f"[bold]GST return {period.quarter} {period.year}[/bold] ({period.start_date} to {period.end_date})")
    print(f"Sales:          {_money(result.total_sales)}  GST {_money(result.gst_on_sales)}")
    print(f"Purchases:      {_money(result.total_purchases)}  GST {_money(result.gst_on_purchases)}")
    print(f"Capital goods:  {_money(result.capital_goods)}  GST {_money(result.gst_on_capital_goods)}")
    print(f"Adjustments:    {_money(result.adjustments.total)}")
    print(f"[bold]Net GST:        {_money(result.net_gst)}[/bold]")
    if result.payment_due > 0:
        print(f"[red]Payment due {_money(result.payment_due)} by {period.due_date}[/red]")
    elif result.refund_due > 0:
        print(f"[green]Refund due {_money(result.refund_due)}[/green]")
    else:
        print("Nothing to pay or refund")


def main():
    app()


if __name__ == "__main__":
    main()
