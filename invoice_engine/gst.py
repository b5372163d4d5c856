"""Period tax aggregator: quarterly GST return figures from invoices and expenses."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence, Tuple

from .calculator import rebuild_invoice
from .errors import InvalidRecordError, RecordIssue
from .schemas import Expense, GSTAdjustments, GSTReturnData, GSTReturnPeriod, Invoice
from .utils import HUNDRED, money_sum, normalize_quarter, quarter_bounds, round_money, to_money
from .validator import RecordValidator, require_valid

_validator = RecordValidator()


def return_period(quarter: str, year: int) -> GSTReturnPeriod:
    """Start, end, and due date of a filing quarter. Same inputs, same dates."""
    label = normalize_quarter(quarter)
    if label is None:
        raise InvalidRecordError([RecordIssue("period", "quarter", f"unknown quarter {quarter!r}")])
    if not 1 <= int(year) <= 9998:
        raise InvalidRecordError([RecordIssue("period", "year", f"year out of range: {year!r}")])
    start, end, due = quarter_bounds(label, int(year))
    return GSTReturnPeriod(quarter=label, year=int(year), start_date=start, end_date=end, due_date=due)


def net_position(
    gst_on_sales: Decimal,
    gst_on_purchases: Decimal,
    gst_on_capital_goods: Decimal,
    adjustments: GSTAdjustments,
) -> Tuple[Decimal, Decimal, Decimal]:
    """Return (net_gst, payment_due, refund_due); at most one of the last two is positive."""
    net = round_money(gst_on_sales - gst_on_purchases - gst_on_capital_goods - adjustments.total)
    payment_due = max(Decimal(0), net)
    refund_due = max(Decimal(0), -net)
    return net, round_money(payment_due), round_money(refund_due)


def aggregate_quarter(
    quarter: str,
    year: int,
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    adjustments: Optional[GSTAdjustments] = None,
    validator: Optional[RecordValidator] = None,
) -> GSTReturnData:
    """Reduce the invoices and expenses dated inside the quarter to GST return figures.

    Invoice totals are rebuilt from their items before summing. Inputs are
    never modified.
    """
    validator = validator or _validator
    adjustments = adjustments or GSTAdjustments()
    period = return_period(quarter, year)
    require_valid(validator.check_expenses(expenses))

    def in_period(value) -> bool:
        return value is not None and period.start_date <= value <= period.end_date

    sales = [rebuild_invoice(inv, validator=validator) for inv in invoices if in_period(inv.issue_date)]
    purchases = [exp for exp in expenses if in_period(exp.expense_date)]

    gst_on_sales = money_sum(inv.tax_amount for inv in sales)
    gst_on_purchases = money_sum(
        exp.gst_amount for exp in purchases if exp.is_gst_claimable and not exp.is_capital_expense
    )
    gst_on_capital_goods = money_sum(
        exp.gst_amount for exp in purchases if exp.is_capital_expense and exp.is_gst_claimable
    )
    net, payment_due, refund_due = net_position(
        gst_on_sales, gst_on_purchases, gst_on_capital_goods, adjustments
    )

    return GSTReturnData(
        period=period,
        invoice_count=len(sales),
        expense_count=len(purchases),
        total_sales=money_sum(inv.total for inv in sales),
        gst_on_sales=gst_on_sales,
        total_purchases=money_sum(exp.amount for exp in purchases),
        gst_on_purchases=gst_on_purchases,
        capital_goods=money_sum(exp.amount for exp in purchases if exp.is_capital_expense),
        gst_on_capital_goods=gst_on_capital_goods,
        adjustments=adjustments,
        net_gst=net,
        payment_due=payment_due,
        refund_due=refund_due,
    )


def apply_adjustments(return_data: GSTReturnData, adjustments: GSTAdjustments) -> GSTReturnData:
    """Recompute only the net position for new adjustment figures; no re-filtering."""
    net, payment_due, refund_due = net_position(
        return_data.gst_on_sales,
        return_data.gst_on_purchases,
        return_data.gst_on_capital_goods,
        adjustments,
    )
    return return_data.model_copy(
        update={
            "adjustments": adjustments,
            "net_gst": net,
            "payment_due": payment_due,
            "refund_due": refund_due,
        }
    )


def split_gst(amount: object, rate_percent: object, amount_includes_gst: bool = True) -> Tuple[Decimal, Decimal]:
    """Split an expense amount into (net, gst) at the given rate.

    Inclusive amounts have the GST extracted; exclusive amounts have it added on top.
    """
    value = to_money(amount)
    rate = to_money(rate_percent)
    issues = []
    if value is None or not value.is_finite() or value < 0:
        issues.append(RecordIssue("expense", "amount", "must be a non-negative number"))
    if rate is None or not rate.is_finite() or rate < 0:
        issues.append(RecordIssue("expense", "rate_percent", "must be a non-negative number"))
    require_valid(issues)

    fraction = rate / HUNDRED
    if amount_includes_gst:
        net = value / (1 + fraction)
        gst = value - net
    else:
        net = value
        gst = value * fraction
    return round_money(net), round_money(gst)
