from datetime import date
from decimal import Decimal

import pytest

from invoice_engine.errors import InvalidRecordError
from invoice_engine.gst import aggregate_quarter, apply_adjustments, return_period, split_gst
from invoice_engine.schemas import Expense, GSTAdjustments, Invoice, LineItem


def invoice(invoice_id, day, total, tax):
    return Invoice(id=invoice_id, issue_date=day, total=total, tax_amount=tax)


def expense(expense_id, day, amount, gst, claimable=True, capital=False):
    return Expense(
        id=expense_id,
        expense_date=day,
        amount=amount,
        gst_amount=gst,
        is_gst_claimable=claimable,
        is_capital_expense=capital,
    )


@pytest.mark.parametrize(
    "quarter,year,start,end,due",
    [
        ("Q1", 2024, date(2024, 1, 1), date(2024, 3, 31), date(2024, 4, 28)),
        ("Q2", 2024, date(2024, 4, 1), date(2024, 6, 30), date(2024, 7, 28)),
        ("Q3", 2023, date(2023, 7, 1), date(2023, 9, 30), date(2023, 10, 28)),
        ("Q4", 2023, date(2023, 10, 1), date(2023, 12, 31), date(2024, 1, 28)),
    ],
)
def test_return_period(quarter, year, start, end, due):
    period = return_period(quarter, year)

    assert (period.start_date, period.end_date, period.due_date) == (start, end, due)


def test_period_is_deterministic_across_calls():
    aggregate_quarter("Q4", 2030, [], [])
    first = aggregate_quarter("Q2", 2024, [], []).period
    second = return_period("q2", 2024)

    assert first == second
    assert str(first.start_date) == "2024-04-01"
    assert str(first.end_date) == "2024-06-30"
    assert str(first.due_date) == "2024-07-28"


def test_unknown_quarter_rejected():
    with pytest.raises(InvalidRecordError) as excinfo:
        return_period("Q5", 2024)

    assert excinfo.value.issues[0].field == "quarter"


def test_q1_net_payment():
    invoices = [invoice("i1", date(2024, 1, 15), 4600, 600), invoice("i2", date(2024, 3, 31), 3066.67, 400)]
    expenses = [expense("e1", date(2024, 2, 10), 2300, 300), expense("e2", date(2024, 1, 1), 766.67, 100)]

    result = aggregate_quarter("Q1", 2024, invoices, expenses)

    assert result.gst_on_sales == Decimal("1000.00")
    assert result.gst_on_purchases == Decimal("400.00")
    assert result.net_gst == Decimal("600.00")
    assert result.payment_due == Decimal("600.00")
    assert result.refund_due == Decimal("0.00")
    assert result.total_sales == Decimal("7666.67")
    assert result.total_purchases == Decimal("3066.67")


def test_records_outside_quarter_are_excluded():
    invoices = [invoice("in", date(2024, 4, 1), 115, 15), invoice("out", date(2024, 3, 31), 1150, 150)]
    expenses = [expense("in", date(2024, 6, 30), 230, 30), expense("out", date(2024, 7, 1), 2300, 300)]

    result = aggregate_quarter("Q2", 2024, invoices, expenses)

    assert result.invoice_count == 1
    assert result.expense_count == 1
    assert result.gst_on_sales == Decimal("15.00")
    assert result.gst_on_purchases == Decimal("30.00")


def test_invoices_without_date_are_excluded():
    result = aggregate_quarter("Q1", 2024, [Invoice(id="nodate", total=100, tax_amount=10)], [])

    assert result.invoice_count == 0


def test_capital_and_non_claimable_expenses():
    day = date(2024, 5, 5)
    expenses = [
        expense("normal", day, 115, 15),
        expense("unclaimable", day, 230, 30, claimable=False),
        expense("capital", day, 1150, 150, capital=True),
        expense("capital-unclaimable", day, 575, 75, claimable=False, capital=True),
    ]

    result = aggregate_quarter("Q2", 2024, [], expenses)

    assert result.total_purchases == Decimal("2070.00")
    assert result.gst_on_purchases == Decimal("15.00")
    assert result.capital_goods == Decimal("1725.00")
    assert result.gst_on_capital_goods == Decimal("150.00")
    assert result.net_gst == Decimal("-165.00")
    assert result.refund_due == Decimal("165.00")
    assert result.payment_due == Decimal("0.00")


def test_adjustments_reduce_net_position():
    adjustments = GSTAdjustments(bad_debt_adjustments=50, credit_note_adjustments=25, other_adjustments=5)
    invoices = [invoice("i1", date(2024, 8, 1), 1150, 150)]

    result = aggregate_quarter("Q3", 2024, invoices, [], adjustments=adjustments)

    assert result.net_gst == Decimal("70.00")
    assert result.payment_due == Decimal("70.00")


def test_apply_adjustments_only_recomputes_net_position():
    invoices = [invoice("i1", date(2024, 8, 1), 1150, 150)]
    base = aggregate_quarter("Q3", 2024, invoices, [])

    adjusted = apply_adjustments(base, GSTAdjustments(other_adjustments=200))

    assert adjusted.gst_on_sales == base.gst_on_sales
    assert adjusted.invoice_count == base.invoice_count
    assert adjusted.net_gst == Decimal("-50.00")
    assert adjusted.refund_due == Decimal("50.00")
    assert adjusted.payment_due == Decimal("0.00")
    assert base.net_gst == Decimal("150.00")


def test_exact_wash_has_nothing_due():
    result = aggregate_quarter(
        "Q1", 2024, [invoice("i", date(2024, 2, 2), 115, 15)], [expense("e", date(2024, 2, 2), 115, 15)]
    )

    assert result.net_gst == Decimal("0.00")
    assert result.payment_due == result.refund_due == Decimal("0.00")


@pytest.mark.parametrize("other", [-500, -1, 0, 1, 14, 15, 16, 900])
def test_payment_and_refund_never_both_positive(other):
    result = aggregate_quarter(
        "Q1",
        2024,
        [invoice("i", date(2024, 2, 2), 115, 15)],
        [],
        adjustments=GSTAdjustments(other_adjustments=other),
    )

    assert not (result.payment_due > 0 and result.refund_due > 0)
    assert result.payment_due - result.refund_due == result.net_gst


def test_invoice_totals_are_rebuilt_from_items():
    stale = Invoice(
        id="i1",
        issue_date=date(2024, 1, 10),
        items=[LineItem(quantity=2, rate=50, tax_rate_percent=10)],
        total=1,
        tax_amount=0,
    )

    result = aggregate_quarter("Q1", 2024, [stale], [])

    assert result.total_sales == Decimal("110.00")
    assert result.gst_on_sales == Decimal("10.00")


def test_inputs_are_not_modified():
    stale = Invoice(id="i1", issue_date=date(2024, 1, 10), items=[LineItem(quantity=1, rate=10, tax_rate_percent=10)])

    aggregate_quarter("Q1", 2024, [stale], [])

    assert stale.total == Decimal("0.00")


def test_negative_expense_rejected():
    with pytest.raises(InvalidRecordError) as excinfo:
        aggregate_quarter("Q1", 2024, [], [expense("bad", date(2024, 1, 2), -5, 0)])

    assert excinfo.value.issues[0].record == "expenses[bad]"


def test_split_gst_inclusive_and_exclusive():
    assert split_gst(115, 15, amount_includes_gst=True) == (Decimal("100.00"), Decimal("15.00"))
    assert split_gst(100, 15, amount_includes_gst=False) == (Decimal("100.00"), Decimal("15.00"))
    assert split_gst(50, 0) == (Decimal("50.00"), Decimal("0.00"))


def test_split_gst_rejects_negative_amount():
    with pytest.raises(InvalidRecordError):
        split_gst(-1, 15)
