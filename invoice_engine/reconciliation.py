"""Payment reconciliation: balance due and payment status from an invoice's full payment history."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, List, NamedTuple, Optional, Sequence

from .calculator import rebuild_invoice
from .schemas import (
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentRecordStatus,
    PaymentStatus,
    ReconciliationResult,
)
from .utils import HUNDRED, as_date, money_sum, round_money, to_money
from .validator import RecordValidator, require_valid

_validator = RecordValidator()


class StatusFacts(NamedTuple):
    balance_due: Decimal
    total_paid: Decimal
    due_date: Optional[date]
    today: date
    cancelled: bool

    @property
    def past_due(self) -> bool:
        return self.due_date is not None and self.today > self.due_date


# Evaluated top to bottom; the first matching rule decides the status.
STATUS_RULES: List[tuple[PaymentStatus, Callable[[StatusFacts], bool]]] = [
    (PaymentStatus.CANCELLED, lambda f: f.cancelled),
    (PaymentStatus.PAID, lambda f: f.balance_due == 0 and f.total_paid > 0),
    (PaymentStatus.PARTIALLY_PAID, lambda f: f.total_paid > 0 and f.balance_due > 0),
    (PaymentStatus.OVERDUE, lambda f: f.total_paid == 0 and f.past_due),
]


def classify(facts: StatusFacts) -> PaymentStatus:
    for status, matches in STATUS_RULES:
        if matches(facts):
            return status
    return PaymentStatus.UNPAID


def reconcile(
    invoice_total: object,
    due_date: Optional[date],
    payments: Sequence[Payment],
    today: date,
    stored_status: InvoiceStatus = InvoiceStatus.DRAFT,
    validator: Optional[RecordValidator] = None,
) -> ReconciliationResult:
    """Re-sum the payment history and classify the invoice.

    Only completed payments count toward ``total_paid``; pending and failed
    payments are reported as advisories. The result depends on the inputs
    alone, so repeated calls with the same history agree.
    """
    validator = validator or _validator
    total = to_money(invoice_total)
    issues = validator.check_total(total) + validator.check_payments(payments)
    require_valid(issues)

    completed = [p.amount for p in payments if p.status == PaymentRecordStatus.COMPLETED]
    pending = [p.amount for p in payments if p.status == PaymentRecordStatus.PENDING]
    failed_count = sum(1 for p in payments if p.status == PaymentRecordStatus.FAILED)

    invoice_total = round_money(total)
    total_paid = money_sum(completed)
    balance_due = max(Decimal(0), invoice_total - total_paid)
    overpaid = max(Decimal(0), total_paid - invoice_total)

    facts = StatusFacts(
        balance_due=balance_due,
        total_paid=total_paid,
        due_date=as_date(due_date) if due_date is not None else None,
        today=as_date(today),
        cancelled=stored_status == InvoiceStatus.CANCELLED,
    )

    progress = Decimal(0)
    if invoice_total > 0:
        progress = total_paid / invoice_total * HUNDRED

    return ReconciliationResult(
        invoice_total=invoice_total,
        total_paid=total_paid,
        balance_due=round_money(balance_due),
        payment_status=classify(facts),
        overpaid_amount=round_money(overpaid),
        pending_count=len(pending),
        pending_amount=money_sum(pending),
        failed_count=failed_count,
        payment_progress=round_money(progress),
    )


def reconcile_invoice(
    invoice: Invoice,
    payments: Sequence[Payment],
    today: date,
    validator: Optional[RecordValidator] = None,
) -> ReconciliationResult:
    """Reconcile using the invoice's own total, due date, and stored status.

    Payments that name a different invoice are ignored.
    """
    invoice = rebuild_invoice(invoice, validator=validator)
    own = [p for p in payments if p.invoice_id in (None, invoice.id)]
    return reconcile(
        invoice.total,
        invoice.due_date,
        own,
        today,
        stored_status=invoice.status,
        validator=validator,
    )


def invoice_status_for(payment_status: PaymentStatus, current: InvoiceStatus) -> InvoiceStatus:
    """Document status to store on the invoice after reconciliation."""
    if current == InvoiceStatus.CANCELLED or payment_status == PaymentStatus.CANCELLED:
        return InvoiceStatus.CANCELLED
    if payment_status == PaymentStatus.PAID:
        return InvoiceStatus.PAID
    if payment_status == PaymentStatus.OVERDUE:
        return InvoiceStatus.OVERDUE
    if current == InvoiceStatus.DRAFT and payment_status == PaymentStatus.UNPAID:
        return InvoiceStatus.DRAFT
    return InvoiceStatus.SENT
