"""Precondition checks applied to records before any totals are computed."""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from .errors import InvalidRecordError, RecordIssue
from .schemas import AdditionalCharge, Expense, LineItem, Payment, RecordValidationResult
from .utils import HUNDRED, round_money


class RecordValidator:
    def __init__(self, allowed_currencies: Optional[Iterable[str]] = None) -> None:
        self.allowed_currencies = {code.upper() for code in allowed_currencies} if allowed_currencies else None

    def check_items(self, items: Sequence[LineItem]) -> List[RecordIssue]:
        issues: List[RecordIssue] = []
        for index, item in enumerate(items):
            record = f"items[{index}]"
            if item.quantity < 0:
                issues.append(RecordIssue(record, "quantity", "must not be negative"))
            if item.rate < 0:
                issues.append(RecordIssue(record, "rate", "must not be negative"))
            if item.tax_rate_percent is not None and item.tax_rate_percent < 0:
                issues.append(RecordIssue(record, "tax_rate_percent", "must not be negative"))
        return issues

    def check_charges(self, charges: Sequence[AdditionalCharge]) -> List[RecordIssue]:
        issues: List[RecordIssue] = []
        for charge in charges:
            record = f"charges[{charge.id}]"
            if charge.amount < 0:
                issues.append(RecordIssue(record, "amount", "must not be negative"))
            elif charge.calculation_type == "percentage" and charge.amount > HUNDRED:
                issues.append(RecordIssue(record, "amount", "percentage must be between 0 and 100"))
        return issues

    def check_discount(self, discount: Optional[Decimal]) -> List[RecordIssue]:
        if discount is None or not discount.is_finite():
            return [RecordIssue("invoice", "discount", "not numeric")]
        if discount < 0:
            return [RecordIssue("invoice", "discount", "must not be negative")]
        return []

    def check_total(self, total: Optional[Decimal]) -> List[RecordIssue]:
        if total is None or not total.is_finite() or total < 0:
            return [RecordIssue("invoice", "total", "must be a non-negative number")]
        return []

    def check_currency(self, currency: Optional[str]) -> List[RecordIssue]:
        if self.allowed_currencies is None or currency is None:
            return []
        if currency.strip().upper() not in self.allowed_currencies:
            return [RecordIssue("invoice", "currency", f"unknown currency {currency!r}")]
        return []

    def check_payments(self, payments: Sequence[Payment]) -> List[RecordIssue]:
        issues: List[RecordIssue] = []
        seen: set[str] = set()
        for payment in payments:
            record = f"payments[{payment.id}]"
            if payment.amount <= 0:
                issues.append(RecordIssue(record, "amount", "must be greater than zero"))
            if payment.id in seen:
                issues.append(RecordIssue(record, "id", "duplicate payment"))
            seen.add(payment.id)
        return issues

    def check_expenses(self, expenses: Sequence[Expense]) -> List[RecordIssue]:
        issues: List[RecordIssue] = []
        for expense in expenses:
            record = f"expenses[{expense.id}]"
            if expense.amount < 0:
                issues.append(RecordIssue(record, "amount", "must not be negative"))
            if expense.gst_amount < 0:
                issues.append(RecordIssue(record, "gst_amount", "must not be negative"))
        return issues

    def check_new_payment(
        self,
        payment: Payment,
        balance_due: Decimal,
        tolerance: Decimal = Decimal("0.10"),
    ) -> RecordValidationResult:
        """Advisory check for a payment the user is about to record.

        Amounts above the balance plus tolerance are a warning only; the
        payment is still accepted and reconciliation reports the overpayment.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if payment.amount <= 0:
            errors.append("business: amount_not_positive")
        ceiling = round_money(balance_due * (1 + tolerance))
        if payment.amount > ceiling:
            warnings.append("anomaly: exceeds_balance_tolerance")
        elif payment.amount > balance_due:
            warnings.append("anomaly: exceeds_balance")

        return RecordValidationResult(
            record_id=payment.id,
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )


def require_valid(issues: List[RecordIssue]) -> None:
    if issues:
        raise InvalidRecordError(issues)
