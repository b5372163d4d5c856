"""Charge & total calculator: line items, additional charges, and discount into invoice totals."""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from .schemas import AdditionalCharge, CalculationType, ChargeBreakdown, Invoice, InvoiceTotals, LineItem
from .utils import percent_of, round_money, to_money
from .validator import RecordValidator, require_valid

_validator = RecordValidator()


def line_tax(item: LineItem) -> Decimal:
    """Tax on one line's pre-discount amount, unrounded."""
    return percent_of(item.line_total, item.tax_rate_percent or Decimal(0))


def charge_amount(charge: AdditionalCharge, subtotal: Decimal) -> Decimal:
    """Contribution of one active charge; percentages apply to the pre-discount subtotal."""
    if charge.calculation_type == CalculationType.PERCENTAGE:
        return percent_of(subtotal, charge.amount)
    return charge.amount


def compute_invoice_totals(
    items: Sequence[LineItem],
    charges: Sequence[AdditionalCharge] = (),
    discount: object = 0,
    currency: Optional[str] = None,
    validator: Optional[RecordValidator] = None,
) -> InvoiceTotals:
    """Reduce items, charges, and discount to subtotal, tax, charges total, and total.

    Raises InvalidRecordError if any item, charge, the discount, or the
    currency fails validation. Inactive charges contribute nothing but are
    still listed in ``charges`` of the result.
    """
    validator = validator or _validator
    discount_value = to_money(discount)

    issues = validator.check_items(items) + validator.check_charges(charges)
    issues += validator.check_discount(discount_value)
    issues += validator.check_currency(currency)
    require_valid(issues)

    raw_subtotal = sum((item.line_total for item in items), Decimal(0))
    raw_tax = sum((line_tax(item) for item in items), Decimal(0))

    breakdown: List[ChargeBreakdown] = []
    active_amounts: List[Decimal] = []
    for charge in charges:
        # Charges only apply on top of billed lines.
        applies = charge.is_active and bool(items)
        amount = charge_amount(charge, raw_subtotal) if applies else Decimal(0)
        if applies:
            active_amounts.append(amount)
        breakdown.append(
            ChargeBreakdown(
                id=charge.id,
                label=charge.label or charge.type,
                calculation_type=charge.calculation_type,
                amount=round_money(amount),
                is_active=charge.is_active,
            )
        )
    raw_charges = sum(active_amounts, Decimal(0))

    subtotal = round_money(raw_subtotal)
    tax_amount = round_money(raw_tax)
    charges_total = round_money(raw_charges)
    total = max(Decimal(0), subtotal - discount_value + tax_amount + charges_total)

    return InvoiceTotals(
        currency=currency,
        subtotal=subtotal,
        tax_amount=tax_amount,
        additional_charges_total=charges_total,
        discount=round_money(discount_value),
        total=round_money(total),
        charges=breakdown,
    )


def totals_for(invoice: Invoice, validator: Optional[RecordValidator] = None) -> InvoiceTotals:
    return compute_invoice_totals(
        invoice.items,
        invoice.additional_charges,
        invoice.discount,
        invoice.currency,
        validator=validator,
    )


def rebuild_invoice(invoice: Invoice, validator: Optional[RecordValidator] = None) -> Invoice:
    """Return a copy of the invoice with its cached totals recomputed from its items.

    Summary rows without items carry only stored totals and are returned unchanged.
    """
    if not invoice.items:
        return invoice
    totals = totals_for(invoice, validator=validator)
    return invoice.model_copy(
        update={
            "subtotal": totals.subtotal,
            "tax_amount": totals.tax_amount,
            "additional_charges_total": totals.additional_charges_total,
            "total": totals.total,
        }
    )

