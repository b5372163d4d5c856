"""Data models used across the calculator, reconciliation engine, GST aggregator, CLI, and API."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

ZERO = Decimal("0.00")


class CalculationType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentRecordStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentStatus(str, Enum):
    """Derived collection state of an invoice."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    PaymentStatus.UNPAID: "Awaiting Payment",
    PaymentStatus.PARTIALLY_PAID: "Partially Paid",
    PaymentStatus.PAID: "Paid in Full",
    PaymentStatus.OVERDUE: "Overdue",
    PaymentStatus.CANCELLED: "Cancelled",
}


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    description: Optional[str] = None
    quantity: Decimal = Decimal(0)
    rate: Decimal = Decimal(0)
    tax_rate_percent: Optional[Decimal] = Field(default=None, alias="taxRatePercent")

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.rate


class AdditionalCharge(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str
    type: str = "other"
    label: str = ""
    calculation_type: CalculationType = Field(default=CalculationType.FIXED, alias="calculationType")
    amount: Decimal = Decimal(0)
    is_active: bool = Field(default=True, alias="isActive")
    description: Optional[str] = None


class Invoice(BaseModel):
    """Invoice record as handed over by the data-access layer.

    ``subtotal``, ``tax_amount``, ``additional_charges_total`` and ``total``
    are a cache of the calculator output; see ``calculator.rebuild_invoice``.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str
    invoice_number: Optional[str] = Field(default=None, alias="invoiceNumber")
    issue_date: Optional[date] = Field(default=None, alias="date")
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    currency: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: List[LineItem] = Field(default_factory=list)
    additional_charges: List[AdditionalCharge] = Field(default_factory=list, alias="additionalCharges")
    discount: Decimal = Decimal(0)
    subtotal: Decimal = ZERO
    tax_amount: Decimal = Field(default=ZERO, alias="taxAmount")
    additional_charges_total: Decimal = Field(default=ZERO, alias="additionalChargesTotal")
    total: Decimal = ZERO


class Payment(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str
    invoice_id: Optional[str] = Field(default=None, alias="invoiceId")
    amount: Decimal
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    payment_date: Optional[date] = Field(default=None, alias="paymentDate")
    status: PaymentRecordStatus = PaymentRecordStatus.COMPLETED


class Expense(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    id: str
    description: Optional[str] = None
    expense_date: date = Field(alias="expenseDate")
    amount: Decimal = Decimal(0)
    gst_amount: Decimal = Field(default=ZERO, alias="gstAmount")
    is_gst_claimable: bool = Field(default=True, alias="isGstClaimable")
    is_capital_expense: bool = Field(default=False, alias="isCapitalExpense")


class ChargeBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    calculation_type: CalculationType
    amount: Decimal
    is_active: bool


class InvoiceTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    currency: Optional[str] = None
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    additional_charges_total: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO
    charges: List[ChargeBreakdown] = Field(default_factory=list)


class ReconciliationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    invoice_total: Decimal
    total_paid: Decimal
    balance_due: Decimal
    payment_status: PaymentStatus
    overpaid_amount: Decimal = ZERO
    pending_count: int = 0
    pending_amount: Decimal = ZERO
    failed_count: int = 0
    payment_progress: Decimal = ZERO

    @computed_field
    @property
    def exceeds_balance(self) -> bool:
        return self.overpaid_amount > 0

    @computed_field
    @property
    def status_label(self) -> str:
        return self.payment_status.label


class GSTReturnPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    quarter: Literal["Q1", "Q2", "Q3", "Q4"]
    year: int
    start_date: date
    end_date: date
    due_date: date


class GSTAdjustments(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    bad_debt_adjustments: Decimal = Field(default=ZERO, alias="badDebtAdjustments")
    credit_note_adjustments: Decimal = Field(default=ZERO, alias="creditNoteAdjustments")
    other_adjustments: Decimal = Field(default=ZERO, alias="otherAdjustments")

    @property
    def total(self) -> Decimal:
        return self.bad_debt_adjustments + self.credit_note_adjustments + self.other_adjustments


class GSTReturnData(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: GSTReturnPeriod
    invoice_count: int = 0
    expense_count: int = 0
    total_sales: Decimal = ZERO
    gst_on_sales: Decimal = ZERO
    total_purchases: Decimal = ZERO
    gst_on_purchases: Decimal = ZERO
    capital_goods: Decimal = ZERO
    gst_on_capital_goods: Decimal = ZERO
    adjustments: GSTAdjustments = Field(default_factory=GSTAdjustments)
    net_gst: Decimal = ZERO
    payment_due: Decimal = ZERO
    refund_due: Decimal = ZERO


class RecordValidationResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    record_id: str
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ReconcileRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    invoice: Invoice
    payments: List[Payment] = Field(default_factory=list)
    today: Optional[date] = None


class GSTReturnRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    quarter: str
    year: int
    invoices: List[Invoice] = Field(default_factory=list)
    expenses: List[Expense] = Field(default_factory=list)
    adjustments: GSTAdjustments = Field(default_factory=GSTAdjustments)


class PaymentCheckRequest(ReconcileRequest):
    payment: Payment


class PaymentCheckResponse(BaseModel):
    reconciliation: ReconciliationResult
    check: RecordValidationResult
