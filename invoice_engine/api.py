"""FastAPI application exposing the totals, reconciliation, and GST return endpoints."""
from __future__ import annotations

import logging
from datetime import date

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .calculator import totals_for
from .config import get_settings
from .errors import InvalidRecordError
from .gst import aggregate_quarter, return_period
from .reconciliation import reconcile_invoice
from .schemas import (
    GSTReturnData,
    GSTReturnPeriod,
    GSTReturnRequest,
    Invoice,
    InvoiceTotals,
    PaymentCheckRequest,
    PaymentCheckResponse,
    ReconcileRequest,
    ReconciliationResult,
)
from .validator import RecordValidator

logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validator() -> RecordValidator:
    return RecordValidator(allowed_currencies=get_settings().allowed_currencies)


@app.exception_handler(InvalidRecordError)
async def invalid_record_handler(request: Request, exc: InvalidRecordError) -> JSONResponse:
    logger.warning("Rejected %s with %d issue(s)", request.url.path, len(exc.issues))
    return JSONResponse(status_code=422, content=exc.to_dict())


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/invoices/totals", response_model=InvoiceTotals)
def invoice_totals(invoice: Invoice):
    if invoice.currency is None:
        invoice = invoice.model_copy(update={"currency": get_settings().default_currency})
    result = totals_for(invoice, validator=_validator())
    logger.debug("Computed totals for invoice %s", invoice.id)
    return result


@app.post("/invoices/reconcile", response_model=ReconciliationResult)
def reconcile(request: ReconcileRequest):
    today = request.today or date.today()
    return reconcile_invoice(request.invoice, request.payments, today, validator=_validator())


@app.post("/invoices/payments/check", response_model=PaymentCheckResponse)
def check_payment(request: PaymentCheckRequest):
    today = request.today or date.today()
    validator = _validator()
    current = reconcile_invoice(request.invoice, request.payments, today, validator=validator)
    check = validator.check_new_payment(
        request.payment, current.balance_due, tolerance=get_settings().overpayment_tolerance
    )
    return PaymentCheckResponse(reconciliation=current, check=check)


@app.post("/gst/returns", response_model=GSTReturnData)
def gst_return(request: GSTReturnRequest):
    return aggregate_quarter(
        request.quarter,
        request.year,
        request.invoices,
        request.expenses,
        adjustments=request.adjustments,
        validator=_validator(),
    )


@app.get("/gst/periods/{quarter}/{year}", response_model=GSTReturnPeriod)
def gst_period(quarter: str, year: int):
    return return_period(quarter, year)
