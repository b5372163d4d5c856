"""Money, date, and calendar helpers shared across the invoice engine."""
from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from dateutil import parser

CENT = Decimal("0.01")
HUNDRED = Decimal(100)

QUARTER_START_MONTH = {"Q1": 1, "Q2": 4, "Q3": 7, "Q4": 10}

# Day of the month following the quarter end on which the GST return is due.
GST_DUE_DAY = 28


def to_money(value: object) -> Optional[Decimal]:
    """Convert to Decimal if possible, else None. Floats go through their string form."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def round_money(value: Decimal) -> Decimal:
    """Round half-up to whole cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of the values, rounded once at the end."""
    return round_money(sum(values, Decimal(0)))


def percent_of(base: Decimal, percent: Decimal) -> Decimal:
    return base * percent / HUNDRED


def parse_date(value: object) -> Optional[date]:
    """Parse a date string into a date object; returns None on failure."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parser.parse(str(value), dayfirst=False, yearfirst=True).date()
    except (ValueError, TypeError, OverflowError):
        return None


def as_date(value: date) -> date:
    """Drop the time part of a datetime so it compares against plain dates."""
    if isinstance(value, datetime):
        return value.date()
    return value


def normalize_quarter(quarter: str) -> Optional[str]:
    label = str(quarter).strip().upper()
    if label in QUARTER_START_MONTH:
        return label
    return None


def quarter_bounds(quarter: str, year: int) -> tuple[date, date, date]:
    """Return (start, end, due) for a normalized quarter label.

    Q4 returns fall due on the 28th of January of the following year.
    """
    first_month = QUARTER_START_MONTH[quarter]
    last_month = first_month + 2
    start = date(year, first_month, 1)
    end = date(year, last_month, calendar.monthrange(year, last_month)[1])
    if last_month == 12:
        due = date(year + 1, 1, GST_DUE_DAY)
    else:
        due = date(year, last_month + 1, GST_DUE_DAY)
    return start, end, due
