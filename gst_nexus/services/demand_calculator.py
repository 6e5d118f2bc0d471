"""
Demand arithmetic for notice defects.

Every defect carries four tax-head records (IGST, CGST, SGST, Cess), each a
five-field breakdown {tax, interest, penalty, late_fee, others}. The functions
here are pure: they take plain dicts as returned by DatabaseManager and never
touch the database.

Interest is simple interest on a 365-day year:

    interest = round_half_up(tax * rate_percent * days / 36500)

36500 is "percent per 365-day year x 100". Leap years are not special-cased
and there is no 360-day variant.
"""
import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from gst_nexus.utils.constants import HEAD_FIELDS, MAJOR_HEADS, MINOR_HEADS, TAX_HEADS, WAIVED
from gst_nexus.utils.date_utils import count_days

INTEREST_DIVISOR = 36500


def to_amount(value):
    """
    Parse a money cell. Blank/None -> 0. Strips commas and the rupee sign.
    Raises ValueError on non-numeric text, NaN and infinities.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        value = value.replace(',', '').replace('₹', '').strip()
        if not value:
            return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not math.isfinite(amount):
        raise ValueError(f"Invalid amount: {value!r}")
    return round(amount, 2)


def empty_head():
    return {field: 0.0 for field in HEAD_FIELDS}


def normalize_head(values):
    """Return a full five-field head with non-negative amounts."""
    values = values or {}
    head = empty_head()
    for field in HEAD_FIELDS:
        amount = to_amount(values.get(field))
        if amount < 0:
            raise ValueError(f"{MINOR_HEADS[field]} cannot be negative")
        head[field] = amount
    return head


def normalize_heads(defect):
    """Extract and normalise the four tax heads of a defect-like dict."""
    return {head: normalize_head(defect.get(head)) for head in TAX_HEADS}


def row_total(head):
    """tax + interest + penalty + late_fee + others for one tax head."""
    head = head or {}
    return round(sum(to_amount(head.get(field)) for field in HEAD_FIELDS), 2)


def defect_total(defect):
    """Sum of all 20 head fields of a defect, waived or not."""
    return round(sum(row_total(defect.get(head)) for head in TAX_HEADS), 2)


def is_waived(defect):
    return (defect.get('status') or '') == WAIVED


def notice_demand(defects):
    """Total demand of a notice: full recomputation over its non-waived defects."""
    return round(sum(defect_total(d) for d in defects if not is_waived(d)), 2)


def defect_summary(defect):
    """Per-field totals across heads, e.g. {'tax': 500000, 'interest': 40000, ...}."""
    summary = {field: 0.0 for field in HEAD_FIELDS}
    for head in TAX_HEADS:
        values = defect.get(head) or {}
        for field in HEAD_FIELDS:
            summary[field] += to_amount(values.get(field))
    return {field: round(total, 2) for field, total in summary.items()}


def round_half_up(value):
    try:
        return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValueError(f"Cannot round {value!r}")


def calculate_interest(tax, rate, days):
    """
    Simple interest rounded to the nearest rupee.
    `days` must be positive; the caller computes it with count_days().
    """
    if days is None or days <= 0:
        raise ValueError("To Date must be after From Date")
    tax = to_amount(tax)
    rate = to_amount(rate)
    if rate < 0:
        raise ValueError("Interest rate cannot be negative")
    exact = Decimal(str(tax)) * Decimal(str(rate)) * Decimal(days) / Decimal(INTEREST_DIVISOR)
    return round_half_up(exact)


def interest_days(from_date, to_date):
    days = count_days(from_date, to_date)
    if days <= 0:
        raise ValueError("To Date must be after From Date")
    return days


def apply_interest(defect, rate, days):
    """
    Return new tax heads for `defect` with each head's interest overwritten
    using that head's own tax. The input is not modified.
    """
    heads = normalize_heads(defect)
    for head in TAX_HEADS:
        heads[head]['interest'] = float(calculate_interest(heads[head]['tax'], rate, days))
    return heads


def paid_so_far(defect_id, payments):
    """Payments attached to this defect only; unallocated payments are ignored."""
    if defect_id is None:
        return 0.0
    return round(sum(to_amount(p.get('amount')) for p in payments
                     if p.get('defect_id') is not None and int(p['defect_id']) == int(defect_id)), 2)


def defect_balance(defect, payments):
    """Outstanding balance, never negative; waived defects always owe 0."""
    if is_waived(defect):
        return 0.0
    return max(0.0, round(defect_total(defect) - paid_so_far(defect.get('id'), payments), 2))


def build_payment_rows(matrix):
    """
    Flatten a 4x5 payment matrix into (major_head, minor_head, amount) rows.
    Blank and zero cells are skipped. Negative cells, or a matrix with no
    positive cell, raise ValueError.
    """
    rows = []
    matrix = matrix or {}
    for head in TAX_HEADS:
        values = matrix.get(head) or {}
        for field in HEAD_FIELDS:
            amount = to_amount(values.get(field))
            if amount < 0:
                raise ValueError(f"{MAJOR_HEADS[head]} {MINOR_HEADS[field]} cannot be negative")
            if amount > 0:
                rows.append((MAJOR_HEADS[head], MINOR_HEADS[field], amount))
    if not rows:
        raise ValueError("Enter at least one amount")
    return rows
