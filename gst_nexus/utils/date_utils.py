import math
import re
from datetime import date, datetime, timedelta

GSTIN_PATTERN = r'^\d{2}[A-Z]{5}\d{4}[A-Z]{1}[A-Z\d]{1}Z[A-Z\d]{1}$'

# Days between the Excel serial epoch (1899-12-30) and the Unix epoch
EXCEL_UNIX_OFFSET = 25569


def normalize_gstin(gstin):
    """Strip whitespace and upper-case a GSTIN. Returns '' for empty input."""
    if not gstin:
        return ""
    return re.sub(r'\s+', '', str(gstin)).upper()


def validate_gstin_format(gstin):
    """
    Strict regex validation for Indian 15-digit GSTIN.
    Format: State(2) + PAN(10) + EntityType(1) + 'Z' + Checksum(1)
    Note: The 14th character (index 13) is strictly 'Z'.
    """
    if not gstin:
        return False
    # index: 01 23456 7890 1 2 3 4
    # chars: SS PPPPP NNNN E Z C
    return bool(re.match(GSTIN_PATTERN, normalize_gstin(gstin)))


def normalize_financial_year(fy_str):
    """
    Normalizes financial year strings to YYYY-YY format.
    Handles: '2022-23', '2022-2023', '22-23', 'FY 2022- 23', '2022'.

    Returns:
        str: Normalized FY (e.g., '2022-23') or None if invalid.
    """
    if not fy_str:
        return None

    clean_fy = re.sub(r'\s+', '', str(fy_str)).upper()
    if clean_fy.startswith('FY'):
        clean_fy = clean_fy[2:]

    hyphen_match = re.match(r'^(\d{2}|\d{4})[-/](\d{2}|\d{4})$', clean_fy)
    if hyphen_match:
        p1, p2 = hyphen_match.groups()
        start_year = int(p1) if len(p1) == 4 else int("20" + p1)
        end_year = int(p2) if len(p2) == 4 else int("20" + p2)

        # End year must be start year + 1
        if end_year != start_year + 1:
            return None
        return f"{start_year}-{str(end_year)[-2:]}"

    single_year_match = re.match(r'^(\d{4})$', clean_fy)
    if single_year_match:
        start_year = int(single_year_match.group(1))
        if 2017 <= start_year <= 2100:
            return f"{start_year}-{str(start_year + 1)[-2:]}"

    return None


def normalize_period(period):
    """Map free-form period text to the 'FY YYYY-YY' option format; unknown text passes through."""
    fy = normalize_financial_year(period)
    if fy:
        return f"FY {fy}"
    return str(period).strip() if period else ""


def parse_date(value):
    """
    Coerce an ISO date string, date or datetime into a date.
    Returns None for blank or unparseable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text[:10]).date()
    except ValueError:
        return None


def parse_datetime(value):
    """Like parse_date but keeps the time component when present."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip().replace('Z', '+00:00')
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        d = parse_date(text)
        return datetime(d.year, d.month, d.day) if d else None


def count_days(from_date, to_date):
    """
    Whole days from from_date to to_date, rounded up for partial days.
    Dates are compared at midnight; datetimes keep their time of day.
    """
    start = parse_datetime(from_date)
    end = parse_datetime(to_date)
    if start is None or end is None:
        raise ValueError("Both From Date and To Date are required")
    if start.tzinfo is not None or end.tzinfo is not None:
        start = start.replace(tzinfo=None)
        end = end.replace(tzinfo=None)
    return math.ceil((end - start).total_seconds() / 86400)


def add_days(value, days):
    d = parse_date(value)
    return d + timedelta(days=days) if d else None


def days_since(value, today=None):
    """Days elapsed since value; None when value is blank."""
    d = parse_date(value)
    if d is None:
        return None
    today = parse_date(today) or date.today()
    return abs((today - d).days)


def parse_excel_date(value, default=None):
    """
    Normalise a spreadsheet cell into an ISO date string.
    Accepts Excel serial numbers, DD-MM-YYYY, DD/MM/YYYY, DD-Mon-YYYY and ISO text.
    Falls back to `default` (today when not given).
    """
    fallback = default if default is not None else date.today().isoformat()
    if value is None or value == "":
        return fallback

    if isinstance(value, (datetime, date)):
        return parse_date(value).isoformat()

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value != value:  # NaN from pandas
            return fallback
        try:
            return (date(1970, 1, 1) + timedelta(days=int(value) - EXCEL_UNIX_OFFSET)).isoformat()
        except OverflowError:
            return fallback

    text = str(value).strip()

    dmy = re.match(r'^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$', text)
    if dmy:
        day, month, year = (int(p) for p in dmy.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return fallback

    dmon = re.match(r'^(\d{1,2})[-/ ]([A-Za-z]{3})[-/ ](\d{4})$', text)
    if dmon:
        try:
            return datetime.strptime(f"{dmon.group(1)}-{dmon.group(2).title()}-{dmon.group(3)}", "%d-%b-%Y").date().isoformat()
        except ValueError:
            return fallback

    parsed = parse_date(text)
    return parsed.isoformat() if parsed else fallback
