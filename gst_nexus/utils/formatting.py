from gst_nexus.utils.date_utils import parse_date


def format_indian_number(value, prefix_rs=False):
    """
    Formats a number into Indian Numbering System string.
    Rounds to nearest integer. No decimals.

    Args:
        value: int, float, or numeric string.
        prefix_rs: If True, adds the rupee symbol prefix.

    Returns:
        str: Formatted string (e.g., "1,23,456", "₹1,000", "0").
    """
    try:
        num = 0 if value is None or value == "" else float(value)
    except (ValueError, TypeError):
        return str(value)

    num = int(num + 0.5) if num >= 0 else -int(-num + 0.5)
    digits = str(abs(num))

    if len(digits) > 3:
        # Last three digits, then groups of two
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])

    text = f"-{digits}" if num < 0 else digits
    return f"₹{text}" if prefix_rs else text


def format_currency(value):
    """Rupee amount without paise, e.g. ₹5,40,000."""
    return format_indian_number(value or 0, prefix_rs=True)


def format_date(value):
    """DD-Mon-YYYY (e.g. 25-Mar-2023); '-' for blanks, raw text when unparseable."""
    if not value:
        return "-"
    d = parse_date(value)
    if d is None:
        return str(value)
    return d.strftime("%d-%b-%Y")


def format_hours(value):
    try:
        return f"{float(value or 0):.1f}h"
    except (TypeError, ValueError):
        return "0.0h"
