"""
Contest window for orders.

An order (demand order, appeal order, rectification order...) may be appealed
or rectified within 90 calendar days of its date of issue. The alert level is
re-derived from the notice every time it is displayed; it is never stored and
never changes the notice status.
"""
from datetime import date, timedelta

from gst_nexus.utils.constants import NoticeStatus
from gst_nexus.utils.date_utils import parse_date

CONTEST_WINDOW_DAYS = 90
CRITICAL_DAYS = 15
WARNING_DAYS = 30

ORDER_NOTICE_TYPES = {
    "DRC-07",
    "DRC-08",
    "ORDER-IN-ORIGINAL",
    "DEMAND ORDER",
    "APPEAL ORDER",
    "APL-04",
    "RECTIFICATION ORDER",
}

TERMINAL_STATUSES = {
    NoticeStatus.APPEAL_FILED,
    NoticeStatus.RECTIFICATION_FILED,
    NoticeStatus.CLOSED,
    NoticeStatus.PAID,
}

EXPIRED = "expired"
CRITICAL = "critical"
WARNING = "warning"
NORMAL = "normal"


def is_order_type(notice_type):
    return bool(notice_type) and str(notice_type).strip().upper() in ORDER_NOTICE_TYPES


def classify_days_remaining(days_remaining):
    if days_remaining <= 0:
        return EXPIRED
    if days_remaining <= CRITICAL_DAYS:
        return CRITICAL
    if days_remaining <= WARNING_DAYS:
        return WARNING
    return NORMAL


def evaluate_contest_deadline(notice, today=None):
    """
    Returns {'deadline', 'days_remaining', 'level'} for an open order, or None
    when the notice is not an order, is already in a terminal status, or has
    no usable date of issue.
    """
    if not is_order_type(notice.get('notice_type')):
        return None
    if notice.get('status') in TERMINAL_STATUSES:
        return None

    issued = parse_date(notice.get('date_of_issue'))
    if issued is None:
        return None

    today = parse_date(today) or date.today()
    deadline = issued + timedelta(days=CONTEST_WINDOW_DAYS)
    days_remaining = (deadline - today).days
    return {
        'deadline': deadline.isoformat(),
        'days_remaining': days_remaining,
        'level': classify_days_remaining(days_remaining),
    }


def contest_alerts(notices, today=None, include_normal=False):
    """Notices with an active contest window, most urgent first."""
    alerts = []
    for notice in notices:
        result = evaluate_contest_deadline(notice, today)
        if result is None:
            continue
        if result['level'] == NORMAL and not include_normal:
            continue
        alerts.append({**result, 'notice_id': notice.get('id'),
                       'notice_number': notice.get('notice_number'),
                       'gstin': notice.get('gstin')})
    alerts.sort(key=lambda a: a['days_remaining'])
    return alerts


def banner_text(result):
    """Short alert line for the notice header."""
    if not result or result['level'] == NORMAL:
        return ""
    if result['level'] == EXPIRED:
        return f"Contest window expired on {result['deadline']}"
    return f"{result['days_remaining']} days left to appeal or rectify (deadline {result['deadline']})"
