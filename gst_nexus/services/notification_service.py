import logging
from datetime import date

from gst_nexus.services.contest_deadline import CRITICAL, EXPIRED, evaluate_contest_deadline
from gst_nexus.utils.date_utils import add_days, days_since, parse_date

logger = logging.getLogger(__name__)

OVERDUE_TITLE = "Notice Overdue"
DUE_SOON_TITLE = "Approaching Deadline"
SLA_TITLE = "SLA Breach: Review Overdue"
CONTEST_TITLE = "Contest Window Closing"
CONTEST_EXPIRED_TITLE = "Contest Window Expired"


def notice_link(notice_id):
    return f"/notices/{notice_id}"


class NotificationService:
    """Derives reminder notifications from open notices and stores the new ones."""

    def __init__(self, db):
        self.db = db

    def _reminder_days(self):
        try:
            return int(self.db.get_config_value('notification_reminder_days') or 3)
        except (TypeError, ValueError):
            return 3

    def pending_alerts(self, notice, today, reminder_days, sla_days):
        """(title, message, type) tuples that currently apply to one notice."""
        alerts = []
        number = notice.get('notice_number')

        due = parse_date(notice.get('extended_due_date') or notice.get('due_date'))
        if due is not None:
            if due < today:
                alerts.append((OVERDUE_TITLE, f"Overdue: Notice {number} was due on {due.isoformat()}", 'critical'))
            elif due <= add_days(today, reminder_days):
                alerts.append((DUE_SOON_TITLE, f"Due Soon: Notice {number} is due in {(due - today).days} days.",
                               'warning'))

        elapsed = days_since(notice.get('last_checked_date'), today)
        if elapsed is not None and elapsed > sla_days:
            alerts.append((SLA_TITLE,
                           f"Notice {number} hasn't been reviewed for {elapsed} days (SLA: {sla_days} days).",
                           'warning'))

        contest = evaluate_contest_deadline(notice, today)
        if contest and contest['level'] == EXPIRED:
            alerts.append((CONTEST_EXPIRED_TITLE,
                           f"The 90-day window to contest order {number} ended on {contest['deadline']}.",
                           'critical'))
        elif contest and contest['level'] == CRITICAL:
            alerts.append((CONTEST_TITLE,
                           f"Only {contest['days_remaining']} days left to appeal or rectify order {number}.",
                           'critical'))
        return alerts

    def generate(self, today=None):
        """Create notifications for every open notice. Returns the number created."""
        today = parse_date(today) or date.today()
        reminder_days = self._reminder_days()
        sla_days = self.db.config.get_sla_threshold_days()

        created = 0
        for notice in self.db.get_open_notices():
            user_id = None
            if notice.get('assigned_to'):
                assignee = self.db.get_user_by_username(notice['assigned_to'])
                user_id = assignee['id'] if assignee else None

            for title, message, kind in self.pending_alerts(notice, today, reminder_days, sla_days):
                ok, _ = self.db.add_notification(title, message, kind, notice_link(notice['id']), user_id)
                if ok:
                    created += 1

        if created:
            logger.info(f"Generated {created} notifications")
        return created
