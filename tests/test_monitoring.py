import os
import sys
import tempfile
import unittest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.auth_service import AuthService
from gst_nexus.services.notification_service import (CONTEST_TITLE, OVERDUE_TITLE, SLA_TITLE,
                                                     NotificationService, notice_link)

TODAY = '2023-01-20'
GSTIN = "27ABCDE1234F1Z5"
OTHER_GSTIN = "29AAAAA0000A1Z5"


class MonitoringTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_monitoring.db"))

    def tearDown(self):
        self.tmp.cleanup()

    def add_notice(self, number, **fields):
        data = {'gstin': GSTIN, 'notice_number': number, 'last_checked_date': '2023-01-19'}
        data.update(fields)
        success, notice_id = self.db.create_notice(data)
        self.assertTrue(success, notice_id)
        return notice_id


class TestClientStatus(MonitoringTestCase):

    def test_breached_clients_listed_first(self):
        self.db.add_taxpayer({'gstin': OTHER_GSTIN, 'trade_name': 'Zenith Exports'})
        self.add_notice('A-1', gstin=OTHER_GSTIN, last_checked_date='2023-01-18')
        self.add_notice('B-1', last_checked_date='2023-01-01')
        self.add_notice('B-2', last_checked_date='2023-01-15')
        self.add_notice('B-3', status='Closed', last_checked_date='2022-01-01')

        rows = self.db.get_client_status(today=TODAY, sla_days=7)
        self.assertEqual([r['gstin'] for r in rows], [GSTIN, OTHER_GSTIN])

        breached, ok = rows
        self.assertEqual(breached['status'], 'Breached')
        self.assertEqual(breached['open_notices'], 2)
        self.assertEqual(breached['breached_notices'], 1)
        self.assertEqual(breached['days_since_check'], 19)
        self.assertEqual(breached['oldest_check'], '2023-01-01')
        self.assertEqual(ok['status'], 'OK')
        self.assertEqual(ok['trade_name'], 'Zenith Exports')

    def test_threshold_is_strictly_greater(self):
        self.add_notice('B-1', last_checked_date='2023-01-13')
        self.assertEqual(self.db.get_client_status(today=TODAY, sla_days=7)[0]['status'], 'OK')
        self.assertEqual(self.db.get_client_status(today=TODAY, sla_days=6)[0]['status'], 'Breached')

    def test_mark_client_checked(self):
        self.add_notice('B-1', last_checked_date='2023-01-01')
        self.add_notice('B-2', last_checked_date='2023-01-02')
        closed = self.add_notice('B-3', status='Closed', last_checked_date='2022-01-01')

        success, count = self.db.mark_client_checked(GSTIN, checked_date=TODAY, user='asha')
        self.assertEqual((success, count), (True, 2))
        self.assertEqual(self.db.get_client_status(today=TODAY)[0]['status'], 'OK')
        self.assertEqual(self.db.get_notice(closed)['last_checked_date'], '2022-01-01')

        trail = self.db.get_audit_trail(entity_type='Taxpayer')
        self.assertEqual(len(trail), 1)
        self.assertEqual(trail[0]['details'], f"Marked 2 open notices as checked on {TODAY}")

    def test_mark_client_without_open_notices(self):
        self.assertEqual(self.db.mark_client_checked(OTHER_GSTIN), (False, "No open notices for this taxpayer"))

    def test_mark_single_notice_checked(self):
        notice_id = self.add_notice('B-1', last_checked_date='2023-01-01')
        self.assertTrue(self.db.mark_notice_checked(notice_id, TODAY)[0])
        self.assertEqual(self.db.get_notice(notice_id)['last_checked_date'], TODAY)


class TestNotifications(MonitoringTestCase):

    def setUp(self):
        super().setUp()
        self.service = NotificationService(self.db)
        self.overdue = self.add_notice('LATE-1', due_date='2023-01-15', last_checked_date='2023-01-01')
        self.order = self.add_notice('ORD-1', notice_type='DRC-07', date_of_issue='2022-11-01')
        self.add_notice('FINE-1', due_date='2023-03-01')
        self.add_notice('DONE-1', status='Closed', due_date='2022-12-01', last_checked_date='2022-01-01')

    def titles(self):
        return sorted(n['title'] for n in self.db.get_notifications(unread_only=True))

    def test_generate_creates_alerts_for_open_notices(self):
        self.assertEqual(self.service.generate(today=TODAY), 3)
        self.assertEqual(self.titles(), sorted([OVERDUE_TITLE, SLA_TITLE, CONTEST_TITLE]))

        links = {n['link'] for n in self.db.get_notifications()}
        self.assertEqual(links, {notice_link(self.overdue), notice_link(self.order)})

    def test_generate_does_not_duplicate_unread(self):
        self.service.generate(today=TODAY)
        self.assertEqual(self.service.generate(today=TODAY), 0)
        self.assertEqual(len(self.db.get_notifications()), 3)

        self.db.mark_all_notifications_read()
        self.assertEqual(self.db.get_notifications(unread_only=True), [])
        self.assertEqual(self.service.generate(today=TODAY), 3)

    def test_due_soon_uses_reminder_days(self):
        self.db.set_config_value('notification_reminder_days', 45)
        self.service.generate(today=TODAY)
        self.assertIn("Approaching Deadline", self.titles())

    def test_assigned_notice_goes_to_user(self):
        auth = AuthService(self.db)
        _, user_id = auth.create_user('ravi', 'secret', 'Ravi K', 'Associate')
        self.add_notice('RAVI-1', due_date='2023-01-10', assigned_to='ravi')
        self.service.generate(today=TODAY)

        mine = [n for n in self.db.get_notifications(user_id=user_id) if n['user_id'] == user_id]
        self.assertEqual(len(mine), 1)
        self.assertEqual(mine[0]['message'], "Overdue: Notice RAVI-1 was due on 2023-01-10")

    def test_mark_single_read(self):
        self.service.generate(today=TODAY)
        first = self.db.get_notifications()[0]
        self.assertTrue(self.db.mark_notification_read(first['id']))
        self.assertEqual(len(self.db.get_notifications(unread_only=True)), 2)


class TestDashboard(MonitoringTestCase):

    def test_stats(self):
        late = self.add_notice('LATE-1', due_date='2023-01-15', risk_level='High')
        order = self.add_notice('ORD-1', notice_type='DRC-07', date_of_issue='2022-11-01')
        self.add_notice('DONE-1', status='Closed', due_date='2022-12-01')
        self.db.add_defect(late, {'defect_type': 'ITC Mismatch', 'igst': {'tax': 10000}})
        self.db.record_payment_matrix(late, {'igst': {'tax': 4000}}, 'C1')
        self.db.add_hearing(order, {'date': '2023-01-25'})

        stats = self.db.get_dashboard_stats(today=TODAY)
        self.assertEqual(stats['total_notices'], 3)
        self.assertEqual(stats['open_notices'], 2)
        self.assertEqual(stats['by_status']['Closed'], 1)
        self.assertEqual(stats['by_risk']['High'], 1)
        self.assertEqual(stats['total_demand'], 10000)
        self.assertEqual(stats['total_paid'], 4000)
        self.assertEqual([n['id'] for n in stats['overdue_notices']], [late])
        self.assertEqual([h['notice_id'] for h in stats['upcoming_hearings']], [order])
        self.assertEqual([a['notice_id'] for a in stats['contest_alerts']], [order])
        self.assertEqual(stats['contest_alerts'][0]['days_remaining'], 10)


if __name__ == '__main__':
    unittest.main()
