import unittest
from datetime import date

from gst_nexus.services.contest_deadline import (CRITICAL, EXPIRED, NORMAL, WARNING, banner_text,
                                                 classify_days_remaining, contest_alerts, evaluate_contest_deadline,
                                                 is_order_type)

ISSUED = date(2024, 1, 1)
DEADLINE = "2024-03-31"


def order(**overrides):
    notice = {'id': 1, 'notice_number': 'ORD/1', 'gstin': '27ABCDE1234F1Z5', 'notice_type': 'DRC-07',
              'status': 'Received', 'date_of_issue': ISSUED.isoformat()}
    notice.update(overrides)
    return notice


class TestContestDeadline(unittest.TestCase):

    def test_order_types(self):
        self.assertTrue(is_order_type("DRC-07"))
        self.assertTrue(is_order_type("appeal order"))
        self.assertFalse(is_order_type("ASMT-10"))
        self.assertFalse(is_order_type(None))

    def test_thresholds(self):
        self.assertEqual(classify_days_remaining(0), EXPIRED)
        self.assertEqual(classify_days_remaining(-3), EXPIRED)
        self.assertEqual(classify_days_remaining(15), CRITICAL)
        self.assertEqual(classify_days_remaining(16), WARNING)
        self.assertEqual(classify_days_remaining(30), WARNING)
        self.assertEqual(classify_days_remaining(31), NORMAL)

    def test_expired_on_day_ninety(self):
        result = evaluate_contest_deadline(order(), date(2024, 3, 31))
        self.assertEqual(result, {'deadline': DEADLINE, 'days_remaining': 0, 'level': EXPIRED})

    def test_critical_at_day_seventy_five(self):
        result = evaluate_contest_deadline(order(), date(2024, 3, 16))
        self.assertEqual(result['days_remaining'], 15)
        self.assertEqual(result['level'], CRITICAL)

    def test_warning_at_day_sixty(self):
        result = evaluate_contest_deadline(order(), date(2024, 3, 1))
        self.assertEqual(result['days_remaining'], 30)
        self.assertEqual(result['level'], WARNING)

    def test_not_applicable(self):
        self.assertIsNone(evaluate_contest_deadline(order(notice_type='ASMT-10'), date(2024, 3, 16)))
        self.assertIsNone(evaluate_contest_deadline(order(status='Appeal Filed'), date(2024, 3, 16)))
        self.assertIsNone(evaluate_contest_deadline(order(status='Closed'), date(2024, 3, 16)))
        self.assertIsNone(evaluate_contest_deadline(order(date_of_issue=None), date(2024, 3, 16)))

    def test_evaluation_does_not_modify_notice(self):
        notice = order()
        evaluate_contest_deadline(notice, date(2024, 4, 30))
        self.assertEqual(notice['status'], 'Received')

    def test_alerts_sorted_most_urgent_first(self):
        notices = [
            order(id=1, notice_number='A', date_of_issue='2024-01-20'),  # 18 days left -> warning
            order(id=2, notice_number='B', date_of_issue='2024-01-01'),  # expired
            order(id=3, notice_number='C', date_of_issue='2024-03-01'),  # normal
            order(id=4, notice_number='D', notice_type='SCN'),
        ]
        alerts = contest_alerts(notices, date(2024, 4, 1))
        self.assertEqual([a['notice_number'] for a in alerts], ['B', 'A'])
        self.assertEqual(alerts[0]['notice_id'], 2)

        with_normal = contest_alerts(notices, date(2024, 4, 1), include_normal=True)
        self.assertEqual([a['notice_number'] for a in with_normal], ['B', 'A', 'C'])

    def test_banner_text(self):
        self.assertEqual(banner_text(None), "")
        self.assertEqual(banner_text({'deadline': DEADLINE, 'days_remaining': 40, 'level': NORMAL}), "")
        self.assertIn("expired", banner_text({'deadline': DEADLINE, 'days_remaining': 0, 'level': EXPIRED}))
        self.assertIn("15 days left", banner_text({'deadline': DEADLINE, 'days_remaining': 15, 'level': CRITICAL}))


if __name__ == '__main__':
    unittest.main()
