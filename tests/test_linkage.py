import os
import sys
import tempfile
import unittest
from datetime import date

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.timeline_report import TimelineReport

GSTIN = "27ABCDE1234F1Z5"
ARN = "AD2701230000123"


class LinkageTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_linkage.db"))
        self.master = self.add_notice('ASMT/1', arn=ARN, notice_type='ASMT-10', date_of_issue='2023-01-10',
                                      risk_level='High', assigned_to='asha')
        self.sibling = self.add_notice('DRC01/1', arn=ARN, notice_type='DRC-01', date_of_issue='2023-03-01')
        self.other = self.add_notice('SCN/9', arn='AD2701230000999', date_of_issue='2023-02-01')

    def tearDown(self):
        self.tmp.cleanup()

    def add_notice(self, number, **fields):
        success, notice_id = self.db.create_notice({'gstin': GSTIN, 'notice_number': number, **fields})
        self.assertTrue(success, notice_id)
        return notice_id


class TestArnSync(LinkageTestCase):

    def test_sync_copies_selected_fields_to_siblings(self):
        success, count = self.db.sync_linked_notices(self.master, ['risk_level', 'assigned_to'], user='lead')
        self.assertTrue(success)
        self.assertEqual(count, 1)

        sibling = self.db.get_notice(self.sibling)
        self.assertEqual(sibling['risk_level'], 'High')
        self.assertEqual(sibling['assigned_to'], 'asha')
        self.assertEqual(self.db.get_notice(self.other)['risk_level'], 'Medium')

        latest = self.db.get_audit_trail(notice_id=self.sibling)[0]
        self.assertEqual(latest['details'], "Synced fields (Risk Level, Assigned To) from ARN Master")
        self.assertEqual(latest['user'], 'lead')

    def test_one_audit_entry_per_sibling(self):
        third = self.add_notice('DRC07/1', arn=ARN, notice_type='DRC-07')
        success, count = self.db.sync_linked_notices(self.master, ['risk_level'])
        self.assertEqual((success, count), (True, 2))
        for notice_id in (self.sibling, third):
            self.assertEqual(len(self.db.get_audit_trail(notice_id=notice_id)), 2)
        self.assertEqual(len(self.db.get_audit_trail(notice_id=self.master)), 1)

    def test_sync_errors(self):
        self.assertEqual(self.db.sync_linked_notices(self.master, []), (False, "Select at least one field to sync"))
        self.assertEqual(self.db.sync_linked_notices(self.master, ['notice_number']),
                         (False, "Select at least one field to sync"))
        self.assertEqual(self.db.sync_linked_notices(self.other, ['risk_level']),
                         (False, "No other notices share this ARN"))
        lone = self.add_notice('NOARN/1')
        self.assertEqual(self.db.sync_linked_notices(lone, ['risk_level']), (False, "Notice has no ARN"))


class TestRelatedNotices(LinkageTestCase):

    def test_escalation_links_both_ways(self):
        appeal = self.add_notice('APL/1', arn='AD2701230000555', notice_type='Appeal Order', linked_case_id=ARN)

        related = self.db.get_related_notices(appeal)
        self.assertEqual({r['id'] for r in related}, {self.master, self.sibling})
        self.assertTrue(all(r['relation'] == 'Originating Case' for r in related))

        back = self.db.get_related_notices(self.master)
        self.assertEqual([(r['id'], r['relation']) for r in back], [(appeal, 'Escalation')])

    def test_unlinked_notice_has_no_relations(self):
        self.assertEqual(self.db.get_related_notices(self.other), [])
        self.assertEqual(self.db.get_related_notices(999), [])


class TestCaseTimeline(LinkageTestCase):

    def test_events_merged_newest_first(self):
        self.db.record_payment_matrix(self.master, {'igst': {'tax': 500}}, 'CPIN-7', payment_date='2023-02-15')
        self.db.add_hearing(self.sibling, {'date': '2023-04-01', 'time': '10:30', 'venue': 'Range-IV'})
        self.db.update_notice(self.sibling, {'status': 'Reply Filed'})

        events = self.db.get_case_timeline(ARN)
        self.assertEqual([e['type'] for e in events], ['LOG', 'HEARING', 'NOTICE', 'PAYMENT', 'NOTICE'])
        self.assertEqual(events[0]['details'], "Status changed from 'Received' to 'Reply Filed'")
        self.assertEqual(events[2]['subtitle'], 'DRC01/1')
        self.assertEqual(events[3]['title'], "Payment: ₹500")
        self.assertEqual(events[3]['details'], "Challan: CPIN-7 (ASMT/1)")

    def test_other_cases_excluded(self):
        self.db.add_hearing(self.other, {'date': '2023-04-01'})
        events = self.db.get_case_timeline(ARN)
        self.assertEqual(len(events), 2)
        self.assertTrue(all(e['notice_id'] in (self.master, self.sibling) for e in events))

    def test_unknown_arn(self):
        self.assertEqual(self.db.get_case_timeline('AD0000000000000'), [])


class TestTimelineReport(LinkageTestCase):

    def test_render_html(self):
        self.db.record_payment_matrix(self.master, {'cgst': {'penalty': 2500}}, 'CPIN-8', payment_date='2023-02-15')
        html = TimelineReport(self.db).render_html(ARN, today=date(2023, 5, 1))
        self.assertIn(f"Case Timeline: {ARN}", html)
        self.assertIn("01-May-2023", html)
        self.assertIn("ASMT/1 (ASMT-10, Received)", html)
        self.assertIn("Payment: ₹2,500", html)
        self.assertIn("15-Feb-2023", html)

    def test_export_unknown_arn(self):
        output = os.path.join(self.tmp.name, "timeline.pdf")
        self.assertEqual(TimelineReport(self.db).export_pdf('AD0000000000000', output),
                         (False, "No notices found for this ARN"))
        self.assertFalse(os.path.exists(output))


if __name__ == '__main__':
    unittest.main()
