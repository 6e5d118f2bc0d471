import os
import sys
import tempfile
import unittest

import fitz

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.document_text import DocumentTextService

GSTIN = "27ABCDE1234F1Z5"


def make_pdf(text):
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


class CaseTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_case.db"))
        _, self.notice_id = self.db.create_notice({
            'gstin': GSTIN, 'notice_number': 'SCN/2023/77', 'notice_type': 'SCN', 'budgeted_hours': 10,
        })

    def tearDown(self):
        self.tmp.cleanup()

    def latest_audit(self):
        return self.db.get_audit_trail(notice_id=self.notice_id)[0]


class TestHearings(CaseTestCase):

    def test_add_hearing_defaults_to_scheduled(self):
        success, hearing_id = self.db.add_hearing(self.notice_id, {
            'date': '2023-11-15', 'time': '11:00', 'venue': 'Range-IV Office', 'type': 'Personal Hearing'})
        self.assertTrue(success)
        self.assertEqual(self.db.get_hearing(hearing_id)['status'], 'Scheduled')
        self.assertEqual(self.latest_audit()['details'], "Scheduled Personal Hearing on 2023-11-15 at Range-IV Office")

    def test_validation(self):
        self.assertEqual(self.db.add_hearing(self.notice_id, {'venue': 'Office'}), (False, "Hearing date is required"))
        success, message = self.db.add_hearing(self.notice_id, {'date': '2023-11-15', 'status': 'Postponed'})
        self.assertFalse(success)
        self.assertIn("Invalid hearing status", message)

    def test_status_change_and_reschedule(self):
        _, hearing_id = self.db.add_hearing(self.notice_id, {'date': '2023-11-15'})

        self.assertTrue(self.db.update_hearing(hearing_id, {'status': 'Heard - Order Reserved'})[0])
        latest = self.latest_audit()
        self.assertEqual(latest['action'], 'StatusChange')
        self.assertEqual(latest['details'], "Hearing status changed from 'Scheduled' to 'Heard - Order Reserved'")

        self.db.update_hearing(hearing_id, {'date': '2023-11-20'})
        self.assertEqual(self.db.get_hearing(hearing_id)['date'], '2023-11-20')
        self.assertEqual(self.latest_audit()['details'], "Hearing rescheduled to 2023-11-20")

    def test_upcoming_hearings_window(self):
        self.db.add_hearing(self.notice_id, {'date': '2023-11-15', 'venue': 'Later'})
        _, adjourned = self.db.add_hearing(self.notice_id, {'date': '2023-11-12', 'venue': 'Sooner'})
        self.db.update_hearing(adjourned, {'status': 'Adjourned'})
        _, concluded = self.db.add_hearing(self.notice_id, {'date': '2023-11-14'})
        self.db.update_hearing(concluded, {'status': 'Concluded'})
        self.db.add_hearing(self.notice_id, {'date': '2023-12-30'})

        upcoming = self.db.get_upcoming_hearings(7, today='2023-11-10')
        self.assertEqual([h['venue'] for h in upcoming], ['Sooner', 'Later'])
        self.assertEqual(upcoming[0]['notice_number'], 'SCN/2023/77')

    def test_delete(self):
        _, hearing_id = self.db.add_hearing(self.notice_id, {'date': '2023-11-15'})
        self.assertTrue(self.db.delete_hearing(hearing_id)[0])
        self.assertEqual(self.db.get_hearings(self.notice_id), [])
        self.assertEqual(self.db.delete_hearing(hearing_id), (False, "Hearing not found"))


class TestDocuments(CaseTestCase):

    def test_pdf_text_is_extracted_and_searchable(self):
        success, document_id = self.db.add_document(
            self.notice_id, 'scan.pdf', make_pdf(f"Show cause notice to {GSTIN}"), category='Notice Scan')
        self.assertTrue(success, document_id)

        document = self.db.get_document(document_id)
        self.assertEqual(document['file_type'], 'application/pdf')
        self.assertIn(GSTIN, document['ocr_text'])
        self.assertEqual(DocumentTextService.find_gstins(document['ocr_text']), [GSTIN])

        results = self.db.search_documents("show cause")
        self.assertEqual([r['id'] for r in results], [document_id])
        self.assertEqual(results[0]['notice_number'], 'SCN/2023/77')

    def test_content_round_trip_and_audit(self):
        payload = b"ledger,balance\n1,100\n"
        _, document_id = self.db.add_document(self.notice_id, 'ledger.csv', payload, category='Ledger')
        self.assertEqual(self.db.get_document_data(document_id), payload)
        self.assertEqual(self.db.get_document(document_id)['ocr_text'], "")
        self.assertTrue(self.latest_audit()['details'].startswith("Uploaded document 'ledger.csv' (Ledger,"))

    def test_manual_text_update(self):
        _, document_id = self.db.add_document(self.notice_id, 'photo.jpg', b'\xff\xd8\xff')
        self.assertTrue(self.db.update_document_ocr_text(document_id, "Reconciliation for FY 2022-23")[0])
        self.assertEqual(len(self.db.search_documents("FY 2022-23")), 1)

    def test_size_limit(self):
        self.db.config.set_setting('max_document_size_mb', 1)
        success, message = self.db.add_document(self.notice_id, 'big.bin', b'0' * (1024 * 1024 + 1))
        self.assertFalse(success)
        self.assertEqual(message, "File exceeds the 1 MB upload limit")
        self.assertEqual(self.db.get_documents(self.notice_id), [])

    def test_invalid_category(self):
        success, message = self.db.add_document(self.notice_id, 'x.txt', b'x', category='Memo')
        self.assertFalse(success)
        self.assertIn("Invalid document category", message)

    def test_add_from_file(self):
        path = os.path.join(self.tmp.name, 'reply.txt')
        with open(path, 'wb') as f:
            f.write(b"Reply draft")
        success, document_id = self.db.add_document_from_file(self.notice_id, path, category='Evidence')
        self.assertTrue(success)
        self.assertEqual(self.db.get_document(document_id)['file_name'], 'reply.txt')
        self.assertFalse(self.db.add_document_from_file(self.notice_id, os.path.join(self.tmp.name, 'missing'))[0])

    def test_delete(self):
        _, document_id = self.db.add_document(self.notice_id, 'x.txt', b'x')
        self.assertTrue(self.db.delete_document(document_id)[0])
        self.assertIsNone(self.db.get_document(document_id))


class TestTimeSheets(CaseTestCase):

    def test_summary_against_budget(self):
        self.db.add_timesheet_entry(self.notice_id, {'team_member': 'asha', 'hours_spent': 2, 'date': '2023-11-01'})
        self.db.add_timesheet_entry(self.notice_id, {'team_member': 'ravi', 'hours_spent': 1.5})
        self.db.add_timesheet_entry(self.notice_id, {'team_member': 'asha', 'hours_spent': '0.5'})

        summary = self.db.get_timesheet_summary(self.notice_id)
        self.assertEqual(summary['budgeted_hours'], 10)
        self.assertEqual(summary['hours_spent'], 4)
        self.assertEqual(summary['remaining_hours'], 6)
        self.assertEqual(summary['utilisation_pct'], 40.0)
        self.assertFalse(summary['over_budget'])
        self.assertEqual(summary['by_member'], {'asha': 2.5, 'ravi': 1.5})

    def test_entry_is_audited(self):
        self.db.add_timesheet_entry(self.notice_id, {'team_member': 'asha', 'hours_spent': 2, 'date': '2023-11-01'})
        latest = self.latest_audit()
        self.assertEqual(latest['entity_type'], 'TimeSheet')
        self.assertEqual(latest['details'], "Logged 2.0h by asha on 2023-11-01")

    def test_validation(self):
        self.assertEqual(self.db.add_timesheet_entry(self.notice_id, {'hours_spent': 1}),
                         (False, "Team member is required"))
        self.assertEqual(self.db.add_timesheet_entry(self.notice_id, {'team_member': 'asha', 'hours_spent': 0}),
                         (False, "Hours spent must be greater than zero"))

    def test_over_budget(self):
        self.db.add_timesheet_entry(self.notice_id, {'team_member': 'asha', 'hours_spent': 12})
        summary = self.db.get_timesheet_summary(self.notice_id)
        self.assertTrue(summary['over_budget'])
        self.assertEqual(summary['remaining_hours'], 0)

    def test_delete_entry(self):
        _, entry_id = self.db.add_timesheet_entry(self.notice_id, {'team_member': 'asha', 'hours_spent': 1})
        self.assertTrue(self.db.delete_timesheet_entry(entry_id)[0])
        self.assertEqual(self.db.get_timesheets(self.notice_id), [])
        self.assertEqual(self.db.delete_timesheet_entry(entry_id), (False, "Time sheet entry not found"))


if __name__ == '__main__':
    unittest.main()
