import os
import sys
import tempfile
import unittest

import pandas as pd

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.report_service import NO_ARN, REPORT_TYPES, ReportService

GSTIN = "27ABCDE1234F1Z5"
OTHER_GSTIN = "29AAAAA0000A1Z5"


class TestReports(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_reports.db"))
        self.service = ReportService(self.db)

        self.db.add_taxpayer({'gstin': GSTIN, 'trade_name': 'Sharma Traders'})
        self.db.add_taxpayer({'gstin': OTHER_GSTIN, 'trade_name': 'Zen Exports'})

        first = self.add_notice('N-1', GSTIN, arn='AD1')
        self.db.add_defect(first, {'defect_type': 'ITC Mismatch', 'igst': {'tax': 1000}})
        self.db.record_payment_matrix(first, {'igst': {'tax': 400}}, 'CPIN1')

        second = self.add_notice('N-2', GSTIN, arn='AD1', status='Closed')
        self.db.add_defect(second, {'defect_type': 'RCM', 'cgst': {'tax': 500, 'penalty': 50}})

        third = self.add_notice('N-3', OTHER_GSTIN)
        _, waived = self.db.add_defect(third, {'defect_type': 'ITC Mismatch', 'sgst': {'tax': 300}})
        self.db.waive_defect(waived, "Dropped at hearing")
        self.db.add_defect(third, {'defect_type': 'ITC Mismatch', 'igst': {'tax': 200, 'interest': 20}})

    def tearDown(self):
        self.tmp.cleanup()

    def add_notice(self, number, gstin, **extra):
        success, notice_id = self.db.create_notice({'gstin': gstin, 'notice_number': number, **extra})
        self.assertTrue(success, notice_id)
        return notice_id

    def test_client_report(self):
        report = self.service.client_report()
        self.assertEqual(list(report["GSTIN"]), [GSTIN, OTHER_GSTIN])
        sharma = report.iloc[0]
        self.assertEqual(sharma["Notices"], 2)
        self.assertEqual(sharma["Total Demand"], 1550)
        self.assertEqual(sharma["Total Paid"], 400)
        self.assertEqual(sharma["Outstanding"], 1150)
        self.assertEqual(sharma["Statuses"], "Closed (1), Received (1)")
        self.assertEqual(report.iloc[1]["Outstanding"], 220)

    def test_arn_report_groups_notices_without_arn(self):
        report = self.service.arn_report()
        self.assertEqual(list(report["ARN"]), ['AD1', NO_ARN])
        self.assertEqual(report.iloc[0]["Notices"], 2)
        self.assertEqual(report.iloc[0]["Total Demand"], 1550)
        self.assertEqual(report.iloc[0]["Statuses"], "Closed, Received")
        self.assertEqual(report.iloc[1]["Total Paid"], 0)

    def test_defect_type_report_skips_waived_amounts(self):
        report = self.service.defect_type_report()
        self.assertEqual(list(report["Defect Type"]), ['ITC Mismatch', 'RCM'])
        itc = report.iloc[0]
        self.assertEqual((itc["Defects"], itc["Waived"]), (3, 1))
        self.assertEqual(itc["Tax"], 1200)
        self.assertEqual(itc["Interest"], 20)
        self.assertEqual(itc["Total Demand"], 1220)
        self.assertEqual(report.iloc[1]["Penalty"], 50)
        self.assertEqual(report.iloc[1]["Total Demand"], 550)

    def test_status_report(self):
        report = self.service.status_report()
        self.assertEqual(list(report["Status"]), ['Received', 'Closed'])
        received = report.iloc[0]
        self.assertEqual(received["Notices"], 2)
        self.assertEqual(received["Total Demand"], 1220)
        self.assertEqual(received["Outstanding"], 820)

    def test_empty_register(self):
        db = DatabaseManager(os.path.join(self.tmp.name, "empty.db"))
        service = ReportService(db)
        for key in REPORT_TYPES:
            self.assertTrue(service.build(key).empty)
        with self.assertRaises(ValueError):
            service.build('jurisdiction')

    def test_export_single_report(self):
        path = os.path.join(self.tmp.name, 'clients.xlsx')
        self.assertEqual(self.service.export_report('clients', path), (True, 2))
        df = pd.read_excel(path, sheet_name="Report")
        self.assertEqual(list(df["Trade Name"]), ['Sharma Traders', 'Zen Exports'])

    def test_export_all_reports(self):
        path = os.path.join(self.tmp.name, 'reports.xlsx')
        self.assertEqual(self.service.export_report('all', path), (True, 4))
        with pd.ExcelFile(path) as book:
            self.assertEqual(book.sheet_names, list(REPORT_TYPES.values()))

    def test_export_unknown_report(self):
        success, message = self.service.export_report('nope', os.path.join(self.tmp.name, 'x.xlsx'))
        self.assertFalse(success)
        self.assertEqual(message, "Unknown report: nope")


if __name__ == '__main__':
    unittest.main()
