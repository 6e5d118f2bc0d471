import os
import sys
import tempfile
import unittest

import pandas as pd

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.import_service import ImportService

GSTIN = "27ABCDE1234F1Z5"


class TestImportExport(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_import.db"))
        self.service = ImportService(self.db)

    def tearDown(self):
        self.tmp.cleanup()

    def write_csv(self, name, text):
        path = os.path.join(self.tmp.name, name)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
        return path

    def import_notices(self):
        path = self.write_csv('notices.csv',
                              "GSTIN,Notice Number,Notice Type,Date of Issue,Due Date,Risk Level,Period\n"
                              f"{GSTIN},N-100,ASMT-10,01/10/2023,2023-11-01,High,2021-22\n"
                              "BADGSTIN,N-101,ASMT-10,,,,\n"
                              f"{GSTIN},N-100,DRC-01,,,,\n")
        return self.service.import_file('notices', path)

    def test_notices_import_skips_bad_rows(self):
        self.assertEqual(self.import_notices(), (True, (1, 2)))
        notice = self.db.get_all_notices()[0]
        self.assertEqual(notice['notice_number'], 'N-100')
        self.assertEqual(notice['date_of_issue'], '2023-10-01')
        self.assertEqual(notice['risk_level'], 'High')
        self.assertEqual(notice['period'], 'FY 2021-22')
        self.assertEqual(notice['demand_amount'], 0)

        trail = self.db.get_audit_trail(entity_type='System')
        self.assertEqual(trail[0]['details'], "Imported 1 notices. Skipped 2.")

    def test_defects_import_refreshes_demand(self):
        self.import_notices()
        path = self.write_csv('defects.csv',
                              "notice_number,defect_type,major_head,tax,interest\n"
                              "N-100,ITC Mismatch,IGST,10000,500\n"
                              "N-100,Short Payment,CGST,2000,\n"
                              "N-999,Orphan,IGST,1,\n"
                              "N-100,Overflow,IGST,1e400,\n")
        self.assertEqual(self.service.import_file('defects', path), (True, (2, 2)))

        notice = self.db.get_all_notices()[0]
        self.assertEqual(notice['demand_amount'], 12500)
        defects = self.db.get_defects(notice['id'])
        self.assertEqual(defects[1]['cgst']['tax'], 2000)
        self.assertEqual(defects[1]['igst']['tax'], 0)

    def test_payments_import(self):
        self.import_notices()
        path = self.write_csv('payments.csv',
                              "notice_number,amount,payment_date,challan_number,major_head,minor_head\n"
                              "N-100,1500,15-Oct-2023,CPIN1,SGST,Penalty\n"
                              "N-100,0,15-Oct-2023,CPIN2,SGST,Tax\n")
        self.assertEqual(self.service.import_file('payments', path), (True, (1, 1)))
        payment = self.db.get_payments(self.db.get_all_notices()[0]['id'])[0]
        self.assertEqual(payment['payment_date'], '2023-10-15')
        self.assertIsNone(payment['defect_id'])

    def test_nothing_imported_writes_no_audit(self):
        path = self.write_csv('taxpayers.csv', "gstin,trade_name\nNOTAGSTIN,Bad Co\n")
        self.assertEqual(self.service.import_file('taxpayers', path), (True, (0, 1)))
        self.assertEqual([t['entity_id'] for t in self.db.get_audit_trail(entity_type='System')], ['INIT'])

    def test_template_round_trip(self):
        path = os.path.join(self.tmp.name, 'notices_template.xlsx')
        self.assertTrue(self.service.write_template('notices', path)[0])
        self.assertEqual(self.service.import_file('notices', path), (True, (1, 0)))
        self.assertTrue(self.db.notice_number_exists('DIN2023101055'))

    def test_unreadable_input(self):
        path = self.write_csv('notes.txt', "hello")
        success, message = self.service.import_file('notices', path)
        self.assertFalse(success)
        self.assertIn("Unsupported file type", message)
        self.assertEqual(self.service.import_file('hearings', path), (False, "Unknown import type: hearings"))

    def test_export_register(self):
        self.import_notices()
        path = os.path.join(self.tmp.name, 'register.csv')
        self.assertEqual(self.service.export_register(path), (True, 1))

        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        self.assertEqual(df.loc[0, 'Notice Number'], 'N-100')
        self.assertEqual(df.loc[0, 'Due Date'], '01-Nov-2023')
        self.assertEqual(df.loc[0, 'Trade Name'], 'Unregistered / Imported')


if __name__ == '__main__':
    unittest.main()
