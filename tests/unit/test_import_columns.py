import unittest

from gst_nexus.services.document_text import DocumentTextService
from gst_nexus.services.import_service import ImportService, normalize_column


class TestImportColumns(unittest.TestCase):

    def test_header_styles(self):
        self.assertEqual(normalize_column("Notice Number"), "notice_number")
        self.assertEqual(normalize_column("noticeNumber"), "notice_number")
        self.assertEqual(normalize_column("GSTIN"), "gstin")
        self.assertEqual(normalize_column(" Date of\nIssue "), "date_of_issue")

    def test_legacy_demand_headers(self):
        self.assertEqual(normalize_column("taxDemand"), "tax")
        self.assertEqual(normalize_column("Penalty Demand"), "penalty")
        self.assertEqual(normalize_column("lateFee"), "late_fee")

    def test_defect_row_with_head_columns(self):
        record = ImportService(None)._clean_defect({
            'notice_number': 'N-1', 'defect_type': 'RCM', 'cgst_tax': 100, 'sgst_tax': 100})
        self.assertEqual(record['cgst']['tax'], 100)
        self.assertEqual(record['sgst']['tax'], 100)
        self.assertEqual(record['igst']['tax'], "")

    def test_defect_row_with_major_head(self):
        record = ImportService(None)._clean_defect({'notice_number': 'N-1', 'major_head': 'cess', 'tax': 5.0})
        self.assertEqual(record['cess']['tax'], 5.0)
        self.assertNotIn('igst', record)
        self.assertEqual(record['defect_type'], 'General')


class TestDocumentText(unittest.TestCase):

    def test_file_types(self):
        self.assertEqual(DocumentTextService.guess_file_type("Reply.PDF"), "application/pdf")
        self.assertEqual(DocumentTextService.guess_file_type("archive.zip"), "application/octet-stream")
        self.assertTrue(DocumentTextService.is_pdf("scan", "application/pdf"))
        self.assertFalse(DocumentTextService.is_pdf("scan.png"))

    def test_non_pdf_yields_no_text(self):
        self.assertEqual(DocumentTextService.extract_text("notes.txt", b"hello"), "")
        self.assertEqual(DocumentTextService.extract_pdf_text(b"not a pdf"), "")

    def test_find_gstins(self):
        text = "Supplier 29aaaaa0000a1z5 and recipient 27ABCDE1234F1Z5; again 27ABCDE1234F1Z5"
        self.assertEqual(DocumentTextService.find_gstins(text), ["29AAAAA0000A1Z5", "27ABCDE1234F1Z5"])

    def test_other_gstins_ignores_own_taxpayer(self):
        text = "Invoices from 29AAAAA0000A1Z5 claimed by 27ABCDE1234F1Z5"
        self.assertEqual(DocumentTextService.other_gstins(text, "27abcde1234f1z5"), ["29AAAAA0000A1Z5"])
        self.assertEqual(DocumentTextService.other_gstins("", "27ABCDE1234F1Z5"), [])


if __name__ == '__main__':
    unittest.main()
