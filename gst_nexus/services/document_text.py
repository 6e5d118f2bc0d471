import logging
import os
import re

import fitz  # PyMuPDF

from gst_nexus.utils.date_utils import GSTIN_PATTERN

logger = logging.getLogger(__name__)

# Same shape as GSTIN_PATTERN, without anchors, for scanning free text
_GSTIN_IN_TEXT = re.compile(GSTIN_PATTERN.strip('^$'))

MIME_TYPES = {
    '.pdf': 'application/pdf',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.xls': 'application/vnd.ms-excel',
    '.csv': 'text/csv',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.txt': 'text/plain',
}


class DocumentTextService:
    """
    Text layer extraction for uploaded case documents.
    Only PDFs with an embedded text layer yield text; scans and other
    formats return an empty string and the user can type the text in.
    """

    @staticmethod
    def guess_file_type(file_name):
        ext = os.path.splitext(file_name or "")[1].lower()
        return MIME_TYPES.get(ext, 'application/octet-stream')

    @staticmethod
    def is_pdf(file_name, file_type=None):
        if file_type and 'pdf' in str(file_type).lower():
            return True
        return str(file_name or "").lower().endswith('.pdf')

    @staticmethod
    def extract_pdf_text(data):
        """Concatenate page text of an in-memory PDF. Returns '' on unreadable input."""
        if not data:
            return ""
        try:
            doc = fitz.open(stream=bytes(data), filetype="pdf")
        except (RuntimeError, ValueError) as e:
            logger.warning(f"Could not open PDF for text extraction: {e}")
            return ""

        try:
            full_text = ""
            for page in doc:
                full_text += page.get_text() + "\n"
        finally:
            doc.close()
        return full_text.strip()

    @classmethod
    def extract_text(cls, file_name, data, file_type=None):
        if cls.is_pdf(file_name, file_type):
            return cls.extract_pdf_text(data)
        return ""

    @staticmethod
    def find_gstins(text):
        """Distinct GSTINs mentioned in a document, in order of appearance."""
        found = []
        for match in _GSTIN_IN_TEXT.findall((text or "").upper()):
            if match not in found:
                found.append(match)
        return found

    @classmethod
    def other_gstins(cls, text, gstin):
        """GSTINs mentioned in the text other than the notice's own taxpayer."""
        own = (gstin or "").strip().upper()
        return [g for g in cls.find_gstins(text) if g != own]
