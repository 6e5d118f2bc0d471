import logging
import os
import re
import warnings

import pandas as pd

from gst_nexus.utils.constants import HEAD_FIELDS, MAJOR_HEADS, TAX_HEADS
from gst_nexus.utils.date_utils import normalize_period, parse_excel_date
from gst_nexus.utils.formatting import format_date

# Suppress OpenPyXL warnings if any
warnings.filterwarnings("ignore", category=UserWarning, module="openpyxl")

logger = logging.getLogger(__name__)

IMPORT_TYPES = ('taxpayers', 'notices', 'defects', 'payments')

# One sample row per import type; column names are what the import expects
TEMPLATES = {
    'taxpayers': [{
        'gstin': '27ABCDE1234F1Z5',
        'trade_name': 'Sharma Traders',
        'legal_name': 'Rakesh Sharma',
        'registered_address': '12, MG Road, Pune',
        'mobile': '9876543210',
        'email': 'accounts@sharmatraders.in',
        'state_code': '27',
    }],
    'notices': [{
        'gstin': '27ABCDE1234F1Z5',
        'arn': 'AD2704230001234',
        'notice_number': 'DIN2023101055',
        'notice_type': 'ASMT-10',
        'case_type': 'Scrutiny',
        'section': 'Section 61',
        'period': 'FY 2021-22',
        'date_of_issue': '2023-10-01',
        'due_date': '2023-11-01',
        'risk_level': 'High',
        'status': 'Received',
        'description': 'ITC Mismatch',
        'assigned_to': 'admin',
    }],
    'defects': [{
        'notice_number': 'DIN2023101055',
        'defect_type': 'ITC Mismatch (GSTR-3B vs GSTR-2A/2B)',
        'section': '16(2)(c)',
        'description': 'GSTR-2A vs 3B',
        'major_head': 'IGST',
        'tax': 10000,
        'interest': 500,
        'penalty': 0,
        'late_fee': 0,
        'others': 0,
    }],
    'payments': [{
        'notice_number': 'DIN2023101055',
        'amount': 10500,
        'payment_date': '2023-10-15',
        'challan_number': 'CPIN12345',
        'major_head': 'IGST',
        'minor_head': 'Tax',
        'bank_name': 'HDFC',
    }],
}

# Older templates used camelCase headers and per-field demand columns
LEGACY_COLUMNS = {
    'taxdemand': 'tax',
    'interestdemand': 'interest',
    'penaltydemand': 'penalty',
    'latefee': 'late_fee',
}

REGISTER_COLUMNS = [
    ('notice_number', 'Notice Number'),
    ('arn', 'ARN'),
    ('gstin', 'GSTIN'),
    ('trade_name', 'Trade Name'),
    ('notice_type', 'Notice Type'),
    ('period', 'Period'),
    ('date_of_issue', 'Date of Issue'),
    ('due_date', 'Due Date'),
    ('status', 'Status'),
    ('risk_level', 'Risk Level'),
    ('assigned_to', 'Assigned To'),
    ('demand_amount', 'Demand Amount'),
]


def normalize_column(name):
    """'Notice Number', 'noticeNumber' and 'notice_number' all map to 'notice_number'."""
    text = str(name).strip().replace('\n', ' ')
    text = re.sub(r'(?<=[a-z0-9])([A-Z])', r'_\1', text)
    text = re.sub(r'[^0-9a-zA-Z]+', '_', text).strip('_').lower()
    return LEGACY_COLUMNS.get(text.replace('_', ''), text)


class ImportService:
    """Spreadsheet import/export for the notice register (pandas + openpyxl)."""

    def __init__(self, db):
        self.db = db

    @staticmethod
    def read_table(file_path):
        """First sheet of an Excel file, or a CSV, as a DataFrame of strings/numbers."""
        ext = os.path.splitext(file_path)[1].lower()
        if ext in ('.xlsx', '.xlsm', '.xls'):
            df = pd.read_excel(file_path, sheet_name=0)
        elif ext == '.csv':
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
        else:
            raise ValueError(f"Unsupported file type: {ext}")
        df.columns = [normalize_column(c) for c in df.columns]
        return df.fillna("")

    @staticmethod
    def _text(row, key, default=""):
        value = row.get(key, default)
        if value is None or value == "":
            return default
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    def _clean_notice(self, row):
        return {
            'gstin': self._text(row, 'gstin'),
            'arn': self._text(row, 'arn'),
            'notice_number': self._text(row, 'notice_number'),
            'notice_type': self._text(row, 'notice_type', 'General'),
            'case_type': self._text(row, 'case_type', 'General'),
            'section': self._text(row, 'section'),
            'period': normalize_period(self._text(row, 'period')),
            'date_of_issue': parse_excel_date(row.get('date_of_issue')),
            'due_date': parse_excel_date(row.get('due_date')),
            'received_date': parse_excel_date(row.get('received_date')),
            'issuing_authority': self._text(row, 'issuing_authority', 'Officer'),
            'risk_level': self._text(row, 'risk_level', 'Medium'),
            'status': self._text(row, 'status', 'Received'),
            'description': self._text(row, 'description'),
            'assigned_to': self._text(row, 'assigned_to'),
        }

    def _clean_defect(self, row):
        record = {
            'notice_number': self._text(row, 'notice_number'),
            'defect_type': self._text(row, 'defect_type', 'General'),
            'section': self._text(row, 'section'),
            'description': self._text(row, 'description'),
        }
        # Either per-head columns (igst_tax, cgst_interest...) or one major_head + field columns
        has_head_columns = any(f"{h}_{f}" in row for h in TAX_HEADS for f in HEAD_FIELDS)
        if has_head_columns:
            for head in TAX_HEADS:
                record[head] = {f: row.get(f"{head}_{f}", "") for f in HEAD_FIELDS}
        else:
            label = self._text(row, 'major_head', 'IGST').upper()
            target = next((k for k, v in MAJOR_HEADS.items() if v.upper() == label), 'igst')
            record[target] = {f: row.get(f, "") for f in HEAD_FIELDS}
        return record

    def _clean_payment(self, row):
        return {
            'notice_number': self._text(row, 'notice_number'),
            'amount': row.get('amount', ""),
            'payment_date': parse_excel_date(row.get('payment_date')),
            'challan_number': self._text(row, 'challan_number'),
            'payment_reference_number': self._text(row, 'payment_reference_number'),
            'major_head': self._text(row, 'major_head', 'IGST'),
            'minor_head': self._text(row, 'minor_head', 'Tax'),
            'bank_name': self._text(row, 'bank_name'),
        }

    def _clean_taxpayer(self, row):
        return {f: self._text(row, f) for f in TEMPLATES['taxpayers'][0]}

    def import_file(self, import_type, file_path, user=None):
        """
        Import one spreadsheet. Returns (True, (imported, skipped)) or
        (False, message) when the file cannot be read.
        """
        if import_type not in IMPORT_TYPES:
            return False, f"Unknown import type: {import_type}"
        try:
            df = self.read_table(file_path)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading import file {file_path}: {e}")
            return False, f"Error processing file. Please ensure format matches template. ({e})"

        cleaner = {
            'taxpayers': self._clean_taxpayer,
            'notices': self._clean_notice,
            'defects': self._clean_defect,
            'payments': self._clean_payment,
        }[import_type]

        records = [cleaner(row) for row in df.to_dict('records')]
        return self.db.import_records(import_type, records, user)

    def write_template(self, import_type, file_path):
        if import_type not in TEMPLATES:
            return False, f"Unknown import type: {import_type}"
        try:
            pd.DataFrame(TEMPLATES[import_type]).to_excel(file_path, index=False, sheet_name="Template")
            return True, file_path
        except (OSError, ValueError) as e:
            logger.error(f"Error writing template: {e}")
            return False, str(e)

    def register_frame(self, notices=None):
        """Notice register as a DataFrame with display headers."""
        notices = self.db.get_all_notices() if notices is None else notices
        rows = []
        for n in notices:
            row = {}
            for key, label in REGISTER_COLUMNS:
                value = n.get(key)
                if key in ('date_of_issue', 'due_date'):
                    value = format_date(value)
                row[label] = value if value is not None else ""
            rows.append(row)
        return pd.DataFrame(rows, columns=[label for _, label in REGISTER_COLUMNS])

    def export_register(self, file_path, notices=None):
        try:
            df = self.register_frame(notices)
            if file_path.lower().endswith('.csv'):
                df.to_csv(file_path, index=False)
            else:
                df.to_excel(file_path, index=False, sheet_name="Notice Register")
            logger.info(f"Exported {len(df)} notices to {file_path}")
            return True, len(df)
        except (OSError, ValueError) as e:
            logger.error(f"Error exporting register: {e}")
            return False, str(e)
