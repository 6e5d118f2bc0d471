import os
import sys

# Paths
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'templates')
PORTABLE_DATA_FOLDER = 'GSTNexus_Data'


def get_data_dir():
    """
    Resolve the writable data directory.
    Order: GST_NEXUS_DATA_DIR override, portable executable folder (frozen builds),
    then <project>/data for a source checkout.
    """
    override = os.environ.get('GST_NEXUS_DATA_DIR')
    if override:
        return override

    if getattr(sys, 'frozen', False):
        base = os.environ.get('PORTABLE_EXECUTABLE_DIR') or os.path.dirname(sys.executable)
        return os.path.join(base, PORTABLE_DATA_FOLDER)

    return os.path.join(BASE_DIR, 'data')


DATA_DIR = get_data_dir()
OUTPUT_DIR = os.path.join(DATA_DIR, 'output')
DB_FILE = os.path.join(DATA_DIR, 'gst_nexus.db')


class NoticeStatus:
    RECEIVED = "Received"
    ASSIGNED = "Assigned"
    DRAFTING = "Drafting"
    REPLY_FILED = "Reply Filed"
    HEARING = "Hearing Scheduled"
    APPEAL_FILED = "Appeal Filed"
    RECTIFICATION_FILED = "Rectification Filed"
    PAID = "Paid"
    CLOSED = "Closed"


class RiskLevel:
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class HearingStatus:
    SCHEDULED = "Scheduled"
    ADJOURNED = "Adjourned"
    HEARD = "Heard - Order Reserved"
    CONCLUDED = "Concluded"
    CANCELLED = "Cancelled"


class UserRole:
    ADMIN = "Admin"
    SENIOR_ASSOCIATE = "Senior Associate"
    ASSOCIATE = "Associate"


NOTICE_STATUSES = [
    NoticeStatus.RECEIVED,
    NoticeStatus.ASSIGNED,
    NoticeStatus.DRAFTING,
    NoticeStatus.REPLY_FILED,
    NoticeStatus.HEARING,
    NoticeStatus.APPEAL_FILED,
    NoticeStatus.RECTIFICATION_FILED,
    NoticeStatus.PAID,
    NoticeStatus.CLOSED,
]

RISK_LEVELS = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]

HEARING_STATUSES = [
    HearingStatus.SCHEDULED,
    HearingStatus.ADJOURNED,
    HearingStatus.HEARD,
    HearingStatus.CONCLUDED,
    HearingStatus.CANCELLED,
]

HEARING_TYPES = ["Personal Hearing", "Adjournment", "Final Hearing"]

DOCUMENT_CATEGORIES = ["Notice Scan", "Evidence", "Reconciliation", "Ledger", "Other"]

# Tax heads: storage key -> display label
TAX_HEADS = ("igst", "cgst", "sgst", "cess")
MAJOR_HEADS = {"igst": "IGST", "cgst": "CGST", "sgst": "SGST", "cess": "Cess"}

# Head fields: storage key -> payment minor head
HEAD_FIELDS = ("tax", "interest", "penalty", "late_fee", "others")
MINOR_HEADS = {
    "tax": "Tax",
    "interest": "Interest",
    "penalty": "Penalty",
    "late_fee": "Late Fee",
    "others": "Others",
}

WAIVED = "Waived"

AUDIT_ENTITY_TYPES = [
    "Notice", "Defect", "Payment", "Hearing", "Document",
    "Taxpayer", "TimeSheet", "System", "Auth",
]

ALL_PERMISSIONS = [
    'view_notices',
    'create_notices',
    'edit_notices',
    'delete_notices',
    'manage_users',
    'export_data',
]

DEFAULT_ROLE_PERMISSIONS = {
    UserRole.ADMIN: list(ALL_PERMISSIONS),
    UserRole.SENIOR_ASSOCIATE: ['view_notices', 'create_notices', 'edit_notices', 'export_data'],
    UserRole.ASSOCIATE: ['view_notices'],
}

# Seed values for the app_config table
DEFAULT_APP_CONFIG = {
    'notice_types': ['ASMT-10', 'DRC-01', 'DRC-01A', 'DRC-07', 'SCN', 'Summons',
                     'Final Audit Report', 'Appeal Order', 'Rectification Order'],
    'notice_statuses': NOTICE_STATUSES,
    'notice_periods': ['FY 2017-18', 'FY 2018-19', 'FY 2019-20', 'FY 2020-21',
                       'FY 2021-22', 'FY 2022-23', 'FY 2023-24', 'FY 2024-25'],
    'defect_types': [
        "ITC Mismatch (GSTR-3B vs GSTR-2A/2B)",
        "Short Payment (GSTR-3B vs GSTR-1)",
        "Ineligible ITC (Sec 17(5))",
        "RCM Liability (Sec 9(3)/9(4))",
        "Rule 86B Violation (1% Cash Payment)",
        "Wrong Place of Supply",
        "Fake Invoice / Bill Trading",
        "E-Way Bill Discrepancy",
        "Supplier Registration Cancelled",
        "Transitional Credit Issue",
        "Refund Rejection",
        "Others",
    ],
    'case_types': ['Scrutiny', 'Audit', 'Investigation', 'Adjudication', 'Appeal', 'General'],
    'user_roles': [UserRole.ADMIN, UserRole.SENIOR_ASSOCIATE, UserRole.ASSOCIATE],
    'notification_reminder_days': 3,
}

# Option lists an administrator can edit: app_config key -> label
CONFIG_LISTS = {
    'notice_types': "Notice Types",
    'notice_statuses': "Notice Statuses",
    'defect_types': "Defect Types",
    'notice_periods': "Periods",
    'case_types': "Case Types",
}
