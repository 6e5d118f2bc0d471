import hashlib
import json
import logging
import os
import sqlite3
from datetime import datetime

from gst_nexus.utils.constants import (DB_FILE, DEFAULT_APP_CONFIG, DEFAULT_ROLE_PERMISSIONS,
                                       UserRole)

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"


def hash_password(password):
    return hashlib.sha256(str(password).encode('utf-8')).hexdigest()


def init_db(db_file=None):
    """Initialize the SQLite database with the required schema."""
    target_db = db_file if db_file else DB_FILE
    os.makedirs(os.path.dirname(os.path.abspath(target_db)), exist_ok=True)

    conn = sqlite3.connect(target_db)
    cursor = conn.cursor()

    # Enable Foreign Keys
    cursor.execute("PRAGMA foreign_keys = ON;")

    # 1. Taxpayers
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS taxpayers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        gstin TEXT NOT NULL UNIQUE,
        trade_name TEXT,
        legal_name TEXT,
        registered_address TEXT,
        mobile TEXT,
        email TEXT,
        state_code TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_taxpayers_trade_name ON taxpayers(trade_name)")

    # 2. Notices (root case record). gstin / arn / linked_case_id are soft links.
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS notices (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        gstin TEXT NOT NULL,
        arn TEXT,
        notice_number TEXT NOT NULL,
        notice_type TEXT,
        case_type TEXT,
        section TEXT,
        period TEXT,
        date_of_issue TEXT,
        due_date TEXT,
        extended_due_date TEXT,
        received_date TEXT,
        issuing_authority TEXT,
        demand_amount REAL DEFAULT 0,
        risk_level TEXT DEFAULT 'Medium',
        status TEXT DEFAULT 'Received',
        description TEXT,
        assigned_to TEXT,
        tags TEXT, -- JSON list
        linked_case_id TEXT,
        last_checked_date TEXT,
        budgeted_hours REAL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );
    """)
    for col in ["gstin", "arn", "notice_number", "notice_type", "status", "due_date",
                "risk_level", "assigned_to", "linked_case_id", "last_checked_date"]:
        cursor.execute(f"CREATE INDEX IF NOT EXISTS idx_notices_{col} ON notices({col})")

    # 3. Notice Defects (tax heads stored as JSON objects)
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS notice_defects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        notice_id INTEGER NOT NULL,
        defect_type TEXT NOT NULL,
        section TEXT,
        description TEXT,
        igst TEXT NOT NULL,
        cgst TEXT NOT NULL,
        sgst TEXT NOT NULL,
        cess TEXT NOT NULL,
        status TEXT, -- 'Waived' or NULL
        waiver_date TEXT,
        waiver_reason TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (notice_id) REFERENCES notices(id) ON DELETE CASCADE
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_defects_notice_id ON notice_defects(notice_id)")

    # 4. Payments
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS payments (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        notice_id INTEGER NOT NULL,
        defect_id INTEGER,
        major_head TEXT NOT NULL CHECK(major_head IN ('IGST', 'CGST', 'SGST', 'Cess')),
        minor_head TEXT NOT NULL CHECK(minor_head IN ('Tax', 'Interest', 'Penalty', 'Late Fee', 'Others', 'Deposit')),
        amount REAL NOT NULL CHECK(amount > 0),
        challan_number TEXT,
        payment_reference_number TEXT,
        payment_date TEXT,
        bank_name TEXT,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (notice_id) REFERENCES notices(id) ON DELETE CASCADE,
        FOREIGN KEY (defect_id) REFERENCES notice_defects(id) ON DELETE SET NULL
    );
    """)
    for col in ["notice_id", "defect_id", "challan_number", "payment_date", "major_head"]:
        cursor.execute(f"CREATE INDEX IF NOT EXISTS idx_payments_{col} ON payments({col})")

    # 5. Hearings
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS hearings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        notice_id INTEGER NOT NULL,
        date TEXT NOT NULL,
        time TEXT,
        venue TEXT,
        type TEXT,
        attendees TEXT,
        status TEXT DEFAULT 'Scheduled',
        minutes TEXT,
        FOREIGN KEY (notice_id) REFERENCES notices(id) ON DELETE CASCADE
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_hearings_notice_id ON hearings(notice_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_hearings_date ON hearings(date)")

    # 6. Documents (file content kept offline as a BLOB)
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        notice_id INTEGER NOT NULL,
        file_name TEXT NOT NULL,
        file_type TEXT,
        category TEXT DEFAULT 'Other',
        upload_date TEXT,
        size INTEGER DEFAULT 0,
        file_data BLOB,
        ocr_text TEXT,
        FOREIGN KEY (notice_id) REFERENCES notices(id) ON DELETE CASCADE
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_documents_notice_id ON documents(notice_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_documents_category ON documents(category)")

    # 7. Time Sheets
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS time_sheets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        notice_id INTEGER NOT NULL,
        defect_id INTEGER,
        team_member TEXT NOT NULL,
        date TEXT,
        hours_spent REAL NOT NULL CHECK(hours_spent > 0),
        description TEXT,
        FOREIGN KEY (notice_id) REFERENCES notices(id) ON DELETE CASCADE,
        FOREIGN KEY (defect_id) REFERENCES notice_defects(id) ON DELETE SET NULL
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_timesheets_notice_id ON time_sheets(notice_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_timesheets_member ON time_sheets(team_member)")

    # 8. Audit Logs (append-only; survives notice deletion)
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS audit_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        entity_type TEXT NOT NULL,
        entity_id TEXT,
        notice_id INTEGER,
        action TEXT NOT NULL,
        timestamp TEXT NOT NULL,
        user TEXT,
        details TEXT
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_entity ON audit_logs(entity_type, entity_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_notice_id ON audit_logs(notice_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_logs(timestamp)")

    # Hardening: Append-Only Triggers
    cursor.execute("DROP TRIGGER IF EXISTS trg_audit_no_update")
    cursor.execute("""
        CREATE TRIGGER trg_audit_no_update
        BEFORE UPDATE ON audit_logs
        BEGIN
            SELECT RAISE(ABORT, 'Audit log is append-only: updates are not allowed.');
        END;
    """)
    cursor.execute("DROP TRIGGER IF EXISTS trg_audit_no_delete")
    cursor.execute("""
        CREATE TRIGGER trg_audit_no_delete
        BEFORE DELETE ON audit_logs
        BEGIN
            SELECT RAISE(ABORT, 'Audit log is append-only: deletes are not allowed.');
        END;
    """)

    # 9. Users
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        full_name TEXT,
        role TEXT,
        email TEXT,
        is_active INTEGER DEFAULT 1
    );
    """)

    # 10. Notifications
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER,
        title TEXT NOT NULL,
        message TEXT,
        type TEXT CHECK(type IN ('info', 'warning', 'critical')),
        link TEXT,
        is_read INTEGER DEFAULT 0,
        created_at TEXT
    );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_notifications_link ON notifications(link)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, is_read)")

    # 11. App Config (JSON values)
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS app_config (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        key TEXT NOT NULL UNIQUE,
        value TEXT
    );
    """)

    _seed_defaults(cursor)

    conn.commit()
    conn.close()
    logger.info(f"Database initialized at {target_db}")


def _seed_defaults(cursor):
    """Insert option lists, role permissions and the default admin on first run only."""
    for key, value in DEFAULT_APP_CONFIG.items():
        cursor.execute("INSERT OR IGNORE INTO app_config (key, value) VALUES (?, ?)",
                       (key, json.dumps(value)))

    for role, perms in DEFAULT_ROLE_PERMISSIONS.items():
        cursor.execute("INSERT OR IGNORE INTO app_config (key, value) VALUES (?, ?)",
                       (f"perm:{role}", json.dumps(perms)))

    cursor.execute("SELECT COUNT(*) FROM users")
    if cursor.fetchone()[0] == 0:
        cursor.execute("""
            INSERT INTO users (username, password_hash, full_name, role, email, is_active)
            VALUES (?, ?, ?, ?, ?, 1)
        """, (DEFAULT_ADMIN_USERNAME, hash_password(DEFAULT_ADMIN_PASSWORD),
              "System Administrator", UserRole.ADMIN, "admin@gstnexus.local"))
        cursor.execute("""
            INSERT INTO audit_logs (entity_type, entity_id, action, timestamp, user, details)
            VALUES ('System', 'INIT', 'Create', ?, 'System', 'Database initialised with default configuration')
        """, (datetime.now().isoformat(timespec='seconds'),))


if __name__ == "__main__":
    init_db()
