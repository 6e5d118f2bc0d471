import os
import sqlite3
import sys
import tempfile
import unittest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.database.schema import DEFAULT_ADMIN_USERNAME, hash_password, init_db


class TestSchema(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmp.name, "test_schema.db")
        init_db(self.db_path)
        self.conn = sqlite3.connect(self.db_path)
        self.cursor = self.conn.cursor()

    def tearDown(self):
        self.conn.close()
        self.tmp.cleanup()

    def test_tables_created(self):
        self.cursor.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in self.cursor.fetchall()}
        for table in ["taxpayers", "notices", "notice_defects", "payments", "hearings", "documents",
                      "time_sheets", "audit_logs", "users", "notifications", "app_config"]:
            self.assertIn(table, tables)

    def test_seeded_admin_and_config(self):
        self.cursor.execute("SELECT password_hash, role FROM users WHERE username = ?", (DEFAULT_ADMIN_USERNAME,))
        password_hash, role = self.cursor.fetchone()
        self.assertEqual(password_hash, hash_password("admin123"))
        self.assertEqual(role, "Admin")

        self.cursor.execute("SELECT key FROM app_config")
        keys = {row[0] for row in self.cursor.fetchall()}
        self.assertIn("notice_statuses", keys)
        self.assertIn("perm:Associate", keys)

    def test_init_is_idempotent(self):
        init_db(self.db_path)
        self.cursor.execute("SELECT COUNT(*) FROM users")
        self.assertEqual(self.cursor.fetchone()[0], 1)
        self.cursor.execute("SELECT COUNT(*) FROM audit_logs")
        self.assertEqual(self.cursor.fetchone()[0], 1)

    def test_audit_update_blocked(self):
        with self.assertRaisesRegex(sqlite3.Error, "append-only"):
            self.cursor.execute("UPDATE audit_logs SET details = 'tampered'")
            self.conn.commit()

    def test_audit_delete_blocked(self):
        with self.assertRaisesRegex(sqlite3.Error, "append-only"):
            self.cursor.execute("DELETE FROM audit_logs")
            self.conn.commit()

    def test_payment_heads_checked(self):
        self.cursor.execute("""
            INSERT INTO notices (gstin, notice_number, status, risk_level)
            VALUES ('27ABCDE1234F1Z5', 'N-1', 'Received', 'Medium')
        """)
        notice_id = self.cursor.lastrowid
        with self.assertRaises(sqlite3.IntegrityError):
            self.cursor.execute("""
                INSERT INTO payments (notice_id, major_head, minor_head, amount)
                VALUES (?, 'VAT', 'Tax', 100)
            """, (notice_id,))


class TestAuditTrail(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_audit.db"))

    def tearDown(self):
        self.tmp.cleanup()

    def test_log_audit_and_filter(self):
        self.assertTrue(self.db.log_audit('Notice', 42, 'Update', 'Manual note', user='tester', notice_id=42))
        trail = self.db.get_audit_trail(notice_id=42)
        self.assertEqual(len(trail), 1)
        self.assertEqual(trail[0]['user'], 'tester')
        self.assertEqual(trail[0]['entity_id'], '42')

        system = self.db.get_audit_trail(entity_type='System')
        self.assertEqual(system[0]['entity_id'], 'INIT')

    def test_default_user_is_recorded(self):
        self.db.log_audit('Notice', 1, 'Update', 'No explicit user', notice_id=1)
        self.assertEqual(self.db.get_audit_trail(notice_id=1)[0]['user'], 'System')

    def test_newest_first_and_limit(self):
        for i in range(3):
            self.db.log_audit('Notice', 7, 'Update', f"entry {i}", notice_id=7)
        trail = self.db.get_audit_trail(notice_id=7, limit=2)
        self.assertEqual([t['details'] for t in trail], ["entry 2", "entry 1"])

    def test_config_values_round_trip_as_json(self):
        self.assertIn("Received", self.db.get_config_value('notice_statuses'))
        self.db.set_config_value('notification_reminder_days', 5)
        self.assertEqual(self.db.get_config_value('notification_reminder_days'), 5)
        self.assertEqual(self.db.get_config_value('missing_key', 'fallback'), 'fallback')


if __name__ == '__main__':
    unittest.main()
