import json
import logging
import os
import sqlite3
from datetime import date, datetime

from gst_nexus.database.schema import init_db
from gst_nexus.services.contest_deadline import TERMINAL_STATUSES, contest_alerts
from gst_nexus.services.demand_calculator import (apply_interest, build_payment_rows, defect_balance,
                                                  defect_total, empty_head, interest_days,
                                                  normalize_head, normalize_heads, notice_demand,
                                                  paid_so_far, to_amount)
from gst_nexus.services.document_text import DocumentTextService
from gst_nexus.utils.config_manager import ConfigManager
from gst_nexus.utils.constants import (CONFIG_LISTS, DB_FILE, DEFAULT_APP_CONFIG, DOCUMENT_CATEGORIES,
                                       HEARING_STATUSES, MAJOR_HEADS, MINOR_HEADS, NOTICE_STATUSES,
                                       RISK_LEVELS, TAX_HEADS, WAIVED, HearingStatus, NoticeStatus,
                                       RiskLevel)
from gst_nexus.utils.date_utils import (add_days, days_since, normalize_gstin, parse_date, parse_datetime,
                                        validate_gstin_format)
from gst_nexus.utils.formatting import format_currency, format_hours

logger = logging.getLogger(__name__)

UNREGISTERED_TAXPAYER = "Unregistered / Imported"

TAXPAYER_FIELDS = ["gstin", "trade_name", "legal_name", "registered_address", "mobile", "email",
                   "state_code"]

NOTICE_FIELDS = ["gstin", "arn", "notice_number", "notice_type", "case_type", "section", "period",
                 "date_of_issue", "due_date", "extended_due_date", "received_date",
                 "issuing_authority", "risk_level", "status", "description", "assigned_to", "tags",
                 "linked_case_id", "last_checked_date", "budgeted_hours"]

NOTICE_DATE_FIELDS = ["date_of_issue", "due_date", "extended_due_date", "received_date",
                      "last_checked_date"]

PAYMENT_FIELDS = ["defect_id", "major_head", "minor_head", "amount", "challan_number",
                  "payment_reference_number", "payment_date", "bank_name", "notes"]

HEARING_FIELDS = ["date", "time", "venue", "type", "attendees", "status", "minutes"]

# Fields that may be copied from one notice to its ARN siblings
SYNC_FIELDS = {
    "gstin": "GSTIN",
    "risk_level": "Risk Level",
    "assigned_to": "Assigned To",
    "status": "Status",
}

OPEN_EXCLUDED_STATUSES = (NoticeStatus.CLOSED,)

# A restore source must contain at least these tables
BACKUP_REQUIRED_TABLES = {"taxpayers", "notices", "notice_defects", "payments", "audit_logs"}


class DatabaseManager:
    """
    Data access layer over the local SQLite store.

    Mutating methods return (True, id_or_result) on success and
    (False, message) on validation, not-found or storage failure. Every
    successful mutation appends exactly one audit_logs row inside the same
    transaction as the change.
    """

    def __init__(self, db_path=None, config=None):
        self.db_file = db_path or DB_FILE
        self.config = config or ConfigManager(os.path.dirname(os.path.abspath(self.db_file)))
        self.current_user = self.config.get_setting('default_user', 'System')
        init_db(self.db_file)

    def _get_conn(self):
        conn = sqlite3.connect(self.db_file)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _user(self, user):
        return user or self.current_user or 'System'

    @staticmethod
    def _now():
        return datetime.now().isoformat(timespec='seconds')

    @staticmethod
    def _clean_date(value, field):
        if value is None or value == "":
            return None
        d = parse_date(value)
        if d is None:
            raise ValueError(f"Invalid date for {field}: {value}")
        return d.isoformat()

    # ---------------- Audit ----------------

    def _write_audit(self, cursor, entity_type, entity_id, action, details, user=None, notice_id=None):
        cursor.execute("""
            INSERT INTO audit_logs (entity_type, entity_id, notice_id, action, timestamp, user, details)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (entity_type, None if entity_id is None else str(entity_id), notice_id, action,
              self._now(), self._user(user), details))

    def log_audit(self, entity_type, entity_id, action, details, user=None, notice_id=None, conn=None):
        """Append an audit entry, joining the caller's transaction when a connection is given."""
        should_close = False
        try:
            if conn is None:
                conn = self._get_conn()
                should_close = True
            self._write_audit(conn.cursor(), entity_type, entity_id, action, details, user, notice_id)
            if should_close:
                conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"Error logging audit entry: {e}")
            return False
        finally:
            if should_close:
                conn.close()

    def get_audit_trail(self, notice_id=None, entity_type=None, limit=None):
        """Audit entries, newest first, optionally restricted to one notice or entity type."""
        query = "SELECT * FROM audit_logs WHERE 1=1"
        params = []
        if notice_id is not None:
            query += " AND notice_id = ?"
            params.append(notice_id)
        if entity_type:
            query += " AND entity_type = ?"
            params.append(entity_type)
        query += " ORDER BY id DESC"
        if limit:
            query += " LIMIT ?"
            params.append(int(limit))

        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching audit trail: {e}")
            return []
        finally:
            conn.close()

    # ---------------- App Config ----------------

    def get_config_value(self, key, default=None):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM app_config WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Error reading config '{key}': {e}")
            row = None
        finally:
            conn.close()

        if row is None or row['value'] is None:
            return default if default is not None else DEFAULT_APP_CONFIG.get(key)
        try:
            return json.loads(row['value'])
        except ValueError:
            return row['value']

    @staticmethod
    def _save_config(cursor, key, value):
        cursor.execute("""
            INSERT INTO app_config (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """, (key, json.dumps(value)))

    def _write_config(self, key, value, details, user=None):
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            self._save_config(cursor, key, value)
            self._write_audit(cursor, 'System', 'CONFIG', 'Update', details, user)
            conn.commit()
            return True, key
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error saving config '{key}': {e}")
            return False, f"Error saving configuration: {e}"
        finally:
            conn.close()

    def set_config_value(self, key, value, user=None):
        return self._write_config(key, value, f"Updated configuration '{key}'", user)

    def add_config_item(self, key, value, user=None):
        """Append an entry to one of the editable option lists (notice types, statuses...)."""
        if key not in CONFIG_LISTS:
            return False, f"Unknown option list: {key}"
        value = str(value or "").strip()
        if not value:
            return False, "Value is required"
        items = list(self.get_config_value(key) or [])
        if value in items:
            return False, "Value already exists"
        return self._write_config(key, items + [value], f"Added '{value}' to {key}", user)

    def remove_config_item(self, key, value, user=None):
        if key not in CONFIG_LISTS:
            return False, f"Unknown option list: {key}"
        items = list(self.get_config_value(key) or [])
        if value not in items:
            return False, "Value not found"
        return self._write_config(key, [i for i in items if i != value], f"Removed '{value}' from {key}", user)

    # ---------------- Taxpayers ----------------

    def _insert_taxpayer(self, cursor, data):
        record = {f: data.get(f) for f in TAXPAYER_FIELDS}
        record['gstin'] = normalize_gstin(record['gstin'])
        cursor.execute(f"""
            INSERT INTO taxpayers ({', '.join(TAXPAYER_FIELDS)})
            VALUES ({', '.join('?' for _ in TAXPAYER_FIELDS)})
        """, [record[f] for f in TAXPAYER_FIELDS])
        return cursor.lastrowid

    def add_taxpayer(self, data, user=None):
        gstin = normalize_gstin(data.get('gstin'))
        if not validate_gstin_format(gstin):
            return False, "Invalid GSTIN format"
        if self.get_taxpayer(gstin):
            return False, f"Taxpayer {gstin} already exists"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            taxpayer_id = self._insert_taxpayer(cursor, {**data, 'gstin': gstin})
            name = data.get('trade_name') or data.get('legal_name') or gstin
            self._write_audit(cursor, 'Taxpayer', taxpayer_id, 'Create',
                              f"Added taxpayer {name} ({gstin})", user)
            conn.commit()
            return True, taxpayer_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding taxpayer: {e}")
            return False, f"Error saving taxpayer: {e}"
        finally:
            conn.close()

    def update_taxpayer(self, taxpayer_id, data, user=None):
        existing = self.get_taxpayer_by_id(taxpayer_id)
        if not existing:
            return False, "Taxpayer not found"

        updates = {k: v for k, v in data.items() if k in TAXPAYER_FIELDS}
        if 'gstin' in updates:
            updates['gstin'] = normalize_gstin(updates['gstin'])
            if not validate_gstin_format(updates['gstin']):
                return False, "Invalid GSTIN format"
        changed = [k for k, v in updates.items() if existing.get(k) != v]
        if not updates:
            return False, "Nothing to update"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            assignments = ", ".join(f"{k} = ?" for k in updates)
            cursor.execute(f"UPDATE taxpayers SET {assignments} WHERE id = ?",
                           list(updates.values()) + [taxpayer_id])
            details = f"Updated taxpayer details: {', '.join(changed)}" if changed else "Updated taxpayer details"
            self._write_audit(cursor, 'Taxpayer', taxpayer_id, 'Update', details, user)
            conn.commit()
            return True, taxpayer_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating taxpayer {taxpayer_id}: {e}")
            return False, f"Error saving taxpayer: {e}"
        finally:
            conn.close()

    def delete_taxpayer(self, taxpayer_id, user=None):
        """Notices keep their GSTIN and show as unregistered afterwards."""
        existing = self.get_taxpayer_by_id(taxpayer_id)
        if not existing:
            return False, "Taxpayer not found"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM taxpayers WHERE id = ?", (taxpayer_id,))
            self._write_audit(cursor, 'Taxpayer', taxpayer_id, 'Delete',
                              f"Deleted taxpayer {existing['gstin']}", user)
            conn.commit()
            return True, taxpayer_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting taxpayer {taxpayer_id}: {e}")
            return False, f"Error deleting taxpayer: {e}"
        finally:
            conn.close()

    def get_taxpayer(self, gstin):
        gstin = normalize_gstin(gstin)
        if not gstin:
            return None
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM taxpayers WHERE gstin = ?", (gstin,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading taxpayer {gstin}: {e}")
            return None
        finally:
            conn.close()

    def get_taxpayer_by_id(self, taxpayer_id):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM taxpayers WHERE id = ?", (taxpayer_id,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading taxpayer {taxpayer_id}: {e}")
            return None
        finally:
            conn.close()

    def get_all_taxpayers(self):
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM taxpayers ORDER BY trade_name COLLATE NOCASE").fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching taxpayers: {e}")
            return []
        finally:
            conn.close()

    def search_taxpayers(self, query):
        like = f"%{(query or '').strip()}%"
        conn = self._get_conn()
        try:
            rows = conn.execute("""
                SELECT * FROM taxpayers
                WHERE gstin LIKE ? OR trade_name LIKE ? OR legal_name LIKE ?
                ORDER BY trade_name COLLATE NOCASE
            """, (like, like, like)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error searching taxpayers: {e}")
            return []
        finally:
            conn.close()

    def get_notice_taxpayer(self, notice):
        """
        Resolve the taxpayer for a notice (or a bare GSTIN) by value lookup.
        Orphan GSTINs get a placeholder record flagged is_registered=False.
        """
        gstin = notice.get('gstin') if isinstance(notice, dict) else notice
        taxpayer = self.get_taxpayer(gstin)
        if taxpayer:
            taxpayer['is_registered'] = True
            return taxpayer
        placeholder = {f: "" for f in TAXPAYER_FIELDS}
        placeholder.update({'id': None, 'gstin': normalize_gstin(gstin),
                            'trade_name': UNREGISTERED_TAXPAYER, 'is_registered': False})
        return placeholder

    # ---------------- Notices ----------------

    def _notice_from_row(self, row):
        d = dict(row)
        tags = d.get('tags')
        if tags and isinstance(tags, str):
            try:
                d['tags'] = json.loads(tags)
            except ValueError:
                d['tags'] = [t.strip() for t in tags.split(',') if t.strip()]
        else:
            d['tags'] = []
        return d

    def _prepare_notice(self, data, existing=None):
        """Validate and normalise notice fields. Raises ValueError on bad input."""
        record = {k: v for k, v in data.items() if k in NOTICE_FIELDS}

        if existing is None or 'gstin' in record:
            gstin = normalize_gstin(record.get('gstin'))
            if not gstin:
                raise ValueError("GSTIN is required")
            if not validate_gstin_format(gstin):
                raise ValueError("Invalid GSTIN format")
            record['gstin'] = gstin

        if existing is None or 'notice_number' in record:
            number = str(record.get('notice_number') or "").strip()
            if not number:
                raise ValueError("Notice number is required")
            record['notice_number'] = number

        if 'risk_level' in record or existing is None:
            risk = record.get('risk_level') or RiskLevel.MEDIUM
            if risk not in RISK_LEVELS:
                raise ValueError(f"Invalid risk level: {risk}")
            record['risk_level'] = risk

        if 'status' in record or existing is None:
            status = record.get('status') or NoticeStatus.RECEIVED
            allowed = self.get_config_value('notice_statuses') or NOTICE_STATUSES
            if status not in allowed and status not in NOTICE_STATUSES:
                raise ValueError(f"Invalid status: {status}")
            record['status'] = status

        for field in NOTICE_DATE_FIELDS:
            if field in record:
                record[field] = self._clean_date(record[field], field)

        if 'budgeted_hours' in record:
            hours = to_amount(record.get('budgeted_hours'))
            if hours < 0:
                raise ValueError("Budgeted hours cannot be negative")
            record['budgeted_hours'] = hours

        if 'tags' in record:
            tags = record['tags'] or []
            if isinstance(tags, str):
                tags = [t.strip() for t in tags.split(',') if t.strip()]
            record['tags'] = json.dumps(list(tags))

        for field in ('arn', 'linked_case_id'):
            if field in record:
                record[field] = str(record[field]).strip() if record[field] else None

        return record

    def _insert_notice(self, cursor, record):
        record = dict(record)
        if not record.get('last_checked_date'):
            record['last_checked_date'] = date.today().isoformat()
        record.setdefault('tags', json.dumps([]))
        columns = [f for f in NOTICE_FIELDS if f in record]
        cursor.execute(f"""
            INSERT INTO notices ({', '.join(columns)}, demand_amount)
            VALUES ({', '.join('?' for _ in columns)}, 0)
        """, [record[c] for c in columns])
        return cursor.lastrowid

    def create_notice(self, data, user=None):
        """Create a notice. demand_amount always starts at 0 and is driven by defects."""
        try:
            record = self._prepare_notice(data)
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            notice_id = self._insert_notice(cursor, record)
            details = f"Created notice {record['notice_number']}"
            if record.get('notice_type'):
                details += f" ({record['notice_type']})"
            details += f" for {record['gstin']}"
            self._write_audit(cursor, 'Notice', notice_id, 'Create', details, user, notice_id)
            conn.commit()
            logger.info(f"Notice {record['notice_number']} created with id {notice_id}")
            return True, notice_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error creating notice: {e}")
            return False, f"Error saving notice: {e}"
        finally:
            conn.close()

    @staticmethod
    def _describe_notice_changes(old, new):
        changes = []
        if 'status' in new and new['status'] != old.get('status'):
            changes.append(f"Status changed from '{old.get('status')}' to '{new['status']}'")
        if 'risk_level' in new and new['risk_level'] != old.get('risk_level'):
            changes.append(f"Risk Level changed to {new['risk_level']}")
        if 'due_date' in new and new['due_date'] != old.get('due_date'):
            changes.append(f"Due Date updated to {new['due_date'] or '-'}")
        if 'assigned_to' in new and new['assigned_to'] != old.get('assigned_to'):
            changes.append(f"Assigned to {new['assigned_to'] or 'nobody'}")
        return "; ".join(changes) if changes else "Updated notice details"

    def update_notice(self, notice_id, data, user=None):
        """Update editable notice fields; demand_amount is ignored here."""
        existing = self.get_notice(notice_id)
        if not existing:
            return False, "Notice not found"
        try:
            updates = self._prepare_notice(data, existing=existing)
        except ValueError as e:
            return False, str(e)
        if not updates:
            return False, "Nothing to update"

        status_changed = 'status' in updates and updates['status'] != existing.get('status')
        details = self._describe_notice_changes(existing, updates)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            assignments = ", ".join(f"{k} = ?" for k in updates)
            cursor.execute(f"UPDATE notices SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                           list(updates.values()) + [notice_id])
            self._write_audit(cursor, 'Notice', notice_id, 'StatusChange' if status_changed else 'Update',
                              details, user, notice_id)
            conn.commit()
            return True, notice_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating notice {notice_id}: {e}")
            return False, f"Error saving notice: {e}"
        finally:
            conn.close()

    def delete_notice(self, notice_id, user=None):
        """
        Delete a notice together with its defects, payments, hearings,
        documents and time sheets in one transaction. A single audit entry
        records how many dependent rows went with it.
        """
        existing = self.get_notice(notice_id)
        if not existing:
            return False, "Notice not found"

        children = [
            ("payments", "payments"),
            ("time_sheets", "time sheets"),
            ("documents", "documents"),
            ("hearings", "hearings"),
            ("notice_defects", "defects"),
        ]
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            counts = []
            for table, label in children:
                cursor.execute(f"SELECT COUNT(*) FROM {table} WHERE notice_id = ?", (notice_id,))
                counts.append(f"{cursor.fetchone()[0]} {label}")
                cursor.execute(f"DELETE FROM {table} WHERE notice_id = ?", (notice_id,))
            cursor.execute("DELETE FROM notices WHERE id = ?", (notice_id,))

            details = f"Deleted notice {existing['notice_number']} with {', '.join(reversed(counts))}"
            self._write_audit(cursor, 'Notice', notice_id, 'Delete', details, user, notice_id)
            conn.commit()
            logger.info(details)
            return True, notice_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting notice {notice_id}: {e}")
            return False, f"Error deleting notice: {e}"
        finally:
            conn.close()

    def get_notice(self, notice_id):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM notices WHERE id = ?", (notice_id,)).fetchone()
            return self._notice_from_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading notice {notice_id}: {e}")
            return None
        finally:
            conn.close()

    def get_all_notices(self, status=None, gstin=None, search=None):
        """Notice register rows, most recently issued first."""
        query = """
            SELECT n.*, t.trade_name AS trade_name, t.legal_name AS legal_name
            FROM notices n LEFT JOIN taxpayers t ON t.gstin = n.gstin
            WHERE 1=1
        """
        params = []
        if status:
            query += " AND n.status = ?"
            params.append(status)
        if gstin:
            query += " AND n.gstin = ?"
            params.append(normalize_gstin(gstin))
        if search:
            like = f"%{search.strip()}%"
            query += """ AND (n.notice_number LIKE ? OR n.gstin LIKE ? OR n.arn LIKE ?
                         OR t.trade_name LIKE ? OR n.notice_type LIKE ?)"""
            params.extend([like] * 5)
        query += " ORDER BY n.date_of_issue DESC, n.id DESC"

        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            notices = [self._notice_from_row(row) for row in rows]
            for n in notices:
                if not n.get('trade_name'):
                    n['trade_name'] = UNREGISTERED_TAXPAYER
            return notices
        except sqlite3.Error as e:
            logger.error(f"Error fetching notices: {e}")
            return []
        finally:
            conn.close()

    def get_notices_by_arn(self, arn):
        if not arn:
            return []
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM notices WHERE arn = ? ORDER BY date_of_issue, id",
                                (str(arn).strip(),)).fetchall()
            return [self._notice_from_row(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching notices for ARN {arn}: {e}")
            return []
        finally:
            conn.close()

    def notice_number_exists(self, notice_number):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT 1 FROM notices WHERE notice_number = ?",
                               (str(notice_number).strip(),)).fetchone()
            return row is not None
        finally:
            conn.close()

    # ---------------- Defects & Demand ----------------

    def _defect_from_row(self, row):
        d = dict(row)
        for head in TAX_HEADS:
            try:
                d[head] = normalize_head(json.loads(d.get(head) or '{}'))
            except (TypeError, ValueError):
                d[head] = empty_head()
        return d

    def _fetch_defects(self, cursor, notice_id):
        cursor.execute("SELECT * FROM notice_defects WHERE notice_id = ? ORDER BY id", (notice_id,))
        return [self._defect_from_row(row) for row in cursor.fetchall()]

    def _refresh_demand_amount(self, cursor, notice_id):
        """Recompute demand_amount from all current defects and persist it."""
        total = notice_demand(self._fetch_defects(cursor, notice_id))
        cursor.execute("UPDATE notices SET demand_amount = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                       (total, notice_id))
        return total

    def recompute_demand_amount(self, notice_id):
        conn = self._get_conn()
        try:
            total = self._refresh_demand_amount(conn.cursor(), notice_id)
            conn.commit()
            return total
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error recomputing demand for notice {notice_id}: {e}")
            return None
        finally:
            conn.close()

    def _insert_defect(self, cursor, notice_id, data):
        defect_type = str(data.get('defect_type') or "").strip()
        if not defect_type:
            raise ValueError("Defect type is required")
        heads = normalize_heads(data)
        cursor.execute("""
            INSERT INTO notice_defects (notice_id, defect_type, section, description, igst, cgst, sgst, cess)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (notice_id, defect_type, data.get('section'), data.get('description'),
              *[json.dumps(heads[h]) for h in TAX_HEADS]))
        return cursor.lastrowid, heads

    def add_defect(self, notice_id, data, user=None):
        if not self.get_notice(notice_id):
            return False, "Notice not found"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            defect_id, heads = self._insert_defect(cursor, notice_id, data)
            self._refresh_demand_amount(cursor, notice_id)
            self._write_audit(cursor, 'Defect', defect_id, 'Create',
                              f"Added defect '{data['defect_type']}' (Total: {format_currency(defect_total(heads))})",
                              user, notice_id)
            conn.commit()
            return True, defect_id
        except ValueError as e:
            conn.rollback()
            return False, str(e)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding defect to notice {notice_id}: {e}")
            return False, f"Error saving defect: {e}"
        finally:
            conn.close()

    def update_defect(self, defect_id, data, user=None):
        existing = self.get_defect(defect_id)
        if not existing:
            return False, "Defect not found"

        merged = {**existing, **{k: v for k, v in data.items() if k not in ('id', 'notice_id') + TAX_HEADS}}
        # Head updates are partial: fields left out keep their stored amounts
        for head in TAX_HEADS:
            if head in data:
                merged[head] = {**existing[head], **(data[head] or {})}
        defect_type = str(merged.get('defect_type') or "").strip()
        if not defect_type:
            return False, "Defect type is required"
        try:
            heads = normalize_heads(merged)
        except ValueError as e:
            return False, str(e)

        notice_id = existing['notice_id']
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE notice_defects
                SET defect_type = ?, section = ?, description = ?, igst = ?, cgst = ?, sgst = ?, cess = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            """, (defect_type, merged.get('section'), merged.get('description'),
                  *[json.dumps(heads[h]) for h in TAX_HEADS], defect_id))
            self._refresh_demand_amount(cursor, notice_id)
            details = (f"Updated defect '{defect_type}' (Total: {format_currency(defect_total(existing))}"
                       f" to {format_currency(defect_total(heads))})")
            self._write_audit(cursor, 'Defect', defect_id, 'Update', details, user, notice_id)
            conn.commit()
            return True, defect_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating defect {defect_id}: {e}")
            return False, f"Error saving defect: {e}"
        finally:
            conn.close()

    def delete_defect(self, defect_id, user=None):
        """Payments attached to the defect stay on the notice as unallocated."""
        existing = self.get_defect(defect_id)
        if not existing:
            return False, "Defect not found"

        notice_id = existing['notice_id']
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM notice_defects WHERE id = ?", (defect_id,))
            self._refresh_demand_amount(cursor, notice_id)
            self._write_audit(cursor, 'Defect', defect_id, 'Delete',
                              f"Deleted defect '{existing['defect_type']}'", user, notice_id)
            conn.commit()
            return True, defect_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting defect {defect_id}: {e}")
            return False, f"Error deleting defect: {e}"
        finally:
            conn.close()

    def _set_waiver(self, defect_id, status, waiver_date, reason, describe, user):
        existing = self.get_defect(defect_id)
        if not existing:
            return False, "Defect not found"
        if (existing.get('status') == WAIVED) == (status == WAIVED):
            return False, "Defect is already waived" if status == WAIVED else "Defect is not waived"

        notice_id = existing['notice_id']
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE notice_defects SET status = ?, waiver_date = ?, waiver_reason = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            """, (status, waiver_date, reason, defect_id))
            self._refresh_demand_amount(cursor, notice_id)
            self._write_audit(cursor, 'Defect', defect_id, 'StatusChange',
                              describe(existing['defect_type']), user, notice_id)
            conn.commit()
            return True, defect_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error changing waiver on defect {defect_id}: {e}")
            return False, f"Error saving defect: {e}"
        finally:
            conn.close()

    def waive_defect(self, defect_id, reason, waiver_date=None, user=None):
        """Waive a defect: it drops out of the demand but keeps its figures."""
        reason = (reason or "").strip()
        if not reason:
            return False, "Waiver reason is required"
        try:
            waiver_date = self._clean_date(waiver_date, 'waiver_date') or date.today().isoformat()
        except ValueError as e:
            return False, str(e)
        return self._set_waiver(defect_id, WAIVED, waiver_date, reason,
                                lambda defect_type: f"Waived defect '{defect_type}': {reason}", user)

    def revoke_waiver(self, defect_id, user=None):
        return self._set_waiver(defect_id, None, None, None,
                                lambda defect_type: f"Revoked waiver on defect '{defect_type}'", user)

    def get_defect(self, defect_id):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM notice_defects WHERE id = ?", (defect_id,)).fetchone()
            return self._defect_from_row(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading defect {defect_id}: {e}")
            return None
        finally:
            conn.close()

    def get_defects(self, notice_id):
        conn = self._get_conn()
        try:
            return self._fetch_defects(conn.cursor(), notice_id)
        except sqlite3.Error as e:
            logger.error(f"Error fetching defects for notice {notice_id}: {e}")
            return []
        finally:
            conn.close()

    def get_all_defects(self):
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM notice_defects ORDER BY notice_id, id").fetchall()
            return [self._defect_from_row(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching defects: {e}")
            return []
        finally:
            conn.close()

    def recalculate_defect_interest(self, defect_id, rate, from_date, to_date, user=None):
        """Overwrite interest on every head of one defect. Returns (True, new_heads)."""
        existing = self.get_defect(defect_id)
        if not existing:
            return False, "Defect not found"
        try:
            days = interest_days(from_date, to_date)
            heads = apply_interest(existing, rate, days)
        except ValueError as e:
            return False, str(e)

        notice_id = existing['notice_id']
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                UPDATE notice_defects SET igst = ?, cgst = ?, sgst = ?, cess = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            """, (*[json.dumps(heads[h]) for h in TAX_HEADS], defect_id))
            self._refresh_demand_amount(cursor, notice_id)
            details = (f"Interest recalculated for '{existing['defect_type']}' @ {to_amount(rate):g}% "
                       f"for {days} days")
            self._write_audit(cursor, 'Defect', defect_id, 'Update', details, user, notice_id)
            conn.commit()
            return True, heads
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error recalculating interest on defect {defect_id}: {e}")
            return False, f"Error saving defect: {e}"
        finally:
            conn.close()

    def recalculate_notice_interest(self, notice_id, rate=None, today=None, user=None):
        """
        Bulk "as of today" recalculation: interest runs from the due date
        (or date of issue) to today on every defect of the notice.
        Returns (True, number_of_defects).
        """
        notice = self.get_notice(notice_id)
        if not notice:
            return False, "Notice not found"
        start = notice.get('due_date') or notice.get('date_of_issue')
        if not start:
            return False, "Notice has no due date or date of issue"
        rate = self.config.get_default_interest_rate() if rate is None else rate
        today = parse_date(today) or date.today()

        defects = self.get_defects(notice_id)
        if not defects:
            return False, "No defects to recalculate"
        try:
            days = interest_days(start, today)
            updated = [(d['id'], apply_interest(d, rate, days)) for d in defects]
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            for defect_id, heads in updated:
                cursor.execute("""
                    UPDATE notice_defects SET igst = ?, cgst = ?, sgst = ?, cess = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                """, (*[json.dumps(heads[h]) for h in TAX_HEADS], defect_id))
            total = self._refresh_demand_amount(cursor, notice_id)
            details = (f"Bulk Interest Recalculation (Individual Notice) @ {to_amount(rate):g}% "
                       f"for {days} days on {len(updated)} defects (Demand: {format_currency(total)})")
            self._write_audit(cursor, 'Notice', notice_id, 'Update', details, user, notice_id)
            conn.commit()
            return True, len(updated)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error recalculating interest for notice {notice_id}: {e}")
            return False, f"Error saving defects: {e}"
        finally:
            conn.close()

    def recalculate_all_interest(self, rate=None, target_date=None, user=None):
        """
        Global interest update over every notice that is not Closed.

        Interest runs from each notice's due date (or date of issue) up to
        target_date, today when blank. Notices with no start date, or whose
        period has not begun, are skipped, and defects whose interest would
        not change are left untouched. All changes commit together with one
        summary audit entry. Returns (True, notices_updated).
        """
        rate = self.config.get_default_interest_rate() if rate is None else rate
        try:
            if to_amount(rate) < 0:
                return False, "Interest rate cannot be negative"
        except ValueError as e:
            return False, str(e)
        target = parse_date(target_date) or date.today()

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                SELECT id, due_date, date_of_issue FROM notices
                WHERE status NOT IN ({', '.join('?' for _ in OPEN_EXCLUDED_STATUSES)}) ORDER BY id
            """, OPEN_EXCLUDED_STATUSES)
            updated = 0
            for notice in cursor.fetchall():
                start = notice['due_date'] or notice['date_of_issue']
                if not start:
                    continue
                try:
                    days = interest_days(start, target)
                except ValueError:
                    continue

                changed = False
                for defect in self._fetch_defects(cursor, notice['id']):
                    heads = apply_interest(defect, rate, days)
                    if all(heads[h]['interest'] == defect[h]['interest'] for h in TAX_HEADS):
                        continue
                    cursor.execute("""
                        UPDATE notice_defects SET igst = ?, cgst = ?, sgst = ?, cess = ?,
                            updated_at = CURRENT_TIMESTAMP
                        WHERE id = ?
                    """, (*[json.dumps(heads[h]) for h in TAX_HEADS], defect['id']))
                    changed = True
                if changed:
                    self._refresh_demand_amount(cursor, notice['id'])
                    updated += 1

            if updated:
                self._write_audit(cursor, 'System', 'BULK_UPDATE', 'Update',
                                  f"Bulk Interest Update: {updated} notices. Rate: {to_amount(rate):g}%, "
                                  f"Target: {target.isoformat()}", user)
            conn.commit()
            logger.info(f"Bulk interest update touched {updated} notices")
            return True, updated
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error during bulk interest update: {e}")
            return False, f"Error saving defects: {e}"
        finally:
            conn.close()

    # ---------------- Payments ----------------

    def _validate_defect_link(self, notice_id, defect_id):
        if defect_id in (None, ""):
            return None
        defect = self.get_defect(defect_id)
        if not defect or int(defect['notice_id']) != int(notice_id):
            raise ValueError("Defect does not belong to this notice")
        return int(defect_id)

    def _insert_payment(self, cursor, notice_id, data):
        cursor.execute("""
            INSERT INTO payments (notice_id, defect_id, major_head, minor_head, amount, challan_number,
                                  payment_reference_number, payment_date, bank_name, notes)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (notice_id, data.get('defect_id'), data['major_head'], data['minor_head'], data['amount'],
              data.get('challan_number'), data.get('payment_reference_number'), data.get('payment_date'),
              data.get('bank_name'), data.get('notes')))
        return cursor.lastrowid

    def _prepare_payment(self, data):
        record = {k: v for k, v in data.items() if k in PAYMENT_FIELDS}
        if record.get('major_head') not in MAJOR_HEADS.values():
            raise ValueError(f"Invalid major head: {record.get('major_head')}")
        if record.get('minor_head') not in MINOR_HEADS.values():
            raise ValueError(f"Invalid minor head: {record.get('minor_head')}")
        amount = to_amount(record.get('amount'))
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")
        record['amount'] = amount
        challan = str(record.get('challan_number') or "").strip()
        if not challan:
            raise ValueError("Challan number is required")
        record['challan_number'] = challan
        record['payment_date'] = self._clean_date(record.get('payment_date'), 'payment_date') \
            or date.today().isoformat()
        return record

    def record_payment_matrix(self, notice_id, matrix, challan_number, payment_date=None, bank_name="",
                              reference_number="", defect_id=None, notes="", user=None):
        """
        Record one challan split across up to 20 head cells. Only strictly
        positive cells become payment rows; all rows are written in one
        transaction with a single summary audit entry. Returns (True, ids).
        """
        if not self.get_notice(notice_id):
            return False, "Notice not found"
        challan_number = str(challan_number or "").strip()
        if not challan_number:
            return False, "Challan number is required"
        try:
            rows = build_payment_rows(matrix)
            defect_id = self._validate_defect_link(notice_id, defect_id)
            payment_date = self._clean_date(payment_date, 'payment_date') or date.today().isoformat()
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            ids = []
            for major, minor, amount in rows:
                ids.append(self._insert_payment(cursor, notice_id, {
                    'defect_id': defect_id,
                    'major_head': major,
                    'minor_head': minor,
                    'amount': amount,
                    'challan_number': challan_number,
                    'payment_reference_number': reference_number,
                    'payment_date': payment_date,
                    'bank_name': bank_name,
                    'notes': notes,
                }))
            total = sum(amount for _, _, amount in rows)
            details = (f"Recorded {len(rows)} payment entries (Challan {challan_number}, "
                       f"Total {format_currency(total)})")
            self._write_audit(cursor, 'Payment', challan_number, 'Create', details, user, notice_id)
            conn.commit()
            return True, ids
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error recording payments for notice {notice_id}: {e}")
            return False, f"Error saving payment: {e}"
        finally:
            conn.close()

    def add_payment(self, notice_id, data, user=None):
        if not self.get_notice(notice_id):
            return False, "Notice not found"
        try:
            record = self._prepare_payment(data)
            record['defect_id'] = self._validate_defect_link(notice_id, record.get('defect_id'))
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            payment_id = self._insert_payment(cursor, notice_id, record)
            details = (f"Recorded payment of {format_currency(record['amount'])} "
                       f"({record['major_head']} - {record['minor_head']}, Challan {record['challan_number']})")
            self._write_audit(cursor, 'Payment', payment_id, 'Create', details, user, notice_id)
            conn.commit()
            return True, payment_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding payment: {e}")
            return False, f"Error saving payment: {e}"
        finally:
            conn.close()

    def update_payment(self, payment_id, data, user=None):
        existing = self.get_payment(payment_id)
        if not existing:
            return False, "Payment not found"
        notice_id = existing['notice_id']
        try:
            record = self._prepare_payment({**existing, **data})
            record['defect_id'] = self._validate_defect_link(notice_id, record.get('defect_id'))
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            assignments = ", ".join(f"{k} = ?" for k in PAYMENT_FIELDS)
            cursor.execute(f"UPDATE payments SET {assignments} WHERE id = ?",
                           [record.get(k) for k in PAYMENT_FIELDS] + [payment_id])
            details = f"Updated payment (Challan {record['challan_number']})"
            if to_amount(existing['amount']) != record['amount']:
                details += (f": amount {format_currency(existing['amount'])} "
                            f"to {format_currency(record['amount'])}")
            self._write_audit(cursor, 'Payment', payment_id, 'Update', details, user, notice_id)
            conn.commit()
            return True, payment_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating payment {payment_id}: {e}")
            return False, f"Error saving payment: {e}"
        finally:
            conn.close()

    def delete_payment(self, payment_id, user=None):
        existing = self.get_payment(payment_id)
        if not existing:
            return False, "Payment not found"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM payments WHERE id = ?", (payment_id,))
            details = (f"Deleted payment of {format_currency(existing['amount'])} "
                       f"(Challan {existing.get('challan_number') or '-'})")
            self._write_audit(cursor, 'Payment', payment_id, 'Delete', details, user, existing['notice_id'])
            conn.commit()
            return True, payment_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting payment {payment_id}: {e}")
            return False, f"Error deleting payment: {e}"
        finally:
            conn.close()

    def get_payment(self, payment_id):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading payment {payment_id}: {e}")
            return None
        finally:
            conn.close()

    def get_payments(self, notice_id):
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM payments WHERE notice_id = ? ORDER BY payment_date DESC, id DESC",
                                (notice_id,)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching payments for notice {notice_id}: {e}")
            return []
        finally:
            conn.close()

    def get_all_payments(self):
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM payments ORDER BY notice_id, id").fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching payments: {e}")
            return []
        finally:
            conn.close()

    def get_defect_balances(self, notice_id):
        payments = self.get_payments(notice_id)
        balances = []
        for defect in self.get_defects(notice_id):
            balances.append({
                'defect_id': defect['id'],
                'defect_type': defect['defect_type'],
                'waived': defect.get('status') == WAIVED,
                'total': defect_total(defect),
                'paid': paid_so_far(defect['id'], payments),
                'balance': defect_balance(defect, payments),
            })
        return balances

    def get_notice_financials(self, notice_id):
        """Demand, payments and outstanding balance for the notice header."""
        defects = self.get_defects(notice_id)
        payments = self.get_payments(notice_id)
        total_paid = round(sum(to_amount(p['amount']) for p in payments), 2)
        unallocated = round(sum(to_amount(p['amount']) for p in payments if p.get('defect_id') is None), 2)

        by_head = {label: 0.0 for label in MAJOR_HEADS.values()}
        for p in payments:
            by_head[p['major_head']] = round(by_head.get(p['major_head'], 0.0) + to_amount(p['amount']), 2)

        return {
            'demand_amount': notice_demand(defects),
            'total_paid': total_paid,
            'allocated_paid': round(total_paid - unallocated, 2),
            'unallocated_paid': unallocated,
            'outstanding': round(sum(defect_balance(d, payments) for d in defects), 2),
            'paid_by_head': by_head,
        }

    # ---------------- Hearings ----------------

    def _prepare_hearing(self, data):
        record = {k: v for k, v in data.items() if k in HEARING_FIELDS}
        if 'date' in record:
            record['date'] = self._clean_date(record['date'], 'date')
            if not record['date']:
                raise ValueError("Hearing date is required")
        if 'status' in record:
            record['status'] = record['status'] or HearingStatus.SCHEDULED
            if record['status'] not in HEARING_STATUSES:
                raise ValueError(f"Invalid hearing status: {record['status']}")
        return record

    def add_hearing(self, notice_id, data, user=None):
        if not self.get_notice(notice_id):
            return False, "Notice not found"
        try:
            record = self._prepare_hearing({'status': HearingStatus.SCHEDULED, **data})
            if not record.get('date'):
                raise ValueError("Hearing date is required")
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO hearings (notice_id, date, time, venue, type, attendees, status, minutes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (notice_id, *[record.get(f) for f in HEARING_FIELDS]))
            hearing_id = cursor.lastrowid
            details = f"Scheduled {record.get('type') or 'hearing'} on {record['date']}"
            if record.get('venue'):
                details += f" at {record['venue']}"
            self._write_audit(cursor, 'Hearing', hearing_id, 'Create', details, user, notice_id)
            conn.commit()
            return True, hearing_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding hearing: {e}")
            return False, f"Error saving hearing: {e}"
        finally:
            conn.close()

    def update_hearing(self, hearing_id, data, user=None):
        existing = self.get_hearing(hearing_id)
        if not existing:
            return False, "Hearing not found"
        try:
            updates = self._prepare_hearing(data)
        except ValueError as e:
            return False, str(e)
        if not updates:
            return False, "Nothing to update"

        if 'status' in updates and updates['status'] != existing.get('status'):
            action = 'StatusChange'
            details = f"Hearing status changed from '{existing.get('status')}' to '{updates['status']}'"
        elif 'date' in updates and updates['date'] != existing.get('date'):
            action = 'Update'
            details = f"Hearing rescheduled to {updates['date']}"
        else:
            action = 'Update'
            details = "Updated hearing details"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            assignments = ", ".join(f"{k} = ?" for k in updates)
            cursor.execute(f"UPDATE hearings SET {assignments} WHERE id = ?",
                           list(updates.values()) + [hearing_id])
            self._write_audit(cursor, 'Hearing', hearing_id, action, details, user, existing['notice_id'])
            conn.commit()
            return True, hearing_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating hearing {hearing_id}: {e}")
            return False, f"Error saving hearing: {e}"
        finally:
            conn.close()

    def delete_hearing(self, hearing_id, user=None):
        existing = self.get_hearing(hearing_id)
        if not existing:
            return False, "Hearing not found"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM hearings WHERE id = ?", (hearing_id,))
            self._write_audit(cursor, 'Hearing', hearing_id, 'Delete',
                              f"Deleted hearing of {existing['date']}", user, existing['notice_id'])
            conn.commit()
            return True, hearing_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting hearing {hearing_id}: {e}")
            return False, f"Error deleting hearing: {e}"
        finally:
            conn.close()

    def get_hearing(self, hearing_id):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM hearings WHERE id = ?", (hearing_id,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading hearing {hearing_id}: {e}")
            return None
        finally:
            conn.close()

    def get_hearings(self, notice_id):
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM hearings WHERE notice_id = ? ORDER BY date DESC, time DESC",
                                (notice_id,)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching hearings for notice {notice_id}: {e}")
            return []
        finally:
            conn.close()

    def get_upcoming_hearings(self, days=7, today=None):
        """Scheduled or adjourned hearings from today up to `days` ahead, soonest first."""
        today = parse_date(today) or date.today()
        end = add_days(today, days)
        conn = self._get_conn()
        try:
            rows = conn.execute("""
                SELECT h.*, n.notice_number, n.gstin, n.notice_type
                FROM hearings h JOIN notices n ON n.id = h.notice_id
                WHERE h.date >= ? AND h.date <= ? AND h.status IN (?, ?)
                ORDER BY h.date, h.time
            """, (today.isoformat(), end.isoformat(),
                  HearingStatus.SCHEDULED, HearingStatus.ADJOURNED)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching upcoming hearings: {e}")
            return []
        finally:
            conn.close()

    # ---------------- Documents ----------------

    def add_document(self, notice_id, file_name, data, category="Other", file_type=None, user=None):
        """Store an uploaded file as a BLOB. PDF text is extracted into ocr_text."""
        if not self.get_notice(notice_id):
            return False, "Notice not found"
        if not file_name:
            return False, "File name is required"
        data = bytes(data or b"")
        limit = self.config.get_max_document_bytes()
        if limit > 0 and len(data) > limit:
            return False, f"File exceeds the {limit // (1024 * 1024)} MB upload limit"
        category = category or "Other"
        if category not in DOCUMENT_CATEGORIES:
            return False, f"Invalid document category: {category}"

        file_type = file_type or DocumentTextService.guess_file_type(file_name)
        ocr_text = DocumentTextService.extract_text(file_name, data, file_type)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO documents (notice_id, file_name, file_type, category, upload_date, size, file_data, ocr_text)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (notice_id, os.path.basename(file_name), file_type, category, self._now(), len(data),
                  sqlite3.Binary(data), ocr_text))
            document_id = cursor.lastrowid
            self._write_audit(cursor, 'Document', document_id, 'Create',
                              f"Uploaded document '{os.path.basename(file_name)}' ({category}, "
                              f"{len(data) / 1024:.1f} KB)", user, notice_id)
            conn.commit()
            return True, document_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding document: {e}")
            return False, f"Error saving document: {e}"
        finally:
            conn.close()

    def add_document_from_file(self, notice_id, file_path, category="Other", user=None):
        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            return False, f"Could not read file: {e}"
        return self.add_document(notice_id, os.path.basename(file_path), data, category, user=user)

    def update_document(self, document_id, data, user=None):
        existing = self.get_document(document_id)
        if not existing:
            return False, "Document not found"
        updates = {k: v for k, v in data.items() if k in ('file_name', 'category', 'ocr_text')}
        if 'category' in updates and updates['category'] not in DOCUMENT_CATEGORIES:
            return False, f"Invalid document category: {updates['category']}"
        if not updates:
            return False, "Nothing to update"

        details = f"Updated document '{existing['file_name']}': {', '.join(updates)}"
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            assignments = ", ".join(f"{k} = ?" for k in updates)
            cursor.execute(f"UPDATE documents SET {assignments} WHERE id = ?",
                           list(updates.values()) + [document_id])
            self._write_audit(cursor, 'Document', document_id, 'Update', details, user, existing['notice_id'])
            conn.commit()
            return True, document_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating document {document_id}: {e}")
            return False, f"Error saving document: {e}"
        finally:
            conn.close()

    def update_document_ocr_text(self, document_id, text, user=None):
        return self.update_document(document_id, {'ocr_text': text or ""}, user)

    def delete_document(self, document_id, user=None):
        existing = self.get_document(document_id)
        if not existing:
            return False, "Document not found"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            self._write_audit(cursor, 'Document', document_id, 'Delete',
                              f"Deleted document '{existing['file_name']}'", user, existing['notice_id'])
            conn.commit()
            return True, document_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting document {document_id}: {e}")
            return False, f"Error deleting document: {e}"
        finally:
            conn.close()

    def get_document(self, document_id):
        """Document metadata without the file content."""
        conn = self._get_conn()
        try:
            row = conn.execute("""
                SELECT id, notice_id, file_name, file_type, category, upload_date, size, ocr_text
                FROM documents WHERE id = ?
            """, (document_id,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading document {document_id}: {e}")
            return None
        finally:
            conn.close()

    def get_documents(self, notice_id):
        conn = self._get_conn()
        try:
            rows = conn.execute("""
                SELECT id, notice_id, file_name, file_type, category, upload_date, size, ocr_text
                FROM documents WHERE notice_id = ? ORDER BY upload_date DESC, id DESC
            """, (notice_id,)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching documents for notice {notice_id}: {e}")
            return []
        finally:
            conn.close()

    def get_document_data(self, document_id):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT file_data FROM documents WHERE id = ?", (document_id,)).fetchone()
            return bytes(row['file_data']) if row and row['file_data'] is not None else None
        except sqlite3.Error as e:
            logger.error(f"Error reading document data {document_id}: {e}")
            return None
        finally:
            conn.close()

    def search_documents(self, query):
        like = f"%{(query or '').strip()}%"
        conn = self._get_conn()
        try:
            rows = conn.execute("""
                SELECT d.id, d.notice_id, d.file_name, d.category, d.upload_date, d.size, n.notice_number
                FROM documents d JOIN notices n ON n.id = d.notice_id
                WHERE d.file_name LIKE ? OR d.ocr_text LIKE ?
                ORDER BY d.upload_date DESC
            """, (like, like)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error searching documents: {e}")
            return []
        finally:
            conn.close()

    # ---------------- Time Sheets ----------------

    def add_timesheet_entry(self, notice_id, data, user=None):
        if not self.get_notice(notice_id):
            return False, "Notice not found"
        member = str(data.get('team_member') or "").strip()
        if not member:
            return False, "Team member is required"
        try:
            hours = to_amount(data.get('hours_spent'))
            if hours <= 0:
                raise ValueError("Hours spent must be greater than zero")
            entry_date = self._clean_date(data.get('date'), 'date') or date.today().isoformat()
            defect_id = self._validate_defect_link(notice_id, data.get('defect_id'))
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO time_sheets (notice_id, defect_id, team_member, date, hours_spent, description)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (notice_id, defect_id, member, entry_date, hours, data.get('description')))
            entry_id = cursor.lastrowid
            self._write_audit(cursor, 'TimeSheet', entry_id, 'Create',
                              f"Logged {format_hours(hours)} by {member} on {entry_date}", user, notice_id)
            conn.commit()
            return True, entry_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding time sheet entry: {e}")
            return False, f"Error saving time sheet: {e}"
        finally:
            conn.close()

    def delete_timesheet_entry(self, entry_id, user=None):
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT * FROM time_sheets WHERE id = ?", (entry_id,)).fetchone()
            if not row:
                return False, "Time sheet entry not found"
            cursor.execute("DELETE FROM time_sheets WHERE id = ?", (entry_id,))
            self._write_audit(cursor, 'TimeSheet', entry_id, 'Delete',
                              f"Removed {format_hours(row['hours_spent'])} logged by {row['team_member']}",
                              user, row['notice_id'])
            conn.commit()
            return True, entry_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error deleting time sheet entry {entry_id}: {e}")
            return False, f"Error deleting time sheet: {e}"
        finally:
            conn.close()

    def get_timesheets(self, notice_id):
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM time_sheets WHERE notice_id = ? ORDER BY date DESC, id DESC",
                                (notice_id,)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching time sheets for notice {notice_id}: {e}")
            return []
        finally:
            conn.close()

    def get_timesheet_summary(self, notice_id):
        """Hours spent against the notice's budget, with per-member totals."""
        notice = self.get_notice(notice_id)
        if not notice:
            return None
        entries = self.get_timesheets(notice_id)
        budget = to_amount(notice.get('budgeted_hours'))
        spent = round(sum(to_amount(e['hours_spent']) for e in entries), 2)

        by_member = {}
        for e in entries:
            by_member[e['team_member']] = round(by_member.get(e['team_member'], 0.0) + to_amount(e['hours_spent']), 2)

        return {
            'budgeted_hours': budget,
            'hours_spent': spent,
            'remaining_hours': round(max(0.0, budget - spent), 2),
            'utilisation_pct': round(spent * 100 / budget, 1) if budget > 0 else None,
            'over_budget': budget > 0 and spent > budget,
            'by_member': by_member,
        }

    # ---------------- Linkage ----------------

    def sync_linked_notices(self, source_id, fields, user=None):
        """
        Copy the opted-in fields from one notice to every other notice sharing
        its ARN. Writes one audit entry per updated sibling. Returns (True, count).
        """
        fields = [f for f in (fields or []) if f in SYNC_FIELDS]
        if not fields:
            return False, "Select at least one field to sync"
        source = self.get_notice(source_id)
        if not source:
            return False, "Notice not found"
        if not source.get('arn'):
            return False, "Notice has no ARN"
        siblings = [n for n in self.get_notices_by_arn(source['arn']) if n['id'] != source['id']]
        if not siblings:
            return False, "No other notices share this ARN"

        values = {f: source.get(f) for f in fields}
        details = f"Synced fields ({', '.join(SYNC_FIELDS[f] for f in fields)}) from ARN Master"
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            assignments = ", ".join(f"{k} = ?" for k in values)
            for sibling in siblings:
                cursor.execute(f"UPDATE notices SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                               list(values.values()) + [sibling['id']])
                self._write_audit(cursor, 'Notice', sibling['id'], 'Update', details, user, sibling['id'])
            conn.commit()
            return True, len(siblings)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error syncing notices for ARN {source['arn']}: {e}")
            return False, f"Error saving notices: {e}"
        finally:
            conn.close()

    def get_related_notices(self, notice_id):
        """
        Notices connected through linked_case_id: the originating case this
        notice points at, and escalations that point back at this notice's ARN.
        """
        notice = self.get_notice(notice_id)
        if not notice:
            return []
        related = {}
        if notice.get('linked_case_id'):
            for n in self.get_notices_by_arn(notice['linked_case_id']):
                if n['id'] != notice['id']:
                    related[n['id']] = {**n, 'relation': 'Originating Case'}
        if notice.get('arn'):
            conn = self._get_conn()
            try:
                rows = conn.execute("SELECT * FROM notices WHERE linked_case_id = ? AND id != ?",
                                    (notice['arn'], notice['id'])).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Error fetching related notices: {e}")
                rows = []
            finally:
                conn.close()
            for row in rows:
                related.setdefault(row['id'], {**self._notice_from_row(row), 'relation': 'Escalation'})
        return list(related.values())

    def get_case_timeline(self, arn):
        """
        Merge every notice, payment, hearing and non-create audit entry of
        the notices sharing `arn` into one list of events, newest first.
        """
        notices = self.get_notices_by_arn(arn)
        if not notices:
            return []
        ids = [n['id'] for n in notices]
        numbers = {n['id']: n['notice_number'] for n in notices}
        events = []

        for n in notices:
            events.append({
                'date': n.get('date_of_issue') or n.get('created_at'),
                'type': 'NOTICE',
                'title': f"{n.get('notice_type') or 'Notice'} Issued",
                'subtitle': n['notice_number'],
                'details': f"Status: {n.get('status')} | Due: {n.get('due_date') or '-'}",
                'notice_id': n['id'],
            })

        placeholders = ", ".join("?" for _ in ids)
        conn = self._get_conn()
        try:
            payments = conn.execute(f"SELECT * FROM payments WHERE notice_id IN ({placeholders})", ids).fetchall()
            hearings = conn.execute(f"SELECT * FROM hearings WHERE notice_id IN ({placeholders})", ids).fetchall()
            logs = conn.execute(f"""
                SELECT * FROM audit_logs WHERE notice_id IN ({placeholders}) AND action != 'Create'
            """, ids).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Error building timeline for ARN {arn}: {e}")
            return []
        finally:
            conn.close()

        for p in payments:
            events.append({
                'date': p['payment_date'],
                'type': 'PAYMENT',
                'title': f"Payment: {format_currency(p['amount'])}",
                'subtitle': f"{p['major_head']} - {p['minor_head']}",
                'details': f"Challan: {p['challan_number'] or '-'} ({numbers[p['notice_id']]})",
                'notice_id': p['notice_id'],
            })
        for h in hearings:
            events.append({
                'date': f"{h['date']}T{h['time']}" if h['time'] else h['date'],
                'type': 'HEARING',
                'title': f"{h['type'] or 'Hearing'} ({h['status']})",
                'subtitle': h['venue'] or '',
                'details': h['minutes'] or '',
                'notice_id': h['notice_id'],
            })
        for log in logs:
            events.append({
                'date': log['timestamp'],
                'type': 'LOG',
                'title': f"{log['entity_type']} {log['action']}",
                'subtitle': log['user'] or '',
                'details': log['details'] or '',
                'notice_id': log['notice_id'],
            })

        events.sort(key=lambda e: parse_datetime(e['date']) or datetime.min, reverse=True)
        return events

    # ---------------- Client Status ----------------

    def mark_notice_checked(self, notice_id, checked_date=None, user=None):
        if not self.get_notice(notice_id):
            return False, "Notice not found"
        try:
            checked = self._clean_date(checked_date, 'checked_date') or date.today().isoformat()
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE notices SET last_checked_date = ? WHERE id = ?", (checked, notice_id))
            self._write_audit(cursor, 'Notice', notice_id, 'Update', f"Marked as checked on {checked}",
                              user, notice_id)
            conn.commit()
            return True, notice_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error marking notice {notice_id} as checked: {e}")
            return False, f"Error saving notice: {e}"
        finally:
            conn.close()

    def mark_client_checked(self, gstin, checked_date=None, user=None):
        """Mark every open notice of a taxpayer as checked. Returns (True, count)."""
        gstin = normalize_gstin(gstin)
        try:
            checked = self._clean_date(checked_date, 'checked_date') or date.today().isoformat()
        except ValueError as e:
            return False, str(e)

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute(f"""
                UPDATE notices SET last_checked_date = ?
                WHERE gstin = ? AND status NOT IN ({', '.join('?' for _ in OPEN_EXCLUDED_STATUSES)})
            """, (checked, gstin, *OPEN_EXCLUDED_STATUSES))
            count = cursor.rowcount
            if count == 0:
                conn.rollback()
                return False, "No open notices for this taxpayer"
            self._write_audit(cursor, 'Taxpayer', gstin, 'Update',
                              f"Marked {count} open notices as checked on {checked}", user)
            conn.commit()
            return True, count
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error marking client {gstin} as checked: {e}")
            return False, f"Error saving notices: {e}"
        finally:
            conn.close()

    def get_open_notices(self):
        return [n for n in self.get_all_notices() if n.get('status') not in OPEN_EXCLUDED_STATUSES]

    def get_client_status(self, today=None, sla_days=None):
        """One row per taxpayer with open notices, SLA breaches first."""
        sla_days = self.config.get_sla_threshold_days() if sla_days is None else sla_days
        clients = {}
        for n in self.get_open_notices():
            entry = clients.setdefault(n['gstin'], {
                'gstin': n['gstin'],
                'trade_name': n.get('trade_name') or UNREGISTERED_TAXPAYER,
                'open_notices': 0,
                'breached_notices': 0,
                'oldest_check': None,
                'days_since_check': None,
            })
            entry['open_notices'] += 1
            elapsed = days_since(n.get('last_checked_date'), today)
            if elapsed is None or elapsed > sla_days:
                entry['breached_notices'] += 1
            if elapsed is not None and (entry['days_since_check'] is None or elapsed > entry['days_since_check']):
                entry['days_since_check'] = elapsed
                entry['oldest_check'] = n.get('last_checked_date')

        rows = list(clients.values())
        for row in rows:
            row['status'] = 'Breached' if row['breached_notices'] else 'OK'
        rows.sort(key=lambda r: (r['status'] != 'Breached', -(r['days_since_check'] or 0), r['trade_name']))
        return rows

    # ---------------- Dashboard ----------------

    def get_dashboard_stats(self, today=None):
        today = parse_date(today) or date.today()
        notices = self.get_all_notices()
        open_notices = [n for n in notices if n.get('status') not in OPEN_EXCLUDED_STATUSES]

        by_status = {s: 0 for s in NOTICE_STATUSES}
        by_risk = {r: 0 for r in RISK_LEVELS}
        for n in notices:
            by_status[n.get('status')] = by_status.get(n.get('status'), 0) + 1
        for n in open_notices:
            by_risk[n.get('risk_level')] = by_risk.get(n.get('risk_level'), 0) + 1

        overdue = []
        for n in open_notices:
            due = parse_date(n.get('extended_due_date') or n.get('due_date'))
            if due and due < today and n.get('status') not in TERMINAL_STATUSES:
                overdue.append(n)

        conn = self._get_conn()
        try:
            total_paid = conn.execute("SELECT COALESCE(SUM(amount), 0) FROM payments").fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Error summing payments: {e}")
            total_paid = 0
        finally:
            conn.close()

        return {
            'total_notices': len(notices),
            'open_notices': len(open_notices),
            'by_status': by_status,
            'by_risk': by_risk,
            'total_demand': round(sum(to_amount(n.get('demand_amount')) for n in open_notices), 2),
            'total_paid': round(total_paid, 2),
            'overdue_notices': overdue,
            'upcoming_hearings': self.get_upcoming_hearings(7, today),
            'contest_alerts': contest_alerts(open_notices, today),
        }

    # ---------------- Users ----------------

    def get_user_by_username(self, username):
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE username = ?",
                               ((username or "").strip(),)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Error reading user {username}: {e}")
            return None
        finally:
            conn.close()

    def get_all_users(self):
        conn = self._get_conn()
        try:
            rows = conn.execute("""
                SELECT id, username, full_name, role, email, is_active FROM users ORDER BY username
            """).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Error fetching users: {e}")
            return []
        finally:
            conn.close()

    def insert_user(self, username, password_hash, full_name, role, email=None, user=None):
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO users (username, password_hash, full_name, role, email, is_active)
                VALUES (?, ?, ?, ?, ?, 1)
            """, (username, password_hash, full_name, role, email))
            user_id = cursor.lastrowid
            self._write_audit(cursor, 'Auth', user_id, 'Create', f"Created user {username} ({role})", user)
            conn.commit()
            return True, user_id
        except sqlite3.IntegrityError:
            conn.rollback()
            return False, f"Username {username} already exists"
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error creating user {username}: {e}")
            return False, f"Error saving user: {e}"
        finally:
            conn.close()

    def set_user_active(self, user_id, active, user=None):
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE users SET is_active = ? WHERE id = ?", (1 if active else 0, user_id))
            if cursor.rowcount == 0:
                conn.rollback()
                return False, "User not found"
            self._write_audit(cursor, 'Auth', user_id, 'StatusChange',
                              "Activated user" if active else "Deactivated user", user)
            conn.commit()
            return True, user_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error updating user {user_id}: {e}")
            return False, f"Error saving user: {e}"
        finally:
            conn.close()

    def update_user_password(self, user_id, password_hash, user=None):
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT username FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                return False, "User not found"
            cursor.execute("UPDATE users SET password_hash = ? WHERE id = ?", (password_hash, user_id))
            self._write_audit(cursor, 'Auth', user_id, 'Update',
                              f"Password changed for user {row['username']}", user)
            conn.commit()
            return True, user_id
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error changing password for user {user_id}: {e}")
            return False, f"Error saving user: {e}"
        finally:
            conn.close()

    # ---------------- Backup & Restore ----------------

    def backup_database(self, dest_path, user=None):
        """Write a consistent copy of the live database using SQLite's online backup."""
        if os.path.abspath(dest_path) == os.path.abspath(self.db_file):
            return False, "Choose a different file for the backup"
        folder = os.path.dirname(os.path.abspath(dest_path))
        source = target = None
        try:
            os.makedirs(folder, exist_ok=True)
            if os.path.exists(dest_path):
                os.remove(dest_path)
            source = self._get_conn()
            target = sqlite3.connect(dest_path)
            source.backup(target)
            self.log_audit('System', 'BACKUP', 'Create', f"Database backed up to {os.path.basename(dest_path)}",
                           user)
            logger.info(f"Database backed up to {dest_path}")
            return True, dest_path
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Backup failed: {e}")
            return False, f"Backup failed: {e}"
        finally:
            for conn in (source, target):
                if conn is not None:
                    conn.close()

    @staticmethod
    def _check_backup_file(path):
        """Raise sqlite3.DatabaseError unless path is a database with the notice tables."""
        conn = sqlite3.connect(path)
        try:
            rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        finally:
            conn.close()
        missing = BACKUP_REQUIRED_TABLES - {r[0] for r in rows}
        if missing:
            raise sqlite3.DatabaseError(f"missing tables: {', '.join(sorted(missing))}")

    def restore_database(self, source_path, user=None):
        """
        Replace every table with the contents of a backup file. The schema is
        re-applied afterwards so older backups pick up new columns and triggers.
        """
        if not os.path.isfile(source_path):
            return False, "Backup file not found"
        try:
            self._check_backup_file(source_path)
        except sqlite3.Error as e:
            logger.warning(f"Rejected backup file {source_path}: {e}")
            return False, "Restore failed. Invalid backup file format."

        source = target = None
        try:
            source = sqlite3.connect(source_path)
            target = sqlite3.connect(self.db_file)
            source.backup(target)
        except sqlite3.Error as e:
            logger.error(f"Restore failed: {e}")
            return False, f"Restore failed: {e}"
        finally:
            for conn in (source, target):
                if conn is not None:
                    conn.close()

        init_db(self.db_file)
        self.log_audit('System', 'RESTORE', 'Update', f"Database restored from {os.path.basename(source_path)}",
                       user)
        logger.info(f"Database restored from {source_path}")
        return True, source_path

    # ---------------- Notifications ----------------

    def add_notification(self, title, message, notification_type="info", link=None, user_id=None):
        """Insert unless an unread notification with the same link and title exists."""
        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT id FROM notifications
                WHERE is_read = 0 AND title = ? AND COALESCE(link, '') = ?
            """, (title, link or ''))
            if cursor.fetchone():
                return False, "Duplicate notification"
            cursor.execute("""
                INSERT INTO notifications (user_id, title, message, type, link, is_read, created_at)
                VALUES (?, ?, ?, ?, ?, 0, ?)
            """, (user_id, title, message, notification_type, link, self._now()))
            conn.commit()
            return True, cursor.lastrowid
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error adding notification: {e}")
            return False, f"Error saving notification: {e}"
        finally:
            conn.close()

    def get_notifications(self, user_id=None, unread_only=False):
        query = "SELECT * FROM notifications WHERE (user_id IS NULL OR user_id = ?)"
        if unread_only:
            query += " AND is_read = 0"
        query += " ORDER BY id DESC"
        conn = self._get_conn()
        try:
            return [dict(row) for row in conn.execute(query, (user_id,)).fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error fetching notifications: {e}")
            return []
        finally:
            conn.close()

    def mark_notification_read(self, notification_id):
        conn = self._get_conn()
        try:
            conn.execute("UPDATE notifications SET is_read = 1 WHERE id = ?", (notification_id,))
            conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"Error updating notification {notification_id}: {e}")
            return False
        finally:
            conn.close()

    def mark_all_notifications_read(self, user_id=None):
        conn = self._get_conn()
        try:
            conn.execute("UPDATE notifications SET is_read = 1 WHERE user_id IS NULL OR user_id = ?", (user_id,))
            conn.commit()
            return True
        except sqlite3.Error as e:
            logger.error(f"Error updating notifications: {e}")
            return False
        finally:
            conn.close()

    # ---------------- Bulk Import ----------------

    def import_records(self, kind, records, user=None):
        """
        Insert cleaned import rows of one kind ('taxpayers', 'notices',
        'defects' or 'payments') in a single transaction. Invalid or duplicate
        rows are skipped. Returns (True, (imported, skipped)).
        """
        handlers = {
            'taxpayers': self._import_taxpayer,
            'notices': self._import_notice,
            'defects': self._import_defect,
            'payments': self._import_payment,
        }
        if kind not in handlers:
            return False, f"Unknown import type: {kind}"

        conn = self._get_conn()
        try:
            cursor = conn.cursor()
            imported = skipped = 0
            touched_notices = set()
            for record in records:
                try:
                    notice_id = handlers[kind](cursor, record)
                except ValueError as e:
                    logger.warning(f"Skipping {kind} row: {e}")
                    skipped += 1
                    continue
                imported += 1
                if notice_id:
                    touched_notices.add(notice_id)

            if kind == 'defects':
                for notice_id in touched_notices:
                    self._refresh_demand_amount(cursor, notice_id)

            if imported:
                self._write_audit(cursor, 'System', 'IMPORT', 'Create',
                                  f"Imported {imported} {kind}. Skipped {skipped}.", user)
            conn.commit()
            logger.info(f"Imported {imported} {kind}, skipped {skipped}")
            return True, (imported, skipped)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error importing {kind}: {e}")
            return False, f"Error saving {kind}: {e}"
        finally:
            conn.close()

    def _notice_id_for_number(self, cursor, notice_number):
        number = str(notice_number or "").strip()
        if not number:
            raise ValueError("Notice number is required")
        cursor.execute("SELECT id FROM notices WHERE notice_number = ? ORDER BY id DESC LIMIT 1", (number,))
        row = cursor.fetchone()
        if not row:
            raise ValueError(f"Unknown notice number {number}")
        return row[0]

    def _import_taxpayer(self, cursor, record):
        gstin = normalize_gstin(record.get('gstin'))
        if not validate_gstin_format(gstin):
            raise ValueError(f"Invalid GSTIN {record.get('gstin')!r}")
        cursor.execute("SELECT 1 FROM taxpayers WHERE gstin = ?", (gstin,))
        if cursor.fetchone():
            raise ValueError(f"Taxpayer {gstin} already exists")
        self._insert_taxpayer(cursor, {**record, 'gstin': gstin})
        return None

    def _import_notice(self, cursor, record):
        prepared = self._prepare_notice(record)
        cursor.execute("SELECT 1 FROM notices WHERE notice_number = ?", (prepared['notice_number'],))
        if cursor.fetchone():
            raise ValueError(f"Notice {prepared['notice_number']} already exists")
        return self._insert_notice(cursor, prepared)

    def _import_defect(self, cursor, record):
        notice_id = self._notice_id_for_number(cursor, record.get('notice_number'))
        self._insert_defect(cursor, notice_id, record)
        return notice_id

    def _import_payment(self, cursor, record):
        notice_id = self._notice_id_for_number(cursor, record.get('notice_number'))
        prepared = self._prepare_payment(record)
        prepared['defect_id'] = None
        self._insert_payment(cursor, notice_id, prepared)
        return notice_id
