import logging
import os

from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTabWidget, QTableWidget,
                             QFileDialog, QMessageBox, QInputDialog, QTextEdit, QGridLayout, QFrame, QDialog,
                             QDialogButtonBox, QTextBrowser)

from gst_nexus.services.contest_deadline import banner_text, evaluate_contest_deadline
from gst_nexus.services.demand_calculator import defect_total, is_waived, row_total
from gst_nexus.services.document_text import DocumentTextService
from gst_nexus.services.timeline_report import TimelineReport
from gst_nexus.database.db_manager import SYNC_FIELDS
from gst_nexus.ui.dialogs import (DefectDialog, HearingDialog, InterestDialog, NoticeFormDialog,
                                  PaymentMatrixDialog, SyncDialog, TimesheetDialog)
from gst_nexus.ui.styles import Styles, Theme
from gst_nexus.ui.ui_helpers import (confirm, fill_table, make_item, require_permission, risk_color,
                                     selected_row_id, setup_table_style, show_result)
from gst_nexus.utils.constants import DOCUMENT_CATEGORIES, OUTPUT_DIR, TAX_HEADS
from gst_nexus.utils.formatting import format_currency, format_date, format_hours

logger = logging.getLogger(__name__)


def _button_row(layout, buttons):
    row = QHBoxLayout()
    for text, handler, style in buttons:
        btn = QPushButton(text)
        btn.clicked.connect(handler)
        if style:
            btn.setStyleSheet(style)
        row.addWidget(btn)
    row.addStretch()
    layout.addLayout(row)
    return row


class NoticeDetail(QWidget):
    """Case file for one notice: header, contest banner and one tab per sub-ledger."""

    def __init__(self, db, auth, back_callback, open_notice_callback):
        super().__init__()
        self.db = db
        self.auth = auth
        self.back_callback = back_callback
        self.open_notice_callback = open_notice_callback
        self.notice_id = None
        self.notice = None
        self.timeline = TimelineReport(db)
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 20, 24, 20)

        header = QHBoxLayout()
        back_btn = QPushButton("< Back")
        back_btn.setStyleSheet(Styles.get_secondary_button_style())
        back_btn.clicked.connect(self.back_callback)
        header.addWidget(back_btn)
        self.title_label = QLabel()
        self.title_label.setStyleSheet(Styles.get_title_style())
        header.addWidget(self.title_label)
        header.addStretch()
        for text, handler in [("Edit", self.edit_notice), ("Mark Checked", self.mark_checked),
                              ("Sync ARN Group", self.sync_linked)]:
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            header.addWidget(btn)
        layout.addLayout(header)

        self.banner = QLabel()
        self.banner.setVisible(False)
        layout.addWidget(self.banner)

        summary = QFrame()
        summary.setStyleSheet(Styles.get_card_style())
        self.summary_grid = QGridLayout(summary)
        self.summary_labels = {}
        fields = [("gstin", "GSTIN"), ("trade_name", "Taxpayer"), ("arn", "ARN"), ("notice_type", "Type"),
                  ("period", "Period"), ("section", "Section"), ("date_of_issue", "Issued"),
                  ("due_date", "Due"), ("status", "Status"), ("risk_level", "Risk"),
                  ("assigned_to", "Assigned To"), ("last_checked_date", "Last Checked"),
                  ("demand_amount", "Demand"), ("total_paid", "Paid"), ("outstanding", "Outstanding")]
        for i, (key, label) in enumerate(fields):
            caption = QLabel(label)
            caption.setStyleSheet(f"color: {Theme.TEXT_SECONDARY}; border: none;")
            value = QLabel("-")
            value.setStyleSheet("font-weight: bold; border: none;")
            self.summary_grid.addWidget(caption, (i // 5) * 2, i % 5)
            self.summary_grid.addWidget(value, (i // 5) * 2 + 1, i % 5)
            self.summary_labels[key] = value
        layout.addWidget(summary)

        self.tabs = QTabWidget()
        self.tabs.addTab(self._build_defects_tab(), "Defects")
        self.tabs.addTab(self._build_payments_tab(), "Payments")
        self.tabs.addTab(self._build_hearings_tab(), "Hearings")
        self.tabs.addTab(self._build_documents_tab(), "Documents")
        self.tabs.addTab(self._build_timesheet_tab(), "Time Sheet")
        self.tabs.addTab(self._build_linkage_tab(), "Linked Cases")
        self.tabs.addTab(self._build_audit_tab(), "Audit Log")
        layout.addWidget(self.tabs)

    # ---------------- Tabs ----------------

    def _build_defects_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        _button_row(layout, [
            ("Add Defect", self.add_defect, None),
            ("Edit", self.edit_defect, Styles.get_secondary_button_style()),
            ("Calculate Interest", self.calculate_interest, Styles.get_secondary_button_style()),
            ("Recalculate All", self.recalculate_all, Styles.get_secondary_button_style()),
            ("Waive", self.waive_defect, Styles.get_secondary_button_style()),
            ("Revoke Waiver", self.revoke_waiver, Styles.get_secondary_button_style()),
            ("Delete", self.delete_defect, Styles.get_danger_button_style()),
        ])
        self.defects_table = QTableWidget()
        setup_table_style(self.defects_table, ["Defect", "Section", "IGST", "CGST", "SGST", "Cess",
                                               "Total", "Paid", "Balance", "Status"])
        layout.addWidget(self.defects_table)
        return tab

    def _build_payments_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        _button_row(layout, [
            ("Record Payment", self.record_payment, None),
            ("Delete", self.delete_payment, Styles.get_danger_button_style()),
        ])
        self.payments_table = QTableWidget()
        setup_table_style(self.payments_table, ["Date", "Challan", "Reference", "Major Head", "Minor Head",
                                                "Amount", "Defect", "Bank"])
        layout.addWidget(self.payments_table)
        self.paid_by_head_label = QLabel()
        layout.addWidget(self.paid_by_head_label)
        return tab

    def _build_hearings_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        _button_row(layout, [
            ("Schedule Hearing", self.add_hearing, None),
            ("Edit", self.edit_hearing, Styles.get_secondary_button_style()),
            ("Delete", self.delete_hearing, Styles.get_danger_button_style()),
        ])
        self.hearings_table = QTableWidget()
        setup_table_style(self.hearings_table, ["Date", "Time", "Type", "Venue", "Attendees", "Status", "Minutes"])
        self.hearings_table.doubleClicked.connect(self.edit_hearing)
        layout.addWidget(self.hearings_table)
        return tab

    def _build_documents_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        _button_row(layout, [
            ("Upload", self.upload_document, None),
            ("Save Copy", self.save_document, Styles.get_secondary_button_style()),
            ("Edit Text", self.edit_document_text, Styles.get_secondary_button_style()),
            ("Delete", self.delete_document, Styles.get_danger_button_style()),
            ("Search All Documents...", self.search_all_documents, Styles.get_secondary_button_style()),
        ])
        self.documents_table = QTableWidget()
        setup_table_style(self.documents_table, ["File", "Category", "Type", "Size", "Uploaded", "Text"])
        layout.addWidget(self.documents_table)
        return tab

    def _build_timesheet_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        _button_row(layout, [
            ("Log Time", self.log_time, None),
            ("Delete", self.delete_time, Styles.get_danger_button_style()),
        ])
        self.timesheet_summary = QLabel()
        layout.addWidget(self.timesheet_summary)
        self.timesheet_table = QTableWidget()
        setup_table_style(self.timesheet_table, ["Date", "Team Member", "Hours", "Work Done"])
        layout.addWidget(self.timesheet_table)
        return tab

    def _build_linkage_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        _button_row(layout, [
            ("Open", lambda: self._open_from(self.related_table), None),
            ("View Timeline", self.view_timeline, Styles.get_secondary_button_style()),
            ("Export Timeline PDF", self.export_timeline, Styles.get_secondary_button_style()),
        ])
        self.related_table = QTableWidget()
        setup_table_style(self.related_table, ["Notice Number", "Relation", "Type", "Status", "Issued"])
        self.related_table.doubleClicked.connect(lambda: self._open_from(self.related_table))
        layout.addWidget(self.related_table)
        return tab

    def _build_audit_tab(self):
        tab = QWidget()
        layout = QVBoxLayout(tab)
        self.audit_table = QTableWidget()
        setup_table_style(self.audit_table, ["Timestamp", "User", "Entity", "Action", "Details"])
        layout.addWidget(self.audit_table)
        return tab

    # ---------------- Loading ----------------

    def load_notice(self, notice_id):
        self.notice_id = notice_id
        self.refresh()

    def refresh(self):
        self.notice = self.db.get_notice(self.notice_id) if self.notice_id else None
        if not self.notice:
            return
        n = self.notice
        self.title_label.setText(f"{n['notice_number']} ({n.get('notice_type') or 'Notice'})")
        taxpayer = self.db.get_notice_taxpayer(n)
        financials = self.db.get_notice_financials(self.notice_id)

        values = {**n, 'trade_name': taxpayer.get('trade_name'), **financials}
        for key, label in self.summary_labels.items():
            value = values.get(key)
            if key in ('demand_amount', 'total_paid', 'outstanding'):
                value = format_currency(value)
            elif key in ('date_of_issue', 'due_date', 'last_checked_date'):
                value = format_date(value)
            label.setText(str(value) if value not in (None, "") else "-")
        self.summary_labels['risk_level'].setStyleSheet(
            f"font-weight: bold; border: none; color: {risk_color(n.get('risk_level'))};")

        contest = evaluate_contest_deadline(n)
        text = banner_text(contest)
        self.banner.setVisible(bool(text))
        if text:
            self.banner.setText(text)
            self.banner.setStyleSheet(Styles.get_banner_style(contest['level']))

        self.refresh_defects()
        self.refresh_payments(financials)
        self.refresh_hearings()
        self.refresh_documents()
        self.refresh_timesheet()
        self.refresh_linkage()
        self.refresh_audit()

    def refresh_defects(self):
        balances = {b['defect_id']: b for b in self.db.get_defect_balances(self.notice_id)}
        rows = []
        for d in self.db.get_defects(self.notice_id):
            bal = balances.get(d['id'], {})
            waived = is_waived(d)
            color = Theme.TEXT_SECONDARY if waived else None
            rows.append([make_item(d['defect_type'], d['id'], color=color), d.get('section') or ""]
                        + [make_item(format_currency(row_total(d[h])), numeric=True) for h in TAX_HEADS]
                        + [make_item(format_currency(defect_total(d)), numeric=True, color=color),
                           make_item(format_currency(bal.get('paid')), numeric=True),
                           make_item(format_currency(bal.get('balance')), numeric=True),
                           make_item(d.get('status') or "Active", color=color)])
        fill_table(self.defects_table, rows)

    def refresh_payments(self, financials):
        defects = {d['id']: d['defect_type'] for d in self.db.get_defects(self.notice_id)}
        fill_table(self.payments_table, [
            [make_item(format_date(p['payment_date']), p['id']), p.get('challan_number') or "",
             p.get('payment_reference_number') or "", p['major_head'], p['minor_head'],
             make_item(format_currency(p['amount']), numeric=True),
             defects.get(p.get('defect_id'), "Unallocated"), p.get('bank_name') or ""]
            for p in self.db.get_payments(self.notice_id)
        ])
        parts = [f"{head}: {format_currency(amount)}" for head, amount in financials['paid_by_head'].items() if amount]
        self.paid_by_head_label.setText(" | ".join(parts) or "No payments recorded")

    def refresh_hearings(self):
        fill_table(self.hearings_table, [
            [make_item(format_date(h['date']), h['id']), h.get('time') or "", h.get('type') or "",
             h.get('venue') or "", h.get('attendees') or "", h.get('status') or "", h.get('minutes') or ""]
            for h in self.db.get_hearings(self.notice_id)
        ])

    def refresh_documents(self):
        fill_table(self.documents_table, [
            [make_item(d['file_name'], d['id']), d.get('category') or "", d.get('file_type') or "",
             make_item(f"{(d.get('size') or 0) / 1024:.1f} KB", numeric=True), format_date(d.get('upload_date')),
             "Yes" if d.get('ocr_text') else "No"]
            for d in self.db.get_documents(self.notice_id)
        ])

    def refresh_timesheet(self):
        summary = self.db.get_timesheet_summary(self.notice_id)
        text = f"Spent {format_hours(summary['hours_spent'])}"
        if summary['budgeted_hours']:
            text += (f" of {format_hours(summary['budgeted_hours'])} budgeted "
                     f"({summary['utilisation_pct']}%)")
            if summary['over_budget']:
                text += " - OVER BUDGET"
        self.timesheet_summary.setText(text)
        fill_table(self.timesheet_table, [
            [make_item(format_date(t['date']), t['id']), t['team_member'],
             make_item(format_hours(t['hours_spent']), numeric=True), t.get('description') or ""]
            for t in self.db.get_timesheets(self.notice_id)
        ])

    def refresh_linkage(self):
        siblings = [dict(n, relation="Same ARN") for n in self.db.get_notices_by_arn(self.notice.get('arn'))
                    if n['id'] != self.notice_id] if self.notice.get('arn') else []
        rows = siblings + self.db.get_related_notices(self.notice_id)
        fill_table(self.related_table, [
            [make_item(n['notice_number'], n['id']), n['relation'], n.get('notice_type') or "",
             n.get('status') or "", format_date(n.get('date_of_issue'))]
            for n in rows
        ])

    def refresh_audit(self):
        fill_table(self.audit_table, [
            [a['timestamp'], a.get('user') or "", a['entity_type'], a['action'], a.get('details') or ""]
            for a in self.db.get_audit_trail(notice_id=self.notice_id)
        ])

    # ---------------- Notice actions ----------------

    def _can_edit(self):
        return require_permission(self, self.auth, 'edit_notices')

    def edit_notice(self):
        if not self.notice or not self._can_edit():
            return
        dialog = NoticeFormDialog(self.db, self.notice, self)
        if dialog.exec():
            if show_result(self, self.db.update_notice(self.notice_id, dialog.get_data())):
                self.refresh()

    def mark_checked(self):
        if self.notice and show_result(self, self.db.mark_notice_checked(self.notice_id), "Marked as checked today."):
            self.refresh()

    def sync_linked(self):
        if not self.notice or not self._can_edit():
            return
        if not self.notice.get('arn'):
            QMessageBox.information(self, "Sync", "This notice has no ARN.")
            return
        siblings = [n for n in self.db.get_notices_by_arn(self.notice['arn']) if n['id'] != self.notice_id]
        if not siblings:
            QMessageBox.information(self, "Sync", "No other notices share this ARN.")
            return
        dialog = SyncDialog(SYNC_FIELDS, len(siblings), self)
        if dialog.exec():
            success, payload = self.db.sync_linked_notices(self.notice_id, dialog.selected_fields())
            if show_result(self, (success, payload), f"Updated {payload} linked notice(s)." if success else None):
                self.refresh()

    # ---------------- Defect actions ----------------

    def add_defect(self):
        if not self._can_edit():
            return
        dialog = DefectDialog(self.db, parent=self)
        if dialog.exec() and show_result(self, self.db.add_defect(self.notice_id, dialog.get_data())):
            self.refresh()

    def edit_defect(self):
        defect_id = selected_row_id(self.defects_table)
        if defect_id is None or not self._can_edit():
            return
        dialog = DefectDialog(self.db, self.db.get_defect(defect_id), self)
        if dialog.exec() and show_result(self, self.db.update_defect(defect_id, dialog.get_data())):
            self.refresh()

    def delete_defect(self):
        defect_id = selected_row_id(self.defects_table)
        if defect_id is None or not self._can_edit():
            return
        if confirm(self, "Delete Defect", "Delete this defect? Linked payments become unallocated."):
            show_result(self, self.db.delete_defect(defect_id))
            self.refresh()

    def calculate_interest(self):
        defect_id = selected_row_id(self.defects_table)
        if defect_id is None or not self._can_edit():
            return
        defect = self.db.get_defect(defect_id)
        start = self.notice.get('due_date') or self.notice.get('date_of_issue')
        dialog = InterestDialog(defect, self.db.config.get_default_interest_rate(), start, self)
        if dialog.exec():
            data = dialog.get_data()
            result = self.db.recalculate_defect_interest(defect_id, data['rate'], data['from_date'], data['to_date'])
            if show_result(self, result):
                self.refresh()

    def recalculate_all(self):
        if not self._can_edit():
            return
        rate = self.db.config.get_default_interest_rate()
        if confirm(self, "Recalculate Interest",
                   f"Recalculate interest on every defect at {rate}% up to today?"):
            success, payload = self.db.recalculate_notice_interest(self.notice_id, rate)
            show_result(self, (success, payload), f"Interest updated on {payload} defect(s)." if success else None)
            self.refresh()

    def waive_defect(self):
        defect_id = selected_row_id(self.defects_table)
        if defect_id is None or not self._can_edit():
            return
        reason, ok = QInputDialog.getText(self, "Waive Defect", "Reason for waiver:")
        if ok and show_result(self, self.db.waive_defect(defect_id, reason)):
            self.refresh()

    def revoke_waiver(self):
        defect_id = selected_row_id(self.defects_table)
        if defect_id is not None and self._can_edit() and show_result(self, self.db.revoke_waiver(defect_id)):
            self.refresh()

    # ---------------- Payment actions ----------------

    def record_payment(self):
        if not self._can_edit():
            return
        dialog = PaymentMatrixDialog(self.db.get_defects(self.notice_id), self)
        if dialog.exec():
            data = dialog.get_data()
            result = self.db.record_payment_matrix(
                self.notice_id, data['matrix'], data['challan_number'], payment_date=data['payment_date'],
                bank_name=data['bank_name'], reference_number=data['reference_number'],
                defect_id=data['defect_id'], notes=data['notes'])
            if show_result(self, result):
                self.refresh()

    def delete_payment(self):
        payment_id = selected_row_id(self.payments_table)
        if payment_id is not None and self._can_edit() and confirm(self, "Delete Payment", "Delete this payment?"):
            show_result(self, self.db.delete_payment(payment_id))
            self.refresh()

    # ---------------- Hearing actions ----------------

    def add_hearing(self):
        if not self._can_edit():
            return
        dialog = HearingDialog(parent=self)
        if dialog.exec() and show_result(self, self.db.add_hearing(self.notice_id, dialog.get_data())):
            self.refresh()

    def edit_hearing(self):
        hearing_id = selected_row_id(self.hearings_table)
        if hearing_id is None or not self._can_edit():
            return
        dialog = HearingDialog(self.db.get_hearing(hearing_id), self)
        if dialog.exec() and show_result(self, self.db.update_hearing(hearing_id, dialog.get_data())):
            self.refresh()

    def delete_hearing(self):
        hearing_id = selected_row_id(self.hearings_table)
        if hearing_id is not None and self._can_edit() and confirm(self, "Delete Hearing", "Delete this hearing?"):
            show_result(self, self.db.delete_hearing(hearing_id))
            self.refresh()

    # ---------------- Document actions ----------------

    def upload_document(self):
        if not self._can_edit():
            return
        path, _ = QFileDialog.getOpenFileName(self, "Upload Document", "",
                                              "Documents (*.pdf *.png *.jpg *.jpeg *.xlsx *.docx);;All Files (*)")
        if not path:
            return
        category, ok = QInputDialog.getItem(self, "Category", "Document category:", DOCUMENT_CATEGORIES, 0, False)
        if not ok:
            return
        result = self.db.add_document_from_file(self.notice_id, path, category)
        if show_result(self, result):
            self.warn_other_gstins(result[1])
            self.refresh()

    def warn_other_gstins(self, document_id):
        doc = self.db.get_document(document_id) or {}
        others = DocumentTextService.other_gstins(doc.get('ocr_text'), self.notice.get('gstin'))
        if others:
            QMessageBox.warning(self, "Check Document",
                                f"{doc['file_name']} mentions other GSTINs: {', '.join(others)}.\n"
                                f"Make sure it belongs to this notice.")

    def search_all_documents(self):
        query, ok = QInputDialog.getText(self, "Search Documents", "File name or text contains:")
        if not ok or not query.strip():
            return
        results = self.db.search_documents(query)
        dialog = QDialog(self)
        dialog.setWindowTitle(f"Documents matching '{query.strip()}'")
        dialog.resize(720, 420)
        layout = QVBoxLayout(dialog)
        table = QTableWidget()
        setup_table_style(table, ["Notice", "File", "Category", "Uploaded"])
        fill_table(table, [
            [make_item(r['notice_number'], r['notice_id']), r['file_name'], r.get('category') or "",
             format_date(r.get('upload_date'))]
            for r in results
        ])
        layout.addWidget(QLabel(f"{len(results)} document(s) found. Double-click to open the notice."))
        layout.addWidget(table)

        def open_result():
            notice_id = selected_row_id(table)
            if notice_id is not None:
                dialog.accept()
                self.open_notice_callback(notice_id)

        table.doubleClicked.connect(open_result)
        dialog.exec()

    def save_document(self):
        document_id = selected_row_id(self.documents_table)
        if document_id is None:
            return
        doc = self.db.get_document(document_id)
        path, _ = QFileDialog.getSaveFileName(self, "Save Copy", doc['file_name'])
        if not path:
            return
        try:
            with open(path, 'wb') as f:
                f.write(self.db.get_document_data(document_id) or b"")
            QMessageBox.information(self, "Saved", f"Saved to {path}")
        except OSError as e:
            QMessageBox.warning(self, "Error", f"Could not save file: {e}")

    def edit_document_text(self):
        document_id = selected_row_id(self.documents_table)
        if document_id is None or not self._can_edit():
            return
        doc = self.db.get_document(document_id)
        dialog = QDialog(self)
        dialog.setWindowTitle(f"Text - {doc['file_name']}")
        dialog.resize(640, 480)
        layout = QVBoxLayout(dialog)
        editor = QTextEdit(doc.get('ocr_text') or "")
        layout.addWidget(editor)
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(dialog.accept)
        buttons.rejected.connect(dialog.reject)
        layout.addWidget(buttons)
        if dialog.exec() and show_result(self, self.db.update_document_ocr_text(document_id, editor.toPlainText())):
            self.refresh()

    def delete_document(self):
        document_id = selected_row_id(self.documents_table)
        if document_id is not None and self._can_edit() and confirm(self, "Delete Document", "Delete this document?"):
            show_result(self, self.db.delete_document(document_id))
            self.refresh()

    # ---------------- Time sheet actions ----------------

    def log_time(self):
        dialog = TimesheetDialog(self.db.current_user, self)
        if dialog.exec() and show_result(self, self.db.add_timesheet_entry(self.notice_id, dialog.get_data())):
            self.refresh()

    def delete_time(self):
        entry_id = selected_row_id(self.timesheet_table)
        if entry_id is not None and confirm(self, "Delete Entry", "Delete this time entry?"):
            show_result(self, self.db.delete_timesheet_entry(entry_id))
            self.refresh()

    # ---------------- Linkage actions ----------------

    def _open_from(self, table):
        notice_id = selected_row_id(table)
        if notice_id is not None:
            self.open_notice_callback(notice_id)

    def _case_id(self):
        return self.notice.get('arn') or self.notice.get('linked_case_id') if self.notice else None

    def view_timeline(self):
        arn = self._case_id()
        if not arn:
            QMessageBox.information(self, "Timeline", "This notice has no ARN.")
            return
        dialog = QDialog(self)
        dialog.setWindowTitle(f"Case Timeline - {arn}")
        dialog.resize(900, 600)
        layout = QVBoxLayout(dialog)
        browser = QTextBrowser()
        browser.setHtml(self.timeline.render_html(arn))
        layout.addWidget(browser)
        dialog.exec()

    def export_timeline(self):
        arn = self._case_id()
        if not arn or not require_permission(self, self.auth, 'export_data'):
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export Timeline", os.path.join(OUTPUT_DIR, f"timeline_{arn}.pdf"),
                                              "PDF (*.pdf)")
        if path:
            show_result(self, self.timeline.export_pdf(arn, path), f"Timeline saved to {os.path.basename(path)}")
