import logging

from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QComboBox, QPushButton,
                             QTableWidget, QFileDialog, QMessageBox, QInputDialog)

from gst_nexus.services.import_service import IMPORT_TYPES, ImportService
from gst_nexus.ui.dialogs import NoticeFormDialog
from gst_nexus.ui.styles import Styles, Theme
from gst_nexus.ui.ui_helpers import (confirm, fill_table, make_item, require_permission, risk_color,
                                     selected_row_id, setup_table_style, show_result)
from gst_nexus.utils.constants import NOTICE_STATUSES
from gst_nexus.utils.formatting import format_currency, format_date

logger = logging.getLogger(__name__)


class NoticeRegister(QWidget):
    HEADERS = ["Notice Number", "GSTIN", "Trade Name", "Type", "Period", "Issued", "Due",
               "Status", "Risk", "Demand", "Assigned To"]

    def __init__(self, db, auth, open_notice_callback):
        super().__init__()
        self.db = db
        self.auth = auth
        self.open_notice_callback = open_notice_callback
        self.importer = ImportService(db)
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        title = QLabel("Notice Register")
        title.setStyleSheet(Styles.get_title_style())
        layout.addWidget(title)

        filters = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search notice number, ARN, GSTIN or trade name...")
        self.search_input.textChanged.connect(self.refresh)
        filters.addWidget(self.search_input, 3)
        self.status_filter = QComboBox()
        self.status_filter.addItem("All Statuses")
        self.status_filter.addItems(self.db.get_config_value('notice_statuses') or NOTICE_STATUSES)
        self.status_filter.currentIndexChanged.connect(self.refresh)
        filters.addWidget(self.status_filter, 1)
        layout.addLayout(filters)

        actions = QHBoxLayout()
        for text, handler, style in [
            ("New Notice", self.new_notice, None),
            ("Open", self.open_selected, Styles.get_secondary_button_style()),
            ("Delete", self.delete_selected, Styles.get_danger_button_style()),
        ]:
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            if style:
                btn.setStyleSheet(style)
            actions.addWidget(btn)
        actions.addStretch()
        for text, handler in [("Import...", self.import_data), ("Download Template", self.download_template),
                              ("Export Register", self.export_register)]:
            btn = QPushButton(text)
            btn.setStyleSheet(Styles.get_secondary_button_style())
            btn.clicked.connect(handler)
            actions.addWidget(btn)
        layout.addLayout(actions)

        self.table = QTableWidget()
        setup_table_style(self.table, self.HEADERS)
        self.table.doubleClicked.connect(self.open_selected)
        layout.addWidget(self.table)

        self.count_label = QLabel()
        self.count_label.setStyleSheet(f"color: {Theme.TEXT_SECONDARY};")
        layout.addWidget(self.count_label)

    def current_notices(self):
        status = self.status_filter.currentText()
        return self.db.get_all_notices(
            status=None if status == "All Statuses" else status,
            search=self.search_input.text().strip() or None,
        )

    def refresh(self):
        notices = self.current_notices()
        fill_table(self.table, [
            [make_item(n['notice_number'], n['id']), n['gstin'], n.get('trade_name') or "",
             n.get('notice_type') or "", n.get('period') or "", format_date(n.get('date_of_issue')),
             format_date(n.get('extended_due_date') or n.get('due_date')), n.get('status') or "",
             make_item(n.get('risk_level'), color=risk_color(n.get('risk_level'))),
             make_item(format_currency(n.get('demand_amount')), numeric=True), n.get('assigned_to') or ""]
            for n in notices
        ])
        self.count_label.setText(f"{len(notices)} notice(s)")

    def new_notice(self):
        if not require_permission(self, self.auth, 'create_notices'):
            return
        dialog = NoticeFormDialog(self.db, parent=self)
        if dialog.exec():
            result = self.db.create_notice(dialog.get_data())
            if show_result(self, result):
                self.refresh()
                self.open_notice_callback(result[1])

    def open_selected(self):
        notice_id = selected_row_id(self.table)
        if notice_id is None:
            QMessageBox.information(self, "Notices", "Select a notice first.")
            return
        self.open_notice_callback(notice_id)

    def delete_selected(self):
        notice_id = selected_row_id(self.table)
        if notice_id is None or not require_permission(self, self.auth, 'delete_notices'):
            return
        notice = self.db.get_notice(notice_id)
        if notice and confirm(self, "Delete Notice",
                              f"Delete {notice['notice_number']} with all its defects, payments, hearings, "
                              f"documents and time sheets?"):
            show_result(self, self.db.delete_notice(notice_id), "Notice deleted.")
            self.refresh()

    def import_data(self):
        if not require_permission(self, self.auth, 'create_notices'):
            return
        import_type, ok = QInputDialog.getItem(self, "Import", "What are you importing?", list(IMPORT_TYPES), 1, False)
        if not ok:
            return
        path, _ = QFileDialog.getOpenFileName(self, "Select File", "", "Spreadsheets (*.xlsx *.xls *.csv)")
        if not path:
            return
        success, payload = self.importer.import_file(import_type, path)
        if success:
            imported, skipped = payload
            QMessageBox.information(self, "Import", f"Imported {imported} {import_type}. Skipped {skipped}.")
            self.refresh()
        else:
            QMessageBox.warning(self, "Import", str(payload))

    def download_template(self):
        import_type, ok = QInputDialog.getItem(self, "Template", "Template for:", list(IMPORT_TYPES), 1, False)
        if not ok:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save Template", f"{import_type}_template.xlsx",
                                              "Excel (*.xlsx)")
        if path:
            show_result(self, self.importer.write_template(import_type, path), f"Template saved to {path}")

    def export_register(self):
        if not require_permission(self, self.auth, 'export_data'):
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export Register", "notice_register.xlsx",
                                              "Excel (*.xlsx);;CSV (*.csv)")
        if path:
            show_result(self, self.importer.export_register(path, self.current_notices()), f"Register exported to {path}")
