from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QLineEdit, QPushButton, QTableWidget

from gst_nexus.ui.dialogs import TaxpayerDialog
from gst_nexus.ui.styles import Styles
from gst_nexus.ui.ui_helpers import (confirm, fill_table, make_item, require_permission, selected_row_id,
                                     setup_table_style, show_result)


class TaxpayerMaster(QWidget):
    HEADERS = ["GSTIN", "Trade Name", "Legal Name", "State", "Mobile", "Email"]

    def __init__(self, db, auth):
        super().__init__()
        self.db = db
        self.auth = auth
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        title = QLabel("Taxpayer Master")
        title.setStyleSheet(Styles.get_title_style())
        layout.addWidget(title)

        actions = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search by GSTIN, trade name or legal name...")
        self.search_input.textChanged.connect(self.refresh)
        actions.addWidget(self.search_input, 3)
        for text, handler, style in [("Add", self.add_taxpayer, None),
                                     ("Edit", self.edit_taxpayer, Styles.get_secondary_button_style()),
                                     ("Delete", self.delete_taxpayer, Styles.get_danger_button_style())]:
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            if style:
                btn.setStyleSheet(style)
            actions.addWidget(btn)
        layout.addLayout(actions)

        self.table = QTableWidget()
        setup_table_style(self.table, self.HEADERS)
        self.table.doubleClicked.connect(self.edit_taxpayer)
        layout.addWidget(self.table)

    def refresh(self):
        query = self.search_input.text().strip()
        taxpayers = self.db.search_taxpayers(query) if query else self.db.get_all_taxpayers()
        fill_table(self.table, [
            [make_item(t['gstin'], t['id']), t.get('trade_name') or "", t.get('legal_name') or "",
             t.get('state_code') or "", t.get('mobile') or "", t.get('email') or ""]
            for t in taxpayers
        ])

    def add_taxpayer(self):
        if not require_permission(self, self.auth, 'create_notices'):
            return
        dialog = TaxpayerDialog(parent=self)
        if dialog.exec() and show_result(self, self.db.add_taxpayer(dialog.get_data()), "Taxpayer added."):
            self.refresh()

    def edit_taxpayer(self):
        taxpayer_id = selected_row_id(self.table)
        if taxpayer_id is None or not require_permission(self, self.auth, 'edit_notices'):
            return
        dialog = TaxpayerDialog(self.db.get_taxpayer_by_id(taxpayer_id), self)
        if dialog.exec() and show_result(self, self.db.update_taxpayer(taxpayer_id, dialog.get_data())):
            self.refresh()

    def delete_taxpayer(self):
        taxpayer_id = selected_row_id(self.table)
        if taxpayer_id is None or not require_permission(self, self.auth, 'delete_notices'):
            return
        if confirm(self, "Delete Taxpayer", "Delete this taxpayer? Notices keep their GSTIN."):
            show_result(self, self.db.delete_taxpayer(taxpayer_id))
            self.refresh()
