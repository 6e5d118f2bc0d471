from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTableWidget
from PyQt6.QtCore import Qt

from gst_nexus.ui.styles import Styles, Theme
from gst_nexus.ui.ui_helpers import fill_table, make_item, setup_table_style, show_result
from gst_nexus.utils.formatting import format_date


class ClientStatusView(QWidget):
    """Review SLA per taxpayer: who hasn't been looked at recently."""

    HEADERS = ["GSTIN", "Trade Name", "Open Notices", "Breached", "Oldest Check", "Days Since", "Status"]

    def __init__(self, db):
        super().__init__()
        self.db = db
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        header = QHBoxLayout()
        title = QLabel("Client Status")
        title.setStyleSheet(Styles.get_title_style())
        header.addWidget(title)
        header.addStretch()
        self.sla_label = QLabel()
        self.sla_label.setStyleSheet(f"color: {Theme.TEXT_SECONDARY};")
        header.addWidget(self.sla_label)
        check_btn = QPushButton("Mark Client Checked")
        check_btn.clicked.connect(self.mark_checked)
        header.addWidget(check_btn)
        layout.addLayout(header)

        self.table = QTableWidget()
        setup_table_style(self.table, self.HEADERS)
        layout.addWidget(self.table)

    def refresh(self):
        self.sla_label.setText(f"SLA: review every {self.db.config.get_sla_threshold_days()} days")
        rows = []
        for c in self.db.get_client_status():
            color = Theme.DANGER if c['status'] == 'Breached' else Theme.SUCCESS
            days = c['days_since_check']
            rows.append([make_item(c['gstin'], c['gstin']), c['trade_name'],
                         make_item(c['open_notices'], numeric=True), make_item(c['breached_notices'], numeric=True),
                         format_date(c['oldest_check']), make_item("Never" if days is None else days, numeric=True),
                         make_item(c['status'], color=color)])
        fill_table(self.table, rows)

    def mark_checked(self):
        row = self.table.currentRow()
        if row < 0:
            return
        gstin = self.table.item(row, 0).data(Qt.ItemDataRole.UserRole)
        success, payload = self.db.mark_client_checked(gstin)
        if show_result(self, (success, payload), f"Marked {payload} open notice(s) as checked." if success else None):
            self.refresh()
