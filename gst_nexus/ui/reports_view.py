import os

from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QComboBox, QPushButton, QTableWidget, QFileDialog

from gst_nexus.services.report_service import MONEY_COLUMNS, REPORT_TYPES, ReportService
from gst_nexus.ui.styles import Styles, Theme
from gst_nexus.ui.ui_helpers import fill_table, make_item, require_permission, setup_table_style, show_result
from gst_nexus.utils.constants import HEAD_FIELDS, MINOR_HEADS, OUTPUT_DIR
from gst_nexus.utils.formatting import format_currency

AMOUNT_COLUMNS = set(MONEY_COLUMNS) | {MINOR_HEADS[f] for f in HEAD_FIELDS}


class ReportsView(QWidget):
    """Client, case, defect-type and status summaries with Excel export."""

    def __init__(self, db, auth):
        super().__init__()
        self.db = db
        self.auth = auth
        self.service = ReportService(db)
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        header = QHBoxLayout()
        title = QLabel("Reports")
        title.setStyleSheet(Styles.get_title_style())
        header.addWidget(title)
        header.addStretch()
        self.report_combo = QComboBox()
        for key, label in REPORT_TYPES.items():
            self.report_combo.addItem(label, key)
        self.report_combo.currentIndexChanged.connect(self.refresh)
        header.addWidget(self.report_combo)
        for text, handler in [("Export Report", self.export_current), ("Export All", self.export_all)]:
            btn = QPushButton(text)
            btn.setStyleSheet(Styles.get_secondary_button_style())
            btn.clicked.connect(handler)
            header.addWidget(btn)
        layout.addLayout(header)

        self.table = QTableWidget()
        layout.addWidget(self.table)

        self.summary_label = QLabel()
        self.summary_label.setStyleSheet(f"color: {Theme.TEXT_SECONDARY};")
        layout.addWidget(self.summary_label)

    def refresh(self):
        df = self.service.build(self.report_combo.currentData())
        setup_table_style(self.table, list(df.columns))
        fill_table(self.table, [
            [make_item(format_currency(value), numeric=True) if column in AMOUNT_COLUMNS else value
             for column, value in row.items()]
            for row in df.to_dict('records')
        ])
        if "Total Demand" in df.columns and not df.empty:
            self.summary_label.setText(f"{len(df)} rows | Total Demand: {format_currency(df['Total Demand'].sum())}")
        else:
            self.summary_label.setText(f"{len(df)} rows")

    def _export(self, report_type, default_name, file_filter="Excel Files (*.xlsx);;CSV Files (*.csv)"):
        if not require_permission(self, self.auth, 'export_data'):
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export Report", os.path.join(OUTPUT_DIR, default_name),
                                              file_filter)
        if path:
            show_result(self, self.service.export_report(report_type, path), f"Report saved to {path}")

    def export_current(self):
        key = self.report_combo.currentData()
        self._export(key, f"GST_Nexus_Report_{key}.xlsx")

    def export_all(self):
        self._export('all', "GST_Nexus_Reports.xlsx", "Excel Files (*.xlsx)")
