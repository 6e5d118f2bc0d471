from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QComboBox, QPushButton, QTableWidget

from gst_nexus.ui.styles import Styles
from gst_nexus.ui.ui_helpers import fill_table, make_item, setup_table_style
from gst_nexus.utils.constants import AUDIT_ENTITY_TYPES


class AuditTrailView(QWidget):
    """Read-only view of the append-only audit log."""

    LIMIT = 500

    def __init__(self, db):
        super().__init__()
        self.db = db
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        header = QHBoxLayout()
        title = QLabel("Audit Trail")
        title.setStyleSheet(Styles.get_title_style())
        header.addWidget(title)
        header.addStretch()
        self.entity_filter = QComboBox()
        self.entity_filter.addItem("All Entities")
        self.entity_filter.addItems(AUDIT_ENTITY_TYPES)
        self.entity_filter.currentIndexChanged.connect(self.refresh)
        header.addWidget(self.entity_filter)
        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(self.refresh)
        header.addWidget(refresh_btn)
        layout.addLayout(header)

        self.table = QTableWidget()
        setup_table_style(self.table, ["Timestamp", "User", "Entity", "Entity ID", "Action", "Details"])
        layout.addWidget(self.table)

    def refresh(self):
        entity = self.entity_filter.currentText()
        logs = self.db.get_audit_trail(entity_type=None if entity == "All Entities" else entity, limit=self.LIMIT)
        fill_table(self.table, [
            [make_item(a['timestamp'], a['id']), a.get('user') or "", a['entity_type'], a.get('entity_id') or "",
             a['action'], a.get('details') or ""]
            for a in logs
        ])
