from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QFrame, QGridLayout,
                             QGraphicsDropShadowEffect, QTableWidget, QPushButton)
from PyQt6.QtCore import Qt

from gst_nexus.services.contest_deadline import banner_text
from gst_nexus.ui.styles import Theme
from gst_nexus.ui.ui_helpers import fill_table, make_item, setup_table_style
from gst_nexus.utils.formatting import format_currency, format_date


class StatCard(QFrame):
    def __init__(self, title, color):
        super().__init__()
        self.setFixedHeight(110)
        self.setStyleSheet(f"""
            QFrame {{
                background-color: {Theme.SURFACE};
                border-radius: 12px;
                border: 1px solid {Theme.BORDER};
            }}
        """)
        shadow = QGraphicsDropShadowEffect(self)
        shadow.setBlurRadius(15)
        shadow.setXOffset(0)
        shadow.setYOffset(4)
        shadow.setColor(Qt.GlobalColor.lightGray)
        self.setGraphicsEffect(shadow)

        layout = QVBoxLayout(self)
        strip = QFrame()
        strip.setFixedHeight(6)
        strip.setStyleSheet(f"background-color: {color}; border-radius: 3px; border: none;")
        layout.addWidget(strip)

        self.value_label = QLabel("0")
        self.value_label.setStyleSheet(f"font-size: 22px; font-weight: bold; color: {color}; border: none;")
        layout.addWidget(self.value_label)

        label = QLabel(title)
        label.setStyleSheet(f"font-size: 13px; color: {Theme.TEXT_SECONDARY}; border: none;")
        layout.addWidget(label)

    def set_value(self, text):
        self.value_label.setText(str(text))


class Dashboard(QWidget):
    def __init__(self, db, open_notice_callback):
        super().__init__()
        self.db = db
        self.open_notice_callback = open_notice_callback
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)
        layout.setSpacing(18)

        header = QHBoxLayout()
        welcome = QLabel("Executive Dashboard")
        welcome.setStyleSheet(f"font-size: 28px; color: {Theme.PRIMARY}; font-weight: 800;")
        header.addWidget(welcome)
        header.addStretch()
        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(self.refresh)
        header.addWidget(refresh_btn)
        layout.addLayout(header)

        grid = QGridLayout()
        grid.setSpacing(16)
        self.cards = {
            'open_notices': StatCard("Open Notices", Theme.SECONDARY),
            'total_demand': StatCard("Open Demand", Theme.DANGER),
            'total_paid': StatCard("Total Paid", Theme.SUCCESS),
            'overdue': StatCard("Overdue Notices", Theme.WARNING),
            'hearings': StatCard("Hearings (7 days)", Theme.ACCENT),
            'critical': StatCard("Critical / High Risk", "#e67e22"),
        }
        for i, card in enumerate(self.cards.values()):
            grid.addWidget(card, i // 3, i % 3)
        layout.addLayout(grid)

        alerts_title = QLabel("Contest Window Alerts")
        alerts_title.setStyleSheet(f"font-size: 18px; font-weight: bold; color: {Theme.PRIMARY};")
        layout.addWidget(alerts_title)
        self.alerts_table = QTableWidget()
        setup_table_style(self.alerts_table, ["Notice Number", "GSTIN", "Deadline", "Days Left", "Alert"])
        self.alerts_table.doubleClicked.connect(lambda: self._open_selected(self.alerts_table))
        layout.addWidget(self.alerts_table)

        hearings_title = QLabel("Upcoming Hearings")
        hearings_title.setStyleSheet(f"font-size: 18px; font-weight: bold; color: {Theme.PRIMARY};")
        layout.addWidget(hearings_title)
        self.hearings_table = QTableWidget()
        setup_table_style(self.hearings_table, ["Notice Number", "Date", "Time", "Type", "Venue"])
        self.hearings_table.doubleClicked.connect(lambda: self._open_selected(self.hearings_table))
        layout.addWidget(self.hearings_table)

    def refresh(self):
        stats = self.db.get_dashboard_stats()
        self.cards['open_notices'].set_value(f"{stats['open_notices']} / {stats['total_notices']}")
        self.cards['total_demand'].set_value(format_currency(stats['total_demand']))
        self.cards['total_paid'].set_value(format_currency(stats['total_paid']))
        self.cards['overdue'].set_value(len(stats['overdue_notices']))
        self.cards['hearings'].set_value(len(stats['upcoming_hearings']))
        self.cards['critical'].set_value(stats['by_risk'].get('Critical', 0) + stats['by_risk'].get('High', 0))

        fill_table(self.alerts_table, [
            [make_item(a['notice_number'], a['notice_id']), a['gstin'], format_date(a['deadline']),
             make_item(a['days_remaining'], numeric=True),
             make_item(banner_text(a), color=Theme.CONTEST_COLORS.get(a['level']))]
            for a in stats['contest_alerts']
        ])
        fill_table(self.hearings_table, [
            [make_item(h['notice_number'], h['notice_id']), format_date(h['date']), h.get('time') or "",
             h.get('type') or "", h.get('venue') or ""]
            for h in stats['upcoming_hearings']
        ])

    def _open_selected(self, table):
        row = table.currentRow()
        if row < 0:
            return
        notice_id = table.item(row, 0).data(Qt.ItemDataRole.UserRole)
        if notice_id is not None:
            self.open_notice_callback(notice_id)
