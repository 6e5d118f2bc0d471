from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTableWidget, QCheckBox

from gst_nexus.services.notification_service import NotificationService
from gst_nexus.ui.styles import Styles, Theme
from gst_nexus.ui.ui_helpers import fill_table, make_item, selected_row_id, setup_table_style

TYPE_COLORS = {
    'info': Theme.SECONDARY,
    'warning': Theme.WARNING,
    'critical': Theme.DANGER,
}


class NotificationsView(QWidget):
    def __init__(self, db, open_notice_callback):
        super().__init__()
        self.db = db
        self.service = NotificationService(db)
        self.open_notice_callback = open_notice_callback
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        header = QHBoxLayout()
        title = QLabel("Notifications")
        title.setStyleSheet(Styles.get_title_style())
        header.addWidget(title)
        header.addStretch()
        self.unread_only = QCheckBox("Unread only")
        self.unread_only.setChecked(True)
        self.unread_only.toggled.connect(self.refresh)
        header.addWidget(self.unread_only)
        for text, handler in [("Check Now", self.generate), ("Mark Read", self.mark_read),
                              ("Mark All Read", self.mark_all_read)]:
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            header.addWidget(btn)
        layout.addLayout(header)

        self.table = QTableWidget()
        setup_table_style(self.table, ["Created", "Type", "Title", "Message"])
        self.table.doubleClicked.connect(self.open_linked)
        layout.addWidget(self.table)

    def refresh(self):
        self.notifications = {n['id']: n for n in self.db.get_notifications(unread_only=self.unread_only.isChecked())}
        fill_table(self.table, [
            [make_item(n['created_at'], n['id']),
             make_item(n['type'].title(), color=TYPE_COLORS.get(n['type'])), n['title'], n.get('message') or ""]
            for n in self.notifications.values()
        ])

    def generate(self):
        self.service.generate()
        self.refresh()

    def mark_read(self):
        notification_id = selected_row_id(self.table)
        if notification_id is not None:
            self.db.mark_notification_read(notification_id)
            self.refresh()

    def mark_all_read(self):
        self.db.mark_all_notifications_read()
        self.refresh()

    def open_linked(self):
        notification = self.notifications.get(selected_row_id(self.table))
        link = (notification or {}).get('link') or ""
        if link.startswith("/notices/"):
            self.db.mark_notification_read(notification['id'])
            self.open_notice_callback(int(link.rsplit("/", 1)[1]))
