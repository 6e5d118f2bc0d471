from PyQt6.QtWidgets import QWidget, QVBoxLayout, QPushButton, QLabel, QFrame, QHBoxLayout
from PyQt6.QtCore import Qt, pyqtSignal


class SidebarButton(QPushButton):
    def __init__(self, text, icon_char, index, callback):
        super().__init__()
        self.index = index
        self.callback = callback

        self.setCheckable(True)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self.setFixedHeight(50)

        self.layout = QHBoxLayout(self)
        self.layout.setContentsMargins(10, 0, 0, 0)
        self.layout.setSpacing(15)

        self.icon_label = QLabel(icon_char)
        self.icon_label.setFixedSize(30, 30)
        self.icon_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.layout.addWidget(self.icon_label)

        self.lbl = QLabel(text)
        self.layout.addWidget(self.lbl)
        self.layout.addStretch()

        self.clicked.connect(self.on_click)
        self.update_style(False)

    def on_click(self):
        self.callback(self.index)

    def setChecked(self, checked):
        super().setChecked(checked)
        self.update_style(checked)

    def update_style(self, checked):
        if checked:
            bg, color, border = "#34495e", "#ffffff", "#3498db"
        else:
            bg, color, border = "transparent", "#ecf0f1", "transparent"

        self.setStyleSheet(f"""
            QPushButton {{
                background-color: {bg};
                border: none;
                border-left: 4px solid {border};
            }}
        """)
        self.lbl.setStyleSheet(f"color: {color}; font-size: 14px; font-weight: 500; border: none; background: transparent;")
        self.icon_label.setStyleSheet(f"color: {color}; font-size: 16px; font-weight: bold; border: none; background: transparent;")


class Sidebar(QFrame):
    navigate_signal = pyqtSignal(int)
    logout_signal = pyqtSignal()

    ITEMS = [
        ("Dashboard", "🏠", 0),
        ("Notices", "📁", 1),
        ("Taxpayers", "🏢", 2),
        ("Client Status", "⏳", 3),
        ("Notifications", "🔔", 4),
        ("Audit Trail", "📜", 5),
        ("Users & Roles", "👥", 6),
        ("Reports", "📊", 7),
        ("Admin Settings", "⚙", 8),
    ]

    def __init__(self, username=""):
        super().__init__()
        self.setFixedWidth(230)
        self.setStyleSheet("background-color: #2c3e50; border-right: 1px solid #1a252f;")
        self.buttons = []

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.layout.setSpacing(0)

        header = QFrame()
        header.setFixedHeight(60)
        header.setStyleSheet("background-color: #1a252f;")
        header_layout = QHBoxLayout(header)
        title = QLabel("GST NEXUS")
        title.setStyleSheet("color: white; font-size: 18px; font-weight: bold; margin-left: 10px;")
        header_layout.addWidget(title)
        self.layout.addWidget(header)

        content = QWidget()
        self.content_layout = QVBoxLayout(content)
        self.content_layout.setContentsMargins(0, 10, 0, 0)
        self.content_layout.setSpacing(5)
        self.content_layout.setAlignment(Qt.AlignmentFlag.AlignTop)
        self.layout.addWidget(content)
        self.layout.addStretch()

        for text, icon, idx in self.ITEMS:
            btn = SidebarButton(text, icon, idx, self.handle_click)
            self.content_layout.addWidget(btn)
            self.buttons.append(btn)

        footer = QFrame()
        footer.setStyleSheet("background-color: #1a252f;")
        footer_layout = QVBoxLayout(footer)
        self.user_label = QLabel(username)
        self.user_label.setStyleSheet("color: #bdc3c7; font-size: 12px;")
        footer_layout.addWidget(self.user_label)
        logout_btn = QPushButton("Log out")
        logout_btn.setStyleSheet("background-color: transparent; color: #ecf0f1; border: 1px solid #34495e;")
        logout_btn.clicked.connect(self.logout_signal.emit)
        footer_layout.addWidget(logout_btn)
        self.layout.addWidget(footer)

    def handle_click(self, index):
        self.set_active_btn(index)
        self.navigate_signal.emit(index)

    def set_active_btn(self, index):
        for btn in self.buttons:
            btn.setChecked(btn.index == index)
