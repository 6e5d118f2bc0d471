from PyQt6.QtWidgets import QDialog, QVBoxLayout, QLabel, QLineEdit, QPushButton, QFormLayout
from PyQt6.QtCore import Qt

from gst_nexus.ui.styles import Styles, Theme


class LoginDialog(QDialog):
    def __init__(self, auth, parent=None):
        super().__init__(parent)
        self.auth = auth
        self.user = None
        self.setWindowTitle("GST Nexus - Sign in")
        self.setFixedWidth(360)
        self.setStyleSheet(Styles.get_main_stylesheet())
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        title = QLabel("GST Nexus")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet(f"font-size: 24px; font-weight: 800; color: {Theme.PRIMARY};")
        layout.addWidget(title)

        form = QFormLayout()
        self.username_input = QLineEdit()
        self.password_input = QLineEdit()
        self.password_input.setEchoMode(QLineEdit.EchoMode.Password)
        self.password_input.returnPressed.connect(self.attempt_login)
        form.addRow("Username", self.username_input)
        form.addRow("Password", self.password_input)
        layout.addLayout(form)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet(f"color: {Theme.DANGER};")
        layout.addWidget(self.error_label)

        login_btn = QPushButton("Sign in")
        login_btn.clicked.connect(self.attempt_login)
        layout.addWidget(login_btn)

    def attempt_login(self):
        user = self.auth.login(self.username_input.text().strip(), self.password_input.text())
        if user:
            self.user = user
            self.accept()
        else:
            self.error_label.setText("Invalid credentials or inactive account")
            self.password_input.clear()
