from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTableWidget, QLineEdit,
                             QComboBox, QCheckBox, QGroupBox, QGridLayout, QInputDialog)

from gst_nexus.ui.dialogs import BaseDialog
from gst_nexus.ui.styles import Styles, Theme
from gst_nexus.ui.ui_helpers import (fill_table, make_item, require_permission, selected_row_id,
                                     setup_table_style, show_result)
from gst_nexus.utils.constants import ALL_PERMISSIONS


class UserDialog(BaseDialog):
    def __init__(self, roles, parent=None):
        super().__init__("New User", parent)
        self.username = QLineEdit()
        self.full_name = QLineEdit()
        self.email = QLineEdit()
        self.password = QLineEdit()
        self.password.setEchoMode(QLineEdit.EchoMode.Password)
        self.role = QComboBox()
        self.role.addItems(roles)
        for label, widget in [("Username", self.username), ("Full Name", self.full_name), ("Email", self.email),
                              ("Password", self.password), ("Role", self.role)]:
            self.form.addRow(label, widget)
        self.add_buttons()

    def get_data(self):
        return {
            'username': self.username.text().strip(),
            'password': self.password.text(),
            'full_name': self.full_name.text().strip(),
            'role': self.role.currentText(),
            'email': self.email.text().strip() or None,
        }


class UsersView(QWidget):
    """User accounts and the permission matrix per role."""

    def __init__(self, db, auth):
        super().__init__()
        self.db = db
        self.auth = auth
        self.roles = db.get_config_value('user_roles') or []
        self.init_ui()
        self.refresh()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        title = QLabel("Users & Roles")
        title.setStyleSheet(Styles.get_title_style())
        layout.addWidget(title)

        actions = QHBoxLayout()
        for text, handler in [("New User", self.add_user), ("Activate / Deactivate", self.toggle_active),
                              ("Reset Password", self.reset_password)]:
            btn = QPushButton(text)
            btn.clicked.connect(handler)
            actions.addWidget(btn)
        actions.addStretch()
        layout.addLayout(actions)

        self.table = QTableWidget()
        setup_table_style(self.table, ["Username", "Full Name", "Role", "Email", "Active"])
        layout.addWidget(self.table)

        group = QGroupBox("Role Permissions")
        grid = QGridLayout(group)
        self.permission_checks = {}
        for c, permission in enumerate(ALL_PERMISSIONS):
            grid.addWidget(QLabel(permission.replace('_', ' ').title()), 0, c + 1)
        for r, role in enumerate(self.roles):
            grid.addWidget(QLabel(role), r + 1, 0)
            for c, permission in enumerate(ALL_PERMISSIONS):
                check = QCheckBox()
                self.permission_checks[(role, permission)] = check
                grid.addWidget(check, r + 1, c + 1)
        save_btn = QPushButton("Save Permissions")
        save_btn.clicked.connect(self.save_permissions)
        grid.addWidget(save_btn, len(self.roles) + 1, 0)
        layout.addWidget(group)

    def refresh(self):
        fill_table(self.table, [
            [make_item(u['username'], u['id']), u.get('full_name') or "", u.get('role') or "", u.get('email') or "",
             make_item("Yes" if u['is_active'] else "No", color=None if u['is_active'] else Theme.DANGER)]
            for u in self.db.get_all_users()
        ])
        for role in self.roles:
            granted = self.auth.role_permissions(role)
            for permission in ALL_PERMISSIONS:
                self.permission_checks[(role, permission)].setChecked(permission in granted)

    def add_user(self):
        if not require_permission(self, self.auth, 'manage_users'):
            return
        dialog = UserDialog(self.roles, self)
        if dialog.exec():
            data = dialog.get_data()
            if show_result(self, self.auth.create_user(**data), f"User {data['username']} created."):
                self.refresh()

    def toggle_active(self):
        user_id = selected_row_id(self.table)
        if user_id is None or not require_permission(self, self.auth, 'manage_users'):
            return
        user = next((u for u in self.db.get_all_users() if u['id'] == user_id), None)
        if user and show_result(self, self.db.set_user_active(user_id, not user['is_active'])):
            self.refresh()

    def save_permissions(self):
        if not require_permission(self, self.auth, 'manage_users'):
            return
        for role in self.roles:
            granted = [p for p in ALL_PERMISSIONS if self.permission_checks[(role, p)].isChecked()]
            if not show_result(self, self.auth.set_role_permissions(role, granted)):
                return
        show_result(self, (True, None), "Permissions saved.")

    def reset_password(self):
        user_id = selected_row_id(self.table)
        if user_id is None or not require_permission(self, self.auth, 'manage_users'):
            return
        password, ok = QInputDialog.getText(self, "Reset Password", "New password:", QLineEdit.EchoMode.Password)
        if ok:
            show_result(self, self.auth.reset_password(user_id, password), "Password updated.")
