import os
from datetime import date

from PyQt6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QComboBox, QListWidget,
                             QLineEdit, QGroupBox, QFormLayout, QDoubleSpinBox, QCheckBox, QFileDialog)

from gst_nexus.ui.dialogs import _date_edit, _date_value
from gst_nexus.ui.styles import Styles
from gst_nexus.ui.ui_helpers import confirm, require_permission, show_result
from gst_nexus.utils.constants import CONFIG_LISTS, DATA_DIR


class AdminSettingsView(QWidget):
    """Option lists, global interest update, and database backup/restore."""

    def __init__(self, db, auth):
        super().__init__()
        self.db = db
        self.auth = auth
        self.init_ui()

    def init_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(30, 30, 30, 30)

        title = QLabel("Admin Settings")
        title.setStyleSheet(Styles.get_title_style())
        layout.addWidget(title)

        columns = QHBoxLayout()
        columns.addWidget(self._build_lists_group(), 1)
        right = QVBoxLayout()
        right.addWidget(self._build_interest_group())
        right.addWidget(self._build_backup_group())
        right.addStretch()
        columns.addLayout(right, 1)
        layout.addLayout(columns)

    def _build_lists_group(self):
        group = QGroupBox("Option Lists")
        layout = QVBoxLayout(group)
        self.list_key = QComboBox()
        for key, label in CONFIG_LISTS.items():
            self.list_key.addItem(label, key)
        self.list_key.currentIndexChanged.connect(self.refresh)
        layout.addWidget(self.list_key)

        self.items_list = QListWidget()
        layout.addWidget(self.items_list)

        row = QHBoxLayout()
        self.new_item = QLineEdit()
        self.new_item.setPlaceholderText("New value...")
        self.new_item.returnPressed.connect(self.add_item)
        row.addWidget(self.new_item)
        add_btn = QPushButton("Add")
        add_btn.clicked.connect(self.add_item)
        row.addWidget(add_btn)
        remove_btn = QPushButton("Remove Selected")
        remove_btn.setStyleSheet(Styles.get_danger_button_style())
        remove_btn.clicked.connect(self.remove_item)
        row.addWidget(remove_btn)
        layout.addLayout(row)
        return group

    def _build_interest_group(self):
        group = QGroupBox("Bulk Interest Updater")
        form = QFormLayout(group)
        form.addRow(QLabel("Recalculates interest on every defect of notices that are not Closed, "
                           "from the due date to the target date. Existing interest is overwritten."))
        self.rate = QDoubleSpinBox()
        self.rate.setRange(0, 100)
        self.rate.setDecimals(2)
        self.rate.setSuffix(" %")
        self.rate.setValue(self.db.config.get_default_interest_rate())
        self.till_today = QCheckBox("Calculate till today")
        self.till_today.setChecked(True)
        self.target_date = _date_edit()
        self.target_date.setEnabled(False)
        self.till_today.toggled.connect(lambda checked: self.target_date.setEnabled(not checked))
        form.addRow("Annual Interest Rate", self.rate)
        form.addRow(self.till_today)
        form.addRow("Target Date", self.target_date)
        run_btn = QPushButton("Run Bulk Update")
        run_btn.clicked.connect(self.run_bulk_interest)
        form.addRow(run_btn)
        return group

    def _build_backup_group(self):
        group = QGroupBox("Backup & Restore")
        layout = QVBoxLayout(group)
        backup_btn = QPushButton("Download Backup")
        backup_btn.clicked.connect(self.backup)
        layout.addWidget(backup_btn)
        restore_btn = QPushButton("Restore From Backup...")
        restore_btn.setStyleSheet(Styles.get_danger_button_style())
        restore_btn.clicked.connect(self.restore)
        layout.addWidget(restore_btn)
        return group

    def refresh(self):
        self.items_list.clear()
        self.items_list.addItems([str(v) for v in self.db.get_config_value(self.list_key.currentData()) or []])

    def add_item(self):
        if not require_permission(self, self.auth, 'manage_users'):
            return
        if show_result(self, self.db.add_config_item(self.list_key.currentData(), self.new_item.text())):
            self.new_item.clear()
            self.refresh()

    def remove_item(self):
        item = self.items_list.currentItem()
        if item is None or not require_permission(self, self.auth, 'manage_users'):
            return
        if confirm(self, "Remove", f"Remove '{item.text()}'?"):
            show_result(self, self.db.remove_config_item(self.list_key.currentData(), item.text()))
            self.refresh()

    def run_bulk_interest(self):
        if not require_permission(self, self.auth, 'manage_users'):
            return
        target = date.today().isoformat() if self.till_today.isChecked() else _date_value(self.target_date)
        rate = self.rate.value()
        if not confirm(self, "Bulk Interest Update",
                       f"Recalculate interest for ALL open notices at {rate:g}% up to {target}?\n"
                       f"Existing interest values will be overwritten."):
            return
        success, payload = self.db.recalculate_all_interest(rate, target)
        if success:
            text = f"Updated interest for {payload} notices." if payload else "No notices required updates."
            show_result(self, (True, payload), text)
        else:
            show_result(self, (False, payload))

    def backup(self):
        if not require_permission(self, self.auth, 'manage_users'):
            return
        default = os.path.join(DATA_DIR, "backups", f"GSTNexus_Backup_{date.today().isoformat()}.db")
        path, _ = QFileDialog.getSaveFileName(self, "Save Backup", default, "Database Files (*.db)")
        if path:
            show_result(self, self.db.backup_database(path), f"Backup saved to {path}")

    def restore(self):
        if not require_permission(self, self.auth, 'manage_users'):
            return
        path, _ = QFileDialog.getOpenFileName(self, "Restore Backup", DATA_DIR, "Database Files (*.db);;All Files (*)")
        if not path:
            return
        if confirm(self, "Restore",
                   "This will replace ALL current data with the backup file. This cannot be undone. Continue?"):
            show_result(self, self.db.restore_database(path), "Data restored successfully.")
