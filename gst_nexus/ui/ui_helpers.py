from PyQt6.QtWidgets import QAbstractItemView, QHeaderView, QMessageBox, QTableWidget, QTableWidgetItem
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor

from gst_nexus.ui.styles import Theme


def setup_table_style(table: QTableWidget, headers: list):
    table.setColumnCount(len(headers))
    table.setHorizontalHeaderLabels(headers)
    table.verticalHeader().setVisible(False)
    table.setAlternatingRowColors(True)
    table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
    table.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
    table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
    table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)


def make_item(value, row_id=None, numeric=False, color=None):
    """Read-only table cell; row_id is kept in UserRole for lookups."""
    item = QTableWidgetItem("" if value is None else str(value))
    if row_id is not None:
        item.setData(Qt.ItemDataRole.UserRole, row_id)
    if numeric:
        item.setTextAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
    if color:
        item.setForeground(QColor(color))
    return item


def fill_table(table: QTableWidget, rows: list):
    """rows: list of lists of QTableWidgetItem (or plain values)."""
    table.setRowCount(0)
    table.setRowCount(len(rows))
    for r, cells in enumerate(rows):
        for c, cell in enumerate(cells):
            table.setItem(r, c, cell if isinstance(cell, QTableWidgetItem) else make_item(cell))


def selected_row_id(table: QTableWidget):
    row = table.currentRow()
    if row < 0:
        return None
    item = table.item(row, 0)
    return item.data(Qt.ItemDataRole.UserRole) if item else None


def show_result(parent, result, success_text=None):
    """Show the (success, message) tuple returned by DatabaseManager. Returns success."""
    success, payload = result
    if success:
        if success_text:
            QMessageBox.information(parent, "Success", success_text)
        return True
    QMessageBox.warning(parent, "Error", str(payload))
    return False


def confirm(parent, title, text):
    reply = QMessageBox.question(parent, title, text,
                                 QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No)
    return reply == QMessageBox.StandardButton.Yes


def require_permission(parent, auth, permission):
    if auth is None or auth.check_permission(permission):
        return True
    QMessageBox.warning(parent, "Access Denied", "You do not have permission to perform this action.")
    return False


def risk_color(level):
    return Theme.RISK_COLORS.get(level, Theme.TEXT_PRIMARY)
