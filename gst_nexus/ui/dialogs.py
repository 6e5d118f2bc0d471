from PyQt6.QtWidgets import (QDialog, QVBoxLayout, QFormLayout, QLineEdit, QComboBox, QDateEdit,
                             QTextEdit, QDialogButtonBox, QGridLayout, QLabel, QDoubleSpinBox,
                             QCheckBox, QMessageBox, QTimeEdit)
from PyQt6.QtCore import QDate, QTime

from gst_nexus.services.demand_calculator import calculate_interest, defect_total, interest_days, row_total
from gst_nexus.ui.styles import Styles
from gst_nexus.utils.constants import (HEAD_FIELDS, HEARING_STATUSES, HEARING_TYPES, MAJOR_HEADS, MINOR_HEADS,
                                       NOTICE_STATUSES, RISK_LEVELS, TAX_HEADS)
from gst_nexus.utils.date_utils import parse_date
from gst_nexus.utils.formatting import format_currency


def _date_edit(value=None, allow_blank=False):
    edit = QDateEdit()
    edit.setCalendarPopup(True)
    edit.setDisplayFormat("dd-MMM-yyyy")
    d = parse_date(value)
    if allow_blank:
        edit.setSpecialValueText(" ")
        edit.setMinimumDate(QDate(1900, 1, 1))
    edit.setDate(QDate(d.year, d.month, d.day) if d else (edit.minimumDate() if allow_blank else QDate.currentDate()))
    return edit


def _date_value(edit, allow_blank=False):
    if allow_blank and edit.date() == edit.minimumDate():
        return None
    return edit.date().toString("yyyy-MM-dd")


def _combo(options, current=None, editable=False):
    combo = QComboBox()
    combo.setEditable(editable)
    combo.addItems([str(o) for o in options])
    if current:
        idx = combo.findText(str(current))
        if idx >= 0:
            combo.setCurrentIndex(idx)
        elif editable:
            combo.setEditText(str(current))
    return combo


def _amount_box(value=0.0):
    box = QDoubleSpinBox()
    box.setRange(0, 1e12)
    box.setDecimals(2)
    box.setGroupSeparatorShown(True)
    box.setValue(float(value or 0))
    return box


class BaseDialog(QDialog):
    def __init__(self, title, parent=None):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setStyleSheet(Styles.get_main_stylesheet())
        self.layout = QVBoxLayout(self)
        self.form = QFormLayout()
        self.layout.addLayout(self.form)

    def add_buttons(self):
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        self.layout.addWidget(buttons)


class TaxpayerDialog(BaseDialog):
    FIELDS = [("gstin", "GSTIN"), ("trade_name", "Trade Name"), ("legal_name", "Legal Name"),
              ("registered_address", "Registered Address"), ("mobile", "Mobile"), ("email", "Email"),
              ("state_code", "State Code")]

    def __init__(self, taxpayer=None, parent=None):
        super().__init__("Taxpayer", parent)
        taxpayer = taxpayer or {}
        self.inputs = {}
        for key, label in self.FIELDS:
            self.inputs[key] = QLineEdit(str(taxpayer.get(key) or ""))
            self.form.addRow(label, self.inputs[key])
        self.add_buttons()

    def get_data(self):
        return {key: edit.text().strip() for key, edit in self.inputs.items()}


class NoticeFormDialog(BaseDialog):
    def __init__(self, db, notice=None, parent=None):
        super().__init__("Edit Notice" if notice else "New Notice", parent)
        self.db = db
        notice = notice or {}
        self.is_edit = bool(notice)

        self.gstin = QLineEdit(notice.get('gstin') or "")
        self.arn = QLineEdit(notice.get('arn') or "")
        self.notice_number = QLineEdit(notice.get('notice_number') or "")
        self.notice_type = _combo(db.get_config_value('notice_types') or [], notice.get('notice_type'), True)
        self.case_type = _combo(db.get_config_value('case_types') or [], notice.get('case_type'), True)
        self.section = QLineEdit(notice.get('section') or "")
        self.period = _combo(db.get_config_value('notice_periods') or [], notice.get('period'), True)
        self.date_of_issue = _date_edit(notice.get('date_of_issue'))
        self.due_date = _date_edit(notice.get('due_date'), allow_blank=True)
        self.extended_due_date = _date_edit(notice.get('extended_due_date'), allow_blank=True)
        self.issuing_authority = QLineEdit(notice.get('issuing_authority') or "")
        self.status = _combo(db.get_config_value('notice_statuses') or NOTICE_STATUSES, notice.get('status'))
        self.risk_level = _combo(RISK_LEVELS, notice.get('risk_level') or "Medium")
        self.assigned_to = _combo([""] + [u['username'] for u in db.get_all_users()], notice.get('assigned_to'), True)
        self.linked_case_id = QLineEdit(notice.get('linked_case_id') or "")
        self.budgeted_hours = QDoubleSpinBox()
        self.budgeted_hours.setRange(0, 10000)
        self.budgeted_hours.setValue(float(notice.get('budgeted_hours') or 0))
        self.tags = QLineEdit(", ".join(notice.get('tags') or []))
        self.description = QTextEdit(notice.get('description') or "")
        self.description.setFixedHeight(70)

        for label, widget in [("GSTIN *", self.gstin), ("ARN", self.arn), ("Notice Number *", self.notice_number),
                              ("Notice Type", self.notice_type), ("Case Type", self.case_type),
                              ("Section", self.section), ("Period", self.period),
                              ("Date of Issue", self.date_of_issue), ("Due Date", self.due_date),
                              ("Extended Due Date", self.extended_due_date),
                              ("Issuing Authority", self.issuing_authority), ("Status", self.status),
                              ("Risk Level", self.risk_level), ("Assigned To", self.assigned_to),
                              ("Linked Case (ARN)", self.linked_case_id), ("Budgeted Hours", self.budgeted_hours),
                              ("Tags", self.tags), ("Description", self.description)]:
            self.form.addRow(label, widget)
        self.add_buttons()

    def get_data(self):
        return {
            'gstin': self.gstin.text(),
            'arn': self.arn.text(),
            'notice_number': self.notice_number.text(),
            'notice_type': self.notice_type.currentText(),
            'case_type': self.case_type.currentText(),
            'section': self.section.text(),
            'period': self.period.currentText(),
            'date_of_issue': _date_value(self.date_of_issue),
            'due_date': _date_value(self.due_date, allow_blank=True),
            'extended_due_date': _date_value(self.extended_due_date, allow_blank=True),
            'issuing_authority': self.issuing_authority.text(),
            'status': self.status.currentText(),
            'risk_level': self.risk_level.currentText(),
            'assigned_to': self.assigned_to.currentText(),
            'linked_case_id': self.linked_case_id.text(),
            'budgeted_hours': self.budgeted_hours.value(),
            'tags': self.tags.text(),
            'description': self.description.toPlainText(),
        }


class HeadGrid(QGridLayout):
    """4 x 5 grid of amount boxes (tax heads x head fields) with live totals."""

    def __init__(self, values=None, on_change=None):
        super().__init__()
        values = values or {}
        self.boxes = {}
        self.row_labels = {}
        for c, field in enumerate(HEAD_FIELDS):
            self.addWidget(QLabel(f"<b>{MINOR_HEADS[field]}</b>"), 0, c + 1)
        self.addWidget(QLabel("<b>Total</b>"), 0, len(HEAD_FIELDS) + 1)
        for r, head in enumerate(TAX_HEADS):
            self.addWidget(QLabel(f"<b>{MAJOR_HEADS[head]}</b>"), r + 1, 0)
            self.boxes[head] = {}
            for c, field in enumerate(HEAD_FIELDS):
                box = _amount_box((values.get(head) or {}).get(field))
                box.valueChanged.connect(self.refresh_totals)
                if on_change:
                    box.valueChanged.connect(on_change)
                self.boxes[head][field] = box
                self.addWidget(box, r + 1, c + 1)
            self.row_labels[head] = QLabel()
            self.addWidget(self.row_labels[head], r + 1, len(HEAD_FIELDS) + 1)
        self.refresh_totals()

    def values(self):
        return {head: {f: self.boxes[head][f].value() for f in HEAD_FIELDS} for head in TAX_HEADS}

    def refresh_totals(self):
        values = self.values()
        for head in TAX_HEADS:
            self.row_labels[head].setText(format_currency(row_total(values[head])))


class DefectDialog(BaseDialog):
    def __init__(self, db, defect=None, parent=None):
        super().__init__("Edit Defect" if defect else "Add Defect", parent)
        defect = defect or {}
        self.defect_type = _combo(db.get_config_value('defect_types') or [], defect.get('defect_type'), True)
        self.section = QLineEdit(defect.get('section') or "")
        self.description = QTextEdit(defect.get('description') or "")
        self.description.setFixedHeight(60)
        self.form.addRow("Defect Type *", self.defect_type)
        self.form.addRow("Section", self.section)
        self.form.addRow("Description", self.description)

        self.grid = HeadGrid(defect, self.update_total)
        self.layout.addLayout(self.grid)
        self.total_label = QLabel()
        self.layout.addWidget(self.total_label)
        self.update_total()
        self.add_buttons()

    def update_total(self):
        self.total_label.setText(f"<b>Defect Total: {format_currency(defect_total(self.grid.values()))}</b>")

    def get_data(self):
        return {
            'defect_type': self.defect_type.currentText().strip(),
            'section': self.section.text().strip(),
            'description': self.description.toPlainText().strip(),
            **self.grid.values(),
        }


class PaymentMatrixDialog(BaseDialog):
    def __init__(self, defects, parent=None):
        super().__init__("Record Payment", parent)
        self.challan_number = QLineEdit()
        self.reference_number = QLineEdit()
        self.payment_date = _date_edit()
        self.bank_name = QLineEdit()
        self.defect = QComboBox()
        self.defect.addItem("Unallocated (notice level)", None)
        for d in defects:
            self.defect.addItem(f"{d['defect_type']} ({format_currency(defect_total(d))})", d['id'])
        self.notes = QLineEdit()

        self.form.addRow("Challan (CPIN/CIN) *", self.challan_number)
        self.form.addRow("Payment Reference", self.reference_number)
        self.form.addRow("Payment Date", self.payment_date)
        self.form.addRow("Bank", self.bank_name)
        self.form.addRow("Against Defect", self.defect)
        self.form.addRow("Notes", self.notes)

        self.grid = HeadGrid(on_change=self.update_total)
        self.layout.addLayout(self.grid)
        self.total_label = QLabel()
        self.layout.addWidget(self.total_label)
        self.update_total()
        self.add_buttons()

    def update_total(self):
        self.total_label.setText(f"<b>Challan Total: {format_currency(defect_total(self.grid.values()))}</b>")

    def get_data(self):
        return {
            'matrix': self.grid.values(),
            'challan_number': self.challan_number.text().strip(),
            'reference_number': self.reference_number.text().strip(),
            'payment_date': _date_value(self.payment_date),
            'bank_name': self.bank_name.text().strip(),
            'defect_id': self.defect.currentData(),
            'notes': self.notes.text().strip(),
        }


class InterestDialog(BaseDialog):
    """Interest on each head's tax between two dates, previewed before saving."""

    def __init__(self, defect, default_rate, start_date=None, parent=None):
        super().__init__(f"Calculate Interest - {defect['defect_type']}", parent)
        self.defect = defect
        self.rate = QDoubleSpinBox()
        self.rate.setRange(0, 100)
        self.rate.setDecimals(2)
        self.rate.setSuffix(" %")
        self.rate.setValue(float(default_rate))
        self.from_date = _date_edit(start_date)
        self.to_date = _date_edit()
        self.preview = QLabel()
        self.rate.valueChanged.connect(self.update_preview)
        self.from_date.dateChanged.connect(self.update_preview)
        self.to_date.dateChanged.connect(self.update_preview)
        self.form.addRow("Rate (p.a.)", self.rate)
        self.form.addRow("From Date", self.from_date)
        self.form.addRow("To Date", self.to_date)
        self.form.addRow("Interest", self.preview)
        self.update_preview()
        self.add_buttons()

    def update_preview(self):
        try:
            days = interest_days(_date_value(self.from_date), _date_value(self.to_date))
            parts = [f"{MAJOR_HEADS[h]}: {format_currency(calculate_interest(self.defect[h]['tax'], self.rate.value(), days))}"
                     for h in TAX_HEADS if self.defect[h]['tax']]
            self.preview.setText(f"{days} days | " + (" | ".join(parts) or "No tax amount"))
        except ValueError as e:
            self.preview.setText(str(e))

    def get_data(self):
        return {
            'rate': self.rate.value(),
            'from_date': _date_value(self.from_date),
            'to_date': _date_value(self.to_date),
        }


class HearingDialog(BaseDialog):
    def __init__(self, hearing=None, parent=None):
        super().__init__("Edit Hearing" if hearing else "Schedule Hearing", parent)
        hearing = hearing or {}
        self.date = _date_edit(hearing.get('date'))
        self.time = QTimeEdit()
        t = QTime.fromString(hearing.get('time') or "11:00", "HH:mm")
        self.time.setTime(t if t.isValid() else QTime(11, 0))
        self.venue = QLineEdit(hearing.get('venue') or "")
        self.type = _combo(HEARING_TYPES, hearing.get('type'), True)
        self.attendees = QLineEdit(hearing.get('attendees') or "")
        self.status = _combo(HEARING_STATUSES, hearing.get('status'))
        self.minutes = QTextEdit(hearing.get('minutes') or "")
        self.minutes.setFixedHeight(80)
        for label, widget in [("Date", self.date), ("Time", self.time), ("Venue", self.venue), ("Type", self.type),
                              ("Attendees", self.attendees), ("Status", self.status), ("Minutes", self.minutes)]:
            self.form.addRow(label, widget)
        self.add_buttons()

    def get_data(self):
        return {
            'date': _date_value(self.date),
            'time': self.time.time().toString("HH:mm"),
            'venue': self.venue.text().strip(),
            'type': self.type.currentText(),
            'attendees': self.attendees.text().strip(),
            'status': self.status.currentText(),
            'minutes': self.minutes.toPlainText().strip(),
        }


class TimesheetDialog(BaseDialog):
    def __init__(self, current_user, parent=None):
        super().__init__("Log Time", parent)
        self.team_member = QLineEdit(current_user or "")
        self.date = _date_edit()
        self.hours = QDoubleSpinBox()
        self.hours.setRange(0, 24)
        self.hours.setSingleStep(0.5)
        self.description = QLineEdit()
        self.form.addRow("Team Member", self.team_member)
        self.form.addRow("Date", self.date)
        self.form.addRow("Hours", self.hours)
        self.form.addRow("Work Done", self.description)
        self.add_buttons()

    def get_data(self):
        return {
            'team_member': self.team_member.text().strip(),
            'date': _date_value(self.date),
            'hours_spent': self.hours.value(),
            'description': self.description.text().strip(),
        }


class SyncDialog(BaseDialog):
    """Pick which fields to copy from this notice to the rest of its ARN group."""

    def __init__(self, sync_fields, sibling_count, parent=None):
        super().__init__("Sync Linked Notices", parent)
        self.layout.insertWidget(0, QLabel(f"Copy the selected fields to {sibling_count} other notice(s) "
                                           f"sharing this ARN."))
        self.checks = {}
        for key, label in sync_fields.items():
            self.checks[key] = QCheckBox(label)
            self.form.addRow(self.checks[key])
        self.add_buttons()

    def accept(self):
        if not self.selected_fields():
            QMessageBox.warning(self, "Sync", "Select at least one field to sync")
            return
        super().accept()

    def selected_fields(self):
        return [key for key, check in self.checks.items() if check.isChecked()]
