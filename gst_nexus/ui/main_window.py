from PyQt6.QtWidgets import QMainWindow, QWidget, QHBoxLayout, QStackedWidget

from gst_nexus.ui.admin_settings import AdminSettingsView
from gst_nexus.ui.audit_trail import AuditTrailView
from gst_nexus.ui.client_status import ClientStatusView
from gst_nexus.ui.components.sidebar import Sidebar
from gst_nexus.ui.dashboard import Dashboard
from gst_nexus.ui.notice_detail import NoticeDetail
from gst_nexus.ui.notice_register import NoticeRegister
from gst_nexus.ui.notifications_view import NotificationsView
from gst_nexus.ui.reports_view import ReportsView
from gst_nexus.ui.styles import Styles
from gst_nexus.ui.taxpayers import TaxpayerMaster
from gst_nexus.ui.users_view import UsersView

NOTICES_INDEX = 1
DETAIL_INDEX = 9


class MainWindow(QMainWindow):
    def __init__(self, db, auth):
        super().__init__()
        self.db = db
        self.auth = auth
        self.setWindowTitle(f"GST Nexus - {db.config.get_setting('office_name', 'GST Nexus')}")
        self.setGeometry(100, 100, 1280, 720)

        # Apply Global Stylesheet
        self.setStyleSheet(Styles.get_main_stylesheet())

        # Main Layout (Horizontal: Sidebar | Content)
        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        self.layout = QHBoxLayout(main_widget)
        self.layout.setContentsMargins(0, 0, 0, 0)
        self.layout.setSpacing(0)

        user = auth.current_user or {}
        self.sidebar = Sidebar(f"{user.get('full_name') or user.get('username', '')} ({user.get('role', '')})")
        self.sidebar.navigate_signal.connect(self.navigate_to)
        self.sidebar.logout_signal.connect(self.logout)
        self.layout.addWidget(self.sidebar)

        self.stack = QStackedWidget()
        self.layout.addWidget(self.stack)

        self.dashboard = Dashboard(db, self.open_notice)
        self.notice_register = NoticeRegister(db, auth, self.open_notice)
        self.taxpayers = TaxpayerMaster(db, auth)
        self.client_status = ClientStatusView(db)
        self.notifications = NotificationsView(db, self.open_notice)
        self.audit_trail = AuditTrailView(db)
        self.users = UsersView(db, auth)
        self.reports = ReportsView(db, auth)
        self.admin_settings = AdminSettingsView(db, auth)
        self.notice_detail = NoticeDetail(db, auth, lambda: self.navigate_to(NOTICES_INDEX), self.open_notice)

        for page in [self.dashboard, self.notice_register, self.taxpayers, self.client_status,
                     self.notifications, self.audit_trail, self.users, self.reports, self.admin_settings,
                     self.notice_detail]:
            self.stack.addWidget(page)

        self.navigate_to(0)

    def navigate_to(self, index):
        self.sidebar.set_active_btn(index)
        page = self.stack.widget(index)
        if hasattr(page, 'refresh'):
            page.refresh()
        self.stack.setCurrentIndex(index)

    def open_notice(self, notice_id):
        self.notice_detail.load_notice(notice_id)
        self.sidebar.set_active_btn(NOTICES_INDEX)
        self.stack.setCurrentIndex(DETAIL_INDEX)

    def logout(self):
        self.auth.logout()
        self.close()
