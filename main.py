import logging
import sys

from PyQt6.QtWidgets import QApplication

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.auth_service import AuthService
from gst_nexus.services.notification_service import NotificationService
from gst_nexus.ui.login_dialog import LoginDialog
from gst_nexus.ui.main_window import MainWindow

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main():
    logger.info("Starting application...")
    app = QApplication(sys.argv)

    db = DatabaseManager()
    auth = AuthService(db)

    login = LoginDialog(auth)
    if not login.exec():
        logger.info("Login cancelled")
        return 0

    created = NotificationService(db).generate()
    logger.info(f"Generated {created} notification(s)")

    window = MainWindow(db, auth)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
