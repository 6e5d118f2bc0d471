import os
import sys
import tempfile
import unittest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gst_nexus.database.db_manager import DatabaseManager
from gst_nexus.services.auth_service import AuthService


class TestAuthService(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(os.path.join(self.tmp.name, "test_auth.db"))
        self.auth = AuthService(self.db)

    def tearDown(self):
        self.tmp.cleanup()

    def test_default_admin_login(self):
        user = self.auth.login('admin', 'admin123')
        self.assertIsNotNone(user)
        self.assertEqual(user['role'], 'Admin')
        self.assertNotIn('password_hash', user)
        self.assertEqual(self.db.current_user, 'admin')

        latest = self.db.get_audit_trail(entity_type='Auth')[0]
        self.assertEqual((latest['action'], latest['user']), ('Login', 'admin'))

    def test_bad_credentials(self):
        self.assertIsNone(self.auth.login('admin', 'wrong'))
        self.assertIsNone(self.auth.login('nobody', 'admin123'))
        self.assertIsNone(self.auth.current_user)

    def test_logout_restores_default_user(self):
        self.auth.login('admin', 'admin123')
        self.auth.logout()
        self.assertIsNone(self.auth.current_user)
        self.assertEqual(self.db.current_user, 'System')

    def test_role_permissions(self):
        associate = {'username': 'asha', 'role': 'Associate', 'is_active': 1}
        senior = {'username': 'ravi', 'role': 'Senior Associate', 'is_active': 1}
        self.assertTrue(self.auth.check_permission('view_notices', associate))
        self.assertFalse(self.auth.check_permission('create_notices', associate))
        self.assertTrue(self.auth.check_permission('edit_notices', senior))
        self.assertFalse(self.auth.check_permission('delete_notices', senior))
        self.assertFalse(self.auth.check_permission('view_notices', {**associate, 'is_active': 0}))
        self.assertFalse(self.auth.check_permission('view_notices'))

    def test_role_permissions_editable_at_runtime(self):
        associate = {'username': 'asha', 'role': 'Associate', 'is_active': 1}
        self.assertTrue(self.auth.set_role_permissions('Associate', ['view_notices', 'export_data'])[0])
        self.assertTrue(self.auth.check_permission('export_data', associate))

        success, message = self.auth.set_role_permissions('Associate', ['fly'])
        self.assertFalse(success)
        self.assertEqual(message, "Unknown permissions: fly")

    def test_create_user_and_login(self):
        self.auth.login('admin', 'admin123')
        success, user_id = self.auth.create_user('asha', 'pass1', 'Asha Rao', 'Associate', 'asha@firm.in')
        self.assertTrue(success)
        self.assertEqual(self.db.get_audit_trail(entity_type='Auth')[0]['user'], 'admin')

        user = AuthService(self.db).login('asha', 'pass1')
        self.assertEqual(user['id'], user_id)
        self.assertEqual(user['full_name'], 'Asha Rao')

    def test_create_user_validation(self):
        self.assertEqual(self.auth.create_user('', 'x', 'X', 'Associate'),
                         (False, "Username and password are required"))
        self.assertEqual(self.auth.create_user('x', 'x', 'X', 'Intern'), (False, "Invalid role: Intern"))
        self.auth.create_user('asha', 'x', 'Asha', 'Associate')
        self.assertEqual(self.auth.create_user('asha', 'y', 'Asha 2', 'Associate'),
                         (False, "Username asha already exists"))

    def test_deactivated_user_cannot_login(self):
        _, user_id = self.auth.create_user('asha', 'pass1', 'Asha Rao', 'Associate')
        self.assertTrue(self.db.set_user_active(user_id, False)[0])
        self.assertIsNone(self.auth.login('asha', 'pass1'))
        self.assertEqual(self.db.set_user_active(9999, True), (False, "User not found"))


if __name__ == '__main__':
    unittest.main()
