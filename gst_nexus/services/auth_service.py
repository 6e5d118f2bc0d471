import logging

from gst_nexus.database.schema import hash_password
from gst_nexus.utils.constants import ALL_PERMISSIONS, DEFAULT_ROLE_PERMISSIONS

logger = logging.getLogger(__name__)


class AuthService:
    """
    Login and role-based permission checks.

    Role permissions are read from the `perm:<role>` keys in app_config so an
    administrator can change them at runtime; the built-in role defaults are
    used when a role has no stored entry.
    """

    def __init__(self, db):
        self.db = db
        self.current_user = None

    def login(self, username, password):
        """Returns the user dict (without password hash) or None."""
        record = self.db.get_user_by_username(username)
        if not record or not record.get('is_active'):
            logger.warning(f"Failed login for '{username}'")
            return None
        if record['password_hash'] != hash_password(password):
            logger.warning(f"Failed login for '{username}'")
            return None

        user = {k: v for k, v in record.items() if k != 'password_hash'}
        self.current_user = user
        self.db.current_user = user['username']
        self.db.log_audit('Auth', user['id'], 'Login', 'User logged in', user=user['username'])
        logger.info(f"User '{username}' logged in")
        return user

    def logout(self):
        self.current_user = None
        self.db.current_user = self.db.config.get_setting('default_user', 'System')

    def role_permissions(self, role):
        stored = self.db.get_config_value(f"perm:{role}")
        if isinstance(stored, list):
            return stored
        return DEFAULT_ROLE_PERMISSIONS.get(role, [])

    def check_permission(self, permission, user=None):
        user = user or self.current_user
        if not user or not user.get('is_active', 1):
            return False
        return permission in self.role_permissions(user.get('role'))

    def set_role_permissions(self, role, permissions):
        unknown = [p for p in permissions if p not in ALL_PERMISSIONS]
        if unknown:
            return False, f"Unknown permissions: {', '.join(unknown)}"
        actor = self.current_user['username'] if self.current_user else None
        return self.db.set_config_value(f"perm:{role}", list(permissions), user=actor)

    def create_user(self, username, password, full_name, role, email=None):
        username = (username or "").strip()
        if not username or not password:
            return False, "Username and password are required"
        roles = self.db.get_config_value('user_roles') or list(DEFAULT_ROLE_PERMISSIONS)
        if role not in roles:
            return False, f"Invalid role: {role}"
        actor = self.current_user['username'] if self.current_user else None
        return self.db.insert_user(username, hash_password(password), full_name, role, email, user=actor)

    def reset_password(self, user_id, new_password):
        if not new_password:
            return False, "Password is required"
        actor = self.current_user['username'] if self.current_user else None
        return self.db.update_user_password(user_id, hash_password(new_password), user=actor)
