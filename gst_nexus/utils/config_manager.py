import json
import logging
import os

from gst_nexus.utils.constants import DATA_DIR

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages application configuration and user preferences"""

    def __init__(self, config_dir=None):
        self.config_dir = config_dir or DATA_DIR
        self.config_file = os.path.join(self.config_dir, 'settings.json')

        # Ensure config directory exists
        os.makedirs(self.config_dir, exist_ok=True)

        # Default settings
        self.default_settings = {
            "office_name": "GST Nexus",
            "default_interest_rate": 18,
            "sla_threshold_days": 7,
            "max_document_size_mb": 25,
            "default_user": "System",
        }

        self.settings = self.load_settings()

    def load_settings(self):
        """Load settings from JSON file"""
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    settings = json.load(f)
                # Merge with defaults to ensure all keys exist
                return {**self.default_settings, **settings}
            except (OSError, ValueError) as e:
                logger.error(f"Error loading settings: {e}")
                return self.default_settings.copy()

        self.save_settings(self.default_settings.copy())
        return self.default_settings.copy()

    def save_settings(self, settings=None):
        """Save settings to JSON file"""
        if settings is None:
            settings = self.settings
        else:
            self.settings = settings

        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=4)
            return True
        except OSError as e:
            logger.error(f"Error saving settings: {e}")
            return False

    def get_setting(self, key, default=None):
        """Get a specific setting value"""
        return self.settings.get(key, default)

    def set_setting(self, key, value):
        """Set a specific setting value"""
        self.settings[key] = value
        return self.save_settings()

    def get_default_interest_rate(self):
        try:
            return float(self.settings.get('default_interest_rate', 18))
        except (TypeError, ValueError):
            return 18.0

    def get_sla_threshold_days(self):
        try:
            return int(self.settings.get('sla_threshold_days', 7))
        except (TypeError, ValueError):
            return 7

    def get_max_document_bytes(self):
        """Upload ceiling in bytes; 0 or negative disables the check"""
        try:
            return int(float(self.settings.get('max_document_size_mb', 25)) * 1024 * 1024)
        except (TypeError, ValueError):
            return 25 * 1024 * 1024
