import json
import os
import tempfile
import unittest

from gst_nexus.utils.config_manager import ConfigManager


class TestConfigManager(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def test_defaults_written_on_first_run(self):
        config = ConfigManager(self.tmp.name)
        self.assertTrue(os.path.exists(config.config_file))
        self.assertEqual(config.get_default_interest_rate(), 18.0)
        self.assertEqual(config.get_sla_threshold_days(), 7)
        self.assertEqual(config.get_max_document_bytes(), 25 * 1024 * 1024)

    def test_saved_values_merge_with_defaults(self):
        with open(os.path.join(self.tmp.name, 'settings.json'), 'w', encoding='utf-8') as f:
            json.dump({'sla_threshold_days': 14}, f)
        config = ConfigManager(self.tmp.name)
        self.assertEqual(config.get_sla_threshold_days(), 14)
        self.assertEqual(config.get_setting('office_name'), "GST Nexus")

    def test_set_setting_persists(self):
        ConfigManager(self.tmp.name).set_setting('default_interest_rate', 24)
        self.assertEqual(ConfigManager(self.tmp.name).get_default_interest_rate(), 24.0)

    def test_corrupt_file_falls_back_to_defaults(self):
        with open(os.path.join(self.tmp.name, 'settings.json'), 'w', encoding='utf-8') as f:
            f.write("{not json")
        config = ConfigManager(self.tmp.name)
        self.assertEqual(config.get_setting('default_user'), "System")

    def test_bad_numbers_use_fallbacks(self):
        config = ConfigManager(self.tmp.name)
        config.settings['sla_threshold_days'] = "soon"
        config.settings['max_document_size_mb'] = None
        self.assertEqual(config.get_sla_threshold_days(), 7)
        self.assertEqual(config.get_max_document_bytes(), 25 * 1024 * 1024)


if __name__ == '__main__':
    unittest.main()
