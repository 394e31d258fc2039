import logging
import os
import unittest
from unittest.mock import patch

from basekit.config import FacadeConfig, Settings
from basekit.log import HANDLER, configure_logging


class SettingsTests(unittest.TestCase):
    def test_reads_connection_settings_from_environment(self) -> None:
        env = {
            "SUPABASE_URL": "https://example.supabase.co",
            "SUPABASE_ANON_KEY": "anon",
            "BASEKIT_DEBUG": "true",
            "BASEKIT_FN_WINDOW_SECONDS": "1.5",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.supabase_url, "https://example.supabase.co")
        self.assertEqual(settings.supabase_anon_key, "anon")

        config = settings.to_facade_config()
        self.assertTrue(config.debug)
        self.assertEqual(config.fn_rate_limit_window_seconds, 1.5)
        self.assertEqual(config.registration_function, "register-phone-user")

    def test_defaults(self) -> None:
        config = FacadeConfig()

        self.assertEqual(config.fn_rate_limit_window_seconds, 0.5)
        self.assertFalse(config.debug)
        self.assertEqual(config.min_password_length, 8)


class LoggingSetupTests(unittest.TestCase):
    def test_level_follows_debug_flag_and_handler_is_added_once(self) -> None:
        logger = configure_logging(debug=True)
        self.assertEqual(logger.level, logging.DEBUG)

        configure_logging(debug=False)
        self.assertEqual(logger.level, logging.ERROR)
        self.assertEqual(logger.handlers.count(HANDLER), 1)
