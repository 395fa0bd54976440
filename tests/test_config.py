"""
Unit tests for environment-driven settings
"""

import unittest
from datetime import timedelta
from unittest import mock

import support  # noqa: F401
from config import Settings


class TestSettings(unittest.TestCase):
    """Test Settings.from_env"""

    def test_defaults(self):
        with mock.patch.dict("os.environ", {}, clear=True):
            settings = Settings.from_env()
        self.assertIsNone(settings.jwt_secret_key)
        self.assertEqual(settings.jwt_algorithm, "HS256")
        self.assertEqual(settings.access_token_ttl, timedelta(hours=1))
        self.assertEqual(settings.database_url, "sqlite:///./expenses.db")
        self.assertTrue(settings.scheduler_enabled)

    def test_reads_environment(self):
        env = {
            "DATABASE_URL": "postgres://u:p@db/expenses",
            "JWT_SECRET_KEY": "k" * 40,
            "ACCESS_TOKEN_TTL_SECONDS": "60",
            "SCHEDULER_ENABLED": "no",
            "LOG_LEVEL": "debug",
        }
        with mock.patch.dict("os.environ", env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.database_url, "postgresql+psycopg://u:p@db/expenses")
        self.assertEqual(settings.jwt_secret_key, "k" * 40)
        self.assertEqual(settings.access_token_ttl, timedelta(seconds=60))
        self.assertFalse(settings.scheduler_enabled)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_empty_secret_counts_as_missing(self):
        with mock.patch.dict("os.environ", {"JWT_SECRET_KEY": ""}, clear=True):
            self.assertIsNone(Settings.from_env().jwt_secret_key)

    def test_settings_are_immutable(self):
        settings = Settings(jwt_secret_key="a")
        with self.assertRaises(AttributeError):
            settings.jwt_secret_key = "b"


if __name__ == "__main__":
    unittest.main()
