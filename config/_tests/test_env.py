import os
import tempfile
from pathlib import Path
from unittest.mock import patch

from django.test import SimpleTestCase

from config.env import env_bool, env_list, load_env


class LoadEnvTests(SimpleTestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.base = Path(self.tmp.name)

    def test_explicit_file_wins_over_dotenv(self):
        explicit = self.base / "worker.env"
        explicit.write_text("APNS_TIMEOUT=3\n")
        (self.base / ".env").write_text("APNS_TIMEOUT=10\nAPNS_MAX_WORKERS=8\n")

        with patch.dict(os.environ, {"ENV_FILE": str(explicit)}, clear=True):
            load_env(self.base)
            self.assertEqual(os.environ["APNS_TIMEOUT"], "3")
            self.assertEqual(os.environ["APNS_MAX_WORKERS"], "8")

    def test_process_env_is_never_overridden(self):
        (self.base / ".env").write_text("LOG_LEVEL=DEBUG\n")

        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}, clear=True):
            load_env(self.base)
            self.assertEqual(os.environ["LOG_LEVEL"], "WARNING")

    def test_dev_file_only_for_dev(self):
        (self.base / ".env.dev").write_text("DJANGO_DEBUG=1\n")

        with patch.dict(os.environ, {}, clear=True):
            load_env(self.base)
            self.assertNotIn("DJANGO_DEBUG", os.environ)

        with patch.dict(os.environ, {"DJANGO_ENV": "dev"}, clear=True):
            load_env(self.base)
            self.assertEqual(os.environ["DJANGO_DEBUG"], "1")


class EnvHelpersTests(SimpleTestCase):
    @patch.dict(os.environ, {"FLAG": " Yes ", "HOSTS": "a.example, ,b.example"}, clear=True)
    def test_helpers(self):
        self.assertTrue(env_bool("FLAG"))
        self.assertTrue(env_bool("MISSING", default=True))
        self.assertEqual(env_list("HOSTS"), ["a.example", "b.example"])
