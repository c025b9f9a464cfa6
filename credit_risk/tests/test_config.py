"""Unit tests for YAML settings loading."""

import os
from pathlib import Path
import sys
import tempfile
import unittest
from unittest import mock


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from credit_risk.core.config import CONFIG_PATH_ENV, MODEL_PATH_ENV, get_env, load_settings


_CUSTOM_CONFIG = """
app:
  name: "Test Scoring"
  debug: "yes"
  port: 9100
features:
  window_months: 3
  join_policy: Left-Outer
scoring:
  model_path: /tmp/custom.joblib
  decision_threshold: 0.35
  service_name: risk
  service_version: v7
"""

_INVALID_CONFIG = """
app:
  port: not-a-port
features:
  window_months: -2
  join_policy: cross
scoring:
  decision_threshold: 1.7
"""


class ConfigTests(unittest.TestCase):
    """Validate parsing, fallbacks and environment overrides."""

    def setUp(self) -> None:
        """Create a scratch directory and clear overriding environment variables."""
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        patcher = mock.patch.dict(os.environ, {CONFIG_PATH_ENV: "", MODEL_PATH_ENV: ""})
        patcher.start()
        self.addCleanup(patcher.stop)

    def _write(self, content: str) -> str:
        path = Path(self._tmp.name) / "config.yml"
        path.write_text(content, encoding="utf-8")
        return str(path)

    def test_packaged_config_loads(self) -> None:
        """The shipped config.yml yields the documented defaults."""
        settings = load_settings()
        self.assertEqual(settings.window_months, 6)
        self.assertEqual(settings.join_policy, "inner")
        self.assertAlmostEqual(settings.decision_threshold, 0.5)
        self.assertEqual(settings.service_name, "credit_default")

    def test_custom_config_values(self) -> None:
        """Explicit config values are parsed and normalized."""
        settings = load_settings(self._write(_CUSTOM_CONFIG))
        self.assertEqual(settings.app_name, "Test Scoring")
        self.assertTrue(settings.debug)
        self.assertEqual(settings.port, 9100)
        self.assertEqual(settings.window_months, 3)
        self.assertEqual(settings.join_policy, "left_outer")
        self.assertEqual(settings.model_path, "/tmp/custom.joblib")
        self.assertAlmostEqual(settings.decision_threshold, 0.35)
        self.assertEqual(settings.service_version, "v7")

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        """Unparseable or out-of-range values use defaults."""
        settings = load_settings(self._write(_INVALID_CONFIG))
        self.assertEqual(settings.port, 8000)
        self.assertEqual(settings.window_months, 6)
        self.assertEqual(settings.join_policy, "inner")
        self.assertAlmostEqual(settings.decision_threshold, 0.5)

    def test_missing_file_uses_defaults(self) -> None:
        """A missing config file is not fatal."""
        settings = load_settings(str(Path(self._tmp.name) / "absent.yml"))
        self.assertEqual(settings.host, "127.0.0.1")
        self.assertEqual(settings.window_months, 6)

    def test_environment_overrides(self) -> None:
        """Config path and model path can be overridden from the environment."""
        config_path = self._write(_CUSTOM_CONFIG)
        with mock.patch.dict(os.environ, {CONFIG_PATH_ENV: config_path, MODEL_PATH_ENV: "/models/live.joblib"}):
            settings = load_settings()
        self.assertEqual(settings.app_name, "Test Scoring")
        self.assertEqual(settings.model_path, "/models/live.joblib")

    def test_get_env_dot_notation(self) -> None:
        """Nested keys are read with dot notation."""
        config_path = self._write(_CUSTOM_CONFIG)
        self.assertEqual(get_env("scoring.service_name", config_path=config_path), "risk")
        self.assertEqual(get_env("scoring.absent", default="fallback", config_path=config_path), "fallback")


if __name__ == "__main__":
    unittest.main()
