"""Unit tests for the scoring service registry."""

from pathlib import Path
import sys
import unittest
from unittest import mock


PROJECT_ROOT = Path(__file__).resolve().parents[2]
TESTS_ROOT = Path(__file__).resolve().parent
for _path in (PROJECT_ROOT, TESTS_ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from credit_fixtures import make_artifact, make_demographics, make_transactions
from credit_risk.ml.feature_builder import FeatureWindow
from credit_risk.ml.registry import ScoringServiceRegistry
from credit_risk.ml.schema import FEATURE_COLUMNS
from credit_risk.models.exceptions import ServiceConflictError, ServiceNotFoundError


class ScoringServiceRegistryTests(unittest.TestCase):
    """Validate publish, update, get, delete and schema export."""

    def setUp(self) -> None:
        """Start every test with one published service."""
        self.registry = ScoringServiceRegistry()
        self.service = self.registry.publish("credit_default", "v1", make_artifact(), description="baseline")

    def test_publish_and_get(self) -> None:
        """Published services are retrievable by name and version."""
        service = self.registry.get("credit_default", "v1")
        self.assertIs(service, self.service)
        self.assertEqual(service.operation_id, "consume_credit_default_v1")
        self.assertEqual(service.summary()["description"], "baseline")

    def test_duplicate_publish_conflicts(self) -> None:
        """Publishing the same key twice is rejected."""
        with self.assertRaises(ServiceConflictError):
            self.registry.publish("credit_default", "v1", make_artifact())

    def test_blank_key_is_rejected(self) -> None:
        """Service name and version must be non-blank."""
        with self.assertRaises(ValueError):
            self.registry.publish("  ", "v1", make_artifact())

    def test_versions_are_independent(self) -> None:
        """Different versions of one name coexist and list in order."""
        self.registry.publish("credit_default", "v2", make_artifact(threshold=0.3))
        self.registry.publish("alpha", "v1", make_artifact())
        keys = [service.key for service in self.registry.list_services()]
        self.assertEqual(keys, [("alpha", "v1"), ("credit_default", "v1"), ("credit_default", "v2")])

    def test_update_swaps_artifact(self) -> None:
        """Update replaces the artifact and keeps creation time."""
        updated = self.registry.update("credit_default", "v1", make_artifact(threshold=0.7, version="retrained"))
        self.assertEqual(updated.artifact.version, "retrained")
        self.assertEqual(updated.description, "baseline")
        self.assertEqual(updated.created_at, self.service.created_at)
        self.assertGreaterEqual(updated.updated_at, self.service.updated_at)
        self.assertIs(self.registry.get("credit_default", "v1"), updated)
        self.assertEqual(self.service.artifact.version, "test")

    def test_unknown_service_operations_fail(self) -> None:
        """Get, update and delete of an unknown key raise ServiceNotFoundError."""
        with self.assertRaises(ServiceNotFoundError):
            self.registry.get("credit_default", "v9")
        with self.assertRaises(ServiceNotFoundError):
            self.registry.update("missing", "v1", make_artifact())
        with self.assertRaises(ServiceNotFoundError):
            self.registry.delete("missing", "v1")
        with self.assertRaises(ServiceNotFoundError):
            self.registry.export_schema("missing", "v1")

    def test_failures_are_logged_and_reraised(self) -> None:
        """Registry failures are logged with a traceback and propagate unchanged."""
        with self.assertLogs("credit_risk.ml.registry", level="ERROR") as logs:
            with self.assertRaises(ServiceConflictError):
                self.registry.publish("credit_default", "v1", make_artifact())
        self.assertIn("name=credit_default version=v1", logs.output[0])

        with mock.patch("credit_risk.ml.registry._field_types", side_effect=RuntimeError("schema failure")):
            with self.assertLogs("credit_risk.ml.registry", level="ERROR"):
                with self.assertRaises(RuntimeError):
                    self.registry.export_schema("credit_default", "v1")

    def test_delete_removes_service(self) -> None:
        """Deleted services are no longer retrievable."""
        self.registry.delete("credit_default", "v1")
        self.assertEqual(self.registry.list_services(), [])
        with self.assertRaises(ServiceNotFoundError):
            self.registry.get("credit_default", "v1")

    def test_export_schema_lists_fields(self) -> None:
        """Exported schema names inputs, outputs and trained feature columns."""
        schema = self.registry.export_schema("credit_default", "v1")
        self.assertEqual(schema["operation_id"], "consume_credit_default_v1")
        self.assertEqual(schema["feature_columns"], FEATURE_COLUMNS)
        self.assertIn("transaction_date", schema["inputs"]["transactions"])
        self.assertIn("credit_limit", schema["inputs"]["demographics"])
        self.assertEqual(
            sorted(schema["outputs"]["predictions"]),
            ["account_id", "default_probability", "predicted_label"],
        )
        self.assertIn("properties", schema["request_schema"])
        self.assertIn("predictions", schema["response_schema"]["properties"])
        self.assertAlmostEqual(schema["threshold"], 0.5)

    def test_consume_builds_and_scores(self) -> None:
        """Consuming a service runs feature building then scoring."""
        service = self.registry.get("credit_default", "v1")
        predictions = service.consume(make_transactions(), make_demographics())
        self.assertEqual(list(predictions["account_id"]), ["A1", "A2", "A3"])
        self.assertEqual(list(predictions["predicted_label"]), [1, 0, 0])

    def test_consume_with_window(self) -> None:
        """A narrow window lowers spend and therefore the stub probability."""
        service = self.registry.get("credit_default", "v1")
        window = FeatureWindow(start="2024-01-09", end="2024-01-10")
        predictions = service.consume(make_transactions(), make_demographics(), window=window)
        a1 = predictions.set_index("account_id").loc["A1"]
        self.assertAlmostEqual(a1["default_probability"], 0.3)
        self.assertEqual(a1["predicted_label"], 0)


if __name__ == "__main__":
    unittest.main()
