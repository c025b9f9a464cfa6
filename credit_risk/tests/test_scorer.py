"""Unit tests for feature-row scoring and artifact loading."""

from pathlib import Path
import sys
import tempfile
import unittest

import joblib
import pandas as pd


PROJECT_ROOT = Path(__file__).resolve().parents[2]
TESTS_ROOT = Path(__file__).resolve().parent
for _path in (PROJECT_ROOT, TESTS_ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from credit_fixtures import make_artifact, make_demographics, make_transactions
from credit_risk.ml.feature_builder import build_features
from credit_risk.ml.schema import FEATURE_ROW_COLUMNS, PREDICTION_COLUMNS
from credit_risk.ml.scorer import ScoringArtifact, load_artifact, score
from credit_risk.models.enums import JoinPolicy
from credit_risk.models.exceptions import SchemaMismatchError


class ScorerTests(unittest.TestCase):
    """Validate prediction output, thresholds and schema checks."""

    def setUp(self) -> None:
        """Build features from the shared sample tables."""
        self.features = build_features(make_transactions(), make_demographics())

    def test_predictions_preserve_order_and_ids(self) -> None:
        """One prediction per input row, in input order."""
        predictions = score(self.features, make_artifact())
        self.assertEqual(list(predictions.columns), PREDICTION_COLUMNS)
        self.assertEqual(list(predictions["account_id"]), ["A1", "A2", "A3"])

        reversed_features = self.features.iloc[::-1].reset_index(drop=True)
        reversed_predictions = score(reversed_features, make_artifact())
        self.assertEqual(list(reversed_predictions["account_id"]), ["A3", "A2", "A1"])

    def test_probabilities_and_labels(self) -> None:
        """Label is 1 exactly when the probability exceeds the threshold."""
        predictions = score(self.features, make_artifact()).set_index("account_id")
        self.assertAlmostEqual(predictions.loc["A1", "default_probability"], 0.6)
        self.assertAlmostEqual(predictions.loc["A2", "default_probability"], 0.04)
        self.assertAlmostEqual(predictions.loc["A3", "default_probability"], 0.0)
        self.assertEqual(list(predictions["predicted_label"]), [1, 0, 0])
        for _, row in predictions.iterrows():
            self.assertGreaterEqual(row["default_probability"], 0.0)
            self.assertLessEqual(row["default_probability"], 1.0)
            self.assertEqual(row["predicted_label"], int(row["default_probability"] > 0.5))

    def test_threshold_is_strictly_greater(self) -> None:
        """A probability equal to the threshold is not a default."""
        predictions = score(self.features, make_artifact(threshold=0.6))
        self.assertEqual(list(predictions["predicted_label"]), [0, 0, 0])

    def test_empty_features_return_empty_predictions(self) -> None:
        """Scoring no rows is a valid empty result."""
        empty = pd.DataFrame(columns=FEATURE_ROW_COLUMNS)
        predictions = score(empty, make_artifact())
        self.assertTrue(predictions.empty)
        self.assertEqual(list(predictions.columns), PREDICTION_COLUMNS)

    def test_unknown_category_fails_batch(self) -> None:
        """A categorical value never seen in training rejects the batch."""
        features = self.features.copy()
        features.loc[1, "education"] = "doctorate"
        with self.assertRaises(SchemaMismatchError) as ctx:
            score(features, make_artifact())
        self.assertEqual(ctx.exception.column, "education")
        self.assertEqual(ctx.exception.account_id, "A2")

    def test_category_variants_are_canonicalized_before_lookup(self) -> None:
        """Formatting variants of a trained category are accepted."""
        features = self.features.copy()
        features.loc[0, "marital_status"] = " MARRIED "
        predictions = score(features, make_artifact())
        self.assertEqual(len(predictions), 3)

    def test_missing_feature_column_fails_batch(self) -> None:
        """An absent trained feature column rejects the batch."""
        features = self.features.drop(columns=["recency"])
        with self.assertRaises(SchemaMismatchError) as ctx:
            score(features, make_artifact())
        self.assertEqual(ctx.exception.column, "recency")

    def test_missing_account_id_column_fails_batch(self) -> None:
        """Rows without account ids cannot be scored."""
        with self.assertRaises(SchemaMismatchError):
            score(self.features.drop(columns=["account_id"]), make_artifact())

    def test_non_numeric_feature_fails_batch(self) -> None:
        """A non-numeric value in a numeric column rejects the batch."""
        features = self.features.astype({"income": object})
        features.loc[2, "income"] = "lots"
        with self.assertRaises(SchemaMismatchError) as ctx:
            score(features, make_artifact())
        self.assertEqual(ctx.exception.column, "income")
        self.assertEqual(ctx.exception.account_id, "A3")

    def test_transaction_only_account_is_rejected(self) -> None:
        """Left-outer rows without demographics do not match the trained schema."""
        transactions = make_transactions()
        transactions.loc[len(transactions)] = ["Z9", "2024-01-03", "purchase", 75, "petrol"]
        features = build_features(transactions, make_demographics(), join_policy=JoinPolicy.LEFT_OUTER)
        with self.assertRaises(SchemaMismatchError) as ctx:
            score(features, make_artifact())
        self.assertEqual(ctx.exception.account_id, "Z9")


class ArtifactTests(unittest.TestCase):
    """Validate artifact persistence and validation."""

    def test_load_artifact_round_trip(self) -> None:
        """Artifacts dumped as dictionaries load back with the same schema."""
        artifact = make_artifact(threshold=0.3, version="round-trip")
        with tempfile.TemporaryDirectory() as tmp_dir:
            path = Path(tmp_dir) / "model.joblib"
            joblib.dump(artifact.to_dict(), path)
            loaded = load_artifact(path)
        self.assertEqual(loaded.feature_columns, artifact.feature_columns)
        self.assertEqual(loaded.categories, artifact.categories)
        self.assertAlmostEqual(loaded.threshold, 0.3)
        self.assertEqual(loaded.version, "round-trip")

    def test_load_missing_artifact(self) -> None:
        """A missing file raises FileNotFoundError."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            with self.assertRaises(FileNotFoundError):
                load_artifact(Path(tmp_dir) / "absent.joblib")

    def test_from_dict_rejects_incomplete_payload(self) -> None:
        """Required keys must be present."""
        payload = make_artifact().to_dict()
        payload.pop("categories")
        with self.assertRaises(ValueError):
            ScoringArtifact.from_dict(payload)

    def test_with_threshold_validates_range(self) -> None:
        """Thresholds outside (0, 1) are rejected."""
        self.assertAlmostEqual(make_artifact().with_threshold(0.25).threshold, 0.25)
        with self.assertRaises(ValueError):
            make_artifact().with_threshold(1.5)


if __name__ == "__main__":
    unittest.main()
