"""Shared sample tables and a deterministic classifier for unit tests."""

from pathlib import Path
import sys
from typing import Dict, List

import numpy as np
import pandas as pd


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from credit_risk.ml.schema import CATEGORICAL_FEATURE_COLUMNS, FEATURE_COLUMNS
from credit_risk.ml.scorer import ScoringArtifact


TRAINED_CATEGORIES: Dict[str, List[str]] = {
    "sex": ["female", "male"],
    "education": ["graduate", "high_school", "other", "post_graduate"],
    "marital_status": ["divorced", "married", "single"],
    "account_setup": ["complete", "incomplete"],
}


class SpendRatioModel:
    """Stand-in classifier: default probability equals spend over credit limit, capped at 1."""

    classes_ = np.array([0, 1])

    def predict_proba(self, frame: pd.DataFrame) -> np.ndarray:
        spend = frame["total_amount"].to_numpy(dtype=float)
        limit = np.maximum(frame["credit_limit"].to_numpy(dtype=float), 1.0)
        probability = np.clip(spend / limit, 0.0, 1.0)
        return np.column_stack([1.0 - probability, probability])


def make_artifact(threshold: float = 0.5, version: str = "test") -> ScoringArtifact:
    """Build an artifact around :class:`SpendRatioModel`."""
    return ScoringArtifact(
        model=SpendRatioModel(),
        feature_columns=list(FEATURE_COLUMNS),
        categorical_columns=list(CATEGORICAL_FEATURE_COLUMNS),
        categories={key: list(values) for key, values in TRAINED_CATEGORIES.items()},
        threshold=threshold,
        model_name="spend_ratio_stub",
        version=version,
    )


def make_demographics() -> pd.DataFrame:
    """Three accounts; A3 has no transactions at all."""
    return pd.DataFrame(
        [
            {
                "account_id": "A1",
                "age": 35,
                "income": 50000,
                "sex": "Male",
                "education": "Graduate",
                "marital_status": "Married",
                "credit_limit": 1000,
                "account_setup": "Complete",
            },
            {
                "account_id": "A2",
                "age": 52,
                "income": 80000,
                "sex": "female",
                "education": "Post Graduate",
                "marital_status": "Single",
                "credit_limit": 5000,
                "account_setup": "complete",
            },
            {
                "account_id": "A3",
                "age": 23,
                "income": 21000,
                "sex": "MALE",
                "education": "High-School",
                "marital_status": "single",
                "credit_limit": 800,
                "account_setup": "Incomplete",
            },
        ]
    )


def make_transactions() -> pd.DataFrame:
    """Purchases for A1 (restaurant) and A2 (mixed), plus one A2 payment."""
    return pd.DataFrame(
        [
            {"account_id": "A1", "transaction_date": "2024-01-10", "transaction_type": "Purchase", "amount": 300, "merchant_industry": "restaurant"},
            {"account_id": "A1", "transaction_date": "2024-01-01", "transaction_type": "purchase", "amount": 100, "merchant_industry": "Restaurant"},
            {"account_id": "A1", "transaction_date": "2024-01-04", "transaction_type": "PURCHASE", "amount": "200", "merchant_industry": " RESTAURANT "},
            {"account_id": "A2", "transaction_date": "2024-01-02", "transaction_type": "purchase", "amount": 50, "merchant_industry": "Supermarket"},
            {"account_id": "A2", "transaction_date": "2024-01-05", "transaction_type": "purchase", "amount": 150, "merchant_industry": "travel"},
            {"account_id": "A2", "transaction_date": "2024-01-06", "transaction_type": "payment", "amount": 500, "merchant_industry": "bank"},
        ]
    )
