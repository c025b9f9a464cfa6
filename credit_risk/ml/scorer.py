"""Stateless scoring of account feature rows with an injected classifier artifact."""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import joblib
import numpy as np
import pandas as pd

from credit_risk.common import canonicalize_series, normalize_account_id
from credit_risk.models.exceptions import SchemaMismatchError

from .schema import PREDICTION_COLUMNS


logger = logging.getLogger(__name__)

DEFAULT_DECISION_THRESHOLD = 0.5
_REQUIRED_ARTIFACT_KEYS = ("model", "feature_columns", "categorical_columns", "categories")


@dataclass(frozen=True)
class ScoringArtifact:
    """Trained classifier plus the feature schema it was fitted on."""

    model: Any
    feature_columns: List[str]
    categorical_columns: List[str]
    categories: Dict[str, List[str]]
    threshold: float = DEFAULT_DECISION_THRESHOLD
    model_name: str = "gradient_boosting"
    version: str = "v1"
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def numeric_columns(self) -> List[str]:
        """Feature columns that are not categorical, in trained order."""
        return [column for column in self.feature_columns if column not in self.categorical_columns]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScoringArtifact":
        """Build an artifact from the dictionary persisted by the trainer.

        Raises:
            ValueError: If required keys are missing or the threshold is invalid.
        """
        missing = [key for key in _REQUIRED_ARTIFACT_KEYS if key not in payload]
        if missing:
            raise ValueError("Model artifact is missing keys: {0}".format(missing))
        threshold = float(payload.get("threshold", DEFAULT_DECISION_THRESHOLD))
        if not 0.0 < threshold < 1.0:
            raise ValueError("Model artifact threshold must be between 0 and 1, got {0}".format(threshold))
        return cls(
            model=payload["model"],
            feature_columns=list(payload["feature_columns"]),
            categorical_columns=list(payload["categorical_columns"]),
            categories={key: list(values) for key, values in dict(payload["categories"]).items()},
            threshold=threshold,
            model_name=str(payload.get("model_name", "gradient_boosting")),
            version=str(payload.get("version", "v1")),
            metrics=dict(payload.get("metrics", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the joblib-serialisable dictionary form."""
        return {
            "model": self.model,
            "feature_columns": list(self.feature_columns),
            "categorical_columns": list(self.categorical_columns),
            "categories": {key: list(values) for key, values in self.categories.items()},
            "threshold": float(self.threshold),
            "model_name": self.model_name,
            "version": self.version,
            "metrics": dict(self.metrics),
        }

    def with_threshold(self, threshold: float) -> "ScoringArtifact":
        """Return a copy using a different decision threshold."""
        payload = self.to_dict()
        payload["threshold"] = threshold
        return ScoringArtifact.from_dict(payload)


def load_artifact(path: Union[str, Path]) -> ScoringArtifact:
    """Load a scoring artifact written by the trainer.

    Raises:
        FileNotFoundError: If no file exists at ``path``.
        ValueError: If the file does not hold a valid artifact.
    """
    artifact_path = Path(path)
    if not artifact_path.exists():
        raise FileNotFoundError("Model artifact not found: {0}".format(artifact_path))
    payload = joblib.load(artifact_path)
    if isinstance(payload, ScoringArtifact):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError("Model artifact at {0} is not a mapping".format(artifact_path))
    artifact = ScoringArtifact.from_dict(payload)
    logger.info("Scoring artifact loaded path=%s model=%s version=%s", artifact_path, artifact.model_name, artifact.version)
    return artifact


def _row_account(account_ids: pd.Series, mask: pd.Series) -> Optional[str]:
    """Account id of the first row flagged by ``mask``."""
    position = int(np.flatnonzero(mask.to_numpy())[0])
    return account_ids.iloc[position]


def prepare_model_input(features: pd.DataFrame, artifact: ScoringArtifact) -> pd.DataFrame:
    """Validate feature rows against the trained schema and order the columns.

    Args:
        features: Feature table including ``account_id``.
        artifact: Scoring artifact describing the expected schema.

    Returns:
        pd.DataFrame: Model input with ``artifact.feature_columns`` in order.

    Raises:
        SchemaMismatchError: On missing columns, missing values, non-numeric
            numerics, or categorical values outside the trained vocabulary.
    """
    required = ["account_id"] + list(artifact.feature_columns)
    missing = [column for column in required if column not in features.columns]
    if missing:
        raise SchemaMismatchError(
            "Feature rows are missing required columns: {0}".format(missing),
            column=missing[0],
        )

    account_ids = features["account_id"].map(normalize_account_id).astype(object)
    if account_ids.isna().any():
        raise SchemaMismatchError("Feature rows contain an empty account_id", column="account_id")

    model_input = pd.DataFrame(index=features.index)
    for column in artifact.numeric_columns:
        raw = features[column]
        values = pd.to_numeric(raw, errors="coerce").astype(float)
        invalid = ~np.isfinite(values)
        if invalid.any():
            account_id = _row_account(account_ids, invalid)
            value = raw[invalid].iloc[0]
            raise SchemaMismatchError(
                "Feature '{0}' is missing or non-numeric for account {1}: {2!r}".format(column, account_id, value),
                column=column,
                account_id=account_id,
                value=value,
            )
        model_input[column] = values

    for column in artifact.categorical_columns:
        raw = features[column]
        values = canonicalize_series(raw)
        vocabulary = set(artifact.categories.get(column, []))
        unknown = values.isna() | ~values.isin(vocabulary)
        if unknown.any():
            account_id = _row_account(account_ids, unknown)
            value = raw[unknown].iloc[0]
            raise SchemaMismatchError(
                "Feature '{0}' has value {1!r} outside the trained categories for account {2}".format(
                    column, value, account_id
                ),
                column=column,
                account_id=account_id,
                value=value,
            )
        model_input[column] = values

    return model_input[list(artifact.feature_columns)]


def score(features: pd.DataFrame, artifact: ScoringArtifact) -> pd.DataFrame:
    """Score feature rows, preserving input order and account ids.

    Args:
        features: Feature table as produced by ``build_features``.
        artifact: Trained classifier artifact, injected by the caller.

    Returns:
        pd.DataFrame: ``account_id``, ``predicted_label`` (1 = default) and
        ``default_probability`` per input row.

    Raises:
        SchemaMismatchError: If any row does not match the trained schema.
    """
    if not isinstance(features, pd.DataFrame):
        features = pd.DataFrame(list(features))
    if features.empty:
        logger.info("No feature rows to score; returning empty prediction table.")
        return pd.DataFrame(
            {
                "account_id": pd.Series(dtype=object),
                "predicted_label": pd.Series(dtype=int),
                "default_probability": pd.Series(dtype=float),
            }
        )[PREDICTION_COLUMNS]

    model_input = prepare_model_input(features, artifact)
    probabilities = artifact.model.predict_proba(model_input)[:, 1].astype(float)
    labels = (probabilities > artifact.threshold).astype(int)

    predictions = pd.DataFrame(
        {
            "account_id": features["account_id"].map(normalize_account_id).to_numpy(),
            "predicted_label": labels,
            "default_probability": probabilities,
        }
    )
    logger.info(
        "Scored accounts=%d predicted_defaults=%d threshold=%.3f model=%s version=%s",
        len(predictions),
        int(labels.sum()),
        artifact.threshold,
        artifact.model_name,
        artifact.version,
    )
    return predictions[PREDICTION_COLUMNS]
