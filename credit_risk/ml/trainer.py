"""Training pipeline for the gradient-boosted credit default classifier."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import joblib
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import GradientBoostingClassifier
from sklearn.metrics import accuracy_score, average_precision_score, roc_auc_score
from sklearn.model_selection import train_test_split
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from credit_risk.common import normalize_account_id

from .schema import CATEGORICAL_FEATURE_COLUMNS, FEATURE_COLUMNS, LABEL_COLUMN, NUMERIC_FEATURE_COLUMNS
from .scorer import DEFAULT_DECISION_THRESHOLD, ScoringArtifact


logger = logging.getLogger(__name__)

MODEL_NAME = "gradient_boosting_trees"
MODEL_VERSION = "v1"


def build_training_frame(features: pd.DataFrame, labels: pd.DataFrame) -> pd.DataFrame:
    """Join feature rows with ``is_default`` labels by account id.

    Raises:
        ValueError: If required columns are missing or rows carry empty values.
    """
    missing = set(["account_id"] + FEATURE_COLUMNS).difference(features.columns)
    if missing:
        raise ValueError("Missing required feature columns: {0}".format(sorted(missing)))
    label_missing = {"account_id", LABEL_COLUMN}.difference(labels.columns)
    if label_missing:
        raise ValueError("Missing required label columns: {0}".format(sorted(label_missing)))

    left = features[["account_id"] + FEATURE_COLUMNS].copy()
    left["account_id"] = left["account_id"].map(normalize_account_id)
    right = labels[["account_id", LABEL_COLUMN]].copy()
    right["account_id"] = right["account_id"].map(normalize_account_id)
    right = right.drop_duplicates(subset=["account_id"], keep="last")

    frame = left.merge(right, on="account_id", how="inner")
    incomplete = frame[FEATURE_COLUMNS + [LABEL_COLUMN]].isna().any(axis=1)
    if incomplete.any():
        raise ValueError(
            "Training rows contain empty values for accounts: {0}".format(
                list(frame.loc[incomplete, "account_id"].head(5))
            )
        )
    frame[LABEL_COLUMN] = frame[LABEL_COLUMN].astype(int)
    return frame


def build_pipeline(random_state: int = 42) -> Pipeline:
    """Create the one-hot + gradient-boosted trees model pipeline."""
    preprocessor = ColumnTransformer(
        transformers=[
            ("cat", OneHotEncoder(handle_unknown="ignore"), CATEGORICAL_FEATURE_COLUMNS),
            ("num", "passthrough", NUMERIC_FEATURE_COLUMNS),
        ]
    )
    gbdt = GradientBoostingClassifier(
        n_estimators=200,
        learning_rate=0.05,
        max_depth=3,
        subsample=0.9,
        random_state=random_state,
    )
    return Pipeline([("preprocessor", preprocessor), ("model", gbdt)])


def train_and_save_model(
    features: pd.DataFrame,
    labels: pd.DataFrame,
    output_path: str,
    threshold: float = DEFAULT_DECISION_THRESHOLD,
    test_size: float = 0.2,
    random_state: int = 42,
    version: Optional[str] = None,
) -> Dict[str, Any]:
    """Train the credit default classifier and save a joblib artifact.

    Args:
        features: Feature table from ``build_features``.
        labels: Table with ``account_id`` and ``is_default`` (0/1).
        output_path: Target artifact file path.
        threshold: Decision threshold stored in the artifact.
        test_size: Hold-out fraction used for evaluation metrics.
        random_state: Seed for the split and the estimator.
        version: Artifact version label.

    Returns:
        Dict[str, Any]: Training summary.

    Raises:
        ValueError: If inputs are incomplete or contain a single class.
    """
    if not 0.0 < threshold < 1.0:
        raise ValueError("threshold must be between 0 and 1.")

    frame = build_training_frame(features, labels)
    y = frame[LABEL_COLUMN]
    class_counts = y.value_counts()
    if len(class_counts) < 2:
        raise ValueError("Training labels must contain both default and non-default accounts.")

    x = frame[FEATURE_COLUMNS].copy()
    for column in CATEGORICAL_FEATURE_COLUMNS:
        x[column] = x[column].astype(str)
    stratify = y if int(class_counts.min()) >= 2 else None
    x_train, x_test, y_train, y_test = train_test_split(
        x,
        y,
        test_size=test_size,
        random_state=random_state,
        stratify=stratify,
    )

    pipeline = build_pipeline(random_state=random_state)
    pipeline.fit(x_train, y_train)

    proba = pipeline.predict_proba(x_test)[:, 1]
    predicted = (proba > threshold).astype(int)
    metrics: Dict[str, float] = {
        "accuracy": float(accuracy_score(y_test, predicted)),
        "default_rate": float(y.mean()),
    }
    try:
        metrics["roc_auc"] = float(roc_auc_score(y_test, proba))
        metrics["pr_auc"] = float(average_precision_score(y_test, proba))
    except ValueError:
        logger.warning("Hold-out split has a single class; ranking metrics unavailable.")
        metrics["roc_auc"] = 0.0
        metrics["pr_auc"] = 0.0
    logger.info(
        "Credit model training complete rows=%d roc_auc=%.6f pr_auc=%.6f accuracy=%.6f",
        len(frame),
        metrics["roc_auc"],
        metrics["pr_auc"],
        metrics["accuracy"],
    )

    artifact = ScoringArtifact(
        model=pipeline,
        feature_columns=list(FEATURE_COLUMNS),
        categorical_columns=list(CATEGORICAL_FEATURE_COLUMNS),
        categories={column: sorted(x[column].unique().tolist()) for column in CATEGORICAL_FEATURE_COLUMNS},
        threshold=float(threshold),
        model_name=MODEL_NAME,
        version=version or MODEL_VERSION,
        metrics=metrics,
    )
    model_path = Path(output_path)
    model_path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(artifact.to_dict(), model_path)
    logger.info("Credit model artifact saved at %s", model_path)

    return {
        "model_path": str(model_path),
        "model_name": artifact.model_name,
        "version": artifact.version,
        "rows": int(len(frame)),
        "threshold": artifact.threshold,
        "metrics": metrics,
    }
