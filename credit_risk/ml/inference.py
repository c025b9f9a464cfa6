"""Runtime inference service serving the default credit scoring artifact."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from .feature_builder import DEFAULT_WINDOW_MONTHS, FeatureWindow, TableLike, build_features
from .scorer import ScoringArtifact, load_artifact, score


logger = logging.getLogger(__name__)


class CreditScoringInferenceService:
    """Loads the trained artifact from disk and scores feature tables."""

    def __init__(
        self,
        model_path: str,
        decision_threshold: Optional[float] = None,
        window_months: int = DEFAULT_WINDOW_MONTHS,
        join_policy: str = "inner",
    ) -> None:
        self._model_path = Path(model_path)
        self._artifact: Optional[ScoringArtifact] = None
        self._decision_threshold = decision_threshold
        self._window_months = window_months
        self._join_policy = join_policy
        self._load_model()

    @property
    def model_path(self) -> str:
        """Return the current model artifact path as string."""
        return str(self._model_path)

    @property
    def is_loaded(self) -> bool:
        """Return whether model artifact is available and loaded."""
        return self._artifact is not None

    @property
    def artifact(self) -> ScoringArtifact:
        """Return the loaded artifact.

        Raises:
            RuntimeError: If no artifact is loaded.
        """
        if self._artifact is None:
            raise RuntimeError("Credit scoring model not loaded. Train model first.")
        return self._artifact

    def describe(self) -> Dict[str, Any]:
        """Summarize runtime model state for health endpoints."""
        if self._artifact is None:
            return {"loaded": False, "model_path": self.model_path}
        return {
            "loaded": True,
            "model_path": self.model_path,
            "model_name": self._artifact.model_name,
            "model_version": self._artifact.version,
            "threshold": self._artifact.threshold,
            "metrics": dict(self._artifact.metrics),
        }

    def reload(self, model_path: str = "") -> None:
        """Reload model artifact, optionally from a new path.

        Args:
            model_path: Optional new model path.
        """
        try:
            if model_path:
                self._model_path = Path(model_path)
            self._load_model()
        except Exception:
            logger.exception("Failed to reload credit model path=%s", model_path or self._model_path)
            raise

    def _load_model(self) -> None:
        """Load model artifact from disk, leaving the service unloaded on failure."""
        if not self._model_path.exists():
            logger.warning("Credit model file not found path=%s", self._model_path)
            self._artifact = None
            return
        try:
            artifact = load_artifact(self._model_path)
            if self._decision_threshold is not None:
                artifact = artifact.with_threshold(self._decision_threshold)
            self._artifact = artifact
            logger.info("Credit model loaded path=%s threshold=%.3f", self._model_path, artifact.threshold)
        except Exception:
            logger.exception("Failed to load credit model path=%s", self._model_path)
            self._artifact = None

    def predict(self, features: pd.DataFrame) -> pd.DataFrame:
        """Score a feature table with the loaded artifact."""
        return score(features, self.artifact)

    def predict_from_records(
        self,
        transactions: TableLike,
        demographics: TableLike,
        window: Optional[FeatureWindow] = None,
    ) -> pd.DataFrame:
        """Full pipeline: build account features then score them."""
        features = build_features(
            transactions,
            demographics,
            window=window,
            join_policy=self._join_policy,
            window_months=self._window_months,
        )
        return self.predict(features)
