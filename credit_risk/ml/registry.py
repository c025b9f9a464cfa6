"""In-process registry of versioned credit scoring services.

Each published service is an immutable pairing of a name and version with a
scoring artifact. Consuming a service runs the full feature-building and
scoring pipeline with that artifact, so callers never reach module-level
model state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
import logging
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple, Type

import pandas as pd
from pydantic import BaseModel

from credit_risk.models.enums import JoinPolicy
from credit_risk.models.exceptions import ServiceConflictError, ServiceNotFoundError

from .feature_builder import DEFAULT_WINDOW_MONTHS, FeatureWindow, TableLike, build_features
from .schema import DemographicRecord, FeatureBuildRequest, PredictionRecord, TransactionRecord
from .scorer import ScoringArtifact, score
from .service_schema import ServiceConsumeResponse


logger = logging.getLogger(__name__)

ServiceKey = Tuple[str, str]


def _utc_now() -> datetime:
    """Return current UTC timestamp."""
    return datetime.now(timezone.utc)


def _field_types(model: Type[BaseModel]) -> Dict[str, str]:
    """Map each model field to its JSON Schema type name."""
    properties = model.model_json_schema().get("properties", {})
    types: Dict[str, str] = {}
    for name, spec in properties.items():
        if "type" in spec:
            type_name = spec.get("format") or spec["type"]
        else:
            options = [option.get("format") or option.get("type", "object") for option in spec.get("anyOf", [])]
            type_name = "|".join(options) if options else "object"
        types[name] = type_name
    return types


@dataclass(frozen=True)
class ScoringService:
    """Published snapshot of a scoring function and its artifact."""

    name: str
    version: str
    artifact: ScoringArtifact
    description: str = ""
    window_months: int = DEFAULT_WINDOW_MONTHS
    join_policy: JoinPolicy = JoinPolicy.INNER
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def key(self) -> ServiceKey:
        """Registry key of this service."""
        return (self.name, self.version)

    @property
    def operation_id(self) -> str:
        """Stable operation name used in exported schemas."""
        return "consume_{0}_{1}".format(self.name, self.version)

    def score_features(self, features: pd.DataFrame) -> pd.DataFrame:
        """Score prepared feature rows with this service's artifact."""
        return score(features, self.artifact)

    def consume(
        self,
        transactions: TableLike,
        demographics: TableLike,
        window: Optional[FeatureWindow] = None,
    ) -> pd.DataFrame:
        """Build features from raw records and score them."""
        features = build_features(
            transactions,
            demographics,
            window=window,
            join_policy=self.join_policy,
            window_months=self.window_months,
        )
        return self.score_features(features)

    def summary(self) -> Dict[str, Any]:
        """Return a JSON-friendly description of the service."""
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "model_name": self.artifact.model_name,
            "model_version": self.artifact.version,
            "threshold": self.artifact.threshold,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class ScoringServiceRegistry:
    """Thread-safe store of published scoring services keyed by name and version."""

    def __init__(
        self,
        window_months: int = DEFAULT_WINDOW_MONTHS,
        join_policy: str = JoinPolicy.INNER.value,
    ) -> None:
        self._lock = RLock()
        self._services: Dict[ServiceKey, ScoringService] = {}
        self._window_months = window_months
        self._join_policy = JoinPolicy(join_policy)

    @staticmethod
    def _key(name: str, version: str) -> ServiceKey:
        """Normalize and validate a registry key."""
        normalized_name = (name or "").strip()
        normalized_version = (version or "").strip()
        if not normalized_name or not normalized_version:
            raise ValueError("Service name and version must not be blank.")
        return (normalized_name, normalized_version)

    def publish(self, name: str, version: str, artifact: ScoringArtifact, description: str = "") -> ScoringService:
        """Publish a new service version.

        Raises:
            ServiceConflictError: If the name and version are already published.
        """
        try:
            key = self._key(name, version)
            with self._lock:
                if key in self._services:
                    raise ServiceConflictError("Service already published: {0}/{1}".format(*key))
                service = ScoringService(
                    name=key[0],
                    version=key[1],
                    artifact=artifact,
                    description=description,
                    window_months=self._window_months,
                    join_policy=self._join_policy,
                )
                self._services[key] = service
            logger.info("Published scoring service name=%s version=%s model=%s", key[0], key[1], artifact.model_name)
            return service
        except Exception:
            logger.exception("Failed publishing scoring service name=%s version=%s", name, version)
            raise

    def update(
        self,
        name: str,
        version: str,
        artifact: ScoringArtifact,
        description: Optional[str] = None,
    ) -> ScoringService:
        """Replace the artifact behind an existing service version.

        Raises:
            ServiceNotFoundError: If the service is not published.
        """
        try:
            key = self._key(name, version)
            with self._lock:
                current = self._services.get(key)
                if current is None:
                    raise ServiceNotFoundError("Service not found: {0}/{1}".format(*key))
                service = replace(
                    current,
                    artifact=artifact,
                    description=current.description if description is None else description,
                    updated_at=_utc_now(),
                )
                self._services[key] = service
            logger.info("Updated scoring service name=%s version=%s model=%s", key[0], key[1], artifact.model_name)
            return service
        except Exception:
            logger.exception("Failed updating scoring service name=%s version=%s", name, version)
            raise

    def get(self, name: str, version: str) -> ScoringService:
        """Return a published service.

        Raises:
            ServiceNotFoundError: If the service is not published.
        """
        try:
            key = self._key(name, version)
            with self._lock:
                service = self._services.get(key)
            if service is None:
                raise ServiceNotFoundError("Service not found: {0}/{1}".format(*key))
            return service
        except Exception:
            logger.exception("Failed getting scoring service name=%s version=%s", name, version)
            raise

    def list_services(self) -> List[ScoringService]:
        """Return all published services ordered by name and version."""
        with self._lock:
            return [self._services[key] for key in sorted(self._services)]

    def delete(self, name: str, version: str) -> None:
        """Remove a published service.

        Raises:
            ServiceNotFoundError: If the service is not published.
        """
        try:
            key = self._key(name, version)
            with self._lock:
                if self._services.pop(key, None) is None:
                    raise ServiceNotFoundError("Service not found: {0}/{1}".format(*key))
            logger.info("Deleted scoring service name=%s version=%s", key[0], key[1])
        except Exception:
            logger.exception("Failed deleting scoring service name=%s version=%s", name, version)
            raise

    def export_schema(self, name: str, version: str) -> Dict[str, Any]:
        """Describe the consume operation of a service for client integration."""
        try:
            service = self.get(name, version)
            return {
                "name": service.name,
                "version": service.version,
                "operation_id": service.operation_id,
                "description": service.description,
                "inputs": {
                    "transactions": _field_types(TransactionRecord),
                    "demographics": _field_types(DemographicRecord),
                },
                "outputs": {"predictions": _field_types(PredictionRecord)},
                "feature_columns": list(service.artifact.feature_columns),
                "categories": {key: list(values) for key, values in service.artifact.categories.items()},
                "threshold": service.artifact.threshold,
                "request_schema": FeatureBuildRequest.model_json_schema(),
                "response_schema": ServiceConsumeResponse.model_json_schema(),
            }
        except Exception:
            logger.exception("Failed exporting scoring service schema name=%s version=%s", name, version)
            raise
