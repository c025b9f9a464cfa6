"""Primary API router exposing feature building, scoring, and service lifecycle endpoints."""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, status
import pandas as pd

from credit_risk.core.config import AppSettings
from credit_risk.ml.feature_builder import FeatureWindow, build_features
from credit_risk.ml.inference import CreditScoringInferenceService
from credit_risk.ml.registry import ScoringServiceRegistry
from credit_risk.ml.schema import (
    DEMOGRAPHIC_COLUMNS,
    FEATURE_ROW_COLUMNS,
    TRANSACTION_COLUMNS,
    FeatureBuildRequest,
    ScoreRequest,
)
from credit_risk.ml.scorer import load_artifact
from credit_risk.ml.service_schema import PublishServiceRequest, UpdateServiceRequest
from credit_risk.models.exceptions import (
    MalformedRecordError,
    SchemaMismatchError,
    ServiceConflictError,
    ServiceNotFoundError,
)


logger = logging.getLogger(__name__)


def _records_to_frame(records: List[Any], columns: List[str]) -> pd.DataFrame:
    """Convert validated pydantic records into a DataFrame with fixed columns."""
    return pd.DataFrame([record.model_dump() for record in records], columns=columns)


def _frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Serialize a DataFrame into JSON-native records, mapping NaN to null."""
    return json.loads(frame.to_json(orient="records", date_format="iso"))


def _window_from_request(payload: FeatureBuildRequest) -> Optional[FeatureWindow]:
    """Build a feature window when the request carries any bound."""
    if payload.window_start is None and payload.window_end is None:
        return None
    return FeatureWindow(start=payload.window_start, end=payload.window_end)


def build_router(
    settings: AppSettings,
    registry: ScoringServiceRegistry,
    inference: Optional[CreditScoringInferenceService],
) -> APIRouter:
    """Build scoring routes with injected settings, registry, and runtime model."""
    router = APIRouter()

    @router.get("/ml/health", summary="Credit model health")
    def ml_health() -> dict:
        """Return runtime model status and published service count."""
        model_state = inference.describe() if inference is not None else {"loaded": False}
        return {
            "model": model_state,
            "published_services": len(registry.list_services()),
        }

    @router.post("/features", summary="Build account feature rows")
    def features_build(payload: FeatureBuildRequest) -> dict:
        """Aggregate raw transactions and demographics into one row per account."""
        try:
            features = build_features(
                _records_to_frame(payload.transactions, TRANSACTION_COLUMNS),
                _records_to_frame(payload.demographics, DEMOGRAPHIC_COLUMNS),
                window=_window_from_request(payload),
                join_policy=payload.join_policy or settings.join_policy,
                window_months=settings.window_months,
            )
            return {"columns": FEATURE_ROW_COLUMNS, "features": _frame_to_records(features)}
        except (MalformedRecordError, ValueError) as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        except Exception as exc:
            logger.exception("Feature build endpoint failed.")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    @router.post("/score", summary="Score feature rows with the runtime model")
    def features_score(payload: ScoreRequest) -> dict:
        """Run default-probability inference on prepared feature rows."""
        if inference is None or not inference.is_loaded:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Credit scoring model not loaded. Train model first.",
            )
        try:
            predictions = inference.predict(_records_to_frame(payload.features, FEATURE_ROW_COLUMNS))
            return {"predictions": _frame_to_records(predictions)}
        except SchemaMismatchError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        except Exception as exc:
            logger.exception("Score endpoint failed.")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    @router.post("/services", status_code=status.HTTP_201_CREATED, summary="Publish scoring service")
    def services_publish(payload: PublishServiceRequest) -> dict:
        """Publish a named, versioned scoring service from an artifact on disk."""
        try:
            artifact = load_artifact(payload.model_path)
            if payload.decision_threshold is not None:
                artifact = artifact.with_threshold(payload.decision_threshold)
            service = registry.publish(
                name=payload.name,
                version=payload.version,
                artifact=artifact,
                description=payload.description,
            )
            return service.summary()
        except FileNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        except ServiceConflictError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        except Exception as exc:
            logger.exception("Publish service endpoint failed name=%s version=%s", payload.name, payload.version)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    @router.get("/services", summary="List published scoring services")
    def services_list() -> dict:
        """Return summaries of all published services."""
        return {"services": [service.summary() for service in registry.list_services()]}

    @router.get("/services/{name}/{version}", summary="Get scoring service")
    def services_get(name: str, version: str) -> dict:
        """Return one published service summary."""
        try:
            return registry.get(name, version).summary()
        except ServiceNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    @router.put("/services/{name}/{version}", summary="Update scoring service")
    def services_update(name: str, version: str, payload: UpdateServiceRequest) -> dict:
        """Swap the artifact behind a published service version."""
        try:
            artifact = load_artifact(payload.model_path)
            if payload.decision_threshold is not None:
                artifact = artifact.with_threshold(payload.decision_threshold)
            return registry.update(name, version, artifact, description=payload.description).summary()
        except (FileNotFoundError, ServiceNotFoundError) as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        except Exception as exc:
            logger.exception("Update service endpoint failed name=%s version=%s", name, version)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    @router.delete("/services/{name}/{version}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete scoring service")
    def services_delete(name: str, version: str) -> None:
        """Remove a published service version."""
        try:
            registry.delete(name, version)
        except ServiceNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    @router.get("/services/{name}/{version}/schema", summary="Export scoring service schema")
    def services_schema(name: str, version: str) -> dict:
        """Return operation, input and output field descriptions for client integration."""
        try:
            return registry.export_schema(name, version)
        except ServiceNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    @router.post("/services/{name}/{version}/consume", summary="Consume scoring service")
    def services_consume(name: str, version: str, payload: FeatureBuildRequest) -> dict:
        """Build features from raw records and score them with a published service."""
        try:
            service = registry.get(name, version)
            features = build_features(
                _records_to_frame(payload.transactions, TRANSACTION_COLUMNS),
                _records_to_frame(payload.demographics, DEMOGRAPHIC_COLUMNS),
                window=_window_from_request(payload),
                join_policy=payload.join_policy or service.join_policy,
                window_months=service.window_months,
            )
            predictions = service.score_features(features)
            return {
                "service": service.name,
                "version": service.version,
                "predictions": _frame_to_records(predictions),
            }
        except ServiceNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        except (MalformedRecordError, SchemaMismatchError, ValueError) as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
        except Exception as exc:
            logger.exception("Consume service endpoint failed name=%s version=%s", name, version)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    return router
