"""Schema definitions for scoring service lifecycle requests and responses."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .schema import PredictionRecord


def _normalize_key(value: str) -> str:
    """Strip surrounding whitespace and reject blank identifiers."""
    normalized = value.strip()
    if not normalized:
        raise ValueError("must not be blank")
    if "/" in normalized:
        raise ValueError("must not contain '/'")
    return normalized


class PublishServiceRequest(BaseModel):
    """Request payload for publishing a scoring service snapshot."""

    name: str = Field(..., min_length=1, max_length=64)
    version: str = Field(..., min_length=1, max_length=32)
    model_path: str = Field(..., min_length=1)
    description: str = Field(default="", max_length=500)
    decision_threshold: Optional[float] = Field(default=None, gt=0.0, lt=1.0)

    @field_validator("name", "version")
    @classmethod
    def _validate_key(cls, value: str) -> str:
        """Normalize service name and version."""
        return _normalize_key(value)


class UpdateServiceRequest(BaseModel):
    """Request payload for swapping the artifact behind a published service."""

    model_path: str = Field(..., min_length=1)
    description: Optional[str] = Field(default=None, max_length=500)
    decision_threshold: Optional[float] = Field(default=None, gt=0.0, lt=1.0)


class ServiceConsumeResponse(BaseModel):
    """Response payload returned when a published service is consumed."""

    service: str
    version: str
    predictions: List[PredictionRecord] = Field(default_factory=list)
