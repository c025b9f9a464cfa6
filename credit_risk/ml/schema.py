"""Schema definitions for transaction, demographic, feature, and prediction tables.

The column lists below are the static FeatureRow contract shared by the
feature builder, the trainer, and the scorer. Order matters: it is the
column order of every feature table and of the trained model input.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from credit_risk.models.enums import JoinPolicy, MerchantIndustry


TRANSACTION_COLUMNS: List[str] = [
    "account_id",
    "transaction_date",
    "transaction_type",
    "amount",
    "merchant_industry",
]

DEMOGRAPHIC_NUMERIC_COLUMNS: List[str] = ["age", "income", "credit_limit"]
DEMOGRAPHIC_CATEGORICAL_COLUMNS: List[str] = ["sex", "education", "marital_status", "account_setup"]
DEMOGRAPHIC_COLUMNS: List[str] = ["account_id"] + DEMOGRAPHIC_NUMERIC_COLUMNS + DEMOGRAPHIC_CATEGORICAL_COLUMNS

MERCHANT_INDUSTRIES: List[str] = MerchantIndustry.values()
SHARE_COLUMNS: List[str] = ["{0}_share".format(industry) for industry in MERCHANT_INDUSTRIES]

TRANSACTION_FEATURE_COLUMNS: List[str] = (
    ["transaction_count", "total_amount", "avg_amount", "min_amount", "max_amount"]
    + SHARE_COLUMNS
    + ["avg_interval", "min_interval", "max_interval", "recency"]
)

NUMERIC_FEATURE_COLUMNS: List[str] = TRANSACTION_FEATURE_COLUMNS + DEMOGRAPHIC_NUMERIC_COLUMNS
CATEGORICAL_FEATURE_COLUMNS: List[str] = list(DEMOGRAPHIC_CATEGORICAL_COLUMNS)
FEATURE_COLUMNS: List[str] = NUMERIC_FEATURE_COLUMNS + CATEGORICAL_FEATURE_COLUMNS
FEATURE_ROW_COLUMNS: List[str] = ["account_id"] + FEATURE_COLUMNS

LABEL_COLUMN = "is_default"
PREDICTION_COLUMNS: List[str] = ["account_id", "predicted_label", "default_probability"]


class TransactionRecord(BaseModel):
    """Single raw card or bank transaction."""

    account_id: str = Field(..., min_length=1)
    transaction_date: date
    transaction_type: str = Field(..., min_length=1)
    amount: float
    merchant_industry: Optional[str] = Field(default=None)


class DemographicRecord(BaseModel):
    """Static account holder attributes, one per account."""

    account_id: str = Field(..., min_length=1)
    age: float = Field(..., ge=0)
    income: float = Field(..., ge=0)
    sex: str = Field(..., min_length=1)
    education: str = Field(..., min_length=1)
    marital_status: str = Field(..., min_length=1)
    credit_limit: float = Field(..., ge=0)
    account_setup: str = Field(..., min_length=1)


class FeatureRowRecord(BaseModel):
    """Account-level feature row consumed by the scorer."""

    account_id: str = Field(..., min_length=1)

    transaction_count: int = Field(..., ge=0)
    total_amount: float
    avg_amount: float
    min_amount: float
    max_amount: float

    bank_share: float = Field(..., ge=0, le=1)
    entertainment_share: float = Field(..., ge=0, le=1)
    jewellery_share: float = Field(..., ge=0, le=1)
    medical_share: float = Field(..., ge=0, le=1)
    other_share: float = Field(..., ge=0, le=1)
    petrol_share: float = Field(..., ge=0, le=1)
    restaurant_share: float = Field(..., ge=0, le=1)
    supermarket_share: float = Field(..., ge=0, le=1)
    telecom_share: float = Field(..., ge=0, le=1)
    travel_share: float = Field(..., ge=0, le=1)
    utility_share: float = Field(..., ge=0, le=1)

    avg_interval: float = Field(..., ge=0)
    min_interval: float = Field(..., ge=0)
    max_interval: float = Field(..., ge=0)
    recency: float = Field(..., ge=0)

    # Empty only for transaction-only accounts kept by the left-outer join.
    age: Optional[float] = Field(default=None)
    income: Optional[float] = Field(default=None)
    credit_limit: Optional[float] = Field(default=None)
    sex: Optional[str] = Field(default=None)
    education: Optional[str] = Field(default=None)
    marital_status: Optional[str] = Field(default=None)
    account_setup: Optional[str] = Field(default=None)


class PredictionRecord(BaseModel):
    """Scored outcome for one account."""

    account_id: str
    predicted_label: int = Field(..., ge=0, le=1)
    default_probability: float = Field(..., ge=0, le=1)


class FeatureBuildRequest(BaseModel):
    """Raw tables plus optional window bounds for feature building."""

    transactions: List[TransactionRecord] = Field(default_factory=list)
    demographics: List[DemographicRecord] = Field(default_factory=list)
    window_start: Optional[date] = Field(default=None)
    window_end: Optional[date] = Field(default=None)
    join_policy: Optional[JoinPolicy] = Field(default=None)

    @field_validator("window_end")
    @classmethod
    def _validate_window_order(cls, window_end: Optional[date], info) -> Optional[date]:
        """Reject windows that end before they start."""
        window_start = info.data.get("window_start")
        if window_end is not None and window_start is not None and window_end < window_start:
            raise ValueError("window_end must not be earlier than window_start")
        return window_end


class ScoreRequest(BaseModel):
    """Feature rows to score with the runtime model."""

    features: List[FeatureRowRecord] = Field(default_factory=list)
