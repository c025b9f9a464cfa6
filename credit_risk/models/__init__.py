"""Public model package exports for the credit-risk pipeline."""

from .enums import JoinPolicy, MerchantIndustry, StringEnum, TransactionType
from .exceptions import (
    CreditRiskError,
    FeatureBuildError,
    MalformedRecordError,
    SchemaMismatchError,
    ScoringError,
    ServiceConflictError,
    ServiceNotFoundError,
    ServiceRegistryError,
)

__all__ = [
    "StringEnum",
    "JoinPolicy",
    "MerchantIndustry",
    "TransactionType",
    "CreditRiskError",
    "FeatureBuildError",
    "MalformedRecordError",
    "ScoringError",
    "SchemaMismatchError",
    "ServiceRegistryError",
    "ServiceNotFoundError",
    "ServiceConflictError",
]
