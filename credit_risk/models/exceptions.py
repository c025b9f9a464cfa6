"""Custom exceptions for feature building, scoring, and service registry layers."""

from typing import Any, Optional


class CreditRiskError(Exception):
    """Base class for credit-risk pipeline failures."""


class FeatureBuildError(CreditRiskError):
    """Base class for failures while building account feature rows."""


class MalformedRecordError(FeatureBuildError):
    """Raised when an input record carries an unparseable date, amount, or field."""

    def __init__(
        self,
        message: str,
        column: Optional[str] = None,
        account_id: Optional[str] = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.column = column
        self.account_id = account_id
        self.value = value


class ScoringError(CreditRiskError):
    """Base class for failures while scoring feature rows."""


class SchemaMismatchError(ScoringError):
    """Raised when a feature row does not match the classifier's trained schema."""

    def __init__(
        self,
        message: str,
        column: Optional[str] = None,
        account_id: Optional[str] = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.column = column
        self.account_id = account_id
        self.value = value


class ServiceRegistryError(CreditRiskError):
    """Base class for scoring service registry failures."""


class ServiceNotFoundError(ServiceRegistryError):
    """Raised when a requested service name and version is not published."""


class ServiceConflictError(ServiceRegistryError):
    """Raised when publishing a service name and version that already exists."""
