"""Reusable enums for the credit-risk feature and scoring pipeline."""

from enum import Enum
from typing import List


class StringEnum(str, Enum):
    """Base enum class with string behavior for JSON serialization."""


class JoinPolicy(StringEnum):
    """How aggregated transactions are joined onto demographic records."""

    INNER = "inner"
    LEFT_OUTER = "left_outer"


class TransactionType(StringEnum):
    """Transaction kinds; only purchases feed the aggregated statistics."""

    PURCHASE = "purchase"
    OTHER = "other"


class MerchantIndustry(StringEnum):
    """Merchant industry categories tracked as purchase-share features."""

    BANK = "bank"
    ENTERTAINMENT = "entertainment"
    JEWELLERY = "jewellery"
    MEDICAL = "medical"
    OTHER = "other"
    PETROL = "petrol"
    RESTAURANT = "restaurant"
    SUPERMARKET = "supermarket"
    TELECOM = "telecom"
    TRAVEL = "travel"
    UTILITY = "utility"

    @classmethod
    def values(cls) -> List[str]:
        """Return category names in declaration order."""
        return [member.value for member in cls]
