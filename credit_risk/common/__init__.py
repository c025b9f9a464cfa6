"""Common reusable utility exports."""

from .common_functions import canonicalize_category, canonicalize_series, normalize_account_id

__all__ = [
    "canonicalize_category",
    "canonicalize_series",
    "normalize_account_id",
]
