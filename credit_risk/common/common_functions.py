"""Common utility functions used across feature and scoring modules."""

import logging
import re
from typing import Any, Optional

import pandas as pd


logger = logging.getLogger(__name__)

_NON_WORD_RUN = re.compile(r"[\W_]+", flags=re.UNICODE)


def canonicalize_category(value: Any) -> Optional[str]:
    """Normalize a category label into a stable lowercase snake-case token.

    Args:
        value: Raw label, for example ``"Super Market "`` or ``"MARRIED/Civil"``.

    Returns:
        Optional[str]: Canonical token such as ``"super_market"``, or ``None``
        when the value is missing or blank.
    """
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    token = _NON_WORD_RUN.sub("_", str(value).strip().lower()).strip("_")
    return token or None


def canonicalize_series(series: pd.Series) -> pd.Series:
    """Apply :func:`canonicalize_category` element-wise, keeping the index."""
    return series.map(canonicalize_category).astype(object)


def normalize_account_id(value: Any) -> Optional[str]:
    """Coerce an account identifier into a stripped string.

    Integral floats such as ``1001.0`` (typical after a CSV round trip with
    missing values) collapse to ``"1001"`` so that joins stay stable.
    """
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None
