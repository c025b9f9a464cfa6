"""Account-level feature aggregation over raw transaction and demographic tables.

Purchases inside the feature window are rolled up per account into spend
statistics, merchant-industry shares, purchase-interval statistics, and
recency. The result is joined onto demographic attributes to give exactly one
row per account, in the column order of ``FEATURE_ROW_COLUMNS``.

Accounts without purchases are not undefined: every derived amount, share and
interval is 0 and recency is the full window length.
"""

from dataclasses import dataclass
import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from credit_risk.common import canonicalize_series, normalize_account_id
from credit_risk.models.enums import JoinPolicy, TransactionType
from credit_risk.models.exceptions import MalformedRecordError

from .schema import (
    DEMOGRAPHIC_CATEGORICAL_COLUMNS,
    DEMOGRAPHIC_COLUMNS,
    DEMOGRAPHIC_NUMERIC_COLUMNS,
    FEATURE_ROW_COLUMNS,
    MERCHANT_INDUSTRIES,
    SHARE_COLUMNS,
    TRANSACTION_COLUMNS,
    TRANSACTION_FEATURE_COLUMNS,
)


logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MONTHS = 6

TableLike = Union[pd.DataFrame, Iterable[Mapping[str, Any]], None]
DateLike = Union[pd.Timestamp, str, Any, None]


def _to_day(value: DateLike) -> Optional[pd.Timestamp]:
    """Parse a date-like value into a timezone-naive midnight timestamp.

    Bare numbers and booleans parse to ``None`` rather than epoch offsets.
    """
    if value is None or isinstance(value, (bool, int, float, np.number, np.bool_)):
        return None
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(stamp):
        return None
    # Keep the local calendar day of zone-aware stamps.
    if stamp.tzinfo is not None:
        stamp = stamp.tz_localize(None)
    return stamp.normalize()


@dataclass(frozen=True)
class FeatureWindow:
    """Inclusive date range over which purchases are aggregated."""

    start: Optional[pd.Timestamp] = None
    end: Optional[pd.Timestamp] = None

    def resolve(self, dates: pd.Series, window_months: int = DEFAULT_WINDOW_MONTHS) -> "FeatureWindow":
        """Fill missing bounds from the other bound or from the observed dates.

        Args:
            dates: Parsed transaction dates of the whole input table.
            window_months: Window length used when only one bound is given.

        Returns:
            FeatureWindow: Window with both bounds set, or both ``None`` when
            no bound was supplied and there are no transactions.

        Raises:
            ValueError: If a bound is not a valid date or the window is inverted.
        """
        start = _to_day(self.start)
        end = _to_day(self.end)
        if self.start is not None and start is None:
            raise ValueError("Invalid window start: {0}".format(self.start))
        if self.end is not None and end is None:
            raise ValueError("Invalid window end: {0}".format(self.end))

        offset = pd.DateOffset(months=window_months)
        if start is None and end is None:
            if dates.empty:
                return FeatureWindow()
            return FeatureWindow(start=dates.min(), end=dates.max())
        if start is None:
            start = end - offset
        if end is None:
            end = start + offset
        if start > end:
            raise ValueError("Feature window start {0} is after end {1}".format(start.date(), end.date()))
        return FeatureWindow(start=start, end=end)

    @property
    def length_days(self) -> int:
        """Whole days between window start and end, 0 when unbounded."""
        if self.start is None or self.end is None:
            return 0
        return int((self.end - self.start).days)


def _as_frame(table: TableLike, columns: List[str], table_name: str) -> pd.DataFrame:
    """Convert table-like input into a DataFrame holding the required columns."""
    if table is None:
        frame = pd.DataFrame()
    elif isinstance(table, pd.DataFrame):
        frame = table.copy()
    else:
        frame = pd.DataFrame(list(table))

    if frame.empty:
        return pd.DataFrame({column: pd.Series(dtype=object) for column in columns})

    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise MalformedRecordError(
            "{0} table is missing required columns: {1}".format(table_name, missing),
            column=missing[0],
        )
    return frame[columns].reset_index(drop=True)


def _first_bad(mask: pd.Series) -> int:
    """Return the positional index of the first True entry."""
    return int(np.flatnonzero(mask.to_numpy())[0])


def _normalize_account_ids(frame: pd.DataFrame, table_name: str) -> pd.Series:
    """Coerce account identifiers to strings, failing on missing ones."""
    account_ids = frame["account_id"].map(normalize_account_id).astype(object)
    missing = account_ids.isna()
    if missing.any():
        position = _first_bad(missing)
        raise MalformedRecordError(
            "{0} row {1} has no account_id".format(table_name, position),
            column="account_id",
        )
    return account_ids


def _parse_dates(values: pd.Series, account_ids: pd.Series) -> pd.Series:
    """Parse transaction dates at day granularity, failing on the first bad one."""
    parsed = pd.to_datetime(values.map(_to_day))
    invalid = parsed.isna()
    if invalid.any():
        position = _first_bad(invalid)
        raise MalformedRecordError(
            "Unparseable transaction_date '{0}' for account {1}".format(
                values.iloc[position], account_ids.iloc[position]
            ),
            column="transaction_date",
            account_id=account_ids.iloc[position],
            value=values.iloc[position],
        )
    return parsed


def _parse_numeric(values: pd.Series, account_ids: pd.Series, column: str) -> pd.Series:
    """Parse a numeric column, failing on the first non-numeric or missing value."""
    booleans = values.map(lambda value: isinstance(value, (bool, np.bool_))).astype(bool)
    parsed = pd.to_numeric(values.mask(booleans), errors="coerce").astype(float)
    invalid = ~np.isfinite(parsed)
    if invalid.any():
        position = _first_bad(invalid)
        raise MalformedRecordError(
            "Non-numeric {0} '{1}' for account {2}".format(column, values.iloc[position], account_ids.iloc[position]),
            column=column,
            account_id=account_ids.iloc[position],
            value=values.iloc[position],
        )
    return parsed


def normalize_transactions(transactions: TableLike) -> pd.DataFrame:
    """Validate and canonicalize the raw transaction table.

    Raises:
        MalformedRecordError: On missing columns, account ids, dates, or amounts.
    """
    frame = _as_frame(transactions, TRANSACTION_COLUMNS, "Transaction")
    account_ids = _normalize_account_ids(frame, "Transaction")
    normalized = pd.DataFrame(
        {
            "account_id": account_ids,
            "transaction_date": _parse_dates(frame["transaction_date"], account_ids),
            "transaction_type": canonicalize_series(frame["transaction_type"]),
            "amount": _parse_numeric(frame["amount"], account_ids, "amount"),
            "merchant_industry": canonicalize_series(frame["merchant_industry"]),
        }
    )
    normalized["input_order"] = np.arange(len(normalized))
    return normalized


def normalize_demographics(demographics: TableLike) -> pd.DataFrame:
    """Validate and canonicalize the demographic table.

    Raises:
        MalformedRecordError: On missing columns, duplicated accounts, or
            non-numeric age, income, or credit limit.
    """
    frame = _as_frame(demographics, DEMOGRAPHIC_COLUMNS, "Demographic")
    account_ids = _normalize_account_ids(frame, "Demographic")
    duplicated = account_ids.duplicated()
    if duplicated.any():
        position = _first_bad(duplicated)
        raise MalformedRecordError(
            "Duplicate demographic record for account {0}".format(account_ids.iloc[position]),
            column="account_id",
            account_id=account_ids.iloc[position],
        )

    normalized = pd.DataFrame({"account_id": account_ids})
    for column in DEMOGRAPHIC_NUMERIC_COLUMNS:
        normalized[column] = _parse_numeric(frame[column], account_ids, column)
    for column in DEMOGRAPHIC_CATEGORICAL_COLUMNS:
        normalized[column] = canonicalize_series(frame[column])
    return normalized


def _empty_transaction_features() -> pd.DataFrame:
    """Zero-row frame indexed by account id with transaction feature columns."""
    frame = pd.DataFrame(columns=TRANSACTION_FEATURE_COLUMNS, dtype=float)
    frame.index.name = "account_id"
    return frame


def aggregate_purchases(transactions: pd.DataFrame, window: FeatureWindow) -> pd.DataFrame:
    """Aggregate purchase transactions inside ``window`` per account.

    Args:
        transactions: Output of :func:`normalize_transactions`.
        window: Resolved feature window.

    Returns:
        pd.DataFrame: One row per account with at least one purchase in the
        window, indexed by ``account_id``.
    """
    purchases = transactions[transactions["transaction_type"] == TransactionType.PURCHASE.value]
    if window.start is not None and window.end is not None:
        in_window = purchases["transaction_date"].between(window.start, window.end, inclusive="both")
        purchases = purchases[in_window]
    if purchases.empty:
        return _empty_transaction_features()

    purchases = purchases.sort_values(["account_id", "transaction_date", "input_order"], kind="mergesort")
    grouped = purchases.groupby("account_id", sort=False)

    stats = grouped.agg(
        transaction_count=("amount", "size"),
        total_amount=("amount", "sum"),
        min_amount=("amount", "min"),
        max_amount=("amount", "max"),
        last_purchase=("transaction_date", "max"),
    )
    stats["avg_amount"] = stats["total_amount"] / stats["transaction_count"]

    known = purchases[purchases["merchant_industry"].isin(MERCHANT_INDUSTRIES)]
    if known.empty:
        industry_counts = pd.DataFrame(index=stats.index)
    else:
        industry_counts = known.groupby(["account_id", "merchant_industry"], sort=False).size().unstack(fill_value=0)
    industry_counts = industry_counts.reindex(index=stats.index, columns=MERCHANT_INDUSTRIES, fill_value=0)
    shares = industry_counts.div(stats["transaction_count"], axis=0)
    shares.columns = SHARE_COLUMNS

    gaps = grouped["transaction_date"].diff().dt.days
    intervals = gaps.groupby(purchases["account_id"], sort=False).agg(["mean", "min", "max"])
    intervals.columns = ["avg_interval", "min_interval", "max_interval"]
    intervals = intervals.reindex(stats.index).fillna(0.0)

    # Window end always exists once at least one purchase survived filtering.
    recency = (window.end - stats["last_purchase"]).dt.days

    aggregated = pd.concat([stats.drop(columns=["last_purchase"]), shares, intervals], axis=1)
    aggregated["recency"] = recency
    return aggregated[TRANSACTION_FEATURE_COLUMNS].astype(float)


def _resolve_account_order(
    demographics: pd.DataFrame,
    transactions: pd.DataFrame,
    join_policy: JoinPolicy,
) -> List[str]:
    """Return output account order for the selected join policy."""
    demographic_accounts = list(demographics["account_id"])
    known = set(demographic_accounts)
    transaction_only = [account for account in pd.unique(transactions["account_id"]) if account not in known]

    if join_policy == JoinPolicy.LEFT_OUTER:
        if transaction_only:
            logger.info("Keeping transaction-only accounts count=%d join_policy=%s", len(transaction_only), join_policy.value)
        return demographic_accounts + transaction_only

    if transaction_only:
        logger.info(
            "Dropping accounts without demographic record count=%d join_policy=%s",
            len(transaction_only),
            join_policy.value,
        )
    return demographic_accounts


def build_features(
    transactions: TableLike,
    demographics: TableLike,
    window: Optional[FeatureWindow] = None,
    join_policy: Union[JoinPolicy, str] = JoinPolicy.INNER,
    window_months: int = DEFAULT_WINDOW_MONTHS,
) -> pd.DataFrame:
    """Build one feature row per account from raw transactions and demographics.

    Args:
        transactions: Table with ``TRANSACTION_COLUMNS``.
        demographics: Table with ``DEMOGRAPHIC_COLUMNS``, one row per account.
        window: Optional aggregation window; missing bounds are derived.
        join_policy: ``inner`` keeps demographic accounts only; ``left_outer``
            also keeps transaction-only accounts with empty demographic fields.
        window_months: Window length used when only one bound is supplied.

    Returns:
        pd.DataFrame: Feature table with ``FEATURE_ROW_COLUMNS``.

    Raises:
        MalformedRecordError: If any input record is malformed.
        ValueError: If the join policy or window is invalid.
    """
    policy = JoinPolicy(join_policy)
    tx = normalize_transactions(transactions)
    demo = normalize_demographics(demographics)
    resolved_window = (window or FeatureWindow()).resolve(tx["transaction_date"], window_months=window_months)

    account_order = _resolve_account_order(demo, tx, policy)
    if not account_order:
        logger.info("No accounts to build features for; returning empty feature table.")
        return pd.DataFrame({column: pd.Series(dtype=object) for column in FEATURE_ROW_COLUMNS})

    aggregated = aggregate_purchases(tx, resolved_window)
    features = aggregated.reindex(account_order)
    features["recency"] = features["recency"].fillna(float(resolved_window.length_days))
    features = features.fillna(0.0)
    features["transaction_count"] = features["transaction_count"].astype(int)

    demographic_fields = demo.set_index("account_id").reindex(account_order)
    features = features.join(demographic_fields)
    features.index.name = "account_id"
    features = features.reset_index()[FEATURE_ROW_COLUMNS]

    logger.info(
        "Built feature rows accounts=%d with_purchases=%d window_start=%s window_end=%s",
        len(features),
        int((features["transaction_count"] > 0).sum()),
        resolved_window.start.date() if resolved_window.start is not None else None,
        resolved_window.end.date() if resolved_window.end is not None else None,
    )
    return features
