"""Synthetic transaction and demographic data for credit default model training."""

import logging
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd

from .schema import LABEL_COLUMN, MERCHANT_INDUSTRIES


logger = logging.getLogger(__name__)

_BASE_INDUSTRY_WEIGHTS: Dict[str, float] = {
    "bank": 0.04,
    "entertainment": 0.08,
    "jewellery": 0.02,
    "medical": 0.05,
    "other": 0.06,
    "petrol": 0.12,
    "restaurant": 0.16,
    "supermarket": 0.25,
    "telecom": 0.07,
    "travel": 0.05,
    "utility": 0.10,
}
_RISKY_INDUSTRIES = ("jewellery", "travel", "entertainment")
_NON_PURCHASE_TYPES = ("payment", "transfer", "cash_advance")


def _industry_weights(risk_appetite: float) -> np.ndarray:
    """Shift spend towards discretionary industries as risk appetite grows."""
    weights = np.array([_BASE_INDUSTRY_WEIGHTS[name] for name in MERCHANT_INDUSTRIES], dtype=float)
    for name in _RISKY_INDUSTRIES:
        weights[MERCHANT_INDUSTRIES.index(name)] *= 1.0 + 4.0 * risk_appetite
    return weights / weights.sum()


def generate_synthetic_credit_dataset(
    accounts: int = 2000,
    seed: int = 42,
    months: int = 6,
    end_date: str = "2024-06-30",
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """Generate raw transactions, demographics, and default labels.

    Args:
        accounts: Number of synthetic accounts.
        seed: Random seed for reproducibility.
        months: Length of the transaction history window.
        end_date: Last day of the transaction history.

    Returns:
        Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]: Transactions,
        demographics, and labels (``account_id``, ``is_default``).
    """
    if accounts <= 0:
        raise ValueError("accounts must be > 0")
    rng = np.random.default_rng(seed)
    window_end = pd.Timestamp(end_date).normalize()
    window_start = window_end - pd.DateOffset(months=months)
    window_days = max(int((window_end - window_start).days), 1)

    account_ids = ["A{0:06d}".format(idx + 1) for idx in range(accounts)]
    age = rng.integers(21, 71, size=accounts)
    income = np.round(rng.lognormal(mean=10.6, sigma=0.45, size=accounts), 2)
    credit_limit = np.round(income * rng.uniform(0.10, 0.45, size=accounts), -2)
    sex = rng.choice(["Male", "Female"], size=accounts)
    education = rng.choice(["High School", "Graduate", "Post Graduate", "Other"], size=accounts, p=[0.35, 0.4, 0.2, 0.05])
    marital_status = rng.choice(["Single", "Married", "Divorced"], size=accounts, p=[0.4, 0.5, 0.1])
    account_setup = rng.choice(["Complete", "Incomplete"], size=accounts, p=[0.85, 0.15])
    risk_appetite = rng.beta(2.0, 5.0, size=accounts)

    demographics = pd.DataFrame(
        {
            "account_id": account_ids,
            "age": age,
            "income": income,
            "sex": sex,
            "education": education,
            "marital_status": marital_status,
            "credit_limit": credit_limit,
            "account_setup": account_setup,
        }
    )

    rows: List[Dict[str, object]] = []
    spend_ratio = np.zeros(accounts, dtype=float)
    risky_share = np.zeros(accounts, dtype=float)
    for i, account_id in enumerate(account_ids):
        tx_count = int(rng.poisson(8 + 30 * risk_appetite[i]))
        if tx_count == 0:
            continue
        offsets = rng.integers(0, window_days + 1, size=tx_count)
        is_purchase = rng.random(size=tx_count) < 0.85
        amounts = np.round(rng.lognormal(mean=3.8 + risk_appetite[i], sigma=0.8, size=tx_count), 2)
        industries = rng.choice(MERCHANT_INDUSTRIES, size=tx_count, p=_industry_weights(float(risk_appetite[i])))

        purchase_total = float(amounts[is_purchase].sum())
        spend_ratio[i] = purchase_total / max(float(credit_limit[i]), 1.0)
        if is_purchase.any():
            risky_share[i] = float(np.isin(industries[is_purchase], _RISKY_INDUSTRIES).mean())

        for j in range(tx_count):
            industry = str(industries[j])
            rows.append(
                {
                    "account_id": account_id,
                    "transaction_date": (window_start + pd.Timedelta(days=int(offsets[j]))).strftime("%Y-%m-%d"),
                    "transaction_type": "Purchase" if is_purchase[j] else str(rng.choice(_NON_PURCHASE_TYPES)),
                    "amount": float(amounts[j]),
                    # Mixed casing mimics the formatting noise seen in raw extracts.
                    "merchant_industry": industry.title() if rng.random() < 0.3 else industry,
                }
            )

    transactions = pd.DataFrame(
        rows,
        columns=["account_id", "transaction_date", "transaction_type", "amount", "merchant_industry"],
    )

    logit = (
        -2.6
        + 2.2 * np.clip(spend_ratio, 0.0, 3.0)
        + 2.0 * risky_share
        - 0.9 * (np.log(income) - 10.6)
        - 0.02 * (age - 40)
        + 0.6 * (account_setup == "Incomplete")
    )
    probability = 1.0 / (1.0 + np.exp(-logit))
    labels = pd.DataFrame(
        {
            "account_id": account_ids,
            LABEL_COLUMN: rng.binomial(n=1, p=np.clip(probability, 0.01, 0.95)),
        }
    )
    logger.info(
        "Generated synthetic credit dataset accounts=%d transactions=%d default_rate=%.3f",
        accounts,
        len(transactions),
        float(labels[LABEL_COLUMN].mean()),
    )
    return transactions, demographics, labels
