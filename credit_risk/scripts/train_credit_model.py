"""Script to train the gradient-boosted credit default model."""

import argparse
import logging
from pathlib import Path
import sys

import pandas as pd


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from credit_risk.core.config import load_settings
from credit_risk.ml.feature_builder import FeatureWindow, build_features
from credit_risk.ml.synthetic import generate_synthetic_credit_dataset
from credit_risk.ml.trainer import train_and_save_model


logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


def _read_csv(path: str) -> pd.DataFrame:
    """Read a CSV file, failing loudly when it does not exist."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError("Dataset not found: {0}".format(csv_path))
    return pd.read_csv(csv_path, dtype={"account_id": str})


def main() -> None:
    """Build features and train the credit default model artifact."""
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Train gradient-boosted credit default model.")
    parser.add_argument("--transactions", type=str, default="", help="Transactions CSV path.")
    parser.add_argument("--demographics", type=str, default="", help="Demographics CSV path.")
    parser.add_argument("--labels", type=str, default="", help="Labels CSV path (account_id, is_default).")
    parser.add_argument("--accounts", type=int, default=3000, help="Synthetic accounts if CSVs omitted.")
    parser.add_argument("--window-start", type=str, default=None, help="Optional feature window start date.")
    parser.add_argument("--window-end", type=str, default=None, help="Optional feature window end date.")
    parser.add_argument("--threshold", type=float, default=settings.decision_threshold, help="Decision threshold.")
    parser.add_argument("--output", type=str, default=settings.model_path, help="Output model artifact path.")
    args = parser.parse_args()

    if args.transactions or args.demographics or args.labels:
        if not (args.transactions and args.demographics and args.labels):
            parser.error("--transactions, --demographics and --labels must be given together.")
        transactions = _read_csv(args.transactions)
        demographics = _read_csv(args.demographics)
        labels = _read_csv(args.labels)
        logger.info("Loaded training data accounts=%d transactions=%d", len(demographics), len(transactions))
    else:
        transactions, demographics, labels = generate_synthetic_credit_dataset(accounts=args.accounts)

    window = None
    if args.window_start or args.window_end:
        window = FeatureWindow(start=args.window_start, end=args.window_end)
    features = build_features(
        transactions,
        demographics,
        window=window,
        join_policy=settings.join_policy,
        window_months=settings.window_months,
    )
    summary = train_and_save_model(
        features=features,
        labels=labels,
        output_path=args.output,
        threshold=args.threshold,
    )
    logger.info("Credit model training summary: %s", summary)


if __name__ == "__main__":
    main()
