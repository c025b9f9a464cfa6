"""Script to build features from raw CSV tables and write account predictions."""

import argparse
import logging
from pathlib import Path
import sys

import pandas as pd


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from credit_risk.core.config import load_settings
from credit_risk.ml.feature_builder import FeatureWindow
from credit_risk.ml.inference import CreditScoringInferenceService


logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


def main() -> None:
    """Score every demographic account and export predictions."""
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Score accounts with the trained credit default model.")
    parser.add_argument("--transactions", type=str, required=True, help="Transactions CSV path.")
    parser.add_argument("--demographics", type=str, required=True, help="Demographics CSV path.")
    parser.add_argument("--model", type=str, default=settings.model_path, help="Model artifact path.")
    parser.add_argument("--window-start", type=str, default=None, help="Optional feature window start date.")
    parser.add_argument("--window-end", type=str, default=None, help="Optional feature window end date.")
    parser.add_argument("--output", type=str, default="predictions.csv", help="Output predictions CSV path.")
    args = parser.parse_args()

    service = CreditScoringInferenceService(
        model_path=args.model,
        decision_threshold=settings.decision_threshold,
        window_months=settings.window_months,
        join_policy=settings.join_policy,
    )
    if not service.is_loaded:
        raise FileNotFoundError("Model artifact could not be loaded: {0}".format(args.model))

    transactions = pd.read_csv(args.transactions, dtype={"account_id": str})
    demographics = pd.read_csv(args.demographics, dtype={"account_id": str})
    window = None
    if args.window_start or args.window_end:
        window = FeatureWindow(start=args.window_start, end=args.window_end)

    predictions = service.predict_from_records(transactions, demographics, window=window)
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    predictions.to_csv(output_path, index=False)
    logger.info(
        "Predictions written to %s accounts=%d predicted_defaults=%d",
        output_path,
        len(predictions),
        int(predictions["predicted_label"].sum()),
    )


if __name__ == "__main__":
    main()
