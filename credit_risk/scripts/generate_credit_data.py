"""Script to generate synthetic transactions, demographics, and default labels."""

import argparse
import logging
from pathlib import Path
import sys


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from credit_risk.ml.synthetic import generate_synthetic_credit_dataset


logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


def main() -> None:
    """Generate and export the synthetic credit dataset as three CSV files."""
    parser = argparse.ArgumentParser(description="Generate synthetic credit risk datasets.")
    parser.add_argument("--accounts", type=int, default=2000, help="Number of accounts.")
    parser.add_argument("--seed", type=int, default=42, help="Random seed.")
    parser.add_argument("--months", type=int, default=6, help="Months of transaction history.")
    parser.add_argument("--end-date", type=str, default="2024-06-30", help="Last day of history.")
    parser.add_argument(
        "--output-dir",
        type=str,
        default="credit_risk/ml/artifacts",
        help="Directory for transactions.csv, demographics.csv and labels.csv.",
    )
    args = parser.parse_args()

    transactions, demographics, labels = generate_synthetic_credit_dataset(
        accounts=args.accounts,
        seed=args.seed,
        months=args.months,
        end_date=args.end_date,
    )
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    transactions.to_csv(output_dir / "transactions.csv", index=False)
    demographics.to_csv(output_dir / "demographics.csv", index=False)
    labels.to_csv(output_dir / "labels.csv", index=False)
    logger.info(
        "Synthetic credit data written to %s accounts=%d transactions=%d",
        output_dir,
        len(demographics),
        len(transactions),
    )


if __name__ == "__main__":
    main()
