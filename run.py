#!/usr/bin/env python3
"""
Main script to run the BikeMi availability prediction pipeline.

Usage:
    python run.py                          # Run with default config
    python run.py --config custom.yaml     # Run with custom config
    python run.py --predictors last_value historic_trend  # Override predictors
    python run.py --skip-binning           # Reuse persisted bin records
    python run.py --horizon 4              # Predict 4 bins ahead
"""

import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from bikemi.binning import BinAggregator, BinningSettings, get_reducer
from bikemi.evaluation import performance_report, run_evaluation
from bikemi.models import get_predictor
from bikemi.utils import load_bins, load_config, load_observations, write_bins

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="BikeMi Availability Prediction Pipeline")
    parser.add_argument(
        "--config",
        type=str,
        default="config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--predictors",
        type=str,
        nargs="+",
        default=None,
        help="Predictors to evaluate (overrides config)",
    )
    parser.add_argument(
        "--horizon",
        type=int,
        default=None,
        help="Prediction horizon in bins (overrides config)",
    )
    parser.add_argument(
        "--backend",
        type=str,
        default=None,
        help="Grouped reduction backend: pandas or duckdb (overrides config)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory (overrides config)",
    )
    parser.add_argument(
        "--skip-binning",
        action="store_true",
        help="Load persisted bin records instead of binning raw observations",
    )
    return parser.parse_args()


def build_bins(config: dict, settings: BinningSettings):
    """Bin raw observations and persist the bin records."""
    observations = load_observations(config["data"]["raw_input"])

    backend = config.get("binning", {}).get("backend", "pandas")
    aggregator = BinAggregator(settings, reducer=get_reducer(backend))
    bins = aggregator.aggregate(observations, verbose=True)

    bins_path = write_bins(bins, config["data"]["bins_path"])
    print(f"Bin records saved to: {bins_path}")

    return bins


def save_results(output_dir: Path, config: dict, predictors: list, results: dict) -> Path:
    """Save per-predictor metrics to a timestamped JSON file."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    results_file = output_dir / f"results_{timestamp}.json"

    payload = {
        "config": config,
        "predictors": [
            {"params": predictor.get_params(), **results[predictor.get_name()].summary()}
            for predictor in predictors
        ],
        "timestamp": timestamp,
    }

    with open(results_file, "w") as f:
        json.dump(payload, f, indent=2, default=str)

    return results_file


def main():
    """Main entry point."""
    args = parse_args()

    print("=" * 60)
    print("BikeMi Availability Prediction Pipeline")
    print("=" * 60)

    config = load_config(args.config)
    print(f"\nLoaded config from: {args.config}")

    # Override config with command line args
    if args.predictors:
        config.setdefault("prediction", {})["predictors"] = args.predictors
    if args.horizon is not None:
        config.setdefault("prediction", {})["horizon"] = args.horizon
    if args.backend:
        config.setdefault("binning", {})["backend"] = args.backend
    if args.output_dir:
        config["data"]["output_dir"] = args.output_dir

    predictor_names = config["prediction"]["predictors"]
    if len(set(predictor_names)) != len(predictor_names):
        raise ValueError(f"Duplicate predictors requested: {predictor_names}")

    settings = BinningSettings.from_config(config)
    logging.info(
        f"Window {settings.window_start} - {settings.window_end}, "
        f"{settings.n_bins_per_day} bins/day, {settings.num_categories} categories, "
        f"horizon {config['prediction']['horizon']}"
    )

    output_dir = Path(config["data"]["output_dir"])
    output_dir.mkdir(parents=True, exist_ok=True)

    # Bin records
    print("\n" + "-" * 40)
    print("Bin Records")
    print("-" * 40)

    if args.skip_binning:
        bins = load_bins(config["data"]["bins_path"])
        print(f"Loaded {len(bins):,} bin records from: {config['data']['bins_path']}")
    else:
        bins = build_bins(config, settings)

    # Predictors
    predictors = [get_predictor(name, config) for name in predictor_names]
    logging.info(f"Predictors: {', '.join(predictor_names)}")

    results = run_evaluation(
        predictors,
        bins,
        total_days=settings.days,
        bins_per_day=settings.n_bins_per_day,
        num_categories=settings.num_categories,
        verbose=True,
    )

    print("\n" + "=" * 60)
    print(performance_report(predictors))

    results_file = save_results(output_dir, config, predictors, results)
    logging.info(f"Results saved to: {results_file}")

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
