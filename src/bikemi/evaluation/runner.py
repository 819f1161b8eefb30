"""Train and evaluate a set of predictors on the same bin records."""

import pandas as pd

from .metrics import ConfusionMatrix


def run_evaluation(
    predictors: list,
    bins: pd.DataFrame,
    total_days: int,
    bins_per_day: int,
    num_categories: int,
    verbose: bool = True,
) -> dict[str, ConfusionMatrix]:
    """Build and evaluate every predictor on the held-out last day.

    Args:
        predictors: Predictor instances (must have build_classifier/get_name)
        bins: Bin records covering ``total_days`` days
        total_days: Days in the observation window
        bins_per_day: Bins in a day
        num_categories: Number of categories
        verbose: Whether to print progress

    Returns:
        Dictionary mapping predictor name -> confusion matrix
    """
    if total_days < 2:
        raise ValueError(f"Need at least one training day and one test day, got {total_days} days")

    names = [predictor.get_name() for predictor in predictors]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ValueError(f"Each predictor can be evaluated once, got duplicates: {duplicates}")

    results = {}

    for predictor in predictors:
        if verbose:
            print("\n" + "-" * 40)
            print(predictor.get_name())
            print("-" * 40)

        matrix = predictor.build_classifier(
            bins,
            total_days,
            bins_per_day,
            num_categories=num_categories,
            verbose=verbose,
        )
        results[predictor.get_name()] = matrix

        if verbose:
            print(f"  Accuracy: {matrix.accuracy():.1%} over {matrix.total:,} instances")

    return results


def performance_report(predictors: list) -> str:
    """Concatenate the reports of evaluated predictors."""
    sections = [predictor.report() for predictor in predictors]
    return "Performance:\n" + "\n\n".join(sections)
