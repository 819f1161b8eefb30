"""Base predictor class defining the interface for availability forecasting."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd
from tqdm import tqdm

from ..binning.bins import BinAggregate, bins_per_day as bins_in_day
from ..evaluation.chronology import ChronologicalIndex, lookahead
from ..evaluation.metrics import ConfusionMatrix, format_report

# Returned by classify() when no usable model exists for the station
NO_PREDICTION = -1


class BasePredictor(ABC):
    """Abstract base class for all availability category predictors.

    A predictor forecasts the category of a station ``horizon`` bins after
    the bin it is given. All predictors must implement:
    - classify(): Predict the category for a bin, or NO_PREDICTION

    Predictors that learn from the training days also override fit().
    """

    name = "Predictor"
    requires_training = False

    def __init__(self, config: dict):
        """Initialize predictor with configuration.

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.num_categories = int(config.get("binning", {}).get("num_categories", 4))
        self.horizon = int(config.get("prediction", {}).get("horizon", 2))
        self.bins_per_day = bins_in_day(int(config.get("time", {}).get("bin_minutes", 15)))
        self.is_fitted = False
        self.confusion_matrix = None

        if self.horizon < 1:
            raise ValueError(f"Prediction horizon must be at least one bin, got {self.horizon}")

    def fit(
        self,
        train: Dict[int, List[BinAggregate]],
        verbose: bool = False,
    ) -> "BasePredictor":
        """Train per-station models on the training series.

        Args:
            train: Station id -> training bins sorted by cross-day bin id
            verbose: Whether to print progress

        Returns:
            self (for method chaining)
        """
        self.is_fitted = True
        return self

    @abstractmethod
    def classify(self, agg: BinAggregate) -> int:
        """Predict the category ``horizon`` bins after ``agg``.

        Returns:
            Category in [0, num_categories - 1], or NO_PREDICTION when the
            station has no usable model
        """
        pass

    def evaluate_series(self, series: List[BinAggregate]) -> ConfusionMatrix:
        """Score predictions over one station's test series.

        Instances without a prediction or without a bin exactly ``horizon``
        bins later are skipped.
        """
        matrix = ConfusionMatrix(self.num_categories)

        for k in range(len(series) - self.horizon):
            predicted = self.classify(series[k])
            if predicted == NO_PREDICTION:
                continue

            target = lookahead(series, k, self.horizon)
            if target is None:
                continue

            matrix.add_instance(target.category_label, predicted)

        return matrix

    def evaluate(
        self,
        test: Dict[int, List[BinAggregate]],
        verbose: bool = False,
    ) -> ConfusionMatrix:
        """Evaluate every station and merge the per-station matrices."""
        matrix = ConfusionMatrix(self.num_categories)

        for station_id in tqdm(sorted(test), desc=f"Evaluating {self.get_name()}", disable=not verbose):
            matrix = matrix + self.evaluate_series(test[station_id])

        self.confusion_matrix = matrix
        return matrix

    def build_classifier(
        self,
        bins: Union[pd.DataFrame, Iterable[BinAggregate]],
        total_days: int,
        bins_per_day: int,
        num_categories: Optional[int] = None,
        verbose: bool = False,
    ) -> ConfusionMatrix:
        """Split bins chronologically, train if needed, and evaluate on the last day.

        Args:
            bins: Bin DataFrame or BinAggregate records
            total_days: Days in the observation window (the last one is held out)
            bins_per_day: Bins in a day
            num_categories: Number of categories (defaults to the configured one)
            verbose: Whether to print progress

        Returns:
            Confusion matrix of the held-out day
        """
        if num_categories is not None:
            self.num_categories = num_categories
        self.bins_per_day = bins_per_day

        if isinstance(bins, pd.DataFrame):
            index = ChronologicalIndex.from_frame(bins, total_days, bins_per_day)
        else:
            index = ChronologicalIndex.from_aggregates(bins, total_days, bins_per_day)

        if verbose:
            n_train, n_test = index.n_bins()
            print(f"Building {self.get_name()}: {n_train:,} training bins, "
                  f"{n_test:,} test bins, {len(index.stations)} stations")

        if self.requires_training:
            self.fit(index.train, verbose=verbose)
        else:
            self.is_fitted = True

        return self.evaluate(index.test, verbose=verbose)

    def report(self) -> str:
        """Predictor name, confusion matrix and accuracy."""
        return format_report(self.get_name(), self.confusion_matrix)

    def get_name(self) -> str:
        """Return the predictor name."""
        return self.name

    def get_params(self) -> Dict[str, Any]:
        """Return predictor parameters for logging."""
        return {
            "name": self.get_name(),
            "num_categories": self.num_categories,
            "horizon": self.horizon,
        }
