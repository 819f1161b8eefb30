"""Historic daily-profile predictors.

Both predictors learn, per station, the mean bikes available in every bin of
the day over the training days (a ``HistoricTable``). They differ only in
how a forecast is read from the table, which is a ``HistoricRule``:

- mean: the typical bike count of the forecast bin
- trend: the current bike count plus the typical change between the current
  bin and the forecast bin

The forecast bike count is mapped to a category with the same ratio bands
used when binning observations, so every predictor's output is comparable.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from .base import BasePredictor, NO_PREDICTION
from ..binning.bins import BinAggregate, quantize


def round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


@dataclass
class HistoricTable:
    """Mean bikes available per bin of the day for one station.

    ``means[i]`` is NaN when no training bin fell on bin ``i`` of the day.
    """

    means: np.ndarray

    @classmethod
    def from_series(cls, series: List[BinAggregate], bins_per_day: int) -> "HistoricTable":
        sums = np.zeros(bins_per_day)
        counts = np.zeros(bins_per_day)

        for agg in series:
            slot = agg.bin_id % bins_per_day
            sums[slot] += agg.average
            counts[slot] += 1

        means = np.full(bins_per_day, np.nan)
        np.divide(sums, counts, out=means, where=counts > 0)
        return cls(means=means)

    def __len__(self) -> int:
        return len(self.means)

    def rounded(self, bin_id: int) -> Optional[int]:
        """Rounded mean of the bin of the day ``bin_id`` falls on (None if unseen)."""
        value = self.means[bin_id % len(self.means)]
        if np.isnan(value):
            return None
        return round_half_up(value)


@dataclass(frozen=True)
class HistoricRule:
    """How a bike count forecast is read from a station's table."""

    name: str
    forecast: Callable[[HistoricTable, BinAggregate, int], Optional[int]]


def mean_forecast(table: HistoricTable, agg: BinAggregate, horizon: int) -> Optional[int]:
    return table.rounded(agg.daily_bin_id + horizon)


def trend_forecast(table: HistoricTable, agg: BinAggregate, horizon: int) -> Optional[int]:
    t0 = agg.daily_bin_id
    future = table.rounded(t0 + horizon)
    current = table.rounded(t0)
    if future is None or current is None:
        return None
    return round_half_up(agg.average) + future - current


HISTORIC_MEAN = HistoricRule(name="Historic Mean Predictor", forecast=mean_forecast)
HISTORIC_TREND = HistoricRule(name="Historic Trend Predictor", forecast=trend_forecast)


class HistoricPredictor(BasePredictor):
    """Daily-profile predictor parameterized by a HistoricRule.

    fit() builds one HistoricTable per station from the training days.
    classify() reads a bike count from the station's table with the rule and
    quantizes it with the current bin's station size. Out-of-range counts
    (possible with the trend rule) fall into the first or last category.
    """

    requires_training = True

    def __init__(self, config: dict, rule: HistoricRule = HISTORIC_MEAN):
        super().__init__(config)
        self.rule = rule
        self.tables: Dict[int, HistoricTable] = {}

    @property
    def name(self) -> str:
        return self.rule.name

    def fit(
        self,
        train: Dict[int, List[BinAggregate]],
        verbose: bool = False,
    ) -> "BasePredictor":
        """Compute the mean daily profile of every station."""
        if verbose:
            print(f"Fitting {self.get_name()} on {len(train)} stations...")

        self.tables = {}
        for station_id, series in tqdm(train.items(), desc="Historic tables", disable=not verbose):
            if series:
                self.tables[station_id] = HistoricTable.from_series(series, self.bins_per_day)

        self.is_fitted = True

        if verbose:
            print(f"  Built {len(self.tables)} daily profiles of {self.bins_per_day} bins")

        return self

    def classify(self, agg: BinAggregate) -> int:
        table = self.tables.get(agg.station_id)
        if table is None:
            return NO_PREDICTION

        bikes = self.rule.forecast(table, agg, self.horizon)
        if bikes is None:
            return NO_PREDICTION

        return quantize(bikes, agg.station_size, self.num_categories)

    def get_params(self) -> Dict[str, Any]:
        params = super().get_params()
        params["n_stations"] = len(self.tables)
        return params
