"""Chronological train/test split of bin records per station."""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

import pandas as pd

from ..binning.aggregator import iter_aggregates
from ..binning.bins import BinAggregate, unique_bin_id


@dataclass
class ChronologicalIndex:
    """Per-station bin series, split into training days and the held-out day.

    The last day of the window is held out for testing and keeps its daily
    bin ids. Training bins get the cross-day unique id, so every training
    series is one continuous timeline. All series are sorted by bin id.
    """

    total_days: int
    bins_per_day: int
    train: dict[int, list[BinAggregate]] = field(default_factory=dict)
    test: dict[int, list[BinAggregate]] = field(default_factory=dict)

    @classmethod
    def from_aggregates(
        cls,
        aggregates: Iterable[BinAggregate],
        total_days: int,
        bins_per_day: int,
    ) -> "ChronologicalIndex":
        index = cls(total_days=total_days, bins_per_day=bins_per_day)
        test_day = total_days - 1

        for agg in aggregates:
            if agg.day_id == test_day:
                index.test.setdefault(agg.station_id, []).append(agg)
            else:
                timeline_id = unique_bin_id(agg.day_id, bins_per_day, agg.daily_bin_id)
                index.train.setdefault(agg.station_id, []).append(
                    replace(agg, daily_bin_id=timeline_id)
                )

        for partition in (index.train, index.test):
            for series in partition.values():
                series.sort(key=lambda agg: agg.bin_id)

        return index

    @classmethod
    def from_frame(cls, bins: pd.DataFrame, total_days: int, bins_per_day: int) -> "ChronologicalIndex":
        """Build the index from a bin DataFrame (see ``BinAggregator``)."""
        return cls.from_aggregates(iter_aggregates(bins), total_days, bins_per_day)

    @property
    def stations(self) -> list[int]:
        return sorted(set(self.train) | set(self.test))

    def n_bins(self) -> tuple[int, int]:
        """Number of (training, test) bins."""
        return (
            sum(len(s) for s in self.train.values()),
            sum(len(s) for s in self.test.values()),
        )


def lookahead(series: list[BinAggregate], k: int, pw: int) -> BinAggregate | None:
    """Find the bin ``pw`` steps after ``series[k]``.

    Bins can be missing from a series, so the bin at ``k + pw`` is not
    necessarily ``pw`` bins later. Positions k+pw down to k+1 are searched
    for the target id; any earlier match is impossible in a sorted series.

    Args:
        series: Bins of one station, sorted by bin id
        k: Position of the current bin
        pw: Horizon in bins

    Returns:
        The bin with id ``series[k].bin_id + pw``, or None when it is missing
    """
    target = series[k].bin_id + pw

    for i in range(min(k + pw, len(series) - 1), k, -1):
        if series[i].bin_id == target:
            return series[i]

    return None
