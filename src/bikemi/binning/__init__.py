"""Binning of raw dock observations."""

from .aggregator import (
    BinAggregator,
    BinningSettings,
    DuckDBReducer,
    GroupedReducer,
    PandasReducer,
    get_reducer,
    iter_aggregates,
)
from .bins import (
    BIN_COLUMNS,
    BinAggregate,
    bins_per_day,
    day_id,
    daily_bin_id,
    quantize,
    quantize_array,
    unique_bin_id,
)

__all__ = [
    "BinAggregator",
    "BinningSettings",
    "GroupedReducer",
    "PandasReducer",
    "DuckDBReducer",
    "get_reducer",
    "iter_aggregates",
    "BIN_COLUMNS",
    "BinAggregate",
    "bins_per_day",
    "day_id",
    "daily_bin_id",
    "quantize",
    "quantize_array",
    "unique_bin_id",
]
