"""Aggregation of raw dock observations into per-station time bins.

Each raw observation carries the bikes available and the free slots of a
station at some instant. Observations are keyed by (station, bin) and every
group is reduced to one record holding:

- ``station_size``: the most frequent bikes + free value in the bin. Sensor
  faults make the reported size drift between observations, so the mode is
  taken as the true size. Ties go to the smallest size.
- ``average``: mean bikes available over the observations whose size equals
  ``station_size`` only.
- ``category_label``: the availability-ratio band of ``average``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import pandas as pd

from .bins import BIN_COLUMNS, BinAggregate, bins_per_day, quantize_array
from ..utils.duckdb_utils import query_frame

KEY_COLUMNS = ["station_id", "global_bin_id"]


@dataclass(frozen=True)
class BinningSettings:
    """Observation window and binning parameters."""

    window_start: pd.Timestamp
    days: int
    bin_minutes: int
    num_categories: int

    def __post_init__(self):
        if self.days < 1:
            raise ValueError(f"Window must span at least one day, got {self.days}")
        if self.num_categories < 2:
            raise ValueError(f"Need at least 2 categories, got {self.num_categories}")
        # Validates the bin duration
        bins_per_day(self.bin_minutes)

    @classmethod
    def from_config(cls, config: dict) -> "BinningSettings":
        time_config = config["time"]
        start = pd.Timestamp(time_config["start_date"])
        if start.tzinfo is None:
            start = start.tz_localize("UTC")

        return cls(
            window_start=start,
            days=int(time_config["days"]),
            bin_minutes=int(time_config.get("bin_minutes", 15)),
            num_categories=int(config.get("binning", {}).get("num_categories", 4)),
        )

    @property
    def window_end(self) -> pd.Timestamp:
        return self.window_start + pd.Timedelta(days=self.days)

    @property
    def bin_duration(self) -> pd.Timedelta:
        return pd.Timedelta(minutes=self.bin_minutes)

    @property
    def n_bins_per_day(self) -> int:
        return bins_per_day(self.bin_minutes)


class GroupedReducer(ABC):
    """Groups keyed observations and reduces every (station, bin) group.

    All observations of a key are visible together when the group is
    reduced. Different keys are independent.
    """

    @abstractmethod
    def reduce(self, keyed: pd.DataFrame) -> pd.DataFrame:
        """Reduce keyed observations.

        Args:
            keyed: DataFrame with columns [station_id, global_bin_id, bikes, size]

        Returns:
            DataFrame with one row per key and columns
            [station_id, global_bin_id, station_size, average]
        """
        pass

    def get_name(self) -> str:
        return self.__class__.__name__


class PandasReducer(GroupedReducer):
    """In-process reduction with a pandas groupby."""

    def reduce(self, keyed: pd.DataFrame) -> pd.DataFrame:
        size_counts = (
            keyed.groupby(KEY_COLUMNS + ["size"])
            .agg(freq=("bikes", "size"), bike_sum=("bikes", "sum"))
            .reset_index()
        )

        # Most frequent size first, smallest size on ties
        size_counts = size_counts.sort_values(
            KEY_COLUMNS + ["freq", "size"],
            ascending=[True, True, False, True],
        )
        modes = size_counts.drop_duplicates(subset=KEY_COLUMNS, keep="first").copy()

        modes["average"] = modes["bike_sum"] / modes["freq"]
        modes = modes.rename(columns={"size": "station_size"})

        return modes[KEY_COLUMNS + ["station_size", "average"]].reset_index(drop=True)


# Most frequent size per (station, bin), smallest size on ties
MODE_QUERY = """
    WITH size_counts AS (
        SELECT
            station_id,
            global_bin_id,
            size,
            COUNT(*) AS freq,
            SUM(bikes) AS bike_sum
        FROM observations
        GROUP BY station_id, global_bin_id, size
    ),
    ranked AS (
        SELECT
            *,
            ROW_NUMBER() OVER (
                PARTITION BY station_id, global_bin_id
                ORDER BY freq DESC, size ASC
            ) AS size_rank
        FROM size_counts
    )
    SELECT
        station_id,
        global_bin_id,
        size AS station_size,
        CAST(bike_sum AS DOUBLE) / freq AS average
    FROM ranked
    WHERE size_rank = 1
    ORDER BY station_id, global_bin_id
"""


class DuckDBReducer(GroupedReducer):
    """Reduction pushed down to DuckDB as a single SQL query."""

    def __init__(self, database: str | None = None):
        self.database = database

    def reduce(self, keyed: pd.DataFrame) -> pd.DataFrame:
        result = query_frame(keyed, "observations", MODE_QUERY, database=self.database)
        return result.astype(
            {"station_id": "int64", "global_bin_id": "int64", "station_size": "int64"}
        )


def get_reducer(name: str) -> GroupedReducer:
    """Factory function to get a grouped reduction backend by name."""
    reducers = {
        "pandas": PandasReducer,
        "duckdb": DuckDBReducer,
    }

    if name not in reducers:
        raise ValueError(f"Unknown reducer: {name}. Available: {list(reducers.keys())}")

    return reducers[name]()


class BinAggregator:
    """Turns raw observations into per-station, per-bin aggregates."""

    def __init__(self, settings: BinningSettings, reducer: GroupedReducer | None = None):
        self.settings = settings
        self.reducer = reducer if reducer is not None else PandasReducer()

    def key_observations(self, observations: pd.DataFrame) -> pd.DataFrame:
        """Drop invalid or out-of-window observations and attach their bin key.

        Args:
            observations: DataFrame with columns [station_id, bikes, free, timestamp]

        Returns:
            DataFrame with columns [station_id, global_bin_id, bikes, size]
        """
        timestamps = pd.to_datetime(observations["timestamp"], utc=True)
        bikes = observations["bikes"]
        free = observations["free"]
        size = bikes + free

        valid = (bikes >= 0) & (free >= 0) & (size > 0)
        in_window = (timestamps >= self.settings.window_start) & (
            timestamps < self.settings.window_end
        )
        mask = valid & in_window

        offsets = timestamps[mask] - self.settings.window_start

        keyed = pd.DataFrame(
            {
                "station_id": observations.loc[mask, "station_id"].astype("int64"),
                "global_bin_id": (offsets // self.settings.bin_duration).astype("int64"),
                "bikes": bikes[mask].astype("int64"),
                "size": size[mask].astype("int64"),
            }
        )

        return keyed.reset_index(drop=True)

    def aggregate(self, observations: pd.DataFrame, verbose: bool = False) -> pd.DataFrame:
        """Aggregate raw observations into bin records.

        Args:
            observations: DataFrame with columns [station_id, bikes, free, timestamp]
            verbose: Whether to print progress

        Returns:
            DataFrame with columns BIN_COLUMNS, one row per (station, bin)
        """
        keyed = self.key_observations(observations)

        if verbose:
            print(f"Aggregating {len(keyed):,} of {len(observations):,} observations "
                  f"with {self.reducer.get_name()}...")

        if len(keyed) == 0:
            return pd.DataFrame({col: pd.Series(dtype="int64") for col in BIN_COLUMNS}).astype(
                {"average": float}
            )

        reduced = self.reducer.reduce(keyed)

        # A zero size cannot be quantized
        reduced = reduced[reduced["station_size"] > 0]

        n_bins_per_day = self.settings.n_bins_per_day
        global_ids = reduced["global_bin_id"].to_numpy()

        bins = pd.DataFrame(
            {
                "day_id": global_ids // n_bins_per_day,
                "station_id": reduced["station_id"].to_numpy(),
                "daily_bin_id": global_ids % n_bins_per_day,
                "average": reduced["average"].to_numpy(dtype=float),
                "station_size": reduced["station_size"].to_numpy(),
                "category_label": quantize_array(
                    reduced["average"].to_numpy(),
                    reduced["station_size"].to_numpy(),
                    self.settings.num_categories,
                ),
            }
        )

        bins = bins.sort_values(["day_id", "station_id", "daily_bin_id"]).reset_index(drop=True)

        if verbose:
            print(f"  ✓ {len(bins):,} bins for {bins['station_id'].nunique()} stations "
                  f"over {bins['day_id'].nunique()} days")

        return bins


def iter_aggregates(bins: pd.DataFrame):
    """Yield a BinAggregate for every row of a bin DataFrame."""
    for row in bins[BIN_COLUMNS].itertuples(index=False):
        yield BinAggregate(
            day_id=int(row.day_id),
            station_id=int(row.station_id),
            daily_bin_id=int(row.daily_bin_id),
            average=float(row.average),
            station_size=int(row.station_size),
            category_label=int(row.category_label),
        )
