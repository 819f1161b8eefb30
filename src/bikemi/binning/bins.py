"""Bin arithmetic and availability quantization.

A bin is identified by a unique integer inside the observation window:
0 .. TB-1 where TB is the number of bins in the window. With 15 minute
bins and a 4 day window, ids run from 0 to 383 and id 96 is the first bin
of the second day. Knowing the bins per day, a unique id can be split into
a day id and a daily bin id and recombined.
"""

from dataclasses import dataclass

import numpy as np

MINUTES_IN_A_DAY = 1440

# Column order of a persisted bin record, keyed by day_id
BIN_COLUMNS = [
    "day_id",
    "station_id",
    "daily_bin_id",
    "average",
    "station_size",
    "category_label",
]


@dataclass(frozen=True)
class BinAggregate:
    """Aggregated availability of one station in one bin.

    ``daily_bin_id`` is the bin id inside the day for held-out data, and the
    cross-day unique id for training data (see ``ChronologicalIndex``).
    """

    day_id: int
    station_id: int
    daily_bin_id: int
    average: float
    station_size: int
    category_label: int

    @property
    def bin_id(self) -> int:
        return self.daily_bin_id


def bins_per_day(bin_minutes: int) -> int:
    """Number of bins in a day for the given bin duration.

    Args:
        bin_minutes: Bin duration in minutes

    Returns:
        Bins per day (e.g. 96 for 15 minute bins)
    """
    if bin_minutes <= 0:
        raise ValueError(f"Bin duration must be positive, got {bin_minutes} minutes")
    if MINUTES_IN_A_DAY % bin_minutes != 0:
        raise ValueError(f"Bin duration of {bin_minutes} minutes does not divide a day")
    return MINUTES_IN_A_DAY // bin_minutes


def unique_bin_id(day_id: int, n_bins_per_day: int, daily_bin_id: int) -> int:
    """Unique bin id across the whole window, e.g. day 2, bin 3 of 96 -> 195."""
    return day_id * n_bins_per_day + daily_bin_id


def daily_bin_id(n_bins_per_day: int, unique_id: int) -> int:
    """Bin id inside its day, e.g. 195 with 96 bins per day -> 3."""
    return unique_id % n_bins_per_day


def day_id(n_bins_per_day: int, unique_id: int) -> int:
    """Day the unique bin belongs to, e.g. 195 with 96 bins per day -> 2."""
    return unique_id // n_bins_per_day


def quantize(bikes: float, size: int, num_categories: int) -> int:
    """Map a bike count to its availability-ratio category.

    The ratio ``bikes / size`` is split into ``num_categories`` equal bands.
    A full station belongs to the last band. Values outside [0, size] are
    clamped to the first or last band.

    Args:
        bikes: Bikes available (may be a mean)
        size: Station size (bikes + free slots)
        num_categories: Number of bands

    Returns:
        Category label in [0, num_categories - 1]
    """
    if size <= 0:
        raise ValueError(f"Station size must be positive, got {size}")

    if bikes == size:
        label = num_categories - 1
    else:
        label = int(np.floor((bikes / size) / (1.0 / num_categories)))

    return min(max(label, 0), num_categories - 1)


def quantize_array(bikes: np.ndarray, sizes: np.ndarray, num_categories: int) -> np.ndarray:
    """Vectorized ``quantize`` over aligned arrays of bike counts and sizes."""
    bikes = np.asarray(bikes, dtype=float)
    sizes = np.asarray(sizes, dtype=float)

    if np.any(sizes <= 0):
        raise ValueError("Station sizes must be positive")

    labels = np.floor((bikes / sizes) / (1.0 / num_categories))
    labels = np.where(bikes == sizes, num_categories - 1, labels)

    return np.clip(labels, 0, num_categories - 1).astype(int)
