"""Pytest configuration and shared fixtures."""

import numpy as np
import pandas as pd
import pytest

from bikemi.binning import BIN_COLUMNS, BinningSettings

# Bikes available per bin of the day, repeated every 4 bins. With 20 docks
# this walks through categories 0, 1, 2, 3 of a 4-category split.
PERIODIC_BIKES = [2, 7, 12, 17]
STATION_SIZE = 20


@pytest.fixture
def sample_config():
    """Minimal configuration for testing."""
    return {
        "data": {
            "raw_input": "data/raw",
            "bins_path": "data/bins/bins.tsv",
            "output_dir": "outputs",
        },
        "time": {
            "start_date": "2013-06-07T00:00:00",
            "days": 3,
            "bin_minutes": 15,
        },
        "binning": {
            "num_categories": 4,
            "backend": "pandas",
        },
        "prediction": {
            "horizon": 2,
            "predictors": ["last_value", "historic_mean", "historic_trend", "online_lr"],
        },
        "model": {
            "online_lr": {
                "learning_rate": 0.1,
                "decay_exponent": 0.5,
                "l2": 0.0001,
                "epochs": 1,
            },
        },
    }


@pytest.fixture
def sample_settings(sample_config):
    """Binning settings of the sample config (3 days of 15 minute bins)."""
    return BinningSettings.from_config(sample_config)


@pytest.fixture
def sample_observations():
    """Raw observations of two stations, including invalid records."""
    start = pd.Timestamp("2013-06-07 00:00:00", tz="UTC")
    minutes = [1, 5, 9, 13, 20, 95, 24 * 60 + 3, 2 * 24 * 60 + 30]

    rows = []
    for station_id, size in [(1, 20), (2, 30)]:
        for i, m in enumerate(minutes):
            bikes = (i * 3) % (size + 1)
            rows.append((station_id, bikes, size - bikes, start + pd.Timedelta(minutes=m)))

    # Invalid or out of window
    rows.append((1, -1, 21, start + pd.Timedelta(minutes=2)))
    rows.append((1, 0, 0, start + pd.Timedelta(minutes=2)))
    rows.append((1, 5, 15, start - pd.Timedelta(minutes=1)))
    rows.append((1, 5, 15, start + pd.Timedelta(days=3)))

    return pd.DataFrame(rows, columns=["station_id", "bikes", "free", "timestamp"])


def make_periodic_bins(
    days: int = 3,
    bins_per_day: int = 96,
    station_id: int = 1,
    num_categories: int = 4,
) -> pd.DataFrame:
    """Bin records of one station repeating PERIODIC_BIKES every day."""
    rows = []
    for day in range(days):
        for daily_bin in range(bins_per_day):
            bikes = PERIODIC_BIKES[daily_bin % len(PERIODIC_BIKES)]
            label = int(bikes / STATION_SIZE * num_categories)
            rows.append((day, station_id, daily_bin, float(bikes), STATION_SIZE, label))
    return pd.DataFrame(rows, columns=BIN_COLUMNS)


@pytest.fixture
def periodic_bins():
    """Three days of a perfectly periodic station (last day held out)."""
    return make_periodic_bins()


@pytest.fixture
def periodic_bins_factory():
    """Builder for periodic bin records with custom days/stations."""
    return make_periodic_bins


@pytest.fixture
def random_observations():
    """Noisy observations of three stations over three days."""
    np.random.seed(42)
    n_obs = 3000
    start = pd.Timestamp("2013-06-07 00:00:00", tz="UTC")

    station_ids = np.random.choice([1, 2, 3], n_obs)
    sizes = np.random.choice([19, 20, 20, 20, 21], n_obs)
    bikes = np.random.randint(0, 21, n_obs)
    bikes = np.minimum(bikes, sizes)
    offsets = np.random.randint(0, 3 * 24 * 60, n_obs)

    return pd.DataFrame(
        {
            "station_id": station_ids,
            "bikes": bikes,
            "free": sizes - bikes,
            "timestamp": [start + pd.Timedelta(minutes=int(m)) for m in offsets],
        }
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
