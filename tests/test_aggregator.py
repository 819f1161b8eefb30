"""Unit tests for the bin aggregator and its reduction backends."""

import pandas as pd
import pytest

from bikemi.binning import (
    BIN_COLUMNS,
    BinAggregator,
    BinningSettings,
    DuckDBReducer,
    PandasReducer,
    get_reducer,
    iter_aggregates,
)

START = pd.Timestamp("2013-06-07 00:00:00", tz="UTC")


def observations_in_one_bin(bikes, sizes, station_id=1, minute=3):
    """Observations of a single station, all inside the same bin."""
    return pd.DataFrame(
        {
            "station_id": [station_id] * len(bikes),
            "bikes": bikes,
            "free": [s - b for b, s in zip(bikes, sizes)],
            "timestamp": [START + pd.Timedelta(minutes=minute, seconds=i) for i in range(len(bikes))],
        }
    )


class TestBinningSettings:
    """Tests for the binning settings."""

    def test_from_config(self, sample_config):
        settings = BinningSettings.from_config(sample_config)

        assert settings.window_start == START
        assert settings.window_end == START + pd.Timedelta(days=3)
        assert settings.n_bins_per_day == 96
        assert settings.num_categories == 4

    def test_naive_start_is_utc(self, sample_config):
        """A start date without offset is taken as UTC."""
        settings = BinningSettings.from_config(sample_config)
        assert str(settings.window_start.tz) == "UTC"

    def test_invalid_settings_raise(self):
        with pytest.raises(ValueError):
            BinningSettings(START, days=0, bin_minutes=15, num_categories=4)
        with pytest.raises(ValueError):
            BinningSettings(START, days=3, bin_minutes=15, num_categories=1)
        with pytest.raises(ValueError):
            BinningSettings(START, days=3, bin_minutes=7, num_categories=4)


class TestModeSelection:
    """Tests for station size correction."""

    def test_mode_size_and_average(self, sample_settings):
        """Size is the most frequent one; average only uses observations of that size."""
        observations = observations_in_one_bin(
            bikes=[5, 10, 10, 10, 15],
            sizes=[20, 20, 19, 23, 20],
        )

        bins = BinAggregator(sample_settings).aggregate(observations)

        assert len(bins) == 1
        row = bins.iloc[0]
        assert row["station_size"] == 20
        assert row["average"] == pytest.approx(10.0)  # (5 + 10 + 15) / 3
        assert row["category_label"] == 2

    def test_tie_goes_to_smallest_size(self, sample_settings):
        observations = observations_in_one_bin(
            bikes=[4, 6, 8, 10],
            sizes=[22, 20, 22, 20],
        )

        bins = BinAggregator(sample_settings).aggregate(observations)

        assert bins.iloc[0]["station_size"] == 20
        assert bins.iloc[0]["average"] == pytest.approx(8.0)

    def test_full_station_is_last_category(self, sample_settings):
        observations = observations_in_one_bin(bikes=[20, 20], sizes=[20, 20])

        bins = BinAggregator(sample_settings).aggregate(observations)

        assert bins.iloc[0]["category_label"] == 3


class TestAggregation:
    """Tests for filtering, keys and output layout."""

    def test_drops_invalid_and_out_of_window(self, sample_settings, sample_observations):
        """Invalid counts and timestamps outside the window never reach a bin."""
        aggregator = BinAggregator(sample_settings)
        keyed = aggregator.key_observations(sample_observations)

        # 8 valid observations for each of the 2 stations
        assert len(keyed) == 16
        assert (keyed["size"] > 0).all()
        assert (keyed["bikes"] >= 0).all()

    def test_bin_keys(self, sample_settings, sample_observations):
        """Global bin ids split into day and daily bin ids."""
        bins = BinAggregator(sample_settings).aggregate(sample_observations)
        station = bins[bins["station_id"] == 1]

        # minutes 1, 5, 9, 13 -> bin 0; 20 -> bin 1; 95 -> bin 6;
        # day 1 minute 3 -> bin 0 of day 1; day 2 minute 30 -> bin 2 of day 2
        keys = list(zip(station["day_id"], station["daily_bin_id"]))
        assert keys == [(0, 0), (0, 1), (0, 6), (1, 0), (2, 2)]

    def test_output_columns(self, sample_settings, sample_observations):
        bins = BinAggregator(sample_settings).aggregate(sample_observations)
        assert list(bins.columns) == BIN_COLUMNS

    def test_labels_in_range(self, sample_settings, random_observations):
        """Every category label lies in [0, num_categories - 1]."""
        bins = BinAggregator(sample_settings).aggregate(random_observations)

        assert len(bins) > 0
        assert bins["category_label"].between(0, 3).all()
        assert (bins["average"] <= bins["station_size"]).all()

    def test_one_record_per_station_bin(self, sample_settings, random_observations):
        bins = BinAggregator(sample_settings).aggregate(random_observations)
        assert not bins.duplicated(subset=["day_id", "station_id", "daily_bin_id"]).any()

    def test_arrival_order_does_not_matter(self, sample_settings, random_observations):
        """Shuffled input gives identical aggregates."""
        aggregator = BinAggregator(sample_settings)

        expected = aggregator.aggregate(random_observations)
        shuffled = random_observations.sample(frac=1.0, random_state=7)
        actual = aggregator.aggregate(shuffled)

        pd.testing.assert_frame_equal(actual, expected)

    def test_empty_input(self, sample_settings):
        empty = pd.DataFrame(
            {
                "station_id": pd.Series([], dtype="int64"),
                "bikes": pd.Series([], dtype="int64"),
                "free": pd.Series([], dtype="int64"),
                "timestamp": pd.Series([], dtype="datetime64[ns, UTC]"),
            }
        )

        bins = BinAggregator(sample_settings).aggregate(empty)

        assert len(bins) == 0
        assert list(bins.columns) == BIN_COLUMNS

    def test_iter_aggregates(self, sample_settings, sample_observations):
        bins = BinAggregator(sample_settings).aggregate(sample_observations)
        records = list(iter_aggregates(bins))

        assert len(records) == len(bins)
        assert records[0].day_id == bins.iloc[0]["day_id"]
        assert isinstance(records[0].average, float)


class TestReducers:
    """Tests for the grouped reduction backends."""

    def test_duckdb_matches_pandas(self, sample_settings, random_observations):
        """Both backends produce the same aggregates."""
        pandas_bins = BinAggregator(sample_settings, PandasReducer()).aggregate(random_observations)
        duckdb_bins = BinAggregator(sample_settings, DuckDBReducer()).aggregate(random_observations)

        pd.testing.assert_frame_equal(duckdb_bins, pandas_bins, check_dtype=False)

    def test_duckdb_tie_break(self, sample_settings):
        observations = observations_in_one_bin(bikes=[4, 6, 8, 10], sizes=[22, 20, 22, 20])

        bins = BinAggregator(sample_settings, DuckDBReducer()).aggregate(observations)

        assert bins.iloc[0]["station_size"] == 20

    def test_get_reducer(self):
        assert isinstance(get_reducer("pandas"), PandasReducer)
        assert isinstance(get_reducer("duckdb"), DuckDBReducer)

    def test_unknown_reducer_raises(self):
        with pytest.raises(ValueError, match="Unknown reducer"):
            get_reducer("hadoop")
