"""Data loading utilities for raw dock observations and bin records."""

from pathlib import Path

import pandas as pd
from tqdm import tqdm

from ..binning.bins import BIN_COLUMNS
from .duckdb_utils import export_to_parquet, query_parquet

OBSERVATION_COLUMNS = ["station_id", "bikes", "free", "timestamp"]
OVERFLOW_COLUMN = "extra"

RAW_FILE_PATTERNS = ["*.txt", "*.csv", "*.dat"]


def _find_raw_files(input_path: Path) -> list[Path]:
    if input_path.is_file():
        return [input_path]

    files = []
    for pattern in RAW_FILE_PATTERNS:
        files.extend(input_path.glob(f"**/{pattern}"))
    return sorted(files)


def _read_raw_file(path: Path) -> pd.DataFrame:
    """Read one raw file as strings. Lines with extra fields are skipped."""
    try:
        raw = pd.read_csv(
            path,
            sep=r"\s+",
            header=None,
            names=OBSERVATION_COLUMNS + [OVERFLOW_COLUMN],
            index_col=False,
            dtype=str,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=OBSERVATION_COLUMNS, dtype=str)

    # One extra field fits the overflow column; more are skipped by the parser
    raw = raw[raw[OVERFLOW_COLUMN].isna()]
    return raw[OBSERVATION_COLUMNS].reset_index(drop=True)


def parse_observations(raw: pd.DataFrame) -> pd.DataFrame:
    """Parse raw string records into typed observations.

    Records with a non-integer count, a missing field or an unparsable
    ISO 8601 timestamp are dropped. Naive timestamps are taken as UTC.

    Args:
        raw: DataFrame of strings with columns [station_id, bikes, free, timestamp]

    Returns:
        DataFrame with integer counts and UTC timestamps
    """
    parsed = pd.DataFrame(index=raw.index)

    for col in ["station_id", "bikes", "free"]:
        parsed[col] = pd.to_numeric(raw[col], errors="coerce")

    parsed["timestamp"] = pd.to_datetime(
        raw["timestamp"], errors="coerce", utc=True, format="ISO8601"
    )

    parsed = parsed.dropna()

    # Reject fractional counts
    counts = parsed[["station_id", "bikes", "free"]]
    parsed = parsed[(counts % 1 == 0).all(axis=1)]

    return parsed.astype({"station_id": "int64", "bikes": "int64", "free": "int64"}).reset_index(
        drop=True
    )


def load_observations(input_path: str = "data/raw", verbose: bool = True) -> pd.DataFrame:
    """Load raw observations, one ``<station> <bikes> <free> <timestamp>`` per line.

    Args:
        input_path: A raw file, or a directory searched recursively for
            .txt, .csv and .dat files
        verbose: Whether to print progress

    Returns:
        DataFrame with columns [station_id, bikes, free, timestamp]
    """
    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"Observation input not found: {input_path}")

    files = _find_raw_files(path)
    if not files:
        raise FileNotFoundError(f"No observation files found in {input_path}")

    if verbose:
        print(f"Found {len(files)} observation file(s)")

    frames = [_read_raw_file(f) for f in tqdm(files, desc="Loading observations", disable=not verbose)]
    raw = pd.concat(frames, ignore_index=True)

    observations = parse_observations(raw)

    if verbose:
        dropped = len(raw) - len(observations)
        print(f"  ✓ Parsed {len(observations):,} observations ({dropped:,} unparsable records dropped)")

    return observations


def write_bins(bins: pd.DataFrame, output_path: str) -> Path:
    """Persist bin records.

    Text output holds one tab-separated record per line:
    ``day_id, station_id, daily_bin_id, average, station_size, category_label``.
    A ``.parquet`` suffix writes a Parquet file instead.

    Args:
        bins: Bin DataFrame with BIN_COLUMNS
        output_path: Destination file

    Returns:
        Path written
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix == ".parquet":
        export_to_parquet(bins[BIN_COLUMNS], path)
    else:
        bins[BIN_COLUMNS].to_csv(path, sep="\t", header=False, index=False)

    return path


def load_bins(bins_path: str) -> pd.DataFrame:
    """Load persisted bin records written by ``write_bins``.

    Args:
        bins_path: Tab-separated text file or Parquet file

    Returns:
        Bin DataFrame with BIN_COLUMNS
    """
    path = Path(bins_path)
    if not path.exists():
        raise FileNotFoundError(f"Bin records not found: {bins_path}")

    if path.suffix == ".parquet":
        bins = query_parquet(
            path, columns=BIN_COLUMNS, order_by=["day_id", "station_id", "daily_bin_id"]
        )
    else:
        bins = pd.read_csv(path, sep="\t", header=None, names=BIN_COLUMNS)

    return bins.astype(
        {
            "day_id": "int64",
            "station_id": "int64",
            "daily_bin_id": "int64",
            "average": float,
            "station_size": "int64",
            "category_label": "int64",
        }
    )
