"""Utility functions for the BikeMi availability predictors."""

from .data_loader import load_bins, load_observations, parse_observations, write_bins
from .duckdb_utils import DuckDBConnection, export_to_parquet, query_frame, query_parquet
from .helpers import get_project_root, load_config

__all__ = [
    "load_observations",
    "parse_observations",
    "load_bins",
    "write_bins",
    "load_config",
    "get_project_root",
    "DuckDBConnection",
    "query_frame",
    "query_parquet",
    "export_to_parquet",
]
