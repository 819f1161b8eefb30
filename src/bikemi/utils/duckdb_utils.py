"""DuckDB helpers: SQL over in-memory frames and Parquet bin files."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import duckdb
import pandas as pd


class DuckDBConnection:
    """Context manager for DuckDB connections (in-memory unless a file is given)."""

    def __init__(self, database: Optional[str] = None):
        self.database = database or ":memory:"
        self.con = None

    def __enter__(self):
        self.con = duckdb.connect(self.database)
        return self.con

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.con:
            self.con.close()


def query_frame(
    df: pd.DataFrame,
    table: str,
    query: str,
    database: Optional[str] = None,
) -> pd.DataFrame:
    """Run a SQL query against a DataFrame registered as ``table``.

    Args:
        df: Input DataFrame
        table: Name the query uses for ``df``
        query: SQL text
        database: Optional database file (in-memory by default)

    Returns:
        Query result as a DataFrame
    """
    with DuckDBConnection(database) as con:
        con.register(table, df)
        return con.execute(query).fetchdf()


def query_parquet(
    parquet_path: Path,
    columns: Optional[List[str]] = None,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Read a Parquet file (or every Parquet file under a directory).

    Args:
        parquet_path: Parquet file or directory
        columns: Columns to select (None = all)
        filters: Equality filters, e.g. {"station_id": 13}
        order_by: Sort columns

    Returns:
        DataFrame with the selected rows
    """
    parquet_path = Path(parquet_path)
    pattern = str(parquet_path / "**" / "*.parquet") if parquet_path.is_dir() else str(parquet_path)

    select_cols = ", ".join(columns) if columns else "*"
    filters = filters or {}
    where_sql = ""
    if filters:
        where_sql = "WHERE " + " AND ".join(f"{col} = ?" for col in filters)
    order_sql = f"ORDER BY {', '.join(order_by)}" if order_by else ""

    query = f"SELECT {select_cols} FROM read_parquet('{pattern}') {where_sql} {order_sql}"

    with DuckDBConnection() as con:
        return con.execute(query, list(filters.values())).fetchdf()


def export_to_parquet(df: pd.DataFrame, output_path: Path, compression: str = "zstd") -> None:
    """Write a DataFrame to a single Parquet file with DuckDB."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with DuckDBConnection() as con:
        con.register("frame", df)
        con.execute(f"COPY frame TO '{output_path}' (FORMAT PARQUET, COMPRESSION '{compression}')")
