"""Exploratory queries run right after the import.

All functions are read-only and return plain Python values / row dicts.
"""

from __future__ import annotations

from typing import Any

from contracts.schema import column_names
from pipeline.duckdb_client import DuckDBClient, checked_ident, qident
from pipeline.inventory_schema import DEFAULT_TABLE


def row_count(db: DuckDBClient, *, table: str = DEFAULT_TABLE) -> int:
    return int(db.scalar(f"SELECT COUNT(*) FROM {checked_ident(table)}"))


def sample_rows(db: DuckDBClient, *, table: str = DEFAULT_TABLE, limit: int = 10) -> list[dict[str, Any]]:
    return db.query(
        f"SELECT * FROM {checked_ident(table)} ORDER BY sku_id LIMIT ?",
        [int(limit)],
    )


def null_rows(db: DuckDBClient, *, table: str = DEFAULT_TABLE) -> list[dict[str, Any]]:
    """Rows where at least one column is NULL."""
    any_null = " OR ".join(f"{qident(c)} IS NULL" for c in column_names())
    return db.query(f"SELECT * FROM {checked_ident(table)} WHERE {any_null} ORDER BY sku_id")


def distinct_categories(db: DuckDBClient, *, table: str = DEFAULT_TABLE) -> list[str]:
    rows = db.query(
        f"SELECT DISTINCT category FROM {checked_ident(table)} "
        "WHERE category IS NOT NULL ORDER BY category"
    )
    return [r["category"] for r in rows]


def stock_status_counts(db: DuckDBClient, *, table: str = DEFAULT_TABLE) -> list[dict[str, Any]]:
    return db.query(
        f'SELECT "outOfStock", COUNT(sku_id) AS sku_count '
        f"FROM {checked_ident(table)} GROUP BY \"outOfStock\" ORDER BY \"outOfStock\""
    )


def duplicate_names(db: DuckDBClient, *, table: str = DEFAULT_TABLE) -> list[dict[str, Any]]:
    """Product names listed more than once (different pack sizes, weights, ...)."""
    return db.query(
        f"SELECT name, COUNT(sku_id) AS sku_count FROM {checked_ident(table)} "
        "GROUP BY name HAVING COUNT(sku_id) > 1 "
        "ORDER BY sku_count DESC, name"
    )


def zero_price_rows(db: DuckDBClient, *, table: str = DEFAULT_TABLE) -> list[dict[str, Any]]:
    return db.query(
        f"SELECT * FROM {checked_ident(table)} "
        'WHERE mrp = 0 OR "discountedSellingPrice" = 0 ORDER BY sku_id'
    )


def explore(db: DuckDBClient, *, table: str = DEFAULT_TABLE, sample_limit: int = 10) -> dict[str, Any]:
    """Run every exploration query and collect the results by name."""
    return {
        "row_count": row_count(db, table=table),
        "sample_rows": sample_rows(db, table=table, limit=sample_limit),
        "null_rows": null_rows(db, table=table),
        "distinct_categories": distinct_categories(db, table=table),
        "stock_status_counts": stock_status_counts(db, table=table),
        "duplicate_names": duplicate_names(db, table=table),
        "zero_price_rows": zero_price_rows(db, table=table),
    }
