"""DDL for the inventory table."""

from __future__ import annotations

from contracts.schema import INVENTORY_COLUMNS
from pipeline.duckdb_client import DuckDBClient, checked_ident, qident

DEFAULT_TABLE = "inventory"


def sequence_name(table: str) -> str:
    return f"{table}_sku_id_seq"


def create_table_sql(table: str = DEFAULT_TABLE) -> list[str]:
    """Statements creating the sku_id sequence and the table, in order."""
    tbl = checked_ident(table)
    seq = checked_ident(sequence_name(table))

    col_lines: list[str] = []
    for col in INVENTORY_COLUMNS:
        if col.name == "sku_id":
            col_lines.append(f"{qident(col.name)} {col.sql_type} PRIMARY KEY DEFAULT nextval('{sequence_name(table)}')")
        elif not col.nullable:
            col_lines.append(f"{qident(col.name)} {col.sql_type} NOT NULL")
        else:
            col_lines.append(f"{qident(col.name)} {col.sql_type}")

    body = ",\n    ".join(col_lines)
    return [
        f"CREATE SEQUENCE {seq} START 1",
        f"CREATE TABLE {tbl} (\n    {body}\n)",
    ]


def drop_table_sql(table: str = DEFAULT_TABLE) -> list[str]:
    return [
        f"DROP TABLE IF EXISTS {checked_ident(table)}",
        f"DROP SEQUENCE IF EXISTS {checked_ident(sequence_name(table))}",
    ]


def create_inventory_table(db: DuckDBClient, *, table: str = DEFAULT_TABLE, replace: bool = True) -> None:
    """
    Create the inventory table.

    With ``replace`` an existing table (and its sequence) is dropped first.
    Without it, a naming conflict surfaces as the engine's catalog error.
    """
    statements = create_table_sql(table)
    if replace:
        statements = drop_table_sql(table) + statements
    for sql in statements:
        db.execute(sql)
