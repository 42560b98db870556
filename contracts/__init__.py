"""Contracts and canonical schema.

The contracts package defines the inventory table columns once, with both
their SQL types (table DDL, CSV casts) and Arrow types (Parquet exports).

Main exports:
- ColumnSpec, INVENTORY_COLUMNS, SOURCE_COLUMNS, INVENTORY_SCHEMA
- column_names
"""

from contracts.schema import (
    INVENTORY_COLUMNS,
    INVENTORY_SCHEMA,
    SOURCE_COLUMNS,
    ColumnSpec,
    column_names,
)

__all__ = [
    "ColumnSpec",
    "INVENTORY_COLUMNS",
    "INVENTORY_SCHEMA",
    "SOURCE_COLUMNS",
    "column_names",
]
