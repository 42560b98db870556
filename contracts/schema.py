from dataclasses import dataclass

import pyarrow as pa

# -----------------------------
# InventoryRecord: one row per SKU
# -----------------------------

MONEY = pa.decimal128(8, 2)       # rupees (or paise before cleanup)
PERCENT = pa.decimal128(5, 2)


@dataclass(frozen=True)
class ColumnSpec:
    """One column of the inventory table."""

    name: str
    sql_type: str
    arrow_type: pa.DataType
    nullable: bool = True
    from_source: bool = True      # False: assigned by the database, never read from the CSV


INVENTORY_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("sku_id", "INTEGER", pa.int32(), nullable=False, from_source=False),
    ColumnSpec("category", "VARCHAR(120)", pa.string()),
    ColumnSpec("name", "VARCHAR(150)", pa.string(), nullable=False),
    ColumnSpec("mrp", "DECIMAL(8,2)", MONEY),
    ColumnSpec("discountPercent", "DECIMAL(5,2)", PERCENT),
    ColumnSpec("availableQuantity", "INTEGER", pa.int32()),
    ColumnSpec("discountedSellingPrice", "DECIMAL(8,2)", MONEY),
    ColumnSpec("weightInGms", "INTEGER", pa.int32()),
    ColumnSpec("outOfStock", "BOOLEAN", pa.bool_()),
    ColumnSpec("quantity", "INTEGER", pa.int32()),      # units per pack or grams (source overloads it)
)

SOURCE_COLUMNS: tuple[ColumnSpec, ...] = tuple(c for c in INVENTORY_COLUMNS if c.from_source)

INVENTORY_SCHEMA = pa.schema(
    [pa.field(c.name, c.arrow_type, nullable=c.nullable) for c in INVENTORY_COLUMNS]
)


def column_names(*, source_only: bool = False) -> list[str]:
    cols = SOURCE_COLUMNS if source_only else INVENTORY_COLUMNS
    return [c.name for c in cols]
