"""The three fixed cleanup statements.

1. drop rows whose MRP is zero
2. drop rows whose discounted selling price is zero
3. divide both price columns by 100 where MRP exceeds the paise threshold

Step 3 is a heuristic (prices above the threshold are assumed to be in paise);
running it twice divides twice, so the runner issues it once per load.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any

from infra.logging_config import StructuredLogger
from pipeline.duckdb_client import DuckDBClient, checked_ident
from pipeline.inventory_schema import DEFAULT_TABLE

log = StructuredLogger(__name__)


@dataclass(frozen=True)
class CleaningRules:
    paise_threshold: float = 1000.0
    divisor: float = 100.0


@dataclass
class CleaningStats:
    rows_before: int = 0
    deleted_zero_mrp: int = 0
    deleted_zero_selling_price: int = 0
    converted_to_rupees: int = 0
    rows_after: int = 0

    @property
    def deleted(self) -> int:
        return self.deleted_zero_mrp + self.deleted_zero_selling_price

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["deleted"] = self.deleted
        return d


def delete_zero_mrp_sql(table: str = DEFAULT_TABLE) -> str:
    return f"DELETE FROM {checked_ident(table)} WHERE mrp = 0"


def delete_zero_selling_price_sql(table: str = DEFAULT_TABLE) -> str:
    return f'DELETE FROM {checked_ident(table)} WHERE "discountedSellingPrice" = 0'


def rupee_factor(divisor: float) -> str:
    """``1 / divisor`` as an exact decimal literal (8 places) for the UPDATE."""
    return str((Decimal(1) / Decimal(str(divisor))).quantize(Decimal("1e-8")))


def paise_to_rupees_sql(table: str = DEFAULT_TABLE) -> str:
    # Parameters: factor, factor, threshold. DECIMAL arithmetic, rounded half up to 2 places.
    return (
        f"UPDATE {checked_ident(table)} SET "
        "mrp = ROUND(mrp * CAST(? AS DECIMAL(18,8)), 2), "
        '"discountedSellingPrice" = ROUND("discountedSellingPrice" * CAST(? AS DECIMAL(18,8)), 2) '
        "WHERE mrp > ?"
    )


def clean_inventory(
    db: DuckDBClient,
    *,
    table: str = DEFAULT_TABLE,
    rules: CleaningRules | None = None,
) -> CleaningStats:
    """Run the cleanup statements in one transaction and report what changed."""
    rules = rules or CleaningRules()
    stats = CleaningStats()
    tbl = checked_ident(table)
    factor = rupee_factor(rules.divisor)

    with db.transaction():
        stats.rows_before = int(db.scalar(f"SELECT COUNT(*) FROM {tbl}"))
        stats.deleted_zero_mrp = db.changed_rows(delete_zero_mrp_sql(table))
        stats.deleted_zero_selling_price = db.changed_rows(delete_zero_selling_price_sql(table))
        stats.converted_to_rupees = db.changed_rows(
            paise_to_rupees_sql(table),
            [factor, factor, rules.paise_threshold],
        )
        stats.rows_after = int(db.scalar(f"SELECT COUNT(*) FROM {tbl}"))

    log.info("inventory_cleaned", table=table, **stats.to_dict())
    return stats
