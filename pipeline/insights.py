"""
Fixed business-intelligence queries over the cleaned inventory table.

Each query is a single side-effect-free SELECT. Results come back as row dicts
with DuckDB's Python types (DECIMAL columns as ``decimal.Decimal``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pipeline.duckdb_client import DuckDBClient, checked_ident
from pipeline.inventory_schema import DEFAULT_TABLE

Rows = list[dict[str, Any]]


@dataclass(frozen=True)
class ReportParams:
    top_n: int = 10
    top_categories: int = 5
    high_mrp: float = 300.0
    premium_mrp: float = 500.0
    low_discount_percent: float = 10.0
    min_weight_gms: int = 100
    low_weight_limit_gms: int = 1000
    medium_weight_limit_gms: int = 5000


class InventoryInsights:
    """Business queries bound to one table and one set of thresholds."""

    def __init__(self, db: DuckDBClient, *, table: str = DEFAULT_TABLE, params: ReportParams | None = None) -> None:
        self._db = db
        self._tbl = checked_ident(table)
        self._p = params or ReportParams()

    def top_discounts(self) -> Rows:
        """Best-value products: highest discount percentage first."""
        sql = f"""
        SELECT DISTINCT name, mrp, "discountPercent"
        FROM {self._tbl}
        ORDER BY "discountPercent" DESC, name, mrp
        LIMIT ?;
        """
        return self._db.query(sql, [self._p.top_n])

    def high_mrp_out_of_stock(self) -> Rows:
        """Expensive products that are currently out of stock."""
        sql = f"""
        SELECT DISTINCT name, mrp
        FROM {self._tbl}
        WHERE "outOfStock" = TRUE AND mrp > ?
        ORDER BY mrp DESC, name;
        """
        return self._db.query(sql, [self._p.high_mrp])

    def revenue_by_category(self) -> Rows:
        """Estimated revenue if the whole available stock sells at the discounted price."""
        sql = f"""
        SELECT category,
               SUM("discountedSellingPrice" * "availableQuantity") AS total_revenue
        FROM {self._tbl}
        GROUP BY category
        ORDER BY total_revenue DESC NULLS LAST, category;
        """
        return self._db.query(sql)

    def premium_low_discount(self) -> Rows:
        sql = f"""
        SELECT DISTINCT name, mrp, "discountPercent"
        FROM {self._tbl}
        WHERE mrp > ? AND "discountPercent" < ?
        ORDER BY mrp DESC, "discountPercent" DESC, name;
        """
        return self._db.query(sql, [self._p.premium_mrp, self._p.low_discount_percent])

    def top_categories_by_discount(self) -> Rows:
        sql = f"""
        SELECT category,
               ROUND(AVG("discountPercent"), 2) AS avg_discount
        FROM {self._tbl}
        GROUP BY category
        ORDER BY avg_discount DESC NULLS LAST, category
        LIMIT ?;
        """
        return self._db.query(sql, [self._p.top_categories])

    def price_per_gram(self) -> Rows:
        """Price per gram for products of at least ``min_weight_gms``; best value first."""
        sql = f"""
        SELECT DISTINCT name, "weightInGms", "discountedSellingPrice",
               ROUND("discountedSellingPrice" / "weightInGms", 2) AS price_per_gram
        FROM {self._tbl}
        WHERE "weightInGms" >= ?
        ORDER BY price_per_gram, name, "weightInGms";
        """
        return self._db.query(sql, [self._p.min_weight_gms])

    def weight_bands(self) -> Rows:
        sql = f"""
        SELECT DISTINCT name, "weightInGms",
               CASE WHEN "weightInGms" < ? THEN 'Low'
                    WHEN "weightInGms" < ? THEN 'Medium'
                    ELSE 'Bulk'
               END AS weight_category
        FROM {self._tbl}
        ORDER BY "weightInGms", name;
        """
        return self._db.query(sql, [self._p.low_weight_limit_gms, self._p.medium_weight_limit_gms])

    def inventory_weight_by_category(self) -> Rows:
        sql = f"""
        SELECT category,
               SUM(CAST("weightInGms" AS BIGINT) * "availableQuantity") AS total_weight
        FROM {self._tbl}
        GROUP BY category
        ORDER BY total_weight DESC NULLS LAST, category;
        """
        return self._db.query(sql)


REPORTS: dict[str, Callable[[InventoryInsights], Rows]] = {
    "top_discounts": InventoryInsights.top_discounts,
    "high_mrp_out_of_stock": InventoryInsights.high_mrp_out_of_stock,
    "revenue_by_category": InventoryInsights.revenue_by_category,
    "premium_low_discount": InventoryInsights.premium_low_discount,
    "top_categories_by_discount": InventoryInsights.top_categories_by_discount,
    "price_per_gram": InventoryInsights.price_per_gram,
    "weight_bands": InventoryInsights.weight_bands,
    "inventory_weight_by_category": InventoryInsights.inventory_weight_by_category,
}


def run_reports(insights: InventoryInsights, names: list[str] | None = None) -> dict[str, Rows]:
    """Run the named reports (all by default) in registry order."""
    selected = list(REPORTS) if not names else names
    unknown = [n for n in selected if n not in REPORTS]
    if unknown:
        raise KeyError(f"Unknown report(s): {', '.join(unknown)}. Available: {', '.join(REPORTS)}")
    return {name: REPORTS[name](insights) for name in selected}
