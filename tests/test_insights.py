"""Tests for the fixed business queries over the cleaned sample."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from pathlib import Path

import pytest

from pipeline.cleaning import clean_inventory
from pipeline.insights import REPORTS, InventoryInsights, ReportParams, run_reports
from tests.factories import loaded_db, make_row


@pytest.fixture()
def cleaned(tmp_path: Path):
    db = loaded_db(tmp_path)
    clean_inventory(db)
    yield db
    db.close()


def _all_rows(db) -> list[dict]:
    return db.query("SELECT * FROM inventory ORDER BY sku_id")


def test_top_discounts(cleaned) -> None:
    rows = InventoryInsights(cleaned).top_discounts()
    discounts = [r["discountPercent"] for r in rows]

    assert rows[0]["name"] == "Basmati Rice 5kg"
    assert discounts == sorted(discounts, reverse=True)
    assert [r["name"] for r in rows[2:4]] == ["Lays Classic", "Marie Lite"]


def test_top_discounts_respects_limit(cleaned) -> None:
    rows = InventoryInsights(cleaned, params=ReportParams(top_n=2)).top_discounts()
    assert [r["name"] for r in rows] == ["Basmati Rice 5kg", "Onion"]


def test_high_mrp_out_of_stock(cleaned) -> None:
    rows = InventoryInsights(cleaned).high_mrp_out_of_stock()
    assert rows == [{"name": "Shampoo Premium", "mrp": Decimal("650.00")}]


def test_revenue_by_category_matches_manual_sum(cleaned) -> None:
    expected: dict = defaultdict(Decimal)
    for r in _all_rows(cleaned):
        expected[r["category"]] += r["discountedSellingPrice"] * r["availableQuantity"]

    rows = InventoryInsights(cleaned).revenue_by_category()

    assert {r["category"]: r["total_revenue"] for r in rows} == dict(expected)
    assert rows[0]["category"] == "Biscuits"
    assert rows[0]["total_revenue"] == Decimal("5400")


def test_premium_low_discount(cleaned) -> None:
    rows = InventoryInsights(cleaned).premium_low_discount()
    assert [r["name"] for r in rows] == ["Shampoo Premium"]


def test_top_categories_by_discount_matches_manual_average(cleaned) -> None:
    grouped: dict = defaultdict(list)
    for r in _all_rows(cleaned):
        grouped[r["category"]].append(r["discountPercent"])

    rows = InventoryInsights(cleaned).top_categories_by_discount()

    assert [r["category"] for r in rows] == [
        "Cooking Essentials",
        "Biscuits",
        "Fruits & Vegetables",
        "Personal Care",
        "Munchies",
    ]
    for r in rows:
        values = grouped[r["category"]]
        manual = sum(values) / len(values)
        assert float(r["avg_discount"]) == pytest.approx(round(float(manual), 2))


def test_price_per_gram_skips_light_products_and_sorts_ascending(cleaned) -> None:
    rows = InventoryInsights(cleaned).price_per_gram()
    weights = [r["weightInGms"] for r in rows]
    prices = [float(r["price_per_gram"]) for r in rows]

    assert min(weights) >= 100
    assert prices == sorted(prices)
    assert rows[0]["name"] == "Onion"
    assert rows[-1]["name"] == "Marie Lite"
    assert prices[-1] == pytest.approx(3.6)


def test_weight_bands(cleaned) -> None:
    bands = {(r["name"], r["weightInGms"]): r["weight_category"] for r in InventoryInsights(cleaned).weight_bands()}

    assert bands[("Lays Classic", 52)] == "Low"
    assert bands[("Cola", 750)] == "Low"
    assert bands[("Onion", 1000)] == "Medium"
    assert bands[("Basmati Rice 5kg", 5000)] == "Bulk"


def test_inventory_weight_by_category_matches_manual_sum(cleaned) -> None:
    expected: dict = defaultdict(int)
    for r in _all_rows(cleaned):
        expected[r["category"]] += r["weightInGms"] * r["availableQuantity"]

    rows = InventoryInsights(cleaned).inventory_weight_by_category()

    assert {r["category"]: r["total_weight"] for r in rows} == dict(expected)
    assert rows[0] == {"category": "Cooking Essentials", "total_weight": 20000}


def test_inventory_weight_by_category_does_not_overflow_int32(tmp_path: Path) -> None:
    rows = [
        make_row(name="Rice sack", Category="Staples", weightInGms=50000, availableQuantity=50000),
        make_row(name="Wheat sack", Category="Staples", weightInGms=45000, availableQuantity=60000),
    ]
    with loaded_db(tmp_path, rows) as db:
        clean_inventory(db)
        result = InventoryInsights(db).inventory_weight_by_category()

    assert result == [{"category": "Staples", "total_weight": 50000 * 50000 + 45000 * 60000}]
    assert result[0]["total_weight"] > 2**31


def test_reports_are_read_only(cleaned) -> None:
    before = _all_rows(cleaned)
    results = run_reports(InventoryInsights(cleaned))
    assert list(results) == list(REPORTS)
    assert _all_rows(cleaned) == before


def test_run_reports_subset_and_unknown_name(cleaned) -> None:
    insights = InventoryInsights(cleaned)
    assert list(run_reports(insights, ["weight_bands"])) == ["weight_bands"]
    with pytest.raises(KeyError):
        run_reports(insights, ["nope"])
