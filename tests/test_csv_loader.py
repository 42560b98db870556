"""Tests for the bulk CSV import."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from pipeline.csv_loader import CsvLoadConfig, LoadError, build_insert_sql, load_csv, map_source_columns
from pipeline.inventory_schema import create_inventory_table
from tests.factories import CSV_HEADER, SAMPLE_ROWS, make_row, memory_db, write_inventory_csv


def _load(tmp_path: Path, rows=None, cfg: CsvLoadConfig | None = None, **csv_kwargs):
    csv_path = write_inventory_csv(tmp_path / "inventory.csv", rows, **csv_kwargs)
    db = memory_db()
    create_inventory_table(db)
    return db, load_csv(db, csv_path, cfg)


def test_load_inserts_every_row_with_typed_values(tmp_path: Path) -> None:
    db, result = _load(tmp_path)
    with db:
        rows = db.query("SELECT * FROM inventory ORDER BY sku_id")

    assert result.rows_loaded == len(SAMPLE_ROWS) == len(rows)
    first = rows[0]
    assert first["sku_id"] == 1
    assert first["category"] == "Fruits & Vegetables"
    assert first["name"] == "Onion"
    assert first["mrp"] == Decimal("2500.00")
    assert first["discountPercent"] == Decimal("16.00")
    assert first["outOfStock"] is False
    assert first["quantity"] == 1
    assert rows[1]["outOfStock"] is True


def test_sku_ids_follow_file_order(tmp_path: Path) -> None:
    db, _ = _load(tmp_path)
    with db:
        names = [r["name"] for r in db.query("SELECT name FROM inventory ORDER BY sku_id")]
    assert names == [r["name"] for r in SAMPLE_ROWS]


def test_empty_category_is_loaded_as_null(tmp_path: Path) -> None:
    db, _ = _load(tmp_path)
    with db:
        category = db.scalar("SELECT category FROM inventory WHERE name = 'Loose Sugar'")
    assert category is None


def test_header_is_matched_case_insensitively() -> None:
    mapping = map_source_columns(["CATEGORY", "Name", "MRP", "discount_percent", "availablequantity",
                                  "Discounted Selling Price", "weightInGms", "outofstock", "quantity"])
    assert mapping["category"] == "CATEGORY"
    assert mapping["discountPercent"] == "discount_percent"
    assert mapping["discountedSellingPrice"] == "Discounted Selling Price"


def test_missing_columns_raise_load_error_naming_them(tmp_path: Path) -> None:
    header = [c for c in CSV_HEADER if c not in ("mrp", "weightInGms")]
    with pytest.raises(LoadError) as excinfo:
        _load(tmp_path, header=header)
    assert "mrp" in str(excinfo.value)
    assert "weightInGms" in str(excinfo.value)


def test_missing_file_raises_load_error(tmp_path: Path) -> None:
    with memory_db() as db:
        create_inventory_table(db)
        with pytest.raises(LoadError, match="not found"):
            load_csv(db, tmp_path / "nope.csv")


def test_type_conversion_failure_is_all_or_nothing(tmp_path: Path) -> None:
    rows = [make_row(), make_row(name="Broken", weightInGms="heavy")]
    csv_path = write_inventory_csv(tmp_path / "bad.csv", rows)
    with memory_db() as db:
        create_inventory_table(db)
        with pytest.raises(LoadError) as excinfo:
            load_csv(db, csv_path)
        assert excinfo.value.__cause__ is not None
        assert db.scalar("SELECT COUNT(*) FROM inventory") == 0


def test_null_name_violates_constraint(tmp_path: Path) -> None:
    csv_path = write_inventory_csv(tmp_path / "bad.csv", [make_row(name="")])
    with memory_db() as db:
        create_inventory_table(db)
        with pytest.raises(LoadError):
            load_csv(db, csv_path)


def test_custom_delimiter(tmp_path: Path) -> None:
    db, result = _load(tmp_path, cfg=CsvLoadConfig(delimiter=";"), delimiter=";")
    with db:
        assert result.rows_loaded == len(SAMPLE_ROWS)
        assert db.scalar("SELECT name FROM inventory WHERE sku_id = 1") == "Onion"


def test_headerless_file_is_mapped_by_position(tmp_path: Path) -> None:
    db, result = _load(tmp_path, cfg=CsvLoadConfig(header=False), write_header=False)
    with db:
        assert result.rows_loaded == len(SAMPLE_ROWS)
        assert db.scalar("SELECT mrp FROM inventory WHERE sku_id = 6") == Decimal("89900.00")


def test_non_ascii_utf8_names_survive(tmp_path: Path) -> None:
    db, _ = _load(tmp_path, rows=[make_row(name="Café Latte ☕")])
    with db:
        assert db.scalar("SELECT name FROM inventory") == "Café Latte ☕"


def test_reloading_into_a_fresh_table_is_identical(tmp_path: Path) -> None:
    csv_path = write_inventory_csv(tmp_path / "inventory.csv")
    snapshots = []
    for _ in range(2):
        with memory_db() as db:
            create_inventory_table(db)
            result = load_csv(db, csv_path)
            snapshots.append((result.rows_loaded, db.query("SELECT * FROM inventory ORDER BY sku_id")))

    assert snapshots[0][0] == snapshots[1][0]
    assert snapshots[0][1] == snapshots[1][1]


def test_insert_sql_never_reads_sku_id() -> None:
    sql = build_insert_sql("inventory", CsvLoadConfig(), map_source_columns(CSV_HEADER))
    assert "sku_id" not in sql
    assert "TRY_CAST" not in sql
