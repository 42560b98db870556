"""Unit tests for the report / table exporters."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pyarrow.parquet as pq
import pytest

from contracts.schema import INVENTORY_SCHEMA
from pipeline.cleaning import clean_inventory
from pipeline.export_results import ExportError, ExporterConfig, ResultsExporter, export_table_parquet, to_json
from tests.factories import loaded_db


def test_writer_writes_json_and_parquet(tmp_path: Path) -> None:
    out = tmp_path / "reports"
    exporter = ResultsExporter(ExporterConfig(out_dir=str(out)))
    rows = [
        {"category": "Munchies", "total_revenue": Decimal("186.00")},
        {"category": None, "total_revenue": Decimal("315.00")},
    ]
    stats = exporter.write_all({"revenue_by_category": rows})

    assert stats.reports == 1
    assert stats.rows == 2
    assert json.loads((out / "revenue_by_category.json").read_text(encoding="utf-8")) == [
        {"category": "Munchies", "total_revenue": "186.00"},
        {"category": None, "total_revenue": "315.00"},
    ]
    table = pq.read_table(out / "revenue_by_category.parquet")
    assert table.num_rows == 2
    assert table.column_names == ["category", "total_revenue"]


def test_empty_result_writes_json_only(tmp_path: Path) -> None:
    exporter = ResultsExporter(ExporterConfig(out_dir=str(tmp_path)))
    exporter.write("premium_low_discount", [])

    assert (tmp_path / "premium_low_discount.json").read_text(encoding="utf-8") == "[]"
    assert not (tmp_path / "premium_low_discount.parquet").exists()
    assert exporter.stats.parquet_skipped_empty == 1
    assert exporter.stats.reports == 1


def test_report_name_must_be_a_file_stem(tmp_path: Path) -> None:
    exporter = ResultsExporter(ExporterConfig(out_dir=str(tmp_path)))
    with pytest.raises(ExportError):
        exporter.write("../escape", [])


def test_to_json_serializes_decimals_as_strings() -> None:
    assert json.loads(to_json({"mrp": Decimal("25.00")})) == {"mrp": "25.00"}


def test_export_table_parquet_uses_inventory_schema(tmp_path: Path) -> None:
    with loaded_db(tmp_path) as db:
        clean_inventory(db)
        expected_rows = db.scalar("SELECT COUNT(*) FROM inventory")
        written = export_table_parquet(db, tmp_path / "out" / "inventory_clean.parquet")

    table = pq.read_table(tmp_path / "out" / "inventory_clean.parquet")
    assert written == expected_rows == table.num_rows
    assert table.schema.names == INVENTORY_SCHEMA.names
    assert table.schema.field("mrp").type == INVENTORY_SCHEMA.field("mrp").type
    assert table.column("sku_id").to_pylist() == sorted(table.column("sku_id").to_pylist())
