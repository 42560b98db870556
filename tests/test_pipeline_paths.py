from pathlib import Path

import pytest

from infra.pipeline_paths import PipelinePaths


def test_defaults_are_stable() -> None:
    p = PipelinePaths()
    assert p.csv_path() == Path("data") / "inventory.csv"
    assert p.database() == "data/inventory.duckdb"
    assert p.reports_dir() == Path("data") / "reports"
    assert p.manifest_path() == Path("data") / "reports" / "run_manifest.json"


def test_rejects_path_in_filename() -> None:
    with pytest.raises(ValueError):
        PipelinePaths(csv_filename="data/inventory.csv")


def test_rejects_non_path_override() -> None:
    with pytest.raises(TypeError):
        PipelinePaths(csv_override="data/inventory.csv")  # type: ignore[arg-type]


def test_overrides_work() -> None:
    p = PipelinePaths.with_overrides(csv_path="custom/in.csv", database="custom/db.duckdb", reports_dir="custom/out")
    assert p.csv_path() == Path("custom/in.csv")
    assert p.database() == "custom/db.duckdb"
    assert p.reports_dir() == Path("custom/out")


def test_memory_database_is_kept_verbatim() -> None:
    assert PipelinePaths.with_overrides(database=":memory:").database() == ":memory:"
