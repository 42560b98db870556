"""Persist query results and the cleaned table.

Reports are written as ``<name>.json`` (always) and ``<name>.parquet`` (when
the result set has rows; an empty row list carries no column types). The
cleaned table is written with the typed :data:`contracts.schema.INVENTORY_SCHEMA`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from contracts.schema import INVENTORY_SCHEMA, column_names
from infra.logging_config import StructuredLogger
from pipeline.duckdb_client import DuckDBClient, checked_ident, qident
from pipeline.inventory_schema import DEFAULT_TABLE

log = StructuredLogger(__name__)


class ExportError(RuntimeError):
    """Raised when writing an export file fails."""


def _json_default(obj: Any) -> Any:
    """JSON serializer for datetime/Decimal returned by DuckDB."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    return str(obj)


def to_json(obj: Any) -> str:
    return json.dumps(obj, default=_json_default, ensure_ascii=False, indent=2)


@dataclass
class ExporterConfig:
    out_dir: str
    compression: str = "zstd"
    use_dictionary: bool = True
    write_json: bool = True
    write_parquet: bool = True


@dataclass
class ExportStats:
    reports: int = 0
    rows: int = 0
    parquet_skipped_empty: int = 0
    files: list[str] = field(default_factory=list)


class ResultsExporter:
    """
    Writes named report results under one directory.

    Layout:
      {out_dir}/<report>.json
      {out_dir}/<report>.parquet
    """

    def __init__(self, config: ExporterConfig) -> None:
        self._cfg = config
        self.stats = ExportStats()
        os.makedirs(self._cfg.out_dir, exist_ok=True)

    def write(self, name: str, rows: Sequence[Mapping[str, Any]]) -> None:
        if not name or "/" in name or "\\" in name:
            raise ExportError(f"Report name must be a simple file stem: {name!r}")

        rows = [dict(r) for r in rows]
        try:
            if self._cfg.write_json:
                json_path = os.path.join(self._cfg.out_dir, f"{name}.json")
                Path(json_path).write_text(to_json(rows), encoding="utf-8")
                self.stats.files.append(json_path)

            if self._cfg.write_parquet:
                if rows:
                    pq_path = os.path.join(self._cfg.out_dir, f"{name}.parquet")
                    pq.write_table(
                        pa.Table.from_pylist(rows),
                        pq_path,
                        compression=self._cfg.compression,
                        use_dictionary=self._cfg.use_dictionary,
                    )
                    self.stats.files.append(pq_path)
                else:
                    self.stats.parquet_skipped_empty += 1
        except (OSError, pa.ArrowException) as exc:
            raise ExportError(f"Writing report {name!r} failed: {exc}") from exc

        self.stats.reports += 1
        self.stats.rows += len(rows)

    def write_all(self, results: Mapping[str, Sequence[Mapping[str, Any]]]) -> ExportStats:
        for name, rows in results.items():
            self.write(name, rows)
        log.info("reports_exported", out_dir=self._cfg.out_dir, reports=self.stats.reports, rows=self.stats.rows)
        return self.stats


def export_table_parquet(
    db: DuckDBClient,
    out_path: str | Path,
    *,
    table: str = DEFAULT_TABLE,
    compression: str = "zstd",
) -> int:
    """Write the whole table, cast to INVENTORY_SCHEMA, ordered by sku_id. Returns rows written."""
    cols = ", ".join(qident(c) for c in column_names())
    table_data = db.arrow(f"SELECT {cols} FROM {checked_ident(table)} ORDER BY sku_id")
    out = Path(out_path)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        pq.write_table(table_data.cast(INVENTORY_SCHEMA), out.as_posix(), compression=compression)
    except (OSError, pa.ArrowException) as exc:
        raise ExportError(f"Writing table {table!r} to {out} failed: {exc}") from exc
    log.info("table_exported", table=table, path=out.as_posix(), rows=table_data.num_rows)
    return table_data.num_rows
