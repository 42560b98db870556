"""One-time bulk import of the inventory CSV export.

The file is read by DuckDB's ``read_csv`` table function. Every value is read
as text and converted with ``CAST`` in the INSERT, so malformed numbers, bad
booleans, encoding problems and NULL product names are reported by the engine
and nothing is inserted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import duckdb

from contracts.schema import SOURCE_COLUMNS, ColumnSpec
from infra.logging_config import StructuredLogger
from pipeline.duckdb_client import DuckDBClient, checked_ident, qident, qliteral
from pipeline.inventory_schema import DEFAULT_TABLE

log = StructuredLogger(__name__)


class LoadError(RuntimeError):
    """Raised when the CSV cannot be imported."""


@dataclass(frozen=True)
class CsvLoadConfig:
    table: str = DEFAULT_TABLE
    delimiter: str = ","
    quote: str = '"'
    header: bool = True
    encoding: str = "utf-8"


@dataclass
class LoadResult:
    csv_path: str
    table: str
    rows_loaded: int = 0
    column_map: dict[str, str] = field(default_factory=dict)   # table column -> source column


def _norm(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def _read_csv_rel(cfg: CsvLoadConfig) -> str:
    # Path is bound as the first parameter; the dialect options are literals.
    return (
        "read_csv(?, "
        f"header={'true' if cfg.header else 'false'}, "
        f"delim={qliteral(cfg.delimiter)}, "
        f"quote={qliteral(cfg.quote)}, "
        f"encoding={qliteral(cfg.encoding)}, "
        "all_varchar=true, auto_detect=true)"
    )


def map_source_columns(
    source_cols: Sequence[str],
    *,
    header: bool = True,
    targets: Iterable[ColumnSpec] = SOURCE_COLUMNS,
) -> dict[str, str]:
    """
    Match CSV columns to table columns.

    With a header, names are compared case-insensitively ignoring ``_``/spaces
    (``Category`` -> ``category``, ``discount_percent`` -> ``discountPercent``).
    Without a header, columns are taken positionally.
    """
    wanted = list(targets)
    if not header:
        if len(source_cols) < len(wanted):
            raise LoadError(
                f"CSV has {len(source_cols)} columns, expected at least {len(wanted)} without a header row"
            )
        return {col.name: src for col, src in zip(wanted, source_cols)}

    by_norm = {}
    for src in source_cols:
        by_norm.setdefault(_norm(src), src)

    mapping: dict[str, str] = {}
    missing: list[str] = []
    for col in wanted:
        src = by_norm.get(_norm(col.name))
        if src is None:
            missing.append(col.name)
        else:
            mapping[col.name] = src
    if missing:
        raise LoadError(f"CSV is missing required columns: {', '.join(missing)}")
    return mapping


def build_insert_sql(table: str, cfg: CsvLoadConfig, column_map: dict[str, str]) -> str:
    targets = [c for c in SOURCE_COLUMNS if c.name in column_map]
    insert_cols = ", ".join(qident(c.name) for c in targets)
    select_cols = ",\n    ".join(
        f"CAST({qident(column_map[c.name])} AS {c.sql_type})" for c in targets
    )
    return (
        f"INSERT INTO {checked_ident(table)} ({insert_cols})\n"
        f"SELECT\n    {select_cols}\n"
        f"FROM {_read_csv_rel(cfg)}"
    )


def _detect_columns(db: DuckDBClient, csv_path: str, cfg: CsvLoadConfig) -> list[str]:
    rows = db.query(f"DESCRIBE SELECT * FROM {_read_csv_rel(cfg)}", [csv_path])
    # DESCRIBE returns: column_name, column_type, null, key, default, extra
    return [r["column_name"] for r in rows]


def load_csv(db: DuckDBClient, csv_path: str | Path, cfg: CsvLoadConfig | None = None) -> LoadResult:
    """
    Bulk-load ``csv_path`` into the (already created) inventory table.

    Raises LoadError when the file is missing, required columns are absent or
    the engine rejects the data. The insert is all-or-nothing.
    """
    cfg = cfg or CsvLoadConfig()
    path = Path(csv_path)
    if not path.is_file():
        raise LoadError(f"CSV file not found: {path}")

    source = path.as_posix()
    result = LoadResult(csv_path=source, table=cfg.table)

    try:
        source_cols = _detect_columns(db, source, cfg)
    except duckdb.Error as exc:
        raise LoadError(f"Could not read {source}: {exc}") from exc

    result.column_map = map_source_columns(source_cols, header=cfg.header)
    sql = build_insert_sql(cfg.table, cfg, result.column_map)
    log.debug("csv_insert_sql", sql=sql)

    try:
        with db.transaction():
            result.rows_loaded = db.changed_rows(sql, [source])
    except duckdb.Error as exc:
        raise LoadError(f"Import of {source} into {cfg.table} failed: {exc}") from exc

    log.info("csv_loaded", csv=source, table=cfg.table, rows=result.rows_loaded)
    return result
