"""Thin wrapper utilities around DuckDB.

Kept separate so the pipeline steps depend on a small surface area
(connection creation, parameter binding, transactions, identifier quoting).
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import duckdb
import pyarrow as pa

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def qident(name: str) -> str:
    """Quote an identifier for DuckDB SQL (double quotes).

    Column names such as ``discountPercent`` are mixed case, so every
    identifier is quoted to keep its exact spelling.
    """
    return '"' + name.replace('"', '""') + '"'


def qliteral(value: str) -> str:
    """Quote a string literal for places where DuckDB does not accept parameters."""
    return "'" + str(value).replace("'", "''") + "'"


def checked_ident(name: str) -> str:
    """Validate a table/sequence name and return it quoted."""
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Not a plain SQL identifier: {name!r}")
    return qident(name)


@dataclass(frozen=True)
class DuckDBConfig:
    database: str = ":memory:"  # or a file path
    threads: int = 4
    read_only: bool = False


class DuckDBClient:
    """
    Minimal DuckDB query layer: one connection, sequential statements.
    """

    def __init__(self, cfg: DuckDBConfig | None = None) -> None:
        self._cfg = cfg or DuckDBConfig()
        self._con = duckdb.connect(self._cfg.database, read_only=self._cfg.read_only)
        self._con.execute(f"PRAGMA threads={int(self._cfg.threads)};")
        self._con.execute("PRAGMA enable_progress_bar=false;")

    @property
    def database(self) -> str:
        return self._cfg.database

    def close(self) -> None:
        self._con.close()

    def __enter__(self) -> DuckDBClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -------------------------
    # Statement helpers
    # -------------------------

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        self._con.execute(sql, list(params or []))

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[dict[str, Any]]:
        """Run a SELECT and return rows as dicts (column name -> Python value)."""
        cur = self._con.execute(sql, list(params or []))
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, r, strict=True)) for r in cur.fetchall()]

    def scalar(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        row = self._con.execute(sql, list(params or [])).fetchone()
        return None if row is None else row[0]

    def changed_rows(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Run an INSERT/UPDATE/DELETE and return the affected row count."""
        row = self._con.execute(sql, list(params or [])).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    def arrow(self, sql: str, params: Sequence[Any] | None = None) -> pa.Table:
        return self._con.execute(sql, list(params or [])).fetch_arrow_table()

    def table_exists(self, table: str) -> bool:
        count = self.scalar(
            "SELECT count(*) FROM information_schema.tables WHERE table_name = ?",
            [table],
        )
        return bool(count)

    @contextmanager
    def transaction(self) -> Iterator[DuckDBClient]:
        """BEGIN/COMMIT around the block; ROLLBACK and re-raise on error."""
        self._con.execute("BEGIN TRANSACTION")
        try:
            yield self
        except BaseException:
            self._con.execute("ROLLBACK")
            raise
        self._con.execute("COMMIT")
