"""
Inventory snapshot CLI.

Usage
-----
invsnap run --csv data/inventory.csv --db data/inventory.duckdb --out data/reports
invsnap load --csv data/inventory.csv
invsnap explore
invsnap clean
invsnap report --name top_discounts --name revenue_by_category
invsnap export --out data/reports

Locations default to the settings in infra.config (env vars / .env).
"""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import duckdb

from infra.config import Settings, get_settings
from infra.logging_config import setup_logging
from infra.pipeline_paths import PipelinePaths
from pipeline.cleaning import clean_inventory
from pipeline.csv_loader import LoadError, load_csv
from pipeline.duckdb_client import DuckDBClient
from pipeline.explore import explore
from pipeline.export_results import ExportError, ExporterConfig, ResultsExporter, export_table_parquet
from pipeline.insights import REPORTS, InventoryInsights, run_reports
from pipeline.inventory_schema import create_inventory_table
from runner import (
    CLEANED_TABLE_FILENAME,
    cleaning_rules,
    load_config,
    open_database,
    report_params,
    resolve_paths,
    run_pipeline,
)


def _cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def format_table(rows: Sequence[Mapping[str, Any]]) -> str:
    """Render row dicts as a plain fixed-width text table."""
    if not rows:
        return "(0 rows)"
    headers = list(rows[0].keys())
    body = [[_cell(r.get(h)) for h in headers] for r in rows]
    widths = [max(len(h), *(len(line[i]) for line in body)) for i, h in enumerate(headers)]

    def _line(values: Iterable[str]) -> str:
        return " | ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    out = [_line(headers), "-+-".join("-" * w for w in widths)]
    out.extend(_line(line) for line in body)
    out.append(f"({len(rows)} rows)")
    return "\n".join(out)


def _print_section(title: str, rows: Sequence[Mapping[str, Any]]) -> None:
    print(f"\n== {title}")
    print(format_table(rows))


def _settings_and_paths(args: argparse.Namespace) -> tuple[Settings, PipelinePaths]:
    settings = get_settings()
    paths = resolve_paths(
        settings,
        csv_path=getattr(args, "csv", None),
        database=args.db,
        out_dir=getattr(args, "out", None),
    )
    return settings, paths


def _open(args: argparse.Namespace) -> tuple[Settings, PipelinePaths, DuckDBClient]:
    settings, paths = _settings_and_paths(args)
    return settings, paths, open_database(settings, paths)


def _table(args: argparse.Namespace, settings: Settings) -> str:
    return args.table or settings.load.table


def _require_table(db: DuckDBClient, table: str) -> None:
    if not db.table_exists(table):
        raise SystemExit(f"Table {table!r} not found in {db.database}. Run `invsnap load` first.")


def cmd_run(args: argparse.Namespace) -> None:
    result = run_pipeline(
        get_settings(),
        csv_path=args.csv,
        database=args.db,
        out_dir=args.out,
        table=args.table,
        export=not args.no_export,
    )
    print(f"Run {result.run_id}")
    print(f"Loaded {result.load.rows_loaded} rows from {result.load.csv_path}")
    _print_section("Cleanup", [result.cleaning.to_dict()])
    for name, rows in result.reports.items():
        _print_section(name, rows)
    if result.export_dir:
        print(f"\nWrote {len(result.files)} files to {result.export_dir}")


def cmd_load(args: argparse.Namespace) -> None:
    settings, paths, db = _open(args)
    with db:
        cfg = load_config(settings, table=args.table)
        create_inventory_table(db, table=cfg.table, replace=True)
        result = load_csv(db, paths.csv_path(), cfg)
    print(f"Loaded {result.rows_loaded} rows from {result.csv_path} into {result.table}")


def cmd_explore(args: argparse.Namespace) -> None:
    settings, _paths, db = _open(args)
    with db:
        table = _table(args, settings)
        _require_table(db, table)
        found = explore(db, table=table, sample_limit=args.limit)
    print(f"Rows: {found['row_count']}")
    _print_section("sample_rows", found["sample_rows"])
    _print_section("null_rows", found["null_rows"])
    _print_section("distinct_categories", [{"category": c} for c in found["distinct_categories"]])
    _print_section("stock_status_counts", found["stock_status_counts"])
    _print_section("duplicate_names", found["duplicate_names"])
    _print_section("zero_price_rows", found["zero_price_rows"])


def cmd_clean(args: argparse.Namespace) -> None:
    settings, _paths, db = _open(args)
    with db:
        table = _table(args, settings)
        _require_table(db, table)
        stats = clean_inventory(db, table=table, rules=cleaning_rules(settings))
    _print_section("Cleanup", [stats.to_dict()])


def cmd_report(args: argparse.Namespace) -> None:
    settings, _paths, db = _open(args)
    with db:
        table = _table(args, settings)
        _require_table(db, table)
        insights = InventoryInsights(db, table=table, params=report_params(settings))
        try:
            results = run_reports(insights, args.name)
        except KeyError as exc:
            raise SystemExit(str(exc.args[0])) from exc
    for name, rows in results.items():
        _print_section(name, rows)


def cmd_export(args: argparse.Namespace) -> None:
    settings, paths, db = _open(args)
    with db:
        table = _table(args, settings)
        _require_table(db, table)
        insights = InventoryInsights(db, table=table, params=report_params(settings))
        out = paths.reports_dir()
        stats = ResultsExporter(ExporterConfig(out_dir=out.as_posix())).write_all(run_reports(insights))
        rows = export_table_parquet(db, out / CLEANED_TABLE_FILENAME, table=table)
    print(f"Wrote {stats.reports} reports ({stats.rows} rows) and {rows} table rows to {out}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="invsnap", description="Inventory snapshot analytics")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_db_table(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--db", default=None, help="DuckDB file or :memory: (or INVSNAP_DB_PATH env var).")
        sp.add_argument("--table", default=None, help="Table name (or INVSNAP_TABLE env var). Default: inventory")

    sp = sub.add_parser("run", help="Create, load, explore, clean, report and export in one go.")
    add_db_table(sp)
    sp.add_argument("--csv", default=None, help="CSV export to import (or INVSNAP_CSV env var).")
    sp.add_argument("--out", default=None, help="Report directory (or REPORT__EXPORT_DIR env var).")
    sp.add_argument("--no-export", action="store_true", help="Print results only, write no files.")
    sp.set_defaults(func=cmd_run)

    sp = sub.add_parser("load", help="Recreate the table and bulk-load the CSV.")
    add_db_table(sp)
    sp.add_argument("--csv", default=None, help="CSV export to import (or INVSNAP_CSV env var).")
    sp.set_defaults(func=cmd_load)

    sp = sub.add_parser("explore", help="Print the exploration queries.")
    add_db_table(sp)
    sp.add_argument("--limit", type=int, default=10, help="Sample row count. Default: 10")
    sp.set_defaults(func=cmd_explore)

    sp = sub.add_parser("clean", help="Run the cleanup statements (once per load).")
    add_db_table(sp)
    sp.set_defaults(func=cmd_clean)

    sp = sub.add_parser("report", help="Print business queries.")
    add_db_table(sp)
    sp.add_argument(
        "--name",
        action="append",
        default=None,
        help=f"Report to run (repeatable). Default: all of {', '.join(REPORTS)}",
    )
    sp.set_defaults(func=cmd_report)

    sp = sub.add_parser("export", help="Write every report and the table to Parquet/JSON.")
    add_db_table(sp)
    sp.add_argument("--out", default=None, help="Report directory (or REPORT__EXPORT_DIR env var).")
    sp.set_defaults(func=cmd_export)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        # pydantic's ValidationError is a ValueError: bad env settings exit here too
        setup_logging()
        args.func(args)
    except (LoadError, ExportError, ValueError, duckdb.Error) as exc:
        raise SystemExit(f"ERROR: {exc}") from exc


if __name__ == "__main__":
    main()
