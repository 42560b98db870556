"""
runner.py

Inventory snapshot runner (schema -> CSV import -> exploration -> cleanup ->
business queries -> export).

Every step is issued sequentially on one DuckDB connection. Step order is fixed:
the paise-to-rupee conversion must run exactly once per fresh load, so the
runner always recreates the table before importing.

Run everything with the settings from the environment:
python runner.py

Same thing through the CLI, with explicit locations:
invsnap run --csv data/inventory.csv --db data/inventory.duckdb --out data/reports
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from infra.config import Settings, get_settings
from infra.logging_config import StructuredLogger, clear_run_context, set_run_context, setup_logging
from infra.pipeline_paths import PipelinePaths
from pipeline.cleaning import CleaningRules, CleaningStats, clean_inventory
from pipeline.csv_loader import CsvLoadConfig, LoadResult, load_csv
from pipeline.duckdb_client import DuckDBClient, DuckDBConfig
from pipeline.explore import explore
from pipeline.export_results import ExporterConfig, ResultsExporter, export_table_parquet
from pipeline.insights import InventoryInsights, ReportParams, run_reports
from pipeline.inventory_schema import create_inventory_table
from pipeline.run_manifest import RunManifest, make_run_id, write_manifest
from version import ENGINE_NAME, ENGINE_VERSION, SCHEMA_VERSION

log = StructuredLogger(__name__)

CLEANED_TABLE_FILENAME = "inventory_clean.parquet"


@dataclass
class PipelineResult:
    run_id: str
    load: LoadResult
    exploration: dict[str, Any]
    cleaning: CleaningStats
    reports: dict[str, list[dict[str, Any]]]
    export_dir: str | None = None
    files: list[str] = field(default_factory=list)


def resolve_paths(
    settings: Settings,
    *,
    csv_path: str | Path | None = None,
    database: str | Path | None = None,
    out_dir: str | Path | None = None,
) -> PipelinePaths:
    """Explicit arguments win over settings."""
    return PipelinePaths.with_overrides(
        csv_path=csv_path or settings.load.csv_path,
        database=database or settings.db.path,
        reports_dir=out_dir or settings.report.export_dir,
    )


def open_database(settings: Settings, paths: PipelinePaths) -> DuckDBClient:
    database = paths.database()
    if database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    return DuckDBClient(DuckDBConfig(database=database, threads=settings.db.threads))


def load_config(settings: Settings, *, table: str | None = None) -> CsvLoadConfig:
    return CsvLoadConfig(
        table=table or settings.load.table,
        delimiter=settings.load.delimiter,
        quote=settings.load.quote,
        header=settings.load.header,
        encoding=settings.load.encoding,
    )


def cleaning_rules(settings: Settings) -> CleaningRules:
    return CleaningRules(
        paise_threshold=settings.cleaning.paise_threshold,
        divisor=settings.cleaning.divisor,
    )


def report_params(settings: Settings) -> ReportParams:
    r = settings.report
    return ReportParams(
        top_n=r.top_n,
        top_categories=r.top_categories,
        high_mrp=r.high_mrp,
        premium_mrp=r.premium_mrp,
        low_discount_percent=r.low_discount_percent,
        min_weight_gms=r.min_weight_gms,
        low_weight_limit_gms=r.low_weight_limit_gms,
        medium_weight_limit_gms=r.medium_weight_limit_gms,
    )


def run_pipeline(
    settings: Settings | None = None,
    *,
    csv_path: str | Path | None = None,
    database: str | Path | None = None,
    out_dir: str | Path | None = None,
    table: str | None = None,
    export: bool = True,
) -> PipelineResult:
    """Run every step once, in order, against a freshly created table."""
    settings = settings or get_settings()
    paths = resolve_paths(settings, csv_path=csv_path, database=database, out_dir=out_dir)
    load_cfg = load_config(settings, table=table)

    run_ts = datetime.now(UTC)
    run_id = make_run_id(run_ts)
    set_run_context(run_id=run_id, table=load_cfg.table)
    log.info("pipeline_started", csv=paths.csv_path().as_posix(), database=paths.database())

    try:
        with open_database(settings, paths) as db:
            create_inventory_table(db, table=load_cfg.table, replace=True)
            loaded = load_csv(db, paths.csv_path(), load_cfg)

            exploration = explore(db, table=load_cfg.table)
            log.info(
                "exploration_done",
                rows=exploration["row_count"],
                categories=len(exploration["distinct_categories"]),
                zero_price_rows=len(exploration["zero_price_rows"]),
            )

            stats = clean_inventory(db, table=load_cfg.table, rules=cleaning_rules(settings))

            insights = InventoryInsights(db, table=load_cfg.table, params=report_params(settings))
            reports = run_reports(insights)

            result = PipelineResult(
                run_id=run_id,
                load=loaded,
                exploration=exploration,
                cleaning=stats,
                reports=reports,
            )

            if export:
                out = paths.reports_dir()
                exporter = ResultsExporter(ExporterConfig(out_dir=out.as_posix()))
                export_stats = exporter.write_all(reports)
                table_file = out / CLEANED_TABLE_FILENAME
                export_table_parquet(db, table_file, table=load_cfg.table)

                manifest = RunManifest(
                    run_id=run_id,
                    run_ts=run_ts.isoformat().replace("+00:00", "Z"),
                    engine_name=ENGINE_NAME,
                    engine_version=ENGINE_VERSION,
                    schema_version=SCHEMA_VERSION,
                    csv_path=loaded.csv_path,
                    database=paths.database(),
                    table=load_cfg.table,
                    export_dir=out.as_posix(),
                    rows_loaded=loaded.rows_loaded,
                    cleaning=stats.to_dict(),
                    reports=list(reports),
                )
                manifest_file = write_manifest(paths.manifest_path(), manifest)

                result.export_dir = out.as_posix()
                result.files = [*export_stats.files, table_file.as_posix(), manifest_file.as_posix()]

        log.info("pipeline_finished", rows_loaded=loaded.rows_loaded, rows_after_cleanup=stats.rows_after)
        return result
    finally:
        clear_run_context()


def main() -> int:
    setup_logging()
    result = run_pipeline()
    print(f"{result.run_id}: loaded {result.load.rows_loaded} rows, {result.cleaning.rows_after} after cleanup")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
