"""Run manifest helpers.

The runner writes ``run_manifest.json`` next to the exported reports so the
files can be traced back to the CSV, the database and the cleanup that
produced them.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

MANIFEST_FILENAME = "run_manifest.json"


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def make_run_id(run_ts: datetime) -> str:
    return f"run-{run_ts.astimezone(UTC).isoformat().replace('+00:00', 'Z')}"


@dataclass(frozen=True)
class RunManifest:
    """What one pipeline run read, changed and wrote."""

    run_id: str
    run_ts: str

    engine_name: str | None = None
    engine_version: str | None = None
    schema_version: int | None = None

    csv_path: str | None = None
    database: str | None = None
    table: str | None = None
    export_dir: str | None = None

    rows_loaded: int = 0
    cleaning: dict[str, int] = field(default_factory=dict)
    reports: list[str] = field(default_factory=list)

    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d.get("created_at"):
            d["created_at"] = _utc_now_iso()
        return d

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> RunManifest:
        return cls(
            run_id=str(payload.get("run_id") or "").strip(),
            run_ts=str(payload.get("run_ts") or "").strip(),
            engine_name=(str(payload.get("engine_name") or "").strip() or None),
            engine_version=(str(payload.get("engine_version") or "").strip() or None),
            schema_version=(int(payload["schema_version"]) if payload.get("schema_version") is not None else None),
            csv_path=(str(payload.get("csv_path") or "").strip() or None),
            database=(str(payload.get("database") or "").strip() or None),
            table=(str(payload.get("table") or "").strip() or None),
            export_dir=(str(payload.get("export_dir") or "").strip() or None),
            rows_loaded=int(payload.get("rows_loaded") or 0),
            cleaning={str(k): int(v) for k, v in (payload.get("cleaning") or {}).items()},
            reports=[str(r) for r in (payload.get("reports") or [])],
            created_at=str(payload.get("created_at") or "").strip(),
        )


def write_manifest(path: str | Path, manifest: RunManifest) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(manifest.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
    return p


def read_manifest(path: str | Path) -> RunManifest:
    p = Path(path)
    payload = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid manifest (expected object): {p}")
    return RunManifest.from_dict(payload)
