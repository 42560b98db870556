"""Path conventions for the snapshot pipeline.

Anything that needs to know where the CSV, the DuckDB file or the exported
reports live goes through :class:`infra.pipeline_paths.PipelinePaths`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

MEMORY_DATABASE = ":memory:"


def _p(path: str | Path) -> Path:
    return path if isinstance(path, Path) else Path(str(path))


@dataclass(frozen=True)
class PipelinePaths:
    """
    Central path conventions for pipeline inputs and outputs.

    Rules:
      - CLI/settings may override any location
      - Default file names live here, not scattered in code
    """

    base_data_dir: Path = Path("data")

    csv_filename: str = "inventory.csv"
    database_filename: str = "inventory.duckdb"
    reports_dirname: str = "reports"
    manifest_filename: str = "run_manifest.json"

    csv_override: Optional[Path] = None
    database_override: Optional[Path] = None
    reports_override: Optional[Path] = None

    def __post_init__(self) -> None:
        for name in ("base_data_dir", "csv_override", "database_override", "reports_override"):
            val = getattr(self, name)
            if val is None:
                continue
            if not isinstance(val, Path):
                raise TypeError(f"{name} must be a pathlib.Path (got {type(val)})")

        for fname in ("csv_filename", "database_filename", "reports_dirname", "manifest_filename"):
            v = getattr(self, fname)
            if not isinstance(v, str) or not v.strip():
                raise ValueError(f"{fname} must be a non-empty string")
            if "/" in v or "\\" in v:
                raise ValueError(f"{fname} must be a simple name, not a path: {v!r}")

    def csv_path(self) -> Path:
        return self.csv_override or (self.base_data_dir / self.csv_filename)

    def database(self) -> str:
        """DuckDB database argument: a file path string or ``:memory:``."""
        if self.database_override is not None:
            text = str(self.database_override)
            return MEMORY_DATABASE if text == MEMORY_DATABASE else self.database_override.as_posix()
        return (self.base_data_dir / self.database_filename).as_posix()

    def reports_dir(self) -> Path:
        return self.reports_override or (self.base_data_dir / self.reports_dirname)

    def manifest_path(self) -> Path:
        return self.reports_dir() / self.manifest_filename

    @classmethod
    def with_overrides(
        cls,
        *,
        csv_path: str | Path | None = None,
        database: str | Path | None = None,
        reports_dir: str | Path | None = None,
    ) -> "PipelinePaths":
        """Preferred way for settings/CLI to override locations without changing conventions."""
        return cls(
            csv_override=_p(csv_path) if csv_path else None,
            database_override=_p(database) if database else None,
            reports_override=_p(reports_dir) if reports_dir else None,
        )
