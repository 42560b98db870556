"""Centralized application configuration with schema validation.

Values come from a local ``.env`` file first, then the process environment.
Both flat names (for example ``INVSNAP_DB_PATH``) and nested names (for example
``DB__PATH``) are accepted; nested names win when both are set.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DatabaseConfig(BaseModel):
    """DuckDB connection settings."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(default="data/inventory.duckdb", description="DuckDB file or ':memory:'")
    threads: int = Field(default=4, ge=1, le=64)

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(cls, value: object) -> str:
        text = str(value or "").strip()
        return text or "data/inventory.duckdb"


class LoadConfig(BaseModel):
    """Bulk CSV import settings."""

    model_config = ConfigDict(frozen=True)

    csv_path: str = Field(default="data/inventory.csv")
    table: str = Field(default="inventory")
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    quote: str = Field(default='"', min_length=1, max_length=1)
    header: bool = Field(default=True)
    encoding: str = Field(default="utf-8")

    @field_validator("table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        text = str(value or "").strip()
        if not _IDENTIFIER_RE.match(text):
            raise ValueError(f"load.table must be a plain SQL identifier: {value!r}")
        return text

    @field_validator("delimiter", mode="before")
    @classmethod
    def _normalize_delimiter(cls, value: object) -> object:
        # Env values are stripped, so a tab has to be spelled out.
        if isinstance(value, str) and value.strip().lower() in {"\\t", "tab"}:
            return "\t"
        return value

    @field_validator("encoding")
    @classmethod
    def _normalize_encoding(cls, value: str) -> str:
        text = str(value or "").strip().lower().replace("_", "-")
        if text in {"utf8", ""}:
            return "utf-8"
        return text


class CleaningConfig(BaseModel):
    """Thresholds used by the cleanup statements."""

    model_config = ConfigDict(frozen=True)

    paise_threshold: float = Field(default=1000.0, gt=0.0)
    divisor: float = Field(default=100.0, gt=0.0)


class ReportConfig(BaseModel):
    """Limits and thresholds for the fixed business queries."""

    model_config = ConfigDict(frozen=True)

    top_n: int = Field(default=10, ge=1, le=1000)
    top_categories: int = Field(default=5, ge=1, le=1000)
    high_mrp: float = Field(default=300.0, ge=0.0)
    premium_mrp: float = Field(default=500.0, ge=0.0)
    low_discount_percent: float = Field(default=10.0, ge=0.0, le=100.0)
    min_weight_gms: int = Field(default=100, ge=1)
    low_weight_limit_gms: int = Field(default=1000, ge=1)
    medium_weight_limit_gms: int = Field(default=5000, ge=1)
    export_dir: str = Field(default="data/reports")

    @field_validator("medium_weight_limit_gms")
    @classmethod
    def _bands_ordered(cls, value: int, info: ValidationInfo) -> int:
        low = info.data.get("low_weight_limit_gms")
        if low is not None and value <= low:
            raise ValueError("report.medium_weight_limit_gms must be greater than low_weight_limit_gms")
        return value


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return text
        return "INFO"


class Settings(BaseModel):
    """Root settings object."""

    model_config = ConfigDict(frozen=True)

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    load: LoadConfig = Field(default_factory=LoadConfig)
    cleaning: CleaningConfig = Field(default_factory=CleaningConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key.strip():
            values[key.strip()] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    db = {
        "path": _first_non_empty(env, "DB__PATH", "INVSNAP_DB_PATH"),
        "threads": _first_non_empty(env, "DB__THREADS", "INVSNAP_DB_THREADS"),
    }
    load = {
        "csv_path": _first_non_empty(env, "LOAD__CSV_PATH", "INVSNAP_CSV"),
        "table": _first_non_empty(env, "LOAD__TABLE", "INVSNAP_TABLE"),
        "delimiter": _first_non_empty(env, "LOAD__DELIMITER"),
        "quote": _first_non_empty(env, "LOAD__QUOTE"),
        "header": _first_non_empty(env, "LOAD__HEADER"),
        "encoding": _first_non_empty(env, "LOAD__ENCODING"),
    }
    cleaning = {
        "paise_threshold": _first_non_empty(env, "CLEANING__PAISE_THRESHOLD"),
        "divisor": _first_non_empty(env, "CLEANING__DIVISOR"),
    }
    report = {
        "top_n": _first_non_empty(env, "REPORT__TOP_N"),
        "top_categories": _first_non_empty(env, "REPORT__TOP_CATEGORIES"),
        "high_mrp": _first_non_empty(env, "REPORT__HIGH_MRP"),
        "premium_mrp": _first_non_empty(env, "REPORT__PREMIUM_MRP"),
        "low_discount_percent": _first_non_empty(env, "REPORT__LOW_DISCOUNT_PERCENT"),
        "min_weight_gms": _first_non_empty(env, "REPORT__MIN_WEIGHT_GMS"),
        "low_weight_limit_gms": _first_non_empty(env, "REPORT__LOW_WEIGHT_LIMIT_GMS"),
        "medium_weight_limit_gms": _first_non_empty(env, "REPORT__MEDIUM_WEIGHT_LIMIT_GMS"),
        "export_dir": _first_non_empty(env, "REPORT__EXPORT_DIR", "INVSNAP_EXPORT_DIR"),
    }
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "INVSNAP_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "INVSNAP_LOG_JSON"),
        "override_root_handlers": _first_non_empty(
            env, "LOGGING__OVERRIDE_ROOT_HANDLERS", "INVSNAP_LOG_OVERRIDE"
        ),
    }
    return {
        "db": {k: v for k, v in db.items() if v is not None},
        "load": {k: v for k, v in load.items() if v is not None},
        "cleaning": {k: v for k, v in cleaning.items() if v is not None},
        "report": {k: v for k, v in report.items() if v is not None},
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "CleaningConfig",
    "DatabaseConfig",
    "LoadConfig",
    "LoggingSettings",
    "ReportConfig",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
