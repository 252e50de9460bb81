"""
Module: inventory_kernel.config
Responsibility: Runtime settings for the ledger: database connection, pool
    sizing, lock timeout, retry policy and log level.
Architecture position: Kernel root.  Imported by db/engine.py and the
    orchestrator.  MUST NOT import from models/, services/ or selectors/.

Resolution order (later wins):
    1. Dataclass defaults.
    2. YAML file (``path`` argument, else ``INVENTORY_CONFIG`` env var).
    3. Environment variables ``INVENTORY_<FIELD>`` and plain ``DATABASE_URL``.

Failure modes:
    - FileNotFoundError if an explicit YAML path does not exist.
    - yaml.YAMLError on malformed YAML.
    - ValueError on unknown keys or values that cannot be coerced.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"

_ENV_PREFIX = "INVENTORY_"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class LedgerSettings:
    """Immutable settings snapshot for one process."""

    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    # Applied with SET LOCAL lock_timeout on PostgreSQL
    lock_timeout_ms: int = 5000
    max_retries: int = 3
    retry_backoff_seconds: float = 0.05
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.lock_timeout_ms <= 0:
            raise ValueError("lock_timeout_ms must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds cannot be negative")

    @property
    def is_postgres(self) -> bool:
        return self.database_url.startswith("postgresql")


def _coerce(name: str, raw: Any, target: type) -> Any:
    if target is bool:
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in _TRUE_VALUES
    try:
        return target(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


def _field_types() -> dict[str, type]:
    types = {"str": str, "bool": bool, "int": int, "float": float}
    return {f.name: types[f.type] for f in fields(LedgerSettings)}


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    # Accept an optional top-level "ledger:" section
    if set(data) == {"ledger"} and isinstance(data["ledger"], dict):
        data = data["ledger"]
    return data


def load_settings(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """
    Build a LedgerSettings from defaults, an optional YAML file and the environment.

    Args:
        path: YAML file to read.  Falls back to ``$INVENTORY_CONFIG``.
        env: Environment mapping (defaults to ``os.environ``).

    Returns:
        Frozen LedgerSettings.

    Raises:
        ValueError: Unknown YAML key or uncoercible value.
    """
    env = os.environ if env is None else env
    types = _field_types()
    overrides: dict[str, Any] = {}

    config_path = path or env.get(f"{_ENV_PREFIX}CONFIG")
    if config_path:
        for key, raw in _load_yaml(Path(config_path)).items():
            if key not in types:
                raise ValueError(f"Unknown config key: {key}")
            overrides[key] = _coerce(key, raw, types[key])

    if env.get("DATABASE_URL"):
        overrides["database_url"] = env["DATABASE_URL"]
    for name, target in types.items():
        raw = env.get(f"{_ENV_PREFIX}{name.upper()}")
        if raw is not None:
            overrides[name] = _coerce(name, raw, target)

    return replace(LedgerSettings(), **overrides)
