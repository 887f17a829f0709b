"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_ALLOWED_PROFILES = {"ingestion", "strict"}
_ALLOWED_DEFAULTS_POLICIES = {"apply", "skip"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_choice_env(name: str, default: str, allowed: set[str]) -> str:
    value = _get_str_env(name, default).lower()
    if value not in allowed:
        raise RuntimeError(f"{name}='{value}' is not valid. Allowed values: {sorted(allowed)}.")
    return value


@dataclass(frozen=True)
class InventoryIngestionSettings:
    """
    Runtime settings for inventory file ingestion.
    """

    batch_size: int = 50
    header_match_threshold: float = 0.2
    mandatory_profile: str = "ingestion"
    defaults_policy: str = "apply"
    abort_on_missing_mandatory: bool = False
    row_workers: int = 1
    batch_workers: int = 1
    max_file_bytes: int = 10 * 1024 * 1024
    log_row_errors: bool = True
    max_logged_row_errors: int = 200


@lru_cache(maxsize=1)
def get_inventory_ingestion_settings() -> InventoryIngestionSettings:
    """
    Return cached inventory ingestion settings.

    Raises RuntimeError when a choice-valued variable holds an unknown value.
    """

    cpu_count = os.cpu_count() or 1
    return InventoryIngestionSettings(
        batch_size=max(1, _get_int_env("INVENTORY_INGEST_BATCH_SIZE", 50)),
        header_match_threshold=min(1.0, max(0.0, _get_float_env("INVENTORY_INGEST_HEADER_THRESHOLD", 0.2))),
        mandatory_profile=_get_choice_env("INVENTORY_INGEST_MANDATORY_PROFILE", "ingestion", _ALLOWED_PROFILES),
        defaults_policy=_get_choice_env("INVENTORY_INGEST_DEFAULTS_POLICY", "apply", _ALLOWED_DEFAULTS_POLICIES),
        abort_on_missing_mandatory=_get_bool_env("INVENTORY_INGEST_ABORT_ON_MISSING_MANDATORY", False),
        row_workers=min(cpu_count, max(1, _get_int_env("INVENTORY_INGEST_ROW_WORKERS", 1))),
        batch_workers=max(1, _get_int_env("INVENTORY_INGEST_BATCH_WORKERS", 1)),
        max_file_bytes=max(1, _get_int_env("INVENTORY_INGEST_MAX_FILE_BYTES", 10 * 1024 * 1024)),
        log_row_errors=_get_bool_env("INVENTORY_INGEST_LOG_ROW_ERRORS", True),
        max_logged_row_errors=max(0, _get_int_env("INVENTORY_INGEST_MAX_LOGGED_ROW_ERRORS", 200)),
    )
