"""
Centralized configuration loader for the flow runtime, clients and service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "http://127.0.0.1:8000"
DEFAULT_BATCH_SIZE = 10
DEFAULT_FLUSH_SECONDS = 10.0
DEFAULT_CACHE_TTL_SECONDS = 60 * 60.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 15.0


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        return float(environ.get(name, default))
    except (TypeError, ValueError):
        return default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    val = environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def log_redaction_enabled(env: Optional[Mapping[str, str]] = None) -> bool:
    return _env_bool(env if env is not None else os.environ, "SCREENFLOW_LOG_REDACT", True)


@dataclass
class ScreenflowConfig:
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    analytics_batch_size: int = DEFAULT_BATCH_SIZE
    analytics_flush_seconds: float = DEFAULT_FLUSH_SECONDS
    config_cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    assistant_url: Optional[str] = None
    assistant_token: Optional[str] = None
    store_path: Optional[str] = None
    log_level: str = "WARNING"
    redact_logs: bool = True


def load_config(env: Optional[Mapping[str, str]] = None) -> ScreenflowConfig:
    environ = env if env is not None else os.environ
    batch_size = _env_int(environ, "SCREENFLOW_ANALYTICS_BATCH_SIZE", DEFAULT_BATCH_SIZE)
    return ScreenflowConfig(
        base_url=(environ.get("SCREENFLOW_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        api_key=environ.get("SCREENFLOW_API_KEY") or None,
        analytics_batch_size=batch_size if batch_size > 0 else DEFAULT_BATCH_SIZE,
        analytics_flush_seconds=_env_float(environ, "SCREENFLOW_ANALYTICS_FLUSH_SECONDS", DEFAULT_FLUSH_SECONDS),
        config_cache_ttl_seconds=_env_float(environ, "SCREENFLOW_CONFIG_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
        http_timeout_seconds=_env_float(environ, "SCREENFLOW_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        assistant_url=environ.get("SCREENFLOW_ASSISTANT_URL") or None,
        assistant_token=environ.get("SCREENFLOW_ASSISTANT_TOKEN") or None,
        store_path=environ.get("SCREENFLOW_STORE_PATH") or None,
        log_level=(environ.get("SCREENFLOW_LOG_LEVEL") or "WARNING").upper(),
        redact_logs=log_redaction_enabled(environ),
    )
