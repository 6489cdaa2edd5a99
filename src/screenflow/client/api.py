"""
Screen source client: config fetch with cached fallback, variant assignment
and analytics delivery.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

from ..config import DEFAULT_CACHE_TTL_SECONDS, DEFAULT_HTTP_TIMEOUT_SECONDS, ScreenflowConfig
from ..errors import ConfigFetchError, ScreenflowError, SinkError

logger = logging.getLogger("screenflow.client")

API_KEY_HEADER = "x-api-key"

# (method, url, json body or None, headers) -> decoded JSON body
HttpClient = Callable[[str, str, Optional[Dict[str, Any]], Dict[str, str]], Dict[str, Any]]


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float | None


class ConfigCache:
    """
    In-process TTL cache for fetched configs. Not shared across processes.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: Dict[str, _CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if not entry:
            return None
        if entry.expires_at is not None and entry.expires_at < self._clock():
            self._store.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        expires = self._clock() + self.ttl_seconds if self.ttl_seconds else None
        self._store[key] = _CacheEntry(value=value, expires_at=expires)

    def clear(self, key: str | None = None) -> None:
        if key is None:
            self._store.clear()
        else:
            self._store.pop(key, None)


class ScreenSourceClient:
    """
    Client for the config/assignment/analytics endpoints.
    The http_client parameter allows deterministic mocking in tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        http_client: Optional[HttpClient] = None,
        cache: Optional[ConfigCache] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache or ConfigCache()
        self._http_client = http_client or self._default_http_client

    @classmethod
    def from_config(cls, config: ScreenflowConfig, **kwargs: Any) -> "ScreenSourceClient":
        if not config.api_key:
            raise ConfigFetchError("SCREENFLOW_API_KEY is not set")
        kwargs.setdefault("cache", ConfigCache(config.config_cache_ttl_seconds))
        kwargs.setdefault("timeout", config.http_timeout_seconds)
        return cls(config.api_key, config.base_url, **kwargs)

    @property
    def cache_key(self) -> str:
        return f"{self.base_url}|{self.api_key}"

    def _headers(self) -> Dict[str, str]:
        return {API_KEY_HEADER: self.api_key, "Content-Type": "application/json"}

    def _call(self, method: str, path: str, body: Optional[Dict[str, Any]], error_cls: Type[ScreenflowError]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            return self._http_client(method, url, body, self._headers())
        except urllib.error.HTTPError as exc:
            raise error_cls(f"{method} {path} failed with status {exc.code}", status=exc.code) from exc
        except ScreenflowError:
            raise
        except Exception as exc:
            raise error_cls(f"{method} {path} failed: {exc}") from exc

    def get_config(self) -> Dict[str, Any]:
        try:
            data = self._call("GET", "/get-config", None, ConfigFetchError)
        except ConfigFetchError as exc:
            cached = self.cache.get(self.cache_key)
            if cached is not None:
                logger.warning("Config fetch failed (%s); using cached config", exc.message)
                return cached
            raise
        self.cache.set(self.cache_key, data)
        return data

    def assign_variant(self, experiment_id: str, user_id: str) -> Dict[str, Any]:
        return self._call("POST", "/assign-variant", {"experiment_id": experiment_id, "user_id": user_id}, SinkError)

    def track_events(self, events: List[Dict[str, Any]]) -> Dict[str, Any]:
        return self._call("POST", "/track-events", {"events": events}, SinkError)

    def _default_http_client(
        self, method: str, url: str, body: Optional[Dict[str, Any]], headers: Dict[str, str]
    ) -> Dict[str, Any]:
        payload = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=payload, headers=headers, method=method)
        with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # pragma: no cover - live calls
            text = resp.read().decode("utf-8")
            return json.loads(text) if text else {}
