# catalog_app/catalog_client.py
"""
Read-only client for the catalog REST API.

"No data" (404, empty body, blank identifiers) is returned as None or an empty
list. Transport and decoding failures that survive the retry policy raise
CatalogUnavailableError so callers can tell them apart from a missing record.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional, Any, Dict, List, Callable, TypeVar

import diskcache
import platformdirs
import requests
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception

from .config_manager import ConfigHelper, DEFAULT_CATALOG_API_URL, APP_NAME
from .exceptions import CatalogUnavailableError
from .models import CatalogSeries, CatalogSeason, CatalogEpisode, CatalogActor

log = logging.getLogger(__name__)

T = TypeVar('T')

_NO_DATA = object()


class AsyncRateLimiter:
    def __init__(self, delay: float):
        self.delay = delay
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def wait(self):
        if self.delay <= 0: return
        async with self._lock:
            now = time.monotonic()
            since_last = now - self.last_call
            if since_last < self.delay:
                wait_time = self.delay - since_last
                log.debug(f"Rate limiting: sleeping for {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
            self.last_call = time.monotonic()


def should_retry_api_error(exception: BaseException) -> bool:
    if isinstance(exception, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        log.debug(f"Retry check PASSED for Connection/Timeout Error: {type(exception).__name__}")
        return True
    if isinstance(exception, requests.exceptions.HTTPError):
        status_code = getattr(getattr(exception, 'response', None), 'status_code', 0) or 0
        if status_code == 429: log.warning("Retry check PASSED for HTTP 429 (Rate Limit)."); return True
        if 500 <= status_code <= 599: log.warning(f"Retry check PASSED for HTTP {status_code} (Server Error)."); return True
        if status_code in (401, 403): log.error(f"Retry check FAILED for HTTP {status_code} (Check API Key/Permissions)."); return False
        log.debug(f"Retry check FAILED for other HTTP Status Code: {status_code}"); return False
    log.debug(f"Retry check FAILED by default for: {type(exception).__name__}: {exception}")
    return False


def _unwrap_listing(payload: Any, envelope_key: str) -> List[Dict[str, Any]]:
    """Accepts either a bare list or {envelope_key: [...]}; drops non-dict items."""
    if payload is None: return []
    items = payload.get(envelope_key) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        log.warning(f"Unexpected catalog payload for '{envelope_key}': {type(items).__name__}")
        return []
    valid_items = []
    for item in items:
        if isinstance(item, dict):
            valid_items.append(item)
        else:
            log.warning(f"Skipping non-dict item in '{envelope_key}' listing: {type(item).__name__}")
    return valid_items


def _parse_records(items: List[Dict[str, Any]], factory: Callable[[Dict[str, Any]], Optional[T]]) -> List[T]:
    records = []
    for item in items:
        record = factory(item)
        if record is None:
            log.debug(f"Skipping catalog record without a usable id: {item.get('id')!r}")
            continue
        records.append(record)
    return records


class CatalogClient:
    def __init__(self,
                 base_url: str = DEFAULT_CATALOG_API_URL,
                 api_key: Optional[str] = None,
                 timeout: float = 15.0,
                 retry_attempts: int = 3,
                 retry_wait_seconds: float = 1.0,
                 retry_max_wait_seconds: float = 30.0,
                 rate_limit_delay: float = 0.0,
                 cache_directory: Optional[Path] = None,
                 cache_expire_seconds: int = 86400,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/') + '/'
        self.api_key = api_key
        self.timeout = timeout
        self.max_attempts = max(1, int(retry_attempts))
        self.retry_wait_seconds = float(retry_wait_seconds)
        self.retry_max_wait_seconds = float(retry_max_wait_seconds)
        self.rate_limiter = AsyncRateLimiter(float(rate_limit_delay))
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if api_key:
            self.session.headers['X-API-Key'] = api_key

        self.cache: Optional[diskcache.Cache] = None
        self.cache_expire = int(cache_expire_seconds)
        if cache_directory is not None:
            try:
                Path(cache_directory).mkdir(parents=True, exist_ok=True)
                self.cache = diskcache.Cache(str(cache_directory))
                log.info(f"Persistent cache initialized at: {cache_directory} (Expiration: {self.cache_expire}s)")
            except OSError as e:
                log.error(f"Failed to initialize disk cache at '{cache_directory}': {e}. Disabling cache.")
                self.cache = None
        log.debug(f"Catalog client: base={self.base_url}, timeout={self.timeout}s, attempts={self.max_attempts}, cache={'on' if self.cache is not None else 'off'}")

    @classmethod
    def from_config(cls, cfg_helper: ConfigHelper) -> 'CatalogClient':
        cache_directory: Optional[Path] = None
        if bool(cfg_helper('cache_enabled', False)):
            cache_dir_config = cfg_helper('cache_directory', None)
            if cache_dir_config:
                cache_directory = Path(str(cache_dir_config)).resolve()
            else:
                cache_directory = Path(platformdirs.user_cache_dir(APP_NAME))
        else:
            log.info("Persistent caching disabled by configuration.")
        return cls(
            base_url=str(cfg_helper('catalog_api_url', DEFAULT_CATALOG_API_URL)),
            api_key=cfg_helper.get_api_key(),
            timeout=float(cfg_helper('api_timeout_seconds', 15.0)),
            retry_attempts=int(cfg_helper('api_retry_attempts', 3)),
            retry_wait_seconds=float(cfg_helper('api_retry_wait_seconds', 1.0)),
            retry_max_wait_seconds=float(cfg_helper('api_retry_max_wait_seconds', 30.0)),
            rate_limit_delay=float(cfg_helper('api_rate_limit_delay', 0.0)),
            cache_directory=cache_directory,
            cache_expire_seconds=int(cfg_helper('cache_expire_seconds', 86400)),
        )

    def close(self):
        self.session.close()
        if self.cache is not None:
            self.cache.close()

    async def _run_sync(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: func(*args, **kwargs))

    def _sync_get_json(self, request_path: str) -> Any:
        url = self.base_url + request_path
        log.debug(f"Catalog API Request: GET {url}")
        response = self.session.get(url, timeout=self.timeout)
        if response.status_code == 404:
            log.debug(f"Catalog API returned 404 for '{request_path}' (no data).")
            return None
        if not response.ok:
            log.error(f"Catalog API error: Status={response.status_code}, Uri={request_path}, Response={response.text[:200]!r}")
            response.raise_for_status()
        if not response.content or not response.content.strip():
            return None
        return response.json()

    async def get_json(self, request_path: str) -> Any:
        """GET a catalog path with retries; None means the catalog has no data."""
        cache_key = f"catalog:{self.base_url}{request_path}"
        if self.cache is not None:
            cached_value = await self._run_sync(self.cache.get, cache_key, default=_NO_DATA)
            if cached_value is not _NO_DATA:
                log.debug(f"Cache HIT for key: {cache_key}")
                return cached_value
            log.debug(f"Cache MISS for key: {cache_key}")

        async_retryer = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_wait_seconds, max=self.retry_max_wait_seconds),
            retry=retry_if_exception(should_retry_api_error),
            reraise=True,
        )
        try:
            await self.rate_limiter.wait()
            payload = await async_retryer(self._run_sync, self._sync_get_json, request_path)
        except requests.exceptions.RequestException as e:
            # JSON decoding errors from requests are RequestException subclasses too.
            log.error(f"Catalog request '{request_path}' failed after up to {self.max_attempts} attempts: {type(e).__name__}: {e}")
            raise CatalogUnavailableError(f"Catalog unavailable for '{request_path}': {type(e).__name__}", request_path) from e
        except ValueError as e:
            log.error(f"Catalog response for '{request_path}' could not be decoded: {e}")
            raise CatalogUnavailableError(f"Undecodable catalog response for '{request_path}'", request_path) from e

        if self.cache is not None and payload is not None:
            await self._run_sync(self.cache.set, cache_key, payload, expire=self.cache_expire)
            log.debug(f"Cache SET for key: {cache_key}")
        return payload

    async def get_series_by_id(self, series_id: Any) -> Optional[CatalogSeries]:
        if series_id is None or not str(series_id).strip():
            log.warning("get_series_by_id: series_id is null or empty.")
            return None
        payload = await self.get_json(f"series/{str(series_id).strip()}")
        if not isinstance(payload, dict):
            return None
        return CatalogSeries.from_api(payload)

    async def get_all_series(self) -> Optional[List[CatalogSeries]]:
        """Full listing, or None when the catalog returned no data at all."""
        payload = await self.get_json("series?paginate=false")
        if payload is None:
            return None
        return _parse_records(_unwrap_listing(payload, 'series'), CatalogSeries.from_api)

    async def get_seasons_for_series(self, series_id: Any) -> List[CatalogSeason]:
        if series_id is None or not str(series_id).strip():
            log.warning("get_seasons_for_series: series_id is null or empty.")
            return []
        payload = await self.get_json(f"series/{str(series_id).strip()}/seasons")
        return _parse_records(_unwrap_listing(payload, 'seasons'), CatalogSeason.from_api)

    async def get_episodes_for_season(self, season_id: Any) -> List[CatalogEpisode]:
        if season_id is None or not str(season_id).strip():
            log.warning("get_episodes_for_season: season_id is null or empty.")
            return []
        payload = await self.get_json(f"seasons/{str(season_id).strip()}/episodes")
        return _parse_records(_unwrap_listing(payload, 'episodes'), CatalogEpisode.from_api)

    async def get_actors_for_series(self, series_id: Any) -> List[CatalogActor]:
        if series_id is None or not str(series_id).strip():
            log.warning("get_actors_for_series: series_id is null or empty.")
            return []
        payload = await self.get_json(f"series/{str(series_id).strip()}/actors")
        return _parse_records(_unwrap_listing(payload, 'actors'), CatalogActor.from_api)
