"""Cached weather queries with hourly refresh and stale-while-error fallback."""
import asyncio
import logging
import re
import unicodedata
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional

from device_location import DEFAULT_LOCATION_TIMEOUT, DeviceLocator, get_device_location
from key_value_cache import KeyValueCache
from location_resolver import LocationResolver
from weather_data import CacheEntry, CompositeWeatherResult, Coordinates
from weather_fetcher import WeatherFetcher
from weather_provider import TRANSIENT_ERRORS, InvalidInput

if TYPE_CHECKING:
    from recent_locations import RecentLocations

# One hour
CACHE_TTL_MS = 3_600_000
UNITS = ("metric", "imperial")


def normalize_city_key(city: str) -> str:
    """Strip diacritics, lowercase and join words with underscores ("Hà Nội" -> "ha_noi")."""
    decomposed = unicodedata.normalize("NFD", city.strip())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = stripped.replace("đ", "d").replace("Đ", "D")
    return re.sub(r"\s+", "_", stripped.lower())


def city_cache_key(city: str, unit: str, country_hint: Optional[str] = None) -> str:
    """Key for a named place; a country hint becomes part of it, e.g. weather_paris_us_metric."""
    country = (country_hint or "").strip()
    if country:
        return f"weather_{normalize_city_key(city)}_{normalize_city_key(country)}_{unit}"
    return f"weather_{normalize_city_key(city)}_{unit}"


def coord_cache_key(coords: Coordinates, unit: str) -> str:
    return f"weather_coord_{coords.latitude:.3f}_{coords.longitude:.3f}_{unit}"


def is_top_of_hour(now: datetime) -> bool:
    return now.minute == 0


def to_epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


class CachedWeatherQuery:
    """
    Orchestrates LocationResolver and WeatherFetcher behind a KeyValueCache.

    A cached result is served while it is younger than the TTL, except
    during the first minute of every hour, when it is always refetched.
    If a refetch fails with RateLimited or UpstreamError and an older entry
    exists, that entry is served instead of raising. Other errors and
    cancellation always propagate.

    A new query for a cache key cancels any fetch still in flight for the
    same key; a cancelled fetch never writes to the cache.
    """

    def __init__(
        self,
        cache: KeyValueCache,
        resolver: LocationResolver,
        fetcher: WeatherFetcher,
        recent: Optional["RecentLocations"] = None,
        ttl_ms: int = CACHE_TTL_MS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the query service.

        Args:
            cache: Where composite results are stored
            resolver: Resolves place names before fetching
            fetcher: Fetches composite weather for coordinates
            recent: Recently viewed cities, updated on every successful named query
            ttl_ms: How long a cached result stays fresh
            clock: Returns the current local time; datetime.now by default
        """
        self.cache = cache
        self.resolver = resolver
        self.fetcher = fetcher
        self.recent = recent
        self.ttl_ms = ttl_ms
        self.clock = clock or datetime.now
        self._inflight: Dict[str, "asyncio.Task[CompositeWeatherResult]"] = {}

    def is_fresh(self, entry: Optional[CacheEntry], now: datetime) -> bool:
        if entry is None:
            return False
        return to_epoch_ms(now) - entry.fetched_at_ms < self.ttl_ms and not is_top_of_hour(now)

    def read_entry(self, key: str) -> Optional[CacheEntry]:
        """Cached entry for `key`, or None if absent or unreadable."""
        data = self.cache.get(key)
        if data is None:
            return None
        try:
            return CacheEntry.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logging.debug(f"Discarding unreadable cache entry {key}: {e}")
            return None

    async def query_by_name(
        self,
        name: str,
        unit: str = "metric",
        country_hint: Optional[str] = None,
        remember: bool = True,
    ) -> CompositeWeatherResult:
        """
        Weather for a named place.

        With remember=True the name is moved to the front of the recent
        cities list once a result is available.

        Raises:
            InvalidInput: Blank name or unknown unit
            NotFound: The place does not exist
            WeatherProviderError: Fetch failed and no cached entry to fall back on
            asyncio.CancelledError: The query was cancelled or superseded
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Place name must not be empty")
        self._check_unit(unit)

        async def fetch() -> CompositeWeatherResult:
            location = await self.resolver.resolve_by_name(name, country_hint)
            return await self.fetcher.fetch_composite(location.coordinates, location=location)

        result = await self._query(city_cache_key(name, unit, country_hint), fetch)
        if remember and self.recent is not None:
            self.recent.record_query(name)
        return result

    async def query_by_coordinates(self, coords: Coordinates, unit: str = "metric") -> CompositeWeatherResult:
        """Weather for a position; same caching and error policy as query_by_name."""
        if not coords.is_valid():
            raise InvalidInput(f"Coordinates out of range: {coords.latitude}, {coords.longitude}")
        self._check_unit(unit)
        return await self._query(coord_cache_key(coords, unit), lambda: self.fetcher.fetch_composite(coords))

    async def query_device_location(
        self,
        locator: DeviceLocator,
        unit: str = "metric",
        timeout: Optional[float] = DEFAULT_LOCATION_TIMEOUT,
    ) -> CompositeWeatherResult:
        """Weather for the device's current position, waiting at most `timeout` seconds for it."""
        coords = await get_device_location(locator, timeout)
        return await self.query_by_coordinates(coords, unit)

    @staticmethod
    def _check_unit(unit: str) -> None:
        if unit not in UNITS:
            raise InvalidInput(f"Unknown unit system '{unit}', expected one of {', '.join(UNITS)}")

    async def _query(
        self,
        key: str,
        fetch: Callable[[], Awaitable[CompositeWeatherResult]],
    ) -> CompositeWeatherResult:
        now = self.clock()
        entry = self.read_entry(key)
        if self.is_fresh(entry, now):
            cache_age = (to_epoch_ms(now) - entry.fetched_at_ms) / 1000.0
            logging.debug(f"Using cached weather for {key} (age: {cache_age:.1f}s)")
            return entry.payload

        if entry is not None:
            reason = "top of the hour" if is_top_of_hour(now) else "expired"
            logging.info(f"Cache for {key} {reason}, fetching new data")

        previous = self._inflight.get(key)
        if previous is not None and not previous.done():
            logging.info(f"Cancelling superseded fetch for {key}")
            previous.cancel()

        task = asyncio.create_task(self._refresh(key, fetch))
        self._inflight[key] = task
        try:
            return await task
        except TRANSIENT_ERRORS as e:
            if entry is None:
                logging.error(f"Weather fetch for {key} failed, no cache available: {e}")
                raise
            cache_age = (to_epoch_ms(now) - entry.fetched_at_ms) / 1000.0
            logging.warning(f"Weather fetch for {key} failed, using stale cache (age: {cache_age:.1f}s): {e}")
            return entry.payload
        finally:
            if self._inflight.get(key) is task:
                del self._inflight[key]

    async def _refresh(
        self,
        key: str,
        fetch: Callable[[], Awaitable[CompositeWeatherResult]],
    ) -> CompositeWeatherResult:
        payload = await fetch()
        # No awaits past this point: a cancelled fetch never writes
        fetched_at = to_epoch_ms(self.clock())
        payload.fetched_at_ms = fetched_at
        self.cache.set(key, CacheEntry(payload=payload, fetched_at_ms=fetched_at).to_dict())
        logging.info(f"Cached fresh weather for {key}")
        return payload
