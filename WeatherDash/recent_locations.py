"""Bounded list of recently viewed cities, persisted through the cache."""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from key_value_cache import KeyValueCache
from weather_data import CompositeWeatherResult
from weather_service import normalize_city_key

DEFAULT_CITIES = ["Hà Nội", "Hồ Chí Minh", "Hà Tĩnh", "Đà Nẵng"]
RECENT_CITIES_KEY = "recentCities"
MAX_RECENT = 5


class RecentLocations:
    """
    Most-recently-queried-first list of distinct city names.

    Names are distinct by cache key, so "Ha Noi" and "Hà Nội" never
    appear together. The list is always padded with the default cities
    (in their fixed order, skipping names already present) and cut to
    `max_size`. The padded list is what gets persisted, and reads only
    write back when padding changed it.
    """

    def __init__(
        self,
        cache: KeyValueCache,
        key: str = RECENT_CITIES_KEY,
        defaults: Sequence[str] = DEFAULT_CITIES,
        max_size: int = MAX_RECENT,
    ):
        self.cache = cache
        self.key = key
        self.defaults = list(defaults)
        self.max_size = max_size

    def _load(self) -> List[str]:
        stored = self.cache.get(self.key)
        if not isinstance(stored, list):
            if stored is not None:
                logging.debug(f"Ignoring malformed recent cities value: {stored!r}")
            return []
        return [c for c in stored if isinstance(c, str) and c.strip()]

    def _complete(self, cities: List[str]) -> List[str]:
        # Spellings sharing a cache key ("Ha Noi", "Hà Nội") are one city; the earliest wins
        result: List[str] = []
        seen = set()
        for city in list(cities) + self.defaults:
            key = normalize_city_key(city)
            if key not in seen:
                seen.add(key)
                result.append(city)
        return result[: self.max_size]

    def record_query(self, city: str) -> List[str]:
        """Move `city` to the front (inserting it if new), pad, truncate and persist."""
        city = (city or "").strip()
        if not city:
            return self.get_all()
        updated = self._complete([city] + self._load())
        self.cache.set(self.key, updated)
        logging.debug(f"Recent cities: {updated}")
        return updated

    def get_all(self) -> List[str]:
        stored = self.cache.get(self.key)
        cities = self._complete(self._load())
        if cities != stored:
            self.cache.set(self.key, cities)
        return cities


@dataclass
class RecentCityWeather:
    """A recent city paired with its weather, or None if the fetch failed."""
    city: str
    weather: Optional[CompositeWeatherResult]


async def load_recent_weather(
    recent: RecentLocations,
    query,
    unit: str = "metric",
    country_hint: Optional[str] = None,
) -> List[RecentCityWeather]:
    """
    Fetch weather for every recent city concurrently.

    Waits for all fetches to settle; a failed city gets weather=None
    instead of failing the whole list. Order follows the recent list.
    `query` is a CachedWeatherQuery (or anything with query_by_name).
    """
    cities = recent.get_all()
    results = await asyncio.gather(
        *(query.query_by_name(city, unit, country_hint=country_hint, remember=False) for city in cities),
        return_exceptions=True,
    )
    panel = []
    for city, result in zip(cities, results):
        if isinstance(result, BaseException):
            logging.warning(f"Could not load weather for recent city {city}: {result!r}")
            panel.append(RecentCityWeather(city=city, weather=None))
        else:
            panel.append(RecentCityWeather(city=city, weather=result))
    return panel
