"""Place name <-> coordinates resolution on top of a geocoding provider."""
import asyncio
import logging
from typing import List, Optional

from weather_data import Coordinates, LocationInfo
from weather_provider import GeocodingProviderBase, InvalidInput, NotFound


class LocationResolver:
    """
    Resolves free-text place names to coordinates and back.

    When a lookup yields several matches, the first one returned by the
    provider wins; no re-ranking is done.
    """

    def __init__(self, provider: GeocodingProviderBase, search_limit: int = 5):
        self.provider = provider
        self.search_limit = search_limit

    async def resolve_by_name(self, name: str, country_hint: Optional[str] = None) -> LocationInfo:
        """
        Resolve a place name, optionally narrowed by an ISO country code.

        Raises:
            InvalidInput: If name is blank
            NotFound: If the provider has no match
            WeatherProviderError: Any other provider failure
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Place name must not be empty")
        query = f"{name},{country_hint}" if country_hint else name

        logging.info(f"Resolving place name '{query}'")
        matches = await asyncio.to_thread(self.provider.direct, query, 1)
        if not matches:
            raise NotFound(f"No place found for '{query}'")
        location = matches[0]
        logging.debug(
            f"Resolved '{query}' to {location.canonical_name} "
            f"({location.coordinates.latitude}, {location.coordinates.longitude})"
        )
        return location

    async def resolve_by_coordinates(self, coords: Coordinates) -> LocationInfo:
        """
        Reverse-geocode coordinates to the nearest named place.

        Raises:
            InvalidInput: If coordinates are out of range
            NotFound: If the provider has no place near the coordinates
        """
        if not coords.is_valid():
            raise InvalidInput(f"Coordinates out of range: {coords.latitude}, {coords.longitude}")

        matches = await asyncio.to_thread(self.provider.reverse, coords.latitude, coords.longitude, 1)
        if not matches:
            raise NotFound(f"No place found near {coords.latitude}, {coords.longitude}")
        return matches[0]

    async def search(self, name: str, limit: Optional[int] = None) -> List[LocationInfo]:
        """Candidate places for type-ahead suggestions; blank input gives no results."""
        name = (name or "").strip()
        if not name:
            return []
        return await asyncio.to_thread(self.provider.direct, name, limit or self.search_limit)
