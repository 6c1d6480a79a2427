"""Forecast, air quality and place metadata fetched and merged into one result."""
import asyncio
import logging
import time
from typing import Optional

from location_resolver import LocationResolver
from weather_data import AirQuality, CompositeWeatherResult, Coordinates, LocationInfo, WeatherSnapshot
from weather_provider import AirQualityProviderBase, ForecastProviderBase, InvalidInput, WeatherProviderError


class WeatherFetcher:
    """
    Fetches weather for coordinates from the forecast and air-quality providers.

    Air quality and reverse geocoding are best-effort enrichments: their
    failures are logged and leave the corresponding field empty. Only a
    forecast failure fails the composite fetch. Cancellation always
    propagates.
    """

    def __init__(
        self,
        forecast_provider: ForecastProviderBase,
        air_quality_provider: AirQualityProviderBase,
        resolver: LocationResolver,
    ):
        self.forecast_provider = forecast_provider
        self.air_quality_provider = air_quality_provider
        self.resolver = resolver

    async def fetch_current_and_forecast(self, coords: Coordinates) -> WeatherSnapshot:
        if not coords.is_valid():
            raise InvalidInput(f"Coordinates out of range: {coords.latitude}, {coords.longitude}")
        return await asyncio.to_thread(self.forecast_provider.get_forecast, coords.latitude, coords.longitude)

    async def fetch_air_quality(self, coords: Coordinates) -> AirQuality:
        if not coords.is_valid():
            raise InvalidInput(f"Coordinates out of range: {coords.latitude}, {coords.longitude}")
        return await asyncio.to_thread(self.air_quality_provider.get_air_pollution, coords.latitude, coords.longitude)

    async def _optional_air_quality(self, coords: Coordinates) -> Optional[AirQuality]:
        try:
            return await self.fetch_air_quality(coords)
        except WeatherProviderError as e:
            logging.warning(f"Air quality unavailable for {coords.latitude}, {coords.longitude}: {e}")
            return None

    async def _optional_location(self, coords: Coordinates) -> LocationInfo:
        try:
            return await self.resolver.resolve_by_coordinates(coords)
        except WeatherProviderError as e:
            logging.warning(f"Reverse geocoding failed for {coords.latitude}, {coords.longitude}: {e}")
            return LocationInfo(canonical_name="", localized_names=None, country_code="", coordinates=coords)

    async def fetch_composite(
        self,
        coords: Coordinates,
        location: Optional[LocationInfo] = None,
    ) -> CompositeWeatherResult:
        """
        Fetch forecast, air quality and place info concurrently and merge them.

        Args:
            coords: Where to fetch weather for
            location: Already-resolved place; when given, reverse geocoding is skipped

        Raises:
            WeatherProviderError: If the forecast fetch fails
        """
        logging.info(f"Fetching composite weather for {coords.latitude}, {coords.longitude}")
        if location is not None:
            weather, air_quality = await asyncio.gather(
                self.fetch_current_and_forecast(coords),
                self._optional_air_quality(coords),
            )
        else:
            weather, air_quality, location = await asyncio.gather(
                self.fetch_current_and_forecast(coords),
                self._optional_air_quality(coords),
                self._optional_location(coords),
            )
        return CompositeWeatherResult(
            location=location,
            weather=weather,
            air_quality=air_quality,
            fetched_at_ms=int(time.time() * 1000),
        )
