"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from typing import List, Optional

from weather_data import AirQuality, LocationInfo, WeatherSnapshot


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidInput(WeatherProviderError):
    """Empty place name or out-of-range coordinates."""


class InvalidCredentials(WeatherProviderError):
    """The provider rejected the API key (HTTP 401)."""


class RateLimited(WeatherProviderError):
    """The provider signalled quota exhaustion (HTTP 429)."""


class NotFound(WeatherProviderError):
    """The geocoding provider returned zero matches."""


class LocationUnavailable(WeatherProviderError):
    """No device position could be obtained (denied, unavailable or timed out)."""


class UpstreamError(WeatherProviderError):
    """Any other provider failure: network error, 5xx, malformed response."""


# Failures that may be answered from a stale cache entry
TRANSIENT_ERRORS = (RateLimited, UpstreamError)


def error_for_status(status_code: int, message: str) -> WeatherProviderError:
    """Map an HTTP status code to the matching provider error."""
    if status_code == 401:
        return InvalidCredentials(message, status_code)
    if status_code == 429:
        return RateLimited(message, status_code)
    return UpstreamError(message, status_code)


class GeocodingProviderBase(ABC):
    """Abstract base class for name <-> coordinates lookups."""

    @abstractmethod
    def direct(self, query: str, limit: int = 1) -> List[LocationInfo]:
        """
        Look up places matching `query` ("name" or "name,ISO-country-code").

        Returns:
            Matching places, possibly empty, in provider order

        Raises:
            WeatherProviderError: If the provider fails
        """
        pass

    @abstractmethod
    def reverse(self, lat: float, lon: float, limit: int = 1) -> List[LocationInfo]:
        """Look up places near the given coordinates."""
        pass


class ForecastProviderBase(ABC):
    """Abstract base class for current/hourly/daily forecast providers."""

    @abstractmethod
    def get_forecast(self, lat: float, lon: float) -> WeatherSnapshot:
        """
        Fetch current conditions, forecasts and alerts.

        Returns:
            WeatherSnapshot: Current conditions, hourly and daily forecasts, alerts

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass


class AirQualityProviderBase(ABC):
    """Abstract base class for air pollution providers."""

    @abstractmethod
    def get_air_pollution(self, lat: float, lon: float) -> AirQuality:
        pass
