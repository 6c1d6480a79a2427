"""OpenWeather geocoding, One Call and air pollution API provider implementation."""
import logging
from typing import Any, Dict, List, Optional

import requests

from weather_data import (
    AirQuality,
    Coordinates,
    CurrentConditions,
    DailyForecast,
    HourlyForecast,
    LocationInfo,
    WeatherAlert,
    WeatherSnapshot,
)
from weather_provider import (
    AirQualityProviderBase,
    ForecastProviderBase,
    GeocodingProviderBase,
    UpstreamError,
    WeatherProviderError,
    error_for_status,
)


class OpenWeatherProvider(GeocodingProviderBase, ForecastProviderBase, AirQualityProviderBase):
    """
    Provider for the three OpenWeather APIs the dashboard consumes.

    Geocoding: https://openweathermap.org/api/geocoding-api
    One Call 3.0: https://openweathermap.org/api/one-call-3
    Air pollution: https://openweathermap.org/api/air-pollution

    Forecasts are always requested in metric units; conversion to
    Fahrenheit is left to the presentation layer.
    """

    GEO_DIRECT_URL = "https://api.openweathermap.org/geo/1.0/direct"
    GEO_REVERSE_URL = "https://api.openweathermap.org/geo/1.0/reverse"
    ONECALL_URL = "https://api.openweathermap.org/data/3.0/onecall"
    AIR_POLLUTION_URL = "https://api.openweathermap.org/data/2.5/air_pollution"

    def __init__(self, api_key: str, lang: str = "vi", timeout: int = 10):
        """
        Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key
            lang: Language code for condition descriptions (e.g., "vi", "en")
            timeout: HTTP request timeout in seconds
        """
        self.api_key = api_key
        self.lang = lang
        self.timeout = timeout

    def direct(self, query: str, limit: int = 1) -> List[LocationInfo]:
        data = self._get(self.GEO_DIRECT_URL, {"q": query, "limit": limit})
        if not isinstance(data, list):
            raise UpstreamError("Geocoding response is not a list")
        return [parse_location(item) for item in data]

    def reverse(self, lat: float, lon: float, limit: int = 1) -> List[LocationInfo]:
        data = self._get(self.GEO_REVERSE_URL, {"lat": lat, "lon": lon, "limit": limit})
        if not isinstance(data, list):
            raise UpstreamError("Reverse geocoding response is not a list")
        return [parse_location(item) for item in data]

    def get_forecast(self, lat: float, lon: float) -> WeatherSnapshot:
        data = self._get(
            self.ONECALL_URL,
            {"lat": lat, "lon": lon, "units": "metric", "lang": self.lang},
        )
        snapshot = parse_forecast(data)
        logging.info(
            f"Parsed forecast: {snapshot.current.temperature}°C, "
            f"{len(snapshot.hourly)} hours, {len(snapshot.daily)} days, {len(snapshot.alerts)} alerts"
        )
        return snapshot

    def get_air_pollution(self, lat: float, lon: float) -> AirQuality:
        data = self._get(self.AIR_POLLUTION_URL, {"lat": lat, "lon": lon})
        return parse_air_quality(data)

    def _get(self, url: str, params: Dict[str, Any]) -> Any:
        """GET `url` with the API key appended; returns decoded JSON or raises a provider error."""
        try:
            logging.info(f"Making OpenWeather API request: {url}")
            logging.debug(f"Request parameters: {params}")

            response = requests.get(url, params={**params, "appid": self.api_key}, timeout=self.timeout)

            logging.info(f"API response status: {response.status_code}")

            if not response.ok:
                logging.error(f"API request failed with status {response.status_code}")
                self._handle_error_response(response)

            data = response.json()
            logging.debug(f"API response (truncated): {str(data)[:500]}...")
            return data

        except WeatherProviderError:
            raise
        except ValueError as e:
            logging.error(f"Failed to decode API response: {e}", exc_info=True)
            raise UpstreamError(f"Failed to parse response: {str(e)}") from e
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise UpstreamError(f"Network error: {str(e)}") from e

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from OpenWeather error response."""
        try:
            error_data = response.json()
        except ValueError:
            # Not JSON, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {response.status_code}, body: {response.text[:500]}")
            raise error_for_status(response.status_code, f"HTTP {response.status_code}: {response.text[:200]}")

        logging.error(f"OpenWeather API error response: {error_data}")
        message = error_data.get("message", "Unknown error") if isinstance(error_data, dict) else "Unknown error"
        raise error_for_status(response.status_code, f"OpenWeather API error {response.status_code}: {message}")


def parse_location(item: Dict[str, Any]) -> LocationInfo:
    """Map a geocoding record ({name, local_names, lat, lon, country, state}) to LocationInfo."""
    try:
        local_names = item.get("local_names")
        return LocationInfo(
            canonical_name=item.get("name", ""),
            localized_names=dict(local_names) if local_names else {},
            country_code=item.get("country", ""),
            coordinates=Coordinates(latitude=float(item["lat"]), longitude=float(item["lon"])),
            state=item.get("state"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"Failed to parse geocoding record: {e}") from e


def _first_condition(block: Dict[str, Any]) -> Dict[str, Any]:
    weather = block.get("weather") or [{}]
    return weather[0]


def _parse_current(current: Dict[str, Any]) -> CurrentConditions:
    condition = _first_condition(current)
    return CurrentConditions(
        temperature=current["temp"],
        feels_like=current.get("feels_like", current["temp"]),
        humidity=current.get("humidity", 0.0),
        wind_speed=current.get("wind_speed", 0.0),
        cloudiness=current.get("clouds"),
        sunrise=current.get("sunrise"),
        sunset=current.get("sunset"),
        condition_code=condition.get("id", 0),
        observed_at=current.get("dt", 0),
        condition_main=condition.get("main", "Unknown"),
        condition_description=condition.get("description", ""),
        icon=condition.get("icon"),
        wind_deg=current.get("wind_deg"),
        pressure=current.get("pressure"),
        uvi=current.get("uvi"),
        visibility=current.get("visibility"),
    )


def _parse_hour(hour: Dict[str, Any]) -> HourlyForecast:
    condition = _first_condition(hour)
    return HourlyForecast(
        observed_at=hour["dt"],
        temperature=hour["temp"],
        feels_like=hour.get("feels_like"),
        humidity=hour.get("humidity"),
        wind_speed=hour.get("wind_speed"),
        precipitation_probability=hour.get("pop", 0.0),
        condition_code=condition.get("id"),
        condition_main=condition.get("main", ""),
        icon=condition.get("icon"),
    )


def _parse_day(day: Dict[str, Any]) -> DailyForecast:
    condition = _first_condition(day)
    temp = day["temp"]
    return DailyForecast(
        observed_at=day["dt"],
        temp_min=temp["min"],
        temp_max=temp["max"],
        temp_day=temp.get("day", (temp["min"] + temp["max"]) / 2),
        precipitation_probability=day.get("pop", 0.0),
        sunrise=day.get("sunrise"),
        sunset=day.get("sunset"),
        condition_code=condition.get("id"),
        condition_main=condition.get("main", ""),
        summary=day.get("summary"),
        icon=condition.get("icon"),
    )


def _parse_alert(alert: Dict[str, Any]) -> WeatherAlert:
    return WeatherAlert(
        sender=alert.get("sender_name", ""),
        event=alert.get("event", ""),
        start=alert.get("start", 0),
        end=alert.get("end", 0),
        description=alert.get("description", ""),
        tags=list(alert.get("tags", [])),
    )


def parse_forecast(data: Dict[str, Any]) -> WeatherSnapshot:
    """Map a One Call response to a WeatherSnapshot."""
    try:
        current = data.get("current")
        if not current:
            raise UpstreamError("Response missing 'current' block")
        return WeatherSnapshot(
            current=_parse_current(current),
            hourly=[_parse_hour(h) for h in data.get("hourly", [])],
            daily=[_parse_day(d) for d in data.get("daily", [])],
            alerts=[_parse_alert(a) for a in data.get("alerts", [])],
            timezone=data.get("timezone", "UTC"),
            timezone_offset=data.get("timezone_offset", 0),
        )
    except (KeyError, TypeError, AttributeError) as e:
        logging.error(f"Failed to parse forecast response: {e}", exc_info=True)
        raise UpstreamError(f"Failed to parse response: {str(e)}") from e


def parse_air_quality(data: Dict[str, Any]) -> AirQuality:
    """Map an air pollution response ({list: [{main: {aqi}, components, dt}]}) to AirQuality."""
    try:
        entries: Optional[list] = data.get("list")
        if not entries:
            raise UpstreamError("Response missing 'list' array")
        first = entries[0]
        return AirQuality(
            index=int(first["main"]["aqi"]),
            components=dict(first.get("components", {})),
            observed_at=first.get("dt"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"Failed to parse air pollution response: {e}") from e
