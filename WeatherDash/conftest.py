"""Shared fixtures: sample OpenWeather payloads and fake providers."""
from datetime import datetime
from typing import List, Optional

import pytest

from key_value_cache import KeyValueCache, MemoryStore
from openweather_provider import parse_air_quality, parse_forecast
from weather_data import AirQuality, Coordinates, LocationInfo, WeatherSnapshot
from weather_provider import AirQualityProviderBase, ForecastProviderBase, GeocodingProviderBase


HUE = LocationInfo(
    canonical_name="Hue",
    localized_names={"vi": "Huế", "en": "Hue"},
    country_code="VN",
    coordinates=Coordinates(latitude=16.4637, longitude=107.5909),
)


@pytest.fixture
def sample_onecall_response():
    """Sample One Call 3.0 response (trimmed to two hours and two days)."""
    return {
        "lat": 16.4637,
        "lon": 107.5909,
        "timezone": "Asia/Ho_Chi_Minh",
        "timezone_offset": 25200,
        "current": {
            "dt": 1717218000,
            "sunrise": 1717194600,
            "sunset": 1717241400,
            "temp": 31.2,
            "feels_like": 36.4,
            "pressure": 1006,
            "humidity": 66,
            "uvi": 9.1,
            "clouds": 40,
            "visibility": 10000,
            "wind_speed": 3.6,
            "wind_deg": 90,
            "weather": [{"id": 802, "main": "Clouds", "description": "mây rải rác", "icon": "03d"}],
        },
        "hourly": [
            {
                "dt": 1717218000,
                "temp": 31.2,
                "feels_like": 36.4,
                "humidity": 66,
                "wind_speed": 3.6,
                "pop": 0.1,
                "weather": [{"id": 802, "main": "Clouds", "description": "mây rải rác", "icon": "03d"}],
            },
            {
                "dt": 1717221600,
                "temp": 32.0,
                "feels_like": 37.0,
                "humidity": 62,
                "wind_speed": 4.0,
                "pop": 0.35,
                "weather": [{"id": 500, "main": "Rain", "description": "mưa nhẹ", "icon": "10d"}],
            },
        ],
        "daily": [
            {
                "dt": 1717214400,
                "sunrise": 1717194600,
                "sunset": 1717241400,
                "summary": "Expect a day of partly cloudy with rain",
                "temp": {"day": 31.5, "min": 26.1, "max": 34.0, "night": 27.0, "eve": 30.0, "morn": 27.5},
                "pop": 0.6,
                "weather": [{"id": 500, "main": "Rain", "description": "mưa nhẹ", "icon": "10d"}],
            },
            {
                "dt": 1717300800,
                "temp": {"day": 30.2, "min": 25.8, "max": 33.1},
                "pop": 0.2,
                "weather": [{"id": 803, "main": "Clouds", "description": "mây cụm", "icon": "04d"}],
            },
        ],
        "alerts": [
            {
                "sender_name": "NCHMF",
                "event": "Heat advisory",
                "start": 1717218000,
                "end": 1717250400,
                "description": "Nắng nóng gay gắt",
                "tags": ["Extreme temperature value"],
            }
        ],
    }


@pytest.fixture
def sample_air_pollution_response():
    return {
        "coord": {"lon": 107.5909, "lat": 16.4637},
        "list": [
            {
                "main": {"aqi": 2},
                "components": {"co": 230.3, "no": 0.1, "no2": 3.2, "o3": 61.5, "so2": 1.1,
                               "pm2_5": 12.4, "pm10": 18.9, "nh3": 0.9},
                "dt": 1717218000,
            }
        ],
    }


@pytest.fixture
def sample_geocoding_response():
    return [
        {
            "name": "Hue",
            "local_names": {"vi": "Huế", "en": "Hue"},
            "lat": 16.4637,
            "lon": 107.5909,
            "country": "VN",
        },
        {
            "name": "Hue",
            "lat": 36.07,
            "lon": 120.38,
            "country": "CN",
            "state": "Shandong",
        },
    ]


@pytest.fixture
def sample_snapshot(sample_onecall_response) -> WeatherSnapshot:
    return parse_forecast(sample_onecall_response)


@pytest.fixture
def sample_air_quality(sample_air_pollution_response) -> AirQuality:
    return parse_air_quality(sample_air_pollution_response)


@pytest.fixture
def memory_cache():
    return KeyValueCache(MemoryStore())


class MockGeocoder(GeocodingProviderBase):
    """Geocoder returning canned places, or raising a canned error."""

    def __init__(self, places: Optional[List[LocationInfo]] = None, raise_error=None):
        self.places = places if places is not None else [HUE]
        self.raise_error = raise_error
        self.direct_calls = []
        self.reverse_calls = []

    def direct(self, query, limit=1):
        self.direct_calls.append((query, limit))
        if self.raise_error:
            raise self.raise_error
        return self.places[:limit]

    def reverse(self, lat, lon, limit=1):
        self.reverse_calls.append((lat, lon, limit))
        if self.raise_error:
            raise self.raise_error
        return self.places[:limit]


class MockForecastProvider(ForecastProviderBase):
    def __init__(self, snapshot=None, raise_error=None):
        self.snapshot = snapshot
        self.raise_error = raise_error
        self.call_count = 0

    def get_forecast(self, lat, lon):
        self.call_count += 1
        if self.raise_error:
            raise self.raise_error
        return self.snapshot


class MockAirQualityProvider(AirQualityProviderBase):
    def __init__(self, air_quality=None, raise_error=None):
        self.air_quality = air_quality
        self.raise_error = raise_error
        self.call_count = 0

    def get_air_pollution(self, lat, lon):
        self.call_count += 1
        if self.raise_error:
            raise self.raise_error
        return self.air_quality


class FakeClock:
    """Callable clock whose time tests set explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now
