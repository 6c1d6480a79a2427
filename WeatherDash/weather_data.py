"""Weather domain model - pure data structures independent of any API."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Coordinates:
    """Geographic position in decimal degrees."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """Check that latitude is within [-90, 90] and longitude within [-180, 180]."""
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.latitude, "lon": self.longitude}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinates":
        return cls(latitude=float(data["lat"]), longitude=float(data["lon"]))


@dataclass(frozen=True)
class LocationInfo:
    """A resolved place: name, localized names, country and coordinates."""
    canonical_name: str
    localized_names: Optional[Dict[str, str]]  # None when reverse geocoding failed
    country_code: str
    coordinates: Coordinates
    state: Optional[str] = None

    def display_name(self, lang: str = "vi") -> str:
        """Localized name for `lang` if known, otherwise the canonical name."""
        if self.localized_names and self.localized_names.get(lang):
            return self.localized_names[lang]
        return self.canonical_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.canonical_name,
            "local_names": dict(self.localized_names) if self.localized_names is not None else None,
            "country": self.country_code,
            "coord": self.coordinates.to_dict(),
            "state": self.state,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationInfo":
        local_names = data.get("local_names")
        return cls(
            canonical_name=data.get("name", ""),
            localized_names=dict(local_names) if local_names is not None else None,
            country_code=data.get("country", ""),
            coordinates=Coordinates.from_dict(data["coord"]),
            state=data.get("state"),
        )


@dataclass
class CurrentConditions:
    """Current observation. Temperatures in °C, wind in m/s, times as UNIX seconds."""
    temperature: float
    feels_like: float
    humidity: float
    wind_speed: float
    cloudiness: Optional[int]  # percentage
    sunrise: Optional[int]
    sunset: Optional[int]
    condition_code: int  # OpenWeather condition id, e.g. 500 = light rain
    observed_at: int
    condition_main: str = ""  # e.g., "Clouds", "Rain", "Clear"
    condition_description: str = ""  # e.g., "mây cụm", "mưa nhẹ"
    icon: Optional[str] = None
    wind_deg: Optional[float] = None
    pressure: Optional[float] = None
    uvi: Optional[float] = None
    visibility: Optional[int] = None


@dataclass
class HourlyForecast:
    """One hour of the forecast."""
    observed_at: int
    temperature: float
    feels_like: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    precipitation_probability: float = 0.0  # 0..1
    condition_code: Optional[int] = None
    condition_main: str = ""
    icon: Optional[str] = None


@dataclass
class DailyForecast:
    """One day of the forecast with min/max/day temperatures."""
    observed_at: int
    temp_min: float
    temp_max: float
    temp_day: float
    precipitation_probability: float = 0.0  # 0..1
    sunrise: Optional[int] = None
    sunset: Optional[int] = None
    condition_code: Optional[int] = None
    condition_main: str = ""
    summary: Optional[str] = None
    icon: Optional[str] = None


@dataclass
class WeatherAlert:
    """Government weather advisory attached to a forecast."""
    sender: str
    event: str
    start: int
    end: int
    description: str = ""
    tags: List[str] = field(default_factory=list)


@dataclass
class WeatherSnapshot:
    """Current conditions plus hourly and daily forecasts and alerts."""
    current: CurrentConditions
    hourly: List[HourlyForecast] = field(default_factory=list)
    daily: List[DailyForecast] = field(default_factory=list)
    alerts: List[WeatherAlert] = field(default_factory=list)
    timezone: str = "UTC"
    timezone_offset: int = 0  # Offset from UTC in seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": vars(self.current).copy(),
            "hourly": [vars(h).copy() for h in self.hourly],
            "daily": [vars(d).copy() for d in self.daily],
            "alerts": [{**vars(a), "tags": list(a.tags)} for a in self.alerts],
            "timezone": self.timezone,
            "timezone_offset": self.timezone_offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        return cls(
            current=CurrentConditions(**data["current"]),
            hourly=[HourlyForecast(**h) for h in data.get("hourly", [])],
            daily=[DailyForecast(**d) for d in data.get("daily", [])],
            alerts=[WeatherAlert(**a) for a in data.get("alerts", [])],
            timezone=data.get("timezone", "UTC"),
            timezone_offset=data.get("timezone_offset", 0),
        )


@dataclass
class AirQuality:
    """Air pollution index (1 = good .. 5 = very poor) and component concentrations in µg/m³."""
    index: int
    components: Dict[str, float] = field(default_factory=dict)
    observed_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"aqi": self.index, "components": dict(self.components), "dt": self.observed_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AirQuality":
        return cls(
            index=int(data["aqi"]),
            components=dict(data.get("components", {})),
            observed_at=data.get("dt"),
        )


@dataclass
class CompositeWeatherResult:
    """
    Forecast + air quality + place metadata, the unit of caching.

    fetched_at_ms is the epoch-millisecond time the payload was fetched,
    so callers can tell fresh data from a stale fallback.
    """
    location: LocationInfo
    weather: WeatherSnapshot
    air_quality: Optional[AirQuality] = None
    fetched_at_ms: int = 0

    def age_seconds(self, now_ms: int) -> float:
        return max(0, now_ms - self.fetched_at_ms) / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cityInfo": self.location.to_dict(),
            "weather": self.weather.to_dict(),
            "airPollution": self.air_quality.to_dict() if self.air_quality else None,
            "fetchedAt": self.fetched_at_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompositeWeatherResult":
        air = data.get("airPollution")
        return cls(
            location=LocationInfo.from_dict(data["cityInfo"]),
            weather=WeatherSnapshot.from_dict(data["weather"]),
            air_quality=AirQuality.from_dict(air) if air else None,
            fetched_at_ms=int(data.get("fetchedAt", 0)),
        )


@dataclass
class CacheEntry:
    """A cached payload and the epoch-millisecond time it was fetched."""
    payload: CompositeWeatherResult
    fetched_at_ms: int

    def to_dict(self) -> Dict[str, Any]:
        # Same layout the dashboard always used in local storage
        return {"data": self.payload.to_dict(), "timestamp": self.fetched_at_ms}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            payload=CompositeWeatherResult.from_dict(data["data"]),
            fetched_at_ms=int(data["timestamp"]),
        )
