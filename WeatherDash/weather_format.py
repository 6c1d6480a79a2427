"""Presentation helpers for weather values - pure functions for testability."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from recent_locations import RecentCityWeather
    from weather_data import CompositeWeatherResult


@dataclass(frozen=True)
class AirQualityLevel:
    """Display information for an air quality index."""
    index: Optional[int]
    label: str
    description: str
    color: str


# OpenWeather AQI scale, 1 = good .. 5 = very poor
_AQI_LEVELS = {
    1: ("Tốt", "Good", "Không khí trong lành",
        "Air quality is considered satisfactory", "#009966"),
    2: ("Khá", "Fair", "Chấp Nhận Được",
        "Acceptable air quality. Some pollutants may slightly affect very sensitive people", "#FFDE33"),
    3: ("Trung bình", "Moderate", "Nhạy cảm nên hạn chế ra ngoài",
        "May cause problems for people who are sensitive to air pollution", "#FF9933"),
    4: ("Kém", "Poor", "Có hại cho sức khỏe",
        "Unhealthy for sensitive groups. May cause health effects", "#CC0033"),
    5: ("Rất kém", "Very Poor", "Nguy hiểm",
        "Health alert: Everyone may experience more serious health effects", "#660099"),
}

_WIND_DIRECTIONS_VI = [
    "Bắc", "Bắc Đông Bắc", "Đông Bắc", "Đông Đông Bắc",
    "Đông", "Đông Đông Nam", "Đông Nam", "Nam Đông Nam",
    "Nam", "Nam Tây Nam", "Tây Nam", "Tây Tây Nam",
    "Tây", "Tây Tây Bắc", "Tây Bắc", "Bắc Tây Bắc",
]

_WIND_DIRECTIONS_EN = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def celsius_to_fahrenheit(temp_c: float) -> float:
    return temp_c * 9.0 / 5.0 + 32.0


def convert_temperature(temp_c: float, unit: str = "metric") -> float:
    """
    Convert a stored Celsius temperature for display.

    Args:
        temp_c: Temperature in Celsius
        unit: "metric" (unchanged) or "imperial" (Fahrenheit)
    """
    if unit == "imperial":
        return celsius_to_fahrenheit(temp_c)
    return temp_c


def format_temperature(temp_c: float, unit: str = "metric") -> str:
    symbol = "°F" if unit == "imperial" else "°C"
    return f"{convert_temperature(temp_c, unit):.1f}{symbol}"


def wind_speed_kmh(speed_mps: float) -> float:
    return speed_mps * 3.6


def get_air_quality_level(index: Optional[int], lang: str = "vi") -> AirQualityLevel:
    """
    Label, description and color for an AQI value.

    Unknown values get a neutral grey "unknown" level.
    """
    detail = _AQI_LEVELS.get(index) if index is not None else None
    if detail is None:
        label = "Unknown" if lang == "en" else "Không xác định"
        return AirQualityLevel(index=None, label=label, description="", color="#999")
    label_vi, label_en, desc_vi, desc_en, color = detail
    if lang == "en":
        return AirQualityLevel(index=index, label=label_en, description=desc_en, color=color)
    return AirQualityLevel(index=index, label=label_vi, description=desc_vi, color=color)


def get_wind_direction(degree: float, lang: str = "vi") -> str:
    """16-point compass direction for a meteorological wind bearing."""
    directions = _WIND_DIRECTIONS_EN if lang == "en" else _WIND_DIRECTIONS_VI
    index = round((degree % 360) / 22.5) % 16
    return directions[index]


def is_night_time(current: int, sunrise: Optional[int], sunset: Optional[int]) -> bool:
    if sunrise is None or sunset is None:
        return False
    return current < sunrise or current > sunset


def format_time(timestamp: Optional[int], tz_offset: int = 0) -> str:
    """HH:MM for a UNIX timestamp shifted by the location's UTC offset in seconds."""
    if not timestamp:
        return ""
    local = datetime.fromtimestamp(timestamp, tz=timezone(timedelta(seconds=tz_offset)))
    return local.strftime("%H:%M")


def get_condition_text(condition_main: str) -> str:
    """
    Get short text representation of weather condition.

    Args:
        condition_main: Provider condition group (e.g., "Clouds", "Rain")

    Returns:
        Short condition string (e.g., "Cloudy", "Rain", "Clear")
    """
    main = condition_main.lower()

    condition_map = {
        "clear": "Clear",
        "clouds": "Cloudy",
        "rain": "Rain",
        "drizzle": "Drizzle",
        "thunderstorm": "Storm",
        "snow": "Snow",
        "mist": "Mist",
        "fog": "Fog",
        "haze": "Haze",
    }

    return condition_map.get(main, condition_main.capitalize())


def format_dashboard(
    result: "CompositeWeatherResult",
    unit: str = "metric",
    lang: str = "vi",
    now_ms: Optional[int] = None,
    ttl_ms: int = 3_600_000,
    hours: int = 10,
    days: int = 7,
) -> List[str]:
    """
    Text lines for one composite result, top to bottom.

    When `now_ms` is given and the result is older than `ttl_ms`, the
    update line is marked stale.
    """
    weather = result.weather
    current = weather.current
    offset = weather.timezone_offset
    lines = []

    name = result.location.display_name(lang) or "Unknown Location"
    if result.location.country_code:
        name = f"{name}, {result.location.country_code}"
    lines.append(name)

    updated = format_time(result.fetched_at_ms // 1000, offset) if result.fetched_at_ms else "?"
    stale = now_ms is not None and result.age_seconds(now_ms) * 1000 >= ttl_ms
    lines.append(f"Updated {updated}" + (" (stale)" if stale else ""))

    today = weather.daily[0] if weather.daily else None
    temp_line = f"{format_temperature(current.temperature, unit)}  {current.condition_description or get_condition_text(current.condition_main)}"
    if today is not None:
        temp_line += f"  H {format_temperature(today.temp_max, unit)} L {format_temperature(today.temp_min, unit)}"
    lines.append(temp_line)

    wind = f"Wind {wind_speed_kmh(current.wind_speed):.1f} km/h"
    if current.wind_deg is not None:
        wind += f" {get_wind_direction(current.wind_deg, lang)}"
    lines.append(f"Feels {format_temperature(current.feels_like, unit)}  Hum {int(current.humidity)}%  {wind}")

    if current.sunrise and current.sunset:
        sun = f"Sunrise {format_time(current.sunrise, offset)}  Sunset {format_time(current.sunset, offset)}"
        if is_night_time(current.observed_at, current.sunrise, current.sunset):
            sun += "  (night)"
        lines.append(sun)

    if weather.hourly:
        lines.append("Hourly: " + "  ".join(
            f"{format_time(h.observed_at, offset)} {format_temperature(h.temperature, unit)}"
            for h in weather.hourly[:hours]
        ))

    for day in weather.daily[:days]:
        date = datetime.fromtimestamp(day.observed_at, tz=timezone(timedelta(seconds=offset))).strftime("%a %d/%m")
        lines.append(
            f"{date}  {format_temperature(day.temp_min, unit)} .. {format_temperature(day.temp_max, unit)}"
            f"  rain {day.precipitation_probability * 100:.0f}%"
        )

    if result.air_quality is not None:
        level = get_air_quality_level(result.air_quality.index, lang)
        components = result.air_quality.components
        parts = [f"{k.upper().replace('_', '.')} {components[k]}" for k in ("pm2_5", "pm10", "no2", "o3") if k in components]
        lines.append(f"AQI {result.air_quality.index} {level.label}  " + "  ".join(parts))
    else:
        lines.append("AQI n/a")

    for alert in weather.alerts:
        lines.append(f"ALERT {alert.event} ({alert.sender}) {format_time(alert.start, offset)}-{format_time(alert.end, offset)}")

    return lines


def format_recent_panel(panel: List["RecentCityWeather"], unit: str = "metric", lang: str = "vi") -> List[str]:
    """One line per recent city; failed fetches show '--'."""
    lines = []
    for item in panel:
        if item.weather is None:
            lines.append(f"{item.city}  --")
        else:
            name = item.weather.location.display_name(lang) or item.city
            lines.append(f"{name}  {format_temperature(item.weather.weather.current.temperature, unit)}")
    return lines
