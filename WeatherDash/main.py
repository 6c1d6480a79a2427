"""Text weather dashboard: current conditions, forecast, air quality and recent cities."""
import argparse
import asyncio
import logging
import os
import sys
import time
from typing import List, Optional

from dotenv import load_dotenv

from device_location import DEFAULT_LOCATION_TIMEOUT, EnvironmentLocator
from key_value_cache import JsonFileStore, KeyValueCache
from location_resolver import LocationResolver
from openweather_provider import OpenWeatherProvider
from recent_locations import RecentLocations, load_recent_weather
from unit_preference import UnitPreference
from weather_data import Coordinates
from weather_fetcher import WeatherFetcher
from weather_format import format_dashboard, format_recent_panel
from weather_provider import InvalidCredentials, InvalidInput, NotFound, WeatherProviderError
from weather_service import CACHE_TTL_MS, CachedWeatherQuery

DEFAULT_CACHE_FILE = os.path.join("~", ".weatherdash", "cache.json")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Weather dashboard")
    parser.add_argument("--city", help="Place name, e.g. 'Huế'")
    parser.add_argument("--country", help="ISO country code to narrow the place name, e.g. VN")
    parser.add_argument("--lat", type=float)
    parser.add_argument("--lon", type=float)
    parser.add_argument("--units", choices=["metric", "imperial"], help="Defaults to the saved preference")
    parser.add_argument("--toggle-units", action="store_true", help="Flip and save the unit preference")
    parser.add_argument("--recent", action="store_true", help="Show the recently viewed cities panel")
    parser.add_argument("--search", help="List places matching a name and exit")
    parser.add_argument("--cache-file", default=None)
    parser.add_argument("--cache-ttl", type=int, default=CACHE_TTL_MS // 1000, help="Cache lifetime in seconds")
    parser.add_argument("--timeout", type=int, default=10, help="HTTP timeout in seconds")
    parser.add_argument("--location-timeout", type=float, default=DEFAULT_LOCATION_TIMEOUT)
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[str], verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    # stdout carries the dashboard, so logs go to stderr
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def load_config() -> tuple:
    load_dotenv()
    api_key = os.getenv("WEATHER_API_KEY")
    lang = os.getenv("WEATHER_LANG", "vi")
    cache_file = os.getenv("WEATHER_CACHE_FILE", DEFAULT_CACHE_FILE)

    if not api_key:
        raise SystemExit("Missing WEATHER_API_KEY in environment")

    logging.info("Configuration loaded: lang=%s cache=%s", lang, cache_file)
    return api_key, lang, cache_file


def build_query_service(
    api_key: str,
    lang: str,
    cache: KeyValueCache,
    args: argparse.Namespace,
) -> CachedWeatherQuery:
    provider = OpenWeatherProvider(api_key=api_key, lang=lang, timeout=args.timeout)
    resolver = LocationResolver(provider)
    fetcher = WeatherFetcher(provider, provider, resolver)
    service = CachedWeatherQuery(
        cache=cache,
        resolver=resolver,
        fetcher=fetcher,
        recent=RecentLocations(cache),
        ttl_ms=args.cache_ttl * 1000,
    )
    logging.info("Weather service ready (cache ttl=%ss)", args.cache_ttl)
    return service


async def run_dashboard(service: CachedWeatherQuery, args: argparse.Namespace, unit: str, lang: str) -> None:
    if args.search:
        matches = await service.resolver.search(args.search)
        if not matches:
            print("No places found.")
        for i, place in enumerate(matches, 1):
            state = f", {place.state}" if place.state else ""
            print(f"  {i}. {place.display_name(lang)}{state}, {place.country_code}  "
                  f"({place.coordinates.latitude:.4f}, {place.coordinates.longitude:.4f})")
        return

    if args.city:
        result = await service.query_by_name(args.city, unit, country_hint=args.country)
    elif args.lat is not None and args.lon is not None:
        result = await service.query_by_coordinates(Coordinates(args.lat, args.lon), unit)
    else:
        result = await service.query_device_location(EnvironmentLocator(), unit, args.location_timeout)

    now_ms = int(time.time() * 1000)
    for line in format_dashboard(result, unit=unit, lang=lang, now_ms=now_ms, ttl_ms=service.ttl_ms):
        print(line)

    if args.recent and service.recent is not None:
        print()
        print("Recent cities")
        panel = await load_recent_weather(service.recent, service, unit)
        for line in format_recent_panel(panel, unit=unit, lang=lang):
            print(f"  {line}")


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    api_key, lang, cache_file = load_config()

    cache = KeyValueCache(JsonFileStore(args.cache_file or cache_file))
    preference = UnitPreference(cache)
    if args.toggle_units:
        logging.info("Unit preference set to %s", preference.toggle())
    unit = args.units or preference.get()

    service = build_query_service(api_key, lang, cache, args)

    try:
        asyncio.run(run_dashboard(service, args, unit, lang))
    except KeyboardInterrupt:
        logging.info("Interrupted")
    except (InvalidCredentials, InvalidInput) as err:
        logging.error("Configuration error: %s", err)
        sys.exit(1)
    except NotFound as err:
        logging.error("Place not found: %s", err)
        sys.exit(1)
    except WeatherProviderError as err:
        logging.error("Weather data unavailable, try again later: %s", err)
        sys.exit(1)


if __name__ == "__main__":
    main()
