"""Tests for location resolver."""
import asyncio

import pytest

from conftest import HUE, MockGeocoder
from location_resolver import LocationResolver
from weather_data import Coordinates, LocationInfo
from weather_provider import InvalidCredentials, InvalidInput, NotFound, RateLimited


def test_resolve_by_name_first_match_wins():
    """Test that the first provider match is used as-is."""
    other = LocationInfo("Hue", {}, "CN", Coordinates(36.07, 120.38))
    geocoder = MockGeocoder(places=[HUE, other])
    resolver = LocationResolver(geocoder)

    location = asyncio.run(resolver.resolve_by_name("Huế"))

    assert location == HUE
    assert geocoder.direct_calls == [("Huế", 1)]


def test_resolve_by_name_with_country_hint():
    geocoder = MockGeocoder()
    asyncio.run(LocationResolver(geocoder).resolve_by_name("  Huế ", "VN"))
    assert geocoder.direct_calls == [("Huế,VN", 1)]


def test_resolve_by_name_blank():
    geocoder = MockGeocoder()
    with pytest.raises(InvalidInput):
        asyncio.run(LocationResolver(geocoder).resolve_by_name("   "))
    assert geocoder.direct_calls == []


def test_resolve_by_name_not_found():
    with pytest.raises(NotFound):
        asyncio.run(LocationResolver(MockGeocoder(places=[])).resolve_by_name("Atlantis"))


@pytest.mark.parametrize("error", [InvalidCredentials("401"), RateLimited("429")])
def test_resolve_by_name_propagates_provider_errors(error):
    with pytest.raises(type(error)):
        asyncio.run(LocationResolver(MockGeocoder(raise_error=error)).resolve_by_name("Huế"))


def test_resolve_by_coordinates():
    geocoder = MockGeocoder()
    location = asyncio.run(LocationResolver(geocoder).resolve_by_coordinates(Coordinates(16.46, 107.59)))
    assert location.canonical_name == "Hue"
    assert geocoder.reverse_calls == [(16.46, 107.59, 1)]


def test_resolve_by_coordinates_out_of_range():
    geocoder = MockGeocoder()
    with pytest.raises(InvalidInput):
        asyncio.run(LocationResolver(geocoder).resolve_by_coordinates(Coordinates(91.0, 0.0)))
    with pytest.raises(InvalidInput):
        asyncio.run(LocationResolver(geocoder).resolve_by_coordinates(Coordinates(0.0, -180.1)))
    assert geocoder.reverse_calls == []


def test_resolve_by_coordinates_not_found():
    with pytest.raises(NotFound):
        asyncio.run(LocationResolver(MockGeocoder(places=[])).resolve_by_coordinates(Coordinates(0.0, 0.0)))


def test_search_returns_all_candidates():
    other = LocationInfo("Hue", {}, "CN", Coordinates(36.07, 120.38))
    geocoder = MockGeocoder(places=[HUE, other])
    places = asyncio.run(LocationResolver(geocoder, search_limit=5).search("Hue"))
    assert places == [HUE, other]
    assert geocoder.direct_calls == [("Hue", 5)]


def test_search_blank_makes_no_call():
    geocoder = MockGeocoder()
    assert asyncio.run(LocationResolver(geocoder).search("")) == []
    assert geocoder.direct_calls == []
