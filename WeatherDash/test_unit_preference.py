"""Tests for the unit preference."""
import json

import pytest

from key_value_cache import KeyValueCache, MemoryStore
from unit_preference import UNIT_PREFERENCE_KEY, UnitPreference


def test_default_is_metric():
    assert UnitPreference(KeyValueCache(MemoryStore())).get() == "metric"


def test_set_and_get():
    store = MemoryStore()
    pref = UnitPreference(KeyValueCache(store))
    pref.set("imperial")

    assert pref.get() == "imperial"
    assert json.loads(store.get_item(UNIT_PREFERENCE_KEY)) == {"state": True, "value": "imperial"}


def test_toggle():
    pref = UnitPreference(KeyValueCache(MemoryStore()))
    assert pref.toggle() == "imperial"
    assert pref.toggle() == "metric"
    assert pref.get() == "metric"


def test_unknown_unit_rejected():
    with pytest.raises(ValueError):
        UnitPreference(KeyValueCache(MemoryStore())).set("kelvin")


@pytest.mark.parametrize("raw", ["not json", '"imperial"', '{"value": "kelvin"}'])
def test_malformed_preference_falls_back_to_metric(raw):
    pref = UnitPreference(KeyValueCache(MemoryStore({UNIT_PREFERENCE_KEY: raw})))
    assert pref.get() == "metric"
