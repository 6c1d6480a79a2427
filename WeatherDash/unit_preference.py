"""Persisted metric/imperial display preference."""
import logging

from key_value_cache import KeyValueCache

UNIT_PREFERENCE_KEY = "until_toggle"


class UnitPreference:
    """Remembers whether temperatures are shown in Celsius or Fahrenheit."""

    def __init__(self, cache: KeyValueCache, key: str = UNIT_PREFERENCE_KEY):
        self.cache = cache
        self.key = key

    def get(self) -> str:
        saved = self.cache.get(self.key)
        if isinstance(saved, dict) and saved.get("value") in ("metric", "imperial"):
            return saved["value"]
        if saved is not None:
            logging.debug(f"Ignoring malformed unit preference: {saved!r}")
        return "metric"

    def set(self, unit: str) -> None:
        if unit not in ("metric", "imperial"):
            raise ValueError(f"Unknown unit system '{unit}'")
        # state is the toggle position: True means imperial
        self.cache.set(self.key, {"state": unit == "imperial", "value": unit})

    def toggle(self) -> str:
        unit = "imperial" if self.get() == "metric" else "metric"
        self.set(unit)
        return unit
