"""Device position capability with a bounded wait."""
import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional

from weather_data import Coordinates
from weather_provider import LocationUnavailable

DEFAULT_LOCATION_TIMEOUT = 10.0


class DeviceLocator(ABC):
    """Abstract source of the device's current position."""

    @abstractmethod
    async def current_position(self, high_accuracy: bool = True) -> Coordinates:
        """
        Obtain the current position.

        Raises:
            LocationUnavailable: Permission denied or no position available
        """
        pass


class StaticLocator(DeviceLocator):
    """Always reports the same fixed position."""

    def __init__(self, coords: Coordinates):
        self.coords = coords

    async def current_position(self, high_accuracy: bool = True) -> Coordinates:
        return self.coords


class EnvironmentLocator(DeviceLocator):
    """Reads the position from WEATHER_LAT / WEATHER_LON."""

    def __init__(self, lat_var: str = "WEATHER_LAT", lon_var: str = "WEATHER_LON"):
        self.lat_var = lat_var
        self.lon_var = lon_var

    async def current_position(self, high_accuracy: bool = True) -> Coordinates:
        lat = os.getenv(self.lat_var)
        lon = os.getenv(self.lon_var)
        if not lat or not lon:
            raise LocationUnavailable(f"Location permission denied: {self.lat_var}/{self.lon_var} not set")
        try:
            coords = Coordinates(latitude=float(lat), longitude=float(lon))
        except ValueError as exc:
            raise LocationUnavailable(f"Invalid coordinates: {exc}") from exc
        if not coords.is_valid():
            raise LocationUnavailable(f"Coordinates out of range: {lat}, {lon}")
        return coords


async def get_device_location(
    locator: DeviceLocator,
    timeout: Optional[float] = DEFAULT_LOCATION_TIMEOUT,
) -> Coordinates:
    """Ask `locator` for a high-accuracy position, failing with LocationUnavailable after `timeout` seconds."""
    try:
        coords = await asyncio.wait_for(locator.current_position(high_accuracy=True), timeout)
    except asyncio.TimeoutError as exc:
        logging.warning(f"No device position within {timeout}s")
        raise LocationUnavailable(f"Timed out after {timeout}s waiting for device position") from exc
    logging.info(f"Device position: {coords.latitude}, {coords.longitude}")
    return coords
