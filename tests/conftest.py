"""Shared fixtures for kelvin tests."""

from datetime import date, datetime, time
from typing import Optional

import pytest

from kelvin.errors import BulbReadError, BulbWriteError
from kelvin.lights import Light
from kelvin.models import LightState
from kelvin.scheduling import Interval, Schedule

DAY = date(2024, 3, 12)


def at(hour: int, minute: int = 0) -> datetime:
    """A datetime on the test day."""
    return datetime.combine(DAY, time(hour, minute))


class FakeBulb:
    """In-memory bulb following the collaborator contract of Light."""

    def __init__(self, reachable=True, on=True, color_temperature=None, brightness=None):
        self.reachable = reachable
        self.on = on
        self.color_temperature = color_temperature
        self.brightness = brightness
        self.written: Optional[tuple] = None
        self.writes: list[tuple] = []
        self.fail_writes = False
        self.fail_reads = False

    def refresh_current_state(self):
        if self.fail_reads:
            raise BulbReadError("1", "timeout")
        return self.reachable, self.on

    def has_state(self, color_temperature, brightness):
        if color_temperature is not None and color_temperature != self.color_temperature:
            return False
        if brightness is not None and brightness != self.brightness:
            return False
        return True

    def has_changed(self):
        if self.written is None:
            return False
        return not self.has_state(*self.written)

    def set_state(self, color_temperature, brightness):
        if self.fail_writes:
            raise BulbWriteError("1", "bridge rejected command")
        if color_temperature is None and brightness is None:
            return False
        self.writes.append((color_temperature, brightness))
        self.written = (color_temperature, brightness)
        if color_temperature is not None:
            self.color_temperature = color_temperature
        if brightness is not None:
            self.brightness = brightness
        return True

    def touch(self, color_temperature=None, brightness=None):
        """Simulate somebody using a switch or an app."""
        if color_temperature is not None:
            self.color_temperature = color_temperature
        if brightness is not None:
            self.brightness = brightness


def make_schedule(enable_when_lights_appear=False, start_state=None, end_state=None) -> Schedule:
    """A schedule with a single 06:00-22:00 interval."""
    interval = Interval(
        time(6, 0),
        time(22, 0),
        start_state or LightState(2700, 10),
        end_state or LightState(5500, 100),
    )
    return Schedule(
        sunrise=time(7, 0),
        sunset=time(19, 0),
        end_of_day=DAY,
        enable_when_lights_appear=enable_when_lights_appear,
        intervals=(interval,),
    )


@pytest.fixture
def bulb():
    return FakeBulb()


@pytest.fixture
def events():
    return []


@pytest.fixture
def light(bulb, events):
    return Light("1", "Desk", bulb, listeners=[events.append])
