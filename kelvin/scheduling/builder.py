"""Build daily schedules from configuration and sun times."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import NamedTuple, Optional, Protocol

from loguru import logger

from kelvin.errors import ConfigurationError
from kelvin.models import LightState
from .interval import Interval
from .schedule import Schedule


class SunTimes(NamedTuple):
    """Sunrise and sunset of one day."""

    sunrise: time
    sunset: time


class SunTimesProvider(Protocol):
    """Anything able to tell sunrise and sunset for a day."""

    def sun_times(self, day: date) -> SunTimes:
        ...


def parse_time(value) -> time:
    """Parse "HH:MM" (or an already parsed time) into a time."""
    if isinstance(value, time):
        return value
    try:
        hour, minute = map(int, str(value).split(":"))
        return time(hour=hour, minute=minute)
    except ValueError as e:
        raise ConfigurationError(f"Invalid time format: {value!r}") from e


class FixedSunTimes:
    """Sun times taken from the `location` configuration block."""

    def __init__(self, sunrise: str = "07:00", sunset: str = "19:00"):
        self.sunrise = parse_time(sunrise)
        self.sunset = parse_time(sunset)

    def sun_times(self, day: date) -> SunTimes:
        return SunTimes(self.sunrise, self.sunset)


@dataclass(frozen=True)
class TimedLightState:
    """A light state pinned to a time of day."""

    time: time
    state: LightState

    @classmethod
    def from_dict(cls, data: dict) -> "TimedLightState":
        return cls(
            time=parse_time(data["time"]),
            state=LightState.from_config(
                data.get("color_temperature", -1), data.get("brightness", -1)
            ),
        )


@dataclass
class ScheduleConfig:
    """One `schedules` entry of the configuration file."""

    name: str
    light_ids: list[str] = field(default_factory=list)
    enable_when_lights_appear: bool = False
    default_color_temperature: int = 2750
    default_brightness: int = 100
    before_sunrise: list[TimedLightState] = field(default_factory=list)
    after_sunset: list[TimedLightState] = field(default_factory=list)

    @property
    def default_state(self) -> LightState:
        return LightState.from_config(
            self.default_color_temperature, self.default_brightness
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleConfig":
        """Create a ScheduleConfig from a parsed YAML block."""
        if "name" not in data:
            raise ConfigurationError("Schedule without a name")
        try:
            return cls(
                name=data["name"],
                light_ids=[str(light_id) for light_id in data.get("lights", [])],
                enable_when_lights_appear=bool(
                    data.get("enable_when_lights_appear", False)
                ),
                default_color_temperature=int(data.get("default_color_temperature", 2750)),
                default_brightness=int(data.get("default_brightness", 100)),
                before_sunrise=[
                    TimedLightState.from_dict(entry)
                    for entry in data.get("before_sunrise") or []
                ],
                after_sunset=[
                    TimedLightState.from_dict(entry)
                    for entry in data.get("after_sunset") or []
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid schedule {data.get('name')}: {e}") from e


def build_schedule(
    config: ScheduleConfig,
    sun_times: SunTimes,
    day: Optional[date] = None,
) -> Schedule:
    """
    Build the schedule of a single day.

    The day runs through the before-sunrise entries, sunrise and sunset at
    the default state and the after-sunset entries. The night wraps around
    midnight: the state of the last entry is held until the end of the day
    and fades into the first entry from midnight on.

    Args:
        config: Schedule configuration
        sun_times: Sunrise and sunset of `day`
        day: Day the schedule is valid for (defaults to today)

    Returns:
        The built Schedule.
    """
    day = day or datetime.now().date()
    sunrise, sunset = sun_times
    if sunrise >= sunset:
        raise ConfigurationError(
            f"Schedule {config.name}: sunrise {sunrise:%H:%M} is not before sunset {sunset:%H:%M}"
        )

    default_state = config.default_state
    timestamps = sorted(
        (entry for entry in config.before_sunrise if entry.time < sunrise),
        key=lambda entry: entry.time,
    )
    timestamps.append(TimedLightState(sunrise, default_state))
    timestamps.append(TimedLightState(sunset, default_state))
    timestamps.extend(
        sorted(
            (entry for entry in config.after_sunset if entry.time > sunset),
            key=lambda entry: entry.time,
        )
    )

    unique = [timestamps[0]]
    for entry in timestamps[1:]:
        if entry.time != unique[-1].time:
            unique.append(entry)

    first, last = unique[0], unique[-1]
    intervals = []
    if first.time > time.min:
        intervals.append(Interval(time.min, first.time, last.state, first.state))
    for current, following in zip(unique, unique[1:]):
        intervals.append(
            Interval(current.time, following.time, current.state, following.state)
        )
    intervals.append(Interval(last.time, time.max, last.state, last.state))

    schedule = Schedule(
        sunrise=sunrise,
        sunset=sunset,
        end_of_day=day,
        enable_when_lights_appear=config.enable_when_lights_appear,
        intervals=tuple(intervals),
        name=config.name,
    )
    logger.debug(
        f"Built schedule '{config.name}' for {day:%b %d %Y} with {len(intervals)} intervals"
    )
    return schedule
