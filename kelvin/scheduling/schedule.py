"""A day's schedule of intervals."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Union

from kelvin.errors import ConfigurationError, NoActiveIntervalError
from .interval import Interval, TimeLike


@dataclass(frozen=True)
class Schedule:
    """Ordered, non-overlapping intervals valid for a single day."""

    sunrise: time
    sunset: time
    end_of_day: date
    enable_when_lights_appear: bool = False
    intervals: tuple[Interval, ...] = field(default_factory=tuple)
    name: str = "default"

    def __post_init__(self):
        object.__setattr__(self, "intervals", tuple(self.intervals))
        for previous, current in zip(self.intervals, self.intervals[1:]):
            if current.start < previous.end:
                raise ConfigurationError(
                    f"Schedule {self.name}: interval {current} overlaps or precedes {previous}"
                )

    def current_interval(self, now: TimeLike) -> Interval:
        """
        Find the interval containing `now`.

        Args:
            now: Point in time, only the time of day is compared.

        Returns:
            The active interval.

        Raises:
            NoActiveIntervalError: If `now` falls outside every interval.
        """
        for interval in self.intervals:
            if interval.contains(now):
                return interval

        moment = now.time() if isinstance(now, datetime) else now
        raise NoActiveIntervalError(
            f"Schedule {self.name} has no interval at {moment:%H:%M:%S}"
        )

    def is_expired(self, now: Union[datetime, date]) -> bool:
        """Check if the schedule belongs to a day before `now`."""
        day = now.date() if isinstance(now, datetime) else now
        return day > self.end_of_day
