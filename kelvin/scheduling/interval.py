"""Time intervals with linearly interpolated light states."""

import math
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Union

from kelvin.errors import MisconfiguredIntervalError
from kelvin.models import LightState

TimeLike = Union[datetime, time]


def seconds_since_midnight(value: TimeLike) -> float:
    """Return the time of day of `value` in seconds."""
    if isinstance(value, datetime):
        value = value.time()
    return value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1e6


def _round(value: float) -> int:
    # Half away from zero, not banker's rounding
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _interpolate(start: Optional[int], end: Optional[int], fraction: float) -> Optional[int]:
    if start is None:
        return None
    return _round(start + (end - start) * fraction)


@dataclass(frozen=True)
class Interval:
    """A window within a day, moving from start_state to end_state."""

    start: time
    end: time
    start_state: LightState
    end_state: LightState

    def __post_init__(self):
        if self.start >= self.end:
            raise MisconfiguredIntervalError(
                f"Interval start {self.start:%H:%M} is not before end {self.end:%H:%M}"
            )
        if (self.start_state.color_temperature is None) != (
            self.end_state.color_temperature is None
        ):
            raise MisconfiguredIntervalError(
                f"Interval {self} ignores color temperature on one end only"
            )
        if (self.start_state.brightness is None) != (self.end_state.brightness is None):
            raise MisconfiguredIntervalError(
                f"Interval {self} ignores brightness on one end only"
            )

    def contains(self, now: TimeLike) -> bool:
        """Check if `now` lies within [start, end)."""
        seconds = seconds_since_midnight(now)
        return seconds_since_midnight(self.start) <= seconds < seconds_since_midnight(self.end)

    def calculate_light_state_in_interval(self, now: TimeLike) -> LightState:
        """
        Interpolate the light state at `now`.

        Times outside the interval are clamped to its endpoints.

        Args:
            now: Point in time, only the time of day is used.

        Returns:
            The interpolated LightState.
        """
        start = seconds_since_midnight(self.start)
        end = seconds_since_midnight(self.end)
        fraction = (seconds_since_midnight(now) - start) / (end - start)
        fraction = max(0.0, min(1.0, fraction))

        return LightState(
            color_temperature=_interpolate(
                self.start_state.color_temperature,
                self.end_state.color_temperature,
                fraction,
            ),
            brightness=_interpolate(
                self.start_state.brightness, self.end_state.brightness, fraction
            ),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for status reports."""
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "start_state": self.start_state.to_dict(),
            "end_state": self.end_state.to_dict(),
        }

    def __str__(self) -> str:
        return f"{self.start:%H:%M} - {self.end:%H:%M}"
