"""Interval and schedule model."""

from .builder import FixedSunTimes, ScheduleConfig, SunTimes, build_schedule
from .interval import Interval
from .schedule import Schedule

__all__ = [
    "FixedSunTimes",
    "Interval",
    "Schedule",
    "ScheduleConfig",
    "SunTimes",
    "build_schedule",
]
