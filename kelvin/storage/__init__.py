"""Data storage module."""

from .database import Database
from .event_logger import EventLogger

__all__ = ["Database", "EventLogger"]
