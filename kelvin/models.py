"""Data models for light states and light events."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import ConfigurationError

# Value accepted in configuration files for "leave this attribute alone"
IGNORE = -1


@dataclass(frozen=True)
class LightState:
    """Color temperature and brightness a light should show.

    A field set to None is ignored: it is neither compared nor written.
    """

    color_temperature: Optional[int] = None  # Kelvin
    brightness: Optional[int] = None  # 0-100 percent

    def __post_init__(self):
        if self.color_temperature is not None and self.color_temperature <= 0:
            raise ConfigurationError(
                f"Invalid color temperature {self.color_temperature}K"
            )
        if self.brightness is not None and not 0 <= self.brightness <= 100:
            raise ConfigurationError(f"Invalid brightness {self.brightness}%")

    @property
    def is_ignored(self) -> bool:
        """True if neither color temperature nor brightness should be touched."""
        return self.color_temperature is None and self.brightness is None

    @classmethod
    def from_config(cls, color_temperature: int, brightness: int) -> "LightState":
        """Create a LightState from configuration values where -1 means ignore."""
        return cls(
            color_temperature=None if color_temperature == IGNORE else color_temperature,
            brightness=None if brightness == IGNORE else brightness,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for status reports."""
        return {
            "color_temperature": self.color_temperature,
            "brightness": self.brightness,
        }

    def __str__(self) -> str:
        ct = "-" if self.color_temperature is None else f"{self.color_temperature}K"
        bri = "-" if self.brightness is None else f"{self.brightness}%"
        return f"{ct} at {bri} brightness"


class EventKind(str, Enum):
    """Transitions a light can go through."""

    SCHEDULE_ATTACHED = "schedule_attached"
    INTERVAL_ACTIVATED = "interval_activated"
    NO_ACTIVE_INTERVAL = "no_active_interval"
    TARGET_INITIALIZED = "target_initialized"
    TARGET_UPDATED = "target_updated"
    APPEARED = "appeared"
    UNREACHABLE = "unreachable"
    TURNED_OFF = "turned_off"
    INITIALIZED = "initialized"
    AUTOMATION_ENABLED = "automation_enabled"
    MANUAL_OVERRIDE = "manual_override"
    STATE_UPDATED = "state_updated"


@dataclass
class LightEvent:
    """A single transition of one light."""

    light_id: str
    light_name: str
    kind: EventKind
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "light_id": self.light_id,
            "light_name": self.light_name,
            "kind": self.kind.value,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "timestamp": self.timestamp.isoformat(),
        }
