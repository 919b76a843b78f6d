"""Event logger rendering and storing light transitions."""

from typing import Optional

from loguru import logger

from kelvin.models import EventKind, LightEvent
from .database import Database

# Target updates happen on nearly every tick and are not worth keeping
TRANSIENT_KINDS = {EventKind.TARGET_INITIALIZED, EventKind.TARGET_UPDATED}


def describe(event: LightEvent) -> str:
    """Render an event as a log message."""
    prefix = f"💡 Light {event.light_name} - "
    kind = event.kind

    if kind is EventKind.SCHEDULE_ATTACHED:
        return prefix + f"Activating schedule {event.new_value}"
    if kind is EventKind.INTERVAL_ACTIVATED:
        return prefix + f"Activating interval {event.new_value}"
    if kind is EventKind.NO_ACTIVE_INTERVAL:
        return prefix + "Light has no active interval. Ignoring..."
    if kind is EventKind.TARGET_INITIALIZED:
        return prefix + f"Initialized target light state to {event.new_value}"
    if kind is EventKind.TARGET_UPDATED:
        return prefix + f"Updated target light state to {event.new_value}"
    if kind is EventKind.APPEARED:
        return prefix + "Light just appeared."
    if kind is EventKind.UNREACHABLE:
        return prefix + "Light is no longer reachable. Clearing state..."
    if kind is EventKind.TURNED_OFF:
        return prefix + "Light was turned off. Clearing state..."
    if kind is EventKind.INITIALIZED:
        return prefix + f"Initialized state to {event.new_value}"
    if kind is EventKind.AUTOMATION_ENABLED:
        return prefix + f"Detected matching target state. Activating Kelvin at {event.new_value}"
    if kind is EventKind.MANUAL_OVERRIDE:
        return prefix + "Light state has been changed manually. Disabling Kelvin..."
    if kind is EventKind.STATE_UPDATED:
        return prefix + f"Updated light state to {event.new_value}"
    return prefix + kind.value


class EventLogger:
    """Logs light events and saves them to the database."""

    def __init__(self, database: Optional[Database] = None):
        """
        Initialize event logger.

        Args:
            database: Database instance for storage, None to only log.
        """
        self.db = database
        self._event_count = 0

    def __call__(self, event: LightEvent):
        """Handle an event; instances are registered as light listeners."""
        self.log_event(event)

    def log_event(self, event: LightEvent):
        """
        Log a single event and store it unless it is transient.

        Args:
            event: Event emitted by a light.
        """
        if event.kind in TRANSIENT_KINDS:
            logger.debug(describe(event))
            return

        logger.info(describe(event))
        self._event_count += 1
        if self.db is not None:
            self.db.add_event(event)

    @property
    def total_events_logged(self) -> int:
        """Get total number of events logged this session."""
        return self._event_count
