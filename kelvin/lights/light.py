"""A light kelvin can automate."""

from datetime import datetime
from typing import Callable, Optional

from loguru import logger

from kelvin.errors import BulbReadError, NoActiveIntervalError
from kelvin.models import EventKind, LightEvent, LightState
from kelvin.scheduling import Interval, Schedule
from .state_machine import Observation, decide

EventListener = Callable[[LightEvent], None]


class Light:
    """
    Ties a bulb to its schedule and decides when to take or yield control.

    The bulb collaborator must provide `refresh_current_state()`,
    `has_state(color_temperature, brightness)`, `has_changed()` and
    `set_state(color_temperature, brightness)`, which returns False when
    nothing could be sent.
    """

    def __init__(
        self,
        light_id: str,
        name: str,
        hue_light,
        listeners: Optional[list[EventListener]] = None,
    ):
        """
        Initialize a light.

        Args:
            light_id: ID of the light on the bridge
            name: Human readable name
            hue_light: Bulb collaborator doing the actual I/O
            listeners: Callables receiving every LightEvent
        """
        self.light_id = str(light_id)
        self.name = name
        self.hue_light = hue_light
        self.schedule: Optional[Schedule] = None
        self.scheduled = False
        self.reachable = False
        self.on = False
        self.tracking = False
        self.automatic = False
        self.target_light_state: Optional[LightState] = None
        self.interval: Optional[Interval] = None
        self.appearance: Optional[datetime] = None
        self._listeners: list[EventListener] = list(listeners or [])

    def add_listener(self, listener: EventListener):
        """Register a callable receiving this light's events."""
        self._listeners.append(listener)

    def _emit(
        self,
        kind: EventKind,
        now: Optional[datetime] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
    ):
        event = LightEvent(
            light_id=self.light_id,
            light_name=self.name,
            kind=kind,
            old_value=old_value,
            new_value=new_value,
            timestamp=now or datetime.now(),
        )
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Light {self.name} - Listener failed on {kind.value} event: {e}")

    def refresh(self):
        """Read reachability and power state from the bulb."""
        try:
            self.reachable, self.on = self.hue_light.refresh_current_state()
        except BulbReadError as e:
            logger.warning(f"Could not read state of light {self.name}: {e}")
            self.reachable = False
            self.on = False

    def observe(self) -> Observation:
        """Snapshot the light for the state machine."""
        target = self.target_light_state
        ignored = target is None or target.is_ignored
        present = self.scheduled and self.reachable and self.on

        matches_target = False
        changed_manually = False
        if present and not ignored:
            matches_target = self.hue_light.has_state(
                target.color_temperature, target.brightness
            )
        if present and self.automatic:
            changed_manually = self.hue_light.has_changed()

        return Observation(
            scheduled=self.scheduled,
            reachable=self.reachable,
            on=self.on,
            tracking=self.tracking,
            automatic=self.automatic,
            enable_when_lights_appear=bool(
                self.schedule and self.schedule.enable_when_lights_appear
            ),
            target_ignored=ignored,
            interval_active=self.interval is not None,
            matches_target=matches_target,
            changed_manually=changed_manually,
        )

    def poll(self, now: Optional[datetime] = None) -> bool:
        """
        Run one tick of the state machine.

        Call `refresh()` before to observe the current bulb state.

        Args:
            now: Current time (defaults to now)

        Returns:
            True if a command was sent to the bulb.

        Raises:
            BulbWriteError: If writing the target state failed.
        """
        now = now or datetime.now()
        decision = decide(self.observe())

        self.tracking = decision.tracking
        if decision.appeared:
            self.appearance = now
            self._emit(EventKind.APPEARED, now)

        if not decision.writes:
            self.automatic = decision.automatic
            if decision.kind is not None:
                self._emit(decision.kind, now, old_value=self._describe_target())
            return False

        target = self.target_light_state
        # automatic keeps its old value if this raises
        written = self.hue_light.set_state(target.color_temperature, target.brightness)
        self.automatic = decision.automatic
        if written or decision.kind is not EventKind.STATE_UPDATED:
            self._emit(decision.kind, now, new_value=str(target))
        return bool(written)

    def attach_schedule(self, schedule: Schedule, now: Optional[datetime] = None):
        """Replace the schedule and recompute interval and target state."""
        now = now or datetime.now()
        self.schedule = schedule
        self.scheduled = True
        self._emit(
            EventKind.SCHEDULE_ATTACHED,
            now,
            new_value=(
                f"{schedule.name} for {schedule.end_of_day:%b %d %Y} "
                f"(Sunrise: {schedule.sunrise:%H:%M}, Sunset: {schedule.sunset:%H:%M})"
            ),
        )
        self.refresh_interval(now)
        self.refresh_target_state(now)

    def refresh_interval(self, now: Optional[datetime] = None):
        """Activate the schedule interval containing `now`."""
        if not self.scheduled:
            logger.debug(f"Light {self.name} has no schedule. No interval to update")
            return

        now = now or datetime.now()
        try:
            interval = self.schedule.current_interval(now)
        except NoActiveIntervalError:
            interval = None

        if interval == self.interval:
            return

        previous = self.interval
        self.interval = interval
        self._emit(
            EventKind.NO_ACTIVE_INTERVAL if interval is None else EventKind.INTERVAL_ACTIVATED,
            now,
            old_value=str(previous) if previous else None,
            new_value=str(interval) if interval else None,
        )

    def refresh_target_state(self, now: Optional[datetime] = None):
        """Interpolate the target state of the active interval at `now`."""
        if not self.scheduled:
            logger.debug(f"Light {self.name} has no schedule. No target state to update")
            return
        if self.interval is None:
            # Keep the last known target until the next interval begins
            return

        now = now or datetime.now()
        target = self.interval.calculate_light_state_in_interval(now)
        if target == self.target_light_state:
            return

        previous = self.target_light_state
        self.target_light_state = target
        self._emit(
            EventKind.TARGET_INITIALIZED if previous is None else EventKind.TARGET_UPDATED,
            now,
            old_value=str(previous) if previous else None,
            new_value=str(target),
        )

    def _describe_target(self) -> Optional[str]:
        return str(self.target_light_state) if self.target_light_state else None

    def to_dict(self) -> dict:
        """Snapshot for status reports."""
        return {
            "id": self.light_id,
            "name": self.name,
            "scheduled": self.scheduled,
            "schedule": self.schedule.name if self.schedule else None,
            "reachable": self.reachable,
            "on": self.on,
            "tracking": self.tracking,
            "automatic": self.automatic,
            "target_light_state": (
                self.target_light_state.to_dict() if self.target_light_state else None
            ),
            "interval": self.interval.to_dict() if self.interval else None,
            "appearance": self.appearance.isoformat() if self.appearance else None,
        }
