"""Per-light automation decisions.

`decide` is evaluated once per polling tick. It gets a snapshot of what
is known about a light and returns what to do plus how the light's
bookkeeping changes. It never performs I/O itself.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from kelvin.models import EventKind


class Action(Enum):
    """Side effect requested by a decision."""

    NONE = "none"
    WRITE = "write"


@dataclass(frozen=True)
class Observation:
    """Everything `decide` needs to know about one light."""

    scheduled: bool
    reachable: bool
    on: bool
    tracking: bool
    automatic: bool
    enable_when_lights_appear: bool = False
    target_ignored: bool = True
    interval_active: bool = True
    matches_target: bool = False
    changed_manually: bool = False


@dataclass(frozen=True)
class Decision:
    """Outcome of `decide`: the action and the resulting bookkeeping."""

    action: Action
    tracking: bool
    automatic: bool
    appeared: bool = False
    kind: Optional[EventKind] = None

    @property
    def writes(self) -> bool:
        return self.action is Action.WRITE


def _idle(obs: Observation, kind: Optional[EventKind] = None, appeared: bool = False) -> Decision:
    return Decision(Action.NONE, obs.tracking, obs.automatic, appeared, kind)


def _absent(obs: Observation, kind: EventKind) -> Decision:
    if not obs.tracking:
        return _idle(obs)
    return Decision(Action.NONE, tracking=False, automatic=False, kind=kind)


def decide(obs: Observation) -> Decision:
    """
    Decide what to do with a light on this tick.

    Rules are checked in order, the first match wins.

    Args:
        obs: Current snapshot of the light.

    Returns:
        Decision to apply.
    """
    if not obs.scheduled:
        return _idle(obs)

    # Unreachable and switched off lights are routine, not errors
    if not obs.reachable:
        return _absent(obs, EventKind.UNREACHABLE)
    if not obs.on:
        return _absent(obs, EventKind.TURNED_OFF)

    appeared = not obs.tracking
    if appeared:
        if obs.enable_when_lights_appear:
            # Nothing to write for an ignored target, but the light is still claimed
            return Decision(
                Action.NONE if obs.target_ignored else Action.WRITE,
                tracking=True,
                automatic=True,
                appeared=True,
                kind=EventKind.INITIALIZED,
            )
        obs = replace(obs, tracking=True, automatic=False)

    if not obs.automatic:
        if obs.target_ignored or not obs.matches_target:
            return _idle(obs, appeared=appeared)
        return Decision(
            Action.WRITE,
            tracking=True,
            automatic=True,
            appeared=appeared,
            kind=EventKind.AUTOMATION_ENABLED,
        )

    if obs.changed_manually:
        return Decision(
            Action.NONE, tracking=True, automatic=False, kind=EventKind.MANUAL_OVERRIDE
        )

    # Outside every interval the last target is kept but not pushed
    if obs.target_ignored or obs.matches_target or not obs.interval_active:
        return _idle(obs)

    return Decision(
        Action.WRITE, tracking=True, automatic=True, kind=EventKind.STATE_UPDATED
    )
