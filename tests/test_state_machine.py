"""Tests for the pure light decision function."""

import pytest

from kelvin.lights import Action, Observation, decide
from kelvin.models import EventKind


def observe(**overrides) -> Observation:
    values = dict(
        scheduled=True,
        reachable=True,
        on=True,
        tracking=True,
        automatic=True,
        enable_when_lights_appear=False,
        target_ignored=False,
        matches_target=True,
        changed_manually=False,
    )
    values.update(overrides)
    return Observation(**values)


@pytest.mark.parametrize("tracking", [True, False])
@pytest.mark.parametrize("automatic", [True, False])
def test_unscheduled_is_noop(tracking, automatic):
    obs = observe(scheduled=False, tracking=tracking, automatic=automatic, matches_target=False)
    decision = decide(obs)

    assert decision.action is Action.NONE
    assert decision.tracking == tracking
    assert decision.automatic == automatic
    assert decision.kind is None


@pytest.mark.parametrize(
    "reachable, on, kind",
    [(False, True, EventKind.UNREACHABLE), (True, False, EventKind.TURNED_OFF), (False, False, EventKind.UNREACHABLE)],
)
def test_disappearing_light_is_released(reachable, on, kind):
    decision = decide(observe(reachable=reachable, on=on))

    assert decision.action is Action.NONE
    assert not decision.tracking
    assert not decision.automatic
    assert decision.kind is kind


def test_absent_light_stays_quiet():
    decision = decide(observe(reachable=False, tracking=False, automatic=False))

    assert decision.action is Action.NONE
    assert decision.kind is None


def test_appearing_light_is_initialized():
    decision = decide(
        observe(tracking=False, automatic=False, enable_when_lights_appear=True, matches_target=False)
    )

    assert decision.action is Action.WRITE
    assert decision.tracking and decision.automatic and decision.appeared
    assert decision.kind is EventKind.INITIALIZED


def test_appearing_light_with_ignored_target_is_claimed_without_write():
    decision = decide(
        observe(tracking=False, automatic=False, enable_when_lights_appear=True, target_ignored=True)
    )

    assert decision.action is Action.NONE
    assert decision.automatic


def test_appearing_light_matching_target_is_claimed():
    decision = decide(observe(tracking=False, automatic=False, matches_target=True))

    assert decision.action is Action.WRITE
    assert decision.tracking and decision.automatic and decision.appeared
    assert decision.kind is EventKind.AUTOMATION_ENABLED


def test_appearing_light_not_matching_is_only_tracked():
    decision = decide(observe(tracking=False, automatic=False, matches_target=False))

    assert decision.action is Action.NONE
    assert decision.tracking and decision.appeared
    assert not decision.automatic


@pytest.mark.parametrize("matches_target", [True, False])
def test_manual_light_with_ignored_target_never_writes(matches_target):
    decision = decide(observe(automatic=False, target_ignored=True, matches_target=matches_target))

    assert decision.action is Action.NONE
    assert not decision.automatic


def test_manual_override_detected():
    decision = decide(observe(changed_manually=True, matches_target=False))

    assert decision.action is Action.NONE
    assert decision.tracking
    assert not decision.automatic
    assert decision.kind is EventKind.MANUAL_OVERRIDE


def test_in_sync_is_noop():
    decision = decide(observe())

    assert decision.action is Action.NONE
    assert decision.kind is None


def test_stale_state_is_written():
    decision = decide(observe(matches_target=False))

    assert decision.action is Action.WRITE
    assert decision.automatic
    assert decision.kind is EventKind.STATE_UPDATED


def test_stale_state_is_kept_outside_intervals():
    decision = decide(observe(matches_target=False, interval_active=False))

    assert decision.action is Action.NONE
    assert decision.automatic
    assert decision.kind is None
