"""Tests for the Light entity driving a fake bulb."""

from datetime import time

import pytest

from kelvin.errors import BulbWriteError
from kelvin.lights import Light
from kelvin.models import EventKind, LightState
from kelvin.scheduling import Interval, Schedule

from conftest import DAY, FakeBulb, at, make_schedule


def kinds(events):
    return [event.kind for event in events]


def test_unscheduled_light_is_ignored(light, bulb, events):
    light.refresh()

    assert light.poll(at(7)) is False
    assert not light.tracking
    assert bulb.writes == []
    assert events == []


def test_attach_schedule_computes_interval_and_target(light, events):
    light.attach_schedule(make_schedule(), at(14))

    assert light.scheduled
    assert light.interval.start == time(6, 0)
    assert light.target_light_state == LightState(4100, 55)
    assert kinds(events) == [
        EventKind.SCHEDULE_ATTACHED,
        EventKind.INTERVAL_ACTIVATED,
        EventKind.TARGET_INITIALIZED,
    ]


def test_matching_light_is_claimed_on_appearance(light, bulb, events):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(enable_when_lights_appear=False), at(14))
    events.clear()

    light.refresh()
    assert light.poll(at(14)) is True

    assert light.tracking
    assert light.automatic
    assert light.appearance == at(14)
    assert bulb.writes == [(4100, 55)]
    assert kinds(events) == [EventKind.APPEARED, EventKind.AUTOMATION_ENABLED]


def test_enable_when_lights_appear(light, bulb, events):
    bulb.touch(2000, 10)
    light.attach_schedule(make_schedule(enable_when_lights_appear=True), at(14))
    events.clear()

    light.refresh()
    assert light.poll(at(14)) is True

    assert light.automatic
    assert bulb.writes == [(4100, 55)]
    assert kinds(events) == [EventKind.APPEARED, EventKind.INITIALIZED]


def test_non_matching_light_stays_manual(light, bulb):
    bulb.touch(2000, 10)
    light.attach_schedule(make_schedule(), at(14))

    light.refresh()
    assert light.poll(at(14)) is False
    assert light.tracking
    assert not light.automatic

    # The user dims to what the schedule wants, kelvin takes over
    bulb.touch(4100, 55)
    assert light.poll(at(14)) is True
    assert light.automatic


def test_ignored_target_never_writes():
    bulb = FakeBulb(color_temperature=2000, brightness=10)
    light = Light("2", "Hall", bulb)
    ignored = Interval(time(6, 0), time(22, 0), LightState(), LightState())
    light.attach_schedule(
        Schedule(time(7, 0), time(19, 0), DAY, False, (ignored,)), at(14)
    )

    for state in [(2000, 10), (4100, 55), (6500, 100)]:
        bulb.touch(*state)
        light.refresh()
        assert light.poll(at(14)) is False

    assert bulb.writes == []


def test_disappearing_light_is_released_once(light, bulb, events):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))
    events.clear()

    bulb.reachable = False
    for _ in range(3):
        light.refresh()
        assert light.poll(at(14)) is False

    assert not light.tracking
    assert not light.automatic
    assert kinds(events) == [EventKind.UNREACHABLE]


def test_turned_off_light_is_released(light, bulb, events):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))
    events.clear()

    bulb.on = False
    light.refresh()
    light.poll(at(14))
    light.poll(at(14))

    assert not light.tracking
    assert not light.automatic
    assert kinds(events) == [EventKind.TURNED_OFF]


def test_read_failure_counts_as_unreachable(light, bulb):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))

    bulb.fail_reads = True
    light.refresh()

    assert not light.reachable
    assert light.poll(at(14)) is False
    assert not light.tracking


def test_manual_override_disables_automation(light, bulb, events):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))
    events.clear()

    bulb.touch(brightness=20)
    assert light.poll(at(14)) is False

    assert light.tracking
    assert not light.automatic
    assert kinds(events) == [EventKind.MANUAL_OVERRIDE]

    # No new writes while the user is in control
    light.refresh_target_state(at(15))
    assert light.poll(at(15)) is False
    assert bulb.writes == [(4100, 55)]


def test_target_follows_schedule(light, bulb):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))

    light.refresh_target_state(at(18))
    assert light.poll(at(18)) is True
    assert bulb.writes[-1] == (light.target_light_state.color_temperature,
                               light.target_light_state.brightness)

    # Nothing left to do on the same tick
    assert light.poll(at(18)) is False


def test_write_failure_is_raised_and_automatic_kept(light, bulb):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))

    light.refresh_target_state(at(18))
    bulb.fail_writes = True
    with pytest.raises(BulbWriteError):
        light.poll(at(18))
    assert light.automatic

    bulb.fail_writes = False
    assert light.poll(at(18)) is True


def test_failed_claim_leaves_light_manual(light, bulb):
    bulb.touch(4100, 55)
    bulb.fail_writes = True
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()

    with pytest.raises(BulbWriteError):
        light.poll(at(14))

    assert light.tracking
    assert not light.automatic


def test_refresh_interval_only_reports_changes(light, events):
    light.attach_schedule(make_schedule(), at(14))
    events.clear()

    light.refresh_interval(at(15))
    assert events == []

    light.refresh_interval(at(23))
    light.refresh_interval(at(23, 30))
    assert light.interval is None
    assert kinds(events) == [EventKind.NO_ACTIVE_INTERVAL]


def test_target_kept_without_interval(light):
    light.attach_schedule(make_schedule(), at(21, 59))
    target = light.target_light_state

    light.refresh_interval(at(23))
    light.refresh_target_state(at(23))

    assert light.target_light_state == target


def test_refresh_target_state_idempotent(light, events):
    light.attach_schedule(make_schedule(), at(14))
    events.clear()

    light.refresh_target_state(at(14))
    assert events == []

    light.refresh_target_state(at(15))
    assert kinds(events) == [EventKind.TARGET_UPDATED]


def test_to_dict(light, bulb):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))

    snapshot = light.to_dict()
    assert snapshot["id"] == "1"
    assert snapshot["automatic"] is True
    assert snapshot["reachable"] is True
    assert snapshot["target_light_state"] == {"color_temperature": 4100, "brightness": 55}
    assert snapshot["interval"]["start"] == "06:00"


def test_fake_bulb_round_trip(bulb):
    bulb.set_state(3300, 70)
    assert bulb.has_state(3300, 70)
    assert not bulb.has_changed()


def test_failing_listener_does_not_stop_the_tick(bulb, events):
    def fail_on_appearance(event):
        if event.kind is EventKind.APPEARED:
            raise RuntimeError("history unavailable")

    light = Light("1", "Desk", bulb, listeners=[fail_on_appearance, events.append])
    bulb.touch(2000, 10)
    light.attach_schedule(make_schedule(enable_when_lights_appear=True), at(14))

    light.refresh()
    assert light.poll(at(14)) is True

    assert light.automatic
    assert bulb.writes == [(4100, 55)]
    assert EventKind.INITIALIZED in kinds(events)


class UnrenderableBulb(FakeBulb):
    """A bulb that supports none of the scheduled fields."""

    def set_state(self, color_temperature, brightness):
        return False


def test_unrenderable_target_is_not_reported_as_written(events):
    bulb = UnrenderableBulb(color_temperature=4100, brightness=55)
    light = Light("1", "Desk", bulb, listeners=[events.append])
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    assert light.poll(at(14)) is False
    assert light.automatic

    light.refresh_target_state(at(18))
    events.clear()
    assert light.poll(at(18)) is False
    assert events == []


def test_kept_target_is_not_pushed_outside_intervals(light, bulb):
    bulb.touch(4100, 55)
    light.attach_schedule(make_schedule(), at(14))
    light.refresh()
    light.poll(at(14))

    light.refresh_target_state(at(21, 59))
    light.refresh_interval(at(23))

    assert light.poll(at(23)) is False
    assert light.automatic
    assert bulb.writes == [(4100, 55)]
