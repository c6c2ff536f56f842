"""Countdown state machine driven by an injected clock."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from pixlink.common.state_machine import ACTIVE, ERRORED, EXPIRED, PENDING
from pixlink.services.checkout.expiry import ExpiryController, format_remaining

T0 = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def test_starts_pending():
    assert ExpiryController(clock=FakeClock()).state == PENDING


def test_expires_within_one_tick_and_stays_expired():
    clock = FakeClock()
    controller = ExpiryController(clock=clock)
    controller.activate("PIXCODE", T0 + timedelta(seconds=10))
    assert controller.state == ACTIVE
    assert controller.remaining_seconds == 10

    states = []
    for _ in range(11):
        clock.advance(1)
        controller.tick()
        states.append(controller.state)

    assert states[:9] == [ACTIVE] * 9
    assert states[9] == EXPIRED
    assert states[10] == EXPIRED
    assert controller.remaining_seconds == 0


def test_tick_expires_regardless_of_alignment():
    """A late tick far past the deadline still flips straight to EXPIRED."""

    controller = ExpiryController(clock=FakeClock())
    controller.activate("PIXCODE", T0 + timedelta(seconds=10))
    assert controller.tick(T0 + timedelta(minutes=5)) == 0
    assert controller.state == EXPIRED


def test_partial_second_is_not_expired():
    controller = ExpiryController(clock=FakeClock())
    controller.activate("PIXCODE", T0 + timedelta(seconds=10))
    assert controller.tick(T0 + timedelta(seconds=9.5)) == 1
    assert controller.state == ACTIVE


def test_missing_expiration_uses_fallback_window():
    controller = ExpiryController(clock=FakeClock(), fallback_window_seconds=600)
    controller.activate("PIXCODE")
    assert controller.expires_at == T0 + timedelta(minutes=10)
    assert controller.display == "10:00"


def test_naive_expiration_is_treated_as_utc():
    controller = ExpiryController(clock=FakeClock())
    controller.activate("PIXCODE", datetime(2026, 10, 19, 12, 1, 0))
    assert controller.remaining_seconds == 60


def test_activation_requires_pay_code():
    controller = ExpiryController(clock=FakeClock())
    with pytest.raises(ValueError):
        controller.activate("")
    assert controller.state == PENDING


def test_failure_is_terminal_and_distinct_from_expiry():
    controller = ExpiryController(clock=FakeClock())
    controller.fail("GatewayRejected")
    assert controller.state == ERRORED
    assert controller.error == "GatewayRejected"
    with pytest.raises(ValueError):
        controller.activate("PIXCODE")


def test_expired_instrument_cannot_be_reactivated():
    controller = ExpiryController(clock=FakeClock())
    controller.activate("PIXCODE", T0 - timedelta(seconds=1))
    assert controller.state == EXPIRED
    with pytest.raises(ValueError):
        controller.activate("OTHER")


@pytest.mark.parametrize(
    "seconds,expected",
    [(600, "10:00"), (59, "00:59"), (0, "00:00"), (-5, "00:00"), (3600, "1:00:00"), (3725, "1:02:05")],
)
def test_format_remaining(seconds, expected):
    assert format_remaining(seconds) == expected


def test_run_stops_at_expiry():
    clock = FakeClock()
    controller = ExpiryController(clock=clock, tick_interval_seconds=0)
    controller.activate("PIXCODE", T0 + timedelta(seconds=3))
    seen = []

    def on_tick(c):
        seen.append(c.remaining_seconds)
        clock.advance(1)

    assert asyncio.run(controller.run(on_tick)) == EXPIRED
    assert seen == [3, 2, 1, 0]


def test_run_can_be_cancelled():
    controller = ExpiryController(clock=FakeClock(), tick_interval_seconds=0.01)
    controller.activate("PIXCODE", T0 + timedelta(hours=1))

    async def scenario():
        task = asyncio.create_task(controller.run())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert controller.state == ACTIVE
