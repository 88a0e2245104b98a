"""Tests for the simulation scheduler state machine."""

import threading
import time

import pytest

from simulation.generator import DrawGenerator
from simulation.scheduler import RunMode, SimulationScheduler


def wait_for(predicate, timeout=5.0, interval=0.005):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def test_limit_splits_into_seven_then_three(make_simulator):
    sim = make_simulator(batch_size=7, tick_interval_ms=10_000, limit_enabled=True, limit_total=10)

    snapshot = sim.start()
    assert snapshot.run_mode == RunMode.RUNNING
    assert snapshot.total_generated == 7
    assert snapshot.last_batch == 7

    assert sim.tick() == 3
    snapshot = sim.snapshot()
    assert snapshot.run_mode == RunMode.STOPPED_BY_LIMIT
    assert snapshot.total_generated == 10
    assert snapshot.ticks == 2
    assert snapshot.last_batch == 3
    assert snapshot.frequency_sum == 60
    assert snapshot.progress == 1.0

    assert sim.tick() == 0
    assert sim.total_generated == 10


def test_limit_reached_by_timer_driven_ticks(make_simulator):
    sim = make_simulator(batch_size=7, tick_interval_ms=1, limit_enabled=True, limit_total=10)

    sim.start()
    assert wait_for(lambda: sim.run_mode == RunMode.STOPPED_BY_LIMIT)

    snapshot = sim.snapshot()
    assert snapshot.total_generated == 10
    assert snapshot.ticks == 2
    assert snapshot.frequency_sum == 60


def test_stop_prevents_any_further_tick(make_simulator):
    sim = make_simulator(batch_size=10, tick_interval_ms=5)

    sim.start()
    assert wait_for(lambda: sim.snapshot().ticks >= 3)
    stopped = sim.stop()
    assert stopped.run_mode == RunMode.STOPPED_BY_USER

    time.sleep(0.1)
    after = sim.snapshot()
    assert after.total_generated == stopped.total_generated
    assert after.ticks == stopped.ticks
    assert sim.tick() == 0


def test_stop_is_idempotent(make_simulator):
    sim = make_simulator(batch_size=5, tick_interval_ms=10_000)
    sim.start()
    sim.stop()
    assert sim.stop().run_mode == RunMode.STOPPED_BY_USER


def test_stop_when_idle_stays_idle(make_simulator):
    sim = make_simulator()
    assert sim.stop().run_mode == RunMode.IDLE


def test_stop_after_limit_keeps_limit_mode(make_simulator):
    sim = make_simulator(batch_size=5, tick_interval_ms=10_000, limit_enabled=True, limit_total=5)
    assert sim.start().run_mode == RunMode.STOPPED_BY_LIMIT
    assert sim.stop().run_mode == RunMode.STOPPED_BY_LIMIT


@pytest.mark.parametrize("drive", ["running", "stopped", "limit", "idle"])
def test_reset_always_returns_to_zeroed_idle(make_simulator, drive):
    sim = make_simulator(batch_size=50, tick_interval_ms=10_000, limit_enabled=(drive == "limit"), limit_total=50)
    if drive != "idle":
        sim.start()
    if drive == "stopped":
        sim.stop()

    snapshot = sim.reset()

    assert snapshot.run_mode == RunMode.IDLE
    assert snapshot.total_generated == 0
    assert snapshot.frequency_sum == 0
    assert set(snapshot.frequency.values()) == {0}
    assert snapshot.last_draw == ()
    assert snapshot.ticks == 0


def test_start_is_noop_while_running(make_simulator):
    sim = make_simulator(batch_size=4, tick_interval_ms=10_000)
    sim.start()
    assert sim.start().total_generated == 4


def test_start_is_noop_when_limit_already_reached(make_simulator):
    sim = make_simulator(batch_size=10, tick_interval_ms=10_000, limit_enabled=True, limit_total=10)
    sim.start()
    assert sim.run_mode == RunMode.STOPPED_BY_LIMIT

    snapshot = sim.start()
    assert snapshot.run_mode == RunMode.STOPPED_BY_LIMIT
    assert snapshot.total_generated == 10


def test_start_resumes_after_user_stop(make_simulator):
    sim = make_simulator(batch_size=3, tick_interval_ms=10_000)
    sim.start()
    sim.stop()
    snapshot = sim.start()
    assert snapshot.run_mode == RunMode.RUNNING
    assert snapshot.total_generated == 6


def test_raising_limit_allows_restart(make_simulator):
    sim = make_simulator(batch_size=10, tick_interval_ms=10_000, limit_enabled=True, limit_total=10)
    sim.start()
    sim.configure(limit_total=15)

    assert sim.start().total_generated == 15
    assert sim.run_mode == RunMode.STOPPED_BY_LIMIT


def test_lowering_limit_below_total_stops_on_next_tick(make_simulator):
    sim = make_simulator(batch_size=20, tick_interval_ms=10_000)
    sim.start()
    sim.configure(limit_enabled=True, limit_total=5)

    assert sim.tick() == 0
    snapshot = sim.snapshot()
    assert snapshot.run_mode == RunMode.STOPPED_BY_LIMIT
    assert snapshot.total_generated == 20


def test_configuration_values_are_clamped(make_simulator):
    sim = make_simulator()

    low = sim.configure(batch_size=0, tick_interval_ms=0, limit_total=0)
    assert (low.batch_size, low.tick_interval_ms, low.limit_total) == (1, 1, 1)

    high = sim.configure(batch_size=10**6, tick_interval_ms=60_000, limit_total=10**10)
    assert (high.batch_size, high.tick_interval_ms, high.limit_total) == (50_000, 10_000, 100_000_000)


def test_constructor_values_are_clamped(make_simulator):
    sim = make_simulator(batch_size=-5, tick_interval_ms=99_999, limit_total=0)
    snapshot = sim.snapshot()
    assert snapshot.batch_size == 1
    assert snapshot.tick_interval_ms == 10_000
    assert snapshot.limit_total == 1


def test_snapshots_stay_consistent_while_running(make_simulator):
    sim = make_simulator(batch_size=200, tick_interval_ms=1)
    sim.start()
    try:
        deadline = time.monotonic() + 0.3
        while time.monotonic() < deadline:
            snapshot = sim.snapshot()
            assert snapshot.frequency_sum == 6 * snapshot.total_generated
            assert sum(snapshot.frequency.values()) == snapshot.frequency_sum
    finally:
        sim.stop()


def test_last_draw_is_recorded(make_simulator):
    sim = make_simulator(batch_size=2, tick_interval_ms=10_000)
    snapshot = sim.start()
    assert len(snapshot.last_draw) == 6
    assert len(snapshot.top) == 6


class GatedGenerator:
    """Wraps a generator; when armed, the next batch blocks until released."""

    def __init__(self, inner):
        self.inner = inner
        self.armed = False
        self.entered = threading.Event()
        self.release = threading.Event()

    def sample_many(self, n):
        if self.armed:
            self.armed = False
            self.entered.set()
            self.release.wait(5)
        return self.inner.sample_many(n)


def test_batch_in_flight_at_stop_is_dropped_on_restart():
    gated = GatedGenerator(DrawGenerator(seed=7))
    sim = SimulationScheduler(generator=gated, batch_size=5, tick_interval_ms=10)
    restarted = {}
    try:
        assert sim.start().total_generated == 5

        gated.armed = True
        assert gated.entered.wait(5)
        stopped = sim.stop()

        worker = threading.Thread(target=lambda: restarted.update(snapshot=sim.start()))
        worker.start()
        assert wait_for(lambda: sim.run_mode == RunMode.RUNNING)
        gated.release.set()
        worker.join(5)

        snapshot = restarted['snapshot']
        assert snapshot.run_mode == RunMode.RUNNING
        assert snapshot.total_generated == stopped.total_generated + 5
        assert snapshot.ticks == stopped.ticks + 1
        assert snapshot.frequency_sum == 6 * snapshot.total_generated
    finally:
        gated.release.set()
        sim.shutdown()
