"""Continuous, throttled 6x60 draw simulator."""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MAX_INSTANCES
from apscheduler.jobstores.base import JobLookupError
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple
import logging

from config.settings import (
    settings,
    MIN_BATCH_SIZE, MAX_BATCH_SIZE,
    MIN_TICK_INTERVAL_MS, MAX_TICK_INTERVAL_MS,
    MIN_LIMIT_TOTAL, MAX_LIMIT_TOTAL,
)
from models.draw_models import Draw
from simulation.frequency import FrequencyAggregator
from simulation.generator import DrawGenerator
from utils.helpers import clamp

logger = logging.getLogger(__name__)

TICK_JOB_ID = 'simulation_tick'


class RunMode(str, Enum):
    """Simulator run mode."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED_BY_USER = "stopped_by_user"
    STOPPED_BY_LIMIT = "stopped_by_limit"


@dataclass
class SimulationState:
    """Mutable simulator state, written only by :class:`SimulationScheduler`."""
    batch_size: int
    tick_interval_ms: int
    limit_enabled: bool
    limit_total: int
    total_generated: int = 0
    last_draw: Optional[Draw] = None
    run_mode: RunMode = RunMode.IDLE
    ticks: int = 0
    last_batch: int = 0
    epoch: int = 0  # bumped by stop, halt and reset so an in-flight batch is discarded


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view of the simulator published after each tick."""
    run_mode: RunMode
    total_generated: int
    frequency: Dict[int, int]
    frequency_sum: int
    last_draw: Tuple[int, ...]
    top: List[Tuple[int, int]]
    batch_size: int
    tick_interval_ms: int
    limit_enabled: bool
    limit_total: int
    ticks: int
    last_batch: int = 0
    progress: Optional[float] = field(default=None)

    @property
    def running(self) -> bool:
        return self.run_mode == RunMode.RUNNING


class SimulationScheduler:
    """Drives a :class:`DrawGenerator` into a :class:`FrequencyAggregator`.

    Each tick generates ``min(batch_size, remaining)`` draws and publishes
    them in a single step. Ticks run on an APScheduler interval job; the
    tick body is guarded so two ticks never overlap, and a tick whose batch
    was made obsolete by ``stop``/``reset`` meanwhile is dropped.
    """

    def __init__(self,
                 generator: Optional[DrawGenerator] = None,
                 aggregator: Optional[FrequencyAggregator] = None,
                 batch_size: Optional[int] = None,
                 tick_interval_ms: Optional[int] = None,
                 limit_enabled: Optional[bool] = None,
                 limit_total: Optional[int] = None,
                 scheduler: Optional[BackgroundScheduler] = None):
        self.generator = generator or DrawGenerator(seed=settings.sim_random_seed)
        self.aggregator = aggregator or FrequencyAggregator()
        self.state = SimulationState(
            batch_size=self._clamp_batch(settings.sim_batch_size if batch_size is None else batch_size),
            tick_interval_ms=self._clamp_interval(
                settings.sim_tick_interval_ms if tick_interval_ms is None else tick_interval_ms),
            limit_enabled=settings.sim_limit_enabled if limit_enabled is None else bool(limit_enabled),
            limit_total=self._clamp_limit(settings.sim_limit_total if limit_total is None else limit_total),
        )
        self.scheduler = scheduler or BackgroundScheduler(timezone=settings.scheduler_timezone)
        self._lock = threading.RLock()
        self._tick_guard = threading.Lock()
        self._setup_event_listeners()

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------
    @staticmethod
    def _clamp_batch(value: int) -> int:
        return clamp(value, MIN_BATCH_SIZE, MAX_BATCH_SIZE)

    @staticmethod
    def _clamp_interval(value: int) -> int:
        return clamp(value, MIN_TICK_INTERVAL_MS, MAX_TICK_INTERVAL_MS)

    @staticmethod
    def _clamp_limit(value: int) -> int:
        return clamp(value, MIN_LIMIT_TOTAL, MAX_LIMIT_TOTAL)

    def configure(self,
                  batch_size: Optional[int] = None,
                  tick_interval_ms: Optional[int] = None,
                  limit_enabled: Optional[bool] = None,
                  limit_total: Optional[int] = None) -> SimulationSnapshot:
        """Change operator bounds; out-of-range values are clamped."""
        with self._lock:
            if batch_size is not None:
                self.state.batch_size = self._clamp_batch(batch_size)
            if limit_enabled is not None:
                self.state.limit_enabled = bool(limit_enabled)
            if limit_total is not None:
                self.state.limit_total = self._clamp_limit(limit_total)
            if tick_interval_ms is not None:
                interval = self._clamp_interval(tick_interval_ms)
                changed = interval != self.state.tick_interval_ms
                self.state.tick_interval_ms = interval
                if changed and self.state.run_mode == RunMode.RUNNING:
                    try:
                        self.scheduler.reschedule_job(TICK_JOB_ID, trigger=self._trigger())
                    except JobLookupError:
                        # start() has not added the job yet; it will use the new interval
                        pass
            logger.info(
                f"Simulation configured: batch={self.state.batch_size} "
                f"interval={self.state.tick_interval_ms}ms "
                f"limit={'on' if self.state.limit_enabled else 'off'}/{self.state.limit_total}"
            )
            return self.snapshot()

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------
    def _limit_reached(self) -> bool:
        return self.state.limit_enabled and self.state.total_generated >= self.state.limit_total

    def _trigger(self) -> IntervalTrigger:
        return IntervalTrigger(seconds=self.state.tick_interval_ms / 1000.0)

    def start(self) -> SimulationSnapshot:
        """Run one tick now, then keep ticking every ``tick_interval_ms``."""
        with self._lock:
            if self.state.run_mode == RunMode.RUNNING:
                return self.snapshot()
            if self._limit_reached():
                logger.info("Simulation limit already reached, start ignored")
                return self.snapshot()
            self.state.run_mode = RunMode.RUNNING
            logger.info(f"Simulation started at total={self.state.total_generated}")

        # waits for a tick cancelled by an earlier stop() to drain
        self._run_tick(blocking=True)

        with self._lock:
            if self.state.run_mode == RunMode.RUNNING:
                if not self.scheduler.running:
                    self.scheduler.start()
                self.scheduler.add_job(
                    func=self.tick,
                    trigger=self._trigger(),
                    id=TICK_JOB_ID,
                    name='Simulation Tick',
                    max_instances=1,
                    coalesce=True,
                    replace_existing=True,
                )
            return self.snapshot()

    def stop(self) -> SimulationSnapshot:
        """Cancel pending ticks; no tick runs after this returns."""
        with self._lock:
            self._cancel_job()
            if self.state.run_mode == RunMode.RUNNING:
                self.state.run_mode = RunMode.STOPPED_BY_USER
                self.state.epoch += 1
                logger.info(f"Simulation stopped by user at total={self.state.total_generated}")
            return self.snapshot()

    def reset(self) -> SimulationSnapshot:
        """Stop and zero every counter, back to idle."""
        with self._lock:
            self.stop()
            self.aggregator.reset()
            self.state.total_generated = 0
            self.state.last_draw = None
            self.state.ticks = 0
            self.state.last_batch = 0
            self.state.epoch += 1
            self.state.run_mode = RunMode.IDLE
            logger.info("Simulation reset")
            return self.snapshot()

    def shutdown(self) -> None:
        """Stop ticking and release the background scheduler thread."""
        self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)

    def _cancel_job(self) -> None:
        try:
            self.scheduler.remove_job(TICK_JOB_ID)
        except JobLookupError:
            pass

    def _halt(self, mode: RunMode) -> None:
        self.state.run_mode = mode
        self.state.epoch += 1
        self._cancel_job()

    # ------------------------------------------------------------------
    # tick
    # ------------------------------------------------------------------
    def tick(self) -> int:
        """Generate and publish one batch; returns the number of draws added."""
        return self._run_tick(blocking=False)

    def _run_tick(self, blocking: bool) -> int:
        if not self._tick_guard.acquire(blocking=blocking):
            logger.debug("Tick skipped, previous tick still in flight")
            return 0
        try:
            with self._lock:
                if self.state.run_mode != RunMode.RUNNING:
                    return 0
                to_run = self._pending_batch()
                if to_run == 0:
                    self._halt(RunMode.STOPPED_BY_LIMIT)
                    logger.info(f"Simulation limit reached at total={self.state.total_generated}")
                    return 0
                epoch = self.state.epoch

            draws = self.generator.sample_many(to_run)

            with self._lock:
                if self.state.run_mode != RunMode.RUNNING or self.state.epoch != epoch:
                    return 0
                # limit may have been lowered while the batch was generated
                draws = draws[:self._pending_batch()]
                if not draws:
                    self._halt(RunMode.STOPPED_BY_LIMIT)
                    return 0
                self.aggregator.ingest(draws)
                self.state.total_generated += len(draws)
                self.state.last_draw = draws[-1]
                self.state.last_batch = len(draws)
                self.state.ticks += 1
                if self._limit_reached():
                    self._halt(RunMode.STOPPED_BY_LIMIT)
                    logger.info(f"Simulation limit reached at total={self.state.total_generated}")
                return len(draws)
        finally:
            self._tick_guard.release()

    def _pending_batch(self) -> int:
        if not self.state.limit_enabled:
            return self.state.batch_size
        remaining = max(0, self.state.limit_total - self.state.total_generated)
        return min(self.state.batch_size, remaining)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def snapshot(self, top: int = 6) -> SimulationSnapshot:
        """Consistent copy of the state: frequency sum == 6 x total_generated."""
        with self._lock:
            state = self.state
            progress = None
            if state.limit_enabled:
                progress = min(state.total_generated, state.limit_total) / state.limit_total
            return SimulationSnapshot(
                run_mode=state.run_mode,
                total_generated=state.total_generated,
                frequency=self.aggregator.snapshot(),
                frequency_sum=self.aggregator.sum(),
                last_draw=state.last_draw.numbers if state.last_draw else (),
                top=self.aggregator.ranking(top),
                batch_size=state.batch_size,
                tick_interval_ms=state.tick_interval_ms,
                limit_enabled=state.limit_enabled,
                limit_total=state.limit_total,
                ticks=state.ticks,
                last_batch=state.last_batch,
                progress=progress,
            )

    @property
    def run_mode(self) -> RunMode:
        with self._lock:
            return self.state.run_mode

    @property
    def total_generated(self) -> int:
        with self._lock:
            return self.state.total_generated

    def _setup_event_listeners(self):
        """Setup event listeners for tick monitoring."""
        def job_error(event):
            if event.job_id != TICK_JOB_ID:
                return
            logger.error(f"Simulation tick failed: {event.exception}")
            with self._lock:
                if self.state.run_mode == RunMode.RUNNING:
                    self._halt(RunMode.STOPPED_BY_USER)

        def job_skipped(event):
            if event.job_id == TICK_JOB_ID:
                logger.debug("Simulation tick skipped, previous run still active")

        self.scheduler.add_listener(job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(job_skipped, EVENT_JOB_MAX_INSTANCES)
