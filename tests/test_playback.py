"""Unit tests for the playback state machine.

A fake clock and the manual scheduler stand in for the host render loop, so
every tick happens at an exactly known elapsed time.
"""

import dataclasses
import math

import pytest
from numpy.testing import assert_allclose

from projectile.metrics import DerivedMetrics, compute_metrics
from projectile.parameters import SimulationParameters
from projectile.playback import Phase, PlaybackController, PlaybackState
from projectile.scheduling import ManualScheduler
from projectile.trajectory import IntegratorConfig, compute_trajectory


class FakeClock:
    """Monotonic clock set by the test."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingScheduler:
    """Scheduler that keeps every callback and ignores cancellation.

    Lets tests deliver ticks the controller has already cancelled.
    """

    def __init__(self) -> None:
        self.callbacks = []
        self.cancelled = []

    def request(self, callback):
        self.callbacks.append(callback)
        return len(self.callbacks)

    def cancel(self, token) -> None:
        self.cancelled.append(token)


GROUND_LAUNCH = SimulationParameters(
    initial_speed=25.0, launch_angle_deg=45.0, mass=5.0,
    drag_enabled=False, gravity=9.81, launch_height=0.0,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def controller(scheduler, clock) -> PlaybackController:
    return PlaybackController(scheduler, GROUND_LAUNCH, clock=clock)


def tick_at(controller, scheduler, clock, elapsed: float) -> PlaybackState:
    """Fire one frame at `elapsed` seconds after the run's reference start."""
    clock.now = controller._start_time + elapsed
    scheduler.fire()
    return controller.snapshot()


# =============================================================================
# Idle / Start Tests
# =============================================================================


class TestStart:
    """Test the initial state and start()."""

    def test_initially_idle(self, controller, scheduler):
        """New controller is idle with nothing to show."""
        state = controller.snapshot()

        assert state.phase is Phase.IDLE
        assert state.is_idle
        assert len(state.trajectory) == 0
        assert state.current_index is None
        assert state.current_sample is None
        assert state.metrics == DerivedMetrics()
        assert state.elapsed_fraction == 0.0
        assert scheduler.pending == 0

    def test_start_enters_running(self, controller, scheduler):
        """start() computes the run and requests the first tick."""
        controller.start()
        state = controller.snapshot()

        expected = compute_trajectory(GROUND_LAUNCH)
        assert state.phase is Phase.RUNNING
        assert state.trajectory == expected
        assert state.metrics == compute_metrics(expected)
        assert state.current_index == 0
        assert state.current_sample == expected.first
        assert state.elapsed_fraction == 0.0
        assert scheduler.pending == 1

    def test_restart_replaces_run(self, controller, scheduler, clock):
        """start() while running discards the old run and its pending tick."""
        controller.start()
        tick_at(controller, scheduler, clock, 1.0)
        generation = controller.generation

        controller.update_parameters(initial_speed=40.0)
        controller.start()
        state = controller.snapshot()

        assert controller.generation > generation
        assert state.current_index == 0
        assert state.elapsed_fraction == 0.0
        assert state.trajectory == compute_trajectory(GROUND_LAUNCH.updated(initial_speed=40.0))
        assert scheduler.pending == 1

    def test_restart_after_completion(self, controller, scheduler, clock):
        """A completed run can be started again."""
        controller.start()
        tick_at(controller, scheduler, clock, 100.0)
        assert controller.phase is Phase.COMPLETED

        controller.start()

        assert controller.phase is Phase.RUNNING
        assert controller.snapshot().current_index == 0

    def test_degenerate_run_completes_immediately(self, scheduler, clock):
        """Zero time of flight completes at start without a tick."""
        params = SimulationParameters(launch_angle_deg=-90.0, launch_height=0.0)
        controller = PlaybackController(scheduler, params, clock=clock)

        controller.start()
        state = controller.snapshot()

        assert state.phase is Phase.COMPLETED
        assert state.current_index == 0
        assert state.elapsed_fraction == 1.0
        assert state.metrics.time_of_flight == 0.0
        assert scheduler.pending == 0


# =============================================================================
# Tick Tests
# =============================================================================


class TestTick:
    """Test mapping elapsed time onto sample indices."""

    def test_halfway(self, controller, scheduler, clock):
        """Half the flight time gives fraction 0.5 and the middle index."""
        controller.start()
        tof = controller.metrics.time_of_flight
        n = len(controller.trajectory)

        state = tick_at(controller, scheduler, clock, tof / 2)

        assert state.phase is Phase.RUNNING
        assert_allclose(state.elapsed_fraction, 0.5)
        assert state.current_index == math.floor(0.5 * (n - 1))
        assert scheduler.pending == 1

    def test_completion_lands_on_last_sample(self, controller, scheduler, clock):
        """Reaching the flight time completes on the last sample."""
        controller.start()
        tof = controller.metrics.time_of_flight

        state = tick_at(controller, scheduler, clock, tof)

        assert state.phase is Phase.COMPLETED
        assert state.is_completed
        assert state.elapsed_fraction == 1.0
        assert state.current_index == len(state.trajectory) - 1
        assert state.current_sample == state.trajectory.last
        assert state.live_metrics == state.metrics
        assert scheduler.pending == 0

    def test_overshoot_clamped(self, controller, scheduler, clock):
        """Late frames still end exactly on the last sample."""
        controller.start()

        state = tick_at(controller, scheduler, clock, 1000.0)

        assert state.elapsed_fraction == 1.0
        assert state.current_index == state.trajectory.last_index

    def test_completes_exactly_once(self, controller, scheduler, clock):
        """Completion is announced once and never left without start()."""
        completed = []
        controller.subscribe_frame(
            lambda s: completed.append(s) if s.phase is Phase.COMPLETED else None
        )
        controller.start()
        tof = controller.metrics.time_of_flight

        tick_at(controller, scheduler, clock, tof + 1.0)
        tick_at(controller, scheduler, clock, tof + 2.0)
        controller.resume()
        controller.pause()

        assert len(completed) == 1
        assert controller.phase is Phase.COMPLETED

    def test_variable_frame_intervals(self, controller, scheduler, clock):
        """Irregular frames give a non-decreasing, bounded index."""
        controller.start()
        last = controller.trajectory.last_index
        indices = []

        for elapsed in [0.001, 0.05, 0.051, 0.4, 0.41, 1.7, 2.9, 3.3, 10.0]:
            state = tick_at(controller, scheduler, clock, elapsed)
            indices.append(state.current_index)

        assert indices == sorted(indices)
        assert max(indices) == last
        assert controller.phase is Phase.COMPLETED

    def test_clock_going_backwards_ignored(self, controller, scheduler, clock):
        """An older clock reading does not move playback backwards."""
        controller.start()
        ahead = tick_at(controller, scheduler, clock, 2.0)
        behind = tick_at(controller, scheduler, clock, 1.0)

        assert behind.elapsed_fraction == ahead.elapsed_fraction
        assert behind.current_index == ahead.current_index

    def test_full_run_with_frame_clock(self, controller, scheduler, clock):
        """Playing at 60 Hz visits every sample region and finishes."""
        controller.start()
        frames = 0
        while scheduler.pending:
            clock.now += 1.0 / 60.0
            scheduler.fire()
            frames += 1

        tof = controller.metrics.time_of_flight
        assert frames == pytest.approx(tof * 60.0, abs=2)
        assert controller.snapshot().current_index == controller.trajectory.last_index


# =============================================================================
# Pause / Resume Tests
# =============================================================================


class TestPauseResume:
    """Test freezing and continuing playback."""

    def test_pause_freezes_progress(self, controller, scheduler, clock):
        """Paused state keeps the fraction and stops ticks."""
        controller.start()
        before = tick_at(controller, scheduler, clock, 1.0)

        controller.pause()
        clock.now += 10.0
        scheduler.fire()
        after = controller.snapshot()

        assert after.phase is Phase.PAUSED
        assert after.is_paused
        assert after.elapsed_fraction == before.elapsed_fraction
        assert after.current_index == before.current_index
        assert scheduler.pending == 0

    def test_resume_does_not_skip_paused_time(self, controller, scheduler, clock):
        """Resuming continues from the frozen fraction."""
        controller.start()
        tof = controller.metrics.time_of_flight
        frozen = tick_at(controller, scheduler, clock, 1.0).elapsed_fraction

        controller.pause()
        clock.now += 10.0
        controller.resume()
        assert scheduler.pending == 1

        scheduler.fire()
        assert_allclose(controller.snapshot().elapsed_fraction, frozen, atol=1e-9)

        clock.now += 0.5
        scheduler.fire()
        state = controller.snapshot()
        assert state.phase is Phase.RUNNING
        assert_allclose(state.elapsed_fraction, frozen + 0.5 / tof, atol=1e-9)

    def test_pause_noop_unless_running(self, controller, scheduler, clock):
        """pause() does nothing when idle or completed."""
        controller.pause()
        assert controller.phase is Phase.IDLE

        controller.start()
        tick_at(controller, scheduler, clock, 100.0)
        controller.pause()
        assert controller.phase is Phase.COMPLETED

    def test_resume_noop_unless_paused(self, controller, scheduler):
        """resume() while running does not request extra ticks."""
        controller.resume()
        assert controller.phase is Phase.IDLE

        controller.start()
        controller.resume()
        assert controller.phase is Phase.RUNNING
        assert scheduler.pending == 1

    def test_toggle_pause(self, controller, scheduler, clock):
        """toggle_pause() alternates between running and paused."""
        controller.toggle_pause()
        assert controller.phase is Phase.IDLE

        controller.start()
        controller.toggle_pause()
        assert controller.phase is Phase.PAUSED
        controller.toggle_pause()
        assert controller.phase is Phase.RUNNING


# =============================================================================
# Reset Tests
# =============================================================================


class TestReset:
    """Test reset() and its one-shot notification."""

    @pytest.mark.parametrize("phase", ["idle", "running", "paused", "completed"])
    def test_reset_from_any_phase(self, controller, scheduler, clock, phase):
        """Every phase resets to an empty idle state."""
        if phase != "idle":
            controller.start()
        if phase == "paused":
            tick_at(controller, scheduler, clock, 1.0)
            controller.pause()
        if phase == "completed":
            tick_at(controller, scheduler, clock, 100.0)

        controller.reset()
        state = controller.snapshot()

        assert state.phase is Phase.IDLE
        assert len(state.trajectory) == 0
        assert state.current_index is None
        assert state.metrics == DerivedMetrics()
        assert state.elapsed_fraction == 0.0
        assert state.just_reset
        assert scheduler.pending == 0

    def test_reset_notifies_once_per_call(self, controller):
        """Each reset() notifies each listener exactly once."""
        calls = []
        controller.subscribe_reset(lambda: calls.append("reset"))

        controller.start()
        controller.reset()
        assert calls == ["reset"]

        controller.reset()
        assert calls == ["reset", "reset"]

    def test_reset_flag_is_one_shot(self, controller):
        """consume_reset() reports a reset once."""
        assert not controller.consume_reset()

        controller.reset()
        assert controller.consume_reset()
        assert not controller.consume_reset()
        assert not controller.snapshot().just_reset

    def test_start_clears_reset_flag(self, controller):
        """A new run clears a pending reset flag."""
        controller.reset()
        controller.start()

        assert not controller.snapshot().just_reset
        assert not controller.consume_reset()

    def test_unsubscribe(self, controller):
        """Unsubscribed listeners are not called."""
        calls = []
        unsubscribe = controller.subscribe_reset(lambda: calls.append(1))

        unsubscribe()
        unsubscribe()
        controller.reset()

        assert calls == []


# =============================================================================
# Stale Tick Tests
# =============================================================================


class TestStaleTicks:
    """Ticks delivered after cancellation must be inert."""

    def test_tick_after_reset_inert(self, clock):
        """A cancelled tick from a reset run changes nothing."""
        scheduler = RecordingScheduler()
        controller = PlaybackController(scheduler, GROUND_LAUNCH, clock=clock)

        controller.start()
        stale = scheduler.callbacks[-1]
        controller.reset()
        controller.consume_reset()

        clock.now += 1.0
        stale()

        assert controller.phase is Phase.IDLE
        assert controller.snapshot().current_index is None
        assert scheduler.cancelled == [1]

    def test_tick_from_previous_run_inert(self, clock):
        """An old run's tick does not advance the new run."""
        scheduler = RecordingScheduler()
        controller = PlaybackController(scheduler, GROUND_LAUNCH, clock=clock)

        controller.start()
        stale = scheduler.callbacks[-1]
        controller.start()
        pending = len(scheduler.callbacks)

        clock.now += 1.0
        stale()

        assert controller.snapshot().current_index == 0
        assert controller.snapshot().elapsed_fraction == 0.0
        assert len(scheduler.callbacks) == pending

    def test_tick_while_paused_inert(self, clock):
        """A tick cancelled by pause() leaves the pause intact."""
        scheduler = RecordingScheduler()
        controller = PlaybackController(scheduler, GROUND_LAUNCH, clock=clock)

        controller.start()
        clock.now += 1.0
        scheduler.callbacks[-1]()
        stale = scheduler.callbacks[-1]
        controller.pause()
        frozen = controller.snapshot()

        clock.now += 1.0
        stale()

        assert controller.snapshot() == frozen

    def test_resumed_run_ignores_pre_pause_tick(self, clock):
        """After pause/resume only the new tick advances playback."""
        scheduler = RecordingScheduler()
        controller = PlaybackController(scheduler, GROUND_LAUNCH, clock=clock)

        controller.start()
        stale = scheduler.callbacks[-1]
        controller.pause()
        controller.resume()
        requested = len(scheduler.callbacks)

        stale()

        assert len(scheduler.callbacks) == requested


# =============================================================================
# Parameters and Snapshots
# =============================================================================


class TestParametersAndSnapshots:
    """Test parameter updates and snapshot behaviour."""

    def test_update_parameters_applies_on_next_start(self, controller):
        """Changing parameters leaves the current run alone."""
        controller.start()
        running = controller.trajectory

        params = controller.update_parameters(drag_enabled=True, drag_coefficient=0.05)

        assert params.drag_enabled
        assert controller.trajectory is running

        controller.start()
        assert controller.trajectory == compute_trajectory(params)

    def test_update_parameters_validates(self, controller):
        """Invalid updates raise and keep the old parameters."""
        with pytest.raises(ValueError):
            controller.update_parameters(mass=0.0)
        with pytest.raises(TypeError):
            controller.update_parameters(velocity=10.0)

        assert controller.params == GROUND_LAUNCH

    def test_snapshot_immutable(self, controller):
        """Snapshots cannot be modified by readers."""
        controller.start()
        state = controller.snapshot()

        with pytest.raises(dataclasses.FrozenInstanceError):
            state.current_index = 5

    def test_visible_trajectory(self, controller, scheduler, clock):
        """Visible path grows with the current index."""
        controller.start()
        assert len(controller.snapshot().visible_trajectory) == 1

        state = tick_at(controller, scheduler, clock, 1.0)
        assert len(state.visible_trajectory) == state.current_index + 1
        assert state.visible_trajectory[-1] == state.current_sample

    def test_frame_listener_sees_every_tick(self, controller, scheduler, clock):
        """Frame listeners get a snapshot per tick and per command."""
        frames = []
        unsubscribe = controller.subscribe_frame(frames.append)

        controller.start()
        tick_at(controller, scheduler, clock, 0.5)
        controller.pause()
        assert [f.phase for f in frames] == [Phase.RUNNING, Phase.RUNNING, Phase.PAUSED]

        unsubscribe()
        controller.resume()
        assert len(frames) == 3

    def test_custom_integrator_config(self, scheduler, clock):
        """The controller integrates with its own config."""
        config = IntegratorConfig(max_flight_time=1.0)
        controller = PlaybackController(scheduler, GROUND_LAUNCH, config=config, clock=clock)

        controller.start()

        assert controller.metrics.time_of_flight <= 1.0 + 1e-9
