"""Time-driven playback of a precomputed trajectory.

The controller owns a single run and maps real elapsed time onto a sample
index of the run's trajectory. It is driven by an injected host scheduler:
it requests a tick, the host calls back on the next frame, and the
controller requests the next tick until the run completes or is paused or
reset.

State machine:
    IDLE --start--> RUNNING --tick (fraction >= 1)--> COMPLETED
    RUNNING --pause--> PAUSED --resume--> RUNNING
    any --start--> RUNNING (fresh run)
    any --reset--> IDLE

Every transition that cancels the pending tick also advances the run
generation. A callback carrying an older generation is ignored, so a tick
the host delivers after cancellation cannot touch the new state.

Example:
    >>> from projectile.playback import PlaybackController
    >>> from projectile.scheduling import ManualScheduler
    >>>
    >>> scheduler = ManualScheduler()
    >>> controller = PlaybackController(scheduler)
    >>> controller.start()
    >>>
    >>> # Host render loop
    >>> while controller.snapshot().is_running:
    ...     scheduler.fire()
    ...     state = controller.snapshot()
    ...     draw(state.visible_trajectory, state.current_sample)
"""

import logging
import math
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from enum import Enum, auto

from beartype import beartype

from projectile.metrics import ZERO_METRICS, DerivedMetrics, compute_metrics, live_metrics
from projectile.parameters import SimulationParameters
from projectile.scheduling import TickScheduler
from projectile.trajectory import (
    IntegratorConfig,
    Trajectory,
    TrajectorySample,
    compute_trajectory,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Playback State
# =============================================================================


class Phase(Enum):
    """Lifecycle phase of a run."""

    IDLE = auto()       # No run; empty trajectory
    RUNNING = auto()    # Advancing with wall-clock time
    PAUSED = auto()     # Progress frozen
    COMPLETED = auto()  # Parked on the final sample


@beartype
@dataclass(frozen=True)
class PlaybackState:
    """Read-only snapshot handed to rendering and display collaborators.

    Attributes:
        phase: Current lifecycle phase
        trajectory: Full trajectory of the run (empty when idle)
        current_index: Index of the displayed sample, None when idle
        metrics: Metrics of the whole run
        elapsed_fraction: Playback progress, 0..1
        just_reset: True until the reset notification has been consumed
    """
    phase: Phase = Phase.IDLE
    trajectory: Trajectory = field(default_factory=Trajectory)
    current_index: int | None = None
    metrics: DerivedMetrics = ZERO_METRICS
    elapsed_fraction: float = 0.0
    just_reset: bool = False

    @property
    def current_sample(self) -> TrajectorySample | None:
        """Sample to draw this frame."""
        if self.current_index is None:
            return None
        return self.trajectory[self.current_index]

    @property
    def visible_trajectory(self) -> tuple[TrajectorySample, ...]:
        """Path travelled so far."""
        if self.current_index is None:
            return ()
        return self.trajectory.prefix(self.current_index)

    @property
    def live_metrics(self) -> DerivedMetrics:
        """Metrics of the flight up to the current sample."""
        return live_metrics(self.trajectory, self.current_index)

    @property
    def is_idle(self) -> bool:
        return self.phase is Phase.IDLE

    @property
    def is_running(self) -> bool:
        return self.phase is Phase.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.phase is Phase.PAUSED

    @property
    def is_completed(self) -> bool:
        return self.phase is Phase.COMPLETED


ResetListener = Callable[[], None]
FrameListener = Callable[[PlaybackState], None]


# =============================================================================
# Playback Controller
# =============================================================================


@beartype
@dataclass
class PlaybackController:
    """Single-run playback state machine.

    Attributes:
        scheduler: Host frame scheduler
        params: Parameters used by the next start()
        config: Integrator settings
        clock: Monotonic clock [s]
    """
    scheduler: TickScheduler
    params: SimulationParameters = field(default_factory=SimulationParameters)
    config: IntegratorConfig = field(default_factory=IntegratorConfig)
    clock: Callable[[], float] = time.monotonic

    # Internal state
    _phase: Phase = field(default=Phase.IDLE, init=False, repr=False)
    _trajectory: Trajectory = field(default_factory=Trajectory, init=False, repr=False)
    _metrics: DerivedMetrics = field(default=ZERO_METRICS, init=False, repr=False)
    _index: int | None = field(default=None, init=False, repr=False)
    _fraction: float = field(default=0.0, init=False, repr=False)
    _start_time: float = field(default=0.0, init=False, repr=False)
    _generation: int = field(default=0, init=False, repr=False)
    _token: Hashable | None = field(default=None, init=False, repr=False)
    _just_reset: bool = field(default=False, init=False, repr=False)
    _reset_listeners: list[ResetListener] = field(default_factory=list, init=False, repr=False)
    _frame_listeners: list[FrameListener] = field(default_factory=list, init=False, repr=False)

    # Commands ---------------------------------------------------------------

    def start(self) -> None:
        """Compute a fresh run from the current parameters and play it."""
        self._cancel_tick()

        self._trajectory = compute_trajectory(self.params, self.config)
        self._metrics = compute_metrics(self._trajectory)
        self._index = 0
        self._fraction = 0.0
        self._just_reset = False
        self._start_time = self.clock()

        logger.info(
            f"Run {self._generation} started: {len(self._trajectory)} samples, "
            f"time of flight {self._metrics.time_of_flight:.3f}s"
        )

        if self._metrics.time_of_flight <= 0.0:
            # Nothing to animate
            self._complete()
        else:
            self._phase = Phase.RUNNING
            self._request_tick()

        self._emit_frame()

    def pause(self) -> None:
        """Freeze playback. No-op unless running."""
        if self._phase is not Phase.RUNNING:
            return
        self._cancel_tick()
        self._phase = Phase.PAUSED
        logger.debug(f"Paused at fraction {self._fraction:.3f}")
        self._emit_frame()

    def resume(self) -> None:
        """Continue from the frozen fraction. No-op unless paused."""
        if self._phase is not Phase.PAUSED:
            return
        self._start_time = self.clock() - self._fraction * self._metrics.time_of_flight
        self._phase = Phase.RUNNING
        self._request_tick()
        logger.debug(f"Resumed at fraction {self._fraction:.3f}")
        self._emit_frame()

    def toggle_pause(self) -> None:
        """Pause when running, resume when paused."""
        if self._phase is Phase.RUNNING:
            self.pause()
        elif self._phase is Phase.PAUSED:
            self.resume()

    def reset(self) -> None:
        """Discard the run and return to idle.

        Reset listeners are notified exactly once per call, before frame
        listeners see the idle state.
        """
        self._cancel_tick()
        self._phase = Phase.IDLE
        self._trajectory = Trajectory()
        self._metrics = ZERO_METRICS
        self._index = None
        self._fraction = 0.0
        self._start_time = 0.0
        self._just_reset = True
        logger.info("Playback reset")

        for listener in list(self._reset_listeners):
            listener()
        self._emit_frame()

    def update_parameters(self, **changes: float | bool) -> SimulationParameters:
        """Replace some parameters. The current run is unaffected until start()."""
        self.params = self.params.updated(**changes)
        return self.params

    def consume_reset(self) -> bool:
        """Return whether a reset happened since the last call, clearing it."""
        flag = self._just_reset
        self._just_reset = False
        return flag

    # Observers --------------------------------------------------------------

    def snapshot(self) -> PlaybackState:
        """Current read-only state."""
        return PlaybackState(
            phase=self._phase,
            trajectory=self._trajectory,
            current_index=self._index,
            metrics=self._metrics,
            elapsed_fraction=self._fraction,
            just_reset=self._just_reset,
        )

    def subscribe_reset(self, listener: ResetListener) -> Callable[[], None]:
        """Call listener on every reset(). Returns an unsubscribe callable."""
        self._reset_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._reset_listeners:
                self._reset_listeners.remove(listener)

        return unsubscribe

    def subscribe_frame(self, listener: FrameListener) -> Callable[[], None]:
        """Call listener with a snapshot after every tick and state change.

        Returns an unsubscribe callable.
        """
        self._frame_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._frame_listeners:
                self._frame_listeners.remove(listener)

        return unsubscribe

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def trajectory(self) -> Trajectory:
        return self._trajectory

    @property
    def metrics(self) -> DerivedMetrics:
        return self._metrics

    @property
    def generation(self) -> int:
        """Identity of the current run; changes whenever ticks are cancelled."""
        return self._generation

    # Internals --------------------------------------------------------------

    def _on_tick(self, generation: int) -> None:
        """Advance playback for one frame."""
        if generation != self._generation or self._phase is not Phase.RUNNING:
            logger.debug(f"Ignoring stale tick from run {generation}")
            return
        self._token = None

        elapsed = self.clock() - self._start_time
        fraction = min(elapsed / self._metrics.time_of_flight, 1.0)
        # Never step backwards on an out-of-order clock reading
        fraction = max(fraction, self._fraction)

        if fraction >= 1.0:
            self._complete()
            logger.info(f"Run {self._generation} completed")
        else:
            self._fraction = fraction
            self._index = math.floor(fraction * self._trajectory.last_index)
            self._request_tick()

        self._emit_frame()

    def _complete(self) -> None:
        self._phase = Phase.COMPLETED
        self._fraction = 1.0
        self._index = self._trajectory.last_index

    def _request_tick(self) -> None:
        generation = self._generation
        self._token = self.scheduler.request(lambda: self._on_tick(generation))

    def _cancel_tick(self) -> None:
        self._generation += 1
        if self._token is not None:
            self.scheduler.cancel(self._token)
            self._token = None

    def _emit_frame(self) -> None:
        if not self._frame_listeners:
            return
        state = self.snapshot()
        for listener in list(self._frame_listeners):
            listener(state)
