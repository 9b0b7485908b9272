"""Rolling velocity and acceleration history for the live graphs.

The chart collaborator draws the last ``max_points`` readings. Acceleration
is the change in speed between consecutive readings, so it reflects what
the viewer saw rather than the integrator's internal step.

Example:
    >>> from projectile.graphs import GraphHistory
    >>>
    >>> history = GraphHistory()
    >>> detach = history.attach(controller)  # records every frame, clears on reset
    >>> plot(history.times, history.velocities)
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from projectile.playback import PlaybackController, PlaybackState
from projectile.trajectory import TrajectorySample

DEFAULT_MAX_POINTS: int = 100


class GraphPoint(NamedTuple):
    """One reading on the live graphs."""
    time: float          # [s]
    velocity: float      # Speed [m/s]
    acceleration: float  # d(speed)/dt [m/s^2]


@beartype
@dataclass
class GraphHistory:
    """Bounded history of speed and acceleration readings."""
    max_points: int = DEFAULT_MAX_POINTS

    _points: deque[GraphPoint] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_points < 1:
            raise ValueError(f"max_points must be >= 1, got {self.max_points}")
        self._points = deque(maxlen=self.max_points)

    def __len__(self) -> int:
        return len(self._points)

    def record(self, sample: TrajectorySample) -> GraphPoint:
        """Add a reading for sample and return it."""
        speed = sample.speed
        acceleration = 0.0
        if self._points:
            previous = self._points[-1]
            dt = sample.t - previous.time
            if dt > 0:
                acceleration = (speed - previous.velocity) / dt

        point = GraphPoint(time=sample.t, velocity=speed, acceleration=acceleration)
        self._points.append(point)
        return point

    def clear(self) -> None:
        """Forget all readings."""
        self._points.clear()

    def attach(self, controller: PlaybackController) -> Callable[[], None]:
        """Follow a controller's frames and resets.

        Returns:
            Callable that detaches this history again
        """
        def on_frame(state: PlaybackState) -> None:
            sample = state.current_sample
            if sample is None:
                return
            # Pause and resume re-announce the same sample
            if self._points and self._points[-1].time == sample.t:
                return
            self.record(sample)

        detach_frame = controller.subscribe_frame(on_frame)
        detach_reset = controller.subscribe_reset(self.clear)

        def detach() -> None:
            detach_frame()
            detach_reset()

        return detach

    @property
    def points(self) -> tuple[GraphPoint, ...]:
        return tuple(self._points)

    @property
    def times(self) -> NDArray[np.float64]:
        """Reading times [s]."""
        return np.array([p.time for p in self._points], dtype=np.float64)

    @property
    def velocities(self) -> NDArray[np.float64]:
        """Speed readings [m/s]."""
        return np.array([p.velocity for p in self._points], dtype=np.float64)

    @property
    def accelerations(self) -> NDArray[np.float64]:
        """Acceleration readings [m/s^2]."""
        return np.array([p.acceleration for p in self._points], dtype=np.float64)
