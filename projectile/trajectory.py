"""Fixed-step trajectory integration for a point-mass projectile.

The integrator advances (x, y, vx, vy) under uniform gravity and, optionally,
quadratic air resistance using semi-implicit Euler at a fixed 60 Hz step.
One sample is recorded per step so playback can map elapsed time directly
onto sample indices.

Flight ends when the projectile drops below ground or after
``IntegratorConfig.max_flight_time`` seconds, whichever comes first. The
below-ground state produced by the final step is not recorded.

Example:
    >>> from projectile.parameters import SimulationParameters
    >>> from projectile.trajectory import compute_trajectory
    >>>
    >>> traj = compute_trajectory(SimulationParameters(launch_height=0.0))
    >>> traj.last.t  # time of flight [s]
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import NamedTuple, overload

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from projectile.parameters import SimulationParameters

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

# One step per 60 Hz visual frame
DEFAULT_TIME_STEP: float = 1.0 / 60.0
DEFAULT_MAX_FLIGHT_TIME: float = 30.0


@beartype
@dataclass(frozen=True)
class IntegratorConfig:
    """Integrator settings.

    Attributes:
        time_step: Fixed integration step [s]
        max_flight_time: Safety cap on simulated flight time [s]
    """
    time_step: float = DEFAULT_TIME_STEP
    max_flight_time: float = DEFAULT_MAX_FLIGHT_TIME

    def __post_init__(self) -> None:
        if not self.time_step > 0:
            raise ValueError(f"time_step must be > 0, got {self.time_step}")
        if not self.max_flight_time > 0:
            raise ValueError(f"max_flight_time must be > 0, got {self.max_flight_time}")

    @property
    def max_samples(self) -> int:
        """Upper bound on the number of recorded samples."""
        return int(self.max_flight_time / self.time_step) + 2


# =============================================================================
# Samples
# =============================================================================


class TrajectorySample(NamedTuple):
    """Kinematic state of the projectile at one time step."""
    x: float   # Horizontal distance from launch point [m]
    y: float   # Height above ground [m]
    vx: float  # Horizontal velocity [m/s]
    vy: float  # Vertical velocity [m/s]
    t: float   # Time since launch [s]

    @property
    def speed(self) -> float:
        """Speed magnitude [m/s]."""
        return float(np.hypot(self.vx, self.vy))


@beartype
@dataclass(frozen=True)
class Trajectory:
    """Immutable, time-ordered sequence of samples from one run.

    An empty trajectory stands for "no run".
    """
    samples: tuple[TrajectorySample, ...] = ()

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[TrajectorySample]:
        return iter(self.samples)

    @overload
    def __getitem__(self, index: int) -> TrajectorySample: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[TrajectorySample, ...]: ...

    def __getitem__(self, index):
        return self.samples[index]

    def __bool__(self) -> bool:
        return bool(self.samples)

    @classmethod
    def from_array(cls, rows: NDArray[np.float64]) -> "Trajectory":
        """Build from an (N, 5) array of x, y, vx, vy, t rows."""
        return cls(samples=tuple(
            TrajectorySample(*(float(v) for v in row)) for row in rows
        ))

    @property
    def first(self) -> TrajectorySample | None:
        """Launch sample, or None if empty."""
        return self.samples[0] if self.samples else None

    @property
    def last(self) -> TrajectorySample | None:
        """Final sample, or None if empty."""
        return self.samples[-1] if self.samples else None

    @property
    def last_index(self) -> int:
        """Index of the final sample (-1 if empty)."""
        return len(self.samples) - 1

    def prefix(self, index: int) -> tuple[TrajectorySample, ...]:
        """Samples 0..index inclusive (the path drawn so far)."""
        if index < 0:
            return ()
        return self.samples[:index + 1]

    # Array views ------------------------------------------------------------

    def to_array(self) -> NDArray[np.float64]:
        """(N, 5) array of x, y, vx, vy, t."""
        if not self.samples:
            return np.empty((0, 5), dtype=np.float64)
        return np.array(self.samples, dtype=np.float64)

    @property
    def time(self) -> NDArray[np.float64]:
        """Time array [s]."""
        return self.to_array()[:, 4]

    @property
    def x(self) -> NDArray[np.float64]:
        """Horizontal position history [m]."""
        return self.to_array()[:, 0]

    @property
    def y(self) -> NDArray[np.float64]:
        """Height history [m]."""
        return self.to_array()[:, 1]

    @property
    def vx(self) -> NDArray[np.float64]:
        """Horizontal velocity history [m/s]."""
        return self.to_array()[:, 2]

    @property
    def vy(self) -> NDArray[np.float64]:
        """Vertical velocity history [m/s]."""
        return self.to_array()[:, 3]

    @property
    def speed(self) -> NDArray[np.float64]:
        """Speed history [m/s]."""
        data = self.to_array()
        return np.hypot(data[:, 2], data[:, 3])

    @property
    def acceleration(self) -> NDArray[np.float64]:
        """Rate of change of speed between samples [m/s^2].

        First entry is zero, matching the live graph history.
        """
        speed = self.speed
        accel = np.zeros_like(speed)
        if len(speed) > 1:
            accel[1:] = np.diff(speed) / np.diff(self.time)
        return accel

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        data = self.to_array()
        return pl.DataFrame({
            "time": data[:, 4],
            "x": data[:, 0],
            "y": data[:, 1],
            "vx": data[:, 2],
            "vy": data[:, 3],
            "speed": np.hypot(data[:, 2], data[:, 3]),
        })


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True)
def _integrate_core(
    y0: float,
    vx0: float, vy0: float,
    g: float,
    k: float,
    drag: bool,
    dt: float,
    max_time: float,
    capacity: int,
) -> np.ndarray:
    """Semi-implicit Euler loop; returns recorded rows of x, y, vx, vy, t."""
    out = np.empty((capacity, 5))
    x = 0.0
    y = y0
    vx = vx0
    vy = vy0
    t = 0.0
    n = 0
    first = True

    while (y >= 0.0 or first) and n < capacity:
        first = False
        out[n, 0] = x
        out[n, 1] = y
        out[n, 2] = vx
        out[n, 3] = vy
        out[n, 4] = t
        n += 1

        if drag:
            # Zero speed gives zero drag
            speed = np.sqrt(vx*vx + vy*vy)
            vx += (-k * speed * vx) * dt
            vy += (-k * speed * vy - g) * dt
        else:
            vy -= g * dt

        x += vx * dt
        y += vy * dt
        t += dt

        if t > max_time:
            break

    return out[:n]


@beartype
def compute_trajectory(
    params: SimulationParameters,
    config: IntegratorConfig | None = None,
) -> Trajectory:
    """Integrate a projectile flight.

    Args:
        params: Launch parameters
        config: Integrator settings (defaults: 1/60 s step, 30 s cap)

    Returns:
        Trajectory starting at (0, launch_height) at t=0
    """
    config = config or IntegratorConfig()
    vx0, vy0 = params.initial_velocity

    rows = _integrate_core(
        params.launch_height,
        vx0, vy0,
        params.gravity,
        params.drag_coefficient / params.mass,
        params.drag_enabled,
        config.time_step,
        config.max_flight_time,
        config.max_samples,
    )
    trajectory = Trajectory.from_array(rows)

    logger.debug(
        f"Integrated {len(trajectory)} samples "
        f"(drag={params.drag_enabled}, t_end={trajectory.last.t:.3f}s)"
    )
    return trajectory
