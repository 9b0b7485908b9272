"""Derived flight metrics.

Example:
    >>> from projectile.metrics import compute_metrics, vacuum_metrics
    >>>
    >>> metrics = compute_metrics(traj)
    >>> expected = vacuum_metrics(params)  # closed-form, drag-free
"""

import math
from collections.abc import Sequence
from typing import NamedTuple

from beartype import beartype

from projectile.parameters import SimulationParameters
from projectile.trajectory import Trajectory, TrajectorySample


class DerivedMetrics(NamedTuple):
    """Scalar summary of a trajectory."""
    max_height: float = 0.0      # Highest y reached [m]
    range: float = 0.0           # x of the final sample [m]
    time_of_flight: float = 0.0  # t of the final sample [s]


ZERO_METRICS = DerivedMetrics()


@beartype
def compute_metrics(
    trajectory: Trajectory | Sequence[TrajectorySample],
) -> DerivedMetrics:
    """Compute max height, range and time of flight.

    An empty trajectory gives all-zero metrics.
    """
    if len(trajectory) == 0:
        return ZERO_METRICS

    last = trajectory[len(trajectory) - 1]
    return DerivedMetrics(
        max_height=max(sample.y for sample in trajectory),
        range=last.x,
        time_of_flight=last.t,
    )


@beartype
def live_metrics(
    trajectory: Trajectory | Sequence[TrajectorySample],
    index: int | None,
) -> DerivedMetrics:
    """Metrics of the flight so far, up to and including sample ``index``.

    Index is clamped into the trajectory; None or an empty trajectory gives
    zeros.
    """
    if index is None or len(trajectory) == 0:
        return ZERO_METRICS

    index = min(max(index, 0), len(trajectory) - 1)
    current = trajectory[index]
    return DerivedMetrics(
        max_height=max(trajectory[i].y for i in range(index + 1)),
        range=current.x,
        time_of_flight=current.t,
    )


@beartype
def vacuum_metrics(params: SimulationParameters) -> DerivedMetrics:
    """Closed-form metrics for drag-free flight from the launch height.

    Time of flight solves h + vy0*t - g*t^2/2 = 0 for the positive root.
    """
    vx0, vy0 = params.initial_velocity
    g = params.gravity
    h = params.launch_height

    t_flight = (vy0 + math.sqrt(vy0 * vy0 + 2.0 * g * h)) / g
    apex = max(vy0, 0.0)

    return DerivedMetrics(
        max_height=h + apex * apex / (2.0 * g),
        range=vx0 * t_flight,
        time_of_flight=t_flight,
    )
