"""Projectile - Trajectory integration and playback for projectile motion.

This package computes the flight of a point-mass projectile under uniform
gravity and optional quadratic air resistance, derives its metrics and plays
the trajectory back against wall-clock time for an external renderer.

Example:
    >>> from projectile import PlaybackController, ManualScheduler, SimulationParameters
    >>>
    >>> scheduler = ManualScheduler()
    >>> controller = PlaybackController(scheduler, SimulationParameters(launch_height=0.0))
    >>> controller.start()
    >>> scheduler.fire()
    >>> state = controller.snapshot()
    >>> print(f"Range: {state.metrics.range:.1f} m")
"""

__version__ = "0.1.0"

from projectile.graphs import (
    GraphHistory,
    GraphPoint,
)
from projectile.metrics import (
    DerivedMetrics,
    compute_metrics,
    live_metrics,
    vacuum_metrics,
)
from projectile.parameters import (
    PARAMETER_RANGES,
    PRESETS,
    ParameterRange,
    Preset,
    SimulationParameters,
    apply_preset,
    clamp_to_ranges,
    launch_height_range,
)
from projectile.playback import (
    Phase,
    PlaybackController,
    PlaybackState,
)
from projectile.scheduling import (
    ManualScheduler,
    TickScheduler,
)
from projectile.trajectory import (
    IntegratorConfig,
    Trajectory,
    TrajectorySample,
    compute_trajectory,
)
from projectile.viewport import (
    Viewport,
)

__all__ = [
    "__version__",
    # Parameters
    "SimulationParameters",
    "ParameterRange",
    "PARAMETER_RANGES",
    "launch_height_range",
    "clamp_to_ranges",
    "Preset",
    "PRESETS",
    "apply_preset",
    # Integration
    "IntegratorConfig",
    "Trajectory",
    "TrajectorySample",
    "compute_trajectory",
    # Metrics
    "DerivedMetrics",
    "compute_metrics",
    "live_metrics",
    "vacuum_metrics",
    # Playback
    "Phase",
    "PlaybackController",
    "PlaybackState",
    "ManualScheduler",
    "TickScheduler",
    # Display support
    "GraphHistory",
    "GraphPoint",
    "Viewport",
]
