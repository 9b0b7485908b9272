"""Launch parameters, slider ranges and presets.

SimulationParameters is the single input record of a run. It is immutable:
UI collaborators produce a new record with ``updated()`` (or
``apply_preset()``) and hand it to the playback controller.

Example:
    >>> from projectile.parameters import SimulationParameters, apply_preset
    >>>
    >>> params = SimulationParameters(initial_speed=30.0, launch_angle_deg=60.0)
    >>> params = params.updated(drag_enabled=True, drag_coefficient=0.02)
    >>> vacuum = apply_preset(params, "Perfect Vacuum")
"""

import math
from dataclasses import dataclass, fields, replace

from beartype import beartype

# =============================================================================
# Simulation Parameters
# =============================================================================

# Largest launch height offered, as a fraction of the world height
MAX_LAUNCH_HEIGHT_FRACTION: float = 0.8


@beartype
@dataclass(frozen=True)
class SimulationParameters:
    """Launch configuration for one projectile run.

    Attributes:
        initial_speed: Launch speed [m/s]
        launch_angle_deg: Elevation above horizontal, -90..90 [degrees]
        mass: Projectile mass [kg]
        drag_enabled: Whether quadratic air resistance is applied
        drag_coefficient: Lumped drag constant, divided by mass [kg/m]
        gravity: Gravitational acceleration magnitude [m/s^2]
        launch_height: Height of the launch point above ground [m]
        world_width: Visible world width, used by rendering only [m]
        world_height: Visible world height, used by rendering only [m]
    """
    initial_speed: float = 25.0
    launch_angle_deg: float = 45.0
    mass: float = 5.0
    drag_enabled: bool = False
    drag_coefficient: float = 0.01
    gravity: float = 9.81
    launch_height: float = 2.0
    world_width: float = 100.0
    world_height: float = 60.0

    def __post_init__(self) -> None:
        """Validate physical constraints."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{f.name} must be finite, got {value}")

        if self.initial_speed <= 0:
            raise ValueError(f"initial_speed must be > 0, got {self.initial_speed}")
        if not -90.0 <= self.launch_angle_deg <= 90.0:
            raise ValueError(
                f"launch_angle_deg must be within [-90, 90], got {self.launch_angle_deg}"
            )
        if self.mass <= 0:
            raise ValueError(f"mass must be > 0, got {self.mass}")
        if self.drag_coefficient <= 0:
            raise ValueError(f"drag_coefficient must be > 0, got {self.drag_coefficient}")
        if self.gravity <= 0:
            raise ValueError(f"gravity must be > 0, got {self.gravity}")
        if self.launch_height < 0:
            raise ValueError(f"launch_height must be >= 0, got {self.launch_height}")
        if self.world_width <= 0 or self.world_height <= 0:
            raise ValueError(
                f"world size must be positive, got {self.world_width} x {self.world_height}"
            )

    @property
    def launch_angle_rad(self) -> float:
        """Launch angle [rad]."""
        return math.radians(self.launch_angle_deg)

    @property
    def initial_velocity(self) -> tuple[float, float]:
        """Initial velocity components (vx0, vy0) [m/s]."""
        theta = self.launch_angle_rad
        return (
            self.initial_speed * math.cos(theta),
            self.initial_speed * math.sin(theta),
        )

    @property
    def max_launch_height(self) -> float:
        """Highest launch point the world can show [m]."""
        return MAX_LAUNCH_HEIGHT_FRACTION * self.world_height

    def updated(self, **changes: float | bool) -> "SimulationParameters":
        """Return a copy with some fields replaced.

        Raises:
            TypeError: If a field name is unknown
            ValueError: If the new combination is invalid
        """
        return replace(self, **changes)


# =============================================================================
# Slider Ranges
# =============================================================================


@beartype
@dataclass(frozen=True)
class ParameterRange:
    """Range and step of one adjustable parameter."""
    minimum: float
    maximum: float
    step: float

    def clamp(self, value: float) -> float:
        """Snap value to the step grid and clip it into range."""
        snapped = self.minimum + round((value - self.minimum) / self.step) * self.step
        snapped = min(max(snapped, self.minimum), self.maximum)
        return float(round(snapped, 9))


PARAMETER_RANGES: dict[str, ParameterRange] = {
    "initial_speed": ParameterRange(2.0, 50.0, 1.0),
    "launch_angle_deg": ParameterRange(-90.0, 90.0, 1.0),
    "mass": ParameterRange(0.1, 10.0, 0.1),
    "gravity": ParameterRange(1.0, 20.0, 0.1),
    "drag_coefficient": ParameterRange(0.001, 0.1, 0.001),
    "world_width": ParameterRange(30.0, 300.0, 5.0),
    "world_height": ParameterRange(20.0, 150.0, 5.0),
}


@beartype
def launch_height_range(world_height: float) -> ParameterRange:
    """Launch height range for a given world height."""
    return ParameterRange(0.0, MAX_LAUNCH_HEIGHT_FRACTION * world_height, 0.1)


@beartype
def clamp_to_ranges(params: SimulationParameters) -> SimulationParameters:
    """Clamp every adjustable field of params into its slider range.

    The launch height is clamped after the world height, against the
    clamped world.
    """
    changes = {
        name: rng.clamp(getattr(params, name))
        for name, rng in PARAMETER_RANGES.items()
    }
    height_range = launch_height_range(changes["world_height"])
    changes["launch_height"] = height_range.clamp(params.launch_height)
    return params.updated(**changes)


# =============================================================================
# Presets
# =============================================================================


@beartype
@dataclass(frozen=True)
class Preset:
    """Named set of parameter overrides."""
    name: str
    description: str
    overrides: tuple[tuple[str, float | bool], ...]

    def apply(self, params: SimulationParameters) -> SimulationParameters:
        """Return params with this preset's overrides applied."""
        return params.updated(**dict(self.overrides))


PRESETS: dict[str, Preset] = {
    preset.name: preset
    for preset in (
        Preset(
            name="Cannon Ball",
            description="Heavy projectile with moderate air resistance from elevated position",
            overrides=(
                ("initial_speed", 28.0),
                ("launch_angle_deg", 45.0),
                ("mass", 50.0),
                ("drag_enabled", True),
                ("drag_coefficient", 0.02),
                ("launch_height", 2.0),
            ),
        ),
        Preset(
            name="Handball",
            description="Very light object thrown straight up",
            overrides=(
                ("initial_speed", 42.0),
                ("launch_angle_deg", 90.0),
                ("mass", 0.1),
                ("drag_enabled", False),
                ("drag_coefficient", 0.08),
                ("launch_height", 0.0),
            ),
        ),
        Preset(
            name="Perfect Vacuum",
            description="Ideal physics without air resistance - perfect parabolic motion",
            overrides=(
                ("initial_speed", 35.0),
                ("launch_angle_deg", 45.0),
                ("mass", 25.0),
                ("drag_enabled", False),
                ("drag_coefficient", 0.01),
                ("launch_height", 1.5),
            ),
        ),
        Preset(
            name="Bullet",
            description="High-speed, lightweight projectile with minimal air resistance",
            overrides=(
                ("initial_speed", 47.0),
                ("launch_angle_deg", 26.0),
                ("mass", 0.01),
                ("drag_enabled", False),
                ("drag_coefficient", 0.005),
                ("launch_height", 0.0),
            ),
        ),
        Preset(
            name="Long Range",
            description="Optimized for maximum range with realistic air resistance",
            overrides=(
                ("initial_speed", 60.0),
                ("launch_angle_deg", 30.0),
                ("mass", 20.0),
                ("drag_enabled", True),
                ("drag_coefficient", 0.015),
                ("launch_height", 3.0),
            ),
        ),
    )
}


@beartype
def apply_preset(params: SimulationParameters, name: str) -> SimulationParameters:
    """Apply the named preset to params.

    Raises:
        KeyError: If no preset has that name
    """
    try:
        preset = PRESETS[name]
    except KeyError as err:
        valid = ", ".join(PRESETS)
        raise KeyError(f"Unknown preset: {name!r}. Valid: {valid}") from err
    return preset.apply(params)
