"""World-to-canvas scale conversions.

Physics runs in meters with y up from the ground. The canvas runs in pixels
with y down from the top edge, a strip of ground along the bottom and the
launch point offset from the left edge. Viewport fits the configured world
size into a container while keeping the aspect ratio.

Example:
    >>> from projectile.viewport import Viewport
    >>>
    >>> view = Viewport.fit(100.0, 60.0, container_width=1280.0, container_height=720.0)
    >>> px, py = view.to_canvas(sample.x, sample.y)
"""

from dataclasses import dataclass

from beartype import beartype

from projectile.trajectory import TrajectorySample

# =============================================================================
# Layout Constants
# =============================================================================

GROUND_HEIGHT: float = 100.0   # Ground strip below y=0 [px]
LAUNCH_OFFSET: float = 100.0   # Launch point distance from left edge [px]
MAX_CANVAS_WIDTH: float = 1200.0
MAX_CANVAS_HEIGHT: float = 800.0
FILL_FRACTION: float = 0.8     # Share of the container the canvas may use
VELOCITY_ARROW_SCALE: float = 0.1  # Arrow length per m/s, in meters


@beartype
@dataclass(frozen=True)
class Viewport:
    """Mapping between world meters and canvas pixels.

    Attributes:
        world_width: Visible world width [m]
        world_height: Visible world height above ground [m]
        scale: Pixels per meter
    """
    world_width: float
    world_height: float
    scale: float

    def __post_init__(self) -> None:
        if self.world_width <= 0 or self.world_height <= 0:
            raise ValueError(
                f"world size must be positive, got {self.world_width} x {self.world_height}"
            )
        if self.scale <= 0:
            raise ValueError(f"scale must be > 0, got {self.scale}")

    @classmethod
    def fit(
        cls,
        world_width: float,
        world_height: float,
        container_width: float,
        container_height: float,
    ) -> "Viewport":
        """Largest aspect-preserving viewport that fits the container.

        Args:
            world_width: World width [m]
            world_height: World height [m]
            container_width: Available width [px]
            container_height: Available height [px]
        """
        if container_width <= 0 or container_height <= 0:
            raise ValueError(
                f"container must be positive, got {container_width} x {container_height}"
            )
        if world_width <= 0 or world_height <= 0:
            raise ValueError(
                f"world size must be positive, got {world_width} x {world_height}"
            )

        usable_width = min(container_width * FILL_FRACTION, MAX_CANVAS_WIDTH)
        usable_height = min(container_height * FILL_FRACTION, MAX_CANVAS_HEIGHT - GROUND_HEIGHT)
        scale = min(usable_width / world_width, usable_height / world_height)

        return cls(world_width=world_width, world_height=world_height, scale=scale)

    @property
    def canvas_width(self) -> float:
        """Canvas width [px]."""
        return self.world_width * self.scale

    @property
    def canvas_height(self) -> float:
        """Canvas height including the ground strip [px]."""
        return self.world_height * self.scale + GROUND_HEIGHT

    def to_canvas(self, x: float, y: float) -> tuple[float, float]:
        """World point [m] to canvas pixel."""
        return (
            x * self.scale + LAUNCH_OFFSET,
            self.canvas_height - GROUND_HEIGHT - y * self.scale,
        )

    def to_world(self, px: float, py: float) -> tuple[float, float]:
        """Canvas pixel to world point [m]."""
        return (
            (px - LAUNCH_OFFSET) / self.scale,
            (self.canvas_height - GROUND_HEIGHT - py) / self.scale,
        )

    def velocity_vector(self, sample: TrajectorySample) -> tuple[float, float]:
        """Canvas end point of the velocity arrow drawn from sample."""
        px, py = self.to_canvas(sample.x, sample.y)
        arrow = self.scale * VELOCITY_ARROW_SCALE
        return (px + sample.vx * arrow, py - sample.vy * arrow)
