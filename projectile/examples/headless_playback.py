#!/usr/bin/env python
"""Headless playback example.

Plays a drag-free and a drag-affected launch through the playback
controller without a GUI. A frame clock advances exactly one 60 Hz frame per
scheduler tick, so the run is deterministic and finishes instantly.

Shows:
- Driving the controller from a host frame loop
- Pause / resume without losing progress
- Live metrics and graph history fed from frame notifications
- Comparing integrated metrics with the closed-form vacuum solution
"""

import logging

from projectile import (
    GraphHistory,
    ManualScheduler,
    PlaybackController,
    SimulationParameters,
    Viewport,
    apply_preset,
    vacuum_metrics,
)

FRAME = 1.0 / 60.0


class FrameClock:
    """Clock that only moves when the host advances a frame."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = FRAME) -> None:
        self.now += seconds


def play(controller: PlaybackController, scheduler: ManualScheduler, clock: FrameClock) -> int:
    """Run frames until the controller stops asking for ticks."""
    frames = 0
    while scheduler.pending:
        clock.advance()
        scheduler.fire()
        frames += 1
    return frames


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("Projectile Playback - Headless Example")
    print("=" * 70)
    print()

    clock = FrameClock()
    scheduler = ManualScheduler()
    params = SimulationParameters(
        initial_speed=25.0,
        launch_angle_deg=45.0,
        mass=5.0,
        gravity=9.81,
        launch_height=0.0,
    )
    controller = PlaybackController(scheduler, params, clock=clock)

    history = GraphHistory()
    history.attach(controller)

    view = Viewport.fit(params.world_width, params.world_height, 1280.0, 720.0)
    print(f"Canvas: {view.canvas_width:.0f} x {view.canvas_height:.0f} px "
          f"({view.scale:.2f} px/m)")
    print()

    # -------------------------------------------------------------------------
    # Vacuum launch with a pause halfway
    # -------------------------------------------------------------------------
    print("Vacuum launch")
    print("-" * 70)

    controller.start()
    for _ in range(90):
        clock.advance()
        scheduler.fire()

    controller.pause()
    paused = controller.snapshot()
    clock.advance(5.0)  # Paused time must not count
    controller.resume()
    print(f"  Paused at {paused.elapsed_fraction:.1%}, "
          f"x = {paused.current_sample.x:.2f} m, y = {paused.current_sample.y:.2f} m")

    frames = play(controller, scheduler, clock)
    state = controller.snapshot()
    expected = vacuum_metrics(params)

    print(f"  Finished after {frames} more frames, phase {state.phase.name}")
    print(f"  Max height:     {state.metrics.max_height:8.3f} m   (analytic {expected.max_height:8.3f} m)")
    print(f"  Range:          {state.metrics.range:8.3f} m   (analytic {expected.range:8.3f} m)")
    print(f"  Time of flight: {state.metrics.time_of_flight:8.3f} s   (analytic {expected.time_of_flight:8.3f} s)")
    print(f"  Graph points:   {len(history)} (peak speed {history.velocities.max():.2f} m/s)")
    print()

    # -------------------------------------------------------------------------
    # Same launch with air resistance
    # -------------------------------------------------------------------------
    print("Cannon Ball preset (air resistance)")
    print("-" * 70)

    controller.reset()
    controller.params = apply_preset(params, "Cannon Ball")
    controller.start()
    play(controller, scheduler, clock)
    state = controller.snapshot()

    print(f"  Max height:     {state.metrics.max_height:8.3f} m")
    print(f"  Range:          {state.metrics.range:8.3f} m")
    print(f"  Time of flight: {state.metrics.time_of_flight:8.3f} s")
    print(f"  Impact speed:   {state.current_sample.speed:8.3f} m/s")
    print()

    print("=" * 70)
    print("Done")


if __name__ == "__main__":
    main()
