# integrator.py
"""
Semi-implicit Euler integration shared by the flocking, pairing and
gravity models.

Velocity is updated from acceleration first, then position from the new
velocity, in the same tick. The acceleration buffer is a per-tick scratch
quantity and is zeroed on the way out.
"""
from typing import Optional

import numpy as np


def clamp_speed(velocities: np.ndarray, max_speed: float) -> None:
    """Scales every velocity longer than max_speed back onto max_speed, in place."""
    speed = np.linalg.norm(velocities, axis=1)
    over_speed_mask = speed > max_speed
    if np.any(over_speed_mask):
        velocities[over_speed_mask] = (
            velocities[over_speed_mask] / speed[over_speed_mask, np.newaxis]
        ) * max_speed


def integrate(positions: np.ndarray, velocities: np.ndarray, accelerations: np.ndarray,
              dt: float = 1.0, max_speed: Optional[float] = None,
              friction: float = 0.0) -> None:
    """
    Advances one tick in place.

    v <- (v + a * dt) * (1 - friction), clamped to max_speed when given
    p <- p + v * dt
    a <- 0
    """
    velocities += accelerations * dt
    if friction:
        velocities *= (1.0 - friction)
    if max_speed is not None:
        clamp_speed(velocities, max_speed)
    positions += velocities * dt
    accelerations.fill(0.0)


def wrap_toroidal(positions: np.ndarray, width: float, height: float) -> None:
    """Periodic boundary: leaving one edge re-enters at the opposite edge."""
    positions[:, 0] %= width
    positions[:, 1] %= height
