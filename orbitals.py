# orbitals.py
"""
Hydrogen-like orbital probability clouds.

Points are drawn by rejection sampling from simplified, unnormalised
densities (r in Bohr radii):

    1s   exp(-2 r)
    2s   ((2 - r) exp(-r / 2))^2
    2p   (z exp(-r / 2))^2
    3d   ((3 z^2 - r^2) exp(-r / 3))^2

The samples never move under any force. A small per-point wobble, a
twinkle and a slowly rotating camera give the cloud its life; holding the
pointer on the cloud "observes" it and a single collapsed electron is shown
orbiting instead.
"""
import logging
from typing import Optional, Tuple

import numpy as np

import constants
from parameters import OrbitalParams
from particle import OrbitalCloud, OrbitalType

# --- Data Contracts ---
#
# sample_orbital_points(orbital, count, rng, max_attempts) -> (points, exhausted)
#   - points: float64 array (count, 3) in Bohr radii, inside the orbital's cube.
#   - exhausted: number of points that hit max_attempts and kept their last
#     draw instead of an accepted one. Never loops past max_attempts.
#
# probability_density(orbital, points) -> np.ndarray
#   - One non-negative value per point.
#
# step(cloud, params, dt) -> OrbitalCloud
#   - Advances animation state only; base_positions are never modified.

# Maximum of each density over space, used to normalise the acceptance test.
ORBITAL_PEAKS = {
    OrbitalType.GROUND_STATE: 1.0,
    OrbitalType.FIRST_EXCITED_S: 4.0,
    OrbitalType.FIRST_EXCITED_P: 4.0 * np.exp(-2.0),
    OrbitalType.D_ORBITAL: 4.0 * 6.0 ** 4 * np.exp(-4.0),
}


def probability_density(orbital, points: np.ndarray) -> np.ndarray:
    """Unnormalised density of the orbital at each (x, y, z) point."""
    orbital = OrbitalType.parse(orbital)
    points = np.atleast_2d(np.asarray(points, dtype=np.float64))
    r = np.linalg.norm(points, axis=1)
    z = points[:, 2]

    if orbital is OrbitalType.GROUND_STATE:
        return np.exp(-2.0 * r)
    if orbital is OrbitalType.FIRST_EXCITED_S:
        return ((2.0 - r) * np.exp(-r / 2.0)) ** 2
    if orbital is OrbitalType.FIRST_EXCITED_P:
        return (z * np.exp(-r / 2.0)) ** 2
    return ((3.0 * z * z - r * r) * np.exp(-r / 3.0)) ** 2


def sample_orbital_points(orbital, count: int, rng: np.random.Generator,
                          max_attempts: int = 5000) -> Tuple[np.ndarray, int]:
    """
    Rejection sampling over a cube, vectorised across the points still
    waiting for an accepted draw.

    Each point retries independently up to max_attempts draws; a point that
    never gets accepted keeps its last candidate.
    """
    orbital = OrbitalType.parse(orbital)
    extent = constants.ORBITAL_EXTENTS[orbital.value]
    peak = ORBITAL_PEAKS[orbital]
    points = np.zeros((count, 3), dtype=np.float64)
    pending = np.arange(count)

    for _ in range(max(1, max_attempts)):
        if pending.size == 0:
            break
        candidates = rng.uniform(-extent, extent, size=(pending.size, 3))
        points[pending] = candidates
        accepted = rng.random(pending.size) < probability_density(orbital, candidates) / peak
        pending = pending[~accepted]

    exhausted = int(pending.size)
    if exhausted:
        logging.warning(
            f"Orbital {orbital.value}: {exhausted} of {count} points hit the "
            f"{max_attempts}-attempt cap and kept their last draw."
        )
    return points, exhausted


def create_orbital_cloud(params: OrbitalParams, rng: np.random.Generator) -> OrbitalCloud:
    """Samples a new cloud and its per-point animation state."""
    orbital = OrbitalType.parse(params.orbital)
    count = max(0, int(params.point_count))
    points, exhausted = sample_orbital_points(orbital, count, rng, params.max_attempts)

    cloud = OrbitalCloud(
        orbital=orbital,
        base_positions=points * constants.ORBITAL_SCALES[orbital.value],
        # Phase of the twinkle; the opacity follows sin() of it.
        alphas=rng.uniform(0.0, np.pi, size=count),
        target_alphas=rng.uniform(0.1, 0.5, size=count),
        life_speeds=rng.uniform(0.01, 0.03, size=count),
        sizes=np.where(rng.random(count) > 0.9, 1.4, 0.8),
        phase_offsets=rng.uniform(0.0, 2.0 * np.pi, size=count),
        rng=rng,
        exhausted=exhausted,
    )
    logging.info(f"Orbital cloud {orbital.value} generated with {count} points.")
    return cloud


def electron_position(cloud: OrbitalCloud) -> np.ndarray:
    """Position of the collapsed electron on its orbit, before jitter."""
    electron = cloud.electron
    radius = constants.ELECTRON_ORBIT_RADIUS
    return np.array([
        np.sin(electron.angle) * radius,
        np.cos(electron.angle) * np.sin(electron.phi) * radius,
        np.cos(electron.phi) * radius,
    ])


def step(cloud: OrbitalCloud, params: OrbitalParams, dt: float = 1.0) -> OrbitalCloud:
    """Advances the animation of the cloud by one tick."""
    cloud.time += dt / constants.FPS

    cloud.target_rotation[1] += params.auto_rotate_speed * dt
    if cloud.pointer is not None:
        pointer_x, pointer_y = cloud.pointer
        cloud.target_rotation[0] = pointer_y * constants.POINTER_SENSITIVITY
        cloud.target_rotation[1] += pointer_x * constants.POINTER_SENSITIVITY * dt
    cloud.rotation += (cloud.target_rotation - cloud.rotation) * constants.CAMERA_DAMPING

    if cloud.observed:
        electron = cloud.electron
        electron.angle += constants.ELECTRON_ANGLE_SPEED * dt
        electron.phi += constants.ELECTRON_PHI_SPEED * dt
        # Position uncertainty: the observed electron is never quite where its orbit says.
        jitter = (cloud.rng.random(2) - 0.5) * constants.ELECTRON_UNCERTAINTY
        position = electron_position(cloud)
        position[:2] += jitter
        electron.trail.append((float(position[0]), float(position[1]), float(position[2])))
    else:
        cloud.alphas += cloud.life_speeds * dt

    return cloud


def observe(cloud: OrbitalCloud, pointer: Optional[Tuple[float, float]]) -> None:
    """Starts (pointer offset from the centre) or stops (None) observing the cloud."""
    if pointer is None and cloud.observed:
        cloud.electron.trail.clear()
    cloud.pointer = None if pointer is None else (float(pointer[0]), float(pointer[1]))


def animated_positions(cloud: OrbitalCloud, params: OrbitalParams) -> np.ndarray:
    """Base positions plus the idle wobble at the current time."""
    t = cloud.time
    phase = cloud.phase_offsets
    wobble = np.column_stack((
        np.sin(t * 2.0 + phase),
        np.cos(t * 3.0 + phase),
        np.sin(t * 4.0 + phase),
    )) * params.vibration
    return cloud.base_positions + wobble


def opacities(cloud: OrbitalCloud) -> np.ndarray:
    return (np.sin(cloud.alphas) + 1.0) / 2.0 * cloud.target_alphas


def project_points(points: np.ndarray, rotation: np.ndarray,
                   center: Tuple[float, float]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Rotates points about the y axis then the x axis and applies a pinhole
    projection.

    Returns (screen_xy, scale, visible): screen coordinates (N, 2), the
    perspective scale per point, and the mask of points in front of the
    near clipping plane.
    """
    points = np.atleast_2d(points)
    cos_x, sin_x = np.cos(rotation[0]), np.sin(rotation[0])
    cos_y, sin_y = np.cos(rotation[1]), np.sin(rotation[1])
    x, y, z = points[:, 0], points[:, 1], points[:, 2]

    x1 = x * cos_y - z * sin_y
    z1 = z * cos_y + x * sin_y
    y1 = y * cos_x - z1 * sin_x
    z2 = z1 * cos_x + y * sin_x

    depth = constants.CAMERA_DISTANCE + z2
    visible = depth >= constants.NEAR_CLIP
    scale = np.where(visible, constants.FOCAL_LENGTH / np.maximum(depth, constants.NEAR_CLIP), 0.0)
    screen = np.column_stack((center[0] + x1 * scale, center[1] + y1 * scale))
    return screen, scale, visible
