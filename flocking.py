# flocking.py
"""
Boids flocking model.

Each boid steers from the boids it can see (naive radius scan):

* separation: sum over neighbours of (pos - other) / d^2, i.e. the unit
  vector pointing away weighted by 1 / d, left unnormalised;
* alignment: mean neighbour velocity rescaled to the target speed, as a
  steering force (desired - velocity);
* cohesion: seek towards the mean neighbour position at the target speed.

The weighted sum is the boid's acceleration for the tick. A boid with no
neighbour in range feels nothing. Integration clamps speed and wraps the
domain into a torus, while distances themselves stay Euclidean so flocks
can split at the seam.
"""
import numpy as np
from numba import jit

from integrator import integrate, wrap_toroidal
from neighbors import scan_neighbors_jit
from parameters import FlockingParams
from particle import FlockingParticles

# --- Data Contracts ---
#
# step(particles: FlockingParticles, params: FlockingParams, dt: float) -> FlockingParticles
#   - Inputs: the store, the parameter record for this tick, the tick length
#     in frames (1.0 at the nominal frame rate).
#   - Outputs: the same store, advanced one tick.
#   - Invariants after the call:
#     - |v| <= params.speed for every boid.
#     - 0 <= x <= width, 0 <= y <= height.
#     - accelerations are all zero.


@jit(nopython=True, fastmath=True)
def _flocking_forces_jit(positions, velocities, accelerations, perception_sq, speed,
                         separation_weight, alignment_weight, cohesion_weight):
    """Accumulates the three steering rules into accelerations."""
    n = positions.shape[0]
    neighbors = np.empty(n, dtype=np.int64)

    for i in range(n):
        count = scan_neighbors_jit(positions, i, perception_sq, neighbors)
        px = positions[i, 0]
        py = positions[i, 1]
        vx = velocities[i, 0]
        vy = velocities[i, 1]

        sep_x = 0.0
        sep_y = 0.0
        ali_x = 0.0
        ali_y = 0.0
        coh_x = 0.0
        coh_y = 0.0
        total = 0

        for k in range(count):
            j = neighbors[k]
            dx = px - positions[j, 0]
            dy = py - positions[j, 1]
            dist_sq = dx * dx + dy * dy
            # Coincident boids have no direction to push along.
            if dist_sq == 0.0:
                continue
            sep_x += dx / dist_sq
            sep_y += dy / dist_sq
            ali_x += velocities[j, 0]
            ali_y += velocities[j, 1]
            coh_x += positions[j, 0]
            coh_y += positions[j, 1]
            total += 1

        if total == 0:
            continue

        # Alignment: desired velocity along the mean heading.
        steer_ali_x = 0.0
        steer_ali_y = 0.0
        ali_x /= total
        ali_y /= total
        ali_mag = np.sqrt(ali_x * ali_x + ali_y * ali_y)
        if ali_mag > 0.0:
            steer_ali_x = ali_x / ali_mag * speed - vx
            steer_ali_y = ali_y / ali_mag * speed - vy

        # Cohesion: seek the mean position.
        steer_coh_x = 0.0
        steer_coh_y = 0.0
        target_x = coh_x / total - px
        target_y = coh_y / total - py
        coh_mag = np.sqrt(target_x * target_x + target_y * target_y)
        if coh_mag > 0.0:
            steer_coh_x = target_x / coh_mag * speed - vx
            steer_coh_y = target_y / coh_mag * speed - vy

        accelerations[i, 0] += (sep_x * separation_weight
                                + steer_ali_x * alignment_weight
                                + steer_coh_x * cohesion_weight)
        accelerations[i, 1] += (sep_y * separation_weight
                                + steer_ali_y * alignment_weight
                                + steer_coh_y * cohesion_weight)


def step(particles: FlockingParticles, params: FlockingParams, dt: float = 1.0) -> FlockingParticles:
    """Executes one tick of the flock."""
    if particles.count == 0:
        return particles

    _flocking_forces_jit(
        particles.positions, particles.velocities, particles.accelerations,
        float(params.perception_radius) ** 2, float(params.speed),
        float(params.separation), float(params.alignment), float(params.cohesion)
    )
    integrate(
        particles.positions, particles.velocities, particles.accelerations,
        dt=dt, max_speed=params.speed
    )
    wrap_toroidal(particles.positions, particles.width, particles.height)
    return particles


def polarization(particles: FlockingParticles) -> float:
    """
    Length of the mean unit heading: 1.0 for a perfectly aligned flock,
    close to 0 for random headings.
    """
    speeds = particles.speeds()
    moving = speeds > 0.0
    if not np.any(moving):
        return 0.0
    headings = particles.velocities[moving] / speeds[moving, np.newaxis]
    return float(np.linalg.norm(headings.mean(axis=0)))


def heading_spread(particles: FlockingParticles) -> float:
    """Circular standard deviation of the headings, in radians."""
    r = min(max(polarization(particles), 1e-12), 1.0)
    return float(np.sqrt(-2.0 * np.log(r)))

