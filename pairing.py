# pairing.py
"""
Cooper-pair coupling model.

Electrons jitter thermally; below the critical temperature an unpaired
electron bonds with the first unpaired electron found within coupling
range (grid traversal order, not the nearest one), and bonded pairs are
held together by a spring toward half the coupling range. Heating past
the critical temperature, or drifting further apart than three coupling
ranges, breaks a pair on both sides at once. Well below the critical
temperature a coherent drift field stands in for the condensate.

The per-particle state machine runs in a Numba kernel because its result
depends on processing order: a bond formed by particle i is already
visible when particle j > i is examined in the same tick.
"""
import numpy as np
from numba import jit

import constants
from integrator import integrate, wrap_toroidal
from neighbors import SpatialGrid, grid_neighbors_jit
from parameters import PairingParams
from particle import PairingParticles

# --- Data Contracts ---
#
# step(particles, grid, params, dt) -> PairingParticles
#   - Inputs:
#     - particles: PairingParticles store, positions inside the domain.
#     - grid: SpatialGrid over the same domain, cell = 1.5 x coupling range.
#     - params: PairingParams for this tick.
#     - dt: tick length in frames.
#   - Outputs: the same store, advanced one tick.
#   - Invariants after the call:
#     - partners is symmetric: partners[partners[i]] == i for every paired i.
#     - temperature > critical  =>  no particle is paired.
#     - 0 <= x <= width, 0 <= y <= height.


@jit(nopython=True)
def _pairing_forces_jit(positions, velocities, accelerations, partners, noise,
                        cell_offsets, cell_indices, grid_width, grid_height, cell_size,
                        temperature, coupling_range, coupling_strength,
                        critical_temperature, coherence_temperature,
                        noise_scale, drift_strength, drift_wavenumber, drift_cross,
                        velocity_blend, break_factor, rest_factor):
    n = positions.shape[0]
    range_sq = coupling_range * coupling_range
    break_distance = coupling_range * break_factor
    break_sq = break_distance * break_distance
    rest_length = coupling_range * rest_factor
    candidates = np.empty(n, dtype=np.int64)

    for i in range(n):
        # 1. Thermal noise (Brownian jitter)
        noise_magnitude = temperature * noise_scale
        accelerations[i, 0] += noise[i, 0] * noise_magnitude
        accelerations[i, 1] += noise[i, 1] * noise_magnitude

        # 2. Coherent drift of the condensate
        if temperature < coherence_temperature:
            coherence = (1.0 - temperature) * drift_strength
            accelerations[i, 0] += coherence
            accelerations[i, 1] += np.sin(positions[i, 0] * drift_wavenumber) * drift_cross * coherence

        # 3. Pairing state machine
        j = partners[i]
        if j >= 0:
            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            dist_sq = dx * dx + dy * dy
            if temperature > critical_temperature or dist_sq > break_sq:
                partners[i] = -1
                partners[j] = -1
            else:
                if dist_sq > 0.0:
                    dist = np.sqrt(dist_sq)
                    force = (dist - rest_length) * coupling_strength
                    accelerations[i, 0] += dx / dist * force
                    accelerations[i, 1] += dy / dist * force
                velocities[i, 0] = velocities[i, 0] * (1.0 - velocity_blend) + velocities[j, 0] * velocity_blend
                velocities[i, 1] = velocities[i, 1] * (1.0 - velocity_blend) + velocities[j, 1] * velocity_blend
        elif temperature < critical_temperature:
            count = grid_neighbors_jit(
                positions, i, range_sq, 1,
                cell_offsets, cell_indices, grid_width, grid_height, cell_size,
                candidates
            )
            for k in range(count):
                other = candidates[k]
                if partners[other] < 0:
                    partners[i] = other
                    partners[other] = i
                    break


def make_grid(particles: PairingParticles, params: PairingParams) -> SpatialGrid:
    return SpatialGrid(
        particles.width, particles.height,
        params.coupling_range * constants.GRID_CELL_FACTOR
    )


def effective_friction(params: PairingParams) -> float:
    """Viscosity rises once the electrons are below the critical temperature."""
    if params.temperature < constants.CRITICAL_TEMPERATURE:
        return params.friction * constants.CONDENSED_FRICTION_FACTOR
    return params.friction


def step(particles: PairingParticles, grid: SpatialGrid, params: PairingParams,
         dt: float = 1.0) -> PairingParticles:
    """Executes one tick of the pairing model."""
    if particles.count == 0:
        return particles

    expected_cell = params.coupling_range * constants.GRID_CELL_FACTOR
    if grid.cell_size != expected_cell:
        grid.reconfigure(particles.width, particles.height, expected_cell)
    grid.build(particles.positions)

    noise = particles.rng.random((particles.count, 2)) - 0.5

    _pairing_forces_jit(
        particles.positions, particles.velocities, particles.accelerations,
        particles.partners, noise,
        grid.cell_offsets, grid.cell_indices, grid.grid_width, grid.grid_height,
        grid.cell_size,
        float(params.temperature), float(params.coupling_range),
        float(params.coupling_strength),
        constants.CRITICAL_TEMPERATURE, constants.COHERENCE_TEMPERATURE,
        constants.THERMAL_NOISE_SCALE, constants.DRIFT_STRENGTH,
        constants.DRIFT_WAVENUMBER, constants.DRIFT_CROSS_AMPLITUDE,
        constants.PAIR_VELOCITY_BLEND, constants.BREAK_DISTANCE_FACTOR,
        constants.REST_LENGTH_FACTOR
    )
    integrate(
        particles.positions, particles.velocities, particles.accelerations,
        dt=dt, friction=effective_friction(params)
    )
    wrap_toroidal(particles.positions, particles.width, particles.height)
    return particles
