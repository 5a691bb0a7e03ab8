# gravity.py
"""
Comets orbiting one dominant central mass.

Bodies feel the central mass only, never each other. A body that falls
inside the capture radius is respawned on a fresh near-circular orbit at
the spawn radius, and a body that reaches the outer boundary bounces back
inward, so the field stays populated and visible indefinitely.

Positions live in world units centred on the central mass; the renderer
maps them onto the canvas.
"""
import logging
from collections import deque
from typing import Tuple

import numpy as np

import constants
from parameters import GravityParams
from particle import CelestialBody, GravityField

# --- Data Contracts ---
#
# step(field: GravityField, params: GravityParams, dt: float) -> GravityField
#   - Inputs: the field, the parameter record, tick length in frames.
#   - Outputs: the same field, advanced one tick.
#   - Invariants after the call, for every orbiting body:
#     - capture_radius <= |p| <= max_radius.
#     - len(trail) <= params.trail_length.
#     - A body captured during the tick sits at |p| == spawn_radius with
#       |v| inside orbit_speed_band(params).
#   - The central body never moves.


def circular_orbit_velocity(gravitational_constant: float, central_mass: float,
                            radius: float) -> float:
    """Speed of a circular orbit at radius: sqrt(G * M / r)."""
    if radius <= 0:
        return 0.0
    return float(np.sqrt(gravitational_constant * central_mass / radius))


def orbit_speed_band(params: GravityParams) -> Tuple[float, float]:
    """Range of speeds a respawned body may be given at the spawn radius."""
    v_circ = circular_orbit_velocity(
        params.gravitational_constant, params.central_mass, params.spawn_radius
    )
    return (v_circ * (1.0 - params.orbit_speed_jitter),
            v_circ * (1.0 + params.orbit_speed_jitter))


def _place_on_orbit(body: CelestialBody, radius: float, params: GravityParams,
                    rng: np.random.Generator, jitter: bool) -> None:
    angle = rng.uniform(0.0, 2.0 * np.pi)
    direction = np.array([np.cos(angle), np.sin(angle)])
    speed = circular_orbit_velocity(params.gravitational_constant, params.central_mass, radius)
    if jitter:
        speed *= rng.uniform(1.0 - params.orbit_speed_jitter, 1.0 + params.orbit_speed_jitter)
    # Counter-clockwise tangent.
    tangent = np.array([-direction[1], direction[0]])
    body.position = direction * radius
    body.velocity = tangent * speed
    body.acceleration = np.zeros(2)


def respawn(body: CelestialBody, params: GravityParams, rng: np.random.Generator) -> None:
    """Moves a captured body back out to the spawn radius on a near-circular orbit."""
    _place_on_orbit(body, params.spawn_radius, params, rng, jitter=True)
    body.trail.clear()
    body.add_trail_point()


def create_gravity_field(params: GravityParams, rng: np.random.Generator) -> GravityField:
    """Spawns the central mass and body_count comets on circular orbits."""
    central = CelestialBody(
        id=0,
        position=np.zeros(2),
        velocity=np.zeros(2),
        mass=params.central_mass,
        color=constants.CENTRAL_COLOR,
        is_central=True,
    )
    bodies = []
    inner = params.spawn_radius * constants.INNER_SPAWN_FRACTION
    for i in range(params.body_count):
        body = CelestialBody(
            id=i + 1,
            position=np.zeros(2),
            velocity=np.zeros(2),
            mass=float(rng.uniform(constants.COMET_MIN_MASS, constants.COMET_MAX_MASS)),
            color=constants.COMET_COLORS[i % len(constants.COMET_COLORS)],
            trail=deque(maxlen=max(1, params.trail_length)),
        )
        radius = float(rng.uniform(inner, params.spawn_radius))
        _place_on_orbit(body, radius, params, rng, jitter=False)
        body.add_trail_point()
        bodies.append(body)

    logging.info(
        f"Gravity field initialized with {len(bodies)} bodies "
        f"(GM={params.gravitational_constant * params.central_mass:.2f}, "
        f"spawn radius {params.spawn_radius})."
    )
    return GravityField(central=central, bodies=bodies, rng=rng)


def _bounce(body: CelestialBody, distance: float, params: GravityParams) -> None:
    normal = body.position / distance
    v_dot_n = float(np.dot(body.velocity, normal))
    if v_dot_n > 0:
        body.velocity = (body.velocity - 2.0 * v_dot_n * normal) * params.bounce_damping
    body.velocity = body.velocity - normal * params.bounce_nudge
    body.position = normal * params.max_radius


def _captured(distance: float, params: GravityParams) -> bool:
    return distance < params.capture_radius or distance == 0.0


def _capture(field: GravityField, body: CelestialBody, params: GravityParams) -> None:
    respawn(body, params, field.rng)
    field.captures += 1
    logging.debug(f"Body {body.id} captured, respawned at r={params.spawn_radius}.")


def _fit_trail(body: CelestialBody, params: GravityParams) -> None:
    # trail_length may change between ticks; keep the newest points.
    maxlen = max(1, params.trail_length)
    if body.trail.maxlen != maxlen:
        body.trail = deque(body.trail, maxlen=maxlen)


def step(field: GravityField, params: GravityParams, dt: float = 1.0) -> GravityField:
    """Executes one tick of the gravity field."""
    gm = params.gravitational_constant * params.central_mass

    for body in field.bodies:
        if body.is_central:
            continue
        _fit_trail(body, params)

        distance = body.distance_to_origin()
        if _captured(distance, params):
            _capture(field, body, params)
            continue

        # Semi-implicit Euler against the central mass only.
        body.acceleration = -body.position / distance * (gm / (distance * distance))
        body.velocity = (body.velocity + body.acceleration * dt) * params.drag
        body.position = body.position + body.velocity * dt
        body.acceleration = np.zeros(2)

        distance = body.distance_to_origin()
        if _captured(distance, params):
            _capture(field, body, params)
            continue
        if distance > params.max_radius:
            _bounce(body, distance, params)

        body.add_trail_point()

    return field


def total_energy(field: GravityField, params: GravityParams) -> float:
    """Specific orbital energy summed over the bodies (per unit mass)."""
    gm = params.gravitational_constant * params.central_mass
    energy = 0.0
    for body in field.bodies:
        distance = max(body.distance_to_origin(), 1e-12)
        energy += 0.5 * float(np.dot(body.velocity, body.velocity)) - gm / distance
    return energy
