# parameters.py
"""
Parameter records for the four simulations.

Each record is a frozen dataclass: the host builds a new record (through
``dataclasses.replace``) whenever a slider moves, and a simulation reads
the record once at the start of every tick. Nothing in the engine mutates
a record.

Ranges are enforced by the host; the engine only guards against division
by zero.
"""
import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Type, TypeVar

P = TypeVar("P")


def _from_config(cls: Type[P], section: Dict[str, Any]) -> P:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        logging.warning(f"Ignoring unknown {cls.__name__} keys: {unknown}")
    values = {key: value for key, value in section.items() if key in known}
    return cls(**values)


@dataclass(frozen=True)
class FlockingParams:
    """Steering weights and limits of the boids flock."""
    separation: float = 1.8
    alignment: float = 1.2
    cohesion: float = 1.0
    # Target speed of the steering rules and hard speed cap.
    speed: float = 3.5
    perception_radius: float = 60.0
    particle_count: int = 600
    # Opacity of the fade layer; lower values leave longer trails.
    trail_length: float = 0.15

    @classmethod
    def from_config(cls, section: Dict[str, Any]) -> "FlockingParams":
        return _from_config(cls, section)


@dataclass(frozen=True)
class PairingParams:
    """Cooper-pair model: temperature is expressed as T / Tc-scale in [0, 1]."""
    particle_count: int = 800
    temperature: float = 0.8
    coupling_range: float = 60.0
    coupling_strength: float = 0.05
    friction: float = 0.02
    initial_speed: float = 1.0

    @classmethod
    def from_config(cls, section: Dict[str, Any]) -> "PairingParams":
        return _from_config(cls, section)


@dataclass(frozen=True)
class GravityParams:
    """Comets orbiting one dominant mass. Lengths are in world units."""
    body_count: int = 8
    gravitational_constant: float = 0.08
    central_mass: float = 16.0
    capture_radius: float = 1.0
    spawn_radius: float = 22.0
    max_radius: float = 24.0
    # Respawn speed is the circular speed scaled by U(1 - jitter, 1 + jitter).
    orbit_speed_jitter: float = 0.2
    bounce_damping: float = 0.6
    bounce_nudge: float = 0.05
    drag: float = 0.9995
    trail_length: int = 120
    trail_fade: float = 0.25

    @classmethod
    def from_config(cls, section: Dict[str, Any]) -> "GravityParams":
        return _from_config(cls, section)


@dataclass(frozen=True)
class OrbitalParams:
    """Probability-cloud settings; ``orbital`` is one of 1s, 2s, 2p, 3d."""
    orbital: str = "1s"
    point_count: int = 5500
    max_attempts: int = 5000
    # Amplitude of the idle breathing motion, in pixels.
    vibration: float = 1.5
    auto_rotate_speed: float = 0.002

    @classmethod
    def from_config(cls, section: Dict[str, Any]) -> "OrbitalParams":
        return _from_config(cls, section)


PARAMS_BY_KIND = {
    "flocking": FlockingParams,
    "pairing": PairingParams,
    "gravity": GravityParams,
    "orbitals": OrbitalParams,
}
