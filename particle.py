# particle.py
"""
Entity stores of the four simulations.

Flocking and pairing particles are kept as structure-of-arrays in NumPy
(one row per particle), sharing the ParticleSystem base for their
kinematic state. Celestial bodies are few and carry a trail, so they are
plain dataclasses. Orbital samples are arrays of static positions plus
the animation state layered on top of them.
"""
import enum
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Tuple

import numpy as np

from constants import ELECTRON_TRAIL_LENGTH

# --- Data Contracts ---
#
# class ParticleSystem:
#   - create(count, width, height, speed, rng) -> ParticleSystem subclass
#     - Inputs:
#       - count: int, number of particles (>= 0).
#       - width, height: float, size of the domain in pixels.
#       - speed: float, magnitude of every initial velocity.
#       - rng: np.random.Generator owned by the session.
#     - Outputs: a new store. Nothing is shared with a previous store.
#     - Invariants:
#       - positions, velocities, accelerations are float64 arrays of shape (N, 2).
#       - 0 <= x <= width and 0 <= y <= height for every particle.
#
# class PairingParticles(ParticleSystem):
#   - partners[i] == j  <=>  partners[j] == i   (or -1 when unpaired).
#     pair() and unpair() are the only writers outside the pairing kernel,
#     and both update the two sides together.

NO_PARTNER = -1


class ParticleSystem:
    """
    Common kinematic state of a particle store.
    """
    def __init__(self, positions: np.ndarray, velocities: np.ndarray,
                 width: float, height: float, rng: np.random.Generator):
        self.positions = np.ascontiguousarray(positions, dtype=np.float64)
        self.velocities = np.ascontiguousarray(velocities, dtype=np.float64)
        self.accelerations = np.zeros_like(self.positions)
        self.ids = np.arange(self.positions.shape[0], dtype=np.int64)
        self.width = float(width)
        self.height = float(height)
        self.rng = rng

    @classmethod
    def create(cls, count: int, width: float, height: float, speed: float,
               rng: np.random.Generator, **kwargs):
        """Uniform positions over the canvas, random headings at a fixed speed."""
        positions = rng.uniform(low=[0.0, 0.0], high=[width, height], size=(count, 2))
        angles = rng.uniform(0.0, 2.0 * np.pi, size=count)
        velocities = np.column_stack((np.cos(angles), np.sin(angles))) * speed
        system = cls(positions, velocities, width, height, rng, **kwargs)
        logging.info(
            f"{cls.__name__} initialized with {count} particles "
            f"on a {width:.0f}x{height:.0f} domain."
        )
        return system

    @property
    def count(self) -> int:
        return self.positions.shape[0]

    def __len__(self) -> int:
        return self.count

    def speeds(self) -> np.ndarray:
        return np.linalg.norm(self.velocities, axis=1)


class FlockingParticles(ParticleSystem):
    """Boids: kinematic state only."""


class PairingParticles(ParticleSystem):
    """
    Electrons of the Cooper-pair model. Each one may be bonded to at most
    one partner; the link is a relation between indices, not ownership.
    """
    def __init__(self, positions, velocities, width, height, rng, mass: float = 1.0):
        super().__init__(positions, velocities, width, height, rng)
        n = self.positions.shape[0]
        self.partners = np.full(n, NO_PARTNER, dtype=np.int64)
        self.masses = np.full(n, mass, dtype=np.float64)
        # Used only to vary the shimmer of paired particles.
        self.color_offsets = rng.random(n)

    def partner_of(self, i: int) -> Optional[int]:
        j = int(self.partners[i])
        return None if j == NO_PARTNER else j

    def pair(self, i: int, j: int) -> None:
        """Bonds i and j, releasing any previous partners of either."""
        if i == j:
            raise ValueError(f"Particle {i} cannot be paired with itself.")
        self.unpair(i)
        self.unpair(j)
        self.partners[i] = j
        self.partners[j] = i

    def unpair(self, i: int) -> None:
        j = self.partners[i]
        if j != NO_PARTNER:
            self.partners[j] = NO_PARTNER
            self.partners[i] = NO_PARTNER

    def paired_fraction(self) -> float:
        if self.count == 0:
            return 0.0
        return float(np.count_nonzero(self.partners != NO_PARTNER)) / self.count


@dataclass
class CelestialBody:
    """
    A body of the gravity simulation.

    Fields:
    - id: Identifier of the body
    - position, velocity, acceleration: 2D vectors in world units (per tick)
    - mass: drives the drawn size; the motion only depends on the central mass
    - color: RGB tuple used for rendering
    - is_central: the dominant mass, fixed at the origin and never integrated
    - trail: bounded history of past positions, oldest dropped first
    """
    id: int
    position: np.ndarray
    velocity: np.ndarray
    mass: float
    color: Tuple[int, int, int] = (200, 200, 255)
    is_central: bool = False
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(2))
    trail: Deque[Tuple[float, float]] = field(default_factory=lambda: deque(maxlen=120))

    def add_trail_point(self) -> None:
        """Append the current position to the trail."""
        self.trail.append((float(self.position[0]), float(self.position[1])))

    def distance_to_origin(self) -> float:
        return float(np.hypot(self.position[0], self.position[1]))


@dataclass
class GravityField:
    """The central mass and the bodies orbiting it."""
    central: CelestialBody
    bodies: List[CelestialBody]
    rng: np.random.Generator
    captures: int = 0


class OrbitalType(enum.Enum):
    GROUND_STATE = "1s"
    FIRST_EXCITED_S = "2s"
    FIRST_EXCITED_P = "2p"
    D_ORBITAL = "3d"

    @classmethod
    def parse(cls, value) -> "OrbitalType":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = [member.value for member in cls]
            msg = f"Configuration error: unknown orbital type {value!r}; expected one of {valid}."
            logging.critical(msg)
            raise ValueError(msg) from None

    def next(self) -> "OrbitalType":
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]


@dataclass
class CollapsedElectron:
    """The single 'observed' electron shown instead of the cloud."""
    angle: float = 0.0
    phi: float = 0.0
    trail: Deque[Tuple[float, float, float]] = field(
        default_factory=lambda: deque(maxlen=ELECTRON_TRAIL_LENGTH)
    )


@dataclass
class OrbitalCloud:
    """
    Sampled positions (pixels, 3D, centred on the nucleus) and the state of
    their idle animation. Regenerated wholesale when the orbital changes.
    """
    orbital: OrbitalType
    base_positions: np.ndarray
    phase_offsets: np.ndarray
    alphas: np.ndarray
    target_alphas: np.ndarray
    life_speeds: np.ndarray
    sizes: np.ndarray
    rng: np.random.Generator
    exhausted: int = 0
    time: float = 0.0
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(2))
    target_rotation: np.ndarray = field(default_factory=lambda: np.zeros(2))
    # Pointer offset from the canvas centre while the cloud is observed.
    pointer: Optional[Tuple[float, float]] = None
    electron: CollapsedElectron = field(default_factory=CollapsedElectron)

    @property
    def count(self) -> int:
        return self.base_positions.shape[0]

    @property
    def observed(self) -> bool:
        return self.pointer is not None
