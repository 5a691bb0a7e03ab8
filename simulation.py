# simulation.py
"""
Simulation sessions: the thin scheduler around the step functions.

A session owns one simulation's entity store, its parameter record, its
random generator and its renderer. The host calls tick() and render() once
per frame and forwards resizes and parameter changes between frames. The
physics itself lives in the step functions of flocking, pairing, gravity
and orbitals; a session decides when to call them and when the store must
be rebuilt from scratch.
"""
import dataclasses
import logging
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pygame

import constants
import flocking
import gravity
import orbitals
import pairing
from parameters import PARAMS_BY_KIND
from particle import FlockingParticles, OrbitalType, PairingParticles
from utils import simulation_section
from visualization import RENDERERS

# --- Data Contracts ---
#
# create_session(kind, config, width, height, rng=None) -> SimulationSession
#   - Inputs:
#     - kind: one of constants.SIMULATION_KINDS.
#     - config: the loaded configuration dictionary (only the section of
#       this kind and "seed" are read).
#     - width, height: canvas size in pixels, both > 0.
#     - rng: optional np.random.Generator; seeded from config["seed"] if None.
#   - Raises ValueError for an unknown kind or a non-positive canvas size.
#
# class SimulationSession:
#   - tick(dt=1.0) advances one frame; render(surface) draws it (no-op for
#     None). Both raise RuntimeError once the session is closed.
#   - The entity store is rebuilt in full on reset(), on resize() for the
#     canvas-space simulations, and when the requested particle count drifts
#     from the live count by more than constants.COUNT_HYSTERESIS.
#   - Parameters are replaced, never mutated: update_params(**changes).


class SimulationSession:
    """Lifecycle shared by every simulation kind."""
    kind = ""

    def __init__(self, params, width: int, height: int, rng: np.random.Generator):
        _check_canvas_size(width, height)
        self.params = params
        self.width = int(width)
        self.height = int(height)
        self.rng = rng
        self.renderer = RENDERERS[self.kind]()
        self.state = None
        self.steps = 0
        self.initializations = 0
        self.closed = False
        self._initialize("startup")

    # --- Subclass hooks ---

    def _build_state(self):
        raise NotImplementedError

    def _advance(self, dt: float) -> None:
        raise NotImplementedError

    def _needs_rebuild(self) -> Optional[str]:
        """Reason to rebuild the store before the next tick, or None."""
        return None

    def _kind_metrics(self) -> Dict[str, Any]:
        return {}

    # --- Lifecycle ---

    def _initialize(self, reason: str) -> None:
        self.state = self._build_state()
        self.initializations += 1
        logging.info(f"{self.kind} session initialized ({reason}).")

    def _ensure_open(self) -> None:
        if self.closed:
            raise RuntimeError(f"The {self.kind} session has been closed.")

    def tick(self, dt: float = 1.0):
        """Advances the simulation by one frame (dt in frames)."""
        self._ensure_open()
        reason = self._needs_rebuild()
        if reason:
            self._initialize(reason)
        self._advance(dt)
        self.steps += 1
        return self.state

    def render(self, surface: Optional[pygame.Surface]) -> bool:
        self._ensure_open()
        return self.renderer.draw(surface, self.state, self.params)

    def resize(self, width: int, height: int) -> None:
        self._ensure_open()
        _check_canvas_size(width, height)
        if (int(width), int(height)) == (self.width, self.height):
            return
        logging.info(f"{self.kind} canvas resized to {width}x{height}.")
        self.width = int(width)
        self.height = int(height)
        self._on_resize()

    def _on_resize(self) -> None:
        self._initialize("canvas resized")

    def update_params(self, **changes) -> None:
        """Replaces the parameter record; takes effect from the next tick."""
        self.params = dataclasses.replace(self.params, **changes)
        logging.debug(f"{self.kind} parameters updated: {changes}")

    def reset(self) -> None:
        self._ensure_open()
        self._initialize("reset requested")

    def close(self) -> None:
        if self.closed:
            return
        self.renderer.close()
        self.closed = True
        logging.info(f"{self.kind} session closed after {self.steps} steps.")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def metrics(self) -> Dict[str, Any]:
        """Aggregates used by the throttled log line of the frame driver."""
        values = {"kind": self.kind, "step": self.steps}
        values.update(self._kind_metrics())
        return values


class _CanvasParticleSession(SimulationSession):
    """Flocking and pairing: particles spread over the canvas itself."""

    def _requested_count(self) -> int:
        return max(0, int(self.params.particle_count))

    def _needs_rebuild(self) -> Optional[str]:
        drift = abs(self._requested_count() - self.state.count)
        if drift > constants.COUNT_HYSTERESIS:
            return f"particle count {self.state.count} -> {self._requested_count()}"
        return None


class FlockingSession(_CanvasParticleSession):
    kind = "flocking"

    def _build_state(self) -> FlockingParticles:
        return FlockingParticles.create(
            self._requested_count(), self.width, self.height, self.params.speed, self.rng
        )

    def _advance(self, dt: float) -> None:
        flocking.step(self.state, self.params, dt)

    def _kind_metrics(self) -> Dict[str, Any]:
        speeds = self.state.speeds()
        return {
            "count": self.state.count,
            "mean_speed": float(speeds.mean()) if speeds.size else 0.0,
            "polarization": flocking.polarization(self.state),
        }


class PairingSession(_CanvasParticleSession):
    kind = "pairing"

    def _build_state(self) -> PairingParticles:
        particles = PairingParticles.create(
            self._requested_count(), self.width, self.height,
            self.params.initial_speed, self.rng
        )
        self.grid = pairing.make_grid(particles, self.params)
        return particles

    def _advance(self, dt: float) -> None:
        pairing.step(self.state, self.grid, self.params, dt)

    def _kind_metrics(self) -> Dict[str, Any]:
        return {
            "count": self.state.count,
            "temperature": self.params.temperature,
            "paired_fraction": self.state.paired_fraction(),
        }


class GravitySession(SimulationSession):
    kind = "gravity"

    def _build_state(self):
        return gravity.create_gravity_field(self.params, self.rng)

    def _needs_rebuild(self) -> Optional[str]:
        if len(self.state.bodies) != self.params.body_count:
            return f"body count {len(self.state.bodies)} -> {self.params.body_count}"
        return None

    def _on_resize(self) -> None:
        # World units are independent of the canvas; only the view scale changes.
        pass

    def _advance(self, dt: float) -> None:
        gravity.step(self.state, self.params, dt)

    def _kind_metrics(self) -> Dict[str, Any]:
        return {
            "count": len(self.state.bodies),
            "captures": self.state.captures,
            "energy": gravity.total_energy(self.state, self.params),
        }


class OrbitalSession(SimulationSession):
    kind = "orbitals"

    def _build_state(self):
        return orbitals.create_orbital_cloud(self.params, self.rng)

    def _needs_rebuild(self) -> Optional[str]:
        orbital = OrbitalType.parse(self.params.orbital)
        if orbital is not self.state.orbital:
            return f"orbital {self.state.orbital.value} -> {orbital.value}"
        if self.params.point_count != self.state.count:
            return f"point count {self.state.count} -> {self.params.point_count}"
        return None

    def _on_resize(self) -> None:
        # The cloud is centred on the canvas at render time.
        pass

    def _advance(self, dt: float) -> None:
        orbitals.step(self.state, self.params, dt)

    def update_params(self, **changes) -> None:
        if "orbital" in changes:
            # Reject unknown orbitals before they reach the record.
            changes["orbital"] = OrbitalType.parse(changes["orbital"]).value
        super().update_params(**changes)

    def cycle_orbital(self) -> str:
        """Switches to the next orbital type; the cloud is regenerated on the next tick."""
        orbital = OrbitalType.parse(self.params.orbital).next()
        self.update_params(orbital=orbital.value)
        return orbital.value

    def observe(self, pointer: Optional[Tuple[float, float]]) -> None:
        """Pointer offset from the canvas centre while observing, None to stop."""
        orbitals.observe(self.state, pointer)

    def _kind_metrics(self) -> Dict[str, Any]:
        return {
            "count": self.state.count,
            "orbital": self.state.orbital.value,
            "exhausted": self.state.exhausted,
            "observed": self.state.observed,
        }


SESSIONS = {
    "flocking": FlockingSession,
    "pairing": PairingSession,
    "gravity": GravitySession,
    "orbitals": OrbitalSession,
}


def _check_canvas_size(width, height) -> None:
    if width <= 0 or height <= 0:
        msg = f"Configuration error: canvas size must be positive, got {width}x{height}."
        logging.critical(msg)
        raise ValueError(msg)


def create_session(kind: str, config: Dict[str, Any], width: int, height: int,
                   rng: Optional[np.random.Generator] = None) -> SimulationSession:
    """Builds a session of the given kind from its configuration section."""
    if kind not in SESSIONS:
        msg = (
            f"Configuration error: unknown simulation {kind!r}; "
            f"expected one of {list(constants.SIMULATION_KINDS)}."
        )
        logging.critical(msg)
        raise ValueError(msg)
    if rng is None:
        rng = np.random.default_rng(config.get("seed"))
    params = PARAMS_BY_KIND[kind].from_config(simulation_section(config, kind))
    return SESSIONS[kind](params, width, height, rng)
