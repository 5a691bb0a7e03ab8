"""Tests for the boids flock."""

import numpy as np
import pytest

import flocking
from parameters import FlockingParams
from particle import FlockingParticles


@pytest.fixture
def flock(rng):
    return FlockingParticles.create(200, 400.0, 300.0, 3.5, rng)


def test_initial_flock(flock):
    assert flock.count == 200
    np.testing.assert_allclose(flock.speeds(), 3.5)
    assert np.all((flock.positions >= 0.0) & (flock.positions <= [400.0, 300.0]))


def test_speed_cap_and_containment_hold_every_tick(flock):
    params = FlockingParams(separation=4.0, alignment=2.0, cohesion=2.0, speed=3.5)
    for _ in range(60):
        flocking.step(flock, params)
        assert np.all(flock.speeds() <= params.speed + 1e-9)
        assert np.all(flock.positions[:, 0] >= 0.0) and np.all(flock.positions[:, 0] <= 400.0)
        assert np.all(flock.positions[:, 1] >= 0.0) and np.all(flock.positions[:, 1] <= 300.0)
        assert not flock.accelerations.any()


def test_isolated_boid_feels_no_force(rng):
    positions = np.array([[10.0, 10.0], [200.0, 200.0]])
    velocities = np.array([[1.0, 0.0], [0.0, -1.0]])
    particles = FlockingParticles(positions, velocities, 300.0, 300.0, rng)

    flocking.step(particles, FlockingParams(perception_radius=20.0, speed=3.5))

    np.testing.assert_allclose(particles.velocities, velocities)
    np.testing.assert_allclose(particles.positions, [[11.0, 10.0], [200.0, 199.0]])


def test_coincident_boids_do_not_produce_nan(rng):
    positions = np.array([[50.0, 50.0], [50.0, 50.0], [55.0, 50.0]])
    velocities = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
    particles = FlockingParticles(positions, velocities, 100.0, 100.0, rng)

    for _ in range(5):
        flocking.step(particles, FlockingParams())

    assert np.all(np.isfinite(particles.positions))
    assert np.all(np.isfinite(particles.velocities))


def test_separation_pushes_close_boids_apart(rng):
    positions = np.array([[50.0, 50.0], [52.0, 50.0]])
    velocities = np.zeros((2, 2))
    particles = FlockingParticles(positions, velocities, 100.0, 100.0, rng)

    flocking.step(particles, FlockingParams(separation=1.0, alignment=0.0, cohesion=0.0))

    assert particles.velocities[0, 0] < 0.0 < particles.velocities[1, 0]


def test_alignment_alone_polarizes_the_flock(rng):
    # Perception covers the whole domain, so every boid sees the whole flock.
    particles = FlockingParticles.create(50, 200.0, 200.0, 3.5, rng)
    params = FlockingParams(separation=0.0, alignment=5.0, cohesion=0.0,
                            speed=3.5, perception_radius=300.0)
    initial_polarization = flocking.polarization(particles)
    initial_spread = flocking.heading_spread(particles)

    history = []
    for _ in range(500):
        flocking.step(particles, params)
        history.append(flocking.polarization(particles))

    late = float(np.mean(history[-100:]))
    assert late > initial_polarization
    assert late > 0.5
    assert flocking.heading_spread(particles) < initial_spread


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_alignment_and_cohesion_narrow_the_heading_spread(seed):
    rng = np.random.default_rng(seed)
    particles = FlockingParticles.create(50, 200.0, 200.0, 3.5, rng)
    params = FlockingParams(separation=0.0, alignment=5.0, cohesion=5.0,
                            speed=3.5, perception_radius=300.0)
    initial_spread = flocking.heading_spread(particles)
    initial_polarization = flocking.polarization(particles)

    for _ in range(500):
        flocking.step(particles, params)

    assert flocking.heading_spread(particles) < initial_spread
    assert flocking.polarization(particles) > initial_polarization


def test_polarization_bounds(rng):
    aligned = FlockingParticles(np.zeros((3, 2)), np.tile([1.0, 0.0], (3, 1)), 10.0, 10.0, rng)
    assert flocking.polarization(aligned) == pytest.approx(1.0)
    assert flocking.heading_spread(aligned) == pytest.approx(0.0, abs=1e-5)

    opposed = FlockingParticles(np.zeros((2, 2)), np.array([[1.0, 0.0], [-1.0, 0.0]]), 10.0, 10.0, rng)
    assert flocking.polarization(opposed) == pytest.approx(0.0)


def test_empty_flock_steps(rng):
    particles = FlockingParticles.create(0, 100.0, 100.0, 3.5, rng)
    flocking.step(particles, FlockingParams())
    assert particles.count == 0
    assert flocking.polarization(particles) == 0.0
