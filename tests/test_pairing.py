"""Tests for the Cooper-pair coupling model."""

import numpy as np
import pytest

import pairing
from parameters import PairingParams
from particle import NO_PARTNER, PairingParticles


def make_particles(positions, rng, width=400.0, height=400.0):
    positions = np.asarray(positions, dtype=np.float64)
    return PairingParticles(positions, np.zeros_like(positions), width, height, rng)


def assert_symmetric(particles):
    for i, j in enumerate(particles.partners):
        if j != NO_PARTNER:
            assert j != i
            assert particles.partners[j] == i


def test_pair_forms_below_critical_temperature(rng):
    params = PairingParams(temperature=0.1, coupling_range=60.0)
    particles = make_particles([[100.0, 100.0], [130.0, 100.0]], rng)
    grid = pairing.make_grid(particles, params)

    pairing.step(particles, grid, params)

    assert particles.partner_of(0) == 1
    assert particles.partner_of(1) == 0


def test_pair_dissolves_above_critical_temperature(rng):
    particles = make_particles([[100.0, 100.0], [130.0, 100.0]], rng)
    particles.pair(0, 1)
    params = PairingParams(temperature=1.0)

    pairing.step(particles, pairing.make_grid(particles, params), params)

    assert particles.partner_of(0) is None
    assert particles.partner_of(1) is None


def test_pair_breaks_when_stretched_too_far(rng):
    params = PairingParams(temperature=0.1, coupling_range=60.0)
    particles = make_particles([[10.0, 200.0], [250.0, 200.0]], rng)
    particles.pair(0, 1)

    pairing.step(particles, pairing.make_grid(particles, params), params)

    assert particles.partners.tolist() == [NO_PARTNER, NO_PARTNER]


def test_no_pairing_above_critical_temperature(rng):
    params = PairingParams(temperature=0.7)
    particles = make_particles([[100.0, 100.0], [110.0, 100.0]], rng)
    pairing.step(particles, pairing.make_grid(particles, params), params)
    assert particles.paired_fraction() == 0.0


def test_first_unpaired_neighbour_in_traversal_order_wins(rng):
    # Known approximation: particle 1 is further away than particle 2 but is
    # visited first, so it becomes the partner.
    params = PairingParams(temperature=0.1, coupling_range=60.0)
    particles = make_particles([[100.0, 100.0], [140.0, 100.0], [110.0, 100.0]], rng)

    pairing.step(particles, pairing.make_grid(particles, params), params)

    assert particles.partners.tolist() == [1, 0, NO_PARTNER]


def test_symmetry_and_containment_over_many_ticks(rng):
    params = PairingParams(temperature=0.2, coupling_range=40.0)
    particles = PairingParticles.create(300, 400.0, 300.0, 1.0, rng)
    grid = pairing.make_grid(particles, params)

    for _ in range(100):
        pairing.step(particles, grid, params)
        assert_symmetric(particles)
        assert np.all((particles.positions[:, 0] >= 0.0) & (particles.positions[:, 0] <= 400.0))
        assert np.all((particles.positions[:, 1] >= 0.0) & (particles.positions[:, 1] <= 300.0))
        assert np.all(np.isfinite(particles.velocities))

    assert particles.paired_fraction() > 0.5


def test_heating_past_critical_clears_every_pair(rng):
    particles = PairingParticles.create(200, 300.0, 300.0, 1.0, rng)
    cold = PairingParams(temperature=0.1)
    grid = pairing.make_grid(particles, cold)
    for _ in range(10):
        pairing.step(particles, grid, cold)
    assert particles.paired_fraction() > 0.0

    pairing.step(particles, grid, PairingParams(temperature=0.9))

    assert particles.paired_fraction() == 0.0


def test_grid_follows_coupling_range(rng):
    particles = PairingParticles.create(20, 300.0, 300.0, 1.0, rng)
    grid = pairing.make_grid(particles, PairingParams(coupling_range=60.0))
    assert grid.cell_size == pytest.approx(90.0)

    pairing.step(particles, grid, PairingParams(coupling_range=30.0))

    assert grid.cell_size == pytest.approx(45.0)


def test_friction_rises_below_critical_temperature():
    assert pairing.effective_friction(PairingParams(temperature=0.3, friction=0.02)) == pytest.approx(0.03)
    assert pairing.effective_friction(PairingParams(temperature=0.8, friction=0.02)) == pytest.approx(0.02)


def test_pair_and_unpair_keep_the_relation_symmetric(rng):
    particles = make_particles([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]], rng)
    particles.pair(0, 1)
    particles.pair(1, 2)
    assert particles.partners.tolist() == [NO_PARTNER, 2, 1]

    particles.unpair(2)
    assert particles.partners.tolist() == [NO_PARTNER] * 3

    with pytest.raises(ValueError):
        particles.pair(0, 0)
