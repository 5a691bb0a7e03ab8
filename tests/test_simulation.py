"""Tests for the simulation sessions and their lifecycle."""

import numpy as np
import pytest

import constants
from particle import OrbitalType
from simulation import (
    FlockingSession, GravitySession, OrbitalSession, PairingSession, create_session,
)


@pytest.mark.parametrize("kind, cls", [
    ("flocking", FlockingSession),
    ("pairing", PairingSession),
    ("gravity", GravitySession),
    ("orbitals", OrbitalSession),
])
def test_create_session_per_kind(kind, cls, small_config):
    with create_session(kind, small_config, 320, 240) as session:
        assert isinstance(session, cls)
        session.tick()
        assert session.steps == 1
        metrics = session.metrics()
        assert metrics["kind"] == kind
        assert metrics["step"] == 1
        assert "count" in metrics


def test_unknown_kind_is_rejected(small_config):
    with pytest.raises(ValueError):
        create_session("fluid", small_config, 320, 240)


def test_non_positive_canvas_is_rejected(small_config):
    with pytest.raises(ValueError):
        create_session("flocking", small_config, 0, 240)


def test_seed_makes_sessions_reproducible(small_config):
    first = create_session("pairing", small_config, 320, 240)
    second = create_session("pairing", small_config, 320, 240)
    for _ in range(5):
        first.tick()
        second.tick()
    np.testing.assert_array_equal(first.state.positions, second.state.positions)
    np.testing.assert_array_equal(first.state.partners, second.state.partners)


@pytest.mark.parametrize("kind", ["flocking", "pairing"])
def test_reinitialization_yields_independent_valid_stores(kind, small_config):
    session = create_session(kind, small_config, 320, 240)
    count = session.params.particle_count
    before = session.state
    session.reset()
    after = session.state

    assert after is not before
    assert before.count == after.count == count
    assert not np.shares_memory(before.positions, after.positions)
    speed = session.params.speed if kind == "flocking" else session.params.initial_speed
    for store in (before, after):
        assert np.all((store.positions >= 0.0) & (store.positions <= [320.0, 240.0]))
        np.testing.assert_allclose(store.speeds(), speed)
    assert session.initializations == 2


def test_particle_count_hysteresis(small_config):
    session = create_session("flocking", small_config, 320, 240)
    live = session.state.count

    session.update_params(particle_count=live + constants.COUNT_HYSTERESIS)
    session.tick()
    assert session.state.count == live
    assert session.initializations == 1

    session.update_params(particle_count=live + constants.COUNT_HYSTERESIS + 1)
    session.tick()
    assert session.state.count == live + constants.COUNT_HYSTERESIS + 1
    assert session.initializations == 2


def test_resize_rebuilds_canvas_simulations(small_config):
    session = create_session("pairing", small_config, 320, 240)
    session.resize(640, 120)
    assert session.initializations == 2
    assert session.state.width == 640.0 and session.state.height == 120.0
    assert session.grid.grid_width == int(np.ceil(640 / session.grid.cell_size))

    session.resize(640, 120)
    assert session.initializations == 2


@pytest.mark.parametrize("kind", ["gravity", "orbitals"])
def test_resize_keeps_world_space_simulations(kind, small_config):
    session = create_session(kind, small_config, 320, 240)
    state = session.state
    session.resize(800, 600)
    assert session.state is state
    assert session.initializations == 1


def test_parameter_changes_take_effect_without_restart(small_config):
    session = create_session("pairing", small_config, 320, 240)
    state = session.state
    session.update_params(temperature=0.1)
    for _ in range(5):
        session.tick()
    assert session.state is state
    assert session.params.temperature == 0.1
    assert session.metrics()["paired_fraction"] > 0.0


def test_orbital_change_regenerates_the_cloud(small_config):
    session = create_session("orbitals", small_config, 320, 240)
    session.update_params(orbital="2p")
    session.tick()
    assert session.state.orbital is OrbitalType.FIRST_EXCITED_P
    assert session.initializations == 2

    assert session.cycle_orbital() == "3d"
    session.tick()
    assert session.state.orbital is OrbitalType.D_ORBITAL

    with pytest.raises(ValueError):
        session.update_params(orbital="5g")


def test_observation_is_forwarded(small_config):
    session = create_session("orbitals", small_config, 320, 240)
    session.observe((10.0, 10.0))
    session.tick()
    assert session.metrics()["observed"] is True
    assert len(session.state.electron.trail) == 1
    session.observe(None)
    assert session.metrics()["observed"] is False


def test_gravity_body_count_change_rebuilds(small_config):
    session = create_session("gravity", small_config, 320, 240)
    session.update_params(body_count=7)
    session.tick()
    assert len(session.state.bodies) == 7


def test_closed_session_refuses_to_run(small_config):
    session = create_session("flocking", small_config, 320, 240)
    session.close()
    session.close()
    with pytest.raises(RuntimeError):
        session.tick()
    with pytest.raises(RuntimeError):
        session.render(None)


def test_context_manager_closes(small_config):
    with create_session("gravity", small_config, 320, 240) as session:
        session.tick()
    assert session.closed


def test_render_without_surface_is_a_no_op(small_config):
    session = create_session("flocking", small_config, 320, 240)
    session.tick()
    assert session.render(None) is False


def test_gravity_trail_length_update_is_honoured(small_config):
    session = create_session("gravity", small_config, 320, 240)
    session.update_params(trail_length=5)
    for _ in range(20):
        session.tick()
    assert session.initializations == 1
    assert all(len(body.trail) <= 5 for body in session.state.bodies)


def test_closed_session_refuses_to_resize(small_config):
    session = create_session("flocking", small_config, 320, 240)
    session.close()
    with pytest.raises(RuntimeError):
        session.resize(400, 300)
    assert session.initializations == 1
