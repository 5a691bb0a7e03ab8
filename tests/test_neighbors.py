"""Tests for the naive scan and the spatial hash grid."""

import numpy as np
import pytest

from neighbors import SpatialGrid, naive_neighbors


@pytest.fixture
def scattered(rng):
    return rng.uniform(low=[0.0, 0.0], high=[400.0, 300.0], size=(300, 2))


@pytest.mark.parametrize("radius, cell_size", [(30.0, 45.0), (60.0, 90.0), (100.0, 45.0)])
def test_grid_matches_naive_scan(scattered, radius, cell_size):
    grid = SpatialGrid(400.0, 300.0, cell_size)
    grid.build(scattered)
    for index in range(scattered.shape[0]):
        expected = set(naive_neighbors(scattered, index, radius).tolist())
        found = grid.neighbors(scattered, index, radius).tolist()
        assert len(found) == len(set(found))
        assert set(found) == expected


def test_self_is_excluded_and_radius_is_strict():
    positions = np.array([[0.0, 0.0], [10.0, 0.0], [5.0, 0.0]])
    assert naive_neighbors(positions, 0, 10.0).tolist() == [2]

    grid = SpatialGrid(20.0, 20.0, 15.0)
    grid.build(positions)
    assert grid.neighbors(positions, 0, 10.0).tolist() == [2]


def test_naive_scan_returns_ascending_indices(scattered):
    found = naive_neighbors(scattered, 0, 120.0)
    assert np.all(np.diff(found) > 0)


def test_build_buckets_every_particle(scattered):
    grid = SpatialGrid(400.0, 300.0, 45.0)
    grid.build(scattered)
    assert grid.cell_offsets[-1] == scattered.shape[0]
    assert sorted(grid.cell_indices.tolist()) == list(range(scattered.shape[0]))


def test_particles_on_the_far_edge_are_clipped_into_the_grid():
    positions = np.array([[400.0, 300.0], [399.0, 299.0]])
    grid = SpatialGrid(400.0, 300.0, 45.0)
    grid.build(positions)
    assert grid.neighbors(positions, 0, 5.0).tolist() == [1]


def test_reach_covers_radius():
    grid = SpatialGrid(400.0, 300.0, 45.0)
    assert grid.reach_for(30.0) == 1
    assert grid.reach_for(100.0) == 3


def test_reconfigure_changes_dimensions():
    grid = SpatialGrid(400.0, 300.0, 45.0)
    grid.reconfigure(400.0, 300.0, 100.0)
    assert (grid.grid_width, grid.grid_height) == (4, 3)
    assert grid.cell_offsets.shape == (13,)


def test_non_positive_cell_size_is_rejected():
    with pytest.raises(ValueError):
        SpatialGrid(100.0, 100.0, 0.0)
