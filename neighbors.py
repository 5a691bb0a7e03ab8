# neighbors.py
"""
Neighbour queries: which particles lie within a radius of a given one.

Two strategies give the same answer (every other particle strictly within
the radius):

* a naive scan over all particles, used by the flock where O(n^2) is fine
  at a few hundred boids;
* a uniform hash grid, used by the pairing model, which searches every
  unpaired particle's surroundings every tick.

The hot loops are Numba kernels so that the force kernels can call them
directly; the Python wrappers are thin.
"""
import logging
import numpy as np
from numba import jit

# --- Data Contracts ---
#
# scan_neighbors_jit(positions, index, radius_sq, out) -> int
#   - Writes the indices of all particles j != index with squared distance
#     < radius_sq into out[:count] (ascending index order), returns count.
#   - The square root is never taken.
#
# class SpatialGrid:
#   - build(positions) buckets every particle into cell
#     (floor(x / cell_size), floor(y / cell_size)), clipped to the grid.
#   - grid_neighbors_jit(...) visits the own cell and the surrounding rings
#     (one ring whenever radius <= cell_size), x offset outer, y offset inner,
#     particles of a cell in ascending index order.


@jit(nopython=True)
def scan_neighbors_jit(positions, index, radius_sq, out):
    """Naive O(n) scan for one particle."""
    count = 0
    px = positions[index, 0]
    py = positions[index, 1]
    for j in range(positions.shape[0]):
        if j == index:
            continue
        dx = positions[j, 0] - px
        dy = positions[j, 1] - py
        if dx * dx + dy * dy < radius_sq:
            out[count] = j
            count += 1
    return count


@jit(nopython=True)
def grid_neighbors_jit(positions, index, radius_sq, reach,
                       cell_offsets, cell_indices, grid_width, grid_height,
                       cell_size, out):
    """Grid-accelerated scan for one particle; same result as the naive scan."""
    count = 0
    px = positions[index, 0]
    py = positions[index, 1]
    cell_x = min(max(int(np.floor(px / cell_size)), 0), grid_width - 1)
    cell_y = min(max(int(np.floor(py / cell_size)), 0), grid_height - 1)

    for dx in range(-reach, reach + 1):
        nx = cell_x + dx
        if nx < 0 or nx >= grid_width:
            continue
        for dy in range(-reach, reach + 1):
            ny = cell_y + dy
            if ny < 0 or ny >= grid_height:
                continue
            cell_idx = nx + ny * grid_width
            for k in range(cell_offsets[cell_idx], cell_offsets[cell_idx + 1]):
                j = cell_indices[k]
                if j == index:
                    continue
                ox = positions[j, 0] - px
                oy = positions[j, 1] - py
                if ox * ox + oy * oy < radius_sq:
                    out[count] = j
                    count += 1
    return count


def naive_neighbors(positions: np.ndarray, index: int, radius: float) -> np.ndarray:
    """Indices of all particles within radius of particle index (self excluded)."""
    out = np.empty(positions.shape[0], dtype=np.int64)
    count = scan_neighbors_jit(positions, index, radius * radius, out)
    return out[:count].copy()


class SpatialGrid:
    """
    Uniform grid over the domain, stored in a Numba-friendly flattened
    format: cell_indices holds particle indices sorted by cell, and
    cell_offsets[c] .. cell_offsets[c + 1] is the slice belonging to cell c.
    """
    def __init__(self, width: float, height: float, cell_size: float):
        self.reconfigure(width, height, cell_size)

    def reconfigure(self, width: float, height: float, cell_size: float) -> None:
        """Resizes the grid; the buckets are empty until the next build()."""
        if cell_size <= 0:
            msg = f"Grid cell size must be positive, got {cell_size}."
            logging.critical(msg)
            raise ValueError(msg)
        self.cell_size = float(cell_size)
        self.grid_width = max(1, int(np.ceil(width / self.cell_size)))
        self.grid_height = max(1, int(np.ceil(height / self.cell_size)))
        num_cells = self.grid_width * self.grid_height
        self.cell_offsets = np.zeros(num_cells + 1, dtype=np.int64)
        self.cell_indices = np.zeros(0, dtype=np.int64)

        logging.debug(
            f"Spatial grid created: {self.grid_width}x{self.grid_height} cells, "
            f"cell size {self.cell_size:.2f}px."
        )

    @property
    def num_cells(self) -> int:
        return self.grid_width * self.grid_height

    def cell_ids(self, positions: np.ndarray) -> np.ndarray:
        cell_xs = np.floor(positions[:, 0] / self.cell_size).astype(np.int64)
        cell_ys = np.floor(positions[:, 1] / self.cell_size).astype(np.int64)
        np.clip(cell_xs, 0, self.grid_width - 1, out=cell_xs)
        np.clip(cell_ys, 0, self.grid_height - 1, out=cell_ys)
        return cell_xs + cell_ys * self.grid_width

    def build(self, positions: np.ndarray) -> None:
        """Re-buckets every particle. O(n log n) through a stable sort."""
        cell_ids = self.cell_ids(positions)
        counts = np.bincount(cell_ids, minlength=self.num_cells)
        self.cell_offsets[0] = 0
        self.cell_offsets[1:] = np.cumsum(counts)
        # A stable sort keeps ascending particle order inside each cell.
        self.cell_indices = np.argsort(cell_ids, kind="stable").astype(np.int64)

    def reach_for(self, radius: float) -> int:
        """Number of cell rings that must be visited to cover radius."""
        return max(1, int(np.ceil(radius / self.cell_size)))

    def neighbors(self, positions: np.ndarray, index: int, radius: float) -> np.ndarray:
        """Indices of all particles within radius of particle index, in traversal order."""
        out = np.empty(positions.shape[0], dtype=np.int64)
        count = grid_neighbors_jit(
            positions, index, radius * radius, self.reach_for(radius),
            self.cell_offsets, self.cell_indices, self.grid_width, self.grid_height,
            self.cell_size, out
        )
        return out[:count].copy()
