"""
D2Q9 Lattice Constants and Grid Storage

Defines the D2Q9 lattice model and the flat population buffer that holds
the distribution state of a 2D simulation.

Populations are stored cell-major in one contiguous float64 buffer:

    index(x, y, i) = (y * nx + x) * 9 + i

so the buffer reshaped to (ny, nx, Q) is a zero-copy view of the lattice.
"""
import numpy as np

# D2Q9 lattice velocities
#     6   2   5
#       \ | /
#     3 - 0 - 1
#       / | \
#     7   4   8

# Lattice velocity components
EX = np.array([0, 1, 0, -1, 0, 1, -1, -1, 1], dtype=np.int64)
EY = np.array([0, 0, 1, 0, -1, 1, 1, -1, -1], dtype=np.int64)

# Lattice weights
W = np.array([4/9, 1/9, 1/9, 1/9, 1/9, 1/36, 1/36, 1/36, 1/36], dtype=np.float64)

# Opposite direction indices (for bounce-back)
OPPOSITE = np.array([0, 3, 4, 1, 2, 7, 8, 5, 6], dtype=np.int64)

# Lattice sound speed squared
CS2 = 1.0 / 3.0

# Number of lattice velocities
Q = 9


def index(x, y, i, nx):
    """Flat buffer offset of population i at cell (x, y)."""
    return (y * nx + x) * Q + i


class LatticeGrid:
    """
    Owner of the per-cell distribution state.

    Holds two flat buffers of size nx*ny*9: the active one, read by the
    operators and diagnostics, and a scratch one that streaming writes into
    before the two are swapped.

    Parameters
    ----------
    nx, ny : int
        Lattice dimensions (both > 0)
    """

    def __init__(self, nx, ny):
        if int(nx) != nx or int(ny) != ny or nx <= 0 or ny <= 0:
            raise ValueError(f"Grid dimensions must be positive integers, got {nx}x{ny}")

        self.nx = int(nx)
        self.ny = int(ny)
        self._buffers = [
            np.zeros(self.nx * self.ny * Q, dtype=np.float64),
            np.zeros(self.nx * self.ny * Q, dtype=np.float64),
        ]
        self._active = 0

    @property
    def released(self):
        return self._buffers is None

    def _check_alive(self):
        if self._buffers is None:
            raise RuntimeError("Lattice buffers have been released")

    @property
    def data(self):
        """Active flat population buffer, length nx*ny*9."""
        self._check_alive()
        return self._buffers[self._active]

    @property
    def scratch(self):
        """Inactive buffer that streaming writes into."""
        self._check_alive()
        return self._buffers[1 - self._active]

    @property
    def cells(self):
        """Active buffer viewed as shape (ny, nx, Q)."""
        return self.data.reshape(self.ny, self.nx, Q)

    @property
    def scratch_cells(self):
        return self.scratch.reshape(self.ny, self.nx, Q)

    def swap(self):
        """Make the scratch buffer the active one."""
        self._check_alive()
        self._active = 1 - self._active

    def initialize(self, initial_density, initial_velocity, solid=None):
        """
        Fill every fluid cell with its equilibrium distribution.

        Parameters
        ----------
        initial_density : float or ndarray
            Density, scalar or shape (ny, nx)
        initial_velocity : tuple
            (ux, uy), each a scalar or an array of shape (ny, nx)
        solid : ndarray, optional
            Boolean obstacle mask, shape (ny, nx). Obstacle cells are zeroed.
        """
        # Imported here to keep lattice.py free of operator dependencies
        from .equilibrium import compute_equilibrium

        shape = (self.ny, self.nx)
        ux, uy = initial_velocity
        rho = np.broadcast_to(np.asarray(initial_density, dtype=np.float64), shape)
        ux = np.broadcast_to(np.asarray(ux, dtype=np.float64), shape)
        uy = np.broadcast_to(np.asarray(uy, dtype=np.float64), shape)

        cells = self.cells
        cells[...] = compute_equilibrium(rho, ux, uy)
        if solid is not None:
            cells[solid] = 0.0
        self.scratch[:] = 0.0

    def _check_bounds(self, x, y):
        if not (0 <= x < self.nx and 0 <= y < self.ny):
            raise IndexError(
                f"Cell ({x}, {y}) is outside the {self.nx}x{self.ny} lattice"
            )

    def get_cell(self, x, y):
        """Return a copy of the 9 populations at cell (x, y)."""
        self._check_bounds(x, y)
        start = index(x, y, 0, self.nx)
        return self.data[start:start + Q].copy()

    def set_cell(self, x, y, f):
        """Overwrite the 9 populations at cell (x, y)."""
        self._check_bounds(x, y)
        f = np.asarray(f, dtype=np.float64)
        if f.shape != (Q,):
            raise ValueError(f"Expected {Q} populations, got shape {f.shape}")
        start = index(x, y, 0, self.nx)
        self.data[start:start + Q] = f

    def total_mass(self):
        """Sum of every population on the lattice."""
        return float(np.sum(self.data))

    def release(self):
        """Drop both buffers."""
        self._buffers = None
