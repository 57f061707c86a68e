"""
Obstacle Masks

Static solid geometry for the lattice. A mask is a boolean array of shape
(ny, nx), True for solid cells. Masks are built once at setup, then frozen.

Random placement takes an explicit numpy Generator so that the same seed
always yields the same geometry.
"""

import numpy as np


def create_cylinder_mask(nx, ny, cx, cy, radius):
    """
    Create a solid mask for a circular cylinder.

    Parameters
    ----------
    nx, ny : int
        Grid dimensions
    cx, cy : float
        Cylinder center coordinates
    radius : float
        Cylinder radius

    Returns
    -------
    mask : ndarray
        Boolean mask (True for solid), shape (ny, nx)
    """
    x = np.arange(nx)
    y = np.arange(ny)
    X, Y = np.meshgrid(x, y)

    distance = np.sqrt((X - cx)**2 + (Y - cy)**2)
    mask = distance <= radius

    return mask


class ObstacleMask:
    """
    Boolean solid field over an nx by ny lattice.

    Parameters
    ----------
    nx, ny : int
        Grid dimensions
    """

    def __init__(self, nx, ny):
        self.nx = nx
        self.ny = ny
        self.solid = np.zeros((ny, nx), dtype=bool)
        self.circles = []

    @property
    def frozen(self):
        return not self.solid.flags.writeable

    @property
    def solid_count(self):
        return int(np.count_nonzero(self.solid))

    def add_circle(self, cx, cy, radius):
        """Mark every cell within ``radius`` of (cx, cy) as solid."""
        if self.frozen:
            raise RuntimeError("Obstacle mask is frozen")
        self.solid |= create_cylinder_mask(self.nx, self.ny, cx, cy, radius)
        self.circles.append((float(cx), float(cy), float(radius)))

    def place_circular_obstacles(self, count, radius_range, rng):
        """
        Place ``count`` randomly centered circles.

        Centers are kept clear of the first and last columns when the
        domain is wide enough, so inflow and outflow columns stay open.

        Parameters
        ----------
        count : int
            Number of circles
        radius_range : tuple
            (r_min, r_max), radius drawn uniformly from this range
        rng : numpy.random.Generator
            Seeded random source

        Returns
        -------
        placed : list
            (cx, cy, radius) of each circle, in placement order
        """
        r_min, r_max = radius_range
        placed = []

        for _ in range(count):
            radius = rng.uniform(r_min, r_max)

            lo = radius + 1.0
            hi = self.nx - 2.0 - radius
            if hi > lo:
                cx = rng.uniform(lo, hi)
            else:
                cx = (self.nx - 1) / 2.0
            cy = rng.uniform(0.0, self.ny - 1.0)

            self.add_circle(cx, cy, radius)
            placed.append((cx, cy, radius))

        return placed

    def freeze(self):
        """Make the mask read-only."""
        self.solid.flags.writeable = False

    def is_obstacle(self, x, y):
        if not (0 <= x < self.nx and 0 <= y < self.ny):
            raise IndexError(
                f"Cell ({x}, {y}) is outside the {self.nx}x{self.ny} lattice"
            )
        return bool(self.solid[y, x])

    def release(self):
        self.solid = None
        self.circles = []
