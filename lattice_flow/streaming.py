"""
Streaming Step

Propagation of post-collision populations along lattice velocities.

Push scheme: each fluid cell x sends f_i(x) to x + e_i. The pass reads the
active buffer and writes a separate scratch buffer, which then becomes
active. Writing into the buffer being read would let a cell pick up a value
that was already streamed earlier in the same pass.

Half-way bounce-back is folded into the same pass: a population whose
destination is solid lands back in its source cell, in the opposite
direction, with unchanged magnitude.
"""

import numpy as np
from numba import njit, prange
from .lattice import EX, EY, OPPOSITE, Q


@njit(parallel=True, cache=True)
def stream_push_numba(f, f_out, solid, ex, ey, opposite, periodic_x, periodic_y):
    """
    Numba-accelerated push streaming with bounce-back.

    Every slot of ``f_out`` has at most one writer (either the upstream
    neighbour or the cell itself via bounce-back), so rows can be processed
    in parallel.

    Parameters
    ----------
    f : ndarray
        Post-collision distribution, shape (ny, nx, Q). Read only.
    f_out : ndarray
        Output distribution, shape (ny, nx, Q). Overwritten.
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    ex, ey : ndarray
        Lattice velocity components
    opposite : ndarray
        Opposite direction indices
    periodic_x, periodic_y : bool
        Wrap populations leaving through the x / y edges. Otherwise, x
        leavers are dropped (the boundary handler rebuilds those columns)
        and y leavers are reflected as by a wall.
    """
    ny, nx, q = f.shape

    for j in prange(ny):
        for i in range(nx):
            for k in range(q):
                f_out[j, i, k] = 0.0

    for j in prange(ny):
        for i in range(nx):
            if solid[j, i]:
                continue

            for k in range(q):
                value = f[j, i, k]
                i_dst = i + int(ex[k])
                j_dst = j + int(ey[k])

                if i_dst < 0 or i_dst >= nx:
                    if periodic_x:
                        i_dst = (i_dst + nx) % nx
                    else:
                        continue

                if j_dst < 0 or j_dst >= ny:
                    if periodic_y:
                        j_dst = (j_dst + ny) % ny
                    else:
                        f_out[j, i, opposite[k]] = value
                        continue

                if solid[j_dst, i_dst]:
                    f_out[j, i, opposite[k]] = value
                else:
                    f_out[j_dst, i_dst, k] = value


def stream(f, f_out, solid, periodic_x=True, periodic_y=True):
    """
    Stream ``f`` into ``f_out``.

    Parameters
    ----------
    f : ndarray
        Post-collision distribution, shape (ny, nx, Q)
    f_out : ndarray
        Separate output array of the same shape
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    periodic_x, periodic_y : bool
        Edge handling, see ``stream_push_numba``

    Returns
    -------
    f_out : ndarray
        Post-streaming distribution
    """
    if f.shape != f_out.shape or f.shape[2] != Q:
        raise ValueError(f"Shape mismatch: f {f.shape}, f_out {f_out.shape}")
    if np.may_share_memory(f, f_out):
        raise ValueError("Streaming requires separate input and output buffers")

    stream_push_numba(f, f_out, solid, EX, EY, OPPOSITE,
                      bool(periodic_x), bool(periodic_y))
    return f_out


def stream_grid(grid, solid, periodic_x=True, periodic_y=True):
    """
    Stream a LatticeGrid through its ping-pong buffers.

    Reads the active buffer, writes the scratch buffer, then swaps so the
    freshly streamed state is active.
    """
    stream(grid.cells, grid.scratch_cells, solid, periodic_x, periodic_y)
    grid.swap()
    return grid
