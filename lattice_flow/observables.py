"""
Macroscopic Observable Extraction

Compute density, velocity, and derived quantities from distributions.

In LBM, macroscopic quantities are moments of the distribution function:
    - Density (0th moment): rho = sum_i(f_i)
    - Momentum (1st moment): rho*u = sum_i(f_i * e_i)

These fields are the only values the simulation hands to renderers.
"""

import numpy as np
from numba import njit, prange
from scipy import ndimage
from .lattice import EX, EY, OPPOSITE, CS2, Q
from .errors import NumericalDivergence


def compute_density(f):
    """
    Compute density field from distribution functions.

    rho = sum_i(f_i)

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (ny, nx, Q)

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    """
    return np.sum(f, axis=-1)


@njit(parallel=True, cache=True)
def compute_macroscopic_numba(f, solid, rho, ux, uy, ex, ey):
    """
    Numba-accelerated macroscopic quantity computation.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (ny, nx, Q)
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    rho : ndarray
        Output density field, shape (ny, nx)
    ux : ndarray
        Output X-velocity field, shape (ny, nx)
    uy : ndarray
        Output Y-velocity field, shape (ny, nx)
    ex, ey : ndarray
        Lattice velocity components
    """
    ny, nx, q = f.shape

    for j in prange(ny):
        for i in range(nx):
            rho_local = 0.0
            rho_ux = 0.0
            rho_uy = 0.0

            for k in range(q):
                f_k = f[j, i, k]
                rho_local += f_k
                rho_ux += f_k * ex[k]
                rho_uy += f_k * ey[k]

            rho[j, i] = rho_local

            if rho_local > 1e-10 and not solid[j, i]:
                ux[j, i] = rho_ux / rho_local
                uy[j, i] = rho_uy / rho_local
            else:
                ux[j, i] = 0.0
                uy[j, i] = 0.0


def compute_macroscopic(f, solid=None):
    """
    Compute all macroscopic quantities from distribution functions.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (ny, nx, Q)
    solid : ndarray, optional
        Boolean obstacle mask. Solid cells report zero velocity.

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    ux : ndarray
        X-velocity field, shape (ny, nx)
    uy : ndarray
        Y-velocity field, shape (ny, nx)
    """
    ny, nx, q = f.shape
    if solid is None:
        solid = np.zeros((ny, nx), dtype=bool)

    rho = np.zeros((ny, nx), dtype=np.float64)
    ux = np.zeros((ny, nx), dtype=np.float64)
    uy = np.zeros((ny, nx), dtype=np.float64)

    compute_macroscopic_numba(f, solid, rho, ux, uy,
                              EX.astype(np.float64), EY.astype(np.float64))

    return rho, ux, uy


def compute_vorticity(ux, uy, dx=1.0):
    """
    Compute vorticity field using central differences.

    omega = du_y/dx - du_x/dy

    Only interior cells are differentiated; the outermost ring of the
    field is left at zero.

    Parameters
    ----------
    ux : ndarray
        X-velocity field, shape (ny, nx)
    uy : ndarray
        Y-velocity field, shape (ny, nx)
    dx : float
        Grid spacing (default 1.0 in lattice units)

    Returns
    -------
    vorticity : ndarray
        Vorticity field, shape (ny, nx)
    """
    vorticity = np.zeros_like(ux, dtype=np.float64)
    if ux.shape[0] < 3 or ux.shape[1] < 3:
        return vorticity

    duy_dx = (uy[1:-1, 2:] - uy[1:-1, :-2]) / (2.0 * dx)
    dux_dy = (ux[2:, 1:-1] - ux[:-2, 1:-1]) / (2.0 * dx)
    vorticity[1:-1, 1:-1] = duy_dx - dux_dy

    return vorticity


def compute_velocity_magnitude(ux, uy):
    """
    Compute velocity magnitude field.

    |u| = sqrt(ux^2 + uy^2)
    """
    return np.sqrt(ux * ux + uy * uy)


def compute_pressure(rho, cs2=CS2):
    """
    Compute pressure field from density.

    For the isothermal lattice: p = rho * c_s^2
    """
    return rho * cs2


def compute_obstacle_force(f, solid, periodic_x=True, periodic_y=True):
    """
    Total force exerted by the fluid on solid cells (momentum exchange).

    Every fluid-to-solid link carries f_i across and back, transferring
    2 * f_i * e_i of momentum per step.

    Parameters
    ----------
    f : ndarray
        Post-streaming distribution, shape (ny, nx, Q)
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    periodic_x, periodic_y : bool
        Whether links wrap across the x / y edges, as in streaming

    Returns
    -------
    force : tuple
        (F_x, F_y) in lattice units
    """
    fluid = ~solid
    F_x, F_y = 0.0, 0.0

    for k in range(1, Q):
        # Links whose neighbour along e_k is solid. Off-grid neighbours of
        # non-periodic edges are never solid.
        neighbour_solid = np.roll(np.roll(solid, -EY[k], axis=0), -EX[k], axis=1)
        if not periodic_x and EX[k] != 0:
            neighbour_solid[:, -1 if EX[k] > 0 else 0] = False
        if not periodic_y and EY[k] != 0:
            neighbour_solid[-1 if EY[k] > 0 else 0, :] = False
        links = fluid & neighbour_solid
        # The population that hit the wall now sits in the opposite slot
        reflected = f[..., OPPOSITE[k]][links].sum()
        F_x += 2.0 * reflected * EX[k]
        F_y += 2.0 * reflected * EY[k]

    return F_x, F_y


def sample_field(field, x, y):
    """
    Bilinear sample of a (ny, nx) field at fractional lattice coordinates.

    Points outside the lattice return 0.

    Parameters
    ----------
    field : ndarray
        Scalar field, shape (ny, nx)
    x, y : float or ndarray
        Lattice coordinates (x along columns, y along rows)

    Returns
    -------
    values : float or ndarray
        Interpolated values, same shape as x
    """
    x_arr = np.atleast_1d(np.asarray(x, dtype=np.float64))
    y_arr = np.atleast_1d(np.asarray(y, dtype=np.float64))
    x_arr, y_arr = np.broadcast_arrays(x_arr, y_arr)

    values = ndimage.map_coordinates(
        np.asarray(field, dtype=np.float64),
        [y_arr.ravel(), x_arr.ravel()],
        order=1, mode="constant", cval=0.0,
    ).reshape(x_arr.shape)

    if np.ndim(x) == 0 and np.ndim(y) == 0:
        return float(values[0])
    return values


def check_divergence(rho, ux, uy, solid, velocity_limit):
    """
    Raise NumericalDivergence if the macroscopic state is not sane.

    Checks, over fluid cells: all values finite, density positive, and
    velocity magnitude not above ``velocity_limit``.
    """
    fluid = ~solid
    rho_f = rho[fluid]
    ux_f = ux[fluid]
    uy_f = uy[fluid]

    if not (np.all(np.isfinite(rho_f)) and np.all(np.isfinite(ux_f))
            and np.all(np.isfinite(uy_f))):
        raise NumericalDivergence("non-finite density or velocity")
    if rho_f.size and np.min(rho_f) <= 0.0:
        raise NumericalDivergence(f"non-positive density (min {np.min(rho_f):.3e})")

    speed = compute_velocity_magnitude(ux_f, uy_f)
    if speed.size and np.max(speed) > velocity_limit:
        raise NumericalDivergence(
            f"velocity magnitude {np.max(speed):.3e} exceeds limit {velocity_limit:.3e}"
        )
