"""
Equilibrium Distribution Functions

Maxwell-Boltzmann equilibrium for the D2Q9 lattice, truncated to second
order in velocity:

    f_i^eq = w_i * rho * [1 + 3 (e_i · u) + 4.5 (e_i · u)^2 - 1.5 |u|^2]

which is the usual form with c_s^2 = 1/3 substituted:

    1/c_s^2 = 3,  1/(2 c_s^4) = 4.5,  1/(2 c_s^2) = 1.5
"""

import numpy as np
from numba import njit
from .lattice import EX, EY, W, Q


def compute_equilibrium(rho, ux, uy):
    """
    Compute equilibrium distribution for all lattice sites.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx)
    ux : ndarray
        X-velocity field, shape (ny, nx)
    uy : ndarray
        Y-velocity field, shape (ny, nx)

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (ny, nx, Q), matching the
        cell-major layout of the lattice buffer.
    """
    rho = np.asarray(rho, dtype=np.float64)
    ux = np.asarray(ux, dtype=np.float64)
    uy = np.asarray(uy, dtype=np.float64)

    f_eq = np.zeros(rho.shape + (Q,), dtype=np.float64)
    u_sq = ux * ux + uy * uy

    for i in range(Q):
        eu = EX[i] * ux + EY[i] * uy
        f_eq[..., i] = W[i] * rho * (1.0 + 3.0 * eu + 4.5 * eu * eu - 1.5 * u_sq)

    return f_eq


@njit(cache=True)
def equilibrium_into(out, rho, ux, uy, ex, ey, w):
    """
    Write the equilibrium populations of one cell into ``out``.

    Shared by the collision and boundary kernels so both use the exact
    same floating-point expression.
    """
    u_sq = ux * ux + uy * uy
    for k in range(out.shape[0]):
        eu = ex[k] * ux + ey[k] * uy
        out[k] = w[k] * rho * (1.0 + 3.0 * eu + 4.5 * eu * eu - 1.5 * u_sq)


def equilibrium_single_site(rho, ux, uy):
    """
    Compute equilibrium distribution for a single lattice site.

    Useful for boundary conditions and testing.

    Parameters
    ----------
    rho : float
        Density at the site
    ux : float
        X-velocity at the site
    uy : float
        Y-velocity at the site

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q,)
    """
    f_eq = np.zeros(Q, dtype=np.float64)
    equilibrium_into(f_eq, float(rho), float(ux), float(uy),
                     EX.astype(np.float64), EY.astype(np.float64), W)
    return f_eq
