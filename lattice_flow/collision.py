"""
Collision Operator

BGK (single-relaxation-time) collision for the D2Q9 lattice.

Each fluid cell relaxes toward its local equilibrium:

    f_i <- f_i + omega * (f_i^eq - f_i)

where rho and u are recomputed from the current populations first. The
relaxation frequency omega controls the viscosity:

    nu = c_s^2 * (1/omega - 0.5)

Stability requires 0 < omega < 2 (nu > 0).
"""

import warnings

import numpy as np
from numba import njit, prange
from .lattice import EX, EY, W, CS2, Q
from .equilibrium import equilibrium_into
from .errors import ConfigurationError

# Above this omega the BGK scheme is prone to blow up on coarse grids
OMEGA_WARN = 1.95


def validate_omega(omega, name="omega"):
    """
    Validate that the relaxation frequency is in the stable range.

    Parameters
    ----------
    omega : float
        Relaxation frequency to validate
    name : str
        Name for error messages

    Raises
    ------
    ConfigurationError
        If omega is not in (0, 2)

    Returns
    -------
    omega : float
        Validated omega value
    """
    try:
        omega = float(omega)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {omega!r}")

    if not (0.0 < omega < 2.0):
        raise ConfigurationError(
            f"{name} must lie in (0, 2) for stability (got {omega}). "
            f"This corresponds to nu > 0."
        )
    if omega >= OMEGA_WARN:
        warnings.warn(
            f"{name} = {omega} is close to 2, the simulation may diverge. "
            f"Consider omega below {OMEGA_WARN}."
        )
    return omega


def viscosity_from_omega(omega, cs2=CS2):
    """
    Kinematic viscosity in lattice units.

    nu = c_s^2 * (1/omega - 0.5)
    """
    if not (0.0 < omega < 2.0):
        raise ValueError(f"omega must be in (0, 2), got {omega}")
    return cs2 * (1.0 / omega - 0.5)


def omega_from_viscosity(nu, cs2=CS2):
    """
    Relaxation frequency for a target kinematic viscosity.

    omega = 1 / (nu / c_s^2 + 0.5)
    """
    if nu <= 0:
        raise ValueError(f"Viscosity must be positive, got {nu}")
    return 1.0 / (nu / cs2 + 0.5)


def reynolds_number(velocity, length, omega):
    """Reynolds number Re = u L / nu for a characteristic length in cells."""
    return velocity * length / viscosity_from_omega(omega)


@njit(parallel=True, cache=True)
def bgk_collision_numba(f, solid, omega, ex, ey, w):
    """
    Numba-accelerated in-place BGK collision.

    Cells are independent, so rows are processed in parallel.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (ny, nx, Q). Modified in place.
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx). Solid cells are skipped.
    omega : float
        Relaxation frequency
    ex, ey : ndarray
        Lattice velocity components
    w : ndarray
        Lattice weights
    """
    ny, nx, q = f.shape

    for j in prange(ny):
        f_eq = np.empty(q, dtype=np.float64)
        for i in range(nx):
            if solid[j, i]:
                continue

            rho = 0.0
            rho_ux = 0.0
            rho_uy = 0.0
            for k in range(q):
                f_k = f[j, i, k]
                rho += f_k
                rho_ux += f_k * ex[k]
                rho_uy += f_k * ey[k]

            if rho > 1e-10:
                ux = rho_ux / rho
                uy = rho_uy / rho
            else:
                ux = 0.0
                uy = 0.0

            equilibrium_into(f_eq, rho, ux, uy, ex, ey, w)

            for k in range(q):
                f[j, i, k] = f[j, i, k] + omega * (f_eq[k] - f[j, i, k])


def bgk_collision(f, solid, omega):
    """
    BGK collision over the whole lattice, in place.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (ny, nx, Q). Modified in place.
    solid : ndarray
        Boolean obstacle mask, shape (ny, nx)
    omega : float
        Relaxation frequency, 0 < omega < 2

    Returns
    -------
    f : ndarray
        The same array, post-collision
    """
    if not (0.0 < omega < 2.0):
        raise ValueError(f"omega must be in (0, 2) for stability, got {omega}")
    if f.shape[:2] != solid.shape or f.shape[2] != Q:
        raise ValueError(f"Shape mismatch: f {f.shape}, solid {solid.shape}")

    bgk_collision_numba(f, solid, float(omega),
                        EX.astype(np.float64), EY.astype(np.float64), W)
    return f
