"""
Tests for the BGK collision operator and the omega/viscosity relations.
"""

import warnings

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lattice_flow.lattice import CS2, LatticeGrid
from lattice_flow.equilibrium import compute_equilibrium, equilibrium_single_site
from lattice_flow.observables import compute_macroscopic
from lattice_flow.collision import (
    bgk_collision, validate_omega,
    viscosity_from_omega, omega_from_viscosity, reynolds_number,
)
from lattice_flow.errors import ConfigurationError


@pytest.fixture
def equilibrium_state():
    ny, nx = 16, 20
    X, Y = np.meshgrid(np.arange(nx), np.arange(ny))
    rho = 1.0 + 0.05 * np.cos(2 * np.pi * X / nx)
    ux = 0.08 * np.sin(2 * np.pi * Y / ny)
    uy = -0.03 * np.cos(2 * np.pi * X / nx)
    return compute_equilibrium(rho, ux, uy)


class TestBGKCollision:

    def test_equilibrium_is_fixed_point(self, equilibrium_state):
        """Collision leaves an equilibrium state unchanged."""
        f = equilibrium_state.copy()
        solid = np.zeros(f.shape[:2], dtype=bool)

        bgk_collision(f, solid, 1.7)

        np.testing.assert_allclose(f, equilibrium_state, rtol=1e-12, atol=1e-15)

    def test_omega_one_reaches_equilibrium(self):
        """With omega = 1 populations jump straight to equilibrium."""
        f = equilibrium_single_site(1.0, 0.05, 0.02).reshape(1, 1, 9).copy()
        f[0, 0, 1] += 0.01
        f[0, 0, 3] -= 0.004
        rho, ux, uy = compute_macroscopic(f)

        bgk_collision(f, np.zeros((1, 1), dtype=bool), 1.0)

        expected = equilibrium_single_site(rho[0, 0], ux[0, 0], uy[0, 0])
        np.testing.assert_allclose(f[0, 0], expected, rtol=1e-12)

    def test_relaxation_rate(self):
        """Non-equilibrium part shrinks by a factor (1 - omega)."""
        omega = 0.6
        f = equilibrium_single_site(1.0, 0.0, 0.0).reshape(1, 1, 9).copy()
        f[0, 0, 5] += 0.002
        f[0, 0, 7] += 0.002
        rho, ux, uy = compute_macroscopic(f)
        f_eq = equilibrium_single_site(rho[0, 0], ux[0, 0], uy[0, 0])
        neq_before = f[0, 0] - f_eq

        bgk_collision(f, np.zeros((1, 1), dtype=bool), omega)

        np.testing.assert_allclose(f[0, 0] - f_eq, (1 - omega) * neq_before, atol=1e-15)

    def test_obstacle_cells_untouched(self, equilibrium_state):
        f = equilibrium_state.copy()
        f[..., 2] *= 1.1
        solid = np.zeros(f.shape[:2], dtype=bool)
        solid[4:7, 5:9] = True
        before = f[solid].copy()

        bgk_collision(f, solid, 1.5)

        np.testing.assert_array_equal(f[solid], before)
        assert not np.allclose(f[~solid], equilibrium_state[~solid] * 1.0)

    def test_momentum_conserved_per_cell(self, equilibrium_state):
        f = equilibrium_state.copy()
        f[..., 1] += 0.003
        f[..., 3] += 0.003
        rho_before, ux_before, uy_before = compute_macroscopic(f)

        bgk_collision(f, np.zeros(f.shape[:2], dtype=bool), 1.3)
        rho_after, ux_after, uy_after = compute_macroscopic(f)

        np.testing.assert_allclose(rho_after, rho_before, rtol=1e-13)
        np.testing.assert_allclose(ux_after, ux_before, atol=1e-14)
        np.testing.assert_allclose(uy_after, uy_before, atol=1e-14)

    def test_operates_on_grid_view(self):
        grid = LatticeGrid(6, 4)
        grid.initialize(1.0, (0.04, 0.0))
        grid.cells[..., 0] += 0.01
        data_before = grid.data.copy()

        bgk_collision(grid.cells, np.zeros((4, 6), dtype=bool), 1.0)

        assert not np.array_equal(grid.data, data_before)

    @pytest.mark.parametrize("omega", [0.0, 2.0, -0.5, 2.5])
    def test_invalid_omega(self, equilibrium_state, omega):
        with pytest.raises(ValueError):
            bgk_collision(equilibrium_state.copy(),
                          np.zeros(equilibrium_state.shape[:2], dtype=bool), omega)


class TestOmegaValidation:

    @pytest.mark.parametrize("omega", [0.0, 2.0, -1.0, 3.0, float("nan")])
    def test_out_of_range(self, omega):
        with pytest.raises(ConfigurationError):
            validate_omega(omega)

    def test_not_a_number(self):
        with pytest.raises(ConfigurationError):
            validate_omega("fast")

    def test_valid(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert validate_omega(1.7) == 1.7

    def test_warns_near_two(self):
        with pytest.warns(UserWarning):
            validate_omega(1.97)


class TestViscosityOmegaRelation:

    def test_viscosity_from_omega(self):
        omega = 1.25
        assert np.isclose(viscosity_from_omega(omega), CS2 * (1.0 / omega - 0.5))

    def test_roundtrip(self):
        omega = 1.7
        assert np.isclose(omega_from_viscosity(viscosity_from_omega(omega)), omega)

    def test_omega_one(self):
        # tau = 1 gives nu = 1/6
        assert np.isclose(viscosity_from_omega(1.0), 1.0 / 6.0)

    def test_invalid_viscosity(self):
        with pytest.raises(ValueError):
            omega_from_viscosity(0.0)

    def test_reynolds_number(self):
        re = reynolds_number(0.1, 10, 1.7)
        assert np.isclose(re, 0.1 * 10 / viscosity_from_omega(1.7))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
