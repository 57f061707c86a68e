"""
Tests for inflow/outflow boundary handling.
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lattice_flow.lattice import Q
from lattice_flow.equilibrium import equilibrium_single_site
from lattice_flow.boundary import (
    BoundaryHandler, apply_equilibrium_inlet_left, apply_copy_outlet_right,
)


@pytest.fixture
def random_state():
    rng = np.random.default_rng(2)
    return rng.uniform(0.01, 0.2, size=(6, 10, Q))


class TestInlet:

    def test_overwrites_column_with_equilibrium(self, random_state):
        f = random_state
        solid = np.zeros((6, 10), dtype=bool)

        apply_equilibrium_inlet_left(f, solid, 1.0, 0.1, 0.0)

        expected = equilibrium_single_site(1.0, 0.1, 0.0)
        for j in range(6):
            np.testing.assert_array_equal(f[j, 0], expected)

    def test_leaves_interior_alone(self, random_state):
        f = random_state
        interior = f[:, 1:].copy()

        apply_equilibrium_inlet_left(f, np.zeros((6, 10), dtype=bool), 1.0, 0.1, 0.0)

        np.testing.assert_array_equal(f[:, 1:], interior)

    def test_skips_obstacle_cells(self, random_state):
        f = random_state
        solid = np.zeros((6, 10), dtype=bool)
        solid[2, 0] = True
        f[2, 0] = 0.0

        apply_equilibrium_inlet_left(f, solid, 1.0, 0.1, 0.0)

        assert np.all(f[2, 0] == 0.0)


class TestOutlet:

    def test_copies_second_to_last_column(self, random_state):
        f = random_state
        apply_copy_outlet_right(f, np.zeros((6, 10), dtype=bool))

        np.testing.assert_array_equal(f[:, -1], f[:, -2])

    def test_skips_obstacle_cells(self, random_state):
        f = random_state
        solid = np.zeros((6, 10), dtype=bool)
        solid[4, -1] = True
        f[4, -1] = 0.0

        apply_copy_outlet_right(f, solid)

        assert np.all(f[4, -1] == 0.0)
        np.testing.assert_array_equal(f[3, -1], f[3, -2])

    def test_solid_upstream_uses_nearest_fluid_cell(self, random_state):
        f = random_state
        solid = np.zeros((6, 10), dtype=bool)
        solid[2:5, -2] = True
        f[2:5, -2] = 0.0

        apply_copy_outlet_right(f, solid)

        np.testing.assert_array_equal(f[2, -1], f[1, -2])
        # Row 3 is two rows from both 1 and 5; the lower row wins
        np.testing.assert_array_equal(f[3, -1], f[1, -2])
        np.testing.assert_array_equal(f[4, -1], f[5, -2])
        np.testing.assert_array_equal(f[0, -1], f[0, -2])
        assert np.all(f[:, -1].sum(axis=1) > 0.0)

    def test_solid_upstream_column_keeps_streamed_state(self, random_state):
        f = random_state
        solid = np.zeros((6, 10), dtype=bool)
        solid[:, -2] = True
        before = f[:, -1].copy()

        apply_copy_outlet_right(f, solid)

        np.testing.assert_array_equal(f[:, -1], before)


class TestBoundaryHandler:

    def test_modes(self):
        handler = BoundaryHandler(1.0, (0.1, 0.0), x_mode="inflow_outflow", y_mode="reflective")
        assert not handler.periodic_x
        assert not handler.periodic_y

        handler = BoundaryHandler(1.0, (0.1, 0.0), x_mode="periodic", y_mode="periodic")
        assert handler.periodic_x
        assert handler.periodic_y

    def test_invalid_modes(self):
        with pytest.raises(ValueError):
            BoundaryHandler(x_mode="slip")
        with pytest.raises(ValueError):
            BoundaryHandler(y_mode="open")

    def test_apply_inflow_outflow(self, random_state):
        f = random_state
        handler = BoundaryHandler(1.05, (0.08, 0.01))
        handler.apply(f, np.zeros((6, 10), dtype=bool))

        np.testing.assert_array_equal(f[0, 0], equilibrium_single_site(1.05, 0.08, 0.01))
        np.testing.assert_array_equal(f[:, -1], f[:, -2])

    def test_periodic_x_is_noop(self, random_state):
        f = random_state
        before = f.copy()
        handler = BoundaryHandler(1.0, (0.1, 0.0), x_mode="periodic")

        handler.apply(f, np.zeros((6, 10), dtype=bool))

        np.testing.assert_array_equal(f, before)

    def test_apply_macroscopic_exact(self):
        rho = np.full((4, 5), 0.97)
        ux = np.full((4, 5), 0.0931)
        uy = np.full((4, 5), 0.002)
        solid = np.zeros((4, 5), dtype=bool)
        solid[1, 0] = True

        BoundaryHandler(1.0, (0.1, 0.0)).apply_macroscopic(rho, ux, uy, solid)

        assert np.all(ux[[0, 2, 3], 0] == 0.1)
        assert np.all(uy[[0, 2, 3], 0] == 0.0)
        assert np.all(rho[[0, 2, 3], 0] == 1.0)
        assert ux[1, 0] == 0.0931
        assert np.all(ux[:, 1:] == 0.0931)

    def test_single_column_grid(self):
        f = np.zeros((3, 1, Q))
        BoundaryHandler(1.0, (0.1, 0.0)).apply(f, np.zeros((3, 1), dtype=bool))

        np.testing.assert_array_equal(f[1, 0], equilibrium_single_site(1.0, 0.1, 0.0))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
