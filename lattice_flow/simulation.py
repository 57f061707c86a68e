"""
Fluid Simulation

Owns the lattice, the obstacle mask and the boundary handler, and advances
them one tick at a time:

    Collision -> Streaming (+ bounce-back) -> Boundaries -> Diagnostics

The core never schedules itself. Any host loop (a test, a game loop, a
frame timer) drives it through the Steppable interface.
"""

import abc
import copy
import time

import numpy as np

from .boundary import BoundaryHandler
from .collision import bgk_collision, viscosity_from_omega
from .config import SimulationConfig
from .errors import NumericalDivergence
from .lattice import LatticeGrid
from .observables import (
    check_divergence,
    compute_macroscopic,
    compute_obstacle_force,
    compute_pressure,
    compute_velocity_magnitude,
    compute_vorticity,
    sample_field,
)
from .obstacles import ObstacleMask
from .streaming import stream_grid


class Steppable(abc.ABC):
    """Anything a host scheduler can advance by one tick."""

    @abc.abstractmethod
    def step(self):
        """Advance by one tick."""


def _read_only(array):
    array.flags.writeable = False
    return array


class FluidSimulation(Steppable):
    """
    D2Q9 BGK simulation of flow past static obstacles.

    Parameters
    ----------
    config : SimulationConfig or dict
        Construction-time parameters. A dict is passed to
        ``SimulationConfig.from_dict``.

    Examples
    --------
    >>> config = SimulationConfig(nx=50, ny=30, omega=1.7,
    ...                           obstacles=[(25, 15, 5)])
    >>> with FluidSimulation(config) as sim:
    ...     sim.run(200)
    ...     vorticity = sim.vorticity_field()
    """

    SEEDED = "seeded"
    STEPPING = "stepping"
    CLOSED = "closed"

    def __init__(self, config):
        if isinstance(config, dict):
            config = SimulationConfig.from_dict(config)
        elif not isinstance(config, SimulationConfig):
            raise TypeError(f"Expected SimulationConfig or dict, got {type(config).__name__}")
        self.config = copy.deepcopy(config)
        cfg = self.config

        self.nx = cfg.nx
        self.ny = cfg.ny
        self.omega = cfg.omega

        self.mask = ObstacleMask(cfg.nx, cfg.ny)
        for cx, cy, radius in cfg.obstacles:
            self.mask.add_circle(cx, cy, radius)
        if cfg.obstacle_count:
            rng = np.random.default_rng(cfg.seed)
            self.mask.place_circular_obstacles(cfg.obstacle_count,
                                               cfg.obstacle_radius_range, rng)
        self.mask.freeze()

        self.boundary = BoundaryHandler(
            inflow_density=cfg.inflow_density,
            inflow_velocity=cfg.inflow_velocity,
            x_mode=cfg.x_boundary,
            y_mode=cfg.y_boundary,
        )

        self.grid = LatticeGrid(cfg.nx, cfg.ny)
        self.grid.initialize(cfg.initial_density, cfg.initial_velocity, self.mask.solid)

        self.step_count = 0
        self.state = self.SEEDED
        self._update_diagnostics(pin_inflow=False)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def _check_open(self):
        if self.state == self.CLOSED:
            raise RuntimeError("Simulation has been closed")

    @property
    def solid(self):
        self._check_open()
        return self.mask.solid

    def collide(self):
        """Collision phase: BGK relaxation of every fluid cell."""
        bgk_collision(self.grid.cells, self.mask.solid, self.omega)

    def stream(self):
        """Streaming phase, with obstacle bounce-back, into the ping-pong buffer."""
        stream_grid(self.grid, self.mask.solid,
                    periodic_x=self.boundary.periodic_x,
                    periodic_y=self.boundary.periodic_y)

    def apply_boundaries(self):
        """Boundary phase: inflow override and outflow extrapolation."""
        self.boundary.apply(self.grid.cells, self.mask.solid)

    def _update_diagnostics(self, pin_inflow=True):
        rho, ux, uy = compute_macroscopic(self.grid.cells, self.mask.solid)
        if pin_inflow:
            self.boundary.apply_macroscopic(rho, ux, uy, self.mask.solid)
        vorticity = compute_vorticity(ux, uy)

        self._rho = _read_only(rho)
        self._velocity = _read_only(np.stack((ux, uy), axis=-1))
        self._vorticity = _read_only(vorticity)

    def step(self):
        """
        Advance the simulation by one tick.

        Raises
        ------
        NumericalDivergence
            If stability checking is enabled and the new state contains
            non-finite values, non-positive density, or velocities above
            the configured limit.
        """
        self._check_open()
        self.state = self.STEPPING

        self.collide()
        self.stream()
        self.apply_boundaries()
        self._update_diagnostics()
        self.step_count += 1

        if self.config.check_stability:
            try:
                check_divergence(self._rho, self._velocity[..., 0],
                                 self._velocity[..., 1], self.mask.solid,
                                 self.config.velocity_limit)
            except NumericalDivergence as exc:
                raise NumericalDivergence(exc.reason, step=self.step_count) from None

    def run(self, num_steps, report_every=None, verbose=False, callback=None):
        """
        Run several steps.

        Parameters
        ----------
        num_steps : int
            Number of steps to run
        report_every : int, optional
            Print a progress line every this many steps when verbose
        verbose : bool
            Print progress and throughput
        callback : callable, optional
            Called as ``callback(sim)`` after every step

        Returns
        -------
        step_count : int
            Total steps taken by this simulation
        """
        self._check_open()
        if verbose:
            print(f"Running {num_steps} steps on {self.nx}x{self.ny} "
                  f"(omega={self.omega:.4f}, nu={viscosity_from_omega(self.omega):.5f}, "
                  f"solid nodes={self.mask.solid_count})")
        start = time.time()

        for step in range(num_steps):
            self.step()
            if callback is not None:
                callback(self)

            if verbose and report_every and (step + 1) % report_every == 0:
                speed = compute_velocity_magnitude(self._velocity[..., 0],
                                                   self._velocity[..., 1])
                print(f"Step {self.step_count}: mass={self.total_mass():.6f}, "
                      f"max|u|={np.max(speed):.4f}")

        if verbose:
            elapsed = time.time() - start
            mlups = num_steps * self.nx * self.ny / max(elapsed, 1e-12) / 1e6
            print(f"Done: {elapsed:.2f}s, {mlups:.2f} MLUPS")

        return self.step_count

    # ------------------------------------------------------------------
    # Read-only diagnostics
    # ------------------------------------------------------------------

    def density_field(self):
        """Density, shape (ny, nx). Valid until the next step()."""
        self._check_open()
        return self._rho

    def velocity_field(self):
        """Velocity (ux, uy) per cell, shape (ny, nx, 2). Valid until the next step()."""
        self._check_open()
        return self._velocity

    def vorticity_field(self):
        """Vorticity, shape (ny, nx), zero on the outer ring. Valid until the next step()."""
        self._check_open()
        return self._vorticity

    def pressure_field(self):
        self._check_open()
        return compute_pressure(self._rho)

    def speed_field(self):
        self._check_open()
        return compute_velocity_magnitude(self._velocity[..., 0], self._velocity[..., 1])

    def sample(self, field, x, y):
        """
        Bilinear sample of a diagnostic at fractional lattice coordinates.

        ``field`` is one of "density", "ux", "uy", "vorticity", "speed".
        """
        self._check_open()
        fields = {
            "density": lambda: self._rho,
            "ux": lambda: self._velocity[..., 0],
            "uy": lambda: self._velocity[..., 1],
            "vorticity": lambda: self._vorticity,
            "speed": self.speed_field,
        }
        if field not in fields:
            raise KeyError(f"Unknown field {field!r}, expected one of {sorted(fields)}")
        return sample_field(fields[field](), x, y)

    def is_obstacle(self, x, y):
        self._check_open()
        return self.mask.is_obstacle(x, y)

    def get_cell(self, x, y):
        self._check_open()
        return self.grid.get_cell(x, y)

    def total_mass(self):
        self._check_open()
        return self.grid.total_mass()

    def obstacle_force(self):
        """Momentum-exchange force (F_x, F_y) on all obstacles from the last step."""
        self._check_open()
        return compute_obstacle_force(self.grid.cells, self.mask.solid,
                                      periodic_x=self.boundary.periodic_x,
                                      periodic_y=self.boundary.periodic_y)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self):
        """Release both lattice buffers and the obstacle mask."""
        if self.state == self.CLOSED:
            return
        self.grid.release()
        self.mask.release()
        self._rho = self._velocity = self._vorticity = None
        self.state = self.CLOSED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        return (f"FluidSimulation({self.nx}x{self.ny}, omega={self.omega}, "
                f"step={self.step_count}, state={self.state})")
