"""
Simulation Configuration

All parameters are fixed at construction time. Validation is eager: an
invalid configuration raises ConfigurationError and no simulation is built.
"""

import inspect
import math
import numbers

from .boundary import X_MODES, Y_MODES
from .collision import validate_omega
from .errors import ConfigurationError


def _integer(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _positive_int(name, value):
    value = _integer(name, value)
    if value <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {value}")
    return value


def _non_negative_int(name, value):
    value = _integer(name, value)
    if value < 0:
        raise ConfigurationError(f"{name} must be >= 0, got {value}")
    return value


def _finite(name, value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")
    return value


def _pair(name, value):
    try:
        a, b = value
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a pair of numbers, got {value!r}")
    return (_finite(name, a), _finite(name, b))


class SimulationConfig:
    """
    Construction-time parameters for a FluidSimulation.

    Parameters
    ----------
    nx, ny : int
        Lattice dimensions
    omega : float
        BGK relaxation frequency, 0 < omega < 2
    inflow_velocity : tuple
        (ux, uy) imposed at the left edge
    inflow_density : float
        Density imposed at the left edge
    obstacle_count : int
        Number of randomly placed circular obstacles
    obstacle_radius_range : tuple
        (r_min, r_max) for random obstacles
    seed : int
        Seed for obstacle placement
    obstacles : sequence
        Explicit (cx, cy, radius) circles, placed before the random ones
    x_boundary : str
        "inflow_outflow" or "periodic"
    y_boundary : str
        "periodic" or "reflective"
    initial_density, initial_velocity : float, tuple
        Seed state of the lattice. Default to the inflow values.
    check_stability : bool
        Raise NumericalDivergence from step() when the state blows up
    divergence_factor : float
        Velocity limit as a multiple of the inflow speed
    """

    def __init__(self, nx, ny, omega, inflow_velocity=(0.1, 0.0), inflow_density=1.0,
                 obstacle_count=0, obstacle_radius_range=(2.0, 4.0), seed=0,
                 obstacles=(), x_boundary="inflow_outflow", y_boundary="periodic",
                 initial_density=None, initial_velocity=None,
                 check_stability=True, divergence_factor=10.0):
        self.nx = _positive_int("nx", nx)
        self.ny = _positive_int("ny", ny)
        self.omega = validate_omega(omega)

        self.inflow_velocity = _pair("inflow_velocity", inflow_velocity)
        self.inflow_density = _finite("inflow_density", inflow_density)
        if self.inflow_density <= 0:
            raise ConfigurationError(f"inflow_density must be > 0, got {self.inflow_density}")

        self.obstacle_count = _non_negative_int("obstacle_count", obstacle_count)
        self.obstacle_radius_range = _pair("obstacle_radius_range", obstacle_radius_range)

        self.seed = _non_negative_int("seed", seed)

        self.obstacles = tuple(self._validate_circle(c) for c in obstacles)

        if x_boundary not in X_MODES:
            raise ConfigurationError(f"x_boundary must be one of {X_MODES}, got {x_boundary!r}")
        if y_boundary not in Y_MODES:
            raise ConfigurationError(f"y_boundary must be one of {Y_MODES}, got {y_boundary!r}")
        self.x_boundary = x_boundary
        self.y_boundary = y_boundary

        if initial_density is None:
            initial_density = self.inflow_density
        self.initial_density = _finite("initial_density", initial_density)
        if self.initial_density <= 0:
            raise ConfigurationError(
                f"initial_density must be > 0, got {self.initial_density}")
        if initial_velocity is None:
            initial_velocity = self.inflow_velocity
        self.initial_velocity = _pair("initial_velocity", initial_velocity)

        self.check_stability = bool(check_stability)
        self.divergence_factor = _finite("divergence_factor", divergence_factor)
        if self.divergence_factor <= 0:
            raise ConfigurationError(
                f"divergence_factor must be > 0, got {self.divergence_factor}")

        if self.obstacle_count > 0:
            r_min, r_max = self.obstacle_radius_range
            if r_min <= 0 or r_min > r_max:
                raise ConfigurationError(
                    f"obstacle_radius_range must satisfy 0 < r_min <= r_max, "
                    f"got {self.obstacle_radius_range}")
            self._check_radius(r_max)

    @property
    def max_radius(self):
        """Exclusive upper bound on obstacle radii."""
        return min(self.nx, self.ny) / 2.0

    def _check_radius(self, radius):
        if radius >= self.max_radius:
            raise ConfigurationError(
                f"Obstacle radius {radius} must be less than half the smaller "
                f"grid dimension ({self.max_radius})")

    def _validate_circle(self, circle):
        try:
            cx, cy, radius = circle
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Obstacles must be (cx, cy, radius) triples, got {circle!r}")
        cx = _finite("obstacle cx", cx)
        cy = _finite("obstacle cy", cy)
        radius = _finite("obstacle radius", radius)
        if radius <= 0:
            raise ConfigurationError(f"Obstacle radius must be > 0, got {radius}")
        self._check_radius(radius)
        if not (0 <= cx < self.nx and 0 <= cy < self.ny):
            raise ConfigurationError(
                f"Obstacle center ({cx}, {cy}) lies outside the {self.nx}x{self.ny} grid")
        return (cx, cy, radius)

    @property
    def velocity_limit(self):
        """Largest fluid velocity magnitude accepted by the stability guard."""
        speed = math.hypot(*self.inflow_velocity)
        if speed == 0.0:
            return 1.0
        return self.divergence_factor * speed

    def to_dict(self):
        return {
            "nx": self.nx,
            "ny": self.ny,
            "omega": self.omega,
            "inflow_velocity": self.inflow_velocity,
            "inflow_density": self.inflow_density,
            "obstacle_count": self.obstacle_count,
            "obstacle_radius_range": self.obstacle_radius_range,
            "seed": self.seed,
            "obstacles": self.obstacles,
            "x_boundary": self.x_boundary,
            "y_boundary": self.y_boundary,
            "initial_density": self.initial_density,
            "initial_velocity": self.initial_velocity,
            "check_stability": self.check_stability,
            "divergence_factor": self.divergence_factor,
        }

    @classmethod
    def from_dict(cls, params):
        unknown = set(params) - set(inspect.signature(cls).parameters)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**params)

    def __repr__(self):
        return (f"SimulationConfig(nx={self.nx}, ny={self.ny}, omega={self.omega}, "
                f"inflow_velocity={self.inflow_velocity}, seed={self.seed})")
