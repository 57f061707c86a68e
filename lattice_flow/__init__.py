"""
lattice_flow: D2Q9 Lattice Boltzmann simulation core.
"""

from .config import SimulationConfig
from .errors import ConfigurationError, NumericalDivergence
from .lattice import LatticeGrid, index
from .obstacles import ObstacleMask
from .simulation import FluidSimulation, Steppable

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "FluidSimulation",
    "LatticeGrid",
    "NumericalDivergence",
    "ObstacleMask",
    "SimulationConfig",
    "Steppable",
    "index",
]
