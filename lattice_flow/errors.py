"""
Exception types raised by the simulation core.
"""


class ConfigurationError(ValueError):
    """Invalid construction-time parameters (dimensions, omega, obstacles)."""


class NumericalDivergence(ArithmeticError):
    """
    The lattice state left the range of physically sane values.

    Raised by ``FluidSimulation.step`` when the stability guard is enabled.

    Attributes
    ----------
    step : int
        Step count at which divergence was detected
    reason : str
        Short description of the failed check
    """

    def __init__(self, reason, step=None):
        self.reason = reason
        self.step = step
        if step is None:
            super().__init__(reason)
        else:
            super().__init__(f"Step {step}: {reason}")
