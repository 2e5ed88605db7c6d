"""
Exceptions raised by the finite-difference solver.

Grid and configuration problems are caught before the first step.
Non-physical or non-finite states are caught at the end of every decode,
and the run is aborted rather than continued with corrupted fields.
"""

import numpy as np


class SolverError(Exception):
    """Base class for all solver errors."""


class InvalidGridError(SolverError, ValueError):
    """Grid has fewer than 3 cells, a non-positive spacing, or a field does not match it."""


class ConfigurationError(SolverError, ValueError):
    """A solver configuration value is out of range."""


class NonPhysicalStateError(SolverError, RuntimeError):
    """
    Density or temperature dropped to zero or below.

    Attributes:
        quantity: Name of the offending field ('rho' or 'T')
        cells: Indices of the offending cells
        phase: Solver phase in which the state was detected
        time: Simulated time at the start of the failing step [s]
    """

    def __init__(self, quantity: str, cells: np.ndarray, phase: str = None,
                 time: float = None):
        self.quantity = quantity
        self.cells = np.asarray(cells)
        self.phase = phase
        self.time = time

        where = f" during {phase}" if phase else ""
        when = f" at t = {time:.6e} s" if time is not None else ""
        shown = ', '.join(str(i) for i in self.cells[:10])
        if len(self.cells) > 10:
            shown += ', ...'
        super().__init__(f"Non-positive {quantity}{where}{when} in cells [{shown}]")


class NumericalDivergenceError(SolverError, RuntimeError):
    """
    NaN/Inf appeared in a field, or the CFL number is running away.

    Attributes:
        phase: Solver phase in which the divergence was detected
        time: Simulated time at the start of the failing step [s]
    """

    def __init__(self, message: str, phase: str = None, time: float = None):
        self.phase = phase
        self.time = time
        when = f" at t = {time:.6e} s" if time is not None else ""
        super().__init__(f"{message}{when}")


class StepLimitError(SolverError, RuntimeError):
    """
    The run used up `max_steps` before reaching the end time.

    Attributes:
        iteration: Steps taken
        time: Simulated time reached [s]
        end_time: Requested end time [s]
    """

    def __init__(self, iteration: int, time: float, end_time: float):
        self.iteration = iteration
        self.time = time
        self.end_time = end_time
        super().__init__(f"Stopped after {iteration} steps at t = {time:.6e} s, "
                         f"before end time {end_time:.6e} s")
