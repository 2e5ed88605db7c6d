"""
Main solver class for the 1D Euler equations with explicit finite differences.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt
from dataclasses import dataclass, replace, fields as dataclass_fields
from typing import NamedTuple, Optional

from .gas import GasProperties
from .mesh import Mesh1D
from .exceptions import ConfigurationError, NonPhysicalStateError, StepLimitError
from .state import check_state
from .timestepping import SCHEMES, CFLController, clamp_timestep
from .viscosity import SENSOR_FLOOR

logger = logging.getLogger(__name__)


@dataclass
class SolverConfig:
    """
    Configuration for the finite-difference solver.

    target_cfl defaults to the scheme's own value (0.2 for the MacCormack
    schemes, 0.1 for upwind) when left as None.
    """
    scheme: str = 'maccormack_conservative'  # Options: 'maccormack', 'maccormack_conservative', 'upwind'
    init_dt: float = 0.001          # First timestep [s]
    end_time: float = 0.14267       # Simulated end time [s]
    target_cfl: Optional[float] = None
    gamma: float = 1.4              # Ratio of specific heats
    R: float = 287.05               # Specific gas constant [J/(kg·K)]
    cp: float = 1005.0              # Specific heat at constant pressure [J/(kg·K)]
    cx: float = 0.3                 # Artificial viscosity strength
    sensor_floor: float = SENSOR_FLOOR  # Minimum sensor denominator [Pa]
    max_cfl_limit: Optional[float] = None  # Abort if the CFL number exceeds this (off by default)
    divergence_window: int = 10     # Steps of CFL runaway tolerated before aborting
    max_steps: int = 1000000
    log_interval: int = 100

    def __post_init__(self):
        if self.scheme not in SCHEMES:
            raise ConfigurationError(f"Unknown scheme: {self.scheme}. "
                                     f"Options: {', '.join(repr(s) for s in SCHEMES)}")
        for name in ('init_dt', 'end_time', 'cfl', 'sensor_floor'):
            value = getattr(self, name)
            if not (np.isfinite(value) and value > 0):
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if not (np.isfinite(self.cx) and self.cx >= 0):
            raise ConfigurationError(f"cx must be non-negative, got {self.cx}")
        if self.max_cfl_limit is not None and not (np.isfinite(self.max_cfl_limit)
                                                   and self.max_cfl_limit > 0):
            raise ConfigurationError(f"max_cfl_limit must be positive, got {self.max_cfl_limit}")
        for name in ('divergence_window', 'max_steps', 'log_interval'):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {getattr(self, name)}")

        GasProperties(gamma=self.gamma, R=self.R, cp=self.cp)

    @property
    def cfl(self) -> float:
        """Target CFL number, falling back to the scheme default."""
        if self.target_cfl is None:
            return SCHEMES[self.scheme].target_cfl
        return self.target_cfl

    @property
    def gas(self) -> GasProperties:
        return GasProperties(gamma=self.gamma, R=self.R, cp=self.cp)


class SolutionFields(NamedTuple):
    """Final flow state returned by the solver entry points."""
    p: np.ndarray       # Pressure [Pa]
    u: np.ndarray       # Velocity [m/s]
    T: np.ndarray       # Temperature [K]
    rho: np.ndarray     # Density [kg/m³]


class Solver1D:
    """
    1D shock-tube solver with explicit finite-difference schemes.

    Features:
    - Non-conservative MacCormack, conservative MacCormack or first-order upwind
    - Pressure-sensor artificial viscosity
    - Adaptive timestep that relaxes towards a target CFL number
    - Zero-gradient extrapolation at both ends
    """

    def __init__(self, mesh: Mesh1D, config: SolverConfig = None):
        """
        Initialize the solver.

        Args:
            mesh: Computational grid
            config: Solver configuration
        """
        self.mesh = mesh
        self.config = config if config is not None else SolverConfig()
        self.gas = self.config.gas
        self.scheme = SCHEMES[self.config.scheme]

        self.cfl_controller = CFLController(mesh, self.gas, self.config.cfl,
                                            max_cfl_limit=self.config.max_cfl_limit,
                                            divergence_window=self.config.divergence_window)

        # Solution storage
        self.fields = None
        self.dt = self.config.init_dt
        self.time = 0.0
        self.iteration = 0

    def set_initial_condition(self, p, T, u):
        """
        Set the initial primitive state.

        Args:
            p: Pressure (n_cells) [Pa]
            T: Temperature (n_cells) [K]
            u: Velocity (n_cells) [m/s]
        """
        p, T, u = (np.array(v, dtype=float) for v in (p, T, u))
        for name, values in (('p', p), ('T', T), ('u', u)):
            self.mesh.check_field(name, values)
        for name, values in (('p', p), ('T', T)):
            if np.any(values <= 0):
                raise NonPhysicalStateError(name, np.flatnonzero(values <= 0),
                                            phase='initial condition')

        fields = self.scheme.initialise(p, T, u, self.gas)
        check_state(fields, 'initial condition')

        self.fields = fields
        self.dt = self.config.init_dt
        self.time = 0.0
        self.iteration = 0
        self.cfl_controller.history.clear()

    def step(self) -> float:
        """
        Perform one time step.

        Returns:
            dt: Time step taken
        """
        if self.fields is None:
            raise ValueError("Initial condition must be set before stepping")

        remaining = self.config.end_time - self.time
        dt = clamp_timestep(self.dt, self.time, self.config.end_time)

        fields = self.scheme.step(self.fields, dt, self.mesh, self.gas,
                                  cx=self.config.cx,
                                  sensor_floor=self.config.sensor_floor,
                                  time=self.time)
        self.scheme.boundary.apply(fields)

        self.dt = self.cfl_controller.update(fields, dt, time=self.time)

        self.fields = fields
        # Land exactly on end_time after a clamped step
        self.time = self.config.end_time if dt == remaining else self.time + dt
        self.iteration += 1

        return dt

    def solve(self) -> SolutionFields:
        """
        March in time until end_time.

        Returns:
            Final pressure, velocity, temperature and density

        Raises:
            StepLimitError: max_steps reached before end_time
        """
        if self.fields is None:
            raise ValueError("Initial condition must be set before solving")

        logger.info("Starting %s solver: %d cells, end time %.5g s, target CFL %.3g",
                    self.scheme.name, self.mesh.n_cells, self.config.end_time,
                    self.config.cfl)

        while self.time < self.config.end_time:
            if self.iteration >= self.config.max_steps:
                raise StepLimitError(self.iteration, self.time, self.config.end_time)

            dt = self.step()

            if self.iteration % self.config.log_interval == 0:
                logger.info("Iter %6d, t = %.4e, dt = %.4e, max CFL = %.4f",
                            self.iteration, self.time, dt, self.cfl_controller.max_cfl)

        logger.info("Finished after %d steps at t = %.6e s", self.iteration, self.time)
        return self.get_solution()

    def get_solution(self) -> SolutionFields:
        """Return copies of the current primitive fields and density."""
        return SolutionFields(p=self.fields['p'].copy(), u=self.fields['u'].copy(),
                              T=self.fields['T'].copy(), rho=self.fields['rho'].copy())

    def plot_solution(self, filename: str = None, exact: dict = None):
        """
        Plot the current solution.

        Args:
            filename: Save the figure here if given
            exact: Optional reference solution with 'rho', 'u', 'p', 'T' arrays
        """
        solution = self.get_solution()
        x = self.mesh.x_cells

        fig, axes = plt.subplots(2, 2, figsize=(12, 9))
        fig.suptitle(f'{self.scheme.name} (t = {self.time:.4e} s, iter = {self.iteration})')

        panels = [
            ('rho', solution.rho, 'Density [kg/m³]', 1.0),
            ('u', solution.u, 'Velocity [m/s]', 1.0),
            ('p', solution.p, 'Pressure [kPa]', 1e-3),
            ('T', solution.T, 'Temperature [K]', 1.0),
        ]
        for ax, (key, values, label, scale) in zip(axes.flat, panels):
            ax.plot(x, values * scale, 'b-', linewidth=2, label='FDM')
            if exact is not None and key in exact:
                ax.plot(x, exact[key] * scale, 'r--', linewidth=2, label='Exact')
                ax.legend()
            ax.set_xlabel('x [m]')
            ax.set_ylabel(label)
            ax.grid(True, alpha=0.3)

        plt.tight_layout()

        if filename:
            plt.savefig(filename, dpi=150, bbox_inches='tight')
            logger.info("Saved plot to %s", filename)

        return fig

    def plot_cfl_history(self, filename: str = None):
        """Plot the maximum CFL number against iteration."""
        fig = plt.figure(figsize=(8, 5))
        plt.plot(self.cfl_controller.history, 'b-', linewidth=1, label='max CFL')
        plt.axhline(self.config.cfl, color='k', linestyle='--', label='target')
        plt.xlabel('Iteration')
        plt.ylabel('CFL')
        plt.title('Timestep Control History')
        plt.legend()
        plt.grid(True)

        if filename:
            plt.savefig(filename, dpi=150, bbox_inches='tight')

        return fig


def _check_writable(name: str, target) -> None:
    """Only float arrays and lists can receive the final state in place."""
    if isinstance(target, np.ndarray):
        if not np.issubdtype(target.dtype, np.floating):
            raise TypeError(f"{name} must be a float array to be overwritten, got dtype {target.dtype}")
        if not target.flags.writeable:
            raise TypeError(f"{name} is a read-only array")
    elif not isinstance(target, list):
        raise TypeError(f"{name} must be a numpy array or a list, got {type(target).__name__}")


def _write_back(target, values: np.ndarray) -> None:
    """Overwrite a caller's array or list in place."""
    if isinstance(target, np.ndarray):
        target[...] = values
    else:
        target[:] = values.tolist()


def _run(scheme: str, dx, P, T, U, config: SolverConfig = None, **overrides) -> SolutionFields:
    names = {f.name for f in dataclass_fields(SolverConfig)}
    unknown = set(overrides) - names
    if unknown:
        raise ConfigurationError(f"Unknown configuration options: {sorted(unknown)}")
    for name, target in (('P', P), ('T', T), ('U', U)):
        _check_writable(name, target)

    if config is None:
        config = SolverConfig(scheme=scheme, **overrides)
    else:
        config = replace(config, scheme=scheme, **overrides)

    solver = Solver1D(Mesh1D(dx), config)
    solver.set_initial_condition(P, T, U)
    solution = solver.solve()

    _write_back(P, solution.p)
    _write_back(T, solution.T)
    _write_back(U, solution.u)
    return solution


def maccormack_1d(dx, P, T, U, config: SolverConfig = None, **overrides) -> SolutionFields:
    """
    Non-conservative MacCormack solution of a 1D shock tube.

    Args:
        dx: Cell widths (n_cells) [m]
        P, T, U: Initial pressure [Pa], temperature [K] and velocity [m/s];
                 float arrays or lists, overwritten in place with the final state
        config: Base configuration (scheme is forced to 'maccormack')
        **overrides: SolverConfig fields, e.g. end_time=0.1, cx=0.2

    Returns:
        SolutionFields(p, u, T, rho) at the end time

    Raises:
        TypeError: P, T or U cannot be overwritten in place (tuple, integer array, ...)
        StepLimitError: max_steps reached before end_time
    """
    return _run('maccormack', dx, P, T, U, config, **overrides)


def maccormack_conservative_1d(dx, P, T, U, config: SolverConfig = None,
                               **overrides) -> SolutionFields:
    """Conservative MacCormack solution of a 1D shock tube. Same interface as maccormack_1d."""
    return _run('maccormack_conservative', dx, P, T, U, config, **overrides)


def upwind_conservative_1d(dx, P, T, U, config: SolverConfig = None,
                           **overrides) -> SolutionFields:
    """First-order upwind solution of a 1D shock tube. Same interface as maccormack_1d."""
    return _run('upwind', dx, P, T, U, config, **overrides)
