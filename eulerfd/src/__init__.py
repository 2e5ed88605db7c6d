"""
1D Explicit Finite-Difference Euler Solver Package
===================================================

Time-marching solver for the 1D compressible Euler equations (shock tubes)
on a non-uniform grid.

Features:
- Non-conservative and conservative MacCormack predictor-corrector schemes
- First-order upwind scheme
- Pressure-sensor artificial viscosity
- Adaptive timestep relaxing towards a target CFL number
- Typed errors for bad grids, bad configuration and corrupted states

State representation:
    p, T, u           - primitive variables (pressure, temperature, velocity)
    rho, rhoU, rhoE   - conservative variables (density, momentum, total energy)

Example:
    mesh = Mesh1D.uniform(0.0, 200.0, 100)
    solver = Solver1D(mesh, SolverConfig(scheme='maccormack_conservative'))
    solver.set_initial_condition(p, T, u)
    solution = solver.solve()
    print(solution.p, solution.T)

    # Or in one call, overwriting P, T, U in place
    solution = maccormack_conservative_1d(dx, P, T, U, end_time=0.1)
"""

from .exceptions import (
    SolverError, InvalidGridError, ConfigurationError,
    NonPhysicalStateError, NumericalDivergenceError, StepLimitError,
)
from .gas import GasProperties
from .mesh import Mesh1D
from .state import (
    PrimitiveState, ConservativeState,
    ideal_gas_density, ideal_gas_pressure, internal_energy, temperature_from_energy,
    encode_primitives, decode_primitives, check_state,
)
from .gradients import (
    forward_gradient, backward_gradient, central_gradient,
    central2_grad_numerator, central2_grad_denominator, upwind_gradient,
)
from .viscosity import pressure_sensor, artificial_viscosity
from .boundary import BoundaryCondition, ExtrapolationBC, copy_values
from .timestepping import (
    CFLController, Scheme, SCHEMES,
    sound_speed, cfl_numbers, adjust_timestep, clamp_timestep,
    maccormack_step, maccormack_conservative_step, upwind_conservative_step,
)
from .solver import (
    Solver1D, SolverConfig, SolutionFields,
    maccormack_1d, maccormack_conservative_1d, upwind_conservative_1d,
)

__all__ = [
    # Errors
    'SolverError',
    'InvalidGridError',
    'ConfigurationError',
    'NonPhysicalStateError',
    'NumericalDivergenceError',
    'StepLimitError',

    # Gas properties
    'GasProperties',

    # Mesh
    'Mesh1D',

    # State conversion
    'PrimitiveState',
    'ConservativeState',
    'ideal_gas_density',
    'ideal_gas_pressure',
    'internal_energy',
    'temperature_from_energy',
    'encode_primitives',
    'decode_primitives',
    'check_state',

    # Gradients
    'forward_gradient',
    'backward_gradient',
    'central_gradient',
    'central2_grad_numerator',
    'central2_grad_denominator',
    'upwind_gradient',

    # Artificial viscosity
    'pressure_sensor',
    'artificial_viscosity',

    # Boundary conditions
    'BoundaryCondition',
    'ExtrapolationBC',
    'copy_values',

    # Time stepping
    'CFLController',
    'Scheme',
    'SCHEMES',
    'sound_speed',
    'cfl_numbers',
    'adjust_timestep',
    'clamp_timestep',
    'maccormack_step',
    'maccormack_conservative_step',
    'upwind_conservative_step',

    # Solver
    'Solver1D',
    'SolverConfig',
    'SolutionFields',
    'maccormack_1d',
    'maccormack_conservative_1d',
    'upwind_conservative_1d',
]

__version__ = '1.0.0'
