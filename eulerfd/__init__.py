"""
eulerfd - 1D Explicit Finite-Difference Shock Tube Solver
==========================================================

Re-exports the main public components from eulerfd.src
"""

from eulerfd.src import (
    # Errors
    SolverError,
    InvalidGridError,
    ConfigurationError,
    NonPhysicalStateError,
    NumericalDivergenceError,
    StepLimitError,
    # Gas properties
    GasProperties,
    # Mesh
    Mesh1D,
    # State conversion
    PrimitiveState,
    ConservativeState,
    encode_primitives,
    decode_primitives,
    # Solver
    Solver1D,
    SolverConfig,
    SolutionFields,
    maccormack_1d,
    maccormack_conservative_1d,
    upwind_conservative_1d,
)

__all__ = [
    'SolverError',
    'InvalidGridError',
    'ConfigurationError',
    'NonPhysicalStateError',
    'NumericalDivergenceError',
    'StepLimitError',
    'GasProperties',
    'Mesh1D',
    'PrimitiveState',
    'ConservativeState',
    'encode_primitives',
    'decode_primitives',
    'Solver1D',
    'SolverConfig',
    'SolutionFields',
    'maccormack_1d',
    'maccormack_conservative_1d',
    'upwind_conservative_1d',
]
