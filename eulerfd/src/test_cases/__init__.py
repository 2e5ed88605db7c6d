"""
Test cases for the finite-difference solver.
"""

from .shock_tube import (
    run_shock_tube_test, shock_tube_exact, shock_tube_initial_condition,
    LEFT_STATE, RIGHT_STATE,
)

__all__ = [
    'run_shock_tube_test',
    'shock_tube_exact',
    'shock_tube_initial_condition',
    'LEFT_STATE',
    'RIGHT_STATE',
]
