"""
Directional finite-difference operators on a non-uniform 1D grid.

Every operator takes the cell widths `dx` and a mapping of field name to
array, and returns a mapping with the same keys in the same order. Cells at
the end of the domain that the stencil cannot reach get a zero gradient;
those values are overwritten by the boundary treatment and never used.

Fully vectorized - no per-cell loops.
"""

import numpy as np
from typing import Callable, Dict

from .exceptions import InvalidGridError

Fields = Dict[str, np.ndarray]


def _apply(dx: np.ndarray, fields: Fields,
           stencil: Callable[[np.ndarray, np.ndarray], np.ndarray]) -> Fields:
    """Validate field lengths against dx, then apply a stencil to each field."""
    dx = np.asarray(dx, dtype=float)
    n = len(dx)
    for name, values in fields.items():
        if np.shape(values) != (n,):
            raise InvalidGridError(
                f"Field '{name}' has shape {np.shape(values)}, expected ({n},) to match dx")
    return {name: stencil(dx, np.asarray(values, dtype=float)) for name, values in fields.items()}


def _forward(dx: np.ndarray, v: np.ndarray) -> np.ndarray:
    grad = np.zeros_like(v)
    grad[:-1] = (v[1:] - v[:-1]) / dx[:-1]
    return grad


def _backward(dx: np.ndarray, v: np.ndarray) -> np.ndarray:
    grad = np.zeros_like(v)
    grad[1:] = (v[1:] - v[:-1]) / dx[:-1]
    return grad


def _central(dx: np.ndarray, v: np.ndarray) -> np.ndarray:
    grad = np.zeros_like(v)
    grad[1:-1] = (v[2:] - v[:-2]) / (dx[1:-1] + dx[:-2])
    return grad


def forward_gradient(dx: np.ndarray, fields: Fields) -> Fields:
    """
    Forward difference: g[i] = (v[i+1] - v[i]) / dx[i], with g[-1] = 0.
    """
    return _apply(dx, fields, _forward)


def backward_gradient(dx: np.ndarray, fields: Fields) -> Fields:
    """
    Backward difference: g[i] = (v[i] - v[i-1]) / dx[i-1], with g[0] = 0.
    """
    return _apply(dx, fields, _backward)


def central_gradient(dx: np.ndarray, fields: Fields) -> Fields:
    """
    Central difference: g[i] = (v[i+1] - v[i-1]) / (dx[i] + dx[i-1]), zero at both ends.
    """
    return _apply(dx, fields, _central)


def central2_grad_numerator(dx: np.ndarray, fields: Fields) -> Fields:
    """
    Numerator of the central second derivative, v[i+1] - 2 v[i] + v[i-1].

    Unnormalised by the grid spacing; used as the curvature term of the
    artificial viscosity. Zero at both ends.
    """
    def stencil(_, v):
        grad = np.zeros_like(v)
        grad[1:-1] = v[2:] - 2 * v[1:-1] + v[:-2]
        return grad
    return _apply(dx, fields, stencil)


def central2_grad_denominator(dx: np.ndarray, fields: Fields) -> Fields:
    """
    Normaliser of the pressure sensor, v[i+1] + 2 v[i] + v[i-1]. Zero at both ends.
    """
    def stencil(_, v):
        grad = np.zeros_like(v)
        grad[1:-1] = v[2:] + 2 * v[1:-1] + v[:-2]
        return grad
    return _apply(dx, fields, stencil)


def upwind_gradient(dx: np.ndarray, u: np.ndarray, fields: Fields) -> Fields:
    """
    Gradient biased by the sign of the local velocity.

    For each cell:
        u > 0 (not the first cell)        -> backward difference
        u == 0 (interior cell)            -> central difference
        otherwise (not the last cell)     -> forward difference
    The last cell gets zero when u <= 0 there, and the first cell always
    takes the forward difference.

    Args:
        dx: Cell widths (n_cells)
        u: Velocity used to pick the direction (n_cells)
        fields: Fields to differentiate
    """
    u = np.asarray(u, dtype=float)
    if np.shape(u) != np.shape(dx):
        raise InvalidGridError(f"Velocity has shape {np.shape(u)}, expected {np.shape(dx)}")

    n = len(u)
    index = np.arange(n)
    use_backward = (u > 0) & (index > 0)
    use_central = ~use_backward & (u == 0) & (index > 0) & (index < n - 1)

    def stencil(dx, v):
        grad = _forward(dx, v)
        grad = np.where(use_central, _central(dx, v), grad)
        return np.where(use_backward, _backward(dx, v), grad)

    return _apply(dx, fields, stencil)
