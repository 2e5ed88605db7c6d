"""
1D non-uniform grid for the finite-difference solver.
"""

import numpy as np
from dataclasses import dataclass

from .exceptions import InvalidGridError


@dataclass
class Mesh1D:
    """
    1D grid defined by its cell widths.

    - dx: Cell widths (n_cells), all positive
    - x_faces: Face locations (n_cells + 1), starting at x0
    - x_cells: Cell centers (n_cells)
    """
    dx: np.ndarray
    x0: float = 0.0

    def __post_init__(self):
        self.dx = np.array(self.dx, dtype=float)
        if self.dx.ndim != 1:
            raise InvalidGridError(f"dx must be one-dimensional, got shape {self.dx.shape}")
        if len(self.dx) < 3:
            raise InvalidGridError(f"At least 3 cells are required, got {len(self.dx)}")
        if not np.all(np.isfinite(self.dx)) or np.any(self.dx <= 0):
            bad = np.flatnonzero(~(self.dx > 0) | ~np.isfinite(self.dx))
            raise InvalidGridError(f"Cell widths must be positive and finite, bad cells: {bad[:10].tolist()}")
        self.dx.setflags(write=False)

        self.n_cells = len(self.dx)
        self.x_faces = self.x0 + np.concatenate(([0.0], np.cumsum(self.dx)))
        self.x_cells = 0.5 * (self.x_faces[:-1] + self.x_faces[1:])

    @property
    def length(self) -> float:
        """Total domain length [m]."""
        return self.x_faces[-1] - self.x_faces[0]

    def check_field(self, name: str, values: np.ndarray) -> None:
        """Raise InvalidGridError if a field does not have one value per cell."""
        if np.shape(values) != (self.n_cells,):
            raise InvalidGridError(
                f"Field '{name}' has shape {np.shape(values)}, expected ({self.n_cells},)")

    @classmethod
    def uniform(cls, x_min: float, x_max: float, n_cells: int) -> 'Mesh1D':
        """
        Create a uniform grid.

        Args:
            x_min, x_max: Domain bounds
            n_cells: Number of cells
        """
        if not x_max > x_min:
            raise InvalidGridError(f"x_max must exceed x_min, got [{x_min}, {x_max}]")
        return cls(dx=np.full(n_cells, (x_max - x_min) / n_cells), x0=x_min)

    @classmethod
    def from_faces(cls, x_faces: np.ndarray) -> 'Mesh1D':
        """Create a grid from monotonically increasing face locations."""
        x_faces = np.asarray(x_faces, dtype=float)
        return cls(dx=np.diff(x_faces), x0=float(x_faces[0]))
