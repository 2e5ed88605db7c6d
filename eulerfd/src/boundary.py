"""
Boundary treatment for the finite-difference solver.

The schemes only evolve interior cells; the cells next to each end are
refilled after every step by copying values inward-to-outward (zero-gradient
extrapolation). Waves are not expected to reach the ends of the domain during
a run, so nothing more elaborate is needed.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple

Fields = Dict[str, np.ndarray]


def copy_values(source: int, target: int, fields: Fields) -> None:
    """Copy cell `source` into cell `target` for every field, in place."""
    for values in fields.values():
        values[target] = values[source]


class BoundaryCondition(ABC):
    """Abstract base class for boundary conditions."""

    @abstractmethod
    def apply(self, fields: Fields) -> Fields:
        """
        Overwrite the boundary cells of every field in place.

        Args:
            fields: Field set, name -> array (n_cells)

        Returns:
            The same field set
        """
        pass


class ExtrapolationBC(BoundaryCondition):
    """
    Zero-gradient extrapolation through an ordered list of cell copies.

    Each (source, target) pair is applied in order, so copies can chain
    (e.g. (2, 1) then (1, 0) fills both left cells from cell 2).
    Negative indices count from the right end.
    """

    def __init__(self, copies: Sequence[Tuple[int, int]]):
        self.copies = tuple(copies)

    def apply(self, fields: Fields) -> Fields:
        for source, target in self.copies:
            copy_values(source, target, fields)
        return fields

    def __repr__(self):
        return f"{type(self).__name__}({list(self.copies)})"
