"""
Gas properties for calorically perfect gas.
"""

from dataclasses import dataclass

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class GasProperties:
    """Thermodynamic properties for a calorically perfect gas."""
    gamma: float = 1.4          # Ratio of specific heats (used for the speed of sound)
    R: float = 287.05           # Specific gas constant [J/(kg·K)]
    cp: float = 1005.0          # Specific heat at constant pressure [J/(kg·K)]

    def __post_init__(self):
        if not self.gamma > 1:
            raise ConfigurationError(f"gamma must be > 1, got {self.gamma}")
        if not self.R > 0:
            raise ConfigurationError(f"R must be positive, got {self.R}")
        if not self.cp > self.R:
            raise ConfigurationError(f"cp must exceed R, got cp={self.cp}, R={self.R}")

    @property
    def cv(self) -> float:
        """Specific heat at constant volume [J/(kg·K)]."""
        return self.cp - self.R
