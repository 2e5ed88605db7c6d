"""
Pressure-sensor artificial viscosity.

The sensor

    S[i] = Cx * |p[i+1] - 2 p[i] + p[i-1]| / (p[i+1] + 2 p[i] + p[i-1])

is large across a shock and close to zero in smooth flow. Each evolved
quantity q receives the correction S[i] * (q[i+1] - 2 q[i] + q[i-1]).
"""

import numpy as np
from typing import Dict

from .gradients import central2_grad_numerator, central2_grad_denominator

# Minimum magnitude of the sensor denominator [Pa]
SENSOR_FLOOR = 1e-10


def pressure_sensor(dx: np.ndarray, p: np.ndarray, cx: float = 0.3,
                    floor: float = SENSOR_FLOOR) -> np.ndarray:
    """
    Dimensionless shock sensor, zero at both ends of the domain.

    Args:
        dx: Cell widths (n_cells)
        p: Pressure (n_cells) [Pa]
        cx: Dissipation strength
        floor: Lower clamp on the denominator [Pa]
    """
    num = central2_grad_numerator(dx, {'p': p})['p']
    den = central2_grad_denominator(dx, {'p': p})['p']

    sensor = np.zeros_like(num)
    sensor[1:-1] = cx * np.abs(num[1:-1]) / np.maximum(den[1:-1], floor)
    return sensor


def artificial_viscosity(dx: np.ndarray, sensor: np.ndarray,
                         fields: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
    """Correction S * (second difference of q) for each field q."""
    curvature = central2_grad_numerator(dx, fields)
    return {name: sensor * d2q for name, d2q in curvature.items()}
