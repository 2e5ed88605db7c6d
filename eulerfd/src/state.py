"""
Conversions between primitive and conservative variables.

Primitive variables:
    p   - pressure [Pa]
    T   - temperature [K]
    u   - velocity [m/s]

Conservative variables:
    rho   - density [kg/m³]
    rhoU  - momentum per volume [kg/(m²·s)]
    rhoE  - total energy per volume [J/m³]

The gas is ideal (p = rho R T) and calorically perfect (e = cv T).
All functions work elementwise on numpy arrays or plain floats.
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Tuple

from .gas import GasProperties
from .exceptions import NonPhysicalStateError, NumericalDivergenceError


def ideal_gas_density(T, p, R: float = 287.05):
    """Density from temperature and pressure [kg/m³]."""
    return p / (R * T)


def ideal_gas_pressure(rho, T, R: float = 287.05):
    """Pressure from density and temperature [Pa]."""
    return rho * R * T


def internal_energy(T, cv: float = 717.95):
    """Specific internal energy from temperature [J/kg]."""
    return cv * T


def temperature_from_energy(e, cv: float = 717.95):
    """Temperature from specific internal energy [K]."""
    return e / cv


@dataclass
class PrimitiveState:
    """Decoded primitive variables at a point or cell."""
    p: np.ndarray       # Pressure [Pa]
    T: np.ndarray       # Temperature [K]
    u: np.ndarray       # Velocity [m/s]


@dataclass
class ConservativeState:
    """
    Conservative variables at a point or cell.

    rho  : Density [kg/m³]
    rhoU : Momentum per volume [kg/(m²·s)]
    rhoE : Total energy per volume [J/m³]
    """
    rho: np.ndarray
    rhoU: np.ndarray
    rhoE: np.ndarray

    def fluxes(self, p, u) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Euler fluxes for mass, momentum and energy.

        Args:
            p: Pressure matching this state [Pa]
            u: Velocity matching this state [m/s]

        Returns:
            (rhoU, rhoU*u + p, u*(rhoE + p))
        """
        return self.rhoU, self.rhoU * u + p, u * (self.rhoE + p)


def encode_primitives(p, T, u, gas: GasProperties) -> ConservativeState:
    """Convert (p, T, u) into (rho, rhoU, rhoE)."""
    rho = ideal_gas_density(T, p, gas.R)
    # rhoE = rho * (e + u²/2)
    rhoE = rho * (internal_energy(T, gas.cv) + 0.5 * u**2)
    return ConservativeState(rho=rho, rhoU=rho * u, rhoE=rhoE)


def decode_primitives(rho, rhoU, rhoE, gas: GasProperties) -> PrimitiveState:
    """Convert (rho, rhoU, rhoE) back into (p, T, u)."""
    u = rhoU / rho
    e = rhoE / rho - 0.5 * u**2
    T = temperature_from_energy(e, gas.cv)
    p = ideal_gas_pressure(rho, T, gas.R)
    return PrimitiveState(p=p, T=T, u=u)


def check_state(fields: Dict[str, np.ndarray], phase: str = None,
                time: float = None) -> None:
    """
    Abort on a corrupted field set.

    Raises:
        NumericalDivergenceError: Any field holds NaN or Inf
        NonPhysicalStateError: Density or temperature is zero or negative
    """
    for name, values in fields.items():
        if not np.all(np.isfinite(values)):
            bad = np.flatnonzero(~np.isfinite(values))
            raise NumericalDivergenceError(
                f"Non-finite {name} in cells {bad[:10].tolist()}"
                + (f" during {phase}" if phase else ""),
                phase=phase, time=time)

    for name in ('rho', 'T'):
        if name in fields and np.any(fields[name] <= 0):
            raise NonPhysicalStateError(name, np.flatnonzero(fields[name] <= 0),
                                        phase=phase, time=time)
