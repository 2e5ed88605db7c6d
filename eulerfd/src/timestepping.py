"""
Time integration schemes and timestep control.

Three explicit schemes share one calling convention:

    new_fields = step(fields, dt, mesh, gas, cx, sensor_floor, time)

`fields` is read-only; the predictor and corrector write into fresh buffers
and only interior cells (1 .. n-2) are updated. Boundary cells of the new
buffers keep the values of the current state until the solver applies its
boundary condition.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .gas import GasProperties
from .mesh import Mesh1D
from .boundary import ExtrapolationBC
from .exceptions import NumericalDivergenceError
from .gradients import forward_gradient, backward_gradient, upwind_gradient
from .viscosity import pressure_sensor, artificial_viscosity, SENSOR_FLOOR
from .state import (
    ConservativeState, encode_primitives, decode_primitives, check_state,
    ideal_gas_density, ideal_gas_pressure, internal_energy, temperature_from_energy,
)

Fields = Dict[str, np.ndarray]

INNER = slice(1, -1)
CONSERVED = ('rho', 'rhoU', 'rhoE')
NONCONSERVATIVE = ('rho', 'u', 'e')


# ---------------------------------------------------------------------------
# CFL control
# ---------------------------------------------------------------------------

def sound_speed(T: np.ndarray, gas: GasProperties) -> np.ndarray:
    """Speed of sound sqrt(gamma R T) [m/s]."""
    return np.sqrt(gas.gamma * gas.R * T)


def cfl_numbers(u: np.ndarray, T: np.ndarray, dt: float, dx: np.ndarray,
                gas: GasProperties) -> np.ndarray:
    """Per-cell CFL number (|u| + a) dt / dx."""
    return (np.abs(u) + sound_speed(T, gas)) * dt / dx


def adjust_timestep(dt: float, max_cfl: float, target_cfl: float) -> float:
    """
    Move dt a fifth of the way towards the value giving max_cfl == target_cfl.
    """
    return dt * ((target_cfl / max_cfl - 1) / 5 + 1)


def clamp_timestep(dt: float, time: float, end_time: float) -> float:
    """Shorten dt so the step ends exactly at end_time."""
    if end_time - time < dt:
        return end_time - time
    return dt


class CFLController:
    """
    Adaptive timestep controller driven by the maximum CFL number.

    After each step the controller evaluates the CFL number of the new state
    with the dt that produced it and proposes the next dt. It raises
    NumericalDivergenceError if the CFL number is non-finite, or keeps moving
    away from the target (while more than `target_cfl` away) for
    `divergence_window` consecutive steps. An absolute `max_cfl_limit` is
    only enforced when one is given.
    """

    def __init__(self, mesh: Mesh1D, gas: GasProperties, target_cfl: float,
                 max_cfl_limit: Optional[float] = None, divergence_window: int = 10):
        self.mesh = mesh
        self.gas = gas
        self.target_cfl = target_cfl
        self.max_cfl_limit = max_cfl_limit
        self.divergence_window = divergence_window

        self.history: List[float] = []
        self._n_diverging = 0

    @property
    def max_cfl(self) -> float:
        """Maximum CFL number of the last completed step."""
        return self.history[-1] if self.history else float('nan')

    def update(self, fields: Fields, dt: float, time: float = None) -> float:
        """
        Record the CFL number of a completed step and return the next dt.

        Args:
            fields: Field set after the step (needs 'u' and 'T')
            dt: Timestep that produced `fields`
            time: Simulated time at the start of the step (for error messages)
        """
        cfl = cfl_numbers(fields['u'], fields['T'], dt, self.mesh.dx, self.gas)
        max_cfl = float(np.max(cfl))

        if not np.isfinite(max_cfl):
            raise NumericalDivergenceError("Non-finite CFL number", phase='cfl', time=time)
        if self.max_cfl_limit is not None and max_cfl > self.max_cfl_limit:
            raise NumericalDivergenceError(
                f"CFL number {max_cfl:.4f} exceeds limit {self.max_cfl_limit}",
                phase='cfl', time=time)

        deviation = abs(max_cfl - self.target_cfl)
        if (self.history and deviation > self.target_cfl
                and deviation > abs(self.history[-1] - self.target_cfl)):
            self._n_diverging += 1
        else:
            self._n_diverging = 0
        self.history.append(max_cfl)

        if self._n_diverging >= self.divergence_window:
            raise NumericalDivergenceError(
                f"CFL number moved away from target {self.target_cfl} for "
                f"{self._n_diverging} steps (now {max_cfl:.4f})",
                phase='cfl', time=time)

        return adjust_timestep(dt, max_cfl, self.target_cfl)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _advance(fields: Fields, rates: Fields, damping: Fields, dt: float) -> Fields:
    """New buffer with q + rate*dt + damping on interior cells of each rated field."""
    new = {name: values.copy() for name, values in fields.items()}
    for name, rate in rates.items():
        new[name][INNER] = fields[name][INNER] + rate[INNER] * dt + damping[name][INNER]
    return new


def _select(fields: Fields, names: Tuple[str, ...]) -> Fields:
    return {name: fields[name] for name in names}


def _decode_energy(fields: Fields, gas: GasProperties) -> None:
    """Interior T and p from e and rho, in place."""
    fields['T'][INNER] = temperature_from_energy(fields['e'][INNER], gas.cv)
    fields['p'][INNER] = ideal_gas_pressure(fields['rho'][INNER], fields['T'][INNER], gas.R)


def _decode_conservative(fields: Fields, gas: GasProperties) -> None:
    """Interior p, T, u from rho, rhoU, rhoE, in place."""
    primitives = decode_primitives(fields['rho'][INNER], fields['rhoU'][INNER],
                                   fields['rhoE'][INNER], gas)
    fields['p'][INNER] = primitives.p
    fields['T'][INNER] = primitives.T
    fields['u'][INNER] = primitives.u


def _fluxes(fields: Fields) -> Fields:
    """Euler fluxes keyed by the conserved quantity they transport."""
    state = ConservativeState(fields['rho'], fields['rhoU'], fields['rhoE'])
    return dict(zip(CONSERVED, state.fluxes(fields['p'], fields['u'])))


def _nonconservative_rates(fields: Fields, grad: Fields) -> Fields:
    """Time derivatives of rho, u, e from the non-conservative Euler equations."""
    rho, u, p = fields['rho'], fields['u'], fields['p']
    return {
        'rho': -(rho * grad['u'] + u * grad['rho']),
        'u': -(u * grad['u'] + grad['p'] / rho),
        'e': -(u * grad['e'] + p * grad['u'] / rho),
    }


def _damping(mesh: Mesh1D, fields: Fields, names: Tuple[str, ...],
             cx: float, sensor_floor: float) -> Fields:
    sensor = pressure_sensor(mesh.dx, fields['p'], cx, sensor_floor)
    return artificial_viscosity(mesh.dx, sensor, _select(fields, names))


# ---------------------------------------------------------------------------
# Schemes
# ---------------------------------------------------------------------------

def maccormack_step(fields: Fields, dt: float, mesh: Mesh1D, gas: GasProperties,
                    cx: float = 0.3, sensor_floor: float = SENSOR_FLOOR,
                    time: float = None) -> Fields:
    """
    Non-conservative MacCormack step evolving rho, u and e.

    Predictor uses backward differences, corrector forward differences of the
    predicted state. The update uses the average of both rates.

    Args:
        fields: Current state (rho, u, p, T, e)
        dt: Time step
        mesh, gas: Grid and gas properties
        cx: Artificial viscosity strength
        sensor_floor: Lower clamp on the sensor denominator
        time: Simulated time at the start of the step (for error messages)

    Returns:
        Updated field set (interior cells only)
    """
    # Predictor
    grad = backward_gradient(mesh.dx, _select(fields, ('rho', 'u', 'p', 'e')))
    rates = _nonconservative_rates(fields, grad)
    damping = _damping(mesh, fields, NONCONSERVATIVE, cx, sensor_floor)

    predicted = _advance(fields, rates, damping, dt)
    _decode_energy(predicted, gas)
    check_state(predicted, 'predictor', time)

    # Corrector
    grad = forward_gradient(mesh.dx, _select(predicted, ('rho', 'u', 'p', 'e')))
    rates_pred = _nonconservative_rates(predicted, grad)
    damping = _damping(mesh, predicted, NONCONSERVATIVE, cx, sensor_floor)

    average = {name: 0.5 * (rates[name] + rates_pred[name]) for name in NONCONSERVATIVE}
    corrected = _advance(fields, average, damping, dt)
    _decode_energy(corrected, gas)
    check_state(corrected, 'corrector', time)

    return corrected


def maccormack_conservative_step(fields: Fields, dt: float, mesh: Mesh1D,
                                 gas: GasProperties, cx: float = 0.3,
                                 sensor_floor: float = SENSOR_FLOOR,
                                 time: float = None) -> Fields:
    """
    Conservative MacCormack step evolving rho, rhoU and rhoE.

    Flux gradients are forward differences in the predictor and backward
    differences in the corrector, so the one-sided errors partly cancel.
    """
    # Predictor
    grad = forward_gradient(mesh.dx, _fluxes(fields))
    rates = {name: -grad[name] for name in CONSERVED}
    damping = _damping(mesh, fields, CONSERVED, cx, sensor_floor)

    predicted = _advance(fields, rates, damping, dt)
    _decode_conservative(predicted, gas)
    check_state(predicted, 'predictor', time)

    # Corrector
    grad = backward_gradient(mesh.dx, _fluxes(predicted))
    damping = _damping(mesh, predicted, CONSERVED, cx, sensor_floor)

    average = {name: 0.5 * (rates[name] - grad[name]) for name in CONSERVED}
    corrected = _advance(fields, average, damping, dt)
    _decode_conservative(corrected, gas)
    check_state(corrected, 'corrector', time)

    return corrected


def upwind_conservative_step(fields: Fields, dt: float, mesh: Mesh1D,
                             gas: GasProperties, cx: float = 0.3,
                             sensor_floor: float = SENSOR_FLOOR,
                             time: float = None) -> Fields:
    """
    First-order upwind step on the conservative variables.

    Single stage; flux gradients are biased by the sign of the local velocity.
    """
    grad = upwind_gradient(mesh.dx, fields['u'], _fluxes(fields))
    rates = {name: -grad[name] for name in CONSERVED}
    damping = _damping(mesh, fields, CONSERVED, cx, sensor_floor)

    updated = _advance(fields, rates, damping, dt)
    _decode_conservative(updated, gas)
    check_state(updated, 'update', time)

    return updated


# ---------------------------------------------------------------------------
# Scheme registry
# ---------------------------------------------------------------------------

def _primitive_fields(p: np.ndarray, T: np.ndarray, u: np.ndarray, gas: GasProperties) -> Fields:
    rho = ideal_gas_density(T, p, gas.R)
    return {'rho': rho, 'u': u.copy(), 'p': p.copy(), 'T': T.copy(),
            'e': internal_energy(T, gas.cv)}


def _conservative_fields(p: np.ndarray, T: np.ndarray, u: np.ndarray, gas: GasProperties) -> Fields:
    state = encode_primitives(p, T, u, gas)
    return {'rho': state.rho, 'rhoU': state.rhoU, 'rhoE': state.rhoE,
            'u': u.copy(), 'p': p.copy(), 'T': T.copy()}


@dataclass(frozen=True)
class Scheme:
    """A time integration scheme and the pieces the solver needs to drive it."""
    name: str
    step: Callable[..., Fields]
    initialise: Callable[[np.ndarray, np.ndarray, np.ndarray, GasProperties], Fields]
    boundary: ExtrapolationBC
    target_cfl: float


# The last copy differs between schemes: (-1, -1) leaves the final cell untouched,
# (-2, -1) extrapolates into it.
SCHEMES = {
    'maccormack': Scheme(
        name='maccormack',
        step=maccormack_step,
        initialise=_primitive_fields,
        boundary=ExtrapolationBC([(2, 1), (1, 0), (-3, -2), (-1, -1)]),
        target_cfl=0.2,
    ),
    'maccormack_conservative': Scheme(
        name='maccormack_conservative',
        step=maccormack_conservative_step,
        initialise=_conservative_fields,
        boundary=ExtrapolationBC([(2, 1), (1, 0), (-3, -2), (-2, -1)]),
        target_cfl=0.2,
    ),
    'upwind': Scheme(
        name='upwind',
        step=upwind_conservative_step,
        initialise=_conservative_fields,
        boundary=ExtrapolationBC([(2, 1), (1, 0), (-3, -2), (-1, -1)]),
        target_cfl=0.1,
    ),
}
