"""
Shock tube test case - two gas states at rest separated by a diaphragm.

The exact solution consists of:
1. Left state (undisturbed)
2. Rarefaction fan
3. Contact discontinuity
4. Shock wave
5. Right state (undisturbed)

Default states (SI units):
- Left:  p = 100 kPa, T = 348 K, u = 0 m/s
- Right: p = 10 kPa,  T = 278 K, u = 0 m/s
on a 200 m tube, long enough that no wave reaches either end by t = 0.14267 s.
"""

import numpy as np
from typing import Tuple

from ..gas import GasProperties
from ..mesh import Mesh1D
from ..solver import Solver1D, SolverConfig
from ..state import ideal_gas_density

LEFT_STATE = (1e5, 348.0, 0.0)      # p [Pa], T [K], u [m/s]
RIGHT_STATE = (1e4, 278.0, 0.0)


def shock_tube_initial_condition(mesh: Mesh1D, x_diaphragm: float = None,
                                 left: Tuple[float, float, float] = LEFT_STATE,
                                 right: Tuple[float, float, float] = RIGHT_STATE
                                 ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Piecewise constant (p, T, u) split at the diaphragm.

    Args:
        mesh: Computational grid
        x_diaphragm: Diaphragm location, defaults to the middle of the domain
        left, right: (p, T, u) on each side

    Returns:
        p, T, u arrays (n_cells)
    """
    if x_diaphragm is None:
        x_diaphragm = 0.5 * (mesh.x_faces[0] + mesh.x_faces[-1])

    is_left = mesh.x_cells < x_diaphragm
    p = np.where(is_left, left[0], right[0])
    T = np.where(is_left, left[1], right[1])
    u = np.where(is_left, left[2], right[2])
    return p, T, u


def shock_tube_exact(x: np.ndarray, t: float, x_diaphragm: float,
                     gas: GasProperties = None,
                     left: Tuple[float, float, float] = LEFT_STATE,
                     right: Tuple[float, float, float] = RIGHT_STATE) -> dict:
    """
    Exact Riemann solution for a shock tube with a left-facing rarefaction
    and a right-running shock (p_left > p_right).

    Args:
        x: Position array [m]
        t: Time [s]
        x_diaphragm: Initial diaphragm position [m]
        gas: Gas properties
        left, right: (p, T, u) on each side

    Returns:
        Dictionary with exact solution: rho, u, p, T, plus wave positions
        under 'shock', 'contact', 'head' and 'tail'
    """
    gas = gas if gas is not None else GasProperties()
    gamma = gas.gamma

    p_L, T_L, u_L = left
    p_R, T_R, u_R = right
    rho_L = ideal_gas_density(T_L, p_L, gas.R)
    rho_R = ideal_gas_density(T_R, p_R, gas.R)

    a_L = np.sqrt(gamma * p_L / rho_L)
    a_R = np.sqrt(gamma * p_R / rho_R)

    gm1 = gamma - 1
    gp1 = gamma + 1

    def pressure_function(p_star, p_k, rho_k, a_k):
        """Toro's f_K(p*) and its derivative."""
        if p_star > p_k:
            A_k = 2 / (gp1 * rho_k)
            B_k = gm1 / gp1 * p_k
            root = np.sqrt(A_k / (p_star + B_k))
            return (p_star - p_k) * root, root * (1 - 0.5 * (p_star - p_k) / (p_star + B_k))
        ratio = p_star / p_k
        return (2 * a_k / gm1 * (ratio**(gm1 / (2 * gamma)) - 1),
                a_k / (gamma * p_k) * ratio**(-gp1 / (2 * gamma)))

    # Newton iteration for pressure in star region
    p_star = 0.5 * (p_L + p_R)
    for _ in range(50):
        f_L, df_L = pressure_function(p_star, p_L, rho_L, a_L)
        f_R, df_R = pressure_function(p_star, p_R, rho_R, a_R)
        p_new = max(1e-6 * p_R, p_star - (f_L + f_R + (u_R - u_L)) / (df_L + df_R))
        converged = abs(p_new - p_star) / p_star < 1e-10
        p_star = p_new
        if converged:
            break

    f_L, _ = pressure_function(p_star, p_L, rho_L, a_L)
    f_R, _ = pressure_function(p_star, p_R, rho_R, a_R)
    u_star = 0.5 * (u_L + u_R) + 0.5 * (f_R - f_L)

    # Post-shock density (right side)
    p_ratio = p_star / p_R
    rho_star_R = rho_R * (p_ratio + gm1 / gp1) / (gm1 / gp1 * p_ratio + 1)

    # Post-rarefaction density (left side)
    rho_star_L = rho_L * (p_star / p_L)**(1 / gamma)

    # Wave speeds
    S = u_R + a_R * np.sqrt(gp1 / (2 * gamma) * p_ratio + gm1 / (2 * gamma))
    C = u_star
    H = u_L - a_L
    a_star_L = a_L * (p_star / p_L)**(gm1 / (2 * gamma))
    tail = u_star - a_star_L

    x = np.asarray(x, dtype=float)
    s = (x - x_diaphragm) / t if t > 0 else np.where(x < x_diaphragm, -np.inf, np.inf)

    rho = np.empty_like(x)
    u = np.empty_like(x)
    p = np.empty_like(x)

    regions = [
        (s < H, rho_L, u_L, p_L),
        ((s >= tail) & (s < C), rho_star_L, u_star, p_star),
        ((s >= C) & (s < S), rho_star_R, u_star, p_star),
        (s >= S, rho_R, u_R, p_R),
    ]
    for mask, rho_k, u_k, p_k in regions:
        rho[mask], u[mask], p[mask] = rho_k, u_k, p_k

    fan = (s >= H) & (s < tail)
    u[fan] = 2 / gp1 * (a_L + 0.5 * gm1 * u_L + s[fan])
    a_fan = a_L - 0.5 * gm1 * (u[fan] - u_L)
    rho[fan] = rho_L * (a_fan / a_L)**(2 / gm1)
    p[fan] = p_L * (a_fan / a_L)**(2 * gamma / gm1)

    return {
        'rho': rho, 'u': u, 'p': p, 'T': p / (rho * gas.R),
        'p_star': p_star, 'u_star': u_star,
        'shock': x_diaphragm + S * t,
        'contact': x_diaphragm + C * t,
        'head': x_diaphragm + H * t,
        'tail': x_diaphragm + tail * t,
    }


def run_shock_tube_test(scheme: str = 'maccormack_conservative', n_cells: int = 100,
                        length: float = 200.0, end_time: float = 0.14267,
                        **config) -> Tuple[Solver1D, dict]:
    """
    Run the shock tube and compute the exact solution at the final time.

    Args:
        scheme: Time integration scheme
        n_cells: Number of cells
        length: Tube length [m]
        end_time: Final time [s]
        **config: Further SolverConfig fields

    Returns:
        (solver, exact) tuple
    """
    mesh = Mesh1D.uniform(0.0, length, n_cells)
    solver = Solver1D(mesh, SolverConfig(scheme=scheme, end_time=end_time, **config))
    solver.set_initial_condition(*shock_tube_initial_condition(mesh))
    solver.solve()

    exact = shock_tube_exact(mesh.x_cells, solver.time, 0.5 * length, solver.gas)
    return solver, exact
