"""
Run the shock tube with all three schemes and compare to the exact solution.

This script demonstrates:
1. Non-conservative MacCormack, conservative MacCormack and upwind schemes
2. Shock capturing with pressure-sensor artificial viscosity
3. Comparison to exact Riemann solution
4. Timestep control history

Run from the repository root:
    python eulerfd/scripts/run_shock_tube.py [--n-cells 100] [--verbose]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add repository root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import numpy as np
import matplotlib.pyplot as plt

from eulerfd.src import SolverError
from eulerfd.src.test_cases.shock_tube import run_shock_tube_test

SCHEMES = ('maccormack', 'maccormack_conservative', 'upwind')


def configure_logging(verbose: bool = False):
    """Attach a stdout handler to the package logger."""
    logger = logging.getLogger('eulerfd')
    if verbose:
        logger.setLevel(logging.DEBUG)
        ch = logging.StreamHandler(stream=sys.stdout)
        ch.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)
        ch = logging.StreamHandler(stream=sys.stdout)
        ch.setLevel(logging.INFO)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    ch.setFormatter(formatter)
    logger.addHandler(ch)
    return logger


def plot_comparison(results, exact, x):
    """Overlay every scheme on the exact solution."""
    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle('Shock Tube: explicit finite-difference schemes', fontsize=14, fontweight='bold')

    panels = [
        ('rho', 'Density [kg/m³]', 1.0),
        ('u', 'Velocity [m/s]', 1.0),
        ('p', 'Pressure [kPa]', 1e-3),
        ('T', 'Temperature [K]', 1.0),
    ]
    for ax, (key, label, scale) in zip(axes.flat, panels):
        for name, solution in results.items():
            ax.plot(x, getattr(solution, key) * scale, linewidth=1.5, label=name)
        ax.plot(x, exact[key] * scale, 'k--', linewidth=2, label='Exact')
        ax.axvline(x=0.5 * (x[0] + x[-1]), color='gray', linestyle=':', alpha=0.5)
        ax.set_xlabel('x [m]')
        ax.set_ylabel(label)
        ax.legend()
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig('shock_tube_schemes.png', dpi=150, bbox_inches='tight')
    return fig


def main():
    parser = argparse.ArgumentParser(description='Shock tube with explicit FDM schemes')
    parser.add_argument('--n-cells', type=int, default=100, help='Number of cells')
    parser.add_argument('--length', type=float, default=200.0, help='Tube length [m]')
    parser.add_argument('--end-time', type=float, default=0.14267, help='Final time [s]')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug output')
    args = parser.parse_args()

    logger = configure_logging(args.verbose)

    results = {}
    exact = None
    x = None
    for scheme in SCHEMES:
        try:
            solver, exact = run_shock_tube_test(scheme, n_cells=args.n_cells,
                                                length=args.length, end_time=args.end_time)
        except SolverError as exc:
            logger.error("%s failed: %s", scheme, exc)
            continue

        solution = solver.get_solution()
        results[scheme] = solution
        x = solver.mesh.x_cells

        p_error = np.mean(np.abs(solution.p - exact['p']))
        rho_error = np.mean(np.abs(solution.rho - exact['rho']))
        logger.info("%-24s steps = %5d, p L1 = %.4e Pa, rho L1 = %.4e kg/m³",
                    scheme, solver.iteration, p_error, rho_error)

        solver.plot_cfl_history(f'cfl_history_{scheme}.png')

    if not results:
        return 1

    logger.info("Exact shock at x = %.2f m, contact at x = %.2f m",
                exact['shock'], exact['contact'])
    plot_comparison(results, exact, x)
    plt.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
