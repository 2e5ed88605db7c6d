"""
Pytest tests for the solver skeleton shared by all schemes.

Tests verify:
1. Eager validation of grid, configuration and initial condition
2. Uniform flow is a fixed point of every scheme
3. Boundary fixup copies
4. Mass bookkeeping of the conservative scheme
5. Entry points overwrite caller arrays and stop exactly at the end time
6. Unstable configurations abort with a typed error
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from eulerfd.src import (
    Mesh1D, Solver1D, SolverConfig, SCHEMES, ExtrapolationBC, copy_values,
    maccormack_1d, maccormack_conservative_1d, upwind_conservative_1d,
    SolverError, InvalidGridError, ConfigurationError, NonPhysicalStateError,
    StepLimitError,
)
from eulerfd.src.test_cases import shock_tube_initial_condition

ALL_SCHEMES = ['maccormack', 'maccormack_conservative', 'upwind']


@pytest.fixture
def tube():
    """Standard 100-cell, 200 m tube."""
    return Mesh1D.uniform(0.0, 200.0, 100)


@pytest.fixture
def stretched():
    """Non-uniform grid with widths between 0.5 and 1.5 m."""
    rng = np.random.default_rng(7)
    return Mesh1D(dx=rng.uniform(0.5, 1.5, 40))


class TestGridValidation:

    @pytest.mark.parametrize('dx', [
        [1.0, 1.0],
        [1.0, 0.0, 1.0],
        [1.0, -1.0, 1.0, 1.0],
        [1.0, np.nan, 1.0],
        [1.0, np.inf, 1.0],
    ])
    def test_invalid_grid(self, dx):
        with pytest.raises(InvalidGridError):
            Mesh1D(dx=dx)

    def test_uniform_grid(self):
        mesh = Mesh1D.uniform(0.0, 10.0, 5)
        np.testing.assert_allclose(mesh.dx, 2.0)
        np.testing.assert_allclose(mesh.x_cells, [1.0, 3.0, 5.0, 7.0, 9.0])
        assert mesh.length == pytest.approx(10.0)

    def test_from_faces(self):
        mesh = Mesh1D.from_faces([1.0, 2.0, 4.0, 7.0])
        np.testing.assert_allclose(mesh.dx, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(mesh.x_cells, [1.5, 3.0, 5.5])

    def test_grid_is_immutable(self, tube):
        with pytest.raises(ValueError):
            tube.dx[0] = 5.0

    def test_entry_point_rejects_grid(self):
        with pytest.raises(InvalidGridError):
            maccormack_1d([1.0, 1.0], [1e5, 1e5], [300.0, 300.0], [0.0, 0.0])


class TestConfigValidation:

    @pytest.mark.parametrize('kwargs', [
        {'end_time': 0.0},
        {'end_time': -1.0},
        {'init_dt': 0.0},
        {'target_cfl': 0.0},
        {'target_cfl': -0.2},
        {'max_cfl_limit': 0.0},
        {'max_steps': 0},
        {'cx': -0.1},
        {'sensor_floor': 0.0},
        {'scheme': 'lax_wendroff'},
        {'gamma': 0.9},
        {'cp': 100.0},
        {'divergence_window': 0},
    ])
    def test_invalid_config(self, kwargs):
        with pytest.raises(ConfigurationError):
            SolverConfig(**kwargs)

    def test_defaults(self):
        config = SolverConfig()
        assert config.init_dt == 0.001
        assert config.end_time == 0.14267
        assert config.gamma == 1.4
        assert config.R == 287.05
        assert config.cp == 1005.0
        assert config.cx == 0.3

    @pytest.mark.parametrize('scheme, target', [
        ('maccormack', 0.2), ('maccormack_conservative', 0.2), ('upwind', 0.1),
    ])
    def test_scheme_target_cfl(self, scheme, target):
        assert SolverConfig(scheme=scheme).cfl == target
        assert SolverConfig(scheme=scheme, target_cfl=0.3).cfl == 0.3

    def test_large_target_cfl_allowed(self):
        assert SolverConfig(target_cfl=1.5).cfl == 1.5
        assert SolverConfig(target_cfl=0.5, max_cfl_limit=0.4).max_cfl_limit == 0.4

    def test_unknown_override(self, tube):
        p, T, u = shock_tube_initial_condition(tube)
        with pytest.raises(ConfigurationError):
            maccormack_1d(tube.dx, p, T, u, endtime=0.1)

    def test_config_is_error_and_value_error(self):
        with pytest.raises(ValueError):
            SolverConfig(end_time=0.0)
        with pytest.raises(SolverError):
            SolverConfig(end_time=0.0)


class TestInitialCondition:

    def test_length_mismatch(self, tube):
        solver = Solver1D(tube)
        with pytest.raises(InvalidGridError):
            solver.set_initial_condition(np.full(99, 1e5), np.full(100, 300.0), np.zeros(100))

    def test_negative_temperature(self, tube):
        T = np.full(100, 300.0)
        T[50] = -1.0
        solver = Solver1D(tube)
        with pytest.raises(NonPhysicalStateError):
            solver.set_initial_condition(np.full(100, 1e5), T, np.zeros(100))

    def test_zero_pressure(self, tube):
        p = np.full(100, 1e5)
        p[0] = 0.0
        solver = Solver1D(tube)
        with pytest.raises(NonPhysicalStateError):
            solver.set_initial_condition(p, np.full(100, 300.0), np.zeros(100))

    def test_step_before_initial_condition(self, tube):
        with pytest.raises(ValueError):
            Solver1D(tube).step()

    @pytest.mark.parametrize('scheme, extra', [
        ('maccormack', {'e'}),
        ('maccormack_conservative', {'rhoU', 'rhoE'}),
        ('upwind', {'rhoU', 'rhoE'}),
    ])
    def test_evolved_fields(self, tube, scheme, extra):
        solver = Solver1D(tube, SolverConfig(scheme=scheme))
        solver.set_initial_condition(*shock_tube_initial_condition(tube))
        assert set(solver.fields) == {'rho', 'u', 'p', 'T'} | extra


class TestUniformFixedPoint:
    """A uniform state never changes, whatever the grid or scheme."""

    @pytest.mark.parametrize('scheme', ALL_SCHEMES)
    @pytest.mark.parametrize('velocity', [0.0, 40.0, -25.0])
    def test_uniform_state_unchanged(self, stretched, scheme, velocity):
        n = stretched.n_cells
        p0, T0, u0 = np.full(n, 2e5), np.full(n, 310.0), np.full(n, velocity)

        config = SolverConfig(scheme=scheme, init_dt=1e-4, end_time=1.0)
        solver = Solver1D(stretched, config)
        solver.set_initial_condition(p0, T0, u0)
        for _ in range(30):
            solver.step()

        solution = solver.get_solution()
        np.testing.assert_allclose(solution.p, p0, rtol=1e-10)
        np.testing.assert_allclose(solution.T, T0, rtol=1e-10)
        np.testing.assert_allclose(solution.u, u0, rtol=1e-10, atol=1e-10)

    @pytest.mark.parametrize('scheme', ALL_SCHEMES)
    def test_uniform_state_entry_points(self, scheme):
        dx = np.linspace(1.0, 3.0, 25)
        P = np.full(25, 5e4)
        T = np.full(25, 280.0)
        U = np.zeros(25)

        run = {'maccormack': maccormack_1d,
               'maccormack_conservative': maccormack_conservative_1d,
               'upwind': upwind_conservative_1d}[scheme]
        solution = run(dx, P, T, U, end_time=0.05)

        np.testing.assert_allclose(solution.p, 5e4, rtol=1e-10)
        np.testing.assert_allclose(solution.rho, 5e4 / (287.05 * 280.0), rtol=1e-10)

    @pytest.mark.parametrize('run', [maccormack_1d, maccormack_conservative_1d,
                                     upwind_conservative_1d])
    def test_fine_grid_large_first_cfl(self, run):
        """Default init_dt on a 1 cm grid starts near CFL 35; dt shrinks without aborting."""
        P = np.full(100, 1e5)
        T = np.full(100, 300.0)
        U = np.zeros(100)

        solution = run(np.full(100, 0.01), P, T, U, end_time=0.01)

        np.testing.assert_allclose(solution.p, 1e5, rtol=1e-10)
        np.testing.assert_allclose(solution.T, 300.0, rtol=1e-10)
        np.testing.assert_allclose(solution.u, 0.0, atol=1e-10)
        np.testing.assert_allclose(P, 1e5, rtol=1e-10)


class TestBoundaryFixup:

    def test_copy_values(self):
        fields = {'a': np.arange(5.0), 'b': 10 * np.arange(5.0)}
        copy_values(3, 0, fields)
        assert fields['a'][0] == 3.0 and fields['b'][0] == 30.0

    def test_maccormack_copies(self):
        fields = {'a': np.arange(6.0)}
        SCHEMES['maccormack'].boundary.apply(fields)
        np.testing.assert_array_equal(fields['a'], [2, 2, 2, 3, 3, 5])

    def test_upwind_copies(self):
        fields = {'a': np.arange(6.0)}
        SCHEMES['upwind'].boundary.apply(fields)
        np.testing.assert_array_equal(fields['a'], [2, 2, 2, 3, 3, 5])

    def test_conservative_copies(self):
        fields = {'a': np.arange(6.0)}
        SCHEMES['maccormack_conservative'].boundary.apply(fields)
        np.testing.assert_array_equal(fields['a'], [2, 2, 2, 3, 3, 3])

    def test_chained_copies(self):
        bc = ExtrapolationBC([(1, 0), (2, 1)])
        fields = {'a': np.arange(4.0)}
        bc.apply(fields)
        np.testing.assert_array_equal(fields['a'], [1, 2, 2, 3])

    @pytest.mark.parametrize('scheme', ALL_SCHEMES)
    def test_applied_every_step(self, tube, scheme):
        solver = Solver1D(tube, SolverConfig(scheme=scheme))
        p, T, u = shock_tube_initial_condition(tube)
        u[:3] = 5.0     # make the left edge distinguishable
        solver.set_initial_condition(p, T, u)
        solver.step()

        for name, values in solver.fields.items():
            assert values[0] == values[2], name
            assert values[1] == values[2], name
            assert values[-2] == values[-3], name


class TestMassBookkeeping:
    """Conservative scheme: mass changes only through the tracked boundaries."""

    def test_one_step(self, tube):
        x = tube.x_cells
        p = 1e5 * (1 + 0.01 * np.exp(-((x - 100.0) / 10.0)**2))
        T = np.full(tube.n_cells, 300.0)
        u = np.zeros(tube.n_cells)

        solver = Solver1D(tube, SolverConfig(scheme='maccormack_conservative'))
        solver.set_initial_condition(p, T, u)

        # Cells the boundary fixup never overwrites
        tracked = slice(2, -2)
        rho_before = solver.fields['rho'].copy()
        mass_before = np.sum(rho_before[tracked] * tube.dx[tracked])

        solver.step()

        rho_after = solver.fields['rho']
        mass_after = np.sum(rho_after[tracked] * tube.dx[tracked])

        # The pulse is far from both ends, so no mass crosses the tracked boundaries
        flux_in = solver.fields['rhoU'][2] - solver.fields['rhoU'][-3]
        assert abs(flux_in) < 1e-20

        assert np.max(np.abs(rho_after - rho_before)) > 1e-7 * np.max(rho_before), \
            "Pulse did not evolve, test is vacuous"
        assert abs(mass_after - mass_before) < 1e-7 * mass_before, \
            f"Mass changed by {mass_after - mass_before:.3e} kg/m²"

    def test_flux_through_edges(self, tube):
        """Uniform pressure and velocity over a temperature ramp: denser gas enters on the left."""
        x = tube.x_cells
        p = np.full(tube.n_cells, 1e5)
        T = 300.0 + 0.15 * x
        u = np.full(tube.n_cells, 10.0)

        solver = Solver1D(tube, SolverConfig(scheme='maccormack_conservative'))
        solver.set_initial_condition(p, T, u)

        tracked = slice(2, -2)
        mass_before = np.sum(solver.fields['rho'][tracked] * tube.dx[tracked])
        rhoU = solver.fields['rhoU']
        net_inflow = rhoU[2] - rhoU[-3]

        dt = solver.step()
        mass_after = np.sum(solver.fields['rho'][tracked] * tube.dx[tracked])

        assert net_inflow > 0
        # Fluxes are sampled half a cell from the tracked faces, a 1% effect here
        assert mass_after - mass_before == pytest.approx(dt * net_inflow, rel=0.05), \
            f"Mass change {mass_after - mass_before:.4e}, expected {dt * net_inflow:.4e} kg/m²"


class TestEntryPoints:

    def test_overwrites_arrays_in_place(self, tube):
        P, T, U = shock_tube_initial_condition(tube)
        P_initial = P.copy()

        solution = maccormack_conservative_1d(tube.dx, P, T, U, end_time=0.02)

        np.testing.assert_array_equal(P, solution.p)
        np.testing.assert_array_equal(T, solution.T)
        np.testing.assert_array_equal(U, solution.u)
        assert not np.array_equal(P, P_initial)

    def test_overwrites_lists_in_place(self, tube):
        p, T, u = shock_tube_initial_condition(tube)
        P, T, U = p.tolist(), T.tolist(), u.tolist()

        solution = maccormack_1d(list(tube.dx), P, T, U, end_time=0.01)

        assert isinstance(P, list) and len(P) == tube.n_cells
        np.testing.assert_array_equal(np.array(U), solution.u)

    def test_ends_exactly_at_end_time(self, tube):
        solver = Solver1D(tube, SolverConfig(end_time=0.0123))
        solver.set_initial_condition(*shock_tube_initial_condition(tube))
        solver.solve()
        assert solver.time == 0.0123

    def test_config_object_and_overrides(self, tube):
        P, T, U = shock_tube_initial_condition(tube)
        base = SolverConfig(scheme='maccormack', end_time=1.0, cx=0.25)
        solution = upwind_conservative_1d(tube.dx, P, T, U, config=base, end_time=0.005)
        assert np.all(np.isfinite(solution.p))

    def test_rejects_tuple(self, tube):
        p, T, u = shock_tube_initial_condition(tube)
        with pytest.raises(TypeError):
            maccormack_1d(tube.dx, tuple(p), T, u, end_time=0.01)

    def test_rejects_integer_array(self, tube):
        p, T, u = shock_tube_initial_condition(tube)
        T_int = T.astype(int)
        with pytest.raises(TypeError):
            maccormack_1d(tube.dx, p, T_int, u, end_time=0.01)
        np.testing.assert_array_equal(T_int, T.astype(int))


class TestFailureModes:
    """Unstable runs abort with a typed error instead of returning garbage."""

    @pytest.mark.parametrize('scheme', ALL_SCHEMES)
    def test_oversized_first_step(self, tube, scheme):
        config = SolverConfig(scheme=scheme, init_dt=0.02, max_cfl_limit=1.0)
        solver = Solver1D(tube, config)
        solver.set_initial_condition(*shock_tube_initial_condition(tube))
        with pytest.raises(SolverError):
            solver.solve()

    def test_step_limit(self, tube):
        solver = Solver1D(tube, SolverConfig(max_steps=5))
        solver.set_initial_condition(*shock_tube_initial_condition(tube))
        with pytest.raises(StepLimitError) as info:
            solver.solve()

        assert info.value.iteration == 5
        assert info.value.time < info.value.end_time

    def test_step_limit_leaves_inputs(self, tube):
        P, T, U = shock_tube_initial_condition(tube)
        P_initial = P.copy()
        with pytest.raises(SolverError):
            maccormack_conservative_1d(tube.dx, P, T, U, max_steps=5)
        np.testing.assert_array_equal(P, P_initial)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
