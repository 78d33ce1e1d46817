import numpy as np
import pytest

from antiviral_model.establishment import establishment_probability, phi_burst, phi_infectivity
from antiviral_model.exceptions import DomainError
from antiviral_model.parameters import get_default_parameters
from antiviral_model.results import ProbabilityCurve
from antiviral_model.sweep import SCENARIOS, compare_scenarios, curves_to_dataframe, efficacy_grid, sweep


def test_efficacy_grid_defaults():
    grid = efficacy_grid()
    assert grid.size == 101
    assert grid[0] == 0.0 and grid[-1] == 1.0
    assert np.allclose(np.diff(grid), 0.01)

    with pytest.raises(ValueError):
        efficacy_grid(1)
    with pytest.raises(ValueError):
        efficacy_grid(11, lo=0.5, hi=0.5)


def test_sweep_matches_pointwise_evaluation():
    params = get_default_parameters()
    grid = efficacy_grid(101)
    curve = sweep(phi_burst, params, grid=grid)

    assert isinstance(curve, ProbabilityCurve)
    assert curve.scenario == "phi_burst"
    assert len(curve) == 101
    assert np.array_equal(curve.efficacy, grid)
    expected = [phi_burst(eps, params) for eps in grid]
    assert np.array_equal(curve.probability, expected)


def test_compare_scenarios_returns_both_curves():
    params = get_default_parameters()
    curves = compare_scenarios(params)

    assert list(curves) == ["burst", "infectivity"]
    burst, infect = curves["burst"], curves["infectivity"]
    assert burst.scenario == "burst" and infect.scenario == "infectivity"
    assert np.array_equal(burst.efficacy, infect.efficacy)

    for curve in curves.values():
        assert np.all((curve.probability >= 0.0) & (curve.probability <= 1.0))
        # R0_eff -> 0 as eps -> 1
        assert curve.probability[-1] == 0.0

    # same starting point: no drug
    assert burst.probability[0] == infect.probability[0] > 0.0
    assert SCENARIOS["burst"] is phi_burst and SCENARIOS["infectivity"] is phi_infectivity


def test_parallel_sweep_preserves_grid_order():
    params = get_default_parameters()
    grid = efficacy_grid(101)[::-1]  # descending on purpose
    sequential = sweep(phi_infectivity, params, grid=grid)
    parallel = sweep(phi_infectivity, params, grid=grid, n_jobs=2, backend="threading")

    assert np.array_equal(parallel.efficacy, grid)
    assert np.array_equal(parallel.probability, sequential.probability)


def test_sweep_accepts_any_probability_function():
    params = get_default_parameters()
    curve = sweep(lambda eps, p: 1.0 - eps, params, npts=11, scenario="linear")
    assert curve.scenario == "linear"
    assert np.allclose(curve.probability, 1.0 - np.linspace(0.0, 1.0, 11))


def test_sweep_propagates_domain_errors():
    def no_burst(eps, p):
        return establishment_probability(2.0, 0.0, p, efficacy=eps)

    with pytest.raises(DomainError):
        sweep(no_burst, get_default_parameters(), npts=11)


def test_curves_to_dataframe_long_format():
    curves = compare_scenarios(get_default_parameters(), npts=21)
    df = curves_to_dataframe(curves)

    assert list(df.columns) == ["scenario", "efficacy", "probability"]
    assert len(df) == 42
    assert set(df["scenario"]) == {"burst", "infectivity"}
    burst_rows = df[df["scenario"] == "burst"]
    assert np.array_equal(burst_rows["probability"].to_numpy(), curves["burst"].probability)

    assert curves_to_dataframe({}).empty


def test_probability_curve_is_read_only():
    curve = sweep(phi_burst, get_default_parameters(), npts=5)
    with pytest.raises(ValueError):
        curve.probability[0] = 0.5
    with pytest.raises(ValueError):
        ProbabilityCurve("bad", efficacy=[0.0, 1.0], probability=[0.0])
