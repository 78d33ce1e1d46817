import math

import numpy as np
import pytest
from scipy.optimize import brentq

from antiviral_model.establishment import (
    combination_threshold,
    critical_efficacy_burst,
    critical_efficacy_infectivity,
    effective_r0_burst,
    effective_r0_infectivity,
    establishment_probability,
    infectivity_reduction,
    phi_burst,
    phi_combined,
    phi_infectivity,
)
from antiviral_model.exceptions import DomainError
from antiviral_model.parameters import ModelParameters, get_default_parameters


@pytest.fixture
def params():
    return get_default_parameters()


def test_untreated_probability_matches_closed_form(params):
    """With no drug both scenarios reduce to 1 - (1 - (R0 - 1)/(mu B))^V0."""
    expected = 1.0 - (1.0 - (7.69 - 1.0) / (0.001 * 18800)) ** 10
    assert math.isclose(phi_burst(0.0, params), expected, rel_tol=1e-12)
    assert math.isclose(phi_infectivity(0.0, params), expected, rel_tol=1e-12)
    assert phi_burst(0.0, params) > 0.0


def test_phi_burst_vanishes_as_efficacy_goes_to_one(params):
    # R0_eff = (1 - eps) * R0 drops below 1 from eps = 1 - 1/R0 onwards
    assert phi_burst(0.9, params) == 0.0
    assert phi_burst(0.99, params) == 0.0
    assert phi_burst(1.0, params) == 0.0


def test_phi_infectivity_vanishes_beyond_threshold(params):
    assert effective_r0_infectivity(0.95, params) < 1.0
    assert phi_infectivity(0.95, params) == 0.0
    assert phi_infectivity(1.0, params) == 0.0


@pytest.mark.parametrize("R0", [2.0, 5.0, 15.0])
def test_boundary_below_one_is_exactly_zero(R0):
    params = ModelParameters.from_values(R0=R0, mu=0.01)
    for eps in np.linspace(0.0, 1.0, 201):
        if effective_r0_burst(eps, params) < 1.0:
            assert phi_burst(eps, params) == 0.0
        if effective_r0_infectivity(eps, params) < 1.0:
            assert phi_infectivity(eps, params) == 0.0


@pytest.mark.parametrize(
    "values",
    [
        {},
        {"R0": 2.0, "B": 1880, "mu": 0.1, "V0": 1},
        {"R0": 20.0, "B": 188000, "mu": 0.0002, "V0": 50, "c": 1.0, "T0": 100},
        {"R0": 3.5, "B": 5000, "mu": 0.05, "V0": 25, "c": 20.0},
    ],
)
def test_probabilities_stay_in_unit_interval(values):
    params = ModelParameters.from_values(**values)
    for eps in np.linspace(0.0, 1.0, 101):
        for phi in (phi_burst, phi_infectivity):
            value = phi(eps, params)
            assert 0.0 <= value <= 1.0


def test_zero_inoculum_never_establishes():
    params = ModelParameters.from_values(V0=0)
    assert phi_burst(0.0, params) == 0.0
    assert phi_infectivity(0.0, params) == 0.0


def test_phi_burst_follows_the_gap(params):
    """
    phi_burst grows with (R0_eff - 1)/(mu B_eff); here the gap shrinks
    from eps=0.1 to eps=0.5, so phi must not grow.
    """
    def gap(eps):
        return ((1 - eps) * 7.69 - 1) / (0.001 * (1 - eps) * 18800)

    assert gap(0.1) > gap(0.5)
    assert phi_burst(0.1, params) > phi_burst(0.5, params)


def test_infectivity_drug_wins_at_moderate_efficacy(params):
    # Blocking production also shrinks B, which partly offsets the lower R0;
    # below the burst threshold the infectivity drug gives the lower phi
    for eps in (0.2, 0.5, 0.8):
        assert phi_infectivity(eps, params) < phi_burst(eps, params)


@pytest.mark.parametrize("eps", [-0.1, 1.1, float("nan")])
def test_efficacy_outside_unit_interval_rejected(params, eps):
    with pytest.raises(ValueError):
        phi_burst(eps, params)
    with pytest.raises(ValueError):
        phi_infectivity(eps, params)


def test_zero_burst_raises_domain_error(params):
    with pytest.raises(DomainError) as excinfo:
        establishment_probability(2.0, 0.0, params, efficacy=0.4)
    assert excinfo.value.efficacy == 0.4
    assert excinfo.value.parameters["B_eff"] == 0.0
    assert excinfo.value.parameters["mu"] == 0.001


def test_inconsistent_r0_and_burst_raise_domain_error(params):
    # (R0_eff - 1) / (mu B_eff) = 19 / 1.88 > 1: the power base is negative
    with pytest.raises(DomainError):
        establishment_probability(20.0, 1880.0, params)
    # still zero once R0_eff < 1
    assert establishment_probability(0.5, 1880.0, params) == 0.0


def test_critical_efficacies_match_numeric_roots(params):
    eps_b = critical_efficacy_burst(params)
    assert math.isclose(eps_b, 1.0 - 1.0 / 7.69, rel_tol=1e-12)
    root_b = brentq(lambda e: effective_r0_burst(e, params) - 1.0, 0.0, 1.0, xtol=1e-14)
    assert math.isclose(eps_b, root_b, abs_tol=1e-10)

    eps_i = critical_efficacy_infectivity(params)
    root_i = brentq(lambda e: effective_r0_infectivity(e, params) - 1.0, 0.0, 1.0, xtol=1e-14)
    assert math.isclose(eps_i, root_i, abs_tol=1e-10)

    assert phi_burst(min(eps_b + 1e-6, 1.0), params) == 0.0
    assert phi_infectivity(min(eps_i + 1e-6, 1.0), params) == 0.0
    assert phi_burst(eps_b - 1e-3, params) > 0.0
    assert phi_infectivity(eps_i - 1e-3, params) > 0.0


def test_critical_efficacy_is_zero_without_epidemic(params):
    assert critical_efficacy_burst(params, r0=0.8) == 0.0
    assert critical_efficacy_infectivity(params, r0=1.0) == 0.0


def test_phi_combined_reduces_to_single_drug(params):
    for eps in np.linspace(0.0, 1.0, 21):
        assert math.isclose(phi_combined(eps, 0.0, params), phi_burst(eps, params), rel_tol=1e-12, abs_tol=0.0)
        assert math.isclose(phi_combined(0.0, eps, params), phi_infectivity(eps, params), rel_tol=1e-12, abs_tol=0.0)


def test_phi_combined_is_lower_than_either_drug_alone(params):
    both = phi_combined(0.3, 0.3, params)
    assert both <= phi_burst(0.3, params)
    assert both <= phi_infectivity(0.3, params)


def test_combination_threshold_frontier(params):
    grid = np.linspace(0.0, 1.0, 11)
    frontier = combination_threshold(params, grid)

    assert frontier.shape == grid.shape
    assert math.isclose(frontier[0], critical_efficacy_infectivity(params), rel_tol=1e-12)
    # Past the burst-only threshold no infectivity reduction is needed
    assert np.all(frontier[grid >= critical_efficacy_burst(params)] == 0.0)
    # More production blocked -> less infectivity blocking needed
    assert np.all(np.diff(frontier) <= 0.0)

    # On the frontier, the combined R0_eff is 1
    for eps_p, eps_beta in zip(grid, frontier):
        if eps_beta > 0.0:
            r0_eff = (1 - eps_p) * params.primary.R0 * (1 - infectivity_reduction(eps_beta, params))
            assert math.isclose(r0_eff, 1.0, rel_tol=1e-9)
