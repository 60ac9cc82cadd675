import json
import pytest
import numpy as np

from prevalence.errors import InvalidConfigError
from prevalence.simulations.prevalence import (
    PrevalenceSimulation,
    power_curve,
    run_trial_for_gamma,
    simulate_power,
)


@pytest.fixture(scope="module")
def simulation():
    sim = PrevalenceSimulation(
        0.05, 0.9, samples_per_trial=20, num_grid_points=50, seed=561
    )
    sim.run(n_trials=200)
    return sim


@pytest.mark.parametrize("k", range(3, 18))
def test_posterior_matches_simulation(k, simulation):
    error = simulation.posterior_cdf_error(k)
    if error is None:
        return
    mean_absolute_error, max_absolute_error = error
    assert mean_absolute_error < 0.06


def test_empirical_rates(simulation):
    alpha, beta = simulation.empirical_rates()
    assert alpha == pytest.approx(0.05, abs=0.01)
    assert beta == pytest.approx(0.9, abs=0.01)


def test_results_dict_serializable(simulation):
    results = json.loads(json.dumps(simulation.get_results_dict()))
    assert results["info"]["n_trials"] == 200
    assert all(key.startswith("20:") for key in results["results"])


def test_run_trial_for_gamma():
    n, k, gamma, tp, fn, fp, tn = run_trial_for_gamma(
        (0.3, 0.05, 0.8, 100, np.random.RandomState(1105))
    )
    assert (n, gamma) == (100, 0.3)
    assert tp + fn + fp + tn == n
    assert tp + fp == k


def test_power_at_null_within_level():
    power = simulate_power(
        0.5, 45, gamma_0=0.5, alpha_group=0.05, n_trials=2000, seed=1729
    )
    assert power < 0.08


def test_power_far_above_null():
    power = simulate_power(0.9, 45, gamma_0=0.5, n_trials=500, seed=2465)
    assert power > 0.95


def test_power_curve():
    df = power_curve(
        np.linspace(0, 1, 6), 45, gamma_0=0.5, n_trials=200, seed=2821
    )
    assert list(df.columns) == ["gamma", "n", "gamma_0", "power"]
    assert len(df) == 6
    assert df.power.iloc[0] == 0.0
    assert df.power.iloc[-1] == 1.0


def test_invalid_rates():
    with pytest.raises(InvalidConfigError):
        PrevalenceSimulation(0.5, 0.5)
    with pytest.raises(InvalidConfigError):
        simulate_power(0.5, 45, alpha_ind=0.6, beta_ind=0.5)
