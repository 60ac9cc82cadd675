import numpy as np
import pytest
from types import SimpleNamespace

import prevalence.stats.bayesian as bayesian
from prevalence.errors import InvalidConfigError, NonConvergenceError
from prevalence.stats import (
    HpdiRegion,
    bayesian_prevalence_hpdi,
    bayesian_prevalence_posterior,
    bayesian_prevalence_posterior_prob,
    hpdi_region,
)


def interval_mass(interval, k, n, a=0.05, b=1.0):
    left, right = interval
    return (
        bayesian_prevalence_posterior_prob(left, k, n, a, b)
        - bayesian_prevalence_posterior_prob(right, k, n, a, b)
    )


def test_hpdi_example():
    left, right = bayesian_prevalence_hpdi(0.96, 4, 45)
    assert left == pytest.approx(0.0, abs=0.02)
    assert right == pytest.approx(0.15, abs=0.02)
    assert interval_mass((left, right), 4, 45) == pytest.approx(0.96, abs=1e-4)


@pytest.mark.parametrize(
    "test_input, expected",
    [
        ((0, 45, 0.05, 1.0), HpdiRegion.LEFT_ANCHORED),
        ((2, 45, 0.05, 1.0), HpdiRegion.LEFT_ANCHORED),
        ((0, 10, 0.0, 1.0), HpdiRegion.LEFT_ANCHORED),
        ((45, 45, 0.05, 1.0), HpdiRegion.RIGHT_ANCHORED),
        ((19, 20, 0.05, 0.9), HpdiRegion.RIGHT_ANCHORED),
        ((3, 45, 0.05, 1.0), HpdiRegion.INTERIOR),
        ((20, 45, 0.05, 1.0), HpdiRegion.INTERIOR),
        ((44, 45, 0.05, 1.0), HpdiRegion.INTERIOR),
    ],
)
def test_hpdi_region(test_input, expected):
    assert hpdi_region(*test_input) == expected


@pytest.mark.parametrize("test_input", [(0, 45), (2, 45), (0, 5)])
def test_left_anchored(test_input):
    k, n = test_input
    left, right = bayesian_prevalence_hpdi(0.9, k, n)
    assert left == 0.0
    assert interval_mass((left, right), k, n) == pytest.approx(0.9, abs=1e-4)


@pytest.mark.parametrize(
    "test_input", [(45, 45, 0.05, 1.0), (19, 20, 0.05, 0.9), (10, 10, 0.0, 1.0)]
)
def test_right_anchored(test_input):
    k, n, a, b = test_input
    left, right = bayesian_prevalence_hpdi(0.9, k, n, a, b)
    assert right == 1.0
    assert interval_mass((left, right), k, n, a, b) == pytest.approx(
        0.9, abs=1e-4
    )


@pytest.mark.parametrize("p", [0.5, 0.9, 0.95])
@pytest.mark.parametrize("test_input", [(20, 45), (30, 45), (60, 200)])
def test_interior_equal_density(p, test_input):
    k, n = test_input
    left, right = bayesian_prevalence_hpdi(p, k, n)
    assert 0 < left < right < 1
    assert interval_mass((left, right), k, n) == pytest.approx(p, abs=1e-4)
    left_density = bayesian_prevalence_posterior(left, k, n)
    right_density = bayesian_prevalence_posterior(right, k, n)
    assert left_density == pytest.approx(right_density, rel=1e-3)


@pytest.mark.parametrize("test_input", [(20, 45), (4, 45), (60, 200)])
def test_hpdi_narrower_than_equal_tailed(test_input):
    k, n = test_input
    left, right = bayesian_prevalence_hpdi(0.9, k, n)
    eti_left, eti_right = bayesian.bayesian_prevalence_eti(0.9, k, n)
    assert right - left <= eti_right - eti_left + 1e-5


def test_hpdi_clamped_at_upper_boundary():
    k, n, a, b = 44, 45, 0.05, 0.99
    assert hpdi_region(k, n, a, b) == HpdiRegion.INTERIOR
    left, right = bayesian_prevalence_hpdi(0.95, k, n, a, b)
    assert right == 1.0
    assert interval_mass((left, right), k, n, a, b) == pytest.approx(
        0.95, abs=1e-4
    )


@pytest.mark.parametrize(
    "test_input", [(0, 45), (4, 45), (20, 45), (44, 45), (45, 45), (60, 200)]
)
def test_width_nondecreasing_in_p(test_input):
    k, n = test_input
    widths = []
    for p in [0.5, 0.8, 0.9, 0.95, 0.99]:
        left, right = bayesian_prevalence_hpdi(p, k, n)
        widths.append(right - left)
    assert np.all(np.diff(widths) >= 0)


def test_nonconvergence_is_reported(monkeypatch):
    def failed_root(fun, x0, method):
        return SimpleNamespace(
            success=False, x=x0, message="The iteration is not making progress"
        )

    monkeypatch.setattr(bayesian, "root", failed_root)
    with pytest.raises(NonConvergenceError):
        bayesian_prevalence_hpdi(0.9, 20, 45)
    # Anchored intervals do not need the solver.
    assert bayesian_prevalence_hpdi(0.9, 0, 45)[0] == 0.0


@pytest.mark.parametrize("p", [0.0, 1.0, -0.5, 2])
def test_invalid_mass(p):
    with pytest.raises(InvalidConfigError):
        bayesian_prevalence_hpdi(p, 4, 45)
