"""Bayesian inference of the population prevalence of a within-person effect.

Population prevalence gamma gets a uniform prior on [0, 1]. Person-level
tests have false positive rate ``a`` and sensitivity ``b`` so a random
individual tests significant with probability

    theta = a + (b - a) * gamma

Observing k significant tests out of n, the posterior of theta is a
Beta(k + 1, n - k + 1) distribution truncated to [a, b]. All functions
below query this posterior without materializing it.

References
----------
[0] Ince, R. A. A., Paton, A. T., Kay, J. W., & Schyns, P. G. (2021).
    Bayesian inference of population prevalence. eLife, 10, e62461.
[1] https://en.wikipedia.org/wiki/Credible_interval
"""
import enum
import logging
import numpy as np

from numpy.typing import ArrayLike, NDArray
from scipy.optimize import root
from scipy.special import expit, logit
from scipy.stats import beta as beta_dist
from typing import Union

from prevalence.errors import NonConvergenceError
from prevalence.stats.stats import _round_interval
from prevalence.stats.validation import (
    check_counts,
    check_probability,
    check_test_rates,
    check_unit_interval,
)


logger = logging.getLogger(__file__)


class HpdiRegion(enum.Enum):
    LEFT_ANCHORED = "left_anchored"
    RIGHT_ANCHORED = "right_anchored"
    INTERIOR = "interior"


def to_test_rate(gamma: ArrayLike, a: float = 0.05, b: float = 1.0):
    """Map prevalence gamma to the rate theta of significant tests."""
    return a + (b - a) * np.asarray(gamma, dtype=float)


def to_prevalence(theta: ArrayLike, a: float = 0.05, b: float = 1.0):
    """Inverse of :func:`to_test_rate`."""
    return (np.asarray(theta, dtype=float) - a) / (b - a)


def _posterior(k, n, a, b):
    k, n = check_counts(k, n)
    check_test_rates(a, b)
    return k, n, beta_dist(k + 1, n - k + 1)


def _mass(dist, left, right):
    """Probability that theta falls in [left, right].

    Uses differences of the cdf left of the median and of the survival
    function right of it so that tiny tail masses keep their precision.
    """
    left, right = np.asarray(left, dtype=float), np.asarray(right, dtype=float)
    median = dist.median()
    with np.errstate(invalid="ignore"):
        return np.where(
            left >= median,
            dist.sf(left) - dist.sf(right),
            dist.cdf(right) - dist.cdf(left),
        )


def _truncated_ppf(q, dist, a, b):
    """Quantile q of dist truncated to [a, b]."""
    total = _mass(dist, a, b)
    lower = dist.cdf(a) + q * total
    if lower < 0.5:
        theta = dist.ppf(lower)
    else:
        theta = dist.isf(dist.sf(b) + (1 - q) * total)
    return float(min(max(theta, a), b))


def bayesian_prevalence_map(
        k: int, n: int, a: float = 0.05, b: float = 1.0
) -> float:
    """Maximum a posteriori estimate of population prevalence.

    Parameters
    ----------
    k : int
        Number of individuals with a significant person-level test.
    n : int
        Number of individuals tested.
    a : Optional[float]
        False positive rate of the person-level tests. Default 0.05.
    b : Optional[float]
        Sensitivity of the person-level tests. Default 1.0.

    Returns
    -------
    float
        MAP estimate of gamma, in [0, 1].
    """
    k, n = check_counts(k, n)
    check_test_rates(a, b)
    return float(min(max((k / n - a) / (b - a), 0.0), 1.0))


def bayesian_prevalence_posterior(
        x: ArrayLike, k: int, n: int, a: float = 0.05, b: float = 1.0
) -> Union[float, NDArray]:
    """Posterior density of population prevalence evaluated at x."""
    x = check_unit_interval(x)
    k, n, dist = _posterior(k, n, a, b)
    density = (b - a) * dist.pdf(to_test_rate(x, a, b)) / _mass(dist, a, b)
    return float(density) if density.ndim == 0 else density


def bayesian_prevalence_bound(
        p: float, k: int, n: int, a: float = 0.05, b: float = 1.0
) -> float:
    """Lower bound of population prevalence with posterior mass p above it.

    Parameters
    ----------
    p : float
        Posterior probability that prevalence exceeds the bound, for
        example 0.95.
    k : int
        Number of individuals with a significant person-level test.
    n : int
        Number of individuals tested.
    a : Optional[float]
        False positive rate of the person-level tests. Default 0.05.
    b : Optional[float]
        Sensitivity of the person-level tests. Default 1.0.

    Returns
    -------
    float
        Value gamma_lower such that P(gamma > gamma_lower) = p.
    """
    check_probability(p)
    k, n, dist = _posterior(k, n, a, b)
    return float(to_prevalence(_truncated_ppf(1 - p, dist, a, b), a, b))


def bayesian_prevalence_eti(
        p: float, k: int, n: int, a: float = 0.05, b: float = 1.0
) -> tuple[float, float]:
    """Equal tailed prevalence credible interval containing mass p.

    Each tail outside the interval carries posterior probability
    (1 - p) / 2.
    """
    check_probability(p)
    k, n, dist = _posterior(k, n, a, b)
    left, right = _equal_tailed(p, dist, a, b)
    return _round_interval(
        float(to_prevalence(left, a, b)), float(to_prevalence(right, a, b))
    )


def _equal_tailed(p, dist, a, b):
    return (
        _truncated_ppf((1 - p) / 2, dist, a, b),
        _truncated_ppf((1 + p) / 2, dist, a, b),
    )


def hpdi_region(k: int, n: int, a: float = 0.05, b: float = 1.0) -> HpdiRegion:
    """Shape of the truncated posterior that determines how the HDI is found.

    ====================================  ================
    condition                             region
    ====================================  ================
    k == 0 or k <= n * a                  LEFT_ANCHORED
    k == n or k >= n * b                  RIGHT_ANCHORED
    otherwise                             INTERIOR
    ====================================  ================

    In the anchored regions the posterior density is monotone on [a, b]
    so the HDI touches the corresponding boundary.
    """
    if k == 0 or k <= n * a:
        return HpdiRegion.LEFT_ANCHORED
    if k == n or k >= n * b:
        return HpdiRegion.RIGHT_ANCHORED
    return HpdiRegion.INTERIOR


def _hpdi_left_anchored(p, dist, a, b):
    return a, _truncated_ppf(p, dist, a, b)


def _hpdi_right_anchored(p, dist, a, b):
    return _truncated_ppf(1 - p, dist, a, b), b


def _hpdi_interior(p, dist, a, b):
    total = _mass(dist, a, b)
    eps = np.finfo(float).eps

    def equations(u):
        left, right = expit(u)
        return [
            _mass(dist, left, right) / total - p,
            dist.logpdf(right) - dist.logpdf(left),
        ]

    x0 = np.clip(_equal_tailed(p, dist, a, b), eps, 1 - eps)
    solution = root(equations, logit(x0), method="hybr")
    if not solution.success:
        raise NonConvergenceError(
            f"Highest density interval did not converge: {solution.message}"
        )
    left, right = expit(solution.x)
    if not left < right:
        raise NonConvergenceError(
            f"Highest density interval solver returned ({left}, {right})"
        )
    if left < a:
        logger.debug(f"Clamping HDI lower endpoint {left} to {a}")
        left, right = a, _truncated_ppf(p, dist, a, b)
    elif right > b:
        logger.debug(f"Clamping HDI upper endpoint {right} to {b}")
        left, right = _truncated_ppf(1 - p, dist, a, b), b
    return left, right


_HPDI_SOLVERS = {
    HpdiRegion.LEFT_ANCHORED: _hpdi_left_anchored,
    HpdiRegion.RIGHT_ANCHORED: _hpdi_right_anchored,
    HpdiRegion.INTERIOR: _hpdi_interior,
}


def bayesian_prevalence_hpdi(
        p: float, k: int, n: int, a: float = 0.05, b: float = 1.0
) -> tuple[float, float]:
    """Returns highest density prevalence credible interval [1].

    Interval of posterior distribution of minimal width that captures
    probability p.

    Parameters
    ----------
    p : float
        Posterior probability contained in the interval, e.g. 0.96.
    k : int
        Number of individuals with a significant person-level test.
    n : int
        Number of individuals tested.
    a : Optional[float]
        False positive rate of the person-level tests. Default 0.05.
    b : Optional[float]
        Sensitivity of the person-level tests. Default 1.0.

    Returns
    -------
    tuple[float, float]
        tuple(left, right) where left, and right are the endpoints of the
        prevalence credible interval.

    Raises
    ------
    NonConvergenceError
        If the root finder for an interior interval fails.
    """
    check_probability(p)
    k, n, dist = _posterior(k, n, a, b)
    region = hpdi_region(k, n, a, b)
    logger.debug(f"HDI for k={k}, n={n}, a={a}, b={b} in region {region.name}")
    left, right = _HPDI_SOLVERS[region](p, dist, a, b)
    return _round_interval(
        float(to_prevalence(left, a, b)), float(to_prevalence(right, a, b))
    )


def bayesian_prevalence_posterior_prob(
        x: ArrayLike, k: int, n: int, a: float = 0.05, b: float = 1.0
) -> Union[float, NDArray]:
    """Posterior probability that population prevalence exceeds x."""
    x = check_unit_interval(x)
    k, n, dist = _posterior(k, n, a, b)
    theta = to_test_rate(x, a, b)
    prob = _mass(dist, theta, b) / _mass(dist, a, b)
    prob = np.clip(prob, 0.0, 1.0)
    return float(prob) if prob.ndim == 0 else prob


def bayesian_prevalence_posterior_log_odds(
        x: ArrayLike, k: int, n: int, a: float = 0.05, b: float = 1.0
) -> Union[float, NDArray]:
    """Log odds that population prevalence exceeds x.

    log(P / (1 - P)) with P = P(gamma > x). Infinite at x = 0 and x = 1.
    """
    x = check_unit_interval(x)
    k, n, dist = _posterior(k, n, a, b)
    theta = to_test_rate(x, a, b)
    with np.errstate(divide="ignore"):
        log_odds = (
            np.log(np.clip(_mass(dist, theta, b), 0.0, None))
            - np.log(np.clip(_mass(dist, a, theta), 0.0, None))
        )
    return float(log_odds) if log_odds.ndim == 0 else log_odds
