"""Frequentist test for the population prevalence of a within-person effect.

Each individual is tested separately at level ``alpha_ind`` with
sensitivity ``beta_ind``. The number of individuals whose test passes is
binomial with success probability

    p_pos = gamma * beta_ind + (1 - gamma) * alpha_ind

where gamma is the population prevalence of the effect. The test rejects
the null ``gamma <= gamma_0`` when observing at least ``k`` positives is
unlikely at ``gamma_0``.

References
----------
[0] Ince, R. A. A., Paton, A. T., Kay, J. W., & Schyns, P. G. (2021).
    Bayesian inference of population prevalence. eLife, 10, e62461.
[1] Donhauser, P. W., Florin, E., & Baillet, S. (2018). Imaging of neural
    oscillations with embedded inferential and group prevalence
    statistics. PLoS Computational Biology, 14(2), e1005990.
"""
import logging
import numpy as np

from dataclasses import asdict, dataclass
from numpy.typing import ArrayLike, NDArray
from scipy.stats import binom
from statsmodels.stats.proportion import proportion_confint
from typing import Any, NamedTuple, Union

from prevalence.errors import InvalidConfigError
from prevalence.stats.validation import (
    check_counts,
    check_probability,
    check_pvalues,
    check_test_rates,
)


logger = logging.getLogger(__file__)


DEFAULT_NUM_GRID_POINTS = 1001


class ObservedCounts(NamedTuple):
    """Number k of individuals with a significant test out of n."""
    k: int
    n: int


@dataclass(frozen=True)
class PrevalenceTestConfig:
    """Parameters of the frequentist prevalence test.

    Parameters
    ----------
    alpha_ind : float
        Level of the person-level tests (their false positive rate).
    beta_ind : float
        Sensitivity of the person-level tests.
    alpha_group : float
        Level at which the population null is rejected.
    gamma_0 : float
        Null prevalence. 0.5 is the majority null, 0 the global null.
    """
    alpha_ind: float = 0.05
    beta_ind: float = 1.0
    alpha_group: float = 0.05
    gamma_0: float = 0.5

    def __post_init__(self):
        if not 0 < self.alpha_ind < 1:
            raise InvalidConfigError(
                f"alpha_ind must be in (0, 1), got {self.alpha_ind}"
            )
        if not 0 < self.beta_ind <= 1:
            raise InvalidConfigError(
                f"beta_ind must be in (0, 1], got {self.beta_ind}"
            )
        if self.alpha_ind >= self.beta_ind:
            raise InvalidConfigError(
                "Person-level test does not discriminate: alpha_ind "
                f"({self.alpha_ind}) >= beta_ind ({self.beta_ind})"
            )
        if not 0 < self.alpha_group < 1:
            raise InvalidConfigError(
                f"alpha_group must be in (0, 1), got {self.alpha_group}"
            )
        if not 0 <= self.gamma_0 <= 1:
            raise InvalidConfigError(
                f"gamma_0 must be in [0, 1], got {self.gamma_0}"
            )


@dataclass(frozen=True)
class FrequentistResult:
    """Outcome of :func:`frequentist_prevalence_test`."""
    p_null: float
    gamma_0_critical: float
    k: int
    n: int
    config: PrevalenceTestConfig

    @property
    def rejected(self) -> bool:
        return self.p_null < self.config.alpha_group

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        config = result.pop("config")
        result.update(config)
        result["rejected"] = self.rejected
        return result


def observed_counts(
        observed: Union[ObservedCounts, tuple[int, int], ArrayLike],
        alpha_ind: float = 0.05,
) -> ObservedCounts:
    """Normalize observed data to counts (k, n).

    ``observed`` is either an :class:`ObservedCounts`, a plain tuple of
    two integers ``(k, n)``, or a one dimensional sequence of person-level
    p-values. For p-values, k is the number strictly below ``alpha_ind``.
    Counts are used as given, which is the same as passing k p-values of
    0 and n - k p-values of 1.
    """
    if isinstance(observed, tuple) and len(observed) == 2 and all(
            isinstance(value, (int, np.integer))
            and not isinstance(value, bool)
            for value in observed
    ):
        k, n = check_counts(*observed)
        return ObservedCounts(k, n)
    pvalues = check_pvalues(observed)
    return ObservedCounts(int(np.sum(pvalues < alpha_ind)), len(pvalues))


def prevalence_grid(num_grid_points: int = DEFAULT_NUM_GRID_POINTS) -> NDArray:
    if num_grid_points < 2:
        raise InvalidConfigError(
            f"num_grid_points must be at least 2, got {num_grid_points}"
        )
    return np.linspace(0, 1, num_grid_points)


def positive_rate(
        gamma: ArrayLike, alpha_ind: float, beta_ind: float
) -> NDArray:
    """Probability that a random individual's test is significant."""
    gamma = np.asarray(gamma, dtype=float)
    return gamma * beta_ind + (1 - gamma) * alpha_ind


def tail_probability(
        gamma: ArrayLike, k: int, n: int, alpha_ind: float, beta_ind: float
) -> NDArray:
    """Probability of at least k significant tests out of n at prevalence gamma.
    """
    # binom.sf(k - 1) is P(J >= k), and equals 1 for k = 0.
    return binom.sf(k - 1, n, positive_rate(gamma, alpha_ind, beta_ind))


def frequentist_prevalence_test(
        observed: Union[ObservedCounts, tuple[int, int], ArrayLike],
        alpha_ind: float = 0.05,
        beta_ind: float = 1.0,
        alpha_group: float = 0.05,
        gamma_0: float = 0.5,
        num_grid_points: int = DEFAULT_NUM_GRID_POINTS,
) -> FrequentistResult:
    """Test whether population prevalence of an effect exceeds gamma_0.

    Parameters
    ----------
    observed : ObservedCounts, tuple of int, or ArrayLike of float
        Either counts ``(k, n)`` or the person-level p-values.
        See :func:`observed_counts`.
    alpha_ind : Optional[float]
        Level of the person-level tests. Default 0.05.
    beta_ind : Optional[float]
        Sensitivity of the person-level tests. Default 1.0.
    alpha_group : Optional[float]
        Level for the population-level test. Default 0.05.
    gamma_0 : Optional[float]
        Null prevalence. Use 0.5 for the majority null (default) and 0.0
        for the global null.
    num_grid_points : Optional[int]
        Number of points in the uniform grid over [0, 1] of candidate
        prevalence values. Controls the resolution of gamma_0_critical.
        Default 1001.

    Returns
    -------
    FrequentistResult
        ``p_null`` is the probability, at the grid point nearest gamma_0,
        of observing at least k significant individuals.
        ``gamma_0_critical`` is the largest prevalence on the grid that is
        rejected at level alpha_group, or 0.0 if none is.
    """
    config = PrevalenceTestConfig(
        alpha_ind=alpha_ind,
        beta_ind=beta_ind,
        alpha_group=alpha_group,
        gamma_0=gamma_0,
    )
    k, n = observed_counts(observed, alpha_ind)
    grid = prevalence_grid(num_grid_points)
    tail = tail_probability(grid, k, n, alpha_ind, beta_ind)
    p_null = float(tail[np.argmin(np.abs(grid - gamma_0))])
    rejectable = grid[tail < alpha_group]
    gamma_0_critical = float(rejectable.max()) if rejectable.size else 0.0
    logger.debug(
        f"Prevalence test k={k}, n={n}, gamma_0={gamma_0}: "
        f"p_null={p_null:.4g}, gamma_0_critical={gamma_0_critical}"
    )
    return FrequentistResult(
        p_null=p_null,
        gamma_0_critical=gamma_0_critical,
        k=k,
        n=n,
        config=config,
    )


def simple_prevalence_interval(
        k: int,
        n: int,
        alpha: float = 0.05,
        beta: float = 1.0,
        level: float = 0.1,
        method: str = "beta",
) -> tuple[float, float]:
    """Compute simple prevalence interval based on linear transform.

    phi = beta * gamma + alpha * (1 - gamma)

    Where phi is proportion of significant person-level tests and gamma
    is the unknown prevalence. A binomial confidence interval for phi at
    significance ``level`` is mapped to gamma and clipped to [0, 1].
    """
    k, n = check_counts(k, n)
    check_test_rates(alpha, beta)
    check_probability(level, "level")
    lower, upper = proportion_confint(k, n, alpha=level, method=method)
    c = min(max(0.0, (lower - alpha) / (beta - alpha)), 1.0)
    d = max(min(1.0, (upper - alpha) / (beta - alpha)), 0.0)
    return c, d
