import numbers
import numpy as np

from numpy.typing import ArrayLike, NDArray
from sklearn.utils.validation import column_or_1d

from prevalence.errors import InvalidConfigError, InvalidObservedError


def _is_integral(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, numbers.Integral):
        return True
    return isinstance(value, numbers.Real) and float(value).is_integer()


def check_counts(k, n) -> tuple[int, int]:
    """Validate and return integer counts (k, n)."""
    if not (_is_integral(k) and _is_integral(n)):
        raise InvalidObservedError(
            f"Counts must be integers, got k={k!r}, n={n!r}"
        )
    k, n = int(k), int(n)
    if n < 1:
        raise InvalidObservedError(f"n must be at least 1, got {n}")
    if not 0 <= k <= n:
        raise InvalidObservedError(f"k must satisfy 0 <= k <= n, got k={k}, n={n}")
    return k, n


def check_test_rates(a: float, b: float) -> None:
    """Person-level false positive rate a and sensitivity b, 0 <= a < b <= 1."""
    if not (0 <= a < 1 and 0 < b <= 1):
        raise InvalidConfigError(
            f"Test rates must satisfy 0 <= a < 1 and 0 < b <= 1, got a={a}, b={b}"
        )
    if a >= b:
        raise InvalidConfigError(
            "False positive rate must be below sensitivity, "
            f"got a={a}, b={b}"
        )


def check_probability(p: float, name: str = "p") -> None:
    """Require p strictly inside (0, 1)."""
    if not 0 < p < 1:
        raise InvalidConfigError(f"{name} must be in (0, 1), got {p}")


def check_unit_interval(x: ArrayLike, name: str = "x") -> NDArray:
    x = np.asarray(x, dtype=float)
    if np.any(np.isnan(x)) or np.any((x < 0) | (x > 1)):
        raise InvalidConfigError(f"{name} must lie in [0, 1]")
    return x


def check_pvalues(pvalues: ArrayLike) -> NDArray:
    """Return person-level p-values as a validated 1d float array."""
    try:
        pvalues = column_or_1d(np.asarray(pvalues, dtype=float))
    except ValueError as err:
        raise InvalidObservedError(
            f"p-values must be a 1d sequence of numbers: {err}"
        ) from err
    if pvalues.size == 0:
        raise InvalidObservedError("No person-level p-values supplied")
    if not np.all(np.isfinite(pvalues)):
        raise InvalidObservedError("p-values must be finite")
    if np.any((pvalues < 0) | (pvalues > 1)):
        raise InvalidObservedError("p-values must lie in [0, 1]")
    return pvalues
