"""Exceptions raised by prevalence."""


class PrevalenceError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfigError(PrevalenceError, ValueError):
    """Test rates, levels or grid settings are out of range or inconsistent."""


class InvalidObservedError(PrevalenceError, ValueError):
    """Observed counts or person-level p-values are unusable."""


class NonConvergenceError(PrevalenceError, RuntimeError):
    """A numerical solver failed to converge."""
