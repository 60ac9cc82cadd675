"""Implements frequentist and Bayesian population prevalence inference."""

from prevalence.stats.stats import *
from prevalence.stats.bayesian import (
    HpdiRegion,
    bayesian_prevalence_bound,
    bayesian_prevalence_eti,
    bayesian_prevalence_hpdi,
    bayesian_prevalence_map,
    bayesian_prevalence_posterior,
    bayesian_prevalence_posterior_log_odds,
    bayesian_prevalence_posterior_prob,
    hpdi_region,
    to_prevalence,
    to_test_rate,
)
from prevalence.stats.frequentist import (
    FrequentistResult,
    ObservedCounts,
    PrevalenceTestConfig,
    frequentist_prevalence_test,
    observed_counts,
    simple_prevalence_interval,
    tail_probability,
)
