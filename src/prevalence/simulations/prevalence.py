import logging
import numpy as np
import pandas as pd

from collections import defaultdict
from multiprocessing import Pool
from statsmodels.distributions.empirical_distribution import ECDF

from prevalence.stats import (
    bayesian_prevalence_posterior_prob,
    false_negatives,
    false_positives,
    frequentist_prevalence_test,
    true_negatives,
    true_positives,
)
from prevalence.stats.validation import check_test_rates


logger = logging.getLogger(__file__)


class PrevalenceSimulation:
    """Manage simulations of the prevalence posterior.

    Populations are drawn at prevalence values on a uniform grid over
    [0, 1], mimicking the uniform prior. For each outcome (n, k) the
    empirical distribution of the prevalence values that produced it
    approximates the posterior of prevalence given (n, k).

    Parameters
    ----------
    alpha_ind : float
        False positive rate of the simulated person-level tests.
    beta_ind : float
        Sensitivity of the simulated person-level tests.
    samples_per_trial : Optional[int]
        Number of individuals in each simulated study. Default 50.
    num_grid_points : Optional[int]
        Number of prevalence values in the grid. Default 100.
    seed : Optional[int]
        Seed for the random state.
    """

    def __init__(
        self,
        alpha_ind,
        beta_ind,
        samples_per_trial=50,
        num_grid_points=100,
        seed=None,
    ):
        check_test_rates(alpha_ind, beta_ind)
        self.alpha_ind = alpha_ind
        self.beta_ind = beta_ind
        self.samples_per_trial = samples_per_trial
        self.num_grid_points = num_grid_points
        self.random_state = np.random.RandomState(seed)
        self.info_dict = {
            "alpha_ind": alpha_ind,
            "beta_ind": beta_ind,
            "samples_per_trial": samples_per_trial,
            "num_grid_points": num_grid_points,
        }
        self.aggregate_results = {}
        self.confusion = np.zeros(4, dtype=int)

    def run(self, n_trials=1000, n_jobs=1):
        points = (
            (
                gamma,
                self.alpha_ind,
                self.beta_ind,
                self.samples_per_trial,
                np.random.RandomState(self.random_state.randint(10 ** 6)),
            )
            for _ in range(n_trials)
            for gamma in np.linspace(0, 1, self.num_grid_points)
        )
        logger.info(
            f"Running {n_trials * self.num_grid_points} simulated studies"
        )
        aggregate_results = defaultdict(list)
        confusion = np.zeros(4, dtype=int)
        if n_jobs == 1:
            results = map(run_trial_for_gamma, points)
            for n, k, gamma, *counts in results:
                aggregate_results[(n, k)].append(gamma)
                confusion += counts
        else:
            with Pool(n_jobs) as pool:
                results = pool.imap(run_trial_for_gamma, points, chunksize=100)
                for n, k, gamma, *counts in results:
                    aggregate_results[(n, k)].append(gamma)
                    confusion += counts
        self.aggregate_results = {
            (n, k): ECDF(gamma_list)
            for (n, k), gamma_list in aggregate_results.items()
        }
        self.confusion = confusion
        self.info_dict["n_trials"] = n_trials

    def empirical_rates(self):
        """Realized person-level (alpha, beta) over all simulated people."""
        tp, fn, fp, tn = self.confusion
        alpha = fp / (fp + tn) if fp + tn else 0.0
        beta = tp / (tp + fn) if tp + fn else 0.0
        return alpha, beta

    def posterior_cdf_error(self, k, num_grid_points=100):
        """Mean and max absolute error of the posterior cdf for outcome k.

        Returns None if outcome k never occurred in the simulation.
        """
        key = (self.samples_per_trial, k)
        if key not in self.aggregate_results:
            return None
        x = np.linspace(0, 1, num_grid_points)
        simulated_cdf = self.aggregate_results[key](x)
        calculated_cdf = 1 - bayesian_prevalence_posterior_prob(
            x, k, self.samples_per_trial, self.alpha_ind, self.beta_ind
        )
        residuals = np.abs(simulated_cdf - calculated_cdf)
        return np.sum(residuals) / num_grid_points, np.max(residuals)

    def get_results_dict(self, num_grid_points=100):
        x = np.linspace(0, 1, num_grid_points)
        return {
            "results": {
                f"{n}:{k}": ecdf(x).tolist()
                for (n, k), ecdf in self.aggregate_results.items()
            },
            "info": self.info_dict,
        }


def run_trial_for_gamma(args):
    gamma, alpha_ind, beta_ind, samples_per_trial, random_state = args
    ground_truth = random_state.binomial(1, gamma, size=samples_per_trial)
    # Person-level test results for people with and without the effect.
    pos = random_state.binomial(1, beta_ind, size=samples_per_trial)
    neg = random_state.binomial(1, alpha_ind, size=samples_per_trial)
    test_results = np.where(ground_truth == 1, pos, neg)
    n, k = samples_per_trial, int(np.sum(test_results))
    return (
        n,
        k,
        gamma,
        true_positives(ground_truth, test_results),
        false_negatives(ground_truth, test_results),
        false_positives(ground_truth, test_results),
        true_negatives(ground_truth, test_results),
    )


def simulate_power(
        gamma,
        n,
        alpha_ind=0.05,
        beta_ind=1.0,
        alpha_group=0.05,
        gamma_0=0.5,
        n_trials=1000,
        seed=None,
):
    """Fraction of simulated studies in which the prevalence test rejects.

    Each study tests n people drawn from a population with prevalence
    gamma. The null gamma <= gamma_0 is tested at level alpha_group.
    """
    check_test_rates(alpha_ind, beta_ind)
    random_state = np.random.RandomState(seed)
    theta = gamma * beta_ind + (1 - gamma) * alpha_ind
    positives = random_state.binomial(n, theta, size=n_trials)
    rejected = {}
    for k in np.unique(positives):
        rejected[k] = frequentist_prevalence_test(
            (int(k), n),
            alpha_ind=alpha_ind,
            beta_ind=beta_ind,
            alpha_group=alpha_group,
            gamma_0=gamma_0,
        ).rejected
    return float(np.mean([rejected[k] for k in positives]))


def power_curve(
        gammas,
        n,
        alpha_ind=0.05,
        beta_ind=1.0,
        alpha_group=0.05,
        gamma_0=0.5,
        n_trials=1000,
        seed=None,
):
    random_state = np.random.RandomState(seed)
    rows = []
    for gamma in gammas:
        power = simulate_power(
            gamma,
            n,
            alpha_ind=alpha_ind,
            beta_ind=beta_ind,
            alpha_group=alpha_group,
            gamma_0=gamma_0,
            n_trials=n_trials,
            seed=random_state.randint(10 ** 6),
        )
        rows.append([gamma, n, gamma_0, power])
    return pd.DataFrame(rows, columns=["gamma", "n", "gamma_0", "power"])
