import os
import logging
import click
import numpy as np

from prevalence.locations import SIMULATION_RESULTS_PATH
from prevalence.simulations.prevalence import power_curve


@click.command()
@click.option('--n', 'n', default=45, type=int, show_default=True)
@click.option('--alpha_ind', default=0.05, type=float, show_default=True)
@click.option('--beta_ind', default=1.0, type=float, show_default=True)
@click.option('--alpha_group', default=0.05, type=float, show_default=True)
@click.option('--gamma_0', default=0.5, type=float, show_default=True)
@click.option('--num_gammas', default=21, type=int, show_default=True)
@click.option('--n_trials', default=2000, type=int, show_default=True)
@click.option('--seed', default=561, type=int, show_default=True)
@click.option('--outpath', default=None, type=click.Path())
def main(
        n, alpha_ind, beta_ind, alpha_group, gamma_0, num_gammas, n_trials,
        seed, outpath,
):
    logging.basicConfig(level=logging.INFO)
    if outpath is None:
        os.makedirs(SIMULATION_RESULTS_PATH, exist_ok=True)
        outpath = os.path.join(
            SIMULATION_RESULTS_PATH, f'power_n{n}_gamma0_{gamma_0}.csv'
        )
    df = power_curve(
        np.linspace(0, 1, num_gammas),
        n,
        alpha_ind=alpha_ind,
        beta_ind=beta_ind,
        alpha_group=alpha_group,
        gamma_0=gamma_0,
        n_trials=n_trials,
        seed=seed,
    )
    df.to_csv(outpath, index=False)
    click.echo(df.to_string(index=False))


if __name__ == '__main__':
    main()
