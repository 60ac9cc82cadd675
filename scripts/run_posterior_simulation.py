import os
import json
import click
from prevalence.locations import SIMULATION_RESULTS_PATH
from prevalence.simulations.prevalence import PrevalenceSimulation


@click.command()
@click.option('--n_jobs', default=1, type=int, show_default=True)
@click.option('--n_trials', default=10000, type=int, show_default=True)
def main(n_jobs, n_trials):
    simulations = [
        PrevalenceSimulation(
            0.05, 1.0,
            samples_per_trial=45,
            num_grid_points=200,
            seed=561,
        ),
        PrevalenceSimulation(
            0.05, 0.8,
            samples_per_trial=20,
            num_grid_points=200,
            seed=1105,
        ),
        PrevalenceSimulation(
            0.01, 0.6,
            samples_per_trial=100,
            num_grid_points=200,
            seed=1729,
        ),
    ]
    os.makedirs(SIMULATION_RESULTS_PATH, exist_ok=True)
    for i, simulation in enumerate(simulations):
        simulation.run(n_trials=n_trials, n_jobs=n_jobs)
        with open(os.path.join(SIMULATION_RESULTS_PATH,
                               f'prevalence_posterior_simulation{i}.json'),
                  'w') as f:
            json.dump(simulation.get_results_dict(), f, indent=True)


if __name__ == '__main__':
    main()
