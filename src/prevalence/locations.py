"""Stores locations of resources used by prevalence."""
import os
from appdirs import user_data_dir

here = os.path.dirname(os.path.realpath(__file__))

PREVALENCE_HOME = os.environ.get("PREVALENCE_HOME")
if PREVALENCE_HOME is None:
    PREVALENCE_HOME = os.path.join(user_data_dir(), "prevalence")
SIMULATION_RESULTS_PATH = os.path.join(PREVALENCE_HOME, "simulations")
