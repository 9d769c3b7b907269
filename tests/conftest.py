"""mcmcplot test configuration."""

import pytest

import numpy as np
import pandas as pd

import mcmcplot


@pytest.fixture(scope="function", autouse=True)
def reset_color_scheme():
    """Restore the default color scheme after every test."""
    previous = mcmcplot.color_scheme_set("blue")
    yield
    mcmcplot.color_scheme_set(previous)


@pytest.fixture(scope="session")
def draws():
    """Four chains of alpha, sigma, beta[1] and beta[2]."""
    return mcmcplot.example_mcmc_draws(chains=4, params=4)


@pytest.fixture(scope="session")
def draws_array(draws):
    """The example draws as a plain (iterations, chains, parameters) array."""
    return draws.values


@pytest.fixture(scope="session")
def draws_single_chain():
    """One chain of alpha, sigma and beta[1]."""
    return mcmcplot.example_mcmc_draws(chains=1, params=3)


@pytest.fixture(scope="session")
def draws_frame(draws):
    """The example draws as a DataFrame with a chain column."""
    frame = pd.concat(
        [
            pd.DataFrame(draws.values[:, c], columns=draws.parameters).assign(chain=c + 1)
            for c in range(draws.n_chains)
        ],
        ignore_index=True,
    )
    return frame


@pytest.fixture(scope="session")
def y():
    return mcmcplot.example_y_data()


@pytest.fixture(scope="session")
def yrep():
    # A subset of replicates keeps the tests fast
    return mcmcplot.example_yrep_draws()[:50]


@pytest.fixture(scope="session")
def group():
    return mcmcplot.example_group_data()


@pytest.fixture(scope="session")
def nuts():
    return mcmcplot.example_nuts_params(chains=3)


@pytest.fixture(scope="session")
def lp():
    return mcmcplot.example_log_posterior(chains=3)


@pytest.fixture(scope="session")
def rng():
    return np.random.default_rng(37208)
