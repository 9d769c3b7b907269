import numpy as np
import pytest

import mcmcplot

from mcmcplot.example_data import example_parameter_names
from mcmcplot.exceptions import ValidationError


def test_example_draws_shapes():
    draws = mcmcplot.example_mcmc_draws(chains=2, params=6)
    assert draws.values.shape == (250, 2, 6)
    assert draws.parameters == [
        "alpha",
        "sigma",
        "beta[1]",
        "beta[2]",
        "beta[3]",
        "beta[4]",
    ]

    # sigma is a scale
    assert (draws.values[..., 1] > 0).all()


def test_example_draws_are_reproducible():
    first = mcmcplot.example_mcmc_draws()
    second = mcmcplot.example_mcmc_draws()
    np.testing.assert_array_equal(first.values, second.values)

    other = mcmcplot.example_mcmc_draws(seed=7)
    assert not np.array_equal(first.values, other.values)


def test_example_draws_ranges():
    with pytest.raises(ValidationError, match="'chains'"):
        mcmcplot.example_mcmc_draws(chains=5)
    with pytest.raises(ValidationError, match="'params'"):
        mcmcplot.example_mcmc_draws(params=0)


def test_example_parameter_names():
    assert example_parameter_names(1) == ["alpha"]
    assert example_parameter_names(3) == ["alpha", "sigma", "beta[1]"]


def test_example_ppc_data():
    y = mcmcplot.example_y_data()
    yrep = mcmcplot.example_yrep_draws()
    group = mcmcplot.example_group_data()

    assert y.shape == (434,)
    assert (y >= 0).all()
    assert yrep.shape == (500, 434)
    assert group.shape == (434,)
    assert sorted(set(group)) == ["A", "B", "C", "D"]


def test_example_nuts_data():
    nuts = mcmcplot.example_nuts_params(chains=2)
    lp = mcmcplot.example_log_posterior(chains=2)

    assert nuts.columns.tolist() == ["Chain", "Iteration", "Parameter", "Value"]
    assert len(nuts) == 6 * 2 * 250
    assert lp.columns.tolist() == ["Chain", "Iteration", "Value"]
    assert len(lp) == 2 * 250

    divergent = nuts[nuts["Parameter"] == "divergent__"]
    assert divergent.groupby("Chain")["Value"].sum().min() >= 1

    # Step size is constant within a chain
    stepsize = nuts[nuts["Parameter"] == "stepsize__"]
    assert (stepsize.groupby("Chain")["Value"].nunique() == 1).all()


def test_available_mcmc():
    names = mcmcplot.available_mcmc()
    assert names == sorted(names)
    assert "mcmc_trace" in names
    assert "mcmc_nuts_energy" in names
    assert all(name.startswith("mcmc_") for name in names)

    assert mcmcplot.available_mcmc("nuts") == [
        "mcmc_nuts_acceptance",
        "mcmc_nuts_divergence",
        "mcmc_nuts_energy",
        "mcmc_nuts_stepsize",
        "mcmc_nuts_treedepth",
    ]
    assert mcmcplot.available_mcmc("^nothing") == []


def test_available_ppc():
    assert mcmcplot.available_ppc() == [
        "ppc_stat",
        "ppc_stat_2d",
        "ppc_stat_freqpoly_grouped",
        "ppc_stat_grouped",
    ]
    assert mcmcplot.available_ppc("grouped$") == [
        "ppc_stat_freqpoly_grouped",
        "ppc_stat_grouped",
    ]
