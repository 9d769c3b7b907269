# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Deterministic example datasets for trying out the plotting functions.

The datasets mimic the output of fitting a small linear regression with a
NUTS sampler: posterior draws of an intercept ``alpha``, a noise scale
``sigma`` and coefficients ``beta[1]``, ``beta[2]``, ..., the matching sampler
diagnostics and log posterior, and observed and replicated outcomes with a
grouping vector.

All functions draw from a NumPy generator seeded with ``seed`` so that repeated
calls return identical data.

Example:
    >>> import mcmcplot
    >>> draws = mcmcplot.example_mcmc_draws(chains=4, params=4)
    >>> draws.values.shape
    (250, 4, 4)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import pandas as pd

from mcmcplot.defaults import DEFAULT_EXAMPLE_SEED
from mcmcplot.draws import MCMCDraws
from mcmcplot.exceptions import ValidationError

if TYPE_CHECKING:
    from mcmcplot import custom_types

_N_ITERATIONS = 250
_N_OBSERVATIONS = 434
_N_REPLICATES = 500
_GROUPS = ("A", "B", "C", "D")


def _rng(seed: "custom_types.Integer") -> np.random.Generator:
    return np.random.default_rng(seed)


def example_parameter_names(params: "custom_types.Integer" = 4) -> list[str]:
    """Get the names of the example parameters: alpha, sigma, beta[1], ..."""
    names = ["alpha", "sigma"] + [f"beta[{i}]" for i in range(1, params - 1)]
    return names[:params]


def example_mcmc_draws(
    chains: "custom_types.Integer" = 4,
    params: "custom_types.Integer" = 4,
    seed: "custom_types.Integer" = DEFAULT_EXAMPLE_SEED,
) -> MCMCDraws:
    """Simulate posterior draws from a well-mixed sampler.

    :param chains: Number of chains, between 1 and 4 (Default: 4)
    :type chains: custom_types.Integer
    :param params: Number of parameters, between 1 and 6 (Default: 4)
    :type params: custom_types.Integer
    :param seed: Seed of the random number generator (Default: 1025)
    :type seed: custom_types.Integer

    :returns: Draws with shape (250, chains, params)
    :rtype: MCMCDraws

    :raises ValidationError: If ``chains`` or ``params`` is out of range
    """
    if not 1 <= chains <= 4:
        raise ValidationError(f"'chains' must be between 1 and 4, got {chains}.")
    if not 1 <= params <= 6:
        raise ValidationError(f"'params' must be between 1 and 6, got {params}.")

    rng = _rng(seed)
    names = example_parameter_names(params)

    # Posterior location and scale of each parameter
    locations = np.array([-1.0, 0.0, 0.5, -0.3, 1.2, 0.0])[:params]
    scales = np.array([1.2, 0.2, 0.3, 0.25, 0.4, 0.15])[:params]

    # Autocorrelated AR(1) chains around the posterior
    noise = rng.standard_normal((_N_ITERATIONS, 4, params))
    draws = np.empty_like(noise)
    draws[0] = noise[0]
    for t in range(1, _N_ITERATIONS):
        draws[t] = 0.3 * draws[t - 1] + np.sqrt(1 - 0.3**2) * noise[t]
    draws = locations + scales * draws

    # sigma is positive
    if params > 1:
        draws[..., 1] = np.exp(draws[..., 1])

    return MCMCDraws(draws[:, :chains], names)


def example_y_data(
    seed: "custom_types.Integer" = DEFAULT_EXAMPLE_SEED,
) -> npt.NDArray[np.floating]:
    """Simulate an observed outcome vector of 434 non-negative values."""
    return np.round(_rng(seed).gamma(shape=8.0, scale=10.0, size=_N_OBSERVATIONS), 1)


def example_yrep_draws(
    seed: "custom_types.Integer" = DEFAULT_EXAMPLE_SEED,
) -> npt.NDArray[np.floating]:
    """Simulate 500 replicated datasets for :py:func:`example_y_data`.

    :returns: Array with shape (500, 434)
    :rtype: npt.NDArray[np.floating]
    """
    rng = _rng(seed + 1)
    means = rng.normal(80.0, 2.0, size=(_N_REPLICATES, 1))
    return rng.normal(means, 28.0, size=(_N_REPLICATES, _N_OBSERVATIONS))


def example_group_data() -> npt.NDArray:
    """Get a grouping vector with four levels ("A" to "D") for the example data."""
    return np.array(_GROUPS)[np.arange(_N_OBSERVATIONS) % len(_GROUPS)]


def example_nuts_params(
    chains: "custom_types.Integer" = 4,
    seed: "custom_types.Integer" = DEFAULT_EXAMPLE_SEED,
) -> pd.DataFrame:
    """Simulate NUTS sampler diagnostics in tidy form.

    :param chains: Number of chains (Default: 4)
    :type chains: custom_types.Integer
    :param seed: Seed of the random number generator (Default: 1025)
    :type seed: custom_types.Integer

    :returns: DataFrame with columns "Chain", "Iteration", "Parameter" and
        "Value", holding every NUTS parameter of 250 iterations per chain. A
        handful of transitions are divergent.
    :rtype: pd.DataFrame
    """
    rng = _rng(seed + 2)
    shape = (chains, _N_ITERATIONS)

    treedepth = rng.choice([2, 3, 4], p=[0.2, 0.6, 0.2], size=shape)
    energy = np.cumsum(rng.normal(0.0, 0.5, size=shape), axis=1)

    # Every chain has at least one divergent transition
    divergent = (rng.uniform(size=shape) < 0.01).astype(int)
    divergent[:, -1] = 1

    parameters = {
        "accept_stat__": rng.beta(8.0, 1.5, size=shape),
        "stepsize__": np.repeat(
            rng.uniform(0.3, 0.6, size=(chains, 1)), _N_ITERATIONS, axis=1
        ),
        "treedepth__": treedepth,
        "n_leapfrog__": 2**treedepth - 1,
        "divergent__": divergent,
        "energy__": 20.0 + energy + rng.normal(0.0, 2.0, size=shape),
    }

    return pd.concat(
        [
            pd.DataFrame(
                {
                    "Chain": np.repeat(np.arange(1, chains + 1), _N_ITERATIONS),
                    "Iteration": np.tile(np.arange(1, _N_ITERATIONS + 1), chains),
                    "Parameter": name,
                    "Value": values.ravel().astype(float),
                }
            )
            for name, values in parameters.items()
        ],
        ignore_index=True,
    )


def example_log_posterior(
    chains: "custom_types.Integer" = 4,
    seed: "custom_types.Integer" = DEFAULT_EXAMPLE_SEED,
) -> pd.DataFrame:
    """Simulate the log posterior matching :py:func:`example_nuts_params`.

    :returns: DataFrame with columns "Chain", "Iteration" and "Value"
    :rtype: pd.DataFrame
    """
    rng = _rng(seed + 3)
    return pd.DataFrame(
        {
            "Chain": np.repeat(np.arange(1, chains + 1), _N_ITERATIONS),
            "Iteration": np.tile(np.arange(1, _N_ITERATIONS + 1), chains),
            "Value": -20.0 - rng.gamma(2.0, 1.0, size=chains * _N_ITERATIONS),
        }
    )
