# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
mcmcplot: Plotting for MCMC diagnostics and posterior predictive checks.

mcmcplot turns posterior draws, replicated datasets and sampler diagnostics
into composed HoloViews charts. Every plotting function validates its inputs,
reshapes them into tidy form, chooses a layout and returns a HoloViews object
that can be displayed in a notebook, saved to file or restyled with ``.opts``.

Key Features:
    - Histograms, densities and violins of MCMC draws, merged or by chain
    - Trace plots with warmup shading and chain highlighting
    - Posterior predictive checks based on test statistics
    - NUTS diagnostics: acceptance, divergences, step size, tree depth, energy
    - Global color schemes shared by every chart
    - Accepts NumPy arrays, PyTorch tensors, pandas DataFrames, xarray
      Datasets and ArviZ InferenceData objects

Global Variables:
    __version__: Package version string

Example:
    >>> import mcmcplot
    >>> draws = mcmcplot.example_mcmc_draws()
    >>> mcmcplot.color_scheme_set("red")
    >>> mcmcplot.mcmc_trace(draws, pars=["alpha", "sigma"])
"""

from typeguard import install_import_hook

# Define the version
__version__ = "0.1.0"

# Set up type checking
install_import_hook("mcmcplot")

# Import public API
# pylint: disable=wrong-import-position
from mcmcplot.colors import (
    chain_colors,
    color_scheme_get,
    color_scheme_set,
    color_scheme_view,
    get_color,
)
from mcmcplot.draws import (
    as_mcmc_draws,
    log_posterior,
    MCMCDraws,
    nuts_params,
    prepare_mcmc_array,
)
from mcmcplot.example_data import (
    example_group_data,
    example_log_posterior,
    example_mcmc_draws,
    example_nuts_params,
    example_y_data,
    example_yrep_draws,
)
from mcmcplot.plotting import (
    available_mcmc,
    available_ppc,
    mcmc_dens,
    mcmc_dens_overlay,
    mcmc_hist,
    mcmc_hist_by_chain,
    mcmc_nuts_acceptance,
    mcmc_nuts_divergence,
    mcmc_nuts_energy,
    mcmc_nuts_stepsize,
    mcmc_nuts_treedepth,
    mcmc_trace,
    mcmc_trace_highlight,
    mcmc_violin,
    ppc_group_data,
    ppc_stat,
    ppc_stat_2d,
    ppc_stat_freqpoly_grouped,
    ppc_stat_grouped,
)
