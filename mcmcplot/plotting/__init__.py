# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Chart builders for MCMC diagnostics and posterior predictive checks.

This subpackage holds every plotting function of mcmcplot. Each function
validates its inputs, reshapes them into tidy form and assembles HoloViews
elements into a composed chart that can be displayed in a notebook, saved with
``hv.save`` or restyled with ``.opts``.

Function Families:

    - ``mcmc_*``: plots of MCMC draws and sampler diagnostics
    - ``ppc_*``: posterior predictive checks

Use :py:func:`available_mcmc` and :py:func:`available_ppc` to list the
functions of each family.
"""

import re

from typing import Optional

from .mcmc_distributions import (
    mcmc_dens,
    mcmc_dens_overlay,
    mcmc_hist,
    mcmc_hist_by_chain,
    mcmc_violin,
)
from .mcmc_nuts import (
    mcmc_nuts_acceptance,
    mcmc_nuts_divergence,
    mcmc_nuts_energy,
    mcmc_nuts_stepsize,
    mcmc_nuts_treedepth,
)
from .mcmc_traces import mcmc_trace, mcmc_trace_highlight
from .ppc_test_statistics import (
    ppc_group_data,
    ppc_stat,
    ppc_stat_2d,
    ppc_stat_freqpoly_grouped,
    ppc_stat_grouped,
)


def _available(prefix: str, pattern: Optional[str]) -> list[str]:
    """List the plotting functions whose names start with ``prefix``."""
    names = sorted(
        name
        for name, obj in globals().items()
        if name.startswith(prefix) and callable(obj)
    )
    if pattern is not None:
        names = [name for name in names if re.search(pattern, name)]
    return names


def available_mcmc(pattern: Optional[str] = None) -> list[str]:
    """List the names of the MCMC plotting functions.

    :param pattern: Regular expression the names must match (Default: None)
    :type pattern: Optional[str]

    :returns: Sorted function names
    :rtype: list[str]

    Example:
        >>> available_mcmc("nuts")
        ['mcmc_nuts_acceptance', 'mcmc_nuts_divergence', 'mcmc_nuts_energy',
         'mcmc_nuts_stepsize', 'mcmc_nuts_treedepth']
    """
    return _available("mcmc_", pattern)


def available_ppc(pattern: Optional[str] = None) -> list[str]:
    """List the names of the posterior predictive check plotting functions.

    Data-preparation helpers such as :py:func:`ppc_group_data` are not
    included.

    :param pattern: Regular expression the names must match (Default: None)
    :type pattern: Optional[str]

    :returns: Sorted function names
    :rtype: list[str]
    """
    return [name for name in _available("ppc_", pattern) if not name.endswith("_data")]
