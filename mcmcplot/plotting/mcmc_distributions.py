# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Histograms, densities and violins of MCMC draws.

Every function in this module returns an ``hv.NdLayout`` keyed by
"Parameter" (or by "Chain" and "Parameter" for :py:func:`mcmc_hist_by_chain`),
with one panel per selected parameter. Chains are merged unless the function
name says otherwise.

Shared Arguments:
    - x: MCMC draws in any form accepted by
      :py:func:`mcmcplot.draws.as_mcmc_draws`
    - pars: Names of parameters to plot
    - regex_pars: Regular expressions selecting further parameters
    - transformations: Transformations applied to the selected parameters
    - facet_args: Faceting options ("ncols" and "scales")

Example:
    >>> draws = mcmcplot.example_mcmc_draws()
    >>> layout = mcmc_hist(draws, pars=["alpha"], transformations={"sigma": "log"})
"""

from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING, Union

import holoviews as hv
import numpy as np
import numpy.typing as npt
import pandas as pd

from mcmcplot.colors import chain_colors, get_color
from mcmcplot.defaults import (
    DEFAULT_FACET_SCALES,
    DEFAULT_N_BINS,
    DEFAULT_VIOLIN_PROBS,
)
from mcmcplot.draws import MCMCDraws, prepare_mcmc_array
from mcmcplot.plotting.plotting import (
    bin_edges,
    data_range,
    facet,
    finite,
    histogram,
    theme,
)
from mcmcplot.validation import validate_multiple_chains, validate_probs

if TYPE_CHECKING:
    from mcmcplot import custom_types


def _histogram_panel(
    values: np.ndarray,
    binwidth: Optional["custom_types.Float"],
    bins: "custom_types.Integer",
) -> hv.Histogram:
    """Build one themed histogram panel."""
    return theme(
        histogram(values, binwidth=binwidth, bins=bins).opts(
            color=get_color("m"), line_color=get_color("mh")
        ),
        ylim=(0, None),
    )


def _max_frequency(panels: dict) -> float:
    """Get the tallest bar over all histogram panels."""
    return max(float(np.max(p.dimension_values(1), initial=0)) for p in panels.values())


def _kde_kwargs(trim: bool) -> dict:
    """Get the hvplot kde arguments implementing the ``trim`` flag."""
    return {"cut": 0} if trim else {}


def mcmc_hist(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    facet_args: "custom_types.FacetArgs" = None,
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
) -> hv.NdLayout:
    """Plot a density histogram of each parameter with all chains merged.

    :param x: MCMC draws
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to plot (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting parameters (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply (Default: None)
    :type transformations: custom_types.TransformationsType
    :param facet_args: Faceting options (Default: None)
    :type facet_args: custom_types.FacetArgs
    :param binwidth: Width of the histogram bins. Overrides ``bins``.
        (Default: None)
    :type binwidth: Optional[custom_types.Float]
    :param bins: Number of bins (Default: 30)
    :type bins: custom_types.Integer

    :returns: Layout of histograms keyed by "Parameter"
    :rtype: hv.NdLayout

    Example:
        >>> mcmc_hist(draws, regex_pars="beta", binwidth=0.1)
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)
    panels = {
        parameter: _histogram_panel(draws.values[..., i], binwidth, bins)
        for i, parameter in enumerate(draws.parameters)
    }

    return facet(
        panels,
        ["Parameter"],
        facet_args=facet_args,
        default_scales=DEFAULT_FACET_SCALES,
        x_dim="Value",
        x_range=data_range(draws.values),
        y_dim="Density",
        y_range=(0, _max_frequency(panels)),
    )


def mcmc_dens(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    facet_args: "custom_types.FacetArgs" = None,
    trim: bool = False,
) -> hv.NdLayout:
    """Plot a kernel density estimate of each parameter with all chains merged.

    :param x: MCMC draws
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to plot (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting parameters (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply (Default: None)
    :type transformations: custom_types.TransformationsType
    :param facet_args: Faceting options (Default: None)
    :type facet_args: custom_types.FacetArgs
    :param trim: Whether to cut the density estimate at the range of the
        draws (Default: False)
    :type trim: bool

    :returns: Layout of densities keyed by "Parameter"
    :rtype: hv.NdLayout
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)

    # Densities are estimated by hvplot from a single-column frame
    panels = {}
    for i, parameter in enumerate(draws.parameters):
        frame = pd.DataFrame({"Value": finite(draws.values[..., i])})
        panels[parameter] = theme(
            frame.hvplot.kde(
                y="Value",
                color=get_color("m"),
                line_color=get_color("mh"),
                **_kde_kwargs(trim),
            ),
            ylim=(0, None),
        )

    return facet(
        panels,
        ["Parameter"],
        facet_args=facet_args,
        default_scales=DEFAULT_FACET_SCALES,
        x_dim="Value",
        x_range=data_range(draws.values),
    )


def mcmc_hist_by_chain(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    facet_args: "custom_types.FacetArgs" = None,
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
) -> hv.NdLayout:
    """Plot a histogram of each parameter separately for each chain.

    Panels are arranged in a grid with one row per chain and one column per
    parameter, unless ``facet_args`` sets "ncols".

    :param x: MCMC draws with more than one chain
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to plot (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting parameters (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply (Default: None)
    :type transformations: custom_types.TransformationsType
    :param facet_args: Faceting options (Default: None)
    :type facet_args: custom_types.FacetArgs
    :param binwidth: Width of the histogram bins (Default: None)
    :type binwidth: Optional[custom_types.Float]
    :param bins: Number of bins (Default: 30)
    :type bins: custom_types.Integer

    :returns: Layout of histograms keyed by ("Chain", "Parameter")
    :rtype: hv.NdLayout

    :raises ChainError: If ``x`` contains a single chain
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)
    validate_multiple_chains(draws.n_chains, "mcmc_hist_by_chain")

    # All chains of a parameter share bins so that they can be compared
    edges = [
        bin_edges(finite(draws.values[..., i]), binwidth=binwidth, bins=bins)
        for i in range(draws.n_parameters)
    ]

    # Rows are chains, columns are parameters
    panels = {}
    for chain in range(draws.n_chains):
        for i, parameter in enumerate(draws.parameters):
            panels[(chain + 1, parameter)] = theme(
                histogram(draws.values[:, chain, i], edges=edges[i]).opts(
                    color=get_color("m"), line_color=get_color("mh")
                ),
                ylim=(0, None),
            )

    return facet(
        panels,
        ["Chain", "Parameter"],
        facet_args=facet_args,
        default_scales=DEFAULT_FACET_SCALES,
        ncols=draws.n_parameters,
        x_dim="Value",
        x_range=data_range(draws.values),
        y_dim="Density",
        y_range=(0, _max_frequency(panels)),
    )


def _by_chain_frame(draws: MCMCDraws, index: int) -> pd.DataFrame:
    """Build a Chain/Value frame for one parameter."""
    frame = pd.DataFrame(
        {
            "Chain": np.repeat(np.arange(1, draws.n_chains + 1), draws.n_iterations),
            "Value": draws.values[..., index].T.ravel(),
        }
    )
    return frame[np.isfinite(frame["Value"])]


def mcmc_dens_overlay(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    facet_args: "custom_types.FacetArgs" = None,
    trim: bool = False,
) -> hv.NdLayout:
    """Overlay one kernel density line per chain for each parameter.

    :param x: MCMC draws with more than one chain
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to plot (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting parameters (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply (Default: None)
    :type transformations: custom_types.TransformationsType
    :param facet_args: Faceting options (Default: None)
    :type facet_args: custom_types.FacetArgs
    :param trim: Whether to cut each density at the range of its chain
        (Default: False)
    :type trim: bool

    :returns: Layout keyed by "Parameter" whose panels are ``hv.NdOverlay``
        objects keyed by "Chain"
    :rtype: hv.NdLayout

    :raises ChainError: If ``x`` contains a single chain
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)
    validate_multiple_chains(draws.n_chains, "mcmc_dens_overlay")
    colors = chain_colors(draws.n_chains)

    panels = {}
    for i, parameter in enumerate(draws.parameters):
        frame = _by_chain_frame(draws, i)
        lines = {
            chain: chain_frame.hvplot.kde(
                y="Value",
                color=colors[chain - 1],
                fill_alpha=0,
                line_color=colors[chain - 1],
                **_kde_kwargs(trim),
            )
            for chain, chain_frame in frame.groupby("Chain", sort=True)
        }
        panels[parameter] = theme(
            hv.NdOverlay(lines, kdims="Chain"), ylim=(0, None), legend_position="right"
        )

    return facet(
        panels,
        ["Parameter"],
        facet_args=facet_args,
        default_scales=DEFAULT_FACET_SCALES,
        x_dim="Value",
        x_range=data_range(draws.values),
    )


def mcmc_violin(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    facet_args: "custom_types.FacetArgs" = None,
    probs: npt.ArrayLike = DEFAULT_VIOLIN_PROBS,
) -> hv.NdLayout:
    """Draw one violin per chain for each parameter.

    Horizontal marks inside each violin show the quantiles ``probs`` of that
    chain.

    :param x: MCMC draws with more than one chain
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to plot (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting parameters (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply (Default: None)
    :type transformations: custom_types.TransformationsType
    :param facet_args: Faceting options (Default: None)
    :type facet_args: custom_types.FacetArgs
    :param probs: Quantiles to mark (Default: (0.1, 0.5, 0.9))
    :type probs: npt.ArrayLike

    :returns: Layout keyed by "Parameter" whose panels overlay an ``hv.Violin``
        and an ``hv.Scatter`` of quantile marks
    :rtype: hv.NdLayout

    :raises ChainError: If ``x`` contains a single chain
    :raises ValidationError: If ``probs`` are not in [0, 1]
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)
    validate_multiple_chains(draws.n_chains, "mcmc_violin")
    quantile_probs = validate_probs(probs)

    panels = {}
    for i, parameter in enumerate(draws.parameters):
        # Chains are categories on the x axis
        frame = _by_chain_frame(draws, i).astype({"Chain": str})
        violin = frame.hvplot.violin(y="Value", by="Chain").opts(
            violin_fill_color=get_color("m"),
            violin_line_color=get_color("mh"),
            inner=None,
        )
        quantiles = frame.groupby("Chain", sort=False)["Value"].quantile(
            quantile_probs
        )
        marks = hv.Scatter(
            [(chain, value) for (chain, _), value in quantiles.items()],
            kdims=["Chain"],
            vdims=["Value"],
        ).opts(marker="dash", size=20, color=get_color("d"))
        panels[parameter] = theme(violin * marks, hide_y_axis=False, ylabel="")

    return facet(
        panels,
        ["Parameter"],
        facet_args=facet_args,
        default_scales=DEFAULT_FACET_SCALES,
        y_dim="Value",
        y_range=data_range(draws.values),
    )
