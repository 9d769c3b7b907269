# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Diagnostic plots for the No-U-Turn Sampler.

The functions in this module take the tidy NUTS parameter frame returned by
:py:func:`mcmcplot.draws.nuts_params` and, except for the energy plot, the log
posterior returned by :py:func:`mcmcplot.draws.log_posterior`. Every function
apart from :py:func:`mcmc_nuts_energy` accepts a one-based ``chain`` argument
whose draws are overlaid on the draws of all chains.

Available Plots:
    - :py:func:`mcmc_nuts_acceptance`: acceptance statistic and log posterior
    - :py:func:`mcmc_nuts_divergence`: draws split by divergence
    - :py:func:`mcmc_nuts_stepsize`: draws split by step size
    - :py:func:`mcmc_nuts_treedepth`: draws split by tree depth
    - :py:func:`mcmc_nuts_energy`: marginal energy and energy transitions
"""

from __future__ import annotations

import warnings

from typing import Optional, Sequence, TYPE_CHECKING, Union

import holoviews as hv
import numpy as np
import numpy.typing as npt
import pandas as pd

from mcmcplot.colors import get_color
from mcmcplot.defaults import DEFAULT_FACET_SCALES, DEFAULT_N_BINS
from mcmcplot.draws import validate_nuts_data_frame
from mcmcplot.exceptions import ChainError, NUTSDataError
from mcmcplot.plotting.plotting import bin_edges, facet, finite, histogram, theme
from mcmcplot.validation import validate_chain_argument

if TYPE_CHECKING:
    from mcmcplot import custom_types

# Name of the log posterior column in the wide frame
_LP = "Log-posterior"


def _wide_nuts_frame(
    x: pd.DataFrame,
    lp: pd.DataFrame,
    chain: Optional["custom_types.Integer"],
    required: Sequence[str],
) -> tuple[pd.DataFrame, Optional[pd.DataFrame]]:
    """Join the NUTS parameters and the log posterior into one row per iteration.

    :returns: The wide frame for all chains and, if ``chain`` is given, the
        rows of the selected chain
    :rtype: tuple[pd.DataFrame, Optional[pd.DataFrame]]
    """
    x = validate_nuts_data_frame(x, lp)
    if missing := [p for p in required if p not in set(x["Parameter"])]:
        raise NUTSDataError(
            f"NUTS parameters are missing the parameter(s): {', '.join(missing)}"
        )

    wide = x.pivot(index=["Chain", "Iteration"], columns="Parameter", values="Value")
    wide.columns.name = None
    wide = wide.reset_index().merge(
        lp[["Chain", "Iteration", "Value"]].rename(columns={"Value": _LP}),
        on=["Chain", "Iteration"],
        how="inner",
    )

    chains = np.sort(wide["Chain"].unique())
    chain = validate_chain_argument(chain, len(chains))
    if chain is None:
        return wide, None
    return wide, wide[wide["Chain"] == chains[chain - 1]]


def _histogram_with_mean(
    values: pd.Series,
    chain_values: Optional[pd.Series],
    binwidth: Optional["custom_types.Float"],
    label: str,
) -> hv.Overlay:
    """Histogram of all chains with a dashed line at the mean, plus the selected chain."""
    edges = bin_edges(finite(values), binwidth=binwidth)
    layers = [
        histogram(values, edges=edges, kdim=label, label="All chains").opts(
            color=get_color("m"), line_color=get_color("mh")
        ),
        hv.VLine(float(values.mean())).opts(
            color=get_color("d"), line_dash="dashed", line_width=2
        ),
    ]
    if chain_values is not None:
        layers += [
            histogram(chain_values, edges=edges, kdim=label, label="Chain").opts(
                color=get_color("lh"), line_color=get_color("lh"), alpha=0.5
            ),
            hv.VLine(float(chain_values.mean())).opts(
                color=get_color("dh"), line_dash="dashed", line_width=2
            ),
        ]

    return theme(hv.Overlay(layers), xlabel=label, legend_position="right")


def _violin(
    frame: pd.DataFrame, chain_frame: Optional[pd.DataFrame], by: str, value: str
) -> Union[hv.Violin, hv.Overlay]:
    """Violins of ``value`` for each level of ``by``, with the selected chain overlaid."""
    panel = hv.Violin(frame[[by, value]], kdims=[by], vdims=[value]).opts(
        violin_fill_color=get_color("m"),
        violin_line_color=get_color("mh"),
        inner=None,
    )
    if chain_frame is not None:
        panel = panel * hv.Violin(
            chain_frame[[by, value]], kdims=[by], vdims=[value]
        ).opts(
            violin_fill_color=get_color("lh"),
            violin_fill_alpha=0.5,
            violin_line_color=get_color("lh"),
            inner=None,
        )

    return theme(panel, hide_y_axis=False, xlabel=by, ylabel=value)


def _violin_pair(
    frame: pd.DataFrame, chain_frame: Optional[pd.DataFrame], by: str
) -> list[Union[hv.Violin, hv.Overlay]]:
    """Violins of the log posterior and the acceptance statistic by ``by``."""
    return [
        _violin(frame, chain_frame, by, _LP),
        _violin(frame, chain_frame, by, "accept_stat__"),
    ]


def mcmc_nuts_acceptance(
    x: pd.DataFrame,
    lp: pd.DataFrame,
    chain: Optional["custom_types.Integer"] = None,
    binwidth: Optional["custom_types.Float"] = None,
) -> hv.Layout:
    """Plot the acceptance statistic against the log posterior.

    The layout holds histograms of the log posterior and of ``accept_stat__``,
    each with a dashed line at its mean, and a scatter of the two against each
    other.

    :param x: NUTS parameters in tidy form
    :type x: pd.DataFrame
    :param lp: Log posterior in tidy form
    :type lp: pd.DataFrame
    :param chain: One-based number of a chain to overlay (Default: None)
    :type chain: Optional[custom_types.Integer]
    :param binwidth: Width of the histogram bins (Default: None)
    :type binwidth: Optional[custom_types.Float]

    :returns: Layout of three panels
    :rtype: hv.Layout

    :raises ChainError: If ``chain`` does not name one of the chains
    :raises NUTSDataError: If the inputs are malformed

    Example:
        >>> mcmc_nuts_acceptance(nuts_params(idata), log_posterior(idata), chain=2)
    """
    wide, selected = _wide_nuts_frame(x, lp, chain, ["accept_stat__"])

    scatter = hv.Scatter(
        wide[["accept_stat__", _LP]], kdims=["accept_stat__"], vdims=[_LP]
    ).opts(color=get_color("m"), alpha=0.5, size=3)
    if selected is not None:
        scatter = scatter * hv.Scatter(
            selected[["accept_stat__", _LP]], kdims=["accept_stat__"], vdims=[_LP]
        ).opts(color=get_color("lh"), alpha=0.5, size=3)

    return (
        hv.Layout(
            [
                _histogram_with_mean(
                    wide[_LP],
                    None if selected is None else selected[_LP],
                    binwidth,
                    _LP,
                ),
                _histogram_with_mean(
                    wide["accept_stat__"],
                    None if selected is None else selected["accept_stat__"],
                    binwidth,
                    "accept_stat__",
                ),
                theme(scatter, hide_y_axis=False, xlabel="accept_stat__", ylabel=_LP),
            ]
        )
        .cols(3)
        .opts(shared_axes=False)
    )


def mcmc_nuts_divergence(
    x: pd.DataFrame,
    lp: pd.DataFrame,
    chain: Optional["custom_types.Integer"] = None,
) -> hv.Layout:
    """Compare the draws of divergent and non-divergent transitions.

    :param x: NUTS parameters in tidy form
    :type x: pd.DataFrame
    :param lp: Log posterior in tidy form
    :type lp: pd.DataFrame
    :param chain: One-based number of a chain to overlay (Default: None)
    :type chain: Optional[custom_types.Integer]

    :returns: Layout of violins of the log posterior and ``accept_stat__``,
        split into "No" and "Yes" divergence categories
    :rtype: hv.Layout

    :raises ChainError: If ``chain`` does not name one of the chains
    :raises NUTSDataError: If the inputs are malformed
    """
    wide, selected = _wide_nuts_frame(
        x, lp, chain, ["accept_stat__", "divergent__"]
    )

    if not (wide["divergent__"] > 0).any():
        warnings.warn("No divergences to plot.")

    def divergent(frame):
        return frame.assign(
            Divergent=np.where(frame["divergent__"] > 0, "Yes", "No")
        ).sort_values("Divergent")

    wide = divergent(wide)
    selected = None if selected is None else divergent(selected)

    return hv.Layout(_violin_pair(wide, selected, "Divergent")).cols(1).opts(
        shared_axes=False
    )


def mcmc_nuts_stepsize(
    x: pd.DataFrame,
    lp: pd.DataFrame,
    chain: Optional["custom_types.Integer"] = None,
) -> hv.Layout:
    """Compare the draws of chains adapted to different step sizes.

    Each chain's step size is taken from its first post-warmup iteration and
    shown with three significant digits.

    :param x: NUTS parameters in tidy form
    :type x: pd.DataFrame
    :param lp: Log posterior in tidy form
    :type lp: pd.DataFrame
    :param chain: One-based number of a chain to overlay (Default: None)
    :type chain: Optional[custom_types.Integer]

    :returns: Layout of violins of the log posterior and ``accept_stat__`` by
        step size
    :rtype: hv.Layout
    """
    wide, selected = _wide_nuts_frame(x, lp, chain, ["accept_stat__", "stepsize__"])

    # Chains are ordered by step size
    stepsizes = (
        wide.sort_values("Iteration").groupby("Chain")["stepsize__"].first().sort_values()
    )
    labels = {c: f"{s:.3g}" for c, s in stepsizes.items()}
    ranks = {c: i for i, c in enumerate(stepsizes.index)}

    def stepsize(frame):
        return frame.assign(Stepsize=frame["Chain"].map(labels)).sort_values(
            "Chain", key=lambda chains: chains.map(ranks), kind="stable"
        )

    wide = stepsize(wide)
    selected = None if selected is None else stepsize(selected)

    return hv.Layout(_violin_pair(wide, selected, "Stepsize")).cols(1).opts(
        shared_axes=False
    )


def mcmc_nuts_treedepth(
    x: pd.DataFrame,
    lp: pd.DataFrame,
    chain: Optional["custom_types.Integer"] = None,
) -> hv.Layout:
    """Compare the draws of transitions with different tree depths.

    :param x: NUTS parameters in tidy form
    :type x: pd.DataFrame
    :param lp: Log posterior in tidy form
    :type lp: pd.DataFrame
    :param chain: One-based number of a chain to overlay (Default: None)
    :type chain: Optional[custom_types.Integer]

    :returns: Layout of a histogram of ``treedepth__`` (one bin per depth) and
        violins of the log posterior and ``accept_stat__`` by tree depth
    :rtype: hv.Layout
    """
    wide, selected = _wide_nuts_frame(x, lp, chain, ["accept_stat__", "treedepth__"])

    # One bin per integer depth
    depths = wide["treedepth__"].to_numpy()
    edges = np.arange(np.nanmin(depths) - 0.5, np.nanmax(depths) + 1.5)
    depth_hist = histogram(depths, edges=edges, kdim="treedepth__").opts(
        color=get_color("m"), line_color=get_color("mh")
    )
    if selected is not None:
        depth_hist = depth_hist * histogram(
            selected["treedepth__"], edges=edges, kdim="treedepth__"
        ).opts(color=get_color("lh"), line_color=get_color("lh"), alpha=0.5)

    def treedepth(frame):
        return frame.sort_values("treedepth__").assign(
            Treedepth=frame["treedepth__"].astype(int).astype(str)
        )

    wide = treedepth(wide)
    selected = None if selected is None else treedepth(selected)

    return (
        hv.Layout(
            [
                theme(depth_hist, xlabel="treedepth__"),
                *_violin_pair(wide, selected, "Treedepth"),
            ]
        )
        .cols(1)
        .opts(shared_axes=False)
    )


def _centered_energy(
    energy: npt.NDArray[np.floating],
) -> tuple[npt.NDArray[np.floating], npt.NDArray[np.floating]]:
    """Center the energy of one chain and its transitions at zero."""
    energy = finite(energy)
    transitions = np.diff(energy)
    if transitions.size > 0:
        transitions = transitions - transitions.mean()
    return energy - energy.mean(), transitions


def _energy_panel(
    energy: npt.NDArray[np.floating],
    transitions: npt.NDArray[np.floating],
    binwidth: Optional["custom_types.Float"],
    alpha: "custom_types.Float",
) -> hv.Overlay:
    """Overlay the marginal energy and energy transition histograms."""
    edges = bin_edges(
        np.concatenate([energy, transitions]), binwidth=binwidth, bins=DEFAULT_N_BINS
    )
    marginal = histogram(energy, edges=edges, kdim="E", label="πE").opts(
        color=get_color("lh"), line_color=get_color("lh"), alpha=alpha
    )
    transition = histogram(transitions, edges=edges, kdim="E", label="πΔE").opts(
        color=get_color("d"), line_color=get_color("d"), alpha=alpha
    )
    return theme(marginal * transition, legend_position="right")


def mcmc_nuts_energy(
    x: pd.DataFrame,
    lp: Optional[pd.DataFrame] = None,
    chain: Optional["custom_types.Integer"] = None,
    merge_chains: bool = True,
    binwidth: Optional["custom_types.Float"] = None,
    alpha: "custom_types.Float" = 0.5,
) -> Union[hv.Overlay, hv.NdLayout]:
    """Compare the marginal energy distribution with the energy transitions.

    Both distributions are centered at zero: the energy by subtracting its
    mean within each chain, the transitions (differences between successive
    iterations of a chain) by subtracting their mean. A transition
    distribution that is much narrower than the marginal energy distribution
    indicates that the sampler may not explore the posterior efficiently.

    :param x: NUTS parameters in tidy form
    :type x: pd.DataFrame
    :param lp: Log posterior in tidy form. Only used for validation.
        (Default: None)
    :type lp: Optional[pd.DataFrame]
    :param chain: Not supported; must be None (Default: None)
    :type chain: Optional[custom_types.Integer]
    :param merge_chains: Whether to pool the chains into one panel
        (Default: True)
    :type merge_chains: bool
    :param binwidth: Width of the histogram bins (Default: None)
    :type binwidth: Optional[custom_types.Float]
    :param alpha: Opacity of the histograms (Default: 0.5)
    :type alpha: custom_types.Float

    :returns: An overlay of the two histograms when chains are merged,
        otherwise a layout of such overlays keyed by "Chain"
    :rtype: Union[hv.Overlay, hv.NdLayout]

    :raises ChainError: If ``chain`` is given
    :raises NUTSDataError: If the inputs are malformed or contain no energy
    """
    if chain is not None:
        raise ChainError("'mcmc_nuts_energy' does not accept a 'chain' argument.")

    x = validate_nuts_data_frame(x, lp)
    energy = x[x["Parameter"] == "energy__"].sort_values(["Chain", "Iteration"])
    if energy.empty:
        raise NUTSDataError("NUTS parameters are missing the parameter(s): energy__")

    by_chain = {
        c: _centered_energy(chain_frame["Value"].to_numpy())
        for c, chain_frame in energy.groupby("Chain", sort=True)
    }

    if merge_chains:
        return _energy_panel(
            np.concatenate([e for e, _ in by_chain.values()]),
            np.concatenate([t for _, t in by_chain.values()]),
            binwidth,
            alpha,
        )

    return facet(
        {
            c: _energy_panel(e, t, binwidth, alpha)
            for c, (e, t) in by_chain.items()
        },
        ["Chain"],
        default_scales=DEFAULT_FACET_SCALES,
    )
