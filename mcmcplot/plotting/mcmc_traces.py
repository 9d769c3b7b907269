# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Trace plots of MCMC draws.

A trace shows the value of a parameter against the iteration number, with one
layer per chain. Both functions in this module return an ``hv.NdLayout`` keyed
by "Parameter" whose panels are ``hv.NdOverlay`` objects keyed by "Chain"
(wrapped in an ``hv.Overlay`` when the warmup region is shaded).
"""

from __future__ import annotations

import warnings

from typing import Callable, Optional, Sequence, TYPE_CHECKING, Union

import holoviews as hv
import numpy as np
import numpy.typing as npt

from mcmcplot.colors import chain_colors
from mcmcplot.defaults import (
    DEFAULT_HIGHLIGHT_ALPHA,
    DEFAULT_TRACE_FACET_SCALES,
    DEFAULT_WARMUP_COLOR,
)
from mcmcplot.draws import MCMCDraws, prepare_mcmc_array
from mcmcplot.exceptions import ChainError, ValidationError
from mcmcplot.plotting.plotting import data_range, facet, theme
from mcmcplot.validation import validate_multiple_chains

if TYPE_CHECKING:
    from mcmcplot import custom_types


def _check_window(
    window: Optional[npt.ArrayLike], draws: MCMCDraws
) -> Optional[tuple[float, float]]:
    """Validate the displayed iteration window."""
    if window is None:
        return None
    bounds = np.asarray(window, dtype=float).ravel()
    if bounds.size != 2 or bounds[0] >= bounds[1]:
        raise ValidationError(
            "'window' must be a pair (lower, upper) of iterations with lower < upper."
        )

    # A window outside the draws shows an empty panel
    first, last = draws.first_iteration, draws.iterations[-1]
    if bounds[1] < first or bounds[0] > last:
        warnings.warn(
            f"'window' {tuple(bounds.tolist())} does not overlap the iterations "
            f"{first} to {last}."
        )
    return float(bounds[0]), float(bounds[1])


def _trace_layout(
    draws: MCMCDraws,
    layer: Callable[[npt.NDArray, npt.NDArray, int], hv.Element],
    n_warmup: "custom_types.Integer",
    inc_warmup: Optional[bool],
    window: Optional[npt.ArrayLike],
    facet_args: "custom_types.FacetArgs",
    sort_chains: bool = True,
    chain_order: Optional[Sequence[int]] = None,
) -> hv.NdLayout:
    """Assemble one overlay of per-chain layers for every parameter.

    ``layer`` receives the iteration numbers, the values of one chain and
    the zero-based chain index and returns the element drawn for that chain.
    """
    if inc_warmup is None:
        inc_warmup = bool(n_warmup > 0)

    # Warmup is either dropped or shaded
    if not 0 <= n_warmup < draws.n_iterations:
        raise ValidationError(
            f"'n_warmup' must be between 0 and the number of iterations "
            f"({draws.n_iterations}), got {n_warmup}."
        )
    if not inc_warmup and n_warmup > 0:
        draws = draws.drop_warmup(n_warmup)
    display_window = _check_window(window, draws)

    chain_order = list(range(draws.n_chains)) if chain_order is None else chain_order
    panels = {}
    for i, parameter in enumerate(draws.parameters):
        layers = {
            c + 1: layer(draws.iterations, draws.values[:, c, i], c)
            for c in chain_order
        }
        traces = hv.NdOverlay(
            layers,
            kdims="Chain",
            sort=sort_chains,
        ).opts(show_legend=draws.has_multiple_chains, legend_position="right")

        if inc_warmup and n_warmup > 0:
            warmup = hv.VSpan(
                draws.first_iteration, draws.first_iteration + n_warmup - 1
            ).opts(color=DEFAULT_WARMUP_COLOR, alpha=0.5)
            traces = warmup * traces

        panels[parameter] = theme(
            traces,
            hide_y_axis=False,
            ylabel="",
            **({"xlim": display_window} if display_window is not None else {}),
        )

    return facet(
        panels,
        ["Parameter"],
        facet_args=facet_args,
        default_scales=DEFAULT_TRACE_FACET_SCALES,
        x_dim="Iteration",
        x_range=display_window or data_range(draws.iterations),
    )


def mcmc_trace(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    n_warmup: "custom_types.Integer" = 0,
    inc_warmup: Optional[bool] = None,
    window: Optional[npt.ArrayLike] = None,
    size: Optional["custom_types.Float"] = None,
    facet_args: "custom_types.FacetArgs" = None,
) -> hv.NdLayout:
    """Plot the trace of each parameter with one line per chain.

    :param x: MCMC draws
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to plot (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting parameters (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply (Default: None)
    :type transformations: custom_types.TransformationsType
    :param n_warmup: Number of warmup iterations at the start of each chain
        (Default: 0)
    :type n_warmup: custom_types.Integer
    :param inc_warmup: Whether to show the warmup iterations, shaded. Defaults
        to ``n_warmup > 0``.
    :type inc_warmup: Optional[bool]
    :param window: Range (lower, upper) of iterations to display
        (Default: None)
    :type window: Optional[npt.ArrayLike]
    :param size: Line width (Default: None)
    :type size: Optional[custom_types.Float]
    :param facet_args: Faceting options. Scales default to "free_y".
        (Default: None)
    :type facet_args: custom_types.FacetArgs

    :returns: Layout of traces keyed by "Parameter"
    :rtype: hv.NdLayout

    :raises ValidationError: If ``n_warmup`` or ``window`` is invalid

    Example:
        >>> mcmc_trace(draws, pars=["alpha", "sigma"], n_warmup=100)
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)
    colors = chain_colors(draws.n_chains)

    def layer(iterations, values, chain):
        curve = hv.Curve((iterations, values), kdims="Iteration", vdims="Value")
        return curve.opts(color=colors[chain], **({"line_width": size} if size else {}))

    return _trace_layout(draws, layer, n_warmup, inc_warmup, window, facet_args)


def mcmc_trace_highlight(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    n_warmup: "custom_types.Integer" = 0,
    inc_warmup: Optional[bool] = None,
    window: Optional[npt.ArrayLike] = None,
    size: Optional["custom_types.Float"] = None,
    facet_args: "custom_types.FacetArgs" = None,
    highlight: "custom_types.Integer" = 1,
) -> hv.NdLayout:
    """Plot traces as points with one chain highlighted.

    The highlighted chain is drawn opaque and on top; the remaining chains are
    drawn with an opacity of 0.2.

    :param x: MCMC draws with more than one chain
    :type x: custom_types.MCMCInput
    :param highlight: One-based number of the chain to highlight (Default: 1)
    :type highlight: custom_types.Integer

    The remaining arguments are as for :py:func:`mcmc_trace`; ``size`` sets the
    point size.

    :returns: Layout of traces keyed by "Parameter"
    :rtype: hv.NdLayout

    :raises ChainError: If ``x`` contains a single chain or ``highlight`` does
        not name one of its chains
    """
    draws = prepare_mcmc_array(x, pars, regex_pars, transformations)
    validate_multiple_chains(draws.n_chains, "mcmc_trace_highlight")
    if not 1 <= highlight <= draws.n_chains:
        raise ChainError(
            f"'highlight' is {highlight}, but 'x' contains {draws.n_chains} chains."
        )

    colors = chain_colors(draws.n_chains)

    def layer(iterations, values, chain):
        points = hv.Scatter((iterations, values), kdims="Iteration", vdims="Value")
        return points.opts(
            color=colors[chain],
            alpha=1.0 if chain + 1 == highlight else DEFAULT_HIGHLIGHT_ALPHA,
            **({"size": size} if size else {}),
        )

    # The highlighted chain is drawn last
    order = [c for c in range(draws.n_chains) if c + 1 != highlight] + [highlight - 1]

    return _trace_layout(
        draws,
        layer,
        n_warmup,
        inc_warmup,
        window,
        facet_args,
        sort_chains=False,
        chain_order=order,
    )
