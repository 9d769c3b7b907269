# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Posterior predictive checks based on test statistics.

The plots in this module compare the value of a test statistic ``T`` computed
on the observed data ``y`` with its distribution over the replicated datasets
``yrep``. Each row of ``yrep`` is one replicated dataset.

Available Plots:
    - :py:func:`ppc_stat`: histogram of ``T(yrep)`` with a line at ``T(y)``
    - :py:func:`ppc_stat_grouped`: the same, one panel per group
    - :py:func:`ppc_stat_freqpoly_grouped`: frequency polygons per group
    - :py:func:`ppc_stat_2d`: scatter of two statistics

Example:
    >>> y, yrep = example_y_data(), example_yrep_draws()
    >>> ppc_stat(y, yrep, stat="median")
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence, TYPE_CHECKING

import holoviews as hv
import numpy as np
import numpy.typing as npt
import pandas as pd

from mcmcplot.colors import get_color
from mcmcplot.defaults import (
    DEFAULT_FACET_SCALES,
    DEFAULT_N_BINS,
    DEFAULT_STAT,
    DEFAULT_STAT_2D,
)
from mcmcplot.plotting.plotting import bin_edges, facet, histogram, theme
from mcmcplot.validation import (
    compute_stat,
    validate_group,
    validate_stat,
    validate_y,
    validate_yrep,
)

if TYPE_CHECKING:
    from mcmcplot import custom_types


def _observed_line(t_y: float) -> hv.VLine:
    return hv.VLine(t_y, label="T(y)").opts(color=get_color("dh"), line_width=2)


def _stat_histogram(
    t_y: float,
    t_yrep: npt.NDArray[np.floating],
    binwidth: Optional["custom_types.Float"],
    bins: "custom_types.Integer",
    freq: bool,
) -> hv.Overlay:
    """Histogram of the replicated statistics with the observed value marked."""
    hist = histogram(
        t_yrep, binwidth=binwidth, bins=bins, density=not freq, label="T(yrep)"
    ).opts(color=get_color("l"), line_color=get_color("lh"))
    return hist * _observed_line(t_y)


def _stat_freqpoly(
    t_y: float,
    t_yrep: npt.NDArray[np.floating],
    binwidth: Optional["custom_types.Float"],
    bins: "custom_types.Integer",
    freq: bool,
) -> hv.Overlay:
    """Frequency polygon of the replicated statistics with the observed value marked."""
    edges = bin_edges(t_yrep, binwidth=binwidth, bins=bins)
    heights, _ = np.histogram(t_yrep, bins=edges, density=not freq)
    curve = hv.Curve(
        ((edges[:-1] + edges[1:]) / 2, heights),
        kdims="Value",
        vdims="Count" if freq else "Density",
        label="T(yrep)",
    ).opts(color=get_color("mh"), line_width=2)
    return curve * _observed_line(t_y)


def _grouped(
    y: "custom_types.ArrayLike",
    yrep: "custom_types.ArrayLike",
    group: "custom_types.ArrayLike",
    stat: "custom_types.StatType",
    panel: Callable[..., hv.Overlay],
    facet_args: "custom_types.FacetArgs",
    **panel_kwargs,
) -> hv.NdLayout:
    """Build one statistic panel per level of ``group``."""
    y = validate_y(y)
    yrep = validate_yrep(yrep, y)
    group = validate_group(group, y)
    name, func = validate_stat(stat, 1)[0]

    panels = {}
    for level in np.unique(group).tolist():
        mask = group == level
        panels[level] = theme(
            panel(
                compute_stat(func, y[None, mask])[0],
                compute_stat(func, yrep[:, mask]),
                **panel_kwargs,
            ),
            legend_position="right",
        )

    return facet(
        panels,
        ["Group"],
        facet_args=facet_args,
        default_scales=DEFAULT_FACET_SCALES,
    ).opts(title=f"T = {name}")


def ppc_stat(
    y: "custom_types.ArrayLike",
    yrep: "custom_types.ArrayLike",
    stat: "custom_types.StatType" = DEFAULT_STAT,
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
    freq: bool = True,
) -> hv.Overlay:
    """Compare a test statistic of the observations with its replicated distribution.

    :param y: Observations
    :type y: custom_types.ArrayLike
    :param yrep: Replicated datasets with shape (draws, observations)
    :type yrep: custom_types.ArrayLike
    :param stat: Test statistic, by name or as a callable (Default: "mean")
    :type stat: custom_types.StatType
    :param binwidth: Width of the histogram bins (Default: None)
    :type binwidth: Optional[custom_types.Float]
    :param bins: Number of bins (Default: 30)
    :type bins: custom_types.Integer
    :param freq: Whether to show counts (True) or densities (False)
        (Default: True)
    :type freq: bool

    :returns: Overlay of an ``hv.Histogram`` of ``T(yrep)`` and an ``hv.VLine``
        at ``T(y)``
    :rtype: hv.Overlay

    :raises ValidationError: If ``y`` or ``yrep`` is malformed
    :raises StatError: If ``stat`` cannot be resolved

    Example:
        >>> ppc_stat(y, yrep, stat=lambda v: np.mean(v > 5))
    """
    y = validate_y(y)
    yrep = validate_yrep(yrep, y)
    name, func = validate_stat(stat, 1)[0]

    plot = _stat_histogram(
        compute_stat(func, y[None])[0],
        compute_stat(func, yrep),
        binwidth,
        bins,
        freq,
    )
    return theme(plot, title=f"T = {name}", legend_position="right")


def ppc_stat_grouped(
    y: "custom_types.ArrayLike",
    yrep: "custom_types.ArrayLike",
    group: "custom_types.ArrayLike",
    stat: "custom_types.StatType" = DEFAULT_STAT,
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
    freq: bool = True,
    facet_args: "custom_types.FacetArgs" = None,
) -> hv.NdLayout:
    """Run :py:func:`ppc_stat` separately for every level of a grouping vector.

    :param group: One group label per observation
    :type group: custom_types.ArrayLike
    :param facet_args: Faceting options. Scales default to "free".
        (Default: None)
    :type facet_args: custom_types.FacetArgs

    The remaining arguments are as for :py:func:`ppc_stat`.

    :returns: Layout keyed by "Group", levels in sorted order
    :rtype: hv.NdLayout
    """
    return _grouped(
        y,
        yrep,
        group,
        stat,
        _stat_histogram,
        facet_args,
        binwidth=binwidth,
        bins=bins,
        freq=freq,
    )


def ppc_stat_freqpoly_grouped(
    y: "custom_types.ArrayLike",
    yrep: "custom_types.ArrayLike",
    group: "custom_types.ArrayLike",
    stat: "custom_types.StatType" = DEFAULT_STAT,
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
    freq: bool = True,
    facet_args: "custom_types.FacetArgs" = None,
) -> hv.NdLayout:
    """Like :py:func:`ppc_stat_grouped`, but with frequency polygons.

    Each panel overlays an ``hv.Curve`` through the bin midpoints of the
    replicated statistics and an ``hv.VLine`` at the observed statistic.
    """
    return _grouped(
        y,
        yrep,
        group,
        stat,
        _stat_freqpoly,
        facet_args,
        binwidth=binwidth,
        bins=bins,
        freq=freq,
    )


def ppc_stat_2d(
    y: "custom_types.ArrayLike",
    yrep: "custom_types.ArrayLike",
    stat: Sequence["custom_types.StatType"] = DEFAULT_STAT_2D,
    size: "custom_types.Float" = 2.5,
    alpha: "custom_types.Float" = 0.7,
) -> hv.Overlay:
    """Scatter two test statistics of the replicated datasets against each other.

    The observed pair ``(T1(y), T2(y))`` is drawn as a large point, with dashed
    guide segments running from it to both axes.

    :param y: Observations
    :type y: custom_types.ArrayLike
    :param yrep: Replicated datasets with shape (draws, observations)
    :type yrep: custom_types.ArrayLike
    :param stat: Exactly two test statistics (Default: ("mean", "sd"))
    :type stat: Sequence[custom_types.StatType]
    :param size: Size of the replicated points (Default: 2.5)
    :type size: custom_types.Float
    :param alpha: Opacity of the replicated points (Default: 0.7)
    :type alpha: custom_types.Float

    :returns: Overlay of two ``hv.Scatter`` elements and an ``hv.Segments``
        element
    :rtype: hv.Overlay

    :raises StatError: If ``stat`` does not contain exactly two statistics
    """
    y = validate_y(y)
    yrep = validate_yrep(yrep, y)
    (name1, func1), (name2, func2) = validate_stat(stat, 2)

    t_yrep = np.column_stack([compute_stat(func1, yrep), compute_stat(func2, yrep)])
    t_y = (compute_stat(func1, y[None])[0], compute_stat(func2, y[None])[0])

    # Dimensions are named T1 and T2 so that equal statistic names cannot clash
    kdims = [hv.Dimension("T1", label=f"T1 = {name1}")]
    vdims = [hv.Dimension("T2", label=f"T2 = {name2}")]

    x_min = min(t_yrep[:, 0].min(), t_y[0])
    y_min = min(t_yrep[:, 1].min(), t_y[1])
    guides = hv.Segments(
        [
            (t_y[0], y_min, t_y[0], t_y[1]),
            (x_min, t_y[1], t_y[0], t_y[1]),
        ],
        kdims=["T1", "T2", "T1_end", "T2_end"],
    ).opts(color=get_color("dh"), line_dash="dashed", line_width=1)

    replicated = hv.Scatter(t_yrep, kdims=kdims, vdims=vdims, label="T(yrep)").opts(
        color=get_color("l"), line_color=get_color("lh"), alpha=alpha, size=size * 2
    )
    observed = hv.Scatter([t_y], kdims=kdims, vdims=vdims, label="T(y)").opts(
        color=get_color("d"), line_color=get_color("dh"), size=size * 6
    )

    return theme(
        replicated * guides * observed,
        hide_y_axis=False,
        xlabel=f"T1 = {name1}",
        ylabel=f"T2 = {name2}",
        legend_position="right",
    )


def ppc_group_data(
    y: "custom_types.ArrayLike",
    yrep: "custom_types.ArrayLike",
    group: "custom_types.ArrayLike",
    stat: Optional["custom_types.StatType"] = None,
) -> pd.DataFrame:
    """Arrange observations and replicates in tidy form, by group.

    :param y: Observations
    :type y: custom_types.ArrayLike
    :param yrep: Replicated datasets with shape (draws, observations)
    :type yrep: custom_types.ArrayLike
    :param group: One group label per observation
    :type group: custom_types.ArrayLike
    :param stat: Test statistic applied within every group and dataset. With
        None the raw values are returned. (Default: None)
    :type stat: Optional[custom_types.StatType]

    :returns: DataFrame with columns "group", "variable" ("y", "yrep_1",
        "yrep_2", ...) and "value"
    :rtype: pd.DataFrame

    Example:
        >>> ppc_group_data(y, yrep, group, stat="mean").columns.tolist()
        ['group', 'variable', 'value']
    """
    y = validate_y(y)
    yrep = validate_yrep(yrep, y)
    group = validate_group(group, y)

    variables = ["y"] + [f"yrep_{i}" for i in range(1, yrep.shape[0] + 1)]
    frame = pd.DataFrame(
        {
            "group": np.tile(group, len(variables)),
            "variable": np.repeat(variables, y.size),
            "value": np.vstack([y[None], yrep]).ravel(),
        }
    )
    if stat is None:
        return frame

    _, func = validate_stat(stat, 1)[0]
    return (
        frame.groupby(["group", "variable"], sort=False)["value"]
        .apply(lambda values: func(values.to_numpy()))
        .astype(float)
        .reset_index()
    )
