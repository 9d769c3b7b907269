"""Shared chart-building helpers for mcmcplot.

This module implements the building blocks reused by every chart builder in
mcmcplot: histogram layers, faceting of panels into layouts, axis-sharing
rules and the default panel theme.

The module leverages HoloViews for composition. Panels are ordinary HoloViews
elements or overlays; faceted charts are ``hv.NdLayout`` objects keyed by the
facet variables, so individual panels can be pulled out with
``layout["alpha"]`` and restyled with ``.opts``.

Faceting Rules:
    - "fixed": all panels share both axes
    - "free": no axes are shared
    - "free_x": panels share the y range
    - "free_y": panels share the x range
"""

from __future__ import annotations

import math

from typing import Any, Optional, Sequence, TYPE_CHECKING

import holoviews as hv
import hvplot.pandas  # pylint: disable=unused-import
import numpy as np
import numpy.typing as npt

from mcmcplot.defaults import DEFAULT_HEIGHT, DEFAULT_N_BINS, DEFAULT_WIDTH
from mcmcplot.exceptions import ValidationError

if TYPE_CHECKING:
    from mcmcplot import custom_types

_VALID_SCALES = ("fixed", "free", "free_x", "free_y")
_VALID_FACET_ARGS = ("ncols", "scales")


def _set_defaults(
    kwargs: dict[str, Any] | None, default_values: tuple[tuple[str, Any], ...]
) -> dict[str, Any]:
    """Apply default values to kwargs dictionary without overwriting existing keys.

    :param kwargs: User-provided keyword arguments (may be None)
    :type kwargs: Union[dict[str, Any], None]
    :param default_values: Tuple of (key, value) pairs for defaults
    :type default_values: tuple[tuple[str, Any], ...]

    :returns: Dictionary with defaults applied for missing keys
    :rtype: dict[str, Any]

    Example:
        >>> defaults = (('scales', 'free'),)
        >>> final = _set_defaults({'ncols': 2}, defaults)
        >>> # final == {'ncols': 2, 'scales': 'free'}
    """
    # Copy so that the caller's dictionary is never modified
    kwargs = dict(kwargs or {})
    for k, v in default_values:
        if k not in kwargs:
            kwargs[k] = v

    return kwargs


def finite(values: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Drop NaN and infinite entries from a 1D array."""
    values = np.asarray(values, dtype=float).ravel()
    return values[np.isfinite(values)]


def bin_edges(
    values: npt.NDArray[np.floating],
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
) -> npt.NDArray[np.floating]:
    """Calculate histogram bin edges.

    :param values: Finite data values
    :type values: npt.NDArray[np.floating]
    :param binwidth: Width of each bin. Overrides ``bins`` when given.
        (Default: None)
    :type binwidth: Optional[custom_types.Float]
    :param bins: Number of bins used when ``binwidth`` is None (Default: 30)
    :type bins: custom_types.Integer

    :returns: Monotonically increasing bin edges covering all values
    :rtype: npt.NDArray[np.floating]

    :raises ValidationError: If ``binwidth`` is not positive

    With a bin width, edges are aligned to multiples of the width so that the
    same width gives comparable bins across panels.
    """
    if binwidth is None:
        return np.histogram_bin_edges(values, bins=bins)
    if binwidth <= 0:
        raise ValidationError(f"'binwidth' must be positive, got {binwidth}.")
    if values.size == 0:
        return np.array([0.0, binwidth])

    start = np.floor(values.min() / binwidth) * binwidth
    n_bins = max(1, int(np.ceil((values.max() - start) / binwidth)))

    # A value exactly on the last edge would otherwise need an extra bin
    if start + n_bins * binwidth < values.max():
        n_bins += 1
    return start + binwidth * np.arange(n_bins + 1)


def histogram(
    values: npt.ArrayLike,
    *,
    binwidth: Optional["custom_types.Float"] = None,
    bins: "custom_types.Integer" = DEFAULT_N_BINS,
    edges: Optional[npt.NDArray[np.floating]] = None,
    density: bool = True,
    kdim: str = "Value",
    label: str = "",
) -> hv.Histogram:
    """Build a histogram element from raw values.

    Binning is done with ``np.histogram``; the element is styled by the caller.

    :param values: Raw values. Non-finite values are dropped.
    :type values: npt.ArrayLike
    :param binwidth: Width of each bin (Default: None)
    :type binwidth: Optional[custom_types.Float]
    :param bins: Number of bins when no width is given (Default: 30)
    :type bins: custom_types.Integer
    :param edges: Explicit bin edges. Overrides ``binwidth`` and ``bins``.
        (Default: None)
    :type edges: Optional[npt.NDArray[np.floating]]
    :param density: Whether to normalize to a density (True) or show counts
        (Default: True)
    :type density: bool
    :param kdim: Name of the binned dimension (Default: "Value")
    :type kdim: str
    :param label: Label of the element, used in legends (Default: "")
    :type label: str

    :returns: The histogram
    :rtype: hv.Histogram
    """
    values = finite(values)
    if edges is None:
        edges = bin_edges(values, binwidth=binwidth, bins=bins)
    frequencies, edges = np.histogram(values, bins=edges, density=density)

    # np.histogram returns NaN densities for empty input
    frequencies = np.nan_to_num(frequencies)

    return hv.Histogram(
        (edges, frequencies),
        kdims=[kdim],
        vdims=["Density" if density else "Count"],
        label=label,
    )


def theme(
    element: Any,
    *,
    hide_y_axis: bool = True,
    width: "custom_types.Integer" = DEFAULT_WIDTH,
    height: "custom_types.Integer" = DEFAULT_HEIGHT,
    **opts,
) -> Any:
    """Apply the default panel theme.

    :param element: Element or overlay to style
    :type element: Any
    :param hide_y_axis: Whether to hide the y axis, as is done for density-like
        panels where the y scale carries no information (Default: True)
    :type hide_y_axis: bool
    :param width: Panel width in pixels (Default: 300)
    :type width: custom_types.Integer
    :param height: Panel height in pixels (Default: 250)
    :type height: custom_types.Integer
    :param opts: Additional plot options applied to the element

    :returns: The styled element
    :rtype: Any
    """
    opts = _set_defaults(
        opts,
        (
            ("width", width),
            ("height", height),
            ("xlabel", ""),
            ("show_grid", False),
        ),
    )
    if hide_y_axis:
        opts["yaxis"] = None

    return element.opts(**opts)


def _parse_facet_args(
    facet_args: "custom_types.FacetArgs", default_scales: str, n_panels: int
) -> tuple[int, str]:
    """Validate facet arguments and fill in defaults."""
    facet_args = _set_defaults(
        facet_args,
        (
            ("scales", default_scales),
            ("ncols", max(1, math.ceil(math.sqrt(n_panels)))),
        ),
    )
    if unknown := [k for k in facet_args if k not in _VALID_FACET_ARGS]:
        raise ValidationError(
            f"Unsupported facet argument(s): {', '.join(unknown)}. Supported "
            f"arguments are: {', '.join(_VALID_FACET_ARGS)}."
        )
    if facet_args["scales"] not in _VALID_SCALES:
        raise ValidationError(
            f"'scales' must be one of {', '.join(_VALID_SCALES)}, got "
            f"'{facet_args['scales']}'."
        )
    if facet_args["ncols"] < 1:
        raise ValidationError("'ncols' must be at least 1.")

    return int(facet_args["ncols"]), facet_args["scales"]


def _pin_range(
    panel: Any, dimension: Optional[str], value_range: Optional[Sequence[float]]
) -> Any:
    """Fix the range of one dimension of a panel."""
    if dimension is None or value_range is None:
        return panel
    return panel.redim.range(**{dimension: tuple(value_range)})


def facet(
    panels: dict[Any, Any],
    kdims: Sequence[str],
    *,
    facet_args: "custom_types.FacetArgs" = None,
    default_scales: str = "free",
    ncols: Optional["custom_types.Integer"] = None,
    x_dim: Optional[str] = None,
    x_range: Optional[Sequence[float]] = None,
    y_dim: Optional[str] = None,
    y_range: Optional[Sequence[float]] = None,
) -> hv.NdLayout:
    """Arrange panels into a faceted layout.

    :param panels: Mapping from facet key to panel. Keys are tuples when there
        is more than one facet dimension.
    :type panels: dict[Any, Any]
    :param kdims: Names of the facet dimensions, e.g. ["Parameter"] or
        ["Chain", "Parameter"]
    :type kdims: Sequence[str]
    :param facet_args: User facet options: "ncols" and "scales" (Default: None)
    :type facet_args: custom_types.FacetArgs
    :param default_scales: Axis sharing used when ``facet_args`` does not set
        "scales" (Default: "free")
    :type default_scales: str
    :param ncols: Number of columns used when ``facet_args`` does not set
        "ncols". Defaults to a roughly square grid.
    :type ncols: Optional[custom_types.Integer]
    :param x_dim: Name of the x dimension, used to pin the x range for
        "free_y" scales (Default: None)
    :type x_dim: Optional[str]
    :param x_range: Common x range (Default: None)
    :type x_range: Optional[Sequence[float]]
    :param y_dim: Name of the y dimension, used to pin the y range for
        "free_x" scales (Default: None)
    :type y_dim: Optional[str]
    :param y_range: Common y range (Default: None)
    :type y_range: Optional[Sequence[float]]

    :returns: Layout keyed by the facet dimensions
    :rtype: hv.NdLayout

    :raises ValidationError: If the facet arguments are invalid
    """
    if ncols is not None:
        facet_args = _set_defaults(facet_args, (("ncols", ncols),))
    n_cols, scales = _parse_facet_args(facet_args, default_scales, len(panels))

    # Partial sharing pins the shared axis to a common range
    if scales == "free_y":
        panels = {k: _pin_range(p, x_dim, x_range) for k, p in panels.items()}
    elif scales == "free_x":
        panels = {k: _pin_range(p, y_dim, y_range) for k, p in panels.items()}

    return (
        hv.NdLayout(panels, kdims=list(kdims), sort=False)
        .cols(n_cols)
        .opts(shared_axes=scales == "fixed")
    )


def data_range(values: npt.ArrayLike) -> Optional[tuple[float, float]]:
    """Get the (min, max) of the finite values, or None if there are none."""
    values = finite(values)
    if values.size == 0:
        return None
    return float(values.min()), float(values.max())
