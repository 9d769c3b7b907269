# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Color schemes used by every mcmcplot chart.

A color scheme is an ordered set of six colors: light, light highlight, mid,
mid highlight, dark and dark highlight. Plotting functions never hard-code
colors; they request a level of the active scheme through :py:func:`get_color`
or a set of per-chain colors through :py:func:`chain_colors`. The active scheme
is the only piece of global state in the package and is changed with
:py:func:`color_scheme_set`.

Schemes can be specified as:
    - The name of a built-in scheme (e.g. "blue", "red", "viridis")
    - A mixture of two built-in schemes, e.g. "mix-blue-red"
    - A six-color ColorBrewer palette, e.g. "brewer-Blues"
    - A sequence of exactly six colors

Example:
    >>> import mcmcplot
    >>> previous = mcmcplot.color_scheme_set("red")
    >>> mcmcplot.get_color("m")
    '#B97C7C'
"""

from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING, Union

import holoviews as hv
import numpy as np
import numpy.typing as npt

from bokeh.palettes import brewer

from mcmcplot.defaults import (
    COLOR_LEVEL_ABBREVIATIONS,
    COLOR_LEVELS,
    DEFAULT_COLOR_SCHEME,
)
from mcmcplot.exceptions import ColorSchemeError

if TYPE_CHECKING:
    from mcmcplot import custom_types

# Built-in schemes, ordered from lightest to darkest
_MASTER_COLOR_LIST: dict[str, tuple[str, ...]] = {
    "blue": ("#d1e1ec", "#b3cde0", "#6497b1", "#005b96", "#03396c", "#011f4b"),
    "brightblue": ("#cce5ff", "#99cbff", "#4ca5ff", "#198bff", "#0065cc", "#004c99"),
    "gray": ("#DFDFDF", "#bfbfbf", "#999999", "#737373", "#505050", "#383838"),
    "darkgray": ("#bfbfbf", "#999999", "#737373", "#505050", "#383838", "#151515"),
    "green": ("#d9f2e6", "#9fdfbf", "#66cc99", "#40bf80", "#2d8659", "#194d33"),
    "pink": ("#dcbccc", "#c799b0", "#b97c9b", "#a25079", "#8f275b", "#7c0043"),
    "purple": ("#e5cce5", "#bf7fbf", "#a64ca6", "#800080", "#660066", "#400040"),
    "red": ("#DCBCBC", "#C79999", "#B97C7C", "#A25050", "#8F2727", "#7C0000"),
    "teal": ("#bcdcdc", "#99c7c7", "#7cb9b9", "#50a2a2", "#278f8f", "#007C7C"),
    "yellow": ("#fbf3da", "#f8e8b5", "#f5dc90", "#f2d16b", "#efc546", "#ecba21"),
    "viridis": ("#FDE725", "#7AD151", "#22A884", "#2A788E", "#414487", "#440154"),
    "viridisA": ("#FCFDBF", "#FE9F6D", "#DE4968", "#8C2981", "#3B0F70", "#000004"),
    "viridisB": ("#FCFFA4", "#FCA50A", "#DD513A", "#932667", "#420A68", "#000004"),
    "viridisC": ("#F0F921", "#FCA636", "#E16462", "#B12A90", "#6A00A8", "#0D0887"),
    "viridisE": ("#FFEA46", "#CBBA69", "#958F78", "#666970", "#31446B", "#00204D"),
}


class ColorScheme(dict):
    """Ordered mapping from color level to color for one scheme.

    :param colors: Six colors ordered from light to dark highlight
    :type colors: Sequence[str]
    :param name: Name of the scheme (Default: "custom")
    :type name: str

    :raises ColorSchemeError: If the number of colors is not six

    Example:
        >>> scheme = ColorScheme(["#fff"] * 6, name="white")
        >>> scheme["mid"]
        '#fff'
    """

    def __init__(self, colors: Sequence[str], name: str = "custom"):
        if len(colors) != len(COLOR_LEVELS):
            raise ColorSchemeError(
                f"Custom color schemes require a list of {len(COLOR_LEVELS)} "
                f"colors, got {len(colors)}."
            )
        super().__init__(zip(COLOR_LEVELS, colors))
        self.name = name

    def __repr__(self) -> str:
        return f"ColorScheme({self.name!r}, {list(self.values())})"


def _mixed_scheme(name1: str, name2: str) -> ColorScheme:
    """Alternate the levels of two built-in schemes."""
    scheme1, scheme2 = _builtin_scheme(name1), _builtin_scheme(name2)
    colors = [
        (scheme1 if i % 2 == 0 else scheme2)[level]
        for i, level in enumerate(COLOR_LEVELS)
    ]
    return ColorScheme(colors, name=f"mix-{name1}-{name2}")


def _brewer_scheme(palette: str) -> ColorScheme:
    """Build a scheme from a six-color ColorBrewer palette."""
    if palette not in brewer or 6 not in brewer[palette]:
        raise ColorSchemeError(f"'{palette}' is not a six-color ColorBrewer palette.")

    # bokeh orders brewer palettes from dark to light
    return ColorScheme(list(reversed(brewer[palette][6])), name=f"brewer-{palette}")


def _builtin_scheme(name: str) -> ColorScheme:
    """Look up one of the built-in schemes by name."""
    if name not in _MASTER_COLOR_LIST:
        raise ColorSchemeError(
            f"'{name}' is not a valid color scheme. Valid schemes are: "
            f"{', '.join(_MASTER_COLOR_LIST)}."
        )
    return ColorScheme(_MASTER_COLOR_LIST[name], name=name)


def _resolve_scheme(scheme: Union[str, Sequence[str], ColorScheme]) -> ColorScheme:
    """Turn any supported scheme specification into a ColorScheme."""
    if isinstance(scheme, ColorScheme):
        return scheme
    if not isinstance(scheme, str):
        return ColorScheme(list(scheme))

    if scheme.startswith("mix-"):
        parts = scheme.split("-")
        if len(parts) != 3:
            raise ColorSchemeError(
                "Mixed schemes must be specified as 'mix-<scheme1>-<scheme2>'."
            )
        return _mixed_scheme(parts[1], parts[2])

    if scheme.startswith("brewer-"):
        return _brewer_scheme(scheme.removeprefix("brewer-"))

    return _builtin_scheme(scheme)


# The active color scheme
_SCHEME: ColorScheme = _resolve_scheme(DEFAULT_COLOR_SCHEME)


def color_scheme_set(
    scheme: Union[str, Sequence[str], ColorScheme] = DEFAULT_COLOR_SCHEME,
) -> ColorScheme:
    """Set the color scheme used by all subsequently built charts.

    :param scheme: Scheme name, "mix-<a>-<b>", "brewer-<palette>" or a sequence
        of six colors (Default: "blue")
    :type scheme: Union[str, Sequence[str], ColorScheme]

    :returns: The previously active scheme, so that it can be restored
    :rtype: ColorScheme

    :raises ColorSchemeError: If the scheme cannot be resolved

    Example:
        >>> old = color_scheme_set("mix-blue-red")
        >>> # ... build some plots ...
        >>> color_scheme_set(old)
    """
    global _SCHEME  # pylint: disable=global-statement
    previous = _SCHEME
    _SCHEME = _resolve_scheme(scheme)
    return previous


def color_scheme_get(
    scheme: Optional[Union[str, Sequence[str], ColorScheme]] = None,
) -> ColorScheme:
    """Get the colors of a scheme.

    :param scheme: Scheme to look up. If None, the active scheme is returned.
        (Default: None)
    :type scheme: Optional[Union[str, Sequence[str], ColorScheme]]

    :returns: Mapping from level name to color
    :rtype: ColorScheme
    """
    if scheme is None:
        return _SCHEME
    return _resolve_scheme(scheme)


def get_color(levels: Union[str, Sequence[str]]) -> Union[str, list[str]]:
    """Get colors of the active scheme by level.

    :param levels: One level or a sequence of levels. Levels may be given by
        their full name ("mid_highlight") or short code ("mh").
    :type levels: Union[str, Sequence[str]]

    :returns: A single color for a single level, otherwise a list of colors
    :rtype: Union[str, list[str]]

    :raises ColorSchemeError: If a level is not recognized
    """
    single = isinstance(levels, str)
    colors = []
    for level in [levels] if single else levels:
        level = COLOR_LEVEL_ABBREVIATIONS.get(level, level)
        if level not in COLOR_LEVELS:
            raise ColorSchemeError(
                f"'{level}' is not a valid color level. Valid levels are: "
                f"{', '.join(COLOR_LEVEL_ABBREVIATIONS)} or "
                f"{', '.join(COLOR_LEVELS)}."
            )
        colors.append(_SCHEME[level])

    return colors[0] if single else colors


def _hex_to_rgb(color: str) -> npt.NDArray:
    """Convert "#RRGGBB" to an array of three floats in [0, 255]."""
    color = color.lstrip("#")
    return np.array([int(color[i : i + 2], 16) for i in (0, 2, 4)], dtype=float)


def _interpolate_colors(colors: Sequence[str], n: "custom_types.Integer") -> list[str]:
    """Linearly interpolate ``n`` colors between the given colors in RGB space."""
    rgb = np.stack([_hex_to_rgb(c) for c in colors])
    anchors = np.linspace(0, 1, len(colors))
    targets = np.linspace(0, 1, n)
    channels = np.stack(
        [np.interp(targets, anchors, rgb[:, i]) for i in range(3)], axis=1
    )
    return [
        "#{:02x}{:02x}{:02x}".format(*np.rint(row).astype(int)) for row in channels
    ]


def chain_colors(n: "custom_types.Integer") -> list[str]:
    """Pick one color per chain from the active scheme.

    :param n: Number of chains
    :type n: custom_types.Integer

    :returns: List of ``n`` colors
    :rtype: list[str]

    :raises ValueError: If ``n`` is smaller than 1

    Selection Logic:
        - 1 chain: mid
        - 2 chains: light, dark
        - 3 chains: light, mid, dark
        - 4 chains: all levels except light highlight and mid highlight
        - 5 chains: all levels except mid
        - 6 chains: all levels
        - More chains: colors interpolated across all six levels
    """
    if n < 1:
        raise ValueError("At least one chain is required to choose chain colors.")

    all_colors = list(_SCHEME.values())
    if n == 1:
        return get_color(["m"])
    if n == 2:
        return get_color(["l", "d"])
    if n == 3:
        return get_color(["l", "m", "d"])
    if n == 4:
        return get_color(["l", "m", "d", "dh"])
    if n == 5:
        return get_color(["l", "lh", "mh", "d", "dh"])
    if n == 6:
        return all_colors
    return _interpolate_colors(all_colors, n)


def color_scheme_view(
    scheme: Optional[Union[str, Sequence[str], Sequence[Sequence[str]]]] = None,
) -> hv.Overlay:
    """Draw swatches of one or more color schemes.

    :param scheme: A scheme specification, a list of scheme names, or None for
        the active scheme (Default: None)
    :type scheme: Optional[Union[str, Sequence[str], Sequence[Sequence[str]]]]

    :returns: Overlay of colored rectangles, one row per scheme, with the scheme
        name written next to each row
    :rtype: hv.Overlay

    Example:
        >>> color_scheme_view(["blue", "mix-red-teal"])
    """
    # A list of names is several schemes; a list of six non-name colors is one
    if scheme is None or isinstance(scheme, (str, ColorScheme)):
        schemes = [color_scheme_get(scheme)]
    elif len(scheme) == len(COLOR_LEVELS) and all(
        isinstance(s, str) and s.startswith("#") for s in scheme
    ):
        schemes = [color_scheme_get(list(scheme))]
    else:
        schemes = [color_scheme_get(s) for s in scheme]

    # One rectangle per color, one row per scheme
    rectangles = [
        (j, -i, j + 1, -i + 0.9, color)
        for i, colors in enumerate(schemes)
        for j, color in enumerate(colors.values())
    ]
    labels = [
        hv.Text(-0.1, -i + 0.45, colors.name, halign="right")
        for i, colors in enumerate(schemes)
    ]

    return hv.Overlay(
        [
            hv.Rectangles(rectangles, vdims=["color"]).opts(
                color=hv.dim("color"), line_color="white", xaxis=None, yaxis=None
            ),
            *labels,
        ]
    ).opts(
        width=400,
        height=40 + 40 * len(schemes),
        xlim=(-2, len(COLOR_LEVELS)),
        title="Color Schemes",
    )
