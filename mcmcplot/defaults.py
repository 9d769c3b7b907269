# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Default configuration values for mcmcplot components.

This module centralizes default values used across the plotting functions of
mcmcplot, including panel geometry, binning, color handling and the names of
the sampler diagnostics understood by the NUTS plots.

The module is organized into logical groups covering:
    - Panel geometry and binning defaults
    - Color scheme defaults
    - Chain highlighting and quantile defaults
    - Sampler diagnostic naming conventions
    - Example data configuration

Default values cannot be programmatically altered. The one piece of global
state in the package, the active color scheme, is changed through
:py:func:`mcmcplot.colors.color_scheme_set` instead.
"""

# Panel defaults
DEFAULT_WIDTH: int = 300
"""Default width of a single panel in pixels.

Faceted plots apply this width to every panel of the layout.

:type: int
"""

DEFAULT_HEIGHT: int = 250
"""Default height of a single panel in pixels.

:type: int
"""

DEFAULT_N_BINS: int = 30
"""Default number of histogram bins used when no bin width is given.

:type: int
"""

DEFAULT_FACET_SCALES: str = "free"
"""Default axis sharing for faceted distribution plots.

One of "fixed", "free", "free_x" or "free_y".

:type: str
"""

DEFAULT_TRACE_FACET_SCALES: str = "free_y"
"""Default axis sharing for faceted trace plots. Traces share the iteration
axis but each parameter keeps its own value range.

:type: str
"""

# Color defaults
DEFAULT_COLOR_SCHEME: str = "blue"
"""Name of the color scheme that is active when the package is imported.

:type: str
"""

COLOR_LEVELS: tuple[str, ...] = (
    "light",
    "light_highlight",
    "mid",
    "mid_highlight",
    "dark",
    "dark_highlight",
)
"""Names of the six levels that make up every color scheme, in order.

:type: tuple[str, ...]
"""

COLOR_LEVEL_ABBREVIATIONS: dict[str, str] = {
    "l": "light",
    "lh": "light_highlight",
    "m": "mid",
    "mh": "mid_highlight",
    "d": "dark",
    "dh": "dark_highlight",
}
"""Short codes accepted by :py:func:`mcmcplot.colors.get_color`.

:type: dict[str, str]
"""

# Distribution and trace defaults
DEFAULT_VIOLIN_PROBS: tuple[float, ...] = (0.1, 0.5, 0.9)
"""Quantiles marked inside each violin of :py:func:`mcmc_violin`.

:type: tuple[float, ...]
"""

DEFAULT_HIGHLIGHT_ALPHA: float = 0.2
"""Opacity of the chains that are not highlighted in
:py:func:`mcmc_trace_highlight`.

:type: float
"""

DEFAULT_WARMUP_COLOR: str = "lightgray"
"""Fill color of the shaded warmup region in trace plots.

:type: str
"""

# PPC defaults
DEFAULT_STAT: str = "mean"
"""Default test statistic for the single-statistic PPC plots.

:type: str
"""

DEFAULT_STAT_2D: tuple[str, str] = ("mean", "sd")
"""Default pair of test statistics for :py:func:`ppc_stat_2d`.

:type: tuple[str, str]
"""

# Sampler diagnostic names
NUTS_PARAMETERS: tuple[str, ...] = (
    "accept_stat__",
    "stepsize__",
    "treedepth__",
    "n_leapfrog__",
    "divergent__",
    "energy__",
)
"""Names of the NUTS sampler parameters, following the Stan convention.

:type: tuple[str, ...]
"""

ARVIZ_TO_STAN_NAMES: dict[str, str] = {
    "acceptance_rate": "accept_stat__",
    "step_size": "stepsize__",
    "tree_depth": "treedepth__",
    "n_steps": "n_leapfrog__",
    "diverging": "divergent__",
    "energy": "energy__",
}
"""Mapping from ArviZ ``sample_stats`` variable names to Stan names.

:type: dict[str, str]
"""

NUTS_REQUIRED_COLUMNS: tuple[str, ...] = ("Chain", "Iteration", "Parameter", "Value")
"""Columns required in a tidy NUTS parameter data frame.

:type: tuple[str, ...]
"""

# Example data
DEFAULT_EXAMPLE_SEED: int = 1025
"""Seed used to generate the example datasets.

:type: int
"""
