# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Argument validation for the posterior predictive check and NUTS plots.

The functions in this module check and coerce observations, replicated
datasets, grouping vectors, test statistics and chain arguments before any
chart is assembled. They either return a clean NumPy representation of their
input or raise an exception from :py:mod:`mcmcplot.exceptions` naming the
offending argument.

Test statistics may be given as callables or by name. Names are resolved, in
order, against a registry of common statistics, then NumPy, then
``scipy.stats``.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Optional, Sequence, TYPE_CHECKING, Union

import numpy as np
import numpy.typing as npt
import pandas as pd

from scipy import stats

from mcmcplot import utils
from mcmcplot.exceptions import ChainError, StatError, ValidationError

if TYPE_CHECKING:
    from mcmcplot import custom_types

# Statistics that are looked up by name before falling back to NumPy and SciPy.
# Standard deviation and variance use the sample (n - 1) denominator.
_STAT_REGISTRY: dict[str, Callable[..., Any]] = {
    "mean": np.mean,
    "median": np.median,
    "sd": partial(np.std, ddof=1),
    "var": partial(np.var, ddof=1),
    "min": np.min,
    "max": np.max,
    "iqr": stats.iqr,
    "mad": partial(stats.median_abs_deviation, scale="normal"),
    "q25": partial(np.quantile, q=0.25),
    "q75": partial(np.quantile, q=0.75),
}


def validate_y(y: "custom_types.ArrayLike") -> npt.NDArray[np.floating]:
    """Check the observed data vector.

    :param y: Observations. A single-column 2D input is flattened.
    :type y: custom_types.ArrayLike

    :returns: ``y`` as a 1D float array
    :rtype: npt.NDArray[np.floating]

    :raises ValidationError: If ``y`` is not a non-empty numeric vector or
        contains missing values
    """
    try:
        y = utils.to_numpy(y, dtype=float)
    except (TypeError, ValueError) as error:
        raise ValidationError("'y' must be numeric.") from error

    if y.ndim == 2 and y.shape[1] == 1:
        y = y[:, 0]
    if y.ndim != 1:
        raise ValidationError(f"'y' must be a vector, got {y.ndim} dimensions.")
    if y.size == 0:
        raise ValidationError("'y' must contain at least one observation.")
    if np.isnan(y).any():
        raise ValidationError("NAs not allowed in 'y'.")

    return y


def validate_yrep(
    yrep: "custom_types.ArrayLike", y: npt.NDArray[np.floating]
) -> npt.NDArray[np.floating]:
    """Check the replicated datasets against the observations.

    :param yrep: Replicated datasets with shape (draws, observations). A 1D
        input is treated as a single draw.
    :type yrep: custom_types.ArrayLike
    :param y: Validated observations
    :type y: npt.NDArray[np.floating]

    :returns: ``yrep`` as a 2D float array
    :rtype: npt.NDArray[np.floating]

    :raises ValidationError: If ``yrep`` is not numeric, not 2D, has the wrong
        number of columns or contains missing values
    """
    try:
        yrep = utils.to_numpy(yrep, dtype=float)
    except (TypeError, ValueError) as error:
        raise ValidationError("'yrep' must be numeric.") from error

    if yrep.ndim == 1:
        yrep = yrep[None]
    if yrep.ndim != 2:
        raise ValidationError(
            f"'yrep' must be a 2D (draws, observations) array, got {yrep.ndim} "
            "dimensions."
        )
    if yrep.shape[1] != y.size:
        raise ValidationError(
            "'yrep' must have one column per observation in 'y', got "
            f"{yrep.shape[1]} columns for {y.size} observations."
        )
    if np.isnan(yrep).any():
        raise ValidationError("NAs not allowed in 'yrep'.")

    return yrep


def validate_group(
    group: "custom_types.ArrayLike", y: npt.NDArray[np.floating]
) -> npt.NDArray:
    """Check a grouping vector against the observations.

    :param group: One group label per observation
    :type group: custom_types.ArrayLike
    :param y: Validated observations
    :type y: npt.NDArray[np.floating]

    :returns: ``group`` as a 1D array
    :rtype: npt.NDArray

    :raises ValidationError: If ``group`` has the wrong length or contains
        missing values
    """
    group = utils.to_numpy(group)
    if group.ndim != 1:
        raise ValidationError(f"'group' must be a vector, got {group.ndim} dimensions.")
    if group.size != y.size:
        raise ValidationError(
            f"'group' must have the same length as 'y', got {group.size} and "
            f"{y.size}."
        )
    if pd.isna(group).any():
        raise ValidationError("NAs not allowed in 'group'.")

    return group


def resolve_stat(stat: "custom_types.StatType") -> tuple[str, Callable[..., Any]]:
    """Resolve a test statistic to a display name and a function.

    :param stat: Name of a statistic or a callable reducing a vector to a scalar
    :type stat: custom_types.StatType

    :returns: The statistic's display name and function
    :rtype: tuple[str, Callable[..., Any]]

    :raises StatError: If no function of the given name exists
    """
    if callable(stat):
        name = getattr(stat, "__name__", "stat")
        return ("stat" if name == "<lambda>" else name), stat

    if not isinstance(stat, str):
        raise StatError(
            f"'stat' must be a string or a callable, got {type(stat).__name__}."
        )

    if stat in _STAT_REGISTRY:
        return stat, _STAT_REGISTRY[stat]
    for module in (np, stats):
        func = getattr(module, stat, None)
        if callable(func):
            return stat, func

    raise StatError(f"Could not find a function named '{stat}' to use as 'stat'.")


def validate_stat(
    stat: Union["custom_types.StatType", Sequence["custom_types.StatType"]],
    n_stats: "custom_types.Integer",
) -> list[tuple[str, Callable[..., Any]]]:
    """Check the number of test statistics and resolve each of them.

    :param stat: A single statistic or a sequence of statistics
    :type stat: Union[custom_types.StatType, Sequence[custom_types.StatType]]
    :param n_stats: Number of statistics the plot requires
    :type n_stats: custom_types.Integer

    :returns: Display name and function of each statistic
    :rtype: list[tuple[str, Callable[..., Any]]]

    :raises StatError: If the number of statistics is wrong or one cannot be
        resolved
    """
    stat = [stat] if isinstance(stat, str) or callable(stat) else list(stat)
    if len(stat) != n_stats:
        raise StatError(f"'stat' must have length {n_stats}, got {len(stat)}.")
    return [resolve_stat(s) for s in stat]


def compute_stat(
    func: Callable[..., Any], data: npt.NDArray[np.floating]
) -> npt.NDArray[np.floating]:
    """Apply a test statistic to every row of a 2D array.

    :param func: Statistic reducing a vector to a scalar
    :type func: Callable[..., Any]
    :param data: Array with one dataset per row
    :type data: npt.NDArray[np.floating]

    :returns: One statistic value per row
    :rtype: npt.NDArray[np.floating]

    :raises StatError: If the statistic does not return a scalar
    """
    results = [func(row) for row in data]
    if any(np.ndim(r) != 0 for r in results):
        raise StatError("'stat' must return a single value for each dataset.")
    return np.asarray(results, dtype=float)


def validate_chain_argument(
    chain: Optional["custom_types.Integer"], n_chains: "custom_types.Integer"
) -> Optional[int]:
    """Check a ``chain`` argument selecting one chain to highlight.

    :param chain: One-based chain number, or None
    :type chain: Optional[custom_types.Integer]
    :param n_chains: Number of available chains
    :type n_chains: custom_types.Integer

    :returns: The chain number as an int, or None
    :rtype: Optional[int]

    :raises ChainError: If the chain number is below one or above the number
        of chains
    """
    if chain is None:
        return None
    if chain < 1:
        raise ChainError(f"'chain' is {chain}, but chain >= 1 is required.")
    if chain > n_chains:
        raise ChainError(f"'chain' is {chain}, but only {n_chains} chains found.")
    return int(chain)


def validate_multiple_chains(
    n_chains: "custom_types.Integer", plot_name: str
) -> None:
    """Check that draws contain more than one chain.

    :param n_chains: Number of chains in the draws
    :type n_chains: custom_types.Integer
    :param plot_name: Name of the plotting function, used in the message
    :type plot_name: str

    :raises ChainError: If there is only one chain
    """
    if n_chains < 2:
        raise ChainError(
            f"'{plot_name}' requires multiple chains, but 'x' contains only "
            f"{n_chains} chain."
        )


def validate_probs(probs: npt.ArrayLike) -> npt.NDArray[np.floating]:
    """Check an array of probabilities used to mark quantiles."""
    values = np.asarray(probs, dtype=float).ravel()
    if values.size == 0 or ((values < 0) | (values > 1)).any():
        raise ValidationError("'probs' must be probabilities in [0, 1].")
    return values
