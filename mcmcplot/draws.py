# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Containers and converters for MCMC draws and NUTS sampler diagnostics.

Every MCMC plotting function in mcmcplot starts by coercing its input into an
:py:class:`MCMCDraws` object, a thin wrapper around a three-dimensional array
with shape (iterations, chains, parameters) and the list of parameter names.
The wrapper handles parameter selection, transformation, warmup removal and
conversion to the tidy (long) data frame that the chart builders consume.

Supported MCMC inputs:
    - NumPy arrays or PyTorch tensors, 2D (iterations, parameters) or 3D
      (iterations, chains, parameters)
    - pandas DataFrames with one column per parameter and, optionally, a chain
      column
    - Dictionaries mapping parameter names to (iterations,) or
      (iterations, chains) arrays
    - Lists with one 2D array or DataFrame per chain
    - xarray Datasets and ArviZ InferenceData objects with (chain, draw, ...)
      dimensions

The module also extracts NUTS sampler diagnostics and the log posterior from
ArviZ InferenceData objects and CmdStan-style draws data frames, producing the
tidy frames used by the NUTS plots.
"""

from __future__ import annotations

import re
import warnings

from typing import Any, Optional, Sequence, TYPE_CHECKING, Union

import numpy as np
import numpy.typing as npt
import pandas as pd
import torch
import xarray as xr

from mcmcplot import utils
from mcmcplot.defaults import (
    ARVIZ_TO_STAN_NAMES,
    NUTS_PARAMETERS,
    NUTS_REQUIRED_COLUMNS,
)
from mcmcplot.exceptions import NUTSDataError, ParameterError, ValidationError

if TYPE_CHECKING:
    from mcmcplot import custom_types

# ArviZ is only needed when an InferenceData object is passed in
az = utils.lazy_import("arviz")

# Bookkeeping columns that are never treated as parameters
_CHAIN_COLUMNS = ("chain", "Chain", ".chain", "chain__")
_ITERATION_COLUMNS = (
    "iteration",
    "Iteration",
    ".iteration",
    "draw",
    ".draw",
    "iter__",
    "draw__",
)


class MCMCDraws:
    """MCMC draws organized as (iterations, chains, parameters).

    :param values: Array of draws with shape (iterations, chains, parameters)
    :type values: npt.NDArray
    :param parameters: Names of the parameters, one per entry of the last axis
    :type parameters: Sequence[str]
    :param first_iteration: Iteration number of the first row of ``values``.
        Non-default values arise when warmup iterations are removed.
        (Default: 1)
    :type first_iteration: custom_types.Integer

    :raises ValidationError: If the array is not 3D, is empty, or does not
        match the number of parameter names
    :raises ParameterError: If parameter names are not unique

    Example:
        >>> draws = MCMCDraws(np.random.randn(100, 4, 2), ["alpha", "sigma"])
        >>> draws.n_chains
        4
        >>> draws.melt().columns.tolist()
        ['Iteration', 'Chain', 'Parameter', 'Value']
    """

    def __init__(
        self,
        values: npt.NDArray,
        parameters: Sequence[str],
        first_iteration: "custom_types.Integer" = 1,
    ):
        # Check the array
        if values.ndim != 3:
            raise ValidationError(
                "MCMC draws must be a 3D array with shape (iterations, chains, "
                f"parameters), got {values.ndim} dimensions."
            )
        if min(values.shape) < 1:
            raise ValidationError(
                "MCMC draws must contain at least one iteration, one chain and "
                f"one parameter, got shape {values.shape}."
            )

        # Check the parameter names
        parameters = [str(p) for p in parameters]
        if len(parameters) != values.shape[2]:
            raise ValidationError(
                f"Got {len(parameters)} parameter names for {values.shape[2]} "
                "parameters."
            )
        if len(set(parameters)) != len(parameters):
            raise ParameterError("Parameter names must be unique.")

        self.values = values
        self.parameters = parameters
        self.first_iteration = int(first_iteration)

    def __repr__(self) -> str:
        return (
            f"MCMCDraws(iterations={self.n_iterations}, chains={self.n_chains}, "
            f"parameters={self.parameters})"
        )

    @property
    def n_iterations(self) -> int:
        """Number of iterations per chain."""
        return self.values.shape[0]

    @property
    def n_chains(self) -> int:
        """Number of chains."""
        return self.values.shape[1]

    @property
    def n_parameters(self) -> int:
        """Number of parameters."""
        return self.values.shape[2]

    @property
    def has_multiple_chains(self) -> bool:
        """Whether the draws come from more than one chain."""
        return self.n_chains > 1

    @property
    def iterations(self) -> npt.NDArray[np.int64]:
        """Iteration numbers of the rows of ``values``."""
        return np.arange(
            self.first_iteration, self.first_iteration + self.n_iterations
        )

    def select(
        self,
        pars: Union[str, Sequence[str]] = (),
        regex_pars: Union[str, Sequence[str]] = (),
    ) -> MCMCDraws:
        """Select a subset of parameters.

        Explicitly named parameters come first, in the order given, followed by
        parameters matching any of the regular expressions, in their original
        order. Duplicates are dropped. With neither argument, all parameters are
        kept.

        :param pars: Names of parameters to keep (Default: ())
        :type pars: Union[str, Sequence[str]]
        :param regex_pars: Regular expressions matched against parameter names
            with ``re.search`` (Default: ())
        :type regex_pars: Union[str, Sequence[str]]

        :returns: Draws restricted to the selected parameters
        :rtype: MCMCDraws

        :raises ParameterError: If a name in ``pars`` does not exist or a
            pattern in ``regex_pars`` matches nothing
        """
        pars = [pars] if isinstance(pars, str) else list(pars)
        regex_pars = [regex_pars] if isinstance(regex_pars, str) else list(regex_pars)
        if not pars and not regex_pars:
            return self

        # Explicit names must all exist
        if missing := [p for p in pars if p not in self.parameters]:
            raise ParameterError(
                f"Some 'pars' don't match parameter names: {', '.join(missing)}"
            )

        # Every pattern must match at least one parameter
        matched = set()
        for pattern in regex_pars:
            hits = {p for p in self.parameters if re.search(pattern, p)}
            if not hits:
                raise ParameterError(f"No matches for 'regex_pars' pattern '{pattern}'.")
            matched |= hits

        selected = utils.unique_in_order(
            pars + [p for p in self.parameters if p in matched]
        )
        indices = [self.parameters.index(p) for p in selected]

        return MCMCDraws(
            self.values[..., indices], selected, first_iteration=self.first_iteration
        )

    def transform(
        self, transformations: "custom_types.TransformationsType" = None
    ) -> MCMCDraws:
        """Apply transformations to parameters.

        :param transformations: A single transformation applied to every
            parameter, or a mapping from parameter name to transformation. A
            transformation is either the name of a NumPy function (the
            parameter is relabelled ``name(param)``) or a callable (relabelled
            ``t(param)``). (Default: None)
        :type transformations: custom_types.TransformationsType

        :returns: Transformed draws
        :rtype: MCMCDraws

        :raises ParameterError: If a transformation refers to an unknown
            parameter or names a function NumPy does not provide

        Example:
            >>> draws.transform({"sigma": "log"}).parameters
            ['alpha', 'log(sigma)']
        """
        if transformations is None:
            return self
        if not isinstance(transformations, dict):
            transformations = {p: transformations for p in self.parameters}

        # Every transformed parameter must exist
        if unknown := [p for p in transformations if p not in self.parameters]:
            raise ParameterError(
                "Some names in 'transformations' don't match parameter names: "
                f"{', '.join(unknown)}"
            )

        values = self.values.astype(float, copy=True)
        parameters = list(self.parameters)
        for name, transformation in transformations.items():
            func, label = _resolve_transformation(transformation)
            index = self.parameters.index(name)
            values[..., index] = func(values[..., index])
            parameters[index] = f"{label}({name})"

        return MCMCDraws(values, parameters, first_iteration=self.first_iteration)

    def drop_warmup(self, n_warmup: "custom_types.Integer") -> MCMCDraws:
        """Remove the first ``n_warmup`` iterations of every chain.

        :param n_warmup: Number of warmup iterations to remove
        :type n_warmup: custom_types.Integer

        :returns: Draws without warmup iterations. Iteration numbers are kept.
        :rtype: MCMCDraws

        :raises ValidationError: If ``n_warmup`` leaves no iterations
        """
        if not 0 <= n_warmup < self.n_iterations:
            raise ValidationError(
                f"'n_warmup' must be between 0 and the number of iterations "
                f"({self.n_iterations}), got {n_warmup}."
            )
        return MCMCDraws(
            self.values[n_warmup:],
            self.parameters,
            first_iteration=self.first_iteration + n_warmup,
        )

    def melt(self) -> pd.DataFrame:
        """Reshape the draws into tidy (long) form.

        :returns: DataFrame with one row per draw and the columns "Iteration",
            "Chain" (both one-based), "Parameter" (ordered categorical) and
            "Value". Rows are ordered by parameter, then chain, then iteration.
        :rtype: pd.DataFrame
        """
        n_iter, n_chain, n_par = self.values.shape
        return pd.DataFrame(
            {
                "Iteration": np.tile(self.iterations, n_par * n_chain),
                "Chain": np.tile(np.repeat(np.arange(1, n_chain + 1), n_iter), n_par),
                "Parameter": pd.Categorical(
                    np.repeat(self.parameters, n_chain * n_iter),
                    categories=self.parameters,
                    ordered=True,
                ),
                "Value": self.values.transpose(2, 1, 0).ravel(),
            }
        )


def _resolve_transformation(
    transformation: "custom_types.Transformation",
) -> tuple[Any, str]:
    """Get the function and label for a transformation."""
    if isinstance(transformation, str):
        func = getattr(np, transformation, None)
        if not callable(func):
            raise ParameterError(
                f"'{transformation}' is not a NumPy function and cannot be used "
                "as a transformation."
            )
        return func, transformation

    if callable(transformation):
        return transformation, "t"

    raise ParameterError(
        "Transformations must be callables or names of NumPy functions, got "
        f"{type(transformation).__name__}."
    )


def _numeric(values: Any, name: str) -> npt.NDArray[np.floating]:
    """Convert to a float array, raising a ValidationError for non-numeric data."""
    try:
        return utils.to_numpy(values, dtype=float)
    except (TypeError, ValueError) as error:
        raise ValidationError(f"{name} must be numeric.") from error


def _from_dataset(dataset: xr.Dataset) -> MCMCDraws:
    """Flatten an xarray Dataset with (chain, draw, ...) variables."""
    arrays, names = [], []
    for varname, variable in dataset.data_vars.items():
        if "chain" not in variable.dims or "draw" not in variable.dims:
            raise ValidationError(
                f"Variable '{varname}' must have 'chain' and 'draw' dimensions."
            )

        # Move to (draw, chain, ...) and flatten the trailing dimensions
        other_dims = [d for d in variable.dims if d not in ("chain", "draw")]
        values = _numeric(
            variable.transpose("draw", "chain", *other_dims).values, f"'{varname}'"
        )
        trailing_shape = values.shape[2:]
        arrays.append(values.reshape(values.shape[:2] + (-1,)))
        names.extend(
            utils.indexed_name(str(varname), index)
            for index in np.ndindex(*trailing_shape)
        )

    if not arrays:
        raise ValidationError("The dataset does not contain any variables.")

    return MCMCDraws(np.concatenate(arrays, axis=2), names)


def _from_dataframe(frame: pd.DataFrame) -> MCMCDraws:
    """Convert a DataFrame of draws, splitting chains on a chain column if present."""
    chain_column = next((c for c in _CHAIN_COLUMNS if c in frame.columns), None)
    parameters = [
        c
        for c in frame.columns
        if c != chain_column and c not in _ITERATION_COLUMNS
    ]

    # Single chain
    if chain_column is None:
        values = _numeric(frame[parameters], "'x'")
        return MCMCDraws(values[:, None, :], parameters)

    # One block of rows per chain. All chains must have the same length.
    chains = [
        _numeric(chain_frame[parameters], "'x'")
        for _, chain_frame in frame.groupby(chain_column, sort=True)
    ]
    if len({chain.shape[0] for chain in chains}) != 1:
        raise ValidationError("All chains must have the same number of iterations.")

    return MCMCDraws(np.stack(chains, axis=1), parameters)


def _from_dict(draws: dict[str, Any]) -> MCMCDraws:
    """Convert a mapping of parameter name to (iterations,) or (iterations, chains)."""
    arrays = []
    for name, values in draws.items():
        values = _numeric(values, f"'{name}'")
        if values.ndim == 1:
            values = values[:, None]
        elif values.ndim != 2:
            raise ValidationError(
                f"'{name}' must be 1D (iterations) or 2D (iterations, chains), "
                f"got {values.ndim} dimensions."
            )
        arrays.append(values)

    if not arrays:
        raise ValidationError("'x' does not contain any parameters.")
    if len({a.shape for a in arrays}) != 1:
        raise ValidationError("All parameters must have the same shape.")

    return MCMCDraws(np.stack(arrays, axis=2), list(draws))


def _from_chain_list(
    chains: Sequence[Any], parameter_names: Optional[Sequence[str]]
) -> MCMCDraws:
    """Convert a list with one (iterations, parameters) block per chain."""
    if len(chains) == 0:
        raise ValidationError("'x' must contain at least one chain.")
    if parameter_names is None and isinstance(chains[0], pd.DataFrame):
        parameter_names = [str(c) for c in chains[0].columns]

    arrays = [_numeric(chain, "'x'") for chain in chains]
    if any(a.ndim != 2 for a in arrays):
        raise ValidationError("Each chain must be a 2D (iterations, parameters) array.")
    if len({a.shape for a in arrays}) != 1:
        raise ValidationError("All chains must have the same shape.")

    values = np.stack(arrays, axis=1)
    return MCMCDraws(values, parameter_names or _default_names(values.shape[2]))


def _default_names(n: int) -> list[str]:
    return [f"V{i}" for i in range(1, n + 1)]


def as_mcmc_draws(
    x: "custom_types.MCMCInput",
    parameter_names: Optional[Sequence[str]] = None,
) -> MCMCDraws:
    """Coerce any supported representation of MCMC draws to MCMCDraws.

    :param x: MCMC draws. See the module documentation for accepted types.
    :type x: custom_types.MCMCInput
    :param parameter_names: Names for the parameters of array inputs. Ignored
        for inputs that carry their own names. Defaults to "V1", "V2", ...
    :type parameter_names: Optional[Sequence[str]]

    :returns: The draws with shape (iterations, chains, parameters)
    :rtype: MCMCDraws

    :raises ValidationError: If the input cannot be interpreted as MCMC draws
    """
    if isinstance(x, MCMCDraws):
        return x
    if isinstance(x, (np.ndarray, torch.Tensor)):
        return _from_array(x, parameter_names)
    if isinstance(x, xr.Dataset):
        return _from_dataset(x)
    if isinstance(x, pd.DataFrame):
        return _from_dataframe(x)
    if isinstance(x, dict):
        return _from_dict(x)
    if isinstance(x, (list, tuple)):
        return _from_chain_list(x, parameter_names)

    # ArviZ is only imported once the cheaper checks have failed
    if isinstance(x, az.InferenceData):
        if "posterior" not in x.groups():
            raise ValidationError("The InferenceData object has no posterior group.")
        return _from_dataset(x.posterior)

    return _from_array(x, parameter_names)


def _from_array(x: Any, parameter_names: Optional[Sequence[str]]) -> MCMCDraws:
    """Reshape a 2D or 3D array of draws."""
    values = _numeric(x, "'x'")
    if values.ndim == 2:
        values = values[:, None, :]
    elif values.ndim != 3:
        raise ValidationError(
            "Arrays of MCMC draws must be 2D (iterations, parameters) or 3D "
            f"(iterations, chains, parameters), got {values.ndim} dimensions."
        )

    return MCMCDraws(values, parameter_names or _default_names(values.shape[2]))


def prepare_mcmc_array(
    x: "custom_types.MCMCInput",
    pars: Union[str, Sequence[str]] = (),
    regex_pars: Union[str, Sequence[str]] = (),
    transformations: "custom_types.TransformationsType" = None,
    parameter_names: Optional[Sequence[str]] = None,
) -> MCMCDraws:
    """Coerce, select and transform MCMC draws in one step.

    This is the common entry point of every MCMC plotting function.

    :param x: MCMC draws in any supported representation
    :type x: custom_types.MCMCInput
    :param pars: Names of parameters to keep (Default: ())
    :type pars: Union[str, Sequence[str]]
    :param regex_pars: Regular expressions selecting further parameters
        (Default: ())
    :type regex_pars: Union[str, Sequence[str]]
    :param transformations: Transformations to apply after selection
        (Default: None)
    :type transformations: custom_types.TransformationsType
    :param parameter_names: Names for the parameters of array inputs
        (Default: None)
    :type parameter_names: Optional[Sequence[str]]

    :returns: Selected and transformed draws
    :rtype: MCMCDraws

    Non-finite draws are kept in the returned object (trace plots show them as
    gaps) but a warning is raised because distribution plots drop them.
    """
    draws = (
        as_mcmc_draws(x, parameter_names=parameter_names)
        .select(pars=pars, regex_pars=regex_pars)
        .transform(transformations)
    )

    if n_nonfinite := int((~np.isfinite(draws.values)).sum()):
        warnings.warn(
            f"{n_nonfinite} non-finite draws found. They are omitted from "
            "histograms and density estimates."
        )

    return draws


def _tidy_chain_draw(
    values: npt.NDArray, parameter: Optional[str] = None
) -> pd.DataFrame:
    """Tidy a (chain, draw) array into Chain/Iteration/[Parameter]/Value columns."""
    n_chain, n_draw = values.shape
    frame = pd.DataFrame(
        {
            "Chain": np.repeat(np.arange(1, n_chain + 1), n_draw),
            "Iteration": np.tile(np.arange(1, n_draw + 1), n_chain),
            "Value": values.ravel().astype(float),
        }
    )
    if parameter is not None:
        frame.insert(2, "Parameter", parameter)
    return frame


def _stan_frame_bookkeeping(frame: pd.DataFrame) -> tuple[npt.NDArray, npt.NDArray]:
    """Get one-based chain and iteration numbers of a CmdStan-style draws frame."""
    chains = (
        frame["chain__"].to_numpy().astype(int)
        if "chain__" in frame.columns
        else np.ones(len(frame), dtype=int)
    )

    # Iterations are counted within each chain when not given explicitly
    for column in ("iter__", "draw__"):
        if column in frame.columns:
            return chains, frame[column].to_numpy().astype(int)
    iterations = pd.Series(chains).groupby(chains).cumcount().to_numpy() + 1
    return chains, iterations


def nuts_params(obj: Union[pd.DataFrame, "az.InferenceData"]) -> pd.DataFrame:
    """Extract NUTS sampler diagnostics in tidy form.

    :param obj: An ArviZ InferenceData object with a ``sample_stats`` group, a
        CmdStan-style draws DataFrame (``accept_stat__``, ``stepsize__``, ...
        columns, e.g. from ``CmdStanMCMC.draws_pd()``) or a DataFrame that is
        already in tidy form.
    :type obj: Union[pd.DataFrame, az.InferenceData]

    :returns: DataFrame with columns "Chain", "Iteration", "Parameter" and
        "Value"
    :rtype: pd.DataFrame

    :raises NUTSDataError: If no NUTS diagnostics can be found

    Example:
        >>> idata = az.load_arviz_data("centered_eight")
        >>> params = nuts_params(idata)
        >>> sorted(params.Parameter.unique())
        ['accept_stat__', 'divergent__', 'energy__', ...]
    """
    # Already tidy
    if isinstance(obj, pd.DataFrame) and set(NUTS_REQUIRED_COLUMNS) <= set(obj.columns):
        return validate_nuts_data_frame(obj)

    # CmdStan-style wide frame
    if isinstance(obj, pd.DataFrame):
        present = [p for p in NUTS_PARAMETERS if p in obj.columns]
        if not present:
            raise NUTSDataError("No NUTS parameters found in the data frame.")
        chains, iterations = _stan_frame_bookkeeping(obj)
        wide = obj[present].assign(Chain=chains, Iteration=iterations)
        tidy = wide.melt(
            id_vars=["Chain", "Iteration"], var_name="Parameter", value_name="Value"
        )
        return validate_nuts_data_frame(tidy)

    # InferenceData
    if isinstance(obj, az.InferenceData):
        if "sample_stats" not in obj.groups():
            raise NUTSDataError("The InferenceData object has no sample_stats group.")
        sample_stats = obj.sample_stats
        frames = [
            _tidy_chain_draw(
                sample_stats[arviz_name].transpose("chain", "draw").values,
                parameter=stan_name,
            )
            for arviz_name, stan_name in ARVIZ_TO_STAN_NAMES.items()
            if arviz_name in sample_stats
        ]
        if not frames:
            raise NUTSDataError("No NUTS parameters found in sample_stats.")
        return validate_nuts_data_frame(pd.concat(frames, ignore_index=True))

    raise NUTSDataError(
        f"Cannot extract NUTS parameters from an object of type {type(obj).__name__}."
    )


def log_posterior(obj: Union[pd.DataFrame, "az.InferenceData"]) -> pd.DataFrame:
    """Extract the log posterior of every draw in tidy form.

    :param obj: An ArviZ InferenceData object whose ``sample_stats`` group
        contains ``lp``, or a CmdStan-style draws DataFrame with an ``lp__``
        column
    :type obj: Union[pd.DataFrame, az.InferenceData]

    :returns: DataFrame with columns "Chain", "Iteration" and "Value"
    :rtype: pd.DataFrame

    :raises NUTSDataError: If no log posterior can be found
    """
    if isinstance(obj, pd.DataFrame):
        if "lp__" not in obj.columns:
            raise NUTSDataError("No 'lp__' column found in the data frame.")
        chains, iterations = _stan_frame_bookkeeping(obj)
        return pd.DataFrame(
            {
                "Chain": chains,
                "Iteration": iterations,
                "Value": obj["lp__"].to_numpy(dtype=float),
            }
        )

    if isinstance(obj, az.InferenceData):
        if "sample_stats" not in obj.groups() or "lp" not in obj.sample_stats:
            raise NUTSDataError("No 'lp' variable found in sample_stats.")
        return _tidy_chain_draw(obj.sample_stats["lp"].transpose("chain", "draw").values)

    raise NUTSDataError(
        f"Cannot extract the log posterior from an object of type {type(obj).__name__}."
    )


def validate_nuts_data_frame(
    x: pd.DataFrame, lp: Optional[pd.DataFrame] = None
) -> pd.DataFrame:
    """Check a tidy NUTS parameter frame and, optionally, its log posterior.

    :param x: NUTS parameters with columns "Chain", "Iteration", "Parameter"
        and "Value"
    :type x: pd.DataFrame
    :param lp: Log posterior with columns "Chain", "Iteration" and "Value"
        (Default: None)
    :type lp: Optional[pd.DataFrame]

    :returns: A copy of ``x`` with numeric "Value" and string "Parameter"
        columns
    :rtype: pd.DataFrame

    :raises NUTSDataError: If columns are missing, values are non-numeric or the
        chains of ``x`` and ``lp`` differ
    """
    if missing := [c for c in NUTS_REQUIRED_COLUMNS if c not in x.columns]:
        raise NUTSDataError(
            f"NUTS parameters are missing the column(s): {', '.join(missing)}"
        )
    if not pd.api.types.is_numeric_dtype(x["Value"]):
        raise NUTSDataError("The 'Value' column of the NUTS parameters must be numeric.")
    x = x.astype({"Parameter": str, "Value": float})

    if lp is not None:
        if missing := [c for c in ("Chain", "Iteration", "Value") if c not in lp.columns]:
            raise NUTSDataError(
                f"The log posterior is missing the column(s): {', '.join(missing)}"
            )
        if set(lp["Chain"].unique()) != set(x["Chain"].unique()):
            raise NUTSDataError("Number of chains in 'x' and 'lp' must be the same.")

    return x
