# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Custom type definitions for mcmcplot.

This module provides type aliases and unions for the inputs accepted by the
plotting functions, including the many forms MCMC draws may take, test
statistic specifications and the composed HoloViews objects that are returned.

All imports are conditional on TYPE_CHECKING to avoid import-time cost while
maintaining proper type hints for development and documentation tools.
"""

from typing import Any, Callable, TYPE_CHECKING, Union

# Everything in this file is only imported if TYPE_CHECKING is True.
if TYPE_CHECKING:

    import arviz as az
    import numpy as np
    import numpy.typing as npt
    import pandas as pd
    import torch
    import xarray as xr

# Scalar types
Integer = Union[int, "np.integer"]
"""Type alias for integer values.

Accepts both Python's built-in int and NumPy integer types.

:type: Union[int, np.integer]
"""

Float = Union[float, "np.floating"]
"""Type alias for floating-point values.

Accepts both Python's built-in float and NumPy floating-point types.

:type: Union[float, np.floating]
"""

# Array types
ArrayLike = Union["npt.ArrayLike", "torch.Tensor", "pd.Series"]
"""Type alias for one- or two-dimensional numeric inputs such as observations
and replicated datasets.

:type: Union[npt.ArrayLike, torch.Tensor, pd.Series]
"""

MCMCInput = Union[
    "npt.NDArray",
    "torch.Tensor",
    "pd.DataFrame",
    dict[str, Any],
    list[Any],
    "xr.Dataset",
    "az.InferenceData",
]
"""Type alias for every accepted representation of MCMC draws.

:type: Union[npt.NDArray, torch.Tensor, pd.DataFrame, dict, list, xr.Dataset,
    az.InferenceData]
"""

# Parameter selection and transformation types
Transformation = Union[str, Callable[..., Any]]
"""A transformation given either as the name of a NumPy function or as a
callable.

:type: Union[str, Callable]
"""

TransformationsType = Union[Transformation, dict[str, Transformation], None]
"""Transformations applied to selected parameters: a single transformation
for all parameters or a mapping from parameter name to transformation.

:type: Union[Transformation, dict[str, Transformation], None]
"""

# Statistic types
StatType = Union[str, Callable[..., Any]]
"""A test statistic given either by name or as a callable reducing a vector
to a scalar.

:type: Union[str, Callable]
"""

# Faceting types
FacetArgs = Union[dict[str, Any], None]
"""Faceting options. Recognized keys are ``ncols`` and ``scales``.

:type: Union[dict[str, Any], None]
"""
