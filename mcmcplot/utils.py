# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.


"""Utility functions for the mcmcplot package.

This module provides various utility functions that support the core
functionality of mcmcplot, including:

    - Lazy importing of heavy optional backends (ArviZ)
    - Coercion of tensors, series and nested lists to NumPy arrays
    - Naming helpers for flattened multi-dimensional parameters

Users will not typically need to interact with this module directly--it is designed
to be used internally by mcmcplot.
"""

from __future__ import annotations

import importlib.util
import sys

from typing import Any, Iterable

import numpy as np
import numpy.typing as npt
import pandas as pd
import torch


def lazy_import(name: str):
    """Import a module only when it is first needed.

    This function implements lazy module importing to improve package import
    performance by deferring module loading until actual use.

    :param name: The fully qualified module name to import
    :type name: str

    :returns: The imported module
    :rtype: module

    :raises ImportError: If the specified module cannot be found

    Example:
        >>> # Module is not loaded until first use
        >>> az = lazy_import('arviz')
        >>> # Now arviz is actually imported
        >>> idata = az.from_dict(posterior={"mu": draws})

    .. note::
        If the module is already imported, returns the cached version
        from sys.modules for efficiency.
    """
    # Check if the module is already imported
    if name in sys.modules:
        return sys.modules[name]

    # If not, import it lazily (modified from here:
    # https://docs.python.org/3/library/importlib.html#implementing-lazy-imports)
    # Get the spec
    spec = importlib.util.find_spec(name)

    # If the spec is None, raise an ImportError
    if spec is None:
        raise ImportError(f"Module '{name}' not found.")

    # Create the module with a lazy loader
    spec.loader = importlib.util.LazyLoader(spec.loader)
    module = importlib.util.module_from_spec(spec)

    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def to_numpy(values: Any, dtype: Any = None) -> npt.NDArray:
    """Convert array-like input to a NumPy array.

    PyTorch tensors are detached and moved to the CPU, pandas objects are
    converted through ``to_numpy`` and everything else goes through
    ``np.asarray``.

    :param values: Array-like input
    :type values: Any
    :param dtype: Optional dtype of the returned array (Default: None)

    :returns: The input as a NumPy array
    :rtype: npt.NDArray

    Example:
        >>> to_numpy(torch.ones(3))
        array([1., 1., 1.], dtype=float32)
    """
    if isinstance(values, torch.Tensor):
        values = values.detach().cpu().numpy()
    elif isinstance(values, (pd.Series, pd.DataFrame)):
        values = values.to_numpy()

    return np.asarray(values, dtype=dtype)


def indexed_name(name: str, index: Iterable[int]) -> str:
    """Build the display name of one element of a multi-dimensional parameter.

    Indices are zero-based on input and one-based in the returned name, which
    follows the convention used by Stan output.

    :param name: Base name of the parameter
    :type name: str
    :param index: Zero-based index of the element
    :type index: Iterable[int]

    :returns: Name of the form ``name[i,j]``, or ``name`` for scalars
    :rtype: str

    Example:
        >>> indexed_name("beta", (0, 2))
        'beta[1,3]'
    """
    index = tuple(index)
    if len(index) == 0:
        return name
    return f"{name}[{','.join(str(i + 1) for i in index)}]"


def unique_in_order(values: Iterable[Any]) -> list[Any]:
    """Drop duplicates from an iterable while keeping first-seen order."""
    return list(dict.fromkeys(values))
