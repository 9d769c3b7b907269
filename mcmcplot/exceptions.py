"""Custom exception classes for the mcmcplot package.

This module defines a hierarchy of custom exceptions used throughout the
mcmcplot package to provide clear error reporting. All custom exceptions
inherit from the base MCMCPlotError class to allow for unified exception
handling when needed.

Exceptions describing malformed arguments also inherit from ``ValueError`` so
that callers who already guard against bad input with ``except ValueError``
keep working.
"""


class MCMCPlotError(Exception):
    """Base class for all exceptions in the mcmcplot package.

    This exception serves as the root of the mcmcplot exception hierarchy,
    allowing users to catch all package-specific exceptions with a single
    except clause.

    :param message: Error message describing the exception
    :type message: str

    Example:
        >>> try:
        ...     mcmcplot.mcmc_hist(draws, pars=["not_a_parameter"])
        ... except MCMCPlotError as e:
        ...     print(f"mcmcplot error occurred: {e}")
    """


class ValidationError(MCMCPlotError, ValueError):
    """Raised when an input array has the wrong shape, type or contents.

    Typical causes are observations containing missing values, replicated
    datasets whose number of columns does not match the observations, or a
    grouping vector of the wrong length.

    :param message: Error message naming the offending argument
    :type message: str
    """


class ChainError(MCMCPlotError, ValueError):
    """Raised when a plot cannot be built from the chains that were provided.

    This covers functions that need more than one chain as well as invalid
    ``chain`` and ``highlight`` arguments.

    :param message: Error message describing the chain problem
    :type message: str
    """


class ParameterError(MCMCPlotError, ValueError):
    """Raised when parameter selection or transformation fails.

    :param message: Error message listing the unmatched parameter names
    :type message: str
    """


class StatError(MCMCPlotError, ValueError):
    """Raised when a test statistic cannot be resolved or has the wrong arity.

    :param message: Error message describing the statistic problem
    :type message: str
    """


class ColorSchemeError(MCMCPlotError, ValueError):
    """Raised when a color scheme name or specification is invalid.

    :param message: Error message describing the scheme problem
    :type message: str
    """


class NUTSDataError(ValidationError):
    """Raised when NUTS sampler diagnostics or log-posterior data are malformed.

    :param message: Error message describing the malformed data
    :type message: str
    """
