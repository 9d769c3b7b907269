import numpy as np
import pandas as pd
import pytest
import torch

from scipy import stats

from mcmcplot.exceptions import ChainError, StatError, ValidationError
from mcmcplot.validation import (
    compute_stat,
    resolve_stat,
    validate_chain_argument,
    validate_group,
    validate_multiple_chains,
    validate_probs,
    validate_stat,
    validate_y,
    validate_yrep,
)


def test_validate_y_inputs():
    assert validate_y([1, 2, 3]).dtype == float
    assert validate_y(pd.Series([1.0, 2.0])).shape == (2,)
    assert validate_y(torch.tensor([1.0, 2.0])).shape == (2,)
    assert validate_y(np.ones((4, 1))).shape == (4,)


@pytest.mark.parametrize(
    "y, message",
    [
        ([1.0, np.nan], "NAs not allowed in 'y'"),
        (["a", "b"], "'y' must be numeric"),
        (np.ones((3, 2)), "'y' must be a vector"),
        ([], "at least one observation"),
    ],
)
def test_validate_y_errors(y, message):
    with pytest.raises(ValidationError, match=message):
        validate_y(y)


def test_validate_yrep(y, yrep):
    assert validate_yrep(yrep, y).shape == (50, 434)

    # A single replicate becomes one row
    assert validate_yrep(yrep[0], y).shape == (1, 434)


def test_validate_yrep_errors(y, yrep):
    with pytest.raises(ValidationError, match="one column per observation"):
        validate_yrep(yrep[:, :-1], y)

    bad = yrep.copy()
    bad[3, 3] = np.nan
    with pytest.raises(ValidationError, match="NAs not allowed in 'yrep'"):
        validate_yrep(bad, y)

    with pytest.raises(ValidationError, match="2D"):
        validate_yrep(np.ones((2, 2, 434)), y)


def test_validate_group(y, group):
    assert validate_group(group, y).shape == y.shape

    with pytest.raises(ValidationError, match="same length as 'y'"):
        validate_group(group[:-1], y)

    bad = group.astype(object)
    bad[0] = None
    with pytest.raises(ValidationError, match="NAs not allowed in 'group'"):
        validate_group(bad, y)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("mean", np.mean),
        ("median", np.median),
        ("max", np.max),
        ("sd", lambda v: np.std(v, ddof=1)),
        ("var", lambda v: np.var(v, ddof=1)),
        ("iqr", stats.iqr),
        ("q25", lambda v: np.quantile(v, 0.25)),
        ("ptp", np.ptp),
        ("skew", stats.skew),
    ],
)
def test_resolve_stat_by_name(name, expected):
    values = np.array([1.0, 4.0, 2.0, 8.0, 5.0, 7.0])
    resolved_name, func = resolve_stat(name)
    assert resolved_name == name
    assert func(values) == pytest.approx(expected(values))


def test_resolve_stat_callable():
    def prop_zero(v):
        return np.mean(v == 0)

    assert resolve_stat(prop_zero)[0] == "prop_zero"
    assert resolve_stat(lambda v: v.max())[0] == "stat"


def test_resolve_stat_unknown():
    with pytest.raises(StatError, match="Could not find a function named 'nope'"):
        resolve_stat("nope")


def test_validate_stat_length():
    assert [name for name, _ in validate_stat(("mean", "sd"), 2)] == ["mean", "sd"]
    assert len(validate_stat("mean", 1)) == 1

    with pytest.raises(StatError, match="'stat' must have length 2, got 1"):
        validate_stat("mean", 2)
    with pytest.raises(StatError, match="'stat' must have length 1, got 2"):
        validate_stat(["mean", "sd"], 1)


def test_compute_stat():
    data = np.arange(12.0).reshape(3, 4)
    np.testing.assert_allclose(compute_stat(np.mean, data), [1.5, 5.5, 9.5])

    with pytest.raises(StatError, match="single value"):
        compute_stat(lambda v: v * 2, data)


def test_validate_chain_argument():
    assert validate_chain_argument(None, 3) is None
    assert validate_chain_argument(3, 3) == 3

    with pytest.raises(ChainError, match="chain >= 1"):
        validate_chain_argument(0, 3)
    with pytest.raises(ChainError, match="'chain' is 4, but only 3 chains found"):
        validate_chain_argument(4, 3)


def test_validate_multiple_chains():
    validate_multiple_chains(2, "mcmc_violin")
    with pytest.raises(ChainError, match="'mcmc_violin' requires multiple chains"):
        validate_multiple_chains(1, "mcmc_violin")


def test_validate_probs():
    np.testing.assert_allclose(validate_probs([0.1, 0.9]), [0.1, 0.9])
    np.testing.assert_allclose(validate_probs(np.array([0.25, 0.75])), [0.25, 0.75])
    with pytest.raises(ValidationError, match=r"\[0, 1\]"):
        validate_probs([0.5, 1.5])
