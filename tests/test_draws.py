import warnings

import numpy as np
import pandas as pd
import pytest
import torch
import xarray as xr

from mcmcplot import draws as draws_module
from mcmcplot.draws import (
    as_mcmc_draws,
    log_posterior,
    MCMCDraws,
    nuts_params,
    prepare_mcmc_array,
    validate_nuts_data_frame,
)
from mcmcplot.exceptions import NUTSDataError, ParameterError, ValidationError

PARAMETERS = ["alpha", "sigma", "beta[1]", "beta[2]"]


def test_example_draws(draws):
    assert draws.values.shape == (250, 4, 4)
    assert draws.parameters == PARAMETERS
    assert draws.has_multiple_chains


def test_array_inputs(draws_array):
    three_d = as_mcmc_draws(draws_array)
    assert three_d.n_chains == 4
    assert three_d.parameters == ["V1", "V2", "V3", "V4"]

    two_d = as_mcmc_draws(draws_array[:, 0], parameter_names=PARAMETERS)
    assert two_d.n_chains == 1
    assert two_d.parameters == PARAMETERS


def test_tensor_input(draws_array):
    from_tensor = as_mcmc_draws(torch.from_numpy(draws_array))
    np.testing.assert_allclose(from_tensor.values, draws_array)


def test_arrays_do_not_need_arviz(monkeypatch, draws_array):
    # Any use of ArviZ would fail
    monkeypatch.setattr(draws_module, "az", None)
    assert as_mcmc_draws(draws_array).n_chains == 4
    assert as_mcmc_draws(torch.from_numpy(draws_array)).n_chains == 4


def test_bad_array_shape():
    with pytest.raises(ValidationError, match="2D .* or 3D"):
        as_mcmc_draws(np.zeros(10))


def test_dataframe_with_chain_column(draws, draws_frame):
    converted = as_mcmc_draws(draws_frame)
    assert converted.parameters == PARAMETERS
    np.testing.assert_allclose(converted.values, draws.values)


def test_dataframe_single_chain(draws):
    frame = pd.DataFrame(draws.values[:, 0], columns=draws.parameters)
    converted = as_mcmc_draws(frame)
    assert converted.n_chains == 1
    assert converted.parameters == PARAMETERS


def test_dataframe_unequal_chains(draws_frame):
    with pytest.raises(ValidationError, match="same number of iterations"):
        as_mcmc_draws(draws_frame.iloc[:-1])


def test_dict_input(draws):
    converted = as_mcmc_draws({"a": draws.values[:, :, 0], "b": draws.values[:, :, 1]})
    assert converted.parameters == ["a", "b"]
    assert converted.n_chains == 4

    single = as_mcmc_draws({"a": np.arange(10.0)})
    assert single.values.shape == (10, 1, 1)


def test_chain_list_input(draws):
    chains = [pd.DataFrame(draws.values[:, c], columns=PARAMETERS) for c in range(4)]
    converted = as_mcmc_draws(chains)
    assert converted.parameters == PARAMETERS
    np.testing.assert_allclose(converted.values, draws.values)


def test_dataset_input():
    rng = np.random.default_rng(0)
    dataset = xr.Dataset(
        {
            "mu": (("chain", "draw"), rng.normal(size=(2, 30))),
            "theta": (("chain", "draw", "school"), rng.normal(size=(2, 30, 3))),
        }
    )
    converted = as_mcmc_draws(dataset)
    assert converted.values.shape == (30, 2, 4)
    assert converted.parameters == ["mu", "theta[1]", "theta[2]", "theta[3]"]
    np.testing.assert_allclose(
        converted.values[:, :, 2], dataset["theta"].values[:, :, 1].T
    )


def test_non_numeric_input():
    with pytest.raises(ValidationError, match="must be numeric"):
        as_mcmc_draws(pd.DataFrame({"a": ["x", "y"]}))


def test_duplicate_names():
    with pytest.raises(ParameterError, match="unique"):
        MCMCDraws(np.zeros((5, 1, 2)), ["a", "a"])


def test_select_order(draws):
    selected = draws.select(pars=["sigma"], regex_pars="beta")
    assert selected.parameters == ["sigma", "beta[1]", "beta[2]"]

    # No duplicates when a name is also matched by a pattern
    selected = draws.select(pars=["beta[2]"], regex_pars=r"^beta")
    assert selected.parameters == ["beta[2]", "beta[1]"]


def test_select_all(draws):
    assert draws.select().parameters == PARAMETERS


def test_select_unknown_pars(draws):
    with pytest.raises(ParameterError, match="don't match parameter names: gamma"):
        draws.select(pars=["alpha", "gamma"])


def test_select_unmatched_regex(draws):
    with pytest.raises(ParameterError, match="No matches for 'regex_pars'"):
        draws.select(regex_pars="^gamma")


def test_transform_by_name(draws):
    transformed = draws.transform({"sigma": "log"})
    assert transformed.parameters == ["alpha", "log(sigma)", "beta[1]", "beta[2]"]
    np.testing.assert_allclose(transformed.values[..., 1], np.log(draws.values[..., 1]))
    np.testing.assert_allclose(transformed.values[..., 0], draws.values[..., 0])


def test_transform_callable_all(draws):
    transformed = draws.select(pars=["alpha", "sigma"]).transform(lambda v: 2 * v)
    assert transformed.parameters == ["t(alpha)", "t(sigma)"]


def test_transform_unknown(draws):
    with pytest.raises(ParameterError, match="don't match parameter names: gamma"):
        draws.transform({"gamma": "exp"})
    with pytest.raises(ParameterError, match="not a NumPy function"):
        draws.transform({"alpha": "not_a_function"})


def test_drop_warmup(draws):
    trimmed = draws.drop_warmup(50)
    assert trimmed.n_iterations == 200
    assert trimmed.iterations[0] == 51

    with pytest.raises(ValidationError, match="n_warmup"):
        draws.drop_warmup(250)


def test_melt(draws):
    tidy = draws.select(pars=["sigma", "alpha"]).melt()
    assert tidy.columns.tolist() == ["Iteration", "Chain", "Parameter", "Value"]
    assert len(tidy) == 250 * 4 * 2
    assert tidy["Parameter"].cat.categories.tolist() == ["sigma", "alpha"]
    assert tidy["Chain"].min() == 1
    assert tidy["Chain"].max() == 4

    # Rows are ordered by parameter, then chain, then iteration
    first = tidy.iloc[:250]
    assert (first["Parameter"] == "sigma").all()
    assert (first["Chain"] == 1).all()
    np.testing.assert_allclose(first["Value"], draws.values[:, 0, 1])


def test_prepare_warns_on_nonfinite(draws_array):
    values = draws_array.copy()
    values[0, 0, 0] = np.nan
    with pytest.warns(UserWarning, match="1 non-finite draws"):
        prepare_mcmc_array(values)


def test_prepare_no_warning(draws):
    with warnings.catch_warnings():
        warnings.simplefilter("error", UserWarning)
        prepared = prepare_mcmc_array(draws, pars="alpha", transformations="exp")
    assert prepared.parameters == ["exp(alpha)"]


def test_nuts_params_tidy(nuts):
    validated = nuts_params(nuts)
    assert set(validated["Parameter"]) == {
        "accept_stat__",
        "stepsize__",
        "treedepth__",
        "n_leapfrog__",
        "divergent__",
        "energy__",
    }


def test_nuts_params_from_stan_frame():
    frame = pd.DataFrame(
        {
            "chain__": [1, 1, 2, 2],
            "iter__": [1, 2, 1, 2],
            "lp__": [-3.0, -2.5, -2.8, -3.1],
            "accept_stat__": [0.9, 0.8, 0.95, 0.7],
            "divergent__": [0, 0, 1, 0],
            "alpha": [0.1, 0.2, 0.3, 0.4],
        }
    )
    params = nuts_params(frame)
    assert params.columns.tolist() == ["Chain", "Iteration", "Parameter", "Value"]
    assert set(params["Parameter"]) == {"accept_stat__", "divergent__"}
    assert len(params) == 8

    lp = log_posterior(frame)
    assert lp.columns.tolist() == ["Chain", "Iteration", "Value"]
    assert lp["Value"].tolist() == [-3.0, -2.5, -2.8, -3.1]


def test_nuts_params_missing():
    with pytest.raises(NUTSDataError, match="No NUTS parameters"):
        nuts_params(pd.DataFrame({"alpha": [1.0]}))
    with pytest.raises(NUTSDataError, match="lp__"):
        log_posterior(pd.DataFrame({"alpha": [1.0]}))


def test_validate_nuts_chain_mismatch(nuts, lp):
    with pytest.raises(NUTSDataError, match="Number of chains in 'x' and 'lp'"):
        validate_nuts_data_frame(nuts, lp[lp["Chain"] < 3])


def test_validate_nuts_missing_column(nuts):
    with pytest.raises(NUTSDataError, match="Parameter"):
        validate_nuts_data_frame(nuts.drop(columns="Parameter"))
