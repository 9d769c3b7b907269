import holoviews as hv
import numpy as np
import pytest

import mcmcplot

from mcmcplot.exceptions import ChainError, ParameterError, ValidationError

PARAMETERS = ["alpha", "sigma", "beta[1]", "beta[2]"]


def _plot_option(obj, name):
    return hv.Store.lookup_options("bokeh", obj, "plot").kwargs.get(name)


def _count(obj, element_type):
    return len(obj.traverse(lambda el: el, [element_type]))


def test_mcmc_hist(draws):
    layout = mcmcplot.mcmc_hist(draws)
    assert isinstance(layout, hv.NdLayout)
    assert layout.kdims[0].name == "Parameter"
    assert list(layout.keys()) == PARAMETERS

    panel = layout["alpha"]
    assert isinstance(panel, hv.Histogram)
    assert len(panel.edges) == 31

    # Histograms are densities
    area = np.sum(panel.dimension_values(1) * np.diff(panel.edges))
    assert area == pytest.approx(1.0)


def test_mcmc_hist_binwidth(draws):
    layout = mcmcplot.mcmc_hist(draws, pars=["alpha"], binwidth=0.25)
    np.testing.assert_allclose(np.diff(layout["alpha"].edges), 0.25)


def test_mcmc_hist_selection_and_transformation(draws):
    layout = mcmcplot.mcmc_hist(
        draws, pars=["sigma"], regex_pars="^beta", transformations={"sigma": "log"}
    )
    assert list(layout.keys()) == ["log(sigma)", "beta[1]", "beta[2]"]


def test_mcmc_hist_accepts_arrays(draws_array):
    layout = mcmcplot.mcmc_hist(draws_array[:, 0])
    assert list(layout.keys()) == ["V1", "V2", "V3", "V4"]


def test_mcmc_hist_bad_pars(draws):
    with pytest.raises(ParameterError, match="gamma"):
        mcmcplot.mcmc_hist(draws, pars=["gamma"])


def test_facet_scales(draws):
    assert _plot_option(mcmcplot.mcmc_hist(draws), "shared_axes") is False
    fixed = mcmcplot.mcmc_hist(draws, facet_args={"scales": "fixed"})
    assert _plot_option(fixed, "shared_axes") is True

    # A partially shared axis is pinned to the common range
    free_y = mcmcplot.mcmc_hist(draws, facet_args={"scales": "free_y"})
    ranges = {free_y[p].get_dimension("Value").range for p in PARAMETERS}
    assert len(ranges) == 1
    low, high = ranges.pop()
    assert low == pytest.approx(draws.values.min())
    assert high == pytest.approx(draws.values.max())


def test_facet_args_errors(draws):
    with pytest.raises(ValidationError, match="Unsupported facet argument"):
        mcmcplot.mcmc_hist(draws, facet_args={"nrow": 2})
    with pytest.raises(ValidationError, match="'scales' must be one of"):
        mcmcplot.mcmc_hist(draws, facet_args={"scales": "loose"})
    with pytest.raises(ValidationError, match="'ncols'"):
        mcmcplot.mcmc_hist(draws, facet_args={"ncols": 0})


def test_nonfinite_draws_are_dropped(draws_array):
    values = draws_array.copy()
    values[:10, 0, 0] = np.inf
    with pytest.warns(UserWarning, match="non-finite"):
        layout = mcmcplot.mcmc_hist(values)
    assert np.isfinite(layout["V1"].edges).all()


@pytest.mark.parametrize("trim", [False, True])
def test_mcmc_dens(draws, trim):
    layout = mcmcplot.mcmc_dens(draws, regex_pars="beta", trim=trim)
    assert isinstance(layout, hv.NdLayout)
    assert list(layout.keys()) == ["beta[1]", "beta[2]"]
    assert _count(layout["beta[1]"], hv.Distribution) == 1


def test_mcmc_hist_by_chain(draws):
    layout = mcmcplot.mcmc_hist_by_chain(draws, pars=["alpha", "sigma"])
    assert isinstance(layout, hv.NdLayout)
    assert [d.name for d in layout.kdims] == ["Chain", "Parameter"]
    assert len(layout) == 8
    assert (3, "sigma") in layout.keys()

    # All chains of a parameter share bins
    np.testing.assert_allclose(layout[(1, "alpha")].edges, layout[(4, "alpha")].edges)


def test_by_chain_plots_need_chains(draws_single_chain):
    for func in (
        mcmcplot.mcmc_hist_by_chain,
        mcmcplot.mcmc_dens_overlay,
        mcmcplot.mcmc_violin,
    ):
        with pytest.raises(ChainError, match="requires multiple chains"):
            func(draws_single_chain)


def test_mcmc_dens_overlay(draws):
    layout = mcmcplot.mcmc_dens_overlay(draws, pars=["alpha"])
    panel = layout["alpha"]
    assert isinstance(panel, hv.NdOverlay)
    assert panel.kdims[0].name == "Chain"
    assert list(panel.keys()) == [1, 2, 3, 4]
    assert _count(panel, hv.Distribution) == 4


def test_mcmc_violin(draws):
    layout = mcmcplot.mcmc_violin(draws, pars=["alpha", "sigma"], probs=[0.25, 0.75])
    assert list(layout.keys()) == ["alpha", "sigma"]

    panel = layout["alpha"]
    assert _count(panel, hv.Violin) == 1
    marks = panel.traverse(lambda el: el, [hv.Scatter])[0]
    assert len(marks) == 4 * 2

    # Marks sit at the per-chain quantiles
    expected = np.quantile(draws.values[:, 0, 0], 0.25)
    assert marks.dimension_values("Value")[0] == pytest.approx(expected)


def test_mcmc_violin_bad_probs(draws):
    with pytest.raises(ValidationError, match="probs"):
        mcmcplot.mcmc_violin(draws, probs=[0.5, 2.0])


def test_panels_follow_selection_order(draws):
    assert list(mcmcplot.mcmc_hist(draws).keys()) == PARAMETERS

    pars = ["sigma", "beta[2]", "alpha"]
    for func in (
        mcmcplot.mcmc_hist,
        mcmcplot.mcmc_dens,
        mcmcplot.mcmc_dens_overlay,
        mcmcplot.mcmc_violin,
    ):
        assert list(func(draws, pars=pars).keys()) == pars


def test_mcmc_hist_by_chain_grid_order(draws):
    layout = mcmcplot.mcmc_hist_by_chain(draws, pars=["sigma", "alpha"])
    assert list(layout.keys())[:4] == [
        (1, "sigma"),
        (1, "alpha"),
        (2, "sigma"),
        (2, "alpha"),
    ]


def test_mcmc_violin_array_probs(draws):
    layout = mcmcplot.mcmc_violin(draws, pars=["alpha"], probs=np.array([0.25, 0.75]))
    marks = layout["alpha"].traverse(lambda el: el, [hv.Scatter])[0]
    assert len(marks) == 4 * 2

    # Default quantiles
    marks = mcmcplot.mcmc_violin(draws, pars=["alpha"])["alpha"].traverse(
        lambda el: el, [hv.Scatter]
    )[0]
    assert len(marks) == 4 * 3
