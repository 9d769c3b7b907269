import holoviews as hv
import numpy as np
import pytest

import mcmcplot

from mcmcplot.exceptions import ChainError, ValidationError


def _plot_option(obj, name):
    return hv.Store.lookup_options("bokeh", obj, "plot").kwargs.get(name)


def _style_option(obj, name):
    return hv.Store.lookup_options("bokeh", obj, "style").kwargs.get(name)


def test_mcmc_trace(draws):
    layout = mcmcplot.mcmc_trace(draws, pars=["alpha", "sigma"])
    assert isinstance(layout, hv.NdLayout)
    assert list(layout.keys()) == ["alpha", "sigma"]

    panel = layout["alpha"]
    assert isinstance(panel, hv.NdOverlay)
    assert list(panel.keys()) == [1, 2, 3, 4]

    curve = panel[1]
    assert isinstance(curve, hv.Curve)
    np.testing.assert_array_equal(curve.dimension_values("Iteration"), np.arange(1, 251))
    np.testing.assert_allclose(curve.dimension_values("Value"), draws.values[:, 0, 0])


def test_mcmc_trace_chain_colors(draws):
    panel = mcmcplot.mcmc_trace(draws, pars=["alpha"])["alpha"]
    colors = [_style_option(panel[c], "color") for c in panel.keys()]
    assert colors == mcmcplot.chain_colors(4)


def test_mcmc_trace_legend(draws, draws_single_chain):
    multi = mcmcplot.mcmc_trace(draws, pars=["alpha"])["alpha"]
    assert _plot_option(multi, "show_legend") is True

    single = mcmcplot.mcmc_trace(draws_single_chain, pars=["alpha"])["alpha"]
    assert _plot_option(single, "show_legend") is False


def test_mcmc_trace_default_scales(draws):
    layout = mcmcplot.mcmc_trace(draws)
    assert _plot_option(layout, "shared_axes") is False

    # Iterations are shared across panels
    ranges = {layout[p][1].get_dimension("Iteration").range for p in draws.parameters}
    assert ranges == {(1, 250)}


def test_mcmc_trace_drops_warmup(draws):
    panel = mcmcplot.mcmc_trace(draws, pars=["alpha"], n_warmup=50, inc_warmup=False)[
        "alpha"
    ]
    iterations = panel[1].dimension_values("Iteration")
    assert iterations[0] == 51
    assert len(iterations) == 200
    assert not panel.traverse(lambda el: el, [hv.VSpan])


def test_mcmc_trace_shades_warmup(draws):
    panel = mcmcplot.mcmc_trace(draws, pars=["alpha"], n_warmup=50)["alpha"]
    assert isinstance(panel, hv.Overlay)

    spans = panel.traverse(lambda el: el, [hv.VSpan])
    assert len(spans) == 1
    assert list(spans[0].data) == [1, 50]

    curves = panel.traverse(lambda el: el, [hv.Curve])
    assert len(curves) == 4
    assert len(curves[0]) == 250


def test_mcmc_trace_bad_warmup(draws):
    with pytest.raises(ValidationError, match="n_warmup"):
        mcmcplot.mcmc_trace(draws, n_warmup=250)


def test_mcmc_trace_window(draws):
    panel = mcmcplot.mcmc_trace(draws, pars=["alpha"], window=(100, 150))["alpha"]
    assert _plot_option(panel, "xlim") == (100.0, 150.0)

    with pytest.raises(ValidationError, match="'window'"):
        mcmcplot.mcmc_trace(draws, window=(150, 100))
    with pytest.warns(UserWarning, match="does not overlap"):
        mcmcplot.mcmc_trace(draws, pars=["alpha"], window=(1000, 2000))


def test_mcmc_trace_size(draws):
    panel = mcmcplot.mcmc_trace(draws, pars=["alpha"], size=3)["alpha"]
    assert _style_option(panel[2], "line_width") == 3


def test_mcmc_trace_highlight(draws):
    layout = mcmcplot.mcmc_trace_highlight(draws, pars=["alpha"], highlight=3)
    panel = layout["alpha"]
    assert isinstance(panel, hv.NdOverlay)

    # The highlighted chain is drawn last and opaque
    assert list(panel.keys()) == [1, 2, 4, 3]
    assert all(isinstance(panel[c], hv.Scatter) for c in panel.keys())
    assert _style_option(panel[3], "alpha") == 1.0
    assert _style_option(panel[1], "alpha") == pytest.approx(0.2)


def test_mcmc_trace_highlight_errors(draws, draws_single_chain):
    three_chains = mcmcplot.MCMCDraws(draws.values[:, :3], draws.parameters)
    with pytest.raises(ChainError, match="'highlight' is 4, but 'x' contains 3 chains."):
        mcmcplot.mcmc_trace_highlight(three_chains, highlight=4)
    with pytest.raises(ChainError, match="requires multiple chains"):
        mcmcplot.mcmc_trace_highlight(draws_single_chain)


def test_mcmc_trace_keeps_parameter_order(draws):
    assert list(mcmcplot.mcmc_trace(draws).keys()) == draws.parameters
    layout = mcmcplot.mcmc_trace(draws, pars=["sigma", "alpha"])
    assert list(layout.keys()) == ["sigma", "alpha"]


def test_mcmc_trace_array_window(draws):
    panel = mcmcplot.mcmc_trace(draws, pars=["alpha"], window=np.array([10, 50]))["alpha"]
    assert _plot_option(panel, "xlim") == (10.0, 50.0)

    panel = mcmcplot.mcmc_trace_highlight(
        draws, pars=["alpha"], highlight=2, window=np.array([10, 50])
    )["alpha"]
    assert _plot_option(panel, "xlim") == (10.0, 50.0)
