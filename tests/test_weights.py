"""Strength <-> cost weight transforms."""

import igraph as ig
import numpy as np
import pytest

from neurograph.config import XFM_NORMALIZED, XFM_TYPES
from neurograph.exceptions import InvalidArgumentError, InvalidInputError
from neurograph.graph_analysis.weights import (
    transform_weights,
    transformed_weights,
    xfm_weights,
)


@pytest.mark.parametrize("xfm_type", XFM_TYPES)
def test_round_trip(weighted_graph, xfm_type):
    original = np.array(weighted_graph.es["weight"])
    cost = xfm_weights(weighted_graph, xfm_type)
    back = xfm_weights(cost, xfm_type, invert=True)
    np.testing.assert_allclose(back.es["weight"], original, rtol=1e-12)


def test_array_round_trip_with_max_weight():
    w = np.array([0.1, 0.4, 0.9, 2.5])
    for xfm_type in XFM_NORMALIZED:
        cost = transform_weights(w, xfm_type)
        back = transform_weights(cost, xfm_type, invert=True, max_weight=2.5)
        np.testing.assert_allclose(back, w, rtol=1e-12)


def test_self_inverse_transforms():
    w = np.array([0.25, 0.5, 2.0])
    np.testing.assert_array_equal(transform_weights(w, "1/w"), [4.0, 2.0, 0.5])
    np.testing.assert_array_equal(
        transform_weights(transform_weights(w, "1-w"), "1-w"), w)


def test_records_transform_metadata(weighted_graph):
    out = xfm_weights(weighted_graph, "-log10(w/max(w))")
    assert out["xfm_type"] == "-log10(w/max(w))"
    assert out["max_weight"] == 5.0
    # Strongest edge becomes the shortest (zero cost).
    assert min(out.es["weight"]) == pytest.approx(0.0)
    assert "xfm_type" not in weighted_graph.attributes()


def test_reciprocal_values(weighted_graph):
    out = xfm_weights(weighted_graph, "1/w")
    np.testing.assert_allclose(out.es["weight"],
                               1.0 / np.array(weighted_graph.es["weight"]))
    assert "max_weight" not in out.attributes()


def test_missing_weight_raises():
    with pytest.raises(InvalidInputError):
        xfm_weights(ig.Graph.Ring(4))


def test_not_a_graph_raises():
    with pytest.raises(InvalidInputError):
        xfm_weights([[0, 1], [1, 0]])


def test_unknown_transform_raises(weighted_graph):
    with pytest.raises(InvalidArgumentError):
        xfm_weights(weighted_graph, "sqrt(w)")


def test_invert_normalized_without_max_weight(weighted_graph):
    with pytest.raises(InvalidInputError):
        xfm_weights(weighted_graph, "-log10(w/max(w)+1)", invert=True)
    with pytest.raises(InvalidInputError):
        transform_weights([0.3], "-log10(w/max(w))", invert=True)


def test_context_manager_restores_verbatim(weighted_graph):
    original = list(weighted_graph.es["weight"])
    with transformed_weights(weighted_graph, "-log10(w/max(w))") as cost:
        assert cost is weighted_graph
        assert cost["max_weight"] == 5.0
        assert cost.es["weight"] != original
    assert weighted_graph.es["weight"] == original
    assert "xfm_type" not in weighted_graph.attributes()
    assert "max_weight" not in weighted_graph.attributes()


def test_context_manager_restores_on_error(weighted_graph):
    original = list(weighted_graph.es["weight"])
    with pytest.raises(RuntimeError):
        with transformed_weights(weighted_graph, "-log(w)"):
            raise RuntimeError("boom")
    assert weighted_graph.es["weight"] == original
    assert "xfm_type" not in weighted_graph.attributes()


def test_context_manager_keeps_prior_metadata(weighted_graph):
    weighted_graph["xfm_type"] = "1-w"
    with transformed_weights(weighted_graph, "1/w"):
        assert weighted_graph["xfm_type"] == "1/w"
    assert weighted_graph["xfm_type"] == "1-w"
