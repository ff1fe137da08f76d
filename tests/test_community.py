"""Community registry, method resolution, renumbering and modular roles."""

import random

import igraph as ig
import numpy as np
import pytest

from neurograph.exceptions import InvalidArgumentError
from neurograph.graph_analysis.community import (
    COMMUNITY_ALGORITHMS,
    available_methods,
    compute_gateway_coefficient,
    compute_participation_coefficient,
    compute_within_module_degree,
    detect_communities,
    renumber_membership,
    resolve_community_method,
)
from neurograph.graph_analysis.network_metrics import adjacency_matrix


# ======================================================================
# RESOLVER
# ======================================================================

def test_registry_contents():
    assert available_methods() == [
        "edge_betweenness", "fast_greedy", "infomap", "label_prop",
        "leading_eigen", "leiden", "louvain", "optimal", "spinglass",
        "walktrap",
    ]
    assert COMMUNITY_ALGORITHMS["edge_betweenness"].weights_are_distances
    assert not COMMUNITY_ALGORITHMS["louvain"].weights_are_distances


def test_unknown_method_lists_registry():
    with pytest.raises(InvalidArgumentError) as exc:
        resolve_community_method("kmeans")
    for name in available_methods():
        assert name in str(exc.value)


def test_spinglass_on_disconnected_falls_back_to_louvain():
    res = resolve_community_method("spinglass", has_negative=False,
                                   connected=False)
    assert res.method == "louvain"
    assert len(res.warnings) == 1


@pytest.mark.parametrize("method", ["louvain", "fast_greedy", "infomap",
                                    "leiden", "edge_betweenness"])
def test_negative_weights_fall_back_to_walktrap(method):
    res = resolve_community_method(method, has_negative=True, connected=True)
    assert res.method == "walktrap"
    assert len(res.warnings) == 1


@pytest.mark.parametrize("method", ["spinglass", "walktrap"])
def test_negative_tolerant_methods_kept(method):
    res = resolve_community_method(method, has_negative=True, connected=True)
    assert res.method == method
    assert res.warnings == ()


def test_disconnected_spinglass_with_negatives():
    res = resolve_community_method("spinglass", has_negative=True,
                                   connected=False)
    assert res.method == "walktrap"
    assert len(res.warnings) == 2


@pytest.mark.parametrize("method", ["louvain", "fast_greedy", "leiden"])
def test_directed_graph_falls_back_to_walktrap(method):
    res = resolve_community_method(method, connected=True, directed=True)
    assert res.method == "walktrap"
    assert len(res.warnings) == 1
    assert "undirected" in res.warnings[0]


@pytest.mark.parametrize("method", ["walktrap", "infomap", "spinglass"])
def test_directed_graph_keeps_tolerant_methods(method):
    res = resolve_community_method(method, connected=True, directed=True)
    assert res.method == method
    assert res.warnings == ()


def test_directed_with_negatives_warns_once():
    res = resolve_community_method("louvain", has_negative=True,
                                   connected=True, directed=True)
    assert res.method == "walktrap"
    assert len(res.warnings) == 1


@pytest.mark.parametrize("method", available_methods())
def test_plain_graph_keeps_request(method):
    res = resolve_community_method(method, has_negative=False, connected=True)
    assert res.method == method
    assert res.warnings == ()


# ======================================================================
# DETECTION
# ======================================================================

@pytest.mark.parametrize("method", ["louvain", "walktrap", "fast_greedy",
                                    "leiden", "edge_betweenness"])
def test_two_cliques_are_found(two_cliques, method):
    result = detect_communities(two_cliques, method, seed=1)
    memb = result.membership
    assert result.method == method
    assert result.n_communities == 2
    assert len(set(memb[:5])) == 1
    assert len(set(memb[5:])) == 1
    assert result.max_modularity > 0.3


def test_louvain_scores_every_level(two_cliques):
    result = detect_communities(two_cliques, "louvain")
    assert len(result.modularity) >= 1
    assert result.max_modularity == pytest.approx(max(result.modularity))


def test_negative_weights_are_clipped_for_walktrap(negative_graph):
    result = detect_communities(negative_graph, "walktrap",
                                weights=negative_graph.es["weight"])
    assert len(result.membership) == negative_graph.vcount()
    assert np.isfinite(result.max_modularity)


def test_edgeless_graph_has_nan_modularity():
    result = detect_communities(ig.Graph(4), "label_prop")
    assert np.isnan(result.max_modularity)


@pytest.mark.parametrize("n", [1, 4])
def test_louvain_on_edgeless_graph_gives_singletons(n):
    result = detect_communities(ig.Graph(n), "louvain", seed=3)
    np.testing.assert_array_equal(result.membership, np.arange(n))
    assert np.isnan(result.max_modularity)


def test_seed_leaves_caller_random_state_alone(two_cliques):
    random.seed(123)
    expected = [random.random() for _ in range(3)]

    random.seed(123)
    detect_communities(two_cliques, "louvain", seed=7)
    assert [random.random() for _ in range(3)] == expected


def test_seed_is_reproducible(two_cliques):
    first = detect_communities(two_cliques, "leiden", seed=11)
    second = detect_communities(two_cliques, "leiden", seed=11)
    np.testing.assert_array_equal(first.membership, second.membership)


# ======================================================================
# RENUMBERING
# ======================================================================

def test_renumber_largest_first_ties_by_first_seen():
    memb = [3, 3, 1, 2, 2, 2, 5]
    np.testing.assert_array_equal(renumber_membership(memb),
                                  [2, 2, 3, 1, 1, 1, 4])


def test_renumber_sizes_non_increasing_under_permutation():
    rng = np.random.default_rng(0)
    memb = rng.integers(10, 40, size=60)
    for _ in range(5):
        perm = rng.permutation(len(memb))
        renumbered = renumber_membership(memb[perm])
        sizes = np.bincount(renumbered)[1:]
        assert np.all(np.diff(sizes) <= 0)
        assert renumbered.min() == 1
        # Same grouping of vertices, only relabelled.
        for group in np.unique(memb):
            assert len(np.unique(renumbered[memb[perm] == group])) == 1


def test_renumber_empty():
    assert renumber_membership([]).size == 0


# ======================================================================
# MODULAR ROLES
# ======================================================================

def test_participation_zero_inside_module(two_cliques):
    A = adjacency_matrix(two_cliques)
    labels = np.array([1] * 5 + [2] * 5)
    pc = compute_participation_coefficient(A, labels, weighted=False)
    assert pc[0] == 0.0
    # Bridge vertex 4: 4 of 5 links in its module, 1 outside.
    assert pc[4] == pytest.approx(1 - (4 / 5) ** 2 - (1 / 5) ** 2)


def test_weighted_participation_by_hand():
    W = np.array([[0.0, 2.0, 1.0, 0.0],
                  [2.0, 0.0, 0.0, 3.0],
                  [1.0, 0.0, 0.0, 0.0],
                  [0.0, 3.0, 0.0, 0.0]])
    labels = np.array([1, 1, 2, 2])
    pc = compute_participation_coefficient(W, labels)
    expected = [1 - (2 / 3) ** 2 - (1 / 3) ** 2,
                1 - (2 / 5) ** 2 - (3 / 5) ** 2,
                0.0,
                0.0]
    np.testing.assert_allclose(pc, expected)


def test_participation_isolated_and_negative_entries():
    W = np.array([[0.0, -1.0, 0.0],
                  [-1.0, 0.0, 2.0],
                  [0.0, 2.0, 0.0]])
    pc = compute_participation_coefficient(W, np.array([1, 2, 2]))
    # Negative links are dropped, leaving vertex 0 isolated.
    np.testing.assert_allclose(pc, [0.0, 0.0, 0.0])


def test_within_module_degree(two_cliques):
    A = adjacency_matrix(two_cliques)
    labels = np.array([1] * 5 + [2] * 5)
    z = compute_within_module_degree(A, labels, weighted=False)
    # All vertices of a clique have the same intra-module degree.
    np.testing.assert_allclose(z, 0.0)


def test_gateway_bounded_by_participation(two_cliques):
    A = adjacency_matrix(two_cliques)
    labels = np.array([1] * 5 + [2] * 5)
    btwn = np.array(two_cliques.betweenness())
    gc = compute_gateway_coefficient(A, labels, btwn, weighted=False)
    pc = compute_participation_coefficient(A, labels, weighted=False)
    assert np.all(gc >= pc - 1e-12)
