"""Shared fixtures for neurograph tests."""

import igraph as ig
import numpy as np
import pandas as pd
import pytest

from neurograph.atlas_manager import Atlas
from neurograph.config import AttributeConfig

# ======================================================================
# GRAPHS
# ======================================================================

REGIONS = ["lSFG", "lMFG", "lIns", "rSFG", "rMFG"]

EDGES_5 = [(0, 1), (1, 2), (2, 3), (3, 4), (0, 4), (1, 3)]
WEIGHTS_5 = [2.0, 4.0, 1.0, 5.0, 0.5, 2.5]


@pytest.fixture
def weighted_graph():
    """Connected 5-vertex undirected graph with positive weights."""
    g = ig.Graph(n=5, edges=EDGES_5)
    g.vs["name"] = REGIONS
    g.es["weight"] = list(WEIGHTS_5)
    return g


@pytest.fixture
def negative_graph():
    """Same topology as ``weighted_graph`` with one negative weight."""
    g = ig.Graph(n=5, edges=EDGES_5)
    g.vs["name"] = REGIONS
    weights = list(WEIGHTS_5)
    weights[2] = -0.7
    g.es["weight"] = weights
    return g


@pytest.fixture
def two_cliques():
    """Two 5-cliques joined by a single bridge edge (unweighted)."""
    edges = []
    for offset in (0, 5):
        edges += [(offset + i, offset + j)
                  for i in range(5) for j in range(i + 1, 5)]
    edges.append((4, 5))
    return ig.Graph(n=10, edges=edges)


@pytest.fixture
def disconnected_graph():
    """Triangle plus a separate edge plus an isolated vertex."""
    return ig.Graph(n=6, edges=[(0, 1), (1, 2), (0, 2), (3, 4)])


@pytest.fixture
def star_graph():
    """Star with hub 0 and four leaves."""
    return ig.Graph.Star(5)


# ======================================================================
# ATLAS
# ======================================================================

@pytest.fixture
def atlas_table():
    return pd.DataFrame({
        "name": REGIONS,
        "x": [-20.0, -35.0, -38.0, 20.0, 35.0],
        "y": [30.0, 20.0, 5.0, 30.0, 20.0],
        "z": [50.0, 40.0, 0.0, 50.0, 40.0],
        "lobe": ["Frontal", "Frontal", "Insula", "Frontal", "Frontal"],
        "hemi": ["L", "L", "L", "R", "R"],
        "network": ["DMN", "FPN", "SAL", "DMN", "FPN"],
    })


@pytest.fixture
def atlas(atlas_table):
    return Atlas("toy", atlas_table)


@pytest.fixture
def serial_config():
    """Configuration without joblib dispatch, for fast deterministic runs."""
    return AttributeConfig(use_parallel=False)


# ======================================================================
# HELPERS
# ======================================================================

def floyd_warshall(n, edges, costs):
    """Reference all-pairs shortest paths for an undirected graph."""
    D = np.full((n, n), np.inf)
    np.fill_diagonal(D, 0.0)
    for (u, v), c in zip(edges, costs):
        D[u, v] = min(D[u, v], c)
        D[v, u] = min(D[v, u], c)
    for k in range(n):
        D = np.minimum(D, D[:, [k]] + D[[k], :])
    return D


@pytest.fixture
def shortest_paths():
    return floyd_warshall
