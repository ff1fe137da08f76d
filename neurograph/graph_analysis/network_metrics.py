# -*- coding: utf-8 -*-
"""
neurograph.graph_analysis.network_metrics
=========================================

Vertex- and graph-level measures of brain networks that igraph does not
provide directly.

Implements measures from the framework of Rubinov & Sporns (2010):
  - **Integration**: global, nodal and local efficiency; vertex and graph
    characteristic path length from a distance matrix
  - **Segregation**: weighted (Barrat) local transitivity, s-core
  - **Influence**: leverage centrality, weighted nearest-neighbour degree,
    hubness, vulnerability
  - **Rich club**: binary (via NetworkX) and weighted (Opsahl) curves
  - **Spatial**: Euclidean edge length, vertex dispersion, hemispheric
    edge asymmetry

Distance-based functions take a distance matrix ``D`` or a weight
attribute already in the *cost* domain; see
``neurograph.graph_analysis.weights`` for the strength -> cost transforms.

Local efficiency and vulnerability are embarrassingly parallel over
vertices; ``use_parallel=True`` dispatches them through joblib.

References
----------
- Rubinov & Sporns (2010). NeuroImage 52:1059-1069. Complex network measures.
- Latora & Marchiori (2001). Phys Rev Lett 87:198701. Efficiency.
- Barrat et al. (2004). PNAS 101:3747-3752. Weighted clustering, knn.
- Colizza et al. (2006). Nat Phys 2:110-115. Rich club.
- Opsahl et al. (2008). Phys Rev Lett 101:168702. Weighted rich club.
- Joyce et al. (2010). PLoS ONE 5:e12200. Leverage centrality.
- van den Heuvel et al. (2010). J Neurosci 30:15915. Hubness criteria.
- Latora & Marchiori (2005). Phys Rev E 71:015103. Vulnerability.
"""

import logging
from math import ceil
from typing import Optional, Sequence

import igraph as ig
import networkx as nx
import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy.spatial.distance import pdist, squareform

from .. import config
from ..exceptions import InvalidArgumentError
from .weights import transform_weights

logger = logging.getLogger(__name__)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _prepare_matrix(matrix: np.ndarray) -> np.ndarray:
    """
    Float copy of an adjacency matrix with self-loops and negative entries
    dropped, as expected by the modular-role measures.
    """
    mat = np.array(matrix, dtype=float)
    mat[np.diag_indices_from(mat)] = 0.0
    np.clip(mat, 0.0, None, out=mat)
    return mat


def adjacency_matrix(
    g: ig.Graph,
    weights: Optional[str] = None,
    symmetric: Optional[bool] = None,
) -> np.ndarray:
    """
    Dense adjacency matrix of ``g``.

    Parameters
    ----------
    g : igraph.Graph
    weights : str, optional
        Edge attribute holding the entries; 1 per edge when None.
    symmetric : bool, optional
        Mirror every edge.  Defaults to True for undirected graphs.

    Returns
    -------
    np.ndarray (N, N); parallel edges are summed.
    """
    n = g.vcount()
    A = np.zeros((n, n))
    if g.ecount() == 0:
        return A
    if symmetric is None:
        symmetric = not g.is_directed()
    edges = np.asarray(g.get_edgelist())
    w = np.ones(len(edges)) if weights is None \
        else np.asarray(g.es[weights], dtype=float)
    np.add.at(A, (edges[:, 0], edges[:, 1]), w)
    if symmetric:
        loops = edges[:, 0] == edges[:, 1]
        np.add.at(A, (edges[~loops, 1], edges[~loops, 0]), w[~loops])
    return A


def check_adjacency(A: Optional[np.ndarray], n: int) -> Optional[np.ndarray]:
    """Validate a caller-supplied adjacency matrix and binarize it."""
    if A is None:
        return None
    A = np.asarray(A, dtype=float)
    if A.ndim != 2 or A.shape != (n, n):
        raise InvalidArgumentError(
            f"Adjacency matrix must be {n}x{n}, got shape {A.shape}."
        )
    return binarize(A)


def binarize(A: np.ndarray) -> np.ndarray:
    """0/1 copy of ``A`` (nonzero -> 1)."""
    return (np.asarray(A) != 0).astype(float)


def distance_matrix(g: ig.Graph, weights: Optional[str] = None) -> np.ndarray:
    """All-pairs shortest path lengths (inf when unreachable)."""
    if g.vcount() == 0:
        return np.zeros((0, 0))
    return np.asarray(g.distances(weights=weights), dtype=float)


def _inverse_distances(D: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore"):
        inv = 1.0 / D
    np.fill_diagonal(inv, 0)
    return inv


# =============================================================================
# EFFICIENCY
# =============================================================================

def efficiency_nodal(D: np.ndarray) -> np.ndarray:
    """
    Nodal efficiency: mean inverse distance from each vertex to all others.
    """
    n = D.shape[0]
    if n < 2:
        return np.zeros(n)
    return _inverse_distances(D).sum(axis=1) / (n - 1)


def efficiency_global(g: ig.Graph, weights: Optional[str] = None,
                      D: Optional[np.ndarray] = None) -> float:
    """Global efficiency (Latora & Marchiori, 2001)."""
    if D is None:
        D = distance_matrix(g, weights)
    n = D.shape[0]
    if n < 2:
        return 0.0
    return float(_inverse_distances(D).sum() / (n * (n - 1)))


def _subgraph_efficiency(sub: ig.Graph, weights: Optional[str]) -> float:
    k = sub.vcount()
    D = np.asarray(sub.distances(weights=weights), dtype=float)
    return float(_inverse_distances(D).sum() / (k * (k - 1)))


def _neighborhoods(g: ig.Graph, A: Optional[np.ndarray]):
    n = g.vcount()
    if A is not None:
        A_any = (A != 0) | (A.T != 0)
        return [np.setdiff1d(np.nonzero(A_any[i])[0], [i]) for i in range(n)]
    return [np.setdiff1d(g.neighbors(i, mode="all"), [i]) for i in range(n)]


def efficiency_local(
    g: ig.Graph,
    weights: Optional[str] = None,
    use_parallel: bool = False,
    n_jobs: int = -1,
    A: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Local efficiency of each vertex.

    Local efficiency of vertex i = global efficiency of the subgraph
    induced by the neighbours of i (Latora & Marchiori, 2001).  Vertices
    with fewer than two neighbours get 0.

    Parameters
    ----------
    g : igraph.Graph
    weights : str, optional
        Edge attribute with *cost* weights; unweighted when None.
    use_parallel : bool
        Compute the per-vertex values with joblib.
    n_jobs : int
    A : np.ndarray, optional
        Adjacency matrix used to find neighbourhoods without querying ``g``.

    Returns
    -------
    np.ndarray (N,)
    """
    n = g.vcount()
    le = np.zeros(n)
    hoods = _neighborhoods(g, A)
    targets = [i for i in range(n) if len(hoods[i]) >= 2]
    subgraphs = [g.induced_subgraph(hoods[i].tolist()) for i in targets]

    if use_parallel and len(targets) > 1:
        logger.debug(f"Local efficiency: {len(targets)} subgraphs, n_jobs={n_jobs}")
        values = Parallel(n_jobs=n_jobs)(
            delayed(_subgraph_efficiency)(sub, weights) for sub in subgraphs
        )
    else:
        values = [_subgraph_efficiency(sub, weights) for sub in subgraphs]

    for i, val in zip(targets, values):
        le[i] = val
    return le


def _efficiency_without(g: ig.Graph, v: int) -> float:
    h = g.copy()
    h.delete_vertices(v)
    return efficiency_global(h)


def vulnerability(
    g: ig.Graph,
    use_parallel: bool = False,
    n_jobs: int = -1,
) -> np.ndarray:
    """
    Vulnerability of each vertex: relative drop in (unweighted) global
    efficiency when the vertex is removed,

        V_i = 1 - E(G \\ i) / E(G)

    Returns zeros when the graph has no efficiency to lose.
    """
    n = g.vcount()
    e_global = efficiency_global(g)
    if n == 0 or e_global == 0:
        return np.zeros(n)

    if use_parallel and n > 1:
        logger.debug(f"Vulnerability: {n} deletions, n_jobs={n_jobs}")
        e_removed = Parallel(n_jobs=n_jobs)(
            delayed(_efficiency_without)(g, v) for v in range(n)
        )
    else:
        e_removed = [_efficiency_without(g, v) for v in range(n)]

    vuln = np.zeros(n)
    for v, e_v in enumerate(e_removed):
        vuln[v] = 1.0 - e_v / e_global
    return vuln


# =============================================================================
# PATH LENGTH
# =============================================================================

def mean_distance_vertex(D: np.ndarray) -> np.ndarray:
    """
    Mean finite distance from each vertex to the vertices it reaches
    (0 for vertices that reach none).
    """
    n = D.shape[0]
    mask = np.isfinite(D) & ~np.eye(n, dtype=bool)
    counts = mask.sum(axis=1)
    totals = np.where(mask, D, 0.0).sum(axis=1)
    lp = np.zeros(n)
    np.divide(totals, counts, out=lp, where=counts > 0)
    return lp


def mean_distance_graph(D: np.ndarray) -> float:
    """Characteristic path length: mean over all finite vertex pairs."""
    n = D.shape[0]
    mask = np.isfinite(D) & ~np.eye(n, dtype=bool)
    if not mask.any():
        return float("nan")
    return float(D[mask].mean())


# =============================================================================
# CENTRALITY AND HUBS
# =============================================================================

def leverage_centrality(g: ig.Graph, A: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Leverage centrality (Joyce et al., 2010):

        l_i = (1/k_i) Σ_{j∈N(i)} (k_i - k_j) / (k_i + k_j)

    Isolated vertices get 0.
    """
    if A is None:
        A = adjacency_matrix(g, symmetric=True)
    A = binarize(A)
    np.fill_diagonal(A, 0)
    k = A.sum(axis=1)
    lev = np.zeros(len(k))
    for i in np.nonzero(k)[0]:
        kj = k[A[i] > 0]
        lev[i] = np.mean((k[i] - kj) / (k[i] + kj))
    return lev


def hubness(
    g: ig.Graph,
    weights: Optional[str] = None,
    xfm_type: str = config.DEFAULT_XFM_TYPE,
    fraction: float = config.HUB_FRACTION,
) -> np.ndarray:
    """
    Hubness score (0-4) of each vertex (van den Heuvel et al., 2010).

    One point for each criterion met:
      1. degree (or strength) in the top ``fraction`` of vertices
      2. betweenness centrality in the top ``fraction``
      3. local transitivity in the bottom ``fraction``
      4. vertex characteristic path length in the bottom ``fraction``

    Parameters
    ----------
    g : igraph.Graph
    weights : str, optional
        Edge attribute with *strength* weights.  Betweenness and path
        lengths are computed on ``xfm_type``-transformed copies.
    xfm_type : str
    fraction : float

    Returns
    -------
    np.ndarray of int (N,)
    """
    n = g.vcount()
    if n == 0:
        return np.zeros(0, dtype=int)
    top = max(1, int(ceil(fraction * n)))

    if weights is not None:
        w = np.asarray(g.es[weights], dtype=float)
        cost = None
        if len(w):
            # igraph betweenness rejects zero-length edges.
            cost = np.maximum(transform_weights(w, xfm_type),
                              np.finfo(float).eps).tolist()
        S = np.asarray(g.strength(weights=w.tolist()), dtype=float)
        B = np.asarray(g.betweenness(weights=cost), dtype=float)
        D = np.asarray(g.distances(weights=cost), dtype=float)
        Cp = transitivity_weighted(adjacency_matrix(g, weights, symmetric=True))
    else:
        S = np.asarray(g.degree(), dtype=float)
        B = np.asarray(g.betweenness(), dtype=float)
        D = distance_matrix(g)
        Cp = np.asarray(g.transitivity_local_undirected(mode="zero"), dtype=float)
    Lp = mean_distance_vertex(D)

    H = np.zeros((n, 4), dtype=int)
    H[:, 0] = S >= np.sort(S)[::-1][top - 1]
    H[:, 1] = B >= np.sort(B)[::-1][top - 1]
    H[:, 2] = Cp <= np.sort(Cp)[top - 1]
    H[:, 3] = Lp <= np.sort(Lp)[top - 1]
    return H.sum(axis=1)


# =============================================================================
# WEIGHTED VERTEX MEASURES
# =============================================================================

def knn_weighted(W: np.ndarray, degree: Sequence[float]) -> np.ndarray:
    """
    Weighted average nearest-neighbour degree (Barrat et al., 2004):

        k^w_nn,i = (1/s_i) Σ_j w_ij k_j

    NaN for vertices with zero strength.
    """
    W = np.asarray(W, dtype=float)
    s = W.sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        knn = W @ np.asarray(degree, dtype=float) / s
    knn[s == 0] = np.nan
    return knn


def transitivity_weighted(W: np.ndarray) -> np.ndarray:
    """
    Barrat weighted local transitivity; 0 for vertices with fewer than
    two neighbours.
    """
    W = np.array(W, dtype=float)
    np.fill_diagonal(W, 0)
    n = W.shape[0]
    ct = np.zeros(n)
    for i in range(n):
        nb = np.nonzero(W[i])[0]
        k = len(nb)
        s = W[i, nb].sum()
        if k < 2 or s == 0:
            continue
        deg_sub = (W[np.ix_(nb, nb)] != 0).sum(axis=1)
        ct[i] = W[i, nb] @ deg_sub / (s * (k - 1))
    return ct


def s_core(W: np.ndarray) -> np.ndarray:
    """
    s-core index of each vertex: the weighted analogue of k-core, peeling
    vertices of minimum strength level by level.  Vertices with no
    strength to begin with get 0.
    """
    W = np.array(W, dtype=float)
    np.fill_diagonal(W, 0)
    s = W.sum(axis=1)
    core = np.zeros(len(s), dtype=int)
    active = s > 0
    level = 0
    while active.any():
        level += 1
        thr = s[active].min()
        while True:
            remove = active & (s <= thr)
            if not remove.any():
                break
            core[remove] = level
            active &= ~remove
            W[remove, :] = 0
            W[:, remove] = 0
            s = W.sum(axis=1)
    return core


# =============================================================================
# RICH CLUB
# =============================================================================

_RICH_COLUMNS = ["k", "phi", "Nk", "Ek"]


def rich_club_all(
    g: ig.Graph,
    weighted: bool = False,
    A: Optional[np.ndarray] = None,
) -> pd.DataFrame:
    """
    Rich-club coefficient φ(k) at every degree level.

    The binary coefficient is the density of connections among vertices
    with degree > k (Colizza et al., 2006), computed with NetworkX.  The
    weighted coefficient (Opsahl et al., 2008) divides the total weight
    among those vertices by the sum of the E_k strongest weights in the
    whole network.

    Parameters
    ----------
    g : igraph.Graph
    weighted : bool
    A : np.ndarray, optional
        Weighted adjacency matrix matching ``g`` (weighted curve only).

    Returns
    -------
    pd.DataFrame with columns k, phi, Nk (vertices with degree > k) and
    Ek (edges among them).
    """
    n = g.vcount()
    simple = [(u, v) for u, v in g.get_edgelist() if u != v]
    if not simple:
        return pd.DataFrame(columns=_RICH_COLUMNS)

    G = nx.Graph()
    G.add_nodes_from(range(n))
    G.add_edges_from(simple)
    degrees = np.array([d for _, d in G.degree()])

    rows = []
    if not weighted:
        rc = nx.rich_club_coefficient(G, normalized=False)
        for k in sorted(rc):
            Nk = int(np.sum(degrees > k))
            Ek = int(round(rc[k] * Nk * (Nk - 1) / 2))
            rows.append((k, float(rc[k]), Nk, Ek))
    else:
        W = A if A is not None else adjacency_matrix(g, "weight", symmetric=True)
        W = np.array(W, dtype=float)
        np.fill_diagonal(W, 0)
        all_w = W[np.triu_indices(n, k=1)]
        ranked = np.sort(all_w[all_w != 0])[::-1]
        for k in range(int(degrees.max())):
            members = degrees > k
            Nk = int(members.sum())
            if Nk < 2:
                break
            sub = W[np.ix_(members, members)]
            upper = sub[np.triu_indices(Nk, k=1)]
            Ek = int(np.count_nonzero(upper))
            denom = ranked[:Ek].sum()
            phi = float(upper.sum() / denom) if denom != 0 else float("nan")
            rows.append((k, phi, Nk, Ek))

    return pd.DataFrame(rows, columns=_RICH_COLUMNS)


# =============================================================================
# COMPONENTS
# =============================================================================

def component_table(membership: Sequence[int]) -> pd.DataFrame:
    """
    Connected-component size table: one row per distinct component size
    with the number of components of that size, largest size first.
    """
    _, sizes = np.unique(np.asarray(membership), return_counts=True)
    size_vals, number = np.unique(sizes, return_counts=True)
    table = pd.DataFrame({"size": size_vals.astype(int),
                          "number": number.astype(int)})
    return table.sort_values("size", ascending=False).reset_index(drop=True)


# =============================================================================
# SPATIAL MEASURES
# =============================================================================

def edge_spatial_dist(g: ig.Graph, coords: np.ndarray) -> np.ndarray:
    """Euclidean length of every edge given vertex coordinates (N, 3)."""
    if g.ecount() == 0:
        return np.zeros(0)
    D = squareform(pdist(np.asarray(coords, dtype=float)))
    edges = np.asarray(g.get_edgelist())
    return D[edges[:, 0], edges[:, 1]]


def vertex_spatial_dist(g: ig.Graph, edge_dist: np.ndarray) -> np.ndarray:
    """Mean length of the edges incident to each vertex (0 if none)."""
    n = g.vcount()
    totals = np.zeros(n)
    counts = np.zeros(n)
    if g.ecount() > 0:
        edges = np.asarray(g.get_edgelist())
        for col in (0, 1):
            np.add.at(totals, edges[:, col], edge_dist)
            np.add.at(counts, edges[:, col], 1)
    dist = np.zeros(n)
    np.divide(totals, counts, out=dist, where=counts > 0)
    return dist


def _asymmetry_index(lh: np.ndarray, rh: np.ndarray) -> np.ndarray:
    lh = np.asarray(lh, dtype=float)
    rh = np.asarray(rh, dtype=float)
    total = 0.5 * (lh + rh)
    out = np.zeros_like(total)
    np.divide(lh - rh, total, out=out, where=total != 0)
    return out


def edge_asymmetry(
    hemi: Sequence[str],
    A: np.ndarray,
    level: str = "hemi",
) -> pd.DataFrame:
    """
    Hemispheric edge asymmetry, (L - R) / (0.5 (L + R)).

    Parameters
    ----------
    hemi : sequence of str
        Hemisphere of each vertex ('L'/'R'; other values ignored).
    A : np.ndarray (N, N)
        Adjacency indicator; binarized and symmetrized here.
    level : str
        'hemi': one row counting intra-hemispheric edges of each side;
        'vertex': one row per vertex counting its edges into each side.

    Returns
    -------
    pd.DataFrame with columns lh, rh, asymm.
    """
    A = binarize(A)
    A = np.maximum(A, A.T)
    np.fill_diagonal(A, 0)
    side = np.array([str(h)[:1].upper() if h is not None else "" for h in hemi])
    lh = side == "L"
    rh = side == "R"

    if level == "hemi":
        n_lh = A[np.ix_(lh, lh)].sum() / 2
        n_rh = A[np.ix_(rh, rh)].sum() / 2
        return pd.DataFrame({"lh": [n_lh], "rh": [n_rh],
                             "asymm": _asymmetry_index([n_lh], [n_rh])})
    if level == "vertex":
        to_lh = A[:, lh].sum(axis=1)
        to_rh = A[:, rh].sum(axis=1)
        return pd.DataFrame({"lh": to_lh, "rh": to_rh,
                             "asymm": _asymmetry_index(to_lh, to_rh)})
    raise InvalidArgumentError(f"Unknown asymmetry level: {level!r}")
