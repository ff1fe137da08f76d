# -*- coding: utf-8 -*-
"""
neurograph.graph_analysis.community
===================================

Community detection and modular roles of brain network vertices.

Community detection algorithms are exposed through a validated registry
(``COMMUNITY_ALGORITHMS``) instead of free-form names.  Before running an
algorithm, ``resolve_community_method`` adjusts the requested method to the
graph at hand:

1. unknown method                    -> InvalidArgumentError
2. spinglass on a disconnected graph -> louvain (warning)
3. directed graph, method in {fast_greedy, leiden, louvain}
                                     -> walktrap (warning)
4. negative weights, method not in {spinglass, walktrap}
                                     -> walktrap (warning)
5. otherwise the requested method

Modular roles (Guimerà & Amaral, 2005): participation coefficient,
within-module degree z-score, and the gateway coefficient
(Vargas & Wahl, 2014).

Algorithms
----------
- **edge_betweenness**: divisive, removes high-betweenness edges
  (Girvan & Newman, 2002).  Reads weights as *distances*.
- **fast_greedy**: agglomerative modularity (Clauset et al., 2004).
- **infomap**: random-walk map equation (Rosvall & Bergstrom, 2008).
- **label_prop**: label propagation (Raghavan et al., 2007).
- **leading_eigen**: leading eigenvector of the modularity matrix
  (Newman, 2006).
- **leiden**: Leiden algorithm via leidenalg (Traag et al., 2019).
- **louvain**: multilevel modularity (Blondel et al., 2008).  Default.
- **optimal**: exact modularity maximization (small graphs only).
- **spinglass**: spin-glass model; the only method here that handles
  negative weights natively (Traag & Bruggeman, 2009).
- **walktrap**: short random walks (Pons & Latapy, 2005).

References
----------
- Blondel et al. (2008). J Stat Mech P10008.
- Traag, Waltman & van Eck (2019). Sci Rep 9:5233.
- Newman (2006). Phys Rev E 74:036104.
- Guimerà & Amaral (2005). Nature 433:895-900.
- Vargas & Wahl (2014). Eur Phys J B 87:161.
"""

import logging
import random
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import igraph as ig
import leidenalg
import numpy as np

from .. import config
from ..exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class CommunityResult:
    """Partition returned by a community-detection algorithm."""
    method: str
    membership: np.ndarray
    modularity: List[float] = field(default_factory=list)

    @property
    def max_modularity(self) -> float:
        """Best modularity over all resolutions the algorithm returned."""
        scores = np.asarray(self.modularity, dtype=float)
        if scores.size == 0 or np.all(np.isnan(scores)):
            return float("nan")
        return float(np.nanmax(scores))

    @property
    def n_communities(self) -> int:
        return len(np.unique(self.membership))


@dataclass(frozen=True)
class MethodResolution:
    """Method actually applied, plus the warnings explaining substitutions."""
    method: str
    warnings: Tuple[str, ...] = ()


# =============================================================================
# ALGORITHM REGISTRY
# =============================================================================

@dataclass(frozen=True)
class CommunityAlgorithm:
    """
    One community-detection variant.

    ``run(g, weights)`` returns a list of memberships, one per resolution
    level (most algorithms return a single level).
    """
    name: str
    run: Callable[[ig.Graph, Optional[List[float]]], List[List[int]]]
    weights_are_distances: bool = False


COMMUNITY_ALGORITHMS: Dict[str, CommunityAlgorithm] = {}


def _register(name: str, weights_are_distances: bool = False):
    def decorator(func):
        COMMUNITY_ALGORITHMS[name] = CommunityAlgorithm(
            name, func, weights_are_distances
        )
        return func
    return decorator


def _clip_negative(weights: Optional[List[float]]) -> Optional[List[float]]:
    if weights is None:
        return None
    w = np.asarray(weights, dtype=float)
    w[w < 0] = 0.0
    return w.tolist()


@_register("edge_betweenness", weights_are_distances=True)
def _edge_betweenness(g, weights):
    if weights is not None:
        # Edge lengths must be strictly positive.
        weights = np.maximum(weights, np.finfo(float).eps).tolist()
    dendrogram = g.community_edge_betweenness(
        directed=g.is_directed(), weights=weights
    )
    return [dendrogram.as_clustering().membership]


@_register("fast_greedy")
def _fast_greedy(g, weights):
    dendrogram = g.community_fastgreedy(weights=_clip_negative(weights))
    return [dendrogram.as_clustering().membership]


@_register("infomap")
def _infomap(g, weights):
    return [g.community_infomap(edge_weights=_clip_negative(weights)).membership]


@_register("label_prop")
def _label_prop(g, weights):
    return [g.community_label_propagation(
        weights=_clip_negative(weights)).membership]


@_register("leading_eigen")
def _leading_eigen(g, weights):
    return [g.community_leading_eigenvector(
        weights=_clip_negative(weights)).membership]


@_register("leiden")
def _leiden(g, weights):
    part = leidenalg.find_partition(
        g,
        leidenalg.ModularityVertexPartition,
        weights=_clip_negative(weights),
        seed=random.randint(0, 2**31 - 1),
    )
    return [list(part.membership)]


@_register("louvain")
def _louvain(g, weights):
    levels = g.community_multilevel(
        weights=_clip_negative(weights), return_levels=True
    )
    return [level.membership for level in levels]


@_register("optimal")
def _optimal(g, weights):
    return [g.community_optimal_modularity(
        weights=_clip_negative(weights)).membership]


@_register("spinglass")
def _spinglass(g, weights):
    negative = weights is not None and np.any(np.asarray(weights) < 0)
    clustering = g.community_spinglass(
        weights=weights,
        implementation="neg" if negative else "orig",
    )
    return [clustering.membership]


@_register("walktrap")
def _walktrap(g, weights):
    dendrogram = g.community_walktrap(weights=_clip_negative(weights))
    return [dendrogram.as_clustering().membership]


def available_methods() -> List[str]:
    return sorted(COMMUNITY_ALGORITHMS)


# =============================================================================
# METHOD RESOLUTION
# =============================================================================

def resolve_community_method(
    method: str,
    has_negative: bool = False,
    connected: bool = True,
    directed: bool = False,
) -> MethodResolution:
    """
    Choose the community-detection method actually applied.

    Parameters
    ----------
    method : str
        Requested method; must be a key of ``COMMUNITY_ALGORITHMS``.
    has_negative : bool
        Whether the weights used for *this* detection call contain a
        negative value.
    connected : bool
        Whether the graph is connected.
    directed : bool
        Whether the graph is directed.

    Returns
    -------
    MethodResolution

    Raises
    ------
    InvalidArgumentError
        If ``method`` is not registered.
    """
    if method not in COMMUNITY_ALGORITHMS:
        raise InvalidArgumentError(
            f"Invalid clustering method {method!r}!  You must choose from "
            f"the following:\n" + "\n".join(available_methods())
        )

    notes = []
    if method == "spinglass" and not connected:
        notes.append(
            'Invalid clustering method for an unconnected graph; using "louvain".'
        )
        method = "louvain"
    if directed and method in config.UNDIRECTED_ONLY_METHODS:
        notes.append(
            f'Clustering method "{method}" needs an undirected graph; '
            f'using "walktrap".'
        )
        method = "walktrap"
    if has_negative and method not in config.NEGATIVE_WEIGHT_METHODS:
        notes.append(
            'Invalid clustering method for negative edge weights; using "walktrap".'
        )
        method = "walktrap"
    return MethodResolution(method, tuple(notes))


# =============================================================================
# DETECTION
# =============================================================================

@contextmanager
def _seeded(seed: Optional[int]):
    if seed is None:
        yield
        return
    state = random.getstate()
    random.seed(seed)
    try:
        yield
    finally:
        random.setstate(state)


def detect_communities(
    g: ig.Graph,
    method: str = config.DEFAULT_CLUST_METHOD,
    weights: Optional[Sequence[float]] = None,
    modularity_weights: Optional[Sequence[float]] = None,
    seed: Optional[int] = None,
) -> CommunityResult:
    """
    Run a registered community-detection algorithm.

    Parameters
    ----------
    g : igraph.Graph
    method : str
        Registry key (already resolved; see ``resolve_community_method``).
    weights : sequence of float, optional
        Edge weights passed to the algorithm; None for unweighted detection.
        ``edge_betweenness`` expects cost weights here.
    modularity_weights : sequence of float, optional
        Weights used to score each partition.  Defaults to ``weights``.
        Negative entries are zeroed before scoring.
    seed : int, optional
        Seeds Python's ``random`` module, which drives igraph's RNG, for
        the duration of the call; the caller's random state is restored
        afterwards.

    Returns
    -------
    CommunityResult
    """
    if method not in COMMUNITY_ALGORITHMS:
        raise InvalidArgumentError(f"Unknown community method: {method!r}")

    weights = None if weights is None else list(weights)
    if modularity_weights is None:
        modularity_weights = weights
    mod_w = _clip_negative(
        None if modularity_weights is None else list(modularity_weights)
    )

    with _seeded(seed):
        levels = COMMUNITY_ALGORITHMS[method].run(g, weights)
    if not levels:
        # Graphs without edges have no levels to report.
        levels = [list(range(g.vcount()))]
    scores = [
        float(g.modularity(memb, weights=mod_w)) if g.ecount() > 0
        else float("nan")
        for memb in levels
    ]
    best = int(np.nanargmax(scores)) if not np.all(np.isnan(scores)) else -1
    logger.debug(f"{method}: {len(levels)} level(s), Q={scores[best]:.4f}")

    return CommunityResult(
        method=method,
        membership=np.asarray(levels[best], dtype=int),
        modularity=scores,
    )


def renumber_membership(membership: Sequence) -> np.ndarray:
    """
    Renumber group ids so that group 1 is the largest, 2 the second, ...

    Ties are broken by the position at which each group is first
    encountered in ``membership``.

    Returns
    -------
    np.ndarray of int (1-based)
    """
    memb = np.asarray(membership)
    if memb.size == 0:
        return np.zeros(0, dtype=int)
    groups, first_idx, inverse, counts = np.unique(
        memb, return_index=True, return_inverse=True, return_counts=True
    )
    order = np.lexsort((first_idx, -counts))
    rank = np.empty(len(groups), dtype=int)
    rank[order] = np.arange(1, len(groups) + 1)
    return rank[inverse.ravel()]


# =============================================================================
# PARTICIPATION COEFFICIENT, WITHIN-MODULE DEGREE, GATEWAY COEFFICIENT
# =============================================================================

def compute_participation_coefficient(
    matrix: np.ndarray,
    community_labels: np.ndarray,
    weighted: bool = True,
) -> np.ndarray:
    """
    Participation coefficient of each vertex (Guimerà & Amaral, 2005):

        P_i = 1 - Σ_s (k_is / k_i)²

    with k_is the links (or strength) from i into module s and k_i the
    degree (or strength) of i.  Isolated vertices get 0.

    Parameters
    ----------
    matrix : np.ndarray (N, N)
    community_labels : np.ndarray (N,)
    weighted : bool

    Returns
    -------
    np.ndarray (N,)
    """
    from .network_metrics import _prepare_matrix

    mat = _prepare_matrix(matrix)
    if not weighted:
        mat = (mat > 0).astype(float)
    k = mat.sum(axis=1)
    k_is = mat @ _module_indicator(community_labels)

    pc = np.zeros(len(k))
    linked = k > 0
    pc[linked] = 1.0 - ((k_is[linked] / k[linked, None]) ** 2).sum(axis=1)
    return pc


def _module_indicator(community_labels: np.ndarray) -> np.ndarray:
    """(N, M) 0/1 matrix with a column per distinct module."""
    _, codes = np.unique(np.asarray(community_labels), return_inverse=True)
    codes = codes.ravel()
    onehot = np.zeros((len(codes), codes.max() + 1 if len(codes) else 0))
    onehot[np.arange(len(codes)), codes] = 1.0
    return onehot


def compute_within_module_degree(
    matrix: np.ndarray,
    community_labels: np.ndarray,
    weighted: bool = True,
) -> np.ndarray:
    """
    Compute the within-module degree z-score for each node.

        z_i = (k_i(s_i) - <k(s_i)>) / σ(k(s_i))

    where k_i(s_i) = intra-module connections of node i, and
    <k(s_i)>, σ(k(s_i)) = mean and std of intra-module connections
    for all nodes in module s_i.  Singleton modules and modules with
    zero variance give z = 0.

    Parameters
    ----------
    matrix : np.ndarray (N, N)
    community_labels : np.ndarray (N,)
    weighted : bool

    Returns
    -------
    np.ndarray (N,): within-module degree z-score.
    """
    from .network_metrics import _prepare_matrix

    mat = _prepare_matrix(matrix)
    N = mat.shape[0]
    z = np.zeros(N)
    modules = np.unique(community_labels)

    for mod in modules:
        idx = np.where(community_labels == mod)[0]
        if len(idx) < 2:
            continue
        sub = mat[np.ix_(idx, idx)]
        k_intra = sub.sum(axis=1) if weighted else (sub > 0).sum(axis=1)
        mu = np.mean(k_intra)
        sigma = np.std(k_intra)
        if sigma > 0:
            z[idx] = (k_intra - mu) / sigma

    return z


def compute_gateway_coefficient(
    matrix: np.ndarray,
    community_labels: np.ndarray,
    centrality: np.ndarray,
    weighted: bool = True,
) -> np.ndarray:
    """
    Gateway coefficient (Vargas & Wahl, 2014).

    A participation coefficient whose module terms are down-weighted when
    the node's links into module s are a large share of that module's
    connectivity and reach its central nodes:

        n_is = k_is / K_s                  (share of module s's degree)
        c_is = Σ_{j∈N(i)∩s} c_j / Σ_{j∈s} c_j
        g_is = 1 - n_is · c_is
        G_i  = 1 - Σ_s (g_is · k_is / k_i)²

    Parameters
    ----------
    matrix : np.ndarray (N, N)
    community_labels : np.ndarray (N,)
    centrality : np.ndarray (N,)
        Vertex centrality (betweenness) used for c_is.
    weighted : bool

    Returns
    -------
    np.ndarray (N,)
    """
    from .network_metrics import _prepare_matrix

    mat = _prepare_matrix(matrix)
    if not weighted:
        mat = (mat > 0).astype(float)
    N = mat.shape[0]
    cent = np.nan_to_num(np.asarray(centrality, dtype=float))
    k = mat.sum(axis=1)
    gc = np.zeros(N)

    modules = [np.where(community_labels == mod)[0]
               for mod in np.unique(community_labels)]
    K_s = np.array([k[idx].sum() for idx in modules])
    C_s = np.array([cent[idx].sum() for idx in modules])

    for i in range(N):
        if k[i] == 0:
            continue
        total = 0.0
        for s, idx in enumerate(modules):
            k_is = mat[i, idx].sum()
            if k_is == 0:
                continue
            n_is = k_is / K_s[s] if K_s[s] > 0 else 0.0
            linked = idx[mat[i, idx] > 0]
            c_is = cent[linked].sum() / C_s[s] if C_s[s] > 0 else 0.0
            g_is = 1.0 - n_is * c_is
            total += (g_is * k_is / k[i]) ** 2
        gc[i] = 1.0 - total

    return gc
