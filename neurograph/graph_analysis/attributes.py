# -*- coding: utf-8 -*-
"""
neurograph.graph_analysis.attributes
====================================

Attach graph-, vertex- and edge-level measures to a brain graph in one call.

``set_brain_graph_attr`` is the entry point.  It never mutates its input:
measures are computed on a private copy and collected in an
``AttributeBag``, which is merged into a fresh copy of the graph at the end.

Computation tree
----------------
random graphs
    Cp, Lp, rich, E_global, mod (all unweighted) and nothing else.
observed graphs
    1. unweighted block   degree, components, diameter, centralities,
                          efficiencies, vulnerability, hubs, ...
    2. weighted block     strength, knn_wt, s_core, rich_wt, transitivity_wt;
                          distance measures on cost weights unless a weight
                          or a transformed cost is negative; weighted
                          communities and roles
    3. directed block     hub and authority scores
    4. atlas block        lobe/hemisphere decoration, nominal assortativity,
                          edge asymmetry, spatial distances
    5. community block    unweighted communities and modular roles

Negative weights never abort the call: distance-based weighted measures are
skipped (their attributes are absent from the output) and the weighted
community method falls back to walktrap, each with a
``DegradedComputationWarning``.

Usage
-----
    from neurograph.graph_analysis import set_brain_graph_attr

    g = set_brain_graph_attr(g, clust_method="walktrap", use_parallel=False)
    g.vs["E_nodal_wt"]
"""

import logging
import warnings
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence

import igraph as ig
import numpy as np
import pandas as pd

from .. import config as cfg_module
from ..atlas_manager import Atlas, AtlasManager, default_manager
from ..config import AttributeConfig
from ..exceptions import (
    DegradedComputationWarning,
    InvalidArgumentError,
    InvalidInputError,
    NeurographError,
)
from ..viz.colors import group_colors
from .community import (
    COMMUNITY_ALGORITHMS,
    CommunityResult,
    MethodResolution,
    compute_gateway_coefficient,
    compute_participation_coefficient,
    compute_within_module_degree,
    detect_communities,
    renumber_membership,
    resolve_community_method,
)
from .network_metrics import (
    adjacency_matrix,
    check_adjacency,
    component_table,
    distance_matrix,
    edge_asymmetry,
    edge_spatial_dist,
    efficiency_global,
    efficiency_local,
    efficiency_nodal,
    hubness,
    knn_weighted,
    leverage_centrality,
    mean_distance_graph,
    mean_distance_vertex,
    rich_club_all,
    s_core,
    transitivity_weighted,
    vertex_spatial_dist,
    vulnerability,
)
from .weights import transform_weights, transformed_weights

logger = logging.getLogger(__name__)

GRAPH_TYPES = ("observed", "random")


# =============================================================================
# ATTRIBUTE BAG
# =============================================================================

def _as_list(values) -> List:
    if isinstance(values, np.ndarray):
        return values.tolist()
    return list(values)


class AttributeBag:
    """
    Collects graph, vertex and edge attributes for a graph of known size.

    Vertex and edge vectors are checked against ``n_vertices`` /
    ``n_edges`` when added, so a bag can only ever hold well-formed
    attributes.  ``apply`` writes everything onto a copy of a graph.
    """

    def __init__(self, n_vertices: int, n_edges: int):
        self.n_vertices = n_vertices
        self.n_edges = n_edges
        self.graph: Dict[str, object] = {}
        self.vertex: Dict[str, List] = {}
        self.edge: Dict[str, List] = {}
        self.notes: List[str] = []

    def warn(self, *messages: str):
        """Queue degradation messages for the caller."""
        self.notes.extend(messages)

    def set_graph(self, name: str, value):
        self.graph[name] = value

    def set_vertex(self, name: str, values: Sequence):
        values = _as_list(values)
        if len(values) != self.n_vertices:
            raise InvalidArgumentError(
                f"Vertex attribute '{name}' has {len(values)} values; "
                f"expected {self.n_vertices}."
            )
        self.vertex[name] = values

    def set_edge(self, name: str, values: Sequence):
        values = _as_list(values)
        if len(values) != self.n_edges:
            raise InvalidArgumentError(
                f"Edge attribute '{name}' has {len(values)} values; "
                f"expected {self.n_edges}."
            )
        self.edge[name] = values

    def __contains__(self, name: str) -> bool:
        return name in self.graph or name in self.vertex or name in self.edge

    def apply(self, g: ig.Graph) -> ig.Graph:
        """Copy of ``g`` carrying every attribute in the bag."""
        if (g.vcount(), g.ecount()) != (self.n_vertices, self.n_edges):
            raise InvalidArgumentError(
                "Graph size does not match the attribute bag."
            )
        out = g.copy()
        for name, value in self.graph.items():
            out[name] = value
        if self.n_vertices > 0:
            for name, values in self.vertex.items():
                out.vs[name] = values
        if self.n_edges > 0:
            for name, values in self.edge.items():
                out.es[name] = values
        return out


# =============================================================================
# HELPERS
# =============================================================================

def _merge_config(config: Optional[AttributeConfig], **overrides) -> AttributeConfig:
    base = config if config is not None else AttributeConfig()
    given = {k: v for k, v in overrides.items() if v is not None}
    cfg = replace(base, **given)
    if cfg.xfm_type not in cfg_module.XFM_TYPES:
        raise InvalidArgumentError(
            f"Unknown weight transform: {cfg.xfm_type!r}.  "
            f"Choose from: {', '.join(cfg_module.XFM_TYPES)}"
        )
    return cfg


def _colorize(bag: AttributeBag, g: ig.Graph, name: str, memb: np.ndarray):
    # A partition into singletons carries no grouping to show.
    if len(np.unique(memb)) >= g.vcount():
        return
    vertex_colors, edge_colors = group_colors(g, memb, name)
    bag.set_vertex(name, vertex_colors)
    bag.set_edge(name, edge_colors)


def _is_connected(g: ig.Graph) -> bool:
    return g.vcount() < 2 or g.is_connected(mode="weak")


# =============================================================================
# BLOCKS
# =============================================================================

def _summary_block(work, bag, cfg, resolution) -> CommunityResult:
    bag.set_graph("Cp", work.transitivity_avglocal_undirected(mode="nan"))
    bag.set_graph("Lp", work.average_path_length(
        directed=work.is_directed(), unconn=True))
    bag.set_graph("rich", rich_club_all(work))
    bag.set_graph("E_global", efficiency_global(work))

    comm = detect_communities(work, resolution.method, seed=cfg.seed)
    bag.set_graph("mod", comm.max_modularity)
    return comm


def _unweighted_block(work, bag, cfg, A_bin):
    directed = work.is_directed()
    degree = np.asarray(work.degree(), dtype=float)
    bag.set_vertex("degree", work.degree())
    bag.set_graph("density", work.density())

    comps = work.connected_components(mode="weak")
    comp = renumber_membership(comps.membership)
    bag.set_vertex("comp", comp)
    bag.set_graph("conn_comp", component_table(comp))
    bag.set_graph("max_comp", int(np.bincount(comp).max()) if len(comp) else 0)
    _colorize(bag, work, "color_comp", comp)

    bag.set_graph("num_tri", len(work.list_triangles()))
    bag.set_graph("diameter", work.diameter(directed=directed, unconn=True))
    bag.set_graph("transitivity", work.transitivity_undirected())
    bag.set_graph("assort", work.assortativity_degree(directed=directed))

    D = distance_matrix(work)
    bag.set_vertex("knn", work.knn()[0])
    bag.set_vertex("Lp", mean_distance_vertex(D))
    bag.set_edge("btwn", work.edge_betweenness(directed=directed))
    btwn_cent = np.asarray(work.betweenness(directed=directed), dtype=float)
    bag.set_vertex("btwn_cent", btwn_cent)

    hubs = hubness(work, fraction=cfg.hub_fraction)
    bag.set_vertex("hubs", hubs)
    bag.set_graph("num_hubs", int(np.sum(hubs >= cfg.hub_threshold)))

    # python-igraph 1.0 rejects directed=False.
    ev_cent = work.eigenvector_centrality(directed=True) if directed \
        else work.eigenvector_centrality()
    bag.set_vertex("ev_cent", ev_cent)
    bag.set_vertex("lev_cent", leverage_centrality(work, A=A_bin))
    bag.set_vertex("k_core", work.coreness(mode="all"))
    bag.set_vertex("transitivity",
                   work.transitivity_local_undirected(mode="zero"))

    e_local = efficiency_local(work, None, cfg.use_parallel, cfg.n_jobs, A=A_bin)
    bag.set_vertex("E_local", e_local)
    bag.set_graph("E_local", float(np.mean(e_local)) if len(e_local) else 0.0)
    bag.set_vertex("E_nodal", efficiency_nodal(D))

    vuln = vulnerability(work, cfg.use_parallel, cfg.n_jobs)
    bag.set_vertex("vulnerability", vuln)
    bag.set_graph("vulnerability", float(np.max(vuln)) if len(vuln) else 0.0)
    bag.set_vertex("eccentricity", work.eccentricity())

    logger.debug(f"Unweighted block done ({work.vcount()} vertices)")
    return btwn_cent, degree


def _weighted_distance_block(work, bag, cfg, resolution, A_bin, weights):
    """Distance-based weighted measures; returns an edge-betweenness
    partition when that method was requested, else None."""
    comm_wt = None
    with transformed_weights(work, cfg.xfm_type) as cost:
        bag.set_graph("xfm_type", cost["xfm_type"])
        if "max_weight" in cost.attributes():
            bag.set_graph("max_weight", cost["max_weight"])

        D = distance_matrix(cost, "weight")
        e_local = efficiency_local(cost, "weight", cfg.use_parallel,
                                   cfg.n_jobs, A=A_bin)
        e_nodal = efficiency_nodal(D)
        bag.set_vertex("E_local_wt", e_local)
        bag.set_graph("E_local_wt",
                      float(np.mean(e_local)) if len(e_local) else 0.0)
        bag.set_vertex("E_nodal_wt", e_nodal)
        bag.set_graph("E_global_wt", efficiency_global(cost, D=D))
        bag.set_graph("diameter_wt", cost.diameter(
            directed=cost.is_directed(), unconn=True, weights="weight"))
        bag.set_vertex("Lp_wt", mean_distance_vertex(D))
        bag.set_graph("Lp_wt", mean_distance_graph(D))

        if resolution.method == "edge_betweenness":
            comm_wt = detect_communities(
                cost, resolution.method,
                weights=cost.es["weight"],
                modularity_weights=weights,
                seed=cfg.seed,
            )

    hubs_wt = hubness(work, "weight", cfg.xfm_type, cfg.hub_fraction)
    bag.set_vertex("hubs_wt", hubs_wt)
    bag.set_graph("num_hubs_wt", int(np.sum(hubs_wt >= cfg.hub_threshold)))
    return comm_wt


def _weighted_block(work, bag, cfg, method, connected, A_bin, degree, btwn_cent):
    weights = list(work.es["weight"])
    W = adjacency_matrix(work, "weight", symmetric=True)

    strength = np.asarray(work.strength(weights="weight"), dtype=float)
    bag.set_vertex("strength", strength)
    bag.set_graph("strength", float(np.mean(strength)) if len(strength) else 0.0)
    bag.set_vertex("knn_wt", knn_weighted(W, degree))
    bag.set_vertex("s_core", s_core(W))
    bag.set_graph("rich_wt", rich_club_all(work, weighted=True, A=W))
    bag.set_vertex("transitivity_wt", transitivity_weighted(W))

    w = np.asarray(weights, dtype=float)
    has_negative = bool(np.any(w < 0))
    resolution = resolve_community_method(
        method, has_negative=has_negative, connected=connected,
        directed=work.is_directed(),
    )

    comm_wt = None
    if has_negative:
        bag.warn("Negative weights present. Skipping distance-based functions.")
        logger.debug("Weighted distance block skipped")
    elif len(w) and np.any(transform_weights(w, cfg.xfm_type) < 0):
        bag.warn(f"Transform '{cfg.xfm_type}' gives negative costs for these "
                 f"weights. Skipping distance-based functions.")
        logger.debug("Weighted distance block skipped")
    else:
        comm_wt = _weighted_distance_block(work, bag, cfg, resolution,
                                           A_bin, weights)
    bag.warn(*resolution.warnings)

    if comm_wt is None:
        # Distance-type algorithms cannot read strengths.
        algo_weights = None if \
            COMMUNITY_ALGORITHMS[resolution.method].weights_are_distances \
            else weights
        comm_wt = detect_communities(work, resolution.method,
                                     weights=algo_weights,
                                     modularity_weights=weights,
                                     seed=cfg.seed)
    memb = renumber_membership(comm_wt.membership)
    bag.set_graph("clust_method_wt", resolution.method)
    bag.set_graph("mod_wt", comm_wt.max_modularity)
    bag.set_vertex("comm_wt", memb)
    _colorize(bag, work, "color_comm_wt", memb)

    bag.set_vertex("GC_wt", compute_gateway_coefficient(W, memb, btwn_cent))
    bag.set_vertex("PC_wt", compute_participation_coefficient(W, memb))
    bag.set_vertex("z_score_wt", compute_within_module_degree(W, memb))


def _directed_block(work, bag):
    hub, hub_value = work.hub_score(return_eigenvalue=True)
    auth, auth_value = work.authority_score(return_eigenvalue=True)
    bag.set_vertex("hub_score", hub)
    bag.set_graph("hub_score", hub_value)
    bag.set_vertex("authority_score", auth)
    bag.set_graph("authority_score", auth_value)


def _atlas_block(work, bag, cfg, atlas: Atlas, A_bin, degree):
    names = work.vs["name"]
    directed = work.is_directed()

    lobe = atlas.column("lobe", names)
    hemi = atlas.column("hemi", names)
    lobe_codes = atlas.membership("lobe", names)
    lobe_hemi_labels = [f"{lo}_{he}" for lo, he in zip(lobe, hemi)]
    _, lobe_hemi = np.unique(lobe_hemi_labels, return_inverse=True)
    lobe_hemi = lobe_hemi.ravel() + 1

    bag.set_vertex("lobe", lobe)
    bag.set_vertex("hemi", hemi)
    bag.set_vertex("lobe_hemi", lobe_hemi)
    coords = atlas.coordinates(names)
    for k, axis in enumerate(("x", "y", "z")):
        bag.set_vertex(axis, coords[:, k])

    vertex_colors, edge_colors = group_colors(work, lobe_codes, "color_lobe",
                                              atlas=atlas)
    bag.set_vertex("color_lobe", vertex_colors)
    bag.set_edge("color_lobe", edge_colors)

    bag.set_graph("assort_lobe", work.assortativity_nominal(
        lobe_codes.tolist(), directed=directed))
    bag.set_graph("assort_lobe_hemi", work.assortativity_nominal(
        lobe_hemi.tolist(), directed=directed))
    for column in atlas.categorical_columns(cfg.atlas_columns):
        bag.set_vertex(column, atlas.column(column, names))
        codes = atlas.membership(column, names)
        bag.set_graph(f"assort_{column}", work.assortativity_nominal(
            codes.tolist(), directed=directed))

    A_ind = A_bin if A_bin is not None else adjacency_matrix(work, symmetric=True)
    bag.set_graph("asymm", float(edge_asymmetry(hemi, A_ind, "hemi")["asymm"][0]))
    bag.set_vertex("asymm",
                   edge_asymmetry(hemi, A_ind, "vertex")["asymm"].to_numpy())

    edge_dist = edge_spatial_dist(work, coords)
    bag.set_edge("dist", edge_dist)
    bag.set_graph("spatial_dist",
                  float(np.mean(edge_dist)) if len(edge_dist) else float("nan"))
    dist = vertex_spatial_dist(work, edge_dist)
    bag.set_vertex("dist", dist)
    bag.set_vertex("dist_strength", dist * degree)
    logger.debug(f"Atlas block done ({atlas.name})")


def _community_block(work, bag, comm: CommunityResult, degree, btwn_cent):
    memb = renumber_membership(comm.membership)
    bag.set_vertex("comm", memb)
    _colorize(bag, work, "color_comm", memb)
    bag.set_vertex("circle_layout_comm", np.lexsort((degree, memb)))

    A = adjacency_matrix(work, symmetric=True)
    bag.set_vertex("GC", compute_gateway_coefficient(A, memb, btwn_cent,
                                                     weighted=False))
    bag.set_vertex("PC", compute_participation_coefficient(A, memb,
                                                           weighted=False))
    bag.set_vertex("z_score", compute_within_module_degree(A, memb,
                                                           weighted=False))


# =============================================================================
# ENTRY POINTS
# =============================================================================

def set_brain_graph_attr(
    g: ig.Graph,
    type: str = "observed",
    use_parallel: Optional[bool] = None,
    A: Optional[np.ndarray] = None,
    xfm_type: Optional[str] = None,
    clust_method: Optional[str] = None,
    config: Optional[AttributeConfig] = None,
    atlas_manager: Optional[AtlasManager] = None,
) -> ig.Graph:
    """
    Compute graph-, vertex- and edge-level measures of a brain graph.

    Parameters
    ----------
    g : igraph.Graph
        Input graph; weighted if it has a ``weight`` edge attribute,
        atlas-annotated if it has an ``atlas`` graph attribute.
    type : str
        'observed' for the full computation, 'random' for the five graph
        summaries used with null models.
    use_parallel : bool, optional
        Compute local efficiency and vulnerability with joblib.
    A : np.ndarray (N, N), optional
        Adjacency matrix used for neighbourhoods and edge asymmetry;
        binarized on use.
    xfm_type : str, optional
        Strength -> cost transform for weighted distances (default '1/w').
    clust_method : str, optional
        Community-detection method (default 'louvain').
    config : AttributeConfig, optional
        Base options; the keyword arguments above override its fields.
    atlas_manager : AtlasManager, optional
        Registry used to resolve an atlas given by name.

    Returns
    -------
    igraph.Graph
        A new graph; ``g`` is left untouched.

    Raises
    ------
    InvalidInputError
        If ``g`` is not an igraph.Graph.
    InvalidArgumentError
        For an unknown ``type``, community method or weight transform.

    Warns
    -----
    DegradedComputationWarning
        On negative weights or a method substitution.
    """
    if not isinstance(g, ig.Graph):
        raise InvalidInputError(
            f"Expected an igraph.Graph, got {g.__class__.__name__}."
        )
    if type not in GRAPH_TYPES:
        raise InvalidArgumentError(
            f"Unknown graph type {type!r}; choose 'observed' or 'random'."
        )
    cfg = _merge_config(config, use_parallel=use_parallel, xfm_type=xfm_type,
                        clust_method=clust_method)

    work = g.copy()
    bag = AttributeBag(work.vcount(), work.ecount())
    connected = _is_connected(work)

    resolution = resolve_community_method(
        cfg.clust_method, connected=connected, directed=work.is_directed()
    )
    bag.warn(*resolution.warnings)
    comm = _summary_block(work, bag, cfg, resolution)

    if type == "observed":
        _observed_blocks(work, bag, cfg, resolution, connected, comm,
                         A, atlas_manager)

    for message in bag.notes:
        warnings.warn(message, DegradedComputationWarning, stacklevel=2)
    return bag.apply(g)


def _observed_blocks(work, bag, cfg, resolution: MethodResolution, connected,
                     comm, A, atlas_manager):
    A_bin = check_adjacency(A, work.vcount())
    bag.set_graph("clust_method", resolution.method)
    btwn_cent, degree = _unweighted_block(work, bag, cfg, A_bin)

    if "weight" in work.es.attributes():
        _weighted_block(work, bag, cfg, resolution.method, connected,
                        A_bin, degree, btwn_cent)
    if work.is_directed():
        _directed_block(work, bag)

    atlas = (atlas_manager or default_manager).resolve(work)
    if atlas is not None:
        _atlas_block(work, bag, cfg, atlas, A_bin, degree)

    _community_block(work, bag, comm, degree, btwn_cent)

    logger.info(f"Attributes set: {len(bag.graph)} graph, "
                f"{len(bag.vertex)} vertex, {len(bag.edge)} edge")


def set_brain_graph_attr_batch(
    graphs: Iterable[ig.Graph],
    **kwargs,
) -> List[Optional[ig.Graph]]:
    """
    Run ``set_brain_graph_attr`` over many graphs.

    A graph that raises a ``NeurographError`` is logged and yields None;
    the remaining graphs are still processed.
    """
    results = []
    for i, g in enumerate(graphs):
        try:
            results.append(set_brain_graph_attr(g, **kwargs))
        except NeurographError as e:
            logger.error(f"Attribute computation failed for graph {i}: {e}")
            results.append(None)
    return results


def delete_all_attr(g: ig.Graph, keep_names: bool = False) -> ig.Graph:
    """
    Copy of ``g`` with every graph, vertex and edge attribute removed.

    Parameters
    ----------
    keep_names : bool
        Keep the vertex attribute ``name``.
    """
    out = g.copy()
    for name in out.attributes():
        del out[name]
    for name in out.vs.attributes():
        if keep_names and name == "name":
            continue
        del out.vs[name]
    for name in out.es.attributes():
        del out.es[name]
    return out


def vertex_attr_frame(
    g: ig.Graph,
    measures: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Vertex attributes as a DataFrame, one row per vertex.

    Parameters
    ----------
    g : igraph.Graph
    measures : sequence of str, optional
        Attributes to export; all vertex attributes when None.  The vertex
        ``name`` (if present) is always the first column.
    """
    available = g.vs.attributes()
    if measures is None:
        measures = [a for a in available if a != "name"]
    missing = [m for m in measures if m not in available]
    if missing:
        raise InvalidArgumentError(f"Graph has no vertex attribute(s) {missing}")
    data = {}
    if "name" in available:
        data["name"] = g.vs["name"]
    for m in measures:
        data[m] = g.vs[m]
    return pd.DataFrame(data, index=pd.RangeIndex(g.vcount(), name="vertex"))
