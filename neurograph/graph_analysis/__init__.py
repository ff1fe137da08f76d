# -*- coding: utf-8 -*-
"""
neurograph.graph_analysis
=========================

Graph-theoretic measures of brain connectivity graphs.

Modules
-------
weights
    Reversible strength <-> cost edge-weight transforms, including the
    ``transformed_weights`` context manager.
community
    Community-detection registry, method resolution, membership
    renumbering, and modular roles (participation, gateway, z-score).
network_metrics
    Efficiency, vulnerability, leverage centrality, hubness, s-core,
    weighted clustering, rich club, spatial distances, edge asymmetry.
attributes
    ``set_brain_graph_attr``: attaches every measure to a graph.
"""

# === weights ===
from .weights import (
    transform_weights,
    xfm_weights,
    transformed_weights,
)

# === community ===
from .community import (
    COMMUNITY_ALGORITHMS,
    CommunityResult,
    MethodResolution,
    available_methods,
    resolve_community_method,
    detect_communities,
    renumber_membership,
    compute_participation_coefficient,
    compute_within_module_degree,
    compute_gateway_coefficient,
)

# === network_metrics ===
from .network_metrics import (
    efficiency_local,
    efficiency_nodal,
    efficiency_global,
    vulnerability,
    leverage_centrality,
    hubness,
    s_core,
    rich_club_all,
    edge_asymmetry,
)

# === attributes ===
from .attributes import (
    AttributeBag,
    set_brain_graph_attr,
    set_brain_graph_attr_batch,
    delete_all_attr,
    vertex_attr_frame,
)

__all__ = [
    # weights
    "transform_weights",
    "xfm_weights",
    "transformed_weights",
    # community
    "COMMUNITY_ALGORITHMS",
    "CommunityResult",
    "MethodResolution",
    "available_methods",
    "resolve_community_method",
    "detect_communities",
    "renumber_membership",
    "compute_participation_coefficient",
    "compute_within_module_degree",
    "compute_gateway_coefficient",
    # network_metrics
    "efficiency_local",
    "efficiency_nodal",
    "efficiency_global",
    "vulnerability",
    "leverage_centrality",
    "hubness",
    "s_core",
    "rich_club_all",
    "edge_asymmetry",
    # attributes
    "AttributeBag",
    "set_brain_graph_attr",
    "set_brain_graph_attr_batch",
    "delete_all_attr",
    "vertex_attr_frame",
]
