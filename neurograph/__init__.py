# -*- coding: utf-8 -*-
"""
neurograph — Brain Graph Attribute Library
==========================================

Computes graph-, vertex- and edge-level topological measures of brain
connectivity graphs (python-igraph) and attaches them as attributes, with
reversible strength -> cost weight transforms, validated community-method
selection and deterministic group coloring.

Subpackages
-----------
graph_analysis
    Weight transforms, community detection and modular roles, network
    measures, and the ``set_brain_graph_attr`` orchestrator.
viz
    Group colors for components, communities and atlas labels.

Core modules
------------
config
    Transform identifiers, hub and atlas constants, ``AttributeConfig``.
atlas_manager
    Atlas side tables: region metadata and coordinates.
exceptions
    Error and warning taxonomy.

Quick start
-----------
    import igraph as ig
    from neurograph.graph_analysis import set_brain_graph_attr

    g = ig.Graph.Famous("Zachary")
    g.es["weight"] = 1.0
    g = set_brain_graph_attr(g, use_parallel=False)
    g["mod_wt"], g.vs["E_nodal_wt"][:5]
"""

__version__ = "0.1.0"

from . import config
from . import exceptions
from .atlas_manager import Atlas, AtlasManager
