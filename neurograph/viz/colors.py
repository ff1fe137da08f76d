# -*- coding: utf-8 -*-
"""
neurograph.viz.colors
=====================

Deterministic vertex/edge coloring of brain graphs by group membership
(connected component, community, lobe, network label).

Rules
-----
- Membership values are factorized: sorted distinct values -> 1..K.
- Groups with a single member are drawn in a neutral gray; groups with two
  or more members get ``GROUP_PALETTE[(k - 1) % len(GROUP_PALETTE)]``.
- An edge takes its group's color only when both endpoints belong to the
  same multi-member group; every other edge is gray.
- When the attribute name ends in a categorical atlas column (e.g.
  ``color_lobe``), memberships come from the atlas, looked up by vertex
  name, instead of the vector passed in.

The palette concatenates matplotlib's qualitative ``tab20`` colormaps with
the gray entries removed so that a group color can never be confused with
the neutral color.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import igraph as ig
import matplotlib
import numpy as np
from matplotlib.colors import to_hex

from .. import config
from ..atlas_manager import Atlas, default_manager
from ..exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def _build_palette() -> List[str]:
    palette = []
    for name in config.PALETTE_CMAPS:
        cmap = matplotlib.colormaps[name]
        for rgba in cmap(np.arange(cmap.N)):
            r, g, b = rgba[:3]
            if np.isclose(r, g) and np.isclose(g, b):
                continue
            color = to_hex(rgba[:3])
            if color not in palette:
                palette.append(color)
    return palette


GROUP_PALETTE = _build_palette()


def _atlas_column(name: str) -> Optional[str]:
    parts = name.split("_", 1)
    if len(parts) == 2 and parts[1] in config.ATLAS_COLOR_COLUMNS:
        return parts[1]
    return None


def group_colors(
    g: ig.Graph,
    memb: Optional[Sequence],
    name: str,
    atlas: Optional[Atlas] = None,
) -> Tuple[List[str], List[str]]:
    """
    Vertex and edge colors for a membership vector.

    Parameters
    ----------
    g : igraph.Graph
    memb : sequence
        One group id per vertex (any sortable values, not necessarily
        contiguous).  May be None when ``name`` refers to an atlas column.
    name : str
        Target attribute name, e.g. ``color_comm`` or ``color_lobe``.
    atlas : Atlas, optional
        Atlas used for ``color_<column>`` names; defaults to the atlas
        attached to ``g``.

    Returns
    -------
    vertex_colors : list of str (N,)
    edge_colors : list of str (E,); empty for a graph with no edges.

    Raises
    ------
    InvalidArgumentError
        If ``memb`` does not have one entry per vertex.
    """
    n = g.vcount()
    column = _atlas_column(name)
    if column is not None:
        if atlas is None:
            atlas = default_manager.resolve(g)
        if atlas is not None:
            memb = atlas.membership(column, g.vs["name"])

    if memb is None or len(memb) != n:
        got = "None" if memb is None else len(memb)
        raise InvalidArgumentError(
            f"Membership for '{name}' must have {n} entries, got {got}."
        )

    _, codes = np.unique(np.asarray(memb), return_inverse=True)
    codes = codes.ravel() + 1
    sizes = np.bincount(codes)
    shared = sizes[codes] >= 2

    vertex_colors = [
        GROUP_PALETTE[(k - 1) % len(GROUP_PALETTE)] if multi
        else config.NEUTRAL_VERTEX_COLOR
        for k, multi in zip(codes, shared)
    ]

    edge_colors = []
    for u, v in g.get_edgelist():
        if codes[u] == codes[v] and shared[u]:
            edge_colors.append(vertex_colors[u])
        else:
            edge_colors.append(config.NEUTRAL_EDGE_COLOR)

    logger.debug(f"{name}: {len(sizes) - 1} group(s), "
                 f"{int(shared.sum())} vertices colored")
    return vertex_colors, edge_colors


def set_graph_colors(
    g: ig.Graph,
    name: str,
    memb: Optional[Sequence],
    atlas: Optional[Atlas] = None,
) -> ig.Graph:
    """
    Copy of ``g`` with vertex and edge attribute ``name`` set to the colors
    returned by ``group_colors``.
    """
    vertex_colors, edge_colors = group_colors(g, memb, name, atlas=atlas)
    out = g.copy()
    if out.vcount() > 0:
        out.vs[name] = vertex_colors
    if out.ecount() > 0:
        out.es[name] = edge_colors
    return out
