# -*- coding: utf-8 -*-
"""
neurograph.viz
==============

Color assignment for brain graph groupings.

Modules
-------
colors
    Deterministic vertex/edge colors for components, communities and
    atlas labels.
"""

# === colors ===
from .colors import (
    GROUP_PALETTE,
    group_colors,
    set_graph_colors,
)

__all__ = [
    "GROUP_PALETTE",
    "group_colors",
    "set_graph_colors",
]
