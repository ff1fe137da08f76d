# -*- coding: utf-8 -*-
"""
neurograph.config
=================

Centralized parameters for brain-graph attribute computation.

Module-level constants hold the fixed vocabulary (transform identifiers,
atlas column names, neutral colors).  ``AttributeConfig`` bundles the
per-run options of ``set_brain_graph_attr`` so a batch can share one
configuration object.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

# =============================================================================
# EDGE-WEIGHT TRANSFORMS
# =============================================================================

# Strength -> cost transforms, in order of preference (reciprocal first).
XFM_TYPES = (
    "1/w",
    "-log(w)",
    "1-w",
    "-log10(w/max(w))",
    "-log10(w/max(w)+1)",
)

# Transforms that normalize by the maximum weight and must persist it.
XFM_NORMALIZED = ("-log10(w/max(w))", "-log10(w/max(w)+1)")

DEFAULT_XFM_TYPE = "1/w"

# =============================================================================
# COMMUNITY DETECTION
# =============================================================================

DEFAULT_CLUST_METHOD = "louvain"

# Methods that accept negative edge weights.
NEGATIVE_WEIGHT_METHODS = ("spinglass", "walktrap")
UNDIRECTED_ONLY_METHODS = ("fast_greedy", "leiden", "louvain")

RANDOM_SEED = 42

# =============================================================================
# HUBS
# =============================================================================

# A vertex is a hub when it meets at least this many of the 4 hub criteria.
HUB_THRESHOLD = 2

# Fraction of vertices counted as "top" (or "bottom") for each criterion.
HUB_FRACTION = 0.2

# =============================================================================
# ATLAS
# =============================================================================

# Categorical atlas columns used for nominal assortativity, in order.
ATLAS_CATEGORICAL_COLUMNS = [
    "class",
    "network",
    "area",
    "gyrus",
    "Yeo_7network",
    "Yeo_17network",
]

# Columns every atlas table must provide.
ATLAS_REQUIRED_COLUMNS = ["name", "x", "y", "z", "lobe", "hemi"]

# Columns that can drive the colorizer through an atlas lookup.
ATLAS_COLOR_COLUMNS = ["lobe"] + ATLAS_CATEGORICAL_COLUMNS

# =============================================================================
# COLORS
# =============================================================================

NEUTRAL_VERTEX_COLOR = "#bebebe"   # R "gray"
NEUTRAL_EDGE_COLOR = "#7f7f7f"     # R "gray50"

# Qualitative matplotlib colormaps concatenated into the group palette.
PALETTE_CMAPS = ("tab20", "tab20b", "tab20c")


# =============================================================================
# RUN CONFIGURATION
# =============================================================================

@dataclass
class AttributeConfig:
    """
    Options for one ``set_brain_graph_attr`` run.

    Attributes
    ----------
    xfm_type : str
        Strength -> cost transform for distance-based measures.
    clust_method : str
        Requested community-detection method.
    use_parallel : bool
        Dispatch local efficiency and vulnerability through joblib.
    n_jobs : int
        joblib worker count (-1 = all cores).
    seed : int or None
        Seed for the stochastic community algorithms.
    hub_threshold : int
        Minimum hubness for a vertex to count as a hub.
    hub_fraction : float
        Top/bottom fraction used by each hubness criterion.
    atlas_columns : list of str
        Candidate categorical atlas columns for nominal assortativity.
    """
    xfm_type: str = DEFAULT_XFM_TYPE
    clust_method: str = DEFAULT_CLUST_METHOD
    use_parallel: bool = True
    n_jobs: int = -1
    seed: Optional[int] = RANDOM_SEED
    hub_threshold: int = HUB_THRESHOLD
    hub_fraction: float = HUB_FRACTION
    atlas_columns: List[str] = field(
        default_factory=lambda: list(ATLAS_CATEGORICAL_COLUMNS)
    )

    @classmethod
    def from_dict(cls, options: Dict) -> "AttributeConfig":
        """Build a config from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in options.items() if k in known})
