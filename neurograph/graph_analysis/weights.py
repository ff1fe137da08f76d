# -*- coding: utf-8 -*-
"""
neurograph.graph_analysis.weights
=================================

Reversible strength <-> cost transforms of edge weights.

Brain connectivity weights encode connection *strength* (high = close),
whereas shortest-path algorithms read weights as *distance* (low = close).
Every distance-based measure therefore runs on transformed weights
(Rubinov & Sporns, 2010), and the original strengths must survive the call.

Transforms
----------
- ``1/w``                 reciprocal (default, self-inverse)
- ``-log(w)``             negative natural log; inverse ``exp(-w)``
- ``1-w``                 complement (self-inverse)
- ``-log10(w/max(w))``    negative log10 of max-normalized weights
- ``-log10(w/max(w)+1)``  as above, adding 1 before the log

The normalized transforms store ``max(w)`` as the graph attribute
``max_weight`` *before* transforming; inversion reuses that value rather
than recomputing it from the cost weights.

References
----------
- Rubinov & Sporns (2010). NeuroImage 52:1059-1069.
- Fornito, Zalesky & Bullmore (2016). Fundamentals of Brain Network
  Analysis, ch. 7.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import igraph as ig
import numpy as np

from .. import config
from ..exceptions import InvalidArgumentError, InvalidInputError


# =============================================================================
# ARRAY-LEVEL TRANSFORMS
# =============================================================================

def transform_weights(
    weights: np.ndarray,
    xfm_type: str = config.DEFAULT_XFM_TYPE,
    invert: bool = False,
    max_weight: Optional[float] = None,
) -> np.ndarray:
    """
    Map strength weights to cost weights (or back, with ``invert=True``).

    Parameters
    ----------
    weights : array-like
        Edge weights; strictly positive in the strength domain.
    xfm_type : str
        One of ``config.XFM_TYPES``.
    invert : bool
        Apply the inverse (cost -> strength) mapping.
    max_weight : float, optional
        Normalization constant for the ``-log10`` transforms.  Computed from
        ``weights`` on the forward pass when omitted; required on inversion.

    Returns
    -------
    np.ndarray
    """
    _check_xfm_type(xfm_type)
    w = np.asarray(weights, dtype=float)

    if xfm_type == "1/w":
        return 1.0 / w
    if xfm_type == "1-w":
        return 1.0 - w
    if xfm_type == "-log(w)":
        return np.exp(-w) if invert else -np.log(w)

    if max_weight is None:
        if invert:
            raise InvalidInputError(
                f"Inverting '{xfm_type}' requires the stored max_weight."
            )
        max_weight = float(np.max(w))

    if xfm_type == "-log10(w/max(w))":
        if invert:
            return max_weight / 10.0 ** w
        return -np.log10(w / max_weight)

    # "-log10(w/max(w)+1)"
    if invert:
        return max_weight * (1.0 / 10.0 ** w - 1.0)
    return -np.log10(w / max_weight + 1.0)


def _check_xfm_type(xfm_type: str):
    if xfm_type not in config.XFM_TYPES:
        raise InvalidArgumentError(
            f"Unknown weight transform: {xfm_type!r}.  "
            f"Choose from: {', '.join(config.XFM_TYPES)}"
        )


def _check_weighted(g: ig.Graph):
    if not isinstance(g, ig.Graph):
        raise InvalidInputError(
            f"Expected an igraph.Graph, got {type(g).__name__}."
        )
    if "weight" not in g.es.attributes():
        raise InvalidInputError(
            "Graph has no 'weight' edge attribute; cannot transform weights."
        )


# =============================================================================
# GRAPH-LEVEL TRANSFORMS
# =============================================================================

def _xfm_in_place(g: ig.Graph, xfm_type: str, invert: bool):
    w = np.asarray(g.es["weight"], dtype=float)
    max_weight = None
    if xfm_type in config.XFM_NORMALIZED:
        if invert:
            if "max_weight" not in g.attributes():
                raise InvalidInputError(
                    f"Graph has no 'max_weight'; it was not transformed "
                    f"with '{xfm_type}'."
                )
            max_weight = g["max_weight"]
        elif g.ecount() > 0:
            max_weight = float(np.max(w))
            g["max_weight"] = max_weight
    if g.ecount() > 0:
        g.es["weight"] = transform_weights(
            w, xfm_type, invert=invert, max_weight=max_weight
        ).tolist()
    g["xfm_type"] = xfm_type


def xfm_weights(
    g: ig.Graph,
    xfm_type: str = config.DEFAULT_XFM_TYPE,
    invert: bool = False,
) -> ig.Graph:
    """
    Transform the edge weights of a graph.

    Parameters
    ----------
    g : igraph.Graph
        Weighted graph (``weight`` edge attribute).
    xfm_type : str
        One of ``config.XFM_TYPES``.
    invert : bool
        Map cost weights back to strengths.

    Returns
    -------
    igraph.Graph
        A copy of ``g`` with transformed weights and the graph attribute
        ``xfm_type`` (plus ``max_weight`` for the normalized transforms).

    Raises
    ------
    InvalidInputError
        If ``g`` is not weighted, or ``max_weight`` is missing on inversion.
    InvalidArgumentError
        If ``xfm_type`` is unknown.
    """
    _check_weighted(g)
    _check_xfm_type(xfm_type)
    out = g.copy()
    _xfm_in_place(out, xfm_type, invert)
    return out


@contextmanager
def transformed_weights(
    g: ig.Graph,
    xfm_type: str = config.DEFAULT_XFM_TYPE,
) -> Iterator[ig.Graph]:
    """
    Temporarily put ``g``'s weights in the cost domain.

    The weights are transformed in place for the duration of the ``with``
    block.  On exit, normal or not, the original weight list is written back
    verbatim and the bookkeeping graph attributes are removed, so the
    restored strengths are bit-identical to the input.

    Examples
    --------
    >>> with transformed_weights(g, "1/w") as cost_graph:
    ...     D = cost_graph.distances(weights="weight")
    """
    _check_weighted(g)
    _check_xfm_type(xfm_type)
    original = list(g.es["weight"])
    had_attrs = {k: g[k] for k in ("xfm_type", "max_weight")
                 if k in g.attributes()}
    try:
        _xfm_in_place(g, xfm_type, invert=False)
        yield g
    finally:
        g.es["weight"] = original
        for key in ("xfm_type", "max_weight"):
            if key in had_attrs:
                g[key] = had_attrs[key]
            elif key in g.attributes():
                del g[key]
