# -*- coding: utf-8 -*-
"""
neurograph.exceptions
=====================

Error and warning taxonomy shared by every neurograph module.

Fatal errors abort a single-graph call; callers processing a batch catch
``NeurographError`` at the per-graph boundary (see
``neurograph.graph_analysis.attributes.set_brain_graph_attr_batch``).
Degradations that the pipeline recovers from are reported through
``warnings.warn`` with ``DegradedComputationWarning``.
"""


class NeurographError(Exception):
    """Base class for all neurograph errors."""


class InvalidArgumentError(NeurographError, ValueError):
    """Unsupported method name, bad option value or malformed vector length."""


class InvalidInputError(InvalidArgumentError):
    """Input graph of the wrong class, or missing a required attribute."""


class AtlasLookupError(NeurographError, KeyError):
    """Atlas name not registered with the atlas manager."""


class DegradedComputationWarning(UserWarning):
    """A metric was skipped or a method substituted; the pipeline continued."""
