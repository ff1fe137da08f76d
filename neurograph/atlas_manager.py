# -*- coding: utf-8 -*-
"""
neurograph.atlas_manager
========================

Brain atlas side tables: region name -> categorical metadata and
3D coordinates.

An atlas is a pandas DataFrame with one row per region and at least the
columns ``name, x, y, z, lobe, hemi``.  Optional categorical columns
(``class, network, area, gyrus, Yeo_7network, Yeo_17network``) are
discovered through ``Atlas.categorical_columns`` rather than assumed.

Graphs refer to their atlas through the graph attribute ``atlas``, holding
either an ``Atlas`` or the name of one registered with an ``AtlasManager``.

Usage
-----
    from neurograph.atlas_manager import Atlas, default_manager

    atlas = Atlas.from_csv("dk.csv", name="dk")
    default_manager.register(atlas)
    g["atlas"] = "dk"
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import igraph as ig
import numpy as np
import pandas as pd

from . import config
from .exceptions import AtlasLookupError, InvalidArgumentError, InvalidInputError

logger = logging.getLogger(__name__)


class Atlas:
    """
    A single brain parcellation.

    Parameters
    ----------
    name : str
        Atlas identifier (e.g. 'dk', 'aal90', 'schaefer_100').
    table : pd.DataFrame
        One row per region; must contain ``config.ATLAS_REQUIRED_COLUMNS``.
    """

    def __init__(self, name: str, table: pd.DataFrame):
        missing = [c for c in config.ATLAS_REQUIRED_COLUMNS
                   if c not in table.columns]
        if missing:
            raise InvalidArgumentError(
                f"Atlas '{name}' is missing columns: {missing}"
            )
        if table["name"].duplicated().any():
            raise InvalidArgumentError(
                f"Atlas '{name}' has duplicated region names."
            )
        self.name = name
        self.table = table.reset_index(drop=True)
        self._index = {n: i for i, n in enumerate(self.table["name"])}

    @classmethod
    def from_csv(cls, path: Union[str, Path], name: Optional[str] = None,
                 **read_kwargs) -> "Atlas":
        """Load an atlas table from a CSV file (name defaults to the stem)."""
        path = Path(path)
        table = pd.read_csv(path, **read_kwargs)
        return cls(name or path.stem, table)

    def __len__(self) -> int:
        return len(self.table)

    def __contains__(self, region: str) -> bool:
        return region in self._index

    def __repr__(self) -> str:
        return f"Atlas(name={self.name!r}, n_regions={len(self)})"

    # -----------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------
    def lookup(self, region: str) -> Optional[Dict]:
        """Metadata row for ``region`` as a dict, or None if absent."""
        i = self._index.get(region)
        if i is None:
            return None
        return self.table.iloc[i].to_dict()

    def coordinates(self, names: Sequence[str]) -> np.ndarray:
        """
        (N, 3) array of x, y, z for ``names``; NaN rows for unknown regions.
        """
        coords = np.full((len(names), 3), np.nan)
        xyz = self.table[["x", "y", "z"]].to_numpy(dtype=float)
        for k, n in enumerate(names):
            i = self._index.get(n)
            if i is not None:
                coords[k] = xyz[i]
        return coords

    def column(self, column: str, names: Sequence[str]) -> List:
        """Raw values of ``column`` for ``names`` (None for unknown regions)."""
        values = self.table[column].tolist()
        return [values[self._index[n]] if n in self._index else None
                for n in names]

    def categorical_columns(
        self, candidates: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """
        Capability query: which candidate categorical columns this atlas
        can supply, preserving the candidates' order.
        """
        if candidates is None:
            candidates = config.ATLAS_CATEGORICAL_COLUMNS
        return [c for c in candidates if c in self.table.columns]

    def membership(self, column: str, names: Sequence[str]) -> np.ndarray:
        """
        Integer codes (1..K, sorted category order) of ``column`` for
        ``names``, in the order of ``names``.  Unknown regions get 0.
        """
        if column not in self.table.columns:
            raise InvalidArgumentError(
                f"Atlas '{self.name}' has no column '{column}'."
            )
        categories = sorted(self.table[column].dropna().astype(str).unique())
        codes = {c: k + 1 for k, c in enumerate(categories)}
        values = self.column(column, names)
        return np.array(
            [codes.get(str(v), 0) if v is not None and not pd.isna(v) else 0
             for v in values],
            dtype=int,
        )


class AtlasManager:
    """
    Registry of atlases addressable by name.

    Parameters
    ----------
    atlases : iterable of Atlas, optional
        Atlases to register up front.
    """

    def __init__(self, atlases: Optional[Iterable[Atlas]] = None):
        self._atlases: Dict[str, Atlas] = {}
        for atlas in atlases or []:
            self.register(atlas)

    @property
    def available_atlases(self) -> List[str]:
        return sorted(self._atlases)

    def register(self, atlas: Atlas):
        if atlas.name in self._atlases:
            logger.debug(f"Replacing registered atlas '{atlas.name}'")
        self._atlases[atlas.name] = atlas

    def load_csv(self, path: Union[str, Path], name: Optional[str] = None,
                 **read_kwargs) -> Atlas:
        """Load an atlas from CSV and register it."""
        atlas = Atlas.from_csv(path, name=name, **read_kwargs)
        self.register(atlas)
        return atlas

    def get(self, name: str) -> Atlas:
        try:
            return self._atlases[name]
        except KeyError:
            raise AtlasLookupError(
                f"Atlas '{name}' is not registered.  "
                f"Available: {self.available_atlases}"
            ) from None

    def get_atlas_size(self, name: str) -> int:
        """Number of regions of a registered atlas."""
        return len(self.get(name))

    def resolve(self, g: ig.Graph) -> Optional[Atlas]:
        """
        Atlas attached to ``g`` (graph attribute ``atlas``), or None.
        """
        if "atlas" not in g.attributes() or g["atlas"] is None:
            return None
        ref = g["atlas"]
        atlas = ref if isinstance(ref, Atlas) else self.get(ref)
        if "name" not in g.vs.attributes():
            raise InvalidInputError(
                "Graph has an atlas but no 'name' vertex attribute."
            )
        return atlas


default_manager = AtlasManager()
