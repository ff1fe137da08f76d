"""Group colorizer."""

import igraph as ig
import pytest

from neurograph.atlas_manager import AtlasManager
from neurograph.config import NEUTRAL_EDGE_COLOR, NEUTRAL_VERTEX_COLOR
from neurograph.exceptions import InvalidArgumentError
from neurograph.viz.colors import GROUP_PALETTE, group_colors, set_graph_colors


@pytest.fixture
def ring5():
    return ig.Graph.Ring(5)


def test_palette_has_no_grays():
    assert len(GROUP_PALETTE) == len(set(GROUP_PALETTE))
    assert NEUTRAL_VERTEX_COLOR not in GROUP_PALETTE
    assert NEUTRAL_EDGE_COLOR not in GROUP_PALETTE
    for color in GROUP_PALETTE:
        assert not (color[1:3] == color[3:5] == color[5:7])


def test_vertex_and_edge_rules(ring5):
    # Ring edges: 0-1, 1-2, 2-3, 3-4, 4-0.
    vcol, ecol = group_colors(ring5, [7, 7, 9, 12, 12], "color_comm")
    assert vcol == [GROUP_PALETTE[0], GROUP_PALETTE[0], NEUTRAL_VERTEX_COLOR,
                    GROUP_PALETTE[2], GROUP_PALETTE[2]]
    assert ecol == [GROUP_PALETTE[0], NEUTRAL_EDGE_COLOR, NEUTRAL_EDGE_COLOR,
                    GROUP_PALETTE[2], NEUTRAL_EDGE_COLOR]


def test_multi_member_groups_get_distinct_colors():
    k = len(GROUP_PALETTE)
    g = ig.Graph(2 * k)
    memb = [i // 2 + 1 for i in range(2 * k)]
    vcol, _ = group_colors(g, memb, "color_comm")
    assert len(set(vcol)) == k
    assert NEUTRAL_VERTEX_COLOR not in vcol


def test_same_group_different_groups_edge():
    g = ig.Graph(n=4, edges=[(0, 1), (2, 3), (1, 2)])
    _, ecol = group_colors(g, [1, 1, 2, 2], "color_comp")
    assert ecol[0] == GROUP_PALETTE[0]
    assert ecol[1] == GROUP_PALETTE[1]
    assert ecol[2] == NEUTRAL_EDGE_COLOR


def test_zero_edges_give_empty_edge_colors():
    vcol, ecol = group_colors(ig.Graph(3), [1, 1, 2], "color_comm")
    assert ecol == []
    assert len(vcol) == 3
    out = set_graph_colors(ig.Graph(3), "color_comm", [1, 1, 2])
    assert out.vs["color_comm"] == vcol


def test_length_mismatch_raises(ring5):
    with pytest.raises(InvalidArgumentError):
        group_colors(ring5, [1, 2, 3], "color_comm")


def test_set_graph_colors_returns_copy(ring5):
    out = set_graph_colors(ring5, "color_comm", [1, 1, 1, 2, 2])
    assert "color_comm" in out.vs.attributes()
    assert "color_comm" in out.es.attributes()
    assert "color_comm" not in ring5.vs.attributes()


def test_atlas_column_looked_up_by_name(weighted_graph, atlas):
    # Membership argument is ignored for atlas columns; lobe order is
    # Frontal, Frontal, Insula, Frontal, Frontal.
    vcol, _ = group_colors(weighted_graph, None, "color_lobe", atlas=atlas)
    assert vcol[2] == NEUTRAL_VERTEX_COLOR
    assert vcol[0] == vcol[1] == vcol[3] == vcol[4] == GROUP_PALETTE[0]

    # Reversed vertex order keeps per-vertex lookups.
    names = weighted_graph.vs["name"][::-1]
    g = ig.Graph(5)
    g.vs["name"] = names
    vcol_rev, _ = group_colors(g, None, "color_lobe", atlas=atlas)
    assert vcol_rev == vcol[::-1]


def test_atlas_resolved_from_graph_attribute(weighted_graph, atlas):
    manager = AtlasManager([atlas])
    g = weighted_graph.copy()
    g["atlas"] = atlas
    vcol, _ = group_colors(g, None, "color_network")
    # network: DMN, FPN, SAL, DMN, FPN
    assert vcol[2] == NEUTRAL_VERTEX_COLOR
    assert vcol[0] == vcol[3] != vcol[1] == vcol[4]
    assert manager.get("toy") is atlas
