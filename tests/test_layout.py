import itertools
import math

import pytest

from kinfold.config import LayoutConfig
from kinfold.hierarchy import build_hierarchy
from kinfold.layout import Collapsed, Expanded, ExpansionState, LayoutEngine
from kinfold.schemas import Member


def small_tree():
    return build_hierarchy(
        [
            Member(id="F", generation=1),
            Member(id="C1", generation=2, parent_id="F", spouse_id="S"),
            Member(id="S", generation=2),
            Member(id="C2", generation=2, parent_id="F"),
            Member(id="G1", generation=3, parent_id="C1"),
            Member(id="G2", generation=3, parent_id="C1"),
        ]
    )


def wide_tree():
    members = [Member(id="F", generation=1)]
    for i in range(3):
        members.append(Member(id=f"C{i}", generation=2, parent_id="F", spouse_id=f"S{i}" if i != 1 else None))
        members.append(Member(id=f"S{i}", generation=2))
        for j in range(2):
            members.append(Member(id=f"G{i}{j}", generation=3, parent_id=f"C{i}"))
            if i == 0:
                members.append(Member(id=f"H{j}", generation=4, parent_id=f"G{i}{j}", spouse_id=f"HS{j}"))
                members.append(Member(id=f"HS{j}", generation=4))
    return build_hierarchy(members)


def test_initial_state_expands_only_the_root():
    engine = LayoutEngine(small_tree())
    assert engine.node("F").state is ExpansionState.EXPANDED
    assert engine.node("C1").state is ExpansionState.COLLAPSED
    assert engine.node("C2").state is ExpansionState.LEAF
    assert [n.id for n in engine.visible_nodes()] == ["F", "C1", "C2"]


def test_collapsed_children_lay_out_as_their_own_slot():
    engine = LayoutEngine(small_tree())
    engine.layout()
    c1, c2, root = engine.node("C1"), engine.node("C2"), engine.node("F")
    assert (c1.left, c1.right, c1.x) == (0.0, 215.0, 107.5)
    assert (c2.left, c2.right, c2.x) == (255.0, 355.0, 305.0)
    assert root.x == 177.5
    assert (root.y, c1.y) == (0.0, 120.0)


def test_expanding_repacks_siblings():
    engine = LayoutEngine(small_tree())
    engine.layout()
    assert engine.toggle("C1")
    engine.layout()
    assert engine.node("G1").x == 50.0
    assert engine.node("G2").x == 190.0
    assert engine.node("G1").y == 240.0
    assert engine.node("C1").x == 120.0
    assert engine.node("C2").x == 330.0
    assert engine.node("F").x == 190.0
    assert engine.node("C2").x0 == 305.0


def test_wide_parent_keeps_its_own_footprint():
    root = build_hierarchy(
        [
            Member(id="F", generation=1),
            Member(id="P", generation=2, parent_id="F", spouse_id="S"),
            Member(id="S", generation=2),
            Member(id="K", generation=3, parent_id="P"),
        ]
    )
    engine = LayoutEngine(root)
    engine.toggle("P")
    engine.layout()
    parent, child = engine.node("P"), engine.node("K")
    assert (parent.left, parent.right) == (0.0, 215.0)
    assert child.x == parent.x == 107.5


def test_leaf_and_unknown_toggles_are_noops():
    engine = LayoutEngine(small_tree())
    assert not engine.toggle("C2")
    assert not engine.toggle("missing")
    assert engine.node("C2").state is ExpansionState.LEAF


def test_collapse_then_expand_restores_the_same_children():
    engine = LayoutEngine(small_tree())
    node = engine.node("F")
    before = node.visible_children
    assert isinstance(node.expansion, Expanded)
    engine.toggle("F")
    assert isinstance(node.expansion, Collapsed)
    assert node.visible_children == ()
    assert node.expansion.hidden_children is before
    engine.toggle("F")
    assert node.visible_children is before


def _assert_no_overlap(engine, gap):
    for node in engine.visible_nodes():
        children = node.visible_children
        for left, right in zip(children, children[1:]):
            assert left.right + gap <= right.left + 1e-9
        if children:
            assert children[0].left - 1e-9 <= node.x <= children[-1].right + 1e-9
        assert node.left - 1e-9 <= node.x <= node.right + 1e-9


def test_sibling_spans_never_overlap_in_any_expansion_state():
    engine = LayoutEngine(wide_tree())
    toggles = [n for n in engine.nodes() if n.state is not ExpansionState.LEAF]
    assert len(toggles) == 6
    for combo in itertools.product([False, True], repeat=len(toggles)):
        for node, expanded in zip(toggles, combo):
            if expanded:
                node.expand()
            else:
                node.collapse()
        engine.layout()
        _assert_no_overlap(engine, engine.config.sibling_gap)


def test_expand_level_and_collapse_all():
    engine = LayoutEngine(wide_tree())
    assert engine.next_collapsed_depth() == 1
    assert engine.expand_level(1) == 3
    assert engine.next_collapsed_depth() == 2
    assert engine.expand_level(2) == 2
    assert engine.next_collapsed_depth() is None
    engine.collapse_all()
    assert [n.state for n in engine.visible_nodes()][1:] == [ExpansionState.COLLAPSED] * 3


def test_edges_target_member_boxes_and_spouse_connector_is_horizontal():
    engine = LayoutEngine(small_tree())
    engine.layout()
    frame = engine.frame()
    parent_edge = next(e for e in frame.parent_edges if e.to_id == "C1")
    assert parent_edge.source_x == 177.5
    assert parent_edge.source_y == 25.0
    assert parent_edge.target_x == 107.5 - 57.5
    assert parent_edge.target_y == 95.0
    spouse_edge = frame.spouse_edges[0]
    assert (spouse_edge.from_id, spouse_edge.to_id) == ("C1", "S")
    assert spouse_edge.source_y == spouse_edge.target_y
    assert spouse_edge.target_x - spouse_edge.source_x == pytest.approx(15.0)
    spouse = frame.node("S")
    assert spouse.attached_to == "C1"
    assert frame.node("C1").has_attached_spouse
    assert frame.node("C1").expansion_state == "collapsed"


def test_viewport_centers_root_and_clamps_zoom():
    root = small_tree()
    big = LayoutEngine(root, LayoutConfig(viewport_width=100000, viewport_height=100000))
    big.layout()
    viewport = big.viewport()
    assert viewport.scale == 3.0
    assert viewport.translate_x == pytest.approx(50000 - big.root.x * 3.0)

    tiny = LayoutEngine(root, LayoutConfig(viewport_width=10, viewport_height=10))
    tiny.layout()
    assert tiny.viewport().scale == 0.3

    normal = LayoutEngine(root)
    normal.layout()
    viewport = normal.viewport()
    assert 0.3 <= viewport.scale <= 3.0
    assert viewport.translate_x + normal.root.x * viewport.scale == pytest.approx(600.0)


def test_empty_engine_produces_placeholder_frame():
    engine = LayoutEngine(None)
    engine.layout()
    frame = engine.frame()
    assert frame.nodes == []
    assert frame.placeholder


def test_nodes_entering_the_view_have_no_previous_position():
    engine = LayoutEngine(small_tree())
    engine.layout()
    assert all(node.x0 is None and node.y0 is None for node in engine.visible_nodes())

    engine.toggle("C1")
    engine.layout()
    assert engine.node("C1").x0 == 107.5
    assert engine.node("G1").x0 is None
    assert engine.frame().node("G2").x0 is None

    engine.toggle("C1")
    engine.layout()
    engine.toggle("C1")
    engine.layout()
    assert engine.node("G1").x0 is None
    assert engine.node("C1").x0 == 107.5


def test_horizontal_orientation_swaps_axes():
    engine = LayoutEngine(small_tree(), LayoutConfig(orientation="horizontal"))
    engine.layout()
    frame = engine.frame()
    assert frame.orientation == "horizontal"
    assert (frame.node("F").x, frame.node("F").y) == (0.0, 177.5)
    assert (frame.node("C1").x, frame.node("C1").y) == (120.0, 107.5)
    assert (frame.node("S").x, frame.node("S").y) == (120.0, 165.0)

    parent_edge = next(e for e in frame.parent_edges if e.to_id == "C1")
    assert (parent_edge.source_x, parent_edge.source_y) == (50.0, 177.5)
    assert (parent_edge.target_x, parent_edge.target_y) == (70.0, 50.0)
    spouse_edge = frame.spouse_edges[0]
    assert spouse_edge.source_x == spouse_edge.target_x == 120.0
    assert (spouse_edge.source_y, spouse_edge.target_y) == (75.0, 140.0)

    viewport = frame.viewport
    assert viewport.translate_y + 177.5 * viewport.scale == pytest.approx(300.0)
    assert viewport.translate_x == pytest.approx(90.0 * viewport.scale)


def test_radial_orientation_places_depth_on_rings_around_the_root():
    engine = LayoutEngine(small_tree(), LayoutConfig(orientation="radial"))
    engine.toggle("C1")
    engine.layout()
    frame = engine.frame()
    assert (frame.node("F").x, frame.node("F").y) == (0.0, 0.0)
    for node_id, radius in (("C1", 120.0), ("S", 120.0), ("C2", 120.0), ("G1", 240.0), ("G2", 240.0)):
        node = frame.node(node_id)
        assert math.hypot(node.x, node.y) == pytest.approx(radius)
    angles = {n.id: math.atan2(n.x, -n.y) % (2 * math.pi) for n in frame.nodes if n.id != "F"}
    assert angles["C1"] < angles["S"] < angles["C2"]
    assert frame.viewport.translate_x == pytest.approx(600.0)
    assert frame.viewport.translate_y == pytest.approx(300.0)


def test_switching_orientation_resets_expansion_and_history():
    engine = LayoutEngine(small_tree())
    engine.toggle("C1")
    engine.layout()
    engine.set_orientation("radial")
    assert engine.node("C1").state is ExpansionState.COLLAPSED
    assert engine.node("F").x0 is None
    engine.layout()
    assert engine.frame().orientation == "radial"
    with pytest.raises(ValueError):
        engine.set_orientation("diagonal")
