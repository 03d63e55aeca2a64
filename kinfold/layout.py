"""Collapsible, bottom-up tree layout.

Every node carries an explicit expansion value: ``Expanded(children)``,
``Collapsed(hidden_children)`` or ``Leaf``. Toggling moves the same child
tuple between the first two, so collapsing and re-expanding never rebuilds
relationships; only positions are recomputed.

Positions are packed bottom-up over the *visible* tree. Leaves take the next
slot at a running horizontal cursor; a parent sits over the midpoint of its
children's span, and a parent wider than that span pushes its children apart
instead of overlapping its neighbours. ``y`` is ``depth * level_height``.

Packing always happens in that vertical frame (``x`` along the breadth of
the tree, ``y`` along its depth). Render output projects it for the
configured orientation: ``horizontal`` swaps the axes, ``radial`` maps the
breadth onto an angle and the depth onto a radius around the root.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .config import DEFAULT_CONFIG, LayoutConfig, Orientation
from .hierarchy import ResolvedNode
from .schemas import Member, RenderEdge, RenderFrame, RenderNode, Viewport
from .utils import logger


class ExpansionState(str, Enum):
    EXPANDED = "expanded"
    COLLAPSED = "collapsed"
    LEAF = "leaf"


@dataclass(frozen=True)
class Expanded:
    children: Tuple["LayoutNode", ...]


@dataclass(frozen=True)
class Collapsed:
    hidden_children: Tuple["LayoutNode", ...]


@dataclass(frozen=True)
class Leaf:
    pass


LEAF = Leaf()
Expansion = Union[Expanded, Collapsed, Leaf]


@dataclass(eq=False)
class LayoutNode:
    resolved: ResolvedNode
    parent: Optional["LayoutNode"] = None
    expansion: Expansion = LEAF
    x: float = 0.0
    y: float = 0.0
    x0: Optional[float] = None
    y0: Optional[float] = None
    left: float = 0.0
    right: float = 0.0
    placed: bool = False

    @property
    def id(self) -> str:
        return self.resolved.id

    @property
    def member(self) -> Member:
        return self.resolved.member

    @property
    def depth(self) -> int:
        return self.resolved.depth

    @property
    def spouse(self) -> Optional[Member]:
        if self.resolved.attached_spouse is None:
            return None
        return self.resolved.attached_spouse.member

    @property
    def has_spouse(self) -> bool:
        return self.resolved.attached_spouse is not None

    @property
    def state(self) -> ExpansionState:
        if isinstance(self.expansion, Expanded):
            return ExpansionState.EXPANDED
        if isinstance(self.expansion, Collapsed):
            return ExpansionState.COLLAPSED
        return ExpansionState.LEAF

    @property
    def stored_children(self) -> Tuple["LayoutNode", ...]:
        if isinstance(self.expansion, Expanded):
            return self.expansion.children
        if isinstance(self.expansion, Collapsed):
            return self.expansion.hidden_children
        return ()

    @property
    def visible_children(self) -> Tuple["LayoutNode", ...]:
        if isinstance(self.expansion, Expanded):
            return self.expansion.children
        return ()

    def expand(self) -> bool:
        if isinstance(self.expansion, Collapsed):
            self.expansion = Expanded(self.expansion.hidden_children)
            return True
        return False

    def collapse(self) -> bool:
        if isinstance(self.expansion, Expanded):
            self.expansion = Collapsed(self.expansion.children)
            return True
        return False

    def toggle(self) -> bool:
        if isinstance(self.expansion, Leaf):
            return False
        if isinstance(self.expansion, Expanded):
            return self.collapse()
        return self.expand()

    def member_x(self, config: LayoutConfig) -> float:
        """Center of this member's own box (left half of a partnership)."""
        if self.has_spouse:
            return self.x - config.spouse_offset / 2
        return self.x

    def spouse_x(self, config: LayoutConfig) -> float:
        return self.x + config.spouse_offset / 2


class LayoutEngine:
    """Expansion state plus positions for one resolved tree."""

    def __init__(self, root: Optional[ResolvedNode], config: LayoutConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.orientation = Orientation(config.orientation)
        self._nodes: Dict[str, LayoutNode] = {}
        self._span: Tuple[float, float] = (0.0, 0.0)
        self.root: Optional[LayoutNode] = self._wrap(root, None) if root is not None else None
        self.reset()

    def _wrap(self, resolved: ResolvedNode, parent: Optional[LayoutNode]) -> LayoutNode:
        node = LayoutNode(resolved=resolved, parent=parent)
        self._nodes[node.id] = node
        if resolved.children:
            children = tuple(self._wrap(child, node) for child in resolved.children)
            node.expansion = Collapsed(children)
        return node

    # -- state machine -------------------------------------------------

    def node(self, node_id: str) -> Optional[LayoutNode]:
        return self._nodes.get(node_id)

    def nodes(self) -> List[LayoutNode]:
        return list(self._nodes.values())

    def reset(self) -> None:
        """Initial state: root expanded, everything else collapsed."""

        for node in self._nodes.values():
            node.collapse()
        if self.root is not None:
            self.root.expand()

    def toggle(self, node_id: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("Toggle for unknown node %s ignored", node_id)
            return False
        return node.toggle()

    def collapse_all(self) -> None:
        self.reset()

    def set_orientation(self, orientation: str) -> None:
        """Switch orientation; expansion and previous positions start over."""

        self.orientation = Orientation(orientation)
        for node in self._nodes.values():
            node.placed = False
            node.x0 = node.y0 = None
        self.reset()

    def next_collapsed_depth(self) -> Optional[int]:
        depths = [node.depth for node in self.visible_nodes() if node.state is ExpansionState.COLLAPSED]
        return min(depths) if depths else None

    def expand_level(self, depth: int) -> int:
        """Expand every visible collapsed node at ``depth``."""

        expanded = 0
        for node in self.visible_nodes():
            if node.depth == depth and node.expand():
                expanded += 1
        return expanded

    def visible_nodes(self) -> List[LayoutNode]:
        return list(self._iter_visible())

    def _iter_visible(self) -> Iterator[LayoutNode]:
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.visible_children))

    # -- positioning ---------------------------------------------------

    def layout(self) -> None:
        """Recompute positions of the visible tree in place.

        ``x0``/``y0`` keep each node's rendered position from the previous
        pass, or ``None`` when the node was not on screen then.
        """

        if self.root is None:
            return
        for node in self._nodes.values():
            if node.placed:
                node.x0, node.y0 = self.project(node.x, node.y)
            else:
                node.x0 = node.y0 = None
            node.placed = False
        self._place(self.root, 0.0)
        visible = self.visible_nodes()
        for node in visible:
            node.placed = True
        self._span = (self.root.left, self.root.right + self.config.sibling_gap)
        logger.debug("Layout pass placed %d visible nodes", len(visible))

    def _place(self, node: LayoutNode, cursor: float) -> None:
        config = self.config
        slot = config.slot_width(node.has_spouse)
        node.y = node.depth * config.level_height
        children = node.visible_children
        if not children:
            node.left, node.right = cursor, cursor + slot
            node.x = cursor + slot / 2
            return

        position = cursor
        for child in children:
            self._place(child, position)
            position = child.right + config.sibling_gap
        span_left, span_right = children[0].left, children[-1].right
        width = span_right - span_left
        if slot > width:
            delta = (slot - width) / 2
            for child in children:
                self._shift(child, delta)
            span_left, span_right = cursor, cursor + slot
        node.left, node.right = span_left, span_right
        node.x = (span_left + span_right) / 2

    def _shift(self, node: LayoutNode, delta: float) -> None:
        node.x += delta
        node.left += delta
        node.right += delta
        for child in node.visible_children:
            self._shift(child, delta)

    def project(self, x: float, y: float) -> Tuple[float, float]:
        """Map a packed ``(breadth, depth)`` point to render coordinates."""

        if self.orientation is Orientation.HORIZONTAL:
            return (y, x)
        if self.orientation is Orientation.RADIAL:
            if y <= 0:
                # The root partnership sits on a horizontal line through the center.
                return (x - (self.root.x if self.root is not None else 0.0), 0.0)
            left, right = self._span
            extent = (right - left) or 1.0
            angle = 2 * math.pi * (x - left) / extent
            return (y * math.sin(angle), -y * math.cos(angle))
        return (x, y)

    def _box_centers(self) -> Iterator[Tuple[float, float]]:
        config = self.config
        for node in self._iter_visible():
            yield self.project(node.member_x(config), node.y)
            if node.has_spouse:
                yield self.project(node.spouse_x(config), node.y)

    def bounds(self) -> Tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` of the rendered node boxes."""

        centers = list(self._box_centers())
        if not centers:
            return (0.0, 0.0, 0.0, 0.0)
        half_w = self.config.node_width / 2
        half_h = self.config.node_height / 2
        return (
            min(x for x, _ in centers) - half_w,
            min(y for _, y in centers) - half_h,
            max(x for x, _ in centers) + half_w,
            max(y for _, y in centers) + half_h,
        )

    def viewport(self) -> Viewport:
        """Center the root partnership and fit the visible box, within zoom limits.

        Vertical trees center the root horizontally, horizontal trees center
        it vertically and radial trees on both axes. The other axis is fitted
        from its top or left edge.
        """

        if self.root is None:
            return Viewport()
        config = self.config
        min_x, min_y, max_x, max_y = self.bounds()
        pad = config.viewport_padding
        anchor_x, anchor_y = self.project(self.root.x, self.root.y)
        center_x = self.orientation is not Orientation.HORIZONTAL
        center_y = self.orientation is not Orientation.VERTICAL
        if center_x:
            width = 2 * (max(anchor_x - min_x, max_x - anchor_x) + pad)
        else:
            width = (max_x - min_x) + 2 * pad
        if center_y:
            height = 2 * (max(anchor_y - min_y, max_y - anchor_y) + pad)
        else:
            height = (max_y - min_y) + 2 * pad
        scale = min(config.viewport_width / width, config.viewport_height / height)
        scale = max(config.min_zoom, min(config.max_zoom, scale))
        return Viewport(
            translate_x=config.viewport_width / 2 - anchor_x * scale if center_x else (pad - min_x) * scale,
            translate_y=config.viewport_height / 2 - anchor_y * scale if center_y else (pad - min_y) * scale,
            scale=scale,
        )

    # -- render output -------------------------------------------------

    def render_nodes(self) -> List[RenderNode]:
        config = self.config
        out: List[RenderNode] = []
        for node in self._iter_visible():
            member = node.member
            x, y = self.project(node.x, node.y)
            out.append(
                RenderNode(
                    id=node.id,
                    x=x,
                    y=y,
                    label=member.label,
                    is_deceased=member.is_deceased,
                    has_attached_spouse=node.has_spouse,
                    expansion_state=node.state.value,
                    x0=node.x0,
                    y0=node.y0,
                )
            )
            spouse = node.spouse
            if spouse is not None:
                spouse_x, spouse_y = self.project(node.spouse_x(config), node.y)
                out.append(
                    RenderNode(
                        id=spouse.id,
                        x=spouse_x,
                        y=spouse_y,
                        label=spouse.label,
                        is_deceased=spouse.is_deceased,
                        has_attached_spouse=False,
                        expansion_state=ExpansionState.LEAF.value,
                        attached_to=node.id,
                    )
                )
        return out

    def _spouse_points(self, node: LayoutNode) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        config = self.config
        member_x, spouse_x = node.member_x(config), node.spouse_x(config)
        if self.orientation is Orientation.VERTICAL:
            half_w = config.node_width / 2
            return (member_x + half_w, node.y), (spouse_x - half_w, node.y)
        if self.orientation is Orientation.HORIZONTAL:
            half_h = config.node_height / 2
            return (node.y, member_x + half_h), (node.y, spouse_x - half_h)
        return self.project(member_x, node.y), self.project(spouse_x, node.y)

    def _parent_points(
        self, node: LayoutNode, child: LayoutNode
    ) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        config = self.config
        child_x = child.member_x(config)
        if self.orientation is Orientation.VERTICAL:
            half_h = config.node_height / 2
            return (node.x, node.y + half_h), (child_x, child.y - half_h)
        if self.orientation is Orientation.HORIZONTAL:
            half_w = config.node_width / 2
            return (node.y + half_w, node.x), (child.y - half_w, child_x)
        return self.project(node.x, node.y), self.project(child_x, child.y)

    def render_edges(self) -> List[RenderEdge]:
        edges: List[RenderEdge] = []
        for node in self._iter_visible():
            spouse = node.spouse
            if spouse is not None:
                (sx, sy), (tx, ty) = self._spouse_points(node)
                edges.append(
                    RenderEdge(
                        from_id=node.id,
                        to_id=spouse.id,
                        source_x=sx,
                        source_y=sy,
                        target_x=tx,
                        target_y=ty,
                        kind="spouse",
                    )
                )
            for child in node.visible_children:
                (sx, sy), (tx, ty) = self._parent_points(node, child)
                edges.append(
                    RenderEdge(
                        from_id=node.id,
                        to_id=child.id,
                        source_x=sx,
                        source_y=sy,
                        target_x=tx,
                        target_y=ty,
                    )
                )
        return edges

    def frame(self, origin: Optional[LayoutNode] = None, sequence: int = 0) -> RenderFrame:
        orientation = self.orientation.value
        if self.root is None:
            return RenderFrame(placeholder="No founder found", sequence=sequence, orientation=orientation)
        origin_point = None
        if origin is not None:
            if origin.x0 is not None and origin.y0 is not None:
                origin_x, origin_y = origin.x0, origin.y0
            else:
                origin_x, origin_y = self.project(origin.x, origin.y)
            origin_point = {"x": origin_x, "y": origin_y}
        return RenderFrame(
            nodes=self.render_nodes(),
            edges=self.render_edges(),
            viewport=self.viewport(),
            origin=origin_point,
            sequence=sequence,
            orientation=orientation,
        )


__all__ = [
    "ExpansionState",
    "Expanded",
    "Collapsed",
    "Leaf",
    "LEAF",
    "Expansion",
    "LayoutNode",
    "LayoutEngine",
]
