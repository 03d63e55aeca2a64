"""Layout and tree export utilities."""

from __future__ import annotations

import json
import os
from typing import Dict, List, Optional

import networkx as nx
from networkx.drawing.nx_pydot import write_dot

from .branches import BranchGroup
from .hierarchy import ResolvedNode
from .schemas import RenderFrame
from .utils import console

EDGE_STYLES = {
    "parent": {"color": "#2F353B", "style": "solid"},
    "spouse": {"color": "#2F353B", "style": "dashed"},
}

NODE_STYLES = {
    "living": {"border": "#2F353B"},
    "deceased": {"border": "#A0A0A0", "text": "#8B8B8B"},
}


def _is_scalar(value: object) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def tree_graph(root: Optional[ResolvedNode]) -> nx.DiGraph:
    """Resolved tree as a graph with ``parent`` and ``spouse`` edges."""

    graph = nx.DiGraph()
    if root is None:
        return graph
    for node in root.walk():
        member = node.member
        graph.add_node(
            member.id,
            label=member.label,
            generation=member.generation,
            branch_id=member.branch_id,
            registry=member.registry.value,
            depth=node.depth,
            married_in=False,
        )
        spouse = node.attached_spouse
        if spouse is not None:
            graph.add_node(
                spouse.id,
                label=spouse.label,
                generation=spouse.member.generation,
                branch_id=spouse.member.branch_id,
                registry=spouse.member.registry.value,
                depth=node.depth,
                married_in=spouse.is_married_in,
            )
            graph.add_edge(member.id, spouse.id, relation="spouse")
        for child in node.children:
            graph.add_edge(member.id, child.id, relation="parent")
    return graph


def sanitize_graph_for_graphml(graph: nx.DiGraph) -> nx.DiGraph:
    """Copy of ``graph`` with GraphML-safe attributes.

    GraphML only takes scalars, and ``None`` is not a scalar there either;
    anything else is JSON-encoded and ``None`` is dropped.
    """

    def _clean(data: Dict[str, object]) -> Dict[str, object]:
        cleaned: Dict[str, object] = {}
        for key, value in data.items():
            if value is None:
                continue
            cleaned[key] = value if _is_scalar(value) else json.dumps(value, ensure_ascii=False)
        return cleaned

    safe = graph.__class__()
    for node, data in graph.nodes(data=True):
        safe.add_node(node, **_clean(data))
    for u, v, data in graph.edges(data=True):
        safe.add_edge(u, v, **_clean(data))
    return safe


def export_layout(
    frame: RenderFrame,
    root: Optional[ResolvedNode],
    out_dir: str,
    branches: Optional[List[BranchGroup]] = None,
) -> Dict[str, str]:
    os.makedirs(out_dir, exist_ok=True)
    layout_path = os.path.join(out_dir, "layout.json")
    graphml_path = os.path.join(out_dir, "tree.graphml")
    dot_path = os.path.join(out_dir, "tree.dot")
    legend_path = os.path.join(out_dir, "legend.json")

    with open(layout_path, "w", encoding="utf-8") as fh:
        json.dump(frame.dict(), fh, indent=2, ensure_ascii=False)

    graph = tree_graph(root)
    safe = sanitize_graph_for_graphml(graph)
    nx.write_graphml(safe, graphml_path)
    write_dot(safe, dot_path)
    console.log("DOT export ready", dot_path)

    with open(legend_path, "w", encoding="utf-8") as fh:
        json.dump({"edges": EDGE_STYLES, "nodes": NODE_STYLES}, fh, indent=2)

    paths = {
        "layout": layout_path,
        "graphml": graphml_path,
        "dot": dot_path,
        "legend": legend_path,
    }
    if branches is not None:
        branches_path = os.path.join(out_dir, "branches.json")
        with open(branches_path, "w", encoding="utf-8") as fh:
            json.dump([group.dict() for group in branches], fh, indent=2, ensure_ascii=False)
        paths["branches"] = branches_path
    return paths


__all__ = [
    "export_layout",
    "sanitize_graph_for_graphml",
    "tree_graph",
    "EDGE_STYLES",
    "NODE_STYLES",
]
