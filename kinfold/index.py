"""Lookup structures over a flat member snapshot."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import networkx as nx

from .schemas import Member
from .utils import logger


class RecordIndex:
    """id, parent and spouse lookups built in one pass over the records.

    Nothing is validated here. References that do not resolve are simply
    missing from the lookups; :meth:`parent` and :meth:`spouse` return
    ``None`` for them.
    """

    def __init__(self, members: Iterable[Member]) -> None:
        self.members: List[Member] = []
        self.by_id: Dict[str, Member] = {}
        self.children_by_parent: Dict[str, List[Member]] = {}
        self.spouse_of: Dict[str, str] = {}
        self.duplicates: List[str] = []
        self.self_spouse_links: List[str] = []

        declared: Dict[str, str] = {}
        reverse: Dict[str, str] = {}
        for member in members:
            if member.id in self.by_id:
                logger.warning("Duplicate member id %s ignored", member.id)
                self.duplicates.append(member.id)
                continue
            self.members.append(member)
            self.by_id[member.id] = member
            if member.parent_id:
                self.children_by_parent.setdefault(member.parent_id, []).append(member)
            if member.spouse_id:
                if member.spouse_id == member.id:
                    self.self_spouse_links.append(member.id)
                    continue
                declared[member.id] = member.spouse_id
                reverse[member.spouse_id] = member.id
        # A member's own declaration wins over a link registered from the other side.
        self.spouse_of = {**reverse, **declared}

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, member_id: object) -> bool:
        return member_id in self.by_id

    def get(self, member_id: Optional[str]) -> Optional[Member]:
        if member_id is None:
            return None
        return self.by_id.get(member_id)

    def parent(self, member: Member) -> Optional[Member]:
        parent = self.get(member.parent_id)
        if parent is None or parent.id == member.id:
            return None
        return parent

    def spouse(self, member: Member) -> Optional[Member]:
        spouse = self.get(self.spouse_of.get(member.id))
        if spouse is None or spouse.id == member.id:
            return None
        return spouse

    def has_spouse(self, member: Member) -> bool:
        return member.id in self.spouse_of

    def children_of(self, member_id: str) -> List[Member]:
        return list(self.children_by_parent.get(member_id, ()))

    def founders(self) -> List[Member]:
        return [member for member in self.members if member.is_founder]

    def dangling_parents(self) -> List[Member]:
        return [m for m in self.members if m.parent_id and m.parent_id not in self.by_id]

    def dangling_spouses(self) -> List[Member]:
        return [
            m
            for m in self.members
            if m.spouse_id and m.spouse_id != m.id and m.spouse_id not in self.by_id
        ]

    def parent_graph(self) -> nx.DiGraph:
        """Directed parent -> child graph over the resolvable links."""

        graph = nx.DiGraph()
        for member in self.members:
            graph.add_node(member.id, label=member.label, generation=member.generation)
        for member in self.members:
            if member.parent_id and member.parent_id in self.by_id:
                graph.add_edge(member.parent_id, member.id)
        return graph

    def parent_cycles(self) -> List[List[str]]:
        """Cyclic ``parent_id`` chains, each as a list of member ids."""

        cycles = [sorted(cycle) for cycle in nx.simple_cycles(self.parent_graph())]
        return sorted(cycles)


def build_index(members: Iterable[Member]) -> RecordIndex:
    return RecordIndex(members)


__all__ = ["RecordIndex", "build_index"]
