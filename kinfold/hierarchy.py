"""Resolve flat member records into a rooted family tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set

from .index import RecordIndex
from .marriage import MarriageResolver
from .schemas import Member
from .utils import logger

DEFAULT_MAX_DEPTH = 64


@dataclass(eq=False)
class ResolvedNode:
    """A member placed in the tree.

    ``children`` holds blood descendants only. A married-in partner is not a
    child of anyone; it hangs off its partner as ``attached_spouse``.
    """

    member: Member
    depth: int = 0
    children: List["ResolvedNode"] = field(default_factory=list)
    is_married_in: bool = False
    attached_spouse: Optional["ResolvedNode"] = None

    @property
    def id(self) -> str:
        return self.member.id

    @property
    def label(self) -> str:
        return self.member.label

    def walk(self) -> Iterator["ResolvedNode"]:
        """Pre-order walk over blood nodes (attached spouses excluded)."""

        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def node_count(self, include_spouses: bool = False) -> int:
        count = 0
        for node in self.walk():
            count += 1
            if include_spouses and node.attached_spouse is not None:
                count += 1
        return count

    def member_ids(self) -> List[str]:
        ids: List[str] = []
        for node in self.walk():
            ids.append(node.id)
            if node.attached_spouse is not None:
                ids.append(node.attached_spouse.id)
        return ids

    def shape(self) -> tuple:
        """Hashable structural summary, used to compare rebuilds."""

        spouse = self.attached_spouse.id if self.attached_spouse else None
        return (self.id, spouse, tuple(child.shape() for child in self.children))


@dataclass
class HierarchyResult:
    root: Optional[ResolvedNode]
    warnings: List[str] = field(default_factory=list)
    married_in: List[str] = field(default_factory=list)
    cycles: List[str] = field(default_factory=list)
    flagged_pairs: List[List[str]] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.root is not None


def sort_children(children: List[Member]) -> List[Member]:
    """Reverse birth order; undated members first, in input order."""

    undated = [child for child in children if not child.birth_date]
    dated = [child for child in children if child.birth_date]
    dated.sort(key=lambda child: child.birth_date or "", reverse=True)
    return undated + dated


@dataclass
class _BuildContext:
    placed: Set[str] = field(default_factory=set)
    path: Set[str] = field(default_factory=set)
    warnings: List[str] = field(default_factory=list)
    cycles: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


class HierarchyBuilder:
    def __init__(
        self,
        index: RecordIndex,
        resolver: MarriageResolver | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.index = index
        self.resolver = resolver or MarriageResolver(index)
        self.max_depth = max_depth

    def find_founder(self, ctx: _BuildContext) -> Optional[Member]:
        founders = self.index.founders()
        if not founders:
            return None
        parentless = [founder for founder in founders if self.index.parent(founder) is None]
        founder = (parentless or founders)[0]
        others = [m.id for m in founders if m.id != founder.id]
        partner = self.resolver.partner(founder)
        if partner is not None and partner.id in others:
            others.remove(partner.id)
        if others:
            ctx.warn(f"Multiple generation-1 members, using {founder.id}; ignoring {', '.join(others)}")
        return founder

    def build(self) -> HierarchyResult:
        ctx = _BuildContext()
        founder = self.find_founder(ctx)
        if founder is None:
            ctx.warn("No generation-1 member found; nothing to build")
            return HierarchyResult(root=None, warnings=ctx.warnings)

        root = self._build_node(founder, 0, ctx)
        return HierarchyResult(
            root=root,
            warnings=ctx.warnings,
            married_in=[m.id for m in self.resolver.married_in_members()],
            cycles=ctx.cycles,
            flagged_pairs=self.resolver.flagged(),
        )

    def _attach_spouse(self, node: ResolvedNode, ctx: _BuildContext) -> Optional[Member]:
        partner = self.resolver.partner(node.member)
        if partner is None:
            return None
        married_in = self.resolver.is_married_in(partner)
        attachable = married_in
        if not attachable and node.depth == 0:
            # The founder's partner has nowhere else to appear.
            attachable = self.index.parent(partner) is None
        if attachable and partner.id not in ctx.placed:
            ctx.placed.add(partner.id)
            node.attached_spouse = ResolvedNode(member=partner, depth=node.depth, is_married_in=married_in)
        return partner

    def _candidates(self, member: Member, partner: Optional[Member]) -> List[Member]:
        candidates = self.index.children_of(member.id)
        if partner is not None:
            seen = {c.id for c in candidates}
            candidates.extend(c for c in self.index.children_of(partner.id) if c.id not in seen)
        return candidates

    def _build_node(self, member: Member, depth: int, ctx: _BuildContext) -> ResolvedNode:
        ctx.placed.add(member.id)
        ctx.path.add(member.id)
        node = ResolvedNode(member=member, depth=depth)
        partner = self._attach_spouse(node, ctx)

        if depth >= self.max_depth:
            ctx.warn(f"Depth limit {self.max_depth} reached below {member.id}; descendants skipped")
            ctx.path.discard(member.id)
            return node

        survivors: List[Member] = []
        for candidate in self._candidates(member, partner):
            if self.resolver.is_married_in(candidate):
                continue
            if candidate.id in ctx.path:
                ctx.cycles.append(candidate.id)
                ctx.warn(f"Cyclic parent chain at {candidate.id} under {member.id}; excluded")
                continue
            if candidate.id in ctx.placed:
                logger.debug("Member %s already placed, skipping under %s", candidate.id, member.id)
                continue
            survivors.append(candidate)

        for child in sort_children(survivors):
            if child.id in ctx.placed:
                continue
            node.children.append(self._build_node(child, depth + 1, ctx))
        ctx.path.discard(member.id)
        return node


def build_hierarchy(members: Iterable[Member], *, max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[ResolvedNode]:
    """Build the family tree rooted at the founder, or ``None`` without one."""

    return HierarchyBuilder(RecordIndex(members), max_depth=max_depth).build().root


def resolve(index: RecordIndex, *, max_depth: int = DEFAULT_MAX_DEPTH) -> HierarchyResult:
    return HierarchyBuilder(index, max_depth=max_depth).build()


def index_nodes(root: Optional[ResolvedNode]) -> Dict[str, ResolvedNode]:
    if root is None:
        return {}
    return {node.id: node for node in root.walk()}


__all__ = [
    "ResolvedNode",
    "HierarchyResult",
    "HierarchyBuilder",
    "build_hierarchy",
    "resolve",
    "sort_children",
    "index_nodes",
]
