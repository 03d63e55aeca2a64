"""Branch grouping and depth-first display order for list views.

Members are partitioned by ``branch_id`` (missing means ``0``, the founder's
branch). Inside a branch the list reads like the tree: each person, then
their spouse, then their children, recursively. Anything the walk cannot
reach is appended at the end rather than dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .index import RecordIndex
from .marriage import MarriageResolver
from .schemas import Member

DEFAULT_BRANCH_NAME = "Founder"


@dataclass
class BranchGroup:
    branch_id: int
    name: str
    members: List[Member] = field(default_factory=list)

    def dict(self) -> Dict[str, object]:
        return {
            "branchId": self.branch_id,
            "branchName": self.name,
            "members": [member.dict() for member in self.members],
        }


def filter_members(members: Iterable[Member], query: Optional[str]) -> List[Member]:
    """Case-insensitive match on the concatenated last and first name."""

    if not query:
        return list(members)
    needle = query.lower()
    return [m for m in members if needle in f"{m.last_name}{m.first_name}".lower()]


def deceased_members(members: Iterable[Member]) -> List[Member]:
    return [member for member in members if member.is_deceased]


@dataclass
class _BranchWalk:
    index: RecordIndex
    resolver: MarriageResolver
    members: Sequence[Member]
    in_branch: Dict[str, Member] = field(init=False)
    visited: Set[str] = field(default_factory=set)
    result: List[Member] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.in_branch = {member.id: member for member in self.members}

    def child_key(self, member: Member) -> tuple:
        return (
            self.index.spouse(member) is not None,
            member.birth_date is None,
            member.birth_date or "",
            member.id,
        )

    def is_root(self, member: Member) -> bool:
        if self.resolver.is_married_in(member):
            return False
        parent = self.index.parent(member)
        return parent is None or parent.branch_id != member.branch_id

    def visit(self, person: Member) -> None:
        if person.id in self.visited:
            return
        self.visited.add(person.id)
        if person.id in self.in_branch:
            self.result.append(person)

        spouse_id = self.index.spouse_of.get(person.id)
        spouse = self.in_branch.get(spouse_id) if spouse_id else None
        if spouse is not None and spouse.id != person.id and spouse.id not in self.visited:
            self.visited.add(spouse.id)
            self.result.append(spouse)

        parents = {person.id}
        if spouse_id:
            parents.add(spouse_id)
        children = [
            m
            for m in self.members
            if m.id not in self.visited
            and not self.resolver.is_married_in(m)
            and m.parent_id in parents
        ]
        for child in sorted(children, key=self.child_key):
            self.visit(child)

    def run(self) -> List[Member]:
        roots = sorted((m for m in self.members if self.is_root(m)), key=lambda m: m.generation)
        for root in roots:
            self.visit(root)
        for member in self.members:
            if member.id not in self.visited:
                self.result.append(member)
        return self.result


def order_branch(
    members: Sequence[Member],
    index: RecordIndex,
    resolver: MarriageResolver | None = None,
) -> List[Member]:
    """Depth-first display order for one branch's members."""

    resolver = resolver or MarriageResolver(index)
    return _BranchWalk(index=index, resolver=resolver, members=members).run()


def group_by_branch(
    index: RecordIndex,
    *,
    members: Iterable[Member] | None = None,
    query: Optional[str] = None,
    labels: Optional[Mapping[int, str]] = None,
) -> List[BranchGroup]:
    """Group (optionally filtered) members by branch, each in display order.

    ``members`` defaults to the whole index; relationship lookups always use
    the full index so a filtered subset still resolves parents and spouses.
    """

    labels = labels or {}
    subset = filter_members(index.members if members is None else members, query)
    grouped: Dict[int, List[Member]] = {}
    for member in subset:
        grouped.setdefault(member.branch_id or 0, []).append(member)

    resolver = MarriageResolver(index)
    groups: List[BranchGroup] = []
    for branch_id in sorted(grouped):
        groups.append(
            BranchGroup(
                branch_id=branch_id,
                name=labels.get(branch_id, DEFAULT_BRANCH_NAME),
                members=order_branch(grouped[branch_id], index, resolver),
            )
        )
    return groups


__all__ = [
    "BranchGroup",
    "DEFAULT_BRANCH_NAME",
    "deceased_members",
    "filter_members",
    "group_by_branch",
    "order_branch",
]
