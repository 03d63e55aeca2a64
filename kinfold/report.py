"""Data-quality diagnostics for a member snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rich.table import Table

from .hierarchy import HierarchyResult, resolve
from .index import RecordIndex
from .utils import console

UNKNOWN = "unknown"
MARRIED_COLUMNS = ("id", "name", "generation", "parent", "spouse")


@dataclass
class QualityReport:
    """Findings worth a manual look; none of them stop resolution."""

    total_members: int = 0
    founder: Optional[str] = None
    extra_founders: List[str] = field(default_factory=list)
    tree_members: int = 0
    unreached: List[str] = field(default_factory=list)
    dangling_parents: List[str] = field(default_factory=list)
    dangling_spouses: List[str] = field(default_factory=list)
    self_spouse_links: List[str] = field(default_factory=list)
    duplicate_ids: List[str] = field(default_factory=list)
    parent_cycles: List[List[str]] = field(default_factory=list)
    sibling_spouse_pairs: List[List[str]] = field(default_factory=list)
    married_with_parent: List[Dict[str, object]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.founder is not None

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_members": self.total_members,
            "founder": self.founder,
            "extra_founders": list(self.extra_founders),
            "tree_members": self.tree_members,
            "unreached": list(self.unreached),
            "dangling_parents": list(self.dangling_parents),
            "dangling_spouses": list(self.dangling_spouses),
            "self_spouse_links": list(self.self_spouse_links),
            "duplicate_ids": list(self.duplicate_ids),
            "parent_cycles": [list(c) for c in self.parent_cycles],
            "sibling_spouse_pairs": [list(p) for p in self.sibling_spouse_pairs],
            "married_with_parent": [dict(row) for row in self.married_with_parent],
            "warnings": list(self.warnings),
        }

    def log(self) -> None:
        console.log(
            "Snapshot summary",
            {
                "members": self.total_members,
                "founder": self.founder,
                "in_tree": self.tree_members,
                "unreached": len(self.unreached),
            },
        )
        checks = {
            "Dangling parent ids": self.dangling_parents,
            "Dangling spouse ids": self.dangling_spouses,
            "Self spouse links": self.self_spouse_links,
            "Duplicate ids": self.duplicate_ids,
            "Parent cycles": self.parent_cycles,
            "Siblings linked as spouses": self.sibling_spouse_pairs,
        }
        for title, items in checks.items():
            if items:
                console.log(f"[yellow]{title}[/yellow]", items)
        if self.married_with_parent:
            table = Table(title="Married members with a parent", show_header=True, header_style="bold")
            for column in MARRIED_COLUMNS:
                table.add_column(column.capitalize())
            for row in self.married_with_parent:
                table.add_row(*(str(row[column]) for column in MARRIED_COLUMNS))
            console.print(table)


def married_with_parent(index: RecordIndex) -> List[Dict[str, object]]:
    """Members that hold both a spouse link and a parent link.

    A married-in spouse should not carry a parent; this list is the place to
    spot the ones whose parent link needs clearing.
    """

    rows: List[Dict[str, object]] = []
    for member in index.members:
        if not (member.spouse_id and member.parent_id):
            continue
        parent = index.get(member.parent_id)
        spouse = index.get(member.spouse_id)
        rows.append(
            {
                "id": member.id,
                "name": member.label,
                "generation": member.generation,
                "parent": parent.label if parent is not None else UNKNOWN,
                "spouse": spouse.label if spouse is not None else UNKNOWN,
            }
        )
    return rows


def build_report(index: RecordIndex, result: HierarchyResult | None = None) -> QualityReport:
    result = result or resolve(index)
    founders = index.founders()
    report = QualityReport(
        total_members=len(index),
        founder=result.root.id if result.root is not None else None,
        dangling_parents=[m.id for m in index.dangling_parents()],
        dangling_spouses=[m.id for m in index.dangling_spouses()],
        self_spouse_links=list(index.self_spouse_links),
        duplicate_ids=list(index.duplicates),
        parent_cycles=index.parent_cycles(),
        sibling_spouse_pairs=list(result.flagged_pairs),
        married_with_parent=married_with_parent(index),
        warnings=list(result.warnings),
    )
    placed = set(result.root.member_ids()) if result.root is not None else set()
    report.tree_members = len(placed)
    report.extra_founders = [m.id for m in founders if m.id not in placed]
    report.unreached = [m.id for m in index.members if m.id not in placed]
    return report


__all__ = ["QualityReport", "build_report", "married_with_parent"]
