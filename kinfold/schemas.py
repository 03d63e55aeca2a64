"""Record and render-frame schemas."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from .utils import calculate_age, full_name, logger


class RecordError(ValueError):
    """Raised when a raw record cannot be turned into a :class:`Member`."""


class Registry(str, Enum):
    LIVING = "living"
    DECEASED = "deceased"


# The record store keeps two rolls, one for living members and one for
# the deceased. Both spellings are accepted on input.
REGISTRY_ALIASES = {
    "living": Registry.LIVING,
    "magomago": Registry.LIVING,
    "deceased": Registry.DECEASED,
    "tengoku": Registry.DECEASED,
}

FIELD_ALIASES = {
    "last_name": ("last_name", "lastName"),
    "first_name": ("first_name", "firstName"),
    "branch_id": ("branch_id", "branchId"),
    "parent_id": ("parent_id", "parentId"),
    "spouse_id": ("spouse_id", "spouseId"),
    "birth_date": ("birth_date", "birthDate"),
    "passed_at": ("passed_at", "passedAt"),
}


def _pick(record: Mapping[str, Any], name: str) -> Any:
    for key in FIELD_ALIASES.get(name, (name,)):
        if key in record:
            return record[key]
    return None


def _optional_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def parse_registry(value: Any) -> Registry:
    if isinstance(value, Registry):
        return value
    if value is None or value == "":
        return Registry.LIVING
    registry = REGISTRY_ALIASES.get(str(value).strip().lower())
    if registry is None:
        logger.warning("Unknown registry %r, treating member as living", value)
        return Registry.LIVING
    return registry


@dataclass(frozen=True)
class Member:
    id: str
    last_name: str = ""
    first_name: str = ""
    registry: Registry = Registry.LIVING
    generation: int = 0
    branch_id: int = 0
    parent_id: Optional[str] = None
    spouse_id: Optional[str] = None
    birth_date: Optional[str] = None
    passed_at: Optional[str] = None

    @property
    def label(self) -> str:
        return full_name(self.last_name, self.first_name)

    @property
    def is_deceased(self) -> bool:
        return self.registry is Registry.DECEASED

    @property
    def is_founder(self) -> bool:
        return self.generation == 1

    def age(self, today: Optional[date] = None) -> Optional[int]:
        """Current age, or age at death for members with ``passed_at``."""
        return calculate_age(self.birth_date, self.passed_at, today=today)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Member":
        """Parse a store document (camelCase) or a snake_case mapping."""

        member_id = _optional_id(record.get("id"))
        if member_id is None:
            raise RecordError(f"Record without id: {dict(record)!r}")
        raw_generation = record.get("generation")
        try:
            generation = int(raw_generation) if raw_generation not in (None, "") else 0
        except (TypeError, ValueError) as exc:
            raise RecordError(f"Member {member_id} has invalid generation {raw_generation!r}") from exc
        raw_branch = _pick(record, "branch_id")
        try:
            branch_id = int(raw_branch) if raw_branch not in (None, "") else 0
        except (TypeError, ValueError) as exc:
            raise RecordError(f"Member {member_id} has invalid branchId {raw_branch!r}") from exc
        return cls(
            id=member_id,
            last_name=str(_pick(record, "last_name") or ""),
            first_name=str(_pick(record, "first_name") or ""),
            registry=parse_registry(record.get("registry")),
            generation=generation,
            branch_id=branch_id,
            parent_id=_optional_id(_pick(record, "parent_id")),
            spouse_id=_optional_id(_pick(record, "spouse_id")),
            birth_date=_optional_text(_pick(record, "birth_date")),
            passed_at=_optional_text(_pick(record, "passed_at")),
        )

    def dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lastName": self.last_name,
            "firstName": self.first_name,
            "registry": self.registry.value,
            "generation": self.generation,
            "branchId": self.branch_id,
            "parentId": self.parent_id,
            "spouseId": self.spouse_id,
            "birthDate": self.birth_date,
            "passedAt": self.passed_at,
        }


def coerce_members(records: Any) -> List[Member]:
    """Accept Member objects or raw mappings and return Members."""

    members: List[Member] = []
    for record in records:
        if isinstance(record, Member):
            members.append(record)
        else:
            members.append(Member.from_record(record))
    return members


@dataclass
class RenderNode:
    id: str
    x: float
    y: float
    label: str
    is_deceased: bool
    has_attached_spouse: bool
    expansion_state: str
    attached_to: Optional[str] = None
    x0: Optional[float] = None
    y0: Optional[float] = None

    def dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "label": self.label,
            "isDeceased": self.is_deceased,
            "hasAttachedSpouse": self.has_attached_spouse,
            "expansionState": self.expansion_state,
            "attachedTo": self.attached_to,
            "x0": self.x0,
            "y0": self.y0,
        }


@dataclass
class RenderEdge:
    from_id: str
    to_id: str
    source_x: float
    source_y: float
    target_x: float
    target_y: float
    kind: str = "parent"

    def dict(self) -> Dict[str, Any]:
        return {
            "fromId": self.from_id,
            "toId": self.to_id,
            "sourceX": self.source_x,
            "sourceY": self.source_y,
            "targetX": self.target_x,
            "targetY": self.target_y,
            "kind": self.kind,
        }


@dataclass(frozen=True)
class Viewport:
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RenderFrame:
    """Everything a renderer needs for one layout pass."""

    nodes: List[RenderNode] = field(default_factory=list)
    edges: List[RenderEdge] = field(default_factory=list)
    viewport: Viewport = field(default_factory=Viewport)
    origin: Optional[Dict[str, float]] = None
    placeholder: Optional[str] = None
    sequence: int = 0
    orientation: str = "vertical"

    @property
    def parent_edges(self) -> List[RenderEdge]:
        return [edge for edge in self.edges if edge.kind == "parent"]

    @property
    def spouse_edges(self) -> List[RenderEdge]:
        return [edge for edge in self.edges if edge.kind == "spouse"]

    def node(self, node_id: str) -> Optional[RenderNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.dict() for node in self.nodes],
            "edges": [edge.dict() for edge in self.edges],
            "viewport": asdict(self.viewport),
            "origin": self.origin,
            "placeholder": self.placeholder,
            "sequence": self.sequence,
            "orientation": self.orientation,
        }


__all__ = [
    "Member",
    "Registry",
    "RecordError",
    "RenderNode",
    "RenderEdge",
    "RenderFrame",
    "Viewport",
    "coerce_members",
    "parse_registry",
]
