"""Core data models for the cohesion graph."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple


CLASS_LABEL = "Class"
MEMBER_LABEL = "Member"

OWNS = "OWNS"
ACCESSES = "ACCESSES"


class MemberKind(Enum):
    """Kind of a member node. Only ever refined, never downgraded."""
    PROPERTY = "Property"
    METHOD = "Method"
    UNRESOLVED = "Unresolved"


class ChildKind(Enum):
    """Closed set of class-body child kinds the builder distinguishes."""
    FIELD = "field"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    OTHER = "other"


@dataclass(frozen=True)
class NodeRef:
    """Descriptor of a node in the store: a label plus its key properties."""
    label: str
    key: Tuple[Tuple[str, str], ...]

    @classmethod
    def of(cls, label: str, key: Mapping[str, str]) -> "NodeRef":
        return cls(label=label, key=tuple(sorted(key.items())))

    @property
    def key_dict(self) -> Dict[str, str]:
        return dict(self.key)

    @property
    def node_id(self) -> str:
        """Canonical string identity, stable across processes."""
        parts = "|".join(f"{k}={v}" for k, v in self.key)
        return f"{self.label}|{parts}"


def class_ref(class_name: str) -> NodeRef:
    return NodeRef.of(CLASS_LABEL, {"name": class_name})


def member_ref(class_name: str, member_name: str) -> NodeRef:
    return NodeRef.of(MEMBER_LABEL, {"owner": class_name, "name": member_name})


@dataclass
class NodeHandle:
    """Returned by an upsert; `created` is False when the node already existed."""
    ref: NodeRef
    properties: Dict[str, object]
    created: bool


@dataclass
class EdgeHandle:
    """Returned by an edge upsert."""
    edge_type: str
    source: NodeRef
    target: NodeRef
    created: bool


@dataclass
class StoredNode:
    """A node as read back from the store."""
    ref: NodeRef
    properties: Dict[str, object]

    @property
    def name(self) -> str:
        return self.ref.key_dict.get("name", "")


@dataclass
class StoredEdge:
    """An edge as read back from the store."""
    edge_type: str
    source: NodeRef
    target: NodeRef


@dataclass
class NodeUpsert:
    """Intent to create-if-absent a node, then write properties."""
    ref: NodeRef
    properties: Dict[str, object] = field(default_factory=dict)
    defaults: Dict[str, object] = field(default_factory=dict)


@dataclass
class EdgeUpsert:
    """Intent to create-if-absent a directed, typed edge."""
    edge_type: str
    source: NodeRef
    target: NodeRef


@dataclass
class SkippedMember:
    """A class-body child outside the analyzed scope, flagged for manual handling."""
    name: str
    reason: str
    line_number: int


@dataclass
class ClassPlan:
    """Deduplicated upsert intents for one class declaration."""
    class_name: str
    class_upsert: NodeUpsert
    member_upserts: List[NodeUpsert] = field(default_factory=list)
    owns_upserts: List[EdgeUpsert] = field(default_factory=list)
    access_upserts: List[EdgeUpsert] = field(default_factory=list)
    skipped: List[SkippedMember] = field(default_factory=list)

    @property
    def operation_count(self) -> int:
        return (1 + len(self.member_upserts) + len(self.owns_upserts)
                + len(self.access_upserts))


@dataclass(frozen=True)
class AccessEdge:
    """Method -> member access, by member name within one class."""
    accessor: str
    accessed: str


@dataclass(frozen=True)
class CrossingEdge:
    """An access edge with exactly one endpoint inside a candidate group.

    `outgoing` edges start inside the group (the extracted class would still
    depend on the remaining class); `incoming` edges end inside it (the
    remaining class has to delegate to the extracted one).
    """
    accessor: str
    accessed: str
    direction: str  # outgoing, incoming


@dataclass
class CandidateGroup:
    """Members sharing a community label, with their edge counts."""
    label: Optional[int]
    members: List[str]
    kinds: Dict[str, MemberKind]
    internal_edges: int
    crossing_edges: List[CrossingEdge] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_singleton(self) -> bool:
        return len(self.members) < 2

    @property
    def has_property(self) -> bool:
        return any(kind is MemberKind.PROPERTY for kind in self.kinds.values())

    @property
    def crossing_count(self) -> int:
        return len(self.crossing_edges)

    @property
    def outgoing_count(self) -> int:
        return sum(1 for edge in self.crossing_edges if edge.direction == "outgoing")

    @property
    def crossing_ratio(self) -> float:
        return _ratio(self.crossing_count, self.internal_edges)

    @property
    def outgoing_ratio(self) -> float:
        return _ratio(self.outgoing_count, self.internal_edges)


def _ratio(count: int, internal: int) -> float:
    if internal == 0:
        return math.inf
    return count / internal
