"""Turns community labels into ranked extract-class candidates."""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import CohesionGraphConfig
from .models import (
    ACCESSES,
    MEMBER_LABEL,
    AccessEdge,
    CandidateGroup,
    CrossingEdge,
    MemberKind,
)
from .store import GraphStore


def describe_group(label: Optional[int], names: Iterable[str],
                   kinds: Mapping[str, MemberKind],
                   edges: Iterable[AccessEdge]) -> CandidateGroup:
    """Count internal edges and collect crossing edges for one group."""
    inside = set(names)
    internal = 0
    crossing: List[CrossingEdge] = []
    for edge in sorted(edges, key=lambda e: (e.accessor, e.accessed)):
        accessor_in = edge.accessor in inside
        accessed_in = edge.accessed in inside
        if accessor_in and accessed_in:
            internal += 1
        elif accessor_in:
            crossing.append(CrossingEdge(edge.accessor, edge.accessed, "outgoing"))
        elif accessed_in:
            crossing.append(CrossingEdge(edge.accessor, edge.accessed, "incoming"))

    members = sorted(inside)
    return CandidateGroup(
        label=label,
        members=members,
        kinds={name: kinds.get(name, MemberKind.UNRESOLVED) for name in members},
        internal_edges=internal,
        crossing_edges=crossing,
    )


def rank_key(group: CandidateGroup) -> Tuple:
    # Property-bearing groups first, then fewest dependencies kept on the
    # remaining class, then the overall crossing ratio, then most cohesive.
    return (
        not group.has_property,
        group.outgoing_ratio,
        group.crossing_ratio,
        -group.internal_edges,
        group.label if group.label is not None else -1,
    )


def rank_groups(kinds: Mapping[str, MemberKind], labels: Mapping[str, int],
                access_edges: Iterable[AccessEdge], min_group_size: int = 2,
                include_method_only_groups: bool = True) -> List[CandidateGroup]:
    """
    Rank extraction candidates.

    Args:
        kinds: Member name -> kind, for every member of the class
        labels: Member name -> community label, for labeled members only
        access_edges: ACCESSES edges of the class
        min_group_size: Smallest label group treated as a multi-member candidate
        include_method_only_groups: Keep groups without any Property member

    Returns:
        Multi-member candidates in rank order, followed by singleton groups
        ordered by member name
    """
    edges = set(access_edges)

    by_label: Dict[int, List[str]] = {}
    for name, label in labels.items():
        by_label.setdefault(label, []).append(name)

    candidates: List[CandidateGroup] = []
    singles: List[Tuple[Optional[int], str]] = [
        (None, name) for name in kinds if name not in labels
    ]
    for label, names in by_label.items():
        if len(names) < min_group_size:
            singles.extend((label, name) for name in names)
            continue
        group = describe_group(label, names, kinds, edges)
        if group.has_property or include_method_only_groups:
            candidates.append(group)

    candidates.sort(key=rank_key)
    singletons = [
        describe_group(label, [name], kinds, edges)
        for label, name in sorted(singles, key=lambda item: item[1])
    ]
    return candidates + singletons


class Recommender:
    """Reads a populated, community-labeled class graph and ranks candidates."""

    def __init__(self, config: Optional[CohesionGraphConfig] = None):
        self.config = config or CohesionGraphConfig()

    async def recommend(self, store: GraphStore, class_name: str) -> List[CandidateGroup]:
        prop = self.config.label_property

        members = await store.find_nodes(MEMBER_LABEL, where={"owner": class_name})
        kinds = {
            node.name: MemberKind(node.properties.get("kind", MemberKind.UNRESOLVED.value))
            for node in members
        }
        labels = {
            node.name: int(node.properties[prop])
            for node in await store.nodes_with_property(prop, MEMBER_LABEL)
            if node.ref.key_dict.get("owner") == class_name
        }
        edges = [
            AccessEdge(edge.source.key_dict["name"], edge.target.key_dict["name"])
            for edge in await store.find_edges(ACCESSES, source_where={"owner": class_name})
        ]
        return rank_groups(
            kinds,
            labels,
            edges,
            min_group_size=self.config.min_group_size,
            include_method_only_groups=self.config.include_method_only_groups,
        )
