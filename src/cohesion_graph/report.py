"""Report schemas and rendering for extract-class recommendations."""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .models import CandidateGroup, MemberKind, SkippedMember


class CrossingEdgeReport(BaseModel):
    accessor: str = Field(..., description="Method performing the access")
    accessed: str = Field(..., description="Member being accessed")
    direction: str = Field(..., description="outgoing or incoming, relative to the group")


class CandidateReport(BaseModel):
    rank: int
    label: Optional[int] = None
    members: List[str]
    properties: List[str] = Field(default_factory=list)
    methods: List[str] = Field(default_factory=list)
    unresolved: List[str] = Field(default_factory=list)
    internal_edges: int
    crossing_edges: List[CrossingEdgeReport] = Field(
        default_factory=list, description="Delegation points to resolve after extraction"
    )
    crossing_ratio: Optional[float] = Field(None, description="None when the group has no internal edges")
    is_singleton: bool


class SkippedMemberReport(BaseModel):
    name: str
    reason: str
    line_number: int


class ClassReport(BaseModel):
    class_name: str
    source: str
    member_count: int
    access_edge_count: int
    community_count: int
    candidates: List[CandidateReport] = Field(default_factory=list)
    skipped: List[SkippedMemberReport] = Field(default_factory=list)
    timings: Dict[str, float] = Field(default_factory=dict)


class ErrorReport(BaseModel):
    source: str
    class_name: Optional[str] = None
    message: str


class AnalysisReport(BaseModel):
    classes: List[ClassReport] = Field(default_factory=list)
    errors: List[ErrorReport] = Field(default_factory=list)
    statistics: Dict[str, Any] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


def candidate_report(rank: int, group: CandidateGroup) -> CandidateReport:
    def of_kind(kind: MemberKind) -> List[str]:
        return [name for name in group.members if group.kinds.get(name) is kind]

    ratio = group.crossing_ratio
    return CandidateReport(
        rank=rank,
        label=group.label,
        members=list(group.members),
        properties=of_kind(MemberKind.PROPERTY),
        methods=of_kind(MemberKind.METHOD),
        unresolved=of_kind(MemberKind.UNRESOLVED),
        internal_edges=group.internal_edges,
        crossing_edges=[
            CrossingEdgeReport(accessor=e.accessor, accessed=e.accessed, direction=e.direction)
            for e in group.crossing_edges
        ],
        crossing_ratio=None if math.isinf(ratio) else round(ratio, 4),
        is_singleton=group.is_singleton,
    )


def skipped_report(skipped: SkippedMember) -> SkippedMemberReport:
    return SkippedMemberReport(name=skipped.name, reason=skipped.reason,
                               line_number=skipped.line_number)


def render_text(report: AnalysisReport) -> str:
    """Human readable rendering of an analysis report."""
    lines: List[str] = []
    for cls in report.classes:
        lines.append(f"{cls.source}: class {cls.class_name}")
        lines.append(
            f"  {cls.member_count} members, {cls.access_edge_count} self-accesses, "
            f"{cls.community_count} communities"
        )
        groups = [c for c in cls.candidates if not c.is_singleton]
        if not groups:
            lines.append("  No multi-member candidates")
        for candidate in groups:
            ratio = "n/a" if candidate.crossing_ratio is None else f"{candidate.crossing_ratio:.2f}"
            lines.append(
                f"  #{candidate.rank} community {candidate.label}: "
                f"{', '.join(candidate.members)} "
                f"(internal {candidate.internal_edges}, crossing {len(candidate.crossing_edges)}, "
                f"ratio {ratio})"
            )
            for edge in candidate.crossing_edges:
                lines.append(f"      delegate {edge.accessor} -> {edge.accessed} ({edge.direction})")
        isolated = [c.members[0] for c in cls.candidates if c.is_singleton]
        if isolated:
            lines.append(f"  Isolated: {', '.join(isolated)}")
        for skipped in cls.skipped:
            lines.append(
                f"  Skipped {skipped.name} ({skipped.reason}, line {skipped.line_number}): "
                f"handle manually"
            )
    for error in report.errors:
        where = f"{error.source}:{error.class_name}" if error.class_name else error.source
        lines.append(f"ERROR {where}: {error.message}")
    return "\n".join(lines)
