"""Member dependency graphs and extract-class recommendations for Python classes."""

from .models import (
    MemberKind,
    ChildKind,
    NodeRef,
    ClassPlan,
    AccessEdge,
    CrossingEdge,
    CandidateGroup,
)
from .pattern_matcher import (
    StructuralPattern,
    find_matches,
    find_matches_below,
    self_access_pattern,
)
from .builder import MemberGraphBuilder
from .population import GraphPopulator
from .store import GraphStore, InMemoryGraphStore, JsonFileGraphStore, open_store
from .community import CommunityDetector
from .recommender import Recommender, rank_groups
from .analyzer import ExtractClassAnalyzer
from .config import CohesionGraphConfig

__all__ = [
    "MemberKind",
    "ChildKind",
    "NodeRef",
    "ClassPlan",
    "AccessEdge",
    "CrossingEdge",
    "CandidateGroup",
    "StructuralPattern",
    "find_matches",
    "find_matches_below",
    "self_access_pattern",
    "MemberGraphBuilder",
    "GraphPopulator",
    "GraphStore",
    "InMemoryGraphStore",
    "JsonFileGraphStore",
    "open_store",
    "CommunityDetector",
    "Recommender",
    "rank_groups",
    "ExtractClassAnalyzer",
    "CohesionGraphConfig",
]
