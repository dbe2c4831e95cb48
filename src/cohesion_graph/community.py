"""Community detection over the ACCESSES relation of one class."""

import asyncio
from typing import Dict, List, Optional, Set

import networkx as nx
from networkx.algorithms import community as nx_community

from .config import CohesionGraphConfig
from .logger import get_logger
from .models import ACCESSES, MEMBER_LABEL, member_ref
from .store import GraphStore


class CommunityDetector:
    """
    Labels member nodes with an integer community id.

    Only members touching at least one ACCESSES edge are labeled; isolated
    members are left without a label. Communities are numbered by size
    (largest first), then by their smallest member name, so labels are
    stable for a given graph and seed.
    """

    def __init__(self, config: Optional[CohesionGraphConfig] = None):
        self.config = config or CohesionGraphConfig()
        self.logger = get_logger()

    def access_graph(self, edges) -> nx.Graph:
        """Undirected projection of a class's ACCESSES edges, keyed by member name."""
        graph = nx.Graph()
        for edge in edges:
            graph.add_edge(edge.source.key_dict["name"], edge.target.key_dict["name"])
        return graph

    def partition(self, graph: nx.Graph) -> List[Set[str]]:
        algorithm = self.config.community_algorithm
        if algorithm == "louvain":
            return nx_community.louvain_communities(
                graph,
                resolution=self.config.community_resolution,
                seed=self.config.community_seed,
            )
        if algorithm == "greedy_modularity":
            return list(nx_community.greedy_modularity_communities(
                graph, resolution=self.config.community_resolution
            ))
        return list(nx_community.label_propagation_communities(graph))

    def assign_labels(self, communities: List[Set[str]]) -> Dict[str, int]:
        ordered = sorted((sorted(c) for c in communities if c), key=lambda c: (-len(c), c[0]))
        return {name: label for label, members in enumerate(ordered) for name in members}

    async def detect(self, store: GraphStore, class_name: str) -> Dict[str, int]:
        """Run detection for one class and write the labels into the store."""
        prop = self.config.label_property

        stale = [
            node for node in await store.nodes_with_property(prop, MEMBER_LABEL)
            if node.ref.key_dict.get("owner") == class_name
        ]
        await asyncio.gather(*(store.remove_properties(node.ref, [prop]) for node in stale))

        edges = await store.find_edges(ACCESSES, source_where={"owner": class_name})
        graph = self.access_graph(edges)
        if graph.number_of_nodes() == 0:
            self.logger.warning(f"Class {class_name} has no self-accesses; nothing to cluster")
            return {}

        labels = self.assign_labels(self.partition(graph))
        await asyncio.gather(*(
            store.set_properties(member_ref(class_name, name), {prop: label})
            for name, label in labels.items()
        ))
        self.logger.debug(
            f"{class_name}: {len(set(labels.values()))} communities over {len(labels)} members"
        )
        return labels
