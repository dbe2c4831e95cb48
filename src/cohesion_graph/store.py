"""
Graph store protocol and implementations.

Every operation is a coroutine, modelling a remote graph database. Upserts
are create-if-absent by label and key properties, so re-running a
population converges on the same graph.
"""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional

import networkx as nx

from .config import CohesionGraphConfig
from .errors import GraphStoreError
from .logger import get_logger
from .models import EdgeHandle, NodeHandle, NodeRef, StoredEdge, StoredNode


FORMAT_VERSION = 1


class GraphStore(ABC):
    """Abstract client for a property graph store."""

    async def open(self) -> None:
        """Acquire the underlying connection or resource."""

    async def flush(self) -> None:
        """Persist pending state, if the store needs to."""

    async def close(self) -> None:
        """Release the underlying connection or resource."""

    @abstractmethod
    async def upsert_node(self, label: str, key: Mapping[str, str],
                          properties: Optional[Mapping[str, Any]] = None,
                          defaults: Optional[Mapping[str, Any]] = None) -> NodeHandle:
        """
        Create the node if absent, otherwise return the existing one.

        Args:
            label: Node label
            key: Key properties identifying the node under its label
            properties: Properties written on every call
            defaults: Properties written only where the node lacks them
        """

    @abstractmethod
    async def upsert_edge(self, edge_type: str, source: NodeRef, target: NodeRef) -> EdgeHandle:
        """Create the directed edge if absent, merging bare endpoints as needed."""

    @abstractmethod
    async def set_properties(self, ref: NodeRef, properties: Mapping[str, Any]) -> None:
        """Write properties onto an existing node."""

    @abstractmethod
    async def remove_properties(self, ref: NodeRef, names: Iterable[str]) -> None:
        """Remove properties from an existing node."""

    @abstractmethod
    async def find_nodes(self, label: Optional[str] = None,
                         where: Optional[Mapping[str, Any]] = None) -> List[StoredNode]:
        """Nodes with the given label whose key or properties match ``where``."""

    @abstractmethod
    async def find_edges(self, edge_type: Optional[str] = None,
                         source_where: Optional[Mapping[str, Any]] = None) -> List[StoredEdge]:
        """Edges of a type whose source node key matches ``source_where``."""

    @abstractmethod
    async def nodes_with_property(self, name: str, label: Optional[str] = None) -> List[StoredNode]:
        """Bulk read of nodes carrying a property, such as a community label."""

    @abstractmethod
    async def statistics(self) -> Dict[str, Any]:
        """Node and edge counts by label and type."""

    @abstractmethod
    async def clear(self) -> None:
        """Wipe the whole graph."""


class InMemoryGraphStore(GraphStore):
    """Graph store backed by a networkx MultiDiGraph keyed by edge type."""

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self._closed = False

    async def _roundtrip(self):
        if self._closed:
            raise GraphStoreError("Graph store is closed")
        # Yield to the loop as a remote call would.
        await asyncio.sleep(0)

    async def close(self) -> None:
        self._closed = True

    async def upsert_node(self, label, key, properties=None, defaults=None) -> NodeHandle:
        await self._roundtrip()
        return self._merge_node(NodeRef.of(label, key), properties, defaults)

    async def upsert_edge(self, edge_type, source, target) -> EdgeHandle:
        await self._roundtrip()
        self._merge_node(source)
        self._merge_node(target)
        source_id, target_id = source.node_id, target.node_id
        created = not self.graph.has_edge(source_id, target_id, key=edge_type)
        if created:
            self.graph.add_edge(source_id, target_id, key=edge_type, type=edge_type)
        return EdgeHandle(edge_type=edge_type, source=source, target=target, created=created)

    async def set_properties(self, ref, properties) -> None:
        await self._roundtrip()
        self._properties_of(ref).update(properties)

    async def remove_properties(self, ref, names) -> None:
        await self._roundtrip()
        props = self._properties_of(ref)
        for name in names:
            props.pop(name, None)

    async def find_nodes(self, label=None, where=None) -> List[StoredNode]:
        await self._roundtrip()
        found = []
        for _, data in self.graph.nodes(data=True):
            if label is not None and data["label"] != label:
                continue
            if where and not self._matches(data, where):
                continue
            found.append(self._stored(data))
        return found

    async def find_edges(self, edge_type=None, source_where=None) -> List[StoredEdge]:
        await self._roundtrip()
        found = []
        for source_id, target_id, key in self.graph.edges(keys=True):
            if edge_type is not None and key != edge_type:
                continue
            source = self.graph.nodes[source_id]
            if source_where and not all(
                source["key"].get(name) == value for name, value in source_where.items()
            ):
                continue
            found.append(StoredEdge(
                edge_type=key,
                source=NodeRef.of(source["label"], source["key"]),
                target=self._ref(target_id),
            ))
        return found

    async def nodes_with_property(self, name, label=None) -> List[StoredNode]:
        await self._roundtrip()
        return [
            self._stored(data) for _, data in self.graph.nodes(data=True)
            if name in data["properties"] and (label is None or data["label"] == label)
        ]

    async def statistics(self) -> Dict[str, Any]:
        await self._roundtrip()
        node_labels: Dict[str, int] = {}
        for _, data in self.graph.nodes(data=True):
            node_labels[data["label"]] = node_labels.get(data["label"], 0) + 1
        edge_types: Dict[str, int] = {}
        for _, _, key in self.graph.edges(keys=True):
            edge_types[key] = edge_types.get(key, 0) + 1
        return {
            "total_nodes": self.graph.number_of_nodes(),
            "total_edges": self.graph.number_of_edges(),
            "node_labels": node_labels,
            "edge_types": edge_types,
        }

    async def clear(self) -> None:
        await self._roundtrip()
        self.graph.clear()

    def serialize(self) -> Dict[str, Any]:
        """Serialize the graph for persistence or exchange."""
        return {
            "version": FORMAT_VERSION,
            "nodes": [
                {
                    "label": data["label"],
                    "key": dict(data["key"]),
                    "properties": dict(data["properties"]),
                }
                for _, data in self.graph.nodes(data=True)
            ],
            "edges": [
                {
                    "type": key,
                    "source": self._describe(source_id),
                    "target": self._describe(target_id),
                }
                for source_id, target_id, key in self.graph.edges(keys=True)
            ],
            "metadata": {
                "node_count": self.graph.number_of_nodes(),
                "edge_count": self.graph.number_of_edges(),
            },
        }

    def deserialize(self, data: Mapping[str, Any]) -> None:
        """Replace the graph with serialized data."""
        if not isinstance(data, Mapping):
            raise GraphStoreError(f"Malformed graph data: expected an object, got {type(data).__name__}")
        if data.get("version") != FORMAT_VERSION:
            raise GraphStoreError(f"Unsupported graph format version: {data.get('version')}")
        self.graph.clear()
        try:
            for node in data.get("nodes", []):
                ref = NodeRef.of(node["label"], node["key"])
                self._merge_node(ref, properties=node.get("properties", {}))
            for edge in data.get("edges", []):
                source = NodeRef.of(edge["source"]["label"], edge["source"]["key"])
                target = NodeRef.of(edge["target"]["label"], edge["target"]["key"])
                self._merge_node(source)
                self._merge_node(target)
                self.graph.add_edge(source.node_id, target.node_id,
                                    key=edge["type"], type=edge["type"])
        except (KeyError, TypeError, AttributeError) as e:
            raise GraphStoreError(f"Malformed graph data: {e}") from e

    def _merge_node(self, ref: NodeRef, properties=None, defaults=None) -> NodeHandle:
        node_id = ref.node_id
        created = not self.graph.has_node(node_id)
        if created:
            self.graph.add_node(node_id, label=ref.label, key=ref.key_dict, properties={})
        props = self.graph.nodes[node_id]["properties"]
        for name, value in (defaults or {}).items():
            props.setdefault(name, value)
        props.update(properties or {})
        return NodeHandle(ref=ref, properties=dict(props), created=created)

    def _properties_of(self, ref: NodeRef) -> Dict[str, Any]:
        if not self.graph.has_node(ref.node_id):
            raise GraphStoreError(f"No node {ref.node_id}")
        return self.graph.nodes[ref.node_id]["properties"]

    def _ref(self, node_id: str) -> NodeRef:
        data = self.graph.nodes[node_id]
        return NodeRef.of(data["label"], data["key"])

    def _describe(self, node_id: str) -> Dict[str, Any]:
        data = self.graph.nodes[node_id]
        return {"label": data["label"], "key": dict(data["key"])}

    @staticmethod
    def _matches(data: Mapping[str, Any], where: Mapping[str, Any]) -> bool:
        for name, value in where.items():
            if name in data["key"]:
                if data["key"][name] != value:
                    return False
            elif data["properties"].get(name) != value:
                return False
        return True

    @staticmethod
    def _stored(data: Mapping[str, Any]) -> StoredNode:
        return StoredNode(ref=NodeRef.of(data["label"], data["key"]),
                          properties=dict(data["properties"]))


class JsonFileGraphStore(InMemoryGraphStore):
    """In-memory store loaded from and saved to a JSON document."""

    def __init__(self, path):
        super().__init__()
        self.path = Path(path)
        self.logger = get_logger()

    async def open(self) -> None:
        if not self.path.exists():
            self.logger.debug(f"Starting empty graph store at {self.path}")
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise GraphStoreError(f"Cannot load graph store {self.path}: {e}") from e
        self.deserialize(data)
        self.logger.debug(f"Loaded {self.graph.number_of_nodes()} nodes from {self.path}")

    async def flush(self) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(self.serialize(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise GraphStoreError(f"Cannot save graph store {self.path}: {e}") from e


def create_store(config: CohesionGraphConfig) -> GraphStore:
    if config.store_path:
        return JsonFileGraphStore(config.store_path)
    return InMemoryGraphStore()


@asynccontextmanager
async def open_store(config: CohesionGraphConfig,
                     store: Optional[GraphStore] = None) -> AsyncIterator[GraphStore]:
    """
    Acquire one store client for a run and release it on every exit path.

    State is flushed only when the run leaves the block without an exception.
    """
    store = store or create_store(config)
    await store.open()
    try:
        if config.reset_store:
            await store.clear()
        yield store
        await store.flush()
    finally:
        await store.close()
