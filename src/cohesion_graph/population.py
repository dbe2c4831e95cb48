"""Graph population: applies a class plan to a graph store."""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

from .logger import get_logger
from .models import ClassPlan, EdgeUpsert, NodeRef, NodeUpsert
from .store import GraphStore


@dataclass
class PopulationResult:
    """Outcome of one populated class."""
    class_name: str
    operations: int
    nodes_created: int
    edges_created: int


class GraphPopulator:
    """
    Issues the upserts of a class plan against a store.

    The class node is written first. Member upserts (each followed by its
    OWNS edge) and ACCESSES edge upserts are then fanned out as concurrent
    tasks and all joined before the class counts as populated. Upserts are
    idempotent and commutative, so completion order does not matter.
    """

    def __init__(self, store: GraphStore):
        self.store = store
        self.logger = get_logger()

    async def populate(self, plan: ClassPlan) -> PopulationResult:
        class_handle = await self._apply_node(plan.class_upsert)

        owns_by_member: Dict[NodeRef, EdgeUpsert] = {
            edge.target: edge for edge in plan.owns_upserts
        }
        tasks = [
            self._apply_member(upsert, owns_by_member.get(upsert.ref))
            for upsert in plan.member_upserts
        ]
        tasks.extend(self._apply_edge(edge) for edge in plan.access_upserts)

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)
        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if errors:
            self.logger.error(
                f"{len(errors)} of {len(tasks)} upserts failed for class {plan.class_name}"
            )
            raise errors[0]

        nodes_created = int(class_handle) + sum(nodes for nodes, _ in outcomes)
        edges_created = sum(edges for _, edges in outcomes)
        self.logger.debug(
            f"Populated {plan.class_name}: {plan.operation_count} upserts, "
            f"{nodes_created} nodes and {edges_created} edges created"
        )
        return PopulationResult(
            class_name=plan.class_name,
            operations=plan.operation_count,
            nodes_created=nodes_created,
            edges_created=edges_created,
        )

    async def _apply_node(self, upsert: NodeUpsert) -> bool:
        handle = await self.store.upsert_node(
            upsert.ref.label,
            upsert.ref.key_dict,
            properties=upsert.properties,
            defaults=upsert.defaults,
        )
        return handle.created

    async def _apply_member(self, upsert: NodeUpsert, owns: Optional[EdgeUpsert]) -> List[int]:
        created_node = await self._apply_node(upsert)
        created_edge = False
        if owns is not None:
            created_edge = await self._apply_edge_handle(owns)
        return [int(created_node), int(created_edge)]

    async def _apply_edge(self, upsert: EdgeUpsert) -> List[int]:
        return [0, int(await self._apply_edge_handle(upsert))]

    async def _apply_edge_handle(self, upsert: EdgeUpsert) -> bool:
        handle = await self.store.upsert_edge(upsert.edge_type, upsert.source, upsert.target)
        return handle.created
