"""Tests for extract-class candidate ranking."""

import math

import pytest

from src.cohesion_graph.builder import MemberGraphBuilder
from src.cohesion_graph.config import CohesionGraphConfig
from src.cohesion_graph.models import AccessEdge, CrossingEdge, MemberKind, member_ref
from src.cohesion_graph.population import GraphPopulator
from src.cohesion_graph.recommender import Recommender, describe_group, rank_groups


P, M = MemberKind.PROPERTY, MemberKind.METHOD

WORKED_KINDS = {
    "n": P, "s": P,
    "crossCall": M, "accessBoth": M, "multiply": M,
    "squared": M, "greet": M, "greetFormally": M,
}

# Greeting members in one community, arithmetic members in the other
WORKED_LABELS = {
    "greet": 1, "greetFormally": 1, "s": 1,
    "n": 0, "multiply": 0, "squared": 0, "accessBoth": 0, "crossCall": 0,
}


def edges(*pairs):
    return [AccessEdge(accessor, accessed) for accessor, accessed in pairs]


@pytest.fixture
def worked_edges(worked_accesses):
    return edges(*sorted(worked_accesses))


class TestDescribeGroup:

    def test_internal_and_crossing_edges(self, worked_edges):
        group = describe_group(1, ["s", "greet", "greetFormally"], WORKED_KINDS, worked_edges)

        assert group.members == ["greet", "greetFormally", "s"]
        assert group.internal_edges == 2
        assert group.crossing_edges == [CrossingEdge("accessBoth", "s", "incoming")]
        assert group.crossing_ratio == 0.5
        assert group.outgoing_ratio == 0

    def test_unknown_members_default_to_unresolved(self):
        group = describe_group(0, ["a", "ghost"], {"a": M}, edges(("a", "ghost")))

        assert group.kinds["ghost"] is MemberKind.UNRESOLVED
        assert group.internal_edges == 1


class TestRankGroups:

    def test_worked_scenario_ranks_greeting_group_first(self, worked_edges):
        ranked = rank_groups(WORKED_KINDS, WORKED_LABELS, worked_edges)

        assert [g.members for g in ranked] == [
            ["greet", "greetFormally", "s"],
            ["accessBoth", "crossCall", "multiply", "n", "squared"],
        ]
        first, second = ranked
        assert first.crossing_edges == [CrossingEdge("accessBoth", "s", "incoming")]
        assert second.internal_edges == 4
        assert second.crossing_edges == [CrossingEdge("accessBoth", "s", "outgoing")]

    def test_cohesive_group_outranks_group_with_many_outgoing_accesses(self):
        kinds = {"a": M, "b": M, "c": P, "x": M, "y": P, "zm": M}
        kinds.update({f"z{i}": P for i in range(1, 6)})
        labels = {"a": 0, "b": 0, "c": 0, "x": 1, "y": 1, "zm": 2}
        labels.update({f"z{i}": 2 for i in range(1, 6)})
        access = edges(("a", "c"), ("b", "c"), ("a", "b"), ("x", "y"), ("zm", "z1"),
                       *[("x", f"z{i}") for i in range(1, 6)])

        ranked = rank_groups(kinds, labels, access)
        order = [g.label for g in ranked]

        assert order.index(0) < order.index(1)
        assert order == [0, 2, 1]
        assert ranked[0].crossing_ratio == 0
        assert ranked[2].outgoing_count == 5

    def test_method_only_groups_follow_property_groups(self):
        kinds = {"p": P, "m1": M, "m2": M, "m3": M, "m4": M}
        labels = {"p": 0, "m1": 0, "m2": 1, "m3": 1, "m4": 0}
        access = edges(("m1", "p"), ("m4", "m2"), ("m2", "m3"))

        ranked = rank_groups(kinds, labels, access)

        assert [g.label for g in ranked] == [0, 1]
        assert ranked[0].has_property
        assert not ranked[1].has_property

        without = rank_groups(kinds, labels, access, include_method_only_groups=False)
        assert [g.label for g in without] == [0]

    def test_group_without_internal_edges_ranks_last(self):
        kinds = {"p": P, "q": P, "m": M, "r": P}
        labels = {"p": 0, "q": 0, "m": 1, "r": 1}
        access = edges(("m", "r"), ("m", "p"))

        ranked = rank_groups(kinds, labels, access)

        assert [g.label for g in ranked] == [1, 0]
        assert math.isinf(ranked[1].crossing_ratio)

    def test_unlabeled_and_lone_members_become_trailing_singletons(self):
        kinds = {"p": P, "m": M, "lonely": M, "alone": P}
        labels = {"p": 0, "m": 0, "alone": 3}
        access = edges(("m", "p"))

        ranked = rank_groups(kinds, labels, access)

        assert [g.members for g in ranked] == [["m", "p"], ["alone"], ["lonely"]]
        assert ranked[1].label == 3
        assert ranked[2].label is None
        assert all(g.is_singleton for g in ranked[1:])

    def test_min_group_size(self, worked_edges):
        ranked = rank_groups(WORKED_KINDS, WORKED_LABELS, worked_edges, min_group_size=4)

        assert ranked[0].members == ["accessBoth", "crossCall", "multiply", "n", "squared"]
        assert [g.members for g in ranked[1:]] == [["greet"], ["greetFormally"], ["s"]]

    def test_empty_class(self):
        assert rank_groups({}, {}, []) == []


class TestRecommender:

    @pytest.mark.asyncio
    async def test_recommend_from_store(self, store, worked_class):
        await GraphPopulator(store).populate(MemberGraphBuilder().plan(worked_class))
        for name, label in WORKED_LABELS.items():
            await store.set_properties(member_ref("Calculator", name), {"community": label})

        ranked = await Recommender().recommend(store, "Calculator")

        assert len(ranked) == 2
        assert ranked[0].members == ["greet", "greetFormally", "s"]
        assert ranked[0].kinds["s"] is MemberKind.PROPERTY
        assert ranked[0].crossing_edges == [CrossingEdge("accessBoth", "s", "incoming")]

    @pytest.mark.asyncio
    async def test_recommend_reads_configured_label_property(self, store, class_from):
        await GraphPopulator(store).populate(MemberGraphBuilder().plan(class_from('''
class Box:
    size = 0

    def grow(self):
        self.size += 1
''')))
        await store.set_properties(member_ref("Box", "size"), {"group": 0})
        await store.set_properties(member_ref("Box", "grow"), {"group": 0})

        config = CohesionGraphConfig(label_property="group")
        ranked = await Recommender(config).recommend(store, "Box")

        assert [g.members for g in ranked] == [["grow", "size"]]
        assert ranked[0].internal_edges == 1
