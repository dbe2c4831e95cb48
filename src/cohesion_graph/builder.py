"""Member graph builder: turns a class declaration into upsert intents."""

import ast
from typing import Dict, Iterable, List, Tuple

from .frontend import (
    classify_child,
    constructor_fields,
    field_names,
    self_name,
    skipped_name,
)
from .logger import get_logger
from .models import (
    ACCESSES,
    OWNS,
    ChildKind,
    ClassPlan,
    EdgeUpsert,
    MemberKind,
    NodeUpsert,
    SkippedMember,
    class_ref,
    member_ref,
)
from .pattern_matcher import find_matches, self_access_pattern


class MemberGraphBuilder:
    """
    Walks the direct children of a class declaration and plans the node and
    edge upserts describing its members and their self-accesses.

    - Fields (class-level assignments and constructor ``self.x = ...``
      targets) become ``Property`` members owned by the class.
    - Methods become ``Method`` members owned by the class; every
      ``self.<name>`` expression in their bodies becomes an ACCESSES edge.
    - Accessed names never declared in the class become ``Unresolved``
      members, written as a default so a declaration always wins.
    - Static members and nested classes are skipped and reported.

    The plan holds exactly one upsert per distinct member and per distinct
    (accessor, accessed) pair, however often an access repeats in source.
    """

    def __init__(self, constructor_names: Iterable[str] = ("__init__", "__post_init__")):
        self.constructor_names = tuple(constructor_names)
        self.logger = get_logger()

    def plan(self, class_def: ast.ClassDef) -> ClassPlan:
        declared: Dict[str, MemberKind] = {}
        accessed: List[str] = []
        pairs: List[Tuple[str, str]] = []
        skipped: List[SkippedMember] = []

        for child in class_def.body:
            kind = classify_child(child, self.constructor_names)

            if kind is ChildKind.FIELD:
                for name in field_names(child):
                    declared[name] = MemberKind.PROPERTY

            elif kind is ChildKind.CONSTRUCTOR:
                for name in constructor_fields(child):
                    declared.setdefault(name, MemberKind.PROPERTY)

            elif kind is ChildKind.METHOD:
                declared[child.name] = MemberKind.METHOD
                for name in self.extract_accesses(child):
                    if name not in accessed:
                        accessed.append(name)
                    if (child.name, name) not in pairs:
                        pairs.append((child.name, name))

            else:
                named = skipped_name(child)
                if named is not None:
                    name, reason = named
                    skipped.append(SkippedMember(name=name, reason=reason,
                                                 line_number=child.lineno))

        return self._to_plan(class_def.name, declared, accessed, pairs, skipped)

    def extract_accesses(self, method: ast.AST) -> List[str]:
        """
        Accessed member names in a method body, one per access expression,
        in source order.
        """
        receiver = self_name(method)
        if receiver is None:
            return []
        pattern = self_access_pattern(receiver)
        names = []
        for statement in method.body:
            for match in find_matches(statement, pattern):
                names.append(match[0].attr)
        return names

    def _to_plan(self, class_name: str, declared: Dict[str, MemberKind],
                 accessed: List[str], pairs: List[Tuple[str, str]],
                 skipped: List[SkippedMember]) -> ClassPlan:
        owner = class_ref(class_name)
        plan = ClassPlan(
            class_name=class_name,
            class_upsert=NodeUpsert(ref=owner),
            skipped=skipped,
        )

        for name, kind in declared.items():
            ref = member_ref(class_name, name)
            plan.member_upserts.append(NodeUpsert(ref=ref, properties={"kind": kind.value}))
            plan.owns_upserts.append(EdgeUpsert(edge_type=OWNS, source=owner, target=ref))

        for name in accessed:
            if name not in declared:
                self.logger.debug(f"{class_name}.{name} is accessed but not declared")
                plan.member_upserts.append(NodeUpsert(
                    ref=member_ref(class_name, name),
                    defaults={"kind": MemberKind.UNRESOLVED.value},
                ))

        for accessor, target in pairs:
            plan.access_upserts.append(EdgeUpsert(
                edge_type=ACCESSES,
                source=member_ref(class_name, accessor),
                target=member_ref(class_name, target),
            ))

        return plan
