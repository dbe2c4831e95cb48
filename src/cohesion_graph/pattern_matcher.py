"""
Structural pattern matching over Python syntax trees.

A pattern is an ordered sequence of node predicates. A match is a chain of
nodes ``(n0, n1, ..., nk-1)`` where ``n0`` satisfies the first predicate and
every ``n(i+1)`` is a direct child of ``n(i)`` satisfying predicate ``i+1``.
Element 0 is the target node (for example the ``self.x`` attribute access)
and the last element is the innermost operand that anchors it (the ``self``
name).

The search visits every node kind, including nested function and lambda
bodies, comprehensions and control-flow blocks, and keeps searching after a
match, so each distinct access expression yields exactly one match.
"""

import ast
from dataclasses import dataclass
from typing import Callable, Iterator, List, Sequence, Tuple, Type


Predicate = Callable[[ast.AST], bool]
Match = Tuple[ast.AST, ...]


@dataclass(frozen=True)
class StructuralPattern:
    """An ordered, non-empty sequence of node predicates."""
    steps: Tuple[Predicate, ...]
    name: str = "pattern"

    def __post_init__(self):
        if not self.steps:
            raise ValueError("A structural pattern needs at least one step")

    def __len__(self) -> int:
        return len(self.steps)


def node_kind(*node_types: Type[ast.AST]) -> Predicate:
    """Predicate matching any of the given AST node classes."""
    def predicate(node: ast.AST) -> bool:
        return isinstance(node, node_types)
    return predicate


def self_reference(name: str = "self") -> Predicate:
    """Predicate matching a bare name that denotes the enclosing instance."""
    def predicate(node: ast.AST) -> bool:
        return isinstance(node, ast.Name) and node.id == name
    return predicate


def self_access_pattern(self_name: str = "self") -> StructuralPattern:
    """``<self_name>.<member>`` in any context: load, store, delete or call."""
    return StructuralPattern(
        steps=(node_kind(ast.Attribute), self_reference(self_name)),
        name=f"{self_name}-access",
    )


def _chains(node: ast.AST, steps: Sequence[Predicate]) -> Iterator[Match]:
    if not steps[0](node):
        return
    if len(steps) == 1:
        yield (node,)
        return
    for child in ast.iter_child_nodes(node):
        for rest in _chains(child, steps[1:]):
            yield (node,) + rest


def _search(start: ast.AST, steps: Sequence[Predicate], inspect_start: bool) -> Iterator[Match]:
    # Pre-order, children pushed in reverse so they pop in source order.
    stack: List[Tuple[ast.AST, bool]] = [(start, inspect_start)]
    while stack:
        node, inspect = stack.pop()
        if inspect:
            yield from _chains(node, steps)
        children = list(ast.iter_child_nodes(node))
        stack.extend((child, True) for child in reversed(children))


def find_matches(root: ast.AST, pattern: StructuralPattern) -> List[Match]:
    """Return every match found in ``root`` or any of its descendants."""
    return list(_search(root, pattern.steps, inspect_start=True))


def find_matches_below(node: ast.AST, pattern: StructuralPattern) -> List[Match]:
    """Continue a search from the children of an already inspected node."""
    return list(_search(node, pattern.steps, inspect_start=False))


def iter_matches(root: ast.AST, pattern: StructuralPattern) -> Iterator[Match]:
    """Lazy variant of :func:`find_matches`."""
    return _search(root, pattern.steps, inspect_start=True)
