"""Shared fixtures for cohesion graph tests."""

import ast

import pytest

from src.cohesion_graph.store import InMemoryGraphStore


WORKED_SOURCE = '''
class Calculator:
    n: int = 0
    s: str = ""

    def crossCall(self, k):
        return self.multiply(k)

    def accessBoth(self):
        return f"{self.s}{self.n}"

    def multiply(self, k):
        return self.n * k

    def squared(self):
        return self.n ** 2

    def greet(self):
        return "Hello " + self.s

    def greetFormally(self):
        return "Dear " + self.s
'''


def _first_class(code: str) -> ast.ClassDef:
    return next(node for node in ast.parse(code).body if isinstance(node, ast.ClassDef))


@pytest.fixture
def class_from():
    """Parse source and return its first class declaration."""
    return _first_class


@pytest.fixture
def worked_source():
    return WORKED_SOURCE


@pytest.fixture
def worked_class():
    return _first_class(WORKED_SOURCE)


@pytest.fixture
def worked_accesses():
    return {
        ("accessBoth", "s"),
        ("accessBoth", "n"),
        ("multiply", "n"),
        ("squared", "n"),
        ("greet", "s"),
        ("greetFormally", "s"),
        ("crossCall", "multiply"),
    }


@pytest.fixture
def worked_members():
    return {
        "n", "s", "crossCall", "accessBoth", "multiply", "squared", "greet", "greetFormally",
    }


@pytest.fixture
def store():
    return InMemoryGraphStore()
