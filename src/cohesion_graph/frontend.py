"""Front-end: turns Python source into class declarations for the builder."""

import ast
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import ClassNotFoundError, SourceParseError
from .models import ChildKind


STATIC_DECORATORS = {"staticmethod", "classmethod"}

FunctionDef = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def parse_source(code: str, filename: str = "<string>") -> ast.Module:
    """Parse source code, wrapping syntax errors."""
    try:
        return ast.parse(code, filename=filename)
    except SyntaxError as e:
        raise SourceParseError(filename, f"line {e.lineno}: {e.msg}") from e


def load_source(path: Union[str, Path]) -> str:
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceParseError(str(path), str(e)) from e


def select_classes(tree: ast.Module, names: Optional[Sequence[str]] = None) -> List[ast.ClassDef]:
    """
    Return the top-level class declarations of a module.

    Args:
        tree: Parsed module
        names: Optional class names to keep; every name must exist

    Raises:
        ClassNotFoundError: If a requested class is not declared
    """
    classes = [node for node in tree.body if isinstance(node, ast.ClassDef)]
    if not names:
        return classes

    by_name = {cls.name: cls for cls in classes}
    selected = []
    for name in names:
        if name not in by_name:
            raise ClassNotFoundError(name, sorted(by_name))
        selected.append(by_name[name])
    return selected


def load_classes(path: Union[str, Path], names: Optional[Sequence[str]] = None) -> List[ast.ClassDef]:
    """Read, parse and select the classes of one source file."""
    tree = parse_source(load_source(path), filename=str(path))
    return select_classes(tree, names)


def _decorator_name(decorator: ast.expr) -> Optional[str]:
    if isinstance(decorator, ast.Call):
        decorator = decorator.func
    if isinstance(decorator, ast.Name):
        return decorator.id
    if isinstance(decorator, ast.Attribute):
        return decorator.attr
    return None


def _is_classvar(annotation: ast.expr) -> bool:
    if isinstance(annotation, ast.Subscript):
        annotation = annotation.value
    if isinstance(annotation, ast.Name):
        return annotation.id == "ClassVar"
    if isinstance(annotation, ast.Attribute):
        return annotation.attr == "ClassVar"
    return False


def classify_child(node: ast.stmt, constructor_names: Iterable[str] = ("__init__",)) -> ChildKind:
    """Map a class-body statement onto the closed set of child kinds."""
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        if any(_decorator_name(d) in STATIC_DECORATORS for d in node.decorator_list):
            return ChildKind.OTHER
        if node.name in constructor_names:
            return ChildKind.CONSTRUCTOR
        return ChildKind.METHOD
    if isinstance(node, ast.AnnAssign):
        if isinstance(node.target, ast.Name) and not _is_classvar(node.annotation):
            return ChildKind.FIELD
        return ChildKind.OTHER
    if isinstance(node, ast.Assign):
        leaves = [leaf for target in node.targets for leaf in _flatten_targets(target)]
        if all(isinstance(leaf, ast.Name) for leaf in leaves):
            return ChildKind.FIELD
    return ChildKind.OTHER


def field_names(node: ast.stmt) -> List[str]:
    """Names declared by a class-level field statement."""
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        return [node.target.id]
    if isinstance(node, ast.Assign):
        return [
            leaf.id for target in node.targets for leaf in _flatten_targets(target)
            if isinstance(leaf, ast.Name)
        ]
    return []


def skipped_name(node: ast.stmt) -> Optional[Tuple[str, str]]:
    """Name and reason for an OTHER child that declares something, else None."""
    if isinstance(node, ast.ClassDef):
        return node.name, "nested class"
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        decorator = next(
            (_decorator_name(d) for d in node.decorator_list
             if _decorator_name(d) in STATIC_DECORATORS),
            "static",
        )
        return node.name, decorator
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        return node.target.id, "class variable"
    return None


def self_name(method: FunctionDef) -> Optional[str]:
    """The method's first positional parameter, conventionally ``self``."""
    positional = list(method.args.posonlyargs) + list(method.args.args)
    if not positional:
        return None
    return positional[0].arg


def _flatten_targets(target: ast.expr) -> Iterator[ast.expr]:
    if isinstance(target, (ast.Tuple, ast.List)):
        for element in target.elts:
            yield from _flatten_targets(element)
    elif isinstance(target, ast.Starred):
        yield from _flatten_targets(target.value)
    else:
        yield target


def constructor_fields(method: FunctionDef) -> List[str]:
    """Instance attributes assigned through the self-reference in a constructor."""
    receiver = self_name(method)
    if receiver is None:
        return []

    names: List[str] = []
    for node in ast.walk(method):
        if isinstance(node, ast.Assign):
            targets = node.targets
        elif isinstance(node, (ast.AnnAssign, ast.AugAssign)):
            targets = [node.target]
        else:
            continue
        for target in targets:
            for leaf in _flatten_targets(target):
                if (isinstance(leaf, ast.Attribute)
                        and isinstance(leaf.value, ast.Name)
                        and leaf.value.id == receiver
                        and leaf.attr not in names):
                    names.append(leaf.attr)
    return names
