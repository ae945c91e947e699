"""Read-only traversal and rebuild helpers for relation trees."""

from typing import Callable, Iterator, List, Optional

from ..errors import PlanDepthError
from .relations import Relation

DEFAULT_MAX_DEPTH = 32


def walk(relation: Relation, max_depth: int = DEFAULT_MAX_DEPTH) -> Iterator[Relation]:
    """Yield nodes depth-first, parents before children.

    Missing child slots are skipped.
    """
    stack = [(relation, 1, "root")]
    while stack:
        node, level, path = stack.pop()
        _check_depth(level, max_depth, path)
        yield node
        named = node.named_children()
        index = len(named) - 1
        while index >= 0:
            name, child = named[index]
            if child is not None:
                stack.append((child, level + 1, f"{path}.{name}"))
            index -= 1


def walk_post_order(
    relation: Relation, max_depth: int = DEFAULT_MAX_DEPTH
) -> Iterator[Relation]:
    """Yield nodes depth-first, children before parents."""
    nodes: List[Relation] = []
    _collect_post_order(relation, 1, "root", max_depth, nodes)
    return iter(nodes)


def _collect_post_order(
    node: Relation, level: int, path: str, max_depth: int, nodes: List[Relation]
) -> None:
    _check_depth(level, max_depth, path)
    for name, child in node.named_children():
        if child is not None:
            _collect_post_order(child, level + 1, f"{path}.{name}", max_depth, nodes)
    nodes.append(node)


def depth(relation: Relation, max_depth: int = DEFAULT_MAX_DEPTH) -> int:
    """Return the number of nodes on the longest root-to-leaf path."""
    deepest = 0
    stack = [(relation, 1, "root")]
    while stack:
        node, level, path = stack.pop()
        _check_depth(level, max_depth, path)
        if level > deepest:
            deepest = level
        for name, child in node.named_children():
            if child is not None:
                stack.append((child, level + 1, f"{path}.{name}"))
    return deepest


def transform_up(
    relation: Relation,
    rule: Callable[[Relation], Optional[Relation]],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Relation:
    """Rebuild the tree bottom-up, applying ``rule`` to every node.

    ``rule`` returns a replacement node or None to keep the node as is.
    The input tree is never modified.
    """
    return _transform(relation, rule, 1, "root", max_depth)


def _transform(
    node: Relation,
    rule: Callable[[Relation], Optional[Relation]],
    level: int,
    path: str,
    max_depth: int,
) -> Relation:
    _check_depth(level, max_depth, path)
    named = node.named_children()
    if named:
        new_children = []
        changed = False
        for name, child in named:
            if child is None:
                new_children.append(child)
                continue
            new_child = _transform(child, rule, level + 1, f"{path}.{name}", max_depth)
            if new_child is not child:
                changed = True
            new_children.append(new_child)
        if changed:
            node = node.with_children(new_children)
    replacement = rule(node)
    if replacement is None:
        return node
    return replacement


def _check_depth(level: int, max_depth: int, path: str) -> None:
    if level > max_depth:
        raise PlanDepthError(level, max_depth, path=path)
