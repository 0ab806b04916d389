"""Dependency resolution using depth-first topological sorting."""

from __future__ import annotations

from typing import Iterable, Iterator

from buildtree.errors import CycleError
from buildtree.nodes import Node

__all__ = [
    "CycleError",
    "linearize",
    "build_dependency_tree",
]


def linearize(roots: Iterable[Node]) -> list[Node]:
    """Resolve execution order for a set of root nodes and their dependencies.

    Traversal is depth-first from each root in the order given, then through
    each node's dependencies in declared order. A node is placed only after
    all of its dependencies, and nodes reachable along several paths are
    placed once. The walk keeps its own stack, so chain depth is not limited
    by the interpreter's recursion limit.

    Args:
        roots: Nodes requested by the caller

    Returns:
        List of nodes in execution order (dependencies first)

    Raises:
        CycleError: If a dependency cycle is reachable from any root
    """
    order: list[Node] = []
    placed: set[int] = set()

    for root in roots:
        if root.node_id in placed:
            continue

        # One frame per node on the current path
        stack: list[tuple[Node, Iterator[Node]]] = [(root, iter(root.deps))]
        on_path: set[int] = {root.node_id}

        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if dep.node_id in on_path:
                    path = [frame_node for frame_node, _ in stack]
                    start = next(i for i, n in enumerate(path) if n.node_id == dep.node_id)
                    raise CycleError(path[start:] + [dep])
                if dep.node_id not in placed:
                    stack.append((dep, iter(dep.deps)))
                    on_path.add(dep.node_id)
                    break
            else:
                stack.pop()
                on_path.discard(node.node_id)
                placed.add(node.node_id)
                order.append(node)

    return order


def _tree_entry(node: Node) -> dict:
    return {"name": node.name, "kind": type(node).__name__, "deps": []}


def build_dependency_tree(root: Node) -> dict:
    """Build a tree structure representing dependencies for visualization.

    Shared dependencies appear under every dependent. Cycles are cut at the
    repeated node, which is flagged with ``"cycle": True``.

    Args:
        root: Node to build the tree for

    Returns:
        Nested dictionary with "name", "kind" and "deps" keys
    """
    tree = _tree_entry(root)
    stack: list[tuple[Node, Iterator[Node], dict]] = [(root, iter(root.deps), tree)]
    on_path: set[int] = {root.node_id}

    while stack:
        node, deps, entry = stack[-1]
        for dep in deps:
            child = _tree_entry(dep)
            entry["deps"].append(child)
            if dep.node_id in on_path:
                child["cycle"] = True
                continue
            stack.append((dep, iter(dep.deps), child))
            on_path.add(dep.node_id)
            break
        else:
            stack.pop()
            on_path.discard(node.node_id)

    return tree
