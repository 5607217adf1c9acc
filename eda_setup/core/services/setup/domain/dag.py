"""
L1 Domain — Stage dependency graph utilities (pure).

Validation, stable topological ordering, readiness and
transitive-dependent lookup. Operates on ``name → depends_on``
mappings so it never needs the Stage objects themselves.
No I/O, no subprocess.
"""

from __future__ import annotations

from typing import Mapping, Sequence


def validate_dag(graph: Mapping[str, Sequence[str]], names: Sequence[str]) -> list[str]:
    """Validate the stage dependency DAG.

    Checks for:
    - Duplicate stage names
    - References to unknown stages
    - Cycles (Kahn's algorithm)

    Args:
        graph: ``name → depends_on`` for every stage.
        names: Stage names in declaration order (may contain duplicates,
            which ``graph`` cannot represent).

    Returns:
        List of error strings (empty = valid).
    """
    errors: list[str] = []

    seen: set[str] = set()
    for name in names:
        if name in seen:
            errors.append(f"Duplicate stage name: {name}")
        seen.add(name)

    for name, deps in graph.items():
        for dep in deps:
            if dep not in graph:
                errors.append(f"Stage '{name}' depends on unknown stage '{dep}'")
            elif dep == name:
                errors.append(f"Stage '{name}' depends on itself")

    if errors:
        return errors

    if len(topological_order(graph, names)) < len(graph):
        errors.append("Dependency cycle detected between stages")

    return errors


def topological_order(graph: Mapping[str, Sequence[str]], names: Sequence[str]) -> list[str]:
    """Kahn's algorithm with declaration order as the tie-breaker.

    Stages caught in a cycle are left out of the result.
    """
    position = {name: i for i, name in reversed(list(enumerate(names)))}
    in_degree: dict[str, int] = {name: len(set(deps)) for name, deps in graph.items()}
    # dep → stages that depend on it
    adj: dict[str, list[str]] = {name: [] for name in graph}
    for name, deps in graph.items():
        for dep in set(deps):
            if dep in adj:
                adj[dep].append(name)

    ready = sorted((n for n, d in in_degree.items() if d == 0), key=position.__getitem__)
    order: list[str] = []
    while ready:
        node = ready.pop(0)
        order.append(node)
        for successor in adj[node]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                ready.append(successor)
        ready.sort(key=position.__getitem__)
    return order


def ready_stages(
    graph: Mapping[str, Sequence[str]],
    order: Sequence[str],
    completed: set[str],
    started: set[str],
) -> list[str]:
    """Stages not yet started whose dependencies have all completed.

    Args:
        graph: ``name → depends_on``.
        order: Topological order to preserve in the result.
        completed: Names in ``done`` or ``skipped``.
        started: Names that already left ``pending``.
    """
    return [
        name for name in order
        if name not in started and all(dep in completed for dep in graph[name])
    ]


def transitive_dependents(graph: Mapping[str, Sequence[str]], root: str) -> set[str]:
    """All stages that depend on ``root`` directly or indirectly."""
    found: set[str] = set()
    frontier = [root]
    while frontier:
        current = frontier.pop()
        for name, deps in graph.items():
            if current in deps and name not in found:
                found.add(name)
                frontier.append(name)
    return found
