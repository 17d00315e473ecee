"""Blast radius of a change over the reverse-dependency map."""

from __future__ import annotations

from pr_impact.imports.resolver import ReverseDependencyMap
from pr_impact.models import ChangedFile, FileCategory, ImpactEdge, ImpactGraph


def build_impact_graph(
    changed_files: list[ChangedFile],
    reverse_map: ReverseDependencyMap,
    max_depth: int = 3,
) -> ImpactGraph:
    """Find files that transitively import the changed source files.

    Walks dependents breadth-first, at most `max_depth` levels away from the
    changed files. Every dependent-to-dependency relation crossed is
    recorded as an edge, even when the dependent was already reached another
    way; each file is expanded only once.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    directly_changed = sorted({
        f.path for f in changed_files if f.category == FileCategory.SOURCE
    })
    visited = set(directly_changed)
    edges: list[ImpactEdge] = []
    frontier = list(directly_changed)

    depth = 0
    while depth < max_depth and frontier:
        next_frontier: list[str] = []
        for file_path in sorted(frontier):
            for dependent in reverse_map.dependents_of(file_path):
                edges.append(ImpactEdge(from_=dependent, to=file_path))
                if dependent not in visited:
                    visited.add(dependent)
                    next_frontier.append(dependent)
        frontier = next_frontier
        depth += 1

    return ImpactGraph(
        directly_changed=directly_changed,
        indirectly_affected=sorted(visited - set(directly_changed)),
        edges=edges,
    )
