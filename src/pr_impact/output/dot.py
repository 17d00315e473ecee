"""Graphviz DOT rendering of an impact graph."""

from __future__ import annotations

from pr_impact.models import ImpactGraph


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_impact_dot(graph: ImpactGraph) -> str:
    """Changed files in red, affected files in yellow, edges labelled by relation."""
    lines = [
        "digraph impact {",
        "  rankdir=LR;",
        "  node [shape=box, style=filled];",
        "",
    ]
    for path in graph.directly_changed:
        lines.append(f'  {_quote(path)} [fillcolor="#ff6b6b", fontcolor="white"];')
    for path in graph.indirectly_affected:
        lines.append(f'  {_quote(path)} [fillcolor="#ffd93d"];')
    lines.append("")
    for edge in graph.edges:
        lines.append(f"  {_quote(edge.from_)} -> {_quote(edge.to)} [label={_quote(edge.type)}];")
    lines.append("}")
    return "\n".join(lines)
