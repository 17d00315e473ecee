"""Markdown report for a PR analysis.

Produces a GitHub-flavored markdown document suitable for a PR comment or a
file artifact: risk score with factor table, summary, changed files,
breaking changes, test coverage, doc staleness and the impact graph.
"""

from __future__ import annotations

from pr_impact.models import BreakingChange, BreakingChangeType, PRAnalysis

_BREAKING_LABELS = {
    BreakingChangeType.REMOVED_EXPORT: "removed export",
    BreakingChangeType.CHANGED_SIGNATURE: "changed signature",
    BreakingChangeType.CHANGED_TYPE: "changed type",
    BreakingChangeType.RENAMED_EXPORT: "renamed export",
}


def format_number(value: float) -> str:
    """Render 40.0 as '40' and 33.333 as '33.3'."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}".rstrip("0").rstrip(".")


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_markdown(analysis: PRAnalysis) -> str:
    """Render the full analysis as markdown."""
    sections: list[str] = []

    # Header
    sections.append("# PR Impact Analysis")
    sections.append("")
    sections.append(f"**Repository:** {analysis.repo_path}")
    sections.append(f"**Comparing:** `{analysis.base_branch}` ← `{analysis.head_branch}`")

    # Risk score
    risk = analysis.risk_score
    sections.append("")
    sections.append(f"## Risk Score: {risk.score}/100 ({risk.level.value})")
    sections.append("")
    if risk.factors:
        sections.append("| Factor | Score | Weight |")
        sections.append("|--------|------:|-------:|")
        for factor in risk.factors:
            sections.append(
                f"| {factor.name} | {format_number(factor.score)} | {factor.weight:g} |"
            )
    else:
        sections.append("No risk factors identified.")

    # Summary
    sections.append("")
    sections.append("## Summary")
    sections.append("")
    sections.append(analysis.summary)

    # Changed files
    sections.append("")
    sections.append(f"## Changed Files ({len(analysis.changed_files)})")
    sections.append("")
    if analysis.changed_files:
        sections.append("| File | Status | +/- | Category |")
        sections.append("|------|--------|-----|----------|")
        for f in analysis.changed_files:
            path = f"{f.old_path} → {f.path}" if f.old_path else f.path
            sections.append(
                f"| {path} | {f.status.value} | +{f.additions}/-{f.deletions} | {f.category.value} |"
            )
    else:
        sections.append("No files changed.")

    # Breaking changes
    sections.append("")
    sections.append(f"## Breaking Changes ({len(analysis.breaking_changes)})")
    sections.append("")
    if analysis.breaking_changes:
        sections.append("| Symbol | Type | Severity | File |")
        sections.append("|--------|------|----------|------|")
        for bc in analysis.breaking_changes:
            sections.append(
                f"| {bc.symbol_name} | {_BREAKING_LABELS[bc.type]} | "
                f"{bc.severity.value} | {bc.file_path} |"
            )
        with_consumers = [bc for bc in analysis.breaking_changes if bc.consumers]
        if with_consumers:
            sections.append("")
            sections.append("### Affected Consumers")
            sections.append("")
            for bc in with_consumers:
                sections.append(f"- `{bc.symbol_name}` ({bc.file_path})")
                for consumer in bc.consumers:
                    sections.append(f"  - {consumer}")
    else:
        sections.append("No breaking changes detected.")

    # Test coverage
    coverage = analysis.test_coverage
    sections.append("")
    sections.append("## Test Coverage")
    sections.append("")
    sections.append(f"- **Changed source files:** {coverage.changed_source_files}")
    sections.append(f"- **Files with test changes:** {coverage.source_files_with_test_changes}")
    sections.append(f"- **Coverage ratio:** {round(coverage.coverage_ratio * 100)}%")
    if coverage.gaps:
        sections.append("")
        sections.append("### Gaps")
        sections.append("")
        for gap in coverage.gaps:
            status = (
                "test file exists but was not changed"
                if gap.test_file_exists
                else "no test file found"
            )
            sections.append(f"- **{gap.source_file}**: {status}")
            for test_file in gap.expected_test_files:
                sections.append(f"  - {test_file}")

    # Documentation staleness
    sections.append("")
    sections.append("## Documentation Staleness")
    sections.append("")
    stale = analysis.doc_staleness.stale_references
    if stale:
        for ref in stale:
            sections.append(
                f"- **{ref.doc_file}** (line {ref.line}): `{ref.reference}`: {ref.reason}"
            )
    else:
        sections.append("No stale references found.")

    # Impact graph
    graph = analysis.impact_graph
    sections.append("")
    sections.append("## Impact Graph")
    sections.append("")
    sections.append(f"- **Directly changed:** {_plural(len(graph.directly_changed), 'file')}")
    sections.append(f"- **Indirectly affected:** {_plural(len(graph.indirectly_affected), 'file')}")
    if graph.edges:
        sections.append("")
        sections.append("### Dependency Edges")
        sections.append("")
        for edge in graph.edges:
            sections.append(f"- {edge.from_} → {edge.to} (`{edge.type}`)")

    sections.append("")
    return "\n".join(sections)


def format_breaking_markdown(changes: list[BreakingChange]) -> str:
    """Standalone markdown table of breaking changes with their consumers."""
    lines = [
        "# Breaking Changes",
        "",
        f"Found **{len(changes)}** breaking change{'' if len(changes) == 1 else 's'}.",
        "",
        "| File | Symbol | Type | Severity | Consumers |",
        "|------|--------|------|----------|-----------|",
    ]
    for bc in changes:
        consumers = ", ".join(bc.consumers) if bc.consumers else "none"
        lines.append(
            f"| {bc.file_path} | {bc.symbol_name} | {_BREAKING_LABELS[bc.type]} | "
            f"{bc.severity.value} | {consumers} |"
        )
    return "\n".join(lines)
