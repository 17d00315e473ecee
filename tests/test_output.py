"""Tests for the markdown, JSON and DOT reports."""

from __future__ import annotations

import json

import pytest

from pr_impact.models import (
    BreakingChange,
    BreakingChangeType,
    ChangedFile,
    DocStalenessReport,
    FileCategory,
    FileStatus,
    ImpactEdge,
    ImpactGraph,
    PRAnalysis,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
    Severity,
    StaleReference,
    TestCoverageGap,
    TestCoverageReport,
)
from pr_impact.output import (
    format_breaking_markdown,
    format_impact_dot,
    format_json,
    format_markdown,
    to_json_data,
)
from pr_impact.output.markdown import format_number


@pytest.fixture
def analysis() -> PRAnalysis:
    return PRAnalysis(
        repo_path="/work/repo",
        base_branch="main",
        head_branch="HEAD",
        changed_files=[
            ChangedFile(
                path="src/config.ts", status=FileStatus.DELETED, deletions=12,
                language="typescript", category=FileCategory.SOURCE,
            ),
            ChangedFile(
                path="src/loader.ts", status=FileStatus.RENAMED, old_path="src/load.ts",
                additions=3, deletions=1, language="typescript", category=FileCategory.SOURCE,
            ),
        ],
        breaking_changes=[
            BreakingChange(
                file_path="src/config.ts",
                symbol_name="parseConfig",
                type=BreakingChangeType.REMOVED_EXPORT,
                before="function parseConfig (path: string)",
                severity=Severity.HIGH,
                consumers=["src/app.ts"],
            ),
        ],
        test_coverage=TestCoverageReport(
            changed_source_files=2,
            source_files_with_test_changes=0,
            coverage_ratio=0.0,
            gaps=[TestCoverageGap(
                source_file="src/loader.ts",
                expected_test_files=["src/loader.test.ts"],
                test_file_exists=True,
            )],
        ),
        doc_staleness=DocStalenessReport(
            stale_references=[StaleReference(
                doc_file="docs/guide.md", line=3, reference="parseConfig",
                reason="referenced symbol was removed from src/config.ts",
            )],
            checked_files=["docs/guide.md"],
        ),
        impact_graph=ImpactGraph(
            directly_changed=["src/config.ts", "src/loader.ts"],
            indirectly_affected=["src/app.ts"],
            edges=[ImpactEdge(from_="src/app.ts", to="src/config.ts")],
        ),
        risk_score=RiskAssessment(
            score=56,
            level=RiskLevel.HIGH,
            factors=[RiskFactor(
                name="Breaking changes", score=100, weight=0.3,
                description="1 breaking change(s) detected.",
            ), RiskFactor(
                name="Untested changes", score=100 / 3, weight=0.25,
            )],
        ),
        summary="This PR changes 2 files (+3/-13) with a high risk score of 56/100.",
    )


class TestMarkdown:
    def test_sections(self, analysis: PRAnalysis):
        md = format_markdown(analysis)
        assert md.startswith("# PR Impact Analysis")
        for heading in [
            "## Risk Score: 56/100 (high)",
            "## Summary",
            "## Changed Files (2)",
            "## Breaking Changes (1)",
            "## Test Coverage",
            "## Documentation Staleness",
            "## Impact Graph",
        ]:
            assert heading in md

    def test_tables(self, analysis: PRAnalysis):
        md = format_markdown(analysis)
        assert "| Breaking changes | 100 | 0.3 |" in md
        assert "| Untested changes | 33.3 | 0.25 |" in md
        assert "| src/load.ts → src/loader.ts | renamed | +3/-1 | source |" in md
        assert "| parseConfig | removed export | high | src/config.ts |" in md

    def test_details(self, analysis: PRAnalysis):
        md = format_markdown(analysis)
        assert "- **Coverage ratio:** 0%" in md
        assert "- **src/loader.ts**: test file exists but was not changed" in md
        assert (
            "- **docs/guide.md** (line 3): `parseConfig`: "
            "referenced symbol was removed from src/config.ts"
        ) in md
        assert "- src/app.ts → src/config.ts (`imports`)" in md
        assert "- **Indirectly affected:** 1 file" in md

    def test_empty_analysis(self):
        md = format_markdown(PRAnalysis(
            repo_path="/r", base_branch="main", head_branch="HEAD",
            risk_score=RiskAssessment(score=0, level=RiskLevel.LOW),
        ))
        assert "No files changed." in md
        assert "No breaking changes detected." in md
        assert "No stale references found." in md
        assert "- **Coverage ratio:** 100%" in md

    def test_breaking_only(self, analysis: PRAnalysis):
        md = format_breaking_markdown(analysis.breaking_changes)
        assert "Found **1** breaking change." in md
        assert "| src/config.ts | parseConfig | removed export | high | src/app.ts |" in md

    def test_format_number(self):
        assert format_number(40.0) == "40"
        assert format_number(33.3333) == "33.3"
        assert format_number(12.04) == "12"


class TestJson:
    def test_camel_case_keys(self, analysis: PRAnalysis):
        data = json.loads(format_json(analysis))
        assert data["repoPath"] == "/work/repo"
        assert data["riskScore"]["level"] == "high"
        assert data["changedFiles"][1]["oldPath"] == "src/load.ts"
        assert data["testCoverage"]["gaps"][0]["testFileExists"] is True
        assert data["impactGraph"]["edges"] == [
            {"from": "src/app.ts", "to": "src/config.ts", "type": "imports"}
        ]

    def test_round_trip(self, analysis: PRAnalysis):
        restored = PRAnalysis.model_validate(to_json_data(analysis))
        assert restored == analysis


class TestDot:
    def test_nodes_and_edges(self, analysis: PRAnalysis):
        dot = format_impact_dot(analysis.impact_graph)
        assert dot.startswith("digraph impact {")
        assert '"src/config.ts" [fillcolor="#ff6b6b", fontcolor="white"];' in dot
        assert '"src/app.ts" [fillcolor="#ffd93d"];' in dot
        assert '"src/app.ts" -> "src/config.ts" [label="imports"];' in dot
        assert dot.rstrip().endswith("}")
