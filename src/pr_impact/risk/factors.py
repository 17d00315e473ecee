"""Risk factor scorers and the default weight table.

Each scorer looks at one aspect of the analysis and returns a score in
[0, 100] with a description and supporting details. The weight applied to
each scorer lives in a separate, configurable table of RiskFactorSpec rows.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from pr_impact.exceptions import RiskConfigError
from pr_impact.models import (
    BreakingChange,
    ChangedFile,
    DocStalenessReport,
    FileCategory,
    ImpactGraph,
    Severity,
    TestCoverageReport,
)

CI_BUILD_CONFIG_PATTERNS = [
    re.compile(r"^\.github/"),
    re.compile(r"Dockerfile", re.IGNORECASE),
    re.compile(r"docker-compose", re.IGNORECASE),
    re.compile(r"webpack\.config"),
    re.compile(r"vite\.config"),
    re.compile(r"rollup\.config"),
    re.compile(r"esbuild\.config"),
    re.compile(r"turbo\.json$"),
    re.compile(r"\.gitlab-ci"),
    re.compile(r"Jenkinsfile", re.IGNORECASE),
    re.compile(r"\.circleci/"),
]

MAX_IMPACT_DETAILS = 20


@dataclass(frozen=True)
class RiskInputs:
    """Everything the scorers read."""

    changed_files: list[ChangedFile]
    breaking_changes: list[BreakingChange]
    test_coverage: TestCoverageReport
    doc_staleness: DocStalenessReport
    impact_graph: ImpactGraph


@dataclass(frozen=True)
class FactorScore:
    score: float
    description: str
    details: list[str] = field(default_factory=list)


Scorer = Callable[[RiskInputs], FactorScore]


@dataclass(frozen=True)
class RiskFactorSpec:
    """One row of the weight table."""

    key: str  # config key, e.g. "breaking_changes"
    name: str  # display name
    weight: float
    scorer: Scorer


def score_breaking_changes(inputs: RiskInputs) -> FactorScore:
    changes = inputs.breaking_changes
    if not changes:
        return FactorScore(0, "No breaking API changes detected.")

    severities = {c.severity for c in changes}
    if Severity.HIGH in severities:
        score = 100
    elif Severity.MEDIUM in severities:
        score = 60
    else:
        score = 30
    return FactorScore(
        score,
        f"{len(changes)} breaking change(s) detected.",
        [
            f'{c.type.value} of "{c.symbol_name}" in {c.file_path} ({c.severity.value})'
            for c in changes
        ],
    )


def score_untested_changes(inputs: RiskInputs) -> FactorScore:
    coverage = inputs.test_coverage
    if coverage.changed_source_files == 0:
        return FactorScore(0, "No source files changed.")

    details = [
        f"{gap.source_file}: "
        + ("test exists but not updated" if gap.test_file_exists else "no test file found")
        for gap in coverage.gaps
    ]
    return FactorScore(
        (1 - coverage.coverage_ratio) * 100,
        f"{coverage.source_files_with_test_changes}/{coverage.changed_source_files} "
        "changed source files have corresponding test changes.",
        details,
    )


def score_diff_size(inputs: RiskInputs) -> FactorScore:
    files = inputs.changed_files
    total = sum(f.additions + f.deletions for f in files)
    if total > 1000:
        score = 100
    elif total >= 500:
        score = 80
    elif total >= 100:
        score = 50
    else:
        score = 0
    return FactorScore(
        score,
        f"{total} total lines changed across {len(files)} file(s).",
    )


def score_doc_staleness(inputs: RiskInputs) -> FactorScore:
    refs = inputs.doc_staleness.stale_references
    if not refs:
        return FactorScore(0, "No stale documentation references found.")
    return FactorScore(
        min(len(refs) * 20, 100),
        f"{len(refs)} stale documentation reference(s) found.",
        [f'{r.doc_file}:{r.line} - "{r.reference}" ({r.reason})' for r in refs],
    )


def is_ci_build_config(path: str) -> bool:
    return any(p.search(path) for p in CI_BUILD_CONFIG_PATTERNS)


def score_config_changes(inputs: RiskInputs) -> FactorScore:
    config_files = [f for f in inputs.changed_files if f.category == FileCategory.CONFIG]
    if not config_files:
        return FactorScore(0, "No configuration files changed.")

    if any(is_ci_build_config(f.path) for f in config_files):
        return FactorScore(
            100,
            f"CI/build configuration changed ({len(config_files)} config file(s)).",
            [f.path for f in config_files],
        )
    return FactorScore(
        50,
        f"{len(config_files)} configuration file(s) changed.",
        [f.path for f in config_files],
    )


def score_impact_breadth(inputs: RiskInputs) -> FactorScore:
    affected = inputs.impact_graph.indirectly_affected
    if not affected:
        return FactorScore(0, "No indirectly affected files detected.")
    return FactorScore(
        min(len(affected) * 10, 100),
        f"{len(affected)} file(s) indirectly affected through import dependencies.",
        list(affected[:MAX_IMPACT_DETAILS]),
    )


# key -> (display name, scorer), in report order
FACTOR_SCORERS: dict[str, tuple[str, Scorer]] = {
    "breaking_changes": ("Breaking changes", score_breaking_changes),
    "untested_changes": ("Untested changes", score_untested_changes),
    "diff_size": ("Diff size", score_diff_size),
    "doc_staleness": ("Stale documentation", score_doc_staleness),
    "config_changes": ("Config file changes", score_config_changes),
    "impact_breadth": ("Impact breadth", score_impact_breadth),
}

DEFAULT_WEIGHTS: dict[str, float] = {
    "breaking_changes": 0.30,
    "untested_changes": 0.25,
    "diff_size": 0.15,
    "doc_staleness": 0.10,
    "config_changes": 0.10,
    "impact_breadth": 0.10,
}


def default_factor_specs(weights: dict[str, float] | None = None) -> list[RiskFactorSpec]:
    """The six standard factors, optionally re-weighted.

    Keys missing from `weights` keep their default weight.
    """
    merged = dict(DEFAULT_WEIGHTS)
    if weights:
        unknown = sorted(set(weights) - set(FACTOR_SCORERS))
        if unknown:
            raise RiskConfigError(f"Unknown risk factor(s): {', '.join(unknown)}")
        merged.update(weights)
    specs = []
    for key, weight in merged.items():
        name, scorer = FACTOR_SCORERS[key]
        specs.append(RiskFactorSpec(key=key, name=name, weight=weight, scorer=scorer))
    return specs
