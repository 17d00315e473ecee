"""Run every analysis step for a pull request and assemble the result."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import Path
from typing import Any

from pr_impact.breaking.detector import detect_breaking_changes
from pr_impact.config import ProjectConfig, load_config
from pr_impact.coverage.checker import check_test_coverage
from pr_impact.diff.changes import collect_changed_files
from pr_impact.docs.staleness import check_doc_staleness
from pr_impact.impact.graph import build_impact_graph
from pr_impact.imports.cache import DependencyCache
from pr_impact.imports.resolver import build_reverse_dependency_map
from pr_impact.models import (
    AnalysisOptions,
    BreakingChange,
    ChangedFile,
    DocStalenessReport,
    PRAnalysis,
    RiskAssessment,
    TestCoverageReport,
)
from pr_impact.repo.base import RepositoryAccess
from pr_impact.repo.git import GitRepository
from pr_impact.risk.calculator import (
    calculate_risk,
    validate_factor_specs,
    validate_thresholds,
)
from pr_impact.risk.factors import RiskInputs, default_factor_specs

logger = logging.getLogger("pr_impact.analyzer")

DEFAULT_HEAD = "HEAD"


async def resolve_default_base_branch(repo: RepositoryAccess) -> str:
    """'main' if it exists locally, else 'master', else 'main'."""
    return await repo.default_base_branch()


def generate_summary(
    changed_files: list[ChangedFile],
    breaking_changes: list[BreakingChange],
    test_coverage: TestCoverageReport,
    risk: RiskAssessment,
) -> str:
    additions = sum(f.additions for f in changed_files)
    deletions = sum(f.deletions for f in changed_files)
    count = len(changed_files)

    parts = [
        f"This PR changes {count} file{'' if count == 1 else 's'} "
        f"(+{additions}/-{deletions}) with a {risk.level.value} risk score of {risk.score}/100."
    ]
    if breaking_changes:
        n = len(breaking_changes)
        parts.append(
            f"Found {n} breaking change{'' if n == 1 else 's'} affecting exported APIs."
        )
    if test_coverage.gaps:
        n = len(test_coverage.gaps)
        parts.append(
            f"{n} source file{'' if n == 1 else 's'} lack{'s' if n == 1 else ''} "
            "corresponding test changes."
        )
    return " ".join(parts)


async def gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Await all in parallel; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _value(value: Any) -> Any:
    return value


async def analyze_pr(
    options: AnalysisOptions,
    repo: RepositoryAccess | None = None,
    cache: DependencyCache | None = None,
    config: ProjectConfig | None = None,
) -> PRAnalysis:
    """Analyze the change between two revisions of a repository.

    Steps:
      1. Resolve base and head revisions
      2. Verify the repository and both revisions
      3. Collect the changed files
      4. Obtain the reverse-dependency map (from `cache` when given)
      5. Run breaking-change detection, coverage and doc staleness
         concurrently, then walk the impact graph
      6. Score the risk and write the summary

    Raises the first error any step hits; no partial results.
    """
    repo_root = Path(options.repo_path).resolve()
    if repo is None:
        repo = GitRepository(repo_root)
    if config is None:
        config = load_config(repo_root)

    # Fail on a bad risk table before doing any git work
    specs = default_factor_specs(config.risk.weights)
    validate_factor_specs(specs)
    validate_thresholds(config.risk.thresholds)
    max_depth = options.max_depth if options.max_depth is not None else config.impact.max_depth

    await repo.verify_repository()
    base = options.base_branch or config.base_branch or await resolve_default_base_branch(repo)
    head = options.head_branch or DEFAULT_HEAD
    await repo.resolve_ref(base)
    await repo.resolve_ref(head)
    logger.info("Analyzing %s..%s in %s", base, head, repo_root)

    changed_files = await collect_changed_files(repo, base, head)

    if cache is not None:
        reverse_map = await cache.get(repo)
    else:
        reverse_map = await build_reverse_dependency_map(repo, config.scan.exclude_patterns)

    breaking_changes, test_coverage, doc_staleness = await gather_or_cancel(
        _value([]) if options.skip_breaking
        else detect_breaking_changes(repo, base, head, changed_files, reverse_map),
        _value(TestCoverageReport()) if options.skip_coverage
        else check_test_coverage(repo, changed_files),
        _value(DocStalenessReport()) if options.skip_docs
        else check_doc_staleness(
            repo, changed_files, base, head,
            doc_patterns=config.scan.doc_patterns,
            exclude=config.scan.exclude_patterns,
        ),
    )
    impact_graph = build_impact_graph(changed_files, reverse_map, max_depth)

    risk = calculate_risk(
        RiskInputs(
            changed_files=changed_files,
            breaking_changes=breaking_changes,
            test_coverage=test_coverage,
            doc_staleness=doc_staleness,
            impact_graph=impact_graph,
        ),
        specs,
        config.risk.thresholds,
    )

    return PRAnalysis(
        repo_path=str(repo_root),
        base_branch=base,
        head_branch=head,
        changed_files=changed_files,
        breaking_changes=breaking_changes,
        test_coverage=test_coverage,
        doc_staleness=doc_staleness,
        impact_graph=impact_graph,
        risk_score=risk,
        summary=generate_summary(changed_files, breaking_changes, test_coverage, risk),
    )
