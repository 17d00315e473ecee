"""Check whether changed source files come with changed tests."""

from __future__ import annotations

import asyncio
import logging

from pr_impact.coverage.mapper import build_candidate_paths, map_test_files
from pr_impact.models import (
    ChangedFile,
    FileCategory,
    FileStatus,
    TestCoverageGap,
    TestCoverageReport,
)
from pr_impact.repo.base import RepositoryAccess

logger = logging.getLogger("pr_impact.coverage")


async def check_test_coverage(
    repo: RepositoryAccess, changed_files: list[ChangedFile]
) -> TestCoverageReport:
    """Report the changed source files whose tests were not touched.

    A source file is covered when one of its existing conventional test files
    is also part of the change. With no changed source files the ratio is 1.0.
    """
    sources = sorted(
        (f for f in changed_files if f.category == FileCategory.SOURCE),
        key=lambda f: f.path,
    )
    if not sources:
        return TestCoverageReport()

    changed_paths = {f.path for f in changed_files}
    present_in_change = {f.path for f in changed_files if f.status != FileStatus.DELETED}

    on_disk = await asyncio.gather(*(map_test_files(repo, f.path) for f in sources))

    covered = 0
    gaps: list[TestCoverageGap] = []
    for source, found in zip(sources, on_disk):
        candidates = build_candidate_paths(source.path)
        existing = sorted(set(found) | {c for c in candidates if c in present_in_change})
        if any(path in changed_paths for path in existing):
            covered += 1
            continue
        gaps.append(TestCoverageGap(
            source_file=source.path,
            expected_test_files=existing if existing else candidates,
            test_file_exists=bool(existing),
            test_file_changed=False,
        ))

    logger.debug("%d of %d changed source files have test changes", covered, len(sources))
    return TestCoverageReport(
        changed_source_files=len(sources),
        source_files_with_test_changes=covered,
        coverage_ratio=covered / len(sources),
        gaps=gaps,
    )
