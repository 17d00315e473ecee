"""Collect the files changed between two revisions."""

from __future__ import annotations

import logging

from pr_impact.diff.categorizer import categorize_file, detect_language
from pr_impact.models import ChangedFile, FileStatus
from pr_impact.repo.base import FileChange, RepositoryAccess

logger = logging.getLogger("pr_impact.diff")


def to_changed_file(change: FileChange) -> ChangedFile:
    """Classify a raw file change."""
    status = FileStatus(change.status)
    return ChangedFile(
        path=change.path,
        status=status,
        old_path=change.old_path if status in (FileStatus.RENAMED, FileStatus.COPIED) else None,
        additions=change.additions,
        deletions=change.deletions,
        language=detect_language(change.path),
        category=categorize_file(change.path),
    )


async def collect_changed_files(
    repo: RepositoryAccess, base: str, head: str
) -> list[ChangedFile]:
    """List and classify every file changed between `base` and `head`, sorted by path."""
    changes = await repo.list_changed_files(base, head)
    files = sorted((to_changed_file(c) for c in changes), key=lambda f: f.path)
    logger.debug("%d changed files between %s and %s", len(files), base, head)
    return files
