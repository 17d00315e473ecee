"""Detect removed, renamed and changed exports between two revisions."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from pathlib import PurePosixPath

from pr_impact.breaking.exports import (
    ExportDiff,
    ExportedSymbol,
    body_members,
    diff_exports,
    parse_exports,
)
from pr_impact.breaking.signatures import diff_signatures
from pr_impact.exceptions import FileNotFoundAtRevisionError
from pr_impact.imports.resolver import ReverseDependencyMap
from pr_impact.models import (
    BreakingChange,
    BreakingChangeType,
    ChangedFile,
    FileCategory,
    FileStatus,
    Severity,
)
from pr_impact.repo.base import RepositoryAccess

logger = logging.getLogger("pr_impact.breaking")

ANALYZABLE_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs"})

TYPE_LIKE_KINDS = frozenset({"type", "interface", "enum"})


def is_analyzable(file: ChangedFile) -> bool:
    return (
        file.category == FileCategory.SOURCE
        and PurePosixPath(file.path).suffix.lower() in ANALYZABLE_EXTENSIONS
        and file.status in (FileStatus.MODIFIED, FileStatus.DELETED)
    )


def pair_renames(
    removed: list[ExportedSymbol], added: list[ExportedSymbol]
) -> dict[str, ExportedSymbol]:
    """Pair removed exports with added ones that look like the same symbol renamed.

    A pair needs the same kind and an identical, non-empty shape, and it must
    be the only candidate on both sides. Returns {removed key: added symbol}.
    """
    removed_shapes = Counter((s.kind, s.shape) for s in removed if s.shape)
    added_shapes = Counter((s.kind, s.shape) for s in added if s.shape)
    added_by_shape = {(s.kind, s.shape): s for s in added if s.shape}

    renames = {}
    for sym in removed:
        shape = (sym.kind, sym.shape)
        if not sym.shape:
            continue
        if removed_shapes[shape] == 1 and added_shapes.get(shape) == 1:
            renames[sym.key] = added_by_shape[shape]
    return renames


def classify_modification(
    before: ExportedSymbol, after: ExportedSymbol
) -> tuple[BreakingChangeType, Severity] | None:
    """Type and severity of a change to an export present in both revisions."""
    if before.kind != after.kind:
        return BreakingChangeType.CHANGED_TYPE, Severity.MEDIUM

    if before.kind in TYPE_LIKE_KINDS:
        if (before.body or "") == (after.body or ""):
            return None
        old_members = body_members(before.body or "")
        new_members = set(body_members(after.body or ""))
        if all(m in new_members for m in old_members):
            return BreakingChangeType.CHANGED_TYPE, Severity.LOW
        return BreakingChangeType.CHANGED_TYPE, Severity.MEDIUM

    sig_diff = diff_signatures(before.signature, after.signature)
    if not sig_diff.changed:
        return None
    return BreakingChangeType.CHANGED_SIGNATURE, sig_diff.severity


def changes_from_export_diff(
    file_path: str,
    diff: ExportDiff,
    base_order: list[ExportedSymbol],
    consumers: list[str],
) -> list[BreakingChange]:
    """Turn an export diff into breaking changes, in base declaration order."""
    renames = pair_renames(diff.removed, diff.added)
    removed_keys = {s.key for s in diff.removed}
    modified = {before.key: (before, after) for before, after in diff.modified}

    changes: list[BreakingChange] = []
    for sym in base_order:
        if sym.key in removed_keys:
            renamed_to = renames.get(sym.key)
            if renamed_to is not None:
                changes.append(BreakingChange(
                    file_path=file_path,
                    symbol_name=sym.name,
                    type=BreakingChangeType.RENAMED_EXPORT,
                    before=sym.describe(),
                    after=renamed_to.describe(),
                    severity=Severity.HIGH,
                    consumers=consumers,
                ))
            else:
                changes.append(BreakingChange(
                    file_path=file_path,
                    symbol_name=sym.name,
                    type=BreakingChangeType.REMOVED_EXPORT,
                    before=sym.describe(),
                    after=None,
                    severity=Severity.HIGH,
                    consumers=consumers,
                ))
        elif sym.key in modified:
            before, after = modified[sym.key]
            classified = classify_modification(before, after)
            if classified is None:
                continue
            change_type, severity = classified
            changes.append(BreakingChange(
                file_path=file_path,
                symbol_name=before.name,
                type=change_type,
                before=before.describe(),
                after=after.describe(),
                severity=severity,
                consumers=consumers,
            ))
    return changes


async def _read_or_none(repo: RepositoryAccess, revision: str, path: str) -> str | None:
    try:
        return await repo.read_file_at_revision(revision, path)
    except FileNotFoundAtRevisionError:
        logger.debug("%s does not exist at %s, skipping", path, revision)
        return None


async def _detect_for_file(
    repo: RepositoryAccess,
    base: str,
    head: str,
    file: ChangedFile,
    reverse_map: ReverseDependencyMap,
) -> list[BreakingChange]:
    base_content = await _read_or_none(repo, base, file.path)
    if base_content is None:
        return []

    consumers = reverse_map.dependents_of(file.path)
    base_exports = parse_exports(base_content)

    if file.status == FileStatus.DELETED:
        return [
            BreakingChange(
                file_path=file.path,
                symbol_name=sym.name,
                type=BreakingChangeType.REMOVED_EXPORT,
                before=sym.describe(),
                after=None,
                severity=Severity.HIGH,
                consumers=consumers,
            )
            for sym in base_exports
        ]

    head_content = await _read_or_none(repo, head, file.path)
    if head_content is None:
        return []
    diff = diff_exports(base_content, head_content)
    return changes_from_export_diff(file.path, diff, base_exports, consumers)


async def detect_breaking_changes(
    repo: RepositoryAccess,
    base: str,
    head: str,
    changed_files: list[ChangedFile],
    reverse_map: ReverseDependencyMap,
) -> list[BreakingChange]:
    """Breaking changes across all analyzable changed files, ordered by file path."""
    files = sorted((f for f in changed_files if is_analyzable(f)), key=lambda f: f.path)
    per_file = await asyncio.gather(
        *(_detect_for_file(repo, base, head, f, reverse_map) for f in files)
    )
    changes = [change for file_changes in per_file for change in file_changes]
    logger.debug("%d breaking changes in %d analyzed files", len(changes), len(files))
    return changes
