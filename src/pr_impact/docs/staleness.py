"""Find documentation that still references deleted files or removed symbols."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from pr_impact.breaking.exports import parse_exports
from pr_impact.diff.categorizer import SOURCE_EXTENSIONS
from pr_impact.exceptions import FileNotFoundAtRevisionError
from pr_impact.models import (
    ChangedFile,
    DocStalenessReport,
    FileCategory,
    FileStatus,
    StaleReference,
)
from pr_impact.repo.base import RepositoryAccess

logger = logging.getLogger("pr_impact.docs")

DEFAULT_DOC_PATTERNS = ["**/*.md", "**/*.mdx"]

# Names too common to match in plain prose
GENERIC_NAMES = frozenset({
    "index", "main", "app", "mod", "lib",
    "utils", "helpers", "types", "constants", "config",
    "common", "shared", "core", "base", "util",
    "helper", "misc", "test", "tests",
})

_PATH_EXTENSIONS = "|".join(sorted(
    {ext.lstrip(".") for ext in SOURCE_EXTENSIONS} | {"json", "md", "mdx"},
    key=len,
    reverse=True,
))


@dataclass(frozen=True)
class RemovedSymbol:
    name: str
    source_file: str
    reason: str


def is_generic_name(name: str) -> bool:
    return name.lower() in GENERIC_NAMES


def filename_stem(file_path: str) -> str:
    """File name up to its first dot."""
    return PurePosixPath(file_path.replace("\\", "/")).name.split(".", 1)[0]


def symbol_pattern(name: str) -> re.Pattern[str]:
    """Pattern deciding whether a line mentions `name`.

    Ordinary names match as whole words. Generic names only match inside a
    code span, an import/require/from clause, or a path.
    """
    word = rf"(?<![\w$]){re.escape(name)}(?![\w$])"
    if not is_generic_name(name):
        return re.compile(word)
    alternatives = [
        rf"`[^`\n]*{word}[^`\n]*`",
        rf"(?:\bfrom\s+|\brequire\s*\(\s*|\bimport\s*(?:\(\s*)?)['\"][^'\"\n]*{word}",
        rf"(?:\.\.?/|\w/){re.escape(name)}(?![\w$])",
        rf"{word}/",
        rf"{word}\.(?:{_PATH_EXTENSIONS})\b",
    ]
    return re.compile("|".join(f"(?:{a})" for a in alternatives))


async def _show_or_none(repo: RepositoryAccess, revision: str, path: str) -> str | None:
    try:
        return await repo.read_file_at_revision(revision, path)
    except FileNotFoundAtRevisionError:
        return None


def _export_names(content: str) -> list[str]:
    names = [s.name for s in parse_exports(content) if s.name != "default"]
    return list(dict.fromkeys(names))


async def collect_removed_symbols(
    repo: RepositoryAccess, changed_files: list[ChangedFile], base: str, head: str
) -> list[RemovedSymbol]:
    """Names that no longer exist after the change, with the file that lost them."""

    async def for_file(file: ChangedFile) -> list[RemovedSymbol]:
        if file.status == FileStatus.DELETED:
            removed = [RemovedSymbol(
                filename_stem(file.path),
                file.path,
                f"referenced file {file.path} was deleted",
            )]
            base_content = await _show_or_none(repo, base, file.path)
            if base_content is not None:
                removed.extend(
                    RemovedSymbol(name, file.path, f"referenced symbol was removed from {file.path}")
                    for name in _export_names(base_content)
                )
            return removed

        if file.status == FileStatus.MODIFIED:
            base_content, head_content = await asyncio.gather(
                _show_or_none(repo, base, file.path),
                _show_or_none(repo, head, file.path),
            )
            if base_content is None or head_content is None:
                return []
            still_exported = set(_export_names(head_content))
            return [
                RemovedSymbol(name, file.path, f"referenced symbol was removed from {file.path}")
                for name in _export_names(base_content)
                if name not in still_exported
            ]
        return []

    sources = sorted(
        (f for f in changed_files if f.category == FileCategory.SOURCE),
        key=lambda f: f.path,
    )
    per_file = await asyncio.gather(*(for_file(f) for f in sources))
    return [sym for symbols in per_file for sym in symbols if sym.name]


async def _read_doc(repo: RepositoryAccess, path: str, head: str) -> str | None:
    content = await repo.read_file(path)
    if content is not None:
        return content
    content = await _show_or_none(repo, head, path)
    if content is None:
        logger.debug("Skipping unreadable doc file %s", path)
    return content


def scan_lines(
    doc_file: str,
    content: str,
    deleted_paths: list[str],
    renamed_paths: list[tuple[str, str]],
    symbols: list[tuple[RemovedSymbol, re.Pattern[str]]],
) -> list[StaleReference]:
    """Stale references in one document, one per (line, reference)."""
    refs: list[StaleReference] = []
    seen: set[tuple[int, str]] = set()

    def add(line_no: int, reference: str, reason: str) -> None:
        if (line_no, reference) in seen:
            return
        seen.add((line_no, reference))
        refs.append(StaleReference(
            doc_file=doc_file, line=line_no, reference=reference, reason=reason,
        ))

    for line_no, line in enumerate(content.split("\n"), start=1):
        for path in deleted_paths:
            if path in line:
                add(line_no, path, "referenced file was deleted")
        for old_path, new_path in renamed_paths:
            if old_path in line:
                add(line_no, old_path, f"referenced file was renamed to {new_path}")
        for sym, pattern in symbols:
            if pattern.search(line):
                add(line_no, sym.name, sym.reason)
    return refs


async def check_doc_staleness(
    repo: RepositoryAccess,
    changed_files: list[ChangedFile],
    base: str,
    head: str,
    doc_patterns: list[str] | None = None,
    exclude: list[str] | None = None,
) -> DocStalenessReport:
    """Scan documentation for references made stale by the change."""
    ignore = list(exclude) if exclude else ["node_modules"]
    doc_files = await repo.discover_files(doc_patterns or DEFAULT_DOC_PATTERNS, ignore)
    if not doc_files:
        return DocStalenessReport()

    deleted_paths = sorted(f.path for f in changed_files if f.status == FileStatus.DELETED)
    renamed_paths = sorted(
        (f.old_path, f.path)
        for f in changed_files
        if f.status == FileStatus.RENAMED and f.old_path
    )
    removed = await collect_removed_symbols(repo, changed_files, base, head)

    if not deleted_paths and not renamed_paths and not removed:
        return DocStalenessReport(checked_files=doc_files)

    symbols = [(sym, symbol_pattern(sym.name)) for sym in removed]
    contents = await asyncio.gather(*(_read_doc(repo, d, head) for d in doc_files))

    stale: list[StaleReference] = []
    for doc_file, content in zip(doc_files, contents):
        if content is None:
            continue
        stale.extend(scan_lines(doc_file, content, deleted_paths, renamed_paths, symbols))

    logger.debug("%d stale references in %d doc files", len(stale), len(doc_files))
    return DocStalenessReport(stale_references=stale, checked_files=doc_files)
