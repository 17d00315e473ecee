"""Working-tree file discovery with glob patterns and exclusion rules."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path, PurePosixPath

_GLOB_CHARS = set("*?[")


def is_glob(pattern: str) -> bool:
    return any(c in _GLOB_CHARS for c in pattern)


def should_exclude(path: str, patterns: list[str]) -> bool:
    """Check if a path matches any exclusion pattern."""
    path_parts = PurePosixPath(path).parts
    for pattern in patterns:
        # Check against full path
        if fnmatch.fnmatchcase(path, pattern):
            return True
        # Check against any path component
        for part in path_parts:
            if fnmatch.fnmatchcase(part, pattern):
                return True
    return False


def matches_pattern(path: str, pattern: str) -> bool:
    """Match a repo-relative path against a glob.

    `*` crosses directory separators (fnmatch semantics), and a leading `**/`
    also matches files at the repository root.
    """
    if fnmatch.fnmatchcase(path, pattern):
        return True
    return pattern.startswith("**/") and fnmatch.fnmatchcase(path, pattern[3:])


def matches_any(path: str, patterns: list[str]) -> bool:
    return any(matches_pattern(path, p) for p in patterns)


def walk_files(root: Path, patterns: list[str], ignore: list[str] | None = None) -> list[str]:
    """Collect repo-relative POSIX paths under `root` matching `patterns`.

    Patterns without glob characters are treated as exact paths and checked
    for existence directly instead of forcing a full walk.
    """
    ignore = ignore or []
    literal = [p for p in patterns if not is_glob(p)]
    globs = [p for p in patterns if is_glob(p)]

    found: set[str] = set()
    for rel in literal:
        rel = rel[2:] if rel.startswith("./") else rel
        if should_exclude(rel, ignore):
            continue
        if (root / rel).is_file():
            found.add(rel)

    if globs:
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = os.path.relpath(dirpath, root)
            rel_dir = "" if rel_dir == "." else rel_dir.replace(os.sep, "/")

            # Filter out excluded directories
            dirnames[:] = [
                d for d in dirnames
                if not should_exclude(f"{rel_dir}/{d}" if rel_dir else d, ignore)
            ]

            for filename in filenames:
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if should_exclude(rel_path, ignore):
                    continue
                if matches_any(rel_path, globs):
                    found.add(rel_path)

    return sorted(found)


def read_text(root: Path, rel_path: str) -> str | None:
    """Read a working-tree file, or None when it cannot be read.

    Missing files, directories, symlink loops and permission errors all
    count as unreadable.
    """
    full_path = root / rel_path
    try:
        return full_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
