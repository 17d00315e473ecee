"""Parsers for raw git command output."""

from __future__ import annotations

from pr_impact.repo.base import FileChange, SearchMatch

_STATUS_CODES = {
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "M": "modified",
}


def parse_name_status(output: str) -> list[tuple[str, str, str | None]]:
    """Parse `git diff --name-status -z` output.

    Returns (status, path, old_path) tuples in git's order. Renames and copies
    carry a similarity score (R087) and two paths: old then new.
    """
    tokens = output.split("\0")
    entries: list[tuple[str, str, str | None]] = []
    i = 0
    while i < len(tokens):
        code = tokens[i].strip()
        if not code:
            i += 1
            continue
        letter = code[0]
        status = _STATUS_CODES.get(letter, "modified")
        if letter in ("R", "C"):
            if i + 2 >= len(tokens):
                break
            old_path, new_path = tokens[i + 1], tokens[i + 2]
            entries.append((status, new_path, old_path))
            i += 3
        else:
            if i + 1 >= len(tokens):
                break
            entries.append((status, tokens[i + 1], None))
            i += 2
    return entries


def parse_numstat(output: str) -> dict[str, tuple[int, int]]:
    """Parse `git diff --numstat -z` output into {new_path: (added, deleted)}.

    Binary files report "-" for both counts; they count as zero lines.
    """
    tokens = output.split("\0")
    stats: dict[str, tuple[int, int]] = {}
    i = 0
    while i < len(tokens):
        record = tokens[i]
        if not record.strip():
            i += 1
            continue
        parts = record.split("\t", 2)
        if len(parts) < 3:
            i += 1
            continue
        added, deleted, path = parts
        if path == "":
            # Rename/copy: the two paths follow as separate tokens
            if i + 2 >= len(tokens):
                break
            path = tokens[i + 2]
            i += 3
        else:
            i += 1
        stats[path] = (_count(added), _count(deleted))
    return stats


def _count(value: str) -> int:
    value = value.strip()
    return int(value) if value.isdigit() else 0


def merge_changes(
    name_status: list[tuple[str, str, str | None]],
    numstat: dict[str, tuple[int, int]],
) -> list[FileChange]:
    """Combine a status listing with per-file line counts."""
    changes = []
    for status, path, old_path in name_status:
        added, deleted = numstat.get(path, (0, 0))
        changes.append(FileChange(
            path=path,
            status=status,
            old_path=old_path,
            additions=added,
            deletions=deleted,
        ))
    return changes


def parse_grep_output(output: str) -> list[SearchMatch]:
    """Parse `git grep -n` output lines of the form file:line:content."""
    matches = []
    for line in output.splitlines():
        if not line:
            continue
        first = line.find(":")
        if first == -1:
            continue
        second = line.find(":", first + 1)
        if second == -1:
            continue
        line_no = line[first + 1:second]
        if not line_no.isdigit():
            continue
        matches.append(SearchMatch(
            file=line[:first],
            line=int(line_no),
            match=line[second + 1:],
        ))
    return matches
