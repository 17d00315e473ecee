"""Map a source file to the test files that conventionally cover it.

Given ``packages/core/src/utils/parser.ts`` the candidates include::

    packages/core/src/utils/parser.test.ts
    packages/core/src/utils/__tests__/parser.test.ts
    packages/core/__tests__/utils/parser.test.ts
    test/utils/parser.test.ts
    tests/utils/parser.spec.ts

with .ts/.tsx/.js/.jsx variants and the source file's own extension.
Python sources also get ``test_<name>.py`` candidates.
"""

from __future__ import annotations

import posixpath

from pr_impact.repo.base import RepositoryAccess

TEST_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
SOURCE_ROOTS = ("src", "lib")


def _join(*parts: str) -> str:
    return posixpath.normpath(posixpath.join(*parts))


def _split_source_root(directory: str) -> tuple[str | None, str]:
    """Split a directory at its last src/ or lib/ segment.

    Returns (directory containing that segment, sub-directory below it), or
    (None, directory) when there is no such segment.
    """
    parts = [p for p in directory.split("/") if p and p != "."]
    for i in range(len(parts) - 1, -1, -1):
        if parts[i] in SOURCE_ROOTS:
            return "/".join(parts[:i]), "/".join(parts[i + 1:])
    return None, "/".join(parts)


def build_candidate_paths(source_file: str) -> list[str]:
    """All conventional test paths for `source_file`, deduplicated in order."""
    normalized = source_file.replace("\\", "/")
    directory = posixpath.dirname(normalized)
    base, ext = posixpath.splitext(posixpath.basename(normalized))
    package_root, sub_dir = _split_source_root(directory)

    extensions = list(TEST_EXTENSIONS)
    if ext and ext not in extensions:
        extensions.append(ext)

    candidates: list[str] = []
    for test_ext in extensions:
        candidates.append(_join(directory, f"{base}.test{test_ext}"))
        candidates.append(_join(directory, f"{base}.spec{test_ext}"))

        tests_dir = _join(directory, "__tests__")
        candidates.append(_join(tests_dir, f"{base}{test_ext}"))
        candidates.append(_join(tests_dir, f"{base}.test{test_ext}"))
        candidates.append(_join(tests_dir, f"{base}.spec{test_ext}"))

        if package_root is not None:
            root_tests = _join(package_root or ".", "__tests__")
            for suffix in (".test", ".spec"):
                candidates.append(_join(root_tests, f"{base}{suffix}{test_ext}"))
                if sub_dir:
                    candidates.append(_join(root_tests, sub_dir, f"{base}{suffix}{test_ext}"))

        for top_dir in ("test", "tests"):
            target = _join(top_dir, sub_dir or ".")
            candidates.append(_join(target, f"{base}{test_ext}"))
            candidates.append(_join(target, f"{base}.test{test_ext}"))
            candidates.append(_join(target, f"{base}.spec{test_ext}"))

    if ext == ".py":
        candidates.append(_join(directory, f"test_{base}.py"))
        candidates.append(_join("tests", sub_dir or ".", f"test_{base}.py"))
        candidates.append(_join("test", sub_dir or ".", f"test_{base}.py"))

    return list(dict.fromkeys(candidates))


async def map_test_files(repo: RepositoryAccess, source_file: str) -> list[str]:
    """Candidate test files for `source_file` that exist in the working tree."""
    candidates = build_candidate_paths(source_file)
    if not candidates:
        return []
    return await repo.discover_files(candidates)
