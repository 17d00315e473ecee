"""Resolve relative imports and build the reverse-dependency map.

The map records, for every repo-relative source file, which other files import
it. Extraction is lexical: three independent patterns pick up static
`import`/`export ... from` statements, dynamic `import()` calls and
`require()` calls. Only relative specifiers (./ or ../) are resolved; package
imports never point inside the repository.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from collections.abc import Iterable

import networkx as nx

from pr_impact.repo.base import RepositoryAccess

logger = logging.getLogger("pr_impact.imports")

STATIC_IMPORT_RE = re.compile(
    r"""(?:import|export)\s+(?:[^'";]*?\s+from\s+)?['"]([^'"]+)['"]"""
)
DYNAMIC_IMPORT_RE = re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""")
REQUIRE_RE = re.compile(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)""")

RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
INDEX_FILES = tuple(f"index{ext}" for ext in RESOLVE_EXTENSIONS)
SOURCE_GLOBS = [f"**/*{ext}" for ext in RESOLVE_EXTENSIONS]

DEFAULT_EXCLUDES = ["node_modules", "dist", "build", ".git"]


def extract_import_paths(content: str) -> list[str]:
    """All import specifiers in `content`, in order of first appearance."""
    seen: dict[str, None] = {}
    for pattern in (STATIC_IMPORT_RE, DYNAMIC_IMPORT_RE, REQUIRE_RE):
        for match in pattern.finditer(content):
            seen.setdefault(match.group(1), None)
    return list(seen)


def is_relative_import(specifier: str) -> bool:
    return specifier.startswith("./") or specifier.startswith("../")


def resolve_import(importer: str, specifier: str, known_files: set[str]) -> str | None:
    """Resolve a relative specifier from `importer` against the set of known files.

    Tries the exact path, then each resolvable extension, then each index
    file of the specifier as a directory. Returns None for package imports,
    paths escaping the repository root, and specifiers with no match.
    """
    if not is_relative_import(specifier):
        return None
    base = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
    if base == ".." or base.startswith("../") or base.startswith("/"):
        return None

    candidates = [base]
    candidates.extend(base + ext for ext in RESOLVE_EXTENSIONS)
    candidates.extend(posixpath.join(base, index) for index in INDEX_FILES)
    for candidate in candidates:
        if candidate in known_files:
            return candidate
    return None


class ReverseDependencyMap:
    """Which files import which, backed by a directed graph.

    Edges point from the importer to the imported file, so the dependents of
    a file are its predecessors.
    """

    def __init__(self, graph: nx.DiGraph | None = None) -> None:
        self.graph = graph if graph is not None else nx.DiGraph()

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str]]) -> ReverseDependencyMap:
        """Build from (importer, imported) pairs."""
        graph = nx.DiGraph()
        graph.add_edges_from(edges)
        return cls(graph)

    def add_import(self, importer: str, imported: str) -> None:
        self.graph.add_edge(importer, imported)

    def dependents_of(self, path: str) -> list[str]:
        """Sorted, distinct files importing `path`."""
        if not self.graph.has_node(path):
            return []
        return sorted(self.graph.predecessors(path))

    def targets(self) -> list[str]:
        """Every file imported by at least one other file."""
        return sorted(n for n in self.graph.nodes if self.graph.in_degree(n) > 0)

    def to_dict(self) -> dict[str, list[str]]:
        return {target: self.dependents_of(target) for target in self.targets()}

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.graph.has_node(path) and self.graph.in_degree(path) > 0

    def __len__(self) -> int:
        return len(self.targets())


async def build_reverse_dependency_map(
    repo: RepositoryAccess, exclude: list[str] | None = None
) -> ReverseDependencyMap:
    """Scan every resolvable source file in the working tree."""
    ignore = list(DEFAULT_EXCLUDES)
    for pattern in exclude or []:
        if pattern not in ignore:
            ignore.append(pattern)

    files = await repo.discover_files(SOURCE_GLOBS, ignore)
    known = set(files)
    contents = await asyncio.gather(*(repo.read_file(f) for f in files))

    reverse_map = ReverseDependencyMap()
    for importer, content in zip(files, contents):
        if content is None:
            logger.debug("Skipping unreadable file %s", importer)
            continue
        for specifier in extract_import_paths(content):
            target = resolve_import(importer, specifier, known)
            if target is None:
                if is_relative_import(specifier):
                    logger.debug("Unresolved import %r in %s", specifier, importer)
                continue
            if target != importer:
                reverse_map.add_import(importer, target)

    logger.debug("Scanned %d source files, %d imported targets", len(files), len(reverse_map))
    return reverse_map


def find_consumers(
    targets: Iterable[str], reverse_map: ReverseDependencyMap
) -> dict[str, list[str]]:
    """Map each target path to the files importing it."""
    return {target: reverse_map.dependents_of(target) for target in targets}
