"""Caller-owned cache for the reverse-dependency map."""

from __future__ import annotations

import logging
from pathlib import Path

from pr_impact.imports.resolver import ReverseDependencyMap, build_reverse_dependency_map
from pr_impact.repo.base import RepositoryAccess

logger = logging.getLogger("pr_impact.imports")


class DependencyCache:
    """Holds the reverse-dependency map of one repository at a time.

    A lookup for the same repository path returns the cached map; a different
    path triggers a fresh scan that replaces the entry. Entries never expire
    on their own; call `invalidate()` after the working tree changes.
    """

    def __init__(self, exclude: list[str] | None = None) -> None:
        self.exclude = exclude
        self._repo_path: Path | None = None
        self._map: ReverseDependencyMap | None = None

    @property
    def repo_path(self) -> Path | None:
        return self._repo_path

    async def get(self, repo: RepositoryAccess) -> ReverseDependencyMap:
        key = Path(repo.root).resolve()
        if self._map is not None and self._repo_path == key:
            logger.debug("Dependency cache hit for %s", key)
            return self._map
        logger.debug("Dependency cache miss for %s, scanning", key)
        reverse_map = await build_reverse_dependency_map(repo, self.exclude)
        self._repo_path = key
        self._map = reverse_map
        return reverse_map

    def invalidate(self) -> None:
        self._repo_path = None
        self._map = None
