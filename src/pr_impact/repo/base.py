"""Abstract repository access interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileChange:
    """One entry of a revision-to-revision file listing."""

    path: str
    status: str  # 'added', 'modified', 'deleted', 'renamed', 'copied'
    old_path: str | None = None  # For renames and copies
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class SearchMatch:
    """A single line matched by a content search."""

    file: str
    line: int
    match: str


class RepositoryAccess(ABC):
    """Everything the engine needs from a version-controlled repository.

    Paths are repo-relative with forward slashes. Implementations must raise
    FileNotFoundAtRevisionError (not a generic GitError) when a file is simply
    absent at a revision, and must report "no matches" from a search as an
    empty list.
    """

    root: Path

    @abstractmethod
    async def verify_repository(self) -> None:
        """Raise NotARepositoryError if the root is not a work tree."""

    @abstractmethod
    async def resolve_ref(self, ref: str) -> str:
        """Resolve a revision to a commit id, or raise RefNotFoundError."""

    @abstractmethod
    async def default_base_branch(self) -> str:
        """Return 'main' or 'master', whichever exists locally."""

    @abstractmethod
    async def diff(self, base: str, head: str, file: str | None = None) -> str:
        """Unified patch text between two revisions."""

    @abstractmethod
    async def list_changed_files(self, base: str, head: str) -> list[FileChange]:
        """Files changed between two revisions with line counts."""

    @abstractmethod
    async def read_file_at_revision(self, revision: str, path: str) -> str:
        """Content of `path` at `revision`."""

    @abstractmethod
    async def search_pattern(self, pattern: str, glob: str | None = None) -> list[SearchMatch]:
        """Search tracked files for a regex pattern."""

    @abstractmethod
    async def discover_files(
        self, patterns: list[str], ignore: list[str] | None = None
    ) -> list[str]:
        """Sorted repo-relative paths of working-tree files matching any pattern."""

    @abstractmethod
    async def read_file(self, path: str) -> str | None:
        """Working-tree content of `path`, or None if it does not exist."""
