"""Repository access: the capability the analysis engine reads from."""

from pr_impact.repo.base import FileChange, RepositoryAccess, SearchMatch
from pr_impact.repo.git import GitRepository

__all__ = ["FileChange", "GitRepository", "RepositoryAccess", "SearchMatch"]
