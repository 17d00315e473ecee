"""Shared test fixtures for pr-impact."""

from __future__ import annotations

import re
import shutil
import subprocess
from pathlib import Path

import pytest

from pr_impact.exceptions import FileNotFoundAtRevisionError, RefNotFoundError
from pr_impact.repo.base import FileChange, RepositoryAccess, SearchMatch
from pr_impact.repo.files import matches_any, matches_pattern, should_exclude


class FakeRepository(RepositoryAccess):
    """In-memory repository.

    `files` is the working tree, `revisions` maps a revision name to its
    file contents, and `changes` is what list_changed_files returns.
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        revisions: dict[str, dict[str, str]] | None = None,
        changes: list[FileChange] | None = None,
        branches: tuple[str, ...] = ("main",),
        root: str = "/fake/repo",
    ) -> None:
        self.root = Path(root)
        self.files = dict(files or {})
        self.revisions = {rev: dict(content) for rev, content in (revisions or {}).items()}
        self.changes = list(changes or [])
        self.branches = branches
        self.discover_calls = 0

    async def verify_repository(self) -> None:
        return None

    async def resolve_ref(self, ref: str) -> str:
        if ref in self.revisions or ref in self.branches:
            return f"sha-{ref}"
        raise RefNotFoundError(ref)

    async def default_base_branch(self) -> str:
        if "main" in self.branches:
            return "main"
        if "master" in self.branches:
            return "master"
        return "main"

    async def diff(self, base: str, head: str, file: str | None = None) -> str:
        return ""

    async def list_changed_files(self, base: str, head: str) -> list[FileChange]:
        return list(self.changes)

    async def read_file_at_revision(self, revision: str, path: str) -> str:
        if revision not in self.revisions:
            raise RefNotFoundError(revision)
        try:
            return self.revisions[revision][path]
        except KeyError:
            raise FileNotFoundAtRevisionError(revision, path) from None

    async def search_pattern(self, pattern: str, glob: str | None = None) -> list[SearchMatch]:
        regex = re.compile(pattern)
        matches = []
        for path in sorted(self.files):
            if glob and not matches_pattern(path, glob):
                continue
            for line_no, line in enumerate(self.files[path].split("\n"), start=1):
                if regex.search(line):
                    matches.append(SearchMatch(file=path, line=line_no, match=line))
        return matches

    async def discover_files(
        self, patterns: list[str], ignore: list[str] | None = None
    ) -> list[str]:
        self.discover_calls += 1
        return sorted(
            path for path in self.files
            if matches_any(path, patterns) and not should_exclude(path, ignore or [])
        )

    async def read_file(self, path: str) -> str | None:
        return self.files.get(path)


def change(path: str, status: str = "modified", additions: int = 0, deletions: int = 0,
           old_path: str | None = None) -> FileChange:
    return FileChange(
        path=path, status=status, old_path=old_path, additions=additions, deletions=deletions,
    )


# =============================================================================
# Real git repositories
# =============================================================================

def git(root: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=root, check=True, capture_output=True, text=True,
    )
    return result.stdout


def write_files(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def commit_all(root: Path, message: str) -> None:
    git(root, "add", "-A")
    git(root, "commit", "-q", "-m", message)


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A git repository on branch `main` with a small TypeScript project.

    Layout at the initial commit::

        src/config.ts     exports parseConfig, imported by app.ts
        src/app.ts        imports ./config, imported by cli.ts
        src/cli.ts        imports ./app
        src/util/math.ts  no tests
        docs/guide.md     mentions `./config.ts` and parseConfig
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    git(root, "config", "user.email", "dev@example.com")
    git(root, "config", "user.name", "Dev")
    git(root, "config", "commit.gpgsign", "false")
    write_files(root, {
        "src/config.ts": (
            "export function parseConfig(path: string): Config {\n"
            "  return JSON.parse(path);\n"
            "}\n"
            "export interface Config { name: string }\n"
        ),
        "src/app.ts": "import { parseConfig } from './config';\nexport const app = parseConfig('x');\n",
        "src/cli.ts": "import { app } from './app';\nconsole.log(app);\n",
        "src/util/math.ts": "export function add(a: number, b: number): number {\n  return a + b;\n}\n",
        "docs/guide.md": "# Guide\n\nLoad settings with `./config.ts`.\n\nCall parseConfig first.\n",
        "README.md": "# Demo\n",
    })
    commit_all(root, "initial")
    return root
