"""Git-backed repository access.

Every git invocation runs as an asyncio subprocess and every file-system walk
runs in a worker thread, so the analyses sharing one GitRepository can be
awaited concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pr_impact.exceptions import (
    FileNotFoundAtRevisionError,
    GitCommandError,
    GitError,
    NotARepositoryError,
    RefNotFoundError,
)
from pr_impact.repo.base import FileChange, RepositoryAccess, SearchMatch
from pr_impact.repo.files import read_text, walk_files
from pr_impact.repo.parsing import (
    merge_changes,
    parse_grep_output,
    parse_name_status,
    parse_numstat,
)

logger = logging.getLogger("pr_impact.repo")

_MISSING_PATH_MARKERS = ("does not exist in", "exists on disk, but not in")


class GitRepository(RepositoryAccess):
    """RepositoryAccess implementation that shells out to the `git` executable."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    async def _run(self, *args: str) -> tuple[int, str, str]:
        logger.debug("git %s", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                "git", "-c", "core.quotepath=false", *args,
                cwd=self.root,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found on PATH") from e
        stdout, stderr = await proc.communicate()
        return (
            proc.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def _check(self, *args: str) -> str:
        code, out, err = await self._run(*args)
        if code != 0:
            raise GitCommandError(list(args), code, err)
        return out

    async def verify_repository(self) -> None:
        if not self.root.is_dir():
            raise NotARepositoryError(str(self.root))
        code, out, _ = await self._run("rev-parse", "--is-inside-work-tree")
        if code != 0 or out.strip() != "true":
            raise NotARepositoryError(str(self.root))

    async def resolve_ref(self, ref: str) -> str:
        code, out, _ = await self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        if code != 0:
            raise RefNotFoundError(ref)
        return out.strip()

    async def default_base_branch(self) -> str:
        out = await self._check("branch", "--list", "--format=%(refname:short)")
        branches = {line.strip() for line in out.splitlines() if line.strip()}
        if "main" in branches:
            return "main"
        if "master" in branches:
            return "master"
        # Let the caller surface the error when the ref is later verified
        return "main"

    async def diff(self, base: str, head: str, file: str | None = None) -> str:
        args = ["diff", "--no-color", "--no-ext-diff", base, head]
        if file:
            args += ["--", file]
        return await self._check(*args)

    async def list_changed_files(self, base: str, head: str) -> list[FileChange]:
        name_status, numstat = await asyncio.gather(
            self._check("diff", "--name-status", "-z", "-M", "-C", base, head),
            self._check("diff", "--numstat", "-z", "-M", "-C", base, head),
        )
        return merge_changes(parse_name_status(name_status), parse_numstat(numstat))

    async def read_file_at_revision(self, revision: str, path: str) -> str:
        code, out, err = await self._run("show", f"{revision}:{path}")
        if code == 0:
            return out
        if any(marker in err for marker in _MISSING_PATH_MARKERS):
            raise FileNotFoundAtRevisionError(revision, path)
        if "invalid object name" in err or "bad revision" in err:
            raise RefNotFoundError(revision)
        raise GitCommandError(["show", f"{revision}:{path}"], code, err)

    async def search_pattern(self, pattern: str, glob: str | None = None) -> list[SearchMatch]:
        args = ["grep", "-n", "-I", "-E", "-e", pattern, "--"]
        if glob:
            args.append(glob)
        code, out, err = await self._run(*args)
        # git grep exits 1 when nothing matched
        if code == 1 and not err.strip():
            return []
        if code != 0:
            raise GitCommandError(args, code, err)
        return parse_grep_output(out)

    async def discover_files(
        self, patterns: list[str], ignore: list[str] | None = None
    ) -> list[str]:
        return await asyncio.to_thread(walk_files, self.root, patterns, ignore)

    async def read_file(self, path: str) -> str | None:
        return await asyncio.to_thread(read_text, self.root, path)
