"""Custom exceptions for pr-impact."""


class PrImpactError(Exception):
    """Base exception for all pr-impact errors."""


class ConfigError(PrImpactError):
    """Configuration-related errors."""


class RiskConfigError(ConfigError):
    """Invalid risk factor table (unknown names, bad weights)."""


class GitError(PrImpactError):
    """Errors raised by the repository access layer."""


class NotARepositoryError(GitError):
    """The given path is not inside a git work tree."""

    def __init__(self, path: str):
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class RefNotFoundError(GitError):
    """A revision (branch, tag, sha) could not be resolved."""

    def __init__(self, ref: str):
        super().__init__(f"Unknown revision: '{ref}'")
        self.ref = ref


class FileNotFoundAtRevisionError(GitError):
    """A file does not exist at the requested revision."""

    def __init__(self, revision: str, path: str):
        super().__init__(f"'{path}' does not exist at revision '{revision}'")
        self.revision = revision
        self.path = path


class GitCommandError(GitError):
    """A git command exited with an unexpected status."""

    def __init__(self, args: list[str], returncode: int, stderr: str = ""):
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"git {' '.join(args)} failed: {detail}")
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr


class AnalysisError(PrImpactError):
    """Invalid analysis input or options."""
