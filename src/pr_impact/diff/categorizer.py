"""Classify changed files by role and detect their language."""

from __future__ import annotations

from pathlib import PurePosixPath

from pr_impact.models import FileCategory

SOURCE_EXTENSIONS = frozenset({
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".go", ".rs", ".java",
    ".c", ".cpp", ".h",
    ".rb", ".php", ".swift",
    ".kt", ".scala", ".cs",
    ".vue", ".svelte",
})

DOC_EXTENSIONS = frozenset({".md", ".mdx", ".txt", ".rst"})

CONFIG_FILENAMES = frozenset({
    "package.json",
    "tsconfig.json",
    "turbo.json",
    "dockerfile",
    "makefile",
    ".gitignore",
    ".npmrc",
    ".nvmrc",
    "pnpm-workspace.yaml",
    "pnpm-lock.yaml",
    "yarn.lock",
    "package-lock.json",
    "pyproject.toml",
    "setup.cfg",
    "setup.py",
    "tox.ini",
    "requirements.txt",
    "go.mod",
    "cargo.toml",
    "jenkinsfile",
    ".gitlab-ci.yml",
})

CONFIG_PREFIXES = (
    ".eslintrc",
    ".prettierrc",
    "webpack.config.",
    "vite.config.",
    "jest.config.",
    "vitest.config.",
    "rollup.config.",
    "esbuild.config.",
    "docker-compose.",
    ".env",
)

EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".py": "python",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".c": "c",
    ".cpp": "cpp",
    ".h": "c",
    ".hpp": "cpp",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
    ".cs": "csharp",
    ".vue": "vue",
    ".svelte": "svelte",
    ".md": "markdown",
    ".mdx": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".xml": "xml",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".sql": "sql",
    ".sh": "shell",
    ".graphql": "graphql",
    ".proto": "protobuf",
    ".txt": "text",
    ".rst": "restructuredtext",
}


def _normalize(file_path: str) -> str:
    return file_path.replace("\\", "/")


def get_extension(file_path: str) -> str:
    """Lowercased extension including the dot, or '' if there is none."""
    return PurePosixPath(_normalize(file_path)).suffix.lower()


def detect_language(file_path: str) -> str:
    """Detect a language label from the file name."""
    name = PurePosixPath(_normalize(file_path)).name.lower()
    if name == "dockerfile":
        return "dockerfile"
    if name == "makefile":
        return "makefile"
    return EXTENSION_LANGUAGE_MAP.get(get_extension(file_path), "unknown")


def is_test_file(file_path: str) -> bool:
    normalized = _normalize(file_path)
    name = PurePosixPath(normalized).name
    padded = f"/{normalized}"
    return (
        "/__tests__/" in padded
        or "/test/" in padded
        or "/tests/" in padded
        or ".test." in name
        or ".spec." in name
        or name.startswith("test")
    )


def is_doc_file(file_path: str) -> bool:
    normalized = _normalize(file_path)
    return (
        get_extension(normalized) in DOC_EXTENSIONS
        or normalized.startswith("docs/")
        or normalized.startswith("doc/")
    )


def is_config_file(file_path: str) -> bool:
    normalized = _normalize(file_path)
    name = PurePosixPath(normalized).name.lower()
    if normalized.startswith(".github/") or normalized.startswith(".circleci/"):
        return True
    if name in CONFIG_FILENAMES:
        return True
    return name.startswith(CONFIG_PREFIXES)


def is_source_file(file_path: str) -> bool:
    return get_extension(file_path) in SOURCE_EXTENSIONS


def categorize_file(file_path: str) -> FileCategory:
    """Assign exactly one category; earlier checks win."""
    if is_test_file(file_path):
        return FileCategory.TEST
    if is_doc_file(file_path):
        return FileCategory.DOC
    if is_config_file(file_path):
        return FileCategory.CONFIG
    if is_source_file(file_path):
        return FileCategory.SOURCE
    return FileCategory.OTHER
