"""Data models for a pull request analysis.

All result entities are frozen: once an analysis step has produced them they
are shared read-only between the concurrent analyses and the formatters.
Python attributes are snake_case; the JSON form uses camelCase aliases.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FileStatus(str, Enum):
    """How a file changed between the two revisions."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"


class FileCategory(str, Enum):
    """Role of a changed file."""

    SOURCE = "source"
    TEST = "test"
    DOC = "doc"
    CONFIG = "config"
    OTHER = "other"


class BreakingChangeType(str, Enum):
    REMOVED_EXPORT = "removed_export"
    CHANGED_SIGNATURE = "changed_signature"
    CHANGED_TYPE = "changed_type"
    RENAMED_EXPORT = "renamed_export"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ChangedFile(_Frozen):
    """A file touched by the change, classified by role."""

    path: str
    status: FileStatus
    old_path: str | None = None  # set for renames and copies
    additions: int = 0
    deletions: int = 0
    language: str = "unknown"
    category: FileCategory


class BreakingChange(_Frozen):
    """A removal, rename or signature change of a previously exported symbol."""

    file_path: str
    symbol_name: str
    type: BreakingChangeType
    before: str | None = None
    after: str | None = None  # None iff the symbol was removed
    severity: Severity
    consumers: list[str] = Field(default_factory=list)


class ImpactEdge(_Frozen):
    """`from_` imports `to`."""

    from_: str = Field(alias="from")
    to: str
    type: str = "imports"


class ImpactGraph(_Frozen):
    directly_changed: list[str] = Field(default_factory=list)
    indirectly_affected: list[str] = Field(default_factory=list)
    edges: list[ImpactEdge] = Field(default_factory=list)


class TestCoverageGap(_Frozen):
    __test__ = False  # not a pytest class

    source_file: str
    expected_test_files: list[str] = Field(default_factory=list)
    test_file_exists: bool = False
    test_file_changed: bool = False


class TestCoverageReport(_Frozen):
    __test__ = False

    changed_source_files: int = 0
    source_files_with_test_changes: int = 0
    coverage_ratio: float = Field(default=1.0, ge=0.0, le=1.0)
    gaps: list[TestCoverageGap] = Field(default_factory=list)


class StaleReference(_Frozen):
    doc_file: str
    line: int  # 1-based
    reference: str
    reason: str


class DocStalenessReport(_Frozen):
    stale_references: list[StaleReference] = Field(default_factory=list)
    checked_files: list[str] = Field(default_factory=list)


class RiskFactor(_Frozen):
    """One weighted contributor to the overall risk score."""

    name: str
    score: float = Field(ge=0, le=100)
    weight: float = Field(gt=0, le=1)
    description: str = ""
    details: list[str] = Field(default_factory=list)


class RiskAssessment(_Frozen):
    score: int = Field(ge=0, le=100)
    level: RiskLevel
    factors: list[RiskFactor] = Field(default_factory=list)


class PRAnalysis(_Frozen):
    """Complete, immutable result of one analysis run."""

    repo_path: str
    base_branch: str
    head_branch: str
    changed_files: list[ChangedFile] = Field(default_factory=list)
    breaking_changes: list[BreakingChange] = Field(default_factory=list)
    test_coverage: TestCoverageReport = Field(default_factory=TestCoverageReport)
    doc_staleness: DocStalenessReport = Field(default_factory=DocStalenessReport)
    impact_graph: ImpactGraph = Field(default_factory=ImpactGraph)
    risk_score: RiskAssessment
    summary: str = ""


class AnalysisOptions(BaseModel):
    """Inputs of a single analysis run."""

    repo_path: str
    base_branch: str | None = None
    head_branch: str | None = None
    skip_breaking: bool = False
    skip_coverage: bool = False
    skip_docs: bool = False
    max_depth: int | None = Field(default=None, ge=0)  # None: use the configured depth
