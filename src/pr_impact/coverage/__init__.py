"""Test coverage gap analysis for changed source files."""

from pr_impact.coverage.checker import check_test_coverage
from pr_impact.coverage.mapper import build_candidate_paths, map_test_files

__all__ = ["build_candidate_paths", "check_test_coverage", "map_test_files"]
