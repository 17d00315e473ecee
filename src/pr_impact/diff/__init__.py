"""Changed-file ingestion and classification."""

from pr_impact.diff.categorizer import categorize_file, detect_language
from pr_impact.diff.changes import collect_changed_files, to_changed_file

__all__ = [
    "categorize_file",
    "collect_changed_files",
    "detect_language",
    "to_changed_file",
]
