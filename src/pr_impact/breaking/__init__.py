"""Breaking-change detection for exported APIs."""

from pr_impact.breaking.detector import detect_breaking_changes
from pr_impact.breaking.exports import ExportedSymbol, diff_exports, parse_exports
from pr_impact.breaking.signatures import SignatureDiff, diff_signatures

__all__ = [
    "ExportedSymbol",
    "SignatureDiff",
    "detect_breaking_changes",
    "diff_exports",
    "diff_signatures",
    "parse_exports",
]
