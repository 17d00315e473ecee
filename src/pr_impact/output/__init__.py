"""Report formatters."""

from pr_impact.output.dot import format_impact_dot
from pr_impact.output.json_reporter import format_json, to_json_data
from pr_impact.output.markdown import format_breaking_markdown, format_markdown

__all__ = [
    "format_breaking_markdown",
    "format_impact_dot",
    "format_json",
    "format_markdown",
    "to_json_data",
]
