"""Impact graph construction."""

from pr_impact.impact.graph import build_impact_graph

__all__ = ["build_impact_graph"]
