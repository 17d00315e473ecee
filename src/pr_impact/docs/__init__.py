"""Documentation staleness checks."""

from pr_impact.docs.staleness import check_doc_staleness, is_generic_name, symbol_pattern

__all__ = ["check_doc_staleness", "is_generic_name", "symbol_pattern"]
