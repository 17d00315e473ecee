"""Import resolution and the reverse-dependency map."""

from pr_impact.imports.cache import DependencyCache
from pr_impact.imports.resolver import (
    ReverseDependencyMap,
    build_reverse_dependency_map,
    extract_import_paths,
    find_consumers,
    resolve_import,
)

__all__ = [
    "DependencyCache",
    "ReverseDependencyMap",
    "build_reverse_dependency_map",
    "extract_import_paths",
    "find_consumers",
    "resolve_import",
]
