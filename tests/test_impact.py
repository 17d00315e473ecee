"""Tests for the impact graph walk."""

from __future__ import annotations

import pytest

from pr_impact.impact.graph import build_impact_graph
from pr_impact.imports.resolver import ReverseDependencyMap
from pr_impact.models import ChangedFile, FileCategory, FileStatus


def _source(path: str) -> ChangedFile:
    return ChangedFile(path=path, status=FileStatus.MODIFIED, category=FileCategory.SOURCE)


@pytest.fixture
def chain() -> ReverseDependencyMap:
    """d imports c imports b imports a; e imports a."""
    return ReverseDependencyMap.from_edges([
        ("b.ts", "a.ts"),
        ("c.ts", "b.ts"),
        ("d.ts", "c.ts"),
        ("e.ts", "a.ts"),
    ])


class TestImpactGraph:
    def test_empty_map(self):
        graph = build_impact_graph([_source("src/a.ts")], ReverseDependencyMap(), max_depth=3)
        assert graph.directly_changed == ["src/a.ts"]
        assert graph.indirectly_affected == []
        assert graph.edges == []

    def test_depth_limits_walk(self, chain: ReverseDependencyMap):
        graph = build_impact_graph([_source("a.ts")], chain, max_depth=1)
        assert graph.indirectly_affected == ["b.ts", "e.ts"]

        graph = build_impact_graph([_source("a.ts")], chain, max_depth=2)
        assert graph.indirectly_affected == ["b.ts", "c.ts", "e.ts"]

    def test_zero_depth(self, chain: ReverseDependencyMap):
        graph = build_impact_graph([_source("a.ts")], chain, max_depth=0)
        assert graph.directly_changed == ["a.ts"]
        assert graph.indirectly_affected == []
        assert graph.edges == []

    def test_large_depth_is_full_closure(self, chain: ReverseDependencyMap):
        graph = build_impact_graph([_source("a.ts")], chain, max_depth=50)
        assert graph.indirectly_affected == ["b.ts", "c.ts", "d.ts", "e.ts"]

    def test_edges_point_from_dependent(self, chain: ReverseDependencyMap):
        graph = build_impact_graph([_source("a.ts")], chain, max_depth=1)
        assert [(e.from_, e.to, e.type) for e in graph.edges] == [
            ("b.ts", "a.ts", "imports"),
            ("e.ts", "a.ts", "imports"),
        ]

    def test_changed_files_are_not_indirect(self, chain: ReverseDependencyMap):
        graph = build_impact_graph([_source("a.ts"), _source("b.ts")], chain, max_depth=3)
        assert graph.directly_changed == ["a.ts", "b.ts"]
        assert "b.ts" not in graph.indirectly_affected
        # the b -> a relation is still recorded
        assert ("b.ts", "a.ts") in [(e.from_, e.to) for e in graph.edges]

    def test_diamond_records_every_relation(self):
        rmap = ReverseDependencyMap.from_edges([
            ("b.ts", "a.ts"), ("c.ts", "a.ts"), ("d.ts", "b.ts"), ("d.ts", "c.ts"),
        ])
        graph = build_impact_graph([_source("a.ts")], rmap, max_depth=3)
        assert graph.indirectly_affected == ["b.ts", "c.ts", "d.ts"]
        assert [(e.from_, e.to) for e in graph.edges] == [
            ("b.ts", "a.ts"), ("c.ts", "a.ts"), ("d.ts", "b.ts"), ("d.ts", "c.ts"),
        ]

    def test_only_source_files_seed(self, chain: ReverseDependencyMap):
        files = [
            ChangedFile(path="a.ts", status=FileStatus.MODIFIED, category=FileCategory.TEST),
            ChangedFile(path="README.md", status=FileStatus.MODIFIED, category=FileCategory.DOC),
        ]
        graph = build_impact_graph(files, chain)
        assert graph.directly_changed == []
        assert graph.indirectly_affected == []

    def test_negative_depth(self, chain: ReverseDependencyMap):
        with pytest.raises(ValueError):
            build_impact_graph([_source("a.ts")], chain, max_depth=-1)
