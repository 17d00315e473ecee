"""Tests for breaking-change detection."""

from __future__ import annotations

import pytest

from conftest import FakeRepository
from pr_impact.breaking.detector import (
    classify_modification,
    detect_breaking_changes,
    is_analyzable,
    pair_renames,
)
from pr_impact.breaking.exports import ExportedSymbol
from pr_impact.imports.resolver import ReverseDependencyMap
from pr_impact.models import (
    BreakingChangeType,
    ChangedFile,
    FileCategory,
    FileStatus,
    Severity,
)


def _changed(path: str, status: FileStatus = FileStatus.MODIFIED,
             category: FileCategory = FileCategory.SOURCE) -> ChangedFile:
    return ChangedFile(path=path, status=status, category=category)


class TestIsAnalyzable:
    def test_modified_and_deleted_sources(self):
        assert is_analyzable(_changed("src/a.ts"))
        assert is_analyzable(_changed("src/a.js", FileStatus.DELETED))

    def test_skipped(self):
        assert not is_analyzable(_changed("src/a.ts", FileStatus.ADDED))
        assert not is_analyzable(_changed("src/a.py"))
        assert not is_analyzable(_changed("src/a.test.ts", category=FileCategory.TEST))


class TestPairRenames:
    def test_unique_shape_pairs(self):
        old = ExportedSymbol("parse", "function", "(s: string): Ast")
        new = ExportedSymbol("parseSource", "function", "(s: string): Ast")
        assert pair_renames([old], [new]) == {"parse": new}

    def test_ambiguous_shapes_are_not_paired(self):
        removed = [
            ExportedSymbol("a", "function", "(): void"),
            ExportedSymbol("b", "function", "(): void"),
        ]
        added = [ExportedSymbol("c", "function", "(): void")]
        assert pair_renames(removed, added) == {}

    def test_kind_must_match(self):
        old = ExportedSymbol("LIMIT", "const", "number")
        new = ExportedSymbol("limit", "variable", "number")
        assert pair_renames([old], [new]) == {}

    def test_shapeless_symbols_are_not_paired(self):
        assert pair_renames([ExportedSymbol("A", "class")], [ExportedSymbol("B", "class")]) == {}


class TestClassifyModification:
    def test_kind_change(self):
        result = classify_modification(
            ExportedSymbol("x", "function", "(): void"), ExportedSymbol("x", "const")
        )
        assert result == (BreakingChangeType.CHANGED_TYPE, Severity.MEDIUM)

    def test_widened_union_is_low(self):
        result = classify_modification(
            ExportedSymbol("Mode", "type", body="'a' | 'b'"),
            ExportedSymbol("Mode", "type", body="'a' | 'b' | 'c'"),
        )
        assert result == (BreakingChangeType.CHANGED_TYPE, Severity.LOW)

    def test_removed_member_is_medium(self):
        result = classify_modification(
            ExportedSymbol("User", "interface", body="{ id: string; name: string }"),
            ExportedSymbol("User", "interface", body="{ id: string }"),
        )
        assert result == (BreakingChangeType.CHANGED_TYPE, Severity.MEDIUM)

    def test_signature_change(self):
        result = classify_modification(
            ExportedSymbol("f", "function", "(a: string)"),
            ExportedSymbol("f", "function", "(a: number)"),
        )
        assert result == (BreakingChangeType.CHANGED_SIGNATURE, Severity.HIGH)


class TestDetectBreakingChanges:
    @pytest.mark.asyncio
    async def test_deleted_file_reports_every_export(self):
        repo = FakeRepository(revisions={
            "main": {"src/config.ts": (
                "export function parseConfig(path: string) {}\n"
                "export const DEFAULTS = {};\n"
            )},
            "HEAD": {},
        })
        rmap = ReverseDependencyMap.from_edges([
            ("src/app.ts", "src/config.ts"),
            ("src/cli.ts", "src/config.ts"),
        ])
        changes = await detect_breaking_changes(
            repo, "main", "HEAD", [_changed("src/config.ts", FileStatus.DELETED)], rmap
        )
        assert [c.symbol_name for c in changes] == ["parseConfig", "DEFAULTS"]
        first = changes[0]
        assert first.file_path == "src/config.ts"
        assert first.type == BreakingChangeType.REMOVED_EXPORT
        assert first.severity == Severity.HIGH
        assert first.before == "function parseConfig (path: string)"
        assert first.after is None
        assert first.consumers == ["src/app.ts", "src/cli.ts"]

    @pytest.mark.asyncio
    async def test_modified_file(self):
        base = (
            "export function keep(a: string): void {}\n"
            "export function change(a: string): void {}\n"
            "export function parse(s: string): Ast {}\n"
            "export const gone = 1;\n"
        )
        head = (
            "export function keep(a: string): void {}\n"
            "export function change(a: string, b: number): void {}\n"
            "export function parseSource(s: string): Ast {}\n"
        )
        repo = FakeRepository(revisions={
            "main": {"src/lib.ts": base},
            "HEAD": {"src/lib.ts": head},
        })
        changes = await detect_breaking_changes(
            repo, "main", "HEAD", [_changed("src/lib.ts")], ReverseDependencyMap()
        )
        summary = [(c.symbol_name, c.type, c.severity) for c in changes]
        assert summary == [
            ("change", BreakingChangeType.CHANGED_SIGNATURE, Severity.HIGH),
            ("parse", BreakingChangeType.RENAMED_EXPORT, Severity.HIGH),
            ("gone", BreakingChangeType.REMOVED_EXPORT, Severity.HIGH),
        ]
        renamed = changes[1]
        assert renamed.after == "function parseSource (s: string): Ast"
        assert changes[0].consumers == []

    @pytest.mark.asyncio
    async def test_file_missing_at_base_is_skipped(self):
        repo = FakeRepository(revisions={"main": {}, "HEAD": {"src/new.ts": "export const a = 1;"}})
        changes = await detect_breaking_changes(
            repo, "main", "HEAD", [_changed("src/new.ts")], ReverseDependencyMap()
        )
        assert changes == []

    @pytest.mark.asyncio
    async def test_ordered_by_file_path(self):
        repo = FakeRepository(revisions={
            "main": {"src/b.ts": "export const b = 1;", "src/a.ts": "export const a = 1;"},
            "HEAD": {},
        })
        files = [
            _changed("src/b.ts", FileStatus.DELETED),
            _changed("src/a.ts", FileStatus.DELETED),
        ]
        changes = await detect_breaking_changes(repo, "main", "HEAD", files, ReverseDependencyMap())
        assert [c.file_path for c in changes] == ["src/a.ts", "src/b.ts"]
