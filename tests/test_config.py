"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from pr_impact.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from pr_impact.exceptions import ConfigError


class TestConfig:
    def test_default_config(self):
        config = ProjectConfig()
        assert config.impact.max_depth == 3
        assert config.base_branch is None
        assert "node_modules" in config.scan.exclude_patterns
        assert config.risk.weights["untested_changes"] == 0.25
        assert sum(config.risk.weights.values()) == pytest.approx(1.0)
        assert config.risk.thresholds == [25, 50, 75]

    def test_save_and_load(self, tmp_path: Path):
        config = ProjectConfig(name="test-project", base_branch="develop")
        config.impact.max_depth = 5

        save_config(tmp_path, config)
        loaded = load_config(tmp_path)

        assert loaded.name == "test-project"
        assert loaded.base_branch == "develop"
        assert loaded.impact.max_depth == 5
        assert (tmp_path / ".pr-impact" / "config.json").exists()

    def test_load_missing_returns_defaults(self, tmp_path: Path):
        config = load_config(tmp_path)
        assert config.name == tmp_path.name
        assert config.impact.max_depth == 3

    def test_load_invalid(self, tmp_path: Path):
        (tmp_path / ".pr-impact").mkdir()
        (tmp_path / ".pr-impact" / "config.json").write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_find_project_root(self, tmp_path: Path):
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        (tmp_path / ".pr-impact").mkdir()
        assert find_project_root(nested) == tmp_path.resolve()

    def test_find_project_root_by_git(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        nested = tmp_path / "src"
        nested.mkdir()
        assert find_project_root(nested) == tmp_path.resolve()

    def test_set_config_value(self):
        config = ProjectConfig()
        updated = set_config_value(config, "impact.max_depth", 7)
        assert updated.impact.max_depth == 7
        assert config.impact.max_depth == 3

    def test_set_risk_weight(self):
        updated = set_config_value(ProjectConfig(), "risk.weights.diff_size", 0.05)
        assert updated.risk.weights["diff_size"] == 0.05

    def test_set_invalid_key(self):
        with pytest.raises(KeyError):
            set_config_value(ProjectConfig(), "nonexistent.key", "value")
        with pytest.raises(KeyError):
            set_config_value(ProjectConfig(), "impact.width", 1)

    def test_set_invalid_value(self):
        with pytest.raises(ConfigError):
            set_config_value(ProjectConfig(), "impact.max_depth", -1)
