"""Configuration management for pr-impact."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from pr_impact.exceptions import ConfigError

CONFIG_DIR = ".pr-impact"
CONFIG_FILE = "config.json"


class ScanConfig(BaseModel):
    """Repository scanning configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            ".git",
            ".pr-impact",
            "dist",
            "build",
            "coverage",
            ".next",
            ".turbo",
            ".venv",
            "venv",
            "__pycache__",
            "*.min.js",
        ]
    )
    doc_patterns: list[str] = Field(default_factory=lambda: ["**/*.md", "**/*.mdx"])


class ImpactConfig(BaseModel):
    """Impact graph traversal configuration."""

    max_depth: int = Field(default=3, ge=0)


class RiskConfig(BaseModel):
    """Risk factor weights and level thresholds."""

    weights: dict[str, float] = Field(
        default_factory=lambda: {
            "breaking_changes": 0.30,
            "untested_changes": 0.25,
            "diff_size": 0.15,
            "doc_staleness": 0.10,
            "config_changes": 0.10,
            "impact_breadth": 0.10,
        }
    )
    # Upper bounds (inclusive) for low, medium and high; anything above is critical.
    thresholds: list[int] = Field(default_factory=lambda: [25, 50, 75])


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    base_branch: str | None = None
    scan: ScanConfig = Field(default_factory=ScanConfig)
    impact: ImpactConfig = Field(default_factory=ImpactConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .pr-impact or .git directory."""
    current = (start or Path.cwd()).resolve()
    while True:
        if (current / CONFIG_DIR).is_dir() or (current / ".git").exists():
            return current
        if current == current.parent:
            return None
        current = current.parent


def get_config_dir(root: Path) -> Path:
    """Get the .pr-impact directory for a project root."""
    return root / CONFIG_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .pr-impact/config.json, falling back to defaults."""
    config_path = get_config_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .pr-impact/config.json."""
    config_dir = get_config_dir(root)
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'impact.max_depth').

    Keys inside the ``risk.weights`` mapping may be set even if absent, so a
    project can re-weight a factor; everything else must already exist.
    """
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target and parts[:-1] != ["risk", "weights"]:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
