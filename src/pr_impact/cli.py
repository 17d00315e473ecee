"""Command-line interface for pr-impact."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from pr_impact import __version__
from pr_impact.analyzer import analyze_pr
from pr_impact.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from pr_impact.diff.changes import collect_changed_files
from pr_impact.exceptions import ConfigError, PrImpactError
from pr_impact.impact.graph import build_impact_graph
from pr_impact.imports.cache import DependencyCache
from pr_impact.models import (
    AnalysisOptions,
    ChangedFile,
    FileCategory,
    FileStatus,
    ImpactGraph,
    PRAnalysis,
    Severity,
)
from pr_impact.output.dot import format_impact_dot
from pr_impact.output.json_reporter import format_json
from pr_impact.output.markdown import format_breaking_markdown, format_markdown
from pr_impact.repo.git import GitRepository
from pr_impact.ui.console import Console

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _get_repo_root(repo: str | None) -> Path:
    """Resolve --repo, or find the enclosing repository of the working directory."""
    if repo:
        root = Path(repo).resolve()
        if not root.exists():
            err_console.error(f"Path does not exist: {repo}")
            sys.exit(1)
        return root
    return find_project_root() or Path.cwd().resolve()


def _run_analysis(
    root: Path,
    base: str | None,
    head: str | None,
    exit_code: int,
    status: str,
    **options,
) -> PRAnalysis:
    """Run analyze_pr, printing the error and exiting with `exit_code` on failure."""
    opts = AnalysisOptions(repo_path=str(root), base_branch=base, head_branch=head, **options)
    try:
        with err_console.status(status):
            return asyncio.run(analyze_pr(opts, cache=DependencyCache()))
    except PrImpactError as e:
        err_console.error(str(e))
        sys.exit(exit_code)


repo_option = click.option(
    "--repo", "-r", default=None, help="Repository path (default: current repository)."
)


@click.group()
@click.version_option(version=__version__, prog_name="pr-impact")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
def main(verbose: bool):
    """pr-impact - pre-merge risk analysis for pull requests."""
    configure_logging(verbose)


@main.command()
@click.argument("base", required=False)
@click.argument("head", required=False)
@repo_option
@click.option(
    "--format", "output_format",
    type=click.Choice(["md", "json"]),
    default="md",
    help="Output format.",
)
@click.option("--output", "-o", default=None, help="Write the report to a file instead of stdout.")
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None,
              help="Max dependency depth of the impact graph.")
@click.option("--no-breaking", is_flag=True, help="Skip breaking change analysis.")
@click.option("--no-coverage", is_flag=True, help="Skip test coverage analysis.")
@click.option("--no-docs", is_flag=True, help="Skip doc staleness check.")
def analyze(
    base: str | None,
    head: str | None,
    repo: str | None,
    output_format: str,
    output: str | None,
    depth: int | None,
    no_breaking: bool,
    no_coverage: bool,
    no_docs: bool,
):
    """Run the full PR impact analysis between BASE and HEAD.

    BASE defaults to main (or master), HEAD to the current HEAD.
    Exits with code 2 if the analysis fails.
    """
    root = _get_repo_root(repo)
    analysis = _run_analysis(
        root, base, head, 2, "Analyzing PR impact...",
        skip_breaking=no_breaking,
        skip_coverage=no_coverage,
        skip_docs=no_docs,
        max_depth=depth,
    )

    report = format_json(analysis) if output_format == "json" else format_markdown(analysis)
    if output:
        try:
            Path(output).write_text(report, encoding="utf-8")
        except OSError as e:
            err_console.error(f"Could not write report to {output}: {e}")
            sys.exit(2)
        console.show_summary(analysis)
        console.success(f"Report written to {output}")
    else:
        click.echo(report)


@main.command()
@click.argument("base", required=False)
@click.argument("head", required=False)
@repo_option
@click.option(
    "--severity", "-s",
    type=click.Choice(["low", "medium", "high"]),
    default="low",
    help="Minimum severity to report.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["md", "json", "text"]),
    default="md",
    help="Output format.",
)
def breaking(
    base: str | None, head: str | None, repo: str | None, severity: str, output_format: str
):
    """Detect breaking changes to exported APIs.

    Exits with code 1 when any change at or above --severity is found.
    """
    root = _get_repo_root(repo)
    analysis = _run_analysis(
        root, base, head, 1, "Detecting breaking changes...",
        skip_coverage=True,
        skip_docs=True,
    )

    min_rank = Severity(severity).rank
    changes = [c for c in analysis.breaking_changes if c.severity.rank >= min_rank]
    if not changes:
        if output_format == "json":
            click.echo("[]")
        else:
            console.success(f"No breaking changes detected at severity >= {severity}")
        return

    if output_format == "json":
        click.echo(json.dumps(
            [c.model_dump(mode="json", by_alias=True) for c in changes], indent=2
        ))
    elif output_format == "md":
        click.echo(format_breaking_markdown(changes))
    else:
        console.show_breaking_changes(changes)
    sys.exit(1)


async def _impact_graph(
    root: Path, file: str | None, base: str | None, head: str | None, depth: int
) -> ImpactGraph:
    repo = GitRepository(root)
    await repo.verify_repository()
    config = load_config(root)
    if file:
        changed = [ChangedFile(
            path=file,
            status=FileStatus.MODIFIED,
            category=FileCategory.SOURCE,
        )]
    else:
        base = base or config.base_branch or await repo.default_base_branch()
        head = head or "HEAD"
        await repo.resolve_ref(base)
        await repo.resolve_ref(head)
        changed = await collect_changed_files(repo, base, head)
    reverse_map = await DependencyCache(config.scan.exclude_patterns).get(repo)
    return build_impact_graph(changed, reverse_map, depth)


@main.command()
@click.argument("file", required=False)
@repo_option
@click.option("--base", "-b", default=None, help="Base revision (default: main or master).")
@click.option("--head", default=None, help="Head revision (default: HEAD).")
@click.option("--depth", "-d", type=click.IntRange(min=0), default=3,
              help="Max dependency depth.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json", "dot"]),
    default="text",
    help="Output format.",
)
def impact(
    file: str | None,
    repo: str | None,
    base: str | None,
    head: str | None,
    depth: int,
    output_format: str,
):
    """Show which files are affected through imports.

    With FILE, traces that single file; otherwise traces every changed
    source file between the base and head revisions.
    """
    root = _get_repo_root(repo)
    try:
        with err_console.status("Building impact graph..."):
            graph = asyncio.run(_impact_graph(root, file, base, head, depth))
    except PrImpactError as e:
        err_console.error(str(e))
        sys.exit(1)

    if output_format == "json":
        click.echo(format_json(graph))
    elif output_format == "dot":
        click.echo(format_impact_dot(graph))
    else:
        console.show_impact(graph)


@main.command()
@click.argument("base", required=False)
@click.argument("head", required=False)
@repo_option
@click.option("--threshold", "-t", type=float, default=None,
              help="Exit with code 1 if the score is >= this value.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
def risk(
    base: str | None,
    head: str | None,
    repo: str | None,
    threshold: float | None,
    output_format: str,
):
    """Calculate the PR risk score and its factor breakdown."""
    root = _get_repo_root(repo)
    analysis = _run_analysis(root, base, head, 1, "Calculating risk score...")
    assessment = analysis.risk_score

    if output_format == "json":
        click.echo(format_json(assessment))
    else:
        console.show_risk(assessment)

    if threshold is not None and assessment.score >= threshold:
        err_console.warning(
            f"Risk score {assessment.score} meets or exceeds threshold {threshold:g}"
        )
        sys.exit(1)


@main.command()
@repo_option
@click.option("--generate-config", type=click.Choice(["claude", "cursor"]),
              default=None, help="Print MCP client configuration and exit.")
def serve(repo: str | None, generate_config: str | None):
    """Start the MCP server (stdio) for AI tool integration.

    Setup for Claude Code:

        pr-impact serve --generate-config claude >> ~/.claude/mcp_servers.json

    Setup for Cursor:

        pr-impact serve --generate-config cursor >> .cursor/mcp.json

    Exposed tools: analyze_diff, get_breaking_changes, get_impact_graph,
    get_risk_score.
    """
    from pr_impact.mcp.server import MCPServer

    if generate_config:
        root_path = str(Path(repo or ".").resolve())
        if generate_config == "claude":
            config = MCPServer.generate_claude_config(root_path)
        else:
            config = MCPServer.generate_cursor_config(root_path)
        click.echo(json.dumps(config, indent=2))
        return

    server = MCPServer(_get_repo_root(repo))
    asyncio.run(server.run_stdio())


@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@repo_option
def config_cmd(action: str, key: str | None, value: str | None, repo: str | None):
    """Manage pr-impact configuration (.pr-impact/config.json)."""
    root = _get_repo_root(repo)
    try:
        config = load_config(root)
    except ConfigError as e:
        err_console.error(str(e))
        sys.exit(1)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            err_console.error("Usage: pr-impact config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                err_console.error(f"Unknown key: {key}")
                sys.exit(1)
        click.echo(f"{key} = {json.dumps(data)}")
    elif action == "set":
        if not key or value is None:
            err_console.error("Usage: pr-impact config set <key> <value>")
            sys.exit(1)
        # Try to parse as JSON for non-string values
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value
        try:
            config = set_config_value(config, key, parsed_value)
        except KeyError:
            err_console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ConfigError as e:
            err_console.error(str(e))
            sys.exit(1)
        save_config(root, _with_identity(config, root))
        console.success(f"Set {key} = {json.dumps(parsed_value)}")


def _with_identity(config: ProjectConfig, root: Path) -> ProjectConfig:
    if config.name:
        return config
    return config.model_copy(update={"name": root.name, "root_path": str(root)})


if __name__ == "__main__":
    main()
