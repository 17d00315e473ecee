"""Rich-powered console output for pr-impact."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from pr_impact.models import (
    BreakingChange,
    ImpactGraph,
    PRAnalysis,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
    Severity,
)

LEVEL_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}

SEVERITY_COLORS = {
    Severity.LOW: "green",
    Severity.MEDIUM: "yellow",
    Severity.HIGH: "red",
}


def factor_bar(score: float, width: int = 10) -> str:
    filled = round(score / 100 * width)
    return "█" * filled + "░" * (width - filled)


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


class Console:
    """Terminal output for pr-impact using Rich."""

    def __init__(self, stderr: bool = False) -> None:
        self.console = RichConsole(stderr=stderr, highlight=False)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def status(self, message: str):
        """Spinner shown while a long step runs."""
        return self.console.status(message, spinner="dots")

    def show_factor(self, factor: RiskFactor) -> None:
        contribution = factor.score * factor.weight
        self.console.print(
            f"  {factor_bar(factor.score)}  {factor.name:<24} {_fmt(factor.score):>3}/100  "
            f"[dim](weight: {factor.weight:g}, contribution: {contribution:.1f})[/dim]"
        )
        if factor.description:
            self.console.print(f"  [dim]{escape(factor.description)}[/dim]")
        for detail in factor.details:
            self.console.print(f"    [dim]- {escape(detail)}[/dim]")

    def show_risk(self, risk: RiskAssessment) -> None:
        """Display the risk score and its factor breakdown."""
        color = LEVEL_COLORS[risk.level]
        self.console.print("[bold]Risk Assessment[/bold]")
        self.console.print()
        self.console.print(
            f"  Score: [{color}]{risk.score}/100[/{color}]  "
            f"Level: [{color}]{risk.level.value.upper()}[/{color}]"
        )
        if risk.factors:
            self.console.print()
            self.console.print("[bold]Factor Breakdown[/bold]")
            self.console.print()
            for factor in risk.factors:
                self.show_factor(factor)
                self.console.print()

    def show_breaking_changes(self, changes: list[BreakingChange]) -> None:
        """Display breaking changes in a table."""
        if not changes:
            self.success("No breaking changes detected.")
            return

        table = Table(title=f"Breaking Changes ({len(changes)})", border_style="red")
        table.add_column("Severity", style="bold")
        table.add_column("Symbol")
        table.add_column("Type")
        table.add_column("File", style="cyan")
        table.add_column("Consumers", justify="right")
        for change in changes:
            color = SEVERITY_COLORS[change.severity]
            table.add_row(
                f"[{color}]{change.severity.value.upper()}[/{color}]",
                escape(change.symbol_name),
                change.type.value.replace("_", " "),
                escape(change.file_path),
                str(len(change.consumers)),
            )
        self.console.print(table)

        for change in changes:
            if change.before or change.after:
                self.console.print(
                    f"  [bold]{escape(change.symbol_name)}[/bold] [dim]({escape(change.file_path)})[/dim]"
                )
                if change.before:
                    self.console.print(f"    [red]- {escape(change.before)}[/red]")
                if change.after:
                    self.console.print(f"    [green]+ {escape(change.after)}[/green]")

    def show_impact(self, graph: ImpactGraph) -> None:
        """Display the impact graph as a tree of changed files and their dependents."""
        tree = Tree("[bold]Impact Graph[/bold]")

        if graph.directly_changed:
            changed = tree.add("[bold]Directly Changed[/bold]")
            for path in graph.directly_changed:
                node = changed.add(f"[cyan]{escape(path)}[/cyan]")
                for edge in graph.edges:
                    if edge.to == path:
                        node.add(f"[dim]{escape(edge.from_)} ({edge.type})[/dim]")

        if graph.indirectly_affected:
            affected = tree.add("[bold]Indirectly Affected[/bold]")
            for path in graph.indirectly_affected:
                affected.add(f"[yellow]{escape(path)}[/yellow]")

        self.console.print(tree)
        edge_count = len(graph.edges)
        self.console.print(
            f"[dim]{len(graph.directly_changed)} directly changed, "
            f"{len(graph.indirectly_affected)} indirectly affected, "
            f"{edge_count} edge{'' if edge_count == 1 else 's'}[/dim]"
        )

    def show_summary(self, analysis: PRAnalysis) -> None:
        """Short panel with the headline numbers of an analysis."""
        risk = analysis.risk_score
        color = LEVEL_COLORS[risk.level]
        self.console.print(
            Panel(
                f"[bold]Risk Score:[/bold] [{color}]{risk.score}/100 ({risk.level.value})[/{color}]\n"
                f"[bold]Changed Files:[/bold] {len(analysis.changed_files)}\n"
                f"[bold]Breaking Changes:[/bold] {len(analysis.breaking_changes)}\n"
                f"[bold]Coverage Gaps:[/bold] {len(analysis.test_coverage.gaps)}\n"
                f"[bold]Stale Doc References:[/bold] "
                f"{len(analysis.doc_staleness.stale_references)}",
                title="[bold]PR Impact Analysis[/bold]",
                border_style=color.split()[-1],
            )
        )
