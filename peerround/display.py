"""Rich UI components for round assignments and standings."""

from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from peerround.rankings import RankingEntry
from peerround.round_engine.models import RoundResult, RoundWarning

# Shared console instance
console = Console()


def create_standings_table(
    entries: list[RankingEntry],
    top_n: int = 10,
    title: str = "Standings"
) -> Table:
    """Create a Rich table showing the current standings."""
    table = Table(
        title=f"[bold cyan]{title}[/bold cyan]",
        box=box.ROUNDED,
        show_lines=False,
        header_style="bold magenta",
        title_justify="left",
    )

    table.add_column("Rank", style="dim", width=5, justify="center")
    table.add_column("Wins", style="yellow", width=6, justify="right")
    table.add_column("Judged", style="green", width=7, justify="right")
    table.add_column("Given", style="green", width=6, justify="right")
    table.add_column("Participant", style="cyan", max_width=40, overflow="ellipsis")

    for entry in entries[:top_n]:
        if entry.rank == 1:
            rank_style = "[bold gold1]1[/bold gold1]"
        else:
            rank_style = f"[dim]{entry.rank}[/dim]"

        table.add_row(
            rank_style,
            str(entry.score),
            str(entry.comparisons),
            str(entry.evaluations_given),
            entry.name or entry.participant_id,
        )

    if len(entries) > top_n:
        table.add_row(
            "...",
            "",
            "",
            "",
            f"[dim]and {len(entries) - top_n} more participants[/dim]",
        )

    return table


def create_assignment_table(result: RoundResult) -> Table:
    """Create a Rich table listing who judges which pair this round."""
    table = Table(
        title=f"[bold cyan]Round {result.round_number} assignments[/bold cyan]",
        box=box.ROUNDED,
        header_style="bold magenta",
        title_justify="left",
    )

    table.add_column("Evaluator", style="cyan")
    table.add_column("Left", style="white")
    table.add_column("", style="dim", width=2, justify="center")
    table.add_column("Right", style="white")

    for evaluator in sorted(result.assignment):
        pairing = result.assignment[evaluator]
        table.add_row(evaluator, pairing.first, "vs", pairing.second)

    for evaluator in result.unassigned:
        table.add_row(f"[red]{evaluator}[/red]", "[dim]no pair[/dim]", "", "")

    return table


def create_round_panel(result: RoundResult) -> Panel:
    """Create a summary panel for a finished round."""
    content = Text()
    content.append("Clusters: ", style="bold")
    content.append(f"{len(result.clusters)} ", style="white")
    sizes = ", ".join(str(len(c)) for c in result.clusters) or "-"
    content.append(f"(sizes {sizes})\n", style="dim")

    content.append("Pairings: ", style="bold")
    content.append(f"{len(result.pairings)}\n", style="white")

    content.append("Assigned: ", style="bold")
    content.append(f"{len(result.assignment)}/{len(result.participant_ids)}", style="white")
    content.append(f" after {result.assignment_attempts} attempt(s)\n", style="dim")

    if result.warnings:
        for warning in result.warnings:
            content.append(f"! {warning.value}\n", style="bold yellow")
        border_style = "yellow"
    else:
        content.append("No warnings", style="green")
        border_style = "green"

    return Panel(
        content,
        title=f"[bold]Round {result.round_number}[/bold]",
        border_style=border_style,
        box=box.ROUNDED,
    )


class ConsoleEventHandler:
    """Event handler that prints degraded-round warnings to the console."""

    def __init__(self, target: Console | None = None):
        self.console = target or console

    def on_round_start(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_clusters_formed(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_pairings_created(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_warning(self, warning: RoundWarning, message: str, **kwargs: Any) -> None:
        self.console.print(f"[bold yellow]{warning.value}[/bold yellow]: {message}")

    def on_round_complete(self, *args: Any, **kwargs: Any) -> None:
        pass
