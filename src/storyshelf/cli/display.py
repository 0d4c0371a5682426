"""Rich display helpers for CLI output."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from storyshelf.core.models import Comment, RatingStats, Story, UserStory
from storyshelf.core.pagination import Page

console = Console()
error_console = Console(stderr=True)


def _date(value) -> str:
    return f"{value:%Y-%m-%d}" if value else "-"


def print_stories(page: Page[Story], title: str = "Stories") -> None:
    """Display one page of stories in a table."""
    if not page.items:
        console.print("[dim]No stories found.[/dim]")
        return
    table = Table(title=title, border_style="yellow")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Genres")
    table.add_column("Chapters", justify="right")
    table.add_column("Status")
    table.add_column("Created")
    for story in page.items:
        table.add_row(
            story.id,
            story.title,
            story.author_name,
            ", ".join(story.genres),
            str(len(story.chapters)),
            story.status,
            _date(story.created_at),
        )
    console.print(table)
    if page.total_pages > 1:
        console.print(f"[dim]Page {page.page} of {page.total_pages}[/dim]")


def print_story(story: Story, stats: RatingStats) -> None:
    """Display story details in a rich panel."""
    lines = [
        f"[bold]Author:[/bold] {story.author_name}",
        f"[bold]Status:[/bold] {story.status.title()}",
        f"[bold]Chapters:[/bold] {len(story.chapters)}",
        f"[bold]Rating:[/bold] {stats.average:.1f} ({stats.count} ratings)",
    ]
    if story.genres:
        lines.append(f"[bold]Genres:[/bold] {', '.join(story.genres)}")
    if story.tags:
        lines.append(f"[bold]Tags:[/bold] {', '.join(story.tags[:10])}")
    lines.append(f"[bold]Updated:[/bold] {_date(story.updated_at)}")
    if story.description:
        description = story.description[:300] + ("..." if len(story.description) > 300 else "")
        lines.append(f"\n[italic]{description}[/italic]")
    if story.chapters:
        lines.append("")
        lines.extend(f"  {ch.order}. {ch.title}" for ch in story.chapters)

    panel = Panel(
        "\n".join(lines),
        title=f"[bold yellow]{story.title}[/bold yellow]",
        subtitle=f"[dim]{story.id}[/dim]",
        border_style="yellow",
    )
    console.print(panel)


def print_comments(comments: list[Comment]) -> None:
    if not comments:
        console.print("[dim]No comments yet.[/dim]")
        return
    table = Table(title="Comments", border_style="cyan")
    table.add_column("User", style="bold")
    table.add_column("Comment")
    table.add_column("Posted")
    for comment in comments:
        edited = comment.updated_at not in (None, comment.created_at)
        table.add_row(
            comment.user_name,
            comment.text,
            _date(comment.created_at) + (" (edited)" if edited else ""),
        )
    console.print(table)


def print_user_stories(stories: list[UserStory]) -> None:
    if not stories:
        console.print("[dim]No stories found.[/dim]")
        return
    table = Table(title="Stories by Author", border_style="yellow")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Comments", justify="right")
    table.add_column("Rating", justify="right")
    for story in stories:
        table.add_row(
            story.id, story.title, str(story.comment_count), f"{story.average_rating:.1f}"
        )
    console.print(table)


def print_checks(results: list[tuple[str, bool, str]]) -> None:
    table = Table(title="Backend Check", border_style="cyan")
    table.add_column("Check", style="bold")
    table.add_column("Result")
    table.add_column("Detail", style="dim")
    for name, ok, detail in results:
        table.add_row(name, "[green]OK[/green]" if ok else "[red]FAILED[/red]", detail)
    console.print(table)


def print_success(message: str) -> None:
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    error_console.print(f"[bold red]Error:[/bold red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")
