#!/usr/bin/env python3
"""Interactive CLI for the tourism feedback service.

This allows staff to:
1. Enter visitor feedback directly in the terminal
2. See the sentiment, recommendation score and priority immediately
3. View the aggregate statistics report and its insights
4. Reprocess stored feedback that has no sentiment analysis
"""
import asyncio
import logging
import sys
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.prompt import Prompt

from config import config
from database import init_db, get_db_session
from ai_analyzer import AISentimentAnalyzer
from alerting import AlertService
from feedback_service import FeedbackService, FeedbackValidationError
from schemas import FeedbackRecord, FeedbackRequest, FeedbackStats

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

console = Console()

RATING_CHOICES = list(config.RATING_VALUES)
RATING_PROMPTS = [
    ("cleanliness", "Cleanliness"),
    ("staff_behavior", "Staff behavior"),
    ("information", "Information"),
    ("signage", "Signage"),
    ("safety", "Safety"),
]
PRIORITY_STYLES = {"high": "bold red", "medium": "yellow", "low": "green"}


class InteractiveFeedbackSystem:
    """Interactive feedback entry and reporting."""

    def __init__(self):
        """Initialize the system."""
        analyzer = AISentimentAnalyzer() if config.AI_PROVIDER_ENABLED else None
        self.service = FeedbackService(analyzer, AlertService())

    def prompt_feedback(self) -> FeedbackRequest:
        """Ask for every field of a feedback submission."""
        values = {
            "name": Prompt.ask("Visitor name"),
            "email": Prompt.ask("Email"),
            "mobile": Prompt.ask("Mobile (10 digits)"),
            "address": Prompt.ask("Address", default="") or None,
            "location_visited": Prompt.ask("Location visited"),
        }
        for field, label in RATING_PROMPTS:
            values[field] = Prompt.ask(label, choices=RATING_CHOICES, default="Very Good")
        values["overall_experience"] = Prompt.ask("Overall experience")
        values["suggestions"] = Prompt.ask("Suggestions", default="")

        return FeedbackRequest(**values)

    def display_record(self, record: FeedbackRecord):
        """Display a stored record's analysis.

        Args:
            record: The stored feedback record
        """
        table = Table(
            title="📊 Feedback Analysis",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )

        table.add_column("Attribute", style="cyan", width=24)
        table.add_column("Value", style="green")

        combined = record.sentiment_analysis.combined_analysis
        table.add_row("Feedback ID", record.id)
        table.add_row("Location", record.visit_info.location_visited)
        table.add_row("Average rating", f"{record.ratings.average_score:.2f} / 4")
        if combined:
            table.add_row("Sentiment", combined.sentiment)
            table.add_row("Confidence", f"{combined.confidence:.2f}")
            table.add_row("Emotions", ", ".join(combined.emotions) or "-")
            table.add_row("Key phrases", ", ".join(combined.key_phrases) or "-")
        else:
            table.add_row("Sentiment", "not analyzed")
        table.add_row("Recommendation score", str(record.analytics.recommendation_score))
        level = record.analytics.priority_level
        table.add_row("Priority", f"[{PRIORITY_STYLES[level]}]{level}[/]")

        console.print(table)

        if level == "high":
            console.print(Panel(
                "[bold red]This feedback needs follow-up.[/bold red]\n"
                "→ Review the visitor's comments\n"
                "→ Contact the visitor if required",
                title="🚨 HIGH PRIORITY 🚨",
                border_style="bold red",
                box=box.DOUBLE,
                padding=(1, 2)
            ))

    def display_stats(self, stats: FeedbackStats):
        """Display the aggregate statistics report."""
        if stats.total == 0:
            console.print("[yellow]No feedback available[/yellow]")
            return

        summary = Table(title="📈 Feedback Statistics", box=box.ROUNDED)
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", style="green")
        summary.add_row("Total feedback", str(stats.total))
        summary.add_row("Recommendation score", f"{stats.recommendation_score}%")
        for category, score in stats.average_ratings.model_dump(by_alias=True).items():
            summary.add_row(f"Rating: {category}", f"{score:.2f}")
        distribution = stats.sentiment_distribution
        summary.add_row(
            "Sentiment (+/=/-)",
            f"{distribution.positive} / {distribution.neutral} / {distribution.negative}"
        )
        priority = stats.priority_distribution
        summary.add_row(
            "Priority (high/medium/low)",
            f"{priority.high} / {priority.medium} / {priority.low}"
        )
        console.print(summary)

        locations = Table(title="By location", box=box.SIMPLE)
        locations.add_column("Location", style="cyan")
        locations.add_column("Count", justify="right")
        for location, count in stats.by_location.items():
            locations.add_row(location, str(count))
        console.print(locations)

        for insight in stats.insights:
            style = PRIORITY_STYLES[insight.priority]
            console.print(f"[{style}]• [{insight.type}] {insight.message}[/]")

    async def submit(self):
        try:
            request = self.prompt_feedback()
        except ValueError as e:
            console.print(f"[red]⚠️  Invalid input: {e}[/red]")
            return

        console.print("\n[bold]Processing feedback...[/bold]\n")
        async with get_db_session() as db:
            try:
                record = await self.service.submit(db, request)
            except FeedbackValidationError as e:
                fields = ", ".join(e.fields)
                console.print(f"[red]⚠️  {e.error}: {e.message} ({fields})[/red]")
                return

        self.display_record(record)

    async def show_stats(self):
        async with get_db_session() as db:
            stats = await self.service.get_stats(db)
        self.display_stats(stats)

    async def reprocess(self):
        console.print("[yellow]🤖 Reprocessing stored feedback...[/yellow]")
        async with get_db_session() as db:
            result = await self.service.reprocess(db)
        console.print(
            f"[green]✅ Updated {result.updated_count} of "
            f"{result.processed_count} feedback entries[/green]"
        )

    def display_welcome(self):
        """Display welcome message."""
        ai_line = (
            f"[green]✓[/green] AI: {config.AI_MODEL}"
            if config.AI_PROVIDER_ENABLED else "[yellow]✗[/yellow] AI analysis disabled"
        )
        welcome = f"""
[bold cyan]Tourism Feedback Analytics[/bold cyan]
[dim]Interactive CLI Mode[/dim]

Commands:
  [bold]submit[/bold]     enter a visitor feedback form
  [bold]stats[/bold]      show the statistics report
  [bold]reprocess[/bold]  analyze stored feedback without sentiment
  [bold]quit[/bold]       exit

{ai_line}
        """

        console.print(Panel(welcome, border_style="bold blue", box=box.DOUBLE, padding=(1, 2)))
        console.print()

    async def run_interactive(self):
        """Run the interactive CLI loop."""
        self.display_welcome()
        commands = {
            "submit": self.submit,
            "stats": self.show_stats,
            "reprocess": self.reprocess,
        }

        while True:
            console.print()
            command = Prompt.ask(
                "Command",
                choices=[*commands, "quit"],
                default="submit"
            )

            if command == "quit":
                console.print("\n[cyan]Goodbye![/cyan]\n")
                break

            await commands[command]()


async def main():
    """Main entry point."""
    console.print("[cyan]Initializing database...[/cyan]")
    await init_db()

    system = InteractiveFeedbackSystem()

    try:
        await system.run_interactive()
    except KeyboardInterrupt:
        console.print("\n\n[cyan] Goodbye![/cyan]\n")
        sys.exit(0)


if __name__ == "__main__":
    asyncio.run(main())
