# src/diagpack/cli/formatter.py
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from diagpack.core.models import Outcome, OutcomeStatus, RunReport

# Initialize the Rich console for high-quality terminal output
console = Console()

SUPPORT_PORTAL = "https://anomalo.zendesk.com"
SUPPORT_EMAIL = "support@anomalo.com"


class DiagFormatter:
    """
    DiagFormatter: The visual heart of the CLI.
    Every component echoes through one instance so that ordinary status
    lines and the live progress bar share a single Console.
    """

    def __init__(self, out: Optional[Console] = None):
        self.console = out or console

    def print_header(self):
        self.console.print(Panel.fit(
            "[bold yellow]This tool will gather diagnostic information about\n"
            "your Anomalo deployment.\n\n"
            "Attach the generated zip file to your support ticket in\n"
            f"the Anomalo Support Portal: {SUPPORT_PORTAL}\n"
            f"or send it to {SUPPORT_EMAIL}[/bold yellow]",
            title="[bold green]Anomalo Diagnostic Tool[/bold green]",
            border_style="cyan"
        ))

    def info(self, message: str):
        self.console.print(f"[cyan]INFO:[/cyan] {message}")

    def success(self, message: str):
        self.console.print(f"[green]✓[/green] {message}")

    def failure(self, message: str):
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str):
        self.console.print(f"[bold yellow]WARNING:[/bold yellow] {message}")

    def error(self, message: str):
        self.console.print(f"[bold red]ERROR:[/bold red] {message}")

    def outcome(self, outcome: Outcome):
        if outcome.status is OutcomeStatus.SUCCESS:
            self.success(outcome.description)
        elif outcome.status is OutcomeStatus.FAILURE:
            self.failure(outcome.description)
        else:
            self.warning(outcome.description)

    def print_report_table(self, report: RunReport):
        """Per-task table shown once collection is over. Only problems are listed row by row."""
        problems = [o for o in report.outcomes if not o.ok]
        if not problems:
            return

        table = Table(title="Collection Issues", show_lines=True, header_style="bold magenta")
        table.add_column("Task", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Detail", style="dim")

        for o in problems:
            color = "red" if o.status is OutcomeStatus.FAILURE else "yellow"
            detail = (o.error or "").strip().splitlines()
            table.add_row(o.description, f"[{color}]{o.status.value.upper()}[/{color}]", detail[-1] if detail else "")

        self.console.print(table)

    def print_final(self, archive_path: str, report: RunReport):
        self.print_report_table(report)
        self.console.print(Panel(
            f"[bold white]✓ Diagnostic collection completed successfully![/bold white]\n"
            f"════════════════════════════════════════\n"
            f"Output file:  [bold cyan]{archive_path}[/bold cyan]\n"
            f"Collected:    [green]{report.successes}[/green]\n"
            f"Failed:       [red]{report.failures}[/red]\n"
            f"Warnings:     [yellow]{report.warnings}[/yellow]\n\n"
            f"Please send the zip file to Anomalo Support:\n"
            f"  - Support Portal: {SUPPORT_PORTAL}\n"
            f"  - Email: {SUPPORT_EMAIL}",
            border_style="green"
        ))
