"""Console UI for terminal output using Rich."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from papervault.config import Settings
from papervault.errors import FieldError
from papervault.models.paper import PageInfo, PaperRecord


class ConsoleUI:
    """Rich-based console UI for paper display and notifications.

    Paper metadata is user input, so every value is passed through
    ``escape`` before it reaches a markup string or a table cell.
    """

    def __init__(self, console: Optional[Console] = None):
        """Initialize console."""
        self.console = console or Console()

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self.console.print(f"[red]Error:[/red] {escape(message)}")

    def validation_errors(self, errors: list[FieldError]) -> None:
        """Print every field-level problem, one per line."""
        self.console.print("[red]Validation failed:[/red]")
        for e in errors:
            self.console.print(f"  [bold]{escape(e.field)}[/bold]: {escape(e.message)}")

    def uploaded(self, paper: PaperRecord) -> None:
        """Print upload confirmation."""
        self.console.print(
            f"[green]Uploaded[/green] {escape(repr(paper.title))} as "
            f"[bold]{escape(paper.id)}[/bold] ({paper.file_size} bytes)"
        )

    def deleted(self, paper: PaperRecord, purged: bool) -> None:
        """Print delete confirmation."""
        suffix = " and its PDF" if purged else ""
        self.console.print(f"[green]Deleted[/green] {escape(paper.id)}{suffix}")

    def display_paper(self, paper: PaperRecord) -> None:
        """Display one paper's full metadata."""
        table = Table(show_header=False, title=escape(paper.title))
        table.add_column("Field", style="bold")
        table.add_column("Value", overflow="fold")
        table.add_row("ID", escape(paper.id))
        table.add_row("Authors", escape(", ".join(paper.authors)))
        table.add_row("Year", str(paper.year) if paper.year else "-")
        table.add_row("Keywords", escape(", ".join(paper.keywords)) or "-")
        table.add_row("Abstract", escape(paper.abstract) if paper.abstract else "-")
        table.add_row("File", f"{escape(paper.file_name)} ({paper.file_size} bytes)")
        table.add_row("Reference", escape(paper.file_ref))
        table.add_row("Created", paper.created_at)
        self.console.print(table)

    def display_papers(
        self,
        papers: list[PaperRecord],
        pagination: PageInfo,
        title: str = "Papers",
    ) -> None:
        """Display papers in a formatted table with a pagination footer.

        Args:
            papers: Papers on the current page
            pagination: Page block for the full result set
            title: Table title (plain text, may contain user input)
        """
        table = Table(title=escape(title))
        table.add_column("ID", overflow="fold")
        table.add_column("Year", justify="right", width=6)
        table.add_column("Title", overflow="fold")
        table.add_column("Authors", overflow="fold")
        table.add_column("Created", width=10)

        for paper in papers:
            table.add_row(
                escape(paper.id),
                str(paper.year) if paper.year else "-",
                escape(paper.title),
                escape(", ".join(paper.authors)),
                paper.created_at[:10],
            )

        self.console.print(table)

        if not papers:
            self.console.print("No papers found.")
        self.console.print(
            f"Page {pagination.page}/{max(pagination.total_pages, 1)} "
            f"· {pagination.total_count} total"
            + (" · more: --page {}".format(pagination.page + 1) if pagination.has_next else "")
        )

    def display_settings(self, settings: Settings) -> None:
        """Display the effective settings as a key/value table."""
        storage = settings.storage
        table = Table(show_header=False, title="Settings")
        table.add_column("Key", style="bold")
        table.add_column("Value", overflow="fold")
        rows = [
            ("db_path", settings.db_path),
            ("log_level", settings.log_level),
            ("api", f"{settings.api_host}:{settings.api_port}"),
            ("storage.backend", storage.backend),
            ("storage.root", storage.root),
            ("storage.bucket", storage.bucket or "-"),
            ("storage.prefix", storage.prefix),
        ]
        for key, value in rows:
            table.add_row(key, escape(str(value)))
        self.console.print(table)
