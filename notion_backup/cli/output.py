"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
status messages, spinners, the backup progress bar, the workspace tree and
the backup summary. Supports verbosity levels and --no-color.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.spinner import Spinner
from rich.live import Live
from rich.tree import Tree

from notion_backup.backup.progress import BackupProgress
from notion_backup.page_tree.models import PageNode

PHASE_LABELS = {
    "converting": "Converting pages",
    "downloading-images": "Downloading images",
    "creating-zip": "Creating archive",
}


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1)
        >>> with handler.spinner("Listing pages..."):
        ...     records = api.list_pages()
        >>> handler.success("Done")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(escape(message))

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a single operation runs."""
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    @contextmanager
    def progress_bar(self, total: int = 100, description: str = "Backing up") -> Iterator[Progress]:
        """Display a progress bar; yields the Progress with one task already added.

        Example:
            >>> with handler.progress_bar() as progress:
            ...     task = progress.task_ids[0]
            ...     progress.update(task, completed=40)
        """
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self.console,
        )
        with progress:
            progress.add_task(description, total=total)
            yield progress

    @staticmethod
    def describe_progress(snapshot: BackupProgress) -> str:
        """One-line description of a progress snapshot."""
        label = PHASE_LABELS.get(snapshot.phase, snapshot.phase)
        if snapshot.current_label:
            return f"{label} ({snapshot.current}/{snapshot.total}): {escape(snapshot.current_label)}"
        return label

    def print_page_tree(self, roots: List[PageNode], title: str = "Workspace") -> None:
        """Display the page hierarchy as a tree with ids."""
        tree = Tree(f"[bold]{escape(title)}[/bold]")

        def _add(branch: Tree, nodes: List[PageNode]) -> None:
            for node in nodes:
                icon = node.record.icon.value + " " if node.record.icon and node.record.icon.kind == "emoji" else ""
                child = branch.add(f"{icon}{escape(node.title)} [dim]{node.page_id}[/dim]")
                _add(child, node.children)

        _add(tree, roots)
        self.console.print(tree)

    def print_backup_summary(self, snapshot: BackupProgress, archive_path: str) -> None:
        """Display the final counters of a backup run."""
        pages = snapshot.page_stats
        images = snapshot.image_stats

        self.console.print("\n[bold]Backup Summary:[/bold]")
        self.console.print(f"  [green]✓[/green] Pages converted: {pages.converted}/{pages.total}")
        if pages.failed:
            self.console.print(f"  [red]✗[/red] Pages failed: {pages.failed}")
        if images.total:
            self.console.print(f"  [green]✓[/green] Images downloaded: {images.downloaded}/{images.total}")
        if images.failed:
            self.console.print(f"  [yellow]⚠[/yellow] Images kept as remote links: {images.failed}")

        if pages.failed or images.failed:
            self.console.print(f"\n[yellow]Backup completed with errors: {escape(archive_path)}[/yellow]")
        else:
            self.console.print(f"\n[green]Backup written to {escape(archive_path)}[/green]")
