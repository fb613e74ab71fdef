"""Rich-based progress reporter implementation."""
from __future__ import annotations

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text

from ..core.models import DuplicateRecord, SortProgress, SortSummary


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route library logging through Rich on stderr."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=verbose,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


class FilesPerSecondColumn(ProgressColumn):
    """Files sorted per second, from rich's own speed estimate."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("-- f/s", style="magenta")
        return Text(f"{speed:.1f} f/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((current_time, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            time_diff = newest_time - oldest_time
            if time_diff > 0:
                speed = (newest_completed - oldest_completed) / time_diff
                return Text(f"{speed:.1f} f/s", style="magenta")

        elapsed = current_time - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} f/s", style="magenta")

        return Text("-- f/s", style="magenta")


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressReporter protocol; the bar is created on the
    first snapshot that carries a total.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable debug output.
            quiet: Suppress all non-essential output.
            console: Console to write to (stderr by default).
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None
        self._last: Optional[SortProgress] = None

    @property
    def console(self) -> Console:
        return self._console

    @property
    def last_progress(self) -> Optional[SortProgress]:
        return self._last

    # --- Progress channel ---

    def report(self, progress: SortProgress) -> None:
        """Receive a progress snapshot from the sorter."""
        self._last = progress
        if self._quiet or progress.total == 0:
            return

        if self._progress is None:
            self._start(progress.total)

        description = "Cancelled" if progress.cancelled else "Sorting"
        self._progress.update(
            self._task_id,
            completed=progress.completed,
            total=progress.total,
            description=description,
        )

    def _start(self, total: int) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("Sorting", total=total)

    def stop(self) -> None:
        """Stop the live progress bar, if any."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._task_id = None

    # --- Messages ---

    def success(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red]✗[/red] {message}", style="red")

    # --- Specialized output ---

    def print_header(self, title: str) -> None:
        if self._quiet:
            return
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table."""
        if self._quiet:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        for key, value in config_items.items():
            table.add_row(key, str(value))
        self._console.print(table)

    def print_summary(self, summary: SortSummary, resolved: int = 0) -> None:
        """Print the outcome of a run."""
        if self._quiet:
            return

        table = Table(title="Sort Complete", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")
        table.add_row("Files Found", str(summary.progress.total))
        table.add_row("Files Placed", str(summary.placed))
        table.add_row("Duplicates", str(len(summary.duplicates)))
        if resolved:
            table.add_row("Duplicates Resolved", str(resolved))
        table.add_row("No Capture Date", str(len(summary.undated)))
        self._console.print(table)

        if self._verbose and summary.undated:
            self._console.print("\n[yellow]Left in place (no capture date):[/yellow]")
            for path in summary.undated:
                self._console.print(f"  [dim]{path}[/dim]")

    def print_duplicate(self, record: DuplicateRecord, remaining: int) -> None:
        """Show one duplicate before asking what to do with it."""
        table = Table(title=f"Duplicate File Detected ({remaining} left)", show_header=False)
        table.add_column("Side", style="cyan")
        table.add_column("Path", style="white")
        table.add_row("Source", str(record.source))
        table.add_row("Destination", str(record.destination))
        self._console.print(table)

    # --- Context manager ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.stop()


class QuietProgressReporter:
    """Minimal reporter that only shows warnings and errors."""

    def __init__(self):
        self._console = Console(stderr=True)
        self._last: Optional[SortProgress] = None

    @property
    def console(self) -> Console:
        return self._console

    @property
    def last_progress(self) -> Optional[SortProgress]:
        return self._last

    def report(self, progress: SortProgress) -> None:
        self._last = progress

    def stop(self) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass

    def print_summary(self, summary: SortSummary, resolved: int = 0) -> None:
        pass

    def print_duplicate(self, record: DuplicateRecord, remaining: int) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
