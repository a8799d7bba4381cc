"""Rich progress display and terminal prompts for the CLI."""

from __future__ import annotations

import asyncio
import logging
import sys

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Prompt

console = Console()

STAGE_LABELS = {
    "analysis": "Analyzing project and fetching external data",
    "strategy": "Building strategy",
    "tactical": "Planning actions",
    "risk": "Assessing risks",
    "synthesis": "Synthesizing report",
}


class FlowProgress:
    """One spinner per advisory stage; the previous stage is ticked off when the next starts."""

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_ids: dict[str, int] = {}
        self._current: str | None = None

    def __enter__(self) -> "FlowProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def start_stage(self, stage: str) -> None:
        if self._current is not None:
            self.finish_stage(self._current)
        label = STAGE_LABELS.get(stage, stage)
        self._task_ids[stage] = self._progress.add_task(f"[cyan]{label}[/]", total=None)
        self._current = stage

    def finish_stage(self, stage: str) -> None:
        if stage in self._task_ids:
            self._progress.update(
                self._task_ids[stage],
                description=f"[green]✓ {STAGE_LABELS.get(stage, stage)}[/]",
                completed=True,
            )
        if self._current == stage:
            self._current = None

    def fail_current(self, error: str) -> None:
        """Mark the running stage as failed."""
        if self._current is not None and self._current in self._task_ids:
            self._progress.update(
                self._task_ids[self._current],
                description=f"[red]✗ {STAGE_LABELS.get(self._current, self._current)}: {error}[/]",
                completed=True,
            )
            self._current = None

    def finish(self) -> None:
        if self._current is not None:
            self.finish_stage(self._current)

    def print_phase(self, label: str) -> None:
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))


async def ask_user(question: str) -> str | None:
    """Prompt for an answer without blocking the event loop.

    Returns None when stdin is not interactive or is closed. Log output is
    muted while waiting so the prompt renders cleanly.
    """
    if not sys.stdin.isatty():
        console.print(f"[yellow]Question (non-interactive, skipped):[/] {question}")
        return None

    root_logger = logging.getLogger()
    prev_level = root_logger.level
    root_logger.setLevel(logging.CRITICAL)

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, lambda: Prompt.ask(f"\n[yellow]?[/] {question}"))
    except EOFError:
        return None
    finally:
        root_logger.setLevel(prev_level)
