"""Rich progress bars for the Collect, Sync and Validate phases."""

from __future__ import annotations

from types import TracebackType

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TaskID, TextColumn

from catalogsync.engine.progress import SyncProgress

_PHASE_STYLES = {"Collect": "cyan", "Sync": "green", "Validate": "blue"}


class RichSyncProgress(SyncProgress):
    """One bar per phase on stderr. Use as a context manager around a run."""

    def __init__(self, console: Console | None = None) -> None:
        self._progress = Progress(
            SpinnerColumn(finished_text="[green]✓[/green]"),
            TextColumn("{task.description:>10}"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            console=console or Console(stderr=True),
        )
        self._phases: dict[str, tuple[TaskID, int]] = {}

    def __enter__(self) -> RichSyncProgress:
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self._progress.stop()

    def phase_start(self, phase: str, total: int | None = None) -> None:
        # Collecting has no item count and is drawn as a single step.
        steps = 1 if total is None else total
        style = _PHASE_STYLES.get(phase, "white")
        self._phases[phase] = (self._progress.add_task(f"[{style}]{phase}[/]", total=steps), steps)

    def item_done(self, phase: str) -> None:
        if phase in self._phases:
            self._progress.advance(self._phases[phase][0])

    def phase_done(self, phase: str) -> None:
        if phase in self._phases:
            task_id, steps = self._phases[phase]
            self._progress.update(task_id, completed=steps)

    def phase_error(self, phase: str, error: BaseException) -> None:
        if phase in self._phases:
            self._progress.update(self._phases[phase][0], description=f"[red]✗ {phase}[/red]")
