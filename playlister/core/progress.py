"""
Progress bar for the track search phase, using the Rich library.

The bar is fed by sync pipeline progress entries: every found / not found /
search error entry advances it by one, and every entry is printed above it.

Usage:
    from playlister.core.progress import SearchProgressBar

    with SearchProgressBar(total=len(file_names)) as progress:
        pipeline.subscribe(progress.handle_entry)
        pipeline.run(file_names, playlist_name)

Example:
    Searching    ✓ 45  ✗ 2  ⚠ 1    ━━━━━━━━━━━━━━━━━━━━━━━╸━━━━━━━  48/64  Bohemian Rhapsody Queen
"""

from typing import Optional

from rich import get_console
from rich.console import JustifyMethod, OverflowMethod
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
)
from rich.style import StyleType
from rich.text import Text
from rich.theme import Theme

from playlister.sync.pipeline import ProgressEntry, ProgressKind


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(30,215,96)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(30,215,96)",
    "progress.percentage": "white",
})

ENTRY_STYLES = {
    ProgressKind.FOUND: "green",
    ProgressKind.NOT_FOUND: "red",
    ProgressKind.SEARCH_ERROR: "yellow",
    ProgressKind.PLAYLIST: "cyan",
    ProgressKind.ADDED: "bold green",
    ProgressKind.NOTHING_ADDED: "yellow",
    ProgressKind.FAILED: "bold red",
}

# Per-track outcomes and the counter each one advances
TRACK_COUNTERS = {
    ProgressKind.FOUND: "found",
    ProgressKind.NOT_FOUND: "not_found",
    ProgressKind.SEARCH_ERROR: "errors",
}


class SizedTextColumn(ProgressColumn):
    """
    Text column truncated with an ellipsis past a fixed width.
    """

    def __init__(
        self,
        text_format: str,
        style: StyleType = "none",
        justify: JustifyMethod = "left",
        overflow: Optional[OverflowMethod] = None,
        width: int = 20,
    ) -> None:
        self.text_format = text_format
        self.justify: JustifyMethod = justify
        self.style = style
        self.overflow: Optional[OverflowMethod] = overflow
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        text = Text.from_markup(
            self.text_format.format(task=task), style=self.style, justify=self.justify
        )
        text.truncate(max_width=self.width, overflow=self.overflow, pad=True)
        return text


class SearchProgressBar:
    """
    Live display of a sync run.

    Every progress entry is printed above the bar. Per-track entries
    (found, not found, search error) advance it and update the counters;
    the last searched query is shown next to them.

    Attributes:
        total: Number of file names to search.
        found, not_found, errors: Per-track outcome counts so far.
    """

    def __init__(self, total: int, description: str = "Searching") -> None:
        self.total = total
        self.description = description
        self.found = 0
        self.not_found = 0
        self.errors = 0

        self.console = get_console()
        self.progress = Progress(
            SizedTextColumn("[white]{task.description}", overflow="ellipsis", width=12),
            SizedTextColumn("{task.fields[status]}", width=22, style="white"),
            BarColumn(bar_width=30, finished_style="green"),
            MofNCompleteColumn(),
            SizedTextColumn("[grey50]{task.fields[query]}", overflow="ellipsis", width=36),
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )
        self.task_id: Optional[TaskID] = None

    @property
    def completed(self) -> int:
        return self.found + self.not_found + self.errors

    def __enter__(self) -> "SearchProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if self.task_id is not None:
            return
        self.console.push_theme(PROGRESS_THEME)
        self.progress.start()
        self.task_id = self.progress.add_task(
            self.description, total=self.total, status=self._status_text(), query=""
        )

    def stop(self) -> None:
        if self.task_id is None:
            return
        self.progress.stop()
        self.console.pop_theme()
        self.task_id = None

    def log(self, message: str, style: str | None = None) -> None:
        """Print a message above the bar. Rich markup in it is not interpreted."""
        text = escape(message)
        if style:
            text = f"[{style}]{text}[/{style}]"
        self.progress.console.print(text, highlight=False)

    def handle_entry(self, entry: ProgressEntry) -> None:
        """SyncPipeline subscriber."""
        self.log(entry.message, ENTRY_STYLES.get(entry.kind))

        counter = TRACK_COUNTERS.get(entry.kind)
        if counter is None:
            return
        setattr(self, counter, getattr(self, counter) + 1)

        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._status_text(),
                query=escape(entry.query or ""),
            )

    def _status_text(self) -> str:
        status = f"[green]✓ {self.found}[/green]  [red]✗ {self.not_found}[/red]"
        if self.errors:
            status += f"  [yellow]⚠ {self.errors}[/yellow]"
        return status
