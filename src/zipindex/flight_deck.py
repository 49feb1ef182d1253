"""Flight Deck - a TUI for running ingestions and watching the index fill up."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import (
    Button,
    DataTable,
    DirectoryTree,
    Footer,
    Header,
    Input,
    Label,
    Log,
    ProgressBar,
    Rule,
    Static,
)

from zipindex import config
from zipindex.errors import ZipIndexError
from zipindex.models import IndexedEntry, ProjectStatus, WalkStats
from zipindex.services import ProjectService
from zipindex.storage import IndexStoreSQLite
from zipindex.utils.formatting import format_size


@dataclass
class DeckStats:
    """Statistics shown while an ingestion runs."""

    walk: WalkStats = field(default_factory=WalkStats)
    project_id: int | None = None
    current_path: str = ""
    status: str = "idle"
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def elapsed(self) -> str:
        if not self.start_time:
            return "00:00"
        end = self.end_time or datetime.now()
        minutes, seconds = divmod(int((end - self.start_time).total_seconds()), 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def rate(self) -> str:
        if not self.start_time or self.walk.entries_indexed == 0:
            return "-- entries/s"
        elapsed = ((self.end_time or datetime.now()) - self.start_time).total_seconds()
        if elapsed == 0:
            return "-- entries/s"
        return f"{self.walk.entries_indexed / elapsed:.1f} entries/s"

    def copy(self) -> "DeckStats":
        return DeckStats(
            walk=self.walk.copy(),
            project_id=self.project_id,
            current_path=self.current_path,
            status=self.status,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class StatsPanel(Static):
    """Real-time statistics display."""

    def compose(self) -> ComposeResult:
        yield Static(id="stats-content")

    def on_mount(self) -> None:
        self.update_display(DeckStats())

    def update_display(self, stats: DeckStats) -> None:
        content = self.query_one("#stats-content", Static)
        status_color = {
            "idle": "dim",
            "importing": "yellow",
            "processing": "green",
            "completed": "cyan",
            "failed": "red",
        }.get(stats.status, "white")
        project = f"#{stats.project_id}" if stats.project_id is not None else "--"
        walk = stats.walk

        content.update(f"""[b]STATUS[/b]  [{status_color}]{stats.status.upper()}[/]
[b]PROJECT[/b] {project}

[b]TIME[/b]    {stats.elapsed}  {stats.rate}

[b]INDEX[/b]
  Entries     [cyan]{walk.entries_indexed:,}[/]
  Directories [blue]{walk.directories:,}[/]
  Files       [green]{walk.files:,}[/]
  Previews    [magenta]{walk.previews:,}[/]

[b]NESTING[/b]
  Archives    [yellow]{walk.nested_archives:,}[/]
  Errors      [red]{walk.errors:,}[/]

[b]SIZE[/b]
  Declared    [cyan]{format_size(walk.bytes_declared)}[/]""")


class CurrentEntryDisplay(Static):
    """Display for the most recently indexed entry."""

    def compose(self) -> ComposeResult:
        yield Static("[dim]Waiting for archive...[/]", id="current-entry-content")

    def update_entry(self, path: str) -> None:
        content = self.query_one("#current-entry-content", Static)
        if path:
            display = path if len(path) < 50 else "..." + path[-47:]
            content.update(f"[bold cyan]>[/] {display}")
        else:
            content.update("[dim]Waiting for archive...[/]")


class EntryLogTable(DataTable):
    """Live log of indexed entries."""

    def on_mount(self) -> None:
        self.add_columns("Path", "Kind", "Preview", "Size")
        self.cursor_type = "row"

    def add_entry(self, entry: IndexedEntry) -> None:
        kind = "[blue]dir[/]" if entry.is_directory else "file"
        has_preview = "[magenta]yes[/]" if entry.has_preview else "[dim]--[/]"
        display_path = entry.path if len(entry.path) <= 48 else "..." + entry.path[-45:]
        self.add_row(display_path, kind, has_preview, format_size(entry.size_bytes))
        self.scroll_end()


class FlightDeck(App):
    """The zipindex Flight Deck - ingestion console."""

    # Messages for thread-safe communication
    class StatsUpdated(Message):
        def __init__(self, stats: DeckStats) -> None:
            self.stats = stats
            super().__init__()

    class LogMessage(Message):
        def __init__(self, message: str) -> None:
            self.message = message
            super().__init__()

    class EntryIndexed(Message):
        def __init__(self, entry: IndexedEntry) -> None:
            self.entry = entry
            super().__init__()

    CSS = """
    Screen {
        background: $surface;
    }

    #main-container {
        layout: horizontal;
        height: 100%;
    }

    #left-panel {
        width: 35;
        background: $surface-darken-1;
        border-right: solid $primary-darken-2;
        padding: 1;
    }

    #center-panel {
        width: 1fr;
        padding: 1;
    }

    #right-panel {
        width: 30;
        background: $surface-darken-1;
        border-left: solid $primary-darken-2;
        padding: 1;
    }

    StatsPanel {
        height: auto;
        padding: 1;
        background: $surface-darken-2;
        border: round $primary;
        margin-bottom: 1;
    }

    CurrentEntryDisplay {
        height: 3;
        padding: 1;
        background: $boost;
        border: round $secondary;
        margin-bottom: 1;
    }

    #source-input {
        margin-bottom: 1;
    }

    #action-buttons {
        layout: horizontal;
        height: 3;
        margin-bottom: 1;
    }

    #action-buttons Button {
        margin-right: 1;
    }

    EntryLogTable {
        height: 100%;
        border: round $primary-darken-1;
    }

    #progress-bar {
        width: 100%;
        margin-bottom: 1;
    }

    #log-panel {
        height: 12;
        border: round $primary-darken-2;
        background: $surface-darken-2;
    }

    .section-title {
        text-style: bold;
        margin-bottom: 1;
    }

    DirectoryTree {
        height: 100%;
        border: round $primary-darken-1;
        background: $surface-darken-2;
    }

    #db-info {
        height: auto;
        padding: 1;
        background: $surface-darken-2;
        border: round $accent;
    }
    """

    BINDINGS = [
        Binding("i", "ingest", "Ingest", show=True),
        Binding("c", "clear", "Clear", show=True),
        Binding("q", "quit", "Quit", show=True),
        Binding("d", "toggle_dark", "Toggle Dark Mode"),
    ]

    TITLE = "zipindex Flight Deck"
    SUB_TITLE = "Archive Ingestion Console"

    def __init__(self, db: str = config.DATABASE_PATH) -> None:
        super().__init__()
        self.db = db
        store = IndexStoreSQLite(db)
        store.initialize()
        self.service = ProjectService(store)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container(id="main-container"):
            # Left panel - Stats & Controls
            with Vertical(id="left-panel"):
                yield Label("MISSION CONTROL", classes="section-title")
                yield StatsPanel()
                yield CurrentEntryDisplay()
                yield Rule()
                yield Label("Archive Path")
                yield Input(placeholder="Enter .zip path...", id="source-input")
                with Horizontal(id="action-buttons"):
                    yield Button("INGEST", id="ingest-btn", variant="success")
                    yield Button("Clear", id="clear-btn", variant="warning")
                yield Rule()
                yield Static(f"[b]Index[/]\n[dim]{self.db}[/]", id="db-info")

            # Center panel - entry log
            with Vertical(id="center-panel"):
                yield Label("INDEXED ENTRIES", classes="section-title")
                yield ProgressBar(id="progress-bar", total=None, show_eta=False)
                yield EntryLogTable(id="entry-log")
                yield Rule()
                yield Label("SYSTEM LOG", classes="section-title")
                yield Log(id="log-panel", highlight=True, auto_scroll=True)

            # Right panel - archive picker
            with Vertical(id="right-panel"):
                yield Label("FILE BROWSER", classes="section-title")
                yield DirectoryTree(Path.cwd(), id="dir-tree")

        yield Footer()

    def on_mount(self) -> None:
        self._log("Flight Deck initialized")
        self._log("Enter a .zip path and press INGEST to begin")

    def _log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.query_one("#log-panel", Log).write_line(f"[{timestamp}] {message}")

    # Message handlers for thread-safe updates
    def on_flight_deck_stats_updated(self, event: StatsUpdated) -> None:
        stats = event.stats
        self.query_one(StatsPanel).update_display(stats)
        self.query_one(CurrentEntryDisplay).update_entry(stats.current_path)
        if stats.end_time is not None:
            self.query_one("#progress-bar", ProgressBar).update(total=1, progress=1)

    def on_flight_deck_log_message(self, event: LogMessage) -> None:
        self._log(event.message)

    def on_flight_deck_entry_indexed(self, event: EntryIndexed) -> None:
        self.query_one("#entry-log", EntryLogTable).add_entry(event.entry)

    def on_directory_tree_file_selected(self, event: DirectoryTree.FileSelected) -> None:
        self.query_one("#source-input", Input).value = str(event.path)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "ingest-btn":
            self.action_ingest()
        elif event.button.id == "clear-btn":
            self.action_clear()

    def action_clear(self) -> None:
        self.query_one(StatsPanel).update_display(DeckStats())
        self.query_one(CurrentEntryDisplay).update_entry("")
        self.query_one("#entry-log", EntryLogTable).clear()
        self.query_one("#log-panel", Log).clear()
        self.query_one("#progress-bar", ProgressBar).update(total=None, progress=0)
        self._log("Cleared - ready for new run")

    def action_ingest(self) -> None:
        source = self.query_one("#source-input", Input).value.strip()
        if not source:
            self._log("ERROR: No archive path specified")
            return
        self.run_ingest(source)

    @work(exclusive=True, thread=True)
    def run_ingest(self, source: str) -> None:
        """Import and index an archive in a background thread."""
        stats = DeckStats(status="importing", start_time=datetime.now())
        self.post_message(self.StatsUpdated(stats.copy()))
        self.post_message(self.LogMessage(f"Importing archive: {source}"))

        try:
            project = self.service.import_archive(source, name=Path(source).name, user_id=1)
        except (ZipIndexError, OSError) as e:
            stats.status = "failed"
            stats.end_time = datetime.now()
            self.post_message(self.StatsUpdated(stats.copy()))
            self.post_message(self.LogMessage(f"ERROR: {e}"))
            return

        stats.project_id = project.id
        stats.status = "processing"
        self.post_message(self.StatsUpdated(stats.copy()))
        self.post_message(self.LogMessage(f"Project #{project.id} created, walking archive..."))

        def on_entry(entry: IndexedEntry) -> None:
            stats.walk.entries_indexed += 1
            if entry.is_directory:
                stats.walk.directories += 1
            else:
                stats.walk.files += 1
                stats.walk.bytes_declared += entry.size_bytes or 0
            if entry.has_preview:
                stats.walk.previews += 1
            stats.current_path = entry.path
            self.post_message(self.EntryIndexed(entry))
            if stats.walk.entries_indexed % 25 == 0:
                self.post_message(self.StatsUpdated(stats.copy()))

        result = self.service.engine.ingest(project.id, project.archive_path, on_entry=on_entry)

        stats.walk = result.stats
        stats.status = result.status.value
        stats.current_path = ""
        stats.end_time = datetime.now()
        self.post_message(self.StatsUpdated(stats.copy()))
        if result.status == ProjectStatus.COMPLETED:
            self.post_message(
                self.LogMessage(
                    f"COMPLETE: {result.stats.entries_indexed} entries, "
                    f"{result.stats.nested_archives} nested archives, "
                    f"{result.stats.errors} errors -> project #{project.id}"
                )
            )
        else:
            self.post_message(self.LogMessage(f"FAILED: project #{project.id}, see log output"))


def main(db: str = config.DATABASE_PATH) -> None:
    """Run the Flight Deck TUI."""
    app = FlightDeck(db)
    app.run()


if __name__ == "__main__":
    main()
