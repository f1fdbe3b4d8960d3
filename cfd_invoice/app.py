"""Interactive terminal application driving the scan workflow."""

import logging
import shlex
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from .config import Settings
from .core.exceptions import BillScanError, IntakeError
from .core.extraction import GeminiBillExtractor
from .core.intake import load_document, normalize_dropped_path
from .core.models import AppState
from .core.workflow import ScanWorkflow
from .reports.outputs import export_bill
from .storage.history import HistoryStore
from .storage.local_storage import KeyValueStorage, open_storage
from .ui.tui import ScannerTUI

logger = logging.getLogger(__name__)

HELP_TEXT = """[bold]Commands[/bold]
  [cyan]scan <file>[/cyan]     scan an image or PDF (or just drop/paste the path)
  [cyan]history[/cyan]         show or hide recent scans
  [cyan]open <n|id>[/cyan]     reopen a history entry
  [cyan]delete <n|id>[/cyan]   delete a history entry
  [cyan]clear[/cyan]           delete all history
  [cyan]print <file>[/cyan]    save the current bill (.html printable, .xlsx Excel)
  [cyan]new[/cyan]             start a new scan
  [cyan]help[/cyan]            show this help
  [cyan]quit[/cyan]            exit"""


class ScannerApp:
    """
    Prompt loop translating user commands into workflow transitions.

    Intake errors are shown as notices and never reach the workflow.
    """

    def __init__(
        self,
        workflow: ScanWorkflow,
        settings: Settings,
        tui: Optional[ScannerTUI] = None,
        ask: Callable[[str], str] = Prompt.ask,
        confirm: Callable[[str], bool] = Confirm.ask,
    ):
        self.workflow = workflow
        self.settings = settings
        self.tui = tui or ScannerTUI()
        self.ask = ask
        self.confirm = confirm
        self.running = True

    @property
    def console(self) -> Console:
        return self.tui.console

    def resolve_entry_id(self, ref: str) -> Optional[str]:
        """Map a 1-based list position or an id (or id prefix) to an entry id."""
        entries = self.workflow.history_entries
        if ref.isdigit():
            index = int(ref) - 1
            return entries[index].id if 0 <= index < len(entries) else None
        matches = [entry.id for entry in entries if entry.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None

    async def scan(self, raw_path: str) -> None:
        path = Path(normalize_dropped_path(raw_path))
        try:
            document = load_document(path, self.settings.max_upload_size_mb)
        except IntakeError as e:
            logger.info(f"Rejected {path}: {e.message}")
            self.tui.notice(e.message)
            return

        if self.workflow.state != AppState.IDLE:
            self.workflow.reset()
        self.workflow.begin_scan(document)
        self.tui.render(self.workflow)
        with self.console.status("[bold blue]Analyzing document...[/bold blue]", spinner="dots"):
            await self.workflow.run_scan(document)

    def print_bill(self, raw_path: str) -> None:
        if self.workflow.state != AppState.SUCCESS or self.workflow.bill is None:
            self.tui.notice("Nothing to print yet. Scan a document or open one from history.")
            return
        try:
            output = export_bill(self.workflow.bill, normalize_dropped_path(raw_path))
        except OSError as e:
            logger.error(f"Export failed: {e}")
            self.tui.notice(f"Could not save {raw_path}: {e}", style="red")
            return
        self.tui.notice(f"Saved {output}", style="green")

    def open_entry(self, ref: str) -> None:
        if self.workflow.state != AppState.HISTORY:
            self.workflow.toggle_history()
        entry_id = self.resolve_entry_id(ref)
        if entry_id is None:
            self.tui.notice(f"No history entry matches '{ref}'.")
            return
        self.workflow.open_history_entry(entry_id)

    def delete_entry(self, ref: str) -> None:
        if self.workflow.state != AppState.HISTORY:
            self.workflow.toggle_history()
        entry_id = self.resolve_entry_id(ref)
        if entry_id is None:
            self.tui.notice(f"No history entry matches '{ref}'.")
            return
        self.workflow.delete_history_entry(entry_id)

    def clear_history(self) -> None:
        if self.workflow.state != AppState.HISTORY:
            self.workflow.toggle_history()
        if not self.workflow.history_count:
            return
        confirmed = self.confirm("Are you sure you want to clear all history?")
        if self.workflow.clear_history(confirmed):
            self.tui.notice("History cleared.", style="green")

    async def handle(self, line: str) -> None:
        """Execute one line of user input."""
        line = line.strip()
        if not line:
            return

        try:
            parts = shlex.split(line)
        except ValueError:
            parts = line.split()
        if not parts:
            return
        command = parts[0].lower()
        argument = line.split(None, 1)[1].strip() if " " in line else ""

        if command in ("quit", "exit", "q"):
            self.running = False
        elif command in ("help", "?"):
            self.console.print(HELP_TEXT)
            return
        elif command == "scan" and argument:
            await self.scan(argument)
        elif command == "history":
            self.workflow.toggle_history()
        elif command == "open" and argument:
            self.open_entry(argument)
        elif command in ("delete", "rm") and argument:
            self.delete_entry(argument)
        elif command == "clear":
            self.clear_history()
        elif command in ("print", "export") and argument:
            self.print_bill(argument)
            return
        elif command in ("new", "reset"):
            self.workflow.reset()
        elif Path(normalize_dropped_path(line)).exists():
            await self.scan(line)
        else:
            self.tui.notice(f"Unknown command: {line}. Type 'help' for commands.")
            return

        if self.running:
            self.tui.render(self.workflow)

    async def run(self, initial_file: Optional[str] = None) -> None:
        """Run the prompt loop until the user quits."""
        self.workflow.history.load()
        self.tui.render(self.workflow)
        self.console.print("[dim]Type 'help' for commands.[/dim]")

        if initial_file:
            await self.handle(f"scan {initial_file}")

        while self.running:
            try:
                line = self.ask("[bold blue]›[/bold blue]")
            except (EOFError, KeyboardInterrupt):
                break
            try:
                await self.handle(line)
            except BillScanError as e:
                logger.warning(f"Command failed: {e.message}")
                self.tui.notice(e.message, style="red")


def build_app(settings: Settings, storage: Optional[KeyValueStorage] = None, console: Optional[Console] = None) -> ScannerApp:
    """Wire storage, history, extractor and workflow into an app."""
    if storage is None:
        storage = open_storage(settings.storage_path)
    history = HistoryStore(storage, settings.history_storage_key, settings.strong_ids_only)
    # Credentials are re-read on every scan; only the data directory is pinned
    extractor = GeminiBillExtractor(settings_overrides={"data_directory": settings.data_directory})
    workflow = ScanWorkflow(extractor, history)
    return ScannerApp(workflow, settings, ScannerTUI(console))
