"""
Rich-based screens for the bill scanner.

Each workflow state has one renderer. Renderers only read state; they never
change it.
"""

import logging
from datetime import datetime
from typing import List, Optional

from rich import box
from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.intake import DocumentPreview
from ..core.models import AppState, BillRecord, HistoryEntry, Party
from ..core.workflow import ScanWorkflow

logger = logging.getLogger(__name__)

APP_TITLE = "CFD Invoice"


def format_scan_date(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%d %b %Y")


class ScannerTUI:
    """Renders the upload prompt, scanning indicator, result preview, history list and error panel."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def header(self, history_count: int, state: AppState) -> Panel:
        badge = f" [{history_count}]" if history_count else ""
        history_style = "bold white on blue" if state == AppState.HISTORY else "cyan"
        table = Table.grid(expand=True)
        table.add_column(justify="left")
        table.add_column(justify="right")
        table.add_row(
            f"[bold blue]▣ {APP_TITLE}[/bold blue]",
            f"[{history_style}] History{badge} [/{history_style}]",
        )
        return Panel(table, box=box.HEAVY_HEAD, border_style="blue")

    def upload_prompt(self) -> Panel:
        body = Group(
            Align.center(Text("Turn Paper Bills into Digital Data", style="bold")),
            Text(""),
            Align.center(Text("Drag a file into this window or type its path, then press Enter.")),
            Align.center(Text(
                "Upload an image or PDF of your Invoice, Lorry Receipt (LR), or E-Way Bill.",
                style="dim",
            )),
            Text(""),
            Align.center(Text("JPG/PNG · PDF", style="dim")),
        )
        return Panel(body, title="[bold]Upload[/bold]", border_style="blue", box=box.ROUNDED, padding=(1, 4))

    def scanning_indicator(self, preview: Optional[DocumentPreview]) -> Panel:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan", no_wrap=True)
        table.add_column()
        if preview:
            table.add_row("File:", Text(preview.file_name))
            kind = "PDF Document" if preview.is_pdf else "Image"
            table.add_row("Type:", f"{kind} ({preview.mime_type})")
            table.add_row("Size:", preview.size_label)
            if preview.page_count is not None:
                table.add_row("Pages:", str(preview.page_count))
        body = Group(
            Text("Analyzing Document...", style="bold"),
            Text("Using Gemini AI to extract billing details.", style="dim"),
            Text(""),
            table,
        )
        return Panel(body, title="[bold blue]Scanning[/bold blue]", border_style="blue", box=box.ROUNDED)

    def _party_block(self, title: str, party: Party) -> Panel:
        lines = [Text(party.name or "Unknown Entity", style="bold")]
        if party.address:
            lines.append(Text(party.address))
        if party.tax_id:
            lines.append(Text.assemble(("TAX ID: ", "bold"), party.tax_id))
        return Panel(Group(*lines), title=title, title_align="left", border_style="dim", box=box.SQUARE)

    def items_table(self, record: BillRecord) -> Table:
        table = Table(box=box.SIMPLE_HEAVY, expand=True)
        table.add_column("Description")
        table.add_column("Qty", justify="right")
        table.add_column("Rate", justify="right")
        table.add_column("Amount", justify="right", style="bold")
        if not record.items:
            table.add_row(Text("No line items were detected.", style="italic dim"), "", "", "")
        for item in record.items:
            table.add_row(*(Text(value) for value in (item.description, item.quantity, item.rate, item.amount)))
        return table

    def totals_table(self, record: BillRecord) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="dim")
        table.add_column(justify="right")
        table.add_row("Subtotal", Text(BillRecord.format_amount(record.currency, record.subtotal)))
        table.add_row("Tax / Fees", Text(BillRecord.format_amount(record.currency, record.tax_amount)))
        table.add_row(Text("Total Amount", style="bold"), Text(record.display_total, style="bold blue"))
        return table

    def bill_preview(self, record: BillRecord) -> Panel:
        meta = Table.grid(expand=True)
        meta.add_column()
        meta.add_column(justify="right")
        meta.add_row(Text("Reference Number", style="dim"), Text("Issued Date", style="dim"))
        meta.add_row(
            Text(record.document_number or "NOT SPECIFIED", style="bold"),
            Text(record.date or "N/A", style="bold"),
        )

        parties = Table.grid(expand=True, padding=(0, 1))
        parties.add_column(ratio=1)
        parties.add_column(ratio=1)
        parties.add_row(
            self._party_block("Sender / Consignor", record.sender),
            self._party_block("Receiver / Consignee", record.receiver),
        )

        summary = Table.grid(expand=True, padding=(0, 2))
        summary.add_column(ratio=1)
        summary.add_column(ratio=1)
        notes = record.notes or "No additional remarks were found in the scanned document."
        summary.add_row(
            Panel(Text(notes), title="Notes & Observations", title_align="left", border_style="dim"),
            Align.right(self.totals_table(record)),
        )

        body = Group(meta, Text(""), parties, self.items_table(record), summary)
        title = Text((record.document_type or "INVOICE").upper(), style="bold")
        return Panel(
            body,
            title=title,
            subtitle=f"[dim]Processed digitally by {APP_TITLE}[/dim]",
            border_style="blue",
            box=box.DOUBLE,
        )

    def history_list(self, entries: List[HistoryEntry]) -> Panel:
        if not entries:
            body = Group(
                Align.center(Text("No history yet", style="bold")),
                Align.center(Text("Scanned invoices will appear here for quick access.", style="dim")),
            )
            return Panel(body, title="[bold]Recent Scans[/bold]", border_style="blue", padding=(1, 4))

        table = Table(box=box.SIMPLE, expand=True)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Merchant", style="bold")
        table.add_column("Date")
        table.add_column("Type")
        table.add_column("Total", justify="right", style="blue")
        table.add_column("Scanned", style="dim")
        for index, entry in enumerate(entries, 1):
            data = entry.data
            table.add_row(
                str(index),
                Text(data.sender.name or "Unknown Merchant"),
                Text(data.date or "No Date"),
                Text(data.document_type or "Invoice"),
                Text(data.display_total),
                format_scan_date(entry.timestamp),
            )
        return Panel(table, title="[bold]Recent Scans[/bold]", border_style="blue")

    def error_panel(self, message: Optional[str]) -> Panel:
        body = Group(
            Text("Scan Failed", style="bold red"),
            Text(""),
            Text(message or "Failed to process document."),
        )
        return Panel(body, border_style="red", box=box.ROUNDED, padding=(1, 4))

    def success_banner(self) -> Text:
        return Text("✔ Extraction Successful", style="bold green")

    def screen(self, workflow: ScanWorkflow) -> RenderableType:
        """Build the renderable for the workflow's current state."""
        state = workflow.state
        parts: List[RenderableType] = [self.header(workflow.history_count, state)]

        if state == AppState.HISTORY:
            parts.append(self.history_list(workflow.history_entries))
        elif state == AppState.IDLE:
            parts.append(self.upload_prompt())
        elif state == AppState.SCANNING:
            parts.append(self.scanning_indicator(workflow.preview))
        elif state == AppState.SUCCESS and workflow.bill is not None:
            parts.append(Align.center(self.success_banner()))
            parts.append(self.bill_preview(workflow.bill))
        elif state == AppState.ERROR:
            parts.append(self.error_panel(workflow.error_message))

        return Group(*parts)

    def render(self, workflow: ScanWorkflow) -> None:
        self.console.print(self.screen(workflow))

    def notice(self, message: str, style: str = "yellow") -> None:
        self.console.print(Text(message, style=style))
