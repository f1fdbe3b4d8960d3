"""
Printable exports of a scanned bill.

HTML reuses the on-screen preview through rich's recording console; Excel
output is a styled single sheet built with openpyxl.
"""

import io
import logging
from pathlib import Path

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from rich.console import Console

from ..core.models import BillRecord
from ..ui.tui import APP_TITLE, ScannerTUI

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="4F46E5", end_color="4F46E5", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")
LABEL_FONT = Font(bold=True, color="6B7280")

PRINT_WIDTH = 100


def _append(ws, values: list) -> None:
    """Append a row, dropping control characters worksheets cannot store."""
    ws.append([ILLEGAL_CHARACTERS_RE.sub("", value) if isinstance(value, str) else value for value in values])


def export_bill_html(record: BillRecord, output_path: Path | str) -> Path:
    """Save the bill preview as a printable HTML page."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    console = Console(record=True, width=PRINT_WIDTH, file=io.StringIO())
    console.print(ScannerTUI(console).bill_preview(record))
    console.save_html(str(output_path), clear=True)

    logger.info(f"Printable bill saved to {output_path}")
    return output_path


def export_bill_excel(record: BillRecord, output_path: Path | str) -> Path:
    """Save the bill as a styled Excel workbook."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Bill"

    _append(ws, [APP_TITLE, "", "", (record.document_type or "Invoice").upper()])
    ws["A1"].font = Font(bold=True, size=14)
    ws["D1"].font = Font(bold=True, size=14)
    _append(ws, [])

    rows = [
        ("Reference Number", record.document_number),
        ("Issued Date", record.date),
        ("Sender", record.sender.name),
        ("Sender Address", record.sender.address),
        ("Sender Tax ID", record.sender.tax_id or ""),
        ("Receiver", record.receiver.name),
        ("Receiver Address", record.receiver.address),
        ("Receiver Tax ID", record.receiver.tax_id or ""),
    ]
    for label, value in rows:
        _append(ws, [label, value])
        ws.cell(row=ws.max_row, column=1).font = LABEL_FONT
    _append(ws, [])

    _append(ws, ["Description", "Qty", "Rate", "Amount"])
    header_row = ws.max_row
    for col in range(1, 5):
        cell = ws.cell(row=header_row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
    for item in record.items:
        _append(ws, [item.description, item.quantity, item.rate, item.amount])
    if not record.items:
        _append(ws, ["No line items were detected."])
    _append(ws, [])

    for label, amount in (
        ("Subtotal", record.subtotal),
        ("Tax / Fees", record.tax_amount),
        ("Total Amount", record.total_amount),
    ):
        _append(ws, ["", "", label, BillRecord.format_amount(record.currency, amount)])
        ws.cell(row=ws.max_row, column=3).font = Font(bold=True)
    ws.cell(row=ws.max_row, column=4).font = Font(bold=True, color="4F46E5")

    if record.notes:
        _append(ws, [])
        _append(ws, ["Notes", record.notes])
        ws.cell(row=ws.max_row, column=1).font = LABEL_FONT

    ws.column_dimensions["A"].width = 40
    for col in ("B", "C", "D"):
        ws.column_dimensions[col].width = 18
    for row in ws.iter_rows(min_row=header_row, min_col=2, max_col=4):
        for cell in row:
            cell.alignment = Alignment(horizontal="right")

    wb.save(output_path)
    logger.info(f"Excel bill saved to {output_path}")
    return output_path


def export_bill(record: BillRecord, output_path: Path | str) -> Path:
    """Export by file extension: ``.xlsx`` for Excel, anything else as HTML."""
    if Path(output_path).suffix.lower() == ".xlsx":
        return export_bill_excel(record, output_path)
    return export_bill_html(record, output_path)
