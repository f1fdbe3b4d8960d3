"""Tests for the rich presentation surfaces."""

import io

import pytest
from rich.console import Console

from cfd_invoice.core.intake import build_preview
from cfd_invoice.core.models import AppState, BillRecord, HistoryEntry
from cfd_invoice.core.workflow import ScanWorkflow
from cfd_invoice.ui.tui import ScannerTUI, format_scan_date

from conftest import FakeExtractor


@pytest.fixture
def tui():
    return ScannerTUI(Console(record=True, file=io.StringIO(), width=120, color_system=None))


def rendered(tui, renderable):
    tui.console.print(renderable)
    return tui.console.export_text()


def test_bill_preview_shows_extracted_fields(tui, sample_bill):
    text = rendered(tui, tui.bill_preview(sample_bill))

    assert "INVOICE" in text
    assert "INV-2024-001" in text
    assert "15/01/2024" in text
    assert "Tech Solutions Inc." in text
    assert "TAX ID: 29ABCDE1234F1Z5" in text
    assert "XYZ Ltd" in text
    assert "Service" in text
    assert "USD 500" in text
    assert "Payment due in 30 days" in text


def test_bill_preview_placeholders(tui):
    record = BillRecord(document_type="", total_amount="0", items=[])

    text = rendered(tui, tui.bill_preview(record))

    assert "NOT SPECIFIED" in text
    assert "N/A" in text
    assert "Unknown Entity" in text
    assert "TAX ID" not in text
    assert "No line items were detected." in text
    assert "No additional remarks" in text


def test_history_list_empty(tui):
    text = rendered(tui, tui.history_list([]))

    assert "No history yet" in text
    assert "Scanned invoices will appear here for quick access." in text


def test_history_list_rows(tui, sample_bill):
    anonymous = BillRecord(document_type="Lorry Receipt", total_amount="1,200", items=[], currency="₹")
    entries = [
        HistoryEntry(id="b", timestamp=1_705_300_000_000, data=anonymous),
        HistoryEntry(id="a", timestamp=1_705_000_000_000, data=sample_bill),
    ]

    text = rendered(tui, tui.history_list(entries))

    assert "Recent Scans" in text
    assert "Unknown Merchant" in text
    assert "No Date" in text
    assert "₹ 1,200" in text
    assert "Tech Solutions Inc." in text
    assert "USD 500" in text
    assert text.index("Unknown Merchant") < text.index("Tech Solutions Inc.")


def test_error_panel(tui):
    text = rendered(tui, tui.error_panel("network unreachable"))

    assert "Scan Failed" in text
    assert "network unreachable" in text


def test_scanning_indicator(tui, pdf_document):
    text = rendered(tui, tui.scanning_indicator(pdf_document.preview))

    assert "Analyzing Document..." in text
    assert "lorry_receipt.pdf" in text
    assert "PDF Document" in text
    assert "Pages:" in text


def test_format_scan_date():
    assert format_scan_date(1_705_300_000_000).endswith("2024")


@pytest.mark.asyncio
async def test_screen_follows_state(tui, history, sample_bill, jpeg_document):
    workflow = ScanWorkflow(FakeExtractor(result=sample_bill), history)

    assert "Turn Paper Bills into Digital Data" in rendered(tui, tui.screen(workflow))

    await workflow.select_file(jpeg_document)
    text = rendered(tui, tui.screen(workflow))
    assert "Extraction Successful" in text
    assert "History [1]" in text
    assert "USD 500" in text

    workflow.toggle_history()
    assert workflow.state == AppState.HISTORY
    assert "Recent Scans" in rendered(tui, tui.screen(workflow))


def test_notice(tui):
    tui.notice("Saved bill.html", style="green")
    assert "Saved bill.html" in tui.console.export_text()


def test_bracketed_text_is_shown_verbatim(tui, sample_bill_data):
    sample_bill_data["documentType"] = "Invoice [/copy]"
    sample_bill_data["sender"]["name"] = "Shree Roadways [regd]"
    sample_bill_data["sender"]["address"] = "Plot 4 [bold]Sector 9[/bold]"
    sample_bill_data["items"] = [
        {"description": "Freight [/MT]", "quantity": "12 [MT]", "rate": "Rate [/kg]", "amount": "[red]900"},
    ]
    sample_bill_data["totalAmount"] = "[/]900"
    record = BillRecord.model_validate(sample_bill_data)

    text = rendered(tui, tui.bill_preview(record))

    assert "INVOICE [/COPY]" in text
    assert "Shree Roadways [regd]" in text
    assert "Plot 4 [bold]Sector 9[/bold]" in text
    assert "Freight [/MT]" in text
    assert "12 [MT]" in text
    assert "Rate [/kg]" in text
    assert "[red]900" in text
    assert "USD [/]900" in text


def test_bracketed_history_rows(tui):
    record = BillRecord.model_validate({
        "documentType": "LR [/dup]",
        "date": "[01/02/2024]",
        "sender": {"name": "Shree Roadways [regd]"},
        "totalAmount": "[/b]1,200",
        "items": [],
    })

    text = rendered(tui, tui.history_list([HistoryEntry(id="x", timestamp=1_705_000_000_000, data=record)]))

    assert "Shree Roadways [regd]" in text
    assert "LR [/dup]" in text
    assert "[01/02/2024]" in text
    assert "[/b]1,200" in text


def test_bracketed_file_name_while_scanning(tui):
    preview = build_preview("scan [/final].jpg", "image/jpeg", b"\xff\xd8\xff")

    assert "scan [/final].jpg" in rendered(tui, tui.scanning_indicator(preview))
