"""Shared fixtures for bill scanning tests."""

import copy
from unittest.mock import AsyncMock, MagicMock

import fitz  # PyMuPDF
import pytest

from cfd_invoice.config import Settings
from cfd_invoice.core.intake import build_preview, UploadedDocument
from cfd_invoice.core.models import BillRecord
from cfd_invoice.storage.history import HistoryStore
from cfd_invoice.storage.local_storage import MemoryStorage

SAMPLE_BILL = {
    "documentType": "Invoice",
    "documentNumber": "INV-2024-001",
    "date": "15/01/2024",
    "sender": {
        "name": "Tech Solutions Inc.",
        "address": "12 MG Road, Bengaluru",
        "taxId": "29ABCDE1234F1Z5",
    },
    "receiver": {
        "name": "XYZ Ltd",
        "address": "4 Park Street, Kolkata",
    },
    "items": [
        {"description": "Service", "quantity": "1", "rate": "500", "amount": "500"},
    ],
    "subtotal": "500",
    "taxAmount": "0",
    "totalAmount": "500",
    "currency": "USD",
    "notes": "Payment due in 30 days",
}


class MockGeminiResponse:
    """Mock response from Gemini API."""

    def __init__(self, text):
        self.text = text


class FakeExtractor:
    """Extractor double recording calls and returning a canned outcome."""

    def __init__(self, result=None, error=None, on_call=None):
        self.result = result
        self.error = error
        self.on_call = on_call
        self.calls = []

    async def extract(self, data, mime_type):
        self.calls.append((data, mime_type))
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def sample_bill_data():
    return copy.deepcopy(SAMPLE_BILL)


@pytest.fixture
def sample_bill(sample_bill_data):
    return BillRecord.model_validate(sample_bill_data)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        gemini_api_key="AIzaSyTestKeyForUnitTests000000",
        data_directory=tmp_path / "data",
    )


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def history(memory_storage):
    store = HistoryStore(memory_storage)
    store.load()
    return store


@pytest.fixture
def mock_genai_client():
    """Mock Gemini AI client."""
    client = MagicMock()
    client.aio = MagicMock()
    client.aio.models = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.fixture
def pdf_bytes():
    """A one-page PDF built with PyMuPDF."""
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "TAX INVOICE  No. INV-2024-001  Total 500")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def jpeg_document():
    data = b"\xff\xd8\xff\xe0" + b"\x00" * 64
    return UploadedDocument(
        name="receipt.jpg",
        mime_type="image/jpeg",
        data=data,
        preview=build_preview("receipt.jpg", "image/jpeg", data),
    )


@pytest.fixture
def pdf_document(pdf_bytes):
    return UploadedDocument(
        name="lorry_receipt.pdf",
        mime_type="application/pdf",
        data=pdf_bytes,
        preview=build_preview("lorry_receipt.pdf", "application/pdf", pdf_bytes, page_count=1),
    )


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without credentials or flags from the developer's environment."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "GEMINI_API_KEY", "API_KEY", "USE_VERTEX_AI", "DEBUG_RESPONSES",
        "LOG_LEVEL", "FILE_LOG_LEVEL", "STRONG_IDS_ONLY",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
