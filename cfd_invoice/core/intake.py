"""File intake: type and size checks, PDF validation and preview capture.

Everything here runs before the workflow is touched, so a rejected file never
changes application state.
"""

import base64
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import fitz  # PyMuPDF

from .exceptions import DocumentReadError, FileTooLargeError, InvalidPDFError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

# Some platforms lack registrations for these
mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/heic", ".heic")
mimetypes.add_type("image/heif", ".heif")


@dataclass(frozen=True)
class DocumentPreview:
    """Display-ready view of a selected file."""
    file_name: str
    mime_type: str
    size_bytes: int
    data_url: str
    page_count: Optional[int] = None

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    @property
    def size_label(self) -> str:
        if self.size_bytes < 1024 * 1024:
            return f"{self.size_bytes / 1024:.1f} KB"
        return f"{self.size_bytes / (1024 * 1024):.1f} MB"


@dataclass(frozen=True)
class UploadedDocument:
    """A file accepted by intake, ready for extraction."""
    name: str
    mime_type: str
    data: bytes
    preview: DocumentPreview


def is_supported_mime_type(mime_type: Optional[str]) -> bool:
    """Accept image/* and application/pdf."""
    if not mime_type:
        return False
    return mime_type.startswith("image/") or mime_type == PDF_MIME_TYPE


def detect_mime_type(path: Path, data: bytes) -> Optional[str]:
    """Guess the mime type from the extension, falling back to a PDF header sniff."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None and data.startswith(b"%PDF-"):
        return PDF_MIME_TYPE
    return mime_type


def normalize_dropped_path(raw: str) -> str:
    """Turn text pasted by a terminal drag-and-drop into a plain path.

    Handles surrounding quotes, ``file://`` URLs and backslash-escaped spaces.
    """
    text = raw.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1]
    if text.startswith("file://"):
        text = unquote(urlparse(text).path)
    text = re.sub(r"\\([ '\"()&])", r"\1", text)
    return text


def count_pdf_pages(file_path: Path | str, data: bytes) -> int:
    """Count pages of an in-memory PDF.

    Raises:
        InvalidPDFError: If the PDF is corrupted or has no pages
    """
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise InvalidPDFError(file_path, f"PDF file is corrupted: {e}")

    try:
        page_count = doc.page_count
    finally:
        doc.close()

    if page_count == 0:
        raise InvalidPDFError(file_path, "PDF has no pages")
    return page_count


def build_preview(file_name: str, mime_type: str, data: bytes, page_count: Optional[int] = None) -> DocumentPreview:
    """Encode the payload as a data URL for display."""
    encoded = base64.b64encode(data).decode("ascii")
    return DocumentPreview(
        file_name=file_name,
        mime_type=mime_type,
        size_bytes=len(data),
        data_url=f"data:{mime_type};base64,{encoded}",
        page_count=page_count,
    )


def load_document(file_path: Path | str, max_size_mb: float = 20.0) -> UploadedDocument:
    """Read and validate a user-selected file.

    Args:
        file_path: Path to an image or PDF
        max_size_mb: Maximum allowed size in MB

    Returns:
        The accepted document with its preview

    Raises:
        UnsupportedFileTypeError: If the file is not an image or PDF
        FileTooLargeError: If the file exceeds the size limit
        InvalidPDFError: If a PDF cannot be opened
        DocumentReadError: If the file cannot be read
    """
    path = Path(file_path).expanduser()

    try:
        size_mb = path.stat().st_size / (1024 * 1024)
        if not path.is_file():
            raise IsADirectoryError(f"Not a file: {path}")
    except OSError as e:
        raise DocumentReadError(path, e)

    # Check the extension first so unsupported files are never read
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is not None and not is_supported_mime_type(mime_type):
        raise UnsupportedFileTypeError(path, mime_type)

    if size_mb > max_size_mb:
        raise FileTooLargeError(path, size_mb, max_size_mb)

    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentReadError(path, e)

    mime_type = detect_mime_type(path, data)
    if not is_supported_mime_type(mime_type):
        raise UnsupportedFileTypeError(path, mime_type)

    page_count = count_pdf_pages(path, data) if mime_type == PDF_MIME_TYPE else None
    logger.debug(f"Accepted {path.name} ({mime_type}, {size_mb:.2f}MB)")

    return UploadedDocument(
        name=path.name,
        mime_type=mime_type,
        data=data,
        preview=build_preview(path.name, mime_type, data, page_count),
    )
