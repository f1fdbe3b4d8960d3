"""Workflow state machine sequencing file selection, extraction and history."""

import logging
from typing import List, Optional, Protocol

from .exceptions import (
    GENERIC_FAILURE_MESSAGE,
    BillScanError,
    HistoryEntryNotFoundError,
    InvalidTransitionError,
    WorkflowBusyError,
)
from .intake import DocumentPreview, UploadedDocument
from .models import AppState, BillRecord, HistoryEntry

logger = logging.getLogger(__name__)


class BillExtractor(Protocol):
    async def extract(self, data: bytes, mime_type: str) -> BillRecord: ...


class HistoryBackend(Protocol):
    @property
    def entries(self) -> List[HistoryEntry]: ...

    def load(self) -> List[HistoryEntry]: ...

    def append(self, record: BillRecord) -> HistoryEntry: ...

    def remove(self, entry_id: str) -> None: ...

    def clear(self) -> None: ...


class ScanWorkflow:
    """
    Owns the current application state and drives extraction.

    States map one to one onto the presentation surfaces. Only one
    extraction can be in flight: selecting a file while scanning is rejected
    with WorkflowBusyError rather than queued.
    """

    def __init__(self, extractor: BillExtractor, history: HistoryBackend):
        self.extractor = extractor
        self.history = history

        self.state = AppState.IDLE
        self.preview: Optional[DocumentPreview] = None
        self.mime_type: Optional[str] = None
        self.bill: Optional[BillRecord] = None
        self.error_message: Optional[str] = None
        self._state_before_history = AppState.IDLE

    @property
    def is_busy(self) -> bool:
        return self.state == AppState.SCANNING

    @property
    def history_entries(self) -> List[HistoryEntry]:
        return self.history.entries

    @property
    def history_count(self) -> int:
        return len(self.history.entries)

    def _require_not_scanning(self, action: str) -> None:
        if self.state == AppState.SCANNING:
            raise InvalidTransitionError(self.state.value, action)

    def _require_history_view(self, action: str) -> None:
        if self.state != AppState.HISTORY:
            raise InvalidTransitionError(self.state.value, action)

    def begin_scan(self, document: UploadedDocument) -> None:
        """Enter SCANNING for ``document``, capturing its preview."""
        if self.state == AppState.SCANNING:
            raise WorkflowBusyError()
        if self.state != AppState.IDLE:
            raise InvalidTransitionError(self.state.value, "select a file")

        self.mime_type = document.mime_type
        self.preview = document.preview
        self.bill = None
        self.error_message = None
        self.state = AppState.SCANNING
        logger.info(f"Scanning {document.name} ({document.mime_type})")

    async def select_file(self, document: UploadedDocument) -> AppState:
        """Scan ``document`` and land in SUCCESS or ERROR.

        Returns:
            The resulting state
        """
        self.begin_scan(document)
        return await self.run_scan(document)

    async def run_scan(self, document: UploadedDocument) -> AppState:
        """Run the extraction for a scan started with begin_scan."""
        if self.state != AppState.SCANNING:
            raise InvalidTransitionError(self.state.value, "run a scan")

        try:
            record = await self.extractor.extract(document.data, document.mime_type)
            self.history.append(record)
        except BillScanError as e:
            logger.error(f"Scan failed for {document.name}: {e.message}")
            return self._fail(e.message)
        except Exception:
            logger.exception(f"Unexpected error scanning {document.name}")
            return self._fail(GENERIC_FAILURE_MESSAGE)

        self.bill = record
        self.state = AppState.SUCCESS
        logger.info(f"Scan succeeded for {document.name}: {record.document_type}")
        return self.state

    def _fail(self, message: str) -> AppState:
        self.bill = None
        self.error_message = message or GENERIC_FAILURE_MESSAGE
        self.state = AppState.ERROR
        return self.state

    def reset(self) -> None:
        """Return to IDLE, clearing the record, preview and error."""
        self._require_not_scanning("start a new scan")
        self.state = AppState.IDLE
        self.preview = None
        self.mime_type = None
        self.bill = None
        self.error_message = None
        self._state_before_history = AppState.IDLE

    def toggle_history(self) -> AppState:
        """Enter the history view, or leave it for the state it was opened from."""
        self._require_not_scanning("open history")
        if self.state == AppState.HISTORY:
            self.state = self._state_before_history
        else:
            self._state_before_history = self.state
            self.state = AppState.HISTORY
        return self.state

    def open_history_entry(self, entry_id: str) -> BillRecord:
        """Show a stored result without extracting again."""
        self._require_history_view("open a history entry")
        entry = next((item for item in self.history.entries if item.id == entry_id), None)
        if entry is None:
            raise HistoryEntryNotFoundError(entry_id)

        self.bill = entry.data
        self.preview = None
        self.mime_type = None
        self.error_message = None
        self.state = AppState.SUCCESS
        return entry.data

    def delete_history_entry(self, entry_id: str) -> None:
        self._require_history_view("delete a history entry")
        self.history.remove(entry_id)

    def clear_history(self, confirmed: bool) -> bool:
        """Empty the history if the user confirmed.

        Returns:
            Whether the history was cleared
        """
        self._require_history_view("clear history")
        if not confirmed:
            return False
        self.history.clear()
        return True
