"""Exception hierarchy for bill scanning."""

from pathlib import Path
from typing import Any, Optional

GENERIC_FAILURE_MESSAGE = "Failed to process document."


class BillScanError(Exception):
    """Base exception for all bill scanning errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class IntakeError(BillScanError):
    """Base class for file intake rejections."""

    def __init__(
        self,
        file_path: Path | str,
        message: str,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        self.file_path = Path(file_path)
        super().__init__(message, {"file_path": str(self.file_path), **(details or {})})


class UnsupportedFileTypeError(IntakeError):
    """Raised when a file is neither an image nor a PDF."""

    def __init__(self, file_path: Path | str, mime_type: Optional[str]) -> None:
        self.mime_type = mime_type
        super().__init__(
            file_path,
            "Please upload an image file (JPG, PNG) or PDF.",
            {"mime_type": mime_type or "unknown"}
        )


class FileTooLargeError(IntakeError):
    """Raised when a file exceeds the maximum allowed upload size."""

    def __init__(
        self,
        file_path: Path | str,
        file_size_mb: float,
        max_size_mb: float
    ) -> None:
        message = f"File size ({file_size_mb:.1f}MB) exceeds maximum allowed size ({max_size_mb}MB)"
        super().__init__(
            file_path,
            message,
            {"file_size_mb": file_size_mb, "max_size_mb": max_size_mb}
        )


class InvalidPDFError(IntakeError):
    """Raised when a PDF file is corrupted or invalid."""

    def __init__(
        self,
        file_path: Path | str,
        reason: str = "PDF file is corrupted or invalid"
    ) -> None:
        super().__init__(file_path, reason)


class DocumentReadError(IntakeError):
    """Raised when a file cannot be read from disk."""

    def __init__(self, file_path: Path | str, original_error: Exception) -> None:
        self.original_error = original_error
        super().__init__(file_path, f"Unable to read file: {original_error}")


class ConfigurationError(BillScanError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, setting_name: str, issue: str) -> None:
        message = f"Configuration error for '{setting_name}': {issue}"
        super().__init__(message, {"setting_name": setting_name, "issue": issue})
        self.setting_name = setting_name
        self.issue = issue


class ProviderError(BillScanError):
    """Raised when the call to Gemini fails in transport or on the provider side.

    The message is the provider's own message when it has one, so the user
    sees it verbatim.
    """

    def __init__(self, original_error: Exception, model_used: Optional[str] = None) -> None:
        self.original_error = original_error
        self.model_used = model_used

        provider_message = getattr(original_error, "message", None) or str(original_error)
        message = provider_message.strip() if isinstance(provider_message, str) else ""

        details = {"error_type": type(original_error).__name__}
        if model_used:
            details["model_used"] = model_used

        super().__init__(message or GENERIC_FAILURE_MESSAGE, details)


class ExtractionError(BillScanError):
    """Base class for responses that violate the extraction contract."""

    def __init__(
        self,
        message: str,
        model_used: Optional[str] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        self.model_used = model_used
        self.original_error = original_error

        details = {}
        if model_used:
            details["model_used"] = model_used
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(message, details)


class EmptyResponseError(ExtractionError):
    """Raised when the provider returns no text."""

    def __init__(self, model_used: Optional[str] = None) -> None:
        super().__init__("No data returned from Gemini.", model_used)


class InvalidResponseError(ExtractionError):
    """Raised when the provider response is not a valid bill record."""

    def __init__(
        self,
        response_text: str,
        reason: str,
        model_used: Optional[str] = None,
        parsing_error: Optional[Exception] = None
    ) -> None:
        super().__init__(reason, model_used, parsing_error)
        self.response_text = response_text


class WorkflowError(BillScanError):
    """Base class for operations the workflow does not allow."""


class InvalidTransitionError(WorkflowError):
    """Raised when an action is not allowed in the current state."""

    def __init__(self, state: str, action: str) -> None:
        super().__init__(
            f"Cannot {action} while {state.lower()}",
            {"state": state, "action": action}
        )
        self.state = state
        self.action = action


class WorkflowBusyError(InvalidTransitionError):
    """Raised when a file is selected while another extraction is in flight."""

    def __init__(self) -> None:
        super().__init__("SCANNING", "select a file")
        self.message = "A document is already being scanned. Please wait for it to finish."
        self.args = (self.message,)


class HistoryEntryNotFoundError(WorkflowError):
    """Raised when a history entry id is unknown."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"No history entry with id '{entry_id}'", {"entry_id": entry_id})
        self.entry_id = entry_id


class HistoryStorageError(BillScanError):
    """Raised when history cannot be persisted."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.original_error = original_error
        details = {"original_error": str(original_error)} if original_error else {}
        super().__init__(message, details)


# Export all exceptions for easy imports
__all__ = [
    "GENERIC_FAILURE_MESSAGE",
    "BillScanError",
    "IntakeError",
    "UnsupportedFileTypeError",
    "FileTooLargeError",
    "InvalidPDFError",
    "DocumentReadError",
    "ConfigurationError",
    "ProviderError",
    "ExtractionError",
    "EmptyResponseError",
    "InvalidResponseError",
    "WorkflowError",
    "InvalidTransitionError",
    "WorkflowBusyError",
    "HistoryEntryNotFoundError",
    "HistoryStorageError",
]
