"""Extraction contract: one Gemini call turning a document into a BillRecord."""
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings, get_settings
from .exceptions import (
    ConfigurationError,
    EmptyResponseError,
    InvalidResponseError,
    ProviderError,
)
from .models import BillRecord
from .prompts import BILL_EXTRACTION_PROMPT, BILL_RESPONSE_SCHEMA

logger = logging.getLogger(__name__)

MISSING_API_KEY_ISSUE = "API key is missing. Please set GEMINI_API_KEY in your environment or .env file."
MALFORMED_JSON_REASON = "Gemini returned a response that is not valid JSON."
SCHEMA_MISMATCH_REASON = "Gemini returned data that does not match the bill format."


@dataclass(frozen=True)
class ExtractionContract:
    """Model, instruction and decoding temperature sent with every request."""
    model: str = "gemini-2.5-flash"
    instruction: str = BILL_EXTRACTION_PROMPT
    temperature: float = 0.1

    @classmethod
    def from_settings(cls, settings: Settings) -> "ExtractionContract":
        return cls(model=settings.extraction_model, temperature=settings.extraction_temperature)

    def generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=BILL_RESPONSE_SCHEMA,
            temperature=self.temperature,
        )

    def build_contents(self, data: bytes, mime_type: str) -> list:
        return [
            types.Part.from_bytes(data=data, mime_type=mime_type),
            self.instruction,
        ]


def create_client(settings: Settings) -> genai.Client:
    """Build a Gemini client from settings."""
    return genai.Client(**settings.api_client_kwargs)


def parse_bill_record(response_text: str, model_used: Optional[str] = None) -> BillRecord:
    """Parse a provider response strictly as a BillRecord.

    Raises:
        InvalidResponseError: If the text is not JSON or does not fit the schema
    """
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError as e:
        raise InvalidResponseError(response_text, MALFORMED_JSON_REASON, model_used, e)

    try:
        return BillRecord.model_validate(payload)
    except PydanticValidationError as e:
        raise InvalidResponseError(response_text, SCHEMA_MISMATCH_REASON, model_used, e)


class GeminiBillExtractor:
    """Sends one document to Gemini and returns the extracted bill.

    Settings are read on every call unless fixed at construction, so a
    credential added after startup is picked up on the next attempt.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        contract: Optional[ExtractionContract] = None,
        client_factory: Callable[[Settings], genai.Client] = create_client,
        settings_overrides: Optional[dict] = None,
    ):
        self._settings = settings
        self._settings_overrides = settings_overrides or {}
        self._contract = contract
        self._client_factory = client_factory

    def _current_settings(self) -> Settings:
        return self._settings if self._settings is not None else get_settings(**self._settings_overrides)

    async def extract(self, data: bytes, mime_type: str) -> BillRecord:
        """Extract a BillRecord from raw document bytes.

        Raises:
            ConfigurationError: If no credential is configured
            ProviderError: If the request fails in transport or on the provider side
            EmptyResponseError: If the provider returns no text
            InvalidResponseError: If the response is malformed or off-schema
        """
        settings = self._current_settings()
        if not settings.has_credentials:
            raise ConfigurationError("GEMINI_API_KEY", MISSING_API_KEY_ISSUE)

        contract = self._contract or ExtractionContract.from_settings(settings)
        client = self._client_factory(settings)

        logger.info(f"[EXTRACT] Making API call ({mime_type}, {len(data)} bytes, model={contract.model})")
        started = time.monotonic()
        try:
            response = await client.aio.models.generate_content(
                model=contract.model,
                contents=contract.build_contents(data, mime_type),
                config=contract.generation_config(),
            )
        except Exception as e:
            logger.error(f"[EXTRACT] Provider error: {str(e)[:200]}")
            raise ProviderError(e, contract.model) from e

        response_text = getattr(response, "text", None)
        logger.info(f"[EXTRACT] Response received in {time.monotonic() - started:.1f}s")

        if settings.debug_responses and response_text:
            self._save_response(settings.responses_folder, response_text)

        if not response_text or not response_text.strip():
            logger.error("[EXTRACT] Empty response from provider")
            raise EmptyResponseError(contract.model)

        record = parse_bill_record(response_text, contract.model)
        logger.info(f"[EXTRACT] Success ({record.document_type}, {len(record.items)} items)")
        return record

    @staticmethod
    def _save_response(folder: Path, response_text: str) -> None:
        try:
            folder.mkdir(parents=True, exist_ok=True)
            path = folder / f"extraction_{int(time.time() * 1000)}.json"
            path.write_text(response_text, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Unable to save debug response: {e}")
