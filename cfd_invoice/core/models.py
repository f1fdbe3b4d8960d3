"""Canonical data models for bill scanning."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AppState(str, Enum):
    """Workflow states, one per presentation surface."""
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    HISTORY = "HISTORY"


class BillModel(BaseModel):
    """Base for models exchanged with Gemini and local storage.

    Field names are camelCase on the wire and snake_case in Python. Numbers
    arriving where text is expected keep their literal form.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        frozen=True,
    )


class Party(BillModel):
    """Sender or receiver of a billing document."""
    name: str = Field(default="", description="Legal or trade name")
    address: str = Field(default="", description="Postal address as printed")
    tax_id: Optional[str] = Field(default=None, description="GSTIN or PAN")


class LineItem(BillModel):
    """One row of a billing document's items table."""
    description: str = Field(default="")
    quantity: str = Field(default="")
    rate: str = Field(default="")
    amount: str = Field(default="")


class BillRecord(BillModel):
    """Normalized structured representation of one scanned billing document."""
    document_type: str = Field(..., description="Type of document (e.g., Invoice, Lorry Receipt, E-Way Bill)")
    document_number: str = Field(default="", description="The primary reference number (Invoice No, LR No)")
    date: str = Field(default="", description="Date of the document")
    sender: Party = Field(default_factory=Party)
    receiver: Party = Field(default_factory=Party)
    items: List[LineItem] = Field(..., description="Line items in document order")
    subtotal: str = Field(default="")
    tax_amount: str = Field(default="")
    total_amount: str = Field(..., description="Total amount as printed")
    currency: str = Field(default="", description="Currency symbol or code (e.g., ₹, INR)")
    notes: Optional[str] = Field(default=None, description="Any extra remarks or payment terms")

    @staticmethod
    def format_amount(currency: str, amount: str) -> str:
        """Join currency and amount the way the preview shows them."""
        return f"{currency} {amount}".strip()

    @property
    def display_total(self) -> str:
        return self.format_amount(self.currency, self.total_amount)

    def to_storage_dict(self) -> dict:
        """Serialize with camelCase keys for storage and export."""
        return self.model_dump(by_alias=True, mode="json")


class HistoryEntry(BillModel):
    """Persisted, timestamped, immutable wrapper around one past BillRecord."""
    id: str = Field(..., description="Unique entry identifier")
    timestamp: int = Field(..., description="Creation instant in epoch milliseconds")
    data: BillRecord
