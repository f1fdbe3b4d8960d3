"""
Prompts module for bill extraction.
Contains the instruction text and the response schema sent to the Gemini API.
"""

from google.genai import types

BILL_EXTRACTION_PROMPT = """Analyze this billing document and extract its data into structured JSON matching the provided schema.

1. Identify the document type (e.g., Invoice, Lorry Receipt, E-Way Bill, Tax Invoice, Delivery Challan).
2. Extract the primary reference number (Invoice No, LR No, E-Way Bill No) and the document date.
3. Extract the sender (consignor / seller) and receiver (consignee / buyer): name, address and tax id (GSTIN or PAN).
4. Extract every line item in the order it appears: description, quantity, rate and amount.
5. Extract subtotal, tax amount, total amount and the currency symbol or code.
6. Put any remarks or payment terms in notes.

Notes:
- Transcribe values exactly as printed; do not reformat numbers or dates
- Use an empty string for any field that is missing or unreadable
- Return an empty items array if no line items are present

Return only the JSON object."""

REQUIRED_BILL_FIELDS = ["documentType", "totalAmount", "items"]


def _string(description: str | None = None) -> types.Schema:
    return types.Schema(type=types.Type.STRING, description=description)


def _party_schema(role: str) -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        description=role,
        properties={
            "name": _string(),
            "address": _string(),
            "taxId": _string("GSTIN or PAN"),
        },
    )


BILL_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "documentType": _string("Type of document (e.g., Invoice, Lorry Receipt, E-Way Bill)"),
        "documentNumber": _string("The primary reference number (Invoice No, LR No)"),
        "date": _string("Date of the document"),
        "sender": _party_schema("Sender / consignor"),
        "receiver": _party_schema("Receiver / consignee"),
        "items": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "description": _string(),
                    "quantity": _string(),
                    "rate": _string(),
                    "amount": _string(),
                },
            ),
        ),
        "subtotal": _string(),
        "taxAmount": _string(),
        "totalAmount": _string(),
        "currency": _string("Currency symbol or code (e.g., ₹, INR)"),
        "notes": _string("Any extra remarks or payment terms"),
    },
    required=REQUIRED_BILL_FIELDS,
)
