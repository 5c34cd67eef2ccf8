"""Deterministic field and table extraction for office documents.

Fields are read with regular expressions keyed by document type. Tables go
through a ``TableExtractionStrategy``; the default one only detects whether
line-item-like content is present.
"""

import re
from typing import Any, Dict, List, Optional, Pattern, Protocol
from uuid import UUID

from docintel.models.office import (
    AGREEMENT_DOC_TYPES,
    COMMERCIAL_DOC_TYPES,
    DOCUMENT_DOMAIN,
    TICKET_DOC_TYPES,
    ClassificationDecision,
    DocType,
    OfficeExtractionResult,
    SchemaTableDefinition,
    SchemaTemplateDefinition,
    ValidationOutcome,
)
from docintel.utils.numbers import round_half_up, to_float

_DATE = r"([0-9]{4}[-/.][0-9]{2}[-/.][0-9]{2})"
_LINE = r"([^\n]+)"
_SEP = r"\s*[:\-]?\s*"

DATE_PATTERN = re.compile(rf"(?:date|datum){_SEP}{_DATE}", re.IGNORECASE)
DUE_DATE_PATTERN = re.compile(rf"(?:due date|förfallodatum){_SEP}{_DATE}", re.IGNORECASE)
AMOUNT_PATTERN = re.compile(r"(?:total|summa|amount)[^\d-]*([\d\s.,]+)", re.IGNORECASE)
CURRENCY_PATTERN = re.compile(r"\b(SEK|EUR|USD|NOK|DKK)\b", re.IGNORECASE)

COMMERCIAL_PATTERNS: Dict[str, Pattern[str]] = {
    "supplier": re.compile(rf"(?:supplier|leverantör){_SEP}{_LINE}", re.IGNORECASE),
    "customer": re.compile(rf"(?:customer|kund){_SEP}{_LINE}", re.IGNORECASE),
    "document_id": re.compile(
        rf"(?:invoice|faktura|po|ordernummer|receipt|kvitto)\s*(?:nr|no|number)?{_SEP}([A-Z0-9\-/]+)",
        re.IGNORECASE,
    ),
}

AGREEMENT_PATTERNS: Dict[str, Pattern[str]] = {
    "party_a": re.compile(rf"(?:party a|part 1|leverantör|employer){_SEP}{_LINE}", re.IGNORECASE),
    "party_b": re.compile(rf"(?:party b|part 2|customer|employee){_SEP}{_LINE}", re.IGNORECASE),
    "renewal_date": re.compile(rf"(?:renewal|förnyelse|notice){_SEP}{_DATE}", re.IGNORECASE),
}

TICKET_PATTERNS: Dict[str, Pattern[str]] = {
    "ticket_id": re.compile(rf"(?:ticket|incident|change)\s*(?:id|nr|number)?{_SEP}([A-Z0-9\-]+)", re.IGNORECASE),
    "severity": re.compile(rf"(?:severity|prioritet){_SEP}{_LINE}", re.IGNORECASE),
    "affected_system": re.compile(rf"(?:system|affected system){_SEP}{_LINE}", re.IGNORECASE),
    "status": re.compile(rf"(?:status){_SEP}{_LINE}", re.IGNORECASE),
}

LINE_ITEM_HINT = re.compile(r"line item|description|qty|quantity|amount|artikel|rad", re.IGNORECASE)


def read_match(pattern: Pattern[str], text: str) -> Optional[str]:
    """First capture group, stripped; None when absent or blank."""
    match = pattern.search(text)
    if not match or match.group(1) is None:
        return None
    value = match.group(1).strip()
    return value or None


def parse_amount(text: str) -> Optional[float]:
    """Amount after a total/summa/amount label.

    Whitespace is dropped and the first comma is read as the decimal point,
    so ``"1 250,50"`` gives 1250.5.
    """
    match = AMOUNT_PATTERN.search(text)
    if not match:
        return None
    normalized = re.sub(r"\s", "", match.group(1)).replace(",", ".", 1)
    return to_float(normalized)


def extract_fields(doc_type: DocType, text: str, home_currency: str = "SEK") -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "date": read_match(DATE_PATTERN, text),
        "due_date": read_match(DUE_DATE_PATTERN, text),
        "amount": parse_amount(text),
        "currency": read_match(CURRENCY_PATTERN, text) or home_currency,
    }

    if doc_type in COMMERCIAL_DOC_TYPES:
        patterns = COMMERCIAL_PATTERNS
    elif doc_type in AGREEMENT_DOC_TYPES:
        patterns = AGREEMENT_PATTERNS
    elif doc_type in TICKET_DOC_TYPES:
        patterns = TICKET_PATTERNS
    else:
        patterns = {}

    for key, pattern in patterns.items():
        fields[key] = read_match(pattern, text)
    return fields


class TableExtractionStrategy(Protocol):
    def extract(self, table: SchemaTableDefinition, text: str) -> List[Dict[str, Any]]: ...


class PresenceHeuristicTableStrategy:
    """One empty placeholder row when the text looks like it has line items.

    Rows are left for review to fill in; the output still has one row list
    per declared table so consumers never special-case missing tables.
    """

    def extract(self, table: SchemaTableDefinition, text: str) -> List[Dict[str, Any]]:
        return [{}] if LINE_ITEM_HINT.search(text) else []


def extract_office_structured_data(
    doc_type: DocType,
    schema: SchemaTemplateDefinition,
    raw_text: str,
    classification: ClassificationDecision,
    schema_id: Optional[UUID] = None,
    schema_version: int = 1,
    home_currency: str = "SEK",
    raw_text_limit: int = 12000,
    table_strategy: Optional[TableExtractionStrategy] = None,
) -> OfficeExtractionResult:
    """Fill fields and tables for one document.

    Args:
        doc_type: Final classified type; selects the type-specific fields
        schema: Definition whose tables get a row list each
        raw_text: Full document text
        classification: Decision carried into the result unchanged
        schema_id: Published schema id, None for the default schema
        schema_version: Version of ``schema``
        home_currency: Currency used when none is written in the text
        raw_text_limit: Length of the stored text sample
        table_strategy: Table extraction to use, presence heuristic by default

    Returns:
        OfficeExtractionResult with completeness 0 and confidence from the
        classifier; run the validator to fill in the rest
    """
    text = raw_text or ""
    strategy = table_strategy or PresenceHeuristicTableStrategy()

    fields = extract_fields(doc_type, text, home_currency)
    tables = {table.key: strategy.extract(table, text) for table in schema.tables}

    affected_system = fields.get("affected_system")
    ticket_id = fields.get("ticket_id")

    return OfficeExtractionResult(
        document_domain=DOCUMENT_DOMAIN,
        doc_type=doc_type,
        schema_id=schema_id,
        schema_version=schema_version,
        classification=classification,
        fields=fields,
        tables=tables,
        links={
            "invoice_po": None,
            "asset_id": affected_system if isinstance(affected_system, str) else None,
            "ticket_id": ticket_id if isinstance(ticket_id, str) else None,
        },
        status_signals={
            "status": fields.get("status") or None,
            "severity": fields.get("severity") or None,
            "approved": False,
            "passed": False,
        },
        validation=ValidationOutcome(
            completeness=0,
            confidence=round_half_up(classification.model_confidence * 100),
        ),
        raw_text=text[:raw_text_limit],
    )
