"""Prompt shared by every extraction adapter.

All providers receive the same instructions so results stay comparable no
matter which model a user picks.
"""

import re
from typing import Optional

from docintel.models.extraction import ExtractionRequest, ExtractionSettings

SECTION_RULE = "=" * 79

_FILENAME_DATE = re.compile(r"(\d{4}[-_]\d{2}[-_]\d{2})")


def filename_date(filename: str) -> Optional[str]:
    """Return a ``YYYY-MM-DD`` date embedded in a filename, if any."""
    match = _FILENAME_DATE.search(filename or "")
    if not match:
        return None
    return match.group(1).replace("_", "-")


def _section(title: str, body: str) -> str:
    return f"{SECTION_RULE}\n{title}\n{SECTION_RULE}\n{body}\n"


def _material_rules(settings: ExtractionSettings) -> str:
    if not settings.material_synonyms:
        return "Use material names as found in document."
    return "\n".join(
        f"{standard}: {', '.join(synonyms)}" for standard, synonyms in settings.material_synonyms.items()
    )


def build_extraction_prompt(
    table_text: str,
    filename: str,
    receiver: str,
    settings: Optional[ExtractionSettings] = None,
    custom_instructions: Optional[str] = None,
) -> str:
    """Build the extraction prompt.

    Args:
        table_text: Table content as TSV or plain text
        filename: Source filename, used as a date fallback
        receiver: Receiver written into the output example
        settings: Material synonyms and other per-user tuning
        custom_instructions: Free text that overrides the generic rules

    Returns:
        str: Prompt asking for ``{"items": [...]}`` JSON
    """
    settings = settings or ExtractionSettings()
    fallback_date = filename_date(filename) or "today's date"

    parts = [
        "Extract ALL rows from this waste document table to clean JSON.\n",
        _section(
            "MULTI-LANGUAGE SUPPORT",
            "Document may be in: Swedish, Norwegian, Danish, Finnish, or English.\n"
            "Recognize column names and values in any of these languages.\n"
            "Output data in ENGLISH field names with original values preserved.",
        ),
        _section(
            "DATE HANDLING",
            "EXCEL SERIAL DATES: if a date is a NUMBER (like 45294), convert it.\n"
            "   Formula: days since 1899-12-30. Example: 45294 = 2024-01-02\n"
            "PERIODS: if the document shows a date range, ALWAYS extract the END date.\n"
            '   - "Period 20251201-20251231" -> "2025-12-31"\n'
            '   - "Period: 2025-12-01 - 2025-12-31" -> "2025-12-31"\n'
            "   The end date is when the work was completed.\n"
            "Recognize date formats in all languages and output as YYYY-MM-DD.\n"
            f"If no date found, use fallback: {fallback_date}",
        ),
        _section("MATERIAL STANDARDIZATION", _material_rules(settings)),
        _section(
            "WEIGHT CONVERSION (always output in kg)",
            "- ton/t/tonn/tonnes -> x1000\n- g/gram -> /1000\n- kg/kilogram -> as-is",
        ),
        _section("TABLE DATA", table_text),
    ]

    if custom_instructions:
        parts.append(
            _section(
                "CUSTOM INSTRUCTIONS (HIGHEST PRIORITY)",
                f"{custom_instructions}\n\nThese instructions override any conflicting rules above.",
            )
        )

    example = (
        '{"items":[{"date":"2024-01-16","location":"Address","material":"Material",'
        f'"weightKg":185,"unit":"Kg","receiver":"{receiver}","isHazardous":false}}]}}'
    )
    parts.append(
        _section(
            "JSON OUTPUT FORMAT (no markdown, no backticks)",
            f"{example}\n\n"
            "CRITICAL:\n"
            "1. Extract ALL rows from the data!\n"
            "2. Output dates as YYYY-MM-DD\n"
            "3. Convert all weights to kg\n"
            "4. Set isHazardous:true if hazardous waste indicator present",
        )
    )
    return "\n".join(parts)


def build_prompt_for_request(request: ExtractionRequest) -> str:
    return build_extraction_prompt(
        request.table_text,
        request.filename,
        request.default_receiver,
        request.settings,
        request.custom_instructions,
    )
