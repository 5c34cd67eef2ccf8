import math
from typing import Any, List

from docintel.models.office import (
    OfficeExtractionResult,
    RuleSeverity,
    SchemaTemplateDefinition,
    ValidationOutcome,
)
from docintel.utils.numbers import round_half_up

REQUIRED_RULE = "required"


def is_empty(value: Any) -> bool:
    """None, blank strings and NaN count as empty. ``0`` and ``False`` do not."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def validate_office_extraction(
    extracted: OfficeExtractionResult,
    schema: SchemaTemplateDefinition,
) -> OfficeExtractionResult:
    """Check required fields and ``required`` rules, and score completeness.

    Completeness is the share of all declared fields that are populated, so it
    only reaches 100 when every field is filled.

    Returns:
        A copy of ``extracted`` with a fresh ``validation`` block. The
        classifier confidence is kept.
    """
    blocking: List[str] = []
    warnings: List[str] = []

    for field in schema.fields:
        if field.required and is_empty(extracted.fields.get(field.key)):
            blocking.append(f"Missing required field: {field.label}")

    for rule in schema.rules:
        expression = rule.expression or {}
        target = expression.get("field")
        if expression.get("type") != REQUIRED_RULE or not isinstance(target, str):
            continue
        if is_empty(extracted.fields.get(target)):
            if rule.severity == RuleSeverity.BLOCKING:
                blocking.append(rule.message)
            else:
                warnings.append(rule.message)

    total = max(len(schema.fields), 1)
    populated = sum(1 for field in schema.fields if not is_empty(extracted.fields.get(field.key)))
    completeness = round_half_up(populated / total * 100)

    return extracted.model_copy(
        update={
            "validation": ValidationOutcome(
                completeness=completeness,
                confidence=extracted.validation.confidence,
                blocking_issues=blocking,
                warning_issues=warnings,
            )
        }
    )
