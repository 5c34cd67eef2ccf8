"""Parsers for Swedish business formats.

Covers number formatting (space thousands, comma decimals), organisation
numbers, Plusgiro and Bankgiro accounts, OCR payment references and VAT
registration numbers.
"""

import math
import re
from typing import Any, Dict, List, Optional

from docintel.models.extraction import LocaleMetadata, VatInfo

_CURRENCY_SUFFIX = re.compile(r"\s*(kr|SEK|:-|öre)\s*$", re.IGNORECASE)
_CURRENCY_PREFIX = re.compile(r"^\s*(kr|SEK)\s*", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")

_ORG_NR = re.compile(r"\b(\d{6})-?(\d{4})\b")
_PLUSGIRO = re.compile(r"(?:pg|plusgiro|plus\s*giro)\s*:?\s*([\d\s-]+)", re.IGNORECASE)
_BANKGIRO = re.compile(r"(?:bg|bankgiro|bank\s*giro)\s*:?\s*([\d\s-]+)", re.IGNORECASE)
_OCR_REF = re.compile(r"(?:ocr|ref\.?\s*(?:nr|nummer)?|referens)\s*:?\s*(\d[\d\s]{1,24}\d)", re.IGNORECASE)
_VAT_NR = re.compile(r"SE\s*\d{12}")
_VAT_RATE = re.compile(r"moms\s*(\d{1,2})\s*%", re.IGNORECASE)
_VAT_AMOUNT = re.compile(r"(?:varav\s+)?moms\s*:?\s*([\d\s,.]+)\s*(?:kr|SEK)?", re.IGNORECASE)
_VAT_INCLUSIVE = re.compile(r"inkl\.?\s*moms", re.IGNORECASE)
_VAT_EXCLUSIVE = re.compile(r"exkl\.?\s*moms", re.IGNORECASE)

VALID_VAT_RATES = (6, 12, 25)


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def parse_swedish_number(value: Any) -> Optional[float]:
    """Parse ``"123 456 789,50"`` style numbers.

    Also accepts currency markers (kr, SEK, :-) and mixed European formats
    where dots group thousands and a comma marks decimals.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    s = _CURRENCY_SUFFIX.sub("", s).strip()
    s = _CURRENCY_PREFIX.sub("", s).strip()
    s = _WHITESPACE.sub("", s)

    if "." in s and "," in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".", 1)
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".", 1)

    s = _NON_NUMERIC.sub("", s)
    try:
        number = float(s)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def luhn_valid(digits: str) -> bool:
    """Luhn (mod 10) check used by org numbers, OCR references and VAT numbers."""
    if not digits or len(digits) < 2 or not digits.isdigit():
        return False
    total = 0
    for index, char in enumerate(reversed(digits)):
        n = int(char)
        if index % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def parse_org_nr(value: str) -> Optional[str]:
    """Normalize an organisation number to ``XXXXXX-XXXX`` or return None."""
    if not value or not isinstance(value, str):
        return None
    digits = _digits(value)
    ten = digits[2:] if len(digits) == 12 else digits
    if len(ten) != 10:
        return None
    # Third digit >= 2 separates legal entities from personal identity numbers
    if int(ten[2]) < 2:
        return None
    if not luhn_valid(ten):
        return None
    return f"{ten[:6]}-{ten[6:]}"


def detect_org_nr(text: str) -> List[str]:
    if not text:
        return []
    found: List[str] = []
    for match in _ORG_NR.finditer(text):
        parsed = parse_org_nr(match.group(1) + match.group(2))
        if parsed and parsed not in found:
            found.append(parsed)
    return found


def parse_plusgiro(value: str) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    stripped = re.sub(r"^(pg|plusgiro|plus\s*giro)\s*:?\s*", "", value, flags=re.IGNORECASE).strip()
    digits = _digits(stripped)
    if len(digits) < 2 or len(digits) > 8:
        return None
    return f"{digits[:-1]}-{digits[-1]}"


def parse_bankgiro(value: str) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    stripped = re.sub(r"^(bg|bankgiro|bank\s*giro)\s*:?\s*", "", value, flags=re.IGNORECASE).strip()
    digits = _digits(stripped)
    if len(digits) < 7 or len(digits) > 8:
        return None
    if len(digits) == 8:
        return f"{digits[:4]}-{digits[4:]}"
    return f"{digits[:3]}-{digits[3:]}"


def detect_payment_numbers(text: str) -> Dict[str, List[str]]:
    """Find Plusgiro and Bankgiro numbers following their labels."""
    result: Dict[str, List[str]] = {"plusgiro": [], "bankgiro": []}
    if not text:
        return result

    for match in _PLUSGIRO.finditer(text):
        parsed = parse_plusgiro(match.group(1))
        if parsed and parsed not in result["plusgiro"]:
            result["plusgiro"].append(parsed)

    for match in _BANKGIRO.finditer(text):
        parsed = parse_bankgiro(match.group(1))
        if parsed and parsed not in result["bankgiro"]:
            result["bankgiro"].append(parsed)

    return result


def parse_ocr_reference(value: str) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    digits = _digits(value)
    if len(digits) < 2 or len(digits) > 25:
        return None
    if not luhn_valid(digits):
        return None
    return digits


def detect_ocr_reference(text: str) -> List[str]:
    if not text:
        return []
    found: List[str] = []
    for match in _OCR_REF.finditer(text):
        parsed = parse_ocr_reference(re.sub(r"\s", "", match.group(1)))
        if parsed and parsed not in found:
            found.append(parsed)
    return found


def parse_vat_number(value: str) -> Optional[str]:
    """Normalize a Swedish VAT number to ``SE`` + 12 digits ending in 01."""
    if not value or not isinstance(value, str):
        return None
    s = re.sub(r"\s", "", value).upper()
    if not s.startswith("SE"):
        if len(_digits(s)) != 12:
            return None
        s = "SE" + _digits(s)
    digits = _digits(s)
    if len(digits) != 12 or not digits.endswith("01"):
        return None
    if not luhn_valid(digits[:10]):
        return None
    return f"SE{digits}"


def detect_vat_number(text: str) -> List[str]:
    if not text:
        return []
    found: List[str] = []
    for match in _VAT_NR.finditer(text):
        parsed = parse_vat_number(match.group(0))
        if parsed and parsed not in found:
            found.append(parsed)
    return found


def detect_vat_info(text: str) -> VatInfo:
    info = VatInfo()
    if not text:
        return info

    rate_match = _VAT_RATE.search(text)
    if rate_match:
        rate = int(rate_match.group(1))
        if rate in VALID_VAT_RATES:
            info.rate = rate

    amount_match = _VAT_AMOUNT.search(text)
    if amount_match:
        info.amount = parse_swedish_number(amount_match.group(1))

    if _VAT_INCLUSIVE.search(text):
        info.is_inclusive = True
    if _VAT_EXCLUSIVE.search(text):
        info.is_inclusive = False

    return info


def detect_swedish_formats(text: str) -> LocaleMetadata:
    """Run every detector over one block of text."""
    payment = detect_payment_numbers(text)
    return LocaleMetadata(
        org_numbers=detect_org_nr(text),
        plusgiro=payment["plusgiro"],
        bankgiro=payment["bankgiro"],
        ocr_references=detect_ocr_reference(text),
        vat_numbers=detect_vat_number(text),
        vat_info=detect_vat_info(text),
    )
