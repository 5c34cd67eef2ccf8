"""Tests for Swedish reference number detection and locale enrichment."""

from docintel.services.extraction.enrichment import enrich_locale_metadata
from docintel.utils.swedish_formats import (
    detect_ocr_reference,
    detect_payment_numbers,
    detect_swedish_formats,
    luhn_valid,
    parse_bankgiro,
    parse_org_nr,
    parse_plusgiro,
    parse_swedish_number,
    parse_vat_number,
)


class TestNumbers:
    def test_grouped_with_decimal_comma(self):
        assert parse_swedish_number("123 456 789,50") == 123456789.5

    def test_currency_markers(self):
        assert parse_swedish_number("1 250 kr") == 1250.0
        assert parse_swedish_number("SEK 99,90") == 99.9
        assert parse_swedish_number("500:-") == 500.0

    def test_european_grouping(self):
        assert parse_swedish_number("1.234,56") == 1234.56
        assert parse_swedish_number("1,234.56") == 1234.56

    def test_junk(self):
        assert parse_swedish_number("") is None
        assert parse_swedish_number("abc") is None
        assert parse_swedish_number(None) is None


class TestIdentifiers:
    def test_luhn(self):
        assert luhn_valid("5560360793")
        assert not luhn_valid("5560360794")

    def test_org_nr(self):
        assert parse_org_nr("556036-0793") == "556036-0793"
        assert parse_org_nr("5560360793") == "556036-0793"
        # Personal identity numbers have a third digit below 2
        assert parse_org_nr("8001010000") is None

    def test_vat_number(self):
        assert parse_vat_number("SE556036079301") == "SE556036079301"
        assert parse_vat_number("SE556036079302") is None

    def test_giro_numbers(self):
        assert parse_plusgiro("PG 1234567") == "123456-7"
        assert parse_bankgiro("5050-1055") == "5050-1055"
        assert parse_bankgiro("123-4567") == "123-4567"
        assert parse_bankgiro("12") is None

    def test_detect_payment_numbers(self):
        found = detect_payment_numbers("Bankgiro: 5050-1055\nPlusgiro 4711-2")

        assert found["bankgiro"] == ["5050-1055"]
        assert found["plusgiro"] == ["4711-2"]

    def test_detect_ocr_reference(self):
        assert detect_ocr_reference("OCR: 5560360793") == ["5560360793"]


class TestEnrichment:
    def test_full_detection(self):
        text = "Org.nr 556036-0793, Bankgiro 5050-1055, OCR 5560360793, Moms 25 % inkl. moms"

        metadata = detect_swedish_formats(text)

        assert metadata.org_numbers == ["556036-0793"]
        assert metadata.bankgiro == ["5050-1055"]
        assert "5560360793" in metadata.ocr_references
        assert metadata.vat_info.rate == 25
        assert metadata.vat_info.is_inclusive is True

    def test_nothing_found_is_none(self):
        assert enrich_locale_metadata('{"items": [{"material": "Glass"}]}') is None
        assert enrich_locale_metadata(None) is None

    def test_found_metadata_returned(self):
        metadata = enrich_locale_metadata("Bankgiro 5050-1055")

        assert metadata is not None
        assert metadata.bankgiro == ["5050-1055"]
