"""Tests for text -> typed value normalization."""

from datetime import date
from decimal import Decimal

import pytest

from facturas.services.scraper import FieldNormalizer
from facturas.services.scraper.normalize import clean_text


@pytest.fixture
def normalizer():
    return FieldNormalizer()


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.234,56 €", Decimal("1234.56")),
        ("$1,234.56", Decimal("1234.56")),
        ("EUR 99,90", Decimal("99.90")),
        ("12,5", Decimal("12.5")),
        ("1.234", Decimal("1234")),
        ("1.234.567,00", Decimal("1234567.00")),
        ("IVA (21%): 210,00 €", Decimal("210.00")),
        ("-15,00 €", Decimal("-15.00")),
    ],
)
def test_normalize_amount(normalizer, text, expected):
    field = normalizer.normalize_amount(text, confidence=0.9, source=".total")

    assert field.value == expected
    assert field.confidence == 0.9
    assert field.raw_text == text
    assert field.source == ".total"


def test_normalize_amount_without_number_is_missing(normalizer):
    field = normalizer.normalize_amount("pendiente")

    assert field.value is None
    assert field.confidence == 0.0
    assert field.requires_review


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2024-03-05", date(2024, 3, 5)),
        ("05/03/2024", date(2024, 3, 5)),
        ("Fecha: 15.01.2024", date(2024, 1, 15)),
        ("5 de marzo de 2024", date(2024, 3, 5)),
        ("Emitida el 1 de Diciembre de 2023", date(2023, 12, 1)),
        ("March 15, 2024", date(2024, 3, 15)),
        ("15 Jan 2024", date(2024, 1, 15)),
        # Day-first fails, month-first succeeds
        ("12/25/2024", date(2024, 12, 25)),
    ],
)
def test_normalize_date(normalizer, text, expected):
    assert normalizer.normalize_date(text).value == expected


def test_normalize_date_unparsable_is_missing(normalizer):
    field = normalizer.normalize_date("sin fecha")

    assert field.value is None
    assert field.confidence == 0.0


@pytest.mark.parametrize(
    "text, expected",
    [("3", Decimal("3")), ("3 uds", Decimal("3")), ("2,5 h", Decimal("2.5")), ("-4", Decimal("4"))],
)
def test_normalize_quantity(normalizer, text, expected):
    assert normalizer.normalize_quantity(text).value == expected


def test_normalize_string_collapses_whitespace(normalizer):
    field = normalizer.normalize_string("  ACME\n\tSoluciones   S.L. ")

    assert field.value == "ACME Soluciones S.L."


def test_normalize_string_empty_is_missing(normalizer):
    assert normalizer.normalize_string(" \n ").value is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.234,56 €", "EUR"),
        ("EUR 10", "EUR"),
        ("$10.00", "USD"),
        ("US$ 5", "USD"),
        ("£20", "GBP"),
        ("MXN 1,500.00", "MXN"),
        ("100,00", None),
        (None, None),
    ],
)
def test_detect_currency(normalizer, text, expected):
    assert normalizer.detect_currency(text) == expected


def test_clean_text_strips_control_characters():
    assert clean_text("a\x00b\x1fc") == "a b c"
