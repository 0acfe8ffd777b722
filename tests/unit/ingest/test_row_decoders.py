"""Unit tests for registry row decoders."""

from __future__ import annotations

import pytest

from core.constants import (
    REJECT_GROUP_ID_MISMATCH,
    REJECT_INVALID_INTEGER,
    REJECT_INVALID_PRICE,
    REJECT_INVALID_ROLE,
    REJECT_MISSING_COLUMNS,
)
from core.errors import RegistryRowError
from ingest.row_decoders import (
    decode_composition_row,
    decode_condition_row,
    decode_generic_group_row,
    decode_presentation_row,
    decode_specialty_row,
    parse_int,
    parse_price,
)

_SPECIALTY_LINE = (
    "60002345\tPARACETAMOL TEST 500 mg\tcomprimé\torale;rectale\tAutorisation active\t"
    "Procédure nationale\tCommercialisée\t01/02/2005\t\t\t  TEST PHARMA\tOui"
)
_PRESENTATION_LINE = (
    "60002345\t3000002\tplaquette(s) de 8\tPrésentation active\t"
    "Déclaration de commercialisation\t02/02/2006\t3400930000002\toui\t65%\t{price}"
)


def test_specialty_row_decodes_all_columns() -> None:
    """Specialty rows should split routes and trim the holder."""
    specialty = decode_specialty_row(_SPECIALTY_LINE)

    assert specialty.cis == 60002345
    assert specialty.administration_routes == ("orale", "rectale")
    assert specialty.holder == "TEST PHARMA"
    assert specialty.enhanced_surveillance is True


def test_specialty_row_rejects_short_rows() -> None:
    """Rows with fewer than twelve columns should be rejected."""
    with pytest.raises(RegistryRowError) as error:
        decode_specialty_row("60002345\tPARACETAMOL")

    assert error.value.reason == REJECT_MISSING_COLUMNS


def test_specialty_row_rejects_non_numeric_identifier() -> None:
    """A non-numeric identifier should be rejected as invalid integer."""
    with pytest.raises(RegistryRowError) as error:
        decode_specialty_row(_SPECIALTY_LINE.replace("60002345", "CIS-A", 1))

    assert error.value.reason == REJECT_INVALID_INTEGER


def test_composition_row_reads_optional_linkage_number() -> None:
    """The eighth composition column should populate the linkage number."""
    composition = decode_composition_row(
        "60001234\tcomprimé\t02202\tPARACÉTAMOL\t500 mg\tun comprimé\tSA\t1"
    )

    assert (composition.substance_code, composition.linkage_number) == (2202, 1)


def test_composition_row_without_linkage_number() -> None:
    """Seven-column composition rows should be accepted."""
    composition = decode_composition_row(
        "60001234\tcomprimé\t02202\tPARACÉTAMOL\t500 mg\tun comprimé\tSA"
    )

    assert composition.linkage_number is None


def test_presentation_row_parses_codes_and_price() -> None:
    """Presentation rows should expose both packaging codes and the price."""
    presentation = decode_presentation_row(_PRESENTATION_LINE.format(price="1,96"))

    assert (presentation.cip7, presentation.cip13) == (3000002, 3400930000002)
    assert presentation.price == 1.96


def test_presentation_row_rejects_unparseable_price() -> None:
    """A price that is not a number should reject the row."""
    with pytest.raises(RegistryRowError) as error:
        decode_presentation_row(_PRESENTATION_LINE.format(price="gratuit"))

    assert error.value.reason == REJECT_INVALID_PRICE


@pytest.mark.parametrize(
    ("raw_price", "expected"),
    [
        ("1,96", 1.96),
        ("1,234,567", 1234.56),
        ("12,999", 12.99),
        ("24", 24.0),
        ("", None),
        ("  ", None),
    ],
)
def test_parse_price_variants(raw_price: str, expected: float | None) -> None:
    """Prices drop thousands separators and truncate to cents."""
    assert parse_price(raw_price) == expected


@pytest.mark.parametrize("raw_price", ["1e30", "99999999999999999999999999999,99", "NaN", "Infinity"])
def test_parse_price_rejects_unrepresentable_amounts(raw_price: str) -> None:
    """Amounts that cannot be truncated to cents reject the row."""
    with pytest.raises(RegistryRowError) as error:
        parse_price(raw_price)

    assert error.value.reason == REJECT_INVALID_PRICE


@pytest.mark.parametrize("raw_value", ["1_000", "\u0661\u0662", "12a", "", "+", "1.5"])
def test_parse_int_rejects_non_ascii_digit_values(raw_value: str) -> None:
    """Only an optional sign followed by ASCII digits is an integer."""
    with pytest.raises(RegistryRowError) as error:
        parse_int(raw_value, "cis")

    assert error.value.reason == REJECT_INVALID_INTEGER


def test_parse_int_accepts_padded_and_signed_values() -> None:
    """Surrounding blanks and a leading sign are accepted."""
    assert (parse_int(" 0042 ", "cis"), parse_int("-7", "cis")) == (42, -7)


def test_condition_row_keeps_text() -> None:
    """Condition rows carry the identifier and the free text."""
    condition = decode_condition_row("60003456\tliste I")

    assert (condition.cis, condition.text) == (60003456, "liste I")


def test_group_row_maps_role_label() -> None:
    """Role code zero should map to the reference product label."""
    row = decode_generic_group_row("100\tGroup1\t1\t0\t100")

    assert (row.group_id, row.cis, row.role_code, row.role_label) == (100, 1, 0, "Princeps")


def test_group_row_rejects_mismatched_trailer() -> None:
    """Disagreeing group identifier columns should reject the row."""
    with pytest.raises(RegistryRowError) as error:
        decode_generic_group_row("100\tGroup1\t1\t0\t101")

    assert error.value.reason == REJECT_GROUP_ID_MISMATCH


def test_group_row_ignores_trailer_when_validation_disabled() -> None:
    """Trailer validation can be turned off for sort-number layouts."""
    row = decode_generic_group_row("100\tGroup1\t1\t0\t7", validate_trailer=False)

    assert row.group_id == 100


def test_group_row_accepts_four_columns() -> None:
    """The trailing group column is optional."""
    row = decode_generic_group_row("100\tGroup1\t1\t1")

    assert row.role_label == "Générique"


def test_group_row_keeps_unknown_role_code() -> None:
    """Unknown integer role codes are kept with a generic label."""
    row = decode_generic_group_row("100\tGroup1\t1\t9\t100")

    assert (row.role_code, row.role_label) == (9, "Autre")


def test_group_row_rejects_non_numeric_role() -> None:
    """A non-integer role code should reject the row."""
    with pytest.raises(RegistryRowError) as error:
        decode_generic_group_row("100\tGroup1\t1\tP\t100")

    assert error.value.reason == REJECT_INVALID_ROLE


def test_group_row_compares_trailer_numerically() -> None:
    """A zero-padded trailer naming the same group is accepted."""
    row = decode_generic_group_row("100\tGroup1\t1\t0\t0100")

    assert row.group_id == 100


def test_group_row_rejects_non_numeric_trailer() -> None:
    """A trailer that is not a number never matches the group id."""
    with pytest.raises(RegistryRowError) as error:
        decode_generic_group_row("100\tGroup1\t1\t0\tabc")

    assert error.value.reason == REJECT_GROUP_ID_MISMATCH
