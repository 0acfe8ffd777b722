"""Row decoders for the five registry sources.

Each decoder turns one tab-separated line into a typed record or raises
``RegistryRowError`` with a reject reason. Decoders are pure functions.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from core.constants import (
    COMPOSITION_MIN_COLUMNS,
    CONDITION_MIN_COLUMNS,
    FIELD_SEPARATOR,
    GENERIC_GROUP_MIN_COLUMNS,
    GENERIC_ROLE_LABELS,
    GENERIC_ROLE_OTHER_LABEL,
    PRESENTATION_MIN_COLUMNS,
    REJECT_GROUP_ID_MISMATCH,
    REJECT_INVALID_INTEGER,
    REJECT_INVALID_PRICE,
    REJECT_INVALID_ROLE,
    REJECT_MISSING_COLUMNS,
    ROUTE_SEPARATOR,
    SPECIALTY_MIN_COLUMNS,
    SURVEILLANCE_YES,
)
from core.errors import RegistryRowError
from core.types import Composition, Condition, GenericGroupRow, Presentation, Specialty


_CENT = Decimal("0.01")


def decode_specialty_row(line: str) -> Specialty:
    """Decode one specialty row.

    Args:
        line: Raw tab-separated line.

    Returns:
        Decoded specialty.

    Raises:
        RegistryRowError: If columns are missing or the identifier is not numeric.
    """
    fields = split_row(line, SPECIALTY_MIN_COLUMNS)
    return Specialty(
        cis=parse_int(fields[0], "cis"),
        name=fields[1].strip(),
        pharmaceutical_form=fields[2].strip(),
        administration_routes=_split_routes(fields[3]),
        authorization_status=fields[4].strip(),
        procedure_type=fields[5].strip(),
        marketing_status=fields[6].strip(),
        authorization_date=fields[7].strip(),
        registry_status=fields[8].strip(),
        european_authorization_number=fields[9].strip(),
        holder=fields[10].lstrip(" ").rstrip(),
        enhanced_surveillance=fields[11].strip().lower() == SURVEILLANCE_YES,
    )


def decode_composition_row(line: str) -> Composition:
    """Decode one composition row.

    Args:
        line: Raw tab-separated line.

    Returns:
        Decoded composition.

    Raises:
        RegistryRowError: If columns are missing or numeric columns are invalid.
    """
    fields = split_row(line, COMPOSITION_MIN_COLUMNS)
    linkage_number = None
    if len(fields) > COMPOSITION_MIN_COLUMNS and fields[7].strip():
        linkage_number = parse_int(fields[7], "linkage_number")
    return Composition(
        cis=parse_int(fields[0], "cis"),
        pharmaceutical_element=fields[1].strip(),
        substance_code=parse_int(fields[2], "substance_code"),
        substance_name=fields[3].strip(),
        dosage=fields[4].strip(),
        dosage_reference=fields[5].strip(),
        component_nature=fields[6].strip(),
        linkage_number=linkage_number,
    )


def decode_presentation_row(line: str) -> Presentation:
    """Decode one presentation row.

    Args:
        line: Raw tab-separated line.

    Returns:
        Decoded presentation.

    Raises:
        RegistryRowError: If columns are missing, codes are invalid, or the
            price cannot be parsed.
    """
    fields = split_row(line, PRESENTATION_MIN_COLUMNS)
    return Presentation(
        cis=parse_int(fields[0], "cis"),
        cip7=parse_int(fields[1], "cip7"),
        label=fields[2].strip(),
        administrative_status=fields[3].strip(),
        marketing_status=fields[4].strip(),
        declaration_date=fields[5].strip(),
        cip13=parse_int(fields[6], "cip13"),
        institutional_agreement=fields[7].strip(),
        reimbursement_rate=fields[8].strip(),
        price=parse_price(fields[9]),
    )


def decode_condition_row(line: str) -> Condition:
    """Decode one prescription condition row."""
    fields = split_row(line, CONDITION_MIN_COLUMNS)
    return Condition(cis=parse_int(fields[0], "cis"), text=fields[1].strip())


def decode_generic_group_row(line: str, validate_trailer: bool = True) -> GenericGroupRow:
    """Decode one generic-group row.

    The upstream layout repeats the group identifier in a trailing column.
    When ``validate_trailer`` is set and that column is present, both
    occurrences must agree.

    Args:
        line: Raw tab-separated line.
        validate_trailer: Whether to check the trailing group identifier.

    Returns:
        Decoded group membership row.

    Raises:
        RegistryRowError: If columns are missing, numbers are invalid, or the
            two group identifiers disagree.
    """
    fields = split_row(line, GENERIC_GROUP_MIN_COLUMNS)
    group_id = parse_int(fields[0], "group_id")
    if validate_trailer and len(fields) > GENERIC_GROUP_MIN_COLUMNS:
        trailer = fields[GENERIC_GROUP_MIN_COLUMNS].strip()
        if trailer and (not _is_integer(trailer) or int(trailer) != group_id):
            raise RegistryRowError(
                REJECT_GROUP_ID_MISMATCH,
                f"leading group id '{fields[0].strip()}' differs from trailing '{trailer}'",
            )
    role_code = _parse_role(fields[3])
    return GenericGroupRow(
        group_id=group_id,
        label=fields[1].strip(),
        cis=parse_int(fields[2], "cis"),
        role_code=role_code,
        role_label=GENERIC_ROLE_LABELS.get(role_code, GENERIC_ROLE_OTHER_LABEL),
    )


def split_row(line: str, min_columns: int) -> list[str]:
    """Split a raw line and check its column count.

    Args:
        line: Raw line without terminator.
        min_columns: Minimum number of columns required.

    Returns:
        Column values, possibly more than ``min_columns``.

    Raises:
        RegistryRowError: If fewer columns are present.
    """
    fields = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(fields) < min_columns:
        raise RegistryRowError(
            REJECT_MISSING_COLUMNS,
            f"expected at least {min_columns} columns, got {len(fields)}",
        )
    return fields


def parse_int(raw_value: str, column: str) -> int:
    """Parse an integer column, rejecting the row on failure."""
    value = raw_value.strip()
    if not _is_integer(value):
        raise RegistryRowError(
            REJECT_INVALID_INTEGER, f"column {column} is not an integer: '{raw_value}'"
        )
    return int(value)


def parse_price(raw_value: str) -> float | None:
    """Parse a registry price such as ``1,234,56`` into euros.

    Every comma but the last is a thousands separator; the last one is the
    decimal separator. The result is truncated to cents.

    Args:
        raw_value: Raw price column.

    Returns:
        Price in euros, or ``None`` when the column is empty.

    Raises:
        RegistryRowError: If the value is not a number.
    """
    value = raw_value.strip()
    if not value:
        return None
    comma_count = value.count(",")
    if comma_count > 1:
        value = value.replace(",", "", comma_count - 1)
    try:
        price = Decimal(value.replace(",", "."))
        if not price.is_finite():
            raise InvalidOperation(value)
        cents = price.quantize(_CENT, rounding=ROUND_DOWN)
    except InvalidOperation as error:
        raise RegistryRowError(
            REJECT_INVALID_PRICE, f"price is not a representable amount: '{raw_value}'"
        ) from error
    return float(cents)


def _parse_role(raw_value: str) -> int:
    value = raw_value.strip()
    if not _is_integer(value):
        raise RegistryRowError(
            REJECT_INVALID_ROLE, f"role code is not an integer: '{raw_value}'"
        )
    return int(value)


def _is_integer(value: str) -> bool:
    """Accept an optional sign followed by ASCII digits only."""
    digits = value[1:] if value[:1] in ("+", "-") else value
    return digits.isascii() and digits.isdigit()


def _split_routes(raw_value: str) -> tuple[str, ...]:
    routes = (route.strip() for route in raw_value.split(ROUTE_SEPARATOR))
    return tuple(route for route in routes if route)
