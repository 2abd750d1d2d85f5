"""
Row decoding: pure transformation from split values to a CandidateRow.

Every field rule is evaluated independently so one line reports all of its
problems. ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Sequence

from arp_kernel.domain.entities import SupplyType

from arp_ingestion.domain.types import CandidateRow, HeaderMap, RowError
from arp_ingestion.domain.validators import (
    FIELD_ITEM,
    FIELD_SPECIFICATION,
    FIELD_UNIT,
    validate_required,
    validate_total,
    validate_unit_price,
)
from arp_ingestion.mapping.locale import normalize_unit, parse_locale_number


def _value_at(values: Sequence[str], index: int | None) -> str:
    if index is None or index >= len(values):
        return ""
    return (values[index] or "").strip()


def price_text(values: Sequence[str], header_map: HeaderMap, supply_type: SupplyType) -> str:
    """Monthly lots read the monthly column when it is present and filled."""
    if supply_type.is_monthly:
        monthly = _value_at(values, header_map.monthly_price)
        if monthly:
            return monthly
    return _value_at(values, header_map.unit_price)


def decode_row(
    values: Sequence[str],
    header_map: HeaderMap,
    supply_type: SupplyType,
    line_number: int,
) -> CandidateRow | tuple[RowError, ...]:
    """Decode one data line, or return every field error it has."""
    item_number = _value_at(values, header_map.item)
    specification = _value_at(values, header_map.specification)
    unit = normalize_unit(_value_at(values, header_map.unit))
    total = parse_locale_number(_value_at(values, header_map.total))
    unit_price = parse_locale_number(price_text(values, header_map, supply_type))

    checks = (
        validate_required(item_number, FIELD_ITEM, line_number),
        validate_required(specification, FIELD_SPECIFICATION, line_number),
        validate_required(unit, FIELD_UNIT, line_number),
        validate_total(total, line_number),
        validate_unit_price(unit_price, supply_type, line_number),
    )
    errors = tuple(err for err in checks if err is not None)
    if errors:
        return errors

    return CandidateRow(
        line_number=line_number,
        item_number=item_number,
        specification=specification,
        unit=unit,
        total=total,
        unit_price=unit_price,
    )
