"""
Field validators for decoded catalog rows.

Each validator checks one field and returns a RowError or None, so a line
reports every failed field at once. Messages are the Portuguese texts shown
next to the offending line.

Architecture: arp_ingestion/domain. ZERO I/O. Imports only from arp_kernel/domain/.
"""

from __future__ import annotations

from decimal import Decimal

from arp_kernel.domain.entities import SupplyType
from arp_kernel.domain.values import ZERO

from arp_ingestion.domain.types import RowError

FIELD_ITEM = "Item"
FIELD_SPECIFICATION = "Especificacao"
FIELD_UNIT = "Unid"
FIELD_TOTAL = "Total"
FIELD_UNIT_PRICE = "ValorUnitario"

MSG_REQUIRED = "Obrigatório"
MSG_TOTAL = "Deve ser número > 0"
MSG_PRICE_NON_NEGATIVE = "Deve ser número >= 0"
MSG_PRICE_POSITIVE = "Deve ser número > 0"
MSG_TOO_LARGE = "Número muito grande"

# Integer digits accepted for quantities and prices. Products of the two and
# their lot sums must still round to two places in the 28-digit context.
MAX_INTEGER_DIGITS = 10


def _too_large(value: Decimal) -> bool:
    return value.is_finite() and value != ZERO and value.adjusted() >= MAX_INTEGER_DIGITS


def validate_required(value: str, field: str, line_number: int) -> RowError | None:
    if value:
        return None
    return RowError(line_number, field, MSG_REQUIRED, code="REQUIRED_FIELD")


def validate_total(total: Decimal, line_number: int) -> RowError | None:
    """Total quantity must be a finite number greater than zero."""
    if _too_large(total):
        return RowError(line_number, FIELD_TOTAL, MSG_TOO_LARGE, code="VALUE_TOO_LARGE")
    if total.is_finite() and total > ZERO:
        return None
    return RowError(line_number, FIELD_TOTAL, MSG_TOTAL, code="INVALID_TOTAL")


def validate_unit_price(price: Decimal, supply_type: SupplyType, line_number: int) -> RowError | None:
    """Maintenance prices must be positive; every other supply type accepts zero."""
    if _too_large(price):
        return RowError(line_number, FIELD_UNIT_PRICE, MSG_TOO_LARGE, code="VALUE_TOO_LARGE")
    if supply_type is SupplyType.MAINTENANCE:
        if price.is_finite() and price > ZERO:
            return None
        return RowError(line_number, FIELD_UNIT_PRICE, MSG_PRICE_POSITIVE, code="INVALID_UNIT_PRICE")
    if price.is_finite() and price >= ZERO:
        return None
    return RowError(line_number, FIELD_UNIT_PRICE, MSG_PRICE_NON_NEGATIVE, code="INVALID_UNIT_PRICE")
