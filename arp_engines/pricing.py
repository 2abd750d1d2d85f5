"""
Module: arp_engines.pricing
Responsibility:
    Money totals of catalog items and opportunities.  One-off supply types
    (SUPPLY, INSTALLATION) price a quantity once; monthly supply types
    (MAINTENANCE, LOAN) price it per month and per year (12 months).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every product is rounded to two places, half away from zero.
    - annual = round2(monthly * 12).
    - Lot totals of an opportunity are ordered by lot name.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from arp_engines.tracer import traced_engine
from arp_kernel.domain.entities import (
    CatalogItem,
    Contract,
    Lot,
    Opportunity,
    SupplyType,
)
from arp_kernel.domain.values import ZERO, round2, to_decimal
from arp_kernel.exceptions import EntityNotFoundError

MONTHS_PER_YEAR = Decimal("12")


def item_total_value(item: CatalogItem) -> Decimal | None:
    """Registered value of a one-off item; None for monthly items."""
    if item.is_monthly:
        return None
    return round2(item.total * item.unit_price)


def item_monthly_total(item: CatalogItem) -> Decimal | None:
    if not item.is_monthly:
        return None
    return round2(item.total * item.unit_price)


def item_annual_total(item: CatalogItem) -> Decimal | None:
    monthly = item_monthly_total(item)
    if monthly is None:
        return None
    return round2(monthly * MONTHS_PER_YEAR)


@dataclass(frozen=True)
class LineValue:
    """Value of a quantity of one item.

    For one-off lots ``total`` is the one-off value and ``annual`` is None.
    For monthly lots ``total`` is the monthly value.
    """

    lot_id: str
    supply_type: SupplyType
    total: Decimal
    annual: Decimal | None = None


def line_value(lot: Lot, item: CatalogItem, quantity: Decimal | int | str) -> LineValue:
    q = to_decimal(quantity)
    total = round2(q * item.unit_price)
    annual = round2(total * MONTHS_PER_YEAR) if lot.is_monthly else None
    return LineValue(lot_id=lot.id, supply_type=lot.supply_type, total=total, annual=annual)


@dataclass(frozen=True)
class LotTotals:
    lot_id: str
    lot_name: str
    supply_type: SupplyType
    total: Decimal = ZERO
    monthly: Decimal = ZERO
    annual: Decimal = ZERO


@dataclass(frozen=True)
class OpportunityTotals:
    opportunity_id: str
    lots: tuple[LotTotals, ...] = ()
    total: Decimal = ZERO
    monthly: Decimal = ZERO
    annual: Decimal = ZERO


@traced_engine("opportunity_totals", "1.0", fingerprint_fields=("contract", "opportunity"))
def opportunity_totals(contract: Contract, opportunity: Opportunity) -> OpportunityTotals:
    """
    Sum the value of every line of ``opportunity`` per lot.

    Raises:
        EntityNotFoundError: a line points at a lot or item missing from
            ``contract``.
    """
    per_lot: dict[str, dict[str, Decimal]] = {}
    lots: dict[str, Lot] = {}
    for line in opportunity.lines:
        lot = contract.find_lot(line.lot_id)
        if lot is None:
            raise EntityNotFoundError("Lot", line.lot_id)
        item = lot.find_item(line.item_id)
        if item is None:
            raise EntityNotFoundError("CatalogItem", line.item_id)
        lots[lot.id] = lot
        acc = per_lot.setdefault(lot.id, {"total": ZERO, "monthly": ZERO, "annual": ZERO})
        value = line_value(lot, item, line.quantity)
        if lot.is_monthly:
            acc["monthly"] += value.total
            acc["annual"] += value.annual or ZERO
        else:
            acc["total"] += value.total

    lot_totals = tuple(
        sorted(
            (
                LotTotals(
                    lot_id=lot_id,
                    lot_name=lots[lot_id].name,
                    supply_type=lots[lot_id].supply_type,
                    total=round2(acc["total"]),
                    monthly=round2(acc["monthly"]),
                    annual=round2(acc["annual"]),
                )
                for lot_id, acc in per_lot.items()
            ),
            key=lambda t: t.lot_name,
        )
    )
    return OpportunityTotals(
        opportunity_id=opportunity.id,
        lots=lot_totals,
        total=round2(sum((t.total for t in lot_totals), ZERO)),
        monthly=round2(sum((t.monthly for t in lot_totals), ZERO)),
        annual=round2(sum((t.annual for t in lot_totals), ZERO)),
    )
