"""
Module: arp_engines.aggregation
Responsibility:
    Opportunity Line Aggregator.  Sums the quantities already committed to a
    catalog item across opportunities (direct lines and kit-expansion lines
    alike), filtered by contract, status and allocation class, optionally
    excluding the opportunity being edited.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import arp_kernel.domain.

Invariants enforced:
    - Allocation class of an opportunity is decided by membership of its
      client in the contract's participant set, never stored.
    - Direct and kit lines are one shape; both count the same.
    - Status is read from the current snapshot only (no transition history).

Usage:
    from arp_engines.aggregation import sum_committed_quantity

    used = sum_committed_quantity(
        opportunities, contract, lot.id, item.id, AllocationClass.PARTICIPANT,
        exclude_opportunity_id=editing.id,
    )
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal

from arp_kernel.domain.entities import (
    AllocationClass,
    Contract,
    Opportunity,
    OpportunityStatus,
)
from arp_kernel.domain.values import ZERO


@dataclass(frozen=True)
class LineTotals:
    """Quantities of one opportunity for one (lot, item) pair."""

    direct: Decimal = ZERO
    kit: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.direct + self.kit


def line_totals(
    opportunity: Opportunity | None,
    lot_id: str,
    item_id: str,
    exclude_line_id: str | None = None,
) -> LineTotals:
    """Split an opportunity's quantity for (lot, item) into direct and kit parts."""
    if opportunity is None:
        return LineTotals()
    direct = ZERO
    kit = ZERO
    for line in opportunity.lines:
        if line.lot_id != lot_id or line.item_id != item_id:
            continue
        if exclude_line_id and line.id == exclude_line_id:
            continue
        if line.is_kit_line:
            kit += line.quantity
        else:
            direct += line.quantity
    return LineTotals(direct=direct, kit=kit)


def in_allocation_class(
    contract: Contract,
    opportunity: Opportunity,
    allocation_class: AllocationClass,
) -> bool:
    return contract.allocation_class_for(opportunity.client_id) is allocation_class


def iter_counted_opportunities(
    opportunities: Iterable[Opportunity],
    contract: Contract,
    allocation_class: AllocationClass,
    status: OpportunityStatus = OpportunityStatus.WON,
    exclude_opportunity_id: str | None = None,
) -> Iterator[Opportunity]:
    """Opportunities of ``contract`` in ``status`` whose client falls in ``allocation_class``."""
    for opp in opportunities:
        if opp.contract_id != contract.id:
            continue
        if exclude_opportunity_id and opp.id == exclude_opportunity_id:
            continue
        if opp.status is not status:
            continue
        if not in_allocation_class(contract, opp, allocation_class):
            continue
        yield opp


def sum_committed_quantity(
    opportunities: Iterable[Opportunity],
    contract: Contract,
    lot_id: str,
    item_id: str,
    allocation_class: AllocationClass,
    exclude_opportunity_id: str | None = None,
) -> Decimal:
    """Quantity consumed from (lot, item) by WON opportunities of ``allocation_class``."""
    total = ZERO
    for opp in iter_counted_opportunities(
        opportunities, contract, allocation_class,
        exclude_opportunity_id=exclude_opportunity_id,
    ):
        total += line_totals(opp, lot_id, item_id).total
    return total


def sum_reserved_quantity(
    opportunities: Iterable[Opportunity],
    contract: Contract,
    lot_id: str,
    item_id: str,
    allocation_class: AllocationClass,
) -> Decimal:
    """Quantity requested by OPEN opportunities; informational, never consumes balance."""
    total = ZERO
    for opp in iter_counted_opportunities(
        opportunities, contract, allocation_class, status=OpportunityStatus.OPEN,
    ):
        total += line_totals(opp, lot_id, item_id).total
    return total


def aggregate_lot_quantities(
    opportunities: Iterable[Opportunity],
    contract: Contract,
    lot_id: str,
    allocation_class: AllocationClass,
    status: OpportunityStatus = OpportunityStatus.WON,
    exclude_opportunity_id: str | None = None,
) -> dict[str, Decimal]:
    """Batched form: item_id -> summed quantity for every item of one lot in a single pass."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for opp in iter_counted_opportunities(
        opportunities, contract, allocation_class,
        status=status,
        exclude_opportunity_id=exclude_opportunity_id,
    ):
        for line in opp.lines:
            if line.lot_id != lot_id:
                continue
            totals[line.item_id] += line.quantity
    return dict(totals)
