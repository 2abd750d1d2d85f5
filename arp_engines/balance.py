"""
Module: arp_engines.balance
Responsibility:
    Balance Engine.  For one (contract, lot, allocation class) triple,
    compute per-item base quota, consumed quantity and remaining balance,
    plus a lot summary; validate a proposed quantity against what remains;
    validate every line of an opportunity being edited and gate its commit.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import arp_kernel.domain and sibling engine modules.

Invariants enforced:
    - PARTICIPANT base = total; PIGGYBACK shared base = total * 2;
      PIGGYBACK per-opportunity cap = total * 0.5.
    - Only WON opportunities consume balance.
    - remaining = round2(base) - round2(consumed), the same figure in the
      balance table and in every quantity check; every product is rounded
      to two places, half away from zero.
    - Proposed quantities below 1 are rejected.
    - A quantity is rejected when it exceeds an applicable limit by more
      than EPSILON.  Quantities are never clamped.
    - Rows are ordered by dotted numeric item number.
    - Nothing is cached: every call recomputes from the snapshot it is given.

Failure modes:
    - Violations are returned as data (QuantityCheck, LineValidation).
    - ensure_commit_allowed raises BalanceViolationError when any line of
      the opportunity is in violation.

Usage:
    from arp_engines.balance import BalanceEngine

    engine = BalanceEngine()
    report = engine.compute_balance(
        contract=arp, lot=lot,
        allocation_class=AllocationClass.PIGGYBACK,
        opportunities=snapshot.opportunities,
    )
    check = engine.validate_proposed_quantity(
        contract=arp, item=item,
        allocation_class=AllocationClass.PIGGYBACK,
        quantity=Decimal("51"),
        opportunities=snapshot.opportunities,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from arp_engines.aggregation import aggregate_lot_quantities, sum_committed_quantity
from arp_engines.tracer import traced_engine
from arp_kernel.domain.entities import (
    AllocationClass,
    CatalogItem,
    Contract,
    Lot,
    Opportunity,
    OpportunityStatus,
)
from arp_kernel.domain.values import ZERO, round2, to_decimal
from arp_kernel.exceptions import BalanceViolationError
from arp_kernel.logging_config import get_logger

logger = get_logger("engines.balance")

# Business constants of the price-registration rules.
PARTICIPANT_BASE_MULTIPLIER = Decimal("1")
PIGGYBACK_BASE_MULTIPLIER = Decimal("2")
PIGGYBACK_OPPORTUNITY_SHARE = Decimal("0.5")

EPSILON = Decimal("1e-9")
MIN_QUANTITY = Decimal("1")

MSG_PARTICIPANT_EXCEEDED = "Quantidade excede saldo disponível do item para participantes."
MSG_PIGGYBACK_EXCEEDED = (
    "Quantidade excede limite por oportunidade (50% da quantidade original da ATA) "
    "e/ou saldo carona disponível."
)
MSG_NO_CLIENT = "Selecione o cliente para validar saldo."
MSG_NO_LOT = "Selecione um lote."
MSG_NO_ITEM = "Selecione um item."
MSG_MIN_QUANTITY = "Quantidade mínima é 1."


def base_quota(item: CatalogItem, allocation_class: AllocationClass) -> Decimal:
    """Registered quota available to ``allocation_class`` for ``item``."""
    match allocation_class:
        case AllocationClass.PARTICIPANT:
            return round2(item.total * PARTICIPANT_BASE_MULTIPLIER)
        case AllocationClass.PIGGYBACK:
            return round2(item.total * PIGGYBACK_BASE_MULTIPLIER)
        case _:
            raise ValueError(f"Unknown allocation class: {allocation_class}")


def piggyback_opportunity_cap(item: CatalogItem) -> Decimal:
    """No single piggyback deal may request more than half the ceiling."""
    return round2(item.total * PIGGYBACK_OPPORTUNITY_SHARE)


# -----------------------------------------------------------------------------
# Result types
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class BalanceRow:
    """Balance of one catalog item for one allocation class."""

    item: CatalogItem
    base: Decimal
    consumed: Decimal
    remaining: Decimal
    reserved_open: Decimal = ZERO


@dataclass(frozen=True)
class BalanceSummary:
    base: Decimal = ZERO
    consumed: Decimal = ZERO
    remaining: Decimal = ZERO


@dataclass(frozen=True)
class BalanceReport:
    """
    Per-item rows and lot totals.

    Guarantees:
        - ``rows`` sorted by item number.
        - ``summary`` fields are the rounded sums of the row fields.
    """

    allocation_class: AllocationClass
    rows: tuple[BalanceRow, ...] = ()
    summary: BalanceSummary = BalanceSummary()
    contract_id: str | None = None
    lot_id: str | None = None

    @property
    def is_exhausted(self) -> bool:
        """True when the lot has items and nothing remains."""
        return bool(self.rows) and self.summary.remaining <= ZERO

    def row_for(self, item_id: str) -> BalanceRow | None:
        return next((r for r in self.rows if r.item.id == item_id), None)


@dataclass(frozen=True)
class QuantityCheck:
    """Outcome of validating one proposed quantity."""

    ok: bool
    reason: str | None = None
    code: str | None = None
    remaining: Decimal | None = None
    cap: Decimal | None = None


@dataclass(frozen=True)
class ProposedLine:
    """A grid line under edit; quantity may still be invalid."""

    id: str
    lot_id: str | None
    item_id: str | None
    quantity: Any


@dataclass(frozen=True)
class LineValidation:
    line_id: str
    ok: bool
    reason: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class OpportunityLinesValidation:
    allocation_class: AllocationClass | None
    lines: tuple[LineValidation, ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(not line.ok for line in self.lines)

    @property
    def errors(self) -> dict[str, str]:
        return {line.line_id: line.reason or "" for line in self.lines if not line.ok}


def _as_quantity(value: Any) -> Decimal | None:
    try:
        quantity = to_decimal(value)
    except (ValueError, InvalidOperation):
        return None
    return quantity if quantity.is_finite() else None


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------


class BalanceEngine:
    """
    Compute and enforce per-item balances of a price-registration agreement.

    Contract:
        Pure functions over an immutable snapshot.  No I/O, no caching.
    Guarantees:
        - ``remaining == round2(base - consumed)`` on every row.
        - PARTICIPANT checks enforce ``quantity <= remaining``;
          PIGGYBACK checks enforce ``quantity <= min(cap, remaining)``.
    Non-goals:
        - Does not decide who may edit an opportunity.
        - Does not persist or clamp quantities.
    """

    @traced_engine(
        "balance", "1.0",
        fingerprint_fields=("contract", "lot", "allocation_class", "exclude_opportunity_id"),
    )
    def compute_balance(
        self,
        contract: Contract,
        lot: Lot,
        allocation_class: AllocationClass,
        opportunities: Sequence[Opportunity],
        exclude_opportunity_id: str | None = None,
    ) -> BalanceReport:
        """Build the balance table of ``lot`` for ``allocation_class``."""
        consumed_by_item = aggregate_lot_quantities(
            opportunities, contract, lot.id, allocation_class,
            exclude_opportunity_id=exclude_opportunity_id,
        )
        reserved_by_item = aggregate_lot_quantities(
            opportunities, contract, lot.id, allocation_class,
            status=OpportunityStatus.OPEN,
        )

        rows: list[BalanceRow] = []
        for item in lot.sorted_items():
            base = base_quota(item, allocation_class)
            consumed = round2(consumed_by_item.get(item.id, ZERO))
            rows.append(
                BalanceRow(
                    item=item,
                    base=base,
                    consumed=consumed,
                    remaining=round2(base - consumed),
                    reserved_open=round2(reserved_by_item.get(item.id, ZERO)),
                )
            )

        summary = BalanceSummary(
            base=round2(sum((r.base for r in rows), ZERO)),
            consumed=round2(sum((r.consumed for r in rows), ZERO)),
            remaining=round2(sum((r.remaining for r in rows), ZERO)),
        )
        logger.info("balance_computed", extra={
            "contract_id": contract.id,
            "lot_id": lot.id,
            "allocation_class": allocation_class.value,
            "item_count": len(rows),
            "remaining": str(summary.remaining),
        })
        return BalanceReport(
            allocation_class=allocation_class,
            rows=tuple(rows),
            summary=summary,
            contract_id=contract.id,
            lot_id=lot.id,
        )

    @traced_engine(
        "balance_check", "1.0",
        fingerprint_fields=("contract", "item", "allocation_class", "quantity", "exclude_opportunity_id"),
    )
    def validate_proposed_quantity(
        self,
        contract: Contract,
        item: CatalogItem,
        allocation_class: AllocationClass,
        quantity: Decimal | int | str,
        opportunities: Sequence[Opportunity],
        exclude_opportunity_id: str | None = None,
    ) -> QuantityCheck:
        """Check one proposed quantity of ``item`` against the current balance."""
        return self._check_quantity(
            contract, item, allocation_class, quantity, opportunities, exclude_opportunity_id,
        )

    def validate_opportunity_lines(
        self,
        contract: Contract | None,
        client_id: str | None,
        lines: Sequence[ProposedLine],
        opportunities: Sequence[Opportunity],
        exclude_opportunity_id: str | None = None,
    ) -> OpportunityLinesValidation:
        """
        Validate every line of an opportunity under edit, in grid order.

        Each line is checked on its own against the balance that excludes
        the opportunity being edited.
        """
        if contract is None or not client_id:
            return OpportunityLinesValidation(
                allocation_class=None,
                lines=tuple(
                    LineValidation(line.id, ok=False, reason=MSG_NO_CLIENT, code="CLIENT_REQUIRED")
                    for line in lines
                ),
            )

        allocation_class = contract.allocation_class_for(client_id)
        results: list[LineValidation] = []
        for line in lines:
            lot = contract.find_lot(line.lot_id) if line.lot_id else None
            if lot is None:
                results.append(LineValidation(line.id, ok=False, reason=MSG_NO_LOT, code="LOT_REQUIRED"))
                continue
            item = lot.find_item(line.item_id) if line.item_id else None
            if item is None:
                results.append(LineValidation(line.id, ok=False, reason=MSG_NO_ITEM, code="ITEM_REQUIRED"))
                continue
            quantity = _as_quantity(line.quantity)
            if quantity is None or quantity < MIN_QUANTITY:
                results.append(
                    LineValidation(line.id, ok=False, reason=MSG_MIN_QUANTITY, code="QUANTITY_BELOW_MINIMUM")
                )
                continue
            check = self._check_quantity(
                contract, item, allocation_class, quantity, opportunities, exclude_opportunity_id,
            )
            results.append(LineValidation(line.id, ok=check.ok, reason=check.reason, code=check.code))

        return OpportunityLinesValidation(allocation_class=allocation_class, lines=tuple(results))

    def ensure_commit_allowed(
        self,
        contract: Contract | None,
        client_id: str | None,
        lines: Sequence[ProposedLine],
        opportunities: Sequence[Opportunity],
        opportunity_id: str | None = None,
    ) -> OpportunityLinesValidation:
        """Validate all lines and refuse the commit while any is in violation."""
        validation = self.validate_opportunity_lines(
            contract, client_id, lines, opportunities, exclude_opportunity_id=opportunity_id,
        )
        if validation.has_errors:
            logger.warning("opportunity_commit_blocked", extra={
                "opportunity_id": opportunity_id,
                "violations": len(validation.errors),
            })
            raise BalanceViolationError(opportunity_id, validation.errors)
        return validation

    def _check_quantity(
        self,
        contract: Contract,
        item: CatalogItem,
        allocation_class: AllocationClass,
        quantity: Any,
        opportunities: Sequence[Opportunity],
        exclude_opportunity_id: str | None,
    ) -> QuantityCheck:
        q = _as_quantity(quantity)
        if q is None or q < MIN_QUANTITY:
            return QuantityCheck(ok=False, reason=MSG_MIN_QUANTITY, code="QUANTITY_BELOW_MINIMUM")

        base = base_quota(item, allocation_class)
        # Rounded before subtracting, exactly as the balance table shows it.
        consumed = round2(sum_committed_quantity(
            opportunities, contract, item.lot_id, item.id, allocation_class,
            exclude_opportunity_id=exclude_opportunity_id,
        ))
        remaining = round2(base - consumed)

        if allocation_class is AllocationClass.PARTICIPANT:
            if q > remaining + EPSILON:
                return QuantityCheck(
                    ok=False,
                    reason=MSG_PARTICIPANT_EXCEEDED,
                    code="PARTICIPANT_BALANCE_EXCEEDED",
                    remaining=remaining,
                )
            return QuantityCheck(ok=True, remaining=remaining)

        cap = piggyback_opportunity_cap(item)
        if q > cap + EPSILON:
            return QuantityCheck(
                ok=False, reason=MSG_PIGGYBACK_EXCEEDED, code="PIGGYBACK_LIMIT_EXCEEDED",
                remaining=remaining, cap=cap,
            )
        if q > remaining + EPSILON:
            return QuantityCheck(
                ok=False, reason=MSG_PIGGYBACK_EXCEEDED, code="PIGGYBACK_BALANCE_EXCEEDED",
                remaining=remaining, cap=cap,
            )
        return QuantityCheck(ok=True, remaining=remaining, cap=cap)
