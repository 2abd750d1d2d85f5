"""
Module: arp_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines: the balance ledger, the opportunity line
    aggregator and the pricing totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import arp_kernel (and sibling engine modules).
    MUST NOT import arp_ingestion.

Invariants enforced:
    - Purity: engines never read the clock; dates are passed in.
    - Decimal-only arithmetic, rounded to two places half away from zero.
    - Determinism: identical snapshots always produce identical reports.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``arp_engines.tracer``), emitting ARP_ENGINE_TRACE log records.

Usage:
    from arp_engines import BalanceEngine, sum_committed_quantity
    from arp_engines.pricing import opportunity_totals
"""

from arp_kernel.logging_config import get_logger

logger = get_logger("engines")

from arp_engines.aggregation import (
    LineTotals,
    aggregate_lot_quantities,
    iter_counted_opportunities,
    line_totals,
    sum_committed_quantity,
    sum_reserved_quantity,
)
from arp_engines.balance import (
    EPSILON,
    PARTICIPANT_BASE_MULTIPLIER,
    PIGGYBACK_BASE_MULTIPLIER,
    PIGGYBACK_OPPORTUNITY_SHARE,
    BalanceEngine,
    BalanceReport,
    BalanceRow,
    BalanceSummary,
    LineValidation,
    OpportunityLinesValidation,
    ProposedLine,
    QuantityCheck,
    base_quota,
    piggyback_opportunity_cap,
)
from arp_engines.pricing import (
    LineValue,
    LotTotals,
    OpportunityTotals,
    item_annual_total,
    item_monthly_total,
    item_total_value,
    line_value,
    opportunity_totals,
)
from arp_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "EPSILON",
    "PARTICIPANT_BASE_MULTIPLIER",
    "PIGGYBACK_BASE_MULTIPLIER",
    "PIGGYBACK_OPPORTUNITY_SHARE",
    "BalanceEngine",
    "BalanceReport",
    "BalanceRow",
    "BalanceSummary",
    "LineTotals",
    "LineValidation",
    "LineValue",
    "LotTotals",
    "OpportunityLinesValidation",
    "OpportunityTotals",
    "ProposedLine",
    "QuantityCheck",
    "aggregate_lot_quantities",
    "base_quota",
    "compute_input_fingerprint",
    "item_annual_total",
    "item_monthly_total",
    "item_total_value",
    "iter_counted_opportunities",
    "line_totals",
    "line_value",
    "logger",
    "opportunity_totals",
    "piggyback_opportunity_cap",
    "sum_committed_quantity",
    "sum_reserved_quantity",
    "traced_engine",
]
