"""
Pytest fixtures for the ARP ledger test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- captured_logs: ARP logs parsed from JSON
- Factory fixtures building catalog items, lots, contracts and opportunities
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from itertools import count

import pytest

from arp_kernel.domain.entities import (
    CatalogItem,
    Contract,
    Lot,
    Opportunity,
    OpportunityLine,
    OpportunityStatus,
    SupplyType,
    pricing_for,
)
from arp_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

PARTICIPANT_CLIENT = "cli-participant"
OTHER_PARTICIPANT_CLIENT = "cli-participant-2"
PIGGYBACK_CLIENT = "cli-carona"
OTHER_PIGGYBACK_CLIENT = "cli-carona-2"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture arp_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.decode(text, SupplyType.SUPPLY)
            logs = captured_logs()
            assert any(r["message"] == "import_decode_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("arp_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Entity builders
# =============================================================================


@pytest.fixture
def make_item():
    """Build a CatalogItem; monthly pricing when ``supply_type`` is monthly."""
    seq = count(1)

    def _make(
        item_number: str = "1",
        total="100",
        price="10.00",
        lot_id: str = "lot-1",
        item_id: str | None = None,
        supply_type: SupplyType = SupplyType.SUPPLY,
        name: str = "Notebook",
    ) -> CatalogItem:
        return CatalogItem(
            id=item_id or f"item-{next(seq)}",
            lot_id=lot_id,
            item_number=item_number,
            commercial_name=name,
            internal_description=name,
            description=f"{name}, conforme termo de referencia",
            unit="UNID",
            total=Decimal(str(total)),
            pricing=pricing_for(supply_type, Decimal(str(price))),
        )

    return _make


@pytest.fixture
def make_lot():
    def _make(
        items=(),
        lot_id: str = "lot-1",
        name: str = "Lote 1",
        supply_type: SupplyType = SupplyType.SUPPLY,
        contract_id: str = "arp-1",
    ) -> Lot:
        return Lot(id=lot_id, contract_id=contract_id, name=name, supply_type=supply_type, items=tuple(items))

    return _make


@pytest.fixture
def make_contract():
    def _make(
        lots=(),
        participants=(PARTICIPANT_CLIENT, OTHER_PARTICIPANT_CLIENT),
        contract_id: str = "arp-1",
        expires_on=None,
    ) -> Contract:
        return Contract(
            id=contract_id,
            title="ARP 01/2026",
            owner_client_id=PARTICIPANT_CLIENT,
            lots=tuple(lots),
            participant_ids=frozenset(participants),
            expires_on=expires_on,
        )

    return _make


@pytest.fixture
def make_opportunity():
    """
    Build an Opportunity from ``(lot_id, item_id, quantity[, source_kit])`` tuples.
    """
    seq = count(1)

    def _make(
        client_id: str,
        lines=(),
        status: OpportunityStatus = OpportunityStatus.WON,
        contract_id: str = "arp-1",
        opportunity_id: str | None = None,
    ) -> Opportunity:
        n = next(seq)
        built = []
        for idx, entry in enumerate(lines):
            lot_id, item_id, quantity, *rest = entry
            built.append(
                OpportunityLine(
                    id=f"line-{n}-{idx}",
                    lot_id=lot_id,
                    item_id=item_id,
                    quantity=Decimal(str(quantity)),
                    source_kit=rest[0] if rest else None,
                )
            )
        return Opportunity(
            id=opportunity_id or f"opp-{n}",
            code=n,
            contract_id=contract_id,
            client_id=client_id,
            status=status,
            lines=tuple(built),
        )

    return _make
