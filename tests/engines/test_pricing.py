"""
Tests for pricing totals.

Covers:
- One-off item value and monthly/annual item totals
- Line values per supply type
- Per-lot opportunity totals ordered by lot name
"""

from decimal import Decimal

import pytest

from arp_engines.pricing import (
    item_annual_total,
    item_monthly_total,
    item_total_value,
    line_value,
    opportunity_totals,
)
from arp_kernel.domain.entities import SupplyType
from arp_kernel.exceptions import EntityNotFoundError

from tests.conftest import PIGGYBACK_CLIENT


class TestItemTotals:

    def test_one_off_item(self, make_item):
        item = make_item(total="2", price="30445.10")
        assert item_total_value(item) == Decimal("60890.20")
        assert item_monthly_total(item) is None
        assert item_annual_total(item) is None

    def test_monthly_item(self, make_item):
        item = make_item(total="3", price="99.995", supply_type=SupplyType.LOAN)
        assert item_total_value(item) is None
        assert item_monthly_total(item) == Decimal("299.99")
        assert item_annual_total(item) == Decimal("3599.88")


class TestLineValue:

    def test_one_off_line(self, make_item, make_lot):
        item = make_item(price="10.005")
        value = line_value(make_lot(items=[item]), item, 3)
        assert value.total == Decimal("30.02")
        assert value.annual is None

    def test_monthly_line(self, make_item, make_lot):
        item = make_item(price="150", supply_type=SupplyType.MAINTENANCE)
        lot = make_lot(items=[item], supply_type=SupplyType.MAINTENANCE)
        value = line_value(lot, item, 2)
        assert value.total == Decimal("300.00")
        assert value.annual == Decimal("3600.00")
        assert value.supply_type is SupplyType.MAINTENANCE


class TestOpportunityTotals:

    def test_per_lot_totals_sorted(self, make_item, make_lot, make_contract, make_opportunity):
        notebook = make_item(price="3500", item_id="nb")
        support = make_item(price="120.50", item_id="sup", lot_id="lot-2", supply_type=SupplyType.MAINTENANCE)
        lot_b = make_lot(items=[notebook], lot_id="lot-1", name="Lote B")
        lot_a = make_lot(items=[support], lot_id="lot-2", name="Lote A", supply_type=SupplyType.MAINTENANCE)
        contract = make_contract(lots=[lot_b, lot_a])
        opp = make_opportunity(
            PIGGYBACK_CLIENT,
            [("lot-1", "nb", 2), ("lot-2", "sup", 4), ("lot-1", "nb", 1, "Kit")],
        )

        totals = opportunity_totals(contract, opp)

        assert [t.lot_name for t in totals.lots] == ["Lote A", "Lote B"]
        assert totals.lots[0].monthly == Decimal("482.00")
        assert totals.lots[0].annual == Decimal("5784.00")
        assert totals.lots[1].total == Decimal("10500.00")
        assert totals.total == Decimal("10500.00")
        assert totals.annual == Decimal("5784.00")

    def test_unknown_item(self, make_item, make_lot, make_contract, make_opportunity):
        contract = make_contract(lots=[make_lot(items=[make_item(item_id="nb")])])
        opp = make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "ghost", 1)])
        with pytest.raises(EntityNotFoundError):
            opportunity_totals(contract, opp)
