"""
Tests for the opportunity line aggregator.

Covers:
- Only WON opportunities of the requested allocation class are counted
- Direct and kit lines count the same
- Exclusion of the opportunity being edited
- Batched per-lot aggregation and OPEN reservations
"""

from decimal import Decimal

from arp_engines.aggregation import (
    aggregate_lot_quantities,
    line_totals,
    sum_committed_quantity,
    sum_reserved_quantity,
)
from arp_kernel.domain.entities import AllocationClass, OpportunityStatus

from tests.conftest import OTHER_PARTICIPANT_CLIENT, PARTICIPANT_CLIENT, PIGGYBACK_CLIENT


class TestSumCommittedQuantity:

    def setup_method(self):
        self.item_id = "item-a"

    def _contract(self, make_item, make_lot, make_contract):
        return make_contract(lots=[make_lot(items=[make_item(item_id="item-a"), make_item("2", item_id="item-b")])])

    def test_counts_won_only(self, make_item, make_lot, make_contract, make_opportunity):
        contract = self._contract(make_item, make_lot, make_contract)
        opps = [
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 10)], status=OpportunityStatus.WON),
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 20)], status=OpportunityStatus.OPEN),
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 30)], status=OpportunityStatus.LOST),
        ]
        used = sum_committed_quantity(opps, contract, "lot-1", "item-a", AllocationClass.PARTICIPANT)
        assert used == Decimal("10")

    def test_partitions_by_allocation_class(self, make_item, make_lot, make_contract, make_opportunity):
        contract = self._contract(make_item, make_lot, make_contract)
        opps = [
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 10)]),
            make_opportunity(OTHER_PARTICIPANT_CLIENT, [("lot-1", "item-a", 5)]),
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 7)]),
        ]
        assert sum_committed_quantity(opps, contract, "lot-1", "item-a", AllocationClass.PARTICIPANT) == Decimal("15")
        assert sum_committed_quantity(opps, contract, "lot-1", "item-a", AllocationClass.PIGGYBACK) == Decimal("7")

    def test_kit_lines_count(self, make_item, make_lot, make_contract, make_opportunity):
        contract = self._contract(make_item, make_lot, make_contract)
        opp = make_opportunity(
            PIGGYBACK_CLIENT,
            [("lot-1", "item-a", 4), ("lot-1", "item-a", 6, "Kit Sala"), ("lot-1", "item-b", 9)],
        )
        assert sum_committed_quantity([opp], contract, "lot-1", "item-a", AllocationClass.PIGGYBACK) == Decimal("10")
        totals = line_totals(opp, "lot-1", "item-a")
        assert (totals.direct, totals.kit, totals.total) == (Decimal("4"), Decimal("6"), Decimal("10"))

    def test_excludes_opportunity_being_edited(self, make_item, make_lot, make_contract, make_opportunity):
        contract = self._contract(make_item, make_lot, make_contract)
        editing = make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 40)], opportunity_id="opp-edit")
        other = make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 5)])
        used = sum_committed_quantity(
            [editing, other], contract, "lot-1", "item-a", AllocationClass.PARTICIPANT,
            exclude_opportunity_id="opp-edit",
        )
        assert used == Decimal("5")

    def test_other_contract_ignored(self, make_item, make_lot, make_contract, make_opportunity):
        contract = self._contract(make_item, make_lot, make_contract)
        foreign = make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 40)], contract_id="arp-2")
        assert sum_committed_quantity([foreign], contract, "lot-1", "item-a", AllocationClass.PARTICIPANT) == 0

    def test_line_totals_exclude_line(self, make_opportunity):
        opp = make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 4), ("lot-1", "item-a", 6)])
        assert line_totals(opp, "lot-1", "item-a", exclude_line_id=opp.lines[0].id).total == Decimal("6")
        assert line_totals(None, "lot-1", "item-a").total == 0


class TestAggregateLotQuantities:

    def test_batched_matches_single(self, make_item, make_lot, make_contract, make_opportunity):
        contract = make_contract(lots=[make_lot(items=[make_item(item_id="item-a"), make_item("2", item_id="item-b")])])
        opps = [
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 3), ("lot-1", "item-b", 2)]),
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-b", 1, "Kit"), ("lot-9", "item-b", 50)]),
        ]
        batched = aggregate_lot_quantities(opps, contract, "lot-1", AllocationClass.PIGGYBACK)
        assert batched == {"item-a": Decimal("3"), "item-b": Decimal("3")}
        for item_id, qty in batched.items():
            assert sum_committed_quantity(opps, contract, "lot-1", item_id, AllocationClass.PIGGYBACK) == qty

    def test_open_reservations(self, make_item, make_lot, make_contract, make_opportunity):
        contract = make_contract(lots=[make_lot(items=[make_item(item_id="item-a")])])
        opps = [
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 8)], status=OpportunityStatus.OPEN),
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 2)], status=OpportunityStatus.WON),
        ]
        assert sum_reserved_quantity(opps, contract, "lot-1", "item-a", AllocationClass.PARTICIPANT) == Decimal("8")
        assert aggregate_lot_quantities(
            opps, contract, "lot-1", AllocationClass.PARTICIPANT, status=OpportunityStatus.OPEN,
        ) == {"item-a": Decimal("8")}
