"""
Tests for the Balance Engine.

Covers:
- Base quota, consumption and remaining per allocation class
- Participant and piggyback acceptance rules (cap and shared balance)
- Reservations of OPEN opportunities
- Live grid validation of opportunity lines and the commit gate
"""

from decimal import Decimal

import pytest

from arp_engines.balance import (
    MSG_MIN_QUANTITY,
    MSG_NO_CLIENT,
    MSG_NO_ITEM,
    MSG_NO_LOT,
    MSG_PARTICIPANT_EXCEEDED,
    MSG_PIGGYBACK_EXCEEDED,
    BalanceEngine,
    ProposedLine,
    base_quota,
    piggyback_opportunity_cap,
)
from arp_kernel.domain.entities import AllocationClass, OpportunityStatus
from arp_kernel.exceptions import BalanceViolationError

from tests.conftest import PARTICIPANT_CLIENT, PIGGYBACK_CLIENT


class _BalanceFixture:

    def setup_method(self):
        self.engine = BalanceEngine()

    @pytest.fixture(autouse=True)
    def _contract(self, make_item, make_lot, make_contract):
        self.item = make_item("1", total="100", item_id="item-a")
        self.lot = make_lot(items=[self.item])
        self.contract = make_contract(lots=[self.lot])


class TestQuotas(_BalanceFixture):

    def test_base_quota(self):
        assert base_quota(self.item, AllocationClass.PARTICIPANT) == Decimal("100.00")
        assert base_quota(self.item, AllocationClass.PIGGYBACK) == Decimal("200.00")
        assert piggyback_opportunity_cap(self.item) == Decimal("50.00")

    def test_fractional_total_rounded(self, make_item):
        item = make_item(total="3.335")
        assert piggyback_opportunity_cap(item) == Decimal("1.67")
        assert base_quota(item, AllocationClass.PIGGYBACK) == Decimal("6.67")


class TestParticipantBalance(_BalanceFixture):

    def test_remaining_after_won(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 40)])]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PARTICIPANT, opportunities=opps,
        )
        row = report.row_for("item-a")
        assert (row.base, row.consumed, row.remaining) == (Decimal("100"), Decimal("40"), Decimal("60"))
        assert report.summary.remaining == Decimal("60.00")
        assert not report.is_exhausted

    def test_over_remaining_rejected(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 40)])]
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PARTICIPANT,
            quantity=Decimal("61"), opportunities=opps,
        )
        assert not check.ok
        assert check.reason == MSG_PARTICIPANT_EXCEEDED
        assert check.code == "PARTICIPANT_BALANCE_EXCEEDED"
        assert check.remaining == Decimal("60.00")

    def test_exact_remaining_accepted(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 40)])]
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PARTICIPANT,
            quantity=Decimal("60"), opportunities=opps,
        )
        assert check.ok
        assert check.reason is None

    def test_participant_has_no_cap(self):
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PARTICIPANT,
            quantity=Decimal("100"), opportunities=[],
        )
        assert check.ok

    def test_open_and_lost_do_not_consume(self, make_opportunity):
        opps = [
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 30)], status=OpportunityStatus.OPEN),
            make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 30)], status=OpportunityStatus.LOST),
        ]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PARTICIPANT, opportunities=opps,
        )
        row = report.rows[0]
        assert row.consumed == 0
        assert row.remaining == Decimal("100")
        assert row.reserved_open == Decimal("30")

    def test_exhausted(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 100)])]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PARTICIPANT, opportunities=opps,
        )
        assert report.is_exhausted

    def test_excluding_edited_opportunity(self, make_opportunity):
        editing = make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 70)], opportunity_id="opp-edit")
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PARTICIPANT,
            quantity=Decimal("90"), opportunities=[editing],
            exclude_opportunity_id="opp-edit",
        )
        assert check.ok


class TestPiggybackBalance(_BalanceFixture):

    def test_remaining_after_won(self, make_opportunity):
        opps = [make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 45)])]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PIGGYBACK, opportunities=opps,
        )
        assert report.rows[0].base == Decimal("200")
        assert report.rows[0].remaining == Decimal("155")

    def test_cap_enforced_even_with_shared_balance(self, make_opportunity):
        opps = [make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 45)])]
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PIGGYBACK,
            quantity=Decimal("51"), opportunities=opps,
        )
        assert not check.ok
        assert check.code == "PIGGYBACK_LIMIT_EXCEEDED"
        assert check.reason == MSG_PIGGYBACK_EXCEEDED
        assert check.cap == Decimal("50.00")

    def test_at_cap_accepted(self, make_opportunity):
        opps = [make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 45)])]
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PIGGYBACK,
            quantity=Decimal("50"), opportunities=opps,
        )
        assert check.ok

    def test_shared_balance_enforced_under_cap(self, make_opportunity):
        opps = [
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 50)]),
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 50)]),
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 50)]),
            make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", 20)]),
        ]
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PIGGYBACK,
            quantity=Decimal("31"), opportunities=opps,
        )
        assert not check.ok
        assert check.code == "PIGGYBACK_BALANCE_EXCEEDED"
        assert check.remaining == Decimal("30.00")

    def test_participant_consumption_does_not_reduce_piggyback(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 100)])]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PIGGYBACK, opportunities=opps,
        )
        assert report.rows[0].remaining == Decimal("200")


class TestRowOrdering:

    def test_rows_sorted_by_item_number(self, make_item, make_lot, make_contract):
        lot = make_lot(items=[make_item("1.10"), make_item("1.9"), make_item("2")])
        contract = make_contract(lots=[lot])
        report = BalanceEngine().compute_balance(
            contract=contract, lot=lot,
            allocation_class=AllocationClass.PARTICIPANT, opportunities=[],
        )
        assert [r.item.item_number for r in report.rows] == ["1.9", "1.10", "2"]
        assert report.summary.base == Decimal("300.00")

    def test_empty_lot_not_exhausted(self, make_lot, make_contract):
        lot = make_lot()
        report = BalanceEngine().compute_balance(
            contract=make_contract(lots=[lot]), lot=lot,
            allocation_class=AllocationClass.PARTICIPANT, opportunities=[],
        )
        assert report.rows == ()
        assert not report.is_exhausted


class TestOpportunityLinesValidation(_BalanceFixture):

    def test_missing_client(self):
        lines = [ProposedLine("l1", "lot-1", "item-a", 1)]
        result = self.engine.validate_opportunity_lines(self.contract, None, lines, [])
        assert result.has_errors
        assert result.errors == {"l1": MSG_NO_CLIENT}
        assert result.allocation_class is None

    def test_field_checks_in_order(self):
        lines = [
            ProposedLine("no-lot", None, "item-a", 1),
            ProposedLine("bad-lot", "lot-x", "item-a", 1),
            ProposedLine("no-item", "lot-1", None, 1),
            ProposedLine("zero", "lot-1", "item-a", 0),
            ProposedLine("text", "lot-1", "item-a", "abc"),
            ProposedLine("ok", "lot-1", "item-a", 5),
        ]
        result = self.engine.validate_opportunity_lines(self.contract, PARTICIPANT_CLIENT, lines, [])
        assert result.allocation_class is AllocationClass.PARTICIPANT
        assert result.errors == {
            "no-lot": MSG_NO_LOT,
            "bad-lot": MSG_NO_LOT,
            "no-item": MSG_NO_ITEM,
            "zero": MSG_MIN_QUANTITY,
            "text": MSG_MIN_QUANTITY,
        }
        assert [l.line_id for l in result.lines] == ["no-lot", "bad-lot", "no-item", "zero", "text", "ok"]

    def test_piggyback_client_uses_cap(self):
        lines = [ProposedLine("l1", "lot-1", "item-a", 51)]
        result = self.engine.validate_opportunity_lines(self.contract, PIGGYBACK_CLIENT, lines, [])
        assert result.lines[0].code == "PIGGYBACK_LIMIT_EXCEEDED"

    def test_commit_gate_raises(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 40)])]
        lines = [ProposedLine("l1", "lot-1", "item-a", 61), ProposedLine("l2", "lot-1", "item-a", 10)]
        with pytest.raises(BalanceViolationError) as exc_info:
            self.engine.ensure_commit_allowed(self.contract, PARTICIPANT_CLIENT, lines, opps, opportunity_id="opp-new")
        assert exc_info.value.violations == {"l1": MSG_PARTICIPANT_EXCEEDED}
        assert exc_info.value.opportunity_id == "opp-new"

    def test_commit_gate_passes(self, make_opportunity):
        editing = make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", 80)], opportunity_id="opp-edit")
        lines = [ProposedLine("l1", "lot-1", "item-a", 90)]
        result = self.engine.ensure_commit_allowed(
            self.contract, PARTICIPANT_CLIENT, lines, [editing], opportunity_id="opp-edit",
        )
        assert not result.has_errors


class TestTableAndCheckAgree(_BalanceFixture):

    def test_fractional_consumption(self, make_opportunity):
        opps = [make_opportunity(PARTICIPANT_CLIENT, [("lot-1", "item-a", "1.005")])]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PARTICIPANT, opportunities=opps,
        )
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PARTICIPANT,
            quantity=Decimal("99"), opportunities=opps,
        )
        assert report.row_for("item-a").remaining == Decimal("98.99")
        assert check.remaining == report.row_for("item-a").remaining
        assert not check.ok

    def test_piggyback_fractional_consumption(self, make_opportunity):
        opps = [make_opportunity(PIGGYBACK_CLIENT, [("lot-1", "item-a", "150.005")])]
        report = self.engine.compute_balance(
            contract=self.contract, lot=self.lot,
            allocation_class=AllocationClass.PIGGYBACK, opportunities=opps,
        )
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PIGGYBACK,
            quantity=Decimal("50"), opportunities=opps,
        )
        assert report.row_for("item-a").remaining == Decimal("49.99")
        assert check.remaining == Decimal("49.99")
        assert check.code == "PIGGYBACK_BALANCE_EXCEEDED"


class TestMinimumQuantity(_BalanceFixture):

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-5"), Decimal("0.5"), "abc"])
    def test_below_one_rejected(self, quantity):
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PARTICIPANT,
            quantity=quantity, opportunities=[],
        )
        assert not check.ok
        assert check.code == "QUANTITY_BELOW_MINIMUM"
        assert check.reason == MSG_MIN_QUANTITY

    def test_one_accepted(self):
        check = self.engine.validate_proposed_quantity(
            contract=self.contract, item=self.item,
            allocation_class=AllocationClass.PIGGYBACK,
            quantity=Decimal("1"), opportunities=[],
        )
        assert check.ok
