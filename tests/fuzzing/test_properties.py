"""
Property-based tests using Hypothesis.

Boundaries fuzzed here:
- Locale number parser: formatted prices parse back, arbitrary text never raises
- Balance table: remaining is always base minus consumed
- Piggyback acceptance: accepted exactly when within min(cap, remaining)
- Quantity checks report the same remaining as the balance table

Entities are built by plain helpers, not fixtures, so Hypothesis can reuse
them across examples.
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from arp_engines.balance import BalanceEngine, base_quota, piggyback_opportunity_cap
from arp_ingestion.mapping.locale import parse_locale_number
from arp_kernel.domain.entities import (
    AllocationClass,
    CatalogItem,
    Contract,
    Lot,
    Opportunity,
    OpportunityLine,
    OpportunityStatus,
    SupplyType,
    pricing_for,
)
from arp_kernel.domain.values import round2

PARTICIPANT = "cli-participant"
PIGGYBACK = "cli-carona"

quantities = st.decimals(
    min_value=Decimal("1"), max_value=Decimal("500"), places=3,
    allow_nan=False, allow_infinity=False,
)
proposals = st.decimals(
    min_value=Decimal("1"), max_value=Decimal("500"), places=2,
    allow_nan=False, allow_infinity=False,
)
totals = st.decimals(
    min_value=Decimal("1"), max_value=Decimal("1000"), places=2,
    allow_nan=False, allow_infinity=False,
)
prices = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("9999999.99"), places=2,
    allow_nan=False, allow_infinity=False,
)


def _contract(total: Decimal) -> tuple[Contract, Lot, CatalogItem]:
    item = CatalogItem(
        id="item-1",
        lot_id="lot-1",
        item_number="1",
        commercial_name="Notebook",
        internal_description="Notebook",
        description="Notebook",
        unit="UNID",
        total=total,
        pricing=pricing_for(SupplyType.SUPPLY, Decimal("10")),
    )
    lot = Lot(id="lot-1", contract_id="arp-1", name="Lote 1", supply_type=SupplyType.SUPPLY, items=(item,))
    contract = Contract(
        id="arp-1",
        title="ARP 01/2026",
        owner_client_id=PARTICIPANT,
        lots=(lot,),
        participant_ids=frozenset({PARTICIPANT}),
    )
    return contract, lot, item


def _won(client_id: str, consumed: list[Decimal]) -> list[Opportunity]:
    return [
        Opportunity(
            id=f"opp-{n}",
            code=n,
            contract_id="arp-1",
            client_id=client_id,
            status=OpportunityStatus.WON,
            lines=(OpportunityLine(id=f"line-{n}", lot_id="lot-1", item_id="item-1", quantity=qty),),
        )
        for n, qty in enumerate(consumed, start=1)
    ]


class TestLocaleNumberProperties:

    @given(value=prices)
    def test_brazilian_format_parses_back(self, value):
        formatted = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
        assert parse_locale_number(f"R$ {formatted}") == value

    @given(raw=st.text(max_size=30))
    def test_never_raises(self, raw):
        result = parse_locale_number(raw)
        assert isinstance(result, Decimal)


class TestBalanceProperties:

    @given(total=totals, consumed=st.lists(quantities, max_size=5), cls=st.sampled_from(list(AllocationClass)))
    @settings(max_examples=50)
    def test_remaining_is_base_minus_consumed(self, total, consumed, cls):
        contract, lot, item = _contract(total)
        client = PARTICIPANT if cls is AllocationClass.PARTICIPANT else PIGGYBACK

        report = BalanceEngine().compute_balance(
            contract=contract, lot=lot, allocation_class=cls, opportunities=_won(client, consumed),
        )

        row = report.row_for("item-1")
        assert row.base == base_quota(item, cls)
        assert row.consumed == round2(sum(consumed, Decimal("0")))
        assert row.remaining == row.base - row.consumed

    @given(total=totals, consumed=st.lists(quantities, max_size=4), quantity=proposals)
    @settings(max_examples=50)
    def test_piggyback_accepts_within_cap_and_remaining(self, total, consumed, quantity):
        contract, _, item = _contract(total)

        check = BalanceEngine().validate_proposed_quantity(
            contract=contract,
            item=item,
            allocation_class=AllocationClass.PIGGYBACK,
            quantity=quantity,
            opportunities=_won(PIGGYBACK, consumed),
        )

        limit = min(piggyback_opportunity_cap(item), check.remaining)
        assert check.ok == (quantity <= limit)

    @given(total=totals, consumed=st.lists(quantities, max_size=4), cls=st.sampled_from(list(AllocationClass)))
    @settings(max_examples=50)
    def test_check_reports_the_table_remaining(self, total, consumed, cls):
        contract, lot, item = _contract(total)
        client = PARTICIPANT if cls is AllocationClass.PARTICIPANT else PIGGYBACK
        opportunities = _won(client, consumed)
        engine = BalanceEngine()

        row = engine.compute_balance(
            contract=contract, lot=lot, allocation_class=cls, opportunities=opportunities,
        ).row_for("item-1")
        check = engine.validate_proposed_quantity(
            contract=contract, item=item, allocation_class=cls,
            quantity=Decimal("1"), opportunities=opportunities,
        )

        assert check.remaining == row.remaining
