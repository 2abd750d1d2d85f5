"""
Entity operations -- constructors, patches, deletes and kit application.

Responsibility:
    Every mutation of the ARP data set goes through one of these pure
    functions. They take immutable entities / snapshots and return new ones;
    identity (``id`` and owner references) is preserved across patches.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O. Identifier generation
    (uuid4) is the only non-deterministic step.

Invariants enforced:
    - Patches never change ``id`` (ImmutableFieldError).
    - Client tax ids are valid CNPJs and unique across clients.
    - Deleting a catalog item cascades to opportunity lines and kit items
      that reference it; callers check references before deleting clients
      or contracts.

Failure modes:
    - EntityNotFoundError, ImmutableFieldError, InvalidTaxIdError,
      DuplicateTaxIdError, EntityReferencedError, EmptyKitError,
      KitContractMismatchError, InvalidCatalogItemError.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Sequence
from uuid import uuid4

from arp_kernel.domain.clock import Clock
from arp_kernel.domain.cnpj import digits_only, is_valid_cnpj
from arp_kernel.domain.entities import (
    CatalogItem,
    Client,
    Contract,
    ContractStatus,
    Equipment,
    GovernmentSphere,
    Kit,
    KitItem,
    Lot,
    MaintenanceItemKind,
    Opportunity,
    OpportunityLine,
    OpportunityStatus,
    SupplyType,
    check_item_for_supply_type,
    pricing_for,
)
from arp_kernel.domain.store import ArpSnapshot
from arp_kernel.domain.values import item_number_key, to_decimal
from arp_kernel.exceptions import (
    DuplicateTaxIdError,
    EmptyKitError,
    EntityNotFoundError,
    EntityReferencedError,
    ImmutableFieldError,
    InvalidTaxIdError,
    KitContractMismatchError,
)


def new_id(prefix: str = "id") -> str:
    return f"{prefix}_{uuid4().hex}"


# -----------------------------------------------------------------------------
# Constructors
# -----------------------------------------------------------------------------


def new_contract(
    title: str,
    owner_client_id: str,
    *,
    is_consortium: bool = False,
    signed_on: date | None = None,
    expires_on: date | None = None,
    participant_ids: Iterable[str] = (),
) -> Contract:
    return Contract(
        id=new_id("arp"),
        title=title.strip(),
        owner_client_id=owner_client_id,
        is_consortium=is_consortium,
        signed_on=signed_on,
        expires_on=expires_on,
        participant_ids=frozenset(participant_ids),
    )


def new_lot(contract_id: str, name: str, supply_type: SupplyType) -> Lot:
    return Lot(id=new_id("lote"), contract_id=contract_id, name=name.strip(), supply_type=supply_type)


def new_equipment(
    name: str,
    quantity: Decimal | int | str,
    unit_cost: Decimal | int | str,
    supplier: str | None = None,
    manufacturer: str | None = None,
) -> Equipment:
    return Equipment(
        id=new_id("equip"),
        name=name.strip(),
        quantity=to_decimal(quantity),
        unit_cost=to_decimal(unit_cost),
        supplier=supplier,
        manufacturer=manufacturer,
    )


def new_catalog_item(
    lot: Lot,
    item_number: str,
    description: str,
    unit: str,
    total: Decimal | int | str,
    price: Decimal | int | str,
    *,
    commercial_name: str | None = None,
    internal_description: str | None = None,
    item_kind: MaintenanceItemKind | None = None,
    equipment: Sequence[Equipment] = (),
) -> CatalogItem:
    """Create an item priced the way ``lot.supply_type`` requires."""
    name = commercial_name if commercial_name is not None else description
    item = CatalogItem(
        id=new_id("item"),
        lot_id=lot.id,
        item_number=item_number.strip(),
        commercial_name=name,
        internal_description=internal_description if internal_description is not None else name,
        description=description,
        unit=unit,
        total=to_decimal(total),
        pricing=pricing_for(lot.supply_type, to_decimal(price), item_kind),
        equipment=tuple(equipment),
    )
    check_item_for_supply_type(item, lot.supply_type)
    return item


def ensure_unique_tax_id(
    clients: Iterable[Client],
    tax_id: str,
    exclude_client_id: str | None = None,
) -> None:
    digits = digits_only(tax_id)
    for client in clients:
        if client.id != exclude_client_id and client.tax_id == digits:
            raise DuplicateTaxIdError(digits, client.id)


def new_client(
    clients: Iterable[Client],
    name: str,
    tax_id: str,
    city: str,
    sphere: GovernmentSphere,
) -> Client:
    """Create a client after validating the CNPJ and its uniqueness."""
    digits = digits_only(tax_id)
    if not is_valid_cnpj(digits):
        raise InvalidTaxIdError(tax_id)
    ensure_unique_tax_id(clients, digits)
    return Client(id=new_id("cli"), name=name.strip(), tax_id=digits, city=city.strip(), sphere=sphere)


def next_opportunity_code(opportunities: Iterable[Opportunity]) -> int:
    return max((o.code for o in opportunities), default=0) + 1


def new_opportunity(
    opportunities: Iterable[Opportunity],
    contract_id: str,
    client_id: str,
    status: OpportunityStatus = OpportunityStatus.OPEN,
    lines: Sequence[OpportunityLine] = (),
) -> Opportunity:
    return Opportunity(
        id=new_id("opp"),
        code=next_opportunity_code(opportunities),
        contract_id=contract_id,
        client_id=client_id,
        status=status,
        lines=tuple(lines),
    )


def new_opportunity_line(
    lot_id: str,
    item_id: str,
    quantity: Decimal | int | str,
    source_kit: str | None = None,
) -> OpportunityLine:
    return OpportunityLine(
        id=new_id("oppitem"),
        lot_id=lot_id,
        item_id=item_id,
        quantity=to_decimal(quantity),
        source_kit=source_kit,
    )


def new_kit(name: str, contract_id: str, items: Sequence[KitItem] = ()) -> Kit:
    return Kit(id=new_id("kit"), name=name.strip(), contract_id=contract_id, items=tuple(items))


# -----------------------------------------------------------------------------
# Patches (identity preserving)
# -----------------------------------------------------------------------------


def _patch(entity: Any, entity_type: str, frozen_fields: tuple[str, ...], changes: dict[str, Any]) -> Any:
    for name in frozen_fields:
        if name in changes and changes[name] != getattr(entity, name):
            raise ImmutableFieldError(entity_type, name)
    return replace(entity, **changes)


def patch_contract(contract: Contract, **changes: Any) -> Contract:
    return _patch(contract, "Contract", ("id",), changes)


def patch_lot(lot: Lot, **changes: Any) -> Lot:
    return _patch(lot, "Lot", ("id", "contract_id"), changes)


def patch_catalog_item(item: CatalogItem, supply_type: SupplyType, **changes: Any) -> CatalogItem:
    patched = _patch(item, "CatalogItem", ("id", "lot_id"), changes)
    check_item_for_supply_type(patched, supply_type)
    return patched


def patch_client(clients: Iterable[Client], client: Client, **changes: Any) -> Client:
    if "tax_id" in changes:
        digits = digits_only(changes["tax_id"])
        if not is_valid_cnpj(digits):
            raise InvalidTaxIdError(changes["tax_id"])
        ensure_unique_tax_id(clients, digits, exclude_client_id=client.id)
        changes["tax_id"] = digits
    return _patch(client, "Client", ("id",), changes)


def patch_opportunity(opportunity: Opportunity, **changes: Any) -> Opportunity:
    return _patch(opportunity, "Opportunity", ("id", "code"), changes)


def replace_lot_items(contract: Contract, lot_id: str, items: Sequence[CatalogItem]) -> Contract:
    """Swap the full item collection of one lot, keeping it sorted by item number."""
    lot = contract.find_lot(lot_id)
    if lot is None:
        raise EntityNotFoundError("Lot", lot_id)
    ordered = tuple(sorted(items, key=lambda it: item_number_key(it.item_number)))
    new_lot_ = replace(lot, items=ordered)
    return replace(contract, lots=tuple(new_lot_ if l.id == lot_id else l for l in contract.lots))


# -----------------------------------------------------------------------------
# Snapshot upserts
# -----------------------------------------------------------------------------


def _upsert(records: tuple[Any, ...], record: Any) -> tuple[Any, ...]:
    if any(r.id == record.id for r in records):
        return tuple(record if r.id == record.id else r for r in records)
    return records + (record,)


def with_contract(snapshot: ArpSnapshot, contract: Contract) -> ArpSnapshot:
    return replace(snapshot, contracts=_upsert(snapshot.contracts, contract))


def with_client(snapshot: ArpSnapshot, client: Client) -> ArpSnapshot:
    return replace(snapshot, clients=_upsert(snapshot.clients, client))


def with_opportunity(snapshot: ArpSnapshot, opportunity: Opportunity) -> ArpSnapshot:
    return replace(snapshot, opportunities=_upsert(snapshot.opportunities, opportunity))


def with_kit(snapshot: ArpSnapshot, kit: Kit) -> ArpSnapshot:
    return replace(snapshot, kits=_upsert(snapshot.kits, kit))


# -----------------------------------------------------------------------------
# Referential integrity
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class References:
    """Records that still point at an entity."""

    opportunity_ids: tuple[str, ...] = ()
    kit_ids: tuple[str, ...] = ()
    contract_ids: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.opportunity_ids or self.kit_ids or self.contract_ids)


def find_client_references(snapshot: ArpSnapshot, client_id: str) -> References:
    return References(
        opportunity_ids=tuple(o.id for o in snapshot.opportunities if o.client_id == client_id),
        contract_ids=tuple(
            c.id
            for c in snapshot.contracts
            if c.owner_client_id == client_id or client_id in c.participant_ids
        ),
    )


def find_contract_references(snapshot: ArpSnapshot, contract_id: str) -> References:
    return References(
        opportunity_ids=tuple(o.id for o in snapshot.opportunities if o.contract_id == contract_id),
        kit_ids=tuple(k.id for k in snapshot.kits if k.contract_id == contract_id),
    )


def find_catalog_item_references(snapshot: ArpSnapshot, item_id: str) -> References:
    return References(
        opportunity_ids=tuple(
            o.id for o in snapshot.opportunities if any(line.item_id == item_id for line in o.lines)
        ),
        kit_ids=tuple(k.id for k in snapshot.kits if any(ki.item_id == item_id for ki in k.items)),
    )


def ensure_unreferenced(references: References, entity_type: str, entity_id: str) -> None:
    if not references.is_empty:
        raise EntityReferencedError(
            entity_type,
            entity_id,
            opportunity_ids=references.opportunity_ids,
            kit_ids=references.kit_ids,
            contract_ids=references.contract_ids,
        )


# -----------------------------------------------------------------------------
# Deletes
# -----------------------------------------------------------------------------


def delete_catalog_item(snapshot: ArpSnapshot, item_id: str) -> ArpSnapshot:
    """Remove an item from its lot and every opportunity line / kit item using it."""
    contracts: list[Contract] = []
    found = False
    for contract in snapshot.contracts:
        located = contract.find_item(item_id)
        if located is None:
            contracts.append(contract)
            continue
        found = True
        lot, _ = located
        remaining = tuple(it for it in lot.items if it.id != item_id)
        contracts.append(replace_lot_items(contract, lot.id, remaining))
    if not found:
        raise EntityNotFoundError("CatalogItem", item_id)

    opportunities = tuple(
        replace(o, lines=tuple(line for line in o.lines if line.item_id != item_id))
        for o in snapshot.opportunities
    )
    kits = tuple(
        replace(k, items=tuple(ki for ki in k.items if ki.item_id != item_id))
        for k in snapshot.kits
    )
    return replace(snapshot, contracts=tuple(contracts), opportunities=opportunities, kits=kits)


def delete_client(snapshot: ArpSnapshot, client_id: str) -> ArpSnapshot:
    if snapshot.client(client_id) is None:
        raise EntityNotFoundError("Client", client_id)
    return replace(snapshot, clients=tuple(c for c in snapshot.clients if c.id != client_id))


def delete_contract(snapshot: ArpSnapshot, contract_id: str) -> ArpSnapshot:
    """Remove a contract together with the opportunities and kits bound to it."""
    if snapshot.contract(contract_id) is None:
        raise EntityNotFoundError("Contract", contract_id)
    return replace(
        snapshot,
        contracts=tuple(c for c in snapshot.contracts if c.id != contract_id),
        opportunities=tuple(o for o in snapshot.opportunities if o.contract_id != contract_id),
        kits=tuple(k for k in snapshot.kits if k.contract_id != contract_id),
    )


def delete_opportunity(snapshot: ArpSnapshot, opportunity_id: str) -> ArpSnapshot:
    if snapshot.opportunity(opportunity_id) is None:
        raise EntityNotFoundError("Opportunity", opportunity_id)
    return replace(
        snapshot,
        opportunities=tuple(o for o in snapshot.opportunities if o.id != opportunity_id),
    )


# -----------------------------------------------------------------------------
# Kits
# -----------------------------------------------------------------------------


def apply_kit(opportunity: Opportunity, kit: Kit) -> Opportunity:
    """Copy the kit's items into the opportunity as kit-expansion lines."""
    if kit.contract_id != opportunity.contract_id:
        raise KitContractMismatchError(kit.id, kit.contract_id, opportunity.contract_id)
    if not kit.items:
        raise EmptyKitError(kit.id)
    expanded = tuple(
        new_opportunity_line(ki.lot_id, ki.item_id, ki.quantity, source_kit=kit.name)
        for ki in kit.items
    )
    kit_names = opportunity.kit_names if kit.name in opportunity.kit_names else opportunity.kit_names + (kit.name,)
    return replace(opportunity, lines=opportunity.lines + expanded, kit_names=kit_names)


# -----------------------------------------------------------------------------
# Status
# -----------------------------------------------------------------------------


def contract_status(contract: Contract, clock: Clock) -> ContractStatus:
    """Status of ``contract`` on the clock's current calendar day."""
    return contract.status(clock.today())
