"""
Entities -- Immutable snapshot types for price-registration agreements.

Responsibility:
    Defines Contract (ARP), Lot, CatalogItem (with its pricing variant and
    equipment), Client, Opportunity, OpportunityLine, Kit and KitItem.
    Every type is a frozen dataclass; collections are tuples/frozensets so a
    snapshot handed to an engine can never be mutated by it.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - CatalogItem.total > 0; price >= 0 (> 0 for MAINTENANCE lots).
    - A lot's items use the pricing variant of its supply type: one-off for
      SUPPLY / INSTALLATION, monthly for MAINTENANCE / LOAN.
    - OpportunityLine.quantity >= 1.
    - Contract status is derived from the expiry date, never stored.

Failure modes:
    - InvalidCatalogItemError on item invariant violations.
    - ValueError on unknown enum labels or invalid line quantities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Union

from arp_kernel.domain.values import ZERO, item_number_key, to_decimal
from arp_kernel.exceptions import InvalidCatalogItemError


# =============================================================================
# Enums (values match the labels stored by the application)
# =============================================================================


class SupplyType(str, Enum):
    """Lot supply type; decides the pricing shape of its items."""

    SUPPLY = "FORNECIMENTO"
    INSTALLATION = "INSTALACAO"
    MAINTENANCE = "MANUTENCAO"
    LOAN = "COMODATO"

    @property
    def is_monthly(self) -> bool:
        return self in (SupplyType.MAINTENANCE, SupplyType.LOAN)


class MaintenanceItemKind(str, Enum):
    """Sub-kind of a monthly-priced item."""

    PRODUCT = "PRODUTO"
    SERVICE = "SERVICO"


class GovernmentSphere(str, Enum):
    MUNICIPAL = "MUNICIPAL"
    STATE = "ESTADUAL"
    FEDERAL = "FEDERAL"


class ContractStatus(str, Enum):
    ACTIVE = "VIGENTE"
    EXPIRED = "ENCERRADA"


class AllocationClass(str, Enum):
    """Which balance pool a client draws from."""

    PARTICIPANT = "PARTICIPANTE"
    PIGGYBACK = "CARONA"


class OpportunityStatus(str, Enum):
    """Deal lifecycle. Only WON consumes balance."""

    OPEN = "ABERTA"
    WON = "GANHAMOS"
    LOST = "PERDEMOS"

    @classmethod
    def parse(cls, value: Any) -> OpportunityStatus:
        """Accept an enum, its name or its stored label, ignoring case and spaces."""
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().upper()
        for status in cls:
            if label in (status.name, status.value):
                return status
        raise ValueError(f"Unknown opportunity status: {value!r}")


def _coerce_enum(enum_cls: type[Enum], value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    label = str(value or "").strip().upper()
    for member in enum_cls:
        if label in (member.name, member.value):
            return member
    raise ValueError(f"Unknown {enum_cls.__name__}: {value!r}")


# =============================================================================
# Catalog items
# =============================================================================


@dataclass(frozen=True)
class Equipment:
    """Equipment bundled with a monthly-priced item (owned by the item)."""

    id: str
    name: str
    quantity: Decimal
    unit_cost: Decimal
    supplier: str | None = None
    manufacturer: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "unit_cost", to_decimal(self.unit_cost))


@dataclass(frozen=True)
class OneOffPricing:
    """Single unit price (SUPPLY, INSTALLATION)."""

    unit_price: Decimal
    kind: Literal["ONE_OFF"] = "ONE_OFF"

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))

    @property
    def price(self) -> Decimal:
        return self.unit_price


@dataclass(frozen=True)
class MonthlyPricing:
    """Recurring monthly unit price (MAINTENANCE, LOAN)."""

    monthly_unit_price: Decimal
    item_kind: MaintenanceItemKind = MaintenanceItemKind.PRODUCT
    kind: Literal["MONTHLY"] = "MONTHLY"

    def __post_init__(self) -> None:
        object.__setattr__(self, "monthly_unit_price", to_decimal(self.monthly_unit_price))
        object.__setattr__(self, "item_kind", _coerce_enum(MaintenanceItemKind, self.item_kind))

    @property
    def price(self) -> Decimal:
        return self.monthly_unit_price


Pricing = Union[OneOffPricing, MonthlyPricing]


def pricing_for(supply_type: SupplyType, price: Decimal, item_kind: MaintenanceItemKind | None = None) -> Pricing:
    """Build the pricing variant a lot of ``supply_type`` expects."""
    if supply_type.is_monthly:
        return MonthlyPricing(
            monthly_unit_price=price,
            item_kind=item_kind or MaintenanceItemKind.PRODUCT,
        )
    return OneOffPricing(unit_price=price)


@dataclass(frozen=True)
class CatalogItem:
    """
    A priced line of a lot with its ceiling quantity.

    Contract:
        ``total`` is the registered ceiling; balance engines derive every
        quota from it.
    Guarantees:
        - ``total > 0`` and ``pricing.price >= 0``.
    """

    id: str
    lot_id: str
    item_number: str
    commercial_name: str
    internal_description: str
    description: str
    unit: str
    total: Decimal
    pricing: Pricing
    equipment: tuple[Equipment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "total", to_decimal(self.total))
        object.__setattr__(self, "equipment", tuple(self.equipment))
        if not self.total.is_finite() or self.total <= ZERO:
            raise InvalidCatalogItemError(self.item_number, "total must be greater than zero")
        if not self.pricing.price.is_finite() or self.pricing.price < ZERO:
            raise InvalidCatalogItemError(self.item_number, "price must not be negative")

    @property
    def unit_price(self) -> Decimal:
        """The applicable price (monthly for monthly items)."""
        return self.pricing.price

    @property
    def is_monthly(self) -> bool:
        return isinstance(self.pricing, MonthlyPricing)


def check_item_for_supply_type(item: CatalogItem, supply_type: SupplyType) -> None:
    """Raise InvalidCatalogItemError when ``item`` does not fit a lot of ``supply_type``."""
    if supply_type.is_monthly != item.is_monthly:
        raise InvalidCatalogItemError(
            item.item_number,
            f"pricing variant {item.pricing.kind} does not match supply type {supply_type.value}",
        )
    if supply_type is SupplyType.MAINTENANCE and item.unit_price <= ZERO:
        raise InvalidCatalogItemError(item.item_number, "monthly price must be greater than zero")


# =============================================================================
# Contract structure
# =============================================================================


@dataclass(frozen=True)
class Lot:
    """A contract subdivision grouping catalog items of one supply type."""

    id: str
    contract_id: str
    name: str
    supply_type: SupplyType
    items: tuple[CatalogItem, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "supply_type", _coerce_enum(SupplyType, self.supply_type))
        object.__setattr__(self, "items", tuple(self.items))
        for item in self.items:
            check_item_for_supply_type(item, self.supply_type)

    @property
    def is_monthly(self) -> bool:
        return self.supply_type.is_monthly

    def sorted_items(self) -> tuple[CatalogItem, ...]:
        """Items ordered by dotted numeric item number."""
        return tuple(sorted(self.items, key=lambda it: item_number_key(it.item_number)))

    def find_item(self, item_id: str) -> CatalogItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


@dataclass(frozen=True)
class Contract:
    """
    Price-registration agreement (ARP).

    Contract:
        Owns its lots. ``participant_ids`` are the client ids formally listed
        as signatories; every other client is a piggyback (carona) client.
    """

    id: str
    title: str
    owner_client_id: str
    is_consortium: bool = False
    signed_on: date | None = None
    expires_on: date | None = None
    lots: tuple[Lot, ...] = ()
    participant_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "lots", tuple(self.lots))
        object.__setattr__(self, "participant_ids", frozenset(self.participant_ids))

    def status(self, as_of: date) -> ContractStatus:
        """VIGENTE while ``as_of <= expires_on`` (or with no expiry)."""
        if self.expires_on is None:
            return ContractStatus.ACTIVE
        return ContractStatus.ACTIVE if as_of <= self.expires_on else ContractStatus.EXPIRED

    def is_active(self, as_of: date) -> bool:
        return self.status(as_of) is ContractStatus.ACTIVE

    def is_participant(self, client_id: str) -> bool:
        return client_id in self.participant_ids

    def allocation_class_for(self, client_id: str) -> AllocationClass:
        if self.is_participant(client_id):
            return AllocationClass.PARTICIPANT
        return AllocationClass.PIGGYBACK

    def find_lot(self, lot_id: str) -> Lot | None:
        for lot in self.lots:
            if lot.id == lot_id:
                return lot
        return None

    def find_item(self, item_id: str) -> tuple[Lot, CatalogItem] | None:
        for lot in self.lots:
            item = lot.find_item(item_id)
            if item is not None:
                return lot, item
        return None


def allocation_class_for(contract: Contract | None, client_id: str) -> AllocationClass:
    """Unknown contracts treat every client as piggyback."""
    if contract is None:
        return AllocationClass.PIGGYBACK
    return contract.allocation_class_for(client_id)


# =============================================================================
# Clients, opportunities, kits
# =============================================================================


@dataclass(frozen=True)
class Client:
    """Purchasing entity. ``tax_id`` holds the 14 CNPJ digits only."""

    id: str
    name: str
    tax_id: str
    city: str
    sphere: GovernmentSphere

    def __post_init__(self) -> None:
        object.__setattr__(self, "tax_id", "".join(ch for ch in self.tax_id if ch.isdigit()))
        object.__setattr__(self, "sphere", _coerce_enum(GovernmentSphere, self.sphere))


@dataclass(frozen=True)
class OpportunityLine:
    """
    A quantity requested against one catalog item.

    Direct lines have ``source_kit`` None; kit-expansion lines carry the name
    of the kit they were copied from. Both count the same for consumption.
    """

    id: str
    lot_id: str
    item_id: str
    quantity: Decimal
    source_kit: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        if not self.quantity.is_finite() or self.quantity < Decimal("1"):
            raise ValueError(f"Opportunity line quantity must be >= 1, got {self.quantity}")

    @property
    def is_kit_line(self) -> bool:
        return self.source_kit is not None


@dataclass(frozen=True)
class Opportunity:
    """Candidate deal against a contract."""

    id: str
    code: int
    contract_id: str
    client_id: str
    status: OpportunityStatus = OpportunityStatus.OPEN
    lines: tuple[OpportunityLine, ...] = ()
    kit_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", OpportunityStatus.parse(self.status))
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "kit_names", tuple(self.kit_names))

    @property
    def direct_lines(self) -> tuple[OpportunityLine, ...]:
        return tuple(line for line in self.lines if not line.is_kit_line)

    @property
    def kit_lines(self) -> tuple[OpportunityLine, ...]:
        return tuple(line for line in self.lines if line.is_kit_line)


@dataclass(frozen=True)
class KitItem:
    lot_id: str
    item_id: str
    quantity: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        if not self.quantity.is_finite() or self.quantity < Decimal("1"):
            raise ValueError(f"Kit item quantity must be >= 1, got {self.quantity}")


@dataclass(frozen=True)
class Kit:
    """Named template of (lot, item, quantity) lines over one contract."""

    id: str
    name: str
    contract_id: str
    items: tuple[KitItem, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
