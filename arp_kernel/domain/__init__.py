"""
Pure domain layer.

This module contains immutable entities and pure operations with NO
dependencies on:
- Persistence
- Network
- Ambient global state

Callers own a SnapshotRepository and pass snapshots in and out.
"""

from arp_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from arp_kernel.domain.cnpj import digits_only, format_cnpj, is_valid_cnpj
from arp_kernel.domain.entities import (
    AllocationClass,
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
    MonthlyPricing,
    OneOffPricing,
    Opportunity,
    OpportunityLine,
    OpportunityStatus,
    Pricing,
    SupplyType,
    allocation_class_for,
    pricing_for,
)
from arp_kernel.domain.store import (
    ArpSnapshot,
    InMemorySnapshotRepository,
    SnapshotRepository,
)
from arp_kernel.domain.values import item_number_key, round2, to_decimal

__all__ = [
    "AllocationClass",
    "ArpSnapshot",
    "CatalogItem",
    "Client",
    "Clock",
    "Contract",
    "ContractStatus",
    "DeterministicClock",
    "Equipment",
    "GovernmentSphere",
    "InMemorySnapshotRepository",
    "Kit",
    "KitItem",
    "Lot",
    "MaintenanceItemKind",
    "MonthlyPricing",
    "OneOffPricing",
    "Opportunity",
    "OpportunityLine",
    "OpportunityStatus",
    "Pricing",
    "SnapshotRepository",
    "SupplyType",
    "SystemClock",
    "allocation_class_for",
    "digits_only",
    "format_cnpj",
    "is_valid_cnpj",
    "item_number_key",
    "pricing_for",
    "round2",
    "to_decimal",
]
