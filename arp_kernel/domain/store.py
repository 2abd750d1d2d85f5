"""
Snapshot store -- explicit state container owned by the caller.

Responsibility:
    Replaces ambient global state: the core never reads or writes storage.
    Callers hold a repository, ``read()`` an immutable ``ArpSnapshot``, pass
    it to kernel operations and engines, and ``replace()`` it with the
    derived snapshot they get back.

Architecture position:
    Kernel > Domain. ``SnapshotRepository`` is the seam a persistence
    collaborator implements; ``InMemorySnapshotRepository`` is the reference
    implementation used by tests and single-process hosts.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol, runtime_checkable

from arp_kernel.domain.entities import Client, Contract, Kit, Opportunity
from arp_kernel.logging_config import get_logger

logger = get_logger("store")


@dataclass(frozen=True)
class ArpSnapshot:
    """Immutable view of every record the core operates on."""

    contracts: tuple[Contract, ...] = ()
    clients: tuple[Client, ...] = ()
    opportunities: tuple[Opportunity, ...] = ()
    kits: tuple[Kit, ...] = ()
    version: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "contracts", tuple(self.contracts))
        object.__setattr__(self, "clients", tuple(self.clients))
        object.__setattr__(self, "opportunities", tuple(self.opportunities))
        object.__setattr__(self, "kits", tuple(self.kits))

    def contract(self, contract_id: str) -> Contract | None:
        return next((c for c in self.contracts if c.id == contract_id), None)

    def client(self, client_id: str) -> Client | None:
        return next((c for c in self.clients if c.id == client_id), None)

    def opportunity(self, opportunity_id: str) -> Opportunity | None:
        return next((o for o in self.opportunities if o.id == opportunity_id), None)

    def kit(self, kit_id: str) -> Kit | None:
        return next((k for k in self.kits if k.id == kit_id), None)

    def kits_for_contract(self, contract_id: str) -> tuple[Kit, ...]:
        return tuple(k for k in self.kits if k.contract_id == contract_id)


@runtime_checkable
class SnapshotRepository(Protocol):
    """Read / replace semantics; the whole snapshot is swapped at once."""

    def read(self) -> ArpSnapshot:
        ...

    def replace(self, snapshot: ArpSnapshot) -> ArpSnapshot:
        ...


class InMemorySnapshotRepository:
    """Holds the current snapshot in process memory and bumps its version on replace."""

    def __init__(self, initial: ArpSnapshot | None = None):
        self._snapshot = initial or ArpSnapshot()

    def read(self) -> ArpSnapshot:
        return self._snapshot

    def replace(self, snapshot: ArpSnapshot) -> ArpSnapshot:
        stored = replace(snapshot, version=self._snapshot.version + 1)
        self._snapshot = stored
        logger.debug(
            "snapshot_replaced",
            extra={
                "version": stored.version,
                "contracts": len(stored.contracts),
                "opportunities": len(stored.opportunities),
            },
        )
        return stored
