"""
Typed Exception Hierarchy for the ARP Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ArpKernelError:

    ArpKernelError (base)
    |
    +-- EntityError
    |   +-- EntityNotFoundError
    |   +-- EntityReferencedError
    |   +-- ImmutableFieldError
    |   +-- InvalidCatalogItemError
    |   +-- InvalidTaxIdError
    |   +-- DuplicateTaxIdError
    |
    +-- KitError
    |   +-- EmptyKitError
    |   +-- KitContractMismatchError
    |
    +-- BalanceError
    |   +-- BalanceViolationError
    |
    +-- ImportPipelineError
        +-- EmptyImportError
        +-- ImportHeaderError
        +-- ImportBlockedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Entity          | ENTITY_NOT_FOUND            | Identifier absent from the snapshot
                | ENTITY_REFERENCED           | Delete refused, deal or kit still refers to it
                | IMMUTABLE_FIELD             | Patch tried to change an identifier
                | INVALID_CATALOG_ITEM        | total <= 0 or price out of range
                | INVALID_TAX_ID              | CNPJ fails length / check digits
                | DUPLICATE_TAX_ID            | CNPJ already used by another client
----------------|-----------------------------|-----------------------------------------
Kit             | EMPTY_KIT                   | Kit applied without items
                | KIT_CONTRACT_MISMATCH       | Kit belongs to another contract
----------------|-----------------------------|-----------------------------------------
Balance         | BALANCE_VIOLATION           | Commit attempted with lines over a cap
----------------|-----------------------------|-----------------------------------------
Import          | EMPTY_IMPORT                | Fewer than two non-empty lines
                | IMPORT_HEADER_INVALID       | Required column unresolved
                | IMPORT_BLOCKED              | Strict mode with row errors present

Field and row level problems are NOT exceptions: they are returned as data
(RowError, QuantityCheck, LineValidation) so callers can render them all.
Exceptions are reserved for gates that must stop a whole operation.
"""

from __future__ import annotations

from typing import Any


class ArpKernelError(Exception):
    """
    Base exception for all ARP kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ARP_KERNEL_ERROR"


# Entity-related exceptions


class EntityError(ArpKernelError):
    """Base exception for entity lifecycle errors."""

    code: str = "ENTITY_ERROR"


class EntityNotFoundError(EntityError):
    """Entity with given ID was not found in the snapshot."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class EntityReferencedError(EntityError):
    """Entity cannot be deleted while opportunities or kits reference it."""

    code: str = "ENTITY_REFERENCED"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        opportunity_ids: tuple[str, ...] = (),
        kit_ids: tuple[str, ...] = (),
        contract_ids: tuple[str, ...] = (),
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.opportunity_ids = opportunity_ids
        self.kit_ids = kit_ids
        self.contract_ids = contract_ids
        super().__init__(
            f"{entity_type} {entity_id} is referenced by "
            f"{len(opportunity_ids)} opportunities, {len(kit_ids)} kits "
            f"and {len(contract_ids)} contracts"
        )


class ImmutableFieldError(EntityError):
    """Patch attempted to change a field that preserves identity."""

    code: str = "IMMUTABLE_FIELD"

    def __init__(self, entity_type: str, field_name: str):
        self.entity_type = entity_type
        self.field_name = field_name
        super().__init__(f"Field {field_name!r} of {entity_type} cannot be patched")


class InvalidCatalogItemError(EntityError):
    """Catalog item violates its quantity or price invariant."""

    code: str = "INVALID_CATALOG_ITEM"

    def __init__(self, item_number: str, reason: str):
        self.item_number = item_number
        self.reason = reason
        super().__init__(f"Invalid catalog item {item_number!r}: {reason}")


class InvalidTaxIdError(EntityError):
    """Client tax id (CNPJ) is malformed or fails its check digits."""

    code: str = "INVALID_TAX_ID"

    def __init__(self, tax_id: str):
        self.tax_id = tax_id
        super().__init__(f"Invalid CNPJ: {tax_id}")


class DuplicateTaxIdError(EntityError):
    """Client tax id (CNPJ) is already used by another client."""

    code: str = "DUPLICATE_TAX_ID"

    def __init__(self, tax_id: str, existing_client_id: str):
        self.tax_id = tax_id
        self.existing_client_id = existing_client_id
        super().__init__(f"CNPJ {tax_id} already registered for client {existing_client_id}")


# Kit-related exceptions


class KitError(ArpKernelError):
    """Base exception for kit application errors."""

    code: str = "KIT_ERROR"


class EmptyKitError(KitError):
    """Kit has no items to expand."""

    code: str = "EMPTY_KIT"

    def __init__(self, kit_id: str):
        self.kit_id = kit_id
        super().__init__(f"Kit {kit_id} has no items")


class KitContractMismatchError(KitError):
    """Kit template belongs to a different contract than the opportunity."""

    code: str = "KIT_CONTRACT_MISMATCH"

    def __init__(self, kit_id: str, kit_contract_id: str, opportunity_contract_id: str):
        self.kit_id = kit_id
        self.kit_contract_id = kit_contract_id
        self.opportunity_contract_id = opportunity_contract_id
        super().__init__(
            f"Kit {kit_id} belongs to contract {kit_contract_id}, "
            f"opportunity uses {opportunity_contract_id}"
        )


# Balance-related exceptions


class BalanceError(ArpKernelError):
    """Base exception for balance ledger errors."""

    code: str = "BALANCE_ERROR"


class BalanceViolationError(BalanceError):
    """One or more opportunity lines exceed an applicable cap."""

    code: str = "BALANCE_VIOLATION"

    def __init__(self, opportunity_id: str | None, violations: dict[str, str]):
        self.opportunity_id = opportunity_id
        self.violations = violations
        super().__init__(
            f"Opportunity {opportunity_id or '<new>'} has {len(violations)} line(s) in violation"
        )


# Import-related exceptions


class ImportPipelineError(ArpKernelError):
    """Base exception for catalog import errors."""

    code: str = "IMPORT_ERROR"


class EmptyImportError(ImportPipelineError):
    """Import text has no data lines after the header."""

    code: str = "EMPTY_IMPORT"

    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__("CSV vazio ou sem linhas suficientes.")


class ImportHeaderError(ImportPipelineError):
    """Header line does not resolve all required columns."""

    code: str = "IMPORT_HEADER_INVALID"

    def __init__(self, headers: tuple[str, ...], missing: tuple[str, ...] = ()):
        self.headers = headers
        self.missing = missing
        super().__init__(
            "Cabeçalho inválido. Esperado: Item;Especificacao;Unid;Total;ValorUnitario "
            "(ou variações do edital)."
        )


class ImportBlockedError(ImportPipelineError):
    """Strict import refused because some rows failed validation."""

    code: str = "IMPORT_BLOCKED"

    def __init__(self, invalid_lines: int, error_count: int, details: Any = None):
        self.invalid_lines = invalid_lines
        self.error_count = error_count
        self.details = details
        super().__init__(
            f"Existem linhas inválidas ({invalid_lines}); "
            "marque 'Importar apenas válidos' ou corrija o CSV."
        )
