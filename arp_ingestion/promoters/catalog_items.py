"""
Catalog item promoter: decoded CandidateRows -> the lot's next item list.

Pure reconciliation. The caller owns the snapshot and swaps the returned
collection into the lot (``replace_lot_items``). Existing items are matched
by exact item number.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from arp_kernel.domain.entities import (
    CatalogItem,
    MonthlyPricing,
    SupplyType,
    check_item_for_supply_type,
    pricing_for,
)
from arp_kernel.domain.operations import new_id
from arp_kernel.domain.values import item_number_key
from arp_kernel.logging_config import get_logger

from arp_ingestion.domain.types import (
    CandidateRow,
    ImportMode,
    ImportStats,
    ReconcileResult,
)
from arp_ingestion.mapping.locale import commercial_name_from_specification

logger = get_logger("ingestion.promoters.catalog_items")


def _sorted(items: Iterable[CatalogItem]) -> tuple[CatalogItem, ...]:
    return tuple(sorted(items, key=lambda it: item_number_key(it.item_number)))


def item_from_row(row: CandidateRow, lot_id: str, supply_type: SupplyType) -> CatalogItem:
    """Build a brand-new catalog item from a decoded row."""
    name = commercial_name_from_specification(row.specification)
    item = CatalogItem(
        id=new_id("item"),
        lot_id=lot_id,
        item_number=row.item_number,
        commercial_name=name,
        internal_description=name,
        description=row.specification,
        unit=row.unit,
        total=row.total,
        pricing=pricing_for(supply_type, row.unit_price),
    )
    check_item_for_supply_type(item, supply_type)
    return item


def overwrite_from_row(item: CatalogItem, row: CandidateRow, supply_type: SupplyType) -> CatalogItem:
    """Overwrite the mutable fields of ``item``; id and equipment survive."""
    item_kind = item.pricing.item_kind if isinstance(item.pricing, MonthlyPricing) else None
    name = commercial_name_from_specification(row.specification)
    updated = replace(
        item,
        item_number=row.item_number,
        commercial_name=name,
        internal_description=name,
        description=row.specification,
        unit=row.unit,
        total=row.total,
        pricing=pricing_for(supply_type, row.unit_price, item_kind),
    )
    check_item_for_supply_type(updated, supply_type)
    return updated


def reconcile(
    rows: Sequence[CandidateRow],
    existing_items: Sequence[CatalogItem],
    mode: ImportMode,
    lot_id: str,
    supply_type: SupplyType,
) -> ReconcileResult:
    """
    Merge decoded rows into the lot's items according to ``mode``.

    REPLACE_ALL discards every existing item.  INSERT_ONLY skips rows whose
    item number already exists.  UPSERT overwrites them in place.  Rows are
    matched against the items that existed before the import, so two rows
    with the same new item number are both inserted.
    """
    mode = ImportMode(mode)

    if mode is ImportMode.REPLACE_ALL:
        items = _sorted(item_from_row(r, lot_id, supply_type) for r in rows)
        stats = ImportStats(inserted=len(items))
        logger.info("catalog_items_reconciled", extra={
            "lot_id": lot_id, "mode": mode.value,
            "inserted": stats.inserted, "updated": 0, "ignored": 0,
        })
        return ReconcileResult(items=items, stats=stats)

    existing_by_number = {it.item_number: it for it in existing_items}
    next_items: list[CatalogItem] = list(existing_items)
    position = {it.id: idx for idx, it in enumerate(next_items)}
    inserted = updated = ignored = 0

    for row in rows:
        existing = existing_by_number.get(row.item_number)
        if existing is None:
            next_items.append(item_from_row(row, lot_id, supply_type))
            inserted += 1
            continue
        if mode is ImportMode.INSERT_ONLY:
            ignored += 1
            continue
        idx = position[existing.id]
        next_items[idx] = overwrite_from_row(next_items[idx], row, supply_type)
        updated += 1

    stats = ImportStats(inserted=inserted, updated=updated, ignored=ignored)
    logger.info("catalog_items_reconciled", extra={
        "lot_id": lot_id, "mode": mode.value,
        "inserted": inserted, "updated": updated, "ignored": ignored,
    })
    return ReconcileResult(items=_sorted(next_items), stats=stats)
