"""Promoters: decoded rows -> catalog items of a lot."""

from arp_ingestion.promoters.catalog_items import (
    item_from_row,
    overwrite_from_row,
    reconcile,
)

__all__ = [
    "item_from_row",
    "overwrite_from_row",
    "reconcile",
]
