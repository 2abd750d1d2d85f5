"""
arp_ingestion -- Catalog item import for price-registration lots.

Decodes delimited text (the official price table of an agreement) into
candidate catalog rows, reports field-level errors, and reconciles the
valid rows with the items already registered in a lot.

Architecture:
    arp_ingestion/ is a top-level package. Nothing in arp_kernel/ or
    arp_engines/ imports from ingestion.
"""
