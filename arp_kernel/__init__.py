"""
ARP Kernel - pure domain core for price-registration agreements.

Provides:
- Immutable entities for contracts (ARPs), lots, catalog items, clients,
  opportunities and kits
- Snapshot-in / snapshot-out entity operations with referential checks
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
