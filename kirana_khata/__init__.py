"""
Kirana Khata: point-of-sale and credit-ledger ("khata") core for a single shop.

Inventory ledger, sales log, per-customer credit sub-ledgers and the
settlement reconciler live under ``kirana_khata.modules``; the
``LedgerStore`` in ``kirana_khata.services`` owns the state and the
persistence boundary.
"""

__version__ = "0.3.0"
