"""
Application services: the ledger store and the parsing glue.
"""

from .ledger_store import LedgerState, LedgerStore

__all__ = ["LedgerState", "LedgerStore"]
