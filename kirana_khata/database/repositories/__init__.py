# kirana_khata/database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from kirana_khata.database.repositories import StateRepo, COLLECTIONS
"""

from .state_repo import COLLECTIONS, Collection, StateRepo

__all__ = [
    "COLLECTIONS",
    "Collection",
    "StateRepo",
]
