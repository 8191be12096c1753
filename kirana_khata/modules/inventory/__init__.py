"""
Inventory ledger: stock add/deduct, purchase receipts, price changes and
name resolution for parsed bill lines.
"""

from .ledger import (
    DomainError,
    PurchaseLine,
    add_stock,
    deduct_stock,
    low_stock_items,
    receive_stock,
    update_price,
    validate_manual_item,
)
from .matching import find_inventory_item

__all__ = [
    "DomainError",
    "PurchaseLine",
    "add_stock",
    "deduct_stock",
    "low_stock_items",
    "receive_stock",
    "update_price",
    "validate_manual_item",
    "find_inventory_item",
]
