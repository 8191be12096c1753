"""
Sales transaction log package exports.
"""

from .log import (
    bill_total,
    delete_sale,
    describe_bill,
    describe_items,
    find_sale,
    line_items,
    new_sale,
    record_sale,
)

__all__ = [
    "bill_total",
    "delete_sale",
    "describe_bill",
    "describe_items",
    "find_sale",
    "line_items",
    "new_sale",
    "record_sale",
]
