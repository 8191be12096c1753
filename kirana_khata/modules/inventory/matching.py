"""
Resolve a free-text item name (voice/image parsed) to a stocked item.

Order, first hit wins:
  1. exact case-insensitive name
  2. stocked name with its trailing "(...)" size/unit part removed
  3. first token of the query (split on whitespace or '(') contained in a
     stocked name, e.g. 'dal' -> 'Sunko Dal (1 kg)'
"""
from __future__ import annotations

import re
from typing import Iterable, Optional

from ...database.models import InventoryItem

_TOKEN_SPLIT = re.compile(r"[\s(]")


def find_inventory_item(name: str, inventory: Iterable[InventoryItem]) -> Optional[InventoryItem]:
    query = (name or "").strip().lower()
    if not query:
        return None
    items = list(inventory)
    base = _TOKEN_SPLIT.split(query)[0].strip()

    for it in items:
        if it.name.strip().lower() == query:
            return it

    for it in items:
        if it.name.strip().lower().split("(")[0].strip() == query:
            return it

    if base:
        for it in items:
            if base in it.name.strip().lower():
                return it

    return None
