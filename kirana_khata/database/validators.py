"""
database/validators.py

Purpose
-------
Shape checks for persisted collections, run before a stored JSON document is
trusted. A failed check is not an error for the user: the caller logs it and
falls back to the seed collection.

Public API
----------
- ValidationResult
- validate_language(value) -> ValidationResult
- validate_inventory(value) -> ValidationResult
- validate_transactions(value) -> ValidationResult
- validate_khata_customers(value) -> ValidationResult
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict

from ..constants import (
    ENTRY_CREDIT,
    ENTRY_DEBIT,
    KEY_INVENTORY,
    KEY_KHATAS,
    KEY_LANGUAGE,
    KEY_TRANSACTIONS,
    LANGUAGES,
)
from ..utils.validators import non_empty, try_parse_float


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.valid


def _is_number(x: Any) -> bool:
    ok, _ = try_parse_float(x)
    return ok


def _check_list(value: Any, label: str) -> ValidationResult | None:
    if not isinstance(value, list):
        return ValidationResult.invalid(f"{label} must be a list, got {type(value).__name__}.")
    for i, el in enumerate(value):
        if not isinstance(el, dict):
            return ValidationResult.invalid(f"{label}[{i}] is not an object.")
    return None


def _check_nested(el: Dict[str, Any], label: str) -> ValidationResult | None:
    """Nested line items and price records must be objects; meta must be an object or null."""
    for field in ("items", "priceHistory", "purchasePriceHistory"):
        if field in el and el[field] is not None:
            bad = _check_list(el[field], f"{label}.{field}")
            if bad is not None:
                return bad
    meta = el.get("meta")
    if meta is not None and not isinstance(meta, dict):
        return ValidationResult.invalid(f"{label}.meta is not an object.")
    return None


def validate_language(value: Any) -> ValidationResult:
    if value in LANGUAGES:
        return ValidationResult.ok()
    return ValidationResult.invalid(f"Unsupported language {value!r}.")


def validate_inventory(value: Any) -> ValidationResult:
    """Every element needs an id and a name; stock, when present, must be numeric."""
    bad = _check_list(value, "inventory")
    if bad is not None:
        return bad
    for i, el in enumerate(value):
        if not non_empty(el.get("id")) or not non_empty(el.get("name")):
            return ValidationResult.invalid(f"inventory[{i}] is missing id or name.")
        if "stock" in el and not _is_number(el["stock"]):
            return ValidationResult.invalid(f"inventory[{i}].stock is not a number.")
        bad = _check_nested(el, f"inventory[{i}]")
        if bad is not None:
            return bad
    return ValidationResult.ok()


def validate_transactions(value: Any) -> ValidationResult:
    bad = _check_list(value, "transactions")
    if bad is not None:
        return bad
    for i, el in enumerate(value):
        if not non_empty(el.get("id")):
            return ValidationResult.invalid(f"transactions[{i}] is missing id.")
        if not _is_number(el.get("amount")):
            return ValidationResult.invalid(f"transactions[{i}].amount is not a number.")
        bad = _check_nested(el, f"transactions[{i}]")
        if bad is not None:
            return bad
    return ValidationResult.ok()


def validate_khata_customers(value: Any) -> ValidationResult:
    bad = _check_list(value, "khata customers")
    if bad is not None:
        return bad
    for i, el in enumerate(value):
        if not non_empty(el.get("id")) or not non_empty(el.get("name")):
            return ValidationResult.invalid(f"khata customers[{i}] is missing id or name.")
        entries = el.get("transactions", [])
        if not isinstance(entries, list):
            return ValidationResult.invalid(f"khata customers[{i}].transactions is not a list.")
        for j, t in enumerate(entries):
            if not isinstance(t, dict) or t.get("type") not in (ENTRY_DEBIT, ENTRY_CREDIT):
                return ValidationResult.invalid(
                    f"khata customers[{i}].transactions[{j}] has no valid type."
                )
            if not _is_number(t.get("amount")):
                return ValidationResult.invalid(
                    f"khata customers[{i}].transactions[{j}].amount is not a number."
                )
            bad = _check_nested(t, f"khata customers[{i}].transactions[{j}]")
            if bad is not None:
                return bad
    return ValidationResult.ok()


VALIDATORS: Dict[str, Callable[[Any], ValidationResult]] = {
    KEY_LANGUAGE: validate_language,
    KEY_INVENTORY: validate_inventory,
    KEY_TRANSACTIONS: validate_transactions,
    KEY_KHATAS: validate_khata_customers,
}
