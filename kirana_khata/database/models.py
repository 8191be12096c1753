# kirana_khata/database/models.py
"""
Ledger data model.

Every collection is persisted as JSON with camelCase keys (the format the
shop's earlier web client wrote), so each dataclass carries a `to_dict()` /
`from_dict()` pair. `from_dict` raises on a structurally broken record; the repository treats that as a corrupt payload.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..constants import (
    DEFAULT_CATEGORY,
    DEFAULT_LOW_STOCK_THRESHOLD,
    ENTRY_CREDIT,
    ENTRY_DEBIT,
)
from ..utils.helpers import parse_iso
from ..utils.validators import to_number


def _opt_float(v: Any) -> Optional[float]:
    return None if v is None else float(v)


# --------------------------------------------------------------------------
# Inventory
# --------------------------------------------------------------------------

@dataclass
class PriceRecord:
    price: float
    date: str
    quantity: Optional[float] = None
    supplier: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"price": self.price, "date": self.date}
        if self.quantity is not None:
            d["quantity"] = self.quantity
        if self.supplier is not None:
            d["supplier"] = self.supplier
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PriceRecord":
        return cls(
            price=float(d["price"]),
            date=str(d["date"]),
            quantity=_opt_float(d.get("quantity")),
            supplier=d.get("supplier"),
        )


@dataclass
class InventoryItem:
    id: str
    name: str
    stock: float
    unit: str
    price: float  # selling price
    last_updated: str
    category: str = DEFAULT_CATEGORY
    low_stock_threshold: float = DEFAULT_LOW_STOCK_THRESHOLD
    price_history: List[PriceRecord] = field(default_factory=list)
    purchase_price_history: List[PriceRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "stock": self.stock,
            "unit": self.unit,
            "price": self.price,
            "lastUpdated": self.last_updated,
            "category": self.category,
            "lowStockThreshold": self.low_stock_threshold,
            "priceHistory": [p.to_dict() for p in self.price_history],
            "purchasePriceHistory": [p.to_dict() for p in self.purchase_price_history],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InventoryItem":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            stock=max(0.0, to_number(d.get("stock", 0))),
            unit=str(d.get("unit") or ""),
            price=to_number(d.get("price", 0)),
            last_updated=str(d.get("lastUpdated") or ""),
            category=str(d.get("category") or DEFAULT_CATEGORY),
            low_stock_threshold=to_number(d.get("lowStockThreshold", DEFAULT_LOW_STOCK_THRESHOLD)),
            price_history=[PriceRecord.from_dict(p) for p in d.get("priceHistory") or []],
            purchase_price_history=[
                PriceRecord.from_dict(p) for p in d.get("purchasePriceHistory") or []
            ],
        )


# --------------------------------------------------------------------------
# Bill / line items
# --------------------------------------------------------------------------

@dataclass
class LineItem:
    """Item snapshot kept on sales and khata entries (what moved, how much)."""
    name: str
    quantity: Any  # number or numeric string, coerced with to_number()
    inventory_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name, "quantity": self.quantity}
        if self.inventory_id is not None:
            d["inventoryId"] = self.inventory_id
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LineItem":
        return cls(
            name=str(d.get("name") or ""),
            quantity=d.get("quantity", 0),
            inventory_id=d.get("inventoryId"),
        )


@dataclass
class BillItem:
    """Editable bill line as confirmed by the shop owner."""
    name: str
    quantity: Any
    unit: str = ""
    price: Any = 0
    inventory_id: Optional[str] = None

    @property
    def line_total(self) -> float:
        return to_number(self.price) * to_number(self.quantity)

    def to_line_item(self) -> LineItem:
        return LineItem(name=self.name, quantity=self.quantity, inventory_id=self.inventory_id)


@dataclass
class StockEntry:
    """Stock-add request: restock, purchase receipt or reversal of a sale."""
    quantity: Any
    inventory_id: Optional[str] = None
    name: str = ""
    cost_price: Optional[float] = None
    selling_price: Optional[float] = None
    supplier: Optional[str] = None


# --------------------------------------------------------------------------
# Ledger entries
# --------------------------------------------------------------------------

@dataclass
class LedgerMeta:
    """Provenance recorded at the moment an entry was written."""
    previous_due: Optional[float] = None
    remaining_due: Optional[float] = None
    has_new_bill: bool = False
    bill_total: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {}
        if self.previous_due is not None:
            d["previousDue"] = self.previous_due
        if self.remaining_due is not None:
            d["remainingDue"] = self.remaining_due
        if self.has_new_bill:
            d["hasNewBill"] = True
        if self.bill_total is not None:
            d["billTotal"] = self.bill_total
        return d

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["LedgerMeta"]:
        if not d:
            return None
        return cls(
            previous_due=_opt_float(d.get("previousDue")),
            remaining_due=_opt_float(d.get("remainingDue")),
            has_new_bill=bool(d.get("hasNewBill", False)),
            bill_total=_opt_float(d.get("billTotal")),
        )


@dataclass
class Transaction:
    """Plain sale (cash/QR), or the sales-log mirror of a khata payment."""
    id: str
    customer_name: str
    amount: float
    date: str
    items: List[LineItem]
    payment_method: str
    khata_customer_id: Optional[str] = None
    meta: Optional[LedgerMeta] = None

    @property
    def is_khata_mirror(self) -> bool:
        return self.khata_customer_id is not None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "customerName": self.customer_name,
            "amount": self.amount,
            "date": self.date,
            "items": [i.to_dict() for i in self.items],
            "paymentMethod": self.payment_method,
        }
        if self.khata_customer_id is not None:
            d["khataCustomerId"] = self.khata_customer_id
        if self.meta is not None:
            d["meta"] = self.meta.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Transaction":
        parse_iso(d["date"])  # reject unreadable timestamps up front
        return cls(
            id=str(d["id"]),
            customer_name=str(d.get("customerName") or ""),
            amount=float(d["amount"]),
            date=str(d["date"]),
            items=[LineItem.from_dict(i) for i in d.get("items") or []],
            payment_method=str(d.get("paymentMethod") or "cash"),
            khata_customer_id=d.get("khataCustomerId"),
            meta=LedgerMeta.from_dict(d.get("meta")),
        )


@dataclass
class KhataTransaction:
    id: str
    date: str
    description: str
    amount: float
    type: str  # 'debit' (goods issued) | 'credit' (payment received)
    items: List[LineItem] = field(default_factory=list)
    immediate_payment: Optional[float] = None
    is_auto_generated: bool = False
    meta: Optional[LedgerMeta] = None

    @property
    def signed_amount(self) -> float:
        """Effect on the customer's balance: debit +, credit -."""
        return self.amount if self.type == ENTRY_DEBIT else -self.amount

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "type": self.type,
            "items": [i.to_dict() for i in self.items],
        }
        if self.immediate_payment is not None:
            d["immediatePayment"] = self.immediate_payment
        if self.is_auto_generated:
            d["isAutoGenerated"] = True
        if self.meta is not None:
            d["meta"] = self.meta.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KhataTransaction":
        kind = str(d["type"])
        if kind not in (ENTRY_DEBIT, ENTRY_CREDIT):
            raise ValueError(f"Unknown khata entry type: {kind!r}")
        parse_iso(d["date"])
        immediate = _opt_float(d.get("immediatePayment"))
        return cls(
            id=str(d["id"]),
            date=str(d["date"]),
            description=str(d.get("description") or ""),
            amount=float(d["amount"]),
            type=kind,
            items=[LineItem.from_dict(i) for i in d.get("items") or []],
            # only meaningful on goods-issued entries
            immediate_payment=immediate if kind == ENTRY_DEBIT else None,
            is_auto_generated=bool(d.get("isAutoGenerated", False)),
            meta=LedgerMeta.from_dict(d.get("meta")),
        )


@dataclass
class KhataCustomer:
    id: str
    name: str
    phone: str
    address: str
    pan: Optional[str] = None
    citizenship: Optional[str] = None
    transactions: List[KhataTransaction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
        }
        if self.pan:
            d["pan"] = self.pan
        if self.citizenship:
            d["citizenship"] = self.citizenship
        d["transactions"] = [t.to_dict() for t in self.transactions]
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "KhataCustomer":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            phone=str(d.get("phone") or ""),
            address=str(d.get("address") or ""),
            pan=d.get("pan") or None,
            citizenship=d.get("citizenship") or None,
            transactions=[KhataTransaction.from_dict(t) for t in d.get("transactions") or []],
        )


# --------------------------------------------------------------------------
# Derived (never persisted)
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class UnifiedTransaction:
    id: str
    type: str                 # 'cash' | 'qr' | 'credit'
    customer_name: str
    amount: float
    date: str
    description: str
    items: List[LineItem]
    original_type: str        # 'transaction' | 'khata' (routes deletion)
    customer_id: Optional[str] = None
    total_amount: float = 0.0
    paid_amount: float = 0.0
    source: str = "sales"     # 'sales' | 'recovery'
    meta: Optional[LedgerMeta] = None


@dataclass
class LedgerResult:
    """
    Outcome of a ledger operation. Errors are values, never raised, so callers
    can abort a multi-step script before any write happens.
    """
    success: bool
    error: Optional[str] = None
    item_name: Optional[str] = None
    available: Optional[float] = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> "LedgerResult":
        return cls(True, value=value)

    @classmethod
    def fail(cls, error: str, *, item_name: Optional[str] = None,
             available: Optional[float] = None) -> "LedgerResult":
        return cls(False, error=error, item_name=item_name, available=available)

    def __bool__(self) -> bool:
        return self.success
