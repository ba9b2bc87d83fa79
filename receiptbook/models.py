from __future__ import annotations

# receiptbook/models.py
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional


class PaymentStatus(str, Enum):
    PAID = "paid"
    PART_PAID = "part_paid"
    NOT_PAID = "not_paid"


@dataclass
class ReceiptItem:
    description: str
    quantity: float
    price: float
    id: Optional[int] = None
    receipt_id: Optional[int] = None

    @property
    def line_total(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["line_total"] = self.line_total
        return out


@dataclass
class ReceiptHeader:
    """Non-item fields of a receipt."""
    receipt_number: str
    total: float
    created_at: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    amount_paid: Optional[float] = None


@dataclass
class Receipt(ReceiptHeader):
    id: Optional[int] = None
    items: List[ReceiptItem] = field(default_factory=list)

    @property
    def balance_due(self) -> Optional[float]:
        if self.payment_status is None:
            return None
        if self.payment_status == PaymentStatus.NOT_PAID:
            return self.total
        return self.total - (self.amount_paid or 0.0)

    def header(self) -> ReceiptHeader:
        return ReceiptHeader(
            receipt_number=self.receipt_number,
            total=self.total,
            created_at=self.created_at,
            customer_name=self.customer_name,
            customer_phone=self.customer_phone,
            notes=self.notes,
            payment_status=self.payment_status,
            amount_paid=self.amount_paid,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "receipt_number": self.receipt_number,
            "total": self.total,
            "created_at": self.created_at,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "notes": self.notes,
            "payment_status": self.payment_status.value if self.payment_status else None,
            "amount_paid": self.amount_paid,
            "balance_due": self.balance_due,
            "items": [it.to_dict() for it in self.items],
        }


@dataclass
class BusinessProfile:
    name: str
    phone: str
    address: Optional[str] = None
    cac_number: Optional[str] = None
    logo_uri: Optional[str] = None
    website_uri: Optional[str] = None
    custom_footer: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InventoryItem:
    name: str
    price: float
    description: Optional[str] = None
    created_at: Optional[str] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
