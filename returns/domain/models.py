"""
Return Domain Entities.

Plain dataclasses for the entities the returns workflow reads and writes.
Each entity converts to and from a JSON-compatible dict for persistence;
``etag`` is maintained by the repository and never serialized.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from core.domain import format_date, parse_date


# =============================================================================
# ENUMERATIONS
# =============================================================================

class RequestStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    CLOSED = "Closed"


# Reachable statuses from each status. Closing is allowed from any state
# and a closed request may be closed again (overwrites the closing fields).
REQUEST_STATUS_TRANSITIONS = {
    RequestStatus.PENDING.value: [RequestStatus.PROCESSING.value, RequestStatus.CLOSED.value],
    RequestStatus.PROCESSING.value: [RequestStatus.PROCESSING.value, RequestStatus.CLOSED.value],
    RequestStatus.CLOSED.value: [RequestStatus.CLOSED.value],
}


class OrderStatus(str, Enum):
    PENDING = "Pending"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class ItemStatus(str, Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    REPLACED = "Replaced"
    DISPOSED = "Disposed"
    REPAIRED = "Repaired"


class TransactionType(str, Enum):
    REFUND = "Refund"


class ReviewOutcome(str, Enum):
    """Technical review decisions."""
    RETURN_GOOD = "Return Good"
    RETURN_BAD = "Return Bad"
    REPLACE_REPAIRED = "Replace Repaired"
    REPLACE_BAD = "Replace Bad"
    REPAIRED = "Repaired"

    @classmethod
    def parse(cls, value: Any) -> Optional["ReviewOutcome"]:
        """
        Resolve an outcome from its display value ("Return Good") or its
        compact form ("ReturnGood"). Returns None when unrecognized.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for outcome in cls:
            if value == outcome.value or value == outcome.value.replace(" ", ""):
                return outcome
        return None


# =============================================================================
# ENTITIES
# =============================================================================

@dataclass
class Product:
    product_id: int
    name: str
    price: float = 0.0
    description: str = ""
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            product_id=data["product_id"],
            name=data.get("name", ""),
            price=float(data.get("price", 0.0)),
            description=data.get("description", ""),
        )


@dataclass
class Policy:
    """How many days after the order date a return type stays valid for a product."""
    policy_id: int
    product_id: int
    policy_type: str
    duration: int
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy_id": self.policy_id,
            "product_id": self.product_id,
            "policy_type": self.policy_type,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Policy":
        return cls(
            policy_id=data["policy_id"],
            product_id=data["product_id"],
            policy_type=data["policy_type"],
            duration=int(data["duration"]),
        )


@dataclass
class OrderProduct:
    """A line item binding a serial-numbered unit to an order."""
    order_product_id: int
    order_id: int
    product_id: int
    serial_number: Optional[str]
    price: float
    etag: Optional[str] = None
    # Order the line was resolved from, not persisted
    order: Optional["Order"] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_product_id": self.order_product_id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "serial_number": self.serial_number,
            "price": self.price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderProduct":
        return cls(
            order_product_id=data["order_product_id"],
            order_id=data["order_id"],
            product_id=data["product_id"],
            serial_number=data.get("serial_number"),
            price=float(data.get("price", 0.0)),
        )


@dataclass
class Order:
    order_id: int
    user_id: int
    order_date: datetime
    order_status: str
    total_amount: float = 0.0
    etag: Optional[str] = None
    # Resolved by the order lookup, not persisted on the order document
    lines: List[OrderProduct] = field(default_factory=list)

    @property
    def is_delivered(self) -> bool:
        return self.order_status == OrderStatus.DELIVERED.value

    def to_dict(self, include_lines: bool = False) -> Dict[str, Any]:
        data = {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "order_date": format_date(self.order_date),
            "order_status": self.order_status,
            "total_amount": self.total_amount,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            order_id=data["order_id"],
            user_id=data["user_id"],
            order_date=parse_date(data.get("order_date")),
            order_status=data.get("order_status", OrderStatus.PENDING.value),
            total_amount=float(data.get("total_amount", 0.0)),
        )


@dataclass
class ProductItem:
    """A single serial-numbered physical unit of a product."""
    item_id: int
    product_id: int
    serial_number: str
    status: str = ItemStatus.AVAILABLE.value
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "product_id": self.product_id,
            "serial_number": self.serial_number,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductItem":
        return cls(
            item_id=data["item_id"],
            product_id=data["product_id"],
            serial_number=data["serial_number"],
            status=data.get("status", ItemStatus.AVAILABLE.value),
        )


@dataclass
class Transaction:
    """A refund record tied to a return request."""
    transaction_id: str
    request_id: str
    transaction_type: str
    payment_date: datetime
    amount: float
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "request_id": self.request_id,
            "transaction_type": self.transaction_type,
            "payment_date": format_date(self.payment_date),
            "amount": self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            transaction_id=data["transaction_id"],
            request_id=data["request_id"],
            transaction_type=data.get("transaction_type", TransactionType.REFUND.value),
            payment_date=parse_date(data.get("payment_date")),
            amount=float(data.get("amount", 0.0)),
        )


@dataclass
class ReturnRequest:
    """A user-initiated claim to return or exchange a delivered unit."""
    request_id: str
    user_id: int
    order_id: int
    product_id: int
    return_policy: str
    reason: str
    request_date: datetime
    status: str = RequestStatus.PENDING.value
    serial_number: Optional[str] = None
    feedback: Optional[str] = None
    process: Optional[str] = None
    closed_date: Optional[datetime] = None
    closed_by: Optional[int] = None
    lease_token: Optional[str] = None
    lease_expires_at: Optional[datetime] = None
    etag: Optional[str] = None
    # Related entities resolved by queries
    transactions: List[Transaction] = field(default_factory=list)
    product: Optional[Product] = None
    order: Optional[Order] = None

    @property
    def is_closed(self) -> bool:
        return self.status == RequestStatus.CLOSED.value

    def lease_active(self, now: datetime) -> bool:
        return bool(self.lease_token) and self.lease_expires_at is not None and self.lease_expires_at > now

    def to_dict(self, include_related: bool = False) -> Dict[str, Any]:
        data = {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "serial_number": self.serial_number,
            "return_policy": self.return_policy,
            "reason": self.reason,
            "feedback": self.feedback,
            "status": self.status,
            "process": self.process,
            "request_date": format_date(self.request_date),
            "closed_date": format_date(self.closed_date),
            "closed_by": self.closed_by,
            "lease_token": self.lease_token,
            "lease_expires_at": format_date(self.lease_expires_at),
        }
        if include_related:
            data.pop("lease_token")
            data.pop("lease_expires_at")
            data["transactions"] = [t.to_dict() for t in self.transactions]
            data["product"] = self.product.to_dict() if self.product else None
            data["order"] = self.order.to_dict(include_lines=True) if self.order else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReturnRequest":
        return cls(
            request_id=data["request_id"],
            user_id=data["user_id"],
            order_id=data["order_id"],
            product_id=data["product_id"],
            return_policy=data.get("return_policy", ""),
            reason=data.get("reason", ""),
            request_date=parse_date(data.get("request_date")),
            status=data.get("status", RequestStatus.PENDING.value),
            serial_number=data.get("serial_number"),
            feedback=data.get("feedback"),
            process=data.get("process"),
            closed_date=parse_date(data.get("closed_date")),
            closed_by=data.get("closed_by"),
            lease_token=data.get("lease_token"),
            lease_expires_at=parse_date(data.get("lease_expires_at")),
        )
