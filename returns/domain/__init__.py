"""
Returns Domain Layer.

Contains the entities and pure business rules for return requests.
No database access or I/O - just business rules.
"""

from .models import (
    ItemStatus,
    Order,
    OrderProduct,
    OrderStatus,
    Policy,
    Product,
    ProductItem,
    REQUEST_STATUS_TRANSITIONS,
    RequestStatus,
    ReturnRequest,
    ReviewOutcome,
    Transaction,
    TransactionType,
)
from .policies import (
    DeliveredOrderPolicy,
    ReturnWindowPolicy,
)

__all__ = [
    "ItemStatus",
    "Order",
    "OrderProduct",
    "OrderStatus",
    "Policy",
    "Product",
    "ProductItem",
    "REQUEST_STATUS_TRANSITIONS",
    "RequestStatus",
    "ReturnRequest",
    "ReviewOutcome",
    "Transaction",
    "TransactionType",
    "DeliveredOrderPolicy",
    "ReturnWindowPolicy",
]
