"""
Sample data for the returns service.

Order dates are computed relative to import time so the sample orders stay
inside their return windows; order 103 is deliberately past
its 30-day window and order 104 is not yet delivered.
"""

from datetime import datetime, timedelta, timezone

_NOW = datetime.now(timezone.utc)


def _days_ago(days: int) -> str:
    return (_NOW - timedelta(days=days)).isoformat()


PRODUCTS = [
    {"product_id": 55, "name": "Noise Cancelling Headphones", "price": 199.99,
     "description": "Over-ear wireless headphones"},
    {"product_id": 56, "name": "Smart Watch", "price": 249.0,
     "description": "Fitness tracking smart watch"},
    {"product_id": 57, "name": "Bluetooth Speaker", "price": 89.5,
     "description": "Portable waterproof speaker"},
]

POLICIES = [
    {"policy_id": 1, "product_id": 55, "policy_type": "30-day", "duration": 30},
    {"policy_id": 2, "product_id": 55, "policy_type": "Warranty", "duration": 365},
    {"policy_id": 3, "product_id": 56, "policy_type": "30-day", "duration": 30},
    {"policy_id": 4, "product_id": 56, "policy_type": "Replacement", "duration": 90},
    {"policy_id": 5, "product_id": 57, "policy_type": "14-day", "duration": 14},
]

ORDERS = [
    {"order_id": 100, "user_id": 7, "order_date": _days_ago(10),
     "order_status": "Delivered", "total_amount": 448.99},
    {"order_id": 101, "user_id": 8, "order_date": _days_ago(3),
     "order_status": "Delivered", "total_amount": 89.5},
    {"order_id": 103, "user_id": 7, "order_date": _days_ago(45),
     "order_status": "Delivered", "total_amount": 249.0},
    {"order_id": 104, "user_id": 9, "order_date": _days_ago(1),
     "order_status": "Shipped", "total_amount": 199.99},
]

ORDER_PRODUCTS = [
    {"order_product_id": 1, "order_id": 100, "product_id": 55, "serial_number": "HP-55-0001", "price": 199.99},
    {"order_product_id": 2, "order_id": 100, "product_id": 56, "serial_number": "SW-56-0001", "price": 249.0},
    {"order_product_id": 3, "order_id": 101, "product_id": 57, "serial_number": "SP-57-0001", "price": 89.5},
    {"order_product_id": 4, "order_id": 103, "product_id": 56, "serial_number": "SW-56-0002", "price": 249.0},
    {"order_product_id": 5, "order_id": 104, "product_id": 55, "serial_number": "HP-55-0002", "price": 199.99},
]

PRODUCT_ITEMS = [
    {"item_id": 1, "product_id": 55, "serial_number": "HP-55-0001", "status": "Sold"},
    {"item_id": 2, "product_id": 55, "serial_number": "HP-55-0002", "status": "Sold"},
    {"item_id": 3, "product_id": 55, "serial_number": "HP-55-0003", "status": "Available"},
    {"item_id": 4, "product_id": 55, "serial_number": "HP-55-0004", "status": "Available"},
    {"item_id": 5, "product_id": 56, "serial_number": "SW-56-0001", "status": "Sold"},
    {"item_id": 6, "product_id": 56, "serial_number": "SW-56-0002", "status": "Sold"},
    {"item_id": 7, "product_id": 56, "serial_number": "SW-56-0003", "status": "Available"},
    {"item_id": 8, "product_id": 57, "serial_number": "SP-57-0001", "status": "Sold"},
]

# Logical container name -> documents
SAMPLE_DATASET = {
    "products": PRODUCTS,
    "policies": POLICIES,
    "orders": ORDERS,
    "order_products": ORDER_PRODUCTS,
    "product_items": PRODUCT_ITEMS,
}
