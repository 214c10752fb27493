"""
Order and line item lookup.
"""

import logging
from typing import List, Optional

from core.data import QueryOptions, Repository

from returns.domain.models import Order, OrderProduct
from returns.domain.policies import DeliveredOrderPolicy
from returns.errors import InvalidOrder, LineItemNotFound, dependency_call

logger = logging.getLogger(__name__)


class OrderLookup:
    """Resolves orders, their line items, and rebinds line item serial numbers."""

    def __init__(self, orders: Repository[Order], order_products: Repository[OrderProduct]):
        self._orders = orders
        self._order_products = order_products
        self._delivered_policy = DeliveredOrderPolicy()

    def lines_for_order(self, order_id: int) -> List[OrderProduct]:
        return self._order_products.find(QueryOptions(
            filters={"order_id": order_id},
            order_by="order_product_id",
        ))

    def get_order(self, order_id: int) -> Optional[Order]:
        """Get an order with its line items resolved."""
        order = self._orders.get_by_id(order_id)
        if order is not None:
            order.lines = self.lines_for_order(order_id)
        return order

    def resolve_delivered_order(self, order_id: int, user_id: int) -> Order:
        """
        Get a delivered order owned by the user.

        Raises:
            InvalidOrder: Missing, owned by another user, or not delivered
        """
        order = self.get_order(order_id)
        decision = self._delivered_policy.evaluate({
            "order_exists": order is not None,
            "order_user_id": order.user_id if order else None,
            "user_id": user_id,
            "order_status": order.order_status if order else None,
        })
        if decision.is_denied:
            logger.warning(f"Order {order_id} rejected for user {user_id}: {decision.reason}")
            raise InvalidOrder()
        return order

    def line_for_product(self, order: Order, product_id: int) -> OrderProduct:
        """
        Pick the order's line for a product (lowest line id first).

        Raises:
            LineItemNotFound: The order has no line for the product
        """
        for line in order.lines:
            if line.product_id == product_id:
                return line
        raise LineItemNotFound()

    def resolve_delivered_order_line(self, order_id: int, user_id: int, product_id: int) -> OrderProduct:
        """
        The user's delivered order line for a product, with ``line.order``
        set to the resolved order.

        Raises:
            InvalidOrder: Missing, owned by another user, or not delivered
            LineItemNotFound: The order has no line for the product
        """
        order = self.resolve_delivered_order(order_id, user_id)
        line = self.line_for_product(order, product_id)
        line.order = order
        return line

    def find_line(self, order_id: int, serial_number: str) -> Optional[OrderProduct]:
        """Find the line on an order carrying a serial number, whatever its product."""
        return self._order_products.first(QueryOptions(
            filters={"order_id": order_id, "serial_number": serial_number},
            order_by="order_product_id",
        ))

    def rebind_serial_number(self, line: OrderProduct, serial_number: str) -> OrderProduct:
        """Point a line item at a different unit."""
        previous = line.serial_number
        line.serial_number = serial_number
        with dependency_call(f"Rebinding line {line.order_product_id}"):
            saved = self._order_products.update(line)
        logger.info(
            f"Line {line.order_product_id} on order {line.order_id} rebound "
            f"from {previous} to {serial_number}"
        )
        return saved
