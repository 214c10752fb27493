"""
Inventory Coordinator.

Owns the status of serial-numbered units. The workflow requests status
transitions through this coordinator and never edits units directly.
"""

import logging
from typing import List, Optional

from core.data import ConcurrencyError, QueryOptions, Repository

from returns.domain.models import ItemStatus, ProductItem
from returns.errors import (
    InvalidStatus,
    ItemNotFound,
    OutOfStock,
    dependency_call,
)

logger = logging.getLogger(__name__)

VALID_ITEM_STATUSES = [status.value for status in ItemStatus]


class InventoryCoordinator:
    """Tracks per-unit status and hands out replacement units."""

    # Candidates tried when other reviews claim the same units concurrently
    MAX_CLAIM_CANDIDATES = 5

    def __init__(self, product_items: Repository[ProductItem]):
        self._items = product_items

    def get_item(self, serial_number: str) -> Optional[ProductItem]:
        return self._items.first(QueryOptions(
            filters={"serial_number": serial_number},
            order_by="item_id",
        ))

    def list_items(self, product_id: int, status: Optional[str] = None) -> List[ProductItem]:
        filters = {"product_id": product_id}
        if status:
            filters["status"] = status
        return self._items.find(QueryOptions(filters=filters, order_by="item_id"))

    def set_item_status(self, serial_number: str, status: str) -> ProductItem:
        """
        Set a unit's status. Writing the status a unit already has is a no-op.

        Raises:
            InvalidStatus: Unknown status value
            ItemNotFound: Unknown serial number
            DependencyFailure: The store rejected the write
        """
        status = status.value if isinstance(status, ItemStatus) else status
        if status not in VALID_ITEM_STATUSES:
            raise InvalidStatus(
                f"Invalid item status '{status}'. Must be one of: {', '.join(VALID_ITEM_STATUSES)}"
            )

        with dependency_call(f"Reading unit {serial_number}"):
            item = self.get_item(serial_number)
        if item is None:
            raise ItemNotFound(f"Product item with serial number {serial_number} not found")

        if item.status == status:
            return item

        previous = item.status
        item.status = status
        with dependency_call(f"Updating unit {serial_number} to {status}"):
            item = self._items.update(item)
        logger.info(f"Unit {serial_number}: {previous} -> {status}")
        return item

    def find_available_replacement(self, product_id: int) -> ProductItem:
        """
        Get the available unit with the lowest item id.

        Raises:
            OutOfStock: No available unit for the product
        """
        with dependency_call(f"Looking up stock for product {product_id}"):
            candidates = self._items.find(QueryOptions(
                filters={"product_id": product_id, "status": ItemStatus.AVAILABLE.value},
                order_by="item_id",
                limit=1,
            ))
        if not candidates:
            logger.warning(f"No available units for product {product_id}")
            raise OutOfStock()
        return candidates[0]

    def claim_replacement(self, product_id: int) -> ProductItem:
        """
        Find an available unit and mark it Replaced in one optimistic write.

        A candidate claimed by someone else in the meantime is skipped in
        favour of the next available unit.

        Raises:
            OutOfStock: No available unit could be claimed
        """
        for _ in range(self.MAX_CLAIM_CANDIDATES):
            candidate = self.find_available_replacement(product_id)
            candidate.status = ItemStatus.REPLACED.value
            with dependency_call(f"Claiming unit {candidate.serial_number}"):
                try:
                    claimed = self._items.update(candidate)
                except ConcurrencyError:
                    logger.info(f"Unit {candidate.serial_number} claimed concurrently, trying next")
                    continue
            logger.info(f"Unit {claimed.serial_number} claimed as replacement for product {product_id}")
            return claimed
        raise OutOfStock(f"No replacement unit could be claimed for product {product_id}")

    def release_replacement(self, item: ProductItem) -> ProductItem:
        """
        Put a claimed replacement unit back in stock.

        Raises:
            DependencyFailure: The store rejected the write
        """
        released = self.set_item_status(item.serial_number, ItemStatus.AVAILABLE.value)
        logger.info(f"Replacement unit {item.serial_number} released back to stock")
        return released
