"""
Move sample order dates forward so their returns can be opened today.

Each order is dated inside the shortest return window offered on the
products it contains, read from the policies container. Orders that are
still Shipped keep their status; every other order becomes Delivered.

Usage:
    python scripts/update_order_dates.py
"""

import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.data import QueryOptions
from returns.data import Repositories, build_cosmos_repositories
from returns.domain.models import OrderStatus

logger = logging.getLogger(__name__)


def shortest_windows(repositories: Repositories) -> Dict[int, int]:
    """Shortest policy duration in days per product id."""
    windows: Dict[int, int] = {}
    for policy in repositories.policies.find():
        current = windows.get(policy.product_id)
        if current is None or policy.duration < current:
            windows[policy.product_id] = policy.duration
    return windows


def refresh_order_dates(repositories: Repositories, now: Optional[datetime] = None) -> Dict[int, int]:
    """
    Re-date every order inside its shortest return window.

    Returns:
        order id -> return window in days the new date was chosen for
    """
    now = now or datetime.now(timezone.utc)
    windows = shortest_windows(repositories)
    if not windows:
        logger.warning("No return policies found, order dates left unchanged")
        return {}
    default_window = min(windows.values())

    chosen: Dict[int, int] = {}
    orders = sorted(repositories.orders.find(), key=lambda o: o.order_id)
    for i, order in enumerate(orders):
        lines = repositories.order_products.find(QueryOptions(filters={"order_id": order.order_id}))
        product_ids = {line.product_id for line in lines}
        window = min((windows[p] for p in product_ids if p in windows), default=default_window)
        days_ago = 1 + i % max(window - 1, 1)

        order.order_date = now - timedelta(days=days_ago)
        if order.order_status != OrderStatus.SHIPPED.value:
            order.order_status = OrderStatus.DELIVERED.value
        repositories.orders.update(order)
        chosen[order.order_id] = window
        logger.info(
            f"  Order {order.order_id}: {days_ago} days old, {order.order_status}, "
            f"shortest return window {window} days"
        )
    return chosen


def main():
    from returns.data.cosmos_store import ReturnsCosmosClient

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    repositories = build_cosmos_repositories(ReturnsCosmosClient())

    chosen = refresh_order_dates(repositories)
    if chosen:
        logger.info(
            f"Done. {len(chosen)} orders re-dated; each sits inside the shortest return "
            f"window of its products ({min(chosen.values())} to {max(chosen.values())} days)."
        )


if __name__ == "__main__":
    main()
