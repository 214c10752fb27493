"""
Returns Services.

Coordinators and the workflow engine. ``build_services`` wires them over a
set of repositories; every dependency is passed explicitly.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from core.data import CachingRepository, RepositoryReader
from core.domain import utc_now

from returns.data import Repositories
from .catalog import ProductCatalog
from .inventory import InventoryCoordinator
from .leases import RequestLease
from .orders import OrderLookup
from .payments import PaymentCoordinator
from .policy_evaluator import PolicyEvaluator
from .workflow import ReturnRequestWorkflow


@dataclass
class ReturnsServices:
    workflow: ReturnRequestWorkflow
    orders: OrderLookup
    policies: PolicyEvaluator
    inventory: InventoryCoordinator
    payments: PaymentCoordinator
    catalog: ProductCatalog


def build_services(
    repositories: Repositories,
    clock: Callable[[], datetime] = utc_now,
    policy_cache_ttl_seconds: int = 300,
    lease_seconds: int = 60,
) -> ReturnsServices:
    """Wire the coordinators and the workflow over the given repositories."""
    policy_reader = RepositoryReader(repositories.policies)
    if policy_cache_ttl_seconds > 0:
        policy_reader = CachingRepository(policy_reader, ttl_seconds=policy_cache_ttl_seconds)

    orders = OrderLookup(repositories.orders, repositories.order_products)
    policies = PolicyEvaluator(policy_reader, clock=clock)
    inventory = InventoryCoordinator(repositories.product_items)
    payments = PaymentCoordinator(repositories.transactions, clock=clock)
    workflow = ReturnRequestWorkflow(
        return_requests=repositories.return_requests,
        products=repositories.products,
        order_lookup=orders,
        policy_evaluator=policies,
        inventory=inventory,
        payments=payments,
        clock=clock,
        lease_seconds=lease_seconds,
    )
    return ReturnsServices(
        workflow=workflow,
        orders=orders,
        policies=policies,
        inventory=inventory,
        payments=payments,
        catalog=ProductCatalog(repositories.products),
    )


__all__ = [
    "ReturnsServices",
    "build_services",
    "InventoryCoordinator",
    "OrderLookup",
    "PaymentCoordinator",
    "ProductCatalog",
    "PolicyEvaluator",
    "RequestLease",
    "ReturnRequestWorkflow",
]
