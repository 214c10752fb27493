"""
Returns Data Layer.

Bundles one repository per entity type and builds the bundle for the
configured storage backend (in-memory or Cosmos DB).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from core.data import DuplicateKeyError, Repository

from returns.domain.models import (
    Order,
    OrderProduct,
    Policy,
    Product,
    ProductItem,
    ReturnRequest,
    Transaction,
)
from .memory_store import InMemoryRepository

logger = logging.getLogger(__name__)


# logical container name -> (entity type, key field)
ENTITY_REGISTRY = {
    "return_requests": (ReturnRequest, "request_id"),
    "orders": (Order, "order_id"),
    "order_products": (OrderProduct, "order_product_id"),
    "products": (Product, "product_id"),
    "product_items": (ProductItem, "item_id"),
    "policies": (Policy, "policy_id"),
    "transactions": (Transaction, "transaction_id"),
}


@dataclass
class Repositories:
    """One repository per entity type."""
    return_requests: Repository[ReturnRequest]
    orders: Repository[Order]
    order_products: Repository[OrderProduct]
    products: Repository[Product]
    product_items: Repository[ProductItem]
    policies: Repository[Policy]
    transactions: Repository[Transaction]


def build_memory_repositories() -> Repositories:
    """Create empty in-memory repositories."""
    return Repositories(**{
        name: InMemoryRepository(entity_type, key_field)
        for name, (entity_type, key_field) in ENTITY_REGISTRY.items()
    })


def build_cosmos_repositories(client) -> Repositories:
    """Create Cosmos DB repositories from a ``ReturnsCosmosClient``."""
    return Repositories(**{
        name: client.repository(name, entity_type, key_field)
        for name, (entity_type, key_field) in ENTITY_REGISTRY.items()
    })


def seed_repositories(repositories: Repositories, dataset: Dict[str, List[Dict[str, Any]]]) -> int:
    """
    Load documents into the repositories, skipping ones that already exist.

    Args:
        repositories: Target repositories
        dataset: Mapping of logical container name to a list of documents

    Returns:
        Number of entities added
    """
    added = 0
    for name, documents in dataset.items():
        entity_type, _ = ENTITY_REGISTRY[name]
        repository = getattr(repositories, name)
        for doc in documents:
            try:
                repository.add(entity_type.from_dict(doc))
                added += 1
            except DuplicateKeyError:
                logger.debug(f"Skipping existing {name} document")
    logger.info(f"Seeded {added} entities")
    return added
