"""
Product Catalogue.

Adds, lists and edits the products returns are opened against. Product ids
are assigned here, one past the highest id in the catalogue.
"""

import logging
from typing import List, Optional

from core.data import ConcurrencyError, DuplicateKeyError, QueryOptions, Repository

from returns.domain.models import Product
from returns.errors import ProductConflict, ProductNotFound, dependency_call

logger = logging.getLogger(__name__)


class ProductCatalog:
    """Manages catalogue products."""

    # Id assignments retried when another add takes the same id first
    MAX_ID_ATTEMPTS = 5

    def __init__(self, products: Repository[Product]):
        self._products = products

    def list_products(self) -> List[Product]:
        with dependency_call("Listing products"):
            return self._products.find(QueryOptions(order_by="product_id"))

    def get_product(self, product_id: int) -> Product:
        """
        Raises:
            ProductNotFound: Unknown product id
        """
        with dependency_call(f"Reading product {product_id}"):
            product = self._products.get_by_id(product_id)
        if product is None:
            raise ProductNotFound()
        return product

    def add_product(self, name: str, price: float, description: str = "") -> Product:
        """
        Add a product under the next free id.

        Raises:
            ProductConflict: Concurrent adds kept taking the next id
            DependencyFailure: The store rejected the write
        """
        for _ in range(self.MAX_ID_ATTEMPTS):
            product = Product(
                product_id=self._next_product_id(),
                name=name,
                price=float(price),
                description=description,
            )
            with dependency_call(f"Adding product {name}"):
                try:
                    saved = self._products.add(product)
                except DuplicateKeyError:
                    logger.info(f"Product id {product.product_id} taken concurrently, retrying")
                    continue
            logger.info(f"Product {saved.product_id} '{name}' added at {saved.price:.2f}")
            return saved
        raise ProductConflict(f"Could not assign an id to product '{name}'")

    def update_product(
        self,
        product_id: int,
        name: str,
        price: float,
        description: str = "",
    ) -> Product:
        """
        Replace a product's name, price and description.

        Raises:
            ProductNotFound: Unknown product id
            ProductConflict: The product changed since it was read
            DependencyFailure: The store rejected the write
        """
        product = self.get_product(product_id)
        product.name = name
        product.price = float(price)
        product.description = description
        with dependency_call(f"Updating product {product_id}"):
            try:
                saved = self._products.update(product)
            except ConcurrencyError as e:
                logger.warning(f"Product {product_id} was modified concurrently")
                raise ProductConflict() from e
        logger.info(f"Product {product_id} updated")
        return saved

    def _next_product_id(self) -> int:
        with dependency_call("Reading highest product id"):
            latest: Optional[Product] = self._products.first(QueryOptions(
                order_by="product_id",
                order_desc=True,
                limit=1,
            ))
        return latest.product_id + 1 if latest else 1
