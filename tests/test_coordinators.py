from datetime import timedelta

import pytest

from core.data import StoreError
from returns.data.memory_store import InMemoryRepository
from returns.domain.models import ItemStatus, Product, ProductItem
from returns.errors import (
    DependencyFailure,
    ErrorKind,
    InvalidOrder,
    InvalidStatus,
    ItemNotFound,
    LineItemNotFound,
    OutOfStock,
    PolicyExpired,
    PolicyNotApplicable,
    ProductConflict,
    ProductNotFound,
)
from returns.services import InventoryCoordinator, ProductCatalog

from conftest import FIXED_NOW


class RacingItems(InMemoryRepository):
    """Another reviewer claims the first candidate just before our write lands."""

    def __init__(self):
        super().__init__(ProductItem, "item_id")
        self.race_pending = True

    def update(self, entity):
        if self.race_pending and entity.status == ItemStatus.REPLACED.value:
            self.race_pending = False
            rival = self.get_by_id(self.key_of(entity))
            rival.status = ItemStatus.REPLACED.value
            super().update(rival)
        return super().update(entity)


class BrokenItems(InMemoryRepository):
    def update(self, entity):
        raise StoreError("inventory store unavailable")


def stocked(repository, *statuses):
    for item_id, status in enumerate(statuses, start=1):
        repository.add(ProductItem(item_id=item_id, product_id=55, serial_number=f"HP-{item_id}", status=status))
    return repository


class TestInventoryCoordinator:
    def test_lowest_available_item_is_chosen(self):
        inventory = InventoryCoordinator(stocked(InMemoryRepository(ProductItem, "item_id"),
                                                 "Sold", "Available", "Available"))
        assert inventory.find_available_replacement(55).serial_number == "HP-2"

    def test_out_of_stock(self):
        inventory = InventoryCoordinator(stocked(InMemoryRepository(ProductItem, "item_id"), "Sold"))
        with pytest.raises(OutOfStock):
            inventory.find_available_replacement(55)
        with pytest.raises(OutOfStock):
            inventory.claim_replacement(55)

    def test_claim_skips_unit_taken_concurrently(self):
        items = stocked(RacingItems(), "Available", "Available")
        inventory = InventoryCoordinator(items)

        claimed = inventory.claim_replacement(55)

        assert claimed.serial_number == "HP-2"
        assert [i.status for i in items.find()] == ["Replaced", "Replaced"]

    def test_claim_fails_when_last_unit_taken_concurrently(self):
        inventory = InventoryCoordinator(stocked(RacingItems(), "Available"))
        with pytest.raises(OutOfStock):
            inventory.claim_replacement(55)

    def test_set_status(self):
        items = stocked(InMemoryRepository(ProductItem, "item_id"), "Sold")
        inventory = InventoryCoordinator(items)
        assert inventory.set_item_status("HP-1", "Disposed").status == "Disposed"
        assert items.get_by_id(1).status == "Disposed"

    def test_set_same_status_does_not_write(self):
        inventory = InventoryCoordinator(stocked(BrokenItems(ProductItem, "item_id"), "Sold"))
        assert inventory.set_item_status("HP-1", ItemStatus.SOLD).status == "Sold"

    def test_set_status_rejects_unknown_values(self):
        inventory = InventoryCoordinator(stocked(InMemoryRepository(ProductItem, "item_id"), "Sold"))
        with pytest.raises(InvalidStatus):
            inventory.set_item_status("HP-1", "Lost")

    def test_set_status_unknown_serial(self):
        inventory = InventoryCoordinator(InMemoryRepository(ProductItem, "item_id"))
        with pytest.raises(ItemNotFound):
            inventory.set_item_status("HP-404", "Available")

    def test_store_failure_is_dependency_failure(self):
        inventory = InventoryCoordinator(stocked(BrokenItems(ProductItem, "item_id"), "Sold"))
        with pytest.raises(DependencyFailure):
            inventory.set_item_status("HP-1", "Available")

    def test_list_items_by_status(self, services):
        available = services.inventory.list_items(55, "Available")
        assert [i.serial_number for i in available] == ["HP-55-0003", "HP-55-0004"]
        assert len(services.inventory.list_items(55)) == 4

    def test_release_replacement_restocks_claimed_unit(self):
        items = stocked(InMemoryRepository(ProductItem, "item_id"), "Available")
        inventory = InventoryCoordinator(items)
        claimed = inventory.claim_replacement(55)

        inventory.release_replacement(claimed)

        assert items.get_by_id(1).status == "Available"
        assert inventory.claim_replacement(55).serial_number == "HP-1"


class TestPaymentCoordinator:
    def test_issue_refund_records_transaction(self, services):
        transaction_id = services.payments.issue_refund("RET-1", 89.5)
        transactions = services.payments.list_transactions("RET-1")

        assert [t.transaction_id for t in transactions] == [transaction_id]
        assert transactions[0].amount == 89.5
        assert transactions[0].payment_date == FIXED_NOW

    def test_transactions_ordered_by_payment_date(self, services, clock):
        first = services.payments.issue_refund("RET-1", 10)
        clock.advance(days=1)
        second = services.payments.issue_refund("RET-1", 20)
        services.payments.issue_refund("RET-2", 30)

        assert [t.transaction_id for t in services.payments.list_transactions("RET-1")] == [first, second]

    def test_find_refund(self, services):
        assert services.payments.find_refund("RET-1") is None
        transaction_id = services.payments.issue_refund("RET-1", 89.5)
        assert services.payments.find_refund("RET-1").transaction_id == transaction_id


class TestPolicyEvaluator:
    def test_approved_decision_carries_policy(self, services):
        decision = services.policies.evaluate(55, "Warranty", FIXED_NOW - timedelta(days=200))
        assert decision.is_approved
        assert decision.metadata["policy"].policy_id == 2
        assert decision.metadata["days_remaining"] == 165

    def test_unknown_policy_type(self, services):
        with pytest.raises(PolicyNotApplicable):
            services.policies.evaluate(57, "30-day", FIXED_NOW)

    def test_expired(self, services):
        with pytest.raises(PolicyExpired):
            services.policies.evaluate(57, "14-day", FIXED_NOW - timedelta(days=15))


class TestOrderLookup:
    def test_resolve_delivered_order_line(self, services):
        line = services.orders.resolve_delivered_order_line(100, 7, 56)
        assert line.serial_number == "SW-56-0001"
        assert line.order.order_id == 100
        assert line.order.order_date == FIXED_NOW - timedelta(days=10)
        with pytest.raises(InvalidOrder):
            services.orders.resolve_delivered_order_line(104, 9, 55)
        with pytest.raises(LineItemNotFound):
            services.orders.resolve_delivered_order_line(101, 8, 55)

    def test_find_line_by_serial(self, services):
        line = services.orders.find_line(100, "SW-56-0001")
        assert line.order_product_id == 2
        assert line.product_id == 56
        assert services.orders.find_line(101, "SW-56-0001") is None

    def test_rebind_serial_number(self, services, repositories):
        line = services.orders.find_line(100, "HP-55-0001")
        services.orders.rebind_serial_number(line, "HP-55-0004")
        assert repositories.order_products.get_by_id(1).serial_number == "HP-55-0004"


class RacingProducts(InMemoryRepository):
    """Another add takes the next id just before ours lands."""

    def __init__(self):
        super().__init__(Product, "product_id")
        self.race_pending = True

    def add(self, entity):
        if self.race_pending:
            self.race_pending = False
            super().add(Product(product_id=entity.product_id, name="Rival", price=1.0))
        return super().add(entity)


class EditedElsewhere(InMemoryRepository):
    """Someone else saves the product between our read and our write."""

    def update(self, entity):
        super().update(self.get_by_id(self.key_of(entity)))
        return super().update(entity)


class TestProductCatalog:
    def test_add_assigns_next_id(self, services, repositories):
        product = services.catalog.add_product("Earbuds", 59, "Wireless")
        assert product.product_id == 58
        assert product.price == 59.0
        assert repositories.products.get_by_id(58).name == "Earbuds"

    def test_first_product_gets_id_one(self):
        catalog = ProductCatalog(InMemoryRepository(Product, "product_id"))
        assert catalog.add_product("Earbuds", 59).product_id == 1

    def test_add_retries_when_id_taken_concurrently(self):
        products = RacingProducts()
        catalog = ProductCatalog(products)
        assert catalog.add_product("Earbuds", 59).product_id == 2
        assert products.get_by_id(1).name == "Rival"

    def test_list_products(self, services):
        assert [p.name for p in services.catalog.list_products()] == [
            "Noise Cancelling Headphones", "Smart Watch", "Bluetooth Speaker",
        ]

    def test_update_product(self, services, repositories):
        updated = services.catalog.update_product(57, "Bluetooth Speaker Mini", 69.5)
        assert updated.price == 69.5
        assert repositories.products.get_by_id(57).name == "Bluetooth Speaker Mini"

    def test_update_unknown_product(self, services):
        with pytest.raises(ProductNotFound):
            services.catalog.update_product(999, "Ghost", 1)

    def test_concurrent_update_is_conflict(self):
        products = EditedElsewhere(Product, "product_id")
        products.add(Product(product_id=55, name="Headphones", price=199.99))
        with pytest.raises(ProductConflict) as exc:
            ProductCatalog(products).update_product(55, "Headphones II", 219.0)
        assert exc.value.kind == ErrorKind.CONFLICT
        assert products.get_by_id(55).name == "Headphones"
