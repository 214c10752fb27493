from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from azure.core import MatchConditions
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from core.data import (
    CachingRepository,
    ConcurrencyError,
    DuplicateKeyError,
    QueryOptions,
    RepositoryReader,
    StoreError,
)
from returns.data import build_memory_repositories, seed_repositories
from returns.data.cosmos_store import CosmosRepository, build_query
from returns.data.memory_store import InMemoryRepository
from returns.domain.models import Policy, ProductItem, ReturnRequest


def make_item(item_id, status="Available", product_id=55):
    return ProductItem(item_id=item_id, product_id=product_id, serial_number=f"SN-{item_id}", status=status)


class TestInMemoryRepository:
    def setup_method(self):
        self.repo = InMemoryRepository(ProductItem, "item_id")
        for item_id, status in [(3, "Available"), (1, "Sold"), (2, "Available")]:
            self.repo.add(make_item(item_id, status))

    def test_get_returns_copy(self):
        item = self.repo.get_by_id(1)
        item.status = "Disposed"
        assert self.repo.get_by_id(1).status == "Sold"

    def test_get_missing(self):
        assert self.repo.get_by_id(99) is None

    def test_add_duplicate(self):
        with pytest.raises(DuplicateKeyError):
            self.repo.add(make_item(1))

    def test_update_bumps_etag(self):
        item = self.repo.get_by_id(1)
        old_etag = item.etag
        item.status = "Replaced"
        saved = self.repo.update(item)
        assert saved.etag != old_etag
        assert self.repo.get_by_id(1).status == "Replaced"

    def test_stale_update_rejected(self):
        first = self.repo.get_by_id(2)
        second = self.repo.get_by_id(2)
        first.status = "Replaced"
        self.repo.update(first)
        second.status = "Disposed"
        with pytest.raises(ConcurrencyError):
            self.repo.update(second)
        assert self.repo.get_by_id(2).status == "Replaced"

    def test_update_missing(self):
        with pytest.raises(StoreError):
            self.repo.update(make_item(42))

    def test_find_filters_orders_and_limits(self):
        available = self.repo.find(QueryOptions(filters={"status": "Available"}, order_by="item_id"))
        assert [i.item_id for i in available] == [2, 3]

        first = self.repo.find(QueryOptions(filters={"status": "Available"}, order_by="item_id", limit=1))
        assert [i.item_id for i in first] == [2]

        not_sold = self.repo.find(QueryOptions(exclude={"status": "Sold"}, order_by="item_id", order_desc=True))
        assert [i.item_id for i in not_sold] == [3, 2]

    def test_find_no_match_is_empty_list(self):
        assert self.repo.find(QueryOptions(filters={"product_id": 999})) == []

    def test_missing_values_sort_last(self):
        requests = InMemoryRepository(ReturnRequest, "request_id")
        now = datetime(2024, 6, 15, tzinfo=timezone.utc)
        for request_id, closed in [("A", None), ("B", now)]:
            requests.add(ReturnRequest(
                request_id=request_id, user_id=1, order_id=1, product_id=1,
                return_policy="30-day", reason="", request_date=now, closed_date=closed,
            ))
        ordered = requests.find(QueryOptions(order_by="closed_date"))
        assert [r.request_id for r in ordered] == ["B", "A"]


class TestReadOnlyRepositories:
    def test_caching_repository_serves_cached_policies(self):
        policies = InMemoryRepository(Policy, "policy_id")
        policies.add(Policy(policy_id=1, product_id=55, policy_type="30-day", duration=30))
        cached = CachingRepository(RepositoryReader(policies), ttl_seconds=300)

        assert len(cached.get_all()) == 1
        policies.add(Policy(policy_id=2, product_id=55, policy_type="Warranty", duration=365))
        assert len(cached.get_all()) == 1

    def test_zero_ttl_reads_through(self):
        policies = InMemoryRepository(Policy, "policy_id")
        policies.add(Policy(policy_id=1, product_id=55, policy_type="30-day", duration=30))
        cached = CachingRepository(RepositoryReader(policies), ttl_seconds=0)

        assert len(cached.get_all()) == 1
        policies.add(Policy(policy_id=2, product_id=55, policy_type="Warranty", duration=365))
        assert len(cached.where(lambda p: p.product_id == 55)) == 2


def test_seed_skips_existing_documents():
    repos = build_memory_repositories()
    dataset = {"product_items": [make_item(1).to_dict(), make_item(2).to_dict()]}
    assert seed_repositories(repos, dataset) == 2
    assert seed_repositories(repos, dataset) == 0
    assert repos.product_items.count() == 2


class TestBuildQuery:
    def test_select_all(self):
        assert build_query(QueryOptions()) == ("SELECT * FROM c", [])

    def test_filters_exclusions_order_and_limit(self):
        query, params = build_query(QueryOptions(
            filters={"product_id": 55, "status": "Available"},
            exclude={"status": "Closed"},
            order_by="item_id",
            limit=1,
        ))
        assert query == (
            "SELECT * FROM c WHERE c.product_id = @f0 AND c.status = @f1 AND c.status != @x0"
            " ORDER BY c.item_id ASC OFFSET 0 LIMIT @limit"
        )
        assert {"name": "@limit", "value": 1} in params
        assert {"name": "@f0", "value": 55} in params


class TestCosmosRepository:
    def setup_method(self):
        self.container = MagicMock()
        self.repo = CosmosRepository(self.container, ProductItem, "item_id")

    def test_add_sets_string_id_and_etag(self):
        self.container.create_item.return_value = {"_etag": "e1"}
        item = self.repo.add(make_item(3))
        body = self.container.create_item.call_args.kwargs["body"]
        assert body["id"] == "3"
        assert item.etag == "e1"

    def test_add_existing_raises_duplicate(self):
        self.container.create_item.side_effect = CosmosResourceExistsError(status_code=409, message="exists")
        with pytest.raises(DuplicateKeyError):
            self.repo.add(make_item(3))

    def test_get_missing_returns_none(self):
        self.container.read_item.side_effect = CosmosResourceNotFoundError(status_code=404, message="missing")
        assert self.repo.get_by_id(3) is None

    def test_get_reads_etag(self):
        self.container.read_item.return_value = dict(make_item(3).to_dict(), id="3", _etag="e7")
        assert self.repo.get_by_id(3).etag == "e7"

    def test_update_is_etag_conditional(self):
        self.container.replace_item.return_value = {"_etag": "e2"}
        item = make_item(3)
        item.etag = "e1"
        saved = self.repo.update(item)
        kwargs = self.container.replace_item.call_args.kwargs
        assert kwargs["etag"] == "e1"
        assert kwargs["match_condition"] == MatchConditions.IfNotModified
        assert saved.etag == "e2"

    def test_update_precondition_failure_is_concurrency_error(self):
        self.container.replace_item.side_effect = CosmosAccessConditionFailedError(
            status_code=412, message="precondition failed"
        )
        with pytest.raises(ConcurrencyError):
            self.repo.update(make_item(3))

    def test_find_queries_across_partitions(self):
        self.container.query_items.return_value = iter([dict(make_item(4).to_dict(), _etag="e4")])
        items = self.repo.find(QueryOptions(filters={"product_id": 55}))
        assert [i.item_id for i in items] == [4]
        assert self.container.query_items.call_args.kwargs["enable_cross_partition_query"] is True
