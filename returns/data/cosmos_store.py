"""
Azure Cosmos DB repository for the returns data.

One container per entity type, partitioned on ``/id`` where ``id`` is the
stringified entity key. Updates use the document ``_etag`` with an
``IfNotModified`` match condition so concurrent writers cannot overwrite
each other.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from azure.core import MatchConditions
from azure.cosmos import CosmosClient
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosHttpResponseError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from azure.identity import DefaultAzureCredential

from core.data import (
    ConcurrencyError,
    DuplicateKeyError,
    QueryOptions,
    Repository,
    StoreError,
    T,
)
from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    get_container_name,
)

logger = logging.getLogger(__name__)


def build_query(options: QueryOptions) -> Tuple[str, List[Dict[str, Any]]]:
    """Translate query options into a parameterised Cosmos SQL query."""
    clauses = []
    params = []
    for i, (field_name, value) in enumerate(options.filters.items()):
        clauses.append(f"c.{field_name} = @f{i}")
        params.append({"name": f"@f{i}", "value": value})
    for i, (field_name, value) in enumerate(options.exclude.items()):
        clauses.append(f"c.{field_name} != @x{i}")
        params.append({"name": f"@x{i}", "value": value})

    query = "SELECT * FROM c"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    if options.order_by:
        query += f" ORDER BY c.{options.order_by} {'DESC' if options.order_desc else 'ASC'}"
    if options.limit is not None:
        query += " OFFSET 0 LIMIT @limit"
        params.append({"name": "@limit", "value": options.limit})
    return query, params


class CosmosRepository(Repository[T]):
    """Repository backed by a Cosmos DB container."""

    def __init__(self, container, entity_type: type, key_field: str):
        super().__init__(entity_type, key_field)
        self._container = container

    def _to_document(self, entity: T) -> Dict[str, Any]:
        doc = entity.to_dict()
        doc["id"] = str(self.key_of(entity))
        return doc

    def _to_entity(self, doc: Dict[str, Any]) -> T:
        entity = self.entity_type.from_dict(doc)
        entity.etag = doc.get("_etag")
        return entity

    def get_by_id(self, id: Any) -> Optional[T]:
        try:
            doc = self._container.read_item(item=str(id), partition_key=str(id))
        except CosmosResourceNotFoundError:
            return None
        except CosmosHttpResponseError as e:
            raise StoreError(f"Failed to read {self.entity_type.__name__} {id}: {e}") from e
        return self._to_entity(doc)

    def find(self, options: Optional[QueryOptions] = None) -> List[T]:
        query, params = build_query(options or QueryOptions())
        try:
            items = list(self._container.query_items(
                query,
                parameters=params,
                enable_cross_partition_query=True,
            ))
        except CosmosHttpResponseError as e:
            raise StoreError(f"Query on {self.entity_type.__name__} failed: {e}") from e
        return [self._to_entity(doc) for doc in items]

    def add(self, entity: T) -> T:
        doc = self._to_document(entity)
        try:
            saved = self._container.create_item(body=doc)
        except CosmosResourceExistsError as e:
            raise DuplicateKeyError(f"{self.entity_type.__name__} {doc['id']} already exists") from e
        except CosmosHttpResponseError as e:
            raise StoreError(f"Failed to add {self.entity_type.__name__} {doc['id']}: {e}") from e
        entity.etag = saved.get("_etag")
        return entity

    def update(self, entity: T) -> T:
        doc = self._to_document(entity)
        try:
            saved = self._container.replace_item(
                item=doc["id"],
                body=doc,
                etag=entity.etag,
                match_condition=MatchConditions.IfNotModified,
            )
        except CosmosAccessConditionFailedError as e:
            raise ConcurrencyError(
                f"{self.entity_type.__name__} {doc['id']} was modified concurrently"
            ) from e
        except CosmosHttpResponseError as e:
            raise StoreError(f"Failed to update {self.entity_type.__name__} {doc['id']}: {e}") from e
        entity.etag = saved.get("_etag")
        return entity


class ReturnsCosmosClient:
    """Client for the returns database in Cosmos DB."""

    def __init__(self, endpoint: str = COSMOS_ENDPOINT, database_name: str = DATABASE_NAME):
        """Initialize the Cosmos DB client."""
        logger.info("Initializing Returns Cosmos DB client...")
        self._credential = DefaultAzureCredential(
            exclude_interactive_browser_credential=False,
            exclude_shared_token_cache_credential=False,
        )
        self._client = CosmosClient(endpoint, credential=self._credential)
        self._database = self._client.get_database_client(database_name)
        self._containers = {}
        logger.info(f"Connected to Cosmos DB: {database_name}")

    def get_container(self, name: str):
        """Get a container client, caching for reuse."""
        if name not in self._containers:
            container_name = get_container_name(name)
            self._containers[name] = self._database.get_container_client(container_name)
        return self._containers[name]

    def repository(self, name: str, entity_type: type, key_field: str) -> CosmosRepository:
        return CosmosRepository(self.get_container(name), entity_type, key_field)
