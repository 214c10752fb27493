"""
Repository contracts for the returns data.

Services talk to storage only through these interfaces, so the same
workflow runs over the in-memory store in tests and over Cosmos DB in
deployment.

Contract:
- Entities go in and come out as dataclasses, never raw documents
- Single lookups return None when absent; queries return a (possibly empty) list
- Writes are optimistic: ``update`` is rejected when the entity's etag is stale
- Store failures are raised as ``StoreError`` (or a subclass)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from datetime import datetime, timedelta, timezone

T = TypeVar("T")


class StoreError(Exception):
    """The backing store could not complete an operation."""


class ConcurrencyError(StoreError):
    """An update carried an etag that no longer matches the stored entity."""


class DuplicateKeyError(StoreError):
    """An add collided with an existing key."""


@dataclass
class QueryOptions:
    """
    Backend-neutral query description.

    Attributes:
        filters: field == value conditions, all of which must hold
        exclude: field != value conditions, all of which must hold
        order_by: Field to sort on (documents missing it sort last)
        order_desc: Reverse the sort
        limit: Cap on the number of results
    """
    filters: Dict[str, Any] = field(default_factory=dict)
    exclude: Dict[str, Any] = field(default_factory=dict)
    order_by: Optional[str] = None
    order_desc: bool = False
    limit: Optional[int] = None

    def matches(self, document: Dict[str, Any]) -> bool:
        if any(document.get(k) != v for k, v in self.filters.items()):
            return False
        return all(document.get(k) != v for k, v in self.exclude.items())


class Repository(ABC, Generic[T]):
    """
    Read/write access to one entity type.

    ``entity_type`` must provide ``to_dict()``, ``from_dict()`` and an
    ``etag`` attribute; the repository owns the etag and refreshes it on
    every successful write.

    Example:
        requests = InMemoryRepository(ReturnRequest, key_field="request_id")
        request = requests.get_by_id("RET-1A2B3C4D")
    """

    def __init__(self, entity_type: type, key_field: str):
        self.entity_type = entity_type
        self.key_field = key_field

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[T]:
        """The entity stored under ``id``, or None."""

    @abstractmethod
    def find(self, options: Optional[QueryOptions] = None) -> List[T]:
        """Entities matching ``options`` (all entities when omitted)."""

    @abstractmethod
    def add(self, entity: T) -> T:
        """
        Store a new entity.

        Raises:
            DuplicateKeyError: The key is already taken
        """

    @abstractmethod
    def update(self, entity: T) -> T:
        """
        Overwrite a stored entity if nobody changed it since it was read.

        Returns:
            The same entity, carrying its new etag

        Raises:
            ConcurrencyError: ``entity.etag`` is stale
            StoreError: The entity does not exist or the write failed
        """

    def first(self, options: Optional[QueryOptions] = None) -> Optional[T]:
        results = self.find(options)
        return results[0] if results else None

    def key_of(self, entity: T) -> Any:
        return getattr(entity, self.key_field)


class ReadOnlyRepository(ABC, Generic[T]):
    """Reference data the workflow reads but never writes (return policies)."""

    @abstractmethod
    def get_all(self) -> List[T]:
        """Every entity."""

    def where(self, predicate: Callable[[T], bool]) -> List[T]:
        return [entity for entity in self.get_all() if predicate(entity)]


class RepositoryReader(ReadOnlyRepository[T]):
    """Read-only view over a full repository."""

    def __init__(self, inner: Repository[T]):
        self._inner = inner

    def get_all(self) -> List[T]:
        return self._inner.find()


class CachingRepository(ReadOnlyRepository[T]):
    """
    Keeps the full contents of a read-only repository for ``ttl_seconds``.

    Policies change rarely and are read on every open, so the evaluator
    reads them through this wrapper.
    """

    def __init__(self, inner: ReadOnlyRepository[T], ttl_seconds: int = 300):
        self._inner = inner
        self._ttl = timedelta(seconds=ttl_seconds)
        self._entities: List[T] = []
        self._expires_at: Optional[datetime] = None

    def get_all(self) -> List[T]:
        now = datetime.now(timezone.utc)
        if self._expires_at is None or now >= self._expires_at:
            self._entities = self._inner.get_all()
            self._expires_at = now + self._ttl
        return self._entities
