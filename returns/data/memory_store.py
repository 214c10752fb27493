"""
In-memory repository.

Keeps JSON documents in a dict, copied on the way in and out so callers
never share state with the store. Used for local runs and tests.
"""

import copy
import itertools
import logging
import threading
from typing import Any, Dict, List, Optional

from core.data import (
    ConcurrencyError,
    DuplicateKeyError,
    QueryOptions,
    Repository,
    StoreError,
    T,
)

logger = logging.getLogger(__name__)


class InMemoryRepository(Repository[T]):
    """
    Thread-safe in-memory repository with version-counter etags.

    Example:
        requests = InMemoryRepository(ReturnRequest, key_field="request_id")
    """

    def __init__(self, entity_type: type, key_field: str):
        super().__init__(entity_type, key_field)
        self._documents: Dict[Any, Dict[str, Any]] = {}
        self._versions: Dict[Any, int] = {}
        self._version_counter = itertools.count(1)
        self._lock = threading.Lock()

    def _to_entity(self, key: Any) -> T:
        entity = self.entity_type.from_dict(copy.deepcopy(self._documents[key]))
        entity.etag = str(self._versions[key])
        return entity

    def _write(self, key: Any, entity: T):
        self._documents[key] = copy.deepcopy(entity.to_dict())
        self._versions[key] = next(self._version_counter)
        entity.etag = str(self._versions[key])

    def get_by_id(self, id: Any) -> Optional[T]:
        with self._lock:
            if id not in self._documents:
                return None
            return self._to_entity(id)

    def find(self, options: Optional[QueryOptions] = None) -> List[T]:
        options = options or QueryOptions()
        with self._lock:
            keys = [key for key, doc in self._documents.items() if options.matches(doc)]
            if options.order_by:
                field_name = options.order_by
                keys.sort(
                    key=lambda k: (
                        self._documents[k].get(field_name) is None,
                        self._documents[k].get(field_name),
                    ),
                    reverse=options.order_desc,
                )
            if options.limit is not None:
                keys = keys[:options.limit]
            return [self._to_entity(key) for key in keys]

    def add(self, entity: T) -> T:
        key = self.key_of(entity)
        with self._lock:
            if key in self._documents:
                raise DuplicateKeyError(f"{self.entity_type.__name__} {key} already exists")
            self._write(key, entity)
        logger.debug(f"Added {self.entity_type.__name__} {key}")
        return entity

    def update(self, entity: T) -> T:
        key = self.key_of(entity)
        with self._lock:
            if key not in self._documents:
                raise StoreError(f"{self.entity_type.__name__} {key} does not exist")
            if entity.etag != str(self._versions[key]):
                raise ConcurrencyError(
                    f"{self.entity_type.__name__} {key} was modified concurrently "
                    f"(etag {entity.etag} != {self._versions[key]})"
                )
            self._write(key, entity)
        return entity

    def count(self) -> int:
        with self._lock:
            return len(self._documents)
