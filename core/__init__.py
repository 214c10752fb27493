"""
Core building blocks shared by the returns service.

- domain: pure rule interfaces (PolicyEngine, PolicyDecision), the status
  transition check and date helpers
- data: repository contracts, query options and store errors
"""

from .domain import (
    PolicyEngine,
    PolicyDecision,
    PolicyResult,
    StatusTransitionError,
    validate_status_transition,
)
from .data import (
    Repository,
    ReadOnlyRepository,
    RepositoryReader,
    CachingRepository,
    QueryOptions,
    StoreError,
    ConcurrencyError,
    DuplicateKeyError,
)

__all__ = [
    # Domain
    "PolicyEngine",
    "PolicyDecision",
    "PolicyResult",
    "StatusTransitionError",
    "validate_status_transition",
    # Data
    "Repository",
    "ReadOnlyRepository",
    "RepositoryReader",
    "CachingRepository",
    "QueryOptions",
    "StoreError",
    "ConcurrencyError",
    "DuplicateKeyError",
]
