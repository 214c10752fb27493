"""
Errors raised by the returns workflow.

Every error carries an ``ErrorKind`` so callers (the HTTP layer, scripts,
tests) can match on the kind instead of the concrete class.
"""

import logging
from contextlib import contextmanager
from enum import Enum

from core.data import StoreError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Semantic error categories."""
    NOT_FOUND = "not_found"
    POLICY_VIOLATION = "policy_violation"
    INVALID_INPUT = "invalid_input"
    OUT_OF_STOCK = "out_of_stock"
    DEPENDENCY_FAILURE = "dependency_failure"
    CONFLICT = "conflict"


# HTTP status equivalents used by the API layer
HTTP_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.POLICY_VIOLATION: 400,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.OUT_OF_STOCK: 400,
    ErrorKind.DEPENDENCY_FAILURE: 500,
    ErrorKind.CONFLICT: 409,
}


class ReturnsError(Exception):
    """Base class for all returns workflow errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    default_message = "Return request could not be processed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        return {
            "status_code": self.status_code,
            "message": self.message,
            "kind": self.kind.value,
        }


# =============================================================================
# NOT FOUND
# =============================================================================

class RequestNotFound(ReturnsError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Return request not found"


class InvalidOrder(ReturnsError):
    """The order is missing, owned by someone else, or not delivered."""
    kind = ErrorKind.NOT_FOUND
    default_message = "Invalid Order"


class LineItemNotFound(ReturnsError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Product Not Found in the Order"


class ItemNotFound(ReturnsError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Product item not found"


class ProductNotFound(ReturnsError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Product not found"


# =============================================================================
# POLICY VIOLATIONS
# =============================================================================

class PolicyNotApplicable(ReturnsError):
    kind = ErrorKind.POLICY_VIOLATION
    default_message = "Specified Return Policy is not Applicable for this Product"


class PolicyExpired(ReturnsError):
    kind = ErrorKind.POLICY_VIOLATION
    default_message = "The Return Policy Duration has been Exceeded"


# =============================================================================
# INVALID INPUT
# =============================================================================

class InvalidProcess(ReturnsError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid Process"


class InvalidSerialNumber(ReturnsError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid Serial Number"


class InvalidStatus(ReturnsError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid status"


class RequestClosed(ReturnsError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Return request is already closed"


# =============================================================================
# STOCK / DEPENDENCIES / CONCURRENCY
# =============================================================================

class OutOfStock(ReturnsError):
    kind = ErrorKind.OUT_OF_STOCK
    default_message = "Product Out of Stock for Replacement"


class DependencyFailure(ReturnsError):
    """A collaborator (store, inventory, payment) failed mid-operation."""
    kind = ErrorKind.DEPENDENCY_FAILURE
    default_message = "A downstream operation failed"


class RequestConflict(ReturnsError):
    """Another operation is modifying the same return request."""
    kind = ErrorKind.CONFLICT
    default_message = "Return request is being modified by another operation"


class ProductConflict(ReturnsError):
    kind = ErrorKind.CONFLICT
    default_message = "Product was modified by another operation"


@contextmanager
def dependency_call(description: str):
    """
    Translate store failures raised inside the block into DependencyFailure.

    Usage:
        with dependency_call(f"Refund for {request_id}"):
            transactions.add(transaction)
    """
    try:
        yield
    except StoreError as e:
        logger.error(f"{description} failed: {e}", exc_info=True)
        raise DependencyFailure(f"{description} failed") from e
