"""
Request leases.

A lease is a short-lived claim written onto the return request document
itself. Claiming and committing both go through the repository's
etag-checked update, so two operations can never both hold a request.

Usage:
    with RequestLease(requests, request_id, ttl_seconds=60) as lease:
        ...side effects...
        lease.request.process = "Repaired"
        lease.commit()
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from core.data import ConcurrencyError, Repository, StoreError
from core.domain import utc_now

from returns.domain.models import ReturnRequest
from returns.errors import DependencyFailure, RequestConflict, RequestNotFound

logger = logging.getLogger(__name__)


def save_request(requests: Repository[ReturnRequest], request: ReturnRequest) -> ReturnRequest:
    """
    Write a return request with its etag.

    Raises:
        RequestConflict: The request changed since it was read
        DependencyFailure: The store rejected the write
    """
    try:
        return requests.update(request)
    except ConcurrencyError as e:
        logger.warning(f"Return request {request.request_id} was modified concurrently")
        raise RequestConflict() from e
    except StoreError as e:
        logger.error(f"Saving return request {request.request_id} failed: {e}", exc_info=True)
        raise DependencyFailure(f"Saving return request {request.request_id} failed") from e


class RequestLease:
    """Context manager holding exclusive use of one return request."""

    def __init__(
        self,
        requests: Repository[ReturnRequest],
        request_id: str,
        ttl_seconds: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._requests = requests
        self._request_id = request_id
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._token: Optional[str] = None
        self._committed = False
        self.request: Optional[ReturnRequest] = None

    def __enter__(self) -> "RequestLease":
        request = self._requests.get_by_id(self._request_id)
        if request is None:
            raise RequestNotFound()

        now = self._clock()
        if request.lease_active(now):
            logger.warning(f"Return request {self._request_id} is leased until {request.lease_expires_at}")
            raise RequestConflict()

        self._token = uuid.uuid4().hex
        request.lease_token = self._token
        request.lease_expires_at = now + self._ttl
        self.request = save_request(self._requests, request)
        logger.debug(f"Lease {self._token} taken on {self._request_id}")
        return self

    def commit(self) -> ReturnRequest:
        """Persist the request's changes and drop the lease in one write."""
        self.request.lease_token = None
        self.request.lease_expires_at = None
        saved = save_request(self._requests, self.request)
        self._committed = True
        return saved

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.request is not None and not self._committed:
            self._release()
        return False

    def _release(self):
        """Drop the lease without touching any other field."""
        try:
            current = self._requests.get_by_id(self._request_id)
            if current is None or current.lease_token != self._token:
                return
            current.lease_token = None
            current.lease_expires_at = None
            self._requests.update(current)
            logger.debug(f"Lease {self._token} released on {self._request_id}")
        except StoreError as e:
            logger.warning(
                f"Could not release lease on {self._request_id}, it expires on its own: {e}"
            )
