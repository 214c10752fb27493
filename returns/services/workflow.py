"""
Return Request Workflow.

Owns the lifecycle of a return request:

    Pending --serial number confirmed--> Processing --close--> Closed

Opening validates the order and the return policy. A technical review
dispatches to one outcome handler which may issue a refund, change unit
statuses or swap the unit on the order, and only records the outcome on the
request after every side effect succeeded. Side effects run in a fixed
order (refund before inventory, replacement claim before disposal) so a
failure part way leaves the request as it was and the call can be retried.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from core.data import QueryOptions, Repository
from core.domain import (
    StatusTransitionError,
    utc_now,
    validate_status_transition,
)

from returns.domain.models import (
    REQUEST_STATUS_TRANSITIONS,
    ItemStatus,
    OrderProduct,
    Product,
    ProductItem,
    RequestStatus,
    ReturnRequest,
    ReviewOutcome,
    Transaction,
)
from returns.errors import (
    InvalidProcess,
    InvalidSerialNumber,
    InvalidStatus,
    LineItemNotFound,
    RequestClosed,
    RequestConflict,
    RequestNotFound,
    dependency_call,
)
from .inventory import InventoryCoordinator
from .leases import RequestLease, save_request
from .orders import OrderLookup
from .payments import PaymentCoordinator
from .policy_evaluator import PolicyEvaluator

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    return f"RET-{uuid.uuid4().hex[:8].upper()}"


class ReturnRequestWorkflow:
    """
    The return request workflow engine.

    Stateless between calls: every operation reads what it needs from the
    repositories and coordinators passed in at construction.
    """

    def __init__(
        self,
        return_requests: Repository[ReturnRequest],
        products: Repository[Product],
        order_lookup: OrderLookup,
        policy_evaluator: PolicyEvaluator,
        inventory: InventoryCoordinator,
        payments: PaymentCoordinator,
        clock: Callable[[], datetime] = utc_now,
        lease_seconds: int = 60,
    ):
        self._requests = return_requests
        self._products = products
        self._orders = order_lookup
        self._policies = policy_evaluator
        self._inventory = inventory
        self._payments = payments
        self._clock = clock
        self._lease_seconds = lease_seconds
        self._handlers: Dict[ReviewOutcome, Callable[[ReturnRequest], None]] = {
            ReviewOutcome.RETURN_GOOD: self._handle_return_good,
            ReviewOutcome.RETURN_BAD: self._handle_return_bad,
            ReviewOutcome.REPLACE_REPAIRED: self._handle_replace_repaired,
            ReviewOutcome.REPLACE_BAD: self._handle_replace_bad,
            ReviewOutcome.REPAIRED: self._handle_repaired,
        }

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def open_return_request(
        self,
        user_id: int,
        order_id: int,
        product_id: int,
        return_policy: str,
        reason: str,
    ) -> ReturnRequest:
        """
        Open a return request in Pending status.

        Raises:
            InvalidOrder: Order missing, not the user's, or not delivered
            LineItemNotFound: Product not on the order
            PolicyNotApplicable: Product has no such return policy
            PolicyExpired: Policy duration exceeded
        """
        line = self._orders.resolve_delivered_order_line(order_id, user_id, product_id)
        decision = self._policies.evaluate(product_id, return_policy, line.order.order_date)

        request = ReturnRequest(
            request_id=new_request_id(),
            user_id=user_id,
            order_id=order_id,
            product_id=product_id,
            return_policy=return_policy,
            reason=reason,
            request_date=self._clock(),
            status=RequestStatus.PENDING.value,
        )
        with dependency_call(f"Opening return request for order {order_id}"):
            request = self._requests.add(request)

        logger.info(
            f"Return request {request.request_id} opened by user {user_id} for product "
            f"{product_id} on order {order_id} ({decision.reason})"
        )
        return request

    def update_user_serial_number(self, request_id: str, serial_number: str) -> ReturnRequest:
        """
        Confirm the unit under dispute and move the request to Processing.

        Raises:
            RequestNotFound: Unknown request
            RequestClosed: Request already closed
            InvalidSerialNumber: No line on the request's order carries the serial
        """
        request = self._get_request(request_id)
        self._ensure_not_leased(request)
        if request.is_closed:
            raise RequestClosed()

        if self._orders.find_line(request.order_id, serial_number) is None:
            logger.warning(f"Serial {serial_number} is not on order {request.order_id}")
            raise InvalidSerialNumber()

        self._transition(request, RequestStatus.PROCESSING)
        request.serial_number = serial_number
        request = save_request(self._requests, request)

        logger.info(f"Return request {request_id} bound to unit {serial_number}")
        return request

    def technical_review(self, request_id: str, process: str, feedback: Optional[str]) -> ReturnRequest:
        """
        Apply a technical review outcome.

        The outcome and feedback are only recorded once the handler's side
        effects have all succeeded.

        Raises:
            InvalidProcess: Unrecognized outcome (checked first, nothing is read or written)
            RequestNotFound: Unknown request
            RequestClosed: Request already closed
            InvalidSerialNumber: No unit confirmed for the request yet
            RequestConflict: Another operation holds the request
            OutOfStock: No replacement unit (replace outcomes)
            DependencyFailure: A refund or inventory write failed
        """
        outcome = ReviewOutcome.parse(process)
        if outcome is None:
            logger.warning(f"Invalid technical review outcome '{process}' for {request_id}")
            raise InvalidProcess()

        request = self._get_request(request_id)
        self._ensure_reviewable(request)

        with RequestLease(self._requests, request_id, self._lease_seconds, self._clock) as lease:
            self._ensure_reviewable(lease.request)
            self._handlers[outcome](lease.request)
            lease.request.process = outcome.value
            lease.request.feedback = feedback
            request = lease.commit()

        logger.info(f"Technical review of {request_id} completed: {outcome.value}")
        return request

    def close_return_request(self, closed_by: int, request_id: str, feedback: Optional[str]) -> ReturnRequest:
        """
        Close a return request from any status. Closing an already closed
        request overwrites the closing details.

        Raises:
            RequestNotFound: Unknown request
        """
        request = self._get_request(request_id)
        self._ensure_not_leased(request)

        self._transition(request, RequestStatus.CLOSED)
        request.feedback = feedback
        request.closed_date = self._clock()
        request.closed_by = closed_by
        request = save_request(self._requests, request)

        logger.info(f"Return request {request_id} closed by user {closed_by}")
        return request

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_all_return_requests(self) -> List[ReturnRequest]:
        """All requests that are not closed, with related entities resolved."""
        requests = self._requests.find(QueryOptions(
            exclude={"status": RequestStatus.CLOSED.value},
            order_by="request_date",
        ))
        return [self._resolve_related(r) for r in requests]

    def get_all_user_return_requests(self, user_id: int) -> List[ReturnRequest]:
        """Every request of a user, closed ones included."""
        requests = self._requests.find(QueryOptions(
            filters={"user_id": user_id},
            order_by="request_date",
        ))
        return [self._resolve_related(r) for r in requests]

    def get_return_request(self, request_id: str) -> ReturnRequest:
        return self._resolve_related(self._get_request(request_id))

    def get_transactions(self, request_id: str) -> List[Transaction]:
        self._get_request(request_id)
        return self._payments.list_transactions(request_id)

    # =========================================================================
    # OUTCOME HANDLERS
    # =========================================================================

    def _handle_return_good(self, request: ReturnRequest):
        self._refund(request)
        self._inventory.set_item_status(request.serial_number, ItemStatus.AVAILABLE.value)

    def _handle_return_bad(self, request: ReturnRequest):
        self._refund(request)
        self._inventory.set_item_status(request.serial_number, ItemStatus.DISPOSED.value)

    def _handle_replace_repaired(self, request: ReturnRequest) -> ProductItem:
        line = self._line_for_unit(request)
        original = line.serial_number
        replacement = self._inventory.claim_replacement(line.product_id)

        try:
            self._orders.rebind_serial_number(line, replacement.serial_number)
        except Exception:
            self._release(replacement, request)
            raise

        try:
            self._inventory.set_item_status(original, ItemStatus.DISPOSED.value)
        except Exception:
            # Put the original unit back on the line so a retry starts over
            try:
                self._orders.rebind_serial_number(line, original)
            except Exception:
                logger.error(
                    f"Could not restore unit {original} on line {line.order_product_id} "
                    f"for {request.request_id}; replacement {replacement.serial_number} stays bound",
                    exc_info=True,
                )
            else:
                self._release(replacement, request)
            raise
        return replacement

    def _handle_replace_bad(self, request: ReturnRequest):
        # Same end state as a repaired replacement: the original unit is
        # disposed once, the replacement is claimed and bound to the order.
        self._handle_replace_repaired(request)

    def _handle_repaired(self, request: ReturnRequest):
        self._inventory.set_item_status(request.serial_number, ItemStatus.REPAIRED.value)

    def _refund(self, request: ReturnRequest) -> str:
        # A retried review reuses the refund an earlier failed attempt recorded
        existing = self._payments.find_refund(request.request_id)
        if existing is not None:
            logger.info(f"Refund {existing.transaction_id} already issued for {request.request_id}")
            return existing.transaction_id

        line = self._line_for_unit(request)
        return self._payments.issue_refund(request.request_id, line.price)

    def _line_for_unit(self, request: ReturnRequest) -> OrderProduct:
        # The confirmed unit may sit on any line of the order, not only the
        # line of the product the request was opened for.
        line = self._orders.find_line(request.order_id, request.serial_number)
        if line is None:
            raise LineItemNotFound(f"Unit {request.serial_number} is no longer on order {request.order_id}")
        return line

    def _release(self, replacement: ProductItem, request: ReturnRequest):
        try:
            self._inventory.release_replacement(replacement)
        except Exception:
            logger.error(
                f"Replacement unit {replacement.serial_number} claimed for "
                f"{request.request_id} could not be released",
                exc_info=True,
            )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _get_request(self, request_id: str) -> ReturnRequest:
        request = self._requests.get_by_id(request_id)
        if request is None:
            raise RequestNotFound()
        return request

    def _ensure_not_leased(self, request: ReturnRequest):
        if request.lease_active(self._clock()):
            logger.warning(f"Return request {request.request_id} is under technical review")
            raise RequestConflict()

    def _ensure_reviewable(self, request: ReturnRequest):
        if request.is_closed:
            raise RequestClosed()
        if not request.serial_number:
            raise InvalidSerialNumber("Serial number has not been confirmed for this return request")

    def _transition(self, request: ReturnRequest, status: RequestStatus):
        try:
            validate_status_transition(
                request.status, status.value, REQUEST_STATUS_TRANSITIONS, "return request"
            )
        except StatusTransitionError as e:
            raise InvalidStatus(str(e)) from e
        request.status = status.value

    def _resolve_related(self, request: ReturnRequest) -> ReturnRequest:
        request.transactions = self._payments.list_transactions(request.request_id)
        request.product = self._products.get_by_id(request.product_id)
        request.order = self._orders.get_order(request.order_id)
        return request
