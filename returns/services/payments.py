"""
Payment Coordinator.

Issues refund transactions for return requests. A refund only counts as
issued once its transaction record is stored.
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from core.data import QueryOptions, Repository
from core.domain import utc_now

from returns.domain.models import Transaction, TransactionType
from returns.errors import dependency_call

logger = logging.getLogger(__name__)


class PaymentCoordinator:
    """Records refund transactions."""

    def __init__(
        self,
        transactions: Repository[Transaction],
        clock: Callable[[], datetime] = utc_now,
    ):
        self._transactions = transactions
        self._clock = clock

    def process_payment(self, transaction: Transaction) -> Transaction:
        """
        Durably record a transaction.

        Raises:
            DependencyFailure: The transaction could not be stored
        """
        with dependency_call(f"{transaction.transaction_type} for request {transaction.request_id}"):
            saved = self._transactions.add(transaction)
        logger.info(
            f"{transaction.transaction_type} {transaction.transaction_id} of "
            f"{transaction.amount:.2f} recorded for request {transaction.request_id}"
        )
        return saved

    def issue_refund(self, request_id: str, amount: float) -> str:
        """Issue a refund and return its transaction id."""
        transaction = Transaction(
            transaction_id=str(uuid.uuid4()),
            request_id=request_id,
            transaction_type=TransactionType.REFUND.value,
            payment_date=self._clock(),
            amount=float(amount),
        )
        return self.process_payment(transaction).transaction_id

    def find_refund(self, request_id: str) -> Optional[Transaction]:
        """The refund already recorded for a request, if any."""
        with dependency_call(f"Looking up refund for request {request_id}"):
            return self._transactions.first(QueryOptions(
                filters={
                    "request_id": request_id,
                    "transaction_type": TransactionType.REFUND.value,
                },
                order_by="payment_date",
            ))

    def list_transactions(self, request_id: str) -> List[Transaction]:
        return self._transactions.find(QueryOptions(
            filters={"request_id": request_id},
            order_by="payment_date",
        ))
