"""
Eligibility rules checked when a return request is opened.

The order lookup and policy evaluator gather the facts (order owner and
status, order date, policy duration, current time) and pass them in a
context dict; the rules themselves never read storage.
"""

from datetime import timedelta, timezone
from typing import Any, Dict

from core.domain import (
    PolicyEngine,
    PolicyDecision,
    PolicyResult,
    days_between,
    utc_now,
)

from .models import OrderStatus


# Denial codes
ORDER_NOT_FOUND = "order_not_found"
ORDER_NOT_OWNED = "order_not_owned"
ORDER_NOT_DELIVERED = "order_not_delivered"
POLICY_EXPIRED = "policy_expired"


class DeliveredOrderPolicy(PolicyEngine):
    """
    Policy for checking that an order can have items returned.

    Context required:
        - order_exists: Whether the order was found
        - order_user_id: Owner of the order
        - user_id: User opening the return
        - order_status: Order status string
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        if not context.get("order_exists"):
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason="Order not found",
                code=ORDER_NOT_FOUND,
            )

        if context.get("order_user_id") != context.get("user_id"):
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason="Order belongs to a different user",
                code=ORDER_NOT_OWNED,
                metadata={"user_id": context.get("user_id")},
            )

        order_status = context.get("order_status")
        if order_status != OrderStatus.DELIVERED.value:
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason=f"Order status '{order_status}' is not eligible for returns. Order must be delivered.",
                code=ORDER_NOT_DELIVERED,
                metadata={"order_status": order_status},
            )

        return PolicyDecision(
            result=PolicyResult.APPROVED,
            reason="Order is eligible for return",
        )


class ReturnWindowPolicy(PolicyEngine):
    """
    Policy for checking if an order is still within a return policy's window.

    The window closes exactly ``duration`` days after the order date: an
    order placed exactly ``duration`` days ago is still eligible, one placed
    ``duration`` days and an hour ago is not.

    Context required:
        - order_date: Aware datetime of the order
        - duration: Policy duration in days
        - now: Optional, evaluation time (defaults to current UTC time)
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order_date = context["order_date"]
        duration = int(context["duration"])
        now = context.get("now") or utc_now()

        if order_date.tzinfo is None:
            order_date = order_date.replace(tzinfo=timezone.utc)

        days_elapsed = days_between(order_date, now) if order_date <= now else 0
        deadline = order_date + timedelta(days=duration)

        if now > deadline:
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason=f"Return window expired on {deadline.strftime('%Y-%m-%d %H:%M')} UTC",
                code=POLICY_EXPIRED,
                metadata={
                    "deadline": deadline.isoformat(),
                    "days_elapsed": days_elapsed,
                    "days_overdue": (now - deadline).days,
                },
            )

        days_remaining = (deadline - now).days
        return PolicyDecision(
            result=PolicyResult.APPROVED,
            reason=f"{days_remaining} days remaining in return window",
            metadata={
                "deadline": deadline.isoformat(),
                "days_elapsed": days_elapsed,
                "days_remaining": days_remaining,
                "return_window_days": duration,
            },
        )
