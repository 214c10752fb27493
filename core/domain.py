"""
Domain Building Blocks.

Rules that decide whether a return may proceed live here as pure functions
of their inputs: no repositories, no clocks read behind the caller's back,
no HTTP. Services gather the facts, hand them to a rule, and act on the
decision it returns.

Example Usage:
    class ReturnWindowPolicy(PolicyEngine):
        def evaluate(self, context: dict) -> PolicyDecision:
            # decide from context["order_date"], context["duration"], context["now"]
            ...
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum


class PolicyResult(Enum):
    APPROVED = "approved"
    DENIED = "denied"


@dataclass
class PolicyDecision:
    """
    What a rule decided, and why.

    Attributes:
        result: APPROVED or DENIED
        reason: Sentence suitable for logs and error messages
        code: Stable denial code callers can branch on (empty when approved)
        metadata: Figures behind the decision (deadlines, day counts, ...)
    """
    result: PolicyResult
    reason: str
    code: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_approved(self) -> bool:
        return self.result is PolicyResult.APPROVED

    @property
    def is_denied(self) -> bool:
        return self.result is PolicyResult.DENIED


class PolicyEngine(ABC):
    """
    A single business rule evaluated against a context dict.

    Subclasses document the context keys they read and never raise for a
    negative outcome; denial is expressed through the returned decision.

    Example:
        class DeliveredOrderPolicy(PolicyEngine):
            def evaluate(self, context):
                if context["order_status"] != "Delivered":
                    return PolicyDecision(PolicyResult.DENIED, "Not delivered", code="order_not_delivered")
                return PolicyDecision(PolicyResult.APPROVED, "Order is eligible for return")
    """

    @abstractmethod
    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        """Decide on the given facts."""


class StatusTransitionError(Exception):
    """A status change that the transition table does not allow."""


def validate_status_transition(
    current_status: str,
    new_status: str,
    transitions: Dict[str, List[str]],
    resource_type: str = "resource",
) -> bool:
    """
    Check a status change against a transition table.

    Args:
        current_status: Status the resource is in now
        new_status: Status being requested
        transitions: Status -> statuses reachable from it
        resource_type: Used in the error message

    Raises:
        StatusTransitionError: new_status is not reachable from current_status
    """
    allowed = transitions.get(current_status, [])
    if new_status not in allowed:
        raise StatusTransitionError(
            f"Cannot move {resource_type} from {current_status} to {new_status}. "
            f"Allowed: {allowed}"
        )
    return True


# =============================================================================
# DATE HELPERS
# =============================================================================

def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def days_between(start: datetime, end: datetime) -> int:
    """Whole days between two instants, regardless of their order."""
    return abs((_as_utc(end) - _as_utc(start)).days)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Read an ISO-8601 timestamp as stored in documents. A trailing ``Z`` and
    naive values are both read as UTC; unreadable input gives None.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        return None
    return _as_utc(parsed)


def format_date(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO format, treating naive values as UTC."""
    if value is None:
        return None
    return _as_utc(value).isoformat()
