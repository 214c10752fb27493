"""
Policy Evaluator.

Looks up the return policy a product offers for a requested policy type and
applies the return window rule to the order date.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from core.data import ReadOnlyRepository
from core.domain import PolicyDecision, utc_now

from returns.domain.models import Policy
from returns.domain.policies import ReturnWindowPolicy
from returns.errors import PolicyExpired, PolicyNotApplicable

logger = logging.getLogger(__name__)


class PolicyEvaluator:
    """
    Decides whether a return under a policy type is currently eligible.

    When several policy records match a (product, policy type) pair the one
    with the lowest ``policy_id`` is used.
    """

    def __init__(
        self,
        policies: ReadOnlyRepository[Policy],
        clock: Callable[[], datetime] = utc_now,
    ):
        self._policies = policies
        self._clock = clock
        self._window_policy = ReturnWindowPolicy()

    def find_policy(self, product_id: int, policy_type: str) -> Optional[Policy]:
        matches = self._policies.where(
            lambda p: p.product_id == product_id and p.policy_type == policy_type
        )
        if not matches:
            return None
        return min(matches, key=lambda p: p.policy_id)

    def evaluate(self, product_id: int, policy_type: str, order_date: datetime) -> PolicyDecision:
        """
        Evaluate a return policy for an order.

        Returns:
            An approved PolicyDecision whose metadata carries the matched
            ``policy`` and the window details

        Raises:
            PolicyNotApplicable: No policy of that type exists for the product
            PolicyExpired: The policy duration has been exceeded
        """
        policy = self.find_policy(product_id, policy_type)
        if policy is None:
            logger.warning(f"No '{policy_type}' policy for product {product_id}")
            raise PolicyNotApplicable()

        decision = self._window_policy.evaluate({
            "order_date": order_date,
            "duration": policy.duration,
            "now": self._clock(),
        })
        if decision.is_denied:
            logger.warning(
                f"Policy {policy.policy_id} expired for product {product_id}: {decision.reason}"
            )
            raise PolicyExpired(f"The Return Policy Duration has been Exceeded. {decision.reason}")

        decision.metadata["policy"] = policy
        return decision
