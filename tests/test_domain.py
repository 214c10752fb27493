from datetime import datetime, timedelta, timezone

import pytest

from core.domain import (
    PolicyResult,
    StatusTransitionError,
    days_between,
    format_date,
    parse_date,
    validate_status_transition,
)
from returns.domain.models import (
    REQUEST_STATUS_TRANSITIONS,
    ReturnRequest,
    ReviewOutcome,
)
from returns.domain.policies import (
    ORDER_NOT_DELIVERED,
    ORDER_NOT_FOUND,
    ORDER_NOT_OWNED,
    POLICY_EXPIRED,
    DeliveredOrderPolicy,
    ReturnWindowPolicy,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestReturnWindowPolicy:
    def setup_method(self):
        self.policy = ReturnWindowPolicy()

    def evaluate(self, days_ago, duration=30, **extra):
        return self.policy.evaluate({
            "order_date": NOW - timedelta(days=days_ago, **extra),
            "duration": duration,
            "now": NOW,
        })

    def test_order_exactly_at_duration_is_eligible(self):
        decision = self.evaluate(30)
        assert decision.is_approved
        assert decision.metadata["days_remaining"] == 0

    def test_order_one_day_past_duration_is_expired(self):
        decision = self.evaluate(31)
        assert decision.is_denied
        assert decision.code == POLICY_EXPIRED
        assert decision.metadata["days_overdue"] == 1

    def test_partial_day_past_duration_is_expired(self):
        decision = self.evaluate(30, hours=1)
        assert decision.is_denied
        assert decision.code == POLICY_EXPIRED
        assert decision.metadata["days_overdue"] == 0

    def test_partial_day_inside_duration_is_eligible(self):
        decision = self.evaluate(29, hours=23)
        assert decision.is_approved
        assert decision.metadata["days_remaining"] == 0

    def test_future_order_date_counts_as_zero_days(self):
        decision = self.evaluate(-2, duration=0)
        assert decision.is_approved
        assert decision.metadata["days_elapsed"] == 0

    def test_naive_order_date_treated_as_utc(self):
        decision = self.policy.evaluate({
            "order_date": (NOW - timedelta(days=5)).replace(tzinfo=None),
            "duration": 14,
            "now": NOW,
        })
        assert decision.metadata["days_remaining"] == 9


class TestDeliveredOrderPolicy:
    def setup_method(self):
        self.policy = DeliveredOrderPolicy()

    def test_missing_order(self):
        decision = self.policy.evaluate({"order_exists": False, "user_id": 7})
        assert decision.result == PolicyResult.DENIED
        assert decision.code == ORDER_NOT_FOUND

    def test_order_of_another_user(self):
        decision = self.policy.evaluate({
            "order_exists": True, "order_user_id": 8, "user_id": 7, "order_status": "Delivered",
        })
        assert decision.code == ORDER_NOT_OWNED

    def test_order_not_delivered(self):
        decision = self.policy.evaluate({
            "order_exists": True, "order_user_id": 7, "user_id": 7, "order_status": "Shipped",
        })
        assert decision.code == ORDER_NOT_DELIVERED

    def test_delivered_order_of_user(self):
        decision = self.policy.evaluate({
            "order_exists": True, "order_user_id": 7, "user_id": 7, "order_status": "Delivered",
        })
        assert decision.is_approved


class TestReviewOutcome:
    @pytest.mark.parametrize("value,expected", [
        ("Return Good", ReviewOutcome.RETURN_GOOD),
        ("ReturnGood", ReviewOutcome.RETURN_GOOD),
        ("Replace Repaired", ReviewOutcome.REPLACE_REPAIRED),
        ("ReplaceBad", ReviewOutcome.REPLACE_BAD),
        ("Repaired", ReviewOutcome.REPAIRED),
    ])
    def test_parse_accepts_display_and_compact_forms(self, value, expected):
        assert ReviewOutcome.parse(value) is expected

    @pytest.mark.parametrize("value", ["Refurbish", "return good", "", None, 3])
    def test_parse_rejects_unknown_values(self, value):
        assert ReviewOutcome.parse(value) is None


class TestRequestStatusTransitions:
    def test_pending_to_processing(self):
        assert validate_status_transition("Pending", "Processing", REQUEST_STATUS_TRANSITIONS)

    def test_close_from_every_status(self):
        for status in ("Pending", "Processing", "Closed"):
            assert validate_status_transition(status, "Closed", REQUEST_STATUS_TRANSITIONS)

    def test_closed_cannot_reopen(self):
        with pytest.raises(StatusTransitionError):
            validate_status_transition("Closed", "Processing", REQUEST_STATUS_TRANSITIONS, "return request")


class TestDateHelpers:
    def test_days_between_is_symmetric(self):
        assert days_between(NOW, NOW - timedelta(days=3)) == 3
        assert days_between(NOW - timedelta(days=3), NOW) == 3

    def test_parse_date_handles_z_suffix_and_naive(self):
        assert parse_date("2024-06-15T12:00:00Z") == NOW
        assert parse_date("2024-06-15T12:00:00") == NOW

    def test_parse_date_invalid(self):
        assert parse_date("not a date") is None
        assert parse_date(None) is None

    def test_format_date_round_trips(self):
        assert parse_date(format_date(NOW)) == NOW


def test_return_request_lease_fields_hidden_from_related_view():
    request = ReturnRequest(
        request_id="RET-1", user_id=7, order_id=100, product_id=55,
        return_policy="30-day", reason="", request_date=NOW,
        lease_token="abc", lease_expires_at=NOW + timedelta(seconds=60),
    )
    assert request.lease_active(NOW)
    assert not request.lease_active(NOW + timedelta(seconds=61))
    data = request.to_dict(include_related=True)
    assert "lease_token" not in data
    assert data["transactions"] == []
    assert ReturnRequest.from_dict(request.to_dict()).lease_token == "abc"
