import copy
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from data.sample.returns_data import SAMPLE_DATASET
from returns.data import build_memory_repositories, seed_repositories
from returns.services import build_services

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

# order_id -> days before FIXED_NOW
ORDER_AGES = {100: 10, 101: 3, 103: 45, 104: 1}


class FakeClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def build_dataset():
    dataset = copy.deepcopy(SAMPLE_DATASET)
    for order in dataset["orders"]:
        order["order_date"] = (FIXED_NOW - timedelta(days=ORDER_AGES[order["order_id"]])).isoformat()
    return dataset


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repositories():
    repos = build_memory_repositories()
    seed_repositories(repos, build_dataset())
    return repos


@pytest.fixture
def services(repositories, clock):
    return build_services(repositories, clock=clock, policy_cache_ttl_seconds=0, lease_seconds=60)


@pytest.fixture
def workflow(services):
    return services.workflow


@pytest.fixture
def open_request(workflow):
    """Open a return for the headphones (line 1, HP-55-0001) on order 100."""
    def _open(product_id=55, return_policy="30-day"):
        return workflow.open_return_request(7, 100, product_id, return_policy, "Stopped working")
    return _open


@pytest.fixture
def processing_request(workflow, open_request):
    request = open_request()
    return workflow.update_user_serial_number(request.request_id, "HP-55-0001")
