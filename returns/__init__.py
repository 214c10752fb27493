"""
Return Request Management.

Components:
- domain/: entities and pure policies (delivered order, return window)
- data/: repositories (in-memory and Cosmos DB)
- services/: order lookup, policy evaluator, inventory and payment
  coordinators, and the ReturnRequestWorkflow engine
- schemas: request/response models for the HTTP layer

Usage:
    from returns.data import build_memory_repositories
    from returns.services import build_services

    services = build_services(build_memory_repositories())
    request = services.workflow.open_return_request(7, 100, 55, "30-day", "Broken hinge")
"""

from returns.errors import ErrorKind, ReturnsError
from returns.services import ReturnsServices, ReturnRequestWorkflow, build_services

__all__ = [
    "ErrorKind",
    "ReturnsError",
    "ReturnsServices",
    "ReturnRequestWorkflow",
    "build_services",
]
