"""
Shared modules for the Returns application.

Cosmos DB connection settings shared by the API and the data scripts.
"""

from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    RETURNS_CONTAINERS,
    RETURNS_CONTAINER_NAMES,
)

__all__ = [
    "COSMOS_ENDPOINT",
    "DATABASE_NAME",
    "RETURNS_CONTAINERS",
    "RETURNS_CONTAINER_NAMES",
]
