"""
Cosmos DB settings for the returns data.

The API (STORAGE_BACKEND=cosmos) and the scripts under scripts/ resolve
the account, database and container names from here.

Environment:
    COSMOS_ENDPOINT - Account endpoint (defaults to the local emulator)
    COSMOS_DATABASE - Database holding the Returns_* containers
"""

import os

# =============================================================================
# COSMOS DB CONNECTION
# =============================================================================

COSMOS_ENDPOINT = os.getenv(
    "COSMOS_ENDPOINT",
    "https://localhost:8081/"
)

DATABASE_NAME = os.getenv(
    "COSMOS_DATABASE",
    "returns"
)

# =============================================================================
# RETURNS DATA CONTAINERS
# =============================================================================

# Container names for the return management data
# Format: logical_name -> (container_name, partition_key_path)
# Every document stores its entity key as the string "id", which is also
# the partition key.
RETURNS_CONTAINERS = {
    "return_requests": ("Returns_ReturnRequests", "/id"),
    "orders": ("Returns_Orders", "/id"),
    "order_products": ("Returns_OrderProducts", "/id"),
    "products": ("Returns_Products", "/id"),
    "product_items": ("Returns_ProductItems", "/id"),
    "policies": ("Returns_Policies", "/id"),
    "transactions": ("Returns_Transactions", "/id"),
}

# Simple container name lookup (without partition key)
RETURNS_CONTAINER_NAMES = {
    key: name for key, (name, _) in RETURNS_CONTAINERS.items()
}

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_container_name(logical_name: str) -> str:
    """Get the actual container name for a logical container name."""
    if logical_name in RETURNS_CONTAINER_NAMES:
        return RETURNS_CONTAINER_NAMES[logical_name]
    return logical_name


def get_container_config(logical_name: str) -> tuple:
    """Get (container_name, partition_key_path) for a container."""
    if logical_name in RETURNS_CONTAINERS:
        return RETURNS_CONTAINERS[logical_name]
    raise ValueError(f"Unknown returns container: {logical_name}")
