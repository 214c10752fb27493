"""
Cosmos DB Data Population Script for the Returns Service.

Loads the sample products, policies, orders, line items and product units
into Azure Cosmos DB using AzureCliCredential. Return requests and
transactions are created empty and filled at runtime.

Usage:
    python scripts/populate_cosmosdb.py

Environment:
    COSMOS_ENDPOINT - Override the default Cosmos DB endpoint
    COSMOS_DATABASE - Override the default database name

Containers Required (all partitioned on /id):
    - Returns_Products
    - Returns_Policies
    - Returns_Orders
    - Returns_OrderProducts
    - Returns_ProductItems
    - Returns_ReturnRequests   (populated at runtime)
    - Returns_Transactions     (populated at runtime)
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from azure.cosmos import CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.identity import AzureCliCredential

from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    RETURNS_CONTAINERS,
    get_container_config,
)
from data.sample.returns_data import SAMPLE_DATASET
from returns.data import ENTITY_REGISTRY

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# =============================================================================
# DATA PREPARATION
# =============================================================================

def prepare_documents(name: str, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Round-trip sample documents through their entity type and add the 'id' field."""
    entity_type, key_field = ENTITY_REGISTRY[name]
    items = []
    for doc in documents:
        item = entity_type.from_dict(doc).to_dict()
        item["id"] = str(item[key_field])
        items.append(item)
    return items


# =============================================================================
# COSMOS DB OPERATIONS
# =============================================================================

def upsert_items(container, items: List[Dict[str, Any]]) -> int:
    """Upsert items into a container, returning how many were written."""
    count = 0
    for item in items:
        try:
            container.upsert_item(item)
            count += 1
        except CosmosHttpResponseError as e:
            logger.error(f"Failed to upsert item {item.get('id')}: {e}")
    return count


def main():
    """Main function to populate Cosmos DB with the returns sample data."""
    logger.info("=" * 60)
    logger.info("Returns Service - Cosmos DB Population Script")
    logger.info("=" * 60)
    logger.info(f"Endpoint: {COSMOS_ENDPOINT}")
    logger.info(f"Database: {DATABASE_NAME}")
    logger.info("Authentication: AzureCliCredential")
    logger.info("=" * 60)

    credential = AzureCliCredential()
    client = CosmosClient(COSMOS_ENDPOINT, credential=credential)

    logger.info(f"Connecting to database '{DATABASE_NAME}'...")
    try:
        database = client.get_database_client(DATABASE_NAME)
        database.read()
        logger.info(f"Database '{DATABASE_NAME}' found")
    except CosmosHttpResponseError as e:
        logger.error(f"Database '{DATABASE_NAME}' not found or access denied: {e}")
        logger.error("Please create the database first or check RBAC permissions")
        return

    logger.info("\n--- Populating Returns Data ---")
    total_items = 0
    for name, documents in SAMPLE_DATASET.items():
        container_name, _ = get_container_config(name)
        container = database.get_container_client(container_name)
        count = upsert_items(container, prepare_documents(name, documents))
        logger.info(f"  {container_name}: {count} items")
        total_items += count

    logger.info("\n" + "=" * 60)
    logger.info(f"COMPLETE: {total_items} total items populated across {len(SAMPLE_DATASET)} containers")
    logger.info("=" * 60)

    logger.info("\n--- Azure CLI Commands to Create All Containers ---")
    logger.info("# If containers don't exist, run these commands:")
    for name, (container_name, partition_key) in RETURNS_CONTAINERS.items():
        logger.info(
            f'az cosmosdb sql container create --account-name "<account>" --database-name "{DATABASE_NAME}" '
            f'--name "{container_name}" --partition-key-path "{partition_key}" --resource-group "<resource-group>"'
        )


if __name__ == "__main__":
    main()
