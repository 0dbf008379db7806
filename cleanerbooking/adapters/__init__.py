"""
Adapters layer - External integrations (hosted entity store).
"""

from .entity_store_client import EntityStoreClient
from .mock_entity_store import MockEntityStore

__all__ = ["EntityStoreClient", "MockEntityStore"]
