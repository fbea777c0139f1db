"""
Catalog Ingestion
Catalog source client and the paginated sync engine.
"""

from .catalog_client import CatalogClient
from .sync_engine import SyncEngine, SyncResult

__all__ = [
    "CatalogClient",
    "SyncEngine",
    "SyncResult",
]
