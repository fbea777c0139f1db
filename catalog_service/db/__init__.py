"""
Database Layer
ORM models, engine/session construction, and the product record store.
"""

from .models import Base, Product
from .session import create_db_engine, create_session_factory
from .store import GroupAverage, ProductSnapshot, ProductStore

__all__ = [
    "Base",
    "Product",
    "create_db_engine",
    "create_session_factory",
    "GroupAverage",
    "ProductSnapshot",
    "ProductStore",
]
