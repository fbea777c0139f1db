"""
Dependency Injection
FastAPI dependencies for the store, services, and startup coordinator.
"""

import logging
from fastapi import Depends, Request

from ..db.store import ProductStore
from ..startup.coordinator import HostLifecycleCoordinator
from ..startup.events import EventSink
from .services.product_service import ProductService

logger = logging.getLogger(__name__)


def get_product_store(request: Request) -> ProductStore:
    """
    Get the product store built by create_app().

    Use as FastAPI dependency:
        @app.get("/endpoint")
        def endpoint(store: ProductStore = Depends(get_product_store)):
            ...
    """
    return request.app.state.store


def get_product_service(store: ProductStore = Depends(get_product_store)) -> ProductService:
    """
    Get product query service instance.

    Use as FastAPI dependency:
        @app.get("/products")
        def summary(service: ProductService = Depends(get_product_service)):
            ...
    """
    return ProductService(store)


def get_coordinator(request: Request) -> HostLifecycleCoordinator:
    """Get the host lifecycle coordinator built by create_app()."""
    return request.app.state.coordinator


def get_event_sink(request: Request) -> EventSink:
    """Get the startup event sink built by create_app()."""
    return request.app.state.events
