"""Infrastructure components for mbestore."""

from .document_store import DocumentStore, COLLECTIONS
from .store_connection_pool import StoreConnectionPool, get_store

__all__ = ["DocumentStore", "COLLECTIONS", "StoreConnectionPool", "get_store"]
