"""Data stores for entity management and referential integrity."""

from bookstore.store.backoffice import BookstoreDataStore
from bookstore.store.protocols import Repository
from bookstore.store.tables import EntityTable

__all__ = ["BookstoreDataStore", "EntityTable", "Repository"]
