"""Repository contracts for whatever persists entities.

The in-memory tables in :mod:`bookstore.store.tables` are one implementation;
the data store only relies on this surface.
"""

from typing import Callable, Iterator, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


class Versioned(Protocol):
    """Entity carrying an optimistic-locking counter."""

    version: int


@runtime_checkable
class Repository(Protocol[T]):
    """Contract for loading and saving one entity type by identifier."""

    entity_type: str

    def add(self, entity: T) -> T: ...
    def get(self, entity_id: str) -> T: ...
    def save(self, entity: T) -> T: ...
    def find(self, predicate: Callable[[T], bool]) -> list[T]: ...
    def exists(self, entity_id: str) -> bool: ...
    def __iter__(self) -> Iterator[T]: ...
    def __len__(self) -> int: ...
