"""In-memory entity table with optimistic versioning."""

import copy
import logging
import threading
from typing import Callable, Generic, Iterator, TypeVar

from bookstore.exceptions import (
    ConcurrencyConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from bookstore.store.protocols import Versioned

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Versioned)


class EntityTable(Generic[T]):
    """Dictionary-backed repository for one entity type.

    Entities are copied on the way in and on the way out, so a caller only
    changes stored state through :meth:`save`. Every save bumps ``version``;
    saving a copy whose version no longer matches the stored one raises
    :class:`ConcurrencyConflictError`, which serializes competing
    load, mutate, save cycles on the same identifier.

    Parameters
    ----------
    entity_type : str
        Name used in error messages (e.g. ``"loan"``).
    id_field : str
        Attribute holding the identifier (e.g. ``"loan_id"``).
    """

    def __init__(self, entity_type: str, id_field: str) -> None:
        self.entity_type = entity_type
        self.id_field = id_field
        self._rows: dict[str, T] = {}
        self.lock = threading.Lock()

    def _id(self, entity: T) -> str:
        return getattr(entity, self.id_field)

    def add(self, entity: T) -> T:
        """Insert a new entity; returns a detached copy."""
        entity_id = self._id(entity)
        with self.lock:
            if entity_id in self._rows:
                raise DuplicateEntityError(self.entity_type, entity_id)
            self._rows[entity_id] = copy.deepcopy(entity)
        logger.debug("Added %s %s", self.entity_type, entity_id)
        return copy.deepcopy(entity)

    def get(self, entity_id: str) -> T:
        """Load a detached copy.

        Raises
        ------
        EntityNotFoundError
            If no entity is stored under ``entity_id``.
        """
        with self.lock:
            row = self._rows.get(entity_id)
            if row is None:
                raise EntityNotFoundError(self.entity_type, entity_id)
            return copy.deepcopy(row)

    def save(self, entity: T) -> T:
        """Persist a modified copy and bump its version in place."""
        with self.lock:
            self.check_version(entity)
            self.write(entity)
        return entity

    def check_version(self, entity: T) -> None:
        """Raise unless ``entity`` was loaded from the current stored version.

        The caller holds :attr:`lock`.
        """
        entity_id = self._id(entity)
        stored = self._rows.get(entity_id)
        if stored is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        if stored.version != entity.version:
            raise ConcurrencyConflictError(self.entity_type, entity_id, entity.version, stored.version)

    def write(self, entity: T) -> None:
        """Store ``entity`` as the next version. The caller holds :attr:`lock`."""
        entity.version += 1
        self._rows[self._id(entity)] = copy.deepcopy(entity)

    def find(self, predicate: Callable[[T], bool]) -> list[T]:
        with self.lock:
            return [copy.deepcopy(row) for row in self._rows.values() if predicate(row)]

    def exists(self, entity_id: str) -> bool:
        return entity_id in self._rows

    def ids(self) -> list[str]:
        return list(self._rows)

    def __iter__(self) -> Iterator[T]:
        return iter(self.find(lambda _: True))

    def __len__(self) -> int:
        return len(self._rows)
