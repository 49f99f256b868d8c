"""Guarded status transitions shared by all entity state machines."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, ClassVar, Generic, Iterable, Mapping, TypeVar

S = TypeVar("S", bound=Enum)


@dataclass(frozen=True)
class StatusChange:
    """One accepted status transition."""

    from_status: Enum
    to_status: Enum
    at: datetime
    reason: str | None = None


class Lifecycle(Generic[S]):
    """Transition table for a status enum.

    Parameters
    ----------
    transitions : Mapping[S, Iterable[S]]
        Allowed target statuses per source status. Statuses without an
        entry (or with an empty one) are terminal.
    """

    def __init__(self, transitions: Mapping[S, Iterable[S]]) -> None:
        self._transitions: dict[S, frozenset[S]] = {
            source: frozenset(targets) for source, targets in transitions.items()
        }

    def targets(self, status: S) -> frozenset[S]:
        return self._transitions.get(status, frozenset())

    def can_transition(self, source: S, target: S) -> bool:
        return target in self.targets(source)

    def is_terminal(self, status: S) -> bool:
        return not self.targets(status)

    def sources_of(self, target: S) -> frozenset[S]:
        """Statuses from which ``target`` is reachable in one step."""
        return frozenset(s for s, targets in self._transitions.items() if target in targets)

    @staticmethod
    def require(current: S, allowed: Iterable[S], error: Callable[[], Exception]) -> None:
        """Raise ``error()`` unless ``current`` is one of ``allowed``."""
        if current not in set(allowed):
            raise error()


class LifecycleEntity:
    """Mixin for dataclass entities with ``status``, ``updated_at`` and ``history``.

    ``_advance`` is the guarded path used by every business transition;
    ``_force`` is the administrative override that skips the table.
    Both record a :class:`StatusChange`.
    """

    LIFECYCLE: ClassVar[Lifecycle]

    status: Enum
    updated_at: datetime | None
    history: list[StatusChange]

    def can_transition_to(self, target: Enum) -> bool:
        return self.LIFECYCLE.can_transition(self.status, target)

    def is_terminal(self) -> bool:
        return self.LIFECYCLE.is_terminal(self.status)

    @property
    def last_change(self) -> StatusChange | None:
        return self.history[-1] if self.history else None

    def _advance(
        self,
        target: Enum,
        now: datetime,
        error: Callable[[], Exception],
        reason: str | None = None,
    ) -> None:
        if not self.can_transition_to(target):
            raise error()
        self._record(target, now, reason)

    def _force(self, target: Enum, now: datetime, reason: str | None = None) -> None:
        if target == self.status:
            self.updated_at = now
            return
        self._record(target, now, reason)

    def _record(self, target: Enum, now: datetime, reason: str | None) -> None:
        self.history.append(StatusChange(self.status, target, now, reason))
        self.status = target
        self.updated_at = now
