"""Persistence ports for the last applied record of each managed entity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from pimsync.domain.model import EntityKind, Record


@dataclass(frozen=True, slots=True)
class StateEntry:
    address: str
    kind: EntityKind
    record: Record


@runtime_checkable
class StateRepository(Protocol):
    def get(self, address: str) -> StateEntry | None: ...

    def save(self, entry: StateEntry) -> None: ...

    def remove(self, address: str) -> None: ...

    def list(self, kind: EntityKind | None = None) -> list[StateEntry]: ...


@runtime_checkable
class StateUnitOfWork(Protocol):
    """Transaction boundary around the state repository."""

    @property
    def state(self) -> StateRepository: ...

    def __enter__(self) -> StateUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
