"""Drive reconciler operations against the persisted resource state.

Each operation opens one reconciler (and with it one HTTP client) through the
factory, runs to completion on its own event loop and only then touches the
state store. A failed operation leaves the stored record untouched, except
that a replacement whose delete already succeeded drops the stale entry.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from pimsync.domain.errors import MissingEntityError, RequiresReplacementError
from pimsync.domain.ports import StateEntry

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from pimsync.domain.model import EntityKind, Record
    from pimsync.domain.ports import StateUnitOfWork
    from pimsync.domain.reconciliation import Keyed, Reconciler

log = getLogger(__name__)

type ReconcilerFactory[R, K] = Callable[[], AbstractAsyncContextManager[Reconciler[Any, R, K]]]
type UnitOfWorkFactory = Callable[[], StateUnitOfWork]

__all__ = [
    "ApplyOutcome",
    "ApplyResult",
    "ReconcilerFactory",
    "ResourceLifecycle",
    "UnitOfWorkFactory",
    "UnknownAddressError",
]


class ApplyOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    REPLACED = "replaced"
    UNCHANGED = "unchanged"


class UnknownAddressError(LookupError):
    """No state entry exists for the requested address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"No state recorded for {address}")
        self.address = address


@dataclass(frozen=True, slots=True)
class ApplyResult[R]:
    address: str
    outcome: ApplyOutcome
    record: R


class ResourceLifecycle[R: Keyed, K]:
    """Apply, refresh, destroy and import one entity kind."""

    def __init__(
        self,
        kind: EntityKind,
        reconciler_factory: ReconcilerFactory[R, K],
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        allow_replace: bool = True,
    ) -> None:
        self.kind = kind
        self._reconciler_factory = reconciler_factory
        self._unit_of_work_factory = unit_of_work_factory
        self.allow_replace = allow_replace

    def state(self, address: str) -> R | None:
        entry = self._load(address)
        return None if entry is None else cast("R", entry.record)

    def apply(self, address: str, planned: R, *, allow_replace: bool | None = None) -> ApplyResult[R]:
        """Converge the remote entity at ``address`` to ``planned`` and persist the result."""

        entry = self._load(address)
        prior = None if entry is None else cast("R", entry.record)
        replace_ok = self.allow_replace if allow_replace is None else allow_replace

        outcome, record = asyncio.run(self._apply(address, prior, planned, replace_ok))
        self._save(address, record)
        log.info("%s %s", outcome.value.capitalize(), address)
        return ApplyResult(address=address, outcome=outcome, record=record)

    def refresh(self, address: str) -> R | None:
        """Re-read the entity; a vanished entity is dropped from the state."""

        prior = self._require(address)
        key = self._key_of(address, prior)
        record = asyncio.run(self._read(key, prior))
        if record is None:
            log.warning("%s no longer exists remotely, removing it from state", address)
            self._remove(address)
            return None
        self._save(address, record)
        return record

    def destroy(self, address: str) -> None:
        prior = self._require(address)
        key = self._key_of(address, prior)
        asyncio.run(self._delete(key))
        self._remove(address)
        log.info("Destroyed %s", address)

    def import_(self, address: str, key: K) -> R:
        """Adopt an existing remote entity under ``address``."""

        record = asyncio.run(self._read(key, None))
        if record is None:
            raise MissingEntityError(f"Cannot import {address}: entity not found").bind(
                kind=self.kind, key=key, step="read"
            )
        self._save(address, record)
        log.info("Imported %s as %s", key, address)
        return record

    def lookup(self, key: K) -> R | None:
        """Read an entity without recording it in the state."""

        return asyncio.run(self._read(key, None))

    async def _apply(
        self,
        address: str,
        prior: R | None,
        planned: R,
        allow_replace: bool,
    ) -> tuple[ApplyOutcome, R]:
        async with self._reconciler_factory() as reconciler:
            if prior is None:
                return ApplyOutcome.CREATED, await reconciler.create(planned)

            current = await reconciler.read(self._key_of(address, prior), prior=prior)
            if current is None:
                log.warning("%s no longer exists remotely, creating it again", address)
                return ApplyOutcome.CREATED, await reconciler.create(planned)

            changed = bool(reconciler.pending_steps(current, planned))
            try:
                record = await reconciler.update(current, planned)
            except RequiresReplacementError as exc:
                if not allow_replace:
                    raise
                log.info("Replacing %s (%s changed)", address, ", ".join(exc.fields))
                await reconciler.delete(self._key_of(address, current))
                self._remove(address)
                return ApplyOutcome.REPLACED, await reconciler.create(planned)
            return (ApplyOutcome.UPDATED if changed else ApplyOutcome.UNCHANGED), record

    async def _read(self, key: K, prior: R | None) -> R | None:
        async with self._reconciler_factory() as reconciler:
            return await reconciler.read(key, prior=prior)

    async def _delete(self, key: K) -> None:
        async with self._reconciler_factory() as reconciler:
            await reconciler.delete(key)

    def _key_of(self, address: str, record: R) -> K:
        key = record.key
        if key is None:
            raise MissingEntityError(f"State for {address} carries no identifier").bind(
                kind=self.kind, key=None, step="plan"
            )
        return cast("K", key)

    def _load(self, address: str) -> StateEntry | None:
        with self._unit_of_work_factory() as uow:
            entry = uow.state.get(address)
        if entry is not None and entry.kind != self.kind:
            raise ValueError(f"{address} is recorded as {entry.kind}, not {self.kind}")
        return entry

    def _require(self, address: str) -> R:
        entry = self._load(address)
        if entry is None:
            raise UnknownAddressError(address)
        return cast("R", entry.record)

    def _save(self, address: str, record: R) -> None:
        with self._unit_of_work_factory() as uow:
            uow.state.save(
                StateEntry(address=address, kind=self.kind, record=cast("Record", record))
            )
            uow.commit()

    def _remove(self, address: str) -> None:
        with self._unit_of_work_factory() as uow:
            uow.state.remove(address)
            uow.commit()
