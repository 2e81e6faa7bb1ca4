"""Generic reconciler: converge one remote entity from a current to a planned record."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from pimsync.domain.errors import MissingEntityError, ReconcileError, RequiresReplacementError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from pimsync.domain.ports import EntityGateway

    from .rules import ReconcileRules

log = getLogger(__name__)


class Keyed[K](Protocol):
    @property
    def key(self) -> K | None: ...


class Reconciler[G: EntityGateway, R: Keyed, K]:
    """Create, read, update and delete one entity family through its gateway.

    Every remote call runs strictly in sequence. A failing call stops the
    operation; the raised ``ReconcileError`` names the entity kind, its key and
    the step that failed, while earlier steps stay applied.
    """

    def __init__(self, gateway: G, rules: ReconcileRules[G, R, K]) -> None:
        self.gateway = gateway
        self.rules = rules

    @property
    def kind(self) -> str:
        return self.rules.kind

    async def create(self, desired: R) -> R:
        key: K = await self._run("create", desired.key, self.gateway.create(desired))
        log.info("Created %s %s", self.kind, key)

        baseline = self.rules.baseline(desired)
        for step in self.rules.pending(baseline, desired, deferred_only=True):
            log.info("Applying deferred %s to %s %s", step.name, self.kind, key)
            await self._run(step.name, key, step.apply(self.gateway, key, baseline, desired))

        return await self._read_back(key, desired)

    async def read(self, key: K, *, prior: R | None = None) -> R | None:
        """Return the canonical record, or ``None`` when the entity no longer exists."""

        return await self._run("read", key, self.gateway.fetch(key, prior=prior))

    async def update(self, current: R, planned: R) -> R:
        key = self._key_of(current)

        replace = self.rules.replacement_fields(current, planned)
        if replace:
            raise RequiresReplacementError(replace).bind(kind=self.kind, key=key, step="plan")

        steps = self.rules.pending(current, planned)
        if not steps:
            log.debug("No changes for %s %s", self.kind, key)
        for step in steps:
            log.info(
                "Updating %s %s: %s (%s)",
                self.kind,
                key,
                step.name,
                ", ".join(step.changed(current, planned)),
            )
            await self._run(step.name, key, step.apply(self.gateway, key, current, planned))

        return await self._read_back(key, planned)

    async def delete(self, key: K) -> None:
        await self._run("delete", key, self.gateway.delete(key))
        log.info("Deleted %s %s", self.kind, key)

    def pending_steps(self, current: R, planned: R) -> tuple[str, ...]:
        """Name the update steps ``update`` would run, without calling the service."""

        return tuple(step.name for step in self.rules.pending(current, planned))

    async def _read_back(self, key: K, prior: R) -> R:
        record = await self.read(key, prior=prior)
        if record is None:
            raise MissingEntityError(f"{self.kind} not found after write").bind(
                kind=self.kind, key=key, step="read"
            )
        return record

    async def _run[T](self, step: str, key: K | None, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except ReconcileError as exc:
            exc.bind(kind=self.kind, key=key, step=step)
            raise

    def _key_of(self, record: R) -> K:
        key = record.key
        if key is None:
            raise MissingEntityError("Current record has no identifier").bind(
                kind=self.kind, key=None, step="plan"
            )
        return key
