"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pimsync.adapters.bluestone import BluestoneReconcilers
from pimsync.adapters.document import (
    APPLY_ORDER,
    DesiredStateDocument,
    parse_address,
    plan_document,
    resolve_references,
)
from pimsync.adapters.sqlalchemy import SqlAlchemyStateUnitOfWork, is_started, startup
from pimsync.config import get_pim_config
from pimsync.domain.lifecycle import ApplyOutcome, ResourceLifecycle
from pimsync.domain.model import CategoryAttributeKey, EntityKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from pimsync.adapters.bluestone import ClientFactory
    from pimsync.config import PimConfig
    from pimsync.domain.lifecycle import ApplyResult, UnitOfWorkFactory
    from pimsync.domain.model import Record
    from pimsync.domain.ports import StateEntry

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyReport:
    created: list[str] = field(default_factory=list[str])
    updated: list[str] = field(default_factory=list[str])
    replaced: list[str] = field(default_factory=list[str])
    unchanged: list[str] = field(default_factory=list[str])
    destroyed: list[str] = field(default_factory=list[str])

    def record(self, result: ApplyResult[Any]) -> None:
        match result.outcome:
            case ApplyOutcome.CREATED:
                self.created.append(result.address)
            case ApplyOutcome.UPDATED:
                self.updated.append(result.address)
            case ApplyOutcome.REPLACED:
                self.replaced.append(result.address)
            case ApplyOutcome.UNCHANGED:
                self.unchanged.append(result.address)

    def summary(self) -> str:
        return (
            f"created={len(self.created)}, updated={len(self.updated)}, "
            f"replaced={len(self.replaced)}, unchanged={len(self.unchanged)}, "
            f"destroyed={len(self.destroyed)}"
        )


@dataclass(slots=True)
class RefreshReport:
    refreshed: list[str] = field(default_factory=list[str])
    removed: list[str] = field(default_factory=list[str])


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyStateUnitOfWork


def build_lifecycles(
    *,
    config: PimConfig | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    allow_replace: bool = True,
) -> dict[EntityKind, ResourceLifecycle[Any, Any]]:
    """Build one lifecycle per entity kind, sharing configuration and state store."""

    reconcilers = BluestoneReconcilers(config or get_pim_config())
    if client_factory is not None:
        reconcilers.client_factory = client_factory
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    return {
        kind: ResourceLifecycle(
            kind,
            reconcilers.provider_for(kind),
            effective_uow,
            allow_replace=allow_replace,
        )
        for kind in APPLY_ORDER
    }


def _state_lookup(unit_of_work_factory: UnitOfWorkFactory) -> Callable[[str], str | None]:
    def lookup(address: str) -> str | None:
        with unit_of_work_factory() as uow:
            entry = uow.state.get(address)
        if entry is None or entry.record.key is None:
            return None
        return str(entry.record.key)

    return lookup


def list_state(
    *,
    address: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[StateEntry]:
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    with effective_uow() as uow:
        if address is None:
            return uow.state.list()
        entry = uow.state.get(address)
    return [] if entry is None else [entry]


def apply_document(
    document: DesiredStateDocument,
    *,
    config: PimConfig | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    prune: bool = True,
    allow_replace: bool = True,
) -> ApplyReport:
    """Converge every entry of ``document`` and, with ``prune``, destroy what it no longer lists."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    lifecycles = build_lifecycles(
        config=config,
        client_factory=client_factory,
        unit_of_work_factory=effective_uow,
        allow_replace=allow_replace,
    )
    lookup = _state_lookup(effective_uow)
    report = ApplyReport()

    planned = plan_document(document)
    log.info("Applying %s resources", len(planned))
    for resource in planned:
        record = resolve_references(resource, lookup)
        report.record(lifecycles[resource.kind].apply(resource.address, record))

    if prune:
        wanted = {resource.address for resource in planned}
        stale = [
            entry
            for entry in list_state(unit_of_work_factory=effective_uow)
            if entry.address not in wanted
        ]
        for entry in _in_destroy_order(stale):
            lifecycles[entry.kind].destroy(entry.address)
            report.destroyed.append(entry.address)

    log.info("Apply finished: %s", report.summary())
    return report


def refresh_state(
    *,
    config: PimConfig | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> RefreshReport:
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    lifecycles = build_lifecycles(
        config=config, client_factory=client_factory, unit_of_work_factory=effective_uow
    )
    report = RefreshReport()
    for entry in list_state(unit_of_work_factory=effective_uow):
        if lifecycles[entry.kind].refresh(entry.address) is None:
            report.removed.append(entry.address)
        else:
            report.refreshed.append(entry.address)
    log.info("Refreshed %s resources, removed %s", len(report.refreshed), len(report.removed))
    return report


def destroy_resources(
    *,
    address: str | None = None,
    config: PimConfig | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[str]:
    """Destroy one recorded resource, or all of them in reverse dependency order."""

    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    lifecycles = build_lifecycles(
        config=config, client_factory=client_factory, unit_of_work_factory=effective_uow
    )
    if address is not None:
        kind, _ = parse_address(address)
        lifecycles[kind].destroy(address)
        return [address]

    destroyed: list[str] = []
    for entry in _in_destroy_order(list_state(unit_of_work_factory=effective_uow)):
        lifecycles[entry.kind].destroy(entry.address)
        destroyed.append(entry.address)
    return destroyed


def import_resource(
    address: str,
    identifier: str,
    *,
    config: PimConfig | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record:
    """Adopt an existing remote entity; category attributes use ``<category>/<attribute>``."""

    kind, _ = parse_address(address)
    lifecycles = build_lifecycles(
        config=config, client_factory=client_factory, unit_of_work_factory=unit_of_work_factory
    )
    return lifecycles[kind].import_(address, _parse_key(kind, identifier))


def lookup_resource(
    kind: EntityKind | str,
    identifier: str,
    *,
    config: PimConfig | None = None,
    client_factory: ClientFactory | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record | None:
    """Read one remote entity by identifier without recording it in the state."""

    entity_kind = EntityKind(kind)
    lifecycles = build_lifecycles(
        config=config, client_factory=client_factory, unit_of_work_factory=unit_of_work_factory
    )
    return lifecycles[entity_kind].lookup(_parse_key(entity_kind, identifier))


def _parse_key(kind: EntityKind, identifier: str) -> str | CategoryAttributeKey:
    if kind is EntityKind.CATEGORY_ATTRIBUTE:
        return CategoryAttributeKey.parse(identifier)
    return identifier


def _in_destroy_order(entries: list[StateEntry]) -> list[StateEntry]:
    rank = {kind: index for index, kind in enumerate(APPLY_ORDER)}
    return sorted(entries, key=lambda entry: (-rank[entry.kind], entry.address))
