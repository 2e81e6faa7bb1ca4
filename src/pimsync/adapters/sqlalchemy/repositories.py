"""State repository backed by a SQLAlchemy session."""

from __future__ import annotations

from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

from pydantic import TypeAdapter
from sqlalchemy import delete, insert, select, update

from pimsync.adapters.sqlalchemy.mappings import resource_state_table
from pimsync.domain.model import RECORD_TYPES, EntityKind
from pimsync.domain.ports import StateEntry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

    from pimsync.domain.model import Record

RECORD_ADAPTERS: Final[Mapping[EntityKind, TypeAdapter[Any]]] = MappingProxyType(
    {kind: TypeAdapter(record_type) for kind, record_type in RECORD_TYPES.items()}
)


def dump_record(kind: EntityKind, record: Record) -> str:
    return RECORD_ADAPTERS[kind].dump_json(record).decode("utf-8")


def load_record(kind: EntityKind, payload: str) -> Record:
    return RECORD_ADAPTERS[kind].validate_json(payload)


class SqlAlchemyStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, address: str) -> StateEntry | None:
        stmt = select(resource_state_table).where(resource_state_table.c.address == address)
        row = self.session.execute(stmt).one_or_none()
        return None if row is None else self._to_entry(row)

    def save(self, entry: StateEntry) -> None:
        values = {
            "kind": entry.kind,
            "payload": dump_record(entry.kind, entry.record),
            "updated_at": datetime.now(UTC),
        }
        result = self.session.execute(
            update(resource_state_table)
            .where(resource_state_table.c.address == entry.address)
            .values(**values)
        )
        if result.rowcount == 0:
            self.session.execute(
                insert(resource_state_table).values(address=entry.address, **values)
            )

    def remove(self, address: str) -> None:
        self.session.execute(
            delete(resource_state_table).where(resource_state_table.c.address == address)
        )

    def list(self, kind: EntityKind | None = None) -> list[StateEntry]:
        stmt = select(resource_state_table).order_by(resource_state_table.c.address)
        if kind is not None:
            stmt = stmt.where(resource_state_table.c.kind == kind)
        return [self._to_entry(row) for row in self.session.execute(stmt)]

    @staticmethod
    def _to_entry(row: Row[Any]) -> StateEntry:
        kind = EntityKind(row.kind)
        return StateEntry(
            address=row.address,
            kind=kind,
            record=load_record(kind, row.payload),
        )
