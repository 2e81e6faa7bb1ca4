"""Persist and reload resource state through SQLAlchemy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pimsync.adapters.sqlalchemy import (
    SqlAlchemyStateUnitOfWork,
    StartupError,
    shutdown,
    startup,
)
from pimsync.domain.model import (
    AttributeDefinition,
    Category,
    DataType,
    EntityKind,
    EnumRestriction,
    EnumValue,
    Webhook,
)
from pimsync.domain.ports import StateEntry, StateUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine


def _save(factory: Callable[[], SqlAlchemyStateUnitOfWork], *entries: StateEntry) -> None:
    with factory() as uow:
        for entry in entries:
            uow.state.save(entry)
        uow.commit()


def test_saved_entries_reload_in_a_fresh_session(
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> None:
    definition = AttributeDefinition(
        id="a1",
        name="Colour",
        data_type=DataType.SINGLE_SELECT,
        restrictions=EnumRestriction(
            type="color", values=(EnumValue(value="Red", value_id="v1"),)
        ),
    )
    _save(
        state_unit_of_work,
        StateEntry(
            address="attribute_definition.colour",
            kind=EntityKind.ATTRIBUTE_DEFINITION,
            record=definition,
        ),
    )

    with state_unit_of_work() as uow:
        entry = uow.state.get("attribute_definition.colour")

    assert entry is not None
    assert entry.kind is EntityKind.ATTRIBUTE_DEFINITION
    assert entry.record == definition
    assert entry.record.restrictions.values[0].value_id == "v1"  # pyright: ignore[reportAttributeAccessIssue]


def test_save_overwrites_existing_address(
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> None:
    address = "category.shoes"
    _save(
        state_unit_of_work,
        StateEntry(
            address=address, kind=EntityKind.CATEGORY, record=Category(id="c1", name="Shoes")
        ),
    )
    _save(
        state_unit_of_work,
        StateEntry(
            address=address, kind=EntityKind.CATEGORY, record=Category(id="c1", name="Footwear")
        ),
    )

    with state_unit_of_work() as uow:
        entries = uow.state.list()

    assert [entry.record for entry in entries] == [Category(id="c1", name="Footwear")]


def test_list_filters_by_kind_and_orders_by_address(
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> None:
    _save(
        state_unit_of_work,
        StateEntry(
            address="category.z", kind=EntityKind.CATEGORY, record=Category(id="c2", name="Z")
        ),
        StateEntry(
            address="category.a", kind=EntityKind.CATEGORY, record=Category(id="c1", name="A")
        ),
        StateEntry(
            address="webhook.orders",
            kind=EntityKind.WEBHOOK,
            record=Webhook(id="w1", url="https://hook.test", event_types=frozenset({"x"})),
        ),
    )

    with state_unit_of_work() as uow:
        categories = uow.state.list(EntityKind.CATEGORY)
        everything = uow.state.list()

    assert [entry.address for entry in categories] == ["category.a", "category.z"]
    assert [entry.address for entry in everything] == [
        "category.a",
        "category.z",
        "webhook.orders",
    ]


def test_remove_forgets_the_entry(
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> None:
    _save(
        state_unit_of_work,
        StateEntry(
            address="category.a", kind=EntityKind.CATEGORY, record=Category(id="c1", name="A")
        ),
    )

    with state_unit_of_work() as uow:
        uow.state.remove("category.a")
        uow.commit()

    with state_unit_of_work() as uow:
        assert uow.state.get("category.a") is None


def test_uncommitted_changes_are_rolled_back(
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> None:
    with pytest.raises(RuntimeError, match="boom"), state_unit_of_work() as uow:
        uow.state.save(
            StateEntry(address="category.a", kind=EntityKind.CATEGORY, record=Category(name="A"))
        )
        raise RuntimeError("boom")

    with state_unit_of_work() as uow:
        assert uow.state.list() == []


def test_unit_of_work_satisfies_the_port(
    state_unit_of_work: Callable[[], SqlAlchemyStateUnitOfWork],
) -> None:
    assert isinstance(state_unit_of_work(), StateUnitOfWork)


def test_unit_of_work_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyStateUnitOfWork()


def test_startup_twice_requires_force(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    try:
        with pytest.raises(StartupError, match="already initialised"):
            startup(engine=sqlite_engine)
    finally:
        shutdown()

