from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from pimsync.adapters.sqlalchemy import SqlAlchemyStateUnitOfWork, shutdown, startup
from tests.support.bluestone import FakeBluestone, pim_config

os.environ.setdefault("PIMSYNC_STATE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from pimsync.config import PimConfig


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def state_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyStateUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyStateUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def bluestone() -> FakeBluestone:
    return FakeBluestone()


@pytest.fixture
def config() -> PimConfig:
    return pim_config()
