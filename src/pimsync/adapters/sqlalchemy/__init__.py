"""SQLAlchemy adapter package for the local resource state."""

from __future__ import annotations

from .mappings import create_all_tables, metadata, resource_state_table
from .repositories import SqlAlchemyStateRepository, dump_record, load_record
from .unit_of_work import (
    SqlAlchemyStateUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyStateRepository",
    "SqlAlchemyStateUnitOfWork",
    "StartupError",
    "create_all_tables",
    "dump_record",
    "is_started",
    "load_record",
    "metadata",
    "resource_state_table",
    "shutdown",
    "startup",
]
