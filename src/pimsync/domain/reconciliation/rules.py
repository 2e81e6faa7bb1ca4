"""Declarative update tables driving the generic reconciler."""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pimsync.domain.model import EntityKind

type ApplyStep[G, R, K] = Callable[[G, K, R, R], Awaitable[None]]
"""Coroutine factory for one step: ``(gateway, key, current, planned)``."""


@dataclass(frozen=True, slots=True)
class FieldUpdate[G, R, K]:
    """One remote write covering a batch of record fields.

    ``deferred`` marks fields the create endpoint does not accept; they are
    written by this step right after creation.
    """

    name: str
    fields: tuple[str, ...]
    apply: ApplyStep[G, R, K]
    deferred: bool = False

    def changed(self, current: R, planned: R) -> tuple[str, ...]:
        return tuple(
            name for name in self.fields if getattr(current, name) != getattr(planned, name)
        )


@dataclass(frozen=True, slots=True)
class ReconcileRules[G, R, K]:
    """Per-entity table: ordered update steps plus fields that force replacement."""

    kind: EntityKind
    record_type: type[R]
    updates: tuple[FieldUpdate[G, R, K], ...]
    replace_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not dataclasses.is_dataclass(self.record_type):
            raise TypeError(f"{self.record_type.__name__} is not a dataclass")
        known = {field.name: field for field in dataclasses.fields(self.record_type)}

        seen_steps: set[str] = set()
        claimed: dict[str, str] = {}
        for step in self.updates:
            if step.name in seen_steps:
                raise ValueError(f"Duplicate update step '{step.name}' for {self.kind}")
            seen_steps.add(step.name)
            for name in step.fields:
                if name not in known:
                    raise ValueError(
                        f"Update step '{step.name}' names unknown field "
                        f"{self.record_type.__name__}.{name}"
                    )
                if name in claimed:
                    raise ValueError(
                        f"Field '{name}' is covered by both '{claimed[name]}' and '{step.name}'"
                    )
                claimed[name] = step.name
                if step.deferred and _default_of(known[name]) is dataclasses.MISSING:
                    raise ValueError(f"Deferred field '{name}' needs a default value")

        for name in self.replace_fields:
            if name not in known:
                raise ValueError(
                    f"Replace field names unknown field {self.record_type.__name__}.{name}"
                )
            if name in claimed:
                raise ValueError(f"Field '{name}' cannot be both updatable and replace-only")

    @property
    def deferred_fields(self) -> tuple[str, ...]:
        return tuple(name for step in self.updates if step.deferred for name in step.fields)

    def baseline(self, desired: R) -> R:
        """Return ``desired`` with every deferred field reset to its default."""

        defaults: dict[str, Any] = {}
        for field in dataclasses.fields(self.record_type):  # pyright: ignore[reportArgumentType]
            if field.name in self.deferred_fields:
                defaults[field.name] = _default_of(field)
        return dataclasses.replace(desired, **defaults)

    def replacement_fields(self, current: R, planned: R) -> tuple[str, ...]:
        return tuple(
            name
            for name in self.replace_fields
            if getattr(current, name) != getattr(planned, name)
        )

    def pending(
        self,
        current: R,
        planned: R,
        *,
        deferred_only: bool = False,
    ) -> tuple[FieldUpdate[G, R, K], ...]:
        """Return the steps, in table order, with at least one differing field."""

        return tuple(
            step
            for step in self.updates
            if (step.deferred or not deferred_only) and step.changed(current, planned)
        )


def _default_of(field: dataclasses.Field[Any]) -> Any:
    if field.default is not dataclasses.MISSING:
        return field.default
    if field.default_factory is not dataclasses.MISSING:
        return field.default_factory()
    return dataclasses.MISSING
