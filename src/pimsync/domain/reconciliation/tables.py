"""Update tables for every reconcilable entity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from pimsync.domain.model import (
    AttributeDefinition,
    Category,
    CategoryAttribute,
    CategoryAttributeKey,
    Context,
    EntityKind,
    Webhook,
)
from pimsync.domain.ports import (
    AttributeDefinitionGateway,
    CategoryAttributeGateway,
    CategoryGateway,
    ContextGateway,
    WebhookGateway,
)

from .rules import FieldUpdate, ReconcileRules

if TYPE_CHECKING:
    from collections.abc import Set as AbstractSet


@dataclass(frozen=True, slots=True)
class EventTypeChanges:
    """Subscription delta between two event-type sets; the intersection is untouched."""

    removed: frozenset[str]
    added: frozenset[str]

    @classmethod
    def between(cls, current: AbstractSet[str], planned: AbstractSet[str]) -> EventTypeChanges:
        return cls(
            removed=frozenset(current - planned),
            added=frozenset(planned - current),
        )

    def __bool__(self) -> bool:
        return bool(self.removed or self.added)


async def apply_event_types(
    gateway: WebhookGateway,
    key: str,
    current: Webhook,
    planned: Webhook,
) -> None:
    changes = EventTypeChanges.between(current.event_types, planned.event_types)
    if changes.removed:
        await gateway.unsubscribe(key, changes.removed)
    if changes.added:
        await gateway.subscribe(key, changes.added)


CATEGORY_RULES: Final[ReconcileRules[CategoryGateway, Category, str]] = ReconcileRules(
    kind=EntityKind.CATEGORY,
    record_type=Category,
    updates=(
        FieldUpdate(
            "update",
            ("name", "number", "context_id"),
            lambda gateway, key, _current, planned: gateway.update(key, planned),
        ),
        FieldUpdate(
            "update_description",
            ("description",),
            lambda gateway, key, _current, planned: gateway.update_description(key, planned),
            deferred=True,
        ),
        FieldUpdate(
            "move",
            ("parent_id",),
            lambda gateway, key, _current, planned: gateway.move(key, planned),
        ),
    ),
)

ATTRIBUTE_DEFINITION_RULES: Final[
    ReconcileRules[AttributeDefinitionGateway, AttributeDefinition, str]
] = ReconcileRules(
    kind=EntityKind.ATTRIBUTE_DEFINITION,
    record_type=AttributeDefinition,
    updates=(
        FieldUpdate(
            "update",
            (
                "name",
                "number",
                "content_type",
                "character_set",
                "external_source",
                "internal",
                "group_id",
                "unit",
                "restrictions",
            ),
            lambda gateway, key, _current, planned: gateway.update(key, planned),
        ),
        FieldUpdate(
            "update_description",
            ("description",),
            lambda gateway, key, _current, planned: gateway.update_description(key, planned),
            deferred=True,
        ),
    ),
    replace_fields=("data_type",),
)

CATEGORY_ATTRIBUTE_RULES: Final[
    ReconcileRules[CategoryAttributeGateway, CategoryAttribute, CategoryAttributeKey]
] = ReconcileRules(
    kind=EntityKind.CATEGORY_ATTRIBUTE,
    record_type=CategoryAttribute,
    updates=(
        FieldUpdate(
            "update",
            ("mandatory",),
            lambda gateway, key, _current, planned: gateway.update(key, planned),
            deferred=True,
        ),
    ),
    replace_fields=("category_id", "attribute_definition_id"),
)

WEBHOOK_RULES: Final[ReconcileRules[WebhookGateway, Webhook, str]] = ReconcileRules(
    kind=EntityKind.WEBHOOK,
    record_type=Webhook,
    updates=(
        FieldUpdate(
            "update",
            ("secret", "url", "active"),
            lambda gateway, key, _current, planned: gateway.update(key, planned),
        ),
        FieldUpdate("event_types", ("event_types",), apply_event_types, deferred=True),
    ),
)

CONTEXT_RULES: Final[ReconcileRules[ContextGateway, Context, str]] = ReconcileRules(
    kind=EntityKind.CONTEXT,
    record_type=Context,
    updates=(
        FieldUpdate(
            "update",
            ("name", "locale", "fallback_id"),
            lambda gateway, key, _current, planned: gateway.update(key, planned),
        ),
    ),
)
