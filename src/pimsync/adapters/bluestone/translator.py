"""Translate between Bluestone wire payloads and domain records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pimsync.domain.errors import RestrictionConflictError, UnsupportedValueError
from pimsync.domain.model import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_ENUM_TYPE,
    AttributeDefinition,
    Category,
    CategoryAttribute,
    Context,
    DataType,
    EnumRestriction,
    EnumValue,
    NoRestriction,
    RangeRestriction,
    Restrictions,
    TextRestriction,
    Webhook,
)

from .schema import (
    AttributeDefinitionCreateRequest,
    AttributeDefinitionUpdateRequest,
    CategoryAttributeUpdateRequest,
    CategoryCreateRequest,
    CategoryUpdateRequest,
    ContextRequest,
    EnumRestrictionPayload,
    EnumValuePayload,
    EventTypesRequest,
    MetadataUpdateRequest,
    MoveRequest,
    PropertyUpdate,
    RangePayload,
    RestrictionsPayload,
    TextPayload,
    WebhookCreateRequest,
    WebhookUpdateRequest,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import (
        AttributeDefinitionPayload,
        CategoryAttributePayload,
        CategoryPayload,
        ContextPayload,
        SubscriptionsPayload,
        WebhookPayload,
    )

_RESTRICTION_BRANCHES = ("enum", "range", "text")


def decode_category(payload: CategoryPayload, *, context_id: str | None = None) -> Category:
    return Category(
        id=payload.id,
        name=payload.name,
        number=payload.number,
        description=payload.description,
        parent_id=payload.parent_id,
        context_id=context_id,
    )


def encode_category_create(record: Category) -> CategoryCreateRequest:
    return CategoryCreateRequest(name=record.name, number=record.number, parent_id=record.parent_id)


def encode_category_update(record: Category) -> CategoryUpdateRequest:
    return CategoryUpdateRequest(name=record.name, number=record.number)


def encode_description(description: str | None) -> MetadataUpdateRequest:
    return MetadataUpdateRequest(description=PropertyUpdate(value=description))


def encode_move(record: Category) -> MoveRequest:
    return MoveRequest(parent_id=record.parent_id)


def decode_data_type(value: str | None) -> DataType:
    if value is None:
        raise UnsupportedValueError("Attribute definition carries no data type")
    try:
        return DataType(value.lower())
    except ValueError as exc:
        raise UnsupportedValueError(f"Unsupported attribute data type {value!r}") from exc


def decode_restrictions(payload: RestrictionsPayload | None) -> Restrictions:
    """Decode the one populated restriction branch.

    No branch decodes to ``NoRestriction``; several branches are rejected, and
    so is any branch without a record type (``column``, ``matrix``).
    """

    if payload is None:
        return NoRestriction()
    unmodeled = sorted(
        name for name, value in (payload.model_extra or {}).items() if value is not None
    )
    if unmodeled:
        raise UnsupportedValueError(f"Unsupported restriction branch: {', '.join(unmodeled)}")
    present = [name for name in _RESTRICTION_BRANCHES if getattr(payload, name) is not None]
    if len(present) > 1:
        raise RestrictionConflictError(present)

    if payload.enum is not None:
        return EnumRestriction(
            type=payload.enum.type or DEFAULT_ENUM_TYPE,
            values=tuple(
                EnumValue(
                    value=value.value,
                    metadata=value.metadata,
                    number=value.number,
                    value_id=value.value_id,
                )
                for value in payload.enum.values
            ),
        )
    if payload.range is not None:
        return RangeRestriction(
            min=payload.range.min, max=payload.range.max, step=payload.range.step
        )
    if payload.text is not None:
        return TextRestriction(
            max_length=payload.text.max_length,
            pattern=payload.text.pattern,
            whitespaces=payload.text.whitespaces,
        )
    return NoRestriction()


def encode_restrictions(restrictions: Restrictions) -> dict[str, Any] | None:
    match restrictions:
        case NoRestriction():
            return None
        case EnumRestriction(type=enum_type, values=values):
            payload = RestrictionsPayload(
                enum=EnumRestrictionPayload(
                    type=enum_type,
                    values=[
                        EnumValuePayload(
                            value=value.value,
                            metadata=value.metadata,
                            number=value.number,
                            value_id=value.value_id,
                        )
                        for value in values
                    ],
                )
            )
        case RangeRestriction(min=minimum, max=maximum, step=step):
            payload = RestrictionsPayload(range=RangePayload(min=minimum, max=maximum, step=step))
        case TextRestriction(max_length=max_length, pattern=pattern, whitespaces=whitespaces):
            payload = RestrictionsPayload(
                text=TextPayload(
                    max_length=max_length, pattern=pattern, whitespaces=whitespaces
                )
            )
    return payload.to_wire()


def decode_attribute_definition(payload: AttributeDefinitionPayload) -> AttributeDefinition:
    return AttributeDefinition(
        id=payload.id,
        name=payload.name,
        number=payload.number,
        description=payload.description,
        data_type=decode_data_type(payload.data_type),
        content_type=payload.content_type or DEFAULT_CONTENT_TYPE,
        character_set=payload.character_set,
        external_source=bool(payload.external_source),
        internal=bool(payload.internal),
        group_id=payload.group_id,
        unit=payload.unit,
        restrictions=decode_restrictions(payload.restrictions),
    )


def encode_attribute_definition_create(
    record: AttributeDefinition,
) -> AttributeDefinitionCreateRequest:
    return AttributeDefinitionCreateRequest(
        name=record.name,
        number=record.number,
        data_type=record.data_type.value,
        content_type=record.content_type,
        character_set=record.character_set,
        external_source=record.external_source,
        internal=record.internal,
        group_id=record.group_id,
        unit=record.unit,
        restrictions=encode_restrictions(record.restrictions),
    )


def encode_attribute_definition_update(
    record: AttributeDefinition,
) -> AttributeDefinitionUpdateRequest:
    return AttributeDefinitionUpdateRequest(
        name=record.name,
        number=record.number,
        content_type=record.content_type,
        character_set=record.character_set,
        external_source=record.external_source,
        internal=record.internal,
        group_id=record.group_id,
        unit=record.unit,
        restrictions=encode_restrictions(record.restrictions),
    )


def decode_category_attribute(
    payload: CategoryAttributePayload, *, category_id: str
) -> CategoryAttribute:
    return CategoryAttribute(
        category_id=category_id,
        attribute_definition_id=payload.attribute_definition_id,
        # mandatory may be inherited from an ancestor; only count it when set here
        mandatory=payload.mandatory_set_on == category_id,
    )


def encode_category_attribute_update(record: CategoryAttribute) -> CategoryAttributeUpdateRequest:
    return CategoryAttributeUpdateRequest(mandatory=record.mandatory)


def decode_webhook(
    payload: WebhookPayload,
    subscriptions: SubscriptionsPayload,
    *,
    prior: Webhook | None = None,
) -> Webhook:
    """Build a webhook record; the secret is carried forward from ``prior`` when set remotely."""

    secret = payload.secret
    if secret is not None and prior is not None:
        secret = prior.secret
    return Webhook(
        id=payload.id,
        url=payload.url,
        secret=secret,
        active=payload.active,
        event_types=frozenset(subscriptions.event_types),
    )


def encode_webhook_create(record: Webhook) -> WebhookCreateRequest:
    return WebhookCreateRequest(url=record.url, secret=record.secret, active=record.active)


def encode_webhook_update(record: Webhook) -> WebhookUpdateRequest:
    return WebhookUpdateRequest(url=record.url, secret=record.secret, active=record.active)


def encode_event_types(event_types: Iterable[str]) -> EventTypesRequest:
    return EventTypesRequest(event_types=sorted(event_types))


def decode_context(payload: ContextPayload) -> Context:
    return Context(
        id=payload.id,
        name=payload.name,
        locale=payload.locale,
        fallback_id=payload.fallback,
    )


def encode_context(record: Context) -> ContextRequest:
    return ContextRequest(name=record.name, locale=record.locale, fallback=record.fallback_id)
